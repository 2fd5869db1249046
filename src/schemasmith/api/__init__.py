"""Service boundary.

Modules:
    envelope: Uniform success/error response model
    service: ``AdminService`` exposing every operation as an envelope
"""

from .envelope import Envelope, ErrorDetail
from .service import AdminService

__all__ = ["AdminService", "Envelope", "ErrorDetail"]
