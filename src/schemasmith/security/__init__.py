"""Credential protection for SchemaSmith."""

from .vault import CredentialVault

__all__ = ["CredentialVault"]
