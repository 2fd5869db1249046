"""Engine dialects.

Supported engines:
- Firebird (firebird-driver)
- Microsoft SQL Server (aioodbc)

Drivers are imported when a connection is opened, so the rest of the
package works without native client libraries installed.
"""

from .base import Dialect
from .firebird import FirebirdDialect
from .registry import DialectRegistry
from .tsql import TransactSqlDialect

__all__ = [
    "Dialect",
    "DialectRegistry",
    "FirebirdDialect",
    "TransactSqlDialect",
]
