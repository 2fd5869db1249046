"""DDL synthesis and schema operations.

Modules:
    types: Catalog type translation tables
    profiles: Per-dialect rendering rules
    defaults: Default value re-quoting
    builders: Pure per-object DDL builders
    synthesizer: Reads an object and renders its DDL
    operations: Create-table and create-view from user definitions
"""

from .defaults import format_default
from .operations import ColumnDefinition, SchemaOperations
from .profiles import FIREBIRD_PROFILE, TRANSACT_SQL_PROFILE, DDLProfile
from .synthesizer import DDLDocument, DDLSynthesizer
from .types import FALLBACK_TYPE, SqlType, TypeCategory

__all__ = [
    "ColumnDefinition",
    "DDLDocument",
    "DDLProfile",
    "DDLSynthesizer",
    "FALLBACK_TYPE",
    "FIREBIRD_PROFILE",
    "SchemaOperations",
    "SqlType",
    "TRANSACT_SQL_PROFILE",
    "TypeCategory",
    "format_default",
]
