"""Per-dialect DDL rendering rules.

A :class:`DDLProfile` bundles everything the builders need to know about
one catalog dialect: its type table, identifier quoting, truth literals,
keywords that pass through unquoted in defaults, the name prefixes the
engine reserves for system generated objects, and how identity, computed
columns and triggers are spelled.
"""

from dataclasses import dataclass, field
from typing import Callable, FrozenSet, Optional, Tuple

from ..metadata.catalog import CatalogRow
from .types import (
    FIREBIRD_TYPES,
    TRANSACT_SQL_TYPES,
    SqlType,
    firebird_type,
    parse_type_name,
    transact_sql_type,
)

_TRIGGER_PHASES = ("BEFORE", "AFTER")
_TRIGGER_EVENTS = {1: "INSERT", 2: "UPDATE", 3: "DELETE"}

FIREBIRD_DATABASE_TRIGGERS = {
    8192: "ON CONNECT",
    8193: "ON DISCONNECT",
    8194: "ON TRANSACTION START",
    8195: "ON TRANSACTION COMMIT",
    8196: "ON TRANSACTION ROLLBACK",
}


def firebird_trigger_event(trigger_type: Optional[int]) -> Optional[str]:
    """Decode ``RDB$TRIGGER_TYPE`` into its phase and events.

    DML trigger types pack the phase in the low bit of ``type + 1`` and up
    to three events in the following two-bit slots, so 1 is
    ``BEFORE INSERT`` and 114 is ``AFTER INSERT OR UPDATE OR DELETE``.

    Returns:
        The event clause, or None for types this decoder does not know
    """
    if trigger_type is None:
        return None
    if trigger_type in FIREBIRD_DATABASE_TRIGGERS:
        return FIREBIRD_DATABASE_TRIGGERS[trigger_type]
    if not 1 <= trigger_type < 8192:
        return None

    packed = trigger_type + 1
    events = []
    for slot in range(3):
        event = (packed >> (slot * 2 + 1)) & 3
        if event == 0:
            break
        events.append(_TRIGGER_EVENTS[event])
    if not events or packed >> 7:
        return None
    return f"{_TRIGGER_PHASES[packed & 1]} {' OR '.join(events)}"


def _firebird_column_type(row: CatalogRow) -> SqlType:
    return firebird_type(
        row.get("FIELD_TYPE", "DATA_TYPE"),
        row.get("FIELD_SUB_TYPE"),
        row.get("FIELD_SCALE", "SCALE"),
    )


def _transact_sql_column_type(row: CatalogRow) -> SqlType:
    return transact_sql_type(row.get("TYPE_NAME", "DATA_TYPE"))


@dataclass(frozen=True)
class DDLProfile:
    """Rendering rules for one catalog dialect.

    Attributes:
        name: Dialect identifier (matches ``ConnectionConfig.engine``)
        resolve_type: Maps a column catalog row to its canonical type
        supported_types: Types accepted by create-table and listed to callers
        truth_literals: Tokens for true and false in boolean defaults
        time_keywords: Default expressions emitted without quotes
        system_index_prefixes: Index names the engine generates itself
        generated_constraint_prefixes: Constraint names the engine generates
        supports_schemas: Whether object names take a schema prefix
        routine_source_has_header: Whether stored routine source already
            contains its ``CREATE`` header
        login_based_users: Whether users are created from server logins
        identity_style: ``"generated"`` for SQL standard identity columns,
            ``"identity"`` for ``IDENTITY(seed, increment)``
        computed_keyword: Keyword introducing a computed column expression
        default_sequence_start: Start value omitted from sequence DDL, or
            None to always emit it
    """

    name: str
    resolve_type: Callable[[CatalogRow], SqlType]
    supported_types: Tuple[SqlType, ...]
    truth_literals: Tuple[str, str] = ("1", "0")
    time_keywords: FrozenSet[str] = frozenset()
    system_index_prefixes: Tuple[str, ...] = ()
    generated_constraint_prefixes: Tuple[str, ...] = ()
    supports_schemas: bool = False
    routine_source_has_header: bool = False
    login_based_users: bool = False
    identity_style: str = "generated"
    computed_keyword: str = "COMPUTED BY"
    default_sequence_start: Optional[int] = 0
    trigger_event: Callable[[Optional[int]], Optional[str]] = field(
        default=lambda trigger_type: None
    )

    def quote(self, identifier: str) -> str:
        """Quote an identifier, doubling embedded quotes."""
        return '"' + identifier.replace('"', '""') + '"'

    def qualified(self, name: str, schema: Optional[str] = None) -> str:
        """Quoted name with a schema prefix where the dialect has schemas."""
        if schema and self.supports_schemas:
            return f"{self.quote(schema)}.{self.quote(name)}"
        return self.quote(name)

    def column_type(self, row: CatalogRow) -> Tuple[SqlType, str]:
        """Resolve and render the type of a column or parameter row."""
        sql_type = self.resolve_type(row)
        rendered = sql_type.render(
            length=row.integer("FIELD_LENGTH", "CHARACTER_LENGTH", "MAX_LENGTH"),
            precision=row.integer("FIELD_PRECISION", "PRECISION"),
            scale=row.integer("FIELD_SCALE", "SCALE"),
        )
        return sql_type, rendered

    def find_type(self, type_name: str) -> Optional[SqlType]:
        """Supported type named by user input such as ``VARCHAR(50)``."""
        return parse_type_name(type_name, self.supported_types)

    def is_system_index(self, name: str) -> bool:
        return name.upper().startswith(self.system_index_prefixes)

    def is_generated_constraint(self, name: Optional[str]) -> bool:
        return not name or name.upper().startswith(self.generated_constraint_prefixes)

    def supported_type_names(self) -> Tuple[str, ...]:
        return tuple(sql_type.name for sql_type in self.supported_types)


def _pick(table, *keys) -> Tuple[SqlType, ...]:
    return tuple(table[key] for key in keys)


FIREBIRD_PROFILE = DDLProfile(
    name="firebird",
    resolve_type=_firebird_column_type,
    supported_types=(
        *_pick(FIREBIRD_TYPES, 8, 9, 7, 10, 11, 14, 37, 261, 12, 13, 35, 23),
        firebird_type(8, 2),
        firebird_type(8, 1),
    ),
    time_keywords=frozenset(
        {
            "CURRENT_DATE",
            "CURRENT_TIME",
            "CURRENT_TIMESTAMP",
            "LOCALTIME",
            "LOCALTIMESTAMP",
            "CURRENT_USER",
            "CURRENT_ROLE",
            "USER",
        }
    ),
    system_index_prefixes=("RDB$",),
    generated_constraint_prefixes=("INTEG_",),
    supports_schemas=False,
    routine_source_has_header=False,
    login_based_users=False,
    identity_style="generated",
    computed_keyword="COMPUTED BY",
    default_sequence_start=0,
    trigger_event=firebird_trigger_event,
)

TRANSACT_SQL_PROFILE = DDLProfile(
    name="mssql",
    resolve_type=_transact_sql_column_type,
    supported_types=_pick(
        TRANSACT_SQL_TYPES,
        "int", "bigint", "smallint", "tinyint", "bit", "decimal", "numeric",
        "money", "float", "real", "date", "time", "datetime", "datetime2",
        "char", "varchar", "nchar", "nvarchar", "text", "ntext", "binary",
        "varbinary", "uniqueidentifier", "xml",
    ),
    time_keywords=frozenset({"CURRENT_TIMESTAMP", "CURRENT_USER", "SESSION_USER", "SYSTEM_USER"}),
    system_index_prefixes=("PK__", "UQ__"),
    generated_constraint_prefixes=("PK__", "UQ__", "FK__"),
    supports_schemas=True,
    routine_source_has_header=True,
    login_based_users=True,
    identity_style="identity",
    computed_keyword="AS",
    default_sequence_start=None,
)
