"""Per-object DDL builders.

Builders are pure functions over catalog rows and a :class:`DDLProfile`;
they never query anything. The synthesizer gathers the rows and picks the
builder for the requested object type.
"""

import re
from typing import Dict, List, Optional, Sequence, Tuple

from ..metadata.catalog import CatalogRow
from ..metadata.reader import TableSnapshot
from .defaults import format_default, quote_literal
from .profiles import DDLProfile

INDENT = "    "
PASSWORD_PLACEHOLDER = "<password>"
MISSING_SOURCE = "/* source not available */"

_CONSTRAINT_ORDER = {"PRIMARY KEY": 0, "UNIQUE": 1, "FOREIGN KEY": 2}
_IMPLICIT_RULES = frozenset({"RESTRICT", "NO ACTION"})
_LEADING_AS = re.compile(r"^AS\b", re.IGNORECASE)


def _position(row: CatalogRow) -> int:
    position = row.integer("POSITION")
    return position if position is not None else 0


def _column_list(names: Sequence[str], profile: DDLProfile) -> str:
    return ", ".join(profile.quote(name) for name in names)


def _with_body(header: str, source: Optional[str]) -> str:
    """Join a routine header and its stored body, adding ``AS`` if needed."""
    if not source:
        return f"{header}\nAS\n{MISSING_SOURCE}"
    if _LEADING_AS.match(source):
        return f"{header}\n{source}"
    return f"{header}\nAS\n{source}"


def _terminated(text: str) -> str:
    return text if text.rstrip().endswith(";") else f"{text};"


def _identity_clause(row: CatalogRow, profile: DDLProfile) -> Optional[str]:
    if profile.identity_style == "identity":
        if not row.flag("IS_IDENTITY"):
            return None
        seed = row.integer("IDENTITY_SEED", default=1)
        increment = row.integer("IDENTITY_INCREMENT", default=1)
        return f"IDENTITY({seed},{increment})"

    identity_type = row.integer("IDENTITY_TYPE")
    if identity_type is None:
        return None
    if identity_type == 0:
        return "GENERATED ALWAYS AS IDENTITY"
    return "GENERATED BY DEFAULT AS IDENTITY"


def _is_nullable(row: CatalogRow) -> bool:
    if "IS_NULLABLE" in row:
        return row.flag("IS_NULLABLE")
    return not row.flag("NULL_FLAG", "NOT_NULL")


def build_column(row: CatalogRow, profile: DDLProfile) -> str:
    """Render one column definition.

    Clause order is type, identity or computed expression, ``DEFAULT``,
    then ``NOT NULL``. Computed columns carry no type.
    """
    name = profile.quote(row.text("COLUMN_NAME", "FIELD_NAME") or "")
    computed = row.text("COMPUTED_SOURCE")
    if computed:
        expression = computed if computed.startswith("(") else f"({computed})"
        return f"{name} {profile.computed_keyword} {expression}"

    sql_type, rendered = profile.column_type(row)
    parts = [name, rendered]

    identity = _identity_clause(row, profile)
    if identity:
        parts.append(identity)

    default = format_default(row.get("DEFAULT_SOURCE", "DEFAULT_VALUE"), sql_type, profile)
    if default is not None:
        parts.append(f"DEFAULT {default}")

    if not _is_nullable(row):
        parts.append("NOT NULL")
    return " ".join(parts)


def _constraint_type(row: CatalogRow) -> str:
    return (row.text("CONSTRAINT_TYPE") or "").upper()


def _named_constraints(
    table: str, constraints: Sequence[CatalogRow], profile: DDLProfile
) -> List[Tuple[str, CatalogRow]]:
    """Order constraints and replace engine generated names.

    Primary keys come first, then unique keys, then foreign keys, each
    group by catalog name. Generated names become ``PK_<table>``,
    ``UK_<table>_<n>`` and ``FK_<table>_<n>``.
    """
    ordered = sorted(
        (row for row in constraints if _constraint_type(row) in _CONSTRAINT_ORDER),
        key=lambda row: (
            _CONSTRAINT_ORDER[_constraint_type(row)],
            row.text("CONSTRAINT_NAME", "NAME") or "",
        ),
    )
    counters: Dict[str, int] = {}
    named = []
    for row in ordered:
        kind = _constraint_type(row)
        name = row.text("CONSTRAINT_NAME", "NAME")
        if profile.is_generated_constraint(name):
            if kind == "PRIMARY KEY":
                name = f"PK_{table}"
            else:
                counters[kind] = counters.get(kind, 0) + 1
                prefix = "UK" if kind == "UNIQUE" else "FK"
                name = f"{prefix}_{table}_{counters[kind]}"
        named.append((name, row))
    return named


def _referential_actions(row: CatalogRow) -> str:
    clauses = []
    for event, key in (("UPDATE", "UPDATE_RULE"), ("DELETE", "DELETE_RULE")):
        rule = (row.text(key) or "").upper()
        if rule and rule not in _IMPLICIT_RULES:
            clauses.append(f" ON {event} {rule}")
    return "".join(clauses)


def build_index(
    row: CatalogRow,
    columns: Sequence[str],
    profile: DDLProfile,
    schema: Optional[str] = None,
) -> str:
    """``CREATE [UNIQUE] [DESCENDING] INDEX`` for one index."""
    name = row.text("INDEX_NAME", "NAME") or ""
    table = row.text("RELATION_NAME", "TABLE_NAME") or ""
    keywords = ["CREATE"]
    if row.flag("IS_UNIQUE"):
        keywords.append("UNIQUE")
    if row.flag("IS_DESCENDING"):
        keywords.append("DESCENDING")
    keywords.append("INDEX")
    column_text = _column_list(columns, profile) if columns else "/* columns not available */"
    return (
        f"{' '.join(keywords)} {profile.quote(name)} ON "
        f"{profile.qualified(table, schema)} ({column_text});"
    )


def build_table(
    snapshot: TableSnapshot, profile: DDLProfile, schema: Optional[str] = None
) -> str:
    """Render a table with its keys, secondary indexes and foreign keys.

    Foreign keys are emitted as trailing ``ALTER TABLE`` statements so the
    script does not depend on the creation order of referenced tables.
    """
    table = snapshot.table.text("TABLE_NAME", "RELATION_NAME", "NAME") or ""
    qualified = profile.qualified(table, schema)

    lines = [
        INDENT + build_column(column, profile)
        for column in sorted(snapshot.columns, key=_position)
    ]

    foreign_keys = []
    backing_indexes = set()
    for name, row in _named_constraints(table, snapshot.constraints, profile):
        kind = _constraint_type(row)
        columns = _column_list(row.get("COLUMNS") or [], profile)
        index_name = row.text("INDEX_NAME")
        if index_name:
            backing_indexes.add(index_name.upper())

        if kind == "FOREIGN KEY":
            referenced = profile.qualified(
                row.text("REFERENCED_TABLE") or "", row.text("REFERENCED_SCHEMA")
            )
            referenced_columns = _column_list(row.get("REFERENCED_COLUMNS") or [], profile)
            foreign_keys.append(
                f"ALTER TABLE {qualified} ADD CONSTRAINT {profile.quote(name)} "
                f"FOREIGN KEY ({columns}) REFERENCES {referenced} ({referenced_columns})"
                f"{_referential_actions(row)};"
            )
        else:
            lines.append(f"{INDENT}CONSTRAINT {profile.quote(name)} {kind} ({columns})")

    indexes = []
    for row in sorted(snapshot.indexes, key=lambda index: index.text("INDEX_NAME", "NAME") or ""):
        name = row.text("INDEX_NAME", "NAME") or ""
        if (
            row.text("CONSTRAINT_NAME")
            or name.upper() in backing_indexes
            or profile.is_system_index(name)
        ):
            continue
        indexes.append(
            build_index(
                row.with_values(RELATION_NAME=table), row.get("COLUMNS") or [], profile, schema
            )
        )

    sections = [f"CREATE TABLE {qualified} (\n" + ",\n".join(lines) + "\n);"]
    if indexes:
        sections.append("\n".join(indexes))
    if foreign_keys:
        sections.append("\n".join(foreign_keys))
    return "\n\n".join(sections)


def build_view(
    row: CatalogRow,
    columns: Sequence[CatalogRow],
    profile: DDLProfile,
    schema: Optional[str] = None,
) -> str:
    source = row.text("VIEW_SOURCE")
    if profile.routine_source_has_header and source:
        return source

    name = profile.qualified(row.text("VIEW_NAME", "NAME") or "", schema)
    names = [
        column.text("COLUMN_NAME", "FIELD_NAME") or ""
        for column in sorted(columns, key=_position)
    ]
    header = f"CREATE VIEW {name}"
    if names:
        header += f" ({_column_list(names, profile)})"
    if not source:
        return f"{header} AS\n{MISSING_SOURCE}"
    return _terminated(f"{header} AS\n{source}")


def _parameter(row: CatalogRow, profile: DDLProfile) -> str:
    _, rendered = profile.column_type(row)
    name = row.text("PARAMETER_NAME")
    return f"{profile.quote(name)} {rendered}" if name else rendered


def build_routine(
    kind: str,
    row: CatalogRow,
    parameters: Sequence[CatalogRow],
    profile: DDLProfile,
    schema: Optional[str] = None,
) -> str:
    """Render a stored procedure or function.

    Args:
        kind: ``"PROCEDURE"`` or ``"FUNCTION"``
        row: Lookup row carrying ``<KIND>_SOURCE``
        parameters: Parameter rows; ``DIRECTION`` 0 is input, 1 output
        profile: Dialect rendering rules
        schema: Schema prefix for dialects with schemas
    """
    source = row.text(f"{kind}_SOURCE")
    if profile.routine_source_has_header:
        name = row.text(f"{kind}_NAME", "NAME")
        return source or f"/* {kind.lower()} {name}: source not available */"

    name = profile.qualified(row.text(f"{kind}_NAME", "NAME") or "", schema)
    ordered = sorted(parameters, key=_position)
    outputs = [param for param in ordered if param.integer("DIRECTION", default=0)]
    inputs = [_parameter(param, profile) for param in ordered if param not in outputs]

    header = f"CREATE {kind} {name}"
    if inputs:
        header += f" ({', '.join(inputs)})"
    if kind == "FUNCTION":
        if outputs:
            header += f"\nRETURNS {profile.column_type(outputs[0])[1]}"
    elif outputs:
        header += f"\nRETURNS ({', '.join(_parameter(param, profile) for param in outputs)})"
    return _with_body(header, source)


def build_trigger(row: CatalogRow, profile: DDLProfile, schema: Optional[str] = None) -> str:
    source = row.text("TRIGGER_SOURCE")
    if profile.routine_source_has_header:
        return source or f"/* trigger {row.text('TRIGGER_NAME', 'NAME')}: source not available */"

    trigger_type = row.integer("TRIGGER_TYPE")
    event = profile.trigger_event(trigger_type) or f"/* trigger type {trigger_type} */"
    state = "INACTIVE" if row.flag("TRIGGER_INACTIVE") else "ACTIVE"
    position = row.integer("TRIGGER_SEQUENCE", default=0)

    header = f"CREATE TRIGGER {profile.qualified(row.text('TRIGGER_NAME', 'NAME') or '', schema)}"
    relation = row.text("RELATION_NAME")
    if relation:
        header += f" FOR {profile.qualified(relation, schema)}"
    header += f"\n{state} {event} POSITION {position}"
    return f"{header}\n{source or MISSING_SOURCE}"


def build_sequence(row: CatalogRow, profile: DDLProfile, schema: Optional[str] = None) -> str:
    """``CREATE SEQUENCE`` with non-default start and increment only."""
    name = row.text("SEQUENCE_NAME", "NAME") or ""
    statement = f"CREATE SEQUENCE {profile.qualified(name, schema)}"
    data_type = row.text("DATA_TYPE")
    if data_type:
        statement += f" AS {data_type.upper()}"
    start = row.integer("START_VALUE")
    if start is not None and start != profile.default_sequence_start:
        statement += f" START WITH {start}"
    increment = row.integer("INCREMENT")
    if increment is not None and increment != 1:
        statement += f" INCREMENT BY {increment}"
    return f"{statement};"


def build_package(row: CatalogRow, profile: DDLProfile) -> str:
    name = profile.quote(row.text("PACKAGE_NAME", "NAME") or "")
    header = _with_body(f"CREATE PACKAGE {name}", row.text("HEADER_SOURCE"))
    body = row.text("BODY_SOURCE")
    if not body:
        return header
    return f"{header}\n\n{_with_body(f'CREATE PACKAGE BODY {name}', body)}"


def build_user(row: CatalogRow, profile: DDLProfile) -> str:
    """Recreate a user with a password placeholder.

    Passwords are never readable from the catalog, so the output always
    needs editing before it is run.
    """
    name = row.text("USER_NAME", "NAME") or ""
    password = quote_literal(PASSWORD_PLACEHOLDER)

    if profile.login_based_users:
        login = row.text("LOGIN_NAME")
        user = profile.quote(name)
        if not login:
            statement = f"CREATE USER {user} WITHOUT LOGIN"
        else:
            statement = f"CREATE USER {user} FOR LOGIN {profile.quote(login)}"
        default_schema = row.text("DEFAULT_SCHEMA")
        if default_schema:
            statement += f" WITH DEFAULT_SCHEMA = {profile.quote(default_schema)}"
        statement += ";"
        if login and "SQL" in (row.text("USER_TYPE") or "").upper():
            create_login = f"CREATE LOGIN {profile.quote(login)} WITH PASSWORD = {password};"
            statement = f"{create_login}\n{statement}"
        return statement

    statement = f"CREATE USER {profile.quote(name)} PASSWORD {password}"
    first_name = row.text("FIRST_NAME")
    if first_name:
        statement += f" FIRSTNAME {quote_literal(first_name)}"
    last_name = row.text("LAST_NAME")
    if last_name:
        statement += f" LASTNAME {quote_literal(last_name)}"
    if row.get("ACTIVE") is not None and not row.flag("ACTIVE"):
        statement += " INACTIVE"
    plugin = row.text("PLUGIN")
    if plugin:
        statement += f" USING PLUGIN {plugin}"
    return f"{statement};"
