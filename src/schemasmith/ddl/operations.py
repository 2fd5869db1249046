"""Table and view creation from user supplied definitions.

User input never reaches a statement unchecked: identifiers must pass
``ValidationUtils.validate_sql_identifier``, type names must resolve to a
type the dialect supports, and defaults go through the same formatter the
synthesizer uses.
"""

import re
from typing import TYPE_CHECKING, Any, List, Optional, Sequence

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from ..config.models import format_validation_errors
from ..core.exceptions import ConfigurationError, ErrorCodes, ValidationError
from ..core.utils import ValidationUtils
from ..logging import get_logger
from ..metadata.catalog import ObjectType
from ..metadata.reader import MetadataReader
from .builders import INDENT
from .defaults import format_default
from .profiles import DDLProfile
from .synthesizer import DDLDocument
from .types import LENGTH, PRECISION, SqlType

if TYPE_CHECKING:
    from ..database.executor import QueryExecutor

_TYPE_SPEC = re.compile(
    r"^(?P<base>[A-Za-z][A-Za-z0-9_ ]*?)\s*"
    r"(?:\(\s*(?P<size>\d+|MAX)\s*(?:,\s*(?P<scale>\d+)\s*)?\))?$",
    re.IGNORECASE,
)
_UNSAFE_EXPRESSION = re.compile(r";|--|/\*")
_SELECT = re.compile(r"^SELECT\b", re.IGNORECASE)


class ColumnDefinition(BaseModel):
    """One column of a table to create.

    ``type`` may carry its size (``VARCHAR(50)``) or leave it to ``length``,
    ``precision`` and ``scale``.
    """

    name: str
    type: str
    length: Optional[int] = Field(default=None, ge=-1)
    precision: Optional[int] = Field(default=None, ge=1)
    scale: Optional[int] = Field(default=None, ge=0)
    nullable: bool = True
    default_value: Optional[Any] = None
    primary_key: bool = False
    unique: bool = False


class SchemaOperations:
    """Creates tables and views on a registered connection."""

    def __init__(self, executor: "QueryExecutor", reader: MetadataReader) -> None:
        self.executor = executor
        self.reader = reader
        self.logger = get_logger("ddl.operations")

    def profile_for(self, connection_id: str) -> DDLProfile:
        return self.executor.dialect_for(connection_id).profile

    def _identifier(self, value: Optional[str], what: str) -> str:
        if not value or not ValidationUtils.validate_sql_identifier(value):
            raise ValidationError(
                f"Invalid {what} name: {value!r}",
                code=ErrorCodes.INVALID_IDENTIFIER,
                context={"field": what, "value": value},
            )
        return value.upper()

    def _schema(self, schema: Optional[str]) -> Optional[str]:
        return self._identifier(schema, "schema") if schema else None

    def column_type(self, column: ColumnDefinition, profile: DDLProfile) -> SqlType:
        """Resolve a column's type name against the dialect's supported types.

        Raises:
            ValidationError: If the type is malformed or unsupported
        """
        match = _TYPE_SPEC.match(column.type.strip())
        sql_type = profile.find_type(match.group("base")) if match else None
        if sql_type is None:
            raise ValidationError(
                f"Unsupported data type for column {column.name}: {column.type}",
                code=ErrorCodes.CONFIG_VALIDATION_FAILED,
                context={
                    "column": column.name,
                    "type": column.type,
                    "supported_types": list(profile.supported_type_names()),
                },
            )
        return sql_type

    def render_type(self, column: ColumnDefinition, profile: DDLProfile) -> str:
        sql_type = self.column_type(column, profile)
        match = _TYPE_SPEC.match(column.type.strip())
        size, scale = match.group("size"), match.group("scale")

        length, precision = column.length, column.precision
        if size is not None:
            value = -1 if size.upper() == "MAX" else int(size)
            if sql_type.sizing == PRECISION:
                precision = value
            else:
                length = value
        if scale is not None:
            scale = int(scale)
        else:
            scale = column.scale
        if sql_type.sizing == PRECISION and precision and scale is None:
            scale = 0

        if sql_type.sizing == LENGTH and not length:
            raise ValidationError(
                f"Column {column.name} of type {sql_type.name} requires a length",
                code=ErrorCodes.CONFIG_VALIDATION_FAILED,
                context={"column": column.name, "type": column.type},
            )
        return sql_type.render(length=length, precision=precision, scale=scale)

    def _default(self, column: ColumnDefinition, profile: DDLProfile) -> Optional[str]:
        if column.default_value is None:
            return None
        sql_type = self.column_type(column, profile)
        literal = format_default(column.default_value, sql_type, profile)
        if literal and literal[0] != "'" and _UNSAFE_EXPRESSION.search(literal):
            raise ValidationError(
                f"Invalid default value for column {column.name}",
                code=ErrorCodes.CONFIG_VALIDATION_FAILED,
                context={"column": column.name},
            )
        return literal

    def build_create_table(
        self,
        table: str,
        columns: Sequence[ColumnDefinition],
        profile: DDLProfile,
        schema: Optional[str] = None,
    ) -> str:
        """Validate the definition and render its ``CREATE TABLE``.

        Raises:
            ConfigurationError: If no columns are given
            ValidationError: If a name, type or default is rejected
        """
        table = self._identifier(table, "table")
        schema = self._schema(schema)
        if not columns:
            raise ConfigurationError(
                f"Table {table} needs at least one column",
                code=ErrorCodes.CONFIG_VALIDATION_FAILED,
                context={"table": table},
            )

        lines = []
        seen = set()
        primary_key: List[str] = []
        unique: List[str] = []
        for column in columns:
            name = self._identifier(column.name, "column")
            if name in seen:
                raise ValidationError(
                    f"Duplicate column name: {name}",
                    code=ErrorCodes.CONFIG_VALIDATION_FAILED,
                    context={"table": table, "column": name},
                )
            seen.add(name)

            parts = [profile.quote(name), self.render_type(column, profile)]
            default = self._default(column, profile)
            if default is not None:
                parts.append(f"DEFAULT {default}")
            if column.primary_key or not column.nullable:
                parts.append("NOT NULL")
            lines.append(INDENT + " ".join(parts))

            if column.primary_key:
                primary_key.append(name)
            elif column.unique:
                unique.append(name)

        if primary_key:
            columns_text = ", ".join(profile.quote(name) for name in primary_key)
            lines.append(
                f"{INDENT}CONSTRAINT {profile.quote(f'PK_{table}')} PRIMARY KEY ({columns_text})"
            )
        for number, name in enumerate(unique, start=1):
            lines.append(
                f"{INDENT}CONSTRAINT {profile.quote(f'UK_{table}_{number}')} "
                f"UNIQUE ({profile.quote(name)})"
            )

        qualified = profile.qualified(table, schema)
        return f"CREATE TABLE {qualified} (\n" + ",\n".join(lines) + "\n)"

    def build_create_view(
        self,
        view: str,
        select_query: str,
        profile: DDLProfile,
        column_names: Optional[Sequence[str]] = None,
        with_check_option: bool = False,
        schema: Optional[str] = None,
    ) -> str:
        """Validate the definition and render its ``CREATE VIEW``.

        Raises:
            ConfigurationError: If the query is not a single ``SELECT``
            ValidationError: If a name is rejected
        """
        view = self._identifier(view, "view")
        schema = self._schema(schema)
        query = (select_query or "").strip().rstrip(";").rstrip()
        if not _SELECT.match(query) or ";" in query:
            raise ConfigurationError(
                "View query must be a single SELECT statement",
                code=ErrorCodes.CONFIG_VALIDATION_FAILED,
                context={"view": view},
            )

        header = f"CREATE VIEW {profile.qualified(view, schema)}"
        if column_names:
            names = [self._identifier(name, "column") for name in column_names]
            header += f" ({', '.join(profile.quote(name) for name in names)})"
        statement = f"{header} AS\n{query}"
        if with_check_option:
            statement += "\nWITH CHECK OPTION"
        return statement

    async def _ensure_absent(
        self, connection_id: str, name: str, schema: Optional[str]
    ) -> None:
        for object_type in (ObjectType.TABLE, ObjectType.VIEW):
            if await self.reader.object_exists(connection_id, object_type, name, schema):
                raise ConfigurationError(
                    f"{object_type.value.capitalize()} {name} already exists",
                    code=ErrorCodes.OBJECT_EXISTS,
                    context={
                        "connection_id": connection_id,
                        "object_type": object_type.value,
                        "object_name": name,
                    },
                )

    async def create_table(
        self,
        connection_id: str,
        table: str,
        columns: Sequence[Any],
        schema: Optional[str] = None,
    ) -> DDLDocument:
        """Create a table from column definitions.

        Args:
            connection_id: Registered connection id
            table: Table name
            columns: ``ColumnDefinition`` objects or dicts of their fields
            schema: Schema for dialects with schemas

        Returns:
            The executed statement

        Raises:
            ConfigurationError: If the definition is invalid or the name is taken
            NotFoundError: If the id is unknown
            NotConnectedError: If the session has no live pool
            QueryError: If the engine rejects the statement
        """
        try:
            definitions = [ColumnDefinition.model_validate(column) for column in columns]
        except PydanticValidationError as e:
            raise ValidationError(
                "Invalid column definition: " + "; ".join(format_validation_errors(e)),
                code=ErrorCodes.CONFIG_VALIDATION_FAILED,
                context={"table": table},
                cause=e,
            ) from e
        profile = self.profile_for(connection_id)
        statement = self.build_create_table(table, definitions, profile, schema)
        name = table.upper()

        op = self.logger.log_operation_start(
            "create_table", connection_id=connection_id, table=name
        )
        try:
            await self._ensure_absent(connection_id, name, schema)
            await self.executor.execute(connection_id, statement)
        except Exception as e:
            self.logger.log_operation_failure(op, e)
            raise

        self.logger.log_operation_success(op, columns=len(definitions))
        return DDLDocument(connection_id, ObjectType.TABLE, name, statement)

    async def create_view(
        self,
        connection_id: str,
        view: str,
        select_query: str,
        column_names: Optional[Sequence[str]] = None,
        with_check_option: bool = False,
        schema: Optional[str] = None,
    ) -> DDLDocument:
        """Create a view over a ``SELECT`` query.

        Raises:
            ConfigurationError: If the definition is invalid or the name is taken
            NotFoundError: If the id is unknown
            NotConnectedError: If the session has no live pool
            QueryError: If the engine rejects the statement
        """
        profile = self.profile_for(connection_id)
        statement = self.build_create_view(
            view, select_query, profile, column_names, with_check_option, schema
        )
        name = view.upper()

        op = self.logger.log_operation_start(
            "create_view", connection_id=connection_id, view=name
        )
        try:
            await self._ensure_absent(connection_id, name, schema)
            await self.executor.execute(connection_id, statement)
        except Exception as e:
            self.logger.log_operation_failure(op, e)
            raise

        self.logger.log_operation_success(op)
        return DDLDocument(connection_id, ObjectType.VIEW, name, statement)
