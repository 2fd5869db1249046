"""DDL synthesis from live catalog metadata.

The synthesizer reads one object through :class:`MetadataReader` and hands
the rows to the builder for its category. Output is deterministic: the
same catalog state always yields byte-identical text.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..core.exceptions import ErrorCodes, NotFoundError
from ..logging import get_logger, get_performance_logger
from ..metadata.catalog import CatalogRow, ObjectType
from ..metadata.reader import MetadataReader
from . import builders
from .profiles import DDLProfile


@dataclass(frozen=True)
class DDLDocument:
    """Synthesized DDL for one database object."""

    connection_id: str
    object_type: ObjectType
    object_name: str
    text: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "connection_id": self.connection_id,
            "object_type": self.object_type.value,
            "object_name": self.object_name,
            "ddl": self.text,
        }


class DDLSynthesizer:
    """Produces ``CREATE`` statements for existing database objects.

    Example:
        >>> synthesizer = DDLSynthesizer(reader)
        >>> document = await synthesizer.synthesize("connection_1", "table", "users")
        >>> print(document.text)
        CREATE TABLE "USERS" (
            "ID" INTEGER NOT NULL,
            "NAME" VARCHAR(50),
            CONSTRAINT "PK_USERS" PRIMARY KEY ("ID")
        );
    """

    def __init__(self, reader: MetadataReader) -> None:
        self.reader = reader
        self.logger = get_logger("ddl.synthesizer")
        self.perf_logger = get_performance_logger("ddl.synthesizer")

    def profile_for(self, connection_id: str) -> DDLProfile:
        return self.reader.executor.dialect_for(connection_id).profile

    async def synthesize(
        self,
        connection_id: str,
        object_type: Any,
        name: str,
        schema: Optional[str] = None,
    ) -> DDLDocument:
        """Generate DDL for one object.

        Args:
            connection_id: Registered connection id
            object_type: ``ObjectType`` or its name
            name: Object name, matched case-insensitively
            schema: Schema or owner filter

        Returns:
            The synthesized document

        Raises:
            ValueError: If ``object_type`` is not a known category
            NotFoundError: If the connection or the object does not exist
            NotConnectedError: If the session has no live pool
            MetadataError: If a catalog query fails
        """
        object_type = ObjectType.parse(object_type)
        profile = self.profile_for(connection_id)
        op = self.logger.log_operation_start(
            "synthesize_ddl",
            connection_id=connection_id,
            object_type=object_type.value,
            object_name=name,
        )

        try:
            with self.perf_logger.measure("synthesize_ddl", object_type=object_type.value):
                if object_type is ObjectType.TABLE:
                    text = await self._table(connection_id, name, schema, profile)
                else:
                    row = await self.reader.get_object(connection_id, object_type, name, schema)
                    if row is None:
                        self._not_found(connection_id, object_type, name)
                    text = await self._render(connection_id, object_type, row, schema, profile)
        except Exception as e:
            self.logger.log_operation_failure(op, e)
            raise

        self.logger.log_operation_success(op, length=len(text))
        return DDLDocument(
            connection_id=connection_id,
            object_type=object_type,
            object_name=name,
            text=text,
        )

    def _not_found(self, connection_id: str, object_type: ObjectType, name: str) -> None:
        raise NotFoundError(
            f"{object_type.value.capitalize()} '{name}' not found",
            code=ErrorCodes.OBJECT_NOT_FOUND,
            context={
                "connection_id": connection_id,
                "object_type": object_type.value,
                "object_name": name,
            },
        )

    async def _table(
        self, connection_id: str, name: str, schema: Optional[str], profile: DDLProfile
    ) -> str:
        snapshot = await self.reader.describe_table(connection_id, name, schema)
        if snapshot is None:
            self._not_found(connection_id, ObjectType.TABLE, name)
        return builders.build_table(
            snapshot, profile, schema or snapshot.table.text("SCHEMA_NAME")
        )

    async def _render(
        self,
        connection_id: str,
        object_type: ObjectType,
        row: CatalogRow,
        schema: Optional[str],
        profile: DDLProfile,
    ) -> str:
        prefix = schema or row.text("SCHEMA_NAME")
        if object_type is ObjectType.VIEW:
            columns = []
            if not profile.routine_source_has_header:
                view = row.text("VIEW_NAME", "NAME") or ""
                columns = await self.reader.get_columns(connection_id, view, schema)
            return builders.build_view(row, columns, profile, prefix)

        if object_type in (ObjectType.PROCEDURE, ObjectType.FUNCTION):
            kind = object_type.value.upper()
            parameters = []
            if not profile.routine_source_has_header:
                routine = row.text(f"{kind}_NAME", "NAME") or ""
                parameters = await self.reader.get_routine_parameters(
                    connection_id, object_type, routine, schema
                )
            return builders.build_routine(kind, row, parameters, profile, prefix)

        if object_type is ObjectType.TRIGGER:
            return builders.build_trigger(row, profile, prefix)

        if object_type is ObjectType.INDEX:
            table = row.text("RELATION_NAME", "TABLE_NAME") or ""
            index = row.text("INDEX_NAME", "NAME") or ""
            columns = await self.reader.get_index_columns(connection_id, table, index, schema)
            return builders.build_index(row, columns, profile, prefix)

        if object_type is ObjectType.SEQUENCE:
            return builders.build_sequence(row, profile, prefix)

        if object_type is ObjectType.PACKAGE:
            return builders.build_package(row, profile)

        return builders.build_user(row, profile)
