"""Metadata reader: runs catalog queries through the query executor.

The reader never touches a pool. Every query goes through
:class:`~schemasmith.database.executor.QueryExecutor` using the connection
id as the only handle, so tests can substitute a stub executor.
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, List, Optional

from ..core.exceptions import ErrorCodes, MetadataError, QueryError
from ..logging import get_logger
from .catalog import CatalogRow, ObjectType
from .queries import CatalogQueries, Query

if TYPE_CHECKING:
    from ..database.executor import QueryExecutor


@dataclass(frozen=True)
class TableSnapshot:
    """Everything the synthesizer needs to rebuild one table."""

    table: CatalogRow
    columns: List[CatalogRow] = field(default_factory=list)
    indexes: List[CatalogRow] = field(default_factory=list)
    constraints: List[CatalogRow] = field(default_factory=list)


class MetadataReader:
    """Read-only catalog introspection for registered connections.

    Absent objects yield ``[]`` or ``None``; only engine failures raise.

    Example:
        >>> reader = MetadataReader(executor)
        >>> await reader.list_objects("connection_1", ObjectType.TABLE)
        [CatalogRow({'TABLE_NAME': 'USERS', 'SCHEMA_NAME': 'SYSDBA', ...})]
    """

    def __init__(self, executor: "QueryExecutor") -> None:
        self.executor = executor
        self.logger = get_logger("metadata.reader")

    def catalog_for(self, connection_id: str) -> CatalogQueries:
        """Catalog queries of the connection's dialect.

        Raises:
            NotFoundError: If the id is unknown
        """
        return self.executor.dialect_for(connection_id).catalog

    async def fetch(self, connection_id: str, query: Optional[Query]) -> List[CatalogRow]:
        """Run one catalog query and wrap its rows.

        Raises:
            NotFoundError: If the id is unknown
            NotConnectedError: If the session has no live pool
            MetadataError: If the engine rejects the query
        """
        if query is None:
            return []
        sql, params = query
        try:
            result = await self.executor.execute(connection_id, sql, params or None)
        except MetadataError:
            raise
        except QueryError as e:
            self.logger.warning(
                "Catalog query failed", connection_id=connection_id, error=e.message
            )
            raise MetadataError(
                f"Catalog query failed: {e.message}",
                code=ErrorCodes.METADATA_EXTRACTION_FAILED,
                context={"connection_id": connection_id, **e.context},
                cause=e,
                engine_code=e.engine_code,
                line=e.line,
                procedure=e.procedure,
            ) from e
        return [CatalogRow(row) for row in result.rows]

    async def list_schemas(self, connection_id: str) -> List[CatalogRow]:
        return await self.fetch(connection_id, self.catalog_for(connection_id).schemas())

    async def list_objects(
        self, connection_id: str, object_type: Any, schema: Optional[str] = None
    ) -> List[CatalogRow]:
        """List every user object of one category."""
        object_type = ObjectType.parse(object_type)
        catalog = self.catalog_for(connection_id)
        return await self.fetch(connection_id, catalog.list_objects(object_type, schema))

    async def get_object(
        self, connection_id: str, object_type: Any, name: str, schema: Optional[str] = None
    ) -> Optional[CatalogRow]:
        """Look up one object by exact, uppercased name.

        Returns:
            The catalog row, or None when the object does not exist
        """
        object_type = ObjectType.parse(object_type)
        catalog = self.catalog_for(connection_id)
        rows = await self.fetch(connection_id, catalog.lookup_object(object_type, name, schema))
        return rows[0] if rows else None

    async def object_exists(
        self, connection_id: str, object_type: Any, name: str, schema: Optional[str] = None
    ) -> bool:
        return await self.get_object(connection_id, object_type, name, schema) is not None

    async def get_columns(
        self, connection_id: str, table: str, schema: Optional[str] = None
    ) -> List[CatalogRow]:
        catalog = self.catalog_for(connection_id)
        return await self.fetch(connection_id, catalog.columns(table, schema))

    async def get_index_columns(
        self, connection_id: str, table: str, index: str, schema: Optional[str] = None
    ) -> List[str]:
        """Key column names of one index in key order."""
        catalog = self.catalog_for(connection_id)
        rows = await self.fetch(connection_id, catalog.index_segments(table, index, schema))
        return [name for name in (row.text("COLUMN_NAME", "FIELD_NAME") for row in rows) if name]

    async def get_indexes(
        self, connection_id: str, table: str, schema: Optional[str] = None
    ) -> List[CatalogRow]:
        """Indexes on a table, each with its ordered ``COLUMNS``."""
        catalog = self.catalog_for(connection_id)
        indexes = []
        for row in await self.fetch(connection_id, catalog.table_indexes(table, schema)):
            index_name = row.text("INDEX_NAME", "NAME")
            columns = (
                await self.get_index_columns(connection_id, table, index_name, schema)
                if index_name
                else []
            )
            indexes.append(row.with_values(COLUMNS=columns))
        return indexes

    async def get_constraints(
        self, connection_id: str, table: str, schema: Optional[str] = None
    ) -> List[CatalogRow]:
        """Key constraints on a table with ordered ``COLUMNS``.

        Foreign keys also carry ``REFERENCED_COLUMNS`` aligned with
        ``COLUMNS``.
        """
        catalog = self.catalog_for(connection_id)
        constraints = []
        for row in await self.fetch(connection_id, catalog.constraints(table, schema)):
            constraint_type = (row.text("CONSTRAINT_TYPE") or "").upper()
            name = row.text("CONSTRAINT_NAME", "NAME")

            if constraint_type == "FOREIGN KEY" and name:
                pairs = await self.fetch(
                    connection_id, catalog.foreign_key_columns(table, name, schema)
                )
                row = row.with_values(
                    COLUMNS=[pair.text("COLUMN_NAME") for pair in pairs],
                    REFERENCED_COLUMNS=[pair.text("REFERENCED_COLUMN") for pair in pairs],
                )
            else:
                index_name = row.text("INDEX_NAME")
                columns = (
                    await self.get_index_columns(connection_id, table, index_name, schema)
                    if index_name
                    else []
                )
                row = row.with_values(COLUMNS=columns)
            constraints.append(row)
        return constraints

    async def get_routine_parameters(
        self, connection_id: str, object_type: Any, name: str, schema: Optional[str] = None
    ) -> List[CatalogRow]:
        object_type = ObjectType.parse(object_type)
        catalog = self.catalog_for(connection_id)
        return await self.fetch(
            connection_id, catalog.routine_parameters(object_type, name, schema)
        )

    async def describe_table(
        self, connection_id: str, table: str, schema: Optional[str] = None
    ) -> Optional[TableSnapshot]:
        """Read a table with its columns, indexes and constraints.

        Returns:
            The snapshot, or None when the table does not exist
        """
        row = await self.get_object(connection_id, ObjectType.TABLE, table, schema)
        if row is None:
            return None
        name = row.text("TABLE_NAME", "RELATION_NAME", "NAME") or table
        return TableSnapshot(
            table=row,
            columns=await self.get_columns(connection_id, name, schema),
            indexes=await self.get_indexes(connection_id, name, schema),
            constraints=await self.get_constraints(connection_id, name, schema),
        )
