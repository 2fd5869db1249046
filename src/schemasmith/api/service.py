"""Administration service: the single entry point for callers.

Every public method returns an :class:`Envelope` and never raises.
SchemaSmith exceptions become failed envelopes carrying their kind; any
other exception is logged with its traceback and reported as ``Internal``
(or as the kind :func:`create_error_from_exception` maps it to).
"""

import inspect
from typing import Any, Callable, Dict, List, Optional, Sequence

from ..config.models import SystemConfig
from ..core.base import AsyncComponent
from ..core.exceptions import SchemaSmithException, create_error_from_exception
from ..database.dialects.registry import DialectRegistry
from ..database.executor import QueryExecutor
from ..database.health import HealthMonitor
from ..database.registry import ConnectionRegistry
from ..database.session import SessionManager
from ..ddl.operations import SchemaOperations
from ..ddl.synthesizer import DDLSynthesizer
from ..logging import get_factory, get_logger
from ..metadata.catalog import CatalogRow, ObjectType
from ..metadata.reader import MetadataReader
from ..security.vault import CredentialVault
from .envelope import Envelope


def _rows(rows: Sequence[CatalogRow]) -> List[Dict[str, Any]]:
    return [row.to_dict() for row in rows]


class AdminService(AsyncComponent[SystemConfig]):
    """Connection management, querying and DDL operations behind envelopes.

    Collaborators are built from the system configuration unless injected.

    Example:
        >>> service = AdminService(SystemConfig.from_file("schemasmith.yaml"))
        >>> await service.initialize()
        >>> envelope = await service.execute_query("connection_1", "SELECT 1")
        >>> envelope.success
        False
        >>> envelope.error.kind
        <ErrorKind.NOT_CONNECTED: 'NotConnected'>
    """

    component_name = "AdminService"

    def __init__(
        self,
        config: Optional[SystemConfig] = None,
        *,
        registry: Optional[ConnectionRegistry] = None,
        dialects: Optional[DialectRegistry] = None,
        configure_logging: bool = True,
    ) -> None:
        super().__init__(config or SystemConfig())
        self._configure_logging = configure_logging
        self.logger = get_logger("api.service")

        self.dialects = dialects or DialectRegistry.with_defaults()
        self.registry = registry or ConnectionRegistry(
            CredentialVault(self.config.vault), self.config.storage
        )
        self.sessions = SessionManager(
            self.registry, self.dialects, self.config.pool, self.config.health
        )
        self.executor = QueryExecutor(self.registry, self.dialects)
        self.reader = MetadataReader(self.executor)
        self.synthesizer = DDLSynthesizer(self.reader)
        self.operations = SchemaOperations(self.executor, self.reader)
        self.monitor = HealthMonitor(self.config.health, self.sessions)

    async def _async_initialize(self) -> None:
        if self._configure_logging:
            get_factory().configure_from_config(self.config.logging)
        loaded = await self.registry.load()
        await self.monitor.initialize()
        self.logger.info("Admin service ready", connections=loaded)

    async def _async_cleanup(self) -> None:
        await self.monitor.cleanup()
        await self.sessions.close_all()
        if self._configure_logging:
            get_factory().shutdown()

    async def _call(
        self, operation: str, call: Callable[[], Any], message: Optional[str] = None
    ) -> Envelope:
        """Run one operation and wrap its outcome in an envelope."""
        try:
            result = call()
            if inspect.isawaitable(result):
                result = await result
        except SchemaSmithException as e:
            self.logger.warning(
                "Operation failed",
                operation=operation,
                kind=e.kind.value,
                code=e.code,
                error=e.message,
            )
            return Envelope.failure(e)
        except Exception as e:
            self.logger.exception("Unexpected error", operation=operation)
            return Envelope.failure(create_error_from_exception(e))
        return Envelope.ok(result, message)

    # Connections

    async def test_connection(self, config: Any) -> Envelope:
        return await self._call(
            "test_connection",
            lambda: self.sessions.test_connection(config),
            "Connection successful",
        )

    async def add_connection(self, config: Any) -> Envelope:
        async def add() -> Dict[str, Any]:
            added = await self.sessions.add_connection(config)
            return added.redacted()

        return await self._call("add_connection", add, "Connection added")

    async def list_connections(self) -> Envelope:
        return await self._call("list_connections", self.sessions.list_connections)

    async def list_active_connections(self) -> Envelope:
        return await self._call(
            "list_active_connections", self.sessions.list_active_connections
        )

    async def remove_connection(self, connection_id: str) -> Envelope:
        return await self._call(
            "remove_connection",
            lambda: self.sessions.remove(connection_id),
            "Connection removed",
        )

    async def connect(self, connection_id: str) -> Envelope:
        async def connect() -> Dict[str, Any]:
            session = await self.sessions.connect(connection_id)
            return session.to_dict()

        return await self._call("connect", connect, "Connected")

    async def disconnect(self, connection_id: str) -> Envelope:
        async def disconnect() -> Dict[str, Any]:
            session = await self.sessions.disconnect(connection_id)
            return session.to_dict()

        return await self._call("disconnect", disconnect, "Disconnected")

    async def health_check(self) -> Envelope:
        async def check() -> Dict[str, Any]:
            report = await self.monitor.run_once()
            return report.to_dict()

        return await self._call("health_check", check)

    async def close_all(self) -> Envelope:
        return await self._call("close_all", self.sessions.close_all, "All connections closed")

    async def check_credentials(self) -> Envelope:
        """Report stored passwords that fail to decrypt under the held keys."""

        def check() -> Dict[str, Any]:
            failing = self.registry.verify_credentials()
            return {"valid": not failing, "failing": failing}

        return await self._call("check_credentials", check)

    async def rotate_master_key(self) -> Envelope:
        return await self._call(
            "rotate_master_key", self.sessions.rotate_master_key, "Master key rotated"
        )

    # Queries

    async def execute_query(
        self,
        connection_id: str,
        query: str,
        parameters: Optional[Sequence[Any]] = None,
        timeout: Optional[float] = None,
    ) -> Envelope:
        async def execute() -> Dict[str, Any]:
            result = await self.executor.execute(
                connection_id, query, parameters, timeout=timeout
            )
            return result.to_dict()

        return await self._call("execute_query", execute)

    async def list_data_types(self, connection_id: str) -> Envelope:
        return await self._call(
            "list_data_types",
            lambda: self.executor.dialect_for(connection_id).supported_types(),
        )

    # Metadata

    async def list_schemas(self, connection_id: str) -> Envelope:
        async def schemas() -> List[Dict[str, Any]]:
            return _rows(await self.reader.list_schemas(connection_id))

        return await self._call("list_schemas", schemas)

    async def list_objects(
        self, connection_id: str, object_type: Any, schema: Optional[str] = None
    ) -> Envelope:
        async def objects() -> List[Dict[str, Any]]:
            return _rows(await self.reader.list_objects(connection_id, object_type, schema))

        return await self._call(f"list_{getattr(object_type, 'value', object_type)}", objects)

    async def list_tables(self, connection_id: str, schema: Optional[str] = None) -> Envelope:
        return await self.list_objects(connection_id, ObjectType.TABLE, schema)

    async def list_views(self, connection_id: str, schema: Optional[str] = None) -> Envelope:
        return await self.list_objects(connection_id, ObjectType.VIEW, schema)

    async def list_procedures(
        self, connection_id: str, schema: Optional[str] = None
    ) -> Envelope:
        return await self.list_objects(connection_id, ObjectType.PROCEDURE, schema)

    async def list_functions(
        self, connection_id: str, schema: Optional[str] = None
    ) -> Envelope:
        return await self.list_objects(connection_id, ObjectType.FUNCTION, schema)

    async def list_triggers(self, connection_id: str, schema: Optional[str] = None) -> Envelope:
        return await self.list_objects(connection_id, ObjectType.TRIGGER, schema)

    async def list_indexes(self, connection_id: str, schema: Optional[str] = None) -> Envelope:
        return await self.list_objects(connection_id, ObjectType.INDEX, schema)

    async def list_sequences(
        self, connection_id: str, schema: Optional[str] = None
    ) -> Envelope:
        return await self.list_objects(connection_id, ObjectType.SEQUENCE, schema)

    async def list_packages(self, connection_id: str, schema: Optional[str] = None) -> Envelope:
        return await self.list_objects(connection_id, ObjectType.PACKAGE, schema)

    async def list_users(self, connection_id: str) -> Envelope:
        return await self.list_objects(connection_id, ObjectType.USER)

    async def get_table_columns(
        self, connection_id: str, table: str, schema: Optional[str] = None
    ) -> Envelope:
        async def columns() -> List[Dict[str, Any]]:
            return _rows(await self.reader.get_columns(connection_id, table, schema))

        return await self._call("get_table_columns", columns)

    # DDL

    async def generate_ddl(
        self,
        connection_id: str,
        object_type: Any,
        name: str,
        schema: Optional[str] = None,
    ) -> Envelope:
        """Synthesize DDL; failures carry a message and no partial text."""

        async def generate() -> Dict[str, Any]:
            document = await self.synthesizer.synthesize(
                connection_id, object_type, name, schema
            )
            return document.to_dict()

        return await self._call("generate_ddl", generate)

    async def generate_table_ddl(
        self, connection_id: str, name: str, schema: Optional[str] = None
    ) -> Envelope:
        return await self.generate_ddl(connection_id, ObjectType.TABLE, name, schema)

    async def generate_view_ddl(
        self, connection_id: str, name: str, schema: Optional[str] = None
    ) -> Envelope:
        return await self.generate_ddl(connection_id, ObjectType.VIEW, name, schema)

    async def generate_procedure_ddl(
        self, connection_id: str, name: str, schema: Optional[str] = None
    ) -> Envelope:
        return await self.generate_ddl(connection_id, ObjectType.PROCEDURE, name, schema)

    async def generate_function_ddl(
        self, connection_id: str, name: str, schema: Optional[str] = None
    ) -> Envelope:
        return await self.generate_ddl(connection_id, ObjectType.FUNCTION, name, schema)

    async def generate_trigger_ddl(
        self, connection_id: str, name: str, schema: Optional[str] = None
    ) -> Envelope:
        return await self.generate_ddl(connection_id, ObjectType.TRIGGER, name, schema)

    async def generate_index_ddl(
        self, connection_id: str, name: str, schema: Optional[str] = None
    ) -> Envelope:
        return await self.generate_ddl(connection_id, ObjectType.INDEX, name, schema)

    async def generate_sequence_ddl(
        self, connection_id: str, name: str, schema: Optional[str] = None
    ) -> Envelope:
        return await self.generate_ddl(connection_id, ObjectType.SEQUENCE, name, schema)

    async def generate_package_ddl(self, connection_id: str, name: str) -> Envelope:
        return await self.generate_ddl(connection_id, ObjectType.PACKAGE, name)

    async def generate_user_ddl(self, connection_id: str, name: str) -> Envelope:
        return await self.generate_ddl(connection_id, ObjectType.USER, name)

    async def create_table(
        self,
        connection_id: str,
        table: str,
        columns: Sequence[Any],
        schema: Optional[str] = None,
    ) -> Envelope:
        async def create() -> Dict[str, Any]:
            document = await self.operations.create_table(connection_id, table, columns, schema)
            return document.to_dict()

        return await self._call("create_table", create, f"Table {table.upper()} created")

    async def create_view(
        self,
        connection_id: str,
        view: str,
        select_query: str,
        column_names: Optional[Sequence[str]] = None,
        with_check_option: bool = False,
        schema: Optional[str] = None,
    ) -> Envelope:
        async def create() -> Dict[str, Any]:
            document = await self.operations.create_view(
                connection_id, view, select_query, column_names, with_check_option, schema
            )
            return document.to_dict()

        return await self._call("create_view", create, f"View {view.upper()} created")
