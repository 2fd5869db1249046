"""Unit tests for AdminService."""

import pytest

from schemasmith.api.service import AdminService
from schemasmith.config.models import (
    HealthConfig,
    PoolConfig,
    StorageConfig,
    SystemConfig,
    VaultConfig,
)
from schemasmith.core.exceptions import ErrorKind
from schemasmith.metadata.catalog import ObjectType


@pytest.fixture
def system_config(temp_dir):
    return SystemConfig(
        vault=VaultConfig(key_path=temp_dir / "master.key"),
        storage=StorageConfig(connections_path=temp_dir / "connections.json"),
        health=HealthConfig(enabled=False, ping_timeout=0.5),
        pool=PoolConfig(min_size=1, max_size=2, acquire_timeout=1.0),
    )


@pytest.fixture
async def service(system_config, registry, dialects):
    service = AdminService(
        system_config, registry=registry, dialects=dialects, configure_logging=False
    )
    await service.initialize()
    yield service
    await service.cleanup()


@pytest.fixture
async def connection_id(service, connection_data):
    envelope = await service.add_connection(connection_data)
    return envelope.data["id"]


class TestConnections:
    """Test connection management through envelopes."""

    @pytest.mark.asyncio
    async def test_add_connection_redacts_password(self, service, connection_data):
        """Test the added record is returned without its password."""
        envelope = await service.add_connection(connection_data)

        assert envelope.success
        assert envelope.message == "Connection added"
        assert envelope.data["name"] == "Sales"
        assert envelope.data["password"] == "***"

    @pytest.mark.asyncio
    async def test_add_invalid_connection(self, service, connection_data):
        """Test validation failures become InvalidConfig envelopes."""
        envelope = await service.add_connection({**connection_data, "host": ""})

        assert not envelope.success
        assert envelope.error.kind is ErrorKind.INVALID_CONFIG

        listed = await service.list_connections()
        assert listed.data == []

    @pytest.mark.asyncio
    async def test_test_connection(self, service, connection_data):
        """Test a reachable server reports its details."""
        envelope = await service.test_connection(connection_data)

        assert envelope.success
        assert envelope.data["engine"] == "firebird"
        assert envelope.data["version"] == "4.0.2"

    @pytest.mark.asyncio
    async def test_test_connection_unreachable(self, service, fake_dialect, connection_data):
        """Test an unreachable server yields ConnectionRefused."""
        fake_dialect.reachable = False

        envelope = await service.test_connection(connection_data)

        assert not envelope.success
        assert envelope.error.kind is ErrorKind.CONNECTION_REFUSED

    @pytest.mark.asyncio
    async def test_connect_and_disconnect(self, service, connection_id):
        """Test the session state follows connect and disconnect."""
        connected = await service.connect(connection_id)
        active = await service.list_active_connections()
        disconnected = await service.disconnect(connection_id)

        assert connected.data["is_connected"] is True
        assert [item["id"] for item in active.data] == [connection_id]
        assert disconnected.data["is_connected"] is False

    @pytest.mark.asyncio
    async def test_unknown_connection(self, service):
        """Test unknown ids yield NotFound."""
        envelope = await service.connect("connection_999")

        assert envelope.error.kind is ErrorKind.NOT_FOUND

    @pytest.mark.asyncio
    async def test_remove_connection(self, service, connection_id):
        """Test a removed connection is no longer listed."""
        removed = await service.remove_connection(connection_id)
        listed = await service.list_connections()

        assert removed.success
        assert listed.data == []

    @pytest.mark.asyncio
    async def test_check_credentials(self, service, connection_id):
        """Test stored passwords decrypt under the current key."""
        envelope = await service.check_credentials()

        assert envelope.data == {"valid": True, "failing": []}

    @pytest.mark.asyncio
    async def test_rotate_master_key(self, service, connection_id, registry):
        """Test rotation keeps stored passwords readable."""
        envelope = await service.rotate_master_key()

        assert envelope.success
        assert registry.get(connection_id).config.password_value == "masterkey"


class TestQueries:
    """Test query and metadata operations through envelopes."""

    @pytest.mark.asyncio
    async def test_execute_query_not_connected(self, service, connection_id):
        """Test querying a disconnected session yields NotConnected."""
        envelope = await service.execute_query(connection_id, "SELECT 1 FROM RDB$DATABASE")

        assert not envelope.success
        assert envelope.error.kind is ErrorKind.NOT_CONNECTED

    @pytest.mark.asyncio
    async def test_execute_query(self, service, connection_id, fake_dialect):
        """Test rows and columns are returned."""
        fake_dialect.responses["FROM USERS"] = [{"ID": 1}]
        await service.connect(connection_id)

        envelope = await service.execute_query(connection_id, "SELECT ID FROM USERS")

        assert envelope.success
        assert envelope.data["rows"] == [{"ID": 1}]
        assert envelope.data["row_count"] == 1

    @pytest.mark.asyncio
    async def test_query_error_details(self, service, connection_id, fake_dialect):
        """Test engine failures carry the QueryFailed kind."""
        fake_dialect.errors["BROKEN"] = RuntimeError("Dynamic SQL Error")
        await service.connect(connection_id)

        envelope = await service.execute_query(connection_id, "SELECT BROKEN FROM USERS")

        assert envelope.error.kind is ErrorKind.QUERY_FAILED

    @pytest.mark.asyncio
    async def test_list_data_types(self, service, connection_id):
        """Test data types come from the connection's dialect."""
        envelope = await service.list_data_types(connection_id)

        assert "VARCHAR" in envelope.data

    @pytest.mark.asyncio
    async def test_list_tables(self, service, connection_id, fake_dialect):
        """Test catalog rows are returned as dictionaries."""
        sql, _ = fake_dialect.catalog.list_objects(ObjectType.TABLE)
        fake_dialect.responses[sql] = [{"TABLE_NAME": "USERS", "SCHEMA_NAME": "SYSDBA"}]
        await service.connect(connection_id)

        envelope = await service.list_tables(connection_id)

        assert envelope.success
        assert envelope.data[0]["TABLE_NAME"] == "USERS"

    @pytest.mark.asyncio
    async def test_generate_missing_object(self, service, connection_id):
        """Test a missing object yields NotFound with no DDL."""
        await service.connect(connection_id)

        envelope = await service.generate_table_ddl(connection_id, "missing")

        assert envelope.error.kind is ErrorKind.NOT_FOUND
        assert envelope.data is None

    @pytest.mark.asyncio
    async def test_generate_with_unknown_type(self, service, connection_id):
        """Test an unknown object type maps to InvalidConfig."""
        envelope = await service.generate_ddl(connection_id, "synonym", "X")

        assert envelope.error.kind is ErrorKind.INVALID_CONFIG

    @pytest.mark.asyncio
    async def test_create_table(self, service, connection_id, fake_dialect):
        """Test the executed statement is returned."""
        await service.connect(connection_id)

        envelope = await service.create_table(
            connection_id, "users", [{"name": "id", "type": "INTEGER", "primary_key": True}]
        )

        assert envelope.success
        assert envelope.message == "Table USERS created"
        assert fake_dialect.statements[-1][0] == envelope.data["ddl"]


class TestHealth:
    """Test health checks through the service."""

    @pytest.mark.asyncio
    async def test_health_check_demotes_unreachable(self, service, connection_id, fake_dialect):
        """Test an unreachable server demotes its session."""
        await service.connect(connection_id)
        fake_dialect.reachable = False

        envelope = await service.health_check()
        active = await service.list_active_connections()

        assert connection_id in envelope.data["demoted"]
        assert active.data == []
