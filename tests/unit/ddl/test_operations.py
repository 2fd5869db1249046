"""Unit tests for table and view creation."""

import pytest

from schemasmith.core.exceptions import (
    ConfigurationError,
    ErrorCodes,
    ValidationError,
)
from schemasmith.ddl.operations import ColumnDefinition, SchemaOperations
from schemasmith.ddl.profiles import FIREBIRD_PROFILE, TRANSACT_SQL_PROFILE
from schemasmith.metadata.catalog import ObjectType
from schemasmith.metadata.reader import MetadataReader

CONNECTION_ID = "connection_1"


@pytest.fixture
def operations(stub_executor):
    return SchemaOperations(stub_executor, MetadataReader(stub_executor))


def _columns():
    return [
        ColumnDefinition(name="id", type="INTEGER", primary_key=True),
        ColumnDefinition(name="email", type="VARCHAR(120)", nullable=False, unique=True),
        ColumnDefinition(name="status", type="VARCHAR", length=10, default_value="N/A"),
        ColumnDefinition(name="balance", type="DECIMAL(12,2)", default_value=0),
        ColumnDefinition(name="active", type="BOOLEAN", default_value=True),
    ]


class TestBuildCreateTable:
    """Test CREATE TABLE rendering from definitions."""

    def test_render(self, operations):
        """Test identifiers, types, defaults and keys."""
        ddl = operations.build_create_table("users", _columns(), FIREBIRD_PROFILE)

        assert ddl == (
            'CREATE TABLE "USERS" (\n'
            '    "ID" INTEGER NOT NULL,\n'
            '    "EMAIL" VARCHAR(120) NOT NULL,\n'
            "    \"STATUS\" VARCHAR(10) DEFAULT 'N/A',\n"
            '    "BALANCE" DECIMAL(12,2) DEFAULT 0,\n'
            '    "ACTIVE" BOOLEAN DEFAULT 1,\n'
            '    CONSTRAINT "PK_USERS" PRIMARY KEY ("ID"),\n'
            '    CONSTRAINT "UK_USERS_1" UNIQUE ("EMAIL")\n'
            ")"
        )

    def test_transact_sql_max_and_schema(self, operations):
        """Test MAX lengths and schema prefixes."""
        columns = [ColumnDefinition(name="notes", type="NVARCHAR(MAX)")]

        ddl = operations.build_create_table("memo", columns, TRANSACT_SQL_PROFILE, schema="sales")

        assert ddl == 'CREATE TABLE "SALES"."MEMO" (\n    "NOTES" NVARCHAR(MAX)\n)'

    @pytest.mark.parametrize("name", ["1users", "users;drop", "select", ""])
    def test_invalid_table_name(self, operations, name):
        """Test unsafe or reserved table names are rejected."""
        with pytest.raises(ValidationError) as exc_info:
            operations.build_create_table(name, _columns(), FIREBIRD_PROFILE)

        assert exc_info.value.code == ErrorCodes.INVALID_IDENTIFIER

    def test_invalid_column_name(self, operations):
        """Test unsafe column names are rejected."""
        with pytest.raises(ValidationError):
            operations.build_create_table(
                "t", [ColumnDefinition(name="a b", type="INTEGER")], FIREBIRD_PROFILE
            )

    def test_duplicate_column(self, operations):
        """Test duplicate names are rejected case-insensitively."""
        columns = [
            ColumnDefinition(name="id", type="INTEGER"),
            ColumnDefinition(name="ID", type="BIGINT"),
        ]

        with pytest.raises(ValidationError):
            operations.build_create_table("t", columns, FIREBIRD_PROFILE)

    def test_no_columns(self, operations):
        """Test a table needs at least one column."""
        with pytest.raises(ConfigurationError):
            operations.build_create_table("t", [], FIREBIRD_PROFILE)

    def test_unsupported_type(self, operations):
        """Test unknown types list the supported ones."""
        with pytest.raises(ValidationError) as exc_info:
            operations.build_create_table(
                "t", [ColumnDefinition(name="shape", type="GEOMETRY")], FIREBIRD_PROFILE
            )

        assert "VARCHAR" in exc_info.value.context["supported_types"]

    def test_precision_only_gets_zero_scale(self, operations):
        """Test a user type with precision alone keeps it with scale 0."""
        columns = [ColumnDefinition(name="qty", type="DECIMAL(10)")]

        ddl = operations.build_create_table("t", columns, FIREBIRD_PROFILE)

        assert '"QTY" DECIMAL(10,0)' in ddl

    def test_length_required(self, operations):
        """Test sized string types need a length."""
        with pytest.raises(ValidationError):
            operations.build_create_table(
                "t", [ColumnDefinition(name="code", type="CHAR")], FIREBIRD_PROFILE
            )

    def test_unsafe_default_rejected(self, operations):
        """Test expression defaults cannot smuggle statements."""
        column = ColumnDefinition(
            name="x", type="INTEGER", default_value="f(1); DROP TABLE USERS; g()"
        )

        with pytest.raises(ValidationError):
            operations.build_create_table("t", [column], FIREBIRD_PROFILE)

    def test_string_default_with_quotes_is_escaped(self, operations):
        """Test quoted defaults are escaped rather than rejected."""
        column = ColumnDefinition(name="note", type="VARCHAR(20)", default_value="it's; ok")

        ddl = operations.build_create_table("t", [column], FIREBIRD_PROFILE)

        assert "DEFAULT 'it''s; ok'" in ddl


class TestBuildCreateView:
    """Test CREATE VIEW rendering."""

    def test_render(self, operations):
        """Test column list and check option."""
        ddl = operations.build_create_view(
            "active_users",
            "SELECT ID, EMAIL FROM USERS WHERE ACTIVE = 1;",
            FIREBIRD_PROFILE,
            column_names=["id", "email"],
            with_check_option=True,
        )

        assert ddl == (
            'CREATE VIEW "ACTIVE_USERS" ("ID", "EMAIL") AS\n'
            "SELECT ID, EMAIL FROM USERS WHERE ACTIVE = 1\n"
            "WITH CHECK OPTION"
        )

    @pytest.mark.parametrize(
        "query",
        ["DELETE FROM USERS", "SELECT 1 FROM RDB$DATABASE; DROP TABLE USERS", ""],
    )
    def test_rejects_non_select(self, operations, query):
        """Test only a single SELECT is accepted."""
        with pytest.raises(ConfigurationError):
            operations.build_create_view("v", query, FIREBIRD_PROFILE)


class TestCreate:
    """Test execution of create statements."""

    @pytest.mark.asyncio
    async def test_create_table(self, operations, stub_executor):
        """Test the statement is executed after the existence check."""
        document = await operations.create_table(
            CONNECTION_ID, "users", [{"name": "id", "type": "INTEGER", "primary_key": True}]
        )

        assert document.object_name == "USERS"
        assert document.object_type is ObjectType.TABLE
        assert stub_executor.calls[-1] == (document.text, ())
        assert not document.text.endswith(";")

    @pytest.mark.asyncio
    async def test_create_table_invalid_definition(self, operations, stub_executor):
        """Test malformed column dicts are rejected before any query."""
        with pytest.raises(ValidationError):
            await operations.create_table(CONNECTION_ID, "users", [{"name": "id"}])

        assert stub_executor.calls == []

    @pytest.mark.asyncio
    async def test_create_existing_table(self, operations, stub_executor):
        """Test an existing table name is refused."""
        catalog = stub_executor.catalog
        stub_executor.respond(
            catalog.lookup_object(ObjectType.TABLE, "USERS"), [{"TABLE_NAME": "USERS"}]
        )

        with pytest.raises(ConfigurationError) as exc_info:
            await operations.create_table(CONNECTION_ID, "users", _columns())

        assert exc_info.value.code == ErrorCodes.OBJECT_EXISTS
        assert all(not sql.startswith("CREATE") for sql, _ in stub_executor.calls)

    @pytest.mark.asyncio
    async def test_create_view_over_existing_view(self, operations, stub_executor):
        """Test a view name colliding with a view is refused."""
        catalog = stub_executor.catalog
        stub_executor.respond(
            catalog.lookup_object(ObjectType.VIEW, "V_USERS"), [{"VIEW_NAME": "V_USERS"}]
        )

        with pytest.raises(ConfigurationError) as exc_info:
            await operations.create_view(CONNECTION_ID, "v_users", "SELECT ID FROM USERS")

        assert exc_info.value.context["object_type"] == "view"

    @pytest.mark.asyncio
    async def test_create_view(self, operations, stub_executor):
        """Test a view is created."""
        document = await operations.create_view(CONNECTION_ID, "v_users", "SELECT ID FROM USERS")

        assert document.text == 'CREATE VIEW "V_USERS" AS\nSELECT ID FROM USERS'
        assert stub_executor.calls[-1] == (document.text, ())
