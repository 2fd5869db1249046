"""Unit tests for DDL synthesis from catalog metadata."""

import pytest

from schemasmith.core.exceptions import ErrorCodes, MetadataError, NotFoundError, QueryError
from schemasmith.ddl.synthesizer import DDLSynthesizer
from schemasmith.metadata.catalog import ObjectType
from schemasmith.metadata.reader import MetadataReader

CONNECTION_ID = "connection_1"


@pytest.fixture
def synthesizer(stub_executor):
    return DDLSynthesizer(MetadataReader(stub_executor))


@pytest.fixture
def catalog(stub_executor):
    return stub_executor.catalog


class TestDDLSynthesizer:
    """Test DDLSynthesizer.synthesize."""

    @pytest.mark.asyncio
    async def test_table(self, synthesizer, stub_executor, catalog):
        """Test a table is rebuilt from its catalog rows."""
        stub_executor.respond(
            catalog.lookup_object(ObjectType.TABLE, "USERS"),
            [{"TABLE_NAME": "USERS", "SCHEMA_NAME": "SYSDBA"}],
        )
        stub_executor.respond(
            catalog.columns("USERS"),
            [
                {"COLUMN_NAME": "ID", "POSITION": 0, "FIELD_TYPE": 8, "IS_NULLABLE": 0},
                {
                    "COLUMN_NAME": "NAME",
                    "POSITION": 1,
                    "FIELD_TYPE": 37,
                    "FIELD_LENGTH": 50,
                    "IS_NULLABLE": 1,
                },
            ],
        )
        stub_executor.respond(
            catalog.constraints("USERS"),
            [{"CONSTRAINT_NAME": "INTEG_1", "CONSTRAINT_TYPE": "PRIMARY KEY", "INDEX_NAME": "RDB$PRIMARY1"}],
        )
        stub_executor.respond(
            catalog.index_segments("USERS", "RDB$PRIMARY1"), [{"COLUMN_NAME": "ID"}]
        )

        document = await synthesizer.synthesize(CONNECTION_ID, "table", "users")

        assert document.text == (
            'CREATE TABLE "USERS" (\n'
            '    "ID" INTEGER NOT NULL,\n'
            '    "NAME" VARCHAR(50),\n'
            '    CONSTRAINT "PK_USERS" PRIMARY KEY ("ID")\n'
            ");"
        )
        assert document.to_dict() == {
            "connection_id": CONNECTION_ID,
            "object_type": "table",
            "object_name": "users",
            "ddl": document.text,
        }

    @pytest.mark.asyncio
    async def test_missing_table(self, synthesizer):
        """Test a missing table raises OBJECT_NOT_FOUND."""
        with pytest.raises(NotFoundError) as exc_info:
            await synthesizer.synthesize(CONNECTION_ID, ObjectType.TABLE, "missing")

        assert exc_info.value.code == ErrorCodes.OBJECT_NOT_FOUND
        assert exc_info.value.context["object_type"] == "table"

    @pytest.mark.asyncio
    async def test_missing_view(self, synthesizer):
        """Test other categories also report missing objects."""
        with pytest.raises(NotFoundError):
            await synthesizer.synthesize(CONNECTION_ID, "view", "missing")

    @pytest.mark.asyncio
    async def test_unknown_category(self, synthesizer):
        """Test unknown categories are rejected."""
        with pytest.raises(ValueError):
            await synthesizer.synthesize(CONNECTION_ID, "synonym", "x")

    @pytest.mark.asyncio
    async def test_view(self, synthesizer, stub_executor, catalog):
        """Test views list their columns."""
        stub_executor.respond(
            catalog.lookup_object(ObjectType.VIEW, "ACTIVE_USERS"),
            [{"VIEW_NAME": "ACTIVE_USERS", "VIEW_SOURCE": "SELECT ID FROM USERS WHERE ACTIVE"}],
        )
        stub_executor.respond(
            catalog.columns("ACTIVE_USERS"), [{"COLUMN_NAME": "ID", "POSITION": 0}]
        )

        document = await synthesizer.synthesize(CONNECTION_ID, "view", "active_users")

        assert document.text == (
            'CREATE VIEW "ACTIVE_USERS" ("ID") AS\nSELECT ID FROM USERS WHERE ACTIVE;'
        )

    @pytest.mark.asyncio
    async def test_procedure(self, synthesizer, stub_executor, catalog):
        """Test procedures include catalog parameters."""
        stub_executor.respond(
            catalog.lookup_object(ObjectType.PROCEDURE, "TOUCH"),
            [{"PROCEDURE_NAME": "TOUCH", "PROCEDURE_SOURCE": "BEGIN END"}],
        )
        stub_executor.respond(
            catalog.routine_parameters(ObjectType.PROCEDURE, "TOUCH"),
            [{"PARAMETER_NAME": "ID", "DIRECTION": 0, "POSITION": 0, "FIELD_TYPE": 8}],
        )

        document = await synthesizer.synthesize(CONNECTION_ID, "procedure", "touch")

        assert document.text == 'CREATE PROCEDURE "TOUCH" ("ID" INTEGER)\nAS\nBEGIN END'

    @pytest.mark.asyncio
    async def test_index(self, synthesizer, stub_executor, catalog):
        """Test standalone index lookup."""
        stub_executor.respond(
            catalog.lookup_object(ObjectType.INDEX, "IX_USERS_NAME"),
            [{"INDEX_NAME": "IX_USERS_NAME", "RELATION_NAME": "USERS", "IS_UNIQUE": 0}],
        )
        stub_executor.respond(
            catalog.index_segments("USERS", "IX_USERS_NAME"), [{"COLUMN_NAME": "NAME"}]
        )

        document = await synthesizer.synthesize(CONNECTION_ID, "index", "ix_users_name")

        assert document.text == 'CREATE INDEX "IX_USERS_NAME" ON "USERS" ("NAME");'

    @pytest.mark.asyncio
    async def test_user(self, synthesizer, stub_executor, catalog):
        """Test users get a password placeholder."""
        stub_executor.respond(
            catalog.lookup_object(ObjectType.USER, "BOB"), [{"USER_NAME": "BOB"}]
        )

        document = await synthesizer.synthesize(CONNECTION_ID, "user", "bob")

        assert document.text == "CREATE USER \"BOB\" PASSWORD '<password>';"

    @pytest.mark.asyncio
    async def test_catalog_failure(self, synthesizer, stub_executor, catalog):
        """Test catalog failures surface as MetadataError."""
        stub_executor.fail(
            catalog.lookup_object(ObjectType.SEQUENCE, "G_X"), QueryError("no permission")
        )

        with pytest.raises(MetadataError):
            await synthesizer.synthesize(CONNECTION_ID, "sequence", "g_x")
