"""Unit tests for catalog rows and introspection queries."""

import pytest

from schemasmith.metadata.catalog import CatalogRow, ObjectType
from schemasmith.metadata.queries import FirebirdCatalog, TransactSqlCatalog


class TestCatalogRow:
    """Test CatalogRow lookups."""

    def test_case_insensitive_keys(self):
        """Test keys are matched regardless of case."""
        row = CatalogRow({"table_name": "USERS"})

        assert row["TABLE_NAME"] == "USERS"
        assert "Table_Name" in row
        assert list(row) == ["TABLE_NAME"]

    def test_synonyms(self):
        """Test the first non-null synonym wins."""
        row = CatalogRow({"TABLE_NAME": None, "RELATION_NAME": "ORDERS"})

        assert row.get("TABLE_NAME", "RELATION_NAME") == "ORDERS"
        assert row.get("MISSING", default="x") == "x"

    def test_text_strips_padding(self):
        """Test fixed-width CHAR padding is removed."""
        row = CatalogRow({"RDB$RELATION_NAME": "USERS                 ", "BLANK": "   "})

        assert row.text("RDB$RELATION_NAME") == "USERS"
        assert row.text("BLANK") is None
        assert row.text("BLANK", default="n/a") == "n/a"

    def test_text_decodes_bytes(self):
        """Test byte values are decoded."""
        assert CatalogRow({"SOURCE": b"begin end"}).text("SOURCE") == "begin end"

    def test_integer(self):
        """Test numeric coercion."""
        row = CatalogRow({"LENGTH": "50", "BAD": "abc"})

        assert row.integer("LENGTH") == 50
        assert row.integer("BAD", default=0) == 0
        assert row.integer("MISSING") is None

    @pytest.mark.parametrize(
        "value,expected",
        [(1, True), (0, False), ("Y", True), ("n", False), (True, True), (None, False), ("yes", True)],
    )
    def test_flag(self, value, expected):
        """Test catalog flag interpretation."""
        assert CatalogRow({"FLAG": value}).flag("FLAG") is expected

    def test_with_values(self):
        """Test copies with extra fields leave the original alone."""
        row = CatalogRow({"INDEX_NAME": "IX_USERS"})
        extended = row.with_values(COLUMNS=["EMAIL"])

        assert extended["columns"] == ["EMAIL"]
        assert "COLUMNS" not in row


class TestObjectType:
    """Test ObjectType parsing."""

    def test_parse(self):
        """Test names parse in any case."""
        assert ObjectType.parse("Table") is ObjectType.TABLE
        assert ObjectType.parse(ObjectType.VIEW) is ObjectType.VIEW

    def test_parse_unknown(self):
        """Test unknown names raise ValueError."""
        with pytest.raises(ValueError):
            ObjectType.parse("synonym")


class TestFirebirdCatalog:
    """Test Firebird query construction."""

    def test_names_bound_and_uppercased(self):
        """Test object names are bound as uppercased parameters."""
        sql, params = FirebirdCatalog().columns(" users ")

        assert params == ["USERS"]
        assert "?" in sql
        assert "users" not in sql

    def test_schema_filter(self):
        """Test an owner filter adds a bound parameter."""
        sql, params = FirebirdCatalog().lookup_object(ObjectType.TABLE, "users", "sysdba")

        assert params == ["USERS", "SYSDBA"]
        assert "{schema_filter}" not in sql

    def test_every_category_listable(self):
        """Test every object category has a listing query."""
        catalog = FirebirdCatalog()

        for object_type in ObjectType:
            assert catalog.list_objects(object_type) is not None

    def test_index_segments_keyed_by_index(self):
        """Test index names are database wide."""
        _, params = FirebirdCatalog().index_segments("USERS", "ix_users_email")

        assert params == ["IX_USERS_EMAIL"]

    def test_routine_parameters(self):
        """Test procedures and functions have parameter queries."""
        catalog = FirebirdCatalog()

        assert catalog.routine_parameters(ObjectType.PROCEDURE, "p")[1] == ["P"]
        assert catalog.routine_parameters(ObjectType.FUNCTION, "f")[1] == ["F"]
        assert catalog.routine_parameters(ObjectType.TRIGGER, "t") is None

    @pytest.mark.parametrize(
        "object_type,column",
        [
            (ObjectType.VIEW, "R.RDB$VIEW_SOURCE"),
            (ObjectType.PROCEDURE, "R.RDB$PROCEDURE_SOURCE"),
            (ObjectType.FUNCTION, "R.RDB$FUNCTION_SOURCE"),
            (ObjectType.TRIGGER, "T.RDB$TRIGGER_SOURCE"),
            (ObjectType.PACKAGE, "R.RDB$PACKAGE_BODY_SOURCE"),
        ],
    )
    def test_source_blobs_selected_whole(self, object_type, column):
        """Test source text is read from the BLOB column without truncation."""
        sql, _ = FirebirdCatalog().lookup_object(object_type, "x")

        assert f" {column} AS " in sql
        assert "VARCHAR(8000)" not in sql

    def test_column_sources_selected_whole(self):
        """Test default and computed sources are not cast to VARCHAR."""
        sql, _ = FirebirdCatalog().columns("USERS")

        assert "F.RDB$COMPUTED_SOURCE AS COMPUTED_SOURCE" in sql
        assert "AS VARCHAR" not in sql


class TestTransactSqlCatalog:
    """Test SQL Server query construction."""

    def test_no_packages(self):
        """Test packages are not supported."""
        assert TransactSqlCatalog().list_objects(ObjectType.PACKAGE) is None

    def test_constraints_bind_both_halves(self):
        """Test the key and foreign key halves are both filtered."""
        sql, params = TransactSqlCatalog().constraints("orders", "dbo")

        assert params == ["ORDERS", "DBO", "ORDERS", "DBO"]
        assert "UNION ALL" in sql

    def test_no_routine_parameters(self):
        """Test routine source carries its own signature."""
        assert TransactSqlCatalog().routine_parameters(ObjectType.PROCEDURE, "p") is None
