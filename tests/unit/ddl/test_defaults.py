"""Unit tests for default value formatting."""

import pytest

from schemasmith.ddl.defaults import format_default, strip_default_source
from schemasmith.ddl.profiles import FIREBIRD_PROFILE, TRANSACT_SQL_PROFILE
from schemasmith.ddl.types import firebird_type, transact_sql_type

VARCHAR = firebird_type(37)
INTEGER = firebird_type(8)
BOOLEAN = firebird_type(23)
TIMESTAMP = firebird_type(35)
DECIMAL = firebird_type(8, 2)


class TestStripDefaultSource:
    """Test removal of catalog packaging."""

    @pytest.mark.parametrize(
        "source,expected",
        [
            ("DEFAULT 'N/A'", "'N/A'"),
            ("default 0", "0"),
            ("((0))", "0"),
            ("(('N/A'))", "'N/A'"),
            ("(getdate())", "getdate()"),
            ("(1) + (2)", "(1) + (2)"),
            (None, None),
            ("   ", None),
            (b"DEFAULT 5", "5"),
        ],
    )
    def test_strip(self, source, expected):
        """Test the DEFAULT keyword and wrapping parentheses are removed."""
        assert strip_default_source(source) == expected


class TestFormatDefault:
    """Test format_default per type family."""

    @pytest.mark.parametrize(
        "source,sql_type,expected",
        [
            ("DEFAULT 'N/A'", VARCHAR, "'N/A'"),
            ("DEFAULT 'it''s'", VARCHAR, "'it''s'"),
            ("N/A", VARCHAR, "'N/A'"),
            ("DEFAULT 5", VARCHAR, "'5'"),
            ("DEFAULT 0", INTEGER, "0"),
            ("DEFAULT '42'", INTEGER, "42"),
            ("DEFAULT 'abc'", INTEGER, "'abc'"),
            ("DEFAULT 12.50", DECIMAL, "12.50"),
            ("DEFAULT TRUE", BOOLEAN, "1"),
            ("true", BOOLEAN, "1"),
            ("DEFAULT 'N'", BOOLEAN, "0"),
            ("DEFAULT NULL", VARCHAR, "NULL"),
            ("DEFAULT current_timestamp", TIMESTAMP, "CURRENT_TIMESTAMP"),
            ("DEFAULT gen_uuid()", VARCHAR, "gen_uuid()"),
        ],
    )
    def test_firebird(self, source, sql_type, expected):
        """Test Firebird default sources."""
        assert format_default(source, sql_type, FIREBIRD_PROFILE) == expected

    @pytest.mark.parametrize(
        "source,type_name,expected",
        [
            ("((0))", "int", "0"),
            ("(('N/A'))", "nvarchar", "'N/A'"),
            ("(N'café')", "nvarchar", "N'café'"),
            ("(N'it''s')", "nvarchar", "N'it''s'"),
            ("(N'5')", "int", "5"),
            ("((1))", "bit", "1"),
            ("(getdate())", "datetime", "getdate()"),
            ("(CURRENT_TIMESTAMP)", "datetime2", "CURRENT_TIMESTAMP"),
        ],
    )
    def test_transact_sql(self, source, type_name, expected):
        """Test SQL Server parenthesized defaults."""
        assert format_default(source, transact_sql_type(type_name), TRANSACT_SQL_PROFILE) == expected

    def test_python_values(self):
        """Test plain values supplied by callers."""
        assert format_default(True, BOOLEAN, FIREBIRD_PROFILE) == "1"
        assert format_default(False, BOOLEAN, FIREBIRD_PROFILE) == "0"
        assert format_default(0, INTEGER, FIREBIRD_PROFILE) == "0"
        assert format_default(3.5, DECIMAL, FIREBIRD_PROFILE) == "3.5"

    def test_no_default(self):
        """Test missing defaults yield None."""
        assert format_default(None, VARCHAR, FIREBIRD_PROFILE) is None
        assert format_default("", VARCHAR, FIREBIRD_PROFILE) is None
