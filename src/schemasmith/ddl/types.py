"""Catalog type translation.

Each dialect maps its catalog's type identifiers to canonical SQL type
keywords: Firebird stores numeric field type codes refined by a sub type,
SQL Server stores type names. Unknown types fall back to
``VARCHAR(255)`` so one odd column never fails a whole table.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, Optional


class TypeCategory(str, Enum):
    """Broad type families used to format default values."""

    STRING = "string"
    INTEGER = "integer"
    EXACT_NUMERIC = "exact_numeric"
    APPROXIMATE = "approximate"
    BOOLEAN = "boolean"
    DATETIME = "datetime"
    BLOB = "blob"
    OTHER = "other"

    @property
    def is_numeric(self) -> bool:
        return self in (TypeCategory.INTEGER, TypeCategory.EXACT_NUMERIC, TypeCategory.APPROXIMATE)


LENGTH = "length"
PRECISION = "precision"


@dataclass(frozen=True)
class SqlType:
    """A canonical SQL type keyword and how it is sized.

    Attributes:
        name: Type keyword as emitted in DDL
        category: Family used for default formatting
        sizing: ``"length"``, ``"precision"`` or None for unsized types
    """

    name: str
    category: TypeCategory
    sizing: Optional[str] = None

    def render(
        self,
        length: Optional[int] = None,
        precision: Optional[int] = None,
        scale: Optional[int] = None,
    ) -> str:
        """Type keyword with its size suffix.

        Length-sized types append ``(length)``, or ``(MAX)`` for -1.
        Precision-sized types append ``(precision,scale)`` only when both
        are known; otherwise the bare keyword is emitted.
        """
        if self.sizing == LENGTH and length is not None:
            if length < 0:
                return f"{self.name}(MAX)"
            if length > 0:
                return f"{self.name}({length})"
        if self.sizing == PRECISION and precision and scale is not None:
            return f"{self.name}({precision},{abs(scale)})"
        return self.name


FALLBACK_TYPE = SqlType("VARCHAR(255)", TypeCategory.STRING)

_S = TypeCategory

FIREBIRD_TYPES: Dict[int, SqlType] = {
    7: SqlType("SMALLINT", _S.INTEGER),
    8: SqlType("INTEGER", _S.INTEGER),
    9: SqlType("BIGINT", _S.INTEGER),
    10: SqlType("FLOAT", _S.APPROXIMATE),
    11: SqlType("DOUBLE PRECISION", _S.APPROXIMATE),
    12: SqlType("DATE", _S.DATETIME),
    13: SqlType("TIME", _S.DATETIME),
    14: SqlType("CHAR", _S.STRING, LENGTH),
    16: SqlType("BIGINT", _S.INTEGER),
    23: SqlType("BOOLEAN", _S.BOOLEAN),
    24: SqlType("DECFLOAT(16)", _S.EXACT_NUMERIC),
    25: SqlType("DECFLOAT(34)", _S.EXACT_NUMERIC),
    26: SqlType("INT128", _S.INTEGER),
    27: SqlType("DOUBLE PRECISION", _S.APPROXIMATE),
    28: SqlType("TIME WITH TIME ZONE", _S.DATETIME),
    29: SqlType("TIMESTAMP WITH TIME ZONE", _S.DATETIME),
    35: SqlType("TIMESTAMP", _S.DATETIME),
    37: SqlType("VARCHAR", _S.STRING, LENGTH),
    40: SqlType("VARCHAR", _S.STRING, LENGTH),
    45: SqlType("BLOB", _S.BLOB),
    261: SqlType("BLOB", _S.BLOB),
}

# Integer storage codes that carry NUMERIC/DECIMAL columns
_FIREBIRD_SCALED_CODES = frozenset({7, 8, 16, 26})
_FIREBIRD_NUMERIC = SqlType("NUMERIC", _S.EXACT_NUMERIC, PRECISION)
_FIREBIRD_DECIMAL = SqlType("DECIMAL", _S.EXACT_NUMERIC, PRECISION)
_FIREBIRD_TEXT_BLOB = SqlType("BLOB SUB_TYPE TEXT", _S.BLOB)

TRANSACT_SQL_TYPES: Dict[str, SqlType] = {
    "bigint": SqlType("BIGINT", _S.INTEGER),
    "int": SqlType("INT", _S.INTEGER),
    "smallint": SqlType("SMALLINT", _S.INTEGER),
    "tinyint": SqlType("TINYINT", _S.INTEGER),
    "bit": SqlType("BIT", _S.BOOLEAN),
    "decimal": SqlType("DECIMAL", _S.EXACT_NUMERIC, PRECISION),
    "numeric": SqlType("NUMERIC", _S.EXACT_NUMERIC, PRECISION),
    "money": SqlType("MONEY", _S.EXACT_NUMERIC),
    "smallmoney": SqlType("SMALLMONEY", _S.EXACT_NUMERIC),
    "float": SqlType("FLOAT", _S.APPROXIMATE),
    "real": SqlType("REAL", _S.APPROXIMATE),
    "date": SqlType("DATE", _S.DATETIME),
    "time": SqlType("TIME", _S.DATETIME),
    "datetime": SqlType("DATETIME", _S.DATETIME),
    "datetime2": SqlType("DATETIME2", _S.DATETIME),
    "smalldatetime": SqlType("SMALLDATETIME", _S.DATETIME),
    "datetimeoffset": SqlType("DATETIMEOFFSET", _S.DATETIME),
    "char": SqlType("CHAR", _S.STRING, LENGTH),
    "varchar": SqlType("VARCHAR", _S.STRING, LENGTH),
    "nchar": SqlType("NCHAR", _S.STRING, LENGTH),
    "nvarchar": SqlType("NVARCHAR", _S.STRING, LENGTH),
    "text": SqlType("TEXT", _S.BLOB),
    "ntext": SqlType("NTEXT", _S.BLOB),
    "binary": SqlType("BINARY", _S.BLOB, LENGTH),
    "varbinary": SqlType("VARBINARY", _S.BLOB, LENGTH),
    "image": SqlType("IMAGE", _S.BLOB),
    "uniqueidentifier": SqlType("UNIQUEIDENTIFIER", _S.OTHER),
    "xml": SqlType("XML", _S.OTHER),
    "sql_variant": SqlType("SQL_VARIANT", _S.OTHER),
    "rowversion": SqlType("ROWVERSION", _S.OTHER),
    "timestamp": SqlType("ROWVERSION", _S.OTHER),
    "hierarchyid": SqlType("HIERARCHYID", _S.OTHER),
    "geometry": SqlType("GEOMETRY", _S.OTHER),
    "geography": SqlType("GEOGRAPHY", _S.OTHER),
}


def _as_int(value: Any) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def firebird_type(code: Any, sub_type: Any = None, scale: Any = None) -> SqlType:
    """Resolve a Firebird ``RDB$FIELD_TYPE`` code.

    Args:
        code: ``RDB$FIELD_TYPE``
        sub_type: ``RDB$FIELD_SUB_TYPE`` (1 numeric, 2 decimal; 1 text blob)
        scale: ``RDB$FIELD_SCALE`` (negative for scaled integers)

    Returns:
        The canonical type, or ``FALLBACK_TYPE`` for unknown codes
    """
    code = _as_int(code)
    sub_type = _as_int(sub_type) or 0
    scale = _as_int(scale) or 0

    if code in _FIREBIRD_SCALED_CODES:
        if sub_type == 2:
            return _FIREBIRD_DECIMAL
        if sub_type == 1 or scale < 0:
            return _FIREBIRD_NUMERIC
    if code == 261 and sub_type == 1:
        return _FIREBIRD_TEXT_BLOB
    return FIREBIRD_TYPES.get(code, FALLBACK_TYPE) if code is not None else FALLBACK_TYPE


def transact_sql_type(name: Any) -> SqlType:
    """Resolve a SQL Server type name such as ``nvarchar``."""
    if not name:
        return FALLBACK_TYPE
    return TRANSACT_SQL_TYPES.get(str(name).strip().lower(), FALLBACK_TYPE)


def parse_type_name(text: str, types: Iterable[SqlType]) -> Optional[SqlType]:
    """Find the type named by ``text``, ignoring any size suffix.

    Used to classify user supplied type names such as ``VARCHAR(50)``.
    """
    base = " ".join(text.split("(", 1)[0].upper().split())
    for sql_type in types:
        if sql_type.name.split("(", 1)[0].upper() == base:
            return sql_type
    return None
