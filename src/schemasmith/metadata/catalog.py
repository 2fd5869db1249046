"""Catalog rows and object categories.

Introspection queries return rows whose field names differ by engine and
driver (``TABLE_NAME``, ``table_name``, ``RELATION_NAME``). A
:class:`CatalogRow` hides that: lookups ignore case and accept several
synonyms, returning the first one that holds a value.

Example:
    >>> row = CatalogRow({"relation_name": "USERS ", "field_length": "50"})
    >>> row.text("TABLE_NAME", "RELATION_NAME")
    'USERS'
    >>> row.integer("FIELD_LENGTH")
    50
"""

from enum import Enum
from typing import Any, Dict, Iterator, Mapping, Optional

TRUTHY_FLAGS = frozenset({"1", "Y", "YES", "T", "TRUE"})


class ObjectType(str, Enum):
    """Catalog object categories the reader and synthesizer understand."""

    TABLE = "table"
    VIEW = "view"
    PROCEDURE = "procedure"
    FUNCTION = "function"
    TRIGGER = "trigger"
    INDEX = "index"
    SEQUENCE = "sequence"
    PACKAGE = "package"
    USER = "user"

    @classmethod
    def parse(cls, value: Any) -> "ObjectType":
        """Accept an ``ObjectType`` or its name in any case.

        Raises:
            ValueError: If the value names no known category
        """
        if isinstance(value, cls):
            return value
        return cls(str(value).strip().lower())


class CatalogRow(Mapping[str, Any]):
    """Read-only, case-insensitive view of one catalog row.

    Keys are stored uppercased. ``get`` accepts several names and returns
    the first non-null value.
    """

    __slots__ = ("_data",)

    def __init__(self, data: Optional[Mapping[str, Any]] = None, **values: Any) -> None:
        merged: Dict[str, Any] = {}
        for source in (data or {}, values):
            for key, value in source.items():
                merged[str(key).upper()] = value
        self._data = merged

    def __getitem__(self, key: str) -> Any:
        return self._data[str(key).upper()]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, key: object) -> bool:
        return str(key).upper() in self._data

    def __repr__(self) -> str:
        return f"CatalogRow({self._data!r})"

    def get(self, *names: str, default: Any = None) -> Any:  # type: ignore[override]
        for name in names:
            value = self._data.get(str(name).upper())
            if value is not None:
                return value
        return default

    def text(self, *names: str, default: Optional[str] = None) -> Optional[str]:
        """First non-blank value as stripped text.

        Catalogs that store names in fixed-width ``CHAR`` columns return them
        right padded; the padding is removed here.
        """
        value = self.get(*names)
        if value is None:
            return default
        if isinstance(value, bytes):
            value = value.decode("utf-8", errors="replace")
        value = str(value).strip()
        return value if value else default

    def integer(self, *names: str, default: Optional[int] = None) -> Optional[int]:
        value = self.get(*names)
        if value is None:
            return default
        try:
            return int(value)
        except (TypeError, ValueError):
            return default

    def flag(self, *names: str) -> bool:
        """Interpret catalog flags such as ``1``, ``'Y'`` or ``True``."""
        value = self.get(*names)
        if value is None:
            return False
        if isinstance(value, bool):
            return value
        if isinstance(value, (int, float)):
            return value != 0
        return str(value).strip().upper() in TRUTHY_FLAGS

    def with_values(self, **values: Any) -> "CatalogRow":
        """Return a copy with extra or replaced fields."""
        return CatalogRow(self._data, **values)

    def to_dict(self) -> Dict[str, Any]:
        return dict(self._data)
