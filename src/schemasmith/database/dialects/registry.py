"""Dialect registry for SchemaSmith.

Provides lookup of engine dialects by the ``engine`` name stored on each
connection config.
"""

from typing import Dict, List, Optional

from ...core.exceptions import ConfigurationError, ErrorCodes
from ...logging import get_logger
from .base import Dialect


class DialectRegistry:
    """Registry of engine dialects.

    Example:
        >>> registry = DialectRegistry.with_defaults()
        >>> registry.get("firebird").default_port
        3050
    """

    def __init__(self) -> None:
        self.logger = get_logger("database.dialects")
        self._dialects: Dict[str, Dialect] = {}

    @classmethod
    def with_defaults(cls) -> "DialectRegistry":
        """Create a registry holding the Firebird and SQL Server dialects."""
        from .firebird import FirebirdDialect
        from .tsql import TransactSqlDialect

        registry = cls()
        registry.register(FirebirdDialect())
        registry.register(TransactSqlDialect())
        return registry

    def register(self, dialect: Dialect, name: Optional[str] = None) -> None:
        """Register a dialect instance.

        Args:
            dialect: Dialect to register
            name: Engine name (defaults to ``dialect.name``)
        """
        engine = name or dialect.name
        if engine in self._dialects:
            self.logger.warning(
                "Overriding existing dialect registration",
                engine=engine,
                existing_class=type(self._dialects[engine]).__name__,
                new_class=type(dialect).__name__,
            )
        self._dialects[engine] = dialect
        self.logger.debug("Dialect registered", engine=engine, class_name=type(dialect).__name__)

    def get(self, engine: str) -> Dialect:
        """Get the dialect for an engine name.

        Raises:
            ConfigurationError: If no dialect is registered for ``engine``
        """
        try:
            return self._dialects[engine]
        except KeyError:
            raise ConfigurationError(
                f"Unsupported database engine: {engine}",
                code=ErrorCodes.ENGINE_UNSUPPORTED,
                context={"engine": engine, "available_engines": self.engines()},
            ) from None

    def engines(self) -> List[str]:
        return sorted(self._dialects)

    def __contains__(self, engine: str) -> bool:
        return engine in self._dialects
