"""SchemaSmith - Database administration core.

SchemaSmith manages encrypted connection credentials and live connection
pools for Firebird and SQL Server, runs queries, reads catalog metadata and
reconstructs DDL for existing database objects.

Modules:
    core: Base components, exceptions and utilities
    config: Configuration models
    logging: Structured logging framework
    security: Credential vault
    database: Registry, sessions, pools, dialects and query execution
    metadata: Catalog introspection
    ddl: DDL synthesis and schema operations
    api: Envelope-returning service boundary

Example:
    >>> from schemasmith.api import AdminService
    >>> from schemasmith.config import SystemConfig
    >>>
    >>> service = AdminService(SystemConfig.from_file("schemasmith.yaml"))
    >>> await service.initialize()
    >>> envelope = await service.generate_table_ddl("connection_1", "USERS")
    >>> print(envelope.data["ddl"])
"""

__version__ = "0.1.0"
__title__ = "SchemaSmith"
__description__ = "Database administration core with metadata-driven DDL synthesis"
__license__ = "MIT"

__all__ = [
    "__version__",
    "__title__",
    "__description__",
    "__license__",
]
