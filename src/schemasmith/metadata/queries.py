"""Introspection SQL for each catalog dialect.

Every method returns ``(sql, params)`` with ``?`` placeholders, or
``None`` when the engine has no such object category. Object and schema
names are bound as parameters, never interpolated, and are uppercased
before lookup.

Row field names are shared between dialects where the synthesizer needs
them (``COLUMN_NAME``, ``FIELD_TYPE``, ``CONSTRAINT_TYPE`` and so on).

Classes:
    CatalogQueries: Abstract query catalog
    FirebirdCatalog: Queries over the ``RDB$*`` / ``SEC$*`` system tables
    TransactSqlCatalog: Queries over the ``sys.*`` catalog views
"""

from abc import ABC, abstractmethod
from typing import Any, ClassVar, Dict, List, Optional, Tuple

from .catalog import ObjectType

Query = Tuple[str, List[Any]]

# (sql template, schema owner expression or None)
QueryTemplate = Tuple[str, Optional[str]]


class CatalogQueries(ABC):
    """Per-dialect catalog of read-only introspection queries."""

    dialect: ClassVar[str] = "unknown"
    list_templates: ClassVar[Dict[ObjectType, QueryTemplate]] = {}
    lookup_templates: ClassVar[Dict[ObjectType, QueryTemplate]] = {}

    @staticmethod
    def normalize_name(name: str) -> str:
        return name.strip().upper()

    def _render(
        self, template: QueryTemplate, params: List[Any], schema: Optional[str]
    ) -> Query:
        sql, owner = template
        clause = ""
        if schema and owner:
            clause = f" AND {owner} = ?"
            params = params + [self.normalize_name(schema)]
        return sql.format(schema_filter=clause), params

    def list_objects(self, object_type: ObjectType, schema: Optional[str] = None) -> Optional[Query]:
        template = self.list_templates.get(object_type)
        if template is None:
            return None
        return self._render(template, [], schema)

    def lookup_object(
        self, object_type: ObjectType, name: str, schema: Optional[str] = None
    ) -> Optional[Query]:
        template = self.lookup_templates.get(object_type)
        if template is None:
            return None
        return self._render(template, [self.normalize_name(name)], schema)

    @abstractmethod
    def schemas(self) -> Query:
        """Schemas (or owners) that hold user objects."""

    @abstractmethod
    def columns(self, table: str, schema: Optional[str] = None) -> Query:
        """Table columns in ordinal position order."""

    @abstractmethod
    def table_indexes(self, table: str, schema: Optional[str] = None) -> Query:
        """Indexes on one table, with the constraint each one backs."""

    @abstractmethod
    def constraints(self, table: str, schema: Optional[str] = None) -> Query:
        """Primary key, unique and foreign key constraints on one table."""

    @abstractmethod
    def index_segments(self, table: str, index: str, schema: Optional[str] = None) -> Query:
        """Key columns of one index in key order."""

    @abstractmethod
    def foreign_key_columns(
        self, table: str, constraint: str, schema: Optional[str] = None
    ) -> Query:
        """Column pairs of one foreign key in key order."""

    def routine_parameters(
        self, object_type: ObjectType, name: str, schema: Optional[str] = None
    ) -> Optional[Query]:
        """Declared parameters of a procedure or function.

        Returns ``None`` where stored routine source already carries its
        own signature.
        """
        return None

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(dialect={self.dialect!r})"


_FB_OWNER = "TRIM(R.RDB$OWNER_NAME)"

_FB_NOT_SYSTEM = "(R.RDB$SYSTEM_FLAG IS NULL OR R.RDB$SYSTEM_FLAG = 0)"


class FirebirdCatalog(CatalogQueries):
    """Queries for Firebird's ``RDB$`` system tables.

    Firebird has no schemas; the owner name stands in for one when listing
    and filtering.
    """

    dialect = "firebird"

    list_templates = {
        ObjectType.TABLE: (
            "SELECT TRIM(R.RDB$RELATION_NAME) AS TABLE_NAME,"
            " TRIM(COALESCE(R.RDB$OWNER_NAME, 'SYSDBA')) AS SCHEMA_NAME,"
            " R.RDB$DESCRIPTION AS DESCRIPTION"
            " FROM RDB$RELATIONS R"
            f" WHERE R.RDB$VIEW_BLR IS NULL AND {_FB_NOT_SYSTEM}{{schema_filter}}"
            " ORDER BY R.RDB$RELATION_NAME",
            _FB_OWNER,
        ),
        ObjectType.VIEW: (
            "SELECT TRIM(R.RDB$RELATION_NAME) AS VIEW_NAME,"
            " TRIM(COALESCE(R.RDB$OWNER_NAME, 'SYSDBA')) AS SCHEMA_NAME,"
            " R.RDB$DESCRIPTION AS DESCRIPTION"
            " FROM RDB$RELATIONS R"
            f" WHERE R.RDB$VIEW_BLR IS NOT NULL AND {_FB_NOT_SYSTEM}{{schema_filter}}"
            " ORDER BY R.RDB$RELATION_NAME",
            _FB_OWNER,
        ),
        ObjectType.PROCEDURE: (
            "SELECT TRIM(R.RDB$PROCEDURE_NAME) AS PROCEDURE_NAME,"
            " TRIM(COALESCE(R.RDB$OWNER_NAME, 'SYSDBA')) AS SCHEMA_NAME,"
            " R.RDB$DESCRIPTION AS DESCRIPTION"
            " FROM RDB$PROCEDURES R"
            f" WHERE {_FB_NOT_SYSTEM} AND R.RDB$PACKAGE_NAME IS NULL{{schema_filter}}"
            " ORDER BY R.RDB$PROCEDURE_NAME",
            _FB_OWNER,
        ),
        ObjectType.FUNCTION: (
            "SELECT TRIM(R.RDB$FUNCTION_NAME) AS FUNCTION_NAME,"
            " TRIM(COALESCE(R.RDB$OWNER_NAME, 'SYSDBA')) AS SCHEMA_NAME,"
            " R.RDB$DESCRIPTION AS DESCRIPTION"
            " FROM RDB$FUNCTIONS R"
            f" WHERE {_FB_NOT_SYSTEM} AND R.RDB$PACKAGE_NAME IS NULL{{schema_filter}}"
            " ORDER BY R.RDB$FUNCTION_NAME",
            _FB_OWNER,
        ),
        ObjectType.TRIGGER: (
            "SELECT TRIM(T.RDB$TRIGGER_NAME) AS TRIGGER_NAME,"
            " TRIM(T.RDB$RELATION_NAME) AS RELATION_NAME,"
            " TRIM(COALESCE(R.RDB$OWNER_NAME, 'SYSDBA')) AS SCHEMA_NAME,"
            " T.RDB$TRIGGER_TYPE AS TRIGGER_TYPE,"
            " T.RDB$TRIGGER_SEQUENCE AS TRIGGER_SEQUENCE,"
            " T.RDB$TRIGGER_INACTIVE AS TRIGGER_INACTIVE,"
            " T.RDB$DESCRIPTION AS DESCRIPTION"
            " FROM RDB$TRIGGERS T"
            " LEFT JOIN RDB$RELATIONS R ON R.RDB$RELATION_NAME = T.RDB$RELATION_NAME"
            " WHERE (T.RDB$SYSTEM_FLAG IS NULL OR T.RDB$SYSTEM_FLAG = 0)"
            " AND T.RDB$TRIGGER_NAME NOT LIKE 'RDB$%'{schema_filter}"
            " ORDER BY T.RDB$TRIGGER_NAME",
            _FB_OWNER,
        ),
        ObjectType.INDEX: (
            "SELECT TRIM(I.RDB$INDEX_NAME) AS INDEX_NAME,"
            " TRIM(I.RDB$RELATION_NAME) AS RELATION_NAME,"
            " TRIM(COALESCE(R.RDB$OWNER_NAME, 'SYSDBA')) AS SCHEMA_NAME,"
            " I.RDB$UNIQUE_FLAG AS IS_UNIQUE"
            " FROM RDB$INDICES I"
            " LEFT JOIN RDB$RELATIONS R ON R.RDB$RELATION_NAME = I.RDB$RELATION_NAME"
            " WHERE (I.RDB$SYSTEM_FLAG IS NULL OR I.RDB$SYSTEM_FLAG = 0)"
            " AND I.RDB$INDEX_NAME NOT LIKE 'RDB$%'{schema_filter}"
            " ORDER BY I.RDB$INDEX_NAME",
            _FB_OWNER,
        ),
        ObjectType.SEQUENCE: (
            "SELECT TRIM(G.RDB$GENERATOR_NAME) AS SEQUENCE_NAME,"
            " G.RDB$DESCRIPTION AS DESCRIPTION"
            " FROM RDB$GENERATORS G"
            " WHERE (G.RDB$SYSTEM_FLAG IS NULL OR G.RDB$SYSTEM_FLAG = 0)"
            " AND G.RDB$GENERATOR_NAME NOT LIKE 'RDB$%'{schema_filter}"
            " ORDER BY G.RDB$GENERATOR_NAME",
            None,
        ),
        ObjectType.PACKAGE: (
            "SELECT TRIM(R.RDB$PACKAGE_NAME) AS PACKAGE_NAME,"
            " TRIM(COALESCE(R.RDB$OWNER_NAME, 'SYSDBA')) AS SCHEMA_NAME,"
            " R.RDB$DESCRIPTION AS DESCRIPTION"
            " FROM RDB$PACKAGES R"
            f" WHERE {_FB_NOT_SYSTEM}{{schema_filter}}"
            " ORDER BY R.RDB$PACKAGE_NAME",
            _FB_OWNER,
        ),
        ObjectType.USER: (
            "SELECT TRIM(SEC$USER_NAME) AS USER_NAME,"
            " SEC$ACTIVE AS ACTIVE,"
            " TRIM(SEC$PLUGIN) AS PLUGIN,"
            " TRIM(SEC$FIRST_NAME) AS FIRST_NAME,"
            " TRIM(SEC$LAST_NAME) AS LAST_NAME"
            " FROM SEC$USERS{schema_filter}"
            " ORDER BY SEC$USER_NAME",
            None,
        ),
    }

    lookup_templates = {
        ObjectType.TABLE: (
            "SELECT TRIM(R.RDB$RELATION_NAME) AS TABLE_NAME,"
            " TRIM(COALESCE(R.RDB$OWNER_NAME, 'SYSDBA')) AS SCHEMA_NAME,"
            " R.RDB$DESCRIPTION AS DESCRIPTION"
            " FROM RDB$RELATIONS R"
            " WHERE R.RDB$RELATION_NAME = ? AND R.RDB$VIEW_BLR IS NULL{schema_filter}",
            _FB_OWNER,
        ),
        ObjectType.VIEW: (
            "SELECT TRIM(R.RDB$RELATION_NAME) AS VIEW_NAME,"
            " TRIM(COALESCE(R.RDB$OWNER_NAME, 'SYSDBA')) AS SCHEMA_NAME,"
            " R.RDB$VIEW_SOURCE AS VIEW_SOURCE,"
            " R.RDB$DESCRIPTION AS DESCRIPTION"
            " FROM RDB$RELATIONS R"
            " WHERE R.RDB$RELATION_NAME = ? AND R.RDB$VIEW_BLR IS NOT NULL{schema_filter}",
            _FB_OWNER,
        ),
        ObjectType.PROCEDURE: (
            "SELECT TRIM(R.RDB$PROCEDURE_NAME) AS PROCEDURE_NAME,"
            " TRIM(COALESCE(R.RDB$OWNER_NAME, 'SYSDBA')) AS SCHEMA_NAME,"
            " R.RDB$PROCEDURE_SOURCE AS PROCEDURE_SOURCE,"
            " R.RDB$PROCEDURE_TYPE AS PROCEDURE_TYPE,"
            " R.RDB$DESCRIPTION AS DESCRIPTION"
            " FROM RDB$PROCEDURES R"
            " WHERE R.RDB$PROCEDURE_NAME = ? AND R.RDB$PACKAGE_NAME IS NULL{schema_filter}",
            _FB_OWNER,
        ),
        ObjectType.FUNCTION: (
            "SELECT TRIM(R.RDB$FUNCTION_NAME) AS FUNCTION_NAME,"
            " TRIM(COALESCE(R.RDB$OWNER_NAME, 'SYSDBA')) AS SCHEMA_NAME,"
            " R.RDB$FUNCTION_SOURCE AS FUNCTION_SOURCE,"
            " R.RDB$RETURN_ARGUMENT AS RETURN_ARGUMENT,"
            " TRIM(R.RDB$MODULE_NAME) AS MODULE_NAME,"
            " TRIM(R.RDB$ENTRYPOINT) AS ENTRYPOINT,"
            " R.RDB$DESCRIPTION AS DESCRIPTION"
            " FROM RDB$FUNCTIONS R"
            " WHERE R.RDB$FUNCTION_NAME = ? AND R.RDB$PACKAGE_NAME IS NULL{schema_filter}",
            _FB_OWNER,
        ),
        ObjectType.TRIGGER: (
            "SELECT TRIM(T.RDB$TRIGGER_NAME) AS TRIGGER_NAME,"
            " TRIM(T.RDB$RELATION_NAME) AS RELATION_NAME,"
            " TRIM(COALESCE(R.RDB$OWNER_NAME, 'SYSDBA')) AS SCHEMA_NAME,"
            " T.RDB$TRIGGER_TYPE AS TRIGGER_TYPE,"
            " T.RDB$TRIGGER_SEQUENCE AS TRIGGER_SEQUENCE,"
            " T.RDB$TRIGGER_INACTIVE AS TRIGGER_INACTIVE,"
            " T.RDB$TRIGGER_SOURCE AS TRIGGER_SOURCE,"
            " T.RDB$DESCRIPTION AS DESCRIPTION"
            " FROM RDB$TRIGGERS T"
            " LEFT JOIN RDB$RELATIONS R ON R.RDB$RELATION_NAME = T.RDB$RELATION_NAME"
            " WHERE T.RDB$TRIGGER_NAME = ?{schema_filter}",
            _FB_OWNER,
        ),
        ObjectType.INDEX: (
            "SELECT TRIM(I.RDB$INDEX_NAME) AS INDEX_NAME,"
            " TRIM(I.RDB$RELATION_NAME) AS RELATION_NAME,"
            " TRIM(COALESCE(R.RDB$OWNER_NAME, 'SYSDBA')) AS SCHEMA_NAME,"
            " I.RDB$UNIQUE_FLAG AS IS_UNIQUE,"
            " I.RDB$INDEX_TYPE AS IS_DESCENDING,"
            " I.RDB$INDEX_INACTIVE AS IS_INACTIVE"
            " FROM RDB$INDICES I"
            " LEFT JOIN RDB$RELATIONS R ON R.RDB$RELATION_NAME = I.RDB$RELATION_NAME"
            " WHERE I.RDB$INDEX_NAME = ?{schema_filter}",
            _FB_OWNER,
        ),
        ObjectType.SEQUENCE: (
            "SELECT TRIM(G.RDB$GENERATOR_NAME) AS SEQUENCE_NAME,"
            " G.RDB$INITIAL_VALUE AS START_VALUE,"
            " G.RDB$GENERATOR_INCREMENT AS INCREMENT,"
            " G.RDB$DESCRIPTION AS DESCRIPTION"
            " FROM RDB$GENERATORS G"
            " WHERE G.RDB$GENERATOR_NAME = ?"
            " AND (G.RDB$SYSTEM_FLAG IS NULL OR G.RDB$SYSTEM_FLAG = 0){schema_filter}",
            None,
        ),
        ObjectType.PACKAGE: (
            "SELECT TRIM(R.RDB$PACKAGE_NAME) AS PACKAGE_NAME,"
            " TRIM(COALESCE(R.RDB$OWNER_NAME, 'SYSDBA')) AS SCHEMA_NAME,"
            " R.RDB$PACKAGE_HEADER_SOURCE AS HEADER_SOURCE,"
            " R.RDB$PACKAGE_BODY_SOURCE AS BODY_SOURCE,"
            " R.RDB$DESCRIPTION AS DESCRIPTION"
            " FROM RDB$PACKAGES R"
            f" WHERE R.RDB$PACKAGE_NAME = ? AND {_FB_NOT_SYSTEM}{{schema_filter}}",
            _FB_OWNER,
        ),
        ObjectType.USER: (
            "SELECT TRIM(SEC$USER_NAME) AS USER_NAME,"
            " SEC$ACTIVE AS ACTIVE,"
            " TRIM(SEC$PLUGIN) AS PLUGIN,"
            " TRIM(SEC$FIRST_NAME) AS FIRST_NAME,"
            " TRIM(SEC$LAST_NAME) AS LAST_NAME"
            " FROM SEC$USERS"
            " WHERE SEC$USER_NAME = ?{schema_filter}",
            None,
        ),
    }

    def schemas(self) -> Query:
        return (
            "SELECT DISTINCT TRIM(COALESCE(R.RDB$OWNER_NAME, 'SYSDBA')) AS SCHEMA_NAME"
            " FROM RDB$RELATIONS R"
            f" WHERE {_FB_NOT_SYSTEM}"
            " ORDER BY 1",
            [],
        )

    def columns(self, table: str, schema: Optional[str] = None) -> Query:
        return self._render(
            (
                "SELECT TRIM(RF.RDB$FIELD_NAME) AS COLUMN_NAME,"
                " RF.RDB$FIELD_POSITION AS POSITION,"
                " F.RDB$FIELD_TYPE AS FIELD_TYPE,"
                " F.RDB$FIELD_SUB_TYPE AS FIELD_SUB_TYPE,"
                " COALESCE(F.RDB$CHARACTER_LENGTH, F.RDB$FIELD_LENGTH) AS FIELD_LENGTH,"
                " F.RDB$FIELD_PRECISION AS FIELD_PRECISION,"
                " F.RDB$FIELD_SCALE AS FIELD_SCALE,"
                " CASE WHEN COALESCE(RF.RDB$NULL_FLAG, F.RDB$NULL_FLAG, 0) = 1"
                " THEN 0 ELSE 1 END AS IS_NULLABLE,"
                " COALESCE(RF.RDB$DEFAULT_SOURCE, F.RDB$DEFAULT_SOURCE) AS DEFAULT_SOURCE,"
                " F.RDB$COMPUTED_SOURCE AS COMPUTED_SOURCE,"
                " RF.RDB$IDENTITY_TYPE AS IDENTITY_TYPE"
                " FROM RDB$RELATION_FIELDS RF"
                " JOIN RDB$RELATIONS R ON R.RDB$RELATION_NAME = RF.RDB$RELATION_NAME"
                " JOIN RDB$FIELDS F ON F.RDB$FIELD_NAME = RF.RDB$FIELD_SOURCE"
                " WHERE RF.RDB$RELATION_NAME = ?{schema_filter}"
                " ORDER BY RF.RDB$FIELD_POSITION",
                _FB_OWNER,
            ),
            [self.normalize_name(table)],
            schema,
        )

    def table_indexes(self, table: str, schema: Optional[str] = None) -> Query:
        return self._render(
            (
                "SELECT TRIM(I.RDB$INDEX_NAME) AS INDEX_NAME,"
                " TRIM(I.RDB$RELATION_NAME) AS RELATION_NAME,"
                " I.RDB$UNIQUE_FLAG AS IS_UNIQUE,"
                " I.RDB$INDEX_TYPE AS IS_DESCENDING,"
                " TRIM(RC.RDB$CONSTRAINT_NAME) AS CONSTRAINT_NAME"
                " FROM RDB$INDICES I"
                " LEFT JOIN RDB$RELATIONS R ON R.RDB$RELATION_NAME = I.RDB$RELATION_NAME"
                " LEFT JOIN RDB$RELATION_CONSTRAINTS RC ON RC.RDB$INDEX_NAME = I.RDB$INDEX_NAME"
                " WHERE I.RDB$RELATION_NAME = ?"
                " AND (I.RDB$SYSTEM_FLAG IS NULL OR I.RDB$SYSTEM_FLAG = 0){schema_filter}"
                " ORDER BY I.RDB$INDEX_NAME",
                _FB_OWNER,
            ),
            [self.normalize_name(table)],
            schema,
        )

    def constraints(self, table: str, schema: Optional[str] = None) -> Query:
        return self._render(
            (
                "SELECT TRIM(RC.RDB$CONSTRAINT_NAME) AS CONSTRAINT_NAME,"
                " TRIM(RC.RDB$CONSTRAINT_TYPE) AS CONSTRAINT_TYPE,"
                " TRIM(RC.RDB$INDEX_NAME) AS INDEX_NAME,"
                " TRIM(UC.RDB$RELATION_NAME) AS REFERENCED_TABLE,"
                " TRIM(REFC.RDB$UPDATE_RULE) AS UPDATE_RULE,"
                " TRIM(REFC.RDB$DELETE_RULE) AS DELETE_RULE"
                " FROM RDB$RELATION_CONSTRAINTS RC"
                " LEFT JOIN RDB$RELATIONS R ON R.RDB$RELATION_NAME = RC.RDB$RELATION_NAME"
                " LEFT JOIN RDB$REF_CONSTRAINTS REFC"
                " ON REFC.RDB$CONSTRAINT_NAME = RC.RDB$CONSTRAINT_NAME"
                " LEFT JOIN RDB$RELATION_CONSTRAINTS UC"
                " ON UC.RDB$CONSTRAINT_NAME = REFC.RDB$CONST_NAME_UQ"
                " WHERE RC.RDB$RELATION_NAME = ?"
                " AND RC.RDB$CONSTRAINT_TYPE IN ('PRIMARY KEY', 'UNIQUE', 'FOREIGN KEY')"
                "{schema_filter}"
                " ORDER BY RC.RDB$CONSTRAINT_NAME",
                _FB_OWNER,
            ),
            [self.normalize_name(table)],
            schema,
        )

    def index_segments(self, table: str, index: str, schema: Optional[str] = None) -> Query:
        # Index names are database-wide in Firebird
        return (
            "SELECT TRIM(S.RDB$FIELD_NAME) AS COLUMN_NAME,"
            " S.RDB$FIELD_POSITION AS POSITION"
            " FROM RDB$INDEX_SEGMENTS S"
            " WHERE S.RDB$INDEX_NAME = ?"
            " ORDER BY S.RDB$FIELD_POSITION",
            [self.normalize_name(index)],
        )

    def foreign_key_columns(
        self, table: str, constraint: str, schema: Optional[str] = None
    ) -> Query:
        return (
            "SELECT TRIM(S.RDB$FIELD_NAME) AS COLUMN_NAME,"
            " TRIM(RS.RDB$FIELD_NAME) AS REFERENCED_COLUMN,"
            " S.RDB$FIELD_POSITION AS POSITION"
            " FROM RDB$RELATION_CONSTRAINTS RC"
            " JOIN RDB$INDEX_SEGMENTS S ON S.RDB$INDEX_NAME = RC.RDB$INDEX_NAME"
            " JOIN RDB$REF_CONSTRAINTS REFC ON REFC.RDB$CONSTRAINT_NAME = RC.RDB$CONSTRAINT_NAME"
            " JOIN RDB$RELATION_CONSTRAINTS UC ON UC.RDB$CONSTRAINT_NAME = REFC.RDB$CONST_NAME_UQ"
            " JOIN RDB$INDEX_SEGMENTS RS ON RS.RDB$INDEX_NAME = UC.RDB$INDEX_NAME"
            " AND RS.RDB$FIELD_POSITION = S.RDB$FIELD_POSITION"
            " WHERE RC.RDB$CONSTRAINT_NAME = ?"
            " ORDER BY S.RDB$FIELD_POSITION",
            [self.normalize_name(constraint)],
        )

    def routine_parameters(
        self, object_type: ObjectType, name: str, schema: Optional[str] = None
    ) -> Optional[Query]:
        if object_type is ObjectType.PROCEDURE:
            return (
                "SELECT TRIM(PP.RDB$PARAMETER_NAME) AS PARAMETER_NAME,"
                " PP.RDB$PARAMETER_TYPE AS DIRECTION,"
                " PP.RDB$PARAMETER_NUMBER AS POSITION,"
                " F.RDB$FIELD_TYPE AS FIELD_TYPE,"
                " F.RDB$FIELD_SUB_TYPE AS FIELD_SUB_TYPE,"
                " COALESCE(F.RDB$CHARACTER_LENGTH, F.RDB$FIELD_LENGTH) AS FIELD_LENGTH,"
                " F.RDB$FIELD_PRECISION AS FIELD_PRECISION,"
                " F.RDB$FIELD_SCALE AS FIELD_SCALE"
                " FROM RDB$PROCEDURE_PARAMETERS PP"
                " LEFT JOIN RDB$FIELDS F ON F.RDB$FIELD_NAME = PP.RDB$FIELD_SOURCE"
                " WHERE PP.RDB$PROCEDURE_NAME = ? AND PP.RDB$PACKAGE_NAME IS NULL"
                " ORDER BY PP.RDB$PARAMETER_TYPE, PP.RDB$PARAMETER_NUMBER",
                [self.normalize_name(name)],
            )
        if object_type is ObjectType.FUNCTION:
            return (
                "SELECT TRIM(FA.RDB$ARGUMENT_NAME) AS PARAMETER_NAME,"
                " CASE WHEN FA.RDB$ARGUMENT_POSITION = FN.RDB$RETURN_ARGUMENT"
                " THEN 1 ELSE 0 END AS DIRECTION,"
                " FA.RDB$ARGUMENT_POSITION AS POSITION,"
                " COALESCE(FA.RDB$FIELD_TYPE, F.RDB$FIELD_TYPE) AS FIELD_TYPE,"
                " COALESCE(FA.RDB$FIELD_SUB_TYPE, F.RDB$FIELD_SUB_TYPE) AS FIELD_SUB_TYPE,"
                " COALESCE(FA.RDB$CHARACTER_LENGTH, F.RDB$CHARACTER_LENGTH,"
                " FA.RDB$FIELD_LENGTH, F.RDB$FIELD_LENGTH) AS FIELD_LENGTH,"
                " COALESCE(FA.RDB$FIELD_PRECISION, F.RDB$FIELD_PRECISION) AS FIELD_PRECISION,"
                " COALESCE(FA.RDB$FIELD_SCALE, F.RDB$FIELD_SCALE) AS FIELD_SCALE"
                " FROM RDB$FUNCTION_ARGUMENTS FA"
                " JOIN RDB$FUNCTIONS FN ON FN.RDB$FUNCTION_NAME = FA.RDB$FUNCTION_NAME"
                " AND FN.RDB$PACKAGE_NAME IS NOT DISTINCT FROM FA.RDB$PACKAGE_NAME"
                " LEFT JOIN RDB$FIELDS F ON F.RDB$FIELD_NAME = FA.RDB$FIELD_SOURCE"
                " WHERE FA.RDB$FUNCTION_NAME = ? AND FA.RDB$PACKAGE_NAME IS NULL"
                " ORDER BY FA.RDB$ARGUMENT_POSITION",
                [self.normalize_name(name)],
            )
        return None


_TS_OBJECT_SCHEMA = "UPPER(SCHEMA_NAME(o.schema_id))"


class TransactSqlCatalog(CatalogQueries):
    """Queries for the SQL Server ``sys.*`` catalog views.

    Names are compared uppercased so lookups behave the same under case
    sensitive collations. Packages do not exist in this dialect.
    """

    dialect = "mssql"

    list_templates = {
        ObjectType.TABLE: (
            "SELECT o.name AS TABLE_NAME, SCHEMA_NAME(o.schema_id) AS SCHEMA_NAME"
            " FROM sys.tables o WHERE o.is_ms_shipped = 0{schema_filter}"
            " ORDER BY SCHEMA_NAME(o.schema_id), o.name",
            _TS_OBJECT_SCHEMA,
        ),
        ObjectType.VIEW: (
            "SELECT o.name AS VIEW_NAME, SCHEMA_NAME(o.schema_id) AS SCHEMA_NAME"
            " FROM sys.views o WHERE o.is_ms_shipped = 0{schema_filter}"
            " ORDER BY SCHEMA_NAME(o.schema_id), o.name",
            _TS_OBJECT_SCHEMA,
        ),
        ObjectType.PROCEDURE: (
            "SELECT o.name AS PROCEDURE_NAME, SCHEMA_NAME(o.schema_id) AS SCHEMA_NAME"
            " FROM sys.procedures o WHERE o.is_ms_shipped = 0{schema_filter}"
            " ORDER BY SCHEMA_NAME(o.schema_id), o.name",
            _TS_OBJECT_SCHEMA,
        ),
        ObjectType.FUNCTION: (
            "SELECT o.name AS FUNCTION_NAME, SCHEMA_NAME(o.schema_id) AS SCHEMA_NAME,"
            " o.type_desc AS FUNCTION_TYPE"
            " FROM sys.objects o"
            " WHERE o.type IN ('FN', 'IF', 'TF') AND o.is_ms_shipped = 0{schema_filter}"
            " ORDER BY SCHEMA_NAME(o.schema_id), o.name",
            _TS_OBJECT_SCHEMA,
        ),
        ObjectType.TRIGGER: (
            "SELECT tr.name AS TRIGGER_NAME, OBJECT_NAME(tr.parent_id) AS RELATION_NAME,"
            " SCHEMA_NAME(o.schema_id) AS SCHEMA_NAME, tr.is_disabled AS TRIGGER_INACTIVE"
            " FROM sys.triggers tr"
            " LEFT JOIN sys.objects o ON o.object_id = tr.parent_id"
            " WHERE tr.is_ms_shipped = 0{schema_filter}"
            " ORDER BY tr.name",
            _TS_OBJECT_SCHEMA,
        ),
        ObjectType.INDEX: (
            "SELECT i.name AS INDEX_NAME, o.name AS RELATION_NAME,"
            " SCHEMA_NAME(o.schema_id) AS SCHEMA_NAME, i.is_unique AS IS_UNIQUE,"
            " i.type_desc AS INDEX_TYPE"
            " FROM sys.indexes i"
            " JOIN sys.tables o ON o.object_id = i.object_id"
            " WHERE i.name IS NOT NULL AND o.is_ms_shipped = 0{schema_filter}"
            " ORDER BY i.name",
            _TS_OBJECT_SCHEMA,
        ),
        ObjectType.SEQUENCE: (
            "SELECT o.name AS SEQUENCE_NAME, SCHEMA_NAME(o.schema_id) AS SCHEMA_NAME"
            " FROM sys.sequences o WHERE o.is_ms_shipped = 0{schema_filter}"
            " ORDER BY o.name",
            _TS_OBJECT_SCHEMA,
        ),
        ObjectType.USER: (
            "SELECT p.name AS USER_NAME, SUSER_SNAME(p.sid) AS LOGIN_NAME,"
            " p.default_schema_name AS DEFAULT_SCHEMA, p.type_desc AS USER_TYPE"
            " FROM sys.database_principals p"
            " WHERE p.type IN ('S', 'U', 'G', 'E', 'X') AND p.principal_id > 4{schema_filter}"
            " ORDER BY p.name",
            None,
        ),
    }

    lookup_templates = {
        ObjectType.TABLE: (
            "SELECT o.name AS TABLE_NAME, SCHEMA_NAME(o.schema_id) AS SCHEMA_NAME"
            " FROM sys.tables o WHERE UPPER(o.name) = ?{schema_filter}",
            _TS_OBJECT_SCHEMA,
        ),
        ObjectType.VIEW: (
            "SELECT o.name AS VIEW_NAME, SCHEMA_NAME(o.schema_id) AS SCHEMA_NAME,"
            " OBJECT_DEFINITION(o.object_id) AS VIEW_SOURCE"
            " FROM sys.views o WHERE UPPER(o.name) = ?{schema_filter}",
            _TS_OBJECT_SCHEMA,
        ),
        ObjectType.PROCEDURE: (
            "SELECT o.name AS PROCEDURE_NAME, SCHEMA_NAME(o.schema_id) AS SCHEMA_NAME,"
            " OBJECT_DEFINITION(o.object_id) AS PROCEDURE_SOURCE"
            " FROM sys.procedures o WHERE UPPER(o.name) = ?{schema_filter}",
            _TS_OBJECT_SCHEMA,
        ),
        ObjectType.FUNCTION: (
            "SELECT o.name AS FUNCTION_NAME, SCHEMA_NAME(o.schema_id) AS SCHEMA_NAME,"
            " OBJECT_DEFINITION(o.object_id) AS FUNCTION_SOURCE"
            " FROM sys.objects o"
            " WHERE UPPER(o.name) = ? AND o.type IN ('FN', 'IF', 'TF'){schema_filter}",
            _TS_OBJECT_SCHEMA,
        ),
        ObjectType.TRIGGER: (
            "SELECT tr.name AS TRIGGER_NAME, OBJECT_NAME(tr.parent_id) AS RELATION_NAME,"
            " SCHEMA_NAME(o.schema_id) AS SCHEMA_NAME, tr.is_disabled AS TRIGGER_INACTIVE,"
            " OBJECT_DEFINITION(tr.object_id) AS TRIGGER_SOURCE"
            " FROM sys.triggers tr"
            " LEFT JOIN sys.objects o ON o.object_id = tr.parent_id"
            " WHERE UPPER(tr.name) = ?{schema_filter}",
            _TS_OBJECT_SCHEMA,
        ),
        ObjectType.INDEX: (
            "SELECT i.name AS INDEX_NAME, o.name AS RELATION_NAME,"
            " SCHEMA_NAME(o.schema_id) AS SCHEMA_NAME, i.is_unique AS IS_UNIQUE,"
            " i.type_desc AS INDEX_TYPE, i.is_disabled AS IS_INACTIVE"
            " FROM sys.indexes i"
            " JOIN sys.tables o ON o.object_id = i.object_id"
            " WHERE UPPER(i.name) = ?{schema_filter}",
            _TS_OBJECT_SCHEMA,
        ),
        ObjectType.SEQUENCE: (
            "SELECT o.name AS SEQUENCE_NAME, SCHEMA_NAME(o.schema_id) AS SCHEMA_NAME,"
            " CAST(o.start_value AS BIGINT) AS START_VALUE,"
            " CAST(o.increment AS BIGINT) AS INCREMENT,"
            " TYPE_NAME(o.user_type_id) AS DATA_TYPE"
            " FROM sys.sequences o WHERE UPPER(o.name) = ?{schema_filter}",
            _TS_OBJECT_SCHEMA,
        ),
        ObjectType.USER: (
            "SELECT p.name AS USER_NAME, SUSER_SNAME(p.sid) AS LOGIN_NAME,"
            " p.default_schema_name AS DEFAULT_SCHEMA, p.type_desc AS USER_TYPE"
            " FROM sys.database_principals p WHERE UPPER(p.name) = ?{schema_filter}",
            None,
        ),
    }

    def schemas(self) -> Query:
        return (
            "SELECT s.name AS SCHEMA_NAME FROM sys.schemas s"
            " WHERE s.schema_id < 16384 AND s.name NOT IN ('sys', 'INFORMATION_SCHEMA', 'guest')"
            " ORDER BY s.name",
            [],
        )

    def columns(self, table: str, schema: Optional[str] = None) -> Query:
        return self._render(
            (
                "SELECT c.name AS COLUMN_NAME, c.column_id AS POSITION,"
                " TYPE_NAME(c.user_type_id) AS TYPE_NAME,"
                " CASE WHEN TYPE_NAME(c.user_type_id) IN ('nchar', 'nvarchar') AND c.max_length > 0"
                " THEN c.max_length / 2 ELSE c.max_length END AS FIELD_LENGTH,"
                " c.precision AS FIELD_PRECISION, c.scale AS FIELD_SCALE,"
                " c.is_nullable AS IS_NULLABLE,"
                " dc.definition AS DEFAULT_SOURCE,"
                " cc.definition AS COMPUTED_SOURCE,"
                " c.is_identity AS IS_IDENTITY,"
                " CAST(ic.seed_value AS BIGINT) AS IDENTITY_SEED,"
                " CAST(ic.increment_value AS BIGINT) AS IDENTITY_INCREMENT"
                " FROM sys.columns c"
                " JOIN sys.tables o ON o.object_id = c.object_id"
                " LEFT JOIN sys.default_constraints dc ON dc.object_id = c.default_object_id"
                " LEFT JOIN sys.computed_columns cc"
                " ON cc.object_id = c.object_id AND cc.column_id = c.column_id"
                " LEFT JOIN sys.identity_columns ic"
                " ON ic.object_id = c.object_id AND ic.column_id = c.column_id"
                " WHERE UPPER(o.name) = ?{schema_filter}"
                " ORDER BY c.column_id",
                _TS_OBJECT_SCHEMA,
            ),
            [self.normalize_name(table)],
            schema,
        )

    def table_indexes(self, table: str, schema: Optional[str] = None) -> Query:
        return self._render(
            (
                "SELECT i.name AS INDEX_NAME, o.name AS RELATION_NAME,"
                " i.is_unique AS IS_UNIQUE, i.type_desc AS INDEX_TYPE,"
                " kc.name AS CONSTRAINT_NAME"
                " FROM sys.indexes i"
                " JOIN sys.tables o ON o.object_id = i.object_id"
                " LEFT JOIN sys.key_constraints kc"
                " ON kc.parent_object_id = i.object_id AND kc.unique_index_id = i.index_id"
                " WHERE i.name IS NOT NULL AND UPPER(o.name) = ?{schema_filter}"
                " ORDER BY i.name",
                _TS_OBJECT_SCHEMA,
            ),
            [self.normalize_name(table)],
            schema,
        )

    def constraints(self, table: str, schema: Optional[str] = None) -> Query:
        keys_sql, keys_params = self._render(
            (
                "SELECT kc.name AS CONSTRAINT_NAME,"
                " CASE kc.type WHEN 'PK' THEN 'PRIMARY KEY' ELSE 'UNIQUE' END AS CONSTRAINT_TYPE,"
                " i.name AS INDEX_NAME, NULL AS REFERENCED_SCHEMA, NULL AS REFERENCED_TABLE,"
                " NULL AS UPDATE_RULE, NULL AS DELETE_RULE"
                " FROM sys.key_constraints kc"
                " JOIN sys.objects o ON o.object_id = kc.parent_object_id"
                " JOIN sys.indexes i"
                " ON i.object_id = kc.parent_object_id AND i.index_id = kc.unique_index_id"
                " WHERE UPPER(o.name) = ?{schema_filter}",
                _TS_OBJECT_SCHEMA,
            ),
            [self.normalize_name(table)],
            schema,
        )
        fks_sql, fks_params = self._render(
            (
                "SELECT fk.name, 'FOREIGN KEY', NULL,"
                " OBJECT_SCHEMA_NAME(fk.referenced_object_id),"
                " OBJECT_NAME(fk.referenced_object_id),"
                " REPLACE(fk.update_referential_action_desc, '_', ' '),"
                " REPLACE(fk.delete_referential_action_desc, '_', ' ')"
                " FROM sys.foreign_keys fk"
                " JOIN sys.objects o ON o.object_id = fk.parent_object_id"
                " WHERE UPPER(o.name) = ?{schema_filter}",
                _TS_OBJECT_SCHEMA,
            ),
            [self.normalize_name(table)],
            schema,
        )
        return (
            f"{keys_sql} UNION ALL {fks_sql} ORDER BY CONSTRAINT_NAME",
            keys_params + fks_params,
        )

    def index_segments(self, table: str, index: str, schema: Optional[str] = None) -> Query:
        return self._render(
            (
                "SELECT c.name AS COLUMN_NAME, ic.key_ordinal AS POSITION,"
                " ic.is_descending_key AS IS_DESCENDING"
                " FROM sys.index_columns ic"
                " JOIN sys.indexes i ON i.object_id = ic.object_id AND i.index_id = ic.index_id"
                " JOIN sys.columns c ON c.object_id = ic.object_id AND c.column_id = ic.column_id"
                " JOIN sys.objects o ON o.object_id = i.object_id"
                " WHERE UPPER(o.name) = ? AND UPPER(i.name) = ? AND ic.key_ordinal > 0"
                "{schema_filter}"
                " ORDER BY ic.key_ordinal",
                _TS_OBJECT_SCHEMA,
            ),
            [self.normalize_name(table), self.normalize_name(index)],
            schema,
        )

    def foreign_key_columns(
        self, table: str, constraint: str, schema: Optional[str] = None
    ) -> Query:
        return self._render(
            (
                "SELECT pc.name AS COLUMN_NAME, rc.name AS REFERENCED_COLUMN,"
                " fkc.constraint_column_id AS POSITION"
                " FROM sys.foreign_key_columns fkc"
                " JOIN sys.foreign_keys fk ON fk.object_id = fkc.constraint_object_id"
                " JOIN sys.objects o ON o.object_id = fk.parent_object_id"
                " JOIN sys.columns pc"
                " ON pc.object_id = fkc.parent_object_id AND pc.column_id = fkc.parent_column_id"
                " JOIN sys.columns rc"
                " ON rc.object_id = fkc.referenced_object_id"
                " AND rc.column_id = fkc.referenced_column_id"
                " WHERE UPPER(o.name) = ? AND UPPER(fk.name) = ?{schema_filter}"
                " ORDER BY fkc.constraint_column_id",
                _TS_OBJECT_SCHEMA,
            ),
            [self.normalize_name(table), self.normalize_name(constraint)],
            schema,
        )
