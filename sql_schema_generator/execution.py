"""
Execution adapter for SQL Schema Generator.

Statements are written with `:name` placeholders. Before execution they are
translated into the positional form of the database driver, and run through
an executor that is passed in explicitly, so tests can supply a fake one
and production code can share one connection per unit of work.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence, Tuple

import psycopg2
from psycopg2.extras import RealDictCursor

from sql_schema_generator.domain.models import is_sql_identifier
from sql_schema_generator.exceptions import ConfigurationError, QueryParameterError, StatementBuildError
from sql_schema_generator.statements import (
    ClauseValues,
    SqlStatement,
    create_delete_statement,
    create_insert_statement,
    create_select_statement,
    create_update_statement,
)

logger = logging.getLogger(__name__)

PARAMSTYLES = ("format", "numeric", "qmark")

TOKEN_PATTERN = re.compile(
    r"(?P<literal>'(?:[^']|'')*')"
    r"|(?P<line_comment>--[^\n]*)"
    r"|(?P<block_comment>/\*.*?\*/)"
    r"|(?P<dollar_quoted>\$(?P<tag>[A-Za-z_][A-Za-z0-9_]*|)\$.*?\$(?P=tag)\$)"
    r'|(?P<quoted>"(?:[^"]|"")*")'
    r"|(?P<cast>::)"
    r"|:(?P<name>[A-Za-z_][A-Za-z0-9_]*)"
    r"|(?P<percent>%)",
    re.DOTALL,
)


def translate_named_params(
    text: str,
    params: Optional[Mapping[str, Any]] = None,
    paramstyle: str = "format",
) -> Tuple[str, List[Any]]:
    """
    Translate `:name` placeholders into positional placeholders.

    Quoted literals, quoted identifiers, comments, dollar-quoted bodies and
    `::` casts are left untouched.
    With the `format` style, literal `%` characters are doubled when the
    statement has parameters, as DB-API drivers require.

    Args:
        text: Statement text with `:name` placeholders
        params: Values by name
        paramstyle: `format` (%s), `numeric` ($1) or `qmark` (?)

    Returns:
        Tuple of translated text and positional values

    Raises:
        QueryParameterError: If a placeholder has no value
        ConfigurationError: If the paramstyle is unknown

    Example:
        >>> translate_named_params("SELECT * FROM t WHERE id=:_id", {"_id": 5})
        ('SELECT * FROM t WHERE id=%s', [5])
    """
    if paramstyle not in PARAMSTYLES:
        raise ConfigurationError(
            f"Unsupported paramstyle '{paramstyle}'. Supported: {', '.join(PARAMSTYLES)}"
        )
    params = params or {}
    values: List[Any] = []
    numbered: Dict[str, int] = {}
    parts: List[Tuple[bool, str]] = []
    position = 0
    has_placeholders = False

    for match in TOKEN_PATTERN.finditer(text):
        parts.append((True, text[position:match.start()]))
        position = match.end()

        name = match.group("name")
        if name is not None:
            if name not in params:
                raise QueryParameterError(
                    f"Missing value for parameter ':{name}'", parameter=name
                )
            has_placeholders = True
            if paramstyle == "numeric":
                if name not in numbered:
                    values.append(params[name])
                    numbered[name] = len(values)
                parts.append((False, f"${numbered[name]}"))
            else:
                values.append(params[name])
                parts.append((False, "%s" if paramstyle == "format" else "?"))
        else:
            parts.append((True, match.group(0)))
    parts.append((True, text[position:]))

    escape_percent = paramstyle == "format" and has_placeholders
    translated = "".join(
        part.replace("%", "%%") if escape_percent and escapable else part
        for escapable, part in parts
    )
    return translated, values


@dataclass
class QueryResult:
    """Rows returned by a statement and the number of affected rows."""

    rows: List[Dict[str, Any]] = field(default_factory=list)
    row_count: int = 0


class Executor(Protocol):
    """Anything that can run positional SQL against a database."""

    paramstyle: str

    def execute(self, text: str, params: Sequence[Any]) -> QueryResult:
        """Execute a statement with positional parameters."""
        ...


class Psycopg2Executor:
    """
    Executor backed by a psycopg2 connection.

    Each statement runs in its own cursor and is committed right away unless
    `autocommit` is disabled. Driver errors roll the connection back and are
    re-raised unchanged.
    """

    paramstyle = "format"

    def __init__(self, connection, autocommit: bool = True):
        self.connection = connection
        self.autocommit = autocommit

    @classmethod
    def connect(cls, autocommit: bool = True, **settings) -> "Psycopg2Executor":
        """Open a new connection; `settings` are psycopg2.connect keywords."""
        logger.debug(
            f"Connecting to PostgreSQL at {settings.get('host', 'localhost')}:"
            f"{settings.get('port', 5432)}/{settings.get('dbname', '')}"
        )
        return cls(psycopg2.connect(**settings), autocommit=autocommit)

    def execute(self, text: str, params: Sequence[Any]) -> QueryResult:
        try:
            with self.connection.cursor(cursor_factory=RealDictCursor) as cursor:
                # No parameters means no %-formatting by the driver
                cursor.execute(text, list(params) if params else None)
                rows = [dict(row) for row in cursor.fetchall()] if cursor.description else []
                row_count = cursor.rowcount
            if self.autocommit:
                self.connection.commit()
        except psycopg2.Error:
            self.connection.rollback()
            raise
        return QueryResult(rows=rows, row_count=row_count)

    def commit(self):
        self.connection.commit()

    def close(self):
        self.connection.close()


class DataFactory:
    """
    Base class for data access objects.

    The executor is injected, never looked up globally. Generated factory
    classes subclass this and only add table specific methods.
    """

    def __init__(self, executor: Executor):
        self.executor = executor

    def query(self, statement: str, params: Optional[Mapping[str, Any]] = None) -> QueryResult:
        """Execute a named-parameter statement and return the raw result."""
        paramstyle = getattr(self.executor, "paramstyle", "format")
        text, values = translate_named_params(statement, params, paramstyle)
        logger.debug(f"{text} {values}")
        return self.executor.execute(text, values)

    def execute_non_query(self, statement: str, params: Optional[Mapping[str, Any]] = None) -> int:
        """Execute a statement and return the number of affected rows."""
        return self.query(statement, params).row_count

    def execute_query(self, statement: str, params: Optional[Mapping[str, Any]] = None) -> List[Dict[str, Any]]:
        """Execute a statement and return all rows."""
        return self.query(statement, params).rows

    def execute_query_single(self, statement: str, params: Optional[Mapping[str, Any]] = None) -> Optional[Dict[str, Any]]:
        """Execute a statement and return the first row, or None."""
        rows = self.execute_query(statement, params)
        return rows[0] if rows else None

    def execute_statement(self, statement: SqlStatement) -> List[Dict[str, Any]]:
        return self.execute_query(statement.text, statement.params)

    # --- Statement builder shortcuts ---

    def insert(self, table_name: str, values: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
        """Insert one row and return it as stored."""
        statement = create_insert_statement(table_name, values)
        return self.execute_query_single(statement.text, statement.params)

    def update(self, table_name: str, set_values: Mapping[str, Any], clause_values: ClauseValues) -> List[Dict[str, Any]]:
        """Update matching rows and return them."""
        return self.execute_statement(create_update_statement(table_name, set_values, clause_values))

    def delete(self, table_name: str, clause_values: ClauseValues) -> List[Dict[str, Any]]:
        """Delete matching rows and return them."""
        return self.execute_statement(create_delete_statement(table_name, clause_values))

    def select(self, table_name: str, clause_values: ClauseValues = None) -> List[Dict[str, Any]]:
        """Select matching rows."""
        return self.execute_statement(create_select_statement(table_name, clause_values))


def quote_identifier(name: str) -> str:
    """Double-quote an identifier read from the catalog, as quote_ident does."""
    return '"' + name.replace('"', '""') + '"'


class DataUtils(DataFactory):
    """Database-wide maintenance helpers, mostly for resetting test databases."""

    def owned_tables(self, owner: str, schema: str = "public") -> List[str]:
        """Names of the tables of a schema owned by a database user."""
        rows = self.execute_query(
            "SELECT tablename FROM pg_tables "
            "WHERE tableowner = :owner AND schemaname = :schema ORDER BY tablename",
            {"owner": owner, "schema": schema},
        )
        return [row["tablename"] for row in rows]

    def truncate_tables(
        self,
        table_names: Optional[Sequence[Any]] = None,
        owner: Optional[str] = None,
        schema: str = "public",
    ) -> List[str]:
        """
        Truncate tables with CASCADE in a single statement.

        Args:
            table_names: Tables (names or Table objects) to truncate
            owner: Truncate every table of `schema` owned by this user instead

        Returns:
            The names of the truncated tables

        Raises:
            StatementBuildError: If a given table name is not a plain identifier,
                or neither tables nor an owner are given
        """
        if table_names is not None:
            names = [getattr(table, "name", table) for table in table_names]
            for name in names:
                if not is_sql_identifier(name):
                    raise StatementBuildError(f"'{name}' is not a valid table name", table=str(name))
            targets = list(names)
        elif owner is not None:
            names = self.owned_tables(owner, schema)
            targets = [f"{quote_identifier(schema)}.{quote_identifier(name)}" for name in names]
        else:
            raise StatementBuildError("truncate_tables needs table names or an owner")

        if not names:
            logger.info("No tables to truncate")
            return []

        self.execute_non_query(f"TRUNCATE TABLE {', '.join(targets)} CASCADE")
        logger.info(f"Truncated {len(names)} tables")
        return names
