"""
Parameterized statement building for SQL Schema Generator.

Builds INSERT/UPDATE/DELETE/SELECT text with `:name` placeholders plus the
matching parameter map, from plain column -> value mappings.

Conventions:
    - A value of UNDEFINED means "not specified": the column is left out.
    - A clause value of None becomes `column IS NULL` with no parameter.
    - A clause value wrapped in SQLClause uses its operator instead of `=`.
    - Set values bind as `:column`, clause values as `:_column`, so an UPDATE
      can name the same column on both sides.
    - UPDATE and DELETE refuse an empty clause map; pass MATCH_ALL to affect
      every row on purpose.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from sql_schema_generator.domain.models import is_sql_identifier
from sql_schema_generator.exceptions import StatementBuildError

logger = logging.getLogger(__name__)

CLAUSE_PARAM_PREFIX = "_"

ALLOWED_OPERATORS = frozenset({
    "=", "<>", "!=", "<", "<=", ">", ">=",
    "LIKE", "ILIKE", "NOT LIKE", "NOT ILIKE",
})

WORD_OPERATORS = frozenset({"LIKE", "ILIKE", "NOT LIKE", "NOT ILIKE"})


class _Undefined:
    """Marker type for a value that was not specified."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNDEFINED"

    def __bool__(self) -> bool:
        return False


class _MatchAll:
    """Marker for a clause that deliberately matches every row."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MATCH_ALL"


UNDEFINED = _Undefined()
MATCH_ALL = _MatchAll()

ClauseValues = Union[Mapping[str, Any], _MatchAll, None]


class SQLClause:
    """
    A predicate with an explicit comparison operator.

    Example:
        >>> create_select_statement("t", {"score": SQLClause(">", 10)}).text
        'SELECT * FROM t WHERE score>:_score'
    """

    def __init__(self, operator: str, value: Any):
        normalized = " ".join(str(operator).upper().split())
        if normalized not in ALLOWED_OPERATORS:
            raise StatementBuildError(
                f"Unsupported clause operator '{operator}'",
                suggestions=[f"Use one of: {', '.join(sorted(ALLOWED_OPERATORS))}"]
            )
        self.operator = normalized
        self.value = value

    def __repr__(self) -> str:
        return f"SQLClause({self.operator!r}, {self.value!r})"

    def __eq__(self, other) -> bool:
        if not isinstance(other, SQLClause):
            return NotImplemented
        return (self.operator, self.value) == (other.operator, other.value)


@dataclass(frozen=True)
class SqlStatement:
    """Statement text with `:name` placeholders and its parameter map."""

    text: str
    params: Dict[str, Any] = field(default_factory=dict)


def remove_undefined(values: Optional[Mapping[str, Any]]) -> List[str]:
    """Return the keys of `values` whose value is specified, in order."""
    if not values:
        return []
    return [name for name, value in values.items() if value is not UNDEFINED]


def _check_identifier(name: str, table_name: str, kind: str = "column") -> None:
    if not is_sql_identifier(name):
        raise StatementBuildError(
            f"'{name}' is not a valid {kind} name", table=str(table_name)
        )


def _clause_param_name(name: str, params: Dict[str, Any]) -> str:
    """`_column`, suffixed with a counter when a set column already uses that name."""
    param_name = f"{CLAUSE_PARAM_PREFIX}{name}"
    candidate = param_name
    counter = 1
    while candidate in params:
        candidate = f"{param_name}_{counter}"
        counter += 1
    return candidate


def _predicate(name: str, value: Any, params: Dict[str, Any], table_name: str) -> str:
    """Build one WHERE predicate, registering its parameter if it has one."""
    param_name = _clause_param_name(name, params)

    if value is None:
        return f"{name} IS NULL"

    if isinstance(value, SQLClause):
        if value.value is None:
            if value.operator == "=":
                return f"{name} IS NULL"
            if value.operator in ("<>", "!="):
                return f"{name} IS NOT NULL"
            raise StatementBuildError(
                f"Operator '{value.operator}' cannot be used with a NULL value",
                table=table_name, context={'column': name}
            )
        params[param_name] = value.value
        if value.operator in WORD_OPERATORS:
            return f"{name} {value.operator} :{param_name}"
        return f"{name}{value.operator}:{param_name}"

    params[param_name] = value
    return f"{name}=:{param_name}"


def _where_clause(
    table_name: str,
    clause_values: ClauseValues,
    params: Dict[str, Any],
    statement_kind: str,
    allow_empty: bool = False,
) -> str:
    """Build the ` WHERE ...` suffix, or an empty string for MATCH_ALL."""
    if clause_values is MATCH_ALL:
        logger.debug(f"{statement_kind} on '{table_name}' matches all rows")
        return ""

    names = remove_undefined(clause_values)
    if not names:
        if allow_empty:
            return ""
        raise StatementBuildError(
            f"{statement_kind} on '{table_name}' has no clause values and would "
            f"affect every row",
            table=table_name
        )

    predicates = []
    for name in names:
        _check_identifier(name, table_name)
        predicates.append(_predicate(name, clause_values[name], params, table_name))
    return " WHERE " + " AND ".join(predicates)


def _set_columns(table_name: str, set_values: Optional[Mapping[str, Any]], statement_kind: str) -> List[Tuple[str, Any]]:
    names = remove_undefined(set_values)
    if not names:
        raise StatementBuildError(
            f"{statement_kind} on '{table_name}' has no column values", table=table_name
        )
    for name in names:
        _check_identifier(name, table_name)
    return [(name, set_values[name]) for name in names]


def create_insert_statement(table_name: str, values: Mapping[str, Any]) -> SqlStatement:
    """
    Create an INSERT statement returning the inserted row.

    Args:
        table_name: Target table
        values: Column values; UNDEFINED values are left out

    Returns:
        SqlStatement with one `:column` parameter per specified column
    """
    _check_identifier(table_name, table_name, kind="table")
    columns = _set_columns(table_name, values, "INSERT")
    names = [name for name, _ in columns]
    text = (
        f"INSERT INTO {table_name} ({','.join(names)}) "
        f"VALUES ({','.join(':' + name for name in names)}) RETURNING *"
    )
    return SqlStatement(text, dict(columns))


def create_update_statement(
    table_name: str,
    set_values: Mapping[str, Any],
    clause_values: ClauseValues,
) -> SqlStatement:
    """
    Create an UPDATE statement returning the updated rows.

    Args:
        table_name: Target table
        set_values: New column values (`:column` parameters)
        clause_values: WHERE predicates (`:_column` parameters), or MATCH_ALL

    Raises:
        StatementBuildError: On empty set values or an empty clause map
    """
    _check_identifier(table_name, table_name, kind="table")
    params: Dict[str, Any] = {}
    assignments = []
    for name, value in _set_columns(table_name, set_values, "UPDATE"):
        params[name] = value
        assignments.append(f"{name}=:{name}")
    where = _where_clause(table_name, clause_values, params, "UPDATE")
    text = f"UPDATE {table_name} SET {','.join(assignments)}{where} RETURNING *"
    return SqlStatement(text, params)


def create_delete_statement(table_name: str, clause_values: ClauseValues) -> SqlStatement:
    """
    Create a DELETE statement returning the deleted rows.

    Raises:
        StatementBuildError: On an empty clause map (use MATCH_ALL instead)
    """
    _check_identifier(table_name, table_name, kind="table")
    params: Dict[str, Any] = {}
    where = _where_clause(table_name, clause_values, params, "DELETE")
    return SqlStatement(f"DELETE FROM {table_name}{where} RETURNING *", params)


def create_select_statement(table_name: str, clause_values: ClauseValues = None) -> SqlStatement:
    """Create a SELECT statement; no clause values select every row."""
    _check_identifier(table_name, table_name, kind="table")
    params: Dict[str, Any] = {}
    where = _where_clause(table_name, clause_values, params, "SELECT", allow_empty=True)
    return SqlStatement(f"SELECT * FROM {table_name}{where}", params)


def undefined_if_none(value: Any) -> Any:
    """Map None to UNDEFINED, so database defaults apply on INSERT."""
    return UNDEFINED if value is None else value
