"""
DDL synthesis for SQL Schema Generator.

Turns a list of tables into an ordered DDL script that builds the schema from
nothing. The script is emitted in phases:

1. drop every table (cascading, so re-provisioning is idempotent)
2. create every table empty, in dependency order
3. per table: add columns, then the primary key, then unique constraints
4. add every foreign key, once all tables are fully shaped

Deferring the foreign keys to the last phase lets tables reference each
other in cycles; a foreign key only needs its target table and key to exist.
"""

import logging
from typing import Iterable, List, Optional

from sql_schema_generator.ddl.dialect import Dialect
from sql_schema_generator.ddl.postgresql import PostgreSQLDialect
from sql_schema_generator.domain.dependency_sorter import sort_tables
from sql_schema_generator.domain.models import Table

logger = logging.getLogger(__name__)


class DDLSynthesizer:
    """Builds the ordered DDL statements of a schema for one dialect."""

    def __init__(self, dialect: Dialect, strict_cycles: bool = False):
        """
        Initialize the synthesizer.

        Args:
            dialect: Target SQL dialect
            strict_cycles: Fail on reference cycles instead of deferring them
        """
        self.dialect = dialect
        self.strict_cycles = strict_cycles

    def synthesize(self, tables: Iterable[Table]) -> List[str]:
        """
        Build the DDL statements for the given tables.

        Args:
            tables: Tables in any order

        Returns:
            Statements in the order they must be executed

        Raises:
            DialectMappingError: If a column type or reference action is unmapped
            DependencyResolutionError: If the tables cannot be ordered
        """
        ordered = sort_tables(tables, strict=self.strict_cycles)
        logger.debug(f"Table creation order: {', '.join(t.name for t in ordered)}")

        script: List[str] = []
        for table in ordered:
            script.append(self.dialect.drop_table(table.name))

        for table in ordered:
            script.append(self.dialect.create_table(table.name))
            script.extend(self._column_statements(table))
            script.extend(self._key_statements(table))

        for table in ordered:
            script.extend(self._foreign_key_statements(table))

        logger.debug(f"Synthesized {len(script)} DDL statements for {len(ordered)} tables")
        return script

    def _column_statements(self, table: Table) -> List[str]:
        return [self.dialect.add_column(table.name, column) for column in table.columns]

    def _key_statements(self, table: Table) -> List[str]:
        statements = []
        primary_key = table.primary_key
        if primary_key is not None:
            statements.append(
                self.dialect.add_primary_key(table.name, primary_key.column_names)
            )
        for constraint in table.unique_constraints:
            statements.append(self.dialect.add_unique(table.name, constraint.column_names))
        return statements

    def _foreign_key_statements(self, table: Table) -> List[str]:
        return [
            self.dialect.add_foreign_key(
                table.name,
                fk.column_names,
                fk.reference.ref_table_name,
                list(fk.reference.ref_columns),
                fk.reference.on_update,
                fk.reference.on_delete,
            )
            for fk in table.foreign_keys
        ]


def render_script(statements: Iterable[str], terminator: str = ";") -> str:
    """Join DDL statements into a single script text."""
    return "".join(f"{statement}{terminator}\n" for statement in statements)


def provision(executor, statements: Iterable[str], batch: bool = False) -> int:
    """
    Execute a DDL script in emission order.

    Errors from the executor are propagated unmodified; nothing is retried.

    Args:
        executor: Execution adapter with `execute(text, params)`
        statements: Statements as returned by DDLSynthesizer.synthesize
        batch: Send the whole script as one statement

    Returns:
        Number of executed statements (1 when batched)
    """
    statements = list(statements)
    if batch:
        executor.execute(render_script(statements), [])
        return 1

    for index, statement in enumerate(statements, start=1):
        logger.debug(f"[{index}/{len(statements)}] {statement}")
        executor.execute(statement, [])
    return len(statements)


def synthesize(tables: Iterable[Table], dialect: Optional[Dialect] = None, strict_cycles: bool = False) -> List[str]:
    """Synthesize DDL statements, using PostgreSQL when no dialect is given."""
    if dialect is None:
        dialect = PostgreSQLDialect()
    return DDLSynthesizer(dialect, strict_cycles=strict_cycles).synthesize(tables)
