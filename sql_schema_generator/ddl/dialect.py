"""
Base class for SQL dialects.

A dialect owns every keyword string of the generated DDL. The two mapping
tables are the only parts a new dialect has to provide; the statement
formatters follow SQL-92 and can be overridden where an engine differs.
"""

from abc import ABC
from typing import Dict, List

from sql_schema_generator.domain.models import Column, ColumnType, ForeignKeyAction
from sql_schema_generator.exceptions import DialectMappingError


class Dialect(ABC):
    """Keyword mappings and statement shapes of one relational engine."""

    name: str = "abstract"

    # Subclasses must cover every ColumnType and ForeignKeyAction
    COLUMN_TYPES: Dict[ColumnType, str] = {}
    REFERENCE_ACTIONS: Dict[ForeignKeyAction, str] = {}

    def map_column_type(self, column_type: ColumnType) -> str:
        """
        Map a column type to the dialect type name.

        Raises:
            DialectMappingError: If the type has no mapping
        """
        try:
            return self.COLUMN_TYPES[column_type]
        except (KeyError, TypeError):
            raise DialectMappingError(
                f"Undefined column type {column_type!r}",
                value=column_type, dialect=self.name
            ) from None

    def map_reference_action(self, action: ForeignKeyAction) -> str:
        """
        Map a foreign key action to the dialect keyword.

        Raises:
            DialectMappingError: If the action has no mapping
        """
        try:
            return self.REFERENCE_ACTIONS[action]
        except (KeyError, TypeError):
            raise DialectMappingError(
                f"Undefined reference action type {action!r}",
                value=action, dialect=self.name
            ) from None

    # --- Statement formatters ---

    def drop_table(self, table_name: str) -> str:
        return f"DROP TABLE IF EXISTS {table_name} CASCADE"

    def create_table(self, table_name: str) -> str:
        return f"CREATE TABLE {table_name}()"

    def add_column(self, table_name: str, column: Column) -> str:
        parts = [
            f"ALTER TABLE {table_name} ADD COLUMN {column.name}",
            self.map_column_type(column.column_type),
        ]
        if not (column.unique or column.nullable):
            parts.append("NOT NULL")
        if column.default:
            parts.append(f"DEFAULT {column.default}")
        if column.check:
            parts.append(f"CHECK ({column.check})")
        return " ".join(parts)

    def add_primary_key(self, table_name: str, column_names: List[str]) -> str:
        return f"ALTER TABLE {table_name} ADD PRIMARY KEY ({','.join(column_names)})"

    def add_unique(self, table_name: str, column_names: List[str]) -> str:
        return f"ALTER TABLE {table_name} ADD UNIQUE ({','.join(column_names)})"

    def add_foreign_key(
        self,
        table_name: str,
        column_names: List[str],
        ref_table_name: str,
        ref_column_names: List[str],
        on_update: ForeignKeyAction,
        on_delete: ForeignKeyAction,
    ) -> str:
        return (
            f"ALTER TABLE {table_name} ADD FOREIGN KEY ({','.join(column_names)}) "
            f"REFERENCES {ref_table_name} ({','.join(ref_column_names)}) "
            f"ON UPDATE {self.map_reference_action(on_update)} "
            f"ON DELETE {self.map_reference_action(on_delete)}"
        )
