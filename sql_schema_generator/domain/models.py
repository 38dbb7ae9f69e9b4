"""
Core domain models for SQL Schema Generator.

These models describe a relational schema in memory: tables, their typed
columns and the constraints between them. Tables are built through a fluent
API and later consumed by the dependency sorter, the DDL synthesizer and the
code renderers. None of these models talk to a database.
"""

import re
from dataclasses import dataclass, field
from typing import List, Dict, Any, Optional, Sequence, Union
from enum import Enum

from sql_schema_generator.exceptions import SchemaDefinitionError


IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def is_sql_identifier(name: str) -> bool:
    """Check if a string is a plain, unquoted SQL identifier."""
    return isinstance(name, str) and bool(IDENTIFIER_PATTERN.match(name))


class ColumnType(Enum):
    """Dialect independent column types."""

    STRING = "string"
    NUMBER = "number"
    DECIMAL = "decimal"
    GUID = "guid"
    DATE_TIME = "dateTime"
    BOOLEAN = "boolean"
    AUTO_INCREMENT = "autoIncrement"


class ConstraintType(Enum):
    """Kinds of table constraints."""

    PRIMARY_KEY = "primaryKey"
    UNIQUE = "unique"
    FOREIGN_KEY = "foreignKey"


class ForeignKeyAction(Enum):
    """Referential actions for ON UPDATE / ON DELETE."""

    CASCADE = "cascade"
    SET_NULL = "setNull"


@dataclass
class ColumnOptions:
    """Optional column properties. `default` and `check` are raw SQL."""

    nullable: bool = False
    unique: bool = False
    default: Optional[str] = None
    check: Optional[str] = None

    def __post_init__(self):
        # Empty expressions mean "no expression"
        self.default = self.default or None
        self.check = self.check or None


@dataclass
class Column:
    """
    Represents a table column.

    The owning table guarantees the name is unique within the table.
    """

    name: str
    column_type: ColumnType
    options: ColumnOptions = field(default_factory=ColumnOptions)

    @property
    def nullable(self) -> bool:
        return self.options.nullable

    @property
    def unique(self) -> bool:
        return self.options.unique

    @property
    def default(self) -> Optional[str]:
        return self.options.default

    @property
    def check(self) -> Optional[str]:
        return self.options.check

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            'name': self.name,
            'type': self.column_type.value,
            'nullable': self.nullable,
            'unique': self.unique,
            'default': self.default,
            'check': self.check,
        }


@dataclass
class ForeignKeyReference:
    """
    Foreign key payload of a constraint.

    `ref_table` is a reference to another Table, never ownership. The
    referenced table may in turn reference this one.
    """

    ref_table: "Table"
    ref_columns: List[str]
    on_update: ForeignKeyAction = ForeignKeyAction.CASCADE
    on_delete: ForeignKeyAction = ForeignKeyAction.CASCADE

    @property
    def ref_table_name(self) -> str:
        return self.ref_table.name


@dataclass
class Constraint:
    """
    A table constraint over an ordered list of the table's own columns.

    The constraint kind is a tag; only foreign keys carry a `reference`
    payload. Column order is the order used in the generated SQL.
    """

    name: str
    constraint_type: ConstraintType
    columns: List[Column] = field(default_factory=list)
    reference: Optional[ForeignKeyReference] = None

    def __post_init__(self):
        is_foreign_key = self.constraint_type == ConstraintType.FOREIGN_KEY
        if is_foreign_key and self.reference is None:
            raise SchemaDefinitionError(
                f"Foreign key constraint '{self.name}' has no reference target"
            )
        if not is_foreign_key and self.reference is not None:
            raise SchemaDefinitionError(
                f"Constraint '{self.name}' of type {self.constraint_type.value} "
                f"cannot carry a foreign key reference"
            )

    @property
    def column_names(self) -> List[str]:
        return [column.name for column in self.columns]

    @property
    def is_foreign_key(self) -> bool:
        return self.constraint_type == ConstraintType.FOREIGN_KEY

    def add_column(self, column: Column) -> "Constraint":
        self.columns.append(column)
        return self

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        result = {
            'name': self.name,
            'type': self.constraint_type.value,
            'columns': self.column_names,
        }
        if self.reference is not None:
            result.update({
                'ref_table': self.reference.ref_table_name,
                'ref_columns': list(self.reference.ref_columns),
                'on_update': self.reference.on_update.value,
                'on_delete': self.reference.on_delete.value,
            })
        return result


class Table:
    """
    Represents a database table with its columns and constraints.

    Columns are added through the fluent column methods, each of which
    returns the table so definitions can be chained::

        users = Table("sys_user")
        users.primary_key_column().string_column("email", unique=True)
    """

    def __init__(self, name: str):
        if not is_sql_identifier(name):
            raise SchemaDefinitionError(
                f"'{name}' is not a valid table name", table=str(name)
            )
        self.name = name
        self.columns: List[Column] = []
        self.constraints: List[Constraint] = []

    def __repr__(self) -> str:
        return f"Table({self.name!r})"

    # --- Read helpers ---

    @property
    def primary_key(self) -> Optional[Constraint]:
        for constraint in self.constraints:
            if constraint.constraint_type == ConstraintType.PRIMARY_KEY:
                return constraint
        return None

    @property
    def has_primary_key(self) -> bool:
        return self.primary_key is not None

    @property
    def foreign_keys(self) -> List[Constraint]:
        return self.get_constraints(ConstraintType.FOREIGN_KEY)

    @property
    def unique_constraints(self) -> List[Constraint]:
        return self.get_constraints(ConstraintType.UNIQUE)

    def get_constraints(self, constraint_type: Optional[ConstraintType] = None) -> List[Constraint]:
        """Get the constraints of a given type, or all of them."""
        if constraint_type is None:
            return list(self.constraints)
        return [c for c in self.constraints if c.constraint_type == constraint_type]

    def get_column(self, name: str) -> Optional[Column]:
        """Get a column by name."""
        for column in self.columns:
            if column.name == name:
                return column
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the table metadata consumed by renderers."""
        return {
            'name': self.name,
            'columns': [column.to_dict() for column in self.columns],
            'constraints': [constraint.to_dict() for constraint in self.constraints],
            'primary_key': self.primary_key.column_names if self.primary_key else [],
        }

    # --- Low level construction ---

    def add_column(self, column: Column) -> Column:
        """
        Attach a column to the table.

        A column marked unique also gets a single-column unique constraint.

        Raises:
            SchemaDefinitionError: If the name is invalid or already used
        """
        if not is_sql_identifier(column.name):
            raise SchemaDefinitionError(
                f"'{column.name}' is not a valid column name",
                table=self.name, column=str(column.name)
            )
        if self.get_column(column.name) is not None:
            raise SchemaDefinitionError(
                f"Column '{column.name}' is already defined on table '{self.name}'",
                table=self.name, column=column.name
            )
        self.columns.append(column)
        if column.unique:
            self.add_constraint(
                Constraint(f"unique_{column.name}", ConstraintType.UNIQUE, [column])
            )
        return column

    def add_constraint(self, constraint: Constraint) -> Constraint:
        """
        Attach a constraint after checking the table invariants.

        Raises:
            SchemaDefinitionError: On a second primary key, an empty or foreign
                column list, or a foreign key with mismatched column counts
        """
        if not constraint.columns:
            raise SchemaDefinitionError(
                f"Constraint '{constraint.name}' has no columns", table=self.name
            )
        for column in constraint.columns:
            if not any(own is column for own in self.columns):
                raise SchemaDefinitionError(
                    f"Constraint '{constraint.name}' names column '{column.name}' "
                    f"which is not owned by table '{self.name}'",
                    table=self.name, column=column.name
                )
        if constraint.constraint_type == ConstraintType.PRIMARY_KEY and self.has_primary_key:
            raise SchemaDefinitionError(
                f"Table '{self.name}' already has a primary key", table=self.name
            )
        if constraint.reference is not None:
            ref_count = len(constraint.reference.ref_columns)
            if ref_count != len(constraint.columns):
                raise SchemaDefinitionError(
                    f"Foreign key '{constraint.name}' maps {len(constraint.columns)} "
                    f"column(s) onto {ref_count} referenced column(s)",
                    table=self.name,
                    context={'ref_table': constraint.reference.ref_table_name}
                )
        self.constraints.append(constraint)
        return constraint

    def _columns_by_name(self, column_names: Sequence[str]) -> List[Column]:
        columns = []
        for name in column_names:
            column = self.get_column(name)
            if column is None:
                raise SchemaDefinitionError(
                    f"Table '{self.name}' has no column '{name}'",
                    table=self.name, column=name
                )
            columns.append(column)
        return columns

    def _typed_column(self, name: str, column_type: ColumnType, options: Dict[str, Any]) -> "Table":
        self.add_column(Column(name, column_type, ColumnOptions(**options)))
        return self

    # --- Fluent API ---

    def primary_key_column(self, name: str = "id") -> "Table":
        """Add an auto increment column to the table's primary key."""
        column = self.add_column(Column(name, ColumnType.AUTO_INCREMENT))
        primary_key = self.primary_key
        if primary_key is None:
            self.add_constraint(Constraint("pkey", ConstraintType.PRIMARY_KEY, [column]))
        else:
            primary_key.add_column(column)
        return self

    def string_column(self, name: str, **options) -> "Table":
        return self._typed_column(name, ColumnType.STRING, options)

    def number_column(self, name: str, **options) -> "Table":
        return self._typed_column(name, ColumnType.NUMBER, options)

    def decimal_column(self, name: str, **options) -> "Table":
        return self._typed_column(name, ColumnType.DECIMAL, options)

    def guid_column(self, name: str, **options) -> "Table":
        return self._typed_column(name, ColumnType.GUID, options)

    def date_time_column(self, name: str, **options) -> "Table":
        return self._typed_column(name, ColumnType.DATE_TIME, options)

    def boolean_column(self, name: str, **options) -> "Table":
        return self._typed_column(name, ColumnType.BOOLEAN, options)

    def reference_column(
        self,
        name: str,
        ref_table: "Table",
        ref_column: str = "id",
        on_update: ForeignKeyAction = ForeignKeyAction.CASCADE,
        on_delete: ForeignKeyAction = ForeignKeyAction.CASCADE,
        **options
    ) -> "Table":
        """
        Add a number column referencing another table.

        Args:
            name: Column name
            ref_table: Referenced table (may be defined later or reference back)
            ref_column: Referenced column name, `id` by default
            on_update: Action on update of the referenced key
            on_delete: Action on delete of the referenced row
            **options: Column options (nullable, unique, default, check)
        """
        column = self.add_column(Column(name, ColumnType.NUMBER, ColumnOptions(**options)))
        reference = ForeignKeyReference(ref_table, [ref_column], on_update, on_delete)
        self.add_constraint(
            Constraint(f"fkey_{name}", ConstraintType.FOREIGN_KEY, [column], reference)
        )
        return self

    def unique_constraint(self, column_names: Sequence[str], name: Optional[str] = None) -> "Table":
        """Add a (composite) unique constraint over existing columns."""
        columns = self._columns_by_name(column_names)
        name = name or "unique_" + "_".join(column_names)
        self.add_constraint(Constraint(name, ConstraintType.UNIQUE, columns))
        return self

    def foreign_key(
        self,
        column_names: Union[str, Sequence[str]],
        ref_table: "Table",
        ref_columns: Union[str, Sequence[str]],
        on_update: ForeignKeyAction = ForeignKeyAction.CASCADE,
        on_delete: ForeignKeyAction = ForeignKeyAction.CASCADE,
        name: Optional[str] = None
    ) -> "Table":
        """Add a (composite) foreign key over existing columns."""
        column_names = [column_names] if isinstance(column_names, str) else list(column_names)
        ref_columns = [ref_columns] if isinstance(ref_columns, str) else list(ref_columns)
        columns = self._columns_by_name(column_names)
        name = name or "fkey_" + "_".join(column_names)
        reference = ForeignKeyReference(ref_table, ref_columns, on_update, on_delete)
        self.add_constraint(Constraint(name, ConstraintType.FOREIGN_KEY, columns, reference))
        return self


class Database:
    """A named collection of tables, kept in definition order."""

    def __init__(self, name: str):
        self.name = name
        self.tables: List[Table] = []

    def add_table(self, name: str) -> Table:
        """
        Create and register a new table.

        Raises:
            SchemaDefinitionError: If a table with that name already exists
        """
        if self.get_table(name) is not None:
            raise SchemaDefinitionError(
                f"Table '{name}' is already defined in database '{self.name}'",
                table=name
            )
        table = Table(name)
        self.tables.append(table)
        return table

    def get_table(self, name: str) -> Optional[Table]:
        """Get a table by name."""
        for table in self.tables:
            if table.name == name:
                return table
        return None
