"""
Domain module for SQL Schema Generator.

Contains the in-memory schema model and the algorithms that only depend on
it, separated from dialects, statement text and code rendering.
"""

from .models import (
    Column,
    ColumnOptions,
    ColumnType,
    Constraint,
    ConstraintType,
    Database,
    ForeignKeyAction,
    ForeignKeyReference,
    Table,
    is_sql_identifier,
)

from .dependency_sorter import (
    DependencySorter,
    find_reference_cycles,
    sort_tables,
)

from .naming import (
    to_pascal_case,
    pluralize,
    clean_field_name,
    constraint_method_name,
    record_class_name,
    factory_class_name,
)

__all__ = [
    # Core models
    'Column',
    'ColumnOptions',
    'ColumnType',
    'Constraint',
    'ConstraintType',
    'Database',
    'ForeignKeyAction',
    'ForeignKeyReference',
    'Table',
    'is_sql_identifier',

    # Ordering
    'DependencySorter',
    'find_reference_cycles',
    'sort_tables',

    # Naming
    'to_pascal_case',
    'pluralize',
    'clean_field_name',
    'constraint_method_name',
    'record_class_name',
    'factory_class_name',
]
