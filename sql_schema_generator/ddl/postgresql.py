"""PostgreSQL dialect."""

from sql_schema_generator.ddl.dialect import Dialect
from sql_schema_generator.domain.models import ColumnType, ForeignKeyAction


class PostgreSQLDialect(Dialect):
    """Type and action names for PostgreSQL."""

    name = "postgresql"

    COLUMN_TYPES = {
        ColumnType.STRING: "varchar",
        ColumnType.NUMBER: "integer",
        ColumnType.GUID: "uuid",
        ColumnType.DECIMAL: "decimal",
        ColumnType.DATE_TIME: "timestamp",
        ColumnType.BOOLEAN: "boolean",
        ColumnType.AUTO_INCREMENT: "serial",
    }

    REFERENCE_ACTIONS = {
        ForeignKeyAction.CASCADE: "CASCADE",
        ForeignKeyAction.SET_NULL: "SET NULL",
    }
