"""
Record type generation.

Renders one dataclass per table describing the shape of its rows. Fields
the database can fill in (nullable, unique, defaulted and serial columns) are
Optional and default to None.
"""

import logging
from typing import Any, Dict, Iterable, List

from sql_schema_generator.codegen.base import field_context, render_template, setup_jinja_env
from sql_schema_generator.domain.models import Table
from sql_schema_generator.domain.naming import record_class_name

logger = logging.getLogger(__name__)


class RecordRenderer:
    """Renders the record dataclasses of a set of tables."""

    file_name = "records.py"
    template_name = "records.py.j2"

    def __init__(self):
        self.env = setup_jinja_env()

    def record_context(self, table: Table) -> Dict[str, Any]:
        """Template context for one record class."""
        fields = [field_context(column) for column in table.columns]
        return {
            'table_name': table.name,
            'class_name': record_class_name(table.name),
            'fields': fields,
        }

    def render(self, tables: Iterable[Table]) -> str:
        """
        Render the records module.

        Args:
            tables: Tables to describe, rendered in the given order

        Returns:
            Formatted Python source

        Raises:
            DialectMappingError: If a column type has no Python mapping
            CodeGenerationError: If rendering or formatting fails
        """
        records: List[Dict[str, Any]] = [self.record_context(table) for table in tables]
        logger.debug(f"Rendering {len(records)} record classes")
        return render_template(self.env, self.template_name, {'records': records}, component="records")
