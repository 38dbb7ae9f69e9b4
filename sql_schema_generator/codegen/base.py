"""
Shared rendering utilities for client code generation.

Renderers are pure: they turn table metadata into source text and never
touch the file system. Writing the text out is the caller's job.
"""

import logging
import textwrap
from pathlib import Path
from typing import Any, Dict, Iterable, Protocol

import black
from jinja2 import Environment, FileSystemLoader, StrictUndefined

from sql_schema_generator.domain.models import Column, ColumnType, Table
from sql_schema_generator.domain.naming import p, pluralize, clean_field_name
from sql_schema_generator.exceptions import CodeGenerationError, DialectMappingError

logger = logging.getLogger(__name__)

# Define the path to the templates directory relative to the package
TEMPLATE_DIR = Path(__file__).parent.parent / "templates"

BLACK_FORMATTER_MODE = black.FileMode(line_length=120)

PYTHON_TYPES: Dict[ColumnType, str] = {
    ColumnType.STRING: "str",
    ColumnType.NUMBER: "int",
    ColumnType.DECIMAL: "Decimal",
    ColumnType.GUID: "UUID",
    ColumnType.DATE_TIME: "datetime",
    ColumnType.BOOLEAN: "bool",
    ColumnType.AUTO_INCREMENT: "int",
}


class Renderer(Protocol):
    """Turns table metadata into the text of one artifact."""

    file_name: str

    def render(self, tables: Iterable[Table]) -> str:
        ...


def map_python_type(column_type: ColumnType) -> str:
    """
    Map a column type to the Python type used in generated code.

    Raises:
        DialectMappingError: If the type has no mapping
    """
    try:
        return PYTHON_TYPES[column_type]
    except (KeyError, TypeError):
        raise DialectMappingError(
            f"Undefined column type {column_type!r}", value=column_type, dialect="python"
        ) from None


def is_optional_column(column: Column) -> bool:
    """
    Whether a record may leave the column unset.

    True for columns the database fills in or accepts as NULL.
    """
    return (
        column.nullable
        or column.unique
        or column.default is not None
        or column.column_type == ColumnType.AUTO_INCREMENT
    )


def field_context(column: Column) -> Dict[str, Any]:
    """Template context describing one column as a Python field."""
    return {
        'column': column.name,
        'name': clean_field_name(column.name),
        'type': map_python_type(column.column_type),
        'optional': is_optional_column(column),
    }


def python_string(value: str) -> str:
    """Render a (possibly multi-line) string as a Python literal."""
    return repr(textwrap.dedent(value).strip())


def setup_jinja_env() -> Environment:
    """Sets up and returns the Jinja2 environment."""
    env = Environment(
        loader=FileSystemLoader(TEMPLATE_DIR),
        autoescape=False,  # Generates Python source
        trim_blocks=True,  # Remove first newline after a block tag
        lstrip_blocks=True,  # Strip leading whitespace from lines with block tags
        keep_trailing_newline=True,
        undefined=StrictUndefined,
    )
    env.filters["repr"] = repr
    env.filters["pystring"] = python_string
    env.filters["pluralize"] = pluralize
    env.globals["p"] = p
    return env


def format_python_code_using_black(code_string: str, component: str = None) -> str:
    """
    Formats the given Python code using Black.

    Raises:
        CodeGenerationError: If Black rejects the code
    """
    try:
        return black.format_str(code_string, mode=BLACK_FORMATTER_MODE)
    except black.NothingChanged:
        return code_string
    except Exception as e:
        raise CodeGenerationError(
            f"Generated {component or 'Python'} code is not valid Python: {e}",
            component=component
        ) from e


def render_template(env: Environment, template_name: str, context: Dict[str, Any], component: str) -> str:
    """Render a template to formatted Python source."""
    try:
        template = env.get_template(template_name)
        rendered_content = template.render(context)
    except Exception as e:
        logger.error(f"Error rendering template '{template_name}': {e}")
        raise CodeGenerationError(
            f"Error rendering template '{template_name}': {e}", component=component
        ) from e

    logger.debug(f"Formatting generated {component} code using Black")
    return format_python_code_using_black(rendered_content, component=component)
