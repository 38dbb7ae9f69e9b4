"""
DDL synthesis and SQL dialects.

Dialects are looked up by name so the configured target engine can be
swapped without touching the synthesizer.
"""

from typing import Dict, Type

from sql_schema_generator.exceptions import ConfigurationError

from .dialect import Dialect
from .postgresql import PostgreSQLDialect
from .synthesizer import DDLSynthesizer, provision, render_script, synthesize


_DIALECTS: Dict[str, Type[Dialect]] = {
    PostgreSQLDialect.name: PostgreSQLDialect,
}


def register_dialect(name: str, dialect_class: Type[Dialect]) -> None:
    """Make a dialect available under the given name."""
    _DIALECTS[name.lower()] = dialect_class


def get_dialect(name: str) -> Dialect:
    """
    Instantiate a registered dialect.

    Raises:
        ConfigurationError: If no dialect is registered under that name
    """
    try:
        return _DIALECTS[name.lower()]()
    except KeyError:
        raise ConfigurationError(
            f"Unsupported dialect '{name}'. Supported dialects are: {', '.join(sorted(_DIALECTS))}"
        ) from None


__all__ = [
    'Dialect',
    'PostgreSQLDialect',
    'DDLSynthesizer',
    'get_dialect',
    'provision',
    'register_dialect',
    'render_script',
    'synthesize',
]
