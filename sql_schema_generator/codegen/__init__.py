"""
Client code generation for SQL Schema Generator.

Renderers turn table metadata into Python source text: record dataclasses
and DataFactory subclasses.
"""

from .base import Renderer, format_python_code_using_black, map_python_type, setup_jinja_env
from .records import RecordRenderer
from .factories import FactoryMethod, FactoryRenderer, MethodParameter, QueryMethod

__all__ = [
    'Renderer',
    'RecordRenderer',
    'FactoryRenderer',
    'FactoryMethod',
    'MethodParameter',
    'QueryMethod',
    'format_python_code_using_black',
    'map_python_type',
    'setup_jinja_env',
]
