"""
Naming convention utilities for SQL Schema Generator.

Converts table and column names into the identifiers used by the generated
Python record and factory classes.
"""

import keyword
import re

import inflect


# Inflect engine, also exposed to templates as `p`
p = inflect.engine()


def to_pascal_case(name: str) -> str:
    """
    Convert snake_case to PascalCase.

    Unlike model names in ORMs, table names are kept as written (no
    singularization), so `sys_users` becomes `SysUsers`.

    Example:
        >>> to_pascal_case("sys_user_role")
        'SysUserRole'
    """
    if not isinstance(name, str):
        raise TypeError(f"Expected string, got {type(name).__name__}")
    return "".join(word[:1].upper() + word[1:] for word in name.split("_") if word)


def pluralize(word: str) -> str:
    """Pluralize a word, falling back to appending 's'."""
    if not isinstance(word, str) or not word:
        return ""
    plural = p.plural(word)
    return plural if plural else word + "s"


def clean_field_name(name: str) -> str:
    """
    Ensure a column name is usable as a Python attribute or parameter name.

    Example:
        >>> clean_field_name("class")
        'class_'
    """
    name = re.sub(r"[^a-zA-Z0-9_]", "", name)
    if name and not name[0].isalpha() and name[0] != "_":
        name = "_" + name
    if keyword.iskeyword(name):
        name += "_"
    return name if name else "_field"


def constraint_method_name(column_names) -> str:
    """
    Name of the generated lookup method for a constraint.

    Example:
        >>> constraint_method_name(["user_id", "role_id"])
        'get_by_user_id_and_role_id'
    """
    return "get_by_" + "_and_".join(column_names)


def record_class_name(table_name: str) -> str:
    return to_pascal_case(table_name)


def factory_class_name(table_name: str) -> str:
    return f"{to_pascal_case(table_name)}Factory"
