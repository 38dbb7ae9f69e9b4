"""
Data factory generation.

Renders one DataFactory subclass per table with:

- `insert`: inserts a row and returns it as a record
- `get_all`: returns every row of the table
- one `get_by_<columns>` lookup per constraint; primary key and unique
  lookups return a single record, foreign key lookups return a list
- any custom methods registered with `FactoryRenderer.add_method`
"""

import keyword
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

from sql_schema_generator.codegen.base import field_context, map_python_type, render_template, setup_jinja_env
from sql_schema_generator.domain.models import ColumnType, ConstraintType, Table
from sql_schema_generator.domain.naming import (
    constraint_method_name,
    factory_class_name,
    record_class_name,
)
from sql_schema_generator.exceptions import CodeGenerationError
from sql_schema_generator.execution import TOKEN_PATTERN, DataFactory

logger = logging.getLogger(__name__)

# Members of DataFactory and names every generated factory defines itself
RESERVED_METHOD_NAMES = frozenset(
    {name for name in dir(DataFactory) if not name.startswith("_")}
    | {"executor", "insert", "get_all", "table_name"}
)

# Local names of the generated method bodies
RESERVED_PARAMETER_NAMES = frozenset({"self", "query", "params", "row"})


class QueryMethod(Enum):
    """DataFactory method a custom factory method runs its query with."""

    EXECUTE_NON_QUERY = "execute_non_query"
    EXECUTE_QUERY = "execute_query"
    EXECUTE_QUERY_SINGLE = "execute_query_single"


@dataclass
class MethodParameter:
    """A named parameter of a custom factory method."""

    name: str
    type: Union[ColumnType, str] = "Any"

    @property
    def python_type(self) -> str:
        if isinstance(self.type, ColumnType):
            return map_python_type(self.type)
        return self.type


@dataclass
class FactoryMethod:
    """
    Description of a hand-written query exposed as a factory method.

    Attributes:
        table_name: Table whose factory gets the method
        method_name: Python name of the method
        query: SQL text using `:name` placeholders for the parameters
        query_method: How the query is executed
        parameters: Method parameters, in signature order
        return_table: Table whose record type is returned (defaults to table_name)
        description: Docstring of the generated method
    """

    table_name: Union[str, Table]
    method_name: str
    query: str
    query_method: QueryMethod = QueryMethod.EXECUTE_QUERY
    parameters: List[Union[MethodParameter, str]] = field(default_factory=list)
    return_table: Optional[Union[str, Table]] = None
    description: Optional[str] = None

    def __post_init__(self):
        if isinstance(self.table_name, Table):
            self.table_name = self.table_name.name
        if isinstance(self.return_table, Table):
            self.return_table = self.return_table.name
        if self.return_table is None:
            self.return_table = self.table_name
        self.query_method = QueryMethod(self.query_method)
        self.parameters = [
            MethodParameter(param) if isinstance(param, str) else param
            for param in self.parameters
        ]

        for name in [self.method_name] + [param.name for param in self.parameters]:
            if not name.isidentifier() or keyword.iskeyword(name):
                raise CodeGenerationError(
                    f"'{name}' is not a valid Python name",
                    component="factories", table=self.table_name
                )
        for param in self.parameters:
            if param.name in RESERVED_PARAMETER_NAMES:
                raise CodeGenerationError(
                    f"Parameter name '{param.name}' of '{self.method_name}' is reserved",
                    component="factories", table=self.table_name
                )

        placeholders = {
            match.group("name") for match in TOKEN_PATTERN.finditer(self.query)
            if match.group("name")
        }
        missing = placeholders - {param.name for param in self.parameters}
        if missing:
            raise CodeGenerationError(
                f"Query of '{self.method_name}' uses undeclared parameters: "
                f"{', '.join(sorted(missing))}",
                component="factories", table=self.table_name
            )


class FactoryRenderer:
    """Renders the data factory classes of a set of tables."""

    file_name = "factories.py"
    template_name = "factories.py.j2"

    def __init__(self, methods: Optional[Sequence[FactoryMethod]] = None, records_module: str = "records"):
        """
        Initialize the renderer.

        Args:
            methods: Custom factory methods to generate
            records_module: Module the generated code imports the records from
        """
        self.env = setup_jinja_env()
        self.records_module = records_module
        self.methods: List[FactoryMethod] = []
        if methods:
            self.add_method(methods)

    def add_method(self, method: Union[FactoryMethod, Sequence[FactoryMethod]]) -> "FactoryRenderer":
        """Register one or more custom factory methods."""
        if isinstance(method, FactoryMethod):
            method = [method]
        for item in method:
            self.methods.append(item)
        return self

    def constraint_methods(self, table: Table) -> List[Dict[str, Any]]:
        """Lookup methods for the constraints of a table, in definition order."""
        record = record_class_name(table.name)
        methods = []
        seen = set()
        for constraint in table.constraints:
            name = constraint_method_name(constraint.column_names)
            if name in seen:
                logger.debug(f"Skipping duplicate lookup '{name}' on table '{table.name}'")
                continue
            seen.add(name)
            single = constraint.constraint_type in (ConstraintType.PRIMARY_KEY, ConstraintType.UNIQUE)
            methods.append({
                'name': name,
                'single': single,
                'return_type': f"Optional[{record}]" if single else f"List[{record}]",
                'parameters': [field_context(column) for column in constraint.columns],
                'columns': constraint.column_names,
            })
        return methods

    def custom_methods(self, table: Table, known_tables: Iterable[str], taken: Iterable[str]) -> List[Dict[str, Any]]:
        """Custom methods registered for a table."""
        known_tables = set(known_tables)
        taken = set(taken) | RESERVED_METHOD_NAMES
        methods = []
        for method in self.methods:
            if method.table_name != table.name:
                continue
            if method.return_table not in known_tables:
                raise CodeGenerationError(
                    f"Method '{method.method_name}' returns records of unknown table '{method.return_table}'",
                    component="factories", table=table.name
                )
            if method.method_name in taken:
                raise CodeGenerationError(
                    f"Method '{method.method_name}' is already defined on the factory of '{table.name}'",
                    component="factories", table=table.name
                )
            taken.add(method.method_name)

            record = record_class_name(method.return_table)
            if method.query_method == QueryMethod.EXECUTE_NON_QUERY:
                return_type = "int"
            elif method.query_method == QueryMethod.EXECUTE_QUERY:
                return_type = f"List[{record}]"
            else:
                return_type = f"Optional[{record}]"

            methods.append({
                'name': method.method_name,
                'query': method.query,
                'query_method': method.query_method.value,
                'record': record,
                'return_type': return_type,
                'description': method.description or f"The {method.method_name} method.",
                'parameters': [
                    {'name': param.name, 'type': param.python_type} for param in method.parameters
                ],
            })
        return methods

    def factory_context(self, table: Table, known_tables: Iterable[str]) -> Dict[str, Any]:
        """Template context for one factory class."""
        constraint_methods = self.constraint_methods(table)
        return {
            'table_name': table.name,
            'class_name': factory_class_name(table.name),
            'record': record_class_name(table.name),
            'fields': [field_context(column) for column in table.columns],
            'constraint_methods': constraint_methods,
            'custom_methods': self.custom_methods(
                table, known_tables, [method['name'] for method in constraint_methods]
            ),
        }

    def render(self, tables: Iterable[Table]) -> str:
        """
        Render the factories module.

        Raises:
            DialectMappingError: If a column type has no Python mapping
            CodeGenerationError: If a custom method is invalid or rendering fails
        """
        tables = list(tables)
        table_names = [table.name for table in tables]

        unknown = sorted({m.table_name for m in self.methods} - set(table_names))
        if unknown:
            raise CodeGenerationError(
                f"Custom methods registered for unknown tables: {', '.join(unknown)}",
                component="factories"
            )

        factories = [self.factory_context(table, table_names) for table in tables]
        logger.debug(f"Rendering {len(factories)} factory classes ({len(self.methods)} custom methods)")
        context = {
            'records_module': self.records_module,
            'record_classes': [record_class_name(name) for name in table_names],
            'factories': factories,
        }
        return render_template(self.env, self.template_name, context, component="factories")
