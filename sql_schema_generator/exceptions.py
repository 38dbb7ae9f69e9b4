"""
Custom exception hierarchy for SQL Schema Generator.

Every error raised by the generator carries a human readable message, the
context it was raised in and a few recovery suggestions, so schema authors can
fix their definitions without reading the generator source.
"""

from typing import Dict, Any, Optional, List


class SchemaGeneratorError(Exception):
    """
    Base exception for all SQL Schema Generator errors.

    Provides rich context and error recovery guidance.
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
        error_code: Optional[str] = None
    ):
        """
        Initialize the exception with context and recovery suggestions.

        Args:
            message: Human-readable error message
            context: Additional context about where/why the error occurred
            suggestions: List of potential solutions or next steps
            error_code: Unique error code for programmatic handling
        """
        super().__init__(message)
        self.message = message
        self.context = dict(context or {})
        self.suggestions = suggestions or []
        self.error_code = error_code

    def __str__(self) -> str:
        """Return formatted error message with context."""
        lines = [self.message]

        if self.error_code:
            lines.append(f"Error Code: {self.error_code}")

        if self.context:
            lines.append("Context:")
            for key, value in self.context.items():
                lines.append(f"  {key}: {value}")

        if self.suggestions:
            lines.append("Suggestions:")
            for suggestion in self.suggestions:
                lines.append(f"  • {suggestion}")

        return "\n".join(lines)


class ConfigurationError(SchemaGeneratorError):
    """Raised when the generator configuration is invalid or missing."""

    def __init__(self, message: str, config_file: str = None, **kwargs):
        context = dict(kwargs.get('context') or {})
        if config_file:
            context['config_file'] = config_file

        suggestions = kwargs.get('suggestions', [])
        if not suggestions:
            suggestions = [
                "Check the configuration file syntax",
                "Verify the schema reference has the form 'module:attribute'",
                "Check the documentation for configuration examples"
            ]

        super().__init__(
            message,
            context=context,
            suggestions=suggestions,
            error_code="CONFIG_ERROR"
        )


class SchemaDefinitionError(SchemaGeneratorError):
    """Raised when a table definition breaks a schema model invariant."""

    def __init__(self, message: str, table: str = None, column: str = None, **kwargs):
        context = dict(kwargs.get('context') or {})
        if table:
            context['table'] = table
        if column:
            context['column'] = column

        suggestions = kwargs.get('suggestions', [])
        if not suggestions:
            suggestions = [
                "Check for duplicated column or table names",
                "Make sure every constraint only names columns of its own table",
                "Define at most one primary key per table"
            ]

        super().__init__(
            message,
            context=context,
            suggestions=suggestions,
            error_code="SCHEMA_DEFINITION_ERROR"
        )


class DialectMappingError(SchemaGeneratorError):
    """Raised when a column type or reference action has no dialect mapping."""

    def __init__(self, message: str, value: Any = None, dialect: str = None, **kwargs):
        context = dict(kwargs.get('context') or {})
        if value is not None:
            context['value'] = value
        if dialect:
            context['dialect'] = dialect

        suggestions = kwargs.get('suggestions', [])
        if not suggestions:
            suggestions = [
                "Use one of the column types defined by ColumnType",
                "Add the missing entry to the dialect mapping table"
            ]

        super().__init__(
            message,
            context=context,
            suggestions=suggestions,
            error_code="DIALECT_MAPPING_ERROR"
        )


class DependencyResolutionError(SchemaGeneratorError):
    """Raised when the table creation order cannot be computed."""

    def __init__(self, message: str, tables: List[str] = None, **kwargs):
        context = dict(kwargs.get('context') or {})
        if tables:
            context['tables'] = ", ".join(tables)

        suggestions = kwargs.get('suggestions', [])
        if not suggestions:
            suggestions = [
                "Check the foreign keys between the listed tables",
                "Verify every referenced table is part of the schema"
            ]

        super().__init__(
            message,
            context=context,
            suggestions=suggestions,
            error_code=kwargs.get('error_code', "DEPENDENCY_RESOLUTION_ERROR")
        )


class DependencyCycleError(DependencyResolutionError):
    """Raised in strict mode when tables reference each other in a cycle."""

    def __init__(self, message: str, cycles: List[List[str]] = None, **kwargs):
        context = dict(kwargs.get('context') or {})
        cycles = cycles or []
        for index, cycle in enumerate(cycles, start=1):
            context[f'cycle_{index}'] = " -> ".join(cycle + cycle[:1])
        self.cycles = cycles

        super().__init__(
            message,
            context=context,
            suggestions=kwargs.get('suggestions') or [
                "Disable strict cycle checking to let the synthesizer defer the foreign keys",
                "Break the cycle with a nullable reference column"
            ],
            error_code="DEPENDENCY_CYCLE_ERROR"
        )


class StatementBuildError(SchemaGeneratorError):
    """Raised when a parameterized statement cannot be built safely."""

    def __init__(self, message: str, table: str = None, statement: str = None, **kwargs):
        context = dict(kwargs.get('context') or {})
        if table:
            context['table'] = table
        if statement:
            context['statement'] = statement

        suggestions = kwargs.get('suggestions', [])
        if not suggestions:
            suggestions = [
                "Pass MATCH_ALL explicitly to affect every row",
                "Check that table and column names are plain SQL identifiers"
            ]

        super().__init__(
            message,
            context=context,
            suggestions=suggestions,
            error_code="STATEMENT_BUILD_ERROR"
        )


class QueryParameterError(SchemaGeneratorError):
    """Raised when named parameters cannot be bound to a statement."""

    def __init__(self, message: str, parameter: str = None, **kwargs):
        context = dict(kwargs.get('context') or {})
        if parameter:
            context['parameter'] = parameter

        super().__init__(
            message,
            context=context,
            suggestions=kwargs.get('suggestions') or [
                "Make sure every :name placeholder has a value in the parameter map"
            ],
            error_code="QUERY_PARAMETER_ERROR"
        )


class CodeGenerationError(SchemaGeneratorError):
    """Raised when rendering a client artifact fails."""

    def __init__(self, message: str, component: str = None, table: str = None, **kwargs):
        context = dict(kwargs.get('context') or {})
        if component:
            context['component'] = component  # e.g., 'records', 'factories'
        if table:
            context['table'] = table

        suggestions = kwargs.get('suggestions', [])
        if not suggestions:
            suggestions = [
                "Check the table schema for names that are Python keywords",
                "Try generating one component at a time"
            ]

        super().__init__(
            message,
            context=context,
            suggestions=suggestions,
            error_code="CODE_GENERATION_ERROR"
        )
