"""
Generation entry point for SQL Schema Generator.

Runs the whole pipeline for a set of tables: order them, synthesize the DDL
script and render the client artifacts. Writing to disk is optional and kept
apart from the pure steps.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Union

from sql_schema_generator.codegen import FactoryMethod, FactoryRenderer, RecordRenderer, Renderer
from sql_schema_generator.ddl import DDLSynthesizer, Dialect, get_dialect, render_script
from sql_schema_generator.domain.models import Database, Table
from sql_schema_generator.exceptions import CodeGenerationError

logger = logging.getLogger(__name__)

SCRIPT_FILE_NAME = "schema.sql"


@dataclass
class GenerationResult:
    """Everything produced for one schema."""

    statements: List[str]
    script: str
    artifacts: Dict[str, str] = field(default_factory=dict)


def default_renderers(factory_methods: Optional[Sequence[FactoryMethod]] = None) -> List[Renderer]:
    """Record and factory renderers, with optional custom factory methods."""
    return [RecordRenderer(), FactoryRenderer(methods=factory_methods)]


def _as_table_list(tables: Union[Database, Iterable[Table]]) -> List[Table]:
    if isinstance(tables, Database):
        return list(tables.tables)
    return list(tables)


def generate(
    tables: Union[Database, Iterable[Table]],
    output_target: Optional[Union[str, Path]] = None,
    dialect: Union[str, Dialect] = "postgresql",
    renderers: Optional[Sequence[Renderer]] = None,
    strict_cycles: bool = False,
) -> GenerationResult:
    """
    Generate the DDL script and client artifacts of a schema.

    Args:
        tables: The schema, as a Database or any iterable of tables
        output_target: Directory to write the result to (nothing is written if None)
        dialect: Dialect name or instance
        renderers: Artifact renderers (records and factories if None; pass [] for DDL only)
        strict_cycles: Fail on reference cycles instead of deferring them

    Returns:
        GenerationResult with the statements, the script text and the artifacts

    Raises:
        SchemaGeneratorError: Any error of the ordering, DDL or rendering steps
    """
    tables = _as_table_list(tables)
    if isinstance(dialect, str):
        dialect = get_dialect(dialect)
    if renderers is None:
        renderers = default_renderers()

    statements = DDLSynthesizer(dialect, strict_cycles=strict_cycles).synthesize(tables)
    result = GenerationResult(statements=statements, script=render_script(statements))

    for renderer in renderers:
        file_name = renderer.file_name
        if file_name == SCRIPT_FILE_NAME or file_name in result.artifacts:
            raise CodeGenerationError(
                f"More than one artifact would be written to '{file_name}'",
                component=type(renderer).__name__
            )
        logger.debug(f"Rendering {file_name} with {type(renderer).__name__}")
        result.artifacts[file_name] = renderer.render(tables)

    logger.info(
        f"Generated {len(statements)} DDL statements and {len(result.artifacts)} artifacts "
        f"for {len(tables)} tables ({dialect.name})"
    )

    if output_target is not None:
        write_generation_result(result, output_target)
    return result


def write_generation_result(result: GenerationResult, output_dir: Union[str, Path]) -> List[Path]:
    """
    Write the script and every artifact into a directory.

    Args:
        result: Result of `generate`
        output_dir: Target directory, created if missing

    Returns:
        Paths of the written files
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    files = {SCRIPT_FILE_NAME: result.script}
    files.update(result.artifacts)

    written = []
    for file_name, content in files.items():
        path = output_dir / file_name
        with open(path, "w", encoding="utf-8") as f:
            f.write(content)
        logger.debug(f"Generated file: {path}")
        written.append(path)
    return written
