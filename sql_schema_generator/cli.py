import argparse
import logging
import sys
from typing import List, Optional

import psycopg2

from sql_schema_generator.codegen import FactoryRenderer, RecordRenderer
from sql_schema_generator.colored_logging import (
    setup_colored_logging,
    log_success,
    log_progress,
    log_section,
)
from sql_schema_generator.config import GeneratorConfig, load_config, load_schema
from sql_schema_generator.ddl import provision
from sql_schema_generator.exceptions import SchemaGeneratorError
from sql_schema_generator.execution import Psycopg2Executor
from sql_schema_generator.generator import generate, write_generation_result

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sql-schema-generator",
        description="Generate an ordered DDL script and Python data access code from a table schema.",
    )
    parser.add_argument(
        "-c",
        "--config",
        help="Path to the YAML configuration file.",
    )
    parser.add_argument(
        "-s",
        "--schema",
        help="Schema to generate as 'module:attribute'. Overrides config file setting.",
    )
    parser.add_argument(
        "-o",
        "--output-dir",
        help="Directory to write the script and code to. Overrides config file setting.",
    )
    parser.add_argument(
        "--dialect",
        help="Target SQL dialect (default: postgresql).",
    )
    # store_const with a None default so only given flags override the config file
    parser.add_argument(
        "--execute",
        action="store_const",
        const=True,
        help="Provision the DDL script to the configured database.",
    )
    parser.add_argument(
        "--strict-cycles",
        action="store_const",
        const=True,
        help="Fail when tables reference each other in a cycle.",
    )
    parser.add_argument(
        "--no-records",
        dest="generate_records",
        action="store_const",
        const=False,
        help="Do not generate record dataclasses.",
    )
    parser.add_argument(
        "--no-factories",
        dest="generate_factories",
        action="store_const",
        const=False,
        help="Do not generate data factory classes.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose DEBUG logging.",
    )
    parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable colored output (useful for CI/CD environments).",
    )
    return parser


def config_overrides(args: argparse.Namespace) -> argparse.Namespace:
    """The parsed arguments that map onto configuration keys."""
    keys = ("schema", "output_dir", "dialect", "execute", "strict_cycles", "generate_records", "generate_factories")
    return argparse.Namespace(**{key: getattr(args, key) for key in keys})


def run(config: GeneratorConfig) -> None:
    """Generate, write and optionally provision the configured schema."""
    log_section(logger, "Schema")
    log_progress(logger, f"Loading schema {config.schema_ref}...")
    tables, factory_methods = load_schema(config.schema_ref)
    log_success(logger, f"Loaded {len(tables)} tables.")

    renderers = []
    if config.generate_records:
        renderers.append(RecordRenderer())
    if config.generate_factories:
        renderers.append(FactoryRenderer(methods=factory_methods, records_module=config.records_module))

    log_section(logger, "Generation")
    log_progress(logger, f"Generating {config.dialect} DDL and {len(renderers)} code artifacts...")
    result = generate(tables, dialect=config.dialect, renderers=renderers, strict_cycles=config.strict_cycles)
    written = write_generation_result(result, config.output_dir)
    for path in written:
        logger.info(f"Generated file: {path}")
    log_success(logger, f"Wrote {len(written)} files to {config.output_dir}")

    if config.execute:
        log_section(logger, "Provisioning")
        log_progress(logger, f"Provisioning {len(result.statements)} statements to {config.database.dbname}...")
        executor = Psycopg2Executor.connect(**config.database.connect_kwargs())
        try:
            count = provision(executor, result.statements)
        finally:
            executor.close()
        log_success(logger, f"Executed {count} statements.")


def main(argv: Optional[List[str]] = None):
    args = build_parser().parse_args(argv)

    # --- Logging Setup ---
    setup_colored_logging(level=logging.DEBUG if args.verbose else logging.INFO, use_colors=not args.no_color)
    if args.verbose:
        logger.debug("Verbose mode enabled. DEBUG level logging activated.")

    try:
        log_progress(logger, "Loading configuration...")
        config = load_config(args.config, config_overrides(args))
        log_success(logger, "Configuration loaded and validated successfully.")
        logger.debug(f"Effective configuration: {config.model_dump(exclude={'database'})}")

        run(config)
        log_success(logger, "Schema generation completed successfully.")

    # --- Error Handling ---
    except SchemaGeneratorError as e:
        logger.error(f"{type(e).__name__}: {e}", exc_info=args.verbose)
        sys.exit(1)
    except psycopg2.Error as e:
        logger.error(f"Database Error: {e}", exc_info=args.verbose)
        sys.exit(1)
    except OSError as e:
        logger.error(f"File Error: {e}", exc_info=args.verbose)
        sys.exit(1)


# --- Script Entry Point ---
if __name__ == "__main__":
    main()
