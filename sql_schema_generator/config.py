"""
Configuration for the SQL Schema Generator CLI.

Settings come from an optional YAML file and are overridden by explicitly
given command line arguments. The merged result is validated with pydantic.
"""

import importlib
import logging
from argparse import Namespace
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from sql_schema_generator.domain.models import Database, Table
from sql_schema_generator.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# Module attribute holding custom factory methods of a schema module
FACTORY_METHODS_ATTRIBUTE = "FACTORY_METHODS"


class DatabaseSettings(BaseModel):
    """Connection settings of the database the script is provisioned to."""

    host: str = Field(default="localhost", min_length=1, description="Database host address.")
    port: int = Field(default=5432, description="Database port number.")
    dbname: str = Field(..., min_length=1, description="Database name.")
    user: Optional[str] = Field(default=None, description="Database user.")
    password: Optional[str] = Field(default=None, description="Database password.")

    @field_validator("port", mode="before")
    @classmethod
    def validate_port(cls, v: Any) -> int:
        """Ensure port is a number or string representation of one, and within range."""
        if isinstance(v, bool):
            raise ValueError("Port must be an integer")
        if isinstance(v, str):
            if not v.strip().isdigit():
                raise ValueError(f"Port must be a number or string containing only digits, got '{v}'")
            v = int(v)
        if not isinstance(v, int):
            raise ValueError(f"Port must be an integer or string containing digits, got {type(v).__name__}")
        if not 0 < v <= 65535:
            raise ValueError(f"Port must be between 1 and 65535, got {v}")
        return v

    def connect_kwargs(self) -> Dict[str, Any]:
        """Keyword arguments for psycopg2.connect."""
        return self.model_dump(exclude_none=True)


class GeneratorConfig(BaseModel):
    """Validated generator settings."""

    schema_ref: str = Field(
        ...,
        alias="schema",
        description="Schema to generate, as 'module:attribute'.",
    )
    output_dir: str = Field(
        "./generated",
        min_length=1,
        description="Directory for the DDL script and generated code.",
    )
    dialect: str = Field(default="postgresql", description="Target SQL dialect.")
    strict_cycles: bool = Field(
        default=False, description="Fail on reference cycles instead of deferring them."
    )
    generate_records: bool = Field(default=True, description="Generate record dataclasses.")
    generate_factories: bool = Field(default=True, description="Generate data factory classes.")
    records_module: str = Field(
        default="records", description="Module name the generated factories import records from."
    )
    execute: bool = Field(
        default=False, description="Provision the DDL script to the configured database."
    )
    database: Optional[DatabaseSettings] = Field(
        default=None, description="Connection settings, required when execute is set."
    )

    model_config = ConfigDict(
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("schema_ref")
    @classmethod
    def check_schema_reference(cls, v: str) -> str:
        """Validate the 'module:attribute' form."""
        module_name, _, attribute = v.partition(":")
        if not module_name or not attribute:
            raise ValueError(f"'{v}' must have the form 'module:attribute'")
        if not all(part.isidentifier() for part in module_name.split(".") + attribute.split(".")):
            raise ValueError(f"'{v}' does not name a Python module attribute")
        return v

    @field_validator("dialect")
    @classmethod
    def check_dialect(cls, v: str) -> str:
        return v.strip().lower()

    @field_validator("records_module")
    @classmethod
    def check_records_module(cls, v: str) -> str:
        if not all(part.isidentifier() for part in v.split(".")):
            raise ValueError(f"'{v}' is not a valid module name")
        return v

    @model_validator(mode="after")
    def check_execute_settings(self) -> "GeneratorConfig":
        """Provisioning needs connection settings."""
        if self.execute and self.database is None:
            raise ValueError("'execute' requires a 'database' section with connection settings.")
        return self


def validate_and_parse_config(config_dict: Dict[str, Any], config_file: Optional[str] = None) -> GeneratorConfig:
    """
    Validates a raw configuration dictionary against GeneratorConfig.

    Raises:
        ConfigurationError: Listing every validation error location
    """
    try:
        validated_config = GeneratorConfig.model_validate(config_dict)
        logger.debug("Configuration dictionary parsed and validated successfully.")
        return validated_config
    except ValidationError as e:
        problems = []
        for error in e.errors():
            loc_parts = [str(loc_item) for loc_item in error.get("loc", ())]
            loc_str = " -> ".join(loc_parts) if loc_parts else "Model Level"
            problems.append(f"{loc_str}: {error.get('msg', 'Unknown validation error')}")
        raise ConfigurationError(
            "Configuration validation failed:\n  - " + "\n  - ".join(problems),
            config_file=config_file
        ) from e


def load_config(config_path: Optional[str], cli_args: Optional[Namespace] = None) -> GeneratorConfig:
    """
    Loads configuration from a YAML file, merges it with CLI arguments,
    and validates the result.

    Only CLI arguments that were actually given (not None) override the file.

    Raises:
        ConfigurationError: If the file cannot be read or the result is invalid
    """
    raw_config: Dict[str, Any] = {}

    # 1. Load from YAML file if path is provided
    if config_path:
        config_file = Path(config_path)
        if not config_file.is_file():
            raise ConfigurationError(f"Config file not found at {config_path}", config_file=config_path)
        try:
            with open(config_file, "r", encoding="utf-8") as f:
                yaml_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Error parsing YAML file: {e}", config_file=config_path) from e

        if isinstance(yaml_config, dict):
            raw_config.update(yaml_config)
            logger.debug(f"Loaded configuration from {config_path}")
        elif yaml_config is not None:
            raise ConfigurationError(
                "Config file content must be a mapping of settings", config_file=config_path
            )

    # 2. Override with CLI arguments (only those explicitly provided)
    overridden_keys = set()
    cli_dict = vars(cli_args) if cli_args is not None else {}
    for key, value in cli_dict.items():
        if key == "schema_ref":
            key = "schema"
        if value is not None and (key in GeneratorConfig.model_fields or key == "schema"):
            raw_config[key] = value
            overridden_keys.add(key)
    if overridden_keys:
        logger.debug(f"Overridden config keys from CLI arguments: {sorted(overridden_keys)}")

    return validate_and_parse_config(raw_config, config_file=config_path)


def load_schema(reference: str) -> Tuple[List[Table], List[Any]]:
    """
    Import the schema named by a 'module:attribute' reference.

    The attribute may be a Database, a list of tables, or a callable returning
    either. Custom factory methods are read from the module's
    FACTORY_METHODS attribute when present.

    Returns:
        Tuple of the tables and the custom factory methods

    Raises:
        ConfigurationError: If the reference cannot be resolved to tables
    """
    module_name, _, attribute = reference.partition(":")
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ConfigurationError(f"Cannot import schema module '{module_name}': {e}") from e

    target: Any = module
    for part in attribute.split("."):
        try:
            target = getattr(target, part)
        except AttributeError:
            raise ConfigurationError(
                f"Module '{module_name}' has no attribute '{attribute}'"
            ) from None

    if callable(target) and not isinstance(target, (Database, Table)):
        target = target()

    if isinstance(target, Database):
        tables = list(target.tables)
    elif isinstance(target, (list, tuple)) and all(isinstance(t, Table) for t in target):
        tables = list(target)
    else:
        raise ConfigurationError(
            f"'{reference}' resolved to {type(target).__name__}, expected a Database or a list of tables"
        )

    factory_methods = list(getattr(module, FACTORY_METHODS_ATTRIBUTE, None) or [])
    logger.debug(f"Loaded {len(tables)} tables and {len(factory_methods)} custom methods from '{reference}'")
    return tables, factory_methods
