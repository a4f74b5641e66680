# ocifsync/utils/config_loader.py
"""
OCIF Configuration Loader with Pydantic Validation

This module loads and validates configuration from a YAML file using Pydantic
for strong type checking and validation. It ensures that all required
configuration values are present and properly formatted before the
application attempts to use them.

Key Design Decisions:
- Pydantic models mirror the exact structure of config.yaml for maintainability
- Validation occurs at load time to fail fast if config is malformed
- Log levels support both string names ("DEBUG") and numeric values (10)
- The template directory defaults to the templates bundled with the package
"""

import logging
from pathlib import Path
from typing import Any, Literal, cast

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    HttpUrl,
    ValidationError,
    field_validator,
    model_validator,
)

logger: logging.Logger = logging.getLogger(__name__)

# =============================================================================
# Type Aliases for Clarity
# =============================================================================

# Valid logging level names recognized by Python's logging module
LogLevelName = Literal['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']

# =============================================================================
# Configuration Models (Schema)
# =============================================================================


class OcifSection(BaseModel):
    """
    Schema for the 'ocif' section of config.yaml.

    Identifies the OCIF SOAP endpoint. Transport security (mutual TLS,
    certificates) is handled outside this package.
    """

    model_config = ConfigDict(extra='forbid')
    endpoint_url: HttpUrl = Field(
        ...,
        description='Full URL to the OCIF SOAP endpoint.',
    )

    soap_action_prefix: str = Field(
        default='',
        description='Prepended to the operation name to build the SOAPAction header.',
    )


class ClientSection(BaseModel):
    """
    Schema for the 'client' section of config.yaml.

    Controls HTTP client behavior for the OCIF transport collaborator.
    """

    model_config = ConfigDict(extra='forbid')
    request_timeout: tuple[float, float] = Field(
        default=(10.0, 30.0),
        description='HTTP timeouts in seconds: [connect_timeout, read_timeout].',
    )

    verify_ssl: bool = Field(
        default=True,
        description='Whether to verify SSL certificates. Should ALWAYS be True in production.',
    )

    @field_validator('request_timeout')
    @classmethod
    def validate_timeout_values(cls, v: tuple[float, float]) -> tuple[float, float]:
        """Validate that both timeouts are positive and connect does not exceed read."""
        connect_timeout: float
        read_timeout: float
        connect_timeout, read_timeout = v

        if connect_timeout <= 0:
            raise ValueError(f'Connect timeout must be positive, got {connect_timeout}')

        if read_timeout <= 0:
            raise ValueError(f'Read timeout must be positive, got {read_timeout}')

        if connect_timeout > read_timeout:
            raise ValueError(
                f'Connect timeout ({connect_timeout}s) should not exceed '
                f'read timeout ({read_timeout}s)'
            )

        return v


class TemplatesSection(BaseModel):
    """
    Schema for the 'templates' section of config.yaml.

    Points the template cache at the directory holding the SOAP XML
    templates and fixes the encoding used to read them.
    """

    model_config = ConfigDict(extra='forbid')
    directory: Path | None = Field(
        default=None,
        description='Directory containing SOAP XML templates. '
        'If omitted, the templates bundled with the package are used.',
    )

    encoding: str = Field(
        default='utf8',
        min_length=1,
        description='Encoding used to read template files.',
    )

    def resolve_directory(self) -> Path:
        """Return the configured directory, or the bundled templates directory."""
        if self.directory is not None:
            return self.directory
        return Path(__file__).resolve().parent.parent / 'templates'


class LoggingSection(BaseModel):
    """
    Schema for the 'logging' section of config.yaml.

    Supports console logging (always enabled) and optional file logging.
    """

    model_config = ConfigDict(extra='forbid')
    console_level: LogLevelName | int = Field(
        default='INFO',
        description='Logging level for console output, as a name or an integer.',
    )

    file_path: Path | None = Field(
        default=None,
        description='Optional path to a log file. If None, file logging is disabled.',
    )

    file_level: LogLevelName | int | None = Field(
        default=None,
        description='Logging level for file output. Only relevant if file_path is provided.',
    )

    @field_validator('console_level', 'file_level')
    @classmethod
    def validate_log_level(
        cls, v: LogLevelName | int | None
    ) -> LogLevelName | int | None:
        """Validate that numeric log levels are standard logging levels."""
        if v is None:
            return v

        if isinstance(v, str):
            return v

        valid_levels: set[int] = {10, 20, 30, 40, 50}
        if v not in valid_levels:
            raise ValueError(
                f'Numeric log level must be one of {valid_levels}, got {v}'
            )
        return v

    @model_validator(mode='after')
    def validate_file_logging_consistency(self) -> 'LoggingSection':
        """
        Ensure that file_path and file_level are configured together.

        A path without a level defaults to DEBUG; a level without a path is an error.
        """
        has_file_path: bool = self.file_path is not None
        has_file_level: bool = self.file_level is not None

        if has_file_path and not has_file_level:
            self.file_level = 'DEBUG'
            logger.warning(
                'file_path provided without file_level. Defaulting to DEBUG for file logging.'
            )

        if has_file_level and not has_file_path:
            raise ValueError(
                'file_level is specified but file_path is missing. '
                'Both must be provided to enable file logging.'
            )

        return self

    def get_console_level_int(self) -> int:
        """Convert console_level to the integer value used by Python's logging module."""
        if isinstance(self.console_level, int):
            return self.console_level
        return cast(int, getattr(logging, self.console_level))

    def get_file_level_int(self) -> int | None:
        """Convert file_level to an integer, or None if file logging is disabled."""
        if self.file_level is None:
            return None
        if isinstance(self.file_level, int):
            return self.file_level
        return cast(int, getattr(logging, self.file_level))


class OcifSyncConfig(BaseModel):
    """
    Root configuration model.

    Usage:
        config = load_config()
        endpoint = config.ocif.endpoint_url
        templates_dir = config.templates.resolve_directory()
    """

    model_config = ConfigDict(extra='forbid')
    ocif: OcifSection
    client: ClientSection = Field(default_factory=ClientSection)
    templates: TemplatesSection = Field(default_factory=TemplatesSection)
    logging: LoggingSection = Field(default_factory=LoggingSection)


# =============================================================================
# Loader Logic
# =============================================================================


def _get_default_config_path() -> Path:
    """
    Resolve the absolute path to the default config.yaml file.

    Directory Structure:
        src/
        └── ocifsync/
            ├── config/
            │   └── config.yaml       <-- Target file
            └── utils/
                └── config_loader.py  <-- This file

    Returns:
        Absolute path to config.yaml
    """
    current_file: Path = Path(__file__).resolve()
    package_root: Path = current_file.parent.parent
    return package_root / 'config' / 'config.yaml'


def load_config(config_path: Path | str | None = None) -> OcifSyncConfig:
    """
    Load, parse, and validate the configuration file.

    Args:
        config_path: Optional explicit path to a config file. If None, uses
                     the default location determined by
                     _get_default_config_path().

    Returns:
        A fully validated OcifSyncConfig object.

    Raises:
        FileNotFoundError: The specified config file does not exist on disk.
        yaml.YAMLError: The file exists but contains invalid YAML syntax.
        ValidationError: The YAML is valid but the configuration is invalid.

    Example:
        config = load_config()
        test_config = load_config('/tmp/test_config.yaml')
    """
    if config_path:
        path_obj: Path = Path(config_path)
    else:
        path_obj = _get_default_config_path()

    logger.debug(f'Resolving configuration from: {path_obj}')

    if not path_obj.exists():
        error_msg: str = f'Configuration file not found at: {path_obj}'
        logger.error(error_msg)
        raise FileNotFoundError(error_msg)

    try:
        with open(path_obj, encoding='utf-8') as f:
            raw_config: dict[str, Any] = yaml.safe_load(f)
    except yaml.YAMLError as e:
        logger.error(f'Failed to parse YAML config file: {e}')
        raise

    try:
        config = OcifSyncConfig(**raw_config)
        logger.debug('Configuration validated successfully.')
        return config
    except ValidationError as e:
        logger.error(f'Configuration validation failed: {e}')
        raise
