"""Core infrastructure for cadence-migrate."""

from cadence_migrate.core.config import (
    CONFIG_ENV_VAR,
    configure_logging_from_args,
    create_argument_parser,
    resolve_settings,
    settings_rules,
    validate_config_file,
)
from cadence_migrate.core.exceptions import (
    CadenceMigrateError,
    ConfigurationError,
    RuleValidationError,
    ScanError,
)
from cadence_migrate.core.logging import (
    bind_run_context,
    clear_run_context,
    configure_logging,
    get_logger,
)
from cadence_migrate.core.sentry import init_sentry

__all__ = [
    # Exceptions
    "CadenceMigrateError",
    "ConfigurationError",
    "RuleValidationError",
    "ScanError",
    # Config
    "CONFIG_ENV_VAR",
    "configure_logging_from_args",
    "create_argument_parser",
    "resolve_settings",
    "settings_rules",
    "validate_config_file",
    # Logging
    "bind_run_context",
    "clear_run_context",
    "configure_logging",
    "get_logger",
    # Sentry
    "init_sentry",
]
