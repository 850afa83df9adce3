"""Configuration management for cadence-migrate."""

import argparse
import os
from typing import List, Optional

import yaml
from pydantic import ValidationError

from cadence_migrate.core.exceptions import ConfigurationError
from cadence_migrate.core.logging import configure_logging
from cadence_migrate.models.config import MigrationSettings
from cadence_migrate.models.migration import TransformationRule

CONFIG_ENV_VAR = "CADENCE_MIGRATE_CONFIG"


def validate_config_file(config_path: str) -> MigrationSettings:
    """Load and validate a YAML settings file.

    Args:
        config_path: Path to the settings file

    Returns:
        Validated MigrationSettings model

    Raises:
        ConfigurationError: If the file is missing, unreadable or invalid
    """
    if not os.path.exists(config_path):
        raise ConfigurationError(config_path, "File does not exist")

    if not os.path.isfile(config_path):
        raise ConfigurationError(config_path, "Path is not a file")

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            config_data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(config_path, f"YAML parsing failed: {e}") from e
    except OSError as e:
        raise ConfigurationError(config_path, f"Failed to read file: {e}") from e

    if config_data is None:
        raise ConfigurationError(config_path, "Config file is empty")

    if not isinstance(config_data, dict):
        raise ConfigurationError(config_path, "Config must be a YAML dictionary")

    try:
        return MigrationSettings(**config_data)
    except ValidationError as e:
        raise ConfigurationError(config_path, f"Validation failed: {e}") from e


def settings_rules(settings: MigrationSettings) -> List[TransformationRule]:
    """Convert the settings' extra rules to TransformationRule objects."""
    return [
        TransformationRule(
            pattern=r.pattern,
            replacement=r.replacement,
            description=r.description,
            category=r.category,
        )
        for r in settings.transformation_rules
    ]


def resolve_settings(config_path: Optional[str]) -> MigrationSettings:
    """Resolve settings with precedence: --config flag > CADENCE_MIGRATE_CONFIG env > defaults.

    Args:
        config_path: Value of the --config flag, if given

    Returns:
        Validated settings (defaults when no file is configured)

    Raises:
        ConfigurationError: If the configured file is invalid
    """
    path = config_path or os.environ.get(CONFIG_ENV_VAR)
    if not path:
        return MigrationSettings()
    return validate_config_file(path)


def create_argument_parser() -> argparse.ArgumentParser:
    """Create the command-line parser with its subcommands.

    Returns:
        Configured ArgumentParser instance.
    """
    parser = argparse.ArgumentParser(
        prog="cadence-migrate",
        description="Detect, rewrite and validate legacy Cadence syntax",
        epilog=f"""
environment variables:
  {CONFIG_ENV_VAR}  Path to a YAML settings file (overridden by --config)
  LOG_LEVEL               Logging level: DEBUG, INFO, WARNING, ERROR (default: WARNING)
  LOG_FILE                Path to log file (logs to stderr by default)
  SENTRY_DSN              Enables error reporting to Sentry

exit codes:
  0  no critical findings / all items valid
  1  critical findings remain / some items failed
  2  fatal configuration or input error
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--config", type=str, metavar="PATH", help="Path to a YAML settings file")
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        metavar="LEVEL",
        help="Logging level. Can also be set via LOG_LEVEL env var. Default: WARNING",
    )
    parser.add_argument(
        "--log-file",
        type=str,
        metavar="PATH",
        default=None,
        help="Path to log file (logs to stderr by default). Can also be set via LOG_FILE env var.",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    scan = subparsers.add_parser("scan", help="Scan a source tree for legacy patterns")
    scan.add_argument("root", help="Directory to scan")
    scan.add_argument("--production", action="store_true", help="Skip tests/docs and discard matches in comments or strings")
    scan.add_argument("--output-dir", metavar="DIR", default=None, help="Directory for report files")
    scan.add_argument(
        "--format",
        choices=["markdown", "json", "csv", "all"],
        default="all",
        help="Report format to write (default: all)",
    )
    scan.add_argument("--group-by-file", action="store_true", help="Group markdown findings by file")
    scan.add_argument("--no-context", action="store_true", help="Omit context windows from markdown")
    scan.add_argument("--workers", type=int, default=None, metavar="N", help="Parallel file workers")

    migrate = subparsers.add_parser("migrate", help="Migrate a JSON/YAML template corpus")
    migrate.add_argument("templates", help="File holding a list of templates")
    migrate.add_argument("--output", metavar="FILE", default=None, help="Where to write the migrated corpus (JSON)")
    migrate.add_argument("--report", metavar="FILE", default=None, help="Where to write the markdown migration report")
    migrate.add_argument("--workers", type=int, default=None, metavar="N", help="Parallel template workers")
    migrate.add_argument(
        "--no-backup", action="store_true", help="Do not write the originals of rewritten templates next to --output"
    )

    validate = subparsers.add_parser("validate", help="Validate a single Cadence file")
    validate.add_argument("file", help="Cadence source file")
    validate.add_argument("--strict", action="store_true", help="Treat warnings as failures")

    transform = subparsers.add_parser("transform", help="Rewrite a single Cadence file to modern syntax")
    transform.add_argument("file", help="Cadence source file")
    transform.add_argument("--in-place", action="store_true", help="Overwrite the file instead of printing")

    return parser


def configure_logging_from_args(args: argparse.Namespace) -> None:
    """Configure logging from flags and environment.

    Precedence: --log-level/--log-file flags > env vars > defaults

    Args:
        args: Parsed command-line arguments.
    """
    log_level = args.log_level or os.environ.get("LOG_LEVEL", "WARNING")
    log_file = args.log_file or os.environ.get("LOG_FILE")
    configure_logging(log_level=log_level, log_file=log_file)
