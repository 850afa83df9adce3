"""Command-line entry point for cadence-migrate.

Subcommands:
    scan       Scan a source tree and write markdown/JSON/CSV reports
    migrate    Migrate a template corpus
    validate   Validate one Cadence file
    transform  Rewrite one Cadence file
"""
import json
import sys
import uuid
from pathlib import Path
from typing import Any, List, Optional

import yaml

from cadence_migrate.constants import ParallelProcessing, ReportDefaults, ScanDefaults
from cadence_migrate.core.config import configure_logging_from_args, create_argument_parser, resolve_settings, settings_rules
from cadence_migrate.core.exceptions import CadenceMigrateError
from cadence_migrate.core.logging import bind_run_context, clear_run_context, get_logger
from cadence_migrate.core.sentry import init_sentry
from cadence_migrate.features.migration.controller import MigrationController
from cadence_migrate.features.reporting.reporter import save_report
from cadence_migrate.features.rules.registry import RuleRegistry
from cadence_migrate.features.scan.scanner import create_general_scanner, create_production_scanner
from cadence_migrate.features.transform.transformer import SyntaxTransformer
from cadence_migrate.features.validation.validator import CodeValidator
from cadence_migrate.models.config import MigrationSettings
from cadence_migrate.models.migration import Template

logger = get_logger("cli")

EXIT_OK = 0
EXIT_FAILURES = 1
EXIT_FATAL = 2

REPORT_BASENAME = "legacy-patterns-report"
BACKUP_INFIX = ".orig"


def build_registry(settings: MigrationSettings) -> RuleRegistry:
    """Create a validated registry from resolved settings.

    Raises:
        RuleValidationError: If the resulting rule set is invalid
    """
    registry = RuleRegistry(
        target_cadence_version=settings.target_cadence_version,
        transformation_rules=settings_rules(settings),
        preserve_comments=settings.preserve_comments,
        validate_after_migration=settings.validate_after_migration,
        backup_originals=settings.backup_originals,
    )
    registry.ensure_valid()
    return registry


def load_templates(path: str) -> List[Template]:
    """Read a template corpus from a JSON or YAML file.

    The file holds either a list of templates or a mapping with a
    ``templates`` list.

    Raises:
        CadenceMigrateError: If the file cannot be read or has the wrong shape
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f) if path.endswith(".json") else yaml.safe_load(f)
    except (OSError, ValueError, yaml.YAMLError) as e:
        raise CadenceMigrateError(f"Cannot read templates from '{path}': {e}") from e

    if isinstance(data, dict):
        data = data.get("templates")
    if not isinstance(data, list):
        raise CadenceMigrateError(f"Template file '{path}' must contain a list of templates")

    try:
        return [Template.from_dict(item) for item in data]
    except (KeyError, TypeError, ValueError) as e:
        raise CadenceMigrateError(f"Malformed template in '{path}': {e}") from e


# =============================================================================
# Subcommands
# =============================================================================


def run_scan(args: Any, settings: MigrationSettings) -> int:
    registry = build_registry(settings)
    factory = create_production_scanner if args.production else create_general_scanner
    scanner = factory(
        extensions=ScanDefaults.FILE_EXTENSIONS + settings.scan.extensions,
        exclude_dirs=ScanDefaults.EXCLUDE_DIRS + settings.scan.exclude_dirs,
        registry=registry,
        max_workers=ParallelProcessing.get_optimal_workers(args.workers or settings.workers),
    )
    result = scanner.scan(args.root)

    formats = list(ReportDefaults.FORMAT_EXTENSIONS) if args.format == "all" else [args.format]
    if args.output_dir:
        for output_format in formats:
            path = Path(args.output_dir) / f"{REPORT_BASENAME}{ReportDefaults.FORMAT_EXTENSIONS[output_format]}"
            save_report(
                result,
                str(path),
                output_format=output_format,
                include_context=not args.no_context,
                group_by_file=args.group_by_file,
            )
            print(f"Report written: {path}")

    print(result.summary)
    return EXIT_FAILURES if result.critical_count > 0 else EXIT_OK


def run_migrate(args: Any, settings: MigrationSettings) -> int:
    if args.no_backup:
        settings = settings.model_copy(update={"backup_originals": False})
    registry = build_registry(settings)
    corpus = load_templates(args.templates)
    controller = MigrationController(
        registry=registry,
        max_workers=ParallelProcessing.get_optimal_workers(args.workers or settings.workers),
    )
    run_result = controller.process_all_templates(corpus)
    report = controller.generate_report(run_result)

    if args.output:
        _write_templates(args.output, run_result.migrated_templates)
        print(f"Migrated templates written: {args.output}")

        if run_result.backups:
            backup_path = backup_path_for(args.output)
            _write_templates(backup_path, run_result.backups)
            print(f"Original templates written: {backup_path}")

    if args.report:
        Path(args.report).parent.mkdir(parents=True, exist_ok=True)
        with open(args.report, "w", encoding="utf-8") as f:
            f.write(controller.generate_migration_report(run_result))
        print(f"Migration report written: {args.report}")

    print(report.summary)
    for recommendation in report.recommendations:
        print(f"- {recommendation}")
    return EXIT_OK if run_result.statistics.failed_migrations == 0 else EXIT_FAILURES


def run_validate(args: Any, settings: MigrationSettings) -> int:
    code = _read_source(args.file)
    validator = CodeValidator(strict_mode=args.strict)
    report = validator.generate_validation_report(code)
    validation = report["validation"]

    print(f"{args.file}: {'VALID' if validation['is_valid'] else 'INVALID'} (compliance score {report['compliance_score']})")
    if report["rejection"]["should_reject"]:
        print(f"Rejected: {report['rejection']['reason']}")
    _print_section("Errors", validation["errors"])
    _print_section("Warnings", validation["warnings"])
    _print_section("Suggestions", report["suggestions"])
    return EXIT_OK if validation["is_valid"] else EXIT_FAILURES


def run_transform(args: Any, settings: MigrationSettings) -> int:
    code = _read_source(args.file)
    transformer = SyntaxTransformer(build_registry(settings))
    result = transformer.transform(code)

    for note in result.notes:
        print(f"{args.file}:{note.line}: {note.message}", file=sys.stderr)

    if args.in_place:
        if result.code != code:
            with open(args.file, "w", encoding="utf-8") as f:
                f.write(result.code)
        print(f"{args.file}: {result.substitutions} substitutions", file=sys.stderr)
    else:
        sys.stdout.write(result.code)
    return EXIT_OK


COMMANDS = {
    "scan": run_scan,
    "migrate": run_migrate,
    "validate": run_validate,
    "transform": run_transform,
}


def backup_path_for(output: str) -> str:
    """Path for the originals of rewritten templates, e.g. out.json -> out.orig.json."""
    path = Path(output)
    return str(path.with_name(f"{path.stem}{BACKUP_INFIX}{path.suffix}"))


def _write_templates(path: str, templates: List[Template]) -> None:
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump([t.to_dict() for t in templates], f, indent=2)


def _read_source(path: str) -> str:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise CadenceMigrateError(f"Cannot read '{path}': {e}") from e


def _print_section(title: str, items: List[str]) -> None:
    if not items:
        return
    print(f"{title}:")
    for item in items:
        print(f"  {item}")


# =============================================================================
# Entry point
# =============================================================================


def main(argv: Optional[List[str]] = None) -> int:
    """Run the command line.

    Args:
        argv: Arguments without the program name (defaults to sys.argv[1:])

    Returns:
        Process exit code
    """
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    configure_logging_from_args(args)
    init_sentry()
    bind_run_context(run_id=uuid.uuid4().hex[:12], command=args.command)

    try:
        settings = resolve_settings(args.config)
        return COMMANDS[args.command](args, settings)
    except CadenceMigrateError as e:
        logger.error("command_failed", command=args.command, error=str(e))
        print(f"error: {e}", file=sys.stderr)
        return EXIT_FATAL
    finally:
        clear_run_context()


if __name__ == "__main__":
    sys.exit(main())
