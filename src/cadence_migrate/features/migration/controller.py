"""Migration controller.

Orchestrates scan -> transform -> validate -> metadata update over a
template corpus. Per-item failures are isolated: they are logged, sent to
Sentry and recorded in the run's collector, and the original template is
kept.
"""
import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence

import sentry_sdk

from cadence_migrate.constants import ErrorCategory
from cadence_migrate.core.logging import get_logger
from cadence_migrate.features.migration.collector import MigrationErrorCollector
from cadence_migrate.features.migration.migrator import TemplateMigrator
from cadence_migrate.features.rules.registry import RuleRegistry
from cadence_migrate.models.migration import (
    MigrationReport,
    MigrationRunResult,
    MigrationStatistics,
    Template,
    TemplateMigrationResult,
)

logger = get_logger(__name__)


class MigrationController:
    """Runs the migration pipeline over a corpus.

    Args:
        registry: Rule registry; validated before every run
        collector: Run-scoped collector (a fresh one is created when omitted)
        max_workers: Templates migrated concurrently (1 = sequential)
    """

    def __init__(
        self,
        registry: Optional[RuleRegistry] = None,
        collector: Optional[MigrationErrorCollector] = None,
        max_workers: int = 1,
    ):
        self.registry = registry or RuleRegistry()
        self.collector = collector or MigrationErrorCollector()
        self.migrator = TemplateMigrator(self.registry)
        self.max_workers = max(1, max_workers)
        self._cancelled = threading.Event()
        self._started_at: Optional[float] = None
        self._finished_at: Optional[float] = None

    def cancel(self) -> None:
        """Stop scheduling further templates."""
        self._cancelled.set()
        logger.info("migration_cancel_requested")

    # -------------------------------------------------------------------------
    # Corpus processing
    # -------------------------------------------------------------------------

    def process_all_templates(self, corpus: Sequence[Template]) -> MigrationRunResult:
        """Migrate every template that needs it.

        Args:
            corpus: Templates in store order

        Returns:
            MigrationRunResult whose migrated_templates follow corpus order;
            templates not processed because of cancellation are carried over
            unchanged

        Raises:
            RuleValidationError: If the registry's rule set is invalid
        """
        config = self.registry.ensure_valid()
        self.collector.clear_all()
        self._cancelled.clear()
        self._started_at = time.time()
        self._finished_at = None

        logger.info(
            "migration_started",
            templates=len(corpus),
            target_version=config.target_cadence_version,
            rules=len(config.transformation_rules),
            workers=self.max_workers,
        )

        with sentry_sdk.start_span(op="migration", name="process_all_templates") as span:
            results = self._run(corpus)
            span.set_data("templates", len(results))

        by_index = {index: result for index, result in results}
        migrated_templates = [by_index[i].migrated_template if i in by_index else t for i, t in enumerate(corpus)]
        ordered = [by_index[i] for i in sorted(by_index)]

        backups: List[Template] = []
        if config.backup_originals:
            backups = [r.original_template for r in ordered if r.needed_migration and r.success]

        statistics = _build_statistics(ordered)
        self._finished_at = time.time()

        run_result = MigrationRunResult(
            success=statistics.failed_migrations == 0 and not self.collector.has_errors(),
            migrated_templates=migrated_templates,
            results=ordered,
            statistics=statistics,
            errors=self.collector.get_errors(),
            warnings=self.collector.get_warnings(),
            cancelled=self._cancelled.is_set(),
            backups=backups,
        )

        logger.info(
            "migration_completed",
            success=run_result.success,
            processed=statistics.total_files_processed,
            successful=statistics.successful_migrations,
            failed=statistics.failed_migrations,
            skipped=statistics.skipped_templates,
            transformations=statistics.transformations_applied,
            cancelled=run_result.cancelled,
            backups=len(run_result.backups),
        )
        return run_result

    def process_single_template(self, corpus: Sequence[Template], template_id: str) -> Optional[TemplateMigrationResult]:
        """Migrate the template with ``template_id``; None when it is not in the corpus."""
        for template in corpus:
            if template.id == template_id:
                return self._process_template(template)
        logger.error("template_not_found", template_id=template_id)
        return None

    @staticmethod
    def get_templates_by_category(corpus: Sequence[Template], category: str) -> List[Template]:
        return [t for t in corpus if t.category == category]

    def _run(self, corpus: Sequence[Template]) -> List[tuple]:
        if self.max_workers == 1:
            results = []
            for index, template in enumerate(corpus):
                if self._cancelled.is_set():
                    break
                results.append((index, self._process_template(template)))
            return results

        results = []
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = {}
            for index, template in enumerate(corpus):
                if self._cancelled.is_set():
                    break
                futures[executor.submit(self._process_template, template)] = index
            for future in as_completed(futures):
                results.append((futures[future], future.result()))
        return results

    def _process_template(self, template: Template) -> TemplateMigrationResult:
        name = f"template:{template.id}"
        try:
            result = self.migrator.migrate_template_with_result(template)
        except Exception as e:
            logger.error("template_migration_failed", template_id=template.id, error=str(e), exc_info=True)
            sentry_sdk.capture_exception(e)
            self.collector.handle_transformation_error(name, "transform_all", e)
            return TemplateMigrationResult(
                template_id=template.id,
                original_template=template,
                migrated_template=template,
                needed_migration=True,
                success=False,
                error=str(e),
            )

        if not result.success and result.validation_result is not None:
            self.collector.handle_validation_error(name, result.validation_result.errors)
        if result.validation_result is not None:
            for warning in result.validation_result.warnings:
                self.collector.create_warning(name, warning)
        for note in result.notes:
            self.collector.create_warning(name, note.message, line=note.line)
        return result

    # -------------------------------------------------------------------------
    # Reporting
    # -------------------------------------------------------------------------

    def generate_report(self, run_result: MigrationRunResult) -> MigrationReport:
        """Summarize a finished run with recommendations."""
        duration_ms = 0
        if self._started_at is not None:
            duration_ms = int(((self._finished_at or time.time()) - self._started_at) * 1000)

        report = MigrationReport(
            timestamp=datetime.now(timezone.utc).isoformat(),
            duration_ms=duration_ms,
            result=run_result,
            summary=_generate_summary(run_result),
            recommendations=_generate_recommendations(run_result),
        )
        logger.info(
            "migration_report_generated",
            duration_ms=duration_ms,
            success=run_result.success,
            processed=run_result.statistics.total_files_processed,
        )
        return report

    def generate_migration_report(self, run_result: MigrationRunResult, generated_at: Optional[str] = None) -> str:
        """Render a markdown report of a run."""
        stats = run_result.statistics
        lines = [
            "# Template Migration Report",
            "",
            f"**Generated:** {generated_at or datetime.now(timezone.utc).isoformat()}",
            "",
            "## Summary",
            f"- Total templates processed: {stats.total_files_processed}",
            f"- Already modern (skipped): {stats.skipped_templates}",
            f"- Successful migrations: {stats.successful_migrations}",
            f"- Failed migrations: {stats.failed_migrations}",
            f"- Total transformations applied: {stats.transformations_applied}",
            f"- Lines of code migrated: {stats.lines_of_code_migrated}",
            "",
            "## Migration Results",
            "",
        ]

        for result in run_result.results:
            if not result.needed_migration:
                continue
            template = result.original_template
            lines.append(f"### {template.name} ({template.id})")
            lines.append(f"- **Category:** {template.category}")
            lines.append(f"- **Status:** {'Success' if result.success else 'Failed'}")
            lines.append(f"- **Transformations:** {', '.join(result.transformations_applied) or 'None'}")
            if result.error:
                lines.append(f"- **Errors:** {result.error}")
            if result.validation_result is not None and result.validation_result.warnings:
                lines.append(f"- **Warnings:** {', '.join(result.validation_result.warnings)}")
            lines.append("")

        if run_result.errors:
            lines.append("## Errors")
            lines.extend(f"- {e.file}: {e.message}" for e in run_result.errors)
            lines.append("")

        if run_result.warnings:
            lines.append("## Warnings")
            lines.extend(f"- {w.file}: {w.message}" for w in run_result.warnings)
            lines.append("")

        return "\n".join(lines)


# =============================================================================
# Helpers
# =============================================================================


def _build_statistics(results: List[TemplateMigrationResult]) -> MigrationStatistics:
    stats = MigrationStatistics(total_files_processed=len(results))
    for result in results:
        if not result.needed_migration:
            stats.skipped_templates += 1
        elif result.success:
            stats.successful_migrations += 1
            stats.transformations_applied += result.substitutions
            stats.lines_of_code_migrated += len(result.migrated_template.code.split("\n"))
        else:
            stats.failed_migrations += 1
    return stats


def _generate_summary(run_result: MigrationRunResult) -> str:
    stats = run_result.statistics
    if run_result.success:
        return (
            f"Migration completed successfully. Processed {stats.total_files_processed} templates, "
            f"applied {stats.transformations_applied} transformations, "
            f"migrated {stats.lines_of_code_migrated} lines of code."
        )
    return (
        f"Migration completed with {len(run_result.errors)} errors and {len(run_result.warnings)} warnings. "
        f"{stats.successful_migrations} templates migrated successfully, "
        f"{stats.failed_migrations} templates failed."
    )


def _generate_recommendations(run_result: MigrationRunResult) -> List[str]:
    recommendations = []
    errors_by_category: Dict[str, int] = {}
    for error in run_result.errors:
        errors_by_category[error.category] = errors_by_category.get(error.category, 0) + 1

    if run_result.errors:
        recommendations.append("Review and fix migration errors before proceeding")
        syntax = errors_by_category.get(ErrorCategory.SYNTAX, 0)
        if syntax:
            recommendations.append(f"{syntax} syntax errors found - check for complex patterns requiring manual intervention")
        transformation = errors_by_category.get(ErrorCategory.TRANSFORMATION, 0)
        if transformation:
            recommendations.append(f"{transformation} transformation errors found - review transformation rules")
        validation = errors_by_category.get(ErrorCategory.VALIDATION, 0)
        if validation:
            recommendations.append(f"{validation} templates failed validation after rewriting - migrate them manually")

    if run_result.warnings:
        recommendations.append("Review migration warnings for potential improvements")

    if run_result.statistics.total_files_processed == 0:
        recommendations.append("No templates were processed - verify the template source")

    return recommendations
