"""Data models for cadence-migrate."""

from cadence_migrate.models.config import MigrationSettings, RuleSettings, ScanSettings
from cadence_migrate.models.migration import (
    CodeLocation,
    ConfigValidationResult,
    EventIssue,
    FindingLocation,
    FunctionIssue,
    LegacyPattern,
    MigrationConfig,
    MigrationError,
    MigrationReport,
    MigrationRunResult,
    MigrationStatistics,
    MigrationWarning,
    RejectionResult,
    ScanResult,
    StructureIssue,
    SyntaxIssue,
    SyntaxValidationResult,
    Template,
    TemplateMigrationResult,
    TransformationNote,
    TransformationResult,
    TransformationRule,
    ValidationResult,
)

__all__ = [
    # Settings
    "MigrationSettings",
    "RuleSettings",
    "ScanSettings",
    # Rules
    "TransformationRule",
    "MigrationConfig",
    "ConfigValidationResult",
    # Validation
    "CodeLocation",
    "SyntaxIssue",
    "StructureIssue",
    "FunctionIssue",
    "EventIssue",
    "SyntaxValidationResult",
    "ValidationResult",
    "RejectionResult",
    # Scanning
    "FindingLocation",
    "LegacyPattern",
    "ScanResult",
    # Migration
    "Template",
    "TransformationNote",
    "TransformationResult",
    "MigrationError",
    "MigrationWarning",
    "MigrationStatistics",
    "TemplateMigrationResult",
    "MigrationRunResult",
    "MigrationReport",
]
