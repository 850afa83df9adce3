"""Template migration and run-scoped error collection."""
from cadence_migrate.features.migration.collector import MigrationErrorCollector
from cadence_migrate.features.migration.controller import MigrationController
from cadence_migrate.features.migration.migrator import TRANSFORMATION_NAMES, TemplateMigrator

__all__ = ["MigrationController", "MigrationErrorCollector", "TRANSFORMATION_NAMES", "TemplateMigrator"]
