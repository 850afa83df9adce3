"""Exception hierarchy for cadence-migrate."""
from typing import List


class CadenceMigrateError(Exception):
    """Base class for all cadence-migrate errors."""
    pass


class ConfigurationError(CadenceMigrateError):
    """Raised when a settings file cannot be read or fails validation."""

    def __init__(self, config_path: str, message: str):
        self.config_path = config_path
        self.message = message
        super().__init__(f"Invalid configuration '{config_path}': {message}")


class RuleValidationError(CadenceMigrateError):
    """Raised when the transformation rule set is unusable.

    A run cannot produce trustworthy output with a broken rule set, so this is
    raised before any scanning or migration starts.
    """

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__("Rule set validation failed: " + "; ".join(self.errors))


class ScanError(CadenceMigrateError):
    """Raised when a scan root is missing or is not a directory."""
    pass
