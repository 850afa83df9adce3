"""Pydantic models for the optional YAML settings file."""
from typing import List

from pydantic import BaseModel, Field, field_validator

from cadence_migrate.constants import MigrationDefaults, RuleCategory


class RuleSettings(BaseModel):
    """A caller-supplied transformation rule."""

    pattern: str
    replacement: str
    description: str
    category: str

    @field_validator("category")
    @classmethod
    def validate_category(cls, v: str) -> str:
        if v not in RuleCategory.ALL:
            raise ValueError(f"category must be one of {', '.join(RuleCategory.ALL)}")
        return v


class ScanSettings(BaseModel):
    """Additions to the scanner's file selection."""

    extensions: List[str] = Field(default_factory=list)
    exclude_dirs: List[str] = Field(default_factory=list)

    @field_validator("extensions")
    @classmethod
    def validate_extensions(cls, v: List[str]) -> List[str]:
        for ext in v:
            if not ext.startswith("."):
                raise ValueError(f"extension '{ext}' must start with '.'")
        return v


class MigrationSettings(BaseModel):
    """Top-level structure of a .cadence-migrate.yaml file."""

    target_cadence_version: str = MigrationDefaults.TARGET_VERSION
    preserve_comments: bool = True
    validate_after_migration: bool = True
    backup_originals: bool = True
    transformation_rules: List[RuleSettings] = Field(default_factory=list)
    scan: ScanSettings = Field(default_factory=ScanSettings)
    workers: int = Field(default=1, ge=1)
