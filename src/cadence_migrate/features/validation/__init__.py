"""Static validation of Cadence code."""
from cadence_migrate.features.validation.realtime import RealtimeValidator
from cadence_migrate.features.validation.syntax import SyntaxValidator, is_valid_event_type
from cadence_migrate.features.validation.validator import CodeValidator

__all__ = ["CodeValidator", "RealtimeValidator", "SyntaxValidator", "is_valid_event_type"]
