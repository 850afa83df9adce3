"""cadence-migrate: detect, rewrite and validate legacy Cadence syntax."""

__version__ = "0.1.0"
