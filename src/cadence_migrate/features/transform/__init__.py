"""Syntax transformation feature."""

from cadence_migrate.features.transform.transformer import SyntaxTransformer

__all__ = ["SyntaxTransformer"]
