"""Exceptions and warnings raised by celltype_replicability."""

from __future__ import annotations


class ShapeMismatchError(ValueError):
    """Raised when matrix dimensions, label sets or label vector lengths disagree."""
    pass


class AmbiguousIdentifierError(ValueError):
    """Raised when a cluster name cannot be built or split unambiguously."""
    pass


class EmptyGeneSetWarning(UserWarning):
    """None of the requested genes are present in the expression matrix."""
    pass


class ConstantCellTypeWarning(UserWarning):
    """Cell types with identical scores across all gene sets were dropped."""
    pass


__all__ = [
    "ShapeMismatchError",
    "AmbiguousIdentifierError",
    "EmptyGeneSetWarning",
    "ConstantCellTypeWarning",
]
