"""Indicator (design) matrices mapping samples to the group they belong to."""

from __future__ import annotations

from typing import Sequence

import pandas as pd

from .errors import ShapeMismatchError


def design_matrix(labels: Sequence[object], order: str = "lexical") -> pd.DataFrame:
    """One-hot encode group labels into a samples x groups 0/1 matrix.

    Args:
        labels: One group label per sample. A ``pd.Series`` keeps its index.
        order: ``"lexical"`` sorts the groups, ``"appearance"`` keeps the order
            in which groups first occur.

    Returns:
        Float DataFrame with exactly one 1 per row; columns are the groups as strings.
    """
    series = labels.copy() if isinstance(labels, pd.Series) else pd.Series(list(labels))
    if series.isna().any():
        raise ValueError("Group labels must not contain missing values.")
    series = series.astype(str)

    if order == "lexical":
        groups = sorted(series.unique())
    elif order == "appearance":
        groups = list(pd.unique(series))
    else:
        raise ValueError(f"Unsupported group order {order!r}; expected 'lexical' or 'appearance'.")

    codes = pd.Categorical(series, categories=groups)
    design = pd.get_dummies(codes, dtype=float)
    design.index = series.index
    design.columns = groups
    return design


def normalize_columns(design: pd.DataFrame) -> pd.DataFrame:
    """Scale each group column to sum to 1 (per-group averaging weights)."""
    sums = design.sum(axis=0)
    if (sums <= 0).any():
        empty = list(design.columns[sums <= 0])
        raise ShapeMismatchError(f"Design matrix has empty groups: {empty}")
    return design.div(sums, axis=1)


__all__ = ["design_matrix", "normalize_columns"]
