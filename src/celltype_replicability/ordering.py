"""
Label orderings for AUROC replicability matrices.

Two orderings are provided:
- `order_cell_types`: symmetric (square) matrices. Scores are symmetrized, missing
  values imputed, and clusters are merged by average linkage on ``1 - AUROC``.
  The dendrogram leaf order is the display order.
- `order_rows_according_to_cols`: rectangular matrices whose columns are already
  ordered. Each row gets the weighted-average position of its mass over the
  columns (weights ``AUROC ** alpha``) and rows are sorted by that score.

`order_pretrained` combines both ideas for test-vs-reference matrices: columns are
clustered, then rows are ranked against the column leaf order.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Hashable, List, Optional, Sequence

import numpy as np
import pandas as pd
from scipy.cluster.hierarchy import dendrogram, leaves_list, linkage, to_tree
from scipy.spatial.distance import pdist, squareform

from .errors import ShapeMismatchError

logger = logging.getLogger(__name__)

UNDEFINED_POLICIES = ("last", "first")


def as_score_matrix(M) -> pd.DataFrame:
    """Labelled view of a score matrix; bare arrays are labelled 0..n-1."""
    if isinstance(M, pd.DataFrame):
        return M
    arr = np.asarray(M, dtype=float)
    if arr.ndim != 2:
        raise ShapeMismatchError(f"Expected a 2D score matrix, got shape {arr.shape}.")
    return pd.DataFrame(arr)


def _empty_linkage() -> np.ndarray:
    return np.empty((0, 4), dtype=float)


@dataclass
class CellTypeOrdering:
    linkage: np.ndarray  # scipy linkage matrix, shape (n-1, 4)
    labels: List[Hashable]  # labels in input order; leaf ids index into this list

    @property
    def leaves(self) -> np.ndarray:
        if len(self.labels) < 2:
            return np.arange(len(self.labels))
        return leaves_list(self.linkage)

    @property
    def order(self) -> List[Hashable]:
        """Labels read left-to-right along the dendrogram."""
        return [self.labels[i] for i in self.leaves]

    def to_tree(self):
        if len(self.labels) < 2:
            raise ValueError("A merge tree needs at least two labels.")
        return to_tree(self.linkage)

    def dendrogram(self) -> dict:
        """Dendrogram layout (scipy ``no_plot`` dictionary) labelled with cluster names."""
        if len(self.labels) < 2:
            raise ValueError("A dendrogram needs at least two labels.")
        return dendrogram(self.linkage, labels=[str(x) for x in self.labels], no_plot=True)


@dataclass
class PretrainedOrdering:
    column_linkage: np.ndarray
    column_order: List[Hashable]
    row_order: List[Hashable]

    def apply(self, aurocs) -> pd.DataFrame:
        """Return ``aurocs`` with rows and columns in display order."""
        return as_score_matrix(aurocs).loc[self.row_order, self.column_order]


def order_cell_types(aurocs, na_value: float = 0.0) -> CellTypeOrdering:
    """Order cell types of a square AUROC matrix by average-linkage clustering.

    Args:
        aurocs: Square matrix; rows and columns must carry the same labels.
        na_value: Replacement for missing values after symmetrization.

    Returns:
        CellTypeOrdering with the merge tree and the labels it orders.
    """
    M = as_score_matrix(aurocs)
    if M.shape[0] != M.shape[1]:
        raise ShapeMismatchError(f"AUROC matrix must be square, got shape {M.shape}.")
    if not M.index.equals(M.columns):
        if M.index.has_duplicates or set(M.index) != set(M.columns):
            raise ShapeMismatchError("Row and column labels of the AUROC matrix differ.")
        M = M.loc[:, M.index]

    labels = list(M.index)
    values = M.to_numpy(dtype=float)
    sym = (values + values.T) / 2.0
    sym[np.isnan(sym)] = na_value

    if len(labels) < 2:
        return CellTypeOrdering(linkage=_empty_linkage(), labels=labels)

    # Diagonal is ignored; distances are not required to be non-negative.
    dist = squareform(1.0 - sym, checks=False)
    Z = linkage(dist, method="average")
    logger.debug("clustered %d cell types by average linkage", len(labels))
    return CellTypeOrdering(linkage=Z, labels=labels)


def rank_row_scores(M, alpha: float = 1.0) -> pd.Series:
    """Weighted-average column position of each row (1-based), weights ``M ** alpha``.

    Missing entries are ignored. Rows without mass get NaN.
    """
    if alpha < 0:
        raise ValueError(f"alpha must be non-negative, got {alpha}.")
    frame = as_score_matrix(M)
    weights = np.power(frame.to_numpy(dtype=float), float(alpha))
    positions = np.arange(1, weights.shape[1] + 1, dtype=float)
    num = np.nansum(weights * positions[np.newaxis, :], axis=1)
    den = np.nansum(weights, axis=1)
    with np.errstate(divide="ignore", invalid="ignore"):
        score = num / den
    score[den == 0] = np.nan
    return pd.Series(score, index=frame.index, name="rank_score")


def order_rows_according_to_cols(
    M,
    alpha: float = 1.0,
    column_order: Optional[Sequence[Hashable]] = None,
    undefined: str = "last",
) -> pd.Index:
    """Sort rows by where their mass sits along the (fixed) column order.

    Rows concentrated on the first columns come first. Ties keep input order.
    Rows with no mass have no score; ``undefined`` places them ``"last"`` or
    ``"first"``, in input order.

    Returns:
        Row labels in display order.
    """
    if undefined not in UNDEFINED_POLICIES:
        raise ValueError(f"undefined must be one of {UNDEFINED_POLICIES}, got {undefined!r}.")
    frame = as_score_matrix(M)
    if column_order is not None:
        column_order = list(column_order)
        if len(column_order) != frame.shape[1]:
            raise ShapeMismatchError(
                f"column_order has {len(column_order)} entries but the matrix has {frame.shape[1]} columns."
            )
        if len(set(column_order)) != len(column_order):
            raise ShapeMismatchError("column_order contains duplicate labels.")
        unknown = [c for c in column_order if c not in frame.columns]
        if unknown:
            raise ShapeMismatchError(f"column_order names unknown columns: {unknown}")
        frame = frame.loc[:, column_order]

    score = rank_row_scores(frame, alpha).to_numpy()
    missing = np.isnan(score)
    defined = np.flatnonzero(~missing)
    defined = defined[np.argsort(score[defined], kind="stable")]
    rest = np.flatnonzero(missing)
    if rest.size:
        logger.debug("%d rows without mass placed %s", rest.size, undefined)
    positions = np.concatenate([defined, rest]) if undefined == "last" else np.concatenate([rest, defined])
    return frame.index[positions]


def order_pretrained(
    aurocs, alpha_col: float = 1.0, alpha_row: float = 10.0, undefined: str = "last"
) -> PretrainedOrdering:
    """Order a test (rows) x reference (columns) AUROC matrix.

    Columns are clustered by average linkage on Euclidean distances between
    columns raised to ``alpha_col``; rows are then ranked against the column leaf
    order with ``alpha_row``; ``undefined`` places rows without mass. Missing values
    count as 0.
    """
    frame = as_score_matrix(aurocs)
    filled = frame.fillna(0.0)
    values = filled.to_numpy(dtype=float)
    columns = list(frame.columns)

    if len(columns) >= 2:
        Z = linkage(pdist(np.power(values.T, float(alpha_col)), metric="euclidean"), method="average")
        col_idx = leaves_list(Z)
    else:
        Z = _empty_linkage()
        col_idx = np.arange(len(columns))

    row_order = order_rows_according_to_cols(filled.iloc[:, col_idx], alpha=alpha_row, undefined=undefined)
    return PretrainedOrdering(
        column_linkage=Z,
        column_order=[columns[i] for i in col_idx],
        row_order=list(row_order),
    )


__all__ = [
    "CellTypeOrdering",
    "PretrainedOrdering",
    "order_cell_types",
    "rank_row_scores",
    "order_rows_according_to_cols",
    "order_pretrained",
]
