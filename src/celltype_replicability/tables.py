"""Tidy tables consumed by heatmap, bean plot and upset plot renderers."""

from __future__ import annotations

import warnings
from typing import Hashable, List, Mapping, Optional, Sequence

import numpy as np
import pandas as pd

from .cluster_names import get_study_id
from .errors import ConstantCellTypeWarning
from .ordering import as_score_matrix, order_cell_types


def tidy_aurocs(aurocs, order: Optional[Sequence[Hashable]] = None) -> pd.DataFrame:
    """Long-form AUROC table (target_ct, ref_ct, auroc).

    Both label columns are ordered categoricals following ``order``, which
    defaults to the leaf order of `order_cell_types`.
    """
    M = as_score_matrix(aurocs)
    if order is None:
        order = order_cell_types(M).order
    order = list(order)
    tidy = (
        M.rename_axis(index="target_ct", columns=None)
        .reset_index()
        .melt(id_vars="target_ct", var_name="ref_ct", value_name="auroc")
    )
    tidy = tidy[["target_ct", "ref_ct", "auroc"]]
    tidy["ref_ct"] = pd.Categorical(tidy["ref_ct"], categories=order, ordered=True)
    tidy["target_ct"] = pd.Categorical(tidy["target_ct"], categories=order, ordered=True)
    return tidy


def drop_constant_celltypes(nv_mat: pd.DataFrame, tol: float = 1e-10) -> pd.DataFrame:
    """Drop cell types (columns) whose scores do not vary across gene sets.

    Such columns usually come from cell types absent from the data.
    """
    frame = as_score_matrix(nv_mat)
    variance = frame.var(axis=0, skipna=True, ddof=1)
    constant = variance < tol
    if constant.any():
        names = ", ".join(str(c) for c in frame.columns[constant.to_numpy()])
        warnings.warn(
            "Removing cell types with identical scores across all gene sets "
            f"(cell types not present in data?): {names}.",
            ConstantCellTypeWarning,
            stacklevel=2,
        )
        frame = frame.loc[:, ~constant.to_numpy()]
    return frame


def bean_table(nv_mat: pd.DataFrame, tol: float = 1e-10) -> pd.DataFrame:
    """Long-form (cell_type, auroc) table of a gene set x cell type AUROC matrix."""
    frame = drop_constant_celltypes(nv_mat, tol=tol)
    return pd.DataFrame(
        {
            "cell_type": np.repeat(np.asarray(frame.columns, dtype=object), frame.shape[0]),
            "auroc": frame.to_numpy(dtype=float).ravel(order="F"),
        }
    )


def study_membership(
    metaclusters: Mapping[str, Sequence[str]],
    min_recurrence: int = 2,
    outlier_name: str = "outliers",
) -> pd.DataFrame:
    """Metaclusters x studies 0/1 matrix for set-intersection plots.

    Each outlier cluster becomes its own metacluster. Only metaclusters found in
    at least ``min_recurrence`` studies are kept; studies appear in order of first
    occurrence.
    """
    expanded: dict = {}
    for name, members in metaclusters.items():
        if name == outlier_name:
            continue
        expanded[name] = list(members)
    for cluster in metaclusters.get(outlier_name, []):
        expanded[cluster] = [cluster]

    studies: List[str] = []
    per_cluster = {}
    for name, members in expanded.items():
        found = get_study_id(list(members))
        per_cluster[name] = set(found)
        for study in found:
            if study not in studies:
                studies.append(study)

    matrix = pd.DataFrame(
        [[int(s in per_cluster[name]) for s in studies] for name in expanded],
        index=list(expanded),
        columns=studies,
        dtype=int,
    )
    return matrix.loc[matrix.sum(axis=1) >= min_recurrence]


__all__ = ["tidy_aurocs", "drop_constant_celltypes", "bean_table", "study_membership"]
