"""
Cross-study expression summaries for a gene set.

Pipeline
- Restrict the expression matrix (genes x samples) to the gene set and optionally
  rescale each sample to counts per million of its total expression.
- Samples are grouped into clusters ``"<study>|<cell type>"``; a column-normalized
  design matrix turns matrix products into per-cluster means.
- Per cluster: mean expression (centroid) and fraction of samples with non-zero
  expression.
- Cluster statistics are averaged (unweighted, NaN ignored) across the studies that
  share a cell type.

Outputs
- ExpressionSummary with long-form tables keyed by (gene, cell type) and by
  (gene, cluster), a genes x cell types matrix and a gene display order.
"""
from __future__ import annotations

import logging
import warnings
from dataclasses import dataclass, replace
from typing import Hashable, Iterable, List, Mapping, Optional, Sequence, Union

import numpy as np
import pandas as pd

from .cluster_names import get_cell_type, get_study_id, make_cluster_name
from .config import SummaryConfig
from .design import design_matrix, normalize_columns
from .errors import EmptyGeneSetWarning, ShapeMismatchError
from .ordering import order_rows_according_to_cols

logger = logging.getLogger(__name__)

SUMMARY_COLUMNS = ["gene", "cell_type", "average_expression", "percent_expressing"]
CLUSTER_COLUMNS = ["gene", "cluster", "study", "cell_type", "average_expression", "percent_expressing"]

ExpressionInput = Union[pd.DataFrame, Mapping[Hashable, pd.DataFrame]]


@dataclass
class ExpressionSummary:
    table: pd.DataFrame  # columns: gene, cell_type, average_expression, percent_expressing
    clusters: pd.DataFrame  # columns: gene, cluster, study, cell_type, average_expression, percent_expressing
    expression_matrix: pd.DataFrame  # genes x cell types, average_expression
    gene_order: List[Hashable]  # genes ranked along the cell type columns

    @classmethod
    def empty(cls) -> "ExpressionSummary":
        return cls(
            table=pd.DataFrame(columns=SUMMARY_COLUMNS),
            clusters=pd.DataFrame(columns=CLUSTER_COLUMNS),
            expression_matrix=pd.DataFrame(),
            gene_order=[],
        )

    @property
    def is_empty(self) -> bool:
        return self.table.empty


def select_assay(expression: ExpressionInput, assay: Union[int, str] = 0) -> pd.DataFrame:
    """Return the genes x samples matrix to summarize.

    A plain DataFrame is used as is; a mapping of assays is indexed by name, or by
    position when ``assay`` is an integer that is not itself a key.
    """
    if isinstance(expression, pd.DataFrame):
        return expression
    if isinstance(expression, Mapping):
        if assay in expression:
            return expression[assay]
        if isinstance(assay, int):
            names = list(expression)
            if not 0 <= assay < len(names):
                raise KeyError(f"Assay index {assay} out of range for {len(names)} assays.")
            return expression[names[assay]]
        raise KeyError(f"Assay {assay!r} not found; available: {list(expression)}")
    raise TypeError(f"Unsupported expression container: {type(expression).__name__}")


def _long(frame: pd.DataFrame, value_name: str) -> pd.DataFrame:
    return (
        frame.rename_axis(index="gene", columns=None)
        .reset_index()
        .melt(id_vars="gene", var_name="cluster", value_name=value_name)
    )


def summarize_expression(
    expression: ExpressionInput,
    study_labels: Sequence[object],
    celltype_labels: Sequence[object],
    gene_set: Iterable[Hashable],
    config: Optional[SummaryConfig] = None,
    *,
    normalize_library_size: Optional[bool] = None,
    average_expressing_only: Optional[bool] = None,
    scale_expression: Optional[bool] = None,
    alpha_row: Optional[float] = None,
    assay: Optional[Union[int, str]] = None,
) -> ExpressionSummary:
    """Average expression and percent expressing of a gene set per cell type.

    Args:
        expression: genes x samples matrix, or a mapping of such matrices (assays).
        study_labels: Study of each sample (column order of the matrix).
        celltype_labels: Cell type of each sample.
        gene_set: Genes of interest; genes absent from the matrix are skipped.
        config: Summary options (library size normalization, expressing-only
            averages, scaling, gene ordering exponent, assay selection).
        normalize_library_size, average_expressing_only, scale_expression,
        alpha_row, assay: Override the matching ``config`` field when given.

    Returns:
        ExpressionSummary; empty (with an EmptyGeneSetWarning) when no gene of the
        set is present.
    """
    overrides = {
        "normalize_library_size": normalize_library_size,
        "average_expressing_only": average_expressing_only,
        "scale_expression": scale_expression,
        "alpha_row": alpha_row,
        "assay": assay,
    }
    cfg = replace(config or SummaryConfig(), **{k: v for k, v in overrides.items() if v is not None})
    expr_all = select_assay(expression, cfg.assay)
    n_samples = expr_all.shape[1]

    studies = list(study_labels)
    cell_types = list(celltype_labels)
    if len(studies) != n_samples:
        raise ShapeMismatchError(
            f"study labels length ({len(studies)}) does not match number of samples ({n_samples})."
        )
    if len(cell_types) != n_samples:
        raise ShapeMismatchError(
            f"cell type labels length ({len(cell_types)}) does not match number of samples ({n_samples})."
        )

    genes = [g for g in pd.unique(pd.Series(list(gene_set), dtype=object)) if g in expr_all.index]
    if not genes:
        warnings.warn("None of the genes are included in the dataset.", EmptyGeneSetWarning, stacklevel=2)
        return ExpressionSummary.empty()

    # Repeated gene names resolve to their first row.
    values = expr_all[~expr_all.index.duplicated(keep="first")].loc[genes].to_numpy(dtype=float)
    if cfg.normalize_library_size:
        # Library size is taken over every gene of the assay, not only the gene set.
        library = expr_all.to_numpy(dtype=float).sum(axis=0) / 1e6
        with np.errstate(divide="ignore", invalid="ignore"):
            values = values / library[np.newaxis, :]

    weights = normalize_columns(design_matrix(make_cluster_name(studies, cell_types)))
    W = weights.to_numpy(dtype=float)
    clusters = list(weights.columns)
    logger.debug("summarizing %d genes over %d samples in %d clusters", len(genes), n_samples, len(clusters))

    centroids = values @ W
    fraction = (values > 0).astype(float) @ W
    if cfg.average_expressing_only:
        with np.errstate(divide="ignore", invalid="ignore"):
            centroids = centroids / fraction

    centroids = pd.DataFrame(centroids, index=genes, columns=clusters)
    fraction = pd.DataFrame(fraction, index=genes, columns=clusters)
    if cfg.scale_expression:
        centroids = centroids.sub(centroids.mean(axis=1), axis=0).div(centroids.std(axis=1, ddof=1), axis=0)

    per_cluster = _long(centroids, "average_expression").merge(
        _long(fraction, "percent_expressing"), on=["gene", "cluster"]
    )
    per_cluster["study"] = get_study_id(per_cluster["cluster"])
    per_cluster["cell_type"] = get_cell_type(per_cluster["cluster"])
    per_cluster = per_cluster[CLUSTER_COLUMNS]

    table = (
        per_cluster.groupby(["gene", "cell_type"], sort=True)[["average_expression", "percent_expressing"]]
        .mean()
        .reset_index()
    )

    matrix = table.pivot(index="gene", columns="cell_type", values="average_expression")
    gene_order = list(order_rows_according_to_cols(matrix, alpha=cfg.alpha_row))

    return ExpressionSummary(
        table=table[SUMMARY_COLUMNS],
        clusters=per_cluster,
        expression_matrix=matrix,
        gene_order=gene_order,
    )


__all__ = ["ExpressionSummary", "select_assay", "summarize_expression"]
