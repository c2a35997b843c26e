"""
celltype_replicability: orderings of AUROC replicability matrices and cross-study
expression summaries of cell-type clusters.
"""

from .aggregate import ExpressionSummary, summarize_expression
from .cluster_names import get_cell_type, get_study_id, make_cluster_id, make_cluster_name
from .config import AnalysisConfig, OrderingConfig, SummaryConfig, load_config
from .design import design_matrix
from .errors import AmbiguousIdentifierError, ConstantCellTypeWarning, EmptyGeneSetWarning, ShapeMismatchError
from .ordering import (
    CellTypeOrdering,
    PretrainedOrdering,
    order_cell_types,
    order_pretrained,
    order_rows_according_to_cols,
)
from .tables import bean_table, drop_constant_celltypes, study_membership, tidy_aurocs

__version__ = "0.1.0"

__all__ = [
    "ExpressionSummary",
    "summarize_expression",
    "make_cluster_id",
    "make_cluster_name",
    "get_study_id",
    "get_cell_type",
    "design_matrix",
    "AnalysisConfig",
    "OrderingConfig",
    "SummaryConfig",
    "load_config",
    "AmbiguousIdentifierError",
    "ConstantCellTypeWarning",
    "EmptyGeneSetWarning",
    "ShapeMismatchError",
    "CellTypeOrdering",
    "PretrainedOrdering",
    "order_cell_types",
    "order_pretrained",
    "order_rows_according_to_cols",
    "tidy_aurocs",
    "drop_constant_celltypes",
    "bean_table",
    "study_membership",
    "__version__",
]
