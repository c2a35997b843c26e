"""Cluster names of the form ``"<study>|<cell type>"``.

A cluster is one (study, cell type) pair. Replicability matrices are indexed by
cluster names, and the expression summaries group samples by them.
"""

from __future__ import annotations

from typing import Iterable, List, Sequence, Tuple, Union

import pandas as pd

from .errors import AmbiguousIdentifierError, ShapeMismatchError

SEPARATOR = "|"

NameOrNames = Union[str, Iterable[str]]


def _component(value: object, kind: str) -> str:
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        raise ValueError(f"Missing {kind} label.")
    token = str(value)
    if SEPARATOR in token:
        raise AmbiguousIdentifierError(
            f"{kind} label {token!r} contains the reserved separator {SEPARATOR!r}."
        )
    return token


def make_cluster_id(study: object, cell_type: object) -> str:
    """Build a single cluster name from a study and a cell type label."""
    return f"{_component(study, 'study')}{SEPARATOR}{_component(cell_type, 'cell type')}"


def make_cluster_name(study_labels: Sequence[object], celltype_labels: Sequence[object]) -> List[str]:
    """Build one cluster name per sample from parallel study / cell type vectors."""
    studies = list(study_labels)
    cell_types = list(celltype_labels)
    if len(studies) != len(cell_types):
        raise ShapeMismatchError(
            f"study labels ({len(studies)}) and cell type labels ({len(cell_types)}) differ in length."
        )
    return [make_cluster_id(s, c) for s, c in zip(studies, cell_types)]


def split_cluster_name(name: str) -> Tuple[str, str]:
    """Return ``(study, cell_type)`` for a cluster name."""
    token = str(name)
    if SEPARATOR not in token:
        raise AmbiguousIdentifierError(
            f"Cluster name {token!r} has no {SEPARATOR!r} separator; expected '<study>{SEPARATOR}<cell type>'."
        )
    study = token.split(SEPARATOR, 1)[0]
    cell_type = token.rsplit(SEPARATOR, 1)[1]
    return study, cell_type


def get_study_id(cluster_names: NameOrNames):
    """Study component (prefix up to the first separator).

    Accepts a single name or an iterable of names; returns the same shape.
    """
    if isinstance(cluster_names, str):
        return split_cluster_name(cluster_names)[0]
    return [split_cluster_name(n)[0] for n in cluster_names]


def get_cell_type(cluster_names: NameOrNames):
    """Cell type component (everything after the last separator)."""
    if isinstance(cluster_names, str):
        return split_cluster_name(cluster_names)[1]
    return [split_cluster_name(n)[1] for n in cluster_names]


__all__ = [
    "SEPARATOR",
    "make_cluster_id",
    "make_cluster_name",
    "split_cluster_name",
    "get_study_id",
    "get_cell_type",
]
