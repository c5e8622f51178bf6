from enum import IntEnum
from typing import Container, Iterable, NamedTuple, Optional, Union

import numpy as np
import polars as pl
from loguru import logger

from enrichnet.errors import LabelError, RangeError, ShapeError
from enrichnet.matrix import LabeledMatrix


class NodeRole(IntEnum):
    PROTEIN = 1
    PHENOTYPE = 2
    ACTIVITY = 3

    @property
    def label(self) -> str:
        return self.name.lower()


class EdgeRecord(NamedTuple):
    source: str
    target: str
    weight: float

    @property
    def sign(self) -> str:
        """Display metadata only; the network itself is undirected."""
        return "activating" if self.weight > 0 else "inhibitory"


def filter_by_local_fdr(
    values: Union[np.ndarray, LabeledMatrix],
    lfdr: Union[np.ndarray, LabeledMatrix],
    cutoff: float = 0.2,
) -> Union[np.ndarray, LabeledMatrix]:
    """
    Zero every entry whose local FDR is >= `cutoff`, keep all other entries unchanged.

    Args:
        values: Correlation coefficients, flat or matrix shaped, or a LabeledMatrix.
        lfdr: Local FDR values of the same shape and order as `values`.
        cutoff: Significance cutoff in (0, 1].

    Returns:
        A new array (or LabeledMatrix with the same labels); the inputs are not modified.

    Raises:
        ShapeError: If `values` and `lfdr` differ in shape.
        RangeError: If `cutoff` is outside (0, 1].
    """
    if not 0 < cutoff <= 1:
        raise RangeError(f"Local FDR cutoff must lie in (0, 1], got {cutoff}")

    labeled = values if isinstance(values, LabeledMatrix) else None
    arr = np.asarray(labeled.values if labeled is not None else values, dtype=float)
    lfdr_arr = np.asarray(lfdr.values if isinstance(lfdr, LabeledMatrix) else lfdr, dtype=float)
    if arr.shape != lfdr_arr.shape:
        raise ShapeError(f"Values {arr.shape} and local FDR {lfdr_arr.shape} differ in shape")

    filtered = np.where(lfdr_arr >= cutoff, 0.0, arr)
    logger.debug(f"Local FDR >= {cutoff}: zeroed {int(np.count_nonzero(arr != filtered))} of {arr.size} entries")

    if labeled is not None:
        return LabeledMatrix(values=filtered, row_labels=list(labeled.row_labels), col_labels=list(labeled.col_labels))
    return filtered


def extract_edges(matrix: LabeledMatrix, n: Optional[int] = None) -> list[EdgeRecord]:
    """
    Turn a symmetric, labelled matrix into an edge list bounded by `n`.

    Only the strict upper triangle is scanned, row by row, so no pair is reported
    twice and no self-loop appears. Zero entries are not edges. The remaining
    candidates are ordered by descending absolute weight; equal magnitudes keep
    their scan order.

    Raises:
        ShapeError: If the matrix is not square or not symmetric.
        LabelError: If labels are missing or inconsistent.
        RangeError: If `n` is negative.
    """
    matrix.validate()
    if n is not None and n < 0:
        raise RangeError(f"Edge cap must be non-negative, got {n}")

    values = np.asarray(matrix.values, dtype=float)
    rows, cols = np.triu_indices(values.shape[0], k=1)
    weights = values[rows, cols]
    nonzero = weights != 0
    rows, cols, weights = rows[nonzero], cols[nonzero], weights[nonzero]

    order = np.argsort(-np.abs(weights), kind="stable")
    if n is not None and n < len(order):
        order = order[:n]

    labels = matrix.row_labels
    edges = [EdgeRecord(labels[rows[i]], labels[cols[i]], float(weights[i])) for i in order]
    logger.info(f"Extracted {len(edges)} of {len(weights)} non-zero edges")
    return edges


def classify_node(name: str, phenotypes: Container[str], activities: Container[str]) -> NodeRole:
    """Role of a node given the phenotype and activity name sets; everything else is a protein."""
    is_phenotype = name in phenotypes
    is_activity = name in activities
    if is_phenotype and is_activity:
        raise LabelError(f"Node {name!r} is listed both as phenotype and as activity")
    if is_phenotype:
        return NodeRole.PHENOTYPE
    if is_activity:
        return NodeRole.ACTIVITY
    return NodeRole.PROTEIN


def classify_nodes(edges: list[EdgeRecord], phenotypes: Iterable[str], activities: Iterable[str]) -> dict[str, NodeRole]:
    """Classify every node referenced by `edges`, in order of first appearance."""
    phenotypes, activities = set(phenotypes), set(activities)
    roles = {}
    for edge in edges:
        for node in (edge.source, edge.target):
            if node not in roles:
                roles[node] = classify_node(node, phenotypes, activities)
    return roles


def edges_to_frame(edges: list[EdgeRecord]) -> pl.DataFrame:
    return pl.DataFrame(
        {
            "source": [e.source for e in edges],
            "target": [e.target for e in edges],
            "weight": [e.weight for e in edges],
            "sign": [e.sign for e in edges],
        },
        schema={"source": pl.Utf8, "target": pl.Utf8, "weight": pl.Float64, "sign": pl.Utf8},
    )
