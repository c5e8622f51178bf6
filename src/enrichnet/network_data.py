from pathlib import Path

import numpy as np
import polars as pl
from loguru import logger

from enrichnet.edges import NodeRole
from enrichnet.errors import ParseError
from enrichnet.matrix import LabeledMatrix

ROLE_ALIASES = {
    "1": NodeRole.PROTEIN,
    "protein": NodeRole.PROTEIN,
    "2": NodeRole.PHENOTYPE,
    "phenotype": NodeRole.PHENOTYPE,
    "3": NodeRole.ACTIVITY,
    "activity": NodeRole.ACTIVITY,
    "drug": NodeRole.ACTIVITY,
}


def _read_tsv(path: Path, required: list[str]) -> pl.DataFrame:
    try:
        df = pl.read_csv(path, separator="\t", infer_schema_length=0)
    except (pl.exceptions.ComputeError, pl.exceptions.NoDataError) as err:
        raise ParseError(f"{path}: malformed table: {err}") from err
    missing = [c for c in required if c not in df.columns]
    if missing:
        raise ParseError(f"{path}: missing required columns: {', '.join(missing)}")
    return df


def _numeric(df: pl.DataFrame, columns: list[str], path: Path) -> np.ndarray:
    try:
        values = df.select([pl.col(c).cast(pl.Float64, strict=True) for c in columns])
    except (pl.exceptions.InvalidOperationError, pl.exceptions.ComputeError) as err:
        raise ParseError(f"{path}: non-numeric values in data columns") from err
    n_missing = sum(values.null_count().row(0))
    if n_missing:
        raise ParseError(f"{path}: {n_missing} missing values in data columns")
    return values.to_numpy()


def read_node_roles(path: Path) -> dict[str, NodeRole]:
    """
    Read a node-role table with columns `name` and `type`.

    `type` is 1/2/3 or protein/phenotype/activity (drug is accepted for activity).

    Raises:
        ParseError: On missing columns, an unknown type or a repeated name.
    """
    df = _read_tsv(path, ["name", "type"])
    roles: dict[str, NodeRole] = {}
    for line_nr, (name, role) in enumerate(df.select(["name", "type"]).iter_rows(), start=2):
        key = (role or "").strip().lower()
        if key not in ROLE_ALIASES:
            raise ParseError(f"{path}:{line_nr}: unknown node type {role!r} for {name!r}")
        if name in roles:
            raise ParseError(f"{path}:{line_nr}: node {name!r} appears more than once")
        roles[name] = ROLE_ALIASES[key]
    logger.info(f"Read roles for {len(roles)} nodes from {path}")
    return roles


def role_name_sets(roles: dict[str, NodeRole]) -> tuple[set[str], set[str]]:
    """Phenotype and activity name sets; every other node counts as a protein."""
    phenotypes = {n for n, r in roles.items() if r == NodeRole.PHENOTYPE}
    activities = {n for n, r in roles.items() if r == NodeRole.ACTIVITY}
    return phenotypes, activities


def read_expression_matrix(path: Path, name_col: str = "name") -> tuple[np.ndarray, list[str]]:
    """
    Read a node x condition table (one row per protein, phenotype or activity).

    Returns:
        The conditions x nodes matrix expected by the partial-correlation estimator,
        and the node names.
    """
    df = _read_tsv(path, [name_col])
    labels = df[name_col].to_list()
    if len(set(labels)) != len(labels):
        raise ParseError(f"{path}: node names in {name_col!r} are not unique")
    conditions = [c for c in df.columns if c != name_col]
    values = _numeric(df, conditions, path)
    logger.info(f"Read {len(labels)} nodes x {len(conditions)} conditions from {path}")
    return values.T, labels


def read_labeled_matrix(path: Path, name_col: str = "name") -> LabeledMatrix:
    """Read a square matrix saved with write_labeled_matrix. Validation is left to the consumer."""
    df = _read_tsv(path, [name_col])
    col_labels = [c for c in df.columns if c != name_col]
    values = _numeric(df, col_labels, path)
    return LabeledMatrix(values=values, row_labels=df[name_col].to_list(), col_labels=col_labels)


def write_labeled_matrix(matrix: LabeledMatrix, path: Path) -> Path:
    matrix.to_frame().write_csv(path, separator="\t")
    logger.info(f"Wrote {len(matrix.row_labels)} x {len(matrix.col_labels)} matrix to {path}")
    return path
