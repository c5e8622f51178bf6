from pathlib import Path

import pandas as pd
import polars as pl
from loguru import logger

from enrichnet.errors import ParseError


def read_rank_table(path: Path, id_col: str = "gene", rank_col: str = "rank") -> pl.DataFrame:
    """
    Read a whitespace or tab delimited ranking table with a header row.

    Args:
        path: Path to the ranking file.
        id_col: Header of the gene identifier column.
        rank_col: Header of the numeric statistic column.

    Returns:
        pl.DataFrame with columns ``gene`` (Utf8) and ``rank`` (Float64), in file order.

    Raises:
        ParseError: On a missing header, missing columns, a row with the wrong number
            of fields, a non-numeric statistic or a repeated gene identifier.
    """
    with open(path, "r") as f:
        lines = [(nr, line.split()) for nr, line in enumerate(f, start=1) if line.strip()]

    if not lines:
        raise ParseError(f"{path}: empty file, expected a header row")
    _, header = lines[0]
    missing = [c for c in (id_col, rank_col) if c not in header]
    if missing:
        raise ParseError(f"{path}: header {header} is missing columns: {', '.join(missing)}")

    rows = []
    for line_nr, fields in lines[1:]:
        if len(fields) != len(header):
            raise ParseError(f"{path}:{line_nr}: expected {len(header)} columns, got {len(fields)}")
        rows.append(fields)

    df = pl.DataFrame(rows, schema=header, orient="row")
    try:
        df = df.select(
            pl.col(id_col).alias("gene"),
            pl.col(rank_col).cast(pl.Float64, strict=True).alias("rank"),
        )
    except (pl.exceptions.InvalidOperationError, pl.exceptions.ComputeError) as err:
        raise ParseError(f"{path}: column {rank_col!r} is not numeric") from err

    duplicated = df.filter(pl.col("gene").is_duplicated())["gene"].unique(maintain_order=True).to_list()
    if duplicated:
        raise ParseError(f"{path}: duplicated gene identifiers: {', '.join(duplicated[:10])}")

    logger.info(f"Read {df.height} ranked genes from {path}")
    return df


def rank_mapping(df: pl.DataFrame) -> dict[str, float]:
    return dict(zip(df["gene"].to_list(), df["rank"].to_list()))


def load_ranks(path: Path, id_col: str = "gene", rank_col: str = "rank") -> dict[str, float]:
    """Read a ranking table and return it as a gene -> statistic mapping."""
    return rank_mapping(read_rank_table(path, id_col=id_col, rank_col=rank_col))


def ranks_to_series(ranks: dict[str, float]) -> pd.Series:
    """Ranking as a pandas Series indexed by gene, sorted descending, as gseapy's prerank expects."""
    series = pd.Series(ranks, dtype=float, name="rank")
    series.index.name = "gene"
    return series.sort_values(ascending=False)
