import numbers
from pathlib import Path

import polars as pl
from loguru import logger

from enrichnet.errors import ParseError


def _unique_genes(name: str, genes: list[str]) -> list[str]:
    """Drop repeated identifiers, keeping the order of first appearance."""
    unique = list(dict.fromkeys(genes))
    if len(unique) != len(genes):
        logger.warning(f"Gene set {name}: dropped {len(genes) - len(unique)} duplicate gene identifiers")
    return unique


def read_gmt(path: Path) -> dict[str, list[str]]:
    """
    Read a GMT file: one gene set per line,
    ``name<TAB>description<TAB>gene1<TAB>gene2 ...``.

    Args:
        path: Path to the .gmt file.

    Returns:
        dict mapping gene-set name to its (unique) member genes.

    Raises:
        ParseError: If a line has fewer than three fields or a name repeats.
    """
    gene_sets: dict[str, list[str]] = {}
    with open(path, "r") as f:
        for line_nr, line in enumerate(f, start=1):
            line = line.rstrip("\r\n")
            if not line.strip():
                continue
            fields = line.split("\t")
            if len(fields) < 3:
                raise ParseError(
                    f"{path}:{line_nr}: expected name, description and at least one gene, got {len(fields)} fields"
                )
            name = fields[0]
            if name in gene_sets:
                raise ParseError(f"{path}:{line_nr}: gene set {name!r} appears more than once")
            genes = [g for g in fields[2:] if g]
            gene_sets[name] = _unique_genes(name, genes)
    logger.info(f"Read {len(gene_sets)} gene sets from {path}")
    return gene_sets


def read_gene_set_table(path: Path, set_col: str = "ont", gene_col: str = "gene") -> dict[str, list[str]]:
    """
    Read a long, tab separated gene-set table with one (gene set, gene) pair per row.
    """
    try:
        df = pl.read_csv(path, separator="\t", infer_schema_length=0)
    except (pl.exceptions.ComputeError, pl.exceptions.NoDataError) as err:
        raise ParseError(f"{path}: malformed gene-set table: {err}") from err
    missing = [c for c in (set_col, gene_col) if c not in df.columns]
    if missing:
        raise ParseError(f"{path}: missing required columns: {', '.join(missing)}")

    grouped = (
        df
        .select([pl.col(set_col), pl.col(gene_col)])
        .drop_nulls()
        .group_by(set_col, maintain_order=True)
        .agg(pl.col(gene_col).alias("genes"))
    )
    gene_sets = {
        row[set_col]: _unique_genes(row[set_col], row["genes"])
        for row in grouped.iter_rows(named=True)
    }
    logger.info(f"Read {len(gene_sets)} gene sets from {path}")
    return gene_sets


def read_gene_sets(path: Path) -> dict[str, list[str]]:
    """Read a gene-set collection, GMT if the suffix is .gmt, long table otherwise."""
    path = Path(path)
    if path.suffix.lower() == ".gmt":
        return read_gmt(path)
    return read_gene_set_table(path)


def _valid_bound(value) -> bool:
    return isinstance(value, numbers.Integral) and not isinstance(value, bool) and value >= 0


def filter_gene_sets(gene_sets: dict[str, list[str]], lower: int, upper: int) -> dict[str, list[str]]:
    """
    Keep gene sets whose member count c satisfies lower < c < upper.

    Bounds that are not non-negative integers with lower < upper select nothing.
    """
    if not (_valid_bound(lower) and _valid_bound(upper) and lower < upper):
        logger.warning(f"Invalid gene-set size bounds ({lower}, {upper}); no gene set selected")
        return {}

    kept = {
        name: genes
        for name, genes in gene_sets.items()
        if lower < len(set(genes)) < upper
    }
    logger.info(f"Kept {len(kept)} of {len(gene_sets)} gene sets with {lower} < size < {upper}")
    return kept


def shorten_gene_set_name(name: str, delimiter: str = "%") -> str:
    """'LEPTIN%NETPATH%LEPTIN' -> 'LEPTIN'; names without the delimiter are returned unchanged."""
    return name.split(delimiter, 1)[0]
