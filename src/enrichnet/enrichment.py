import gseapy as gp
import pandas as pd
import polars as pl
from loguru import logger

from enrichnet.errors import RangeError
from enrichnet.gene_sets import shorten_gene_set_name
from enrichnet.ranks import ranks_to_series

RESULT_SCHEMA = {
    "term": pl.Utf8,
    "short_name": pl.Utf8,
    "es": pl.Float64,
    "nes": pl.Float64,
    "pvalue": pl.Float64,
    "fdr": pl.Float64,
    "set_size": pl.Int64,
    "lead_genes": pl.List(pl.Utf8),
}


def _set_size(tag: str):
    # gseapy reports "Tag %" as "<hits>/<mapped set size>"
    try:
        return int(str(tag).split("/")[-1])
    except ValueError:
        return None


def results_from_gseapy(res2d: pd.DataFrame, pvalue_cutoff: float = 0.05, delimiter: str = "%") -> pl.DataFrame:
    """
    Normalise a gseapy prerank report into one enrichment record per gene set.

    Keeps gene sets with p-value < `pvalue_cutoff`, ordered by ascending p-value.
    """
    terms = res2d["Term"].astype(str).tolist()
    lead_genes = [
        [g for g in str(genes).split(";") if g] if pd.notna(genes) else []
        for genes in res2d["Lead_genes"].tolist()
    ]
    df = pl.DataFrame(
        {
            "term": terms,
            "short_name": [shorten_gene_set_name(t, delimiter) for t in terms],
            "es": pd.to_numeric(res2d["ES"], errors="coerce").tolist(),
            "nes": pd.to_numeric(res2d["NES"], errors="coerce").tolist(),
            "pvalue": pd.to_numeric(res2d["NOM p-val"], errors="coerce").tolist(),
            "fdr": pd.to_numeric(res2d["FDR q-val"], errors="coerce").tolist(),
            "set_size": [_set_size(t) for t in res2d["Tag %"].tolist()],
            "lead_genes": lead_genes,
        },
        schema=RESULT_SCHEMA,
    )
    significant = df.filter(pl.col("pvalue") < pvalue_cutoff).sort("pvalue")
    logger.info(f"{significant.height} of {df.height} gene sets with p-value < {pvalue_cutoff}")
    return significant


def run_prerank(
    ranks: dict[str, float],
    gene_sets: dict[str, list[str]],
    permutation_num: int = 1000,
    pvalue_cutoff: float = 0.05,
    min_size: int = 1,
    max_size: int = 100000,
    seed: int = 42,
    threads: int = 1,
    delimiter: str = "%",
) -> pl.DataFrame:
    """
    Run pre-ranked GSEA with gseapy and return the significant enrichment records.

    Gene sets are expected to be size filtered already (see gene_sets.filter_gene_sets);
    `min_size`/`max_size` only apply gseapy's own filter on the genes that map to the ranking.
    """
    if not gene_sets:
        raise RangeError("No gene sets to test; check the gene-set size bounds")
    if not ranks:
        raise RangeError("Empty ranking")

    logger.info(f"Running prerank GSEA: {len(gene_sets)} gene sets, {len(ranks)} genes, {permutation_num} permutations")
    result = gp.prerank(
        rnk=ranks_to_series(ranks),
        gene_sets=gene_sets,
        outdir=None,
        min_size=min_size,
        max_size=max_size,
        permutation_num=permutation_num,
        seed=seed,
        threads=threads,
        no_plot=True,
        verbose=False,
    )
    return results_from_gseapy(result.res2d, pvalue_cutoff=pvalue_cutoff, delimiter=delimiter)
