"""
Enrichment Map - Marimo Notebook

Pre-ranked GSEA on a size filtered gene-set collection and the resulting enrichment map.
"""

import marimo

__generated_with = "0.16.5"
app = marimo.App(width="medium")


@app.cell
def _():
    import marimo as mo
    from pathlib import Path

    from enrichnet.config import load_configuration
    from enrichnet.enrichment import run_prerank
    from enrichnet.enrichment_map import EnrichmentMapBuilder, plot_enrichment_map
    from enrichnet.gene_sets import filter_gene_sets, read_gene_sets
    from enrichnet.ranks import load_ranks
    return (
        EnrichmentMapBuilder,
        Path,
        filter_gene_sets,
        load_configuration,
        load_ranks,
        mo,
        plot_enrichment_map,
        read_gene_sets,
        run_prerank,
    )


@app.cell
def _(mo):
    mo.md(
        """
    # Enrichment Map

    1. Read a gene-set collection (GMT) and keep the sets with `min_set_size < size < max_set_size`.
    2. Read the ranked gene list (`gene`, `rank`).
    3. Run pre-ranked GSEA.
    4. Link gene sets that share leading-edge genes.

    Specify the input files:
    """
    )
    return


@app.cell
def _(mo):
    gmt_path = mo.ui.text(label="Gene sets (.gmt)", value="Human_GOBP_AllPathways_no_GO_iea.gmt")
    rnk_path = mo.ui.text(label="Ranks (.rnk)", value="ranks.rnk")
    mo.vstack([gmt_path, rnk_path])
    return gmt_path, rnk_path


@app.cell
def _(
    Path,
    filter_gene_sets,
    gmt_path,
    load_configuration,
    load_ranks,
    read_gene_sets,
    rnk_path,
):
    cfg = load_configuration()
    gene_sets = filter_gene_sets(read_gene_sets(Path(gmt_path.value)), cfg.min_set_size, cfg.max_set_size)
    ranks = load_ranks(Path(rnk_path.value))
    return cfg, gene_sets, ranks


@app.cell
def _(cfg, gene_sets, ranks, run_prerank):
    results = run_prerank(
        ranks,
        gene_sets,
        permutation_num=cfg.permutation_num,
        pvalue_cutoff=cfg.pvalue_cutoff,
        seed=cfg.seed,
        threads=cfg.threads,
        delimiter=cfg.name_delimiter,
    )
    results
    return (results,)


@app.cell
def _(EnrichmentMapBuilder, cfg, plot_enrichment_map, results):
    em_graph = EnrichmentMapBuilder(results).build_graph(
        cutoff=cfg.similarity_cutoff, metric=cfg.similarity_metric
    )
    plot_enrichment_map(em_graph, title="Enrichment map")
    return


if __name__ == "__main__":
    app.run()
