from pathlib import Path
from typing import Optional

import matplotlib.pyplot as plt
from cyclopts import App
from loguru import logger

from enrichnet.config import load_configuration
from enrichnet.enrichment import run_prerank
from enrichnet.enrichment_map import EnrichmentMapBuilder, plot_enrichment_map
from enrichnet.export import write_tsv, write_xlsx
from enrichnet.gene_sets import filter_gene_sets, read_gene_sets
from enrichnet.ranks import load_ranks

app = App(help="Pre-ranked GSEA on a size filtered gene-set collection, followed by an enrichment map.")


@app.default()
def enrichment_map_run(
    gene_sets: Path,
    ranks: Path,
    out_dir: Path = Path("."),
    config: Optional[Path] = None,
) -> dict[str, Path]:
    """
    Run the enrichment map analysis.

    Args:
        gene_sets: Gene-set collection (.gmt, or a tab separated table with columns ont and gene).
        ranks: Ranking table with columns gene and rank.
        out_dir: Directory for the result table, workbook and figure.
        config: Optional TOML configuration; the platform config or defaults otherwise.
    """
    cfg = load_configuration(config)
    out_dir.mkdir(parents=True, exist_ok=True)

    collection = filter_gene_sets(read_gene_sets(gene_sets), cfg.min_set_size, cfg.max_set_size)
    ranking = load_ranks(ranks)
    results = run_prerank(
        ranking,
        collection,
        permutation_num=cfg.permutation_num,
        pvalue_cutoff=cfg.pvalue_cutoff,
        seed=cfg.seed,
        threads=cfg.threads,
        delimiter=cfg.name_delimiter,
    )

    builder = EnrichmentMapBuilder(results)
    G = builder.build_graph(cutoff=cfg.similarity_cutoff, metric=cfg.similarity_metric)
    fig = plot_enrichment_map(G, title=f"Enrichment map ({cfg.similarity_metric} >= {cfg.similarity_cutoff})", seed=cfg.seed)

    outputs = {
        "results_tsv": write_tsv(results, out_dir / "enrichment_results.tsv"),
        "results_xlsx": write_xlsx(
            {"enrichment": results, "similarity": builder.similarity_edges(metric=cfg.similarity_metric)},
            out_dir / "enrichment_results.xlsx",
        ),
        "map_png": out_dir / "enrichment_map.png",
    }
    fig.savefig(outputs["map_png"], dpi=300, bbox_inches="tight")
    plt.close(fig)
    logger.info(f"Wrote enrichment map to {outputs['map_png']}")
    return outputs


def main():
    app()


if __name__ == '__main__':
    main()
