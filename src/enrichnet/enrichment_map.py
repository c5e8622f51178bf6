from typing import Optional

import matplotlib.pyplot as plt
import networkx as nx
import numpy as np
import polars as pl
from loguru import logger
from matplotlib.colors import LinearSegmentedColormap, Normalize
from matplotlib.figure import Figure

SIMILARITY_METRICS = ("jaccard", "overlap")


class EnrichmentMapBuilder:
    def __init__(self, results: pl.DataFrame):
        """
        Args:
            results: Enrichment records as returned by enrichment.run_prerank.
        """
        self.results = results
        self.term_genes = (
            results
            .select(["term", "lead_genes"])
            .explode("lead_genes")
            .rename({"lead_genes": "gene"})
            .drop_nulls()
            .unique()
        )

    def node_sizes(self) -> dict[str, int]:
        """Number of unique leading-edge genes per term."""
        sizes_df = (
            self.term_genes
            .group_by("term")
            .agg(pl.col("gene").n_unique().alias("size"))
        )
        sizes = {r["term"]: r["size"] for r in sizes_df.to_dicts()}
        return {term: sizes.get(term, 0) for term in self.results["term"].to_list()}

    def similarity_edges(self, metric: str = "jaccard") -> pl.DataFrame:
        """
        Pairwise leading-edge similarity between terms that share at least one gene.

        Returns:
            pl.DataFrame with columns term_a, term_b (term_a < term_b), shared, similarity.
        """
        if metric not in SIMILARITY_METRICS:
            raise ValueError(f"Unknown similarity metric: {metric!r}, expected one of {SIMILARITY_METRICS}")

        node_sizes = self.node_sizes()
        sizes = pl.DataFrame(
            {"term": list(node_sizes.keys()), "size": list(node_sizes.values())},
            schema={"term": pl.Utf8, "size": pl.Int64},
        )
        # self-join on gene to count shared genes per term pair
        shared = (
            self.term_genes
            .join(self.term_genes, on="gene", how="inner", suffix="_b")
            .filter(pl.col("term") < pl.col("term_b"))
            .group_by(["term", "term_b"])
            .agg(pl.len().cast(pl.Int64).alias("shared"))
            .rename({"term": "term_a"})
            .join(sizes.rename({"term": "term_a", "size": "size_a"}), on="term_a")
            .join(sizes.rename({"term": "term_b", "size": "size_b"}), on="term_b")
        )
        if metric == "jaccard":
            denominator = pl.col("size_a") + pl.col("size_b") - pl.col("shared")
        else:
            denominator = pl.min_horizontal("size_a", "size_b")

        return (
            shared
            .with_columns((pl.col("shared") / denominator).alias("similarity"))
            .select(["term_a", "term_b", "shared", "similarity"])
            .sort(["similarity", "term_a", "term_b"], descending=[True, False, False])
        )

    def build_graph(self, cutoff: float = 0.2, metric: str = "jaccard") -> nx.Graph:
        """
        Enrichment map: one node per enriched term (isolates included), edges between
        terms whose leading-edge similarity is >= `cutoff`.
        """
        sizes = self.node_sizes()
        G = nx.Graph()
        for row in self.results.iter_rows(named=True):
            G.add_node(
                row["term"],
                short_name=row["short_name"],
                nes=row["nes"],
                pvalue=row["pvalue"],
                fdr=row["fdr"],
                size=sizes[row["term"]],
            )
        edges = self.similarity_edges(metric=metric).filter(pl.col("similarity") >= cutoff)
        for a, b, shared, similarity in edges.iter_rows():
            G.add_edge(a, b, shared=shared, weight=similarity)
        logger.info(f"Enrichment map: {G.number_of_nodes()} gene sets, {G.number_of_edges()} edges ({metric} >= {cutoff})")
        return G


def plot_enrichment_map(G: nx.Graph, title: str, ax: Optional[plt.Axes] = None, seed: int = 0) -> Figure:
    """
    Draw an enrichment map on `ax` (a new figure when None) and return its figure.

    Node area follows the leading-edge size, fill colour the NES
    (blue negative, red positive), edge width the similarity.
    """
    if ax is None:
        fig, ax = plt.subplots(figsize=(8, 8))
    else:
        fig = ax.figure

    if G.number_of_nodes() == 0:
        ax.set_title(title)
        ax.axis("off")
        ax.text(0.5, 0.5, "No enriched gene sets",
                ha="center", va="center", transform=ax.transAxes,
                fontsize=10, color="gray")
        return fig

    pos = nx.spring_layout(G, k=0.8, seed=seed)
    nes = np.array([G.nodes[n]["nes"] for n in G.nodes()], dtype=float)
    limit = np.nanmax(np.abs(nes)) if np.isfinite(nes).any() else 1.0
    cmap = LinearSegmentedColormap.from_list("diverge", ["blue", "lightgray", "red"], N=100)
    norm = Normalize(vmin=-limit, vmax=limit)

    if G.edges():
        ec = nx.draw_networkx_edges(
            G, pos,
            width=[d["weight"] * 5 for _, _, d in G.edges(data=True)],
            edge_color="#888888",
            ax=ax,
        )
        if ec is not None:
            ec.set_zorder(1)

    nx.draw_networkx_nodes(
        G, pos,
        node_size=[100 + 20 * G.nodes[n]["size"] for n in G.nodes()],
        node_color=[cmap(norm(v)) if np.isfinite(v) else "lightgray" for v in nes],
        edgecolors="black",
        linewidths=0.5,
        ax=ax,
    )
    nx.draw_networkx_labels(
        G, pos,
        labels={n: G.nodes[n]["short_name"] for n in G.nodes()},
        font_size=6,
        ax=ax,
    )
    fig.colorbar(plt.cm.ScalarMappable(norm=norm, cmap=cmap), ax=ax, shrink=0.5, label="NES")
    ax.set_title(title)
    ax.axis("off")
    return fig
