from pathlib import Path
from typing import Optional

import matplotlib.pyplot as plt
import networkx as nx
from cyclopts import App
from loguru import logger

from enrichnet.config import load_configuration
from enrichnet.edges import edges_to_frame, extract_edges, filter_by_local_fdr
from enrichnet.errors import LabelError
from enrichnet.export import write_tsv, write_xlsx
from enrichnet.network import build_network, plot_network_graph, shortest_path
from enrichnet.network_data import read_expression_matrix, read_node_roles, role_name_sets, write_labeled_matrix
from enrichnet.partial_correlation import local_fdr_matrix, ridge_partial_correlation

app = App(help="De novo network from perturbation proteomic data by ridge partial correlation and local FDR.")


@app.default()
def pcor_network_run(
    data: Path,
    roles: Path,
    out_dir: Path = Path("."),
    config: Optional[Path] = None,
    source: Optional[str] = None,
    target: Optional[str] = None,
) -> dict[str, Path]:
    """
    Build, filter and draw the partial-correlation network.

    Args:
        data: Tab separated node x condition table with a name column.
        roles: Tab separated node-role table with columns name and type.
        out_dir: Directory for matrices, edge list and figure.
        config: Optional TOML configuration; the platform config or defaults otherwise.
        source: Start node of a shortest-path query.
        target: End node of a shortest-path query.

    Raises:
        LabelError: If `source` or `target` is not a node of `data`.
    """
    cfg = load_configuration(config)
    out_dir.mkdir(parents=True, exist_ok=True)

    values, labels = read_expression_matrix(data)
    phenotypes, activities = role_name_sets(read_node_roles(roles))
    if (source is None) != (target is None):
        logger.warning("Shortest path needs both --source and --target; skipping the path query")
    query = source is not None and target is not None
    if query:
        unknown = [n for n in (source, target) if n not in labels]
        if unknown:
            raise LabelError(f"Nodes not in {data}: {', '.join(unknown)}")

    pcor = ridge_partial_correlation(values, labels, cv=cfg.cv_folds, seed=cfg.seed)
    lfdr = local_fdr_matrix(pcor)
    significant = filter_by_local_fdr(pcor, lfdr, cutoff=cfg.lfdr_cutoff)
    edges = extract_edges(significant, n=cfg.max_edges)
    edges_df = edges_to_frame(edges)

    outputs = {
        "pcor_tsv": write_labeled_matrix(pcor, out_dir / "partial_correlation.tsv"),
        "lfdr_tsv": write_labeled_matrix(lfdr, out_dir / "local_fdr.tsv"),
        "edges_tsv": write_tsv(edges_df, out_dir / "edges.tsv"),
        "edges_xlsx": write_xlsx({"edges": edges_df}, out_dir / "edges.xlsx"),
        "network_png": out_dir / "network.png",
    }

    G = build_network(edges, phenotypes=phenotypes, activities=activities)
    path = None
    if query:
        isolated = [n for n in (source, target) if n not in G]
        if isolated:
            logger.warning(f"No path between {source} and {target}: {', '.join(isolated)} kept no edge")
        else:
            try:
                path = shortest_path(G, source, target)
            except nx.NetworkXNoPath:
                logger.warning(f"No path between {source} and {target} in the filtered network")

    fig = plot_network_graph(
        G,
        title=f"Partial correlation network (lfdr < {cfg.lfdr_cutoff}, top {cfg.max_edges})",
        path=path,
        seed=cfg.seed,
    )
    fig.savefig(outputs["network_png"], dpi=300, bbox_inches="tight")
    plt.close(fig)
    logger.info(f"Wrote network figure to {outputs['network_png']}")
    return outputs


def main():
    app()


if __name__ == '__main__':
    main()
