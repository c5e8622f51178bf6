"""
Partial Correlation Network - Marimo Notebook

De novo network from perturbation proteomic data: ridge partial correlations,
local FDR filtering, top edges and a shortest-path query.
"""

import marimo

__generated_with = "0.16.5"
app = marimo.App(width="medium")


@app.cell
def _():
    import marimo as mo
    from pathlib import Path

    from enrichnet.config import load_configuration
    from enrichnet.edges import edges_to_frame, extract_edges, filter_by_local_fdr
    from enrichnet.network import build_network, plot_network_graph, plot_network_graph_plotly, shortest_path
    from enrichnet.network_data import read_expression_matrix, read_node_roles, role_name_sets
    from enrichnet.partial_correlation import local_fdr_matrix, ridge_partial_correlation
    return (
        Path,
        build_network,
        edges_to_frame,
        extract_edges,
        filter_by_local_fdr,
        load_configuration,
        local_fdr_matrix,
        mo,
        plot_network_graph,
        plot_network_graph_plotly,
        read_expression_matrix,
        read_node_roles,
        ridge_partial_correlation,
        role_name_sets,
        shortest_path,
    )


@app.cell
def _(mo):
    mo.md(
        """
    # Partial Correlation Network

    Rows of the data table are proteins, phenotypes and drug activities, columns are
    perturbation conditions. The node-role table assigns each name a `type`
    (1 protein, 2 phenotype, 3 activity).
    """
    )
    return


@app.cell
def _(mo):
    data_path = mo.ui.text(label="Data (.tsv)", value="proteomic_data.tsv")
    roles_path = mo.ui.text(label="Node roles (.tsv)", value="node_roles.tsv")
    mo.vstack([data_path, roles_path])
    return data_path, roles_path


@app.cell
def _(
    Path,
    data_path,
    load_configuration,
    read_expression_matrix,
    read_node_roles,
    role_name_sets,
    roles_path,
):
    cfg = load_configuration()
    values, labels = read_expression_matrix(Path(data_path.value))
    phenotypes, activities = role_name_sets(read_node_roles(Path(roles_path.value)))
    return activities, cfg, labels, phenotypes, values


@app.cell
def _(
    cfg,
    edges_to_frame,
    extract_edges,
    filter_by_local_fdr,
    labels,
    local_fdr_matrix,
    ridge_partial_correlation,
    values,
):
    pcor = ridge_partial_correlation(values, labels, cv=cfg.cv_folds, seed=cfg.seed)
    lfdr = local_fdr_matrix(pcor)
    edges = extract_edges(filter_by_local_fdr(pcor, lfdr, cutoff=cfg.lfdr_cutoff), n=cfg.max_edges)
    edges_to_frame(edges)
    return (edges,)


@app.cell
def _(activities, build_network, edges, mo, phenotypes):
    graph = build_network(edges, phenotypes=phenotypes, activities=activities)
    nodes = sorted(graph.nodes)
    source = mo.ui.dropdown(options=nodes, label="From")
    target = mo.ui.dropdown(options=nodes, label="To")
    mo.hstack([source, target])
    return graph, source, target


@app.cell
def _(graph, plot_network_graph, shortest_path, source, target):
    path = None
    if source.value and target.value:
        path = shortest_path(graph, source.value, target.value)
    plot_network_graph(graph, title="Partial correlation network", path=path)
    return


@app.cell
def _(graph, plot_network_graph_plotly):
    plot_network_graph_plotly(graph, title="Partial correlation network")
    return


if __name__ == "__main__":
    app.run()
