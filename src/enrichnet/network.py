from typing import Iterable, Optional

import matplotlib.pyplot as plt
import networkx as nx
import plotly.graph_objs as go
from loguru import logger
from matplotlib.figure import Figure

from enrichnet.edges import EdgeRecord, classify_nodes
from enrichnet.errors import LabelError

ROLE_COLORS = {
    "protein": "lightgray",
    "phenotype": "tomato",
    "activity": "gold",
}

SIGN_COLORS = {
    "activating": "red",
    "inhibitory": "blue",
}


def build_network(
    edges: list[EdgeRecord],
    phenotypes: Iterable[str] = (),
    activities: Iterable[str] = (),
) -> nx.Graph:
    """
    Undirected graph of the edge list. Nodes carry `nodeType`
    (protein / phenotype / activity), edges `weight`, `abs_weight` and `sign`.
    """
    roles = classify_nodes(edges, phenotypes, activities)
    G = nx.Graph()
    for name, role in roles.items():
        G.add_node(name, nodeType=role.label)
    for e in edges:
        G.add_edge(e.source, e.target, weight=e.weight, abs_weight=abs(e.weight), sign=e.sign)
    logger.info(f"Network with {G.number_of_nodes()} nodes and {G.number_of_edges()} edges")
    return G


def shortest_path(G: nx.Graph, source: str, target: str) -> list[str]:
    """
    Fewest-hop path between two named nodes.

    Raises:
        LabelError: If either node is not in the graph.
        networkx.NetworkXNoPath: If the nodes are not connected.
    """
    missing = [n for n in (source, target) if n not in G]
    if missing:
        raise LabelError(f"Nodes not in network: {', '.join(missing)}")
    path = nx.shortest_path(G, source=source, target=target)
    logger.info(f"Shortest path {source} -> {target}: {' - '.join(path)}")
    return path


def _path_edges(path: Optional[list[str]]) -> set[frozenset]:
    if not path:
        return set()
    return {frozenset(pair) for pair in zip(path[:-1], path[1:])}


def plot_network_graph(
    G: nx.Graph,
    title: str,
    path: Optional[list[str]] = None,
    ax: Optional[plt.Axes] = None,
    seed: int = 0,
) -> Figure:
    """
    Draw the network on `ax` (a new figure when None) and return its figure.

    Nodes are coloured by role, edges red (activating) or blue (inhibitory) with
    width proportional to |weight|. Edges of `path`, if given, are drawn on top in black.
    """
    if ax is None:
        fig, ax = plt.subplots(figsize=(8, 8))
    else:
        fig = ax.figure

    if G.number_of_nodes() == 0:
        ax.set_title(title)
        ax.axis("off")
        ax.text(0.5, 0.5, "No edges pass the cutoff",
                ha="center", va="center", transform=ax.transAxes,
                fontsize=10, color="gray")
        return fig

    pos = nx.kamada_kawai_layout(G) if nx.is_connected(G) else nx.spring_layout(G, seed=seed)
    highlight = _path_edges(path)

    edge_list = list(G.edges(data=True))
    nx.draw_networkx_edges(
        G, pos,
        edgelist=[(u, v) for u, v, _ in edge_list],
        width=[1 + 4 * d["abs_weight"] for _, _, d in edge_list],
        edge_color=[SIGN_COLORS[d["sign"]] for _, _, d in edge_list],
        alpha=0.6,
        ax=ax,
    )
    if highlight:
        nx.draw_networkx_edges(
            G, pos,
            edgelist=[tuple(pair) for pair in highlight],
            width=3,
            edge_color="black",
            ax=ax,
        )

    for node_type, color in ROLE_COLORS.items():
        nodelist = [n for n, d in G.nodes(data=True) if d["nodeType"] == node_type]
        if not nodelist:
            continue
        nx.draw_networkx_nodes(
            G, pos,
            nodelist=nodelist,
            node_color=color,
            node_size=300 if node_type == "protein" else 500,
            node_shape="o" if node_type == "protein" else "s",
            edgecolors="black",
            linewidths=[2.0 if path and n in path else 0.5 for n in nodelist],
            label=node_type,
            ax=ax,
        )

    nx.draw_networkx_labels(G, pos, font_size=7, ax=ax)
    ax.legend(loc="best", fontsize=7, frameon=False)
    ax.set_title(title)
    ax.axis("off")
    return fig


def build_tooltip(node_id: str, G: nx.Graph) -> str:
    d = G.nodes[node_id]
    return (
        f"<b>{d['nodeType'].capitalize()}:</b> {node_id}<br>"
        f"<b>Degree:</b> {G.degree(node_id)}"
    )


def plot_network_graph_plotly(G: nx.Graph, title: str, seed: int = 0) -> go.Figure:
    pos = nx.spring_layout(G, seed=seed)

    traces = []
    for sign, color in SIGN_COLORS.items():
        edge_x, edge_y = [], []
        for u, v, d in G.edges(data=True):
            if d["sign"] != sign:
                continue
            x0, y0 = pos[u]; x1, y1 = pos[v]
            edge_x += [x0, x1, None]; edge_y += [y0, y1, None]
        traces.append(go.Scatter(
            x=edge_x, y=edge_y,
            mode="lines",
            line=dict(width=1, color=color),
            hoverinfo="none",
            name=sign,
        ))

    for node_type, color in ROLE_COLORS.items():
        nodes = [n for n, d in G.nodes(data=True) if d["nodeType"] == node_type]
        traces.append(go.Scatter(
            x=[pos[n][0] for n in nodes],
            y=[pos[n][1] for n in nodes],
            mode="markers+text",
            marker=dict(size=14 if node_type == "protein" else 20, color=color,
                        line=dict(width=1, color="black")),
            text=nodes,
            textposition="top center",
            textfont=dict(size=8, color="black"),
            hoverinfo="text",
            hovertext=[build_tooltip(n, G) for n in nodes],
            name=node_type,
        ))

    fig = go.Figure(data=traces)
    fig.update_layout(
        title=title,
        xaxis=dict(showgrid=False, zeroline=False, showticklabels=False),
        yaxis=dict(showgrid=False, zeroline=False, showticklabels=False),
        plot_bgcolor="white",
        margin=dict(l=20, r=20, t=40, b=20),
    )
    return fig
