import networkx as nx
import polars as pl
import pytest
from matplotlib.figure import Figure

from enrichnet.enrichment import RESULT_SCHEMA
from enrichnet.enrichment_map import EnrichmentMapBuilder, plot_enrichment_map


@pytest.fixture
def results() -> pl.DataFrame:
    return pl.DataFrame(
        {
            "term": ["A%X", "B%X", "C%X", "D%X"],
            "short_name": ["A", "B", "C", "D"],
            "es": [0.7, 0.6, -0.5, 0.3],
            "nes": [1.8, 1.5, -1.4, 0.9],
            "pvalue": [0.001, 0.002, 0.01, 0.04],
            "fdr": [0.01, 0.02, 0.05, 0.2],
            "set_size": [30, 25, 40, 15],
            "lead_genes": [
                ["g1", "g2", "g3", "g4"],
                ["g3", "g4", "g5"],
                ["g9"],
                [],
            ],
        },
        schema=RESULT_SCHEMA,
    )


def test_node_sizes(results):
    sizes = EnrichmentMapBuilder(results).node_sizes()
    assert sizes == {"A%X": 4, "B%X": 3, "C%X": 1, "D%X": 0}


def test_similarity_edges_jaccard(results):
    edges = EnrichmentMapBuilder(results).similarity_edges()
    assert edges.columns == ["term_a", "term_b", "shared", "similarity"]
    assert edges.height == 1
    row = edges.row(0, named=True)
    assert (row["term_a"], row["term_b"], row["shared"]) == ("A%X", "B%X", 2)
    assert row["similarity"] == pytest.approx(2 / 5)


def test_similarity_edges_overlap(results):
    edges = EnrichmentMapBuilder(results).similarity_edges(metric="overlap")
    assert edges["similarity"].to_list() == [pytest.approx(2 / 3)]


def test_similarity_edges_unknown_metric(results):
    with pytest.raises(ValueError):
        EnrichmentMapBuilder(results).similarity_edges(metric="cosine")


def test_build_graph(results):
    G = EnrichmentMapBuilder(results).build_graph(cutoff=0.2)
    assert isinstance(G, nx.Graph)
    assert set(G.nodes) == {"A%X", "B%X", "C%X", "D%X"}
    assert list(G.edges) == [("A%X", "B%X")]
    assert G.nodes["A%X"]["short_name"] == "A"
    assert G.nodes["C%X"]["nes"] == pytest.approx(-1.4)

    assert EnrichmentMapBuilder(results).build_graph(cutoff=0.5).number_of_edges() == 0


def test_plot_enrichment_map(results):
    G = EnrichmentMapBuilder(results).build_graph()
    fig = plot_enrichment_map(G, title="Test map")
    assert isinstance(fig, Figure)


def test_plot_enrichment_map_on_given_axes(results):
    import matplotlib.pyplot as plt

    fig, axes = plt.subplots(1, 2)
    returned = plot_enrichment_map(nx.Graph(), title="empty", ax=axes[1])
    assert returned is fig
    assert axes[1].get_title() == "empty"
    plt.close(fig)
