import matplotlib

matplotlib.use("Agg")

import numpy as np
import pytest


@pytest.fixture
def gmt_file(tmp_path):
    path = tmp_path / "sets.gmt"
    path.write_text(
        "LEPTIN%NETPATH%LEPTIN\tleptin signalling\tLEP\tLEPR\tJAK2\tSTAT3\n"
        "TINY%REACTOME%R-HSA-1\ttiny\tA1\tA2\n"
        "DUPES%KEGG%hsa0001\twith duplicates\tG1\tG2\tG2\tG3\tG4\n"
    )
    return path


@pytest.fixture
def rank_file(tmp_path):
    path = tmp_path / "ranks.rnk"
    path.write_text("gene\trank\nLEP\t3.2\nLEPR  1.5\nJAK2\t-0.4\nSTAT3\t-2.1\n")
    return path


@pytest.fixture
def proteomic_data():
    """30 conditions x 8 nodes, with P1 -> P2 -> PHENO and DRUG -| P1 chains."""
    rng = np.random.default_rng(0)
    n = 30
    drug = rng.normal(size=n)
    p1 = -0.9 * drug + 0.3 * rng.normal(size=n)
    p2 = 0.9 * p1 + 0.3 * rng.normal(size=n)
    pheno = 0.9 * p2 + 0.3 * rng.normal(size=n)
    noise = rng.normal(size=(n, 4))
    values = np.column_stack([drug, p1, p2, pheno, noise])
    labels = ["DRUG", "P1", "P2", "PHENO", "N1", "N2", "N3", "N4"]
    return values, labels
