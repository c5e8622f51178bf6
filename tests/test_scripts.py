import numpy as np
import polars as pl
import pytest
import tomli_w

from enrichnet.config import AnalysisConfig
from enrichnet.errors import LabelError, ShapeError
from enrichnet.scripts.enrichment_map_run import enrichment_map_run
from enrichnet.scripts.pcor_network_run import pcor_network_run
from enrichnet.scripts.write_config import write_config


def write_toml(path, data):
    with open(path, 'wb') as f:
        tomli_w.dump(data, f)
    return path


def test_write_config(tmp_path):
    path = tmp_path / "config.toml"
    write_config(path)
    assert AnalysisConfig.read_toml(path) == AnalysisConfig()


def write_pcor_inputs(tmp_path, config_data, n_noise=21):
    rng = np.random.default_rng(2)
    n = 40
    drug = rng.normal(size=n)
    p1 = -0.9 * drug + 0.3 * rng.normal(size=n)
    p2 = 0.9 * p1 + 0.3 * rng.normal(size=n)
    pheno = 0.9 * p2 + 0.3 * rng.normal(size=n)
    columns = {"DRUG": drug, "P1": p1, "P2": p2, "PHENO": pheno}
    columns.update({f"N{i}": rng.normal(size=n) for i in range(n_noise)})

    data = tmp_path / "data.tsv"
    pl.DataFrame(
        {"name": list(columns)} | {f"c{j}": [float(v[j]) for v in columns.values()] for j in range(n)}
    ).write_csv(data, separator="\t")
    roles = tmp_path / "roles.tsv"
    roles.write_text("name\ttype\nDRUG\t3\nPHENO\t2\nP1\t1\nP2\t1\n")
    config = write_toml(tmp_path / "config.toml", {"cv_folds": 5, **config_data})
    return data, roles, config


def test_pcor_network_run(tmp_path):
    data, roles, config = write_pcor_inputs(tmp_path, {"max_edges": 10, "lfdr_cutoff": 0.5})

    outputs = pcor_network_run(data, roles, out_dir=tmp_path / "out", config=config,
                               source="DRUG", target="PHENO")
    for path in outputs.values():
        assert path.exists()

    edges = pl.read_csv(outputs["edges_tsv"], separator="\t")
    assert edges.columns == ["source", "target", "weight", "sign"]
    assert edges.height <= 10
    pcor = pl.read_csv(outputs["pcor_tsv"], separator="\t")
    assert pcor.shape == (25, 26)


def test_pcor_network_run_path_endpoint_without_edges(tmp_path):
    data, roles, config = write_pcor_inputs(tmp_path, {"max_edges": 0})

    outputs = pcor_network_run(data, roles, out_dir=tmp_path / "out", config=config,
                               source="N20", target="PHENO")
    for path in outputs.values():
        assert path.exists()
    assert pl.read_csv(outputs["edges_tsv"], separator="\t").height == 0


def test_pcor_network_run_unknown_path_endpoint(tmp_path):
    data, roles, config = write_pcor_inputs(tmp_path, {"max_edges": 10})

    with pytest.raises(LabelError, match="MISSING"):
        pcor_network_run(data, roles, out_dir=tmp_path / "out", config=config,
                         source="MISSING", target="PHENO")
    assert not (tmp_path / "out" / "partial_correlation.tsv").exists()


def test_pcor_network_run_source_without_target(tmp_path):
    data, roles, config = write_pcor_inputs(tmp_path, {"max_edges": 10})

    outputs = pcor_network_run(data, roles, out_dir=tmp_path / "out", config=config, source="DRUG")
    assert outputs["network_png"].exists()


def test_pcor_network_run_too_few_nodes(tmp_path):
    data, roles, config = write_pcor_inputs(tmp_path, {"max_edges": 10}, n_noise=0)

    with pytest.raises(ShapeError):
        pcor_network_run(data, roles, out_dir=tmp_path / "out", config=config)


def test_enrichment_map_run(tmp_path):
    rng = np.random.default_rng(4)
    genes = [f"G{i}" for i in range(300)]
    scores = np.sort(rng.normal(size=len(genes)))[::-1]

    ranks = tmp_path / "ranks.rnk"
    ranks.write_text("gene\trank\n" + "".join(f"{g}\t{s:.4f}\n" for g, s in zip(genes, scores)))
    gmt = tmp_path / "sets.gmt"
    gmt.write_text(
        "UP_A%TEST%1\tup\t" + "\t".join(genes[:30]) + "\n"
        "UP_B%TEST%2\tup overlapping\t" + "\t".join(genes[10:40]) + "\n"
        "DOWN%TEST%3\tdown\t" + "\t".join(genes[-30:]) + "\n"
        "SMALL%TEST%4\ttoo small\t" + "\t".join(genes[100:103]) + "\n"
    )
    config = write_toml(tmp_path / "config.toml", {
        "min_set_size": 5,
        "max_set_size": 100,
        "permutation_num": 50,
        "pvalue_cutoff": 1.01,
    })

    outputs = enrichment_map_run(gmt, ranks, out_dir=tmp_path / "out", config=config)
    for path in outputs.values():
        assert path.exists()

    results = pl.read_csv(outputs["results_tsv"], separator="\t")
    assert "SMALL%TEST%4" not in results["term"].to_list()
    assert set(results["short_name"].to_list()) <= {"UP_A", "UP_B", "DOWN"}
