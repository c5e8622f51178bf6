import numpy as np
import pytest

from enrichnet.edges import NodeRole
from enrichnet.errors import ParseError
from enrichnet.matrix import LabeledMatrix
from enrichnet.network_data import (
    read_expression_matrix,
    read_labeled_matrix,
    read_node_roles,
    role_name_sets,
    write_labeled_matrix,
)


def test_read_node_roles(tmp_path):
    path = tmp_path / "roles.tsv"
    path.write_text("name\ttype\nAKT1\t1\ngrowth\t2\ndrugX\t3\nMTOR\tprotein\ndrugY\tDrug\n")
    roles = read_node_roles(path)
    assert roles == {
        "AKT1": NodeRole.PROTEIN,
        "growth": NodeRole.PHENOTYPE,
        "drugX": NodeRole.ACTIVITY,
        "MTOR": NodeRole.PROTEIN,
        "drugY": NodeRole.ACTIVITY,
    }
    phenotypes, activities = role_name_sets(roles)
    assert phenotypes == {"growth"}
    assert activities == {"drugX", "drugY"}


def test_read_node_roles_unknown_type(tmp_path):
    path = tmp_path / "roles.tsv"
    path.write_text("name\ttype\nAKT1\t7\n")
    with pytest.raises(ParseError, match="unknown node type"):
        read_node_roles(path)


def test_read_node_roles_duplicate(tmp_path):
    path = tmp_path / "roles.tsv"
    path.write_text("name\ttype\nAKT1\t1\nAKT1\t2\n")
    with pytest.raises(ParseError, match="more than once"):
        read_node_roles(path)


def test_read_node_roles_empty_file(tmp_path):
    path = tmp_path / "roles.tsv"
    path.write_text("")
    with pytest.raises(ParseError, match="roles.tsv"):
        read_node_roles(path)


def test_read_expression_matrix_ragged_row(tmp_path):
    path = tmp_path / "data.tsv"
    path.write_text("name\tc1\tc2\nAKT1\t1.0\t2.0\nMTOR\t1.0\t2.0\t3.0\n")
    with pytest.raises(ParseError):
        read_expression_matrix(path)


def test_read_node_roles_missing_column(tmp_path):
    path = tmp_path / "roles.tsv"
    path.write_text("name\trole\nAKT1\t1\n")
    with pytest.raises(ParseError, match="type"):
        read_node_roles(path)


def test_read_expression_matrix(tmp_path):
    path = tmp_path / "data.tsv"
    path.write_text("name\tc1\tc2\tc3\nA\t1.0\t2.0\t3.0\nB\t-1\t0.5\t0\n")
    values, labels = read_expression_matrix(path)
    assert labels == ["A", "B"]
    assert values.shape == (3, 2)
    np.testing.assert_allclose(values[:, 0], [1.0, 2.0, 3.0])


def test_read_expression_matrix_non_numeric(tmp_path):
    path = tmp_path / "data.tsv"
    path.write_text("name\tc1\tc2\nA\t1.0\tx\n")
    with pytest.raises(ParseError, match="non-numeric"):
        read_expression_matrix(path)


def test_read_expression_matrix_missing_values(tmp_path):
    path = tmp_path / "data.tsv"
    path.write_text("name\tc1\tc2\nA\t1.0\t\n")
    with pytest.raises(ParseError, match="missing values"):
        read_expression_matrix(path)


def test_read_expression_matrix_duplicate_names(tmp_path):
    path = tmp_path / "data.tsv"
    path.write_text("name\tc1\nA\t1.0\nA\t2.0\n")
    with pytest.raises(ParseError, match="not unique"):
        read_expression_matrix(path)


def test_labeled_matrix_file_round_trip(tmp_path):
    matrix = LabeledMatrix.from_square([[1.0, -0.25], [-0.25, 1.0]], ["A", "B"])
    path = write_labeled_matrix(matrix, tmp_path / "pcor.tsv")
    loaded = read_labeled_matrix(path)
    loaded.validate()
    assert loaded.labels == ["A", "B"]
    np.testing.assert_allclose(loaded.values, matrix.values)
