"""
Ridge partial correlations and their local false discovery rate.

Both estimators are delegated: scikit-learn fits the cross-validated ridge
regressions, statsmodels estimates the local FDR. This module only arranges
their inputs and outputs as labelled, symmetric node-by-node matrices.
"""
from typing import Optional

import numpy as np
from loguru import logger
from scipy.stats import median_abs_deviation
from sklearn.linear_model import RidgeCV
from sklearn.model_selection import KFold
from sklearn.preprocessing import StandardScaler
from statsmodels.stats.multitest import local_fdr

from enrichnet.errors import LabelError, RangeError, ShapeError
from enrichnet.matrix import LabeledMatrix

DEFAULT_ALPHAS = np.logspace(-3, 3, 25)
# local_fdr fits a degree 7 polynomial to a 30 bin histogram of the z-scores
MIN_LFDR_COEFFICIENTS = 28


def coefficients_to_partial_correlation(beta: np.ndarray) -> np.ndarray:
    """
    Combine the ridge coefficients of the node-wise regressions into partial correlations.

    beta[i, j] is the coefficient of node j when node i is regressed on all other
    nodes. Pairs whose two coefficients disagree in sign get 0.
    """
    product = beta * beta.T
    product[product < 0] = 0
    pcor = np.sign(beta) * np.sqrt(product)
    np.fill_diagonal(pcor, 1.0)
    return np.clip(pcor, -1.0, 1.0)


def ridge_partial_correlation(
    data: np.ndarray,
    labels: list[str],
    alphas: Optional[np.ndarray] = None,
    cv: int = 10,
    seed: int = 42,
) -> LabeledMatrix:
    """
    Estimate partial correlations by regressing each node on all others with RidgeCV.

    Args:
        data: Conditions x nodes matrix.
        labels: One name per node (column of `data`).
        alphas: Candidate ridge penalties; chosen per regression by k-fold cross-validation.
        cv: Number of folds, reduced to the number of conditions when larger.
        seed: Seed for the fold shuffling.

    Returns:
        Symmetric LabeledMatrix of partial correlations with unit diagonal.
    """
    X = np.asarray(data, dtype=float)
    if X.ndim != 2:
        raise ShapeError(f"Expected a conditions x nodes matrix, got {X.ndim} dimension(s)")
    n_samples, n_nodes = X.shape
    if len(labels) != n_nodes:
        raise LabelError(f"{len(labels)} labels for {n_nodes} nodes")
    if n_samples < 3 or n_nodes < 2:
        raise ShapeError(f"Need at least 3 conditions and 2 nodes, got {n_samples} x {n_nodes}")
    if np.isnan(X).any():
        raise ShapeError("Data matrix contains missing values")

    alphas = DEFAULT_ALPHAS if alphas is None else np.asarray(alphas, dtype=float)
    folds = KFold(n_splits=min(cv, n_samples), shuffle=True, random_state=seed)
    X = StandardScaler().fit_transform(X)

    beta = np.zeros((n_nodes, n_nodes))
    for i in range(n_nodes):
        others = np.delete(np.arange(n_nodes), i)
        model = RidgeCV(alphas=alphas, cv=folds, scoring="neg_mean_squared_error")
        model.fit(X[:, others], X[:, i])
        beta[i, others] = model.coef_
        logger.debug(f"{labels[i]}: ridge alpha {model.alpha_:.4g}")

    logger.info(f"Estimated partial correlations for {n_nodes} nodes over {n_samples} conditions")
    return LabeledMatrix.from_square(coefficients_to_partial_correlation(beta), labels)


def fisher_z_scores(correlations: np.ndarray, n_samples: Optional[int] = None) -> np.ndarray:
    """
    Fisher-transform correlations to z-scores.

    With a known sample size the scores are scaled by sqrt(n - 3); otherwise they
    are standardised by their median and normal-consistent MAD.
    """
    z = np.arctanh(np.clip(np.asarray(correlations, dtype=float), -0.999999, 0.999999))
    if n_samples is not None:
        if n_samples <= 3:
            raise RangeError(f"Fisher z-scores need more than 3 samples, got {n_samples}")
        return z * np.sqrt(n_samples - 3)

    scale = median_abs_deviation(z, scale="normal")
    if scale == 0:
        raise RangeError("Correlations have zero spread; cannot standardise them")
    return (z - np.median(z)) / scale


def local_fdr_matrix(matrix: LabeledMatrix, n_samples: Optional[int] = None) -> LabeledMatrix:
    """
    Local FDR of every off-diagonal coefficient, aligned with `matrix`.

    The estimate is computed once per unordered pair (upper triangle) and mirrored,
    the diagonal is 0.

    Raises:
        ShapeError: If the matrix has fewer than MIN_LFDR_COEFFICIENTS off-diagonal
            pairs (8 nodes).
        RangeError: If the coefficients cannot be scaled or statsmodels cannot fit
            their density.
    """
    matrix.validate()
    values = np.asarray(matrix.values, dtype=float)
    rows, cols = np.triu_indices(values.shape[0], k=1)
    if len(rows) < MIN_LFDR_COEFFICIENTS:
        raise ShapeError(
            f"Local FDR needs at least {MIN_LFDR_COEFFICIENTS} coefficients, "
            f"got {len(rows)} from {values.shape[0]} nodes"
        )
    z = fisher_z_scores(values[rows, cols], n_samples=n_samples)

    lfdr = np.zeros_like(values)
    try:
        lfdr[rows, cols] = local_fdr(z)
    except ValueError as err:
        raise RangeError(f"Local FDR estimation failed for {len(z)} coefficients: {err}") from err
    lfdr[cols, rows] = lfdr[rows, cols]
    logger.info(f"Estimated local FDR for {len(z)} coefficients")
    return LabeledMatrix(values=lfdr, row_labels=list(matrix.row_labels), col_labels=list(matrix.col_labels))
