from dataclasses import dataclass

import numpy as np
import polars as pl

from enrichnet.errors import LabelError, ShapeError


@dataclass
class LabeledMatrix:
    """
    Square node-by-node matrix with row and column labels.
    Used for partial-correlation coefficients and their local FDR.
    """
    values: np.ndarray
    row_labels: list[str]
    col_labels: list[str]

    @classmethod
    def from_square(cls, values, labels: list[str]) -> "LabeledMatrix":
        """Same labels on rows and columns."""
        return cls(values=np.asarray(values, dtype=float), row_labels=list(labels), col_labels=list(labels))

    @property
    def labels(self) -> list[str]:
        return self.row_labels

    def validate(self, atol: float = 1e-8) -> None:
        """
        Check that the matrix is square, symmetric within `atol` and consistently labelled.

        Raises:
            ShapeError: Not two dimensional, not square, not finite or not symmetric.
            LabelError: Labels missing, duplicated, of the wrong length or
                different between rows and columns.
        """
        values = np.asarray(self.values, dtype=float)
        if values.ndim != 2:
            raise ShapeError(f"Expected a 2-D matrix, got {values.ndim} dimension(s)")
        n_rows, n_cols = values.shape
        if n_rows != n_cols:
            raise ShapeError(f"Matrix is not square: {n_rows} x {n_cols}")

        if not self.row_labels or not self.col_labels:
            raise LabelError("Matrix rows and columns must be labelled")
        if len(self.row_labels) != n_rows or len(self.col_labels) != n_cols:
            raise LabelError(
                f"Label count ({len(self.row_labels)} rows, {len(self.col_labels)} columns) "
                f"does not match matrix shape {values.shape}"
            )
        if any(label is None or label == "" for label in self.row_labels + self.col_labels):
            raise LabelError("Matrix labels must be non-empty")
        if len(set(self.row_labels)) != len(self.row_labels):
            raise LabelError("Matrix labels must be unique")
        if list(self.row_labels) != list(self.col_labels):
            raise LabelError("Row and column labels differ in content or order")

        if not np.isfinite(values).all():
            raise ShapeError("Matrix contains NaN or infinite values")
        if not np.allclose(values, values.T, atol=atol):
            raise ShapeError("Matrix is not symmetric")

    def to_frame(self) -> pl.DataFrame:
        """Wide polars frame: a leading `name` column followed by one column per node."""
        data = {"name": list(self.row_labels)}
        for j, label in enumerate(self.col_labels):
            data[label] = self.values[:, j].tolist()
        return pl.DataFrame(data)
