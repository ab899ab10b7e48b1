import numpy as np
from typing import Tuple

from lp_model import SparseProblem


def expand(problem: SparseProblem) -> np.ndarray:
    """
    Scatter the CSC matrix of `problem` into a dense column-major array.

    The result has shape (cols, rows) so that dense[j][i] is A[i][j]; use
    `.T` for a row-major view. Repeated (row, col) entries inside a column
    keep the last value written.
    """
    dense = np.zeros((problem.cols, problem.rows), dtype=np.float64)
    col_ptr = problem.col_ptr
    row_idx = problem.row_idx
    values = problem.values
    for j in range(problem.cols):
        for k in range(col_ptr[j], col_ptr[j + 1]):
            dense[j, row_idx[k]] = values[k]
    return dense


def compress(dense: np.ndarray) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Re-derive (col_ptr, row_idx, values) by scanning a column-major dense array for nonzeros."""
    dense = np.asarray(dense, dtype=np.float64)
    col_ptr = [0]
    row_idx = []
    values = []
    for column in dense:
        nz = np.flatnonzero(column)
        row_idx.extend(nz.tolist())
        values.extend(column[nz].tolist())
        col_ptr.append(len(row_idx))
    return (np.array(col_ptr, dtype=np.int64),
            np.array(row_idx, dtype=np.int64),
            np.array(values, dtype=np.float64))
