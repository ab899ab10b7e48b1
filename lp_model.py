import numpy as np
from scipy.sparse import csc_matrix
from typing import Optional
from pydantic import BaseModel, Field, ConfigDict, field_validator, model_validator

from errors import StructuralValidationError


def _frozen_array(value, dtype) -> np.ndarray:
    """Copy value into a 1-D read-only numpy array of the given dtype."""
    arr = np.array(value, dtype=dtype, copy=True)
    if arr.ndim != 1:
        arr = arr.reshape(-1)
    arr.setflags(write=False)
    return arr


# Pydantic model for a linear program  min c^T x  s.t.  A x = b, x >= 0
# with A stored in compressed sparse column form.
class SparseProblem(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    rows: int
    cols: int
    nnz: int
    col_ptr: np.ndarray
    row_idx: np.ndarray
    values: np.ndarray
    b: np.ndarray
    c: np.ndarray
    matrix_name: Optional[str] = Field(default=None)
    rhs_name: Optional[str] = Field(default=None)
    cost_name: Optional[str] = Field(default=None)

    @field_validator('col_ptr', 'row_idx', mode='before')
    @classmethod
    def _as_index_array(cls, v):
        return _frozen_array(v, np.int64)

    @field_validator('values', 'b', 'c', mode='before')
    @classmethod
    def _as_value_array(cls, v):
        return _frozen_array(v, np.float64)

    @model_validator(mode='after')
    def _check_structure(self):
        # StructuralValidationError is not a ValueError, so pydantic lets it
        # propagate unwrapped.
        check_csc_structure(self.rows, self.cols, self.nnz, self.col_ptr,
                            self.row_idx, self.values, self.b, self.c)
        return self

    @property
    def shape(self):
        return (self.rows, self.cols)

    def to_scipy(self) -> csc_matrix:
        """Build the equivalent scipy CSC matrix. Duplicate entries are summed by scipy."""
        return csc_matrix((self.values, self.row_idx, self.col_ptr), shape=(self.rows, self.cols))


def _first_bad(mask: np.ndarray) -> int:
    return int(np.flatnonzero(mask)[0])


def check_csc_structure(rows: int, cols: int, nnz: int,
                        col_ptr: np.ndarray, row_idx: np.ndarray, values: np.ndarray,
                        b: np.ndarray, c: np.ndarray):
    """
    Raise StructuralValidationError unless the arrays describe a well-formed
    CSC problem. Checks run in order so the first message names the most
    basic violation.
    """
    if rows < 0 or cols < 0 or nnz < 0:
        raise StructuralValidationError(
            f"Dimensions must be non-negative, got rows={rows} cols={cols} nnz={nnz}", block='matrix')

    if col_ptr.shape[0] != cols + 1:
        raise StructuralValidationError(
            f"col_ptr has length {col_ptr.shape[0]}, expected cols+1={cols + 1}", block='matrix')
    if row_idx.shape[0] != nnz:
        raise StructuralValidationError(
            f"row_idx has length {row_idx.shape[0]}, expected nnz={nnz}", block='matrix')
    if values.shape[0] != nnz:
        raise StructuralValidationError(
            f"values has length {values.shape[0]}, expected nnz={nnz}", block='matrix')

    if col_ptr[0] != 0:
        raise StructuralValidationError(f"col_ptr[0] is {col_ptr[0]}, expected 0", block='matrix')
    if col_ptr[cols] != nnz:
        raise StructuralValidationError(
            f"col_ptr[{cols}] is {col_ptr[cols]}, expected nnz={nnz}", block='matrix')

    decreasing = np.diff(col_ptr) < 0
    if decreasing.any():
        j = _first_bad(decreasing)
        raise StructuralValidationError(
            f"col_ptr is not non-decreasing: col_ptr[{j}]={col_ptr[j]} > col_ptr[{j + 1}]={col_ptr[j + 1]}",
            block='matrix')

    out_of_range = (row_idx < 0) | (row_idx >= rows)
    if out_of_range.any():
        k = _first_bad(out_of_range)
        raise StructuralValidationError(
            f"row_idx[{k}]={row_idx[k]} is outside [0, {rows})", block='matrix')

    not_finite = ~np.isfinite(values)
    if not_finite.any():
        k = _first_bad(not_finite)
        raise StructuralValidationError(f"values[{k}]={values[k]} is not finite", block='matrix')

    if b.shape[0] != rows:
        raise StructuralValidationError(f"b has length {b.shape[0]}, expected rows={rows}", block='rhs')
    if not np.isfinite(b).all():
        i = _first_bad(~np.isfinite(b))
        raise StructuralValidationError(f"b[{i}]={b[i]} is not finite", block='rhs')

    if c.shape[0] != cols:
        raise StructuralValidationError(f"c has length {c.shape[0]}, expected cols={cols}", block='cost')
    if not np.isfinite(c).all():
        j = _first_bad(~np.isfinite(c))
        raise StructuralValidationError(f"c[{j}]={c[j]} is not finite", block='cost')
