"""
Reshaping helpers for gridded time series

Gridded 3-D data are stored as cubes ``(rows, cols, time)``. Many analyses
are easier on a 2-D matrix with one grid cell per column, so these helpers
convert between the two layouts, optionally keeping only masked cells.

Also here: bottom (deepest valid value of each column of a cube),
cell2nancat (NaN-separated concatenation of polylines) and tile (index
blocks for processing large grids piece by piece).
"""

from typing import List, Optional, Sequence, Tuple, Union

import numpy as np
import numpy.typing as npt


def _check_mask(mask: npt.ArrayLike, grid_shape: Sequence[int]) -> np.ndarray:
    mask = np.asarray(mask)
    if mask.dtype != bool:
        raise ValueError("mask must be a boolean array.")
    if mask.shape != tuple(grid_shape):
        raise ValueError(
            f"The dimensions of the mask {mask.shape} must match the first two "
            f"dimensions of the data {tuple(grid_shape)}."
        )
    return mask


def cube2rect(A3: npt.ArrayLike, mask: Optional[npt.ArrayLike] = None) -> np.ndarray:
    """
    Reshape a 3-D cube into a 2-D matrix with time down the rows.

    Parameters
    ----------
    A3 : array_like
        Data cube of shape (rows, cols, time). 2-D input is treated as a
        single time step.
    mask : array_like of bool, optional
        (rows, cols) mask; only True grid cells are kept

    Returns
    -------
    A2 : ndarray
        Matrix of shape (time, rows*cols), or (time, mask.sum()) if masked

    Examples
    --------
    >>> import numpy as np
    >>> from cdt_tools import cube2rect, rect2cube
    >>> A = np.random.rand(3, 4, 10)
    >>> A2 = cube2rect(A)
    >>> A2.shape
    (10, 12)
    >>> np.array_equal(rect2cube(A2, A.shape), A)
    True
    """
    A3 = np.asarray(A3)
    if A3.ndim == 2:
        A3 = A3[:, :, np.newaxis]
    if A3.ndim != 3:
        raise ValueError(f"Input must be 2-D or 3-D, got {A3.ndim}-D.")

    A2 = np.moveaxis(A3, 2, 0).reshape(A3.shape[2], -1)
    if mask is not None:
        mask = _check_mask(mask, A3.shape[:2])
        A2 = A2[:, mask.ravel()]
    return A2


def rect2cube(A2: npt.ArrayLike, shape_or_mask: Union[Sequence[int], npt.ArrayLike]) -> np.ndarray:
    """
    Reshape a 2-D (time, cells) matrix back into a (rows, cols, time) cube.

    Parameters
    ----------
    A2 : array_like
        Matrix with time down the rows. A 1-D array is one time step.
    shape_or_mask : sequence of int or array_like of bool
        Either the grid size ``(rows, cols)`` (a third entry is ignored) or
        the 2-D mask that was passed to :func:`cube2rect`. Masked-out cells
        are filled with NaN, or False for boolean data.

    Returns
    -------
    A3 : ndarray
        Cube of shape (rows, cols, time)
    """
    A2 = np.asarray(A2)
    if A2.ndim == 1:
        A2 = A2[np.newaxis, :]
    candidate = np.asarray(shape_or_mask)

    if candidate.ndim == 2:
        mask = _check_mask(candidate, candidate.shape)
        if A2.shape[1] != mask.sum():
            raise ValueError(
                f"Number of columns in A2 ({A2.shape[1]}) must equal the number "
                f"of True cells in the mask ({mask.sum()})."
            )
        fill = False if A2.dtype == bool else np.nan
        dtype = bool if A2.dtype == bool else np.result_type(A2.dtype, float)
        full = np.full((A2.shape[0], mask.size), fill, dtype=dtype)
        full[:, mask.ravel()] = A2
        rows, cols = mask.shape
    else:
        if candidate.ndim != 1 or candidate.size not in (2, 3):
            raise ValueError("shape_or_mask must be a grid size (rows, cols) or a 2-D boolean mask.")
        rows, cols = int(candidate[0]), int(candidate[1])
        if rows * cols != A2.shape[1]:
            raise ValueError(
                f"Grid size {rows}x{cols} does not match the {A2.shape[1]} columns of A2."
            )
        full = A2

    return np.moveaxis(full.reshape(A2.shape[0], rows, cols), 0, 2)


def mask3(A: npt.ArrayLike, mask: npt.ArrayLike, repval: Union[float, npt.ArrayLike] = np.nan) -> np.ndarray:
    """
    Replace masked grid cells at every time step of a cube.

    Parameters
    ----------
    A : array_like
        2-D grid or (rows, cols, time) cube
    mask : array_like of bool
        (rows, cols) mask; True cells are replaced
    repval : scalar or array_like, optional
        Replacement value, or a (rows, cols) grid of replacement values.
        Default: NaN

    Returns
    -------
    Am : ndarray
        Copy of ``A`` with masked cells replaced
    """
    A = np.asarray(A)
    A = A.astype(np.result_type(A.dtype, np.asarray(repval).dtype))
    mask = _check_mask(mask, A.shape[:2])
    repval = np.asarray(repval)
    if repval.ndim not in (0, 2) or (repval.ndim == 2 and repval.shape != mask.shape):
        raise ValueError("Replacement values repval must be a scalar or match the dimensions of the mask.")

    if repval.ndim == 2:
        values = repval[mask]
        if A.ndim == 3:
            A[mask] = values[:, np.newaxis]
        else:
            A[mask] = values
    else:
        A[mask] = repval
    return A


def expand3(Z: npt.ArrayLike, y: npt.ArrayLike) -> np.ndarray:
    """
    Multiply a 2-D grid by each element of a vector, building a cube.

    Parameters
    ----------
    Z : array_like
        2-D grid (rows, cols)
    y : array_like
        Vector of length N

    Returns
    -------
    Z3 : ndarray
        Cube of shape (rows, cols, N) with ``Z3[:, :, k] = Z * y[k]``
    """
    Z = np.asarray(Z)
    y = np.asarray(y)
    if Z.ndim != 2:
        raise ValueError("Input grid Z must be 2-D.")
    if sum(n > 1 for n in y.shape) > 1:
        raise ValueError("Input y must be a vector.")
    return Z[:, :, np.newaxis] * y.reshape(1, 1, -1)


def bottom(Z: npt.ArrayLike, *, return_index: bool = False):
    """
    Deepest non-NaN value along the third dimension of a cube.

    Parameters
    ----------
    Z : array_like
        Cube of shape (rows, cols, depth), e.g. ocean temperature with NaN
        below the seafloor
    return_index : bool, optional
        Also return the depth index of each bottom value. Default: False

    Returns
    -------
    Zb : ndarray
        (rows, cols) grid of bottom values; NaN where a column is all NaN
    ind : ndarray of int, optional
        Index along the third dimension of each value in ``Zb`` (0 for
        all-NaN columns)

    Examples
    --------
    >>> import numpy as np
    >>> from cdt_tools import bottom
    >>> Z = np.array([1.0, 2.0, 3.0, np.nan]).reshape(1, 1, 4)
    >>> bottom(Z, return_index=True)
    (array([[3.]]), array([[2]]))
    """
    Z = np.asarray(Z, dtype=float)
    if Z.ndim != 3:
        raise ValueError(f"Z must be a 3-D array, got {Z.ndim}-D.")
    valid = ~np.isnan(Z)
    ind = Z.shape[2] - 1 - np.argmax(valid[:, :, ::-1], axis=2)
    ind = np.where(valid.any(axis=2), ind, 0)
    Zb = np.take_along_axis(Z, ind[:, :, np.newaxis], axis=2)[:, :, 0]
    if return_index:
        return Zb, ind
    return Zb


def cell2nancat(*arrays: Sequence[npt.ArrayLike]):
    """
    Concatenate lists of arrays into one array with NaN separators.

    Useful for storing a collection of polylines (e.g. coastline segments)
    as a single array that plotting tools draw as separate lines.

    Parameters
    ----------
    *arrays : list of array_like
        Each argument is a list of pieces. If the first piece of the first
        list is 1-D, every piece is flattened and followed by a NaN;
        otherwise pieces are 2-D with the same number of columns and each is
        followed by a row of NaN.

    Returns
    -------
    out : ndarray or tuple of ndarray
        One concatenated array per input list

    Examples
    --------
    >>> import numpy as np
    >>> from cdt_tools import cell2nancat
    >>> cell2nancat([np.array([1, 2]), np.array([3])])
    array([ 1.,  2., nan,  3., nan])
    """
    if not arrays:
        raise ValueError("cell2nancat requires at least one list of arrays.")
    if not len(arrays[0]):
        raise ValueError("The first list must contain at least one array.")
    one_column = np.ndim(arrays[0][0]) <= 1 or min(np.shape(arrays[0][0])) == 1

    out = []
    for pieces in arrays:
        if isinstance(pieces, np.ndarray):
            raise ValueError("Inputs must be lists of arrays, not arrays.")
        if one_column:
            parts = [np.append(np.asarray(p, dtype=float).ravel(), np.nan) for p in pieces]
            out.append(np.concatenate(parts) if parts else np.empty(0))
        else:
            parts = []
            for p in pieces:
                p = np.atleast_2d(np.asarray(p, dtype=float))
                parts.append(np.vstack([p, np.full((1, p.shape[1]), np.nan)]))
            out.append(np.vstack(parts))
    return out[0] if len(out) == 1 else tuple(out)


def tile(
    shape_or_array: Union[int, Sequence[int], npt.ArrayLike],
    maxsize: Union[int, Sequence[int]],
    overlap: Union[int, Sequence[int]] = 0
) -> Tuple[List[np.ndarray], List[np.ndarray]]:
    """
    Split a large grid into tiles for piecewise processing.

    Parameters
    ----------
    shape_or_array : int, sequence of int or array_like
        Grid size ``(rows, cols)`` (a third entry is ignored, a single int
        means a square grid) or the array itself
    maxsize : int or (int, int)
        Maximum tile size in rows and columns
    overlap : int or (int, int), optional
        Number of rows and columns each tile shares with the tile before it,
        so no tile exceeds ``maxsize``.
        Default: 0

    Returns
    -------
    rows, cols : list of ndarray
        Row and column indices of each tile, tiles ordered row by row. Use
        ``A[np.ix_(rows[k], cols[k])]`` to extract tile ``k``.

    Raises
    ------
    ValueError
        If the sizes are invalid or the overlap is not smaller than the tile

    Examples
    --------
    >>> from cdt_tools import tile
    >>> rows, cols = tile((5, 4), 3)
    >>> len(rows), rows[0].tolist(), cols[1].tolist()
    (4, [0, 1, 2], [3])
    """
    if np.ndim(shape_or_array) >= 2:
        size = np.shape(shape_or_array)[:2]
    else:
        size = np.atleast_1d(np.asarray(shape_or_array, dtype=int))
        if size.size not in (1, 2, 3):
            raise ValueError(f"Invalid grid size {tuple(size)}.")
        size = (int(size[0]), int(size[0])) if size.size == 1 else (int(size[0]), int(size[1]))
    maxsize = np.broadcast_to(np.asarray(maxsize, dtype=int), (2,))
    overlap = np.broadcast_to(np.asarray(overlap, dtype=int), (2,))
    step = maxsize - overlap
    if np.any(maxsize < 1) or np.any(overlap < 0) or np.any(step < 1):
        raise ValueError("maxsize must be positive and larger than the overlap.")

    def spans(n, k):
        starts = np.arange(0, n, step[k])
        return [np.arange(max(s - overlap[k], 0), min(s + step[k], n)) for s in starts]

    row_spans = spans(size[0], 0)
    col_spans = spans(size[1], 1)
    rows = [r for r in row_spans for _ in col_spans]
    cols = [c for _ in row_spans for c in col_spans]
    return rows, cols


__all__ = [
    'cube2rect',
    'rect2cube',
    'mask3',
    'expand3',
    'bottom',
    'cell2nancat',
    'tile',
]
