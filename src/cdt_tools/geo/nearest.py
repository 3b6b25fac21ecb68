"""
Nearest-point search

This module provides functions to find the points of a 1-D vector or a 2-D
grid that are closest to one or more query locations, plus a bounding-box
overlap test. Distances are Euclidean in the units of the coordinates.
"""

from typing import Optional, Tuple, Union

import numpy as np
import numpy.typing as npt

IndexLike = Union[int, npt.NDArray[np.intp]]


def _as_queries(values: npt.ArrayLike, name: str) -> Tuple[np.ndarray, bool]:
    """Flatten query values and remember whether a scalar was given."""
    arr = np.asarray(values, dtype=float)
    if arr.ndim > 1 and arr.size != max(arr.shape):
        raise ValueError(f"{name} must be a scalar or a vector.")
    if not np.all(np.isfinite(arr)):
        raise ValueError(f"{name} must contain only finite values.")
    return arr.ravel(), arr.ndim == 0


def near1(
    x: npt.ArrayLike,
    xi: Union[float, npt.ArrayLike],
    return_distance: bool = False
) -> Union[IndexLike, Tuple[IndexLike, Union[float, npt.NDArray[np.floating]]]]:
    """
    Index of the element of a vector closest to each query value.

    Parameters
    ----------
    x : array-like
        1-D vector of values to search. NaN entries are never selected.
    xi : float or array-like
        Query value(s)
    return_distance : bool, optional
        Also return the signed distance ``x[ind] - xi``. Default: False

    Returns
    -------
    ind : int or ndarray of int
        Index (zero-based) of the nearest element for each query
    dst : float or ndarray, optional
        Signed distance, returned if ``return_distance`` is True

    Raises
    ------
    ValueError
        If ``x`` is not a vector or has no finite values

    Examples
    --------
    >>> from cdt_tools import near1
    >>> near1([1, 3, 5], 4)
    1
    >>> near1([1, 3, 5], [0, 6])
    array([0, 2])

    Notes
    -----
    - Equidistant candidates resolve to the first index
    """
    x = np.asarray(x, dtype=float)
    if x.ndim > 1 and x.size != max(x.shape):
        raise ValueError("x must be a vector.")
    x = x.ravel()
    if not np.any(np.isfinite(x)):
        raise ValueError("x must contain at least one finite value.")
    queries, scalar = _as_queries(xi, 'xi')

    D = np.abs(x[np.newaxis, :] - queries[:, np.newaxis])
    D[:, ~np.isfinite(x)] = np.inf
    ind = np.argmin(D, axis=1)

    dst = x[ind] - queries
    if scalar:
        ind, dst = int(ind[0]), float(dst[0])
    if return_distance:
        return ind, dst
    return ind


def near2(
    X: npt.ArrayLike,
    Y: npt.ArrayLike,
    xi: Union[float, npt.ArrayLike],
    yi: Union[float, npt.ArrayLike],
    mask: Optional[npt.ArrayLike] = None,
    return_distance: bool = False
) -> tuple:
    """
    Row and column of the grid point closest to each query location.

    Parameters
    ----------
    X, Y : array-like
        2-D coordinate grids of identical shape
    xi, yi : float or array-like
        Query coordinates, same number of elements
    mask : array-like of bool, optional
        Grid of the same shape as ``X``; only True cells are considered
    return_distance : bool, optional
        Also return the Euclidean distance to the selected point. Default: False

    Returns
    -------
    row, col : int or ndarray of int
        Zero-based indices of the nearest grid point
    dst : float or ndarray, optional
        Distance in coordinate units, returned if ``return_distance`` is True

    Raises
    ------
    ValueError
        If the grid, mask and query shapes are inconsistent or the mask
        excludes every point

    Examples
    --------
    >>> import numpy as np
    >>> from cdt_tools import near2
    >>> X, Y = np.meshgrid(np.arange(5.0), np.arange(3.0))
    >>> near2(X, Y, 3.2, 0.9)
    (1, 3)

    Notes
    -----
    - Equidistant candidates resolve to the first point in row-major order
    """
    X = np.asarray(X, dtype=float)
    Y = np.asarray(Y, dtype=float)
    if X.shape != Y.shape:
        raise ValueError(f"Dimensions of X {X.shape} and Y {Y.shape} must match.")
    if X.ndim != 2:
        raise ValueError("X and Y must be 2D grids.")

    xq, scalar = _as_queries(xi, 'xi')
    yq, _ = _as_queries(yi, 'yi')
    if xq.size != yq.size:
        raise ValueError("xi and yi must be the same size.")

    valid = np.isfinite(X) & np.isfinite(Y)
    if mask is not None:
        mask = np.asarray(mask, dtype=bool)
        if mask.shape != X.shape:
            raise ValueError(f"Dimensions of the grid {X.shape} and the mask {mask.shape} must agree.")
        valid &= mask
    if not valid.any():
        raise ValueError("No valid grid points to search.")

    Xv = X.ravel()[np.newaxis, :]
    Yv = Y.ravel()[np.newaxis, :]
    D_sq = (Xv - xq[:, np.newaxis])**2 + (Yv - yq[:, np.newaxis])**2
    D_sq[:, ~valid.ravel()] = np.inf

    ind = np.argmin(D_sq, axis=1)
    dst = np.sqrt(D_sq[np.arange(ind.size), ind])
    row, col = np.unravel_index(ind, X.shape)

    if scalar:
        row, col, dst = int(row[0]), int(col[0]), float(dst[0])
    if return_distance:
        return row, col, dst
    return row, col


def isoverlapping(boxes: npt.ArrayLike, box: npt.ArrayLike) -> npt.NDArray[np.bool_]:
    """
    Test which bounding boxes overlap a reference box.

    Parameters
    ----------
    boxes : array-like
        Array of shape (N, 2, 2), each box ``[[xmin, ymin], [xmax, ymax]]``.
        A single (2, 2) box is also accepted.
    box : array-like
        Reference box of shape (2, 2)

    Returns
    -------
    tf : ndarray of bool
        Shape (N,); True where a box touches or overlaps ``box``

    Examples
    --------
    >>> from cdt_tools import isoverlapping
    >>> isoverlapping([[[0, 0], [2, 2]], [[5, 5], [6, 6]]], [[1, 1], [3, 3]])
    array([ True, False])
    """
    boxes = np.asarray(boxes, dtype=float)
    box = np.asarray(box, dtype=float)
    if boxes.ndim == 2:
        boxes = boxes[np.newaxis]
    if boxes.ndim != 3 or boxes.shape[1:] != (2, 2):
        raise ValueError(f"Dimensions of boxes must be Nx2x2, got {boxes.shape}.")
    if box.shape != (2, 2):
        raise ValueError(f"Dimensions of box must be 2x2, got {box.shape}.")

    return (
        (boxes[:, 0, 0] <= box[1, 0])
        & (boxes[:, 1, 0] >= box[0, 0])
        & (boxes[:, 0, 1] <= box[1, 1])
        & (boxes[:, 1, 1] >= box[0, 1])
    )


__all__ = [
    'near1',
    'near2',
    'isoverlapping',
]
