"""
Statistics of scattered data

Running statistics of irregularly spaced samples: each output value
summarizes the samples within a fixed radius of that sample's location.
Neighbors are found with a k-d tree from ``scipy.spatial``.
"""

from typing import Callable, Optional

import numpy as np
import numpy.typing as npt
from scipy.spatial import cKDTree

ArrayF = npt.NDArray[np.floating]


def _neighbor_stat(points: ArrayF, values: ArrayF, radius: float, func: Optional[Callable]) -> ArrayF:
    if not np.isscalar(radius) or radius < 0:
        raise ValueError(f"radius must be a non-negative scalar, got {radius!r}")
    if func is None:
        func = np.mean
    out = np.full(values.shape, np.nan)
    ok = np.all(np.isfinite(points), axis=1)
    if not ok.any():
        return out

    pts = points[ok]
    vals = values[ok]
    tree = cKDTree(pts)
    neighbors = tree.query_ball_point(pts, r=radius)
    out[ok] = [func(vals[ind]) for ind in neighbors]
    return out


def scatstat1(
    x: npt.ArrayLike,
    y: npt.ArrayLike,
    radius: float,
    func: Optional[Callable] = None
) -> ArrayF:
    """
    Statistic of y values within a radius of each x.

    Parameters
    ----------
    x, y : array-like
        Sample locations and values, same shape
    radius : float
        Half-width of the window in units of ``x``. Points exactly
        ``radius`` away are included.
    func : callable, optional
        Statistic of a 1-D array, e.g. ``np.std`` or ``np.nanmedian``.
        Use ``functools.partial`` to pass extra arguments. Default: ``np.mean``

    Returns
    -------
    ybar : ndarray
        Statistic at each sample location, same shape as ``x``. Samples at
        non-finite locations give NaN.

    Raises
    ------
    ValueError
        If ``x`` and ``y`` differ in shape or ``radius`` is invalid

    Examples
    --------
    >>> from cdt_tools import scatstat1
    >>> scatstat1([0.0, 1.0, 2.0, 10.0], [1.0, 2.0, 3.0, 4.0], 1.0)
    array([1.5, 2. , 2.5, 4. ])
    """
    x = np.asarray(x, dtype=float)
    y = np.asarray(y, dtype=float)
    if x.shape != y.shape:
        raise ValueError(f"x {x.shape} and y {y.shape} must be the same size.")
    ybar = _neighbor_stat(x.reshape(-1, 1), y.ravel(), radius, func)
    return ybar.reshape(x.shape)


def scatstat2(
    x: npt.ArrayLike,
    y: npt.ArrayLike,
    z: npt.ArrayLike,
    radius: float,
    func: Optional[Callable] = None
) -> ArrayF:
    """
    Statistic of z values within a radius of each (x, y) location.

    Parameters
    ----------
    x, y : array-like
        Sample locations, same shape. Distances are Euclidean in the units
        of the coordinates, so project geographic coordinates first.
    z : array-like
        Sample values, same shape as ``x``
    radius : float
        Search radius. Points exactly ``radius`` away are included.
    func : callable, optional
        Statistic of a 1-D array. Default: ``np.mean``

    Returns
    -------
    zbar : ndarray
        Statistic at each sample location, same shape as ``x``

    Examples
    --------
    >>> from cdt_tools import scatstat2
    >>> scatstat2([0, 3, 0], [0, 4, 1], [2.0, 6.0, 4.0], 2)
    array([3., 6., 3.])
    """
    x = np.asarray(x, dtype=float)
    y = np.asarray(y, dtype=float)
    z = np.asarray(z, dtype=float)
    if not x.shape == y.shape == z.shape:
        raise ValueError(f"Dimensions of x {x.shape}, y {y.shape} and z {z.shape} must all agree.")
    points = np.column_stack([x.ravel(), y.ravel()])
    return _neighbor_stat(points, z.ravel(), radius, func).reshape(x.shape)


__all__ = [
    'scatstat1',
    'scatstat2',
]
