"""
Summary statistics

Standardization, weighted and area-weighted means, statistics over masked
regions of a data cube and statistics of selected calendar months.
"""

import logging
import warnings
from typing import Callable, Literal, Optional, Sequence, Union

import numpy as np
import numpy.typing as npt

from ..geo.grid import cdtarea
from ..utils.arrays import cube2rect
from ..utils.axis import resolve_axis
from ..utils.dates import to_datetime_index
from ..utils.options import NanPolicy, check_option, nan_functions

logger = logging.getLogger(__name__)

ArrayF = npt.NDArray[np.floating]


def standardize(
    X: npt.ArrayLike,
    *,
    axis: Optional[int] = None,
    nan_policy: NanPolicy = 'include',
    ddof: int = 1,
    return_stats: bool = False
):
    """
    Scale data to zero mean and unit standard deviation.

    Parameters
    ----------
    X : array-like
        Input data
    axis : int, optional
        Axis along which to standardize. Default: 2 for cubes, otherwise
        the first non-singleton axis
    nan_policy : {'include', 'omit'}, optional
        'omit' ignores NaNs when computing the mean and standard deviation.
        Default: 'include'
    ddof : int, optional
        Delta degrees of freedom of the standard deviation. Default: 1
    return_stats : bool, optional
        Also return the mean and standard deviation. Default: False

    Returns
    -------
    Xs : ndarray
        Standardized data (z-scores), same shape as ``X``
    mu : ndarray, optional
        Mean and standard deviation concatenated along ``axis``, returned if
        ``return_stats`` is True

    Examples
    --------
    >>> import numpy as np
    >>> from cdt_tools import standardize
    >>> Xs, mu = standardize([1.0, 2.0, 3.0], return_stats=True)
    >>> Xs
    array([-1.,  0.,  1.])
    >>> mu
    array([2., 1.])
    """
    X = np.asarray(X, dtype=float)
    if X.ndim == 0:
        X = X.reshape(1)
    axis = resolve_axis(X, axis)
    mean_fn, std_fn, _ = nan_functions(nan_policy)

    Xmean = mean_fn(X, axis=axis, keepdims=True)
    Xstd = std_fn(X, axis=axis, ddof=ddof, keepdims=True)
    with np.errstate(divide='ignore', invalid='ignore'):
        Xs = (X - Xmean) / Xstd

    if return_stats:
        return Xs, np.concatenate([Xmean, Xstd], axis=axis)
    return Xs


def wmean(
    A: npt.ArrayLike,
    weights: npt.ArrayLike,
    *,
    axis: Union[int, Literal['all'], None] = None,
    nan_policy: NanPolicy = 'include'
):
    """
    Weighted mean.

    Parameters
    ----------
    A : array-like
        Input data
    weights : array-like
        Weights, same shape as ``A``
    axis : int or 'all', optional
        Axis to average along, or 'all' for every element. Default: 2 for
        cubes, otherwise the first non-singleton axis
    nan_policy : {'include', 'omit'}, optional
        'omit' gives NaN values of ``A`` zero weight. Default: 'include'

    Returns
    -------
    M : float or ndarray
        Weighted mean ``sum(w A) / sum(w)``

    Raises
    ------
    ValueError
        If shapes differ or all weights are zero

    Warns
    -----
    UserWarning
        If any weight is negative

    Examples
    --------
    >>> from cdt_tools import wmean
    >>> float(wmean([1.0, 2.0, 3.0], [1.0, 0.0, 1.0]))
    2.0
    """
    A = np.asarray(A, dtype=float)
    weights = np.asarray(weights, dtype=float)
    if A.shape != weights.shape:
        raise ValueError(f"Dimensions of A {A.shape} and weights {weights.shape} must agree.")
    if not np.any(weights != 0):
        raise ValueError("All weights are zero.")
    if np.any(weights < 0):
        warnings.warn("Some of the weights are negative. Computing the weighted mean anyway.")
    _, _, sum_fn = nan_functions(nan_policy)

    if nan_policy == 'omit':
        weights = np.where(np.isnan(A), 0.0, weights)

    if axis == 'all':
        reduce_axis = None
    else:
        reduce_axis = resolve_axis(A, axis)

    with np.errstate(divide='ignore', invalid='ignore'):
        M = sum_fn(weights * A, axis=reduce_axis) / sum_fn(weights, axis=reduce_axis)
    return float(M) if np.ndim(M) == 0 else M


def local(
    A: npt.ArrayLike,
    mask: Optional[npt.ArrayLike] = None,
    *,
    func: Optional[Callable] = None,
    weights: Optional[npt.ArrayLike] = None,
    nan_policy: NanPolicy = 'include'
) -> ArrayF:
    """
    Time series of a statistic over the masked region of a data cube.

    Parameters
    ----------
    A : array-like
        Data cube (rows, cols, time), or a 2-D grid (one time step)
    mask : array-like of bool, optional
        (rows, cols) region of interest. Default: the whole grid
    func : callable, optional
        Statistic accepting an ``axis`` keyword, e.g. ``np.std`` or
        ``np.nanmax``. Default: mean (NaN-aware when ``nan_policy='omit'``)
    weights : array-like, optional
        (rows, cols) weights, e.g. from ``cdtarea``. Only valid with the
        default mean.
    nan_policy : {'include', 'omit'}, optional
        NaN handling of the default mean. Default: 'include'

    Returns
    -------
    y : ndarray
        Statistic at each time step

    Raises
    ------
    ValueError
        If the mask or weights do not match the grid, or ``weights`` is
        combined with a custom ``func``

    Examples
    --------
    >>> import numpy as np
    >>> from cdt_tools import local
    >>> A = np.random.rand(10, 12, 40)
    >>> mask = np.zeros((10, 12), dtype=bool)
    >>> mask[2:5, 3:8] = True
    >>> local(A, mask).shape
    (40,)
    """
    A = np.asarray(A, dtype=float)
    if A.ndim not in (2, 3):
        raise ValueError("Input A must be 2D or 3D.")
    if mask is None:
        mask = np.ones(A.shape[:2], dtype=bool)
    check_option('nan_policy', nan_policy, NanPolicy)
    A2 = cube2rect(A, mask)

    if weights is not None:
        if func is not None:
            raise ValueError("Weighted averaging can only be performed with the default mean.")
        weights = np.asarray(weights, dtype=float)
        if weights.shape != A.shape[:2]:
            raise ValueError(
                f"Size of weights {weights.shape} must match the first two dimensions of A {A.shape[:2]}."
            )
        w = np.broadcast_to(weights[np.asarray(mask)], A2.shape)
        if nan_policy == 'omit':
            w = np.where(np.isnan(A2), 0.0, w)
            A2 = np.where(np.isnan(A2), 0.0, A2)
        with np.errstate(divide='ignore', invalid='ignore'):
            return (A2 * w).sum(axis=1) / w.sum(axis=1)

    if func is None:
        func, _, _ = nan_functions(nan_policy)
    return np.asarray(func(A2, axis=1))


def cdtmean(
    lat: npt.ArrayLike,
    lon: npt.ArrayLike,
    A: npt.ArrayLike,
    mask: Optional[npt.ArrayLike] = None,
    *,
    nan_policy: NanPolicy = 'include'
):
    """
    Area-weighted mean of a gridded field.

    Each grid cell is weighted by its area from :func:`cdtarea`, so high
    latitude cells of a regular lat/lon grid count for less.

    Parameters
    ----------
    lat, lon : array-like
        2-D meshgrid-style grids matching the first two dimensions of ``A``
    A : array-like
        2-D grid or (rows, cols, time) cube
    mask : array-like of bool, optional
        (rows, cols) region to average. Default: the whole grid
    nan_policy : {'include', 'omit'}, optional
        'omit' gives NaN cells zero weight. Default: 'include'

    Returns
    -------
    M : float or ndarray
        Mean of a 2-D grid, or the time series of means of a cube

    Examples
    --------
    >>> import numpy as np
    >>> from cdt_tools import cdtgrid, cdtmean
    >>> lat, lon = cdtgrid(1)
    >>> round(cdtmean(lat, lon, np.cos(np.deg2rad(lat))), 3)  # pi/4
    0.785
    """
    A = np.asarray(A, dtype=float)
    lat = np.asarray(lat, dtype=float)
    if lat.shape != A.shape[:2]:
        raise ValueError(
            f"Dimensions of lat and lon {lat.shape} must match the first two dimensions of A {A.shape[:2]}."
        )
    M = local(A, mask, weights=cdtarea(lat, lon), nan_policy=nan_policy)
    return float(M[0]) if A.ndim == 2 else M


def monthly(
    X: npt.ArrayLike,
    t: npt.ArrayLike,
    months: Union[int, Sequence[int]],
    *,
    func: Optional[Callable] = None,
    axis: Optional[int] = None
):
    """
    Statistic of the samples that fall in selected calendar months.

    Parameters
    ----------
    X : array-like
        1-D series, 2-D matrix or (rows, cols, time) cube
    t : array-like
        Times of the samples along ``axis`` (anything ``pandas.to_datetime``
        accepts)
    months : int or sequence of int
        Month numbers 1 (January) through 12 to include
    func : callable, optional
        Statistic accepting an ``axis`` keyword. Default: ``np.mean``
    axis : int, optional
        Time axis. Default: 2 for cubes, otherwise the first non-singleton axis

    Returns
    -------
    Xm : float or ndarray
        Statistic with the time axis removed

    Raises
    ------
    ValueError
        If ``months`` are not integers 1-12 or ``t`` does not match ``X``

    Examples
    --------
    >>> import numpy as np
    >>> import pandas as pd
    >>> from cdt_tools import monthly
    >>> t = pd.date_range('2000-01-01', periods=24, freq='MS')
    >>> float(monthly(np.arange(24.0), t, [12, 1, 2]))  # DJF mean
    10.0
    """
    X = np.asarray(X, dtype=float)
    months = np.atleast_1d(np.asarray(months))
    if not np.all(np.mod(months, 1) == 0) or months.min() < 1 or months.max() > 12:
        raise ValueError("months must be integers 1 through 12.")
    axis = resolve_axis(X, axis)
    t = to_datetime_index(t)
    if t.size != X.shape[axis]:
        raise ValueError(
            f"Length of t ({t.size}) must match the size of X along the axis of operation ({X.shape[axis]})."
        )

    ind = np.isin(t.month, months.astype(int))
    logger.debug("Selected %d of %d samples in months %s", ind.sum(), ind.size, months.tolist())
    if func is None:
        func = np.mean
    Xm = func(np.compress(ind, X, axis=axis), axis=axis)
    return float(Xm) if np.ndim(Xm) == 0 else Xm


__all__ = [
    'standardize',
    'wmean',
    'local',
    'cdtmean',
    'monthly',
]
