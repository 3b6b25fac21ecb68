"""
Trends and trend significance

This module provides least-squares trends, the non-parametric Mann-Kendall
test for monotonic trends, removal of linear trends from data cubes and
weighted polynomial fits.

The trend functions operate along one axis of N-D input (see
:mod:`cdt_tools.utils.axis`); 3-D cubes default to the time axis.
"""

import logging
from functools import partial
from typing import NamedTuple, Optional, Union

import numpy as np
import numpy.typing as npt
from scipy import stats

from ..utils.axis import apply_along_axis, map_column_chunks, resolve_axis
from ..utils.arrays import cube2rect, rect2cube
from ..utils.options import ParallelMethod
from .correlation import pearson_columns

logger = logging.getLogger(__name__)

ArrayF = npt.NDArray[np.floating]


class MannKendallResult(NamedTuple):
    """Outcome of the Mann-Kendall test."""
    h: Union[bool, npt.NDArray[np.bool_]]
    p: Union[float, ArrayF]


def _scalarize(value):
    """Unwrap 0-d arrays into Python scalars."""
    value = np.asarray(value)
    return value.item() if value.ndim == 0 else value


def _time_vector(t: Optional[npt.ArrayLike], n: int, fs: float = 1.0) -> ArrayF:
    if t is None:
        if fs <= 0:
            raise ValueError(f"Sampling frequency fs must be positive, got {fs}")
        return np.arange(n) / fs
    t = np.asarray(t, dtype=float).ravel()
    if t.size != n:
        raise ValueError(
            f"Length of t ({t.size}) must match the size of the data along the "
            f"axis of operation ({n})."
        )
    return t


def remove_polynomial(
    cols: ArrayF,
    t: ArrayF,
    deg: int = 1,
    omitnan: bool = False
) -> ArrayF:
    """
    Subtract a least-squares polynomial in ``t`` from every column.

    Parameters
    ----------
    cols : ndarray
        Matrix of shape (n, m), one series per column
    t : ndarray
        Sample times, length n
    deg : int, optional
        Polynomial degree (0 removes the mean). Default: 1
    omitnan : bool, optional
        Fit columns with missing values to their finite samples only; their
        NaNs are preserved. Otherwise such columns become all NaN. Default: False

    Returns
    -------
    residual : ndarray
        Detrended matrix, same shape as ``cols``
    """
    cols = np.asarray(cols, dtype=float)
    G = np.vander(t, deg + 1)
    out = np.full(cols.shape, np.nan)

    isf = np.isfinite(cols)
    complete = isf.all(axis=0)
    if complete.any():
        coef, *_ = np.linalg.lstsq(G, cols[:, complete], rcond=None)
        out[:, complete] = cols[:, complete] - G @ coef

    if omitnan:
        partial_cols = np.flatnonzero(~complete & (isf.sum(axis=0) > deg))
        for k in partial_cols:
            ind = isf[:, k]
            coef, *_ = np.linalg.lstsq(G[ind], cols[ind, k], rcond=None)
            out[ind, k] = cols[ind, k] - G[ind] @ coef
    return out


def trend(
    A: npt.ArrayLike,
    t: Optional[npt.ArrayLike] = None,
    *,
    fs: float = 1.0,
    axis: Optional[int] = None,
    return_pvalue: bool = False
):
    """
    Linear least-squares trend along one axis.

    Parameters
    ----------
    A : array-like
        1-D series, 2-D matrix or (rows, cols, time) cube
    t : array-like, optional
        Sample times. If omitted, samples are spaced ``1/fs`` apart.
    fs : float, optional
        Sampling frequency used when ``t`` is omitted. Default: 1
    axis : int, optional
        Axis of operation. Default: 2 for cubes, otherwise the first
        non-singleton axis
    return_pvalue : bool, optional
        Also return the p-value of the correlation between the data and
        time. Default: False

    Returns
    -------
    tr : float or ndarray
        Trend in data units per unit time, with the axis of operation removed
    p : float or ndarray, optional
        Two-tailed p-value, returned if ``return_pvalue`` is True

    Examples
    --------
    >>> import numpy as np
    >>> from cdt_tools import trend
    >>> y = 3 * np.arange(20) + 5
    >>> round(trend(y), 6)
    3.0
    >>> # Trend per year of monthly data
    >>> tr = trend(np.random.rand(4, 5, 120), fs=12)

    Notes
    -----
    - Series containing NaN give NaN
    """
    arr = np.asarray(A, dtype=float)
    axis = resolve_axis(arr, axis)
    t = _time_vector(t, np.shape(arr)[axis] if arr.ndim else 1, fs)
    tc = t - t.mean()

    def kernel(cols):
        slope = tc @ (cols - cols.mean(axis=0)) / (tc @ tc)
        if not return_pvalue:
            return slope
        _, p = pearson_columns(cols, t)
        return slope, p

    fill = (np.nan, np.nan) if return_pvalue else np.nan
    out = apply_along_axis(kernel, arr, axis, skip_nonfinite=True, keepdims=False, fill_value=fill)
    if return_pvalue:
        return _scalarize(out[0]), _scalarize(out[1])
    return _scalarize(out)


def mann_kendall(
    y: npt.ArrayLike,
    alpha: float = 0.05,
    *,
    axis: Optional[int] = None
) -> MannKendallResult:
    """
    Mann-Kendall test for a monotonic trend.

    Parameters
    ----------
    y : array-like
        1-D series, 2-D matrix or (rows, cols, time) cube
    alpha : float, optional
        Significance level in [0, 1]. Default: 0.05
    axis : int, optional
        Axis of operation. Default: 2 for cubes, otherwise the first
        non-singleton axis

    Returns
    -------
    result : MannKendallResult
        Named tuple ``(h, p)``: ``h`` is True where the null hypothesis of no
        trend is rejected at level ``alpha``; ``p`` is the two-tailed p-value.
        Scalars for 1-D input, otherwise arrays with the axis removed.

    Raises
    ------
    ValueError
        If ``alpha`` is outside [0, 1]

    Examples
    --------
    >>> import numpy as np
    >>> from cdt_tools import mann_kendall
    >>> h, p = mann_kendall(np.arange(30.0))
    >>> h
    True

    Notes
    -----
    The test statistic is S = sum over i<j of sign(y[j] - y[i]) with variance
    n(n-1)(2n+5)/18 under the null hypothesis (no correction for ties). The
    normal score applies a continuity correction:

        Z = (S-1)/sd  for S > 0
        Z = 0         for S = 0
        Z = (S+1)/sd  for S < 0

    Series containing NaN or Inf give ``h = False`` and ``p = NaN``.
    """
    if not np.isscalar(alpha) or not 0 <= alpha <= 1:
        raise ValueError(f"alpha must be a scalar between 0 and 1, got {alpha!r}")
    arr = np.asarray(y, dtype=float)
    z_crit = stats.norm.ppf(1 - alpha / 2)

    def kernel(cols):
        n = cols.shape[0]
        S = np.zeros(cols.shape[1])
        for i in range(n - 1):
            S += np.sign(cols[i + 1:] - cols[i]).sum(axis=0)
        sd = np.sqrt(n * (n - 1) * (2 * n + 5) / 18)
        with np.errstate(divide='ignore', invalid='ignore'):
            Z = np.where(S > 0, (S - 1) / sd, np.where(S < 0, (S + 1) / sd, 0.0))
        p = 2 * stats.norm.sf(np.abs(Z))
        return np.abs(Z) > z_crit, p

    h, p = apply_along_axis(
        kernel, arr, axis, skip_nonfinite=True, keepdims=False, fill_value=(False, np.nan)
    )
    return MannKendallResult(h=_scalarize(h.astype(bool)), p=_scalarize(p))


def detrend3(
    A: npt.ArrayLike,
    t: Optional[npt.ArrayLike] = None,
    *,
    omitnan: bool = False,
    parallel_method: ParallelMethod = 'auto',
    n_jobs: int = -1
) -> ArrayF:
    """
    Remove the linear trend along the time axis of a data cube.

    Parameters
    ----------
    A : array-like
        Data cube of shape (rows, cols, time)
    t : array-like, optional
        Sample times, length ``A.shape[2]``. Default: equally spaced samples
    omitnan : bool, optional
        Detrend grid cells with missing values using their finite samples;
        otherwise any cell containing NaN is returned as all NaN.
        Default: False
    parallel_method : {'auto', 'joblib', 'serial'}, optional
        How to process grid cells. 'auto' uses joblib for large grids.
        Default: 'auto'
    n_jobs : int, optional
        Number of joblib workers. -1 uses all CPU cores. Default: -1

    Returns
    -------
    Ad : ndarray
        Detrended cube, same shape as ``A``

    Raises
    ------
    ValueError
        If ``A`` is not 3-D or ``t`` does not match its time dimension

    Examples
    --------
    >>> import numpy as np
    >>> from cdt_tools import detrend3
    >>> A = np.random.rand(10, 12, 50) + np.arange(50)
    >>> Ad = detrend3(A)
    """
    A = np.asarray(A, dtype=float)
    if A.ndim != 3:
        raise ValueError("Input A must be 3 dimensional (rows, cols, time).")
    t = _time_vector(t, A.shape[2])
    if omitnan:
        t = (t - np.nanmean(t)) / np.nanstd(t, ddof=1)
        mask = np.isfinite(A).sum(axis=2) > 1
    else:
        t = (t - t.mean()) / t.std(ddof=1)
        mask = np.all(np.isfinite(A), axis=2)

    cols = cube2rect(A, mask)
    logger.debug("Detrending %d of %d grid cells", cols.shape[1], mask.size)
    kernel = partial(remove_polynomial, t=t, deg=1, omitnan=omitnan)
    Ad = map_column_chunks(kernel, cols, parallel_method=parallel_method, n_jobs=n_jobs)
    return rect2cube(Ad, mask)


def polyfitw(
    x: npt.ArrayLike,
    y: npt.ArrayLike,
    deg: int,
    w: Optional[npt.ArrayLike] = None,
    *,
    scale: bool = False
):
    """
    Weighted least-squares polynomial fit.

    Parameters
    ----------
    x, y : array-like
        Sample points and values, same size
    deg : int
        Degree of the polynomial
    w : array-like, optional
        Non-negative weight of each sample, e.g. inverse error variance.
        Only relative weights matter. Default: equal weights
    scale : bool, optional
        Center and scale ``x`` to zero mean and unit standard deviation
        before fitting, which improves the conditioning of high degree
        fits. Default: False

    Returns
    -------
    p : ndarray
        Polynomial coefficients, highest power first, for use with
        ``np.polyval``
    mu : ndarray, optional
        ``[mean(x), std(x)]``, returned if ``scale`` is True. Evaluate the
        fit with ``np.polyval(p, (x - mu[0]) / mu[1])``.

    Raises
    ------
    ValueError
        If ``x``, ``y`` and ``w`` differ in size

    Examples
    --------
    >>> import numpy as np
    >>> from cdt_tools import polyfitw
    >>> x = np.arange(5.0)
    >>> y = 2 * x + 1
    >>> y[4] = 100.0  # outlier with almost no weight
    >>> np.round(polyfitw(x, y, 1, [1, 1, 1, 1, 1e-9]), 3)
    array([2., 1.])
    """
    x = np.asarray(x, dtype=float)
    y = np.asarray(y, dtype=float)
    if x.shape != y.shape:
        raise ValueError(f"x {x.shape} and y {y.shape} must be the same size.")
    w = np.ones(x.shape) if w is None else np.asarray(w, dtype=float)
    if w.shape != x.shape:
        raise ValueError(f"Weights {w.shape} must match the dimensions of x and y {x.shape}.")
    x, y, w = x.ravel(), y.ravel(), w.ravel()

    if scale:
        mu = np.array([x.mean(), x.std(ddof=1)])
        x = (x - mu[0]) / mu[1]
    # np.polyfit weights multiply the residuals, so pass square roots
    p = np.polyfit(x, y, deg, w=np.sqrt(w / w.mean()))
    if scale:
        return p, mu
    return p


__all__ = [
    'MannKendallResult',
    'mann_kendall',
    'trend',
    'detrend3',
    'polyfitw',
    'remove_polynomial',
]
