"""
Correlation of gridded time series

Pearson correlation between every grid-cell time series of a data cube and
a reference series, with two-tailed p-values from the t distribution, and
lagged cross-correlation and cross-covariance of the same.
"""

from typing import NamedTuple, Optional, Tuple

import numpy as np
import numpy.typing as npt
from scipy import signal, stats

from ..utils.arrays import _check_mask, cube2rect, rect2cube

ArrayF = npt.NDArray[np.floating]


class XcorrResult(NamedTuple):
    """Lagged correlation or covariance of grid cells with a reference series."""
    r: ArrayF
    rmax: ArrayF
    lags: ArrayF


def pearson_columns(
    cols: npt.NDArray[np.floating],
    y: npt.NDArray[np.floating]
) -> Tuple[npt.NDArray[np.floating], npt.NDArray[np.floating]]:
    """
    Pearson correlation of each column of ``cols`` with the vector ``y``.

    Parameters
    ----------
    cols : ndarray
        Matrix of shape (n, m), one series per column
    y : ndarray
        Reference series of length n

    Returns
    -------
    r, p : ndarray
        Correlation coefficients and two-tailed p-values, length m.
        Constant columns give NaN.
    """
    n = cols.shape[0]
    xc = cols - cols.mean(axis=0)
    yc = y - y.mean()
    with np.errstate(divide='ignore', invalid='ignore'):
        r = (yc @ xc) / np.sqrt((xc**2).sum(axis=0) * (yc**2).sum())
        r = np.clip(r, -1.0, 1.0)
        tstat = r * np.sqrt((n - 2) / (1 - r**2))
    p = 2 * stats.t.sf(np.abs(tstat), n - 2)
    return r, p


def corr3(
    X: npt.ArrayLike,
    y: npt.ArrayLike,
    *,
    detrend: bool = False
) -> Tuple[npt.NDArray[np.floating], npt.NDArray[np.floating]]:
    """
    Correlation of each grid cell of a data cube with a time series.

    Parameters
    ----------
    X : array-like
        Data cube of shape (rows, cols, time)
    y : array-like
        Reference time series, length equal to ``X.shape[2]``
    detrend : bool, optional
        Remove the linear trend from every series before correlating.
        Default: False

    Returns
    -------
    r : ndarray
        (rows, cols) Pearson correlation coefficients
    p : ndarray
        (rows, cols) two-tailed p-values

    Raises
    ------
    ValueError
        If ``X`` is not 3-D or ``y`` does not match its time dimension

    Examples
    --------
    >>> import numpy as np
    >>> from cdt_tools import corr3
    >>> y = np.sin(np.linspace(0, 10, 100))
    >>> X = np.random.randn(5, 6, 100) + y
    >>> r, p = corr3(X, y)
    >>> r.shape
    (5, 6)

    Notes
    -----
    - Grid cells containing any NaN give NaN
    """
    X = np.asarray(X, dtype=float)
    y = np.asarray(y, dtype=float)
    if X.ndim != 3:
        raise ValueError("Input X must be 3 dimensional (rows, cols, time).")
    if y.size != max(y.shape, default=0):
        raise ValueError("Input y must be a vector.")
    y = y.ravel()
    if y.size != X.shape[2]:
        raise ValueError(f"The length of y ({y.size}) must match the third dimension of X ({X.shape[2]}).")

    mask = np.all(np.isfinite(X), axis=2)
    cols = cube2rect(X, mask)
    if detrend:
        cols = signal.detrend(cols, axis=0)
        y = signal.detrend(y)

    r, p = pearson_columns(cols, y)
    return rect2cube(r[np.newaxis, :], mask)[:, :, 0], rect2cube(p[np.newaxis, :], mask)[:, :, 0]


def _lagged(A, ref, maxlag, mask, detrend, covariance):
    A = np.asarray(A, dtype=float)
    ref = np.asarray(ref, dtype=float)
    if A.ndim != 3:
        raise ValueError("Input A must be 3 dimensional (rows, cols, time).")
    if ref.size != max(ref.shape, default=0):
        raise ValueError("Reference signal must be a vector.")
    ref = ref.ravel()
    n = A.shape[2]
    if ref.size != n:
        raise ValueError(
            f"The length of the reference signal ({ref.size}) must match the third dimension of A ({n})."
        )
    if maxlag is None:
        maxlag = n - 1
    if int(maxlag) != maxlag or not 0 <= maxlag < n:
        raise ValueError(f"maxlag must be an integer from 0 to {n - 1}, got {maxlag}")
    maxlag = int(maxlag)

    if mask is None:
        mask = ~np.any(np.isnan(A), axis=2)
    mask = _check_mask(mask, A.shape[:2])
    cols = cube2rect(A, mask)
    if detrend:
        cols = signal.detrend(cols, axis=0)
        ref = signal.detrend(ref)
    if covariance:
        cols = cols - cols.mean(axis=0)
        ref = ref - ref.mean()

    lags = np.arange(-maxlag, maxlag + 1)
    if cols.shape[1] == 0:
        nan = np.full(mask.shape, np.nan)
        return XcorrResult(r=nan, rmax=nan.copy(), lags=nan.copy())

    # Row j of the full convolution is sum_i ref[i + k] * a[i] at lag k = j - (n - 1)
    full = signal.fftconvolve(np.broadcast_to(ref[:, np.newaxis], cols.shape), cols[::-1], axes=0)
    R = full[n - 1 - maxlag:n + maxlag]
    with np.errstate(divide='ignore', invalid='ignore'):
        if covariance:
            R = R / (n - np.abs(lags))[:, np.newaxis]
        else:
            R = R / np.sqrt((ref**2).sum() * (cols**2).sum(axis=0))

    imax = np.argmax(R, axis=0)
    r0 = R[maxlag]
    rmax = R[imax, np.arange(R.shape[1])]
    lag = lags[imax].astype(float)

    def grid(values):
        return rect2cube(values[np.newaxis, :], mask)[:, :, 0]

    return XcorrResult(r=grid(r0), rmax=grid(rmax), lags=grid(lag))


def xcorr3(
    A: npt.ArrayLike,
    ref: npt.ArrayLike,
    *,
    maxlag: Optional[int] = None,
    mask: Optional[npt.ArrayLike] = None,
    detrend: bool = False
) -> XcorrResult:
    """
    Normalized cross-correlation of every grid cell with a reference series.

    Parameters
    ----------
    A : array-like
        Data cube of shape (rows, cols, time)
    ref : array-like
        Reference series, length equal to ``A.shape[2]``
    maxlag : int, optional
        Largest lag, in samples, to search for the maximum correlation.
        Default: ``A.shape[2] - 1``
    mask : array-like of bool, optional
        (rows, cols) cells to compute. Default: cells without NaN
    detrend : bool, optional
        Remove linear trends before correlating. Default: False

    Returns
    -------
    result : XcorrResult
        Named tuple of (rows, cols) grids
        - ``r``: correlation at zero lag
        - ``rmax``: largest correlation within ``maxlag``
        - ``lags``: lag of ``rmax`` in samples

    Raises
    ------
    ValueError
        If ``A`` is not 3-D, ``ref`` does not match its time dimension or
        ``maxlag`` is out of range

    Examples
    --------
    >>> import numpy as np
    >>> from cdt_tools import xcorr3
    >>> ref = np.random.randn(60)
    >>> A = np.random.randn(4, 5, 60)
    >>> A[1, 2] = np.roll(ref, 3)
    >>> float(xcorr3(A, ref).lags[1, 2])
    -3.0

    Notes
    -----
    - The coefficient at lag k is ``sum(ref[n + k] * a[n])`` divided by
      ``sqrt(sum(ref**2) * sum(a**2))``. Means are not removed, so pass
      anomalies or use :func:`xcov3`.
    - A positive lag means the grid cell leads the reference series
    - Cells outside the mask are NaN
    """
    return _lagged(A, ref, maxlag, mask, detrend, covariance=False)


def xcov3(
    A: npt.ArrayLike,
    ref: npt.ArrayLike,
    *,
    maxlag: Optional[int] = None,
    mask: Optional[npt.ArrayLike] = None,
    detrend: bool = False
) -> XcorrResult:
    """
    Unbiased cross-covariance of every grid cell with a reference series.

    Takes the same arguments and returns the same fields as :func:`xcorr3`,
    with covariances in place of correlation coefficients. Means are removed
    and the sum at lag k is divided by ``N - |k|``.
    """
    return _lagged(A, ref, maxlag, mask, detrend, covariance=True)


__all__ = [
    'XcorrResult',
    'corr3',
    'pearson_columns',
    'xcorr3',
    'xcov3',
]
