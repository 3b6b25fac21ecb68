"""
Seasonal cycle analysis

This module estimates the typical seasonal cycle of a time series (or of
every grid cell of a data cube), either by day of year or by month, and
removes it to obtain anomalies.

Procedure:
1. Remove a polynomial trend (linear by default, or only the mean) in
   standardized time
2. Average the detrended samples that share a calendar bin
   - daily: days 1-365 of the year; day 366 is the mean of days 1, 365 and 366
   - monthly: months 1-12
3. Optionally broadcast the bin means back onto every time step

NaNs are ignored when fitting trends and averaging bins; bins with no
finite samples are NaN.
"""

import logging
import warnings
from typing import Optional

import numpy as np
import numpy.typing as npt
import pandas as pd

from ..stats.trend import remove_polynomial
from ..utils.axis import from_columns, resolve_axis, to_columns
from ..utils.options import Detrend, Resolution, check_option
from .time import doy, to_datetime_index

logger = logging.getLogger(__name__)

ArrayF = npt.NDArray[np.floating]

_DETREND_DEGREE = {'none': 0, 'linear': 1, 'quadratic': 2}


def _finite_mean(block: ArrayF) -> ArrayF:
    """Column means over finite values; NaN where a column has none."""
    finite = np.isfinite(block)
    n = finite.sum(axis=0).astype(float)
    n[n == 0] = np.nan
    return np.where(finite, block, 0.0).sum(axis=0) / n


def infer_resolution(t: pd.DatetimeIndex) -> str:
    """'daily' if the median sampling interval is under 10 days, else 'monthly'."""
    dt_days = np.asarray((t[1:] - t[:-1]) / pd.Timedelta(days=1), dtype=float)
    dt_days = dt_days[np.isfinite(dt_days)]
    resolution = 'daily' if dt_days.size and np.median(dt_days) < 10 else 'monthly'
    logger.debug("Inferred %s resolution from %d samples", resolution, t.size)
    return resolution


def _seasonal_cycle(
    A: npt.ArrayLike,
    t,
    resolution: Optional[Resolution],
    detrend: Detrend,
    full: bool,
    axis: Optional[int],
    add_mean: bool,
) -> ArrayF:
    check_option('detrend', detrend, Detrend)
    if resolution is not None:
        check_option('resolution', resolution, Resolution)

    A = np.asarray(A, dtype=float)
    axis = resolve_axis(A, axis)
    t = to_datetime_index(t)
    if t.size != A.shape[axis]:
        raise ValueError(
            f"Length of t ({t.size}) must match the size of A along the axis of operation ({A.shape[axis]})."
        )

    t_days = (t - t.min()) / pd.Timedelta(days=1)
    t_days = np.asarray(t_days, dtype=float)
    span = t_days.max() - t_days.min()
    if span < 364:
        warnings.warn(
            f"The time series is only {span + 1:g} days long, so estimating a seasonal cycle "
            "from this dataset might not make sense."
        )
    if resolution is None:
        resolution = infer_resolution(t)

    cols, trailing = to_columns(A, axis)
    column_mean = _finite_mean(cols)

    tsc = (t_days - t_days.mean()) / t_days.std(ddof=1)
    cols = remove_polynomial(cols, tsc, deg=_DETREND_DEGREE[detrend], omitnan=True)

    if resolution == 'daily':
        bins = np.floor(doy(t)).astype(int)
        labels = np.arange(1, 367)
    else:
        bins = np.asarray(t.month)
        labels = np.arange(1, 13)

    means = np.full((labels.size, cols.shape[1]), np.nan)
    for k, label in enumerate(labels):
        if resolution == 'daily' and label == 366:
            ind = np.isin(bins, (1, 365, 366))
        else:
            ind = bins == label
        if ind.any():
            means[k] = _finite_mean(cols[ind])

    if add_mean:
        means = means + column_mean

    if full:
        out = means[bins - 1]
    else:
        out = means
    return from_columns(out, trailing, axis)


def season(
    A: npt.ArrayLike,
    t,
    *,
    resolution: Optional[Resolution] = None,
    detrend: Detrend = 'linear',
    full: bool = False,
    axis: Optional[int] = None
) -> ArrayF:
    """
    Typical seasonal cycle as anomalies about the mean.

    Parameters
    ----------
    A : array-like
        1-D series, 2-D matrix or (rows, cols, time) cube
    t : array-like
        Times of the samples along ``axis``
    resolution : {'daily', 'monthly'}, optional
        Calendar bins. Default: daily if the median sampling interval is
        less than 10 days, otherwise monthly
    detrend : {'linear', 'quadratic', 'none'}, optional
        Trend removed before averaging; 'none' removes only the mean.
        Default: 'linear'
    full : bool, optional
        Return the cycle at every time step instead of once per bin.
        Default: False
    axis : int, optional
        Time axis. Default: 2 for cubes, otherwise the first non-singleton axis

    Returns
    -------
    As : ndarray
        With ``full=False``, ``A`` with the time axis replaced by 366 daily
        bins (day of year 1-366) or 12 monthly bins (January-December);
        with ``full=True``, the same shape as ``A``

    Raises
    ------
    ValueError
        If ``t`` does not match ``A`` or an option is invalid

    Warns
    -----
    UserWarning
        If the series spans less than a year

    Examples
    --------
    >>> import numpy as np
    >>> import pandas as pd
    >>> from cdt_tools import season
    >>> t = pd.date_range('2000-01-01', periods=120, freq='MS')
    >>> y = np.tile(np.arange(12.0), 10)
    >>> season(y, t, detrend='none')[:3]
    array([-5.5, -4.5, -3.5])
    """
    return _seasonal_cycle(A, t, resolution, detrend, full, axis, add_mean=False)


def climatology(
    A: npt.ArrayLike,
    t,
    *,
    resolution: Optional[Resolution] = None,
    detrend: Detrend = 'linear',
    full: bool = False,
    axis: Optional[int] = None
) -> ArrayF:
    """
    Typical seasonal cycle including the long-term mean.

    Identical to :func:`season` except that the mean of each series
    (computed before detrending, ignoring NaNs) is added back.
    """
    return _seasonal_cycle(A, t, resolution, detrend, full, axis, add_mean=True)


def deseason(A: npt.ArrayLike, t, **kwargs) -> ArrayF:
    """
    Remove the seasonal cycle from a time series or data cube.

    Accepts the keyword arguments of :func:`season` except ``full``; the
    trend and the mean are retained in the result.

    Examples
    --------
    >>> import numpy as np
    >>> import pandas as pd
    >>> from cdt_tools import deseason
    >>> t = pd.date_range('2000-01-01', periods=730, freq='D')
    >>> y = np.sin(2 * np.pi * np.arange(730) / 365.25) + 0.01 * np.arange(730)
    >>> yd = deseason(y, t)
    """
    if 'full' in kwargs:
        raise TypeError("deseason() got an unexpected keyword argument 'full'")
    A = np.asarray(A, dtype=float)
    return A - season(A, t, full=True, **kwargs)


__all__ = [
    'season',
    'climatology',
    'deseason',
    'infer_resolution',
]
