"""
Year-by-year layout of time series

Bins a time series into fixed intervals of each year and arranges the bins
as a (bins per year, years) matrix, so that each column holds one year and
each row one time of year. Years may start on any pivot date, e.g. July 1
for southern hemisphere seasons or October 1 for water years.
"""

import logging
import warnings
from typing import Callable, NamedTuple, Optional, Tuple, Union

import numpy as np
import numpy.typing as npt
import pandas as pd

from .time import to_datetime_index

logger = logging.getLogger(__name__)

ArrayF = npt.NDArray[np.floating]


class YearlyBins(NamedTuple):
    """Time series binned by time of year."""
    xg: ArrayF
    yr: npt.NDArray[np.integer]
    tmid: pd.DatetimeIndex


def _year_limits(t: pd.DatetimeIndex, pivot: Tuple[int, int]) -> Tuple[int, int]:
    first, last = t.min(), t.max()
    y0 = first.year - 1 if first < pd.Timestamp(first.year, *pivot) else first.year
    y1 = last.year + 1 if last > pd.Timestamp(last.year, *pivot) else last.year
    return y0, y1


def reshapetimeseries(
    t,
    x: npt.ArrayLike,
    *,
    bin: Union[str, int] = 'date',
    yrlim: Optional[Tuple[int, int]] = None,
    func: Optional[Callable] = None,
    pivotdate: Tuple[int, int] = (1, 1)
) -> YearlyBins:
    """
    Bin a time series by time of year into a (bins, years) matrix.

    Parameters
    ----------
    t : array-like
        Sample times (anything ``pandas.to_datetime`` accepts)
    x : array-like
        Values, same length as ``t``
    bin : {'date', 'month'} or int, optional
        - 'date': one bin per calendar day; February 29 is merged into
          February 28 so every year has 365 bins
        - 'month': one bin per calendar month
        - int n: n equal intervals per year
        Default: 'date'
    yrlim : (int, int), optional
        Pivot years of the first and last edges. Default: the smallest range
        that covers ``t``
    func : callable, optional
        Statistic applied to the values of each bin. Default: ``np.nanmean``
    pivotdate : (int, int), optional
        Month and day on which each year starts. Default: (1, 1)

    Returns
    -------
    result : YearlyBins
        Named tuple with fields
        - ``xg``: (bins per year, years) binned values, NaN for empty bins
        - ``yr``: year in which each column starts
        - ``tmid``: midpoint of each bin in the first non-leap year

    Raises
    ------
    ValueError
        If ``t`` and ``x`` differ in length or ``bin`` is invalid

    Warns
    -----
    UserWarning
        If monthly bins are requested with a pivot day other than the first

    Examples
    --------
    >>> import numpy as np
    >>> import pandas as pd
    >>> from cdt_tools import reshapetimeseries
    >>> t = pd.date_range('2001-01-01', '2003-12-31', freq='D')
    >>> xg, yr, tmid = reshapetimeseries(t, np.arange(t.size), bin='month')
    >>> xg.shape, yr.tolist()
    ((12, 3), [2001, 2002, 2003])
    """
    t = to_datetime_index(t)
    x = np.asarray(x, dtype=float).ravel()
    if x.size != t.size:
        raise ValueError(f"Length of x ({x.size}) must match the length of t ({t.size}).")
    if func is None:
        func = np.nanmean
    pivot = (int(pivotdate[0]), int(pivotdate[1]))
    mode = bin if isinstance(bin, str) else 'equal'

    if isinstance(bin, str):
        if bin not in ('date', 'month'):
            raise ValueError(f"bin must be 'date', 'month' or a positive integer, got {bin!r}")
        if bin == 'month' and pivot[1] != 1:
            warnings.warn("Monthly binning requires a pivot date on the first of the month; shifting.")
            pivot = (pivot[0], 1)
    elif int(bin) != bin or bin < 1:
        raise ValueError(f"bin must be 'date', 'month' or a positive integer, got {bin!r}")

    y0, y1 = _year_limits(t, pivot) if yrlim is None else (int(yrlim[0]), int(yrlim[1]))
    if y1 <= y0:
        raise ValueError(f"yrlim must span at least one year, got {(y0, y1)}")
    yr = np.arange(y0, y1)
    leap = (yr % 4 == 0) & (yr % 100 != 0) | (yr % 400 == 0)
    ref_year = int(yr[np.argmin(leap)]) if not leap.all() else int(yr[0])
    t1 = pd.Timestamp(y0, *pivot)
    t2 = pd.Timestamp(y1, *pivot)

    if mode == 'date':
        tedge = pd.date_range(t1, t2, freq='D')
        tedge = tedge[~((tedge.month == 2) & (tedge.day == 29))]
        nperyear = 365
        tmid = pd.Timestamp(ref_year, *pivot) + pd.to_timedelta(np.arange(365) + 0.5, unit='D')
    elif mode == 'month':
        tedge = pd.date_range(t1, t2, freq='MS')
        nperyear = 12
        tmid = pd.DatetimeIndex([
            pd.Timestamp(ref_year, *pivot) + pd.DateOffset(months=k, days=14) for k in range(12)
        ])
    else:
        nperyear = int(bin)
        starts = np.array([pd.Timestamp(y, *pivot).value for y in range(y0, y1 + 1)], dtype=np.int64)
        steps = np.diff(starts)[:, np.newaxis] * np.arange(nperyear) / nperyear
        edges_ns = np.append((starts[:-1, np.newaxis] + np.round(steps).astype(np.int64)).ravel(), starts[-1])
        tedge = pd.DatetimeIndex(edges_ns.astype('datetime64[ns]'))
        k = int(np.flatnonzero(yr == ref_year)[0])
        ref_edges = tedge[k * nperyear:(k + 1) * nperyear + 1]
        tmid = ref_edges[:-1] + (ref_edges[1:] - ref_edges[:-1]) / 2

    nt = len(tedge) - 1
    edges64 = np.asarray(tedge, dtype='datetime64[ns]')
    t64 = np.asarray(t, dtype='datetime64[ns]')
    bins = np.searchsorted(edges64, t64, side='right') - 1
    bins[t64 == edges64[-1]] = nt - 1
    valid = (bins >= 0) & (bins < nt)
    logger.debug("Binning %d of %d samples into %d bins over %d years", valid.sum(), t.size, nt, yr.size)

    xg = np.full(nt, np.nan)
    if valid.any():
        grouped = pd.Series(x[valid]).groupby(bins[valid]).apply(lambda s: func(s.to_numpy()))
        xg[grouped.index.to_numpy(dtype=np.intp)] = grouped.to_numpy(dtype=float)
    return YearlyBins(xg=xg.reshape(yr.size, nperyear).T, yr=yr, tmid=pd.DatetimeIndex(tmid))


__all__ = [
    'YearlyBins',
    'reshapetimeseries',
]
