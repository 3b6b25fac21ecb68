"""
Climate indices

- Southern Annular Mode (SAM) after Gong and Wang (1999): the difference of
  normalized zonal-mean sea level pressure anomalies at 40 S and 65 S,
  relative to a 1971-2000 baseline
- North Atlantic Oscillation (NAO): the difference of normalized sea level
  pressure anomalies at two stations (e.g. Azores or Lisbon and Iceland)
- Standardized Precipitation-Evapotranspiration Index (SPEI) after
  Vicente-Serrano et al. (2010): the climatic water balance fitted with a
  log-logistic distribution and mapped to standard normal quantiles
"""

import logging
from typing import Optional, Tuple

import numpy as np
import numpy.typing as npt
import pandas as pd
from scipy import stats

from ..stats.summary import standardize
from ..utils.arrays import cube2rect, rect2cube
from ..utils.axis import map_column_chunks
from ..utils.options import DateLoc, ParallelMethod, SamBaseline, check_option
from .seasonal import climatology
from .time import to_datetime_index

logger = logging.getLogger(__name__)

SAM_BASELINE_START = pd.Timestamp('1971-01-01')
SAM_BASELINE_END = pd.Timestamp('2001-01-01')


def _pressure_pair(slpA, slpB, t):
    slpA = np.asarray(slpA, dtype=float)
    slpB = np.asarray(slpB, dtype=float)
    if slpA.shape != slpB.shape:
        raise ValueError(f"Sea level pressure series must be the same size, got {slpA.shape} and {slpB.shape}.")
    if slpA.size != max(slpA.shape, default=0):
        raise ValueError("Sea level pressure inputs must be vectors.")
    t = to_datetime_index(t)
    if t.size != slpA.size:
        raise ValueError(f"Length of t ({t.size}) must match the length of the pressure series ({slpA.size}).")
    return slpA.ravel(), slpB.ravel(), t


def _normalized_anomaly(slp: npt.NDArray[np.floating], t: pd.DatetimeIndex) -> npt.NDArray[np.floating]:
    anomaly = slp - climatology(slp, t, full=True)
    return standardize(anomaly, nan_policy='omit')


def sam(
    slp40: npt.ArrayLike,
    slp65: npt.ArrayLike,
    t,
    *,
    baseline: SamBaseline = 'shared'
) -> npt.NDArray[np.floating]:
    """
    Southern Annular Mode index (Gong and Wang, 1999).

    Parameters
    ----------
    slp40, slp65 : array-like
        Zonal-mean sea level pressure time series at 40 S and 65 S
    t : array-like
        Times of the samples; must cover 1971-01-01 through 2001-01-01
    baseline : {'shared', 'separate'}, optional
        How the 1971-2000 baseline is removed from the normalized anomalies:
        - 'shared': subtract the 40 S baseline mean from both series, which
          reproduces the established toolbox computation
        - 'separate': subtract each series' own baseline mean
        Default: 'shared'

    Returns
    -------
    idx : ndarray
        SAM index at each time step

    Raises
    ------
    ValueError
        If the inputs differ in length or do not span the baseline period

    Notes
    -----
    - The two baseline choices differ by a constant offset equal to the
      difference of the baseline means of the two normalized series
    """
    check_option('baseline', baseline, SamBaseline)
    slp40, slp65, t = _pressure_pair(slp40, slp65, t)
    if t.min() > SAM_BASELINE_START:
        raise ValueError("The time series must begin on or before Jan 1, 1971 to allow for baseline calculation.")
    if t.max() < SAM_BASELINE_END:
        raise ValueError("The time series must end on or after Jan 1, 2001 to allow for baseline calculation.")

    n40 = _normalized_anomaly(slp40, t)
    n65 = _normalized_anomaly(slp65, t)

    ind = np.asarray((t >= SAM_BASELINE_START) & (t < SAM_BASELINE_END))
    base40 = np.nanmean(n40[ind])
    base65 = base40 if baseline == 'shared' else np.nanmean(n65[ind])
    logger.debug("SAM baselines (%s): 40S %.4f, 65S %.4f", baseline, base40, base65)

    return (n40 - base40) - (n65 - base65)


def nao(
    slpA: npt.ArrayLike,
    slpB: npt.ArrayLike,
    t
) -> npt.NDArray[np.floating]:
    """
    North Atlantic Oscillation index.

    Parameters
    ----------
    slpA : array-like
        Sea level pressure at the southern station (e.g. Ponta Delgada,
        Lisbon or Gibraltar)
    slpB : array-like
        Sea level pressure at the northern station (e.g. Reykjavik)
    t : array-like
        Times of the samples

    Returns
    -------
    idx : ndarray
        NAO index at each time step

    Raises
    ------
    ValueError
        If the inputs differ in length
    """
    slpA, slpB, t = _pressure_pair(slpA, slpB, t)
    nA = _normalized_anomaly(slpA, t)
    nB = _normalized_anomaly(slpB, t)
    return (nA - np.nanmean(nA)) - (nB - np.nanmean(nB))


def _spei_columns(D: npt.NDArray[np.floating]) -> npt.NDArray[np.floating]:
    s = np.full(D.shape, np.nan)
    for k in range(D.shape[1]):
        d = D[:, k]
        finite = np.isfinite(d)
        if finite.sum() < 3:
            continue
        # Shift to strictly positive values for the log-logistic fit
        x = d - d[finite].min() + 1
        c, _, scale = stats.fisk.fit(x[finite], floc=0)
        F = stats.fisk.cdf(x[finite], c, 0, scale)
        s[finite, k] = stats.norm.ppf(F)
    return s


def _integrate(D, t: pd.DatetimeIndex, integration_time: int, dateloc: str):
    keys = [t.year, (t.month - 1) // integration_time]
    frame = pd.DataFrame(D)
    gaps = frame.isna().groupby(keys).any()
    Dint = frame.groupby(keys).mean().mask(gaps)
    times = pd.Series(t).groupby(keys)
    if dateloc == 'start':
        tint = times.min()
    elif dateloc == 'end':
        tint = times.max()
    else:
        tint = times.min() + (times.max() - times.min()) / 2
    return Dint.to_numpy(dtype=float), pd.DatetimeIndex(tint.to_numpy())


def spei(
    t,
    prec: npt.ArrayLike,
    pevap: npt.ArrayLike,
    *,
    integration_time: Optional[int] = None,
    movmean: Optional[int] = 31,
    dateloc: DateLoc = 'end',
    parallel_method: ParallelMethod = 'auto',
    n_jobs: int = -1
) -> Tuple[npt.NDArray[np.floating], pd.DatetimeIndex]:
    """
    Standardized Precipitation-Evapotranspiration Index.

    Parameters
    ----------
    t : array-like
        Sample times
    prec, pevap : array-like
        Precipitation and potential evapotranspiration in the same units,
        either vectors the length of ``t`` or (rows, cols, time) cubes
    integration_time : {1, 2, 3, 4, 6, 12}, optional
        Average the water balance over blocks of this many calendar months
        before fitting. Default: None, i.e. use a moving mean instead
    movmean : int, optional
        Length of the trailing moving mean (in samples) applied when
        ``integration_time`` is not given; the first ``movmean`` values are
        NaN. None disables smoothing. Default: 31
    dateloc : {'start', 'end', 'centered'}, optional
        Time stamp of each integration block. Default: 'end'
    parallel_method : {'auto', 'joblib', 'serial'}, optional
        How to process grid cells of a cube. Default: 'auto'
    n_jobs : int, optional
        Number of joblib workers. -1 uses all CPU cores. Default: -1

    Returns
    -------
    s : ndarray
        SPEI values, a vector or a cube with one slice per output time
    tint : pandas.DatetimeIndex
        Times of ``s``; equal to ``t`` without ``integration_time``

    Raises
    ------
    ValueError
        If the inputs are inconsistent in size or ``integration_time`` is
        not a divisor of 12

    Examples
    --------
    >>> import numpy as np
    >>> import pandas as pd
    >>> from cdt_tools import spei
    >>> t = pd.date_range('1990-01-01', '2009-12-01', freq='MS')
    >>> rng = np.random.default_rng(1)
    >>> s, tint = spei(t, rng.gamma(2.0, 40.0, t.size), np.full(t.size, 60.0), integration_time=3)
    >>> s.shape, tint[0]
    ((80,), Timestamp('1990-03-01 00:00:00'))

    Notes
    -----
    - Each series is shifted by ``1 - min`` before fitting, so the
      distribution is fitted to strictly positive values
    - Standard normal quantiles are computed exactly rather than with the
      rational approximation of Abramowitz and Stegun
    """
    check_option('dateloc', dateloc, DateLoc)
    if integration_time is not None and integration_time not in (1, 2, 3, 4, 6, 12):
        raise ValueError(f"integration_time must be one of 1, 2, 3, 4, 6 or 12, got {integration_time!r}")
    prec = np.asarray(prec, dtype=float)
    pevap = np.asarray(pevap, dtype=float)
    if prec.shape != pevap.shape:
        raise ValueError(f"prec {prec.shape} and pevap {pevap.shape} must be the same size.")
    t = to_datetime_index(t)

    is_cube = prec.ndim == 3
    if is_cube:
        if t.size != prec.shape[2]:
            raise ValueError(f"Length of t ({t.size}) must match the time dimension of the cubes ({prec.shape[2]}).")
        grid_shape = prec.shape[:2]
        D = cube2rect(prec) - cube2rect(pevap)
    else:
        if prec.size != max(prec.shape, default=0) or prec.size != t.size:
            raise ValueError("prec, pevap and t must be vectors of the same length.")
        D = (prec - pevap).reshape(-1, 1)

    if integration_time is None:
        tint = t
        if movmean:
            D = pd.DataFrame(D).rolling(movmean, min_periods=1).mean().to_numpy()
            D[:movmean] = np.nan
    else:
        D, tint = _integrate(D, t, integration_time, dateloc)
    logger.debug("Fitting SPEI to %d series of %d samples", D.shape[1], D.shape[0])

    s = map_column_chunks(_spei_columns, D, parallel_method=parallel_method, n_jobs=n_jobs)
    if is_cube:
        return rect2cube(s, grid_shape), tint
    return s[:, 0], tint


__all__ = [
    'sam',
    'nao',
    'spei',
]
