"""
Sinusoidal seasonal cycles

Least-squares fit of an annual sinusoid, optionally with a constant, a
linear trend and a quadratic term, and evaluation of fitted models.

A fit is stored as a vector of up to five terms:

    [amplitude, day of year of maximum, constant, trend, quadratic]

The trend and quadratic terms are per year and per year squared, relative to
year zero, because the time variable of the model is the decimal year.
"""

import logging
import warnings
from typing import Optional, Tuple, Union

import numpy as np
import numpy.typing as npt

from ..utils.arrays import cube2rect, rect2cube
from .time import doy, to_datetime_index

logger = logging.getLogger(__name__)

ArrayF = npt.NDArray[np.floating]

# Days per year of the phase term
DAYS_PER_YEAR = 365.24


def _design_matrix(yr: ArrayF, terms: int) -> ArrayF:
    columns = [np.sin(2 * np.pi * yr), np.cos(2 * np.pi * yr), np.ones_like(yr), yr, yr**2]
    return np.column_stack(columns[:terms])


def _to_terms(p: ArrayF) -> ArrayF:
    """Convert least-squares coefficients (terms, m) to fit parameters (m, terms)."""
    ft = np.array(p, dtype=float).T
    phase = np.arctan2(p[1], p[0])
    ft[:, 0] = np.hypot(p[0], p[1])
    ft[:, 1] = DAYS_PER_YEAR * np.mod(0.25 - phase / (2 * np.pi), 1)
    return ft


def sinefit(
    t,
    y: npt.ArrayLike,
    *,
    weights: Optional[npt.ArrayLike] = None,
    terms: int = 2,
    return_rmse: bool = False
):
    """
    Fit an annual sinusoid to a time series or to every cell of a data cube.

    Parameters
    ----------
    t : array-like
        Sample times (anything ``pandas.to_datetime`` accepts)
    y : array-like
        Series the same length as ``t``, or a (rows, cols, time) cube
    weights : array-like, optional
        Non-negative weights of the samples of a series. Not available for
        cubes. Default: equal weights
    terms : {2, 3, 4, 5}, optional
        Number of model terms: amplitude and phase, then a constant, a linear
        trend and a quadratic term. Default: 2
    return_rmse : bool, optional
        Also return the root-mean-square residual of the fit. Default: False

    Returns
    -------
    ft : ndarray
        (terms,) fit parameters of a series, or (rows, cols, terms) for a cube.
        The second term is the day of year at which the sinusoid peaks.
    rmse : float or ndarray, optional
        Root-mean-square residual, returned if ``return_rmse`` is True

    Raises
    ------
    ValueError
        If ``terms`` is not 2 through 5, or shapes do not agree

    Warns
    -----
    UserWarning
        If the data span less than a year

    Examples
    --------
    >>> import numpy as np
    >>> import pandas as pd
    >>> from cdt_tools import sinefit
    >>> t = pd.date_range('2000-01-01', '2004-12-31', freq='D')
    >>> y = 3 * np.sin(2 * np.pi * (t.dayofyear - 100) / 365.25) + 10
    >>> ft = sinefit(t, y, terms=3)
    >>> np.round(ft[[0, 2]], 1)
    array([ 3., 10.])

    Notes
    -----
    - Samples of a series where the time, value or weight is not finite are
      ignored. Cube cells with any non-finite value are NaN.
    """
    if terms not in (2, 3, 4, 5):
        raise ValueError(f"terms must be 2, 3, 4 or 5, got {terms}")
    t = to_datetime_index(t)
    if (t.max() - t.min()).days < 365:
        warnings.warn("Fitting a sinusoid to less than one year of data. This might not be what you want.")
    yr = doy(t, 'decimalyear')
    y = np.asarray(y, dtype=float)

    if y.ndim == 3:
        if weights is not None:
            raise ValueError("weights cannot be specified for input cubes.")
        if y.shape[2] != t.size:
            raise ValueError(f"The third dimension of y ({y.shape[2]}) must match the length of t ({t.size}).")
        mask = np.all(np.isfinite(y), axis=2)
        Y = cube2rect(y, mask)
        V = _design_matrix(yr, terms)
        p, *_ = np.linalg.lstsq(V, Y, rcond=None)
        ft_cols = _to_terms(p)
        ft = rect2cube(ft_cols.T, mask)
        if not return_rmse:
            return ft
        rmse = np.sqrt(np.mean((Y - V @ p)**2, axis=0))
        return ft, rect2cube(rmse[np.newaxis, :], mask)[:, :, 0]

    y = y.ravel()
    if y.size != t.size:
        raise ValueError(f"Length of y ({y.size}) must match the length of t ({t.size}).")
    w = np.ones(y.shape) if weights is None else np.asarray(weights, dtype=float).ravel()
    if w.size != y.size:
        raise ValueError(f"Length of weights ({w.size}) must match the length of y ({y.size}).")
    ind = np.isfinite(yr) & np.isfinite(y) & np.isfinite(w)
    logger.debug("Fitting %d-term sinusoid to %d of %d samples", terms, ind.sum(), ind.size)

    V = _design_matrix(yr[ind], terms)
    sw = np.sqrt(w[ind])
    p, *_ = np.linalg.lstsq(sw[:, np.newaxis] * V, sw * y[ind], rcond=None)
    ft = _to_terms(p[:, np.newaxis])[0]
    if not return_rmse:
        return ft
    return ft, float(np.sqrt(np.mean((y[ind] - V @ p)**2)))


def sineval(ft: npt.ArrayLike, t) -> Union[float, ArrayF]:
    """
    Evaluate a sinusoidal model from :func:`sinefit` at given times.

    Parameters
    ----------
    ft : array-like
        Fit parameters with terms along the last axis: (terms,) for a single
        model, (m, terms) for several or (rows, cols, terms) for a grid
    t : array-like
        Times at which to evaluate the model

    Returns
    -------
    y : ndarray
        Model values of shape ``ft.shape[:-1] + (len(t),)``

    Examples
    --------
    >>> from cdt_tools import sineval
    >>> round(float(sineval([2.0, 91.31, 5.0], ['2001-04-02'])[0]), 2)  # close to the peak
    7.0
    """
    ft = np.asarray(ft, dtype=float)
    if ft.ndim == 0 or ft.shape[-1] < 2:
        raise ValueError("Fit parameters ft must contain at least an amplitude and a phase term.")
    if ft.shape[-1] > 5:
        raise ValueError(f"Fit parameters can have at most 5 terms, got {ft.shape[-1]}.")
    yr = doy(to_datetime_index(t), 'decimalyear')
    terms = [ft[..., k, np.newaxis] for k in range(ft.shape[-1])]

    ph = 0.25 - terms[1] / DAYS_PER_YEAR
    y = terms[0] * np.sin(2 * np.pi * (yr + ph))
    for k, basis in enumerate([np.ones_like(yr), yr, yr**2][:len(terms) - 2]):
        y = y + terms[k + 2] * basis
    return y


def sinefit_bootstrap(
    t,
    y: npt.ArrayLike,
    *,
    terms: int = 2,
    nboot: int = 1000,
    weights: Optional[npt.ArrayLike] = None,
    seed: Optional[Union[int, np.random.Generator]] = None
) -> Tuple[ArrayF, ArrayF]:
    """
    Bootstrap distribution of sinusoidal fit parameters.

    The series is resampled with replacement ``nboot`` times and each sample
    is fit with :func:`sinefit`.

    Parameters
    ----------
    t, y : array-like
        Times and values of a single series
    terms : int, optional
        Number of model terms, 2 through 5. Default: 2
    nboot : int, optional
        Number of bootstrap iterations. Default: 1000
    weights : array-like, optional
        Sample weights, resampled along with the data
    seed : int or numpy.random.Generator, optional
        Random state for reproducible resampling

    Returns
    -------
    ft : ndarray
        (nboot, terms) fit parameters of every iteration
    rmse : ndarray
        (nboot,) root-mean-square residual of every iteration
    """
    t = to_datetime_index(t)
    y = np.asarray(y, dtype=float).ravel()
    if y.size != t.size:
        raise ValueError(f"Length of y ({y.size}) must match the length of t ({t.size}).")
    w = np.ones(y.shape) if weights is None else np.asarray(weights, dtype=float).ravel()
    ind = np.isfinite(y) & np.isfinite(w)
    t, y, w = t[ind], y[ind], w[ind]

    rng = np.random.default_rng(seed)
    ft = np.empty((nboot, terms))
    rmse = np.empty(nboot)
    with warnings.catch_warnings():
        warnings.simplefilter('ignore', UserWarning)
        for k in range(nboot):
            i = rng.integers(0, y.size, y.size)
            ft[k], rmse[k] = sinefit(t[i], y[i], weights=w[i], terms=terms, return_rmse=True)
    return ft, rmse


__all__ = [
    'DAYS_PER_YEAR',
    'sinefit',
    'sineval',
    'sinefit_bootstrap',
]
