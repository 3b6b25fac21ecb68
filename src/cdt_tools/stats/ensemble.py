"""
Spread of ensembles and noisy series

- ensemble2bnd reduces an ensemble to its center and percentile bounds,
  e.g. the spread of model runs for a shaded uncertainty band
- ts_normstrap estimates the uncertainty of a time series by perturbing it
  with normally distributed errors
"""

import logging
from typing import NamedTuple, Optional, Sequence, Tuple, Union

import numpy as np
import numpy.typing as npt

from ..utils.options import EnsembleCenter, check_option

logger = logging.getLogger(__name__)

ArrayF = npt.NDArray[np.floating]


class EnsembleBounds(NamedTuple):
    """Center and percentile bounds of an ensemble."""
    cent: ArrayF
    bndlo: ArrayF
    bndhi: ArrayF
    errlo: ArrayF
    errhi: ArrayF


def ensemble2bnd(
    y: npt.ArrayLike,
    *,
    axis: int = -1,
    center: EnsembleCenter = 'mean',
    prc: Sequence[float] = (0, 100)
) -> EnsembleBounds:
    """
    Center and percentile bounds of ensemble members.

    Parameters
    ----------
    y : array-like
        Ensemble data with members along ``axis``, e.g. (time, variables,
        members)
    axis : int, optional
        Axis holding the ensemble members. Default: -1
    center : {'mean', 'median'}, optional
        Statistic for the center line. NaN members are ignored.
        Default: 'mean'
    prc : sequence of float, optional
        An even number of percentiles in 0..100. They are sorted and paired
        from the outside in, so (5, 25, 75, 95) gives a 5-95 and a 25-75
        band. Default: (0, 100), the ensemble range

    Returns
    -------
    bounds : EnsembleBounds
        Named tuple with fields
        - ``cent``: center, ``y`` reduced along ``axis``
        - ``bndlo``, ``bndhi``: lower and upper bounds with one band per
          pair stacked along a new last axis, outermost band first
        - ``errlo``, ``errhi``: distances of the bounds from the center

    Raises
    ------
    ValueError
        If ``prc`` has an odd number of entries or values outside 0..100

    Examples
    --------
    >>> import numpy as np
    >>> from cdt_tools import ensemble2bnd
    >>> y = np.random.rand(50, 2, 20)
    >>> b = ensemble2bnd(y, prc=(5, 25, 75, 95))
    >>> b.cent.shape, b.bndlo.shape
    ((50, 2), (50, 2, 2))
    """
    check_option('center', center, EnsembleCenter)
    y = np.asarray(y, dtype=float)
    prc = np.sort(np.asarray(prc, dtype=float).ravel())
    if prc.size == 0 or prc.size % 2:
        raise ValueError(f"prc must contain an even number of percentiles, got {prc.size}.")
    if prc[0] < 0 or prc[-1] > 100:
        raise ValueError("Percentiles prc must be within 0..100.")
    y = np.moveaxis(y, axis, -1)

    cent = np.nanmean(y, axis=-1) if center == 'mean' else np.nanmedian(y, axis=-1)
    half = prc.size // 2
    bndlo = np.moveaxis(np.nanpercentile(y, prc[:half], axis=-1), 0, -1)
    bndhi = np.moveaxis(np.nanpercentile(y, prc[::-1][:half], axis=-1), 0, -1)
    return EnsembleBounds(
        cent=cent,
        bndlo=bndlo,
        bndhi=bndhi,
        errlo=cent[..., np.newaxis] - bndlo,
        errhi=bndhi - cent[..., np.newaxis],
    )


def ts_normstrap(
    ts: npt.ArrayLike,
    e: Optional[Union[float, npt.ArrayLike]] = None,
    *,
    nboot: int = 1000,
    seed: Optional[Union[int, np.random.Generator]] = None
) -> Tuple[ArrayF, ArrayF]:
    """
    Bootstrap a time series with normally distributed errors.

    Each of ``nboot`` realizations adds independent Gaussian noise with
    standard deviation ``e`` to every sample.

    Parameters
    ----------
    ts : array-like
        Time series vector
    e : float or array-like, optional
        Error standard deviation, a scalar or one value per sample.
        Default: the standard deviation of ``ts`` (NaN ignored)
    nboot : int, optional
        Number of realizations. Default: 1000
    seed : int or numpy.random.Generator, optional
        Random seed for reproducible results

    Returns
    -------
    tsb : ndarray
        Standard deviation of the realizations at each sample
    Nts : ndarray
        The realizations, shape (len(ts), nboot)

    Raises
    ------
    ValueError
        If ``ts`` is not a vector, ``e`` does not match it or ``nboot`` is
        not positive
    """
    ts = np.asarray(ts, dtype=float)
    if ts.size != max(ts.shape, default=0):
        raise ValueError("ts must be a vector.")
    ts = ts.ravel()
    if not np.isscalar(nboot) or int(nboot) != nboot or nboot < 1:
        raise ValueError(f"nboot must be a positive integer, got {nboot!r}")

    if e is None:
        e = np.nanstd(ts, ddof=1)
    E = np.asarray(e, dtype=float)
    if E.size == 1:
        E = np.full(ts.size, E.item())
    elif E.size != ts.size:
        raise ValueError(f"Length of e ({E.size}) must equal the length of ts ({ts.size}).")
    E = E.ravel()

    rng = np.random.default_rng(seed)
    logger.debug("Drawing %d realizations of a %d-sample series", nboot, ts.size)
    Nts = ts[:, np.newaxis] + E[:, np.newaxis] * rng.standard_normal((ts.size, int(nboot)))
    tsb = np.nanstd(Nts, axis=1, ddof=1)
    return tsb, Nts


__all__ = [
    'EnsembleBounds',
    'ensemble2bnd',
    'ts_normstrap',
]
