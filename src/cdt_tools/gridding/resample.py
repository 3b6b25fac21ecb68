"""
Resampling to regular grids

- transect interpolates a set of vertical profiles (e.g. CTD casts along a
  ship track) onto a regular distance/depth section
- demresize rescales a gridded field such as a digital elevation model and
  recomputes its coordinates
"""

import logging
from typing import Optional, Sequence, Tuple

import numpy as np
import numpy.typing as npt
from scipy import ndimage
from scipy.interpolate import interp1d

from ..utils.options import TransectMethod, check_option

logger = logging.getLogger(__name__)

ArrayF = npt.NDArray[np.floating]


def _interp(x, y, xi, method: str, extrapolate: bool) -> ArrayF:
    ok = np.isfinite(x) & np.isfinite(y)
    if ok.sum() < 2:
        return np.full(np.shape(xi), np.nan)
    fill = 'extrapolate' if extrapolate else np.nan
    f = interp1d(x[ok], y[ok], kind=method, bounds_error=False, fill_value=fill)
    return f(xi)


def transect(
    x: npt.ArrayLike,
    d: Sequence[npt.ArrayLike],
    v: Sequence[npt.ArrayLike],
    *,
    di: Optional[npt.ArrayLike] = None,
    xi: Optional[npt.ArrayLike] = None,
    method: TransectMethod = 'linear',
    extrapolate: bool = False
) -> Tuple[ArrayF, ArrayF, ArrayF]:
    """
    Interpolate vertical profiles onto a regular section.

    Each profile is first interpolated to the common depths ``di``, then
    every depth level is interpolated horizontally to the positions ``xi``.

    Parameters
    ----------
    x : array-like
        Horizontal position of each profile, e.g. distance along the track
    d : sequence of array-like
        Depths of the samples in each profile
    v : sequence of array-like
        Values of the samples in each profile, matching ``d``
    di : array-like, optional
        Output depths. Default: 1000 points spanning all sample depths
    xi : array-like, optional
        Output positions. Default: 2000 points spanning ``x``
    method : {'linear', 'nearest', 'cubic'}, optional
        Interpolation method in both directions. Default: 'linear'
    extrapolate : bool, optional
        Extrapolate beyond the samples instead of returning NaN.
        Default: False

    Returns
    -------
    xi, di : ndarray
        Output positions and depths
    V : ndarray
        Section of shape (len(di), len(xi)), depth down the rows

    Raises
    ------
    ValueError
        If ``x``, ``d`` and ``v`` differ in length or a profile's depths and
        values differ in size

    Examples
    --------
    >>> import numpy as np
    >>> from cdt_tools import transect
    >>> x = [0.0, 10.0, 25.0]
    >>> d = [np.arange(0, 100, 10.0), np.arange(0, 200, 10.0), np.arange(0, 50, 5.0)]
    >>> v = [20 - 0.1 * dk for dk in d]
    >>> xi, di, V = transect(x, d, v, di=np.arange(0, 50.0), xi=np.linspace(0, 25, 6))
    >>> V.shape
    (50, 6)

    Notes
    -----
    - Profiles with fewer than two finite samples give NaN columns before
      the horizontal interpolation
    - NaN values between profiles propagate into the neighbouring section
      cells
    """
    check_option('method', method, TransectMethod)
    x = np.asarray(x, dtype=float).ravel()
    if not (x.size == len(d) == len(v)):
        raise ValueError(f"x ({x.size}), d ({len(d)}) and v ({len(v)}) must have the same number of profiles.")
    d = [np.asarray(dk, dtype=float).ravel() for dk in d]
    v = [np.asarray(vk, dtype=float).ravel() for vk in v]
    for k, (dk, vk) in enumerate(zip(d, v)):
        if dk.size != vk.size:
            raise ValueError(f"Depths ({dk.size}) and values ({vk.size}) of profile {k} must be the same size.")

    if di is None:
        depths = np.concatenate(d)
        di = np.linspace(np.nanmin(depths), np.nanmax(depths), 1000)
    if xi is None:
        xi = np.linspace(x.min(), x.max(), 2000)
    di = np.asarray(di, dtype=float).ravel()
    xi = np.asarray(xi, dtype=float).ravel()
    logger.debug("Interpolating %d profiles to a %dx%d section", x.size, di.size, xi.size)

    V1 = np.column_stack([_interp(dk, vk, di, method, extrapolate) for dk, vk in zip(d, v)])
    if x.size < 2:
        return xi, di, np.full((di.size, xi.size), np.nan)
    f = interp1d(x, V1, kind=method, axis=1, bounds_error=False,
                 fill_value='extrapolate' if extrapolate else np.nan)
    return xi, di, f(xi)


def demresize(
    Z: npt.ArrayLike,
    x: npt.ArrayLike,
    y: npt.ArrayLike,
    sc: float,
    *,
    order: int = 3
) -> Tuple[ArrayF, ArrayF, ArrayF]:
    """
    Rescale a gridded field and compute its new coordinates.

    Parameters
    ----------
    Z : array-like
        2-D grid, rows along ``y`` and columns along ``x``
    x, y : array-like
        Cell-center coordinates, as vectors or meshgrid-style 2-D arrays
    sc : float
        Scale factor; 0.5 halves the number of rows and columns
    order : int, optional
        Order of the spline interpolation in ``scipy.ndimage.zoom``
        (0 nearest, 1 bilinear, 3 cubic). Default: 3

    Returns
    -------
    Zr : ndarray
        Rescaled grid
    xr, yr : ndarray
        Cell-center coordinates of ``Zr``, in the same form (vectors or
        meshgrids) as the input. The outer cell edges are preserved.

    Raises
    ------
    ValueError
        If ``Z`` is not a 2-D grid or ``sc`` is not a positive scalar

    Examples
    --------
    >>> import numpy as np
    >>> from cdt_tools import demresize
    >>> x = np.arange(0.5, 100)
    >>> y = np.arange(0.5, 50)
    >>> Zr, xr, yr = demresize(np.random.rand(50, 100), x, y, 0.5)
    >>> Zr.shape, xr[:2].tolist()
    ((25, 50), [1.0, 3.0])

    Notes
    -----
    NaN cells spread into their neighbours for spline orders above 0.
    """
    Z = np.asarray(Z, dtype=float)
    if Z.ndim != 2 or min(Z.shape) < 2:
        raise ValueError(f"Z must be a 2-D grid, got shape {Z.shape}.")
    if not np.isscalar(sc) or sc <= 0:
        raise ValueError(f"Scale factor sc must be a positive scalar, got {sc!r}")
    x = np.asarray(x, dtype=float)
    y = np.asarray(y, dtype=float)
    gridin = x.ndim == 2
    if gridin:
        x, y = x[0, :], y[:, 0]
    x, y = x.ravel(), y.ravel()
    if x.size != Z.shape[1] or y.size != Z.shape[0]:
        raise ValueError(f"Coordinates ({y.size} rows, {x.size} columns) must match Z {Z.shape}.")

    Zr = ndimage.zoom(Z, sc, order=order)
    logger.debug("Resized grid from %s to %s", Z.shape, Zr.shape)

    xres = np.nanmedian(np.diff(x))
    yres = np.nanmedian(np.diff(y))
    xresr = (x[-1] - x[0] + xres) / Zr.shape[1]
    yresr = (y[-1] - y[0] + yres) / Zr.shape[0]
    xr = x[0] - xres / 2 + xresr / 2 + xresr * np.arange(Zr.shape[1])
    yr = y[0] - yres / 2 + yresr / 2 + yresr * np.arange(Zr.shape[0])
    if gridin:
        xr, yr = np.meshgrid(xr, yr)
    return Zr, xr, yr


__all__ = [
    'transect',
    'demresize',
]
