"""
Vector calculus on lat/lon grids

Finite-difference gradient, divergence and curl of gridded fields, using the
physical cell dimensions from :func:`cdt_tools.geo.cdtdim`.

Fields may be 2-D (rows, cols) or 3-D (rows, cols, time); the calculation is
applied to every time step. Both meshgrid layouts are accepted and the output
layout matches the input.
"""

from typing import Tuple

import numpy as np
import numpy.typing as npt

from .grid import cdtdim, check_latlon_grid, grid_orientation

ArrayF = npt.NDArray[np.floating]


def _prepare(lat, lon, *fields):
    """Validate inputs and bring them to the lon-along-columns layout."""
    lat, lon = check_latlon_grid(lat, lon)
    fields = [np.asarray(f, dtype=float) for f in fields]
    shapes = {f.shape for f in fields}
    if len(shapes) > 1:
        raise ValueError("The dimensions of all input fields must match.")
    for f in fields:
        if f.ndim not in (2, 3) or f.shape[:2] != lat.shape:
            raise ValueError(
                f"The dimensions of lat and lon {lat.shape} must match the first two "
                f"dimensions of the input fields {f.shape}."
            )

    transposed = grid_orientation(lat, lon)
    if transposed:
        lat, lon = lat.T, lon.T
        fields = [np.swapaxes(f, 0, 1) for f in fields]
    return lat, lon, fields, transposed


def _like(grid: ArrayF, field: ArrayF) -> ArrayF:
    """Broadcast a 2-D grid against a 2-D or 3-D field."""
    return grid[:, :, np.newaxis] if field.ndim == 3 else grid


def _restore(out: ArrayF, transposed: bool) -> ArrayF:
    return np.swapaxes(out, 0, 1) if transposed else out


def cdtgradient(
    lat: npt.ArrayLike,
    lon: npt.ArrayLike,
    F: npt.ArrayLike,
    km: bool = False
) -> Tuple[ArrayF, ArrayF]:
    """
    Spatial gradient of a gridded field in physical units.

    Parameters
    ----------
    lat, lon : array-like
        2-D meshgrid-style grids (degrees)
    F : array-like
        2-D field or 3-D (rows, cols, time) cube
    km : bool, optional
        Compute per kilometer instead of per meter. Default: False

    Returns
    -------
    FX, FY : ndarray
        Zonal and meridional components of the gradient (units of F per m
        or per km), same shape as ``F``

    Raises
    ------
    ValueError
        If the grid is invalid or its dimensions do not match ``F``

    Examples
    --------
    >>> from cdt_tools import cdtgrid, cdtgradient
    >>> lat, lon = cdtgrid(1)
    >>> FX, FY = cdtgradient(lat, lon, lat)  # FY ~ 1 degree per 111 km
    """
    lat, lon, (F,), transposed = _prepare(lat, lon, F)
    dx, dy = cdtdim(lat, lon, km=km)

    FX = np.gradient(F, axis=1) / _like(dx, F)
    FY = np.gradient(F, axis=0) / _like(dy, F)
    return _restore(FX, transposed), _restore(FY, transposed)


def cdtdivergence(
    lat: npt.ArrayLike,
    lon: npt.ArrayLike,
    U: npt.ArrayLike,
    V: npt.ArrayLike
) -> ArrayF:
    """
    Divergence of a gridded vector field.

    Parameters
    ----------
    lat, lon : array-like
        2-D meshgrid-style grids (degrees)
    U, V : array-like
        Zonal and meridional components, 2-D or (rows, cols, time)

    Returns
    -------
    D : ndarray
        Divergence dU/dx + dV/dy (units of U per meter)
    """
    lat, lon, (U, V), transposed = _prepare(lat, lon, U, V)
    dx, dy = cdtdim(lat, lon)

    dU_dx = np.gradient(U / _like(dx, U), axis=1)
    dV_dy = np.gradient(V / _like(dy, V), axis=0)
    return _restore(dU_dx + dV_dy, transposed)


def cdtcurl(
    lat: npt.ArrayLike,
    lon: npt.ArrayLike,
    U: npt.ArrayLike,
    V: npt.ArrayLike
) -> ArrayF:
    """
    Vertical component of the curl of a gridded vector field.

    Parameters
    ----------
    lat, lon : array-like
        2-D meshgrid-style grids (degrees)
    U, V : array-like
        Zonal and meridional components, 2-D or (rows, cols, time)

    Returns
    -------
    Cz : ndarray
        Curl dV/dx - dU/dy (units of U per meter)

    Notes
    -----
    - For winds in m/s this is the relative vorticity in 1/s
    """
    lat, lon, (U, V), transposed = _prepare(lat, lon, U, V)
    dx, dy = cdtdim(lat, lon)

    dV_dx = np.gradient(V / _like(dx, V), axis=1)
    dU_dy = np.gradient(U / _like(dy, U), axis=0)
    return _restore(dV_dx - dU_dy, transposed)


__all__ = [
    'cdtgradient',
    'cdtdivergence',
    'cdtcurl',
]
