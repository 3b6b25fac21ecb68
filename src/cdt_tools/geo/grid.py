"""
Geographic grids

Functions to build global lat/lon grids, compute the physical size of grid
cells, wrap grids to a chosen central longitude and locate the bins of
equal-area sinusoidal grids.

Grid conventions:
- lat and lon are 2-D arrays as created by ``np.meshgrid(lon1, lat1)``,
  so latitude varies down the rows and longitude along the columns
- The transposed layout (longitude down the rows) is also recognised
- dx, dy are signed: they follow the direction in which the grid indices
  increase (e.g. dy < 0 for grids that run from north to south)
"""

import logging
import warnings
from typing import Optional, Sequence, Tuple, Union

import numpy as np
import numpy.typing as npt

from .earth import earth_radius, islatlon

logger = logging.getLogger(__name__)

ArrayF = npt.NDArray[np.floating]


def check_latlon_grid(lat: npt.ArrayLike, lon: npt.ArrayLike) -> Tuple[ArrayF, ArrayF]:
    """
    Validate meshgrid-style lat/lon grids and return them as float arrays.

    Raises
    ------
    ValueError
        If lat/lon are not 2-D, differ in shape, are smaller than 2x2, or
        contain values outside the range of geographic coordinates
    """
    lat = np.asarray(lat, dtype=float)
    lon = np.asarray(lon, dtype=float)
    if lat.ndim != 2 or lon.ndim != 2:
        raise ValueError("lat and lon must be 2D grids as if created by meshgrid.")
    if lat.shape != lon.shape:
        raise ValueError(f"The dimensions of lat {lat.shape} and lon {lon.shape} must agree.")
    if min(lat.shape) < 2:
        raise ValueError("lat and lon grids must be at least 2x2.")
    if not islatlon(lat, lon):
        raise ValueError(
            "Some of the values in lat or lon do not match typical lat,lon ranges. "
            "Check inputs and try again."
        )
    return lat, lon


def grid_orientation(lat: ArrayF, lon: ArrayF) -> bool:
    """
    Determine the layout of a meshgrid-style lat/lon grid.

    Returns
    -------
    transposed : bool
        False if longitude varies along the columns (``np.meshgrid(lon, lat)``),
        True if longitude varies down the rows

    Raises
    ------
    ValueError
        If the grid is neither layout
    """
    gridtype = np.abs(np.sign([
        lon[1, 1] - lon[1, 0],
        lat[1, 0] - lat[0, 0],
        lat[1, 1] - lat[1, 0],
        lon[1, 0] - lon[0, 0],
    ]))
    if np.array_equal(gridtype, [1, 1, 0, 0]):
        return False
    if np.array_equal(gridtype, [0, 0, 1, 1]):
        return True
    raise ValueError("Unrecognized lat,lon grid type. It should be monotonic, like it was created by meshgrid.")


def cdtgrid(
    res: Union[float, Sequence[float]] = 1.0,
    center_lon: float = 0.0
) -> Tuple[ArrayF, ArrayF]:
    """
    Build a global grid of cell-center coordinates.

    Parameters
    ----------
    res : float or (float, float), optional
        Grid resolution in degrees, or ``(dlat, dlon)``. Default: 1
    center_lon : float, optional
        Central longitude; the grid spans center_lon-180 to center_lon+180.
        Default: 0

    Returns
    -------
    lat, lon : ndarray
        2-D grids; latitude decreases from the north pole down the rows and
        longitude increases along the columns

    Raises
    ------
    ValueError
        If the resolution is not one or two positive values below 90 degrees

    Warns
    -----
    UserWarning
        If the resolution does not evenly divide 180 (lat) or 360 (lon)

    Examples
    --------
    >>> from cdt_tools import cdtgrid
    >>> lat, lon = cdtgrid(2)
    >>> lat.shape
    (90, 180)
    >>> float(lat[0, 0]), float(lon[0, 0])
    (89.0, -179.0)
    """
    res = np.atleast_1d(np.asarray(res, dtype=float))
    if res.size == 1:
        res = np.repeat(res, 2)
    if res.size != 2:
        raise ValueError("Resolution res must have one or two elements.")
    if np.any(res <= 0):
        raise ValueError("Resolution must be positive.")
    if res.max() >= 90:
        raise ValueError("Resolution should not exceed 90 degrees.")

    dlat, dlon = res
    if not np.isclose(180 / dlat, round(180 / dlat)):
        warnings.warn(
            "Specified latitude resolution does not evenly divide 180 degrees from pole to pole. "
            "Continuing anyway, but the grid will not cover the whole Earth."
        )
    if not np.isclose(360 / dlon, round(360 / dlon)):
        warnings.warn(
            "Specified longitude resolution does not evenly divide 360 degrees around the world. "
            "Continuing anyway, but the grid will not cover the whole Earth."
        )

    n_lat = int(np.floor((180 - dlat) / dlat + 1e-9)) + 1
    n_lon = int(np.floor((360 - dlon) / dlon + 1e-9)) + 1
    lat1 = (90 - dlat / 2) - dlat * np.arange(n_lat)
    lon1 = (-180 + dlon / 2) + dlon * np.arange(n_lon)

    lon, lat = np.meshgrid(lon1, lat1)
    if center_lon != 0:
        lon = lon + center_lon
    return lat, lon


def cdtdim(
    lat: npt.ArrayLike,
    lon: npt.ArrayLike,
    km: bool = False
) -> Tuple[ArrayF, ArrayF]:
    """
    Approximate dimensions of each cell of a lat/lon grid.

    Parameters
    ----------
    lat, lon : array-like
        2-D meshgrid-style grids (degrees)
    km : bool, optional
        Return kilometers instead of meters. Default: False

    Returns
    -------
    dx, dy : ndarray
        Cell widths in the zonal (dx) and meridional (dy) directions,
        computed with centered differences and the latitude-dependent
        Earth radius

    Raises
    ------
    ValueError
        If lat/lon are not valid, monotonic meshgrid-style grids
    """
    lat, lon = check_latlon_grid(lat, lon)
    R = earth_radius(lat, km=km)

    dlat_rows, dlat_cols = np.gradient(lat)
    dlon_rows, dlon_cols = np.gradient(lon)

    if np.all(dlat_cols == 0):
        dlat = dlat_rows
        dlon = dlon_cols
        monotonic = np.all(dlon_rows == 0)
    else:
        dlat = dlat_cols
        dlon = dlon_rows
        monotonic = np.all(dlon_cols == 0) and np.all(dlat_rows == 0)
    if not monotonic:
        raise ValueError("lat and lon must be monotonic grids, as if created by meshgrid.")

    dy = dlat * R * np.pi / 180
    dx = (dlon / 180) * np.pi * R * np.cos(np.deg2rad(lat))
    return dx, dy


def cdtarea(lat: npt.ArrayLike, lon: npt.ArrayLike, km2: bool = False) -> ArrayF:
    """
    Approximate area of each cell of a lat/lon grid.

    Parameters
    ----------
    lat, lon : array-like
        2-D meshgrid-style grids (degrees)
    km2 : bool, optional
        Return square kilometers instead of square meters. Default: False

    Returns
    -------
    A : ndarray
        Cell areas, same shape as ``lat``

    Examples
    --------
    >>> import numpy as np
    >>> from cdt_tools import cdtgrid, cdtarea
    >>> lat, lon = cdtgrid(1)
    >>> total = cdtarea(lat, lon, km2=True).sum()  # close to 510 million km^2
    """
    dx, dy = cdtdim(lat, lon, km=km2)
    return np.abs(dx * dy)


def recenter(
    lat: npt.ArrayLike,
    lon: npt.ArrayLike,
    *fields: npt.ArrayLike,
    center: float = 0.0
) -> tuple:
    """
    Wrap a lat/lon grid and accompanying data to a new central longitude.

    Longitudes outside ``[center-180, center+180]`` are shifted by 360
    degrees and the grid columns are reordered so longitude stays
    monotonic. Every field is reordered the same way.

    Parameters
    ----------
    lat, lon : array-like
        Coordinate vectors or 2-D meshgrid-style grids
    *fields : array-like
        2-D or 3-D arrays whose first two dimensions match the grid
    center : float, optional
        New central longitude. Default: 0

    Returns
    -------
    lat, lon, *fields : ndarray
        Recentered coordinates and data, in the same layout as the inputs

    Examples
    --------
    >>> import numpy as np
    >>> from cdt_tools import recenter
    >>> lat = np.array([-10.0, 0.0, 10.0])
    >>> lon = np.arange(0.0, 360.0, 90.0)
    >>> Z = np.tile(lon, (3, 1))
    >>> lat2, lon2, Z2 = recenter(lat, lon, Z)
    >>> lon2
    array([-90.,   0.,  90., 180.])
    """
    if not islatlon(lat, lon):
        raise ValueError(
            "lat and lon contain values that exceed typical lats and lons. Check inputs and try again."
        )
    if not np.isscalar(center) or abs(center) > 360:
        raise ValueError("Center longitude must be a scalar within [-360, 360].")

    lat = np.asarray(lat, dtype=float)
    lon = np.asarray(lon, dtype=float)
    fields = [np.asarray(f) for f in fields]

    vectors = lat.ndim == 1 and lon.ndim == 1
    if vectors:
        lon_axis = 1
        if fields and fields[0].shape[:2] == (lon.size, lat.size) and lat.size != lon.size:
            lon_axis = 0
        grid_shape = (lat.size, lon.size) if lon_axis == 1 else (lon.size, lat.size)
        lon_line = lon
    else:
        if lat.shape != lon.shape:
            raise ValueError("Unless lat and lon are vectors, their dimensions must match exactly.")
        lon_axis = 0 if grid_orientation(lat, lon) else 1
        grid_shape = lat.shape
        lon_line = lon[0, :] if lon_axis == 1 else lon[:, 0]

    for f in fields:
        if f.ndim not in (2, 3) or f.shape[:2] != grid_shape:
            raise ValueError("Dimensions of all inputs must match lat,lon grids.")

    order = np.arange(lon_line.size)
    new_line = lon_line.copy()

    east = new_line > center + 180
    if east.any():
        new_line[east] -= 360
        perm = np.concatenate([np.flatnonzero(east), np.flatnonzero(~east)])
        order, new_line = order[perm], new_line[perm]

    west = new_line < center - 180
    if west.any():
        new_line[west] += 360
        perm = np.concatenate([np.flatnonzero(~west), np.flatnonzero(west)])
        order, new_line = order[perm], new_line[perm]

    logger.debug("Recentered %d longitudes on %g", lon_line.size, center)

    if vectors:
        lat_out, lon_out = lat, new_line
    else:
        offset = new_line - lon_line[order]
        offset = offset[np.newaxis, :] if lon_axis == 1 else offset[:, np.newaxis]
        lat_out = np.take(lat, order, axis=lon_axis)
        lon_out = np.take(lon, order, axis=lon_axis) + offset

    fields_out = [np.take(f, order, axis=lon_axis) for f in fields]
    return (lat_out, lon_out, *fields_out)


def binind2latlon(binind: npt.ArrayLike, rows: Optional[int] = None) -> Tuple[ArrayF, ArrayF]:
    """
    Centers of bins of an integerized sinusoidal grid.

    Level-3 ocean color products from NASA store one value per bin of an
    equal-area grid: ``rows`` latitude bands from south to north, each split
    into ``round(2 * rows * cos(lat))`` longitude bins counted eastward from
    -180. Bins are numbered from 1 across the whole grid.

    Parameters
    ----------
    binind : array-like of int
        Bin numbers, starting at 1
    rows : int, optional
        Number of latitude rows of the grid. Default: inferred from the
        largest bin number: 180 (up to 50e3 bins, 1 degree), 2160 (up to
        6e6, 9 km) or 4320 (4 km)

    Returns
    -------
    lat, lon : ndarray
        Coordinates of the bin centers, same shape as ``binind``

    Raises
    ------
    ValueError
        If a bin number is outside the grid

    Examples
    --------
    >>> from cdt_tools import binind2latlon
    >>> lat, lon = binind2latlon([1, 2, 3])
    >>> lat
    array([-89.5, -89.5, -89.5])
    >>> lon
    array([-120.,    0.,  120.])
    """
    binind = np.asarray(binind)
    if binind.size and np.any(np.mod(binind, 1) != 0):
        raise ValueError("Bin numbers must be integers.")
    binind = binind.astype(np.int64)
    if rows is None:
        maxbin = binind.max(initial=0)
        rows = 180 if maxbin < 50e3 else 2160 if maxbin < 6e6 else 4320

    dlat = 180 / rows
    lat_rows = -90 + dlat * (np.arange(rows) + 0.5)
    bins_per_row = np.round(2 * rows * np.cos(np.deg2rad(lat_rows))).astype(np.int64)
    last = np.cumsum(bins_per_row)
    if np.any(binind < 1) or np.any(binind > last[-1]):
        raise ValueError(f"Bin numbers must be between 1 and {last[-1]} for a grid of {rows} rows.")

    row = np.searchsorted(last, binind, side='left')
    col = binind - (last[row] - bins_per_row[row]) - 1
    dlon = 360 / bins_per_row[row]
    return lat_rows[row], -180 + dlon * (col + 0.5)


__all__ = [
    'cdtgrid',
    'cdtdim',
    'cdtarea',
    'recenter',
    'binind2latlon',
    'check_latlon_grid',
    'grid_orientation',
]
