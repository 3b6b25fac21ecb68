"""
Geographic region masks

Boolean masks of the grid points that fall inside a latitude/longitude box,
a polygon or a set of polygons, or of the single grid point nearest a
location. Polygons are handled with shapely, which also places label
points inside polygons (polycenter).

Longitudes of the grid and of the region are wrapped to -180..180 before
comparison, so grids and regions may use either longitude convention.
"""

import logging
from typing import Sequence, Tuple, Union

import numpy as np
import numpy.typing as npt
import shapely
from shapely.geometry import Polygon
from shapely.ops import polylabel

from .earth import islatlon
from .nearest import near2

logger = logging.getLogger(__name__)

RegionLike = Union[float, npt.ArrayLike, Sequence[npt.ArrayLike]]


def _wrap180(lon: np.ndarray) -> np.ndarray:
    return np.where(lon > 180, lon - 360, lon)


def _polygon(latv: npt.ArrayLike, lonv: npt.ArrayLike) -> Polygon:
    latv = np.asarray(latv, dtype=float).ravel()
    lonv = _wrap180(np.asarray(lonv, dtype=float).ravel())
    if latv.size != lonv.size:
        raise ValueError(f"Polygon vertices latv ({latv.size}) and lonv ({lonv.size}) must be the same size.")
    if latv.size < 3:
        raise ValueError("A polygon needs at least 3 vertices.")
    if not islatlon(latv, lonv):
        raise ValueError("Polygon vertices latv,lonv do not appear to be geographic coordinates.")
    ok = np.isfinite(latv) & np.isfinite(lonv)
    return Polygon(np.column_stack([lonv[ok], latv[ok]]))


def geomask(
    lat: npt.ArrayLike,
    lon: npt.ArrayLike,
    latv: RegionLike,
    lonv: RegionLike,
    *,
    inclusive: bool = False
) -> npt.NDArray[np.bool_]:
    """
    Mask of the points of a geographic grid that lie within a region.

    The kind of region follows from ``latv`` and ``lonv``:

    - scalars: the single grid point nearest that location
    - two elements each: the box between the two latitudes and from
      ``lonv[0]`` eastward to ``lonv[1]``
    - three or more elements each: a polygon with those vertices
    - lists of vertex arrays: the union of several polygons

    Parameters
    ----------
    lat, lon : array-like
        Coordinates of the grid points, same shape. For the nearest-point
        region they must be 2-D meshgrid-style grids.
    latv, lonv : float, array-like or list of array-like
        Region definition (see above)
    inclusive : bool, optional
        Count points on the edge of a box or polygon as inside.
        Default: False

    Returns
    -------
    mask : ndarray of bool
        True for grid points within the region, same shape as ``lat``

    Raises
    ------
    ValueError
        If shapes disagree or the coordinates are not geographic

    Examples
    --------
    >>> import numpy as np
    >>> from cdt_tools import cdtgrid, geomask
    >>> lat, lon = cdtgrid(1)
    >>> box = geomask(lat, lon, [30, 40], [-120, -100])
    >>> int(box.sum())
    200
    >>> # A box that crosses the dateline
    >>> pacific = geomask(lat, lon, [-10, 10], [170, -170])

    Notes
    -----
    - When ``lonv[0] > lonv[1]`` the box wraps across the dateline
    """
    lat = np.asarray(lat, dtype=float)
    lon = np.asarray(lon, dtype=float)
    if lat.shape != lon.shape:
        raise ValueError(f"The dimensions of lat {lat.shape} and lon {lon.shape} must match.")
    if not islatlon(lat, lon):
        raise ValueError("Coordinates lat,lon do not appear to be in proper range for geo coordinates.")
    lon = _wrap180(lon)

    if isinstance(latv, (list, tuple)) and latv and np.ndim(latv[0]) > 0:
        if not isinstance(lonv, (list, tuple)) or len(lonv) != len(latv):
            raise ValueError("If latv is a list of polygons, lonv must be a list of the same length.")
        region = shapely.union_all([_polygon(la, lo) for la, lo in zip(latv, lonv)])
        kind = 'polygons'
    else:
        latv = np.asarray(latv, dtype=float)
        lonv = _wrap180(np.asarray(lonv, dtype=float))
        if latv.shape != lonv.shape:
            raise ValueError(f"The dimensions of latv {latv.shape} and lonv {lonv.shape} must match.")
        if not islatlon(latv, lonv):
            raise ValueError("Coordinates latv,lonv do not appear to be in proper range for geo coordinates.")
        kind = {1: 'nearest', 2: 'box'}.get(latv.size, 'polygon')

    logger.debug("Building %s mask on a grid of %s", kind, lat.shape)
    if kind == 'nearest':
        if lat.ndim != 2:
            raise ValueError("A nearest-point mask requires 2D lat,lon grids.")
        row, col = near2(lon, lat, lonv.item(), latv.item())
        mask = np.zeros(lat.shape, dtype=bool)
        mask[row, col] = True
        return mask

    if kind == 'box':
        latv, lonv = latv.ravel(), lonv.ravel()
        lo, hi = latv.min(), latv.max()
        if inclusive:
            in_lat = (lat >= lo) & (lat <= hi)
            east, west = lon >= lonv[0], lon <= lonv[1]
        else:
            in_lat = (lat > lo) & (lat < hi)
            east, west = lon > lonv[0], lon < lonv[1]
        in_lon = (east | west) if lonv[0] > lonv[1] else (east & west)
        return in_lat & in_lon

    if kind == 'polygon':
        region = _polygon(latv, lonv)
    if inclusive:
        return shapely.intersects_xy(region, lon, lat)
    return shapely.contains_xy(region, lon, lat)


def _largest(geom):
    parts = getattr(geom, 'geoms', [geom])
    return max(parts, key=lambda g: g.area)


def _nan_polygon(x: npt.ArrayLike, y: npt.ArrayLike):
    x = np.asarray(x, dtype=float).ravel()
    y = np.asarray(y, dtype=float).ravel()
    if x.size != y.size:
        raise ValueError(f"Vertices x ({x.size}) and y ({y.size}) must be the same size.")
    breaks = ~(np.isfinite(x) & np.isfinite(y))
    rings = [
        np.column_stack([xs[~bs], ys[~bs]])
        for xs, ys, bs in zip(*(np.split(a, np.flatnonzero(breaks)) for a in (x, y, breaks)))
    ]
    polygons = [Polygon(r).buffer(0) for r in rings if len(r) >= 3]
    if not polygons:
        raise ValueError("A polygon needs at least 3 vertices.")
    return shapely.union_all(polygons)


def _interior_center(geom) -> Tuple[float, float]:
    P = _largest(geom)
    if P.is_empty or P.area == 0:
        raise ValueError("Polygon has no area.")
    c = polylabel(P, tolerance=np.sqrt(P.area) * 1e-3)
    return c.x, c.y


def polycenter(x, y=None):
    """
    A representative point inside each of one or more polygons.

    The point is the pole of inaccessibility, the interior point farthest
    from the outline (found with ``shapely.ops.polylabel``). Unlike the
    centroid, it always lies inside concave shapes such as crescents or
    countries with long coastlines, so it is a good place for a label.

    Parameters
    ----------
    x, y : array-like, or lists of array-like
        Vertices of one polygon, or lists of vertex arrays for several.
        NaN separates the parts of a multi-part polygon; only the largest
        part is used.
    x : shapely geometry or list of geometries
        Alternatively, polygons as shapely objects, with ``y`` omitted

    Returns
    -------
    xc, yc : float or ndarray
        Center of each polygon, scalars for a single polygon

    Raises
    ------
    ValueError
        If a polygon has fewer than 3 vertices or the inputs disagree

    Examples
    --------
    >>> import shapely
    >>> from cdt_tools import polycenter
    >>> # A C shape, whose centroid falls in the gap
    >>> x = [0, 3, 3, 1, 1, 3, 3, 0]
    >>> y = [0, 0, 1, 1, 2, 2, 3, 3]
    >>> xc, yc = polycenter(x, y)
    >>> bool(shapely.contains_xy(shapely.Polygon(list(zip(x, y))), xc, yc))
    True
    """
    if y is None:
        single = isinstance(x, shapely.Geometry)
        geoms = [x] if single else list(x)
        if not all(isinstance(g, shapely.Geometry) for g in geoms):
            raise ValueError("Pass vertices as x, y or polygons as shapely geometries.")
    else:
        single = not (isinstance(x, (list, tuple)) and x and np.ndim(x[0]) > 0)
        if single:
            geoms = [_nan_polygon(x, y)]
        else:
            if not isinstance(y, (list, tuple)) or len(y) != len(x):
                raise ValueError("If x is a list of polygons, y must be a list of the same length.")
            geoms = [_nan_polygon(xk, yk) for xk, yk in zip(x, y)]

    centers = np.array([_interior_center(g) for g in geoms]).reshape(-1, 2)
    logger.debug("Found centers of %d polygons", len(geoms))
    if single:
        return float(centers[0, 0]), float(centers[0, 1])
    return centers[:, 0], centers[:, 1]



__all__ = [
    'geomask',
    'polycenter',
]
