"""
Earth geometry

Radius of the Earth, either the nominal sphere or the latitude-dependent
radius of the WGS84-like ellipsoid, and a sanity check for geographic
coordinates.
"""

from typing import Optional, Union

import numpy as np
import numpy.typing as npt

from ..constants import EARTH_RADIUS, EARTH_RADIUS_EQUATORIAL, EARTH_RADIUS_POLAR


def earth_radius(
    lat: Optional[npt.ArrayLike] = None,
    km: bool = False
) -> Union[float, npt.NDArray[np.floating]]:
    """
    Radius of the Earth.

    Parameters
    ----------
    lat : float or array-like, optional
        Latitude(s) in degrees. If given, returns the geocentric radius of
        the ellipsoid at each latitude; otherwise the nominal 6371 km.
    km : bool, optional
        Return kilometers instead of meters. Default: False

    Returns
    -------
    r : float or ndarray
        Earth radius (m or km)

    Examples
    --------
    >>> from cdt_tools import earth_radius
    >>> earth_radius()
    6371000.0
    >>> round(float(earth_radius(0.0, km=True)), 3)
    6378.137

    Notes
    -----
    The ellipsoid radius is

        r = sqrt(((a^2 cos(lat))^2 + (b^2 sin(lat))^2) /
                 ((a cos(lat))^2 + (b sin(lat))^2))

    with equatorial radius a = 6378137 m and polar radius b = 6356752 m.
    """
    if lat is None:
        r = EARTH_RADIUS
    else:
        phi = np.deg2rad(np.asarray(lat, dtype=float))
        a = EARTH_RADIUS_EQUATORIAL
        b = EARTH_RADIUS_POLAR
        r = np.sqrt(
            ((a**2 * np.cos(phi))**2 + (b**2 * np.sin(phi))**2)
            / ((a * np.cos(phi))**2 + (b * np.sin(phi))**2)
        )
        if r.ndim == 0:
            r = float(r)

    if km:
        r = r / 1000
    return r


def islatlon(lat: npt.ArrayLike, lon: npt.ArrayLike) -> bool:
    """
    Check whether ``lat`` and ``lon`` look like geographic coordinates.

    Returns True when both are numeric, all finite latitudes are within
    [-90, 90] and all finite longitudes are within [-180, 360].
    """
    lat = np.asarray(lat)
    lon = np.asarray(lon)
    if not (np.issubdtype(lat.dtype, np.number) and np.issubdtype(lon.dtype, np.number)):
        return False
    lat_f = lat[np.isfinite(lat)]
    lon_f = lon[np.isfinite(lon)]
    return bool(
        np.all(np.abs(lat_f) <= 90)
        and np.all(lon_f <= 360)
        and np.all(lon_f >= -180)
    )


__all__ = [
    'earth_radius',
    'islatlon',
]
