"""
Solar radiation and sun position

Top-of-atmosphere insolation from orbital parameters (Berger, 1978),
daily extraterrestrial radiation as used in evaporation formulas (FAO-56)
and the azimuth and elevation of the sun in the sky.
"""

import logging
from typing import Tuple, Union

import numpy as np
import numpy.typing as npt
import pandas as pd

from ..constants import (
    ECCENTRICITY_J2000,
    OBLIQUITY_J2000,
    PERIHELION_J2000,
    SOLAR_CONSTANT,
    SOLAR_CONSTANT_FAO,
)
from ..geo.earth import islatlon
from ..timeseries.time import doy, to_datetime_index
from ..utils.options import DayType, check_option
from .coriolis import _check_latitude

logger = logging.getLogger(__name__)

ArrayF = npt.NDArray[np.floating]

# Calendar day of the March equinox and days per tropical year
_EQUINOX_DAY = 80
_TROPICAL_YEAR = 365.2422
# Julian date of 1999-12-31 00:00 UT, the epoch of the sun position formulas
_EPOCH_JD = 2451543.5


def _scalar_or_array(value: ArrayF) -> Union[float, ArrayF]:
    return float(value) if np.ndim(value) == 0 else value


def daily_insolation(
    lat: Union[float, npt.ArrayLike],
    day: Union[float, npt.ArrayLike],
    *,
    ecc: float = ECCENTRICITY_J2000,
    obliquity: float = OBLIQUITY_J2000,
    long_perh: float = PERIHELION_J2000,
    day_type: DayType = 'calendar',
    solar_constant: float = SOLAR_CONSTANT
) -> Union[float, ArrayF]:
    """
    Daily mean top-of-atmosphere insolation.

    Parameters
    ----------
    lat : float or array-like
        Latitude(s) in degrees
    day : float or array-like
        Calendar day of year (1 to 366) or solar longitude (0 to 360, with
        0 at the March equinox), broadcast against ``lat``
    ecc : float, optional
        Orbital eccentricity. Default: 0.016709 (J2000)
    obliquity : float, optional
        Obliquity of the ecliptic in degrees. Default: 23.4393 (J2000)
    long_perh : float, optional
        Longitude of perihelion in degrees, measured from the moving
        vernal equinox. Default: 282.9404 (J2000)
    day_type : {'calendar', 'solar_longitude'}, optional
        How ``day`` is given. Calendar days assume the March equinox on
        day 80. Default: 'calendar'
    solar_constant : float, optional
        Solar constant in W/m^2. Default: 1365

    Returns
    -------
    Fsw : float or ndarray
        Daily mean insolation (W/m^2)

    Raises
    ------
    ValueError
        If latitudes or days are out of range

    Examples
    --------
    >>> from cdt_tools import daily_insolation
    >>> round(daily_insolation(90, 90, day_type='solar_longitude'))  # north pole, June solstice
    526
    >>> daily_insolation(90, 270, day_type='solar_longitude')  # polar night
    0.0

    Notes
    -----
    Orbital parameters for past climates (e.g. from Berger and Loutre,
    1991) can be passed explicitly to compute paleo insolation.
    """
    check_option('day_type', day_type, DayType)
    lat = _check_latitude(lat)
    day = np.asarray(day, dtype=float)
    if day_type == 'calendar' and (np.any(day <= 0) or np.any(day > 366)):
        raise ValueError("Calendar days must be in the range 1 to 366.")
    if day_type == 'solar_longitude' and (np.any(day < 0) or np.any(day > 360)):
        raise ValueError("Solar longitude must be in the range 0 to 360.")

    phi = np.deg2rad(lat)
    epsilon = np.deg2rad(obliquity)
    omega = np.deg2rad(long_perh)

    if day_type == 'calendar':
        delta_lambda_m = (day - _EQUINOX_DAY) * 2 * np.pi / _TROPICAL_YEAR
        beta = np.sqrt(1 - ecc**2)
        lambda_m0 = -2 * (
            (ecc / 2 + ecc**3 / 8) * (1 + beta) * np.sin(-omega)
            - ecc**2 / 4 * (1 / 2 + beta) * np.sin(-2 * omega)
            + ecc**3 / 8 * (1 / 3 + beta) * np.sin(-3 * omega)
        )
        lambda_m = lambda_m0 + delta_lambda_m
        lam = (
            lambda_m
            + (2 * ecc - ecc**3 / 4) * np.sin(lambda_m - omega)
            + (5 / 4) * ecc**2 * np.sin(2 * (lambda_m - omega))
            + (13 / 12) * ecc**3 * np.sin(3 * (lambda_m - omega))
        )
    else:
        lam = np.deg2rad(day)

    delta = np.arcsin(np.sin(epsilon) * np.sin(lam))
    phi, delta, lam = np.broadcast_arrays(phi, delta, lam)
    with np.errstate(invalid='ignore'):
        Ho = np.arccos(np.clip(-np.tan(phi) * np.tan(delta), -1, 1))
    # Polar day and polar night
    polar = np.abs(phi) >= np.pi / 2 - np.abs(delta)
    Ho = np.where(polar & (phi * delta > 0), np.pi, Ho)
    Ho = np.where(polar & (phi * delta <= 0), 0.0, Ho)

    Fsw = (
        solar_constant / np.pi
        * (1 + ecc * np.cos(lam - omega))**2 / (1 - ecc**2)**2
        * (Ho * np.sin(phi) * np.sin(delta) + np.cos(phi) * np.cos(delta) * np.sin(Ho))
    )
    return _scalar_or_array(Fsw)


def solar_radiation(t, lat: Union[float, npt.ArrayLike]) -> ArrayF:
    """
    Daily extraterrestrial radiation (FAO-56).

    Parameters
    ----------
    t : array-like
        Dates (anything ``pandas.to_datetime`` accepts)
    lat : float or array-like
        Latitude(s) in degrees, e.g. a 2-D grid

    Returns
    -------
    Ra : ndarray
        Radiation in MJ/(m^2 day), of shape ``np.shape(lat) + (len(t),)``

    Examples
    --------
    >>> from cdt_tools import solar_radiation
    >>> Ra = solar_radiation(['2001-03-21', '2001-06-21'], 0.0)
    >>> Ra.round(1)
    array([37.8, 33.4])

    Notes
    -----
    - Within the polar circles the sunset hour angle is clipped, giving
      zero radiation in polar night and 24 hours of sun in polar day
    """
    lat = _check_latitude(lat)
    dy = doy(to_datetime_index(t), 'remainder')
    phi = np.deg2rad(lat)[..., np.newaxis]

    dr = 1 + 0.033 * np.cos(2 * np.pi * dy)
    decl = 0.409 * np.sin(2 * np.pi * dy - 1.39)
    ws = np.arccos(np.clip(-np.tan(phi) * np.tan(decl), -1, 1))
    return 1440 / np.pi * SOLAR_CONSTANT_FAO * dr * (
        ws * np.sin(phi) * np.sin(decl) + np.cos(phi) * np.cos(decl) * np.sin(ws)
    )


def sun_angle(
    t,
    lat: Union[float, npt.ArrayLike],
    lon: Union[float, npt.ArrayLike],
    h: Union[float, npt.ArrayLike] = 0.0
) -> Tuple[Union[float, ArrayF], Union[float, ArrayF]]:
    """
    Azimuth and elevation of the sun.

    Parameters
    ----------
    t : datetime-like or array-like
        Time(s) in UTC
    lat, lon : float or array-like
        Observer location in degrees
    h : float or array-like, optional
        Observer elevation in meters. Default: 0

    Returns
    -------
    az : float or ndarray
        Azimuth in degrees clockwise from north
    el : float or ndarray
        Elevation above the horizon in degrees, without refraction

    Raises
    ------
    ValueError
        If ``lat``, ``lon`` are not geographic coordinates

    Examples
    --------
    >>> from cdt_tools import sun_angle
    >>> az, el = sun_angle('2020-06-20 12:00', 23.44, 0.0)  # solstice, Tropic of Cancer
    >>> round(el)
    90

    Notes
    -----
    ``t``, ``lat``, ``lon`` and ``h`` are broadcast against each other;
    the output has the broadcast shape.
    """
    if not islatlon(lat, lon):
        raise ValueError("Input coordinates are outside the range of normal lat,lon coordinates.")
    shape = np.shape(t)
    ti = to_datetime_index(t)
    jd = np.asarray(ti.to_julian_date(), dtype=float).reshape(shape)
    uth = np.asarray((ti - ti.normalize()) / pd.Timedelta(hours=1), dtype=float).reshape(shape)
    lat = np.asarray(lat, dtype=float)
    lon = np.asarray(lon, dtype=float)
    alt_km = np.asarray(h, dtype=float) / 1000

    day = jd - _EPOCH_JD
    w = 282.9404 + 4.70935e-5 * day
    e = 0.016709 - 1.151e-9 * day
    M = np.mod(356.0470 + 0.9856002585 * day, 360)
    L = w + M
    oblecl = np.deg2rad(23.4393 - 3.563e-7 * day)

    # Eccentric anomaly and position in the orbital plane
    E = M + np.rad2deg(e * np.sin(np.deg2rad(M)) * (1 + e * np.cos(np.deg2rad(M))))
    x = np.cos(np.deg2rad(E)) - e
    y = np.sin(np.deg2rad(E)) * np.sqrt(1 - e**2)
    r = np.hypot(x, y)
    lon_sun = np.rad2deg(np.arctan2(y, x)) + w

    # Ecliptic to equatorial coordinates
    xequat = r * np.cos(np.deg2rad(lon_sun))
    yecl = r * np.sin(np.deg2rad(lon_sun))
    yequat = yecl * np.cos(oblecl)
    zequat = yecl * np.sin(oblecl)
    r = np.sqrt(xequat**2 + yequat**2 + zequat**2) - alt_km / 149598000
    RA = np.arctan2(yequat, xequat)
    delta = np.arcsin(zequat / r)

    # Hour angle to horizon coordinates
    sidtime = np.mod(L + 180, 360) / 15 + uth + lon / 15
    HA = np.deg2rad(15 * sidtime) - RA
    x = np.cos(HA) * np.cos(delta)
    y = np.sin(HA) * np.cos(delta)
    z = np.sin(delta)
    colat = np.deg2rad(90 - lat)
    xhor = x * np.cos(colat) - z * np.sin(colat)
    zhor = x * np.sin(colat) + z * np.cos(colat)

    az = np.rad2deg(np.arctan2(y, xhor)) + 180
    el = np.rad2deg(np.arcsin(np.clip(zhor, -1, 1)))
    return _scalar_or_array(az), _scalar_or_array(el)


__all__ = [
    'daily_insolation',
    'solar_radiation',
    'sun_angle',
]
