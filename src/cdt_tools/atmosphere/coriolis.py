"""
Planetary rotation parameters

Coriolis frequency and the barotropic Rossby radius of deformation.
"""

from typing import Union

import numpy as np
import numpy.typing as npt

from ..constants import EARTH_ROTATION_RATE, GRAVITY


def _check_latitude(lat: npt.ArrayLike) -> np.ndarray:
    lat = np.asarray(lat, dtype=float)
    if np.any(np.abs(lat[np.isfinite(lat)]) > 90):
        raise ValueError("Latitude value(s) out of realistic bounds. Check inputs and try again.")
    return lat


def coriolisf(
    lat: Union[float, npt.ArrayLike],
    rot: float = EARTH_ROTATION_RATE
) -> Union[float, npt.NDArray[np.floating]]:
    """
    Coriolis frequency f = 2 Omega sin(lat).

    Parameters
    ----------
    lat : float or array-like
        Latitude(s) in degrees, within [-90, 90]
    rot : float, optional
        Planetary rotation rate (rad/s). Default: 7.2921e-5 (Earth)

    Returns
    -------
    f : float or ndarray
        Coriolis frequency (1/s), negative in the southern hemisphere

    Raises
    ------
    ValueError
        If any latitude magnitude exceeds 90 degrees
    """
    if not np.isscalar(rot) or not np.isreal(rot):
        raise TypeError("Rotation rate rot must be a real scalar.")
    lat = _check_latitude(lat)
    f = 2 * rot * np.sin(np.deg2rad(lat))
    return float(f) if f.ndim == 0 else f


def rossby_radius(
    lat: Union[float, npt.ArrayLike],
    depth: Union[float, npt.ArrayLike],
    rot: float = EARTH_ROTATION_RATE,
    g: float = GRAVITY,
) -> Union[float, npt.NDArray[np.floating]]:
    """
    Barotropic Rossby radius of deformation Lr = sqrt(g D) / |f|.

    Parameters
    ----------
    lat : float or array-like
        Latitude(s) in degrees
    depth : float or array-like
        Water depth D (m), positive downward. Negative values (land) give NaN.
    rot : float, optional
        Planetary rotation rate (rad/s). Default: 7.2921e-5
    g : float, optional
        Gravitational acceleration (m/s^2). Default: 9.81

    Returns
    -------
    Lr : float or ndarray
        Rossby radius (m), broadcast shape of ``lat`` and ``depth``

    Notes
    -----
    - Lr is infinite on the equator where f vanishes
    """
    depth = np.asarray(depth, dtype=float)
    depth = np.where(depth < 0, np.nan, depth)
    f = np.asarray(coriolisf(lat, rot))
    with np.errstate(divide='ignore'):
        Lr = np.sqrt(g * depth) / np.abs(f)
    return float(Lr) if Lr.ndim == 0 else Lr


__all__ = [
    'coriolisf',
    'rossby_radius',
]
