"""
US Standard Atmosphere (1976) pressure and density profiles

The lower 86 km of the atmosphere are divided into seven layers, each with a
constant temperature lapse rate L. Within a layer with base height hb, base
temperature Tb and base value Xb:

    L == 0:  X(h) = Xb * exp(-g0 M (h - hb) / (R Tb))
    L != 0:  X(h) = Xb * (Tb / (Tb + L (h - hb))) ** (g0 M / (R L) + k)

with k = 0 for pressure and k = 1 for density.

Base pressures above the surface layer are obtained by evaluating each layer
at its top, so the profile is continuous across layer boundaries.
"""

import warnings
from typing import Union

import numpy as np
import numpy.typing as npt

from ..constants import (
    GAS_CONSTANT,
    MOLAR_MASS_DRY_AIR,
    SEA_LEVEL_PRESSURE,
    STANDARD_GRAVITY,
)

TOP_OF_MODEL = 86000.0  # m

LAYER_BASE = np.array([0.0, 11000.0, 20000.0, 32000.0, 47000.0, 51000.0, 71000.0])              # m
BASE_TEMPERATURE = np.array([288.15, 216.65, 216.65, 228.65, 270.65, 270.65, 214.65])           # K
LAPSE_RATE = np.array([-0.0065, 0.0, 0.001, 0.0028, 0.0, -0.0028, -0.002])                      # K/m

_GMR = STANDARD_GRAVITY * MOLAR_MASS_DRY_AIR / GAS_CONSTANT


def _layer_ratio(
    dh: npt.NDArray[np.floating],
    Tb: npt.NDArray[np.floating],
    Lb: npt.NDArray[np.floating],
    extra_exponent: float = 0.0,
) -> npt.NDArray[np.floating]:
    """Ratio X(h)/Xb for height offsets ``dh`` above the layer base."""
    dh = np.asarray(dh, dtype=float)
    with np.errstate(divide='ignore', invalid='ignore', over='ignore'):
        power_law = (Tb / (Tb + Lb * dh)) ** (_GMR / Lb + extra_exponent)
    isothermal = np.exp(-_GMR * dh / Tb)
    return np.where(Lb == 0, isothermal, power_law)


def _base_pressures() -> npt.NDArray[np.floating]:
    pressures = np.empty(LAYER_BASE.size)
    pressures[0] = SEA_LEVEL_PRESSURE
    for k in range(LAYER_BASE.size - 1):
        dh = LAYER_BASE[k + 1] - LAYER_BASE[k]
        pressures[k + 1] = pressures[k] * _layer_ratio(dh, BASE_TEMPERATURE[k], LAPSE_RATE[k])
    return pressures


BASE_PRESSURE = _base_pressures()                                                    # Pa
BASE_DENSITY = BASE_PRESSURE * MOLAR_MASS_DRY_AIR / (GAS_CONSTANT * BASE_TEMPERATURE)  # kg/m^3


def _evaluate(
    h: Union[float, npt.ArrayLike],
    base_values: npt.NDArray[np.floating],
    extra_exponent: float,
) -> Union[float, npt.NDArray[np.floating]]:
    """Evaluate the layered profile defined by ``base_values`` at heights ``h``."""
    h_arr = np.asarray(h, dtype=float)

    above = h_arr > TOP_OF_MODEL
    if np.any(above):
        warnings.warn("Returning NaNs for altitudes greater than 86 km.")

    # Heights below sea level extend the lowest layer downward
    layer = np.clip(np.searchsorted(LAYER_BASE, h_arr, side='right') - 1, 0, LAYER_BASE.size - 1)

    ratio = _layer_ratio(
        h_arr - LAYER_BASE[layer],
        BASE_TEMPERATURE[layer],
        LAPSE_RATE[layer],
        extra_exponent,
    )
    out = base_values[layer] * ratio
    out = np.where(above | np.isnan(h_arr), np.nan, out)

    if out.ndim == 0:
        return float(out)
    return out


def air_pressure(h: Union[float, npt.ArrayLike]) -> Union[float, npt.NDArray[np.floating]]:
    """
    Air pressure of the US Standard Atmosphere at a given altitude.

    Parameters
    ----------
    h : float or array-like
        Geometric height above sea level (m)

    Returns
    -------
    P : float or ndarray
        Static pressure (Pa), same shape as ``h``. NaN above 86 km.

    Warns
    -----
    UserWarning
        If any height exceeds 86 km

    Examples
    --------
    >>> from cdt_tools import air_pressure
    >>> round(air_pressure(0.0))
    101325

    Notes
    -----
    - Layer bases: 0, 11, 20, 32, 47, 51, 71 km; the model ends at 86 km
    - The value at exactly 86 km belongs to the top layer
    - Negative heights use the surface layer formula
    """
    return _evaluate(h, BASE_PRESSURE, 0.0)


def air_density(h: Union[float, npt.ArrayLike]) -> Union[float, npt.NDArray[np.floating]]:
    """
    Air density of the US Standard Atmosphere at a given altitude.

    Parameters
    ----------
    h : float or array-like
        Geometric height above sea level (m)

    Returns
    -------
    rho : float or ndarray
        Mass density (kg/m^3), same shape as ``h``. NaN above 86 km.

    Warns
    -----
    UserWarning
        If any height exceeds 86 km

    Examples
    --------
    >>> from cdt_tools import air_density
    >>> round(air_density(0.0), 3)
    1.225
    """
    return _evaluate(h, BASE_DENSITY, 1.0)


__all__ = [
    'air_pressure',
    'air_density',
]
