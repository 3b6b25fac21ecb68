"""
Atmosphere and Ocean Dynamics Module

This module provides closed-form physical relations used throughout climate
data analysis: the standard atmosphere, rotation parameters, wind-driven
surface stress and transport, and solar radiation.

Main functions:
- air_pressure, air_density: US Standard Atmosphere (1976) profiles up to 86 km
- coriolisf: Coriolis frequency
- rossby_radius: Barotropic Rossby radius of deformation
- windstress: Bulk-formula wind stress, optionally over sea ice
- ekman: Ekman transport, pumping velocity and layer depth
- daily_insolation: Daily mean top-of-atmosphere insolation from orbital parameters
- solar_radiation: Daily extraterrestrial radiation (FAO-56)
- sun_angle: Azimuth and elevation of the sun
- pet: Potential evapotranspiration (Hargreaves)
"""

from .standard_atmosphere import (
    air_pressure,
    air_density,
)
from .coriolis import (
    coriolisf,
    rossby_radius,
)
from .wind import (
    EkmanResult,
    windstress,
    ekman,
)
from .solar import (
    daily_insolation,
    solar_radiation,
    sun_angle,
)
from .evaporation import (
    pet,
)

__all__ = [
    # Standard atmosphere
    'air_pressure',
    'air_density',
    # Rotation
    'coriolisf',
    'rossby_radius',
    # Wind-driven stress and transport
    'EkmanResult',
    'windstress',
    'ekman',
    # Radiation
    'daily_insolation',
    'solar_radiation',
    'sun_angle',
    # Evaporation
    'pet',
]
