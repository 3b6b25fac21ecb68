"""
Physical constants shared across the toolbox

All values are SI unless noted otherwise.
"""

# Earth
EARTH_RADIUS = 6371000.0            # m, nominal mean radius
EARTH_RADIUS_EQUATORIAL = 6378137.0  # m
EARTH_RADIUS_POLAR = 6356752.0       # m
EARTH_ROTATION_RATE = 7.2921e-5      # rad/s
GRAVITY = 9.81                       # m/s^2, used for shallow-water scales

# Standard atmosphere (US 1976)
GAS_CONSTANT = 8.3144598             # J/(mol K), universal gas constant
STANDARD_GRAVITY = 9.80665           # m/s^2
MOLAR_MASS_DRY_AIR = 0.0289644       # kg/mol
SEA_LEVEL_PRESSURE = 101325.0        # Pa

# Air-sea momentum flux
DRAG_COEFFICIENT = 1.25e-3           # Kara et al. (2007) global average
DRAG_COEFFICIENT_ICE = 1.89e-3       # Lupkes & Birnbaum (2005)
AIR_DENSITY = 1.225                  # kg/m^3
SEAWATER_DENSITY = 1025.0            # kg/m^3

# Solar geometry
SOLAR_CONSTANT = 1365.0              # W/m^2, top of atmosphere
SOLAR_CONSTANT_FAO = 0.0820          # MJ/(m^2 min), FAO-56 extraterrestrial radiation
ECCENTRICITY_J2000 = 0.016709        # Earth orbit at epoch J2000
OBLIQUITY_J2000 = 23.4393            # degrees
PERIHELION_J2000 = 282.9404          # degrees, solar longitude of perihelion
LATENT_HEAT_VAPORIZATION = 2.45      # MJ/kg
