"""
Geographic Grids Module

This module provides tools for regular lat/lon grids: building them, measuring
their cells, differentiating fields on them and locating points within them.

Grids are 2-D arrays as created by ``np.meshgrid(lon, lat)``. Fields on the
grid are 2-D or 3-D "cubes" with time along the last axis.

Main functions:
- earth_radius: Nominal or latitude-dependent Earth radius
- islatlon: Check that arrays look like geographic coordinates
- cdtgrid: Build a global grid of cell centers
- cdtdim, cdtarea: Physical dimensions and area of grid cells
- recenter: Wrap a grid and its data to a new central longitude
- binind2latlon: Locations of bins in an equal-area ocean color grid
- cdtgradient, cdtdivergence, cdtcurl: Vector calculus on the grid
- near1, near2: Nearest-point search in vectors and grids
- isoverlapping: Bounding-box overlap test
- geomask: Mask of grid points in a box, polygon or at a point
- polycenter: Label point inside each of a set of polygons
"""

from .earth import (
    earth_radius,
    islatlon,
)
from .grid import (
    cdtgrid,
    cdtdim,
    cdtarea,
    recenter,
    binind2latlon,
)
from .calculus import (
    cdtgradient,
    cdtdivergence,
    cdtcurl,
)
from .nearest import (
    near1,
    near2,
    isoverlapping,
)
from .regions import (
    geomask,
    polycenter,
)

__all__ = [
    # Earth geometry
    'earth_radius',
    'islatlon',
    # Grids
    'cdtgrid',
    'cdtdim',
    'cdtarea',
    'recenter',
    'binind2latlon',
    # Vector calculus
    'cdtgradient',
    'cdtdivergence',
    'cdtcurl',
    # Nearest-point search
    'near1',
    'near2',
    'isoverlapping',
    # Regions
    'geomask',
    'polycenter',
]
