"""
Gridding Module

This module rebuilds 2-D grids from columnar x,y,z point data, splits
contour matrices into their lines and resamples profiles and grids.

Main functions:
- xyzread: Read whitespace-delimited x, y, z columns from a text file
- xyz2grid: Convert regularly spaced x,y,z points to a 2-D grid
- C2xyz: Vertices and levels of the lines in a contour matrix
- transect: Interpolate vertical profiles onto a regular section
- demresize: Rescale a gridded field and its coordinates
"""

from .xyz import (
    xyzread,
    xyz2grid,
    C2xyz,
)
from .resample import (
    transect,
    demresize,
)

__all__ = [
    'xyzread',
    'xyz2grid',
    'C2xyz',
    'transect',
    'demresize',
]
