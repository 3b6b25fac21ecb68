"""
Utility Functions Module

This module provides array reshaping helpers for gridded time series and
the shared machinery statistical functions use to operate along an axis.

Main functions:
- cube2rect: Reshape a (rows, cols, time) cube into a (time, cells) matrix
- rect2cube: Inverse of cube2rect
- mask3: Replace masked grid cells at every time step
- expand3: Build a cube by scaling a grid with each element of a vector
- bottom: Deepest non-NaN value of each column of a cube
- cell2nancat: Join lists of arrays with NaN separators
- tile: Split a large grid into tiles
- to_datetime_index: Convert times to a pandas.DatetimeIndex
- apply_along_axis: Run a column-wise kernel along any axis
"""

from .arrays import (
    cube2rect,
    rect2cube,
    mask3,
    expand3,
    bottom,
    cell2nancat,
    tile,
)
from .axis import (
    apply_along_axis,
    default_axis,
    resolve_axis,
)
from .dates import (
    to_datetime_index,
)

__all__ = [
    # Cubes
    'cube2rect',
    'rect2cube',
    'mask3',
    'expand3',
    'bottom',
    # Arrays and grids
    'cell2nancat',
    'tile',
    # Times
    'to_datetime_index',
    # Axis handling
    'apply_along_axis',
    'default_axis',
    'resolve_axis',
]
