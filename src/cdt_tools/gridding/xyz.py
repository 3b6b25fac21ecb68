"""
Gridding of x,y,z point data

Columnar x,y,z data (e.g. text exports of bathymetry or model output) often
describe a regular grid, one point per line. These functions read such files
and rebuild the 2-D grid from the points, and split contour matrices into
x,y vertices and levels.
"""

import logging
import os
import warnings
from typing import List, Optional, Tuple, Union

import numpy as np
import numpy.typing as npt
import pandas as pd

logger = logging.getLogger(__name__)

ArrayF = npt.NDArray[np.floating]
PathLike = Union[str, os.PathLike]


def xyzread(filename: PathLike, **kwargs) -> Tuple[ArrayF, ArrayF, ArrayF]:
    """
    Read three whitespace-delimited columns of x, y, z values.

    Parameters
    ----------
    filename : str or path-like
        Text file with one ``x y z`` triplet per line
    **kwargs
        Passed to ``pandas.read_csv``, e.g. ``skiprows=1`` for a header line
        or ``comment='#'``

    Returns
    -------
    x, y, z : ndarray
        Column vectors as floats

    Raises
    ------
    FileNotFoundError
        If ``filename`` does not exist
    ValueError
        If the file does not have at least three columns
    """
    if not os.path.isfile(filename):
        raise FileNotFoundError(f"Cannot find file {filename}.")
    options = {'sep': r'\s+', 'header': None}
    options.update(kwargs)
    df = pd.read_csv(filename, **options)
    if df.shape[1] < 3:
        raise ValueError(f"Expected three columns of x, y, z data in {filename}, found {df.shape[1]}.")
    logger.debug("Read %d xyz points from %s", len(df), filename)

    x, y, z = (df.iloc[:, k].to_numpy(dtype=float) for k in range(3))
    return x, y, z


def xyz2grid(
    x: Union[npt.ArrayLike, PathLike],
    y: Optional[npt.ArrayLike] = None,
    z: Optional[npt.ArrayLike] = None,
    *,
    return_coords: bool = False
):
    """
    Convert regularly spaced x,y,z points to a 2-D grid.

    Parameters
    ----------
    x : array-like or str
        x coordinates, or the name of a file to read with :func:`xyzread`
        (``y`` and ``z`` are then omitted)
    y, z : array-like
        y coordinates and values, same size as ``x``
    return_coords : bool, optional
        Also return the coordinate grids. Default: False

    Returns
    -------
    Z : ndarray
        2-D grid with one column per unique x (increasing) and one row per
        unique y (decreasing, so north is up). Values of duplicate points
        are summed; cells without points are NaN.
    X, Y, Z : ndarray, optional
        Coordinate meshgrids and the grid, if ``return_coords`` is True

    Raises
    ------
    ValueError
        If x, y and z are not vectors of the same size

    Warns
    -----
    UserWarning
        If every point has a unique x value, suggesting scattered rather
        than gridded data

    Examples
    --------
    >>> import numpy as np
    >>> from cdt_tools import xyz2grid
    >>> x = np.array([1, 2, 1, 2])
    >>> y = np.array([10, 10, 20, 20])
    >>> z = np.array([1.0, 2.0, 3.0, 4.0])
    >>> xyz2grid(x, y, z)
    array([[3., 4.],
           [1., 2.]])
    """
    if isinstance(x, (str, os.PathLike)):
        if y is not None or z is not None:
            raise ValueError("When reading from a file, y and z must not be given.")
        x, y, z = xyzread(x)
    if y is None or z is None:
        raise ValueError("xyz2grid requires x, y and z vectors, or a filename.")

    x, y, z = (np.asarray(v) for v in (x, y, z))
    if not (x.shape == y.shape == z.shape):
        raise ValueError(f"Dimensions of x {x.shape}, y {y.shape} and z {z.shape} must match.")
    if x.size != max(x.shape, default=0):
        raise ValueError("Inputs x, y and z must be vectors.")
    x, y, z = x.ravel(), y.ravel(), z.ravel().astype(float)

    xs, xi = np.unique(x, return_inverse=True)
    ys, yi = np.unique(y, return_inverse=True)
    if xs.size == z.size:
        warnings.warn(
            "It does not seem like the xyz dataset is gridded. You may be attempting to grid "
            "scattered data, but it will be put into a 2D matrix anyway. Check the output "
            "spacing of X and Y."
        )

    total = np.zeros((ys.size, xs.size))
    count = np.zeros((ys.size, xs.size), dtype=int)
    np.add.at(total, (yi, xi), z)
    np.add.at(count, (yi, xi), 1)
    Z = np.where(count > 0, total, np.nan)[::-1]

    if return_coords:
        X, Y = np.meshgrid(xs, ys[::-1])
        return X, Y, Z
    return Z


def C2xyz(C: npt.ArrayLike) -> Tuple[List[ArrayF], List[ArrayF], ArrayF]:
    """
    Split a contour matrix into the vertices and level of each contour line.

    A contour matrix has two rows. Each contour line starts with a header
    column ``[level, npoints]`` followed by ``npoints`` columns of x, y
    vertices. This is the layout MATLAB's ``contourc`` produces, as found in
    exported .mat files.

    Parameters
    ----------
    C : array-like
        Contour matrix of shape (2, N)

    Returns
    -------
    x, y : list of ndarray
        Vertex coordinates of each contour line
    z : ndarray
        Level of each contour line

    Raises
    ------
    ValueError
        If ``C`` does not have two rows or a header overruns the matrix

    Examples
    --------
    >>> import numpy as np
    >>> from cdt_tools import C2xyz
    >>> C = np.array([[5, 0, 1, 7, 2], [2, 0, 1, 1, 3]])
    >>> x, y, z = C2xyz(C)
    >>> z
    array([5., 7.])
    >>> x[1], y[1]
    (array([2.]), array([3.]))
    """
    C = np.asarray(C, dtype=float)
    if C.ndim != 2 or C.shape[0] != 2:
        raise ValueError(f"Contour matrix C must have shape (2, N), got {C.shape}.")
    x, y, z = [], [], []
    start = 0
    while start < C.shape[1]:
        level, npoints = C[0, start], C[1, start]
        if npoints != int(npoints) or npoints < 0:
            raise ValueError(f"Invalid vertex count {npoints} in the header at column {start}.")
        stop = start + 1 + int(npoints)
        if stop > C.shape[1]:
            raise ValueError(f"Contour at column {start} needs {int(npoints)} vertices but the matrix ends.")
        x.append(C[0, start + 1:stop])
        y.append(C[1, start + 1:stop])
        z.append(level)
        start = stop
    logger.debug("Read %d contour lines", len(z))
    return x, y, np.asarray(z, dtype=float)


__all__ = [
    'xyzread',
    'xyz2grid',
    'C2xyz',
]
