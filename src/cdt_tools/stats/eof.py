"""
Empirical orthogonal functions

Principal component analysis of a gridded time series: spatial patterns
(EOF maps), their time series (principal components) and the share of the
variance each mode explains.
"""

import logging
from typing import NamedTuple, Optional, Sequence, Union

import numpy as np
import numpy.typing as npt
from scipy import linalg

from ..utils.arrays import cube2rect, rect2cube

logger = logging.getLogger(__name__)

ArrayF = npt.NDArray[np.floating]


class EofResult(NamedTuple):
    """EOF decomposition of a data cube."""
    maps: ArrayF
    pc: ArrayF
    expvar: ArrayF


def eof(
    A: npt.ArrayLike,
    n: Optional[int] = None,
    *,
    mask: Optional[npt.ArrayLike] = None
) -> EofResult:
    """
    Empirical orthogonal functions of a data cube.

    Parameters
    ----------
    A : array-like
        Data cube of shape (rows, cols, time). The time mean of each grid
        cell is removed before the decomposition.
    n : int, optional
        Number of modes to compute, at most the number of time steps.
        Default: all
    mask : array-like of bool, optional
        (rows, cols) cells to include. Default: cells without NaN

    Returns
    -------
    result : EofResult
        Named tuple with fields
        - ``maps``: (rows, cols, n) EOF patterns, NaN outside the mask
        - ``pc``: (n, time) principal component time series
        - ``expvar``: (n,) percent of total variance explained by each mode

    Raises
    ------
    ValueError
        If ``A`` is not 3-D, ``n`` exceeds the number of time steps or the
        masked data contain NaN

    Examples
    --------
    >>> import numpy as np
    >>> from cdt_tools import eof
    >>> A = np.random.randn(8, 9, 50)
    >>> maps, pc, expvar = eof(A, 3)
    >>> maps.shape, pc.shape
    ((8, 9, 3), (3, 50))

    Notes
    -----
    - The eigenproblem is solved on the smaller of the spatial and temporal
      covariance matrices
    - Signs are chosen so that each principal component starts positive
    """
    A = np.asarray(A, dtype=float)
    if A.ndim != 3:
        raise ValueError("Input A must be 3 dimensional (rows, cols, time).")
    n_time = A.shape[2]
    if n is None:
        n = n_time
    if not 1 <= n <= n_time:
        raise ValueError(f"The number of modes n ({n}) cannot exceed the number of time steps ({n_time}).")

    if mask is None:
        mask = ~np.any(np.isnan(A), axis=2)
    X = cube2rect(A, mask)
    if not np.all(np.isfinite(X)):
        raise ValueError("Data within the mask must not contain NaN or Inf.")
    X = X - X.mean(axis=0)
    n_loc = X.shape[1]

    spatial = n_time >= n_loc
    R = X.T @ X if spatial else X @ X.T
    n = min(n, R.shape[0])
    logger.debug("Solving %s eigenproblem of size %d for %d modes",
                 'spatial' if spatial else 'temporal', R.shape[0], n)

    D, V = linalg.eigh(R, subset_by_index=[R.shape[0] - n, R.shape[0] - 1])
    D, V = D[::-1], V[:, ::-1]
    D = np.clip(D, 0, None)

    if spatial:
        pc = (X @ V).T
    else:
        with np.errstate(divide='ignore', invalid='ignore'):
            V = (X.T @ V) / np.sqrt(D)
        pc = V.T @ X.T
    maps = V.T
    expvar = 100 * D / np.trace(R)

    flip = pc[:, 0] < 0
    pc[flip] *= -1
    maps[flip] *= -1

    return EofResult(maps=rect2cube(maps, mask), pc=pc, expvar=expvar)


def reof(
    maps: npt.ArrayLike,
    pc: npt.ArrayLike,
    modes: Union[int, Sequence[int], None] = None
) -> npt.NDArray[np.floating]:
    """
    Reconstruct a data cube from selected EOF modes.

    Parameters
    ----------
    maps : array-like
        (rows, cols, n) EOF patterns from :func:`eof`
    pc : array-like
        (n, time) principal components from :func:`eof`
    modes : int or sequence of int, optional
        Zero-based modes to include. Default: all

    Returns
    -------
    A : ndarray
        (rows, cols, time) sum of ``maps[:, :, m] * pc[m]`` over the modes.
        The time mean removed by :func:`eof` is not added back.

    Examples
    --------
    >>> import numpy as np
    >>> from cdt_tools import eof, reof
    >>> A = np.random.randn(4, 5, 50)
    >>> maps, pc, _ = eof(A)
    >>> np.allclose(reof(maps, pc), A - A.mean(axis=2, keepdims=True))
    True
    """
    maps = np.asarray(maps, dtype=float)
    pc = np.asarray(pc, dtype=float)
    if maps.ndim != 3:
        raise ValueError("EOF maps must be 3 dimensional (rows, cols, modes).")
    if pc.ndim != 2 or pc.shape[0] != maps.shape[2]:
        raise ValueError(
            f"Principal components {pc.shape} must be (modes, time) with {maps.shape[2]} modes."
        )
    modes = np.arange(maps.shape[2]) if modes is None else np.atleast_1d(modes)
    if np.any(modes < 0) or np.any(modes >= maps.shape[2]):
        raise ValueError(f"modes must be between 0 and {maps.shape[2] - 1}.")
    return np.einsum('ijk,kt->ijt', maps[:, :, modes], pc[modes])


__all__ = [
    'EofResult',
    'eof',
    'reof',
]
