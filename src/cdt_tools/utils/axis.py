"""
Generic "apply along axis" machinery

Statistical functions in this package operate along one axis of an N-D array.
Rather than permuting and reshaping by hand in every function, they move the
axis of operation to the front, flatten everything else into columns, run a
column-wise kernel on a ``(n, columns)`` matrix and restore the layout.

Axis convention:
- 3-D input is a data cube ``(rows, cols, time)``; the default axis is 2
- Otherwise the default axis is the first non-singleton axis
"""

import contextlib
import logging
import os
from typing import Callable, Optional, Tuple, Union

import numpy as np
import numpy.typing as npt

from .options import ParallelMethod, check_option

logger = logging.getLogger(__name__)

KernelResult = Union[np.ndarray, Tuple[np.ndarray, ...]]


def default_axis(a: npt.ArrayLike) -> int:
    """
    Return the default axis of operation for ``a``.

    The last axis for 3-D cubes, otherwise the first non-singleton axis
    (0 if every axis is singleton).
    """
    shape = np.shape(a)
    if len(shape) == 3:
        return 2
    for i, n in enumerate(shape):
        if n > 1:
            return i
    return 0


def resolve_axis(a: npt.ArrayLike, axis: Optional[int]) -> int:
    """
    Validate ``axis`` against ``a`` and return it as a non-negative integer.

    Raises
    ------
    ValueError
        If ``axis`` is out of range for ``a``
    """
    ndim = max(np.ndim(a), 1)
    if axis is None:
        axis = default_axis(a)
        logger.debug("Operating along default axis %d of shape %s", axis, np.shape(a))
    if not isinstance(axis, (int, np.integer)) or not -ndim <= axis < ndim:
        raise ValueError(f"axis must be an integer in [{-ndim}, {ndim - 1}] for {ndim}-D input, got {axis!r}")
    return int(axis) % ndim


def to_columns(a: np.ndarray, axis: int) -> Tuple[np.ndarray, Tuple[int, ...]]:
    """
    Move ``axis`` to the front and flatten the remaining axes.

    Returns
    -------
    cols : ndarray
        Array of shape ``(a.shape[axis], prod(other axes))``
    trailing : tuple of int
        Shape of the flattened axes, needed by :func:`from_columns`
    """
    moved = np.moveaxis(a, axis, 0)
    return moved.reshape(moved.shape[0], -1), moved.shape[1:]


def from_columns(cols: np.ndarray, trailing: Tuple[int, ...], axis: int) -> np.ndarray:
    """Inverse of :func:`to_columns`; the leading length may have changed."""
    out = cols.reshape((cols.shape[0],) + tuple(trailing))
    return np.moveaxis(out, 0, axis)


def apply_along_axis(
    kernel: Callable[[np.ndarray], KernelResult],
    a: npt.ArrayLike,
    axis: Optional[int] = None,
    *,
    skip_nonfinite: bool = False,
    keepdims: bool = True,
    fill_value: Union[float, bool, Tuple] = np.nan,
) -> KernelResult:
    """
    Apply a column-wise kernel along one axis of an N-D array.

    Parameters
    ----------
    kernel : callable
        Function mapping a ``(n, m)`` matrix (one series per column) to a
        ``(k, m)`` array, a length-``m`` array, or a tuple of those
    a : array_like
        Input data
    axis : int, optional
        Axis to operate along. Default: see :func:`default_axis`
    skip_nonfinite : bool, optional
        If True, columns containing NaN or Inf are not passed to the kernel
        and receive ``fill_value`` in the output. Default: False
    keepdims : bool, optional
        If False, the (length-1) axis of operation is removed from the
        outputs, as for a reduction. Default: True
    fill_value : scalar or tuple of scalars, optional
        Value for skipped columns, one per kernel output if a tuple.
        Default: NaN

    Returns
    -------
    out : ndarray or tuple of ndarray
        Kernel output(s) with the original layout restored

    Examples
    --------
    >>> import numpy as np
    >>> from cdt_tools.utils.axis import apply_along_axis
    >>> cube = np.random.rand(4, 5, 30)
    >>> means = apply_along_axis(lambda c: c.mean(axis=0), cube, keepdims=False)
    >>> means.shape
    (4, 5)
    """
    arr = np.asarray(a)
    if arr.ndim == 0:
        arr = arr.reshape(1)
    axis = resolve_axis(arr, axis)
    cols, trailing = to_columns(arr, axis)

    if skip_nonfinite:
        valid = np.all(np.isfinite(cols), axis=0)
    else:
        valid = np.ones(cols.shape[1], dtype=bool)

    result = kernel(cols[:, valid])
    single = not isinstance(result, tuple)
    results = (result,) if single else result
    fills = fill_value if isinstance(fill_value, tuple) else (fill_value,) * len(results)
    if len(fills) != len(results):
        raise ValueError(f"Expected {len(results)} fill values, got {len(fills)}")

    outputs = []
    for res, fill in zip(results, fills):
        res = np.asarray(res)
        if res.ndim == 1:
            res = res[np.newaxis, :]
        dtype = np.result_type(res.dtype, np.asarray(fill).dtype)
        full = np.full((res.shape[0], cols.shape[1]), fill, dtype=dtype)
        full[:, valid] = res
        out = from_columns(full, trailing, axis)
        if not keepdims:
            if out.shape[axis] != 1:
                raise ValueError("keepdims=False requires the kernel to reduce the axis to length 1")
            out = np.take(out, 0, axis=axis)
        outputs.append(out)

    return outputs[0] if single else tuple(outputs)


def map_column_chunks(
    kernel: Callable[[np.ndarray], np.ndarray],
    cols: np.ndarray,
    parallel_method: ParallelMethod = 'auto',
    n_jobs: int = -1,
    auto_threshold: int = 5000,
) -> np.ndarray:
    """
    Run a column-wise kernel serially or over joblib workers.

    Columns are split into one chunk per worker and the chunk results are
    concatenated along the column axis.

    Parameters
    ----------
    kernel : callable
        Function mapping a ``(n, m)`` matrix to a ``(k, m)`` array
    cols : ndarray
        Input matrix with one series per column
    parallel_method : {'auto', 'joblib', 'serial'}, optional
        - 'auto': serial up to ``auto_threshold`` columns, joblib above
        - 'joblib': joblib process pool
        - 'serial': run the kernel once on all columns
        Default: 'auto'
    n_jobs : int, optional
        Number of joblib workers. -1 uses all CPU cores. Default: -1
    auto_threshold : int, optional
        Column count above which 'auto' switches to joblib. Default: 5000

    Returns
    -------
    out : ndarray
        Kernel output for all columns
    """
    check_option('parallel_method', parallel_method, ParallelMethod)
    n_cols = cols.shape[1]

    if parallel_method == 'auto':
        parallel_method = 'serial' if n_cols <= auto_threshold else 'joblib'
    logger.debug("Processing %d columns with parallel_method=%r", n_cols, parallel_method)

    if parallel_method == 'serial' or n_cols == 0:
        return np.atleast_2d(kernel(cols))

    from joblib import Parallel, cpu_count, delayed

    n_workers = cpu_count() if n_jobs < 0 else max(n_jobs, 1)
    chunks = np.array_split(cols, min(n_workers, n_cols), axis=1)

    with single_threaded_blas():
        results = Parallel(n_jobs=n_jobs)(delayed(kernel)(chunk) for chunk in chunks)

    return np.concatenate([np.atleast_2d(r) for r in results], axis=1)


_BLAS_THREAD_VARS = ('OMP_NUM_THREADS', 'MKL_NUM_THREADS', 'OPENBLAS_NUM_THREADS')


@contextlib.contextmanager
def single_threaded_blas():
    """
    Limit BLAS/OpenMP threads to one while joblib workers run.

    Each worker process then uses single-threaded linear algebra and the pool
    does not oversubscribe the CPU. The previous settings are restored on exit.
    """
    saved = {name: os.environ.get(name) for name in _BLAS_THREAD_VARS}
    try:
        for name in _BLAS_THREAD_VARS:
            os.environ[name] = '1'
        yield
    finally:
        # Restore original threading settings
        for name, old in saved.items():
            if old is not None:
                os.environ[name] = old
            elif name in os.environ:
                del os.environ[name]


__all__ = [
    'default_axis',
    'resolve_axis',
    'to_columns',
    'from_columns',
    'apply_along_axis',
    'map_column_chunks',
    'single_threaded_blas',
]
