"""
Zero-phase Butterworth filtering

Low-pass, high-pass, band-pass and band-stop filtering of time series (or
any equally spaced series) along one axis, applied forward and backward so
the result has no phase shift.
"""

import logging
from typing import Optional, Sequence, Union

import numpy as np
import numpy.typing as npt
from scipy import signal

from ..utils.axis import apply_along_axis, resolve_axis
from ..utils.options import FILTER_ALIASES, FilterType, check_option

logger = logging.getLogger(__name__)

_BTYPE = {
    'low': 'lowpass',
    'high': 'highpass',
    'bandpass': 'bandpass',
    'stop': 'bandstop',
}


def _sampling_frequency(fs, ts, x, n):
    given = sum(v is not None for v in (fs, ts, x))
    if given > 1:
        raise ValueError("Specify at most one of fs, ts or x to define the sampling rate.")
    if ts is not None:
        return 1 / float(ts)
    if x is not None:
        x = np.asarray(x, dtype=float).ravel()
        if x.size != n:
            raise ValueError(f"Length of x ({x.size}) must match the length of the signal ({n}).")
        dx = np.diff(x)
        if dx.size == 0 or not np.allclose(dx, dx[0]) or not np.isfinite(dx[0]) or dx[0] == 0:
            raise ValueError("Input vector x must be equally spaced.")
        return 1 / dx[0]
    return 1.0 if fs is None else float(fs)


def filt1(
    filtertype: str,
    y: npt.ArrayLike,
    *,
    fc: Optional[Union[float, Sequence[float]]] = None,
    tc: Optional[Union[float, Sequence[float]]] = None,
    lambdac: Optional[Union[float, Sequence[float]]] = None,
    fs: Optional[float] = None,
    ts: Optional[float] = None,
    x: Optional[npt.ArrayLike] = None,
    order: int = 1,
    axis: Optional[int] = None,
    return_coefficients: bool = False
):
    """
    Filter a signal with a zero-phase Butterworth filter.

    Parameters
    ----------
    filtertype : {'low', 'high', 'bandpass', 'stop'}
        Filter type. The short forms 'lp', 'hp', 'bp' and 'bs' are accepted.
    y : array-like
        Signal; 1-D, 2-D or a (rows, cols, time) cube
    fc : float or (float, float), optional
        Cutoff frequency (or frequencies for bandpass/stop)
    tc : float or (float, float), optional
        Cutoff period(s), the inverse of ``fc``
    lambdac : float or (float, float), optional
        Cutoff wavelength(s), the inverse of ``fc`` for spatial series
    fs : float, optional
        Sampling frequency. Default: 1
    ts : float, optional
        Sampling period, the inverse of ``fs``
    x : array-like, optional
        Equally spaced sample positions from which to infer ``fs``
    order : int, optional
        Butterworth filter order. Default: 1
    axis : int, optional
        Axis to filter along. Default: 2 for cubes, otherwise the first
        non-singleton axis
    return_coefficients : bool, optional
        Also return the filter coefficients ``(b, a)``. Default: False

    Returns
    -------
    yf : ndarray
        Filtered signal, same shape as ``y``. Series containing NaN are
        returned as NaN.
    b, a : ndarray, optional
        Numerator and denominator coefficients, if ``return_coefficients``

    Raises
    ------
    ValueError
        If the filter type is unknown, not exactly one cutoff is given, the
        sampling rate is over-specified or the cutoff is not below Nyquist

    Examples
    --------
    >>> import numpy as np
    >>> from cdt_tools import filt1
    >>> t = np.arange(0, 10, 0.01)
    >>> y = np.sin(2 * np.pi * t) + np.sin(2 * np.pi * 20 * t)
    >>> yf = filt1('lp', y, fc=5, fs=100, order=4)  # keeps the 1 Hz wave
    """
    filtertype = FILTER_ALIASES.get(filtertype, filtertype)
    check_option('filtertype', filtertype, FilterType)

    cutoffs = [v for v in (fc, tc, lambdac) if v is not None]
    if len(cutoffs) != 1:
        raise ValueError("Specify exactly one of fc, tc or lambdac to define the cutoff.")
    cutoff = np.atleast_1d(np.asarray(cutoffs[0], dtype=float))
    if fc is None:
        cutoff = 1 / cutoff

    if filtertype in ('low', 'high'):
        if cutoff.size != 1:
            raise ValueError("Low-pass and high-pass filters require a scalar cutoff frequency.")
        cutoff = cutoff[0]
    else:
        if cutoff.size != 2:
            raise ValueError("Bandpass and bandstop filters require a low and a high cutoff frequency.")
        cutoff = np.sort(cutoff)

    y = np.asarray(y, dtype=float)
    axis = resolve_axis(y, axis)
    fs_value = _sampling_frequency(fs, ts, x, y.shape[axis] if y.ndim else 1)
    Wn = cutoff / (fs_value / 2)
    if np.any(Wn <= 0) or np.any(Wn >= 1):
        raise ValueError(
            f"Cutoff frequency must be positive and below the Nyquist frequency {fs_value / 2}, got {cutoff}"
        )

    b, a = signal.butter(order, Wn, btype=_BTYPE[filtertype])
    logger.debug("Butterworth %s filter of order %d, Wn=%s", filtertype, order, Wn)

    def kernel(cols):
        if cols.shape[1] == 0:
            return cols
        return signal.filtfilt(b, a, cols, axis=0)

    yf = apply_along_axis(kernel, y, axis, skip_nonfinite=True)
    if return_coefficients:
        return yf, b, a
    return yf


__all__ = [
    'filt1',
]
