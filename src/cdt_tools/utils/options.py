"""
Option sets recognised by toolbox functions

Every keyword argument that selects one behaviour out of a fixed set is typed
with one of the ``Literal`` aliases below and checked with :func:`check_option`.
"""

from typing import Any, Literal, get_args

import numpy as np

Detrend = Literal['none', 'linear', 'quadratic']
NanPolicy = Literal['include', 'omit']
Resolution = Literal['daily', 'monthly']
FilterType = Literal['low', 'high', 'bandpass', 'stop']
ParallelMethod = Literal['auto', 'joblib', 'serial']
DayOfYearOption = Literal['remainder', 'decimalyear']
SamBaseline = Literal['shared', 'separate']
NcFormat = Literal['classic', '64bit', 'netcdf4_classic', 'netcdf4']
DayType = Literal['calendar', 'solar_longitude']
DateLoc = Literal['start', 'end', 'centered']
EnsembleCenter = Literal['mean', 'median']
TransectMethod = Literal['linear', 'nearest', 'cubic']

FILTER_ALIASES = {
    'lp': 'low',
    'hp': 'high',
    'bp': 'bandpass',
    'bs': 'stop',
}


def check_option(name: str, value: Any, choices: Any) -> Any:
    """
    Validate that ``value`` is one of ``choices``.

    Parameters
    ----------
    name : str
        Argument name, used in the error message
    value : any
        Value passed by the caller
    choices : Literal alias or iterable
        Allowed values

    Returns
    -------
    value : any
        The validated value, unchanged

    Raises
    ------
    ValueError
        If ``value`` is not an allowed choice
    """
    allowed = get_args(choices) or tuple(choices)
    if value not in allowed:
        raise ValueError(f"{name} must be one of {set(allowed)}, got {value!r}")
    return value


def nan_functions(nan_policy: NanPolicy):
    """Return the (mean, std, sum) triplet matching a NaN policy."""
    check_option('nan_policy', nan_policy, NanPolicy)
    if nan_policy == 'omit':
        return np.nanmean, np.nanstd, np.nansum
    return np.mean, np.std, np.sum


__all__ = [
    'Detrend',
    'NanPolicy',
    'Resolution',
    'FilterType',
    'ParallelMethod',
    'DayOfYearOption',
    'SamBaseline',
    'NcFormat',
    'DayType',
    'DateLoc',
    'EnsembleCenter',
    'TransectMethod',
    'FILTER_ALIASES',
    'check_option',
    'nan_functions',
]
