"""
Time conversions

Day of year and decimal year from datetimes, and decoding of CF-convention
"<unit> since <reference>" numeric time axes.

Times are handled with pandas; anything ``pandas.to_datetime`` accepts may
be passed in (datetime64 arrays, ``datetime`` objects, ISO strings).
"""

import logging
import re
from typing import Optional, Tuple, Union

import numpy as np
import numpy.typing as npt
import pandas as pd

from ..utils.dates import to_datetime_index
from ..utils.options import DayOfYearOption, check_option

logger = logging.getLogger(__name__)

# CF unit names (singular and plural) and their pandas Timedelta units
CF_UNITS = {
    'microsecond': 'us',
    'millisecond': 'ms',
    'second': 's',
    'minute': 'min',
    'hour': 'h',
    'day': 'D',
}

_CF_PATTERN = re.compile(r'^\s*(\w+)\s+since\s+(.+?)\s*$', re.IGNORECASE)


def doy(t, option: Optional[DayOfYearOption] = None) -> Union[float, npt.NDArray[np.floating]]:
    """
    Day of year, fraction of year or decimal year.

    Parameters
    ----------
    t : datetime-like or array-like
        Time(s)
    option : {'remainder', 'decimalyear'}, optional
        - None: day of year, with 00:00 on January 1 equal to 1
        - 'remainder': day of year divided by the number of days in the year
        - 'decimalyear': year plus the remainder

    Returns
    -------
    n : float or ndarray
        Same shape as ``t``

    Examples
    --------
    >>> from cdt_tools import doy
    >>> doy('2020-02-01 12:00')
    32.5
    >>> doy('2020-07-01', 'decimalyear')
    2020.5
    """
    if option is not None:
        check_option('option', option, DayOfYearOption)
    shape = np.shape(t)
    ti = to_datetime_index(t)

    n = ti.dayofyear + (ti - ti.normalize()) / pd.Timedelta(days=1)
    n = np.asarray(n, dtype=float)
    if option is not None:
        n = n / np.where(ti.is_leap_year, 366.0, 365.0)
        if option == 'decimalyear':
            n = n + np.asarray(ti.year, dtype=float)

    if len(shape) == 0:
        return float(n[0])
    return n.reshape(shape)


def cftime(
    t: npt.ArrayLike,
    tunit: str,
    fmt: Optional[str] = None
) -> Tuple[Union[pd.Timestamp, pd.DatetimeIndex], str, pd.Timestamp]:
    """
    Decode CF-convention numeric times.

    Parameters
    ----------
    t : float or array-like
        Numeric time values, as stored in a netCDF file
    tunit : str
        Units string of the form ``"<unit> since <reference time>"``, with
        unit one of microseconds, milliseconds, seconds, minutes, hours, days
        (singular forms accepted)
    fmt : str, optional
        ``strftime``-style format of the reference time, if pandas cannot
        infer it

    Returns
    -------
    dt : Timestamp or DatetimeIndex
        Decoded times
    unit : str
        Unit name as written in ``tunit``
    refdate : Timestamp
        Reference time

    Raises
    ------
    ValueError
        If ``tunit`` cannot be parsed or the unit is not recognised

    Examples
    --------
    >>> from cdt_tools import cftime
    >>> dt, unit, ref = cftime([0, 24, 48], 'hours since 2000-01-01')
    >>> dt[-1]
    Timestamp('2000-01-03 00:00:00')
    >>> unit
    'hours'
    """
    match = _CF_PATTERN.match(tunit)
    if match is None:
        raise ValueError(f"Could not parse time units {tunit!r}; expected '<unit> since <reference time>'.")
    unit, ref = match.groups()
    key = unit.lower()
    if key.endswith('s'):
        key = key[:-1]
    if key not in CF_UNITS:
        raise ValueError(f"Unrecognized time unit {unit!r}; expected one of {sorted(CF_UNITS)} (or plural).")

    refdate = pd.to_datetime(ref, format=fmt)
    logger.debug("Decoding times in %s since %s", unit, refdate)

    values = np.asarray(t, dtype=float)
    dt = refdate + pd.to_timedelta(values.ravel(), unit=CF_UNITS[key])
    if values.ndim == 0:
        dt = dt[0]
    return dt, unit, refdate


__all__ = [
    'doy',
    'cftime',
    'to_datetime_index',
    'CF_UNITS',
]
