"""
Time coordinate helpers

Functions across the package accept times as anything ``pandas.to_datetime``
understands (strings, datetime objects, ``datetime64`` arrays of any unit, a
``DatetimeIndex``) and convert them here to one flat ``DatetimeIndex``.
"""

import numpy as np
import pandas as pd


def to_datetime_index(t) -> pd.DatetimeIndex:
    """Convert scalar or array-like times to a flat DatetimeIndex."""
    if isinstance(t, pd.DatetimeIndex):
        return t
    arr = np.asarray(t)
    return pd.DatetimeIndex(pd.to_datetime(arr.ravel()))


__all__ = [
    'to_datetime_index',
]
