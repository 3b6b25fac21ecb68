"""
Statistics Module

This module provides statistical tools for climate time series and gridded
data cubes. Functions operate along one axis of their input; for 3-D cubes
(rows, cols, time) the default is the time axis.

Main functions:
- trend: Least-squares linear trend with optional p-value
- mann_kendall: Non-parametric test for a monotonic trend
- detrend3: Remove linear trends from a data cube
- polyfitw: Weighted polynomial fit
- corr3: Correlation of every grid cell with a time series
- xcorr3, xcov3: Lagged correlation and covariance of every grid cell
- standardize: Z-scores with optional mean and standard deviation
- wmean: Weighted mean
- local: Time series of a statistic over a masked region
- cdtmean: Area-weighted mean over a lat/lon grid
- monthly: Statistic of samples in selected calendar months
- scatstat1, scatstat2: Statistics of scattered points within a radius
- eof: Empirical orthogonal functions
- reof: Reconstruct data from EOF modes
- filt1: Zero-phase Butterworth filtering
- ensemble2bnd: Center and percentile bounds of an ensemble
- ts_normstrap: Bootstrap a time series with normally distributed errors
"""

from .trend import (
    MannKendallResult,
    mann_kendall,
    trend,
    detrend3,
    polyfitw,
)
from .correlation import (
    XcorrResult,
    corr3,
    xcorr3,
    xcov3,
)
from .summary import (
    standardize,
    wmean,
    local,
    cdtmean,
    monthly,
)
from .scatter import (
    scatstat1,
    scatstat2,
)
from .eof import (
    EofResult,
    eof,
    reof,
)
from .filter import (
    filt1,
)
from .ensemble import (
    EnsembleBounds,
    ensemble2bnd,
    ts_normstrap,
)

__all__ = [
    # Trends
    'MannKendallResult',
    'mann_kendall',
    'trend',
    'detrend3',
    'polyfitw',
    # Correlation
    'XcorrResult',
    'corr3',
    'xcorr3',
    'xcov3',
    # Summary statistics
    'standardize',
    'wmean',
    'local',
    'cdtmean',
    'monthly',
    # Scattered data
    'scatstat1',
    'scatstat2',
    # Modes of variability
    'EofResult',
    'eof',
    'reof',
    # Filtering
    'filt1',
    # Uncertainty
    'EnsembleBounds',
    'ensemble2bnd',
    'ts_normstrap',
]
