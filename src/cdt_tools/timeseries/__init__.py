"""
Time Series Module

This module provides calendar conversions, seasonal-cycle analysis, sinusoidal
fits, year-by-year reshaping and climate indices.

Main functions:
- doy: Day of year, fraction of year or decimal year
- cftime: Decode CF-convention "<unit> since <reference>" times
- season: Typical seasonal cycle (anomalies) by day of year or month
- climatology: Seasonal cycle including the long-term mean
- deseason: Remove the seasonal cycle
- sinefit, sineval: Fit and evaluate an annual sinusoid with optional trend
- sinefit_bootstrap: Bootstrap distribution of sinusoid fit parameters
- reshapetimeseries: Arrange a series as a (time of year, year) matrix
- sam: Southern Annular Mode index
- nao: North Atlantic Oscillation index
- spei: Standardized Precipitation-Evapotranspiration Index
"""

from .time import (
    doy,
    cftime,
)
from .seasonal import (
    season,
    climatology,
    deseason,
)
from .sinusoid import (
    sinefit,
    sineval,
    sinefit_bootstrap,
)
from .reshape import (
    YearlyBins,
    reshapetimeseries,
)
from .indices import (
    sam,
    nao,
    spei,
)

__all__ = [
    # Time conversions
    'doy',
    'cftime',
    # Seasonal cycle
    'season',
    'climatology',
    'deseason',
    # Sinusoidal fits
    'sinefit',
    'sineval',
    'sinefit_bootstrap',
    # Reshaping
    'YearlyBins',
    'reshapetimeseries',
    # Climate indices
    'sam',
    'nao',
    'spei',
]
