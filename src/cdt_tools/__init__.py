"""
CDT Tools - Climate Data Tools for Python

A Python package of small, composable functions for analysing climate and
ocean data held in NumPy arrays: gridded fields, time series and the
coordinates that go with them.

Main modules:
- atmosphere: Standard atmosphere, Coriolis and Rossby radius, wind stress, Ekman transport and solar radiation
- geo: Lat/lon grids, cell areas, vector calculus, nearest-point search, region masks and label points
- stats: Trends, Mann-Kendall test, lagged correlation, EOFs, filtering, ensemble spread and summary statistics
- timeseries: Day of year, CF time decoding, seasonal cycles, sinusoid fits and climate indices
- gridding: Rebuild 2-D grids from x,y,z point data, split contour matrices, build sections and resize grids
- netcdf: NetCDF file schemas, time axes and variable I/O
- utils: Reshaping helpers for (rows, cols, time) data cubes

Typical workflow:
1. Load a gridded variable as a (rows, cols, time) cube with lat/lon grids
   (ncstruct)
2. Remove the seasonal cycle with deseason
3. Compute trends and their significance with trend and mann_kendall
4. Build regional time series with geomask and local, weighting by cell
   area (cdtarea)
5. Decompose variability with eof or correlate with an index via corr3
"""

__version__ = "0.1.0"

# Import main functions for convenient access
from .atmosphere import (
    air_pressure,
    air_density,
    coriolisf,
    rossby_radius,
    windstress,
    ekman,
    EkmanResult,
    daily_insolation,
    solar_radiation,
    sun_angle,
    pet,
)

from .geo import (
    earth_radius,
    islatlon,
    cdtgrid,
    cdtdim,
    cdtarea,
    recenter,
    binind2latlon,
    cdtgradient,
    cdtdivergence,
    cdtcurl,
    near1,
    near2,
    isoverlapping,
    geomask,
    polycenter,
)

from .stats import (
    mann_kendall,
    MannKendallResult,
    trend,
    detrend3,
    polyfitw,
    corr3,
    xcorr3,
    xcov3,
    XcorrResult,
    standardize,
    wmean,
    local,
    cdtmean,
    monthly,
    scatstat1,
    scatstat2,
    eof,
    reof,
    EofResult,
    filt1,
    ensemble2bnd,
    EnsembleBounds,
    ts_normstrap,
)

from .timeseries import (
    doy,
    cftime,
    season,
    climatology,
    deseason,
    sinefit,
    sineval,
    sinefit_bootstrap,
    reshapetimeseries,
    YearlyBins,
    sam,
    nao,
    spei,
)

from .gridding import (
    xyzread,
    xyz2grid,
    C2xyz,
    transect,
    demresize,
)

from .netcdf import (
    dimstruct,
    attribstruct,
    varstruct,
    ncschema_init,
    ncschema_adddims,
    ncschema_addvars,
    ncschema_addatts,
    updatencschema,
    ncschema_read,
    schema_to_dataset,
    ncwriteschema,
    ncdateread,
    ncdatelim,
    ncstruct,
    ncbuild,
    ncaddhis,
)

from .utils import (
    cube2rect,
    rect2cube,
    mask3,
    expand3,
    bottom,
    cell2nancat,
    tile,
)

__all__ = [
    # Atmosphere and ocean dynamics
    'air_pressure',
    'air_density',
    'coriolisf',
    'rossby_radius',
    'windstress',
    'ekman',
    'EkmanResult',
    'daily_insolation',
    'solar_radiation',
    'sun_angle',
    'pet',

    # Geographic grids
    'earth_radius',
    'islatlon',
    'cdtgrid',
    'cdtdim',
    'cdtarea',
    'recenter',
    'binind2latlon',
    'cdtgradient',
    'cdtdivergence',
    'cdtcurl',
    'near1',
    'near2',
    'isoverlapping',
    'geomask',
    'polycenter',

    # Statistics
    'mann_kendall',
    'MannKendallResult',
    'trend',
    'detrend3',
    'polyfitw',
    'corr3',
    'xcorr3',
    'xcov3',
    'XcorrResult',
    'standardize',
    'wmean',
    'local',
    'cdtmean',
    'monthly',
    'scatstat1',
    'scatstat2',
    'eof',
    'reof',
    'EofResult',
    'filt1',
    'ensemble2bnd',
    'EnsembleBounds',
    'ts_normstrap',

    # Time series
    'doy',
    'cftime',
    'season',
    'climatology',
    'deseason',
    'sinefit',
    'sineval',
    'sinefit_bootstrap',
    'reshapetimeseries',
    'YearlyBins',
    'sam',
    'nao',
    'spei',

    # Gridding
    'xyzread',
    'xyz2grid',
    'C2xyz',
    'transect',
    'demresize',

    # NetCDF
    'dimstruct',
    'attribstruct',
    'varstruct',
    'ncschema_init',
    'ncschema_adddims',
    'ncschema_addvars',
    'ncschema_addatts',
    'updatencschema',
    'ncschema_read',
    'schema_to_dataset',
    'ncwriteschema',
    'ncdateread',
    'ncdatelim',
    'ncstruct',
    'ncbuild',
    'ncaddhis',

    # Data cube utilities
    'cube2rect',
    'rect2cube',
    'mask3',
    'expand3',
    'bottom',
    'cell2nancat',
    'tile',
]
