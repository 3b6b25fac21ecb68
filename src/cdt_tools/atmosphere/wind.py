"""
Wind stress and Ekman transport

Bulk-formula wind stress from 10 m winds, optionally with a sea-ice dependent
drag coefficient, and the Ekman transport, pumping velocity and layer depth
it drives.

References:
- Kara et al. (2007), J. Climate, doi:10.1175/2007JCLI1825.1 (open-ocean Cd)
- Lupkes and Birnbaum (2005), Boundary-Layer Meteorology (sea-ice Cd)
"""

import warnings
from typing import NamedTuple, Optional, Tuple, Union

import numpy as np
import numpy.typing as npt

from ..constants import AIR_DENSITY, DRAG_COEFFICIENT, DRAG_COEFFICIENT_ICE, SEAWATER_DENSITY
from ..geo.calculus import cdtdivergence
from ..geo.grid import check_latlon_grid
from .coriolis import coriolisf

ArrayF = npt.NDArray[np.floating]


class EkmanResult(NamedTuple):
    """Ekman transport components, pumping velocity and layer depth."""
    ue: ArrayF
    ve: ArrayF
    we: ArrayF
    de: ArrayF


def _trailing(values: ArrayF, ndim: int) -> ArrayF:
    """Append singleton axes so 2-D grids broadcast against (rows, cols, time) cubes."""
    values = np.asarray(values, dtype=float)
    if values.ndim >= 2:
        values = values.reshape(values.shape + (1,) * (ndim - values.ndim))
    return values


def _cd_ice(ci: npt.ArrayLike) -> ArrayF:
    """
    Neutral 10 m drag coefficient over partial sea-ice cover.

    Form drag of floe edges after Lupkes and Birnbaum (2005), Eqs. 20-22,
    plus an area-weighted blend of the skin drag over ice and open water.
    """
    A = np.minimum(np.asarray(ci, dtype=float), 1.0)
    with np.errstate(divide='ignore', invalid='ignore'):
        hf = 0.49 * (1 - np.exp(-0.59 * A))   # freeboard
        Di = 31 * hf / (1 - A)                 # floe diameter
        ar = Di / hf                           # aspect ratio
        form = (0.34 * A**2) * (((1 - A)**0.8 + 0.5 * (1 - 0.5 * A)**2) / (ar + 90 * A))
    form = np.where(np.isfinite(form), form, 0.0)
    Cd = form + A * DRAG_COEFFICIENT_ICE + (1 - A) * DRAG_COEFFICIENT
    return np.where(A < 0.001, DRAG_COEFFICIENT, Cd)


def _drag_coefficient(cd: Optional[npt.ArrayLike], ci: Optional[npt.ArrayLike]) -> Union[float, ArrayF]:
    if ci is not None:
        if cd is not None:
            raise ValueError(
                "Cannot specify both a drag coefficient cd and a sea ice concentration ci "
                "from which to calculate the drag coefficient. Pick one and try again."
            )
        ci = np.asarray(ci, dtype=float)
        if np.nanmax(ci) > 1:
            raise ValueError("Sea ice concentration ci cannot exceed 1.")
        if np.nanmin(ci) < 0:
            raise ValueError("Sea ice concentration ci cannot be negative.")
        return _cd_ice(ci)
    if cd is None:
        return DRAG_COEFFICIENT
    return np.asarray(cd, dtype=float)


def windstress(
    u10: npt.ArrayLike,
    v10: Optional[npt.ArrayLike] = None,
    *,
    cd: Optional[npt.ArrayLike] = None,
    rho: Union[float, npt.ArrayLike] = AIR_DENSITY,
    ci: Optional[npt.ArrayLike] = None
) -> Union[ArrayF, Tuple[ArrayF, ArrayF]]:
    """
    Wind stress from 10 m wind using the bulk formula tau = rho Cd |U| U.

    Parameters
    ----------
    u10 : array-like
        Zonal (or scalar) wind speed 10 m above the surface (m/s)
    v10 : array-like, optional
        Meridional wind speed, same shape as ``u10``. If given, both stress
        components are returned.
    cd : float or array-like, optional
        Drag coefficient. Default: 1.25e-3
    rho : float or array-like, optional
        Air density (kg/m^3). Default: 1.225
    ci : array-like, optional
        Sea ice concentration (0 to 1) used to compute the drag coefficient
        after Lupkes and Birnbaum (2005). Cannot be combined with ``cd``.

    Returns
    -------
    tau : ndarray
        ``rho Cd sign(u) u^2`` (Pa), if only ``u10`` is given
    taux, tauy : ndarray
        Zonal and meridional stress components (Pa), if ``v10`` is given

    Raises
    ------
    ValueError
        If ``u10`` and ``v10`` differ in shape, both ``cd`` and ``ci`` are
        given, or ``ci`` is outside [0, 1]

    Examples
    --------
    >>> from cdt_tools import windstress
    >>> round(float(windstress(10.0)), 4)
    0.1531
    >>> taux, tauy = windstress(3.0, 4.0)
    """
    u10 = np.asarray(u10, dtype=float)
    Cd = _trailing(_drag_coefficient(cd, ci), u10.ndim)
    rho = _trailing(rho, u10.ndim)

    if v10 is None:
        return rho * Cd * np.sign(u10) * u10**2

    v10 = np.asarray(v10, dtype=float)
    if v10.shape != u10.shape:
        raise ValueError(f"Dimensions of u10 {u10.shape} and v10 {v10.shape} must agree.")
    U = np.hypot(u10, v10)
    Tau = rho * Cd * U**2
    with np.errstate(divide='ignore', invalid='ignore'):
        taux = np.where(U > 0, Tau * u10 / U, 0.0)
        tauy = np.where(U > 0, Tau * v10 / U, 0.0)
    return taux, tauy


def ekman(
    lat: npt.ArrayLike,
    lon: npt.ArrayLike,
    u10: npt.ArrayLike,
    v10: npt.ArrayLike,
    *,
    cd: Optional[npt.ArrayLike] = None,
    rho: Union[float, npt.ArrayLike] = SEAWATER_DENSITY,
    ci: Optional[npt.ArrayLike] = None
) -> EkmanResult:
    """
    Ekman transport, pumping velocity and layer depth from surface winds.

    Parameters
    ----------
    lat, lon : array-like
        2-D meshgrid-style grids (degrees)
    u10, v10 : array-like
        10 m wind components (m/s), 2-D or (rows, cols, time)
    cd : float or array-like, optional
        Drag coefficient. Default: 1.25e-3
    rho : float or array-like, optional
        Seawater density (kg/m^3). Default: 1025
    ci : array-like, optional
        Sea ice concentration (0 to 1) used to compute the drag coefficient

    Returns
    -------
    result : EkmanResult
        Named tuple with fields
        - ``ue``, ``ve``: zonal and meridional Ekman transport (m^2/s)
        - ``we``: Ekman pumping velocity (m/s), the divergence of the transport
        - ``de``: Ekman layer depth 7.6 |U| / sqrt(sin|lat|) (m)

    Raises
    ------
    ValueError
        If the grid is invalid or does not match the wind fields

    Warns
    -----
    UserWarning
        If any grid point is within 10 degrees of the equator, where the
        Coriolis frequency approaches zero

    Examples
    --------
    >>> import numpy as np
    >>> from cdt_tools import cdtgrid, ekman
    >>> lat, lon = cdtgrid(2)
    >>> north = lat > 20
    >>> res = ekman(lat[north].reshape(-1, 180), lon[north].reshape(-1, 180),
    ...             np.full((35, 180), 5.0), np.zeros((35, 180)))
    >>> bool(np.all(res.ve < 0))  # transport to the right of eastward wind
    True
    """
    lat, lon = check_latlon_grid(lat, lon)
    u10 = np.asarray(u10, dtype=float)
    v10 = np.asarray(v10, dtype=float)
    if u10.shape != v10.shape:
        raise ValueError(f"Dimensions of u10 {u10.shape} and v10 {v10.shape} must agree.")
    if u10.ndim not in (2, 3) or u10.shape[:2] != lat.shape:
        raise ValueError(
            f"The dimensions of the wind field {u10.shape} must match the dimensions "
            f"of lat and lon {lat.shape}."
        )

    if np.any(np.abs(lat) < 10):
        warnings.warn(
            "Some grid points are within 10 degrees of the equator. Ekman theory divides by the "
            "Coriolis frequency, which approaches zero at the equator, so results there are unreliable."
        )

    taux, tauy = windstress(u10, v10, cd=cd, ci=ci)
    rho_f = _trailing(rho, u10.ndim) * _trailing(coriolisf(lat), u10.ndim)
    with np.errstate(divide='ignore', invalid='ignore'):
        ue = tauy / rho_f
        ve = -taux / rho_f
        de = 7.6 * np.hypot(u10, v10) / _trailing(np.sqrt(np.sin(np.deg2rad(np.abs(lat)))), u10.ndim)
    we = cdtdivergence(lat, lon, ue, ve)

    return EkmanResult(ue=ue, ve=ve, we=we, de=de)


__all__ = [
    'windstress',
    'ekman',
    'EkmanResult',
]
