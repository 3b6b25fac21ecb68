"""
Potential evapotranspiration

Temperature-based estimate of reference evapotranspiration after
Hargreaves and Samani (1985), with the empirical coefficient of the daily
temperature range from Hargreaves and Allen (2003).
"""

from typing import Union

import numpy as np
import numpy.typing as npt

from ..constants import LATENT_HEAT_VAPORIZATION


def pet(
    Ra: npt.ArrayLike,
    tmax: npt.ArrayLike,
    tmin: npt.ArrayLike,
    tmean: npt.ArrayLike
) -> Union[float, npt.NDArray[np.floating]]:
    """
    Potential evapotranspiration by the Hargreaves method.

    Parameters
    ----------
    Ra : array-like
        Extraterrestrial radiation in MJ/(m^2 day), e.g. from
        :func:`solar_radiation`
    tmax, tmin, tmean : array-like
        Daily maximum, minimum and mean air temperature (deg C)

    Returns
    -------
    pevap : float or ndarray
        Potential evapotranspiration (mm/day), the broadcast shape of the
        inputs. Days with ``tmax < tmin`` give NaN.

    Examples
    --------
    >>> from cdt_tools import pet
    >>> round(pet(40.0, 30.0, 20.0, 25.0), 2)
    4.6
    """
    Ra, tmax, tmin, tmean = (np.asarray(v, dtype=float) for v in (Ra, tmax, tmin, tmean))
    dT = tmax - tmin
    chs = 0.00185 * dT**2 - 0.0433 * dT + 0.4023
    with np.errstate(invalid='ignore'):
        pevap = 0.0135 * chs * Ra / LATENT_HEAT_VAPORIZATION * np.sqrt(dT) * (tmean + 17.8)
    return float(pevap) if pevap.ndim == 0 else pevap


__all__ = [
    'pet',
]
