import numpy as np
import pytest

from cdt_tools import (
    air_density,
    air_pressure,
    coriolisf,
    daily_insolation,
    ekman,
    pet,
    rossby_radius,
    solar_radiation,
    sun_angle,
    windstress,
)
from cdt_tools.constants import SOLAR_CONSTANT
from cdt_tools.atmosphere.standard_atmosphere import LAYER_BASE


def test_air_pressure_sea_level():
    assert air_pressure(0.0) == pytest.approx(101325.0)
    assert air_density(0.0) == pytest.approx(1.225, rel=1e-3)


def test_air_pressure_tropopause():
    """Pressure at the top of the troposphere matches the 1976 tables."""
    assert air_pressure(11000.0) == pytest.approx(22632.0, rel=1e-3)


def test_air_pressure_continuous_at_layer_bases():
    for base in LAYER_BASE[1:]:
        below = air_pressure(base - 1e-3)
        at = air_pressure(base)
        assert np.isclose(below, at, rtol=1e-6)
        assert np.isclose(air_density(base - 1e-3), air_density(base), rtol=1e-2)


def test_air_pressure_decreases_with_height():
    h = np.linspace(0, 86000, 200)
    P = air_pressure(h)
    assert P.shape == h.shape
    assert np.all(np.diff(P) < 0)


def test_air_pressure_top_of_model_is_finite():
    assert np.isfinite(air_pressure(86000.0))


def test_air_pressure_above_model_warns_and_returns_nan():
    with pytest.warns(UserWarning, match="86 km"):
        P = air_pressure(np.array([1000.0, 90000.0]))
    assert np.isfinite(P[0])
    assert np.isnan(P[1])


def test_air_pressure_below_sea_level_uses_surface_layer():
    assert air_pressure(-100.0) > 101325.0


def test_air_density_preserves_shape():
    h = np.full((3, 4), 5000.0)
    rho = air_density(h)
    assert rho.shape == (3, 4)
    assert np.all(rho < 1.225)


def test_coriolisf_values():
    assert coriolisf(90) == pytest.approx(2 * 7.2921e-5)
    assert coriolisf(0) == pytest.approx(0.0)
    assert coriolisf(-30) < 0
    assert coriolisf([10, 20]).shape == (2,)


def test_coriolisf_rejects_bad_latitude():
    with pytest.raises(ValueError, match="out of realistic bounds"):
        coriolisf(95)


def test_rossby_radius():
    expected = np.sqrt(9.81 * 4000) / coriolisf(45)
    assert rossby_radius(45, 4000) == pytest.approx(expected)
    assert np.isnan(rossby_radius(45, -10))
    assert np.isinf(rossby_radius(0, 4000))


def test_windstress_scalar_speed():
    assert windstress(10.0) == pytest.approx(1.225 * 1.25e-3 * 100)
    assert windstress(-10.0) == pytest.approx(-1.225 * 1.25e-3 * 100)


def test_windstress_components():
    taux, tauy = windstress(np.array([3.0, 0.0]), np.array([4.0, 0.0]))
    tau = 1.225 * 1.25e-3 * 25
    assert taux[0] == pytest.approx(tau * 3 / 5)
    assert tauy[0] == pytest.approx(tau * 4 / 5)
    assert taux[1] == 0 and tauy[1] == 0


def test_windstress_custom_drag_and_density():
    assert windstress(10.0, cd=2e-3, rho=1.0) == pytest.approx(0.2)


def test_windstress_sea_ice():
    u = np.full(3, 10.0)
    open_water = windstress(u)
    assert np.allclose(windstress(u, ci=np.zeros(3)), open_water)
    assert np.all(windstress(u, ci=np.full(3, 0.5)) > open_water)


def test_windstress_rejects_conflicting_drag():
    with pytest.raises(ValueError, match="Cannot specify both"):
        windstress(10.0, cd=1e-3, ci=0.5)
    with pytest.raises(ValueError, match="cannot exceed 1"):
        windstress(10.0, ci=1.5)


def test_windstress_shape_mismatch():
    with pytest.raises(ValueError, match="must agree"):
        windstress(np.ones(3), np.ones(4))


def _northern_grid():
    lon, lat = np.meshgrid(np.arange(0.0, 40.0, 2.0), np.arange(60.0, 19.0, -2.0))
    return lat, lon


def test_ekman_transport_direction():
    """Eastward wind drives transport to the right (south) in the northern hemisphere."""
    lat, lon = _northern_grid()
    u = np.full(lat.shape, 5.0)
    v = np.zeros(lat.shape)
    res = ekman(lat, lon, u, v)
    assert res.ue.shape == lat.shape
    assert np.allclose(res.ue, 0)
    assert np.all(res.ve < 0)
    assert res.we.shape == lat.shape
    assert np.all(res.de > 0)


def test_ekman_cube():
    lat, lon = _northern_grid()
    u = np.full(lat.shape + (3,), 5.0)
    v = np.full(lat.shape + (3,), 2.0)
    res = ekman(lat, lon, u, v)
    assert res.ue.shape == u.shape
    assert res.we.shape == u.shape


def test_ekman_warns_near_equator():
    lon, lat = np.meshgrid(np.arange(0.0, 10.0, 2.0), np.arange(20.0, -1.0, -5.0))
    with pytest.warns(UserWarning, match="equator"):
        ekman(lat, lon, np.ones(lat.shape), np.ones(lat.shape))


def test_ekman_rejects_mismatched_grid():
    lat, lon = _northern_grid()
    with pytest.raises(ValueError, match="must match"):
        ekman(lat, lon, np.ones((2, 2)), np.ones((2, 2)))


# Solar radiation

def test_daily_insolation_equator_at_equinox():
    F = daily_insolation(0.0, 0.0, ecc=0.0, day_type='solar_longitude')
    assert F == pytest.approx(SOLAR_CONSTANT / np.pi)
    # Eccentric orbit changes the Earth-Sun distance by a few percent at most
    assert daily_insolation(0.0, 0.0, day_type='solar_longitude') == pytest.approx(SOLAR_CONSTANT / np.pi, rel=0.04)


def test_daily_insolation_polar_day_and_night():
    assert round(daily_insolation(90, 90, day_type='solar_longitude')) == 526
    assert daily_insolation(90, 270, day_type='solar_longitude') == 0.0
    assert daily_insolation(-85, 90, day_type='solar_longitude') == 0.0
    assert daily_insolation(-90, 270, day_type='solar_longitude') > 500


def test_daily_insolation_hemispheres_and_seasons():
    lat = np.array([-45.0, 0.0, 45.0])
    F = daily_insolation(lat, 0.0, ecc=0.0, day_type='solar_longitude')
    assert F.shape == (3,)
    assert F[0] == pytest.approx(F[2])
    assert F[1] > F[2]
    assert daily_insolation(60, 172) > daily_insolation(60, 355)


def test_daily_insolation_errors():
    with pytest.raises(ValueError, match="Calendar days"):
        daily_insolation(0, 0)
    with pytest.raises(ValueError, match="Solar longitude"):
        daily_insolation(0, 400, day_type='solar_longitude')
    with pytest.raises(ValueError, match="day_type"):
        daily_insolation(0, 100, day_type='julian')


def test_solar_radiation():
    Ra = solar_radiation(['2001-03-21', '2001-06-21'], 0.0)
    assert np.allclose(Ra, [37.8, 33.4], atol=0.05)

    lat = np.array([[-30.0, 0.0, 30.0], [-80.0, 0.0, 80.0]])
    Ra = solar_radiation(['2001-06-21', '2001-12-21'], lat)
    assert Ra.shape == (2, 3, 2)
    # Polar night
    assert Ra[1, 2, 1] == pytest.approx(0.0, abs=1e-9)
    assert Ra[1, 0, 0] == pytest.approx(0.0, abs=1e-9)
    assert Ra[0, 2, 0] > Ra[0, 0, 0]


def test_sun_angle_overhead_and_night():
    az, el = sun_angle('2020-06-20 12:00', 23.44, 0.0)
    assert el > 89
    _, el = sun_angle('2020-06-20 00:00', 23.44, 0.0)
    assert el < -40


def test_sun_angle_sunrise_at_equator():
    az, el = sun_angle('2020-03-20 06:30', 0.0, 0.0)
    assert az == pytest.approx(90, abs=3)
    assert 0 < el < 15


def test_sun_angle_broadcasts_times():
    t = np.array(['2020-06-20 06:00', '2020-06-20 12:00', '2020-06-20 18:00'], dtype='datetime64[ns]')
    az, el = sun_angle(t, 45.0, 0.0)
    assert az.shape == el.shape == (3,)
    assert el[1] == el.max()
    assert 90 < az[1] < 270
    with pytest.raises(ValueError, match="lat,lon"):
        sun_angle(t, 100.0, 0.0)


# Evaporation

def test_pet_hargreaves():
    assert pet(40.0, 30.0, 20.0, 25.0) == pytest.approx(4.603, abs=1e-3)
    out = pet(np.array([40.0, 40.0]), np.array([30.0, 30.0]), np.array([20.0, 35.0]), 25.0)
    assert out.shape == (2,)
    assert np.isnan(out[1])
    # Warmer days evaporate more
    assert pet(40.0, 30.0, 20.0, 30.0) > pet(40.0, 30.0, 20.0, 25.0)
