import numpy as np
import pandas as pd
import pytest
from scipy import stats

from cdt_tools import (
    cdtgrid,
    cdtmean,
    corr3,
    detrend3,
    ensemble2bnd,
    eof,
    filt1,
    local,
    mann_kendall,
    monthly,
    polyfitw,
    reof,
    scatstat1,
    scatstat2,
    standardize,
    trend,
    ts_normstrap,
    wmean,
    xcorr3,
    xcov3,
)


# Trends

def test_trend_of_line():
    y = 3 * np.arange(20) + 5
    assert trend(y) == pytest.approx(3.0)
    assert trend(y, fs=12) == pytest.approx(36.0)
    assert trend(y, np.arange(20) * 2.0) == pytest.approx(1.5)


def test_trend_cube_and_nan():
    rng = np.random.default_rng(0)
    A = rng.random((4, 5, 30)) + 0.5 * np.arange(30)
    A[0, 0, 3] = np.nan
    tr = trend(A)
    assert tr.shape == (4, 5)
    assert np.isnan(tr[0, 0])
    assert np.allclose(tr[1:], 0.5, atol=0.05)


def test_trend_pvalue():
    rng = np.random.default_rng(1)
    y = np.arange(50.0) + rng.normal(size=50)
    tr, p = trend(y, return_pvalue=True)
    assert tr == pytest.approx(1.0, abs=0.1)
    assert p < 1e-6


def test_trend_along_explicit_axis():
    A = np.tile(np.arange(10.0)[:, np.newaxis], (1, 3))
    assert np.allclose(trend(A, axis=0), 1.0)


def test_mann_kendall_increasing_series():
    h, p = mann_kendall(np.arange(30.0))
    assert h is True
    assert p < 0.05


def test_mann_kendall_decreasing_series():
    result = mann_kendall(-np.arange(30.0))
    assert result.h
    assert result.p < 0.05


def test_mann_kendall_pvalue_uses_continuity_correction():
    n = 10
    S = n * (n - 1) / 2
    sd = np.sqrt(n * (n - 1) * (2 * n + 5) / 18)
    expected = 2 * stats.norm.sf((S - 1) / sd)
    _, p = mann_kendall(np.arange(float(n)))
    assert p == pytest.approx(expected)


def test_mann_kendall_constant_series():
    h, p = mann_kendall(np.ones(20))
    assert h is False
    assert p == pytest.approx(1.0)


def test_mann_kendall_noise_mostly_fails_to_reject():
    rng = np.random.default_rng(42)
    cube = rng.normal(size=(10, 20, 50))
    h, p = mann_kendall(cube)
    assert h.shape == (10, 20)
    assert h.dtype == bool
    assert h.mean() < 0.15


def test_mann_kendall_nan_series():
    y = np.stack([np.arange(20.0), np.r_[np.nan, np.arange(19.0)]], axis=1)
    h, p = mann_kendall(y, axis=0)
    assert h.tolist() == [True, False]
    assert np.isnan(p[1])


def test_mann_kendall_rejects_bad_alpha():
    with pytest.raises(ValueError, match="alpha"):
        mann_kendall(np.arange(10.0), alpha=1.5)


def test_detrend3_removes_trend():
    rng = np.random.default_rng(2)
    A = rng.random((5, 6, 40)) + np.arange(40)
    Ad = detrend3(A)
    assert Ad.shape == A.shape
    assert np.allclose(trend(Ad), 0, atol=1e-10)


def test_detrend3_nan_handling():
    rng = np.random.default_rng(3)
    A = rng.random((3, 4, 20)) + np.arange(20)
    A[0, 0, 5] = np.nan
    strict = detrend3(A)
    assert np.all(np.isnan(strict[0, 0]))
    lenient = detrend3(A, omitnan=True)
    assert np.isnan(lenient[0, 0, 5])
    assert np.isfinite(np.delete(lenient[0, 0], 5)).all()


def test_detrend3_joblib_matches_serial():
    rng = np.random.default_rng(4)
    A = rng.random((4, 5, 25)) + np.arange(25)
    serial = detrend3(A, parallel_method='serial')
    parallel = detrend3(A, parallel_method='joblib', n_jobs=2)
    assert np.allclose(serial, parallel)


def test_detrend3_rejects_2d():
    with pytest.raises(ValueError, match="3 dimensional"):
        detrend3(np.ones((4, 5)))


# Correlation

def test_corr3():
    rng = np.random.default_rng(5)
    y = np.sin(np.linspace(0, 10, 100))
    X = y + 0.05 * rng.normal(size=(5, 6, 100))
    X[2, 2, 10] = np.nan
    r, p = corr3(X, y)
    assert r.shape == (5, 6)
    assert np.isnan(r[2, 2])
    finite = np.isfinite(r)
    assert np.all(r[finite] > 0.9)
    assert np.all(p[finite] < 1e-6)


def test_corr3_detrend():
    t = np.arange(60.0)
    y = np.sin(t) + t
    X = np.broadcast_to(np.sin(t) + 2 * t, (2, 3, 60))
    r, _ = corr3(X, y, detrend=True)
    assert np.allclose(r, 1.0)


def test_corr3_rejects_bad_input():
    with pytest.raises(ValueError, match="3 dimensional"):
        corr3(np.ones((4, 5)), np.ones(5))
    with pytest.raises(ValueError, match="must match"):
        corr3(np.ones((2, 2, 10)), np.ones(9))


# Summary statistics

def test_standardize():
    Xs, mu = standardize([1.0, 2.0, 3.0], return_stats=True)
    assert np.allclose(Xs, [-1, 0, 1])
    assert np.allclose(mu, [2, 1])


def test_standardize_cube_and_nan_policy():
    rng = np.random.default_rng(6)
    A = rng.normal(5, 2, size=(3, 4, 50))
    As = standardize(A)
    assert np.allclose(As.mean(axis=2), 0)
    assert np.allclose(As.std(axis=2, ddof=1), 1)

    y = np.array([1.0, np.nan, 3.0])
    assert np.all(np.isnan(standardize(y)))
    assert np.allclose(standardize(y, nan_policy='omit')[[0, 2]], [-1 / np.sqrt(2), 1 / np.sqrt(2)])


def test_wmean():
    assert wmean([1.0, 2.0, 3.0], [1.0, 0.0, 1.0]) == pytest.approx(2.0)
    A = np.array([[1.0, 2.0], [3.0, 4.0]])
    assert wmean(A, np.ones_like(A), axis='all') == pytest.approx(2.5)
    assert np.allclose(wmean(A, np.ones_like(A), axis=1), [1.5, 3.5])


def test_wmean_nan_policy():
    A = np.array([1.0, np.nan, 3.0])
    w = np.ones(3)
    assert np.isnan(wmean(A, w))
    assert wmean(A, w, nan_policy='omit') == pytest.approx(2.0)


def test_wmean_weight_checks():
    with pytest.raises(ValueError, match="All weights are zero"):
        wmean([1.0, 2.0], [0.0, 0.0])
    with pytest.warns(UserWarning, match="negative"):
        wmean([1.0, 2.0], [-1.0, 2.0])
    with pytest.raises(ValueError, match="must agree"):
        wmean([1.0, 2.0], [1.0])


def test_local_mean_and_custom_statistic():
    rng = np.random.default_rng(7)
    A = rng.random((10, 12, 40))
    mask = np.zeros((10, 12), dtype=bool)
    mask[2:5, 3:8] = True
    y = local(A, mask)
    assert y.shape == (40,)
    assert np.allclose(y, A[2:5, 3:8].reshape(-1, 40).mean(axis=0))
    assert np.allclose(local(A, mask, func=np.max), A[2:5, 3:8].reshape(-1, 40).max(axis=0))


def test_local_weighted():
    A = np.stack([np.ones((2, 2)), 3 * np.ones((2, 2))], axis=2)
    A[0, 0, :] = 10.0
    weights = np.array([[0.0, 1.0], [1.0, 1.0]])
    assert np.allclose(local(A, weights=weights), [1.0, 3.0])
    with pytest.raises(ValueError, match="default mean"):
        local(A, weights=weights, func=np.max)


def test_local_nan_policy():
    A = np.ones((2, 2, 3))
    A[0, 0, 1] = np.nan
    assert np.isnan(local(A)[1])
    assert local(A, nan_policy='omit')[1] == pytest.approx(1.0)


def test_monthly():
    t = pd.date_range('2000-01-01', periods=24, freq='MS')
    assert monthly(np.arange(24.0), t, [12, 1, 2]) == pytest.approx(10.0)
    cube = np.broadcast_to(np.arange(24.0), (2, 3, 24))
    assert np.allclose(monthly(cube, t, 7), 12.0)
    assert np.allclose(monthly(cube, t, 7, func=np.max), 18.0)


def test_monthly_accepts_any_time_input():
    t = pd.date_range('2000-01-01', periods=24, freq='MS')
    x = np.arange(24.0)
    expected = monthly(x, t, [12, 1, 2])
    assert monthly(x, t.values.astype('datetime64[s]'), [12, 1, 2]) == pytest.approx(expected)
    assert monthly(x, [str(d.date()) for d in t], [12, 1, 2]) == pytest.approx(expected)


def test_monthly_rejects_bad_months():
    t = pd.date_range('2000-01-01', periods=12, freq='MS')
    with pytest.raises(ValueError, match="integers 1 through 12"):
        monthly(np.arange(12.0), t, 13)


# EOFs

def _rank_one_cube(rows, cols, n_time, seed=8):
    rng = np.random.default_rng(seed)
    pattern = rng.normal(size=(rows, cols))
    series = np.sin(np.linspace(0, 6 * np.pi, n_time))
    return pattern[:, :, np.newaxis] * series + 1e-3 * rng.normal(size=(rows, cols, n_time))


def test_eof_leading_mode_dominates():
    A = _rank_one_cube(8, 9, 50)
    maps, pc, expvar = eof(A, 3)
    assert maps.shape == (8, 9, 3)
    assert pc.shape == (3, 50)
    assert expvar.shape == (3,)
    assert expvar[0] > 99
    assert np.all(np.diff(expvar) <= 0)
    assert np.all(pc[:, 0] >= 0)


def test_eof_explained_variance_sums_to_100():
    temporal = eof(_rank_one_cube(8, 9, 20))
    spatial = eof(_rank_one_cube(2, 3, 40))
    assert temporal.expvar.sum() == pytest.approx(100)
    assert spatial.expvar.sum() == pytest.approx(100)
    assert spatial.maps.shape == (2, 3, 6)


def test_eof_mask_and_errors():
    A = _rank_one_cube(4, 5, 30)
    A[0, 0, 0] = np.nan
    result = eof(A, 2)
    assert np.all(np.isnan(result.maps[0, 0]))
    with pytest.raises(ValueError, match="must not contain NaN"):
        eof(A, 2, mask=np.ones((4, 5), dtype=bool))
    with pytest.raises(ValueError, match="cannot exceed"):
        eof(A, 31)


# Filtering

def _two_tone():
    t = np.arange(0, 10, 0.01)
    slow = np.sin(2 * np.pi * t)
    fast = np.sin(2 * np.pi * 20 * t)
    return t, slow, fast


def test_filt1_lowpass_and_highpass():
    t, slow, fast = _two_tone()
    y = slow + fast
    low = filt1('lp', y, fc=5, fs=100, order=4)
    high = filt1('high', y, fc=5, fs=100, order=4)
    assert np.allclose(low[100:-100], slow[100:-100], atol=0.05)
    assert np.allclose(high[100:-100], fast[100:-100], atol=0.05)


def test_filt1_cutoff_and_sampling_equivalents():
    t, slow, fast = _two_tone()
    y = slow + fast
    ref = filt1('low', y, fc=5, fs=100)
    assert np.allclose(filt1('low', y, tc=0.2, fs=100), ref)
    assert np.allclose(filt1('low', y, fc=5, ts=0.01), ref)
    assert np.allclose(filt1('low', y, fc=5, x=t), ref)


def test_filt1_bandpass_and_coefficients():
    t, slow, fast = _two_tone()
    yf, b, a = filt1('bp', slow + fast, fc=[10, 30], fs=100, order=2, return_coefficients=True)
    assert yf.shape == t.shape
    assert b.size == a.size == 5
    assert np.allclose(yf[200:-200], fast[200:-200], atol=0.1)


def test_filt1_nan_columns():
    _, slow, fast = _two_tone()
    y = np.stack([slow + fast, slow + fast], axis=1)
    y[10, 1] = np.nan
    yf = filt1('low', y, fc=5, fs=100, order=4)
    assert np.all(np.isfinite(yf[:, 0]))
    assert np.all(np.isnan(yf[:, 1]))


def test_filt1_errors():
    y = np.random.rand(100)
    with pytest.raises(ValueError, match="exactly one"):
        filt1('low', y, fc=5, tc=0.2, fs=100)
    with pytest.raises(ValueError, match="Nyquist"):
        filt1('low', y, fc=60, fs=100)
    with pytest.raises(ValueError, match="low and a high"):
        filt1('bandpass', y, fc=5, fs=100)
    with pytest.raises(ValueError, match="filtertype"):
        filt1('notch', y, fc=5, fs=100)


# Lagged correlation

def test_xcorr3_lag_sign():
    rng = np.random.default_rng(7)
    ref = rng.standard_normal(80)
    A = rng.standard_normal((3, 4, 80))
    A[0, 1] = np.roll(ref, 3)   # lags the reference
    A[2, 3] = np.roll(ref, -2)  # leads the reference
    res = xcorr3(A, ref, maxlag=10)
    assert res.r.shape == res.rmax.shape == res.lags.shape == (3, 4)
    assert res.lags[0, 1] == -3
    assert res.lags[2, 3] == 2
    assert res.rmax[0, 1] > 0.85
    assert abs(res.r[0, 1]) < 0.5
    assert np.all(np.abs(res.lags) <= 10)


def test_xcorr3_identical_series():
    ref = np.sin(np.linspace(0, 6 * np.pi, 60))
    A = np.tile(ref, (2, 2, 1))
    res = xcorr3(A, ref)
    assert np.allclose(res.r, 1.0)
    assert np.all(res.lags == 0)


def test_xcov3_removes_means():
    rng = np.random.default_rng(8)
    ref = rng.standard_normal(50)
    A = np.empty((1, 2, 50))
    A[0, 0] = 2 * ref + 5
    A[0, 1] = -ref
    res = xcov3(A, ref, maxlag=0)
    assert res.r[0, 0] == pytest.approx(2 * np.var(ref))
    assert res.r[0, 1] == pytest.approx(-np.var(ref))
    assert np.all(res.lags == 0)


def test_xcorr3_mask_and_errors():
    rng = np.random.default_rng(9)
    ref = rng.standard_normal(30)
    A = rng.standard_normal((2, 3, 30))
    A[1, 2, 5] = np.nan
    res = xcorr3(A, ref, maxlag=5)
    assert np.isnan(res.r[1, 2])
    assert np.isfinite(res.r[0, 0])

    empty = xcorr3(A, ref, mask=np.zeros((2, 3), dtype=bool))
    assert np.all(np.isnan(empty.rmax))

    with pytest.raises(ValueError, match="maxlag"):
        xcorr3(A, ref, maxlag=30)
    with pytest.raises(ValueError, match="third dimension"):
        xcorr3(A, ref[:-1])
    with pytest.raises(ValueError, match="3 dimensional"):
        xcov3(A[0], ref)


# Area-weighted means

def test_cdtmean_grid_and_cube():
    lat, lon = cdtgrid(2)
    assert cdtmean(lat, lon, np.full(lat.shape, 3.0)) == pytest.approx(3.0)
    assert cdtmean(lat, lon, np.cos(np.deg2rad(lat))) == pytest.approx(np.pi / 4, abs=1e-3)

    cube = np.stack([np.full(lat.shape, k, dtype=float) for k in range(4)], axis=2)
    series = cdtmean(lat, lon, cube)
    assert np.allclose(series, [0, 1, 2, 3])


def test_cdtmean_mask_and_nan_policy():
    lat, lon = cdtgrid(2)
    A = (lat > 0).astype(float)
    assert cdtmean(lat, lon, A, lat > 0) == pytest.approx(1.0)
    # Hemispheres have equal area
    assert cdtmean(lat, lon, A) == pytest.approx(0.5)

    A[0, 0] = np.nan
    assert np.isnan(cdtmean(lat, lon, A))
    assert np.isfinite(cdtmean(lat, lon, A, nan_policy='omit'))

    with pytest.raises(ValueError, match="first two dimensions"):
        cdtmean(lat, lon, A[:-1])


# EOF reconstruction

def test_reof_reconstructs_anomalies():
    rng = np.random.default_rng(10)
    A = rng.standard_normal((4, 5, 40))
    maps, pc, _ = eof(A)
    assert np.allclose(reof(maps, pc), A - A.mean(axis=2, keepdims=True))


def test_reof_single_mode():
    rng = np.random.default_rng(11)
    maps = rng.standard_normal((3, 4, 5))
    pc = rng.standard_normal((5, 20))
    single = reof(maps, pc, 2)
    assert single.shape == (3, 4, 20)
    assert np.allclose(single, maps[:, :, 2, np.newaxis] * pc[2])
    assert np.allclose(reof(maps, pc, [0, 1]), reof(maps, pc, 0) + reof(maps, pc, 1))

    with pytest.raises(ValueError, match="modes"):
        reof(maps, pc, 5)
    with pytest.raises(ValueError, match="Principal components"):
        reof(maps, pc[:4])


# Weighted polynomial fits

def test_polyfitw_equal_weights_matches_polyfit():
    rng = np.random.default_rng(12)
    x = np.linspace(0, 10, 30)
    y = 0.5 * x**2 - x + rng.standard_normal(30)
    assert np.allclose(polyfitw(x, y, 2), np.polyfit(x, y, 2))
    assert np.allclose(polyfitw(x, y, 2, np.full(30, 7.0)), np.polyfit(x, y, 2))


def test_polyfitw_downweights_outlier():
    x = np.arange(6.0)
    y = 3 * x - 2
    y[2] = 50.0
    w = np.ones(6)
    w[2] = 1e-10
    assert np.allclose(polyfitw(x, y, 1, w), [3, -2], atol=1e-3)


def test_polyfitw_scaled():
    x = np.linspace(1000, 1010, 11)
    y = 2 * x + 1
    p, mu = polyfitw(x, y, 1, scale=True)
    assert mu[0] == pytest.approx(1005)
    assert mu[1] == pytest.approx(np.std(x, ddof=1))
    assert np.allclose(np.polyval(p, (x - mu[0]) / mu[1]), y)

    with pytest.raises(ValueError, match="Weights"):
        polyfitw(x, y, 1, np.ones(3))


# Scattered data

def test_scatstat1_mean_and_custom_function():
    x = [0.0, 1.0, 2.0, 10.0]
    y = [1.0, 2.0, 3.0, 4.0]
    assert np.allclose(scatstat1(x, y, 1.0), [1.5, 2.0, 2.5, 4.0])
    assert np.allclose(scatstat1(x, y, 1.0, np.max), [2.0, 3.0, 3.0, 4.0])
    assert np.allclose(scatstat1(x, y, 0.0), y)


def test_scatstat1_nan_location_and_errors():
    out = scatstat1([0.0, np.nan, 0.5], [1.0, 5.0, 3.0], 1.0)
    assert np.isnan(out[1])
    assert np.allclose(out[[0, 2]], 2.0)
    with pytest.raises(ValueError, match="radius"):
        scatstat1([0.0, 1.0], [1.0, 2.0], -1)
    with pytest.raises(ValueError, match="same size"):
        scatstat1([0.0, 1.0], [1.0], 1)


def test_scatstat2():
    zbar = scatstat2([0, 3, 0], [0, 4, 1], [2.0, 6.0, 4.0], 2)
    assert np.allclose(zbar, [3.0, 6.0, 3.0])
    # Exactly 5 apart
    assert np.allclose(scatstat2([0, 3], [0, 4], [2.0, 6.0], 5), [4.0, 4.0])
    grid = scatstat2(np.zeros((2, 2)), np.zeros((2, 2)), np.arange(4.0).reshape(2, 2), 1, np.sum)
    assert grid.shape == (2, 2)
    assert np.all(grid == 6.0)


# Ensembles and bootstrapping

def test_ensemble2bnd_range():
    y = np.tile(np.arange(11.0), (3, 1))
    b = ensemble2bnd(y)
    assert np.allclose(b.cent, 5.0)
    assert b.bndlo.shape == b.bndhi.shape == (3, 1)
    assert np.allclose(b.bndlo, 0.0)
    assert np.allclose(b.bndhi, 10.0)
    assert np.allclose(b.errlo, 5.0)
    assert np.allclose(b.errhi, 5.0)


def test_ensemble2bnd_bands_outermost_first():
    y = np.arange(11.0)[np.newaxis, :]
    b = ensemble2bnd(y, prc=(90, 10, 25, 75))
    assert np.allclose(b.bndlo[0], [1.0, 2.5])
    assert np.allclose(b.bndhi[0], [9.0, 7.5])


def test_ensemble2bnd_median_and_axis():
    y = np.array([[0.0, 1.0, 2.0, 100.0], [1.0, 1.0, 1.0, np.nan]])
    b = ensemble2bnd(y, center='median')
    assert np.allclose(b.cent, [1.5, 1.0])
    assert b.bndhi[1, 0] == 1.0
    members_first = ensemble2bnd(y.T, axis=0, center='median')
    assert np.allclose(members_first.cent, b.cent)
    assert np.allclose(members_first.bndhi, b.bndhi)


def test_ensemble2bnd_errors():
    y = np.random.rand(5, 4)
    with pytest.raises(ValueError, match="even number"):
        ensemble2bnd(y, prc=(5, 50, 95))
    with pytest.raises(ValueError, match="0..100"):
        ensemble2bnd(y, prc=(-5, 105))
    with pytest.raises(ValueError, match="center"):
        ensemble2bnd(y, center='mode')


def test_ts_normstrap_spread():
    ts = np.sin(np.linspace(0, 6, 20))
    tsb, Nts = ts_normstrap(ts, 2.0, nboot=5000, seed=0)
    assert Nts.shape == (20, 5000)
    assert np.allclose(tsb, 2.0, rtol=0.1)
    assert np.allclose(Nts.mean(axis=1), ts, atol=0.2)


def test_ts_normstrap_errors_per_sample():
    ts = np.arange(5.0)
    tsb, Nts = ts_normstrap(ts, [0, 0, 1, 1, 1], nboot=200, seed=1)
    assert np.all(tsb[:2] == 0)
    assert np.array_equal(Nts[0], np.zeros(200))
    assert np.all(tsb[2:] > 0)


def test_ts_normstrap_default_error_and_seed():
    ts = np.array([1.0, 3.0, 2.0, 5.0, np.nan])
    a, _ = ts_normstrap(ts, nboot=100, seed=3)
    b, _ = ts_normstrap(ts, nboot=100, seed=3)
    assert np.array_equal(a, b)
    assert np.isnan(a[-1])
    assert np.all(a[:-1] > 0)


def test_ts_normstrap_errors():
    with pytest.raises(ValueError, match="vector"):
        ts_normstrap(np.zeros((3, 3)))
    with pytest.raises(ValueError, match="Length of e"):
        ts_normstrap(np.zeros(4), [1.0, 2.0])
    with pytest.raises(ValueError, match="nboot"):
        ts_normstrap(np.zeros(4), nboot=0)
