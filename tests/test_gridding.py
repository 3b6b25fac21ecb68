import numpy as np
import pytest

from cdt_tools import C2xyz, demresize, transect, xyz2grid, xyzread


def _write_xyz(path, rows):
    path.write_text("\n".join(" ".join(str(v) for v in row) for row in rows) + "\n")
    return path


def test_xyzread(tmp_path):
    f = _write_xyz(tmp_path / "points.xyz", [(1, 10, 0.5), (2, 10, 1.5), (1, 20, 2.5)])
    x, y, z = xyzread(f)
    assert np.array_equal(x, [1, 2, 1])
    assert np.array_equal(y, [10, 10, 20])
    assert np.allclose(z, [0.5, 1.5, 2.5])
    assert z.dtype == float


def test_xyzread_passes_reader_options(tmp_path):
    f = tmp_path / "header.xyz"
    f.write_text("x y z\n1 2 3\n4\t5   6\n")
    x, y, z = xyzread(f, skiprows=1)
    assert np.array_equal(z, [3, 6])


def test_xyzread_errors(tmp_path):
    with pytest.raises(FileNotFoundError):
        xyzread(tmp_path / "missing.xyz")
    f = _write_xyz(tmp_path / "two.xyz", [(1, 2), (3, 4)])
    with pytest.raises(ValueError, match="three columns"):
        xyzread(f)


def test_xyz2grid_orientation():
    x = np.array([1, 2, 1, 2])
    y = np.array([10, 10, 20, 20])
    z = np.array([1.0, 2.0, 3.0, 4.0])
    Z = xyz2grid(x, y, z)
    assert np.array_equal(Z, [[3, 4], [1, 2]])


def test_xyz2grid_coordinates():
    x = np.array([1, 2, 3, 1, 2, 3])
    y = np.array([5, 5, 5, 6, 6, 6])
    z = np.arange(6.0)
    X, Y, Z = xyz2grid(x, y, z, return_coords=True)
    assert X.shape == Y.shape == Z.shape == (2, 3)
    assert np.array_equal(X[0], [1, 2, 3])
    assert np.array_equal(Y[:, 0], [6, 5])
    # every point lands where its coordinates say
    for xi, yi, zi in zip(x, y, z):
        assert Z[(Y == yi) & (X == xi)][0] == zi


def test_xyz2grid_duplicates_and_gaps():
    x = np.array([1, 2, 1, 1])
    y = np.array([10, 10, 20, 10])
    z = np.array([1.0, 2.0, 3.0, 4.0])
    Z = xyz2grid(x, y, z)
    assert Z[1, 0] == 5.0  # duplicate (1, 10) points are summed
    assert np.isnan(Z[0, 1])


def test_xyz2grid_from_file(tmp_path):
    f = _write_xyz(tmp_path / "grid.xyz", [(1, 10, 1), (2, 10, 2), (1, 20, 3), (2, 20, 4)])
    assert np.array_equal(xyz2grid(f), [[3, 4], [1, 2]])
    assert np.array_equal(xyz2grid(str(f)), [[3, 4], [1, 2]])


def test_xyz2grid_scattered_data_warns():
    with pytest.warns(UserWarning, match="gridded"):
        xyz2grid([1.0, 2.0, 3.0], [1.0, 2.0, 3.0], [1.0, 2.0, 3.0])


def test_xyz2grid_errors(tmp_path):
    with pytest.raises(ValueError, match="must match"):
        xyz2grid([1, 2], [1, 2], [1, 2, 3])
    with pytest.raises(ValueError, match="requires"):
        xyz2grid([1, 2])
    with pytest.raises(ValueError, match="must not be given"):
        xyz2grid(tmp_path / "grid.xyz", [1, 2], [1, 2])


def test_C2xyz_splits_contour_lines():
    C = np.array([
        [5.0, 0.0, 1.0, 2.0, 7.0, 9.0],
        [3.0, 0.5, 1.5, 2.5, 1.0, 8.0],
    ])
    x, y, z = C2xyz(C)
    assert z.tolist() == [5.0, 7.0]
    assert len(x) == len(y) == 2
    assert x[0].tolist() == [0.0, 1.0, 2.0]
    assert y[0].tolist() == [0.5, 1.5, 2.5]
    assert x[1].tolist() == [9.0]
    assert y[1].tolist() == [8.0]


def test_C2xyz_empty_and_errors():
    x, y, z = C2xyz(np.empty((2, 0)))
    assert x == [] and y == [] and z.size == 0
    with pytest.raises(ValueError, match="shape"):
        C2xyz(np.zeros((3, 4)))
    with pytest.raises(ValueError, match="matrix ends"):
        C2xyz([[1.0, 0.0], [4.0, 0.0]])
    with pytest.raises(ValueError, match="vertex count"):
        C2xyz([[1.0, 0.0], [0.5, 0.0]])


# Sections and resizing

def _profiles():
    x = [0.0, 10.0, 20.0]
    d = [np.arange(0.0, 101.0, 10.0) for _ in x]
    v = [dk + xk for dk, xk in zip(d, x)]
    return x, d, v


def test_transect_interpolates_linear_field():
    x, d, v = _profiles()
    xi, di, V = transect(x, d, v, di=[5.0, 55.0], xi=[5.0, 15.0])
    assert V.shape == (2, 2)
    assert np.allclose(V, [[10.0, 20.0], [60.0, 70.0]])


def test_transect_default_section():
    x, d, v = _profiles()
    xi, di, V = transect(x, d, v)
    assert V.shape == (1000, 2000)
    assert di[0] == 0.0 and di[-1] == 100.0
    assert xi[0] == 0.0 and xi[-1] == 20.0
    assert V[-1, -1] == pytest.approx(120.0)


def test_transect_outside_profiles():
    x, d, v = _profiles()
    _, _, V = transect(x, d, v, di=[150.0], xi=[5.0, 30.0])
    assert np.all(np.isnan(V))
    _, _, V = transect(x, d, v, di=[150.0], xi=[5.0, 30.0], extrapolate=True)
    assert np.allclose(V, [[155.0, 180.0]])


def test_transect_shallow_profile():
    x, d, v = _profiles()
    d[1] = np.array([0.0, 10.0, 20.0])
    v[1] = d[1] + 10.0
    _, _, V = transect(x, d, v, di=[15.0, 50.0], xi=[5.0, 15.0])
    assert np.allclose(V[0], [20.0, 30.0])
    assert np.all(np.isnan(V[1]))


def test_transect_errors():
    x, d, v = _profiles()
    with pytest.raises(ValueError, match="same number of profiles"):
        transect(x[:2], d, v)
    with pytest.raises(ValueError, match="profile 1"):
        transect(x, d, [v[0], v[1][:-1], v[2]])
    with pytest.raises(ValueError, match="method"):
        transect(x, d, v, method='spline')


def test_demresize():
    x = np.arange(0.5, 100)
    y = np.arange(49.5, 0, -1)
    Z = np.full((50, 100), 3.0)
    Zr, xr, yr = demresize(Z, x, y, 0.5, order=1)
    assert Zr.shape == (25, 50)
    assert np.allclose(Zr, 3.0)
    assert xr[0] == pytest.approx(1.0) and xr[-1] == pytest.approx(99.0)
    assert yr[0] == pytest.approx(49.0) and yr[-1] == pytest.approx(1.0)

    Zr, xr, yr = demresize(Z, x, y, 2)
    assert Zr.shape == (100, 200)
    assert xr[0] == pytest.approx(0.25)


def test_demresize_meshgrid_input():
    X, Y = np.meshgrid(np.arange(10.0), np.arange(8.0))
    Zr, Xr, Yr = demresize(np.random.rand(8, 10), X, Y, 0.5)
    assert Zr.shape == Xr.shape == Yr.shape == (4, 5)
    assert np.all(Xr[0] == Xr[-1])


def test_demresize_errors():
    x = np.arange(10.0)
    with pytest.raises(ValueError, match="2-D grid"):
        demresize(np.zeros(10), x, x, 0.5)
    with pytest.raises(ValueError, match="positive"):
        demresize(np.zeros((10, 10)), x, x, -1)
    with pytest.raises(ValueError, match="must match"):
        demresize(np.zeros((10, 10)), x[:5], x, 0.5)
