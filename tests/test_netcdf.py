from dataclasses import replace

import netCDF4
import numpy as np
import pandas as pd
import pytest
import xarray as xr

from cdt_tools import (
    attribstruct,
    dimstruct,
    ncaddhis,
    ncbuild,
    ncdatelim,
    ncdateread,
    ncschema_adddims,
    ncschema_addatts,
    ncschema_addvars,
    ncschema_init,
    ncschema_read,
    ncstruct,
    ncwriteschema,
    schema_to_dataset,
    updatencschema,
    varstruct,
)
from cdt_tools.netcdf import NcDimension


def _sst_schema(fmt='netcdf4'):
    schema = ncschema_init(fmt)
    schema = ncschema_adddims(schema, 'lon', 4, False, 'lat', 3, False, 'time', 2, True)
    schema = ncschema_addvars(schema, 'lat', ['lat'], {'units': 'degrees_north'}, 'double')
    schema = ncschema_addvars(schema, 'sst', ['time', 'lat', 'lon'],
                              {'units': 'degC', 'valid_range': [-2.0, 40.0]}, 'single')
    return ncschema_addatts(schema, 'title', 'Sea surface temperature', 'version', 2)


def test_dimstruct():
    dims = dimstruct('lat', 180, False, 'time', 0, True)
    assert dims[1] == NcDimension(name='time', length=0, unlimited=True)


def test_dimstruct_errors():
    with pytest.raises(ValueError, match="triplets"):
        dimstruct('lat', 180)
    with pytest.raises(TypeError, match="non-negative integer"):
        dimstruct('lat', -1, False)
    with pytest.raises(TypeError, match="non-negative integer"):
        dimstruct('lat', True, False)
    with pytest.raises(TypeError, match="boolean"):
        dimstruct('lat', 10, 'no')


def test_attribstruct():
    atts = attribstruct('units', 'm', 'scale', 0.5, 'range', [0, 10])
    assert [a.name for a in atts] == ['units', 'scale', 'range']
    with pytest.raises(TypeError, match="numeric vector"):
        attribstruct('bad', ['a', 'b'])
    with pytest.raises(ValueError, match="pairs"):
        attribstruct('units')


def test_varstruct():
    var = varstruct('depth', ['lat', 'lon'], ['units', 'm'], 'single')
    assert var.datatype == 'single'
    assert [d.name for d in var.dimensions] == ['lat', 'lon']
    assert var.dimensions[0].length is None
    with pytest.raises(ValueError, match="dtype"):
        varstruct('depth', ['lat'], None, 'float128')


def test_schema_builders_do_not_mutate():
    empty = ncschema_init()
    assert empty.format == 'classic'
    with_dims = ncschema_adddims(empty, 'x', 5, False)
    assert empty.dimensions == ()
    assert with_dims.dimension('x').length == 5


def test_ncschema_addvars_resolves_dimensions():
    schema = _sst_schema()
    sst = schema.variables[1]
    assert sst.shape == (2, 3, 4)
    assert sst.dimensions[0].unlimited


def test_schema_errors():
    schema = _sst_schema()
    with pytest.raises(ValueError, match="already exists"):
        ncschema_adddims(schema, 'lat', 10, False)
    with pytest.raises(ValueError, match="not defined"):
        ncschema_addvars(schema, 'depth', ['z'], None, 'double')
    with pytest.raises(ValueError, match="already exists"):
        ncschema_addvars(schema, 'sst', ['lat'], None, 'double')
    with pytest.raises(ValueError, match="format"):
        ncschema_init('hdf5')


def test_schema_to_dataset():
    ds = schema_to_dataset(_sst_schema())
    assert ds['sst'].dims == ('time', 'lat', 'lon')
    assert ds['sst'].dtype == np.float32
    assert np.all(ds['sst'].values == np.float32(netCDF4.default_fillvals['f4']))
    assert ds['sst'].attrs['units'] == 'degC'
    assert ds.attrs['title'] == 'Sea surface temperature'


def test_dimensionless_variable_with_length():
    schema = ncschema_addvars(ncschema_init('netcdf4'), 'name', [], None, 'char', 8)
    ds = schema_to_dataset(schema)
    assert ds['name'].dims == ('name_length',)
    assert ds['name'].shape == (8,)


@pytest.mark.parametrize('fmt', ['classic', 'netcdf4'])
def test_ncwriteschema(tmp_path, fmt):
    path = tmp_path / f"sst_{fmt}.nc"
    ncwriteschema(path, _sst_schema(fmt))
    with xr.open_dataset(path) as ds:
        assert ds.sizes['lon'] == 4
        assert ds.sizes['time'] == 2
        assert ds.attrs['title'] == 'Sea surface temperature'
        assert np.all(np.isnan(ds['sst'].values))
    with netCDF4.Dataset(str(path)) as nc:
        assert nc.dimensions['time'].isunlimited()
        assert not nc.dimensions['lat'].isunlimited()
        assert nc['sst'].dimensions == ('time', 'lat', 'lon')


@pytest.mark.parametrize('fmt', ['classic', '64bit'])
def test_classic_formats_need_leading_record_dimension(fmt):
    schema = ncschema_adddims(ncschema_init(fmt), 'lat', 3, False, 'time', 2, True)
    with pytest.raises(ValueError, match="must be the first dimension"):
        ncschema_addvars(schema, 'sst', ['lat', 'time'], None, 'single')


def test_netcdf4_allows_trailing_unlimited_dimension(tmp_path):
    schema = ncschema_adddims(ncschema_init('netcdf4'), 'lat', 3, False, 'time', 2, True)
    schema = ncschema_addvars(schema, 'sst', ['lat', 'time'], None, 'single')
    path = tmp_path / "trailing.nc"
    ncwriteschema(path, schema)
    with netCDF4.Dataset(str(path)) as nc:
        assert nc['sst'].dimensions == ('lat', 'time')
        assert nc.dimensions['time'].isunlimited()


@pytest.mark.parametrize('fmt', ['classic', 'netcdf4'])
def test_ncwriteschema_writes_unused_dimensions(tmp_path, fmt):
    schema = ncschema_init(fmt)
    schema = ncschema_adddims(schema, 'lat', 3, False, 'nv', 2, False, 'time', 0, True)
    schema = ncschema_addvars(schema, 'lat', ['lat'], {'units': 'degrees_north'}, 'double')
    path = tmp_path / f"bounds_{fmt}.nc"
    ncwriteschema(path, schema)
    with netCDF4.Dataset(str(path)) as nc:
        assert set(nc.dimensions) == {'lat', 'nv', 'time'}
        assert len(nc.dimensions['nv']) == 2
        assert not nc.dimensions['nv'].isunlimited()
        assert nc.dimensions['time'].isunlimited()
        assert len(nc.dimensions['time']) == 0


def _write_time_file(path, values, units='days since 2000-01-01'):
    attrs = {} if units is None else {'units': units}
    xr.Dataset({'time': ('time', np.asarray(values, dtype=float), attrs)}).to_netcdf(path)
    return path


def test_ncdateread(tmp_path):
    path = _write_time_file(tmp_path / "t.nc", [0, 1, 2])
    dt, t, unit, refdate = ncdateread(path)
    assert dt[0] == pd.Timestamp('2000-01-01')
    assert dt[-1] == pd.Timestamp('2000-01-03')
    assert np.array_equal(t, [0, 1, 2])
    assert unit == 'days'
    assert refdate == pd.Timestamp('2000-01-01')


def test_ncdateread_multiple_files(tmp_path):
    first = _write_time_file(tmp_path / "a.nc", [0, 1])
    second = _write_time_file(tmp_path / "b.nc", [2, 3])
    dt, t, _, _ = ncdateread([first, second])
    assert t.size == 4
    assert dt[-1] == pd.Timestamp('2000-01-04')


def test_ncdateread_requires_units(tmp_path):
    path = _write_time_file(tmp_path / "nounits.nc", [0, 1], units=None)
    with pytest.raises(ValueError, match="units"):
        ncdateread(path)


# Schema maintenance

def test_updatencschema_refreshes_variable_dimensions():
    schema = _sst_schema()
    lon = replace(schema.dimension('lon'), length=8)
    schema = replace(schema, dimensions=tuple(lon if d.name == 'lon' else d for d in schema.dimensions))
    assert schema.variables[1].shape == (2, 3, 4)
    updated = updatencschema(schema)
    assert updated.variables[1].shape == (2, 3, 8)
    assert updated.variables[0].shape == (3,)


def test_updatencschema_missing_dimension():
    schema = _sst_schema()
    schema = replace(schema, dimensions=tuple(d for d in schema.dimensions if d.name != 'lat'))
    with pytest.raises(ValueError, match="lat"):
        updatencschema(schema)
    with pytest.raises(TypeError):
        updatencschema({'Variables': []})


@pytest.mark.parametrize('fmt', ['classic', 'netcdf4'])
def test_ncschema_read(tmp_path, fmt):
    path = tmp_path / f"read_{fmt}.nc"
    ncwriteschema(path, _sst_schema(fmt))
    schema = ncschema_read(path)
    assert schema.format == fmt
    assert {d.name for d in schema.dimensions} == {'lon', 'lat', 'time'}
    assert schema.dimension('time') == NcDimension('time', 2, True)
    variables = {v.name: v for v in schema.variables}
    assert variables['sst'].datatype == 'single'
    assert variables['sst'].shape == (2, 3, 4)
    assert variables['lat'].datatype == 'double'
    assert 'units' in {a.name for a in variables['sst'].attributes}
    assert '_FillValue' not in {a.name for a in variables['sst'].attributes}
    assert {a.name for a in schema.attributes} >= {'title', 'version'}

    copy = tmp_path / f"copy_{fmt}.nc"
    ncwriteschema(copy, schema)
    with netCDF4.Dataset(str(copy)) as nc:
        assert nc['sst'].dimensions == ('time', 'lat', 'lon')
        assert nc.dimensions['time'].isunlimited()


# Reading and writing variables

def _write_record_file(path, times, nlat=3):
    times = np.asarray(times, dtype=float)
    sst = 10 * times[:, np.newaxis] + np.arange(nlat)
    xr.Dataset({
        'time': ('time', times, {'units': 'days since 2000-01-01'}),
        'lat': ('lat', 10.0 * np.arange(nlat)),
        'sst': (('time', 'lat'), sst),
    }).to_netcdf(path, unlimited_dims=['time'])
    return path


def test_ncstruct_single_file(tmp_path):
    path = _write_record_file(tmp_path / "a.nc", [0, 1])
    data = ncstruct(path)
    assert set(data) == {'time', 'lat', 'sst'}
    assert data['sst'].shape == (2, 3)
    assert np.array_equal(data['time'], [0, 1])

    data = ncstruct(path, 'sst', subset={'lat': (1, None, 1)})
    assert set(data) == {'sst'}
    assert np.array_equal(data['sst'], [[1, 2], [11, 12]])


def test_ncstruct_concatenates_record_dimension(tmp_path):
    a = _write_record_file(tmp_path / "a.nc", [0, 1])
    b = _write_record_file(tmp_path / "b.nc", [2, 3, 4])
    data = ncstruct([a, b], 'sst', 'lat', 'time')
    assert data['sst'].shape == (5, 3)
    assert np.array_equal(data['sst'][:, 0], [0, 10, 20, 30, 40])
    assert np.array_equal(data['lat'], [0, 10, 20])
    assert np.array_equal(data['time'], [0, 1, 2, 3, 4])


def test_ncstruct_subset_across_files(tmp_path):
    a = _write_record_file(tmp_path / "a.nc", [0, 1])
    b = _write_record_file(tmp_path / "b.nc", [2, 3, 4])
    data = ncstruct([a, b], 'time', subset={'time': (1, 3, 1)})
    assert np.array_equal(data['time'], [1, 2, 3])
    data = ncstruct([a, b], 'sst', subset={'time': (0, None, 2), 'lat': (0, None, 2)})
    assert np.array_equal(data['sst'], [[0, 2], [20, 22], [40, 42]])
    # Records only in the first file
    data = ncstruct([a, b], 'time', subset={'time': (0, 2, 1)})
    assert np.array_equal(data['time'], [0, 1])


def test_ncstruct_dimensions_shortcut(tmp_path):
    path = _write_record_file(tmp_path / "a.nc", [0, 1])
    assert set(ncstruct(path, 'dimensions')) == {'time', 'lat'}
    assert set(ncstruct(path, 'dimensions', 'sst')) == {'time', 'lat', 'sst'}


def test_ncstruct_errors(tmp_path):
    path = _write_record_file(tmp_path / "a.nc", [0, 1])
    with pytest.raises(ValueError, match="not found"):
        ncstruct(path, 'salinity')
    with pytest.raises(ValueError, match="do not match"):
        ncstruct(path, subset={'depth': (0, None, 1)})
    with pytest.raises(ValueError, match="start, count, stride"):
        ncstruct(path, subset={'lat': (0, 1)})
    with pytest.raises(FileNotFoundError):
        ncstruct(tmp_path / "missing.nc")

    fixed = tmp_path / "fixed.nc"
    xr.Dataset({'x': ('x', np.arange(3.0))}).to_netcdf(fixed)
    with pytest.raises(ValueError, match="No unlimited dimension"):
        ncstruct([fixed, fixed])


def test_ncdatelim(tmp_path):
    a = _write_time_file(tmp_path / "a.nc", [0, 1, 2])
    b = _write_time_file(tmp_path / "b.nc", [3, 4])
    empty = _write_time_file(tmp_path / "c.nc", [])
    limits = ncdatelim([a, b, empty])
    assert list(limits.columns) == ['start', 'end']
    assert limits['start'].iloc[0] == pd.Timestamp('2000-01-01')
    assert limits['end'].iloc[0] == pd.Timestamp('2000-01-03')
    assert limits['end'].iloc[1] == pd.Timestamp('2000-01-05')
    assert pd.isna(limits['start'].iloc[2])
    assert limits.index[1] == str(b)


def test_ncdatelim_errors(tmp_path):
    path = _write_time_file(tmp_path / "nounits.nc", [0, 1], units=None)
    with pytest.raises(ValueError, match="units"):
        ncdatelim(path)
    with pytest.raises(ValueError, match="not found"):
        ncdatelim(path, 'date')


def test_ncbuild_new_file_defaults(tmp_path):
    path = tmp_path / "new.nc"
    data = np.arange(6.0).reshape(2, 3)
    ncbuild(path, data)
    with netCDF4.Dataset(str(path)) as nc:
        assert nc.data_model == 'NETCDF3_CLASSIC'
        assert nc['variable1'].dimensions == ('i', 'j')
        assert nc['variable1'].dtype == np.dtype('f8')
    with xr.open_dataset(path) as ds:
        assert np.array_equal(ds['variable1'].values, data)


def test_ncbuild_options(tmp_path):
    path = tmp_path / "sst.nc"
    data = np.random.rand(2, 3).astype(np.float32)
    ncbuild(path, data, 'sst', dimnames=['time', 'lat'], unlimited='time', format='netcdf4',
            fileatts={'title': 'test'}, varatts={'units': 'degC'})
    with netCDF4.Dataset(str(path)) as nc:
        assert nc.data_model == 'NETCDF4'
        assert nc.dimensions['time'].isunlimited()
        assert nc['sst'].dtype == np.dtype('f4')
        assert nc['sst'].units == 'degC'
        assert nc.title == 'test'
        assert np.allclose(nc['sst'][:], data)


def test_ncbuild_existing_file(tmp_path):
    path = tmp_path / "grow.nc"
    ncbuild(path, np.zeros((2, 3)), 'sst', dimnames=['time', 'lat'], unlimited='time')
    ncbuild(path, np.array([10.0, 20.0, 30.0]), 'lat', varatts={'units': 'degrees_north'})
    ncbuild(path, np.arange(7.0))
    ncbuild(path, np.ones(4, dtype=np.int32), 'flag', dimnames=['flag'], dtype='int16',
            fileatts={'source': 'test'})
    with netCDF4.Dataset(str(path)) as nc:
        assert nc['lat'].dimensions == ('lat',)
        assert nc['lat'].units == 'degrees_north'
        assert nc['variable3'].dimensions == ('i',)
        assert len(nc.dimensions['i']) == 7
        assert nc['flag'].dtype == np.dtype('i2')
        assert nc.source == 'test'


def test_ncbuild_errors(tmp_path):
    path = tmp_path / "err.nc"
    with pytest.raises(TypeError, match="numeric"):
        ncbuild(path, np.array(['a', 'b']))
    with pytest.raises(ValueError, match="must be the first dimension"):
        ncbuild(path, np.zeros((3, 2)), 'sst', dimnames=['lat', 'time'], unlimited='time')
    with pytest.raises(ValueError, match="do not match"):
        ncbuild(path, np.zeros((3, 2)), 'sst', dimnames=['lat'])

    ncbuild(path, np.zeros((3, 3)), 'square', dimnames=['x', 'y'])
    with pytest.raises(ValueError, match="already exists"):
        ncbuild(path, np.zeros((3, 3)), 'square', dimnames=['x', 'y'])
    with pytest.raises(ValueError, match="Ambiguous"):
        ncbuild(path, np.zeros(3), 'column')
    with pytest.raises(ValueError, match="has length"):
        ncbuild(path, np.zeros(4), 'row', dimnames=['x'])


def test_ncaddhis(tmp_path):
    path = tmp_path / "his.nc"
    ncbuild(path, np.arange(3.0), 'x', dimnames=['x'])
    ncaddhis(path, 'created')
    history = ncaddhis(path, 'regridded')
    lines = history.splitlines()
    assert len(lines) == 2
    assert lines[0].endswith(': regridded')
    assert lines[1].endswith(': created')
    with netCDF4.Dataset(str(path)) as nc:
        assert nc.history == history
