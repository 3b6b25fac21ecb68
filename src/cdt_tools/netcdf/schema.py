"""
NetCDF file schemas

A schema describes the layout of a netCDF file (format, global attributes,
dimensions and variables) without any data. Schemas are built from small
immutable records and can be turned into an empty ``xarray.Dataset`` or
written straight to disk, ready to be filled later.

Typical use::

    schema = ncschema_init('netcdf4')
    schema = ncschema_adddims(schema, 'lon', 360, False, 'lat', 180, False,
                              'time', 0, True)
    schema = ncschema_addvars(schema, 'sst', ['time', 'lat', 'lon'],
                              {'units': 'degC'}, 'single')
    ncwriteschema('sst.nc', schema)

Dimension names are listed in array (C) order, slowest varying first. The
classic and 64bit formats store at most one unlimited dimension, which must
then be the first dimension of every variable that uses it. Every schema
dimension is written, whether or not a variable uses it.
"""

import logging
import os
from dataclasses import dataclass, replace
from typing import Any, Mapping, Optional, Sequence, Tuple, Union

import netCDF4
import numpy as np
import xarray as xr

from ..timeseries.time import cftime
from ..utils.options import NcFormat, check_option

logger = logging.getLogger(__name__)

NETCDF_FORMATS = {
    'classic': 'NETCDF3_CLASSIC',
    '64bit': 'NETCDF3_64BIT',
    'netcdf4_classic': 'NETCDF4_CLASSIC',
    'netcdf4': 'NETCDF4',
}

NC_DTYPES = {
    'double': 'f8',
    'single': 'f4',
    'int64': 'i8',
    'uint64': 'u8',
    'int32': 'i4',
    'uint32': 'u4',
    'int16': 'i2',
    'uint16': 'u2',
    'int8': 'i1',
    'uint8': 'u1',
    'char': 'S1',
}

# netCDF-3 formats: one record dimension, leading in every variable
_RECORD_FORMATS = ('classic', '64bit')


@dataclass(frozen=True)
class NcAttribute:
    """Name/value pair of a global or variable attribute."""
    name: str
    value: Any


@dataclass(frozen=True)
class NcDimension:
    """
    A named dimension.

    ``length`` and ``unlimited`` are None while the dimension is only
    referenced by name from a variable that has not been added to a schema.
    """
    name: str
    length: Optional[int] = None
    unlimited: Optional[bool] = None


@dataclass(frozen=True)
class NcVariable:
    """A variable with its dimensions, attributes and netCDF data type."""
    name: str
    dimensions: Tuple[NcDimension, ...]
    attributes: Tuple[NcAttribute, ...]
    datatype: str
    size: Optional[int] = None

    @property
    def shape(self) -> Tuple[int, ...]:
        if not self.dimensions:
            return () if self.size is None else (self.size,)
        return tuple(d.length or 0 for d in self.dimensions)


@dataclass(frozen=True)
class NcSchema:
    """Layout of a netCDF file."""
    name: str = '/'
    format: str = 'classic'
    attributes: Tuple[NcAttribute, ...] = ()
    dimensions: Tuple[NcDimension, ...] = ()
    variables: Tuple[NcVariable, ...] = ()

    def dimension(self, name: str) -> NcDimension:
        for dim in self.dimensions:
            if dim.name == name:
                return dim
        raise KeyError(name)


def _check_name(value, what: str) -> str:
    if not isinstance(value, str) or not value:
        raise TypeError(f"{what} must be a non-empty string, got {value!r}")
    return value


def _check_record_dimension(format: str, var: NcVariable) -> None:
    if format not in _RECORD_FORMATS:
        return
    for i, dim in enumerate(var.dimensions):
        if dim.unlimited and i > 0:
            raise ValueError(
                f"Unlimited dimension {dim.name!r} must be the first dimension of variable {var.name!r} "
                f"in the {format!r} format; list dimensions slowest varying first."
            )


def dimstruct(*args) -> Tuple[NcDimension, ...]:
    """
    Build dimension records from name/length/unlimited triplets.

    Examples
    --------
    >>> from cdt_tools import dimstruct
    >>> dimstruct('lat', 180, False, 'time', 0, True)[1]
    NcDimension(name='time', length=0, unlimited=True)
    """
    if len(args) % 3:
        raise ValueError("Inputs must be passed as name/length/unlimited triplets.")
    dims = []
    for name, length, unlimited in zip(args[0::3], args[1::3], args[2::3]):
        _check_name(name, 'Dimension name')
        if not isinstance(length, (int, np.integer)) or isinstance(length, bool) or length < 0:
            raise TypeError(f"Length of dimension {name!r} must be a non-negative integer, got {length!r}")
        if not isinstance(unlimited, (bool, np.bool_)):
            raise TypeError(f"Unlimited flag of dimension {name!r} must be a boolean, got {unlimited!r}")
        dims.append(NcDimension(name, int(length), bool(unlimited)))
    return tuple(dims)


def attribstruct(*args) -> Tuple[NcAttribute, ...]:
    """
    Build attribute records from name/value pairs.

    Values must be strings, numbers or 1-D numeric sequences.
    """
    if len(args) % 2:
        raise ValueError("Inputs must be passed as name/value pairs.")
    atts = []
    for name, value in zip(args[0::2], args[1::2]):
        _check_name(name, 'Attribute name')
        if not isinstance(value, str):
            arr = np.asarray(value)
            if not np.issubdtype(arr.dtype, np.number) or arr.ndim > 1:
                raise TypeError(f"Value of attribute {name!r} must be a string or a numeric vector, got {value!r}")
        atts.append(NcAttribute(name, value))
    return tuple(atts)


def _attributes(atts: Union[Mapping[str, Any], Sequence, None]) -> Tuple[NcAttribute, ...]:
    if atts is None:
        return ()
    if isinstance(atts, Mapping):
        pairs = [item for kv in atts.items() for item in kv]
        return attribstruct(*pairs)
    return attribstruct(*atts)


def varstruct(
    name: str,
    dimnames: Sequence[str],
    atts: Union[Mapping[str, Any], Sequence, None],
    dtype: str,
    length: Optional[int] = None
) -> NcVariable:
    """
    Build a variable record.

    Parameters
    ----------
    name : str
        Variable name
    dimnames : sequence of str
        Names of the variable's dimensions (resolved when the variable is
        added to a schema). May be empty.
    atts : mapping or flat sequence of name/value pairs
        Variable attributes
    dtype : str
        One of double, single, int64, uint64, int32, uint32, int16, uint16,
        int8, uint8, char
    length : int, optional
        Length of a dimensionless variable

    Returns
    -------
    var : NcVariable
    """
    _check_name(name, 'Variable name')
    if isinstance(dimnames, str):
        dimnames = [dimnames]
    for dn in dimnames:
        _check_name(dn, 'Dimension name')
    check_option('dtype', dtype, NC_DTYPES)
    if length is not None and (not isinstance(length, (int, np.integer)) or length < 0):
        raise TypeError(f"Variable length must be a non-negative integer, got {length!r}")

    return NcVariable(
        name=name,
        dimensions=tuple(NcDimension(dn) for dn in dimnames),
        attributes=_attributes(atts),
        datatype=dtype,
        size=None if dimnames else length,
    )


def ncschema_init(format: NcFormat = 'classic') -> NcSchema:
    """
    Start an empty schema for a file of the given format.

    Parameters
    ----------
    format : {'classic', '64bit', 'netcdf4_classic', 'netcdf4'}, optional
        File format. Default: 'classic'
    """
    check_option('format', format, NcFormat)
    return NcSchema(format=format)


def ncschema_adddims(schema: NcSchema, *args) -> NcSchema:
    """
    Return a copy of ``schema`` with dimensions added.

    Dimensions are given as name/length/unlimited triplets (see
    :func:`dimstruct`). Names must be unique within the schema.
    """
    new = dimstruct(*args)
    existing = {d.name for d in schema.dimensions}
    for dim in new:
        if dim.name in existing:
            raise ValueError(f"Dimension {dim.name!r} already exists in the schema.")
        existing.add(dim.name)
    return replace(schema, dimensions=schema.dimensions + new)


def ncschema_addvars(
    schema: NcSchema,
    name: str,
    dimnames: Sequence[str],
    atts: Union[Mapping[str, Any], Sequence, None],
    dtype: str,
    length: Optional[int] = None
) -> NcSchema:
    """
    Return a copy of ``schema`` with a variable added.

    The variable's dimension names are resolved against the schema's
    dimensions, so the stored variable carries full dimension records.
    Names are in array order, slowest varying first, so a record
    dimension such as time normally comes first.

    Raises
    ------
    ValueError
        If a dimension name is not defined in the schema, the variable
        name is already used, or an unlimited dimension is not the first
        dimension in a 'classic' or '64bit' schema
    """
    var = varstruct(name, dimnames, atts, dtype, length)
    if any(v.name == var.name for v in schema.variables):
        raise ValueError(f"Variable {var.name!r} already exists in the schema.")

    missing = [d.name for d in var.dimensions if d.name not in {sd.name for sd in schema.dimensions}]
    if missing:
        raise ValueError(f"Dimension(s) {', '.join(missing)} for variable {var.name!r} are not defined in the schema.")
    var = replace(var, dimensions=tuple(schema.dimension(d.name) for d in var.dimensions))
    _check_record_dimension(schema.format, var)
    return replace(schema, variables=schema.variables + (var,))


def ncschema_addatts(schema: NcSchema, *args) -> NcSchema:
    """Return a copy of ``schema`` with global attributes added (name/value pairs)."""
    return replace(schema, attributes=schema.attributes + attribstruct(*args))


def updatencschema(schema: NcSchema) -> NcSchema:
    """
    Refresh the dimension records stored in each variable of a schema.

    Variables carry full copies of their dimensions. After the schema's
    dimensions are edited (e.g. a length changed with
    ``dataclasses.replace``), this copies the current records into every
    variable so the two agree again.

    Raises
    ------
    ValueError
        If a variable refers to a dimension the schema no longer has

    Examples
    --------
    >>> from dataclasses import replace
    >>> from cdt_tools import ncschema_init, ncschema_adddims, ncschema_addvars, updatencschema
    >>> schema = ncschema_adddims(ncschema_init(), 'x', 3, False)
    >>> schema = ncschema_addvars(schema, 'v', ['x'], None, 'double')
    >>> schema = replace(schema, dimensions=(replace(schema.dimensions[0], length=5),))
    >>> updatencschema(schema).variables[0].shape
    (5,)
    """
    if not isinstance(schema, NcSchema):
        raise TypeError(f"Expected an NcSchema, got {type(schema).__name__}")
    names = {d.name for d in schema.dimensions}
    variables = []
    for var in schema.variables:
        missing = [d.name for d in var.dimensions if d.name not in names]
        if missing:
            raise ValueError(
                f"Variable dimension name does not match file dimension names: "
                f"variable {var.name!r}, dimensions {', '.join(missing)}"
            )
        variables.append(replace(var, dimensions=tuple(schema.dimension(d.name) for d in var.dimensions)))
    return replace(schema, variables=tuple(variables))


def ncschema_read(path: Union[str, os.PathLike]) -> NcSchema:
    """
    Read the schema of an existing netCDF file.

    The schema can be edited and written to a new, empty file with
    :func:`ncwriteschema`. ``_FillValue`` attributes are left out; written
    files use the default fill value of each data type.

    Raises
    ------
    ValueError
        If the file uses a format or data type that schemas do not describe
        (groups, strings or user-defined types)
    """
    formats = {code: key for key, code in NETCDF_FORMATS.items()}
    formats['NETCDF3_64BIT_OFFSET'] = '64bit'
    dtypes = {np.dtype(code): key for key, code in NC_DTYPES.items()}

    with netCDF4.Dataset(os.fspath(path)) as nc:
        if nc.data_model not in formats:
            raise ValueError(f"Unsupported netCDF format {nc.data_model} in {path}.")
        if nc.groups:
            raise ValueError(f"{path} contains groups, which schemas do not describe.")
        dims = tuple(NcDimension(name, len(dim), dim.isunlimited()) for name, dim in nc.dimensions.items())
        by_name = {d.name: d for d in dims}
        variables = []
        for name, ncvar in nc.variables.items():
            if ncvar.dtype not in dtypes:
                raise ValueError(f"Variable {name!r} has data type {ncvar.dtype}, which schemas do not describe.")
            atts = tuple(
                NcAttribute(att, ncvar.getncattr(att)) for att in ncvar.ncattrs() if att != '_FillValue'
            )
            variables.append(NcVariable(
                name=name,
                dimensions=tuple(by_name[dn] for dn in ncvar.dimensions),
                attributes=atts,
                datatype=dtypes[ncvar.dtype],
            ))
        schema = NcSchema(
            name='/',
            format=formats[nc.data_model],
            attributes=tuple(NcAttribute(att, nc.getncattr(att)) for att in nc.ncattrs()),
            dimensions=dims,
            variables=tuple(variables),
        )
    logger.debug("Read schema of %s: %d dimensions, %d variables", path, len(dims), len(variables))
    return schema


def schema_to_dataset(schema: NcSchema) -> xr.Dataset:
    """
    Build an empty ``xarray.Dataset`` matching a schema.

    Every variable is filled with the netCDF default fill value of its data
    type, which is also recorded as its ``_FillValue`` encoding (numeric
    types only).
    """
    data_vars = {}
    encoding = {}
    for var in schema.variables:
        code = NC_DTYPES[var.datatype]
        fill = netCDF4.default_fillvals[code]
        if var.dimensions:
            dims = tuple(d.name for d in var.dimensions)
        elif var.size is not None:
            dims = (f'{var.name}_length',)
        else:
            dims = ()
        values = np.full(var.shape, fill, dtype=np.dtype(code))
        data_vars[var.name] = xr.Variable(dims, values, attrs={a.name: a.value for a in var.attributes})
        if var.datatype != 'char':
            encoding[var.name] = {'_FillValue': fill, 'dtype': np.dtype(code)}

    ds = xr.Dataset(data_vars, attrs={a.name: a.value for a in schema.attributes})
    for var_name, enc in encoding.items():
        ds[var_name].encoding.update(enc)
    return ds


def ncwriteschema(path: Union[str, os.PathLike], schema: NcSchema) -> None:
    """
    Write an empty netCDF file that follows a schema.

    Parameters
    ----------
    path : str or path-like
        Output file
    schema : NcSchema
        Schema to write; its ``format`` selects the netCDF file format

    Notes
    -----
    Dimensions that no variable uses are still created. Unlimited ones
    start with no records; a fixed dimension of length 0 cannot be told
    apart from an unlimited one by netCDF and is created unlimited.
    """
    for var in schema.variables:
        _check_record_dimension(schema.format, var)

    ds = schema_to_dataset(schema)
    unlimited = [d.name for d in schema.dimensions if d.unlimited and d.name in ds.sizes]
    logger.debug("Writing schema with %d variables to %s", len(schema.variables), path)
    ds.to_netcdf(path, format=NETCDF_FORMATS[schema.format], engine='netcdf4', unlimited_dims=unlimited)

    unused = [d for d in schema.dimensions if d.name not in ds.sizes]
    if unused:
        logger.debug("Adding unused dimensions %s", [d.name for d in unused])
        with netCDF4.Dataset(os.fspath(path), 'a') as nc:
            for dim in unused:
                nc.createDimension(dim.name, None if dim.unlimited else dim.length)


def ncdateread(path: Union[str, os.PathLike, Sequence], var: str = 'time'):
    """
    Read a time variable from netCDF file(s) and decode it.

    Parameters
    ----------
    path : str, path-like or sequence of them
        File, or files whose time values are concatenated in order
    var : str, optional
        Name of the time variable. Default: 'time'

    Returns
    -------
    dt : DatetimeIndex
        Decoded times
    t : ndarray
        Raw numeric time values
    unit : str
        Time unit
    refdate : Timestamp
        Reference time from the ``units`` attribute

    Raises
    ------
    ValueError
        If the variable has no ``units`` attribute
    """
    paths = [path] if isinstance(path, (str, os.PathLike)) else list(path)
    values = []
    units = None
    for p in paths:
        with xr.open_dataset(p, decode_times=False) as ds:
            values.append(np.atleast_1d(ds[var].values))
            if units is None:
                units = ds[var].attrs.get('units')
    if units is None:
        raise ValueError(f"Variable {var!r} has no 'units' attribute.")

    t = np.concatenate(values)
    dt, unit, refdate = cftime(t, units)
    return dt, t, unit, refdate


__all__ = [
    'NcAttribute',
    'NcDimension',
    'NcVariable',
    'NcSchema',
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
]
