"""
Reading and writing netCDF variables

Shortcuts for everyday work with climate data files:

- ncstruct reads variables (or hyperslabs of them) from a file, or from a
  series of files split along their unlimited dimension, e.g. one file per
  year of model output
- ncdatelim lists the first and last time stamp of each file
- ncbuild writes an array to a new or existing file in one call
- ncaddhis prepends a time-stamped line to the global history attribute

Dimension order follows the arrays (C order), slowest varying first.
"""

import contextlib
import datetime
import logging
import os
import warnings
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

import netCDF4
import numpy as np
import pandas as pd
import xarray as xr

from ..timeseries.time import cftime
from ..utils.options import NcFormat, check_option
from .schema import NC_DTYPES, ncschema_addatts, ncschema_adddims, ncschema_addvars, ncschema_init, ncwriteschema

logger = logging.getLogger(__name__)

PathLike = Union[str, os.PathLike]
# (start, count, stride) along one dimension; count None reads to the end
Hyperslab = Tuple[int, Optional[int], int]

_NUMPY_TO_NC = {np.dtype(code): name for name, code in NC_DTYPES.items() if name != 'char'}


def _file_list(files: Union[PathLike, Sequence[PathLike]]) -> List[PathLike]:
    paths = [files] if isinstance(files, (str, os.PathLike)) else list(files)
    if not paths:
        raise ValueError("At least one file is required.")
    for p in paths:
        # Remote (OPeNDAP) paths are left to the netCDF library
        if '://' not in os.fspath(p) and not os.path.isfile(p):
            raise FileNotFoundError(f"Cannot find file {p}.")
    return paths


def _record_dimension(path: PathLike) -> str:
    with netCDF4.Dataset(os.fspath(path)) as nc:
        unlimited = [name for name, dim in nc.dimensions.items() if dim.isunlimited()]
    if not unlimited:
        raise ValueError(
            "No unlimited dimension found in these files; files can only be read together "
            "along an unlimited dimension."
        )
    if len(unlimited) > 1:
        raise ValueError(f"Multiple unlimited dimensions found in these files: {unlimited}.")
    return unlimited[0]


def _check_hyperslab(dim: str, slab: Sequence) -> Hyperslab:
    if len(slab) != 3:
        raise ValueError(f"Subset of dimension {dim!r} must be (start, count, stride), got {slab!r}")
    start, count, stride = slab
    if start < 0 or stride < 1 or (count is not None and count < 0):
        raise ValueError(
            f"Subset of dimension {dim!r} needs start >= 0, count >= 0 or None and stride >= 1, got {slab!r}"
        )
    return int(start), None if count is None else int(count), int(stride)


def _hyperslab_indices(length: int, slab: Hyperslab) -> np.ndarray:
    start, count, stride = slab
    idx = np.arange(start, length, stride)
    return idx if count is None else idx[:count]


def ncstruct(
    files: Union[PathLike, Sequence[PathLike]],
    *varnames: str,
    subset: Optional[Mapping[str, Sequence]] = None
) -> Dict[str, np.ndarray]:
    """
    Read netCDF variables into a dictionary of arrays.

    Parameters
    ----------
    files : str, path-like or sequence of them
        File to read, or files that share a single unlimited dimension.
        Variables along that dimension are concatenated in file order; other
        variables are read from the first file.
    *varnames : str
        Variables to read. Default: all variables. The name 'dimensions'
        (unless the file has a variable of that name) stands for all
        coordinate variables.
    subset : mapping, optional
        ``{dimension: (start, count, stride)}`` hyperslabs, with 0-based
        ``start`` and ``count=None`` to read to the end. Across multiple
        files the hyperslab of the unlimited dimension indexes the
        concatenated records.

    Returns
    -------
    data : dict
        Variable name to ndarray, with scale factors, offsets and fill values
        applied. Times are returned as stored (see :func:`ncdateread`).

    Raises
    ------
    FileNotFoundError
        If a local file does not exist
    ValueError
        If a variable or subset dimension is not in the file, or multiple
        files do not share exactly one unlimited dimension

    Examples
    --------
    >>> from cdt_tools import ncstruct
    >>> data = ncstruct('sst.nc', 'sst', subset={'time': (0, 12, 1)})  # doctest: +SKIP
    >>> data['sst'].shape  # doctest: +SKIP
    (12, 180, 360)
    """
    paths = _file_list(files)
    subset = {dim: _check_hyperslab(dim, slab) for dim, slab in (subset or {}).items()}
    record = _record_dimension(paths[0]) if len(paths) > 1 else None

    with contextlib.ExitStack() as stack:
        datasets = [stack.enter_context(xr.open_dataset(p, decode_times=False)) for p in paths]
        first = datasets[0]
        file_vars = list(first.variables)

        unknown = [dim for dim in subset if dim not in first.sizes]
        if unknown:
            raise ValueError(f"Subset dimension(s) {', '.join(unknown)} do not match the file dimensions.")

        names = list(varnames) or file_vars
        if 'dimensions' in names:
            if 'dimensions' in file_vars:
                warnings.warn("'dimensions' refers to a variable in this file; reading it as a variable.")
            else:
                dimvars = [dim for dim in first.sizes if dim in file_vars]
                names = list(dict.fromkeys(dimvars + [n for n in names if n != 'dimensions']))
        missing = [n for n in names if n not in file_vars]
        if missing:
            raise ValueError(f"Variable name(s) {', '.join(missing)} not found in file.")

        indexers = {
            dim: _hyperslab_indices(first.sizes[dim], slab)
            for dim, slab in subset.items() if dim != record
        }
        if record is not None:
            lengths = [ds.sizes[record] for ds in datasets]
            offsets = np.cumsum([0] + lengths[:-1])
            idx = _hyperslab_indices(sum(lengths), subset.get(record, (0, None, 1)))
            local = [idx[(idx >= off) & (idx < off + n)] - off for off, n in zip(offsets, lengths)]
            logger.debug("Reading %d records of %r from %d files", idx.size, record, len(paths))

        data = {}
        for name in names:
            var = first[name]
            sel = {dim: ix for dim, ix in indexers.items() if dim in var.dims}
            if record is None or record not in var.dims:
                data[name] = var.isel(sel).values
                continue
            pieces = [
                ds[name].isel({**sel, record: ix}).values
                for ds, ix in zip(datasets, local) if ix.size
            ]
            if pieces:
                data[name] = np.concatenate(pieces, axis=var.dims.index(record))
            else:
                data[name] = var.isel({**sel, record: slice(0, 0)}).values
    return data


def ncdatelim(files: Union[PathLike, Sequence[PathLike]], var: str = 'time') -> pd.DataFrame:
    """
    First and last time of each file in a series.

    Parameters
    ----------
    files : str, path-like or sequence of them
        Files to inspect
    var : str, optional
        Name of the time variable. Default: 'time'

    Returns
    -------
    limits : pandas.DataFrame
        Columns ``start`` and ``end``, indexed by file. Files whose time
        variable is empty get NaT.

    Raises
    ------
    ValueError
        If the time variable is missing or has no ``units`` attribute

    Notes
    -----
    The ``units`` attribute of the first file is used to decode all files.
    """
    paths = _file_list(files)
    t = np.full((len(paths), 2), np.nan)
    units = None
    for k, p in enumerate(paths):
        with xr.open_dataset(p, decode_times=False) as ds:
            if var not in ds.variables:
                raise ValueError(f"Variable {var!r} not found in {p}.")
            values = np.atleast_1d(ds[var].values).ravel()
            if values.size:
                t[k] = values[0], values[-1]
            if units is None:
                units = ds[var].attrs.get('units')
    if units is None:
        raise ValueError(f"Variable {var!r} has no 'units' attribute.")

    dt, _, _ = cftime(t.ravel(), units)
    return pd.DataFrame(
        {'start': dt[0::2], 'end': dt[1::2]},
        index=pd.Index([os.fspath(p) for p in paths], name='file'),
    )


def _free_dimnames(count: int, taken) -> List[str]:
    names = []
    for code in range(ord('i'), ord('z') + 1):
        if len(names) == count:
            break
        if chr(code) not in taken:
            names.append(chr(code))
    if len(names) < count:
        raise ValueError("Too many dimensions to name automatically; pass dimnames.")
    return names


def _drop_trailing_singletons(values: np.ndarray) -> np.ndarray:
    if values.ndim > 1 and values.size == max(values.shape):
        return values.ravel()
    shape = values.shape
    while len(shape) > 1 and shape[-1] == 1:
        shape = shape[:-1]
    return values.reshape(shape)


def _fit_to_dimnames(values: np.ndarray, dimnames: Sequence[str]) -> np.ndarray:
    nd = len(dimnames)
    if nd == values.ndim:
        return values
    if nd > values.ndim:
        return values.reshape(values.shape + (1,) * (nd - values.ndim))
    if all(n == 1 for n in values.shape[nd:]):
        return values.reshape(values.shape[:nd])
    if nd == 1 and values.size == max(values.shape):
        return values.ravel()
    raise ValueError(f"Dimension names {list(dimnames)} do not match the variable shape {values.shape}.")


def _match_dimensions(nc: netCDF4.Dataset, shape: Tuple[int, ...]) -> List[str]:
    lengths = {name: len(dim) for name, dim in nc.dimensions.items()}
    unmatched = [n for n in shape if n not in lengths.values()]
    new_names = iter(_free_dimnames(len(unmatched), lengths))
    dimnames = []
    for n in shape:
        matches = [name for name, length in lengths.items() if length == n]
        if len(matches) > 1:
            raise ValueError("Ambiguous dimension match; pass dimnames for this variable.")
        dimnames.append(matches[0] if matches else next(new_names))
    if len(set(dimnames)) < len(dimnames):
        raise ValueError("Ambiguous dimension match; pass dimnames for this variable.")
    return dimnames


def ncbuild(
    path: PathLike,
    var: Any,
    name: Optional[str] = None,
    *,
    dimnames: Optional[Sequence[str]] = None,
    format: NcFormat = 'classic',
    fileatts: Optional[Mapping[str, Any]] = None,
    unlimited: Union[str, Sequence[str]] = (),
    varatts: Optional[Mapping[str, Any]] = None,
    dtype: Optional[str] = None
) -> None:
    """
    Write an array to a netCDF file, creating the file if needed.

    Parameters
    ----------
    path : str or path-like
        Output file. A new file is created with the given ``format``; an
        existing file gets a new variable.
    var : array-like
        Numeric data to write
    name : str, optional
        Variable name. Default: 'variable<n>' numbered after the variables
        already in the file
    dimnames : sequence of str, optional
        Dimension names in array order. Default: letters starting at 'i'
        for a new file; for an existing file each axis is matched to the
        file dimension of the same length, and unmatched axes get new
        dimensions.
    format : {'classic', '64bit', 'netcdf4_classic', 'netcdf4'}, optional
        Format of a new file. Default: 'classic'
    fileatts : mapping, optional
        Global attributes to set
    unlimited : str or sequence of str, optional
        Dimensions to create unlimited
    varatts : mapping, optional
        Variable attributes
    dtype : str, optional
        netCDF data type (double, single, int32, ...). Default: the type of
        ``var``

    Raises
    ------
    TypeError
        If ``var`` is not numeric
    ValueError
        If the variable already exists, the dimension names do not fit the
        data, or dimensions cannot be matched unambiguously

    Examples
    --------
    >>> import numpy as np
    >>> from cdt_tools import ncbuild
    >>> ncbuild('out.nc', np.arange(10.0), 'time', dimnames=['time'], unlimited='time')  # doctest: +SKIP
    >>> ncbuild('out.nc', np.random.rand(10, 4, 5), 'sst',
    ...         dimnames=['time', 'lat', 'lon'], varatts={'units': 'degC'})  # doctest: +SKIP
    """
    values = np.asarray(var)
    if not np.issubdtype(values.dtype, np.number):
        raise TypeError(f"Variable data must be numeric, got dtype {values.dtype}.")
    if dtype is None:
        if values.dtype not in _NUMPY_TO_NC:
            raise TypeError(f"No netCDF data type matches dtype {values.dtype}; pass dtype.")
        dtype = _NUMPY_TO_NC[values.dtype]
    check_option('dtype', dtype, _NUMPY_TO_NC.values())
    if isinstance(unlimited, str):
        unlimited = [unlimited]
    if isinstance(dimnames, str):
        dimnames = [dimnames]
    unlimited = list(unlimited)
    fileatts = dict(fileatts or {})
    varatts = dict(varatts or {})

    if not os.path.exists(path):
        check_option('format', format, NcFormat)
        if dimnames is None:
            values = _drop_trailing_singletons(values)
            dimnames = _free_dimnames(values.ndim, ())
        else:
            values = _fit_to_dimnames(values, dimnames)
        extra = [u for u in unlimited if u not in dimnames]
        if extra:
            raise ValueError(f"Unlimited dimension(s) {', '.join(extra)} are not among the dimension names.")
        name = name or 'variable1'

        schema = ncschema_init(format)
        if fileatts:
            schema = ncschema_addatts(schema, *[item for kv in fileatts.items() for item in kv])
        triplets = [item for dn, n in zip(dimnames, values.shape) for item in (dn, n, dn in unlimited)]
        schema = ncschema_adddims(schema, *triplets)
        schema = ncschema_addvars(schema, name, list(dimnames), varatts, dtype)
        logger.debug("Creating %s with variable %r of shape %s", path, name, values.shape)
        ncwriteschema(path, schema)
        with netCDF4.Dataset(os.fspath(path), 'a') as nc:
            _write_values(nc.variables[name], values)
        return

    with netCDF4.Dataset(os.fspath(path), 'a') as nc:
        for key, value in fileatts.items():
            nc.setncattr(key, value)
        if name is None:
            name = f'variable{len(nc.variables) + 1}'
        if name in nc.variables:
            raise ValueError(f"Variable {name!r} already exists in {path}.")
        if dimnames is None:
            values = _drop_trailing_singletons(values)
            dimnames = _match_dimensions(nc, values.shape)
        else:
            values = _fit_to_dimnames(values, dimnames)

        for dn, n in zip(dimnames, values.shape):
            if dn not in nc.dimensions:
                nc.createDimension(dn, None if dn in unlimited else n)
            elif not nc.dimensions[dn].isunlimited() and len(nc.dimensions[dn]) != n:
                raise ValueError(f"Dimension {dn!r} has length {len(nc.dimensions[dn])} in the file, not {n}.")
        logger.debug("Adding variable %r with dimensions %s to %s", name, list(dimnames), path)
        ncvar = nc.createVariable(name, NC_DTYPES[dtype], tuple(dimnames))
        for key, value in varatts.items():
            ncvar.setncattr(key, value)
        _write_values(ncvar, values)


def _write_values(ncvar: netCDF4.Variable, values: np.ndarray) -> None:
    if values.ndim == 0:
        ncvar.assignValue(values)
    else:
        ncvar[:] = values


def ncaddhis(path: PathLike, text: str) -> str:
    """
    Prepend a time-stamped entry to a file's ``history`` attribute.

    Parameters
    ----------
    path : str or path-like
        netCDF file, modified in place
    text : str
        Description of the change, e.g. the command that produced the file

    Returns
    -------
    history : str
        The new attribute value. Entries read newest first, one per line, in
        the ``"Mon Oct 19 12:00:00 2026: text"`` form used by NCO.
    """
    stamp = datetime.datetime.now().strftime('%a %b %d %H:%M:%S %Y')
    with netCDF4.Dataset(os.fspath(path), 'a') as nc:
        old = nc.getncattr('history') if 'history' in nc.ncattrs() else ''
        history = f'{stamp}: {text}\n{old}' if old else f'{stamp}: {text}'
        nc.setncattr('history', history)
    return history


__all__ = [
    'ncstruct',
    'ncdatelim',
    'ncbuild',
    'ncaddhis',
]
