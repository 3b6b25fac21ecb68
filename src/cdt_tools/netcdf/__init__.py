"""
NetCDF Module

This module describes netCDF file layouts as immutable schema records, turns
them into empty xarray datasets or files, reads CF time axes and moves
arrays in and out of files.

Main functions:
- ncschema_init: Start an empty schema for a file format
- ncschema_adddims, ncschema_addvars, ncschema_addatts: Extend a schema
- updatencschema: Refresh variable dimensions after editing a schema
- ncschema_read: Schema of an existing file
- dimstruct, varstruct, attribstruct: Build dimension, variable and attribute records
- schema_to_dataset: Empty xarray.Dataset matching a schema
- ncwriteschema: Write an empty netCDF file from a schema
- ncdateread: Read and decode a time variable
- ncdatelim: First and last time of each file in a series
- ncstruct: Read variables, or hyperslabs of them, from one or more files
- ncbuild: Write an array to a new or existing file
- ncaddhis: Prepend an entry to the history attribute
"""

from .schema import (
    NcAttribute,
    NcDimension,
    NcVariable,
    NcSchema,
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
)
from .io import (
    ncstruct,
    ncdatelim,
    ncbuild,
    ncaddhis,
)

__all__ = [
    # Records
    'NcAttribute',
    'NcDimension',
    'NcVariable',
    'NcSchema',
    'dimstruct',
    'attribstruct',
    'varstruct',
    # Schema building
    'ncschema_init',
    'ncschema_adddims',
    'ncschema_addvars',
    'ncschema_addatts',
    'updatencschema',
    'ncschema_read',
    # I/O
    'schema_to_dataset',
    'ncwriteschema',
    'ncdateread',
    'ncdatelim',
    'ncstruct',
    'ncbuild',
    'ncaddhis',
]
