"""
Grid Reading

Read horizontal grid coordinates and the optional valid-layer count from a
netCDF grid file and work out the grid topology:

- 2-D longitude and latitude: curvilinear grid
- 1-D longitude and latitude on the same dimension: unstructured grid
- 1-D longitude and latitude on different dimensions: rectangular grid
"""

from __future__ import annotations

from logging import Logger
from typing import Optional

import numpy as np
import xarray as xr

from regrid_ll.errors import ConfigurationError, DataError
from regrid_ll.grid_io.grid import Grid
from regrid_ll.regrid_properties import GridDescriptor


def _get_variable(data_set: xr.Dataset, name: str, fname: str, logger: Logger) -> xr.DataArray:
    if name not in data_set.variables:
        logger.error('%s: variable "%s" not found', fname, name)
        raise ConfigurationError(f'{fname}: variable "{name}" not found')
    return data_set[name]


def read_grid(
    descriptor: GridDescriptor,
    logger: Logger,
    field_shape: Optional[tuple[int, ...]] = None,
) -> Grid:
    """
    Read a grid described by a GridDescriptor.

    Parameters
    ----------
    descriptor : GridDescriptor
        Grid file and names of the longitude, latitude and (optionally)
        valid-layer count variables
    logger : Logger
        Logger instance
    field_shape : tuple of int, optional
        Shape of the variable defined on this grid. If given, its trailing
        dimensions must match the horizontal shape of the grid.

    Returns
    -------
    Grid
        The grid, with ``numlayers`` set if a count variable was named

    Raises
    ------
    DataError
        If the grid file cannot be opened
    ConfigurationError
        If a variable is missing, has an unsupported number of dimensions,
        or does not match the grid or field dimensions

    Examples
    --------
    >>> grid = read_grid(GridDescriptor('grid.nc', 'lon', 'lat', 'nlayers'), logger)
    >>> grid.topology
    'curvilinear'
    """
    fname = descriptor.fname
    logger.info('Reading grid %s (%s, %s)', fname, descriptor.lon_name,
                descriptor.lat_name)
    try:
        data_set = xr.open_dataset(fname, decode_times=False)
    except (OSError, ValueError) as e_x:
        logger.error('Could not open grid file %s: %s', fname, e_x)
        raise DataError(f'could not open grid file {fname}: {e_x}') from e_x

    with data_set:
        lon = _get_variable(data_set, descriptor.lon_name, fname, logger)
        lat = _get_variable(data_set, descriptor.lat_name, fname, logger)

        if lon.ndim == 2 and lat.ndim == 2:
            if lon.shape != lat.shape:
                logger.error('%s: coordinates "%s" %s and "%s" %s differ in shape',
                             fname, lon.name, lon.shape, lat.name, lat.shape)
                raise ConfigurationError(
                    f'{fname}: coordinates "{lon.name}" and "{lat.name}" differ in shape')
            grid = Grid.curvilinear(lon.values, lat.values, dims=lon.dims)
        elif lon.ndim == 1 and lat.ndim == 1:
            if lon.dims == lat.dims:
                grid = Grid.unstructured(lon.values, lat.values, dims=lon.dims)
            else:
                grid = Grid.rectangular(lon.values, lat.values,
                                        dims=(lat.dims[0], lon.dims[0]))
        else:
            logger.error('%s: unsupported coordinate dimensions: "%s" is %dD, "%s" is %dD',
                         fname, lon.name, lon.ndim, lat.name, lat.ndim)
            raise ConfigurationError(
                f'{fname}: coordinates must be both 1D or both 2D, got '
                f'{lon.ndim}D and {lat.ndim}D')

        if field_shape is not None:
            nh = len(grid.shape)
            if len(field_shape) < nh or tuple(field_shape[-nh:]) != grid.shape:
                logger.error(
                    '%s: dimensions of the field %s do not match grid dimensions %s',
                    fname, tuple(field_shape), grid.shape)
                raise ConfigurationError(
                    f'{fname}: field dimensions {tuple(field_shape)} do not match '
                    f'grid dimensions {grid.shape}')

        if descriptor.numlayers_name is not None:
            numlayers = _get_variable(data_set, descriptor.numlayers_name, fname, logger)
            if numlayers.shape != grid.shape:
                logger.error('%s: "%s" has shape %s, grid has %s', fname,
                             numlayers.name, numlayers.shape, grid.shape)
                raise ConfigurationError(
                    f'{fname}: valid-layer count "{numlayers.name}" has shape '
                    f'{numlayers.shape}, expected {grid.shape}')
            counts = np.asarray(numlayers.values, dtype=np.float64)
            counts[~np.isfinite(counts)] = 0.0
            grid.numlayers = np.clip(counts, 0, None).astype(np.int32).ravel()

    logger.info('  %s grid, size = %s', grid.topology,
                ' x '.join(str(n) for n in grid.shape))
    return grid
