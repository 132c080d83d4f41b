"""
Shared fixtures for the regrid_ll test suite.
"""

import logging

import numpy as np
import pytest
from netCDF4 import Dataset

from regrid_ll.interpolation.stereographic import project_grid
from regrid_ll.regrid_properties import RegridProperties


@pytest.fixture
def logger():
    """Create a test logger."""
    logger = logging.getLogger('test_regrid_ll')
    logger.setLevel(logging.DEBUG)
    return logger


@pytest.fixture
def prop():
    """Run configuration with default options."""
    return RegridProperties()


def lattice(lon, lat):
    """Flattened row-major lon/lat of a rectangular lattice."""
    lon2d, lat2d = np.meshgrid(np.asarray(lon, dtype=float), np.asarray(lat, dtype=float))
    return lon2d.ravel(), lat2d.ravel()


def projected_lattice(lon, lat):
    """Flattened lattice coordinates together with their projections."""
    lon_flat, lat_flat = lattice(lon, lat)
    return lon_flat, lat_flat, project_grid(lon_flat, lat_flat)


def write_netcdf(path, dims, variables, global_attrs=None):
    """
    Write a small netCDF file.

    Parameters
    ----------
    path : Path
        File to create
    dims : dict
        Dimension name -> size (None for unlimited)
    variables : dict
        Variable name -> (dims tuple, data, attrs dict, dtype or None);
        data None leaves the variable unwritten (dtype is then required)
    global_attrs : dict, optional
        Global attributes
    """
    with Dataset(path, 'w', format='NETCDF4') as nc:
        for name, size in dims.items():
            nc.createDimension(name, size)
        for name, (var_dims, data, attrs, dtype) in variables.items():
            attrs = dict(attrs or {})
            fill_value = attrs.pop('_FillValue', None)
            if data is not None and not np.ma.isMaskedArray(data):
                data = np.asarray(data)
            var = nc.createVariable(name, dtype or data.dtype, var_dims,
                                    fill_value=fill_value)
            if attrs:
                var.setncatts(attrs)
            if data is not None:
                var[:] = data
        if global_attrs:
            nc.setncatts(global_attrs)
    return path
