"""
Layered Field Input/Output

Read the layers of a netCDF variable one at a time, and write the regridded
layers to a destination file.

The destination is written to ``<destination>.tmp`` and renamed to its final
name only after every layer has been written, so that a failed run never
leaves a partial destination file behind.

Classes
-------
FieldReader : Read source layers as float64 with NaN for missing values
FieldWriter : Write destination layers through a temporary file
"""

from __future__ import annotations

import os
from logging import Logger
from typing import Optional

import numpy as np
from netCDF4 import Dataset

from regrid_ll.errors import ConfigurationError, DataError
from regrid_ll.grid_io.grid import Grid
from regrid_ll.regrid_properties import RegridProperties

PROGRAM_NAME = 'regrid_ll'


class FieldReader:
    """
    Read horizontal layers of one variable from a netCDF file.

    The variable's dimensions are: an optional unlimited record dimension of
    length 1, an optional layer dimension, then the horizontal dimensions of
    the source grid. Missing values (``_FillValue``, ``missing_value``,
    ``valid_*``) come back as NaN, packed values are unpacked.

    Attributes
    ----------
    fname : str
        Source file
    varname : str
        Variable name
    dims : tuple[str, ...]
        Dimension names of the variable
    shape : tuple[int, ...]
        Shape of the variable
    nk : int
        Number of layers (1 if there is no layer dimension); set by
        ``set_grid``

    Examples
    --------
    >>> with FieldReader('temp.nc', 'temp', logger) as reader:
    ...     reader.set_grid(grid)
    ...     surface = reader.read_layer(0)
    """

    def __init__(self, fname: str, varname: str, logger: Logger):
        self.fname = fname
        self.varname = varname
        self.logger = logger
        try:
            self.data_set = Dataset(fname, 'r')
        except (OSError, RuntimeError) as e_x:
            logger.error('Could not open %s: %s', fname, e_x)
            raise DataError(f'could not open {fname}: {e_x}') from e_x

        if varname not in self.data_set.variables:
            self.data_set.close()
            logger.error('%s: variable "%s" not found', fname, varname)
            raise ConfigurationError(f'{fname}: variable "{varname}" not found')

        self.variable = self.data_set.variables[varname]
        self.dims = tuple(self.variable.dimensions)
        self.shape = tuple(self.variable.shape)
        self.grid: Optional[Grid] = None
        self.record_dim: Optional[str] = None
        self.layer_dim: Optional[str] = None
        self.nk = 1

    def is_unlimited(self, dim: str) -> bool:
        return self.data_set.dimensions[dim].isunlimited()

    def leading_dims(self, grid: Grid) -> tuple[str, ...]:
        """Dimensions of the variable in front of the horizontal ones."""
        return self.dims[:len(self.dims) - len(grid.shape)]

    def set_grid(self, grid: Grid) -> int:
        """
        Match the variable's dimensions against the source grid.

        Returns
        -------
        int
            Number of layers

        Raises
        ------
        ConfigurationError
            For more than one record, more than one layer dimension, or a
            horizontal shape different from the grid's
        DataError
            For an empty record dimension
        """
        nh = len(grid.shape)
        if len(self.shape) < nh or self.shape[-nh:] != grid.shape:
            self.logger.error(
                '%s: dimensions of variable "%s" %s do not match grid dimensions %s',
                self.fname, self.varname, self.shape, grid.shape)
            raise ConfigurationError(
                f'{self.fname}: dimensions of variable "{self.varname}" '
                f'{self.shape} do not match grid dimensions {grid.shape}')

        layer_dims = []
        for dim, size in zip(self.leading_dims(grid), self.shape):
            if self.is_unlimited(dim):
                if size == 0:
                    self.logger.error('%s: %s: empty record dimension',
                                      self.fname, self.varname)
                    raise DataError(f'{self.fname}: {self.varname}: empty record dimension')
                if size != 1:
                    self.logger.error('%s: %s: can not handle more than one record',
                                      self.fname, self.varname)
                    raise ConfigurationError(
                        f'{self.fname}: {self.varname}: can not handle more than '
                        f'one record ({dim} = {size})')
                self.record_dim = dim
            else:
                layer_dims.append((dim, size))

        if len(layer_dims) > 1:
            self.logger.error('%s: %s: more than one layer dimension: %s',
                              self.fname, self.varname, layer_dims)
            raise ConfigurationError(
                f'{self.fname}: {self.varname}: unsupported dimensions {self.dims}')
        if layer_dims:
            self.layer_dim, self.nk = layer_dims[0]

        self.grid = grid
        return self.nk

    def _index(self, k: int) -> tuple:
        index = []
        for dim in self.dims:
            if dim == self.record_dim:
                index.append(0)
            elif dim == self.layer_dim:
                index.append(k)
            else:
                index.append(slice(None))
        return tuple(index)

    def read_layer(self, k: int) -> np.ndarray:
        """
        Read layer ``k`` as a flattened float64 array with NaN for missing values.

        Raises
        ------
        DataError
            If the layer cannot be read or has the wrong shape
        """
        if self.grid is None:
            raise RuntimeError('set_grid() must be called before read_layer()')
        try:
            data = self.variable[self._index(k)]
        except (OSError, RuntimeError, IndexError) as e_x:
            self.logger.error('%s: could not read layer %d of "%s": %s',
                              self.fname, k, self.varname, e_x)
            raise DataError(
                f'{self.fname}: could not read layer {k} of "{self.varname}"') from e_x

        layer = np.ma.masked_invalid(np.ma.asarray(data, dtype=np.float64))
        if layer.shape != self.grid.shape:
            self.logger.error('%s: layer %d of "%s" has shape %s, expected %s',
                              self.fname, k, self.varname, layer.shape, self.grid.shape)
            raise DataError(
                f'{self.fname}: layer {k} of "{self.varname}" has shape '
                f'{layer.shape}, expected {self.grid.shape}')
        return layer.filled(np.nan).ravel()

    def close(self) -> None:
        if self.data_set.isopen():
            self.data_set.close()

    def __enter__(self) -> 'FieldReader':
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()


class FieldWriter:
    """
    Write regridded layers to ``<fname>.tmp``, renamed to ``fname`` on commit.

    The destination variable keeps the source variable's type, attributes and
    leading (record/layer) dimensions; its horizontal dimensions are those of
    the destination grid. Global attributes are copied from the source file.

    Used as a context manager, the writer commits when the block completes
    and aborts (removes the temporary file) when it raises.

    Examples
    --------
    >>> with FieldWriter(prop, reader, dst_grid, logger) as writer:
    ...     writer.write_layer(0, layer)
    """

    def __init__(
        self,
        prop: RegridProperties,
        reader: FieldReader,
        grid: Grid,
        logger: Logger,
    ):
        self.fname = prop.fname_dst
        self.fname_tmp = f'{prop.fname_dst}.tmp'
        self.varname = reader.varname
        self.grid = grid
        self.logger = logger

        leading = reader.leading_dims(reader.grid)
        clash = set(leading) & set(grid.dims)
        if clash:
            logger.error('Destination grid dimension(s) %s clash with dimensions of "%s"',
                         sorted(clash), reader.varname)
            raise ConfigurationError(
                f'destination grid dimension(s) {sorted(clash)} clash with '
                f'dimensions of "{reader.varname}"')
        self.record_dim = reader.record_dim
        self.layer_dim = reader.layer_dim
        self.dims = tuple(leading) + tuple(grid.dims)

        src = reader.data_set
        src_var = reader.variable
        attrs = {name: src_var.getncattr(name) for name in src_var.ncattrs()}
        fill_value = attrs.pop('_FillValue', None)
        self.mask_invalid = (fill_value is not None
                             or 'missing_value' in attrs
                             or np.dtype(src_var.dtype).kind != 'f')

        self.data_set = Dataset(self.fname_tmp, 'w', format='NETCDF4')
        try:
            self.data_set.setncatts({name: src.getncattr(name) for name in src.ncattrs()})
            for dim, size in zip(leading, src_var.shape):
                self.data_set.createDimension(dim, None if dim == self.record_dim else size)
            for dim, size in zip(grid.dims, grid.shape):
                self.data_set.createDimension(dim, size)

            compression = {}
            if prop.deflate_level > 0:
                compression = {'zlib': True, 'complevel': prop.deflate_level}
            self.variable = self.data_set.createVariable(
                self.varname, src_var.dtype, self.dims,
                fill_value=fill_value, **compression,
            )
            self.variable.setncatts(attrs)

            self.data_set.setncattr(f'{PROGRAM_NAME}: command', prop.command)
            self.data_set.setncattr(f'{PROGRAM_NAME}: wdir', os.getcwd())
        except Exception:
            self.abort()
            raise

        logger.info('Writing %s (via %s), size = %s', self.fname, self.fname_tmp,
                    ' x '.join(str(n) for n in self.shape))

    @property
    def shape(self) -> tuple[int, ...]:
        return tuple(1 if dim == self.record_dim else len(self.data_set.dimensions[dim])
                     for dim in self.dims)

    def write_layer(self, k: int, layer: np.ndarray) -> None:
        """Write destination layer ``k`` (flattened or horizontal shape)."""
        data = np.asarray(layer, dtype=np.float64).reshape(self.grid.shape)
        if self.mask_invalid:
            data = np.ma.masked_invalid(data)

        index = []
        for dim in self.dims:
            if dim == self.record_dim:
                index.append(0)
            elif dim == self.layer_dim:
                index.append(k)
            else:
                index.append(slice(None))
        self.variable[tuple(index)] = data

    def commit(self) -> None:
        """Close the temporary file and move it to the destination name."""
        self.data_set.close()
        os.replace(self.fname_tmp, self.fname)
        self.logger.info('  -> %s', self.fname)

    def abort(self) -> None:
        """Close and remove the temporary file, leaving the destination untouched."""
        if self.data_set.isopen():
            self.data_set.close()
        if os.path.exists(self.fname_tmp):
            os.remove(self.fname_tmp)
        self.logger.warning('Removed incomplete output %s', self.fname_tmp)

    def __enter__(self) -> 'FieldWriter':
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        if exc_type is None:
            self.commit()
        else:
            self.abort()
