"""
End-to-end tests of a regridding run and of the command line.
"""

import os

import numpy as np
import pytest
from netCDF4 import Dataset

from conftest import lattice, write_netcdf
from regrid_ll import GridDescriptor, regrid_ll
from regrid_ll.cli import main
from regrid_ll.errors import ConfigurationError, DataError
from regrid_ll.grid_io.field_io import FieldReader

FILL = 1.0e20


@pytest.fixture
def src_files(tmp_path):
    """
    3 x 3 rectangular source grid with two layers.

    Layer 0 is 10 + lon + lat, layer 1 is 20 + lon. The north-east corner
    column has a single valid layer.
    """
    nlayers = np.full((3, 3), 2, dtype=np.int32)
    nlayers[2, 2] = 1
    grid = write_netcdf(
        tmp_path / 'grid_src.nc',
        {'x': 3, 'y': 3},
        {
            'lon': (('x',), [0.0, 1.0, 2.0], {}, None),
            'lat': (('y',), [0.0, 1.0, 2.0], {}, None),
            'nlayers': (('y', 'x'), nlayers, {}, None),
        },
    )
    lon, lat = lattice([0.0, 1.0, 2.0], [0.0, 1.0, 2.0])
    temp = np.stack([10.0 + lon + lat, 20.0 + lon]).reshape(1, 2, 3, 3)
    temp = np.ma.masked_array(temp, mask=np.zeros_like(temp, dtype=bool))
    temp.mask[0, 1, 2, 2] = True
    field = write_netcdf(
        tmp_path / 'temp.nc',
        {'time': None, 'z': 2, 'y': 3, 'x': 3},
        {'temp': (('time', 'z', 'y', 'x'), temp, {'_FillValue': FILL}, 'f8')},
    )
    return str(field), str(grid)


@pytest.fixture
def dst_grid_file(tmp_path):
    """Three unstructured destination nodes, the last far outside the source."""
    return str(write_netcdf(
        tmp_path / 'grid_dst.nc',
        {'node': 3},
        {
            'lon': (('node',), [1.0, 0.5, 30.0], {}, None),
            'lat': (('node',), [1.0, 0.5, 30.0], {}, None),
            'nlayers': (('node',), np.array([2, 1, 2], dtype=np.int32), {}, None),
        },
    ))


@pytest.fixture
def run_prop(prop, src_files, dst_grid_file, tmp_path):
    field, grid = src_files
    prop.fname_src = field
    prop.fname_dst = str(tmp_path / 'out.nc')
    prop.varname = 'temp'
    prop.grid_src = GridDescriptor(grid, 'lon', 'lat', 'nlayers')
    prop.grid_dst = GridDescriptor(dst_grid_file, 'lon', 'lat')
    return prop


def read_output(fname, varname='temp'):
    with Dataset(fname) as nc:
        return nc.variables[varname][:]


class TestRegrid:
    """Tests for regrid_ll()."""

    def test_two_layers(self, run_prop, logger):
        stats = regrid_ll(run_prop, logger)

        out = read_output(run_prop.fname_dst)
        assert out.shape == (1, 2, 3)
        assert out[0, 0, 0] == pytest.approx(12.0)
        assert out[0, 0, 1] == pytest.approx(11.0, abs=0.05)
        assert out[0, 0, 2] == 0.0
        assert out[0, 1, 0] == pytest.approx(21.0)
        assert [s.k for s in stats] == [0, 1]
        # The corner column is excluded from layer 1
        assert stats[0].nsouth == 9
        assert stats[1].nsouth == 8
        assert not os.path.exists(run_prop.fname_dst + '.tmp')

    def test_nan_fill_is_masked(self, run_prop, logger):
        run_prop.fill = 'nan'
        regrid_ll(run_prop, logger)

        out = read_output(run_prop.fname_dst)
        assert np.ma.is_masked(out[0, 0, 2])
        assert np.ma.is_masked(out[0, 1, 2])
        assert out[0, 0, 0] == pytest.approx(12.0)

    def test_destination_numlayers(self, run_prop, dst_grid_file, logger):
        run_prop.grid_dst = GridDescriptor(dst_grid_file, 'lon', 'lat', 'nlayers')
        regrid_ll(run_prop, logger)

        out = read_output(run_prop.fname_dst)
        # Node 1 has a single valid layer
        assert out[0, 0, 1] == pytest.approx(11.0, abs=0.05)
        assert out[0, 1, 1] == 0.0
        assert out[0, 1, 0] == pytest.approx(21.0)

    def test_transfer_mask(self, run_prop, logger):
        run_prop.transfer_mask = True
        run_prop.propagate_down = True
        regrid_ll(run_prop, logger)

        out = read_output(run_prop.fname_dst)
        assert out[0, 1, 0] == pytest.approx(21.0)
        # Outside the source hull the transferred count is 0
        assert out[0, 0, 2] == 0.0
        assert out[0, 1, 2] == 0.0

    def test_conflicting_mask_options(self, run_prop, dst_grid_file, logger):
        run_prop.transfer_mask = True
        run_prop.grid_dst = GridDescriptor(dst_grid_file, 'lon', 'lat', 'nlayers')

        with pytest.raises(ConfigurationError):
            regrid_ll(run_prop, logger)

        assert not os.path.exists(run_prop.fname_dst)
        assert not os.path.exists(run_prop.fname_dst + '.tmp')

    def test_read_failure_keeps_previous_output(self, run_prop, logger, monkeypatch):
        with open(run_prop.fname_dst, 'w') as previous:
            previous.write('previous result')
        read_layer = FieldReader.read_layer

        def failing_read_layer(self, k):
            if k == 1:
                raise DataError('layer 1 is corrupt')
            return read_layer(self, k)

        monkeypatch.setattr(FieldReader, 'read_layer', failing_read_layer)

        with pytest.raises(DataError):
            regrid_ll(run_prop, logger)

        assert not os.path.exists(run_prop.fname_dst + '.tmp')
        with open(run_prop.fname_dst) as previous:
            assert previous.read() == 'previous result'

    def test_skip_edge_columns(self, tmp_path, prop, logger):
        lon = [0.0, 1.0, 2.0, 3.0]
        lat = [0.0, 1.0, 2.0]
        grid = write_netcdf(
            tmp_path / 'grid.nc', {'x': 4, 'y': 3},
            {'lon': (('x',), lon, {}, None), 'lat': (('y',), lat, {}, None)},
        )
        # Edge columns carry a wrap-around halo with different values
        field = write_netcdf(
            tmp_path / 'ssh.nc', {'y': 3, 'x': 4},
            {'ssh': (('y', 'x'), np.array([[100.0, 1.0, 1.0, 100.0]] * 3), {}, None)},
        )
        dst = write_netcdf(
            tmp_path / 'dst.nc', {'node': 1},
            {'lon': (('node',), [1.5], {}, None), 'lat': (('node',), [1.0], {}, None)},
        )
        prop.fname_src = str(field)
        prop.fname_dst = str(tmp_path / 'out.nc')
        prop.varname = 'ssh'
        prop.grid_src = GridDescriptor(str(grid), 'lon', 'lat')
        prop.grid_dst = GridDescriptor(str(dst), 'lon', 'lat')
        prop.skip_edge_columns = True

        regrid_ll(prop, logger)

        out = read_output(prop.fname_dst, 'ssh')
        assert out.shape == (1,)
        assert out[0] == pytest.approx(1.0)

    def test_unstructured_to_rectangular(self, tmp_path, prop, logger):
        src = write_netcdf(
            tmp_path / 'mesh.nc', {'node': 6},
            {
                'lon': (('node',), [0.0, 2.0, 4.0, 0.0, 2.0, 4.0], {}, None),
                'lat': (('node',), [-1.0, -1.5, -1.0, 1.0, 1.5, 1.0], {}, None),
                'eta': (('node',), np.full(6, 7.0), {}, None),
            },
        )
        dst = write_netcdf(
            tmp_path / 'dst.nc', {'x': 2, 'y': 2},
            {'lon': (('x',), [1.0, 3.0], {}, None), 'lat': (('y',), [-0.5, 0.5], {}, None)},
        )
        prop.fname_src = str(src)
        prop.fname_dst = str(tmp_path / 'out.nc')
        prop.varname = 'eta'
        prop.grid_src = GridDescriptor(str(src), 'lon', 'lat')
        prop.grid_dst = GridDescriptor(str(dst), 'lon', 'lat')

        regrid_ll(prop, logger)

        with Dataset(prop.fname_dst) as nc:
            assert nc.variables['eta'].dimensions == ('y', 'x')
            np.testing.assert_allclose(nc.variables['eta'][:], 7.0)

    def test_edge_columns_need_structured_source(self, tmp_path, prop, logger):
        src = write_netcdf(
            tmp_path / 'mesh.nc', {'node': 3},
            {
                'lon': (('node',), [0.0, 1.0, 0.0], {}, None),
                'lat': (('node',), [0.0, 0.0, 1.0], {}, None),
                'eta': (('node',), np.ones(3), {}, None),
            },
        )
        prop.fname_src = str(src)
        prop.fname_dst = str(tmp_path / 'out.nc')
        prop.varname = 'eta'
        prop.grid_src = GridDescriptor(str(src), 'lon', 'lat')
        prop.grid_dst = GridDescriptor(str(src), 'lon', 'lat')
        prop.skip_edge_columns = True

        with pytest.raises(ConfigurationError):
            regrid_ll(prop, logger)
        assert not os.path.exists(prop.fname_dst)


class TestCommandLine:
    """Tests for the regrid_ll command."""

    def test_success(self, src_files, dst_grid_file, tmp_path):
        field, grid = src_files
        out = str(tmp_path / 'out.nc')
        argv = ['-i', field, '-o', out, '-v', 'temp',
                '-gi', grid, 'lon', 'lat', 'nlayers',
                '-go', dst_grid_file, 'lon', 'lat',
                '-f', 'nan', '-p', '-d', '1', '-V', '0']

        assert main(argv) == 0

        with Dataset(out) as nc:
            command = nc.getncattr('regrid_ll: command')
            assert command.startswith('regrid_ll -i ')
            assert '-gi' in command and '-p' in command
            assert nc.variables['temp'][0, 0, 0] == pytest.approx(12.0)

    def test_error_exit_status(self, src_files, dst_grid_file, tmp_path):
        field, grid = src_files
        out = str(tmp_path / 'out.nc')
        argv = ['-i', field, '-o', out, '-v', 'salt',
                '-gi', grid, 'lon', 'lat',
                '-go', dst_grid_file, 'lon', 'lat', '-V', '0']

        assert main(argv) == 1
        assert not os.path.exists(out)

    def test_grid_option_arity(self, src_files, dst_grid_file, tmp_path):
        field, grid = src_files
        argv = ['-i', field, '-o', str(tmp_path / 'out.nc'), '-v', 'temp',
                '-gi', grid, 'lon',
                '-go', dst_grid_file, 'lon', 'lat']

        with pytest.raises(SystemExit):
            main(argv)

    def test_unknown_fill_policy(self, src_files, dst_grid_file, tmp_path):
        field, grid = src_files
        argv = ['-i', field, '-o', str(tmp_path / 'out.nc'), '-v', 'temp',
                '-gi', grid, 'lon', 'lat',
                '-go', dst_grid_file, 'lon', 'lat', '-f', 'mean']

        with pytest.raises(SystemExit):
            main(argv)
