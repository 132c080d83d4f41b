"""
Test suite for the transfer of valid-layer counts between grids.
"""

import numpy as np

from conftest import projected_lattice
from regrid_ll.interpolation.mask_transfer import transfer_mask
from regrid_ll.interpolation.point_sets import edge_column_mask
from regrid_ll.interpolation.stereographic import project_grid
from regrid_ll.interpolation.triangulation import TriangulationAdapter

EPS = 1.0e-6


class TestTransferMask:
    """Tests for transfer_mask()."""

    def test_uniform_counts_inside_and_outside(self, logger):
        _, _, src = projected_lattice([0.0, 1.0, 2.0], [10.0, 11.0, 12.0])
        dst_lon = np.array([0.5, 1.5, 30.0])
        dst_lat = np.array([10.5, 11.7, 50.0])
        dst = project_grid(dst_lon, dst_lat)

        counts = transfer_mask(np.full(9, 5), src, dst, dst_lat, EPS, logger)

        np.testing.assert_array_equal(counts, [5, 5, 0])
        assert counts.dtype == np.int32

    def test_rounding_to_nearest(self, logger):
        # Counts 2 along the southern row, 3 along the northern row
        _, _, src = projected_lattice([0.0, 1.0], [0.0, 1.0])
        src_counts = np.array([2, 2, 3, 3])
        dst_lat = np.array([0.2, 0.8])
        dst = project_grid(np.array([0.5, 0.5]), dst_lat)

        counts = transfer_mask(src_counts, src, dst, dst_lat, EPS, logger)

        np.testing.assert_array_equal(counts, [2, 3])

    def test_land_stays_masked(self, logger):
        """Zero counts take part in the interpolation so that land stays land."""
        _, _, src = projected_lattice([0.0, 1.0, 2.0], [-5.0, -4.0, -3.0])
        src_counts = np.zeros(9, dtype=int)
        dst_lat = np.array([-4.0])
        dst = project_grid(np.array([1.0]), dst_lat)

        counts = transfer_mask(src_counts, src, dst, dst_lat, EPS, logger)

        np.testing.assert_array_equal(counts, [0])

    def test_edge_columns_excluded(self, logger):
        # Middle column count 4, edge columns count 40
        _, _, src = projected_lattice([0.0, 1.0, 2.0, 3.0], [0.0, 1.0, 2.0])
        src_counts = np.array([40, 4, 4, 40] * 3)
        dst_lat = np.array([1.0])
        dst = project_grid(np.array([1.5]), dst_lat)

        adapter = TriangulationAdapter(logger)
        counts = transfer_mask(src_counts, src, dst, dst_lat, EPS, logger,
                               adapter=adapter, edge_mask=edge_column_mask(12, 4))

        np.testing.assert_array_equal(counts, [4])
        assert adapter.nbuilt == 1
