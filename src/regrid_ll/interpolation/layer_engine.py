"""
Layer-by-Layer Regridding

The layer engine interpolates a layered field from the source to the
destination grid one horizontal layer at a time:

    for k = 0 ... nk-1:
        build south/north source point sets
        if both are empty: the whole layer takes the fill value
        else: build interpolants, evaluate destination points, release
        write the layer

Destination points with non-negative latitude are evaluated in the south
plane, the others in the north plane. Where interpolation is undefined the
point takes the fill value (0 or NaN) or, in propagate-down mode, the last
finite value interpolated for it at a shallower layer. Because of that
carried state, layers are processed strictly in increasing order.
"""

from __future__ import annotations

from logging import Logger
from typing import Callable, Optional

import numpy as np

from regrid_ll.interpolation.point_sets import build_point_sets, new_point_sets
from regrid_ll.interpolation.stereographic import GridProjection
from regrid_ll.interpolation.triangulation import (
    TriangulationAdapter,
    interpolate_hemispheres,
)
from regrid_ll.regrid_properties import RegridProperties


class LayerStats:
    """Point counts of one processed layer."""

    def __init__(self, k: int):
        self.k = k
        self.nsouth = 0
        self.nnorth = 0
        self.nqueried = 0
        self.nfilled = 0
        self.npropagated = 0

    @property
    def empty(self) -> bool:
        return self.nsouth == 0 and self.nnorth == 0

    def __repr__(self) -> str:
        return (f'LayerStats(k={self.k}, in={self.nsouth}/{self.nnorth}, '
                f'out={self.nqueried}, filled={self.nfilled})')


class LayerEngine:
    """
    Regrid the layers of one field between two projected grids.

    Parameters
    ----------
    src_projection : GridProjection
        Source coordinates in both planes
    dst_projection : GridProjection
        Destination coordinates in both planes
    dst_lat : np.ndarray
        Destination latitudes, flattened
    prop : RegridProperties
        Run configuration (fill, propagate_down, pole_epsilon)
    logger : Logger
        Logger instance
    src_numlayers : np.ndarray, optional
        Valid-layer count per source point
    dst_numlayers : np.ndarray, optional
        Valid-layer count per destination point, explicit or transferred
    src_edge_mask : np.ndarray, optional
        Source edge columns to exclude
    adapter : TriangulationAdapter, optional
        Triangulation backend; a new one is created if None

    Examples
    --------
    >>> engine = LayerEngine(src_proj, dst_proj, dst_lat, prop, logger)
    >>> stats = engine.run(nk, reader.read_layer, writer.write_layer)
    """

    def __init__(
        self,
        src_projection: GridProjection,
        dst_projection: GridProjection,
        dst_lat: np.ndarray,
        prop: RegridProperties,
        logger: Logger,
        src_numlayers: Optional[np.ndarray] = None,
        dst_numlayers: Optional[np.ndarray] = None,
        src_edge_mask: Optional[np.ndarray] = None,
        adapter: Optional[TriangulationAdapter] = None,
    ):
        self.src_projection = src_projection
        self.dst_projection = dst_projection
        self.prop = prop
        self.logger = logger
        self.src_numlayers = src_numlayers
        self.dst_numlayers = dst_numlayers
        self.src_edge_mask = src_edge_mask
        self.adapter = adapter if adapter is not None else TriangulationAdapter(logger)

        self.nsrc = len(src_projection.x_south)
        self.ndst = len(dst_projection.x_south)
        self.use_south = np.asarray(dst_lat).ravel() >= 0.0
        self.point_sets = new_point_sets(self.nsrc)

        # Last finite value per destination point, carried to deeper layers
        self.fill_state: Optional[np.ndarray] = None
        if prop.propagate_down:
            self.fill_state = np.full(self.ndst, np.nan)
        self.next_k = 0
        self.nfilled_total = 0

    def _query_mask(self, k: int) -> np.ndarray:
        if self.dst_numlayers is None:
            return np.ones(self.ndst, dtype=bool)
        return self.dst_numlayers > k

    def regrid_layer(self, k: int, values: np.ndarray) -> tuple[np.ndarray, LayerStats]:
        """
        Interpolate one source layer onto the destination grid.

        Parameters
        ----------
        k : int
            Layer index
        values : np.ndarray
            Source layer, NaN for missing values

        Returns
        -------
        layer : np.ndarray
            Destination layer, flattened
        stats : LayerStats
            Point counts for the layer

        Raises
        ------
        ValueError
            If layers are given out of order in propagate-down mode, or the
            source layer has the wrong size
        """
        if self.fill_state is not None and k != self.next_k:
            raise ValueError(
                f'propagate-down requires layers in order: expected k = '
                f'{self.next_k}, got k = {k}')
        values = np.asarray(values, dtype=np.float64).ravel()
        if values.size != self.nsrc:
            raise ValueError(
                f'source layer has {values.size} points, grid has {self.nsrc}')

        stats = LayerStats(k)
        layer = np.full(self.ndst, self.prop.fill_value)

        build_point_sets(
            k, self.src_projection, values, self.point_sets,
            self.prop.pole_epsilon, self.logger,
            numlayers=self.src_numlayers, edge_mask=self.src_edge_mask,
        )
        stats.nsouth = len(self.point_sets['south'])
        stats.nnorth = len(self.point_sets['north'])
        query = self._query_mask(k)
        stats.nqueried = int(query.sum())

        if not stats.empty:
            interpolated = interpolate_hemispheres(
                self.adapter, self.point_sets, self.dst_projection,
                self.use_south, query,
            )
            valid = np.isfinite(interpolated)
            layer[valid] = interpolated[valid]
            gap = query & ~valid
            stats.nfilled = int(gap.sum())

            if self.fill_state is not None:
                self.fill_state[valid] = interpolated[valid]
                carry = gap & np.isfinite(self.fill_state)
                layer[carry] = self.fill_state[carry]
                stats.npropagated = int(carry.sum())

        self.next_k = k + 1
        self.nfilled_total += stats.nfilled
        self._log_layer(stats)

        return layer, stats

    def _log_layer(self, stats: LayerStats) -> None:
        if stats.empty:
            self.logger.debug('k = %d: no valid source points, layer filled', stats.k)
            return
        message = 'k = %d: %d in (south), %d in (north), %d out'
        args = [stats.k, stats.nsouth, stats.nnorth, stats.nqueried]
        if stats.nfilled > 0:
            message += ' (%d filled, %d propagated)'
            args += [stats.nfilled, stats.npropagated]
        self.logger.debug(message, *args)

    def run(
        self,
        nk: int,
        read_layer: Callable[[int], np.ndarray],
        write_layer: Callable[[int, np.ndarray], None],
    ) -> list[LayerStats]:
        """
        Regrid layers 0 ... nk-1 in order.

        Parameters
        ----------
        nk : int
            Number of layers
        read_layer : callable
            ``read_layer(k)`` returns source layer k
        write_layer : callable
            ``write_layer(k, layer)`` persists destination layer k

        Returns
        -------
        list[LayerStats]
            Point counts of every layer
        """
        self.logger.info('--- Interpolating %d layer(s) ---', nk)
        all_stats = []
        for k in range(nk):
            layer, stats = self.regrid_layer(k, read_layer(k))
            write_layer(k, layer)
            all_stats.append(stats)
            if (k + 1) % 10 == 0 or k == nk - 1:
                self.logger.info('Interpolated %d of %d layers', k + 1, nk)

        self.logger.info('Destination points filled: %d', self.nfilled_total)
        return all_stats
