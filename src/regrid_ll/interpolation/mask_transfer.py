"""
Valid-Layer Count Transfer

Derive the destination grid's per-point valid-layer count from the source
grid's count when no destination mask is available. The counts are
interpolated like any other field and rounded to the nearest non-negative
integer; destination points outside the source hull get 0 (fully masked).
"""

from __future__ import annotations

from logging import Logger
from typing import Optional

import numpy as np

from regrid_ll.interpolation.point_sets import build_point_sets, new_point_sets
from regrid_ll.interpolation.stereographic import GridProjection
from regrid_ll.interpolation.triangulation import (
    TriangulationAdapter,
    interpolate_hemispheres,
)


def transfer_mask(
    src_numlayers: np.ndarray,
    src_projection: GridProjection,
    dst_projection: GridProjection,
    dst_lat: np.ndarray,
    pole_epsilon: float,
    logger: Logger,
    adapter: Optional[TriangulationAdapter] = None,
    edge_mask: Optional[np.ndarray] = None,
) -> np.ndarray:
    """
    Interpolate source valid-layer counts onto the destination grid.

    Parameters
    ----------
    src_numlayers : np.ndarray
        Valid-layer count per source point, flattened
    src_projection : GridProjection
        Source coordinates in both planes
    dst_projection : GridProjection
        Destination coordinates in both planes
    dst_lat : np.ndarray
        Destination latitudes, flattened; selects the plane per point
    pole_epsilon : float
        Pole deduplication radius
    logger : Logger
        Logger instance
    adapter : TriangulationAdapter, optional
        Triangulation backend; a new one is created if None
    edge_mask : np.ndarray, optional
        Source edge columns to exclude

    Returns
    -------
    np.ndarray
        Valid-layer count per destination point (int32, >= 0)

    Examples
    --------
    >>> nk_dst = transfer_mask(nk_src, src_proj, dst_proj, dst_lat, 1e-6, logger)
    """
    if adapter is None:
        adapter = TriangulationAdapter(logger)

    logger.info('--- Transferring valid-layer counts to destination grid ---')
    counts = np.asarray(src_numlayers, dtype=np.float64).ravel()
    point_sets = new_point_sets(counts.size)
    build_point_sets(
        0, src_projection, counts, point_sets, pole_epsilon, logger,
        numlayers=None, edge_mask=edge_mask,
    )

    dst_lat = np.asarray(dst_lat).ravel()
    query = np.ones(dst_lat.shape, dtype=bool)
    interpolated = interpolate_hemispheres(
        adapter, point_sets, dst_projection, dst_lat >= 0.0, query,
    )

    outside = ~np.isfinite(interpolated)
    interpolated[outside] = 0.0
    dst_numlayers = np.clip(np.rint(interpolated), 0, None).astype(np.int32)

    logger.info(
        'Transferred valid-layer counts: %d of %d destination points masked, '
        '%d outside the source hull',
        int((dst_numlayers == 0).sum()), dst_numlayers.size, int(outside.sum()),
    )
    return dst_numlayers
