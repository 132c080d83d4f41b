"""
Source Point Sets

Assemble, for one layer, the source points that take part in the
interpolation in each of the two stereographic planes.

A source point is rejected if, in this order:

1. edge-column exclusion is on and the point is in the first or last column;
2. its column has bottomed out above the layer (valid-layer count <= k);
3. its value is not finite;
4. its coordinates in the given plane are not finite.

Of the points that sit on the pole at the origin of a plane (all meridians
meet there), only the first is kept: a Delaunay triangulation does not
tolerate coincident points.
"""

from __future__ import annotations

from logging import Logger
from typing import Optional

import numpy as np

from regrid_ll.interpolation.stereographic import GridProjection

HEMISPHERES = ('south', 'north')


class PointSet:
    """
    Arena of planar points reused from layer to layer.

    The buffers are allocated once with the capacity of the source grid and
    are cleared, not reallocated, before each layer.

    Attributes
    ----------
    hemisphere : str
        'south' or 'north'
    count : int
        Number of points currently held
    """

    def __init__(self, hemisphere: str, capacity: int):
        self.hemisphere = hemisphere
        self.count = 0
        self._x = np.empty(capacity, dtype=np.float64)
        self._y = np.empty(capacity, dtype=np.float64)
        self._z = np.empty(capacity, dtype=np.float64)

    def clear(self) -> None:
        self.count = 0

    def fill(self, x: np.ndarray, y: np.ndarray, z: np.ndarray) -> None:
        """Replace the held points with the given coordinates and values."""
        n = len(x)
        self._x[:n] = x
        self._y[:n] = y
        self._z[:n] = z
        self.count = n

    @property
    def x(self) -> np.ndarray:
        return self._x[:self.count]

    @property
    def y(self) -> np.ndarray:
        return self._y[:self.count]

    @property
    def z(self) -> np.ndarray:
        return self._z[:self.count]

    def __len__(self) -> int:
        return self.count

    def __repr__(self) -> str:
        return f"PointSet(hemisphere='{self.hemisphere}', count={self.count})"


def edge_column_mask(npoints: int, ni: int) -> np.ndarray:
    """Flag the first and last column of a row-major [j][i] lattice."""
    i = np.arange(npoints) % ni
    return (i == 0) | (i == ni - 1)


def candidate_mask(
    k: int,
    values: np.ndarray,
    numlayers: Optional[np.ndarray] = None,
    edge_mask: Optional[np.ndarray] = None,
) -> np.ndarray:
    """
    Flag the source points usable at layer ``k`` regardless of the plane.

    Parameters
    ----------
    k : int
        Layer index
    values : np.ndarray
        Source values of the layer, flattened
    numlayers : np.ndarray, optional
        Valid-layer count per source point; rule 2 is skipped if None
    edge_mask : np.ndarray, optional
        True for edge columns to exclude; rule 1 is skipped if None
    """
    keep = np.isfinite(values)
    if numlayers is not None:
        keep &= numlayers > k
    if edge_mask is not None:
        keep &= ~edge_mask
    return keep


def select_hemisphere_points(
    x: np.ndarray,
    y: np.ndarray,
    candidates: np.ndarray,
    pole_epsilon: float,
) -> np.ndarray:
    """
    Return the indices of candidate points that enter one plane.

    Points with non-finite planar coordinates are dropped. Points closer than
    ``pole_epsilon`` to the origin of the plane are kept only the first time
    one is met.
    """
    keep = candidates & np.isfinite(x) & np.isfinite(y)
    polar = keep & (np.hypot(x, y) < pole_epsilon)

    seen_polar_point = False
    for i in np.flatnonzero(polar):
        if seen_polar_point:
            keep[i] = False
        seen_polar_point = True

    return np.flatnonzero(keep)


def build_point_sets(
    k: int,
    projection: GridProjection,
    values: np.ndarray,
    point_sets: dict[str, PointSet],
    pole_epsilon: float,
    logger: Logger,
    numlayers: Optional[np.ndarray] = None,
    edge_mask: Optional[np.ndarray] = None,
) -> dict[str, PointSet]:
    """
    Fill the south and north point sets for layer ``k``.

    Parameters
    ----------
    k : int
        Layer index
    projection : GridProjection
        Source grid coordinates in both planes
    values : np.ndarray
        Source values of the layer (field values, or valid-layer counts for
        mask transfer), flattened
    point_sets : dict[str, PointSet]
        Arenas to refill, keyed by hemisphere
    pole_epsilon : float
        Pole deduplication radius
    logger : Logger
        Logger instance
    numlayers : np.ndarray, optional
        Valid-layer count per source point
    edge_mask : np.ndarray, optional
        Edge columns to exclude

    Returns
    -------
    dict[str, PointSet]
        ``point_sets``, refilled
    """
    values = np.asarray(values, dtype=np.float64).ravel()
    candidates = candidate_mask(k, values, numlayers, edge_mask)

    for hemisphere in HEMISPHERES:
        x, y = projection.hemisphere(hemisphere)
        points = point_sets[hemisphere]
        points.clear()
        index = select_hemisphere_points(x, y, candidates, pole_epsilon)
        points.fill(x[index], y[index], values[index])

    logger.debug(
        'k = %d: %d candidate source points, %d south, %d north',
        k, int(candidates.sum()), len(point_sets['south']),
        len(point_sets['north']),
    )
    return point_sets


def new_point_sets(capacity: int) -> dict[str, PointSet]:
    """Allocate one arena per hemisphere."""
    return {hemisphere: PointSet(hemisphere, capacity) for hemisphere in HEMISPHERES}
