"""
Triangulation and Linear Interpolation

Thin adapter around scipy's Delaunay triangulation and piecewise-linear
interpolant. An interpolant is built from one hemisphere's point set for one
layer, evaluated at the destination points, and released.
"""

from __future__ import annotations

from logging import Logger
from typing import Optional

import numpy as np
from scipy.interpolate import LinearNDInterpolator
from scipy.spatial import Delaunay, QhullError

from regrid_ll.interpolation.point_sets import PointSet
from regrid_ll.interpolation.stereographic import GridProjection


class HemisphereInterpolant:
    """Linear interpolant over the triangulation of one point set."""

    def __init__(self, hemisphere: str, triangulation: Delaunay, values: np.ndarray):
        self.hemisphere = hemisphere
        self.npoints = len(values)
        self._interpolator: Optional[LinearNDInterpolator] = LinearNDInterpolator(
            triangulation, values, fill_value=np.nan
        )

    @property
    def released(self) -> bool:
        return self._interpolator is None

    def __call__(self, x: np.ndarray, y: np.ndarray) -> np.ndarray:
        if self._interpolator is None:
            raise RuntimeError(f'{self.hemisphere} interpolant used after release')
        return self._interpolator(x, y)

    def release(self) -> None:
        self._interpolator = None


class TriangulationAdapter:
    """
    Build, evaluate and release hemisphere interpolants.

    Attributes
    ----------
    nbuilt : int
        Number of interpolants requested through ``build``
    nreleased : int
        Number of interpolants released

    Examples
    --------
    >>> adapter = TriangulationAdapter(logger)
    >>> interp = adapter.build(point_set)
    >>> values = adapter.evaluate(interp, x_dst, y_dst)
    >>> adapter.release(interp)
    """

    def __init__(self, logger: Logger):
        self.logger = logger
        self.nbuilt = 0
        self.nreleased = 0

    def build(self, points: PointSet) -> Optional[HemisphereInterpolant]:
        """
        Triangulate a point set and build a linear interpolant over it.

        Returns None when qhull cannot triangulate the set (fewer than three
        points, or all of them collinear); destination points of that
        hemisphere then take the fill policy.
        """
        if len(points) == 0:
            raise ValueError('cannot build an interpolant from an empty point set')
        self.nbuilt += 1

        xy = np.column_stack((points.x, points.y))
        try:
            triangulation = Delaunay(xy)
        except (QhullError, ValueError) as e_x:
            self.logger.warning(
                'Could not triangulate %d %s points (%s), using fill values',
                len(points), points.hemisphere, type(e_x).__name__,
            )
            return None

        return HemisphereInterpolant(points.hemisphere, triangulation, points.z.copy())

    @staticmethod
    def evaluate(
        interpolant: Optional[HemisphereInterpolant],
        x: np.ndarray,
        y: np.ndarray,
    ) -> np.ndarray:
        """Interpolate at query points; NaN outside the triangulated hull."""
        x = np.asarray(x, dtype=np.float64)
        y = np.asarray(y, dtype=np.float64)
        if interpolant is None:
            return np.full(x.shape, np.nan)
        return interpolant(x, y)

    def release(self, interpolant: Optional[HemisphereInterpolant]) -> None:
        if interpolant is None:
            return
        interpolant.release()
        self.nreleased += 1


def interpolate_hemispheres(
    adapter: TriangulationAdapter,
    point_sets: dict[str, PointSet],
    dst_projection: GridProjection,
    use_south: np.ndarray,
    query: np.ndarray,
) -> np.ndarray:
    """
    Interpolate one layer at the destination points from both point sets.

    Destination points flagged in ``use_south`` are evaluated with the
    interpolant of the south point set, the others with the north one. An
    interpolant is built only for a non-empty point set with at least one
    destination point to serve, and is released before returning.

    Parameters
    ----------
    adapter : TriangulationAdapter
        Triangulation backend
    point_sets : dict[str, PointSet]
        Source points of the layer, keyed by hemisphere
    dst_projection : GridProjection
        Destination coordinates in both planes
    use_south : np.ndarray
        Boolean, True where the destination latitude is non-negative
    query : np.ndarray
        Boolean, True for destination points to evaluate

    Returns
    -------
    np.ndarray
        Interpolated values; NaN outside the hull, where the hemisphere has
        no interpolant, and where ``query`` is False
    """
    result = np.full(use_south.shape, np.nan)

    for hemisphere, selected in (('south', query & use_south),
                                 ('north', query & ~use_south)):
        points = point_sets[hemisphere]
        if len(points) == 0 or not selected.any():
            continue
        x, y = dst_projection.hemisphere(hemisphere)
        interpolant = adapter.build(points)
        try:
            result[selected] = adapter.evaluate(interpolant, x[selected], y[selected])
        finally:
            adapter.release(interpolant)

    return result
