"""
Polar Stereographic Projections

Map geographic points onto two planes, each obtained by stereographic
projection from one of the poles. Interpolating in these planes instead of in
lon/lat avoids the coordinate singularity at the poles and the longitude
discontinuity of wrap-around grids.

The "south" plane is built from the latitude negated: it sends the north pole
to the origin and the south pole to infinity, and is used for destination
points in the northern hemisphere. The "north" plane mirrors it.
"""

from __future__ import annotations

from typing import NamedTuple, Union

import numpy as np
import numpy.typing as npt

# Conversion factor from degrees to radians: pi/180
DEG2RAD = np.pi / 180.0

ArrayLike = Union[float, npt.ArrayLike]


class GridProjection(NamedTuple):
    """Planar coordinates of every grid point in both projections."""

    x_south: np.ndarray
    y_south: np.ndarray
    x_north: np.ndarray
    y_north: np.ndarray

    def hemisphere(self, name: str) -> tuple[np.ndarray, np.ndarray]:
        """Return the (x, y) pair of the 'south' or 'north' projection."""
        if name == 'south':
            return self.x_south, self.y_south
        if name == 'north':
            return self.x_north, self.y_north
        raise ValueError(f'Unknown hemisphere: {name}')


def ll2xyz(lon: ArrayLike, lat: ArrayLike) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Convert geographic coordinates in degrees to a unit Cartesian vector.

    Returns
    -------
    x, y, z : np.ndarray
        ``x = sin(lon) cos(lat)``, ``y = cos(lon) cos(lat)``, ``z = sin(lat)``
    """
    lon_r = np.asarray(lon, dtype=np.float64) * DEG2RAD
    lat_r = np.asarray(lat, dtype=np.float64) * DEG2RAD
    coslat = np.cos(lat_r)

    return np.sin(lon_r) * coslat, np.cos(lon_r) * coslat, np.sin(lat_r)


def _stereographic(lon: ArrayLike, lat: ArrayLike) -> tuple[np.ndarray, np.ndarray]:
    x, y, z = ll2xyz(lon, lat)
    # Non-finite exactly at the pole projected from
    with np.errstate(divide='ignore', invalid='ignore'):
        denom = 1.0 - z
        return x / denom, y / denom


def project(
    lon: ArrayLike,
    lat: ArrayLike
) -> tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """
    Project geographic points onto the south and north stereographic planes.

    Parameters
    ----------
    lon : float or array_like
        Longitudes in degrees (any range; the mapping is periodic)
    lat : float or array_like
        Latitudes in degrees

    Returns
    -------
    x_south, y_south, x_north, y_north : np.ndarray
        Planar coordinates, float64, same shape as the input

    Notes
    -----
    For the unit vector ``v`` of a point the planar coordinates are
    ``(vx, vy) / (1 - vz)``. The south pair uses ``-lat``, the north pair
    ``lat``. Each pair is finite everywhere except at its own singular pole:
    the south pair at the south pole, the north pair at the north pole.

    Examples
    --------
    >>> xs, ys, xn, yn = project(0.0, 90.0)
    >>> bool(np.hypot(xs, ys) < 1e-12)
    True
    >>> bool(np.isfinite(xn))
    False
    """
    x_south, y_south = _stereographic(lon, -np.asarray(lat, dtype=np.float64))
    x_north, y_north = _stereographic(lon, lat)

    return x_south, y_south, x_north, y_north


def project_grid(lon: npt.ArrayLike, lat: npt.ArrayLike) -> GridProjection:
    """Project flattened grid coordinates once for the whole run."""
    return GridProjection(*project(np.ravel(lon), np.ravel(lat)))
