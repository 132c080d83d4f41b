"""
Horizontal Grid

This module defines the Grid class holding the horizontal coordinates of a
source or destination grid, flattened in row-major [j][i] order.
"""

from __future__ import annotations

from typing import Optional

import numpy as np

CURVILINEAR = 'curvilinear'
RECTANGULAR = 'rectangular'
UNSTRUCTURED = 'unstructured'


class Grid:
    """
    Horizontal geographic grid.

    Attributes
    ----------
    topology : str
        'curvilinear' (2-D lon/lat), 'rectangular' (separable 1-D lon and
        lat) or 'unstructured' (a list of points)
    lon, lat : np.ndarray
        Flattened coordinates in degrees, float64, length ``npoints``
    ni, nj : int
        Lattice size; ``nj`` is 0 for unstructured grids
    dims : tuple[str, ...]
        Names of the horizontal dimensions, slowest first
    numlayers : np.ndarray, optional
        Number of valid layers counted from the top at each point; 0 means
        the column is fully masked

    Examples
    --------
    >>> grid = Grid.rectangular([0.0, 1.0], [0.0, 1.0], dims=('lat', 'lon'))
    >>> grid.shape
    (2, 2)
    """

    def __init__(
        self,
        topology: str,
        lon: np.ndarray,
        lat: np.ndarray,
        ni: int,
        nj: int,
        dims: tuple[str, ...],
        numlayers: Optional[np.ndarray] = None,
    ):
        self.topology = topology
        self.lon = np.asarray(lon, dtype=np.float64).ravel()
        self.lat = np.asarray(lat, dtype=np.float64).ravel()
        self.ni = int(ni)
        self.nj = int(nj)
        self.dims = tuple(dims)
        self.numlayers = None
        if numlayers is not None:
            self.numlayers = np.asarray(numlayers).ravel().astype(np.int32)

    @classmethod
    def curvilinear(cls, lon, lat, dims=('nj', 'ni'), numlayers=None) -> 'Grid':
        lon = np.asarray(lon)
        nj, ni = lon.shape
        return cls(CURVILINEAR, lon, lat, ni, nj, dims, numlayers)

    @classmethod
    def rectangular(cls, lon, lat, dims=('nj', 'ni'), numlayers=None) -> 'Grid':
        """Expand 1-D longitudes (along i) and latitudes (along j) to a lattice."""
        lon2d, lat2d = np.meshgrid(np.asarray(lon), np.asarray(lat))
        nj, ni = lon2d.shape
        return cls(RECTANGULAR, lon2d, lat2d, ni, nj, dims, numlayers)

    @classmethod
    def unstructured(cls, lon, lat, dims=('n',), numlayers=None) -> 'Grid':
        lon = np.asarray(lon).ravel()
        return cls(UNSTRUCTURED, lon, lat, lon.size, 0, dims, numlayers)

    @property
    def structured(self) -> bool:
        return self.nj > 0

    @property
    def npoints(self) -> int:
        return self.lon.size

    @property
    def shape(self) -> tuple[int, ...]:
        """Horizontal shape of a field on this grid."""
        if self.structured:
            return (self.nj, self.ni)
        return (self.ni,)

    def __repr__(self) -> str:
        return (f"Grid(topology='{self.topology}', shape={self.shape}, "
                f'numlayers={self.numlayers is not None})')
