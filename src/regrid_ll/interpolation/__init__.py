"""
Interpolation Subpackage

Provides functionality for:
- Polar stereographic projection of lon/lat grids
- Per-layer source point set assembly
- Delaunay triangulation and linear interpolation
- Valid-layer count transfer between grids
- Layer-by-layer regridding
"""

# Projections
from regrid_ll.interpolation.stereographic import (
    GridProjection,
    ll2xyz,
    project,
    project_grid,
)

# Point sets
from regrid_ll.interpolation.point_sets import (
    PointSet,
    build_point_sets,
    edge_column_mask,
    new_point_sets,
)

# Triangulation
from regrid_ll.interpolation.triangulation import (
    HemisphereInterpolant,
    TriangulationAdapter,
    interpolate_hemispheres,
)

# Mask transfer
from regrid_ll.interpolation.mask_transfer import transfer_mask

# Layer loop
from regrid_ll.interpolation.layer_engine import LayerEngine, LayerStats

__all__ = [
    # Projections
    'GridProjection',
    'll2xyz',
    'project',
    'project_grid',
    # Point sets
    'PointSet',
    'build_point_sets',
    'edge_column_mask',
    'new_point_sets',
    # Triangulation
    'HemisphereInterpolant',
    'TriangulationAdapter',
    'interpolate_hemispheres',
    # Mask transfer
    'transfer_mask',
    # Layer loop
    'LayerEngine',
    'LayerStats',
]
