"""
Grid and Field I/O Subpackage

Provides functionality for:
- Horizontal grid representation
- Reading grid coordinates and valid-layer counts
- Layer-wise reading and writing of netCDF fields
"""

from regrid_ll.grid_io.field_io import FieldReader, FieldWriter
from regrid_ll.grid_io.grid import Grid
from regrid_ll.grid_io.read_grid import read_grid

__all__ = [
    'FieldReader',
    'FieldWriter',
    'Grid',
    'read_grid',
]
