"""
regrid_ll Package

Interpolation of layered geophysical fields between geographic (lon/lat)
grids, structured or unstructured, including grids that reach the poles.

Provides tools for:
- Polar stereographic projection and Delaunay-based linear interpolation
- Per-layer masking by valid-layer counts
- Transfer of valid-layer counts between grids
- Layer-wise netCDF reading and writing
"""

__version__ = '0.1.0'

# Expose commonly used functionality at package level
from regrid_ll.errors import ConfigurationError, DataError, RegridError
from regrid_ll.regrid import regrid_ll
from regrid_ll.regrid_properties import GridDescriptor, RegridProperties

__all__ = [
    'ConfigurationError',
    'DataError',
    'GridDescriptor',
    'RegridError',
    'RegridProperties',
    'regrid_ll',
]
