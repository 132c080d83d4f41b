"""
Regridding Errors

Fatal error classes raised by the regridding package. Points falling outside
the triangulated hull are not errors; they are resolved by the fill policy.
"""


class RegridError(Exception):
    """Base class for fatal regridding errors."""


class ConfigurationError(RegridError, ValueError):
    """
    Contradictory or unsupported run configuration.

    Raised for conflicting options, grid/variable dimension mismatches and
    unsupported dimensionality. Always raised before the output file exists.
    """


class DataError(RegridError, ValueError):
    """A source file, variable or layer cannot be read or has the wrong shape."""
