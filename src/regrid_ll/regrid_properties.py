"""
Regrid Properties

This module defines the RegridProperties class which holds the run
configuration handed to every regridding component.
"""

from logging import Logger
from typing import Optional

from regrid_ll.errors import ConfigurationError

FILL_POLICIES = ('zero', 'nan')


class GridDescriptor:
    """
    Location of a grid's coordinates inside a netCDF file.

    Attributes
    ----------
    fname : str
        Grid file path
    lon_name : str
        Name of the longitude variable
    lat_name : str
        Name of the latitude variable
    numlayers_name : str, optional
        Name of the per-point valid-layer count variable
    """

    def __init__(
        self,
        fname: str,
        lon_name: str,
        lat_name: str,
        numlayers_name: Optional[str] = None,
    ):
        self.fname = fname
        self.lon_name = lon_name
        self.lat_name = lat_name
        self.numlayers_name = numlayers_name

    def __repr__(self) -> str:
        return (f"GridDescriptor(fname='{self.fname}', lon='{self.lon_name}', "
                f"lat='{self.lat_name}', numlayers={self.numlayers_name!r})")


class RegridProperties:
    """
    Properties and configuration for a regridding run.

    Attributes
    ----------
    fname_src : str
        Source data file
    fname_dst : str
        Destination data file (clobbered)
    varname : str
        Variable to regrid
    grid_src : GridDescriptor
        Source grid
    grid_dst : GridDescriptor
        Destination grid
    skip_edge_columns : bool
        Do not use the first and last columns of the source field
        (e.g. NEMO on ORCA grids)
    fill : str
        Value for points where interpolation is undefined: 'zero' or 'nan'
    propagate_down : bool
        Reuse the deepest valid interpolated value for the rest of the column
    transfer_mask : bool
        Derive the destination valid-layer counts from the source ones
    deflate_level : int
        zlib compression level of the destination file
    verbosity : int
        0 (warnings only), 1 (progress) or 2 (per-layer point counts)
    pole_epsilon : float
        Planar radius around a projection pole inside which source points are
        deduplicated
    command : str
        Command line recorded in the destination file

    Examples
    --------
    >>> prop = RegridProperties()
    >>> prop.varname = "temp"
    >>> prop.fill = "nan"
    """

    def __init__(self):
        """Initialize RegridProperties with default values."""
        self.fname_src: str = ''
        self.fname_dst: str = ''
        self.varname: str = ''
        self.grid_src: Optional[GridDescriptor] = None
        self.grid_dst: Optional[GridDescriptor] = None

        self.skip_edge_columns: bool = False
        self.fill: str = 'zero'
        self.propagate_down: bool = False
        self.transfer_mask: bool = False
        self.deflate_level: int = 0
        self.verbosity: int = 1
        self.pole_epsilon: float = 1.0e-6

        self.command: str = ''

    @property
    def fill_value(self) -> float:
        """Scalar used where interpolation is undefined."""
        return float('nan') if self.fill == 'nan' else 0.0

    def validate(self, logger: Logger) -> None:
        """
        Check the configuration for missing or contradictory options.

        Parameters
        ----------
        logger : Logger
            Logger for error reporting

        Raises
        ------
        ConfigurationError
            If a required option is missing or options contradict each other
        """
        problems = []
        if not self.fname_src:
            problems.append('no input file specified')
        if not self.fname_dst:
            problems.append('no output file specified')
        if not self.varname:
            problems.append('no variable name specified')
        if self.grid_src is None:
            problems.append('no input grid specified')
        if self.grid_dst is None:
            problems.append('no output grid specified')
        if self.fill not in FILL_POLICIES:
            problems.append(
                f"unknown fill policy '{self.fill}', expected one of {FILL_POLICIES}")
        if not 0 <= self.deflate_level <= 9:
            problems.append(f'deflate level {self.deflate_level} is not in 0..9')
        if not 0 <= self.verbosity <= 2:
            problems.append(f'verbosity {self.verbosity} is not in 0..2')
        if self.pole_epsilon <= 0.0:
            problems.append(f'pole epsilon {self.pole_epsilon} must be positive')
        if self.transfer_mask and self.grid_dst is not None \
                and self.grid_dst.numlayers_name is not None:
            problems.append(
                'mask transfer requested while the destination valid-layer '
                f"count '{self.grid_dst.numlayers_name}' is given explicitly")
        if self.transfer_mask and self.grid_src is not None \
                and self.grid_src.numlayers_name is None:
            problems.append(
                'mask transfer requires the source valid-layer count')

        if problems:
            for problem in problems:
                logger.error('Configuration error: %s', problem)
            raise ConfigurationError('; '.join(problems))

    def __repr__(self) -> str:
        """String representation of RegridProperties."""
        return (f"RegridProperties(varname='{self.varname}', "
                f"src='{self.fname_src}', dst='{self.fname_dst}', "
                f"fill='{self.fill}', propagate_down={self.propagate_down})")
