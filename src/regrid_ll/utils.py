"""
Regridding Utilities

Configuration file access and small helpers shared by the command line and
the output writer.
"""

import configparser
import logging
import shlex
from pathlib import Path
from typing import Optional


class Utils:
    """
    Utility class for configuration file management.

    Attributes
    ----------
    config_file : Path
        Path to the main configuration file (conf/regrid_ll.conf)
    log_config_file : Path
        Path to the logging configuration file (conf/logging.conf)

    Examples
    --------
    >>> import logging
    >>> logger = logging.getLogger(__name__)
    >>> params = Utils().read_config_section('regrid', logger)
    >>> print(params['fill'])
    zero

    Notes
    -----
    The configuration file is expected to be in INI format:

    [regrid]
    fill = zero
    deflate_level = 0
    verbosity = 1
    pole_epsilon = 1.0e-6
    """

    def __init__(self, config_file: Optional[Path] = None):
        """
        Initialize Utils with path to configuration file.

        By default the files are located relative to the project root:
        <project_root>/conf/regrid_ll.conf and <project_root>/conf/logging.conf
        """
        # Navigate from src/regrid_ll/ up to project root
        conf_dir = (Path(__file__).parent.parent.parent / 'conf').resolve()
        if config_file is None:
            config_file = conf_dir / 'regrid_ll.conf'
        self.config_file = Path(config_file)
        self.log_config_file = conf_dir / 'logging.conf'

    def get_config_file(self) -> Path:
        """Get the path to the configuration file."""
        return self.config_file

    def read_config_section(
        self,
        section: str,
        logger: logging.Logger
    ) -> dict[str, str]:
        """
        Read a configuration file section and return as dictionary.

        Parameters
        ----------
        section : str
            Name of the section to read (e.g., 'regrid')
        logger : logging.Logger
            Logger instance for error reporting

        Returns
        -------
        Dict[str, str]
            Dictionary with configuration parameters from the section.
            Returns empty dict if section not found or file cannot be read.
        """
        params = {}
        config = configparser.ConfigParser()

        if not self.config_file.is_file():
            logger.warning(f'Config file not found: {self.config_file}')
            return params

        try:
            config.read(self.config_file)
            for option in config.options(section):
                params[option] = config.get(section, option)
        except configparser.NoSectionError as nse:
            logger.error(
                f"No section '{section}' found reading {self.config_file}: {nse}"
            )
        except configparser.Error as cpe:
            logger.error(
                f'Could not parse config file {self.config_file}: {cpe}',
                exc_info=True
            )

        return params


def get_command(argv: list[str]) -> str:
    """
    Join command line arguments into a single shell-quoted string.

    Examples
    --------
    >>> get_command(['regrid_ll', '-i', 'my file.nc'])
    "regrid_ll -i 'my file.nc'"
    """
    return ' '.join(shlex.quote(arg) for arg in argv)


def verbosity_to_level(verbosity: int) -> int:
    """Map the 0..2 verbosity scale onto a logging level."""
    if verbosity <= 0:
        return logging.WARNING
    if verbosity == 1:
        return logging.INFO
    return logging.DEBUG
