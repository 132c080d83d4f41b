"""
Command Line Interface

Usage:
    regrid_ll -i <src> -o <dst> -v <varname>
              -gi <src grid> <lon> <lat> [<numlayers>]
              -go <dst grid> <lon> <lat> [<numlayers>]
              [-s] [-f {zero,nan}] [-p] [-t] [-d <level>] [-V <level>]
"""

from __future__ import annotations

import argparse
import logging
import logging.config
import sys
from typing import Optional

from regrid_ll import __version__
from regrid_ll.errors import RegridError
from regrid_ll.regrid import regrid_ll
from regrid_ll.regrid_properties import FILL_POLICIES, GridDescriptor, RegridProperties
from regrid_ll.utils import Utils, get_command, verbosity_to_level


class GridAction(argparse.Action):
    """Collect ``<file> <lon> <lat> [<numlayers>]`` into a GridDescriptor."""

    def __call__(self, parser, namespace, values, option_string=None):
        if not 3 <= len(values) <= 4:
            parser.error(
                f'{option_string} expects <grid file> <lon> <lat> [<numlayers>], '
                f'got {len(values)} argument(s)')
        setattr(namespace, self.dest, GridDescriptor(*values))


def create_parser(defaults: dict[str, str]) -> argparse.ArgumentParser:
    """Build the argument parser, taking option defaults from the config file."""
    parser = argparse.ArgumentParser(
        prog='regrid_ll',
        description='Interpolate a layered geophysical field onto a different '
                    'horizontal lon/lat grid (structured or unstructured)',
    )
    parser.add_argument(
        '-i',
        '--input',
        required=True,
        help='Source file',
    )
    parser.add_argument(
        '-o',
        '--output',
        required=True,
        help='Destination file (clobbered)',
    )
    parser.add_argument(
        '-v',
        '--variable',
        required=True,
        help='Variable to interpolate',
    )
    parser.add_argument(
        '-gi',
        '--src-grid',
        required=True,
        nargs='+',
        action=GridAction,
        metavar='ARG',
        help='Source grid: <grid file> <lon> <lat> [<numlayers>]',
    )
    parser.add_argument(
        '-go',
        '--dst-grid',
        required=True,
        nargs='+',
        action=GridAction,
        metavar='ARG',
        help='Destination grid: <grid file> <lon> <lat> [<numlayers>]',
    )
    parser.add_argument(
        '-s',
        '--skip-edge-columns',
        action='store_true',
        help='Do not use the first and last columns of the source field '
             '(e.g. with NEMO on ORCA grids)',
    )
    parser.add_argument(
        '-f',
        '--fill',
        choices=FILL_POLICIES,
        default=defaults.get('fill', 'zero'),
        help='Value for points where interpolation is undefined '
             '(default: %(default)s)',
    )
    parser.add_argument(
        '-p',
        '--propagate-down',
        action='store_true',
        help='Fill undefined points with the deepest valid value interpolated '
             'above them',
    )
    parser.add_argument(
        '-t',
        '--transfer-mask',
        action='store_true',
        help='Derive destination valid-layer counts from the source ones; '
             'incompatible with <numlayers> in -go',
    )
    parser.add_argument(
        '-d',
        '--deflate',
        type=int,
        default=int(defaults.get('deflate_level', 0)),
        help='Compression level of the destination file, 0-9 '
             '(default: %(default)s)',
    )
    parser.add_argument(
        '-V',
        '--verbosity',
        type=int,
        default=int(defaults.get('verbosity', 1)),
        help='Verbosity level 0, 1 or 2 (default: %(default)s)',
    )
    parser.add_argument(
        '--version',
        action='version',
        version=f'%(prog)s {__version__}',
    )
    return parser


def args_to_properties(
    args: argparse.Namespace,
    defaults: dict[str, str],
    argv: list[str],
) -> RegridProperties:
    """Transfer parsed arguments onto a RegridProperties instance."""
    prop = RegridProperties()
    prop.fname_src = args.input
    prop.fname_dst = args.output
    prop.varname = args.variable
    prop.grid_src = args.src_grid
    prop.grid_dst = args.dst_grid
    prop.skip_edge_columns = args.skip_edge_columns
    prop.fill = args.fill
    prop.propagate_down = args.propagate_down
    prop.transfer_mask = args.transfer_mask
    prop.deflate_level = args.deflate
    prop.verbosity = args.verbosity
    if 'pole_epsilon' in defaults:
        prop.pole_epsilon = float(defaults['pole_epsilon'])
    prop.command = get_command(['regrid_ll'] + argv)
    return prop


def setup_logger(utils: Utils, verbosity: int) -> logging.Logger:
    """Configure logging from conf/logging.conf and apply the verbosity level."""
    if utils.log_config_file.is_file():
        logging.config.fileConfig(utils.log_config_file, disable_existing_loggers=False)
    else:
        logging.basicConfig(format='%(asctime)s - %(levelname)s - %(message)s')
    logger = logging.getLogger('root')
    logger.setLevel(verbosity_to_level(verbosity))
    return logger


def main(argv: Optional[list[str]] = None) -> int:
    """
    Entry point of the ``regrid_ll`` command.

    Returns
    -------
    int
        Exit status: 0 on success, 1 on a configuration or data error
    """
    if argv is None:
        argv = sys.argv[1:]

    utils = Utils()
    defaults = utils.read_config_section('regrid', logging.getLogger(__name__))
    args = create_parser(defaults).parse_args(argv)

    logger = setup_logger(utils, args.verbosity)
    logger.info('Using config %s', utils.get_config_file())

    prop = args_to_properties(args, defaults, argv)
    try:
        regrid_ll(prop, logger)
    except (RegridError, OSError) as e_x:
        logger.error('regrid_ll: error: %s', e_x)
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
