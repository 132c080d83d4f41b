"""
Regrid a Layered Field

Run the whole regridding of one variable: read and project both grids,
optionally transfer the valid-layer counts, then interpolate the layers one
by one into a new destination file.

All configuration problems are detected before the destination file is
created. The destination appears only once every layer has been written.
"""

from __future__ import annotations

from logging import Logger
from typing import Optional

from regrid_ll.errors import ConfigurationError
from regrid_ll.grid_io.field_io import FieldReader, FieldWriter
from regrid_ll.grid_io.read_grid import read_grid
from regrid_ll.interpolation.layer_engine import LayerEngine, LayerStats
from regrid_ll.interpolation.mask_transfer import transfer_mask
from regrid_ll.interpolation.point_sets import edge_column_mask
from regrid_ll.interpolation.stereographic import project_grid
from regrid_ll.interpolation.triangulation import TriangulationAdapter
from regrid_ll.regrid_properties import RegridProperties


def regrid_ll(
    prop: RegridProperties,
    logger: Logger,
    adapter: Optional[TriangulationAdapter] = None,
) -> list[LayerStats]:
    """
    Regrid ``prop.varname`` from the source grid onto the destination grid.

    Parameters
    ----------
    prop : RegridProperties
        Run configuration
    logger : Logger
        Logger instance
    adapter : TriangulationAdapter, optional
        Triangulation backend; a new one is created if None

    Returns
    -------
    list[LayerStats]
        Point counts of every layer

    Raises
    ------
    ConfigurationError
        For contradictory options or mismatching dimensions; raised before
        the destination file is created
    DataError
        If the source cannot be read; the destination is left untouched

    Examples
    --------
    >>> prop = RegridProperties()
    >>> prop.fname_src, prop.fname_dst, prop.varname = 'in.nc', 'out.nc', 'temp'
    >>> prop.grid_src = GridDescriptor('grid_in.nc', 'nav_lon', 'nav_lat', 'mbathy')
    >>> prop.grid_dst = GridDescriptor('grid_out.nc', 'lon', 'lat')
    >>> stats = regrid_ll(prop, logger)
    """
    prop.validate(logger)
    if adapter is None:
        adapter = TriangulationAdapter(logger)

    logger.info('--- Starting regridding ---')
    logger.info('src = %s, varname = %s', prop.fname_src, prop.varname)

    with FieldReader(prop.fname_src, prop.varname, logger) as reader:
        logger.info('  size = %s', ' x '.join(str(n) for n in reader.shape))

        grid_src = read_grid(prop.grid_src, logger, field_shape=reader.shape)
        nk = reader.set_grid(grid_src)
        grid_dst = read_grid(prop.grid_dst, logger)

        src_edge_mask = None
        if prop.skip_edge_columns:
            if not grid_src.structured:
                logger.error('Edge column exclusion needs a structured source grid')
                raise ConfigurationError(
                    'edge column exclusion needs a structured source grid')
            src_edge_mask = edge_column_mask(grid_src.npoints, grid_src.ni)

        logger.info('--- Converting lon/lat to stereographic projections ---')
        src_projection = project_grid(grid_src.lon, grid_src.lat)
        dst_projection = project_grid(grid_dst.lon, grid_dst.lat)

        dst_numlayers = grid_dst.numlayers
        if prop.transfer_mask:
            dst_numlayers = transfer_mask(
                grid_src.numlayers, src_projection, dst_projection, grid_dst.lat,
                prop.pole_epsilon, logger, adapter=adapter, edge_mask=src_edge_mask,
            )

        engine = LayerEngine(
            src_projection, dst_projection, grid_dst.lat, prop, logger,
            src_numlayers=grid_src.numlayers, dst_numlayers=dst_numlayers,
            src_edge_mask=src_edge_mask, adapter=adapter,
        )

        with FieldWriter(prop, reader, grid_dst, logger) as writer:
            stats = engine.run(nk, reader.read_layer, writer.write_layer)

    logger.info('--- Regridding complete ---')
    return stats
