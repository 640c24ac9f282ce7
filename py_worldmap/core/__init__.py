"""
Core world generation functionality.
"""

from .mulberry_prng import Mulberry32, hash_string
from .grid import GridSize, create_grid_size
from .elevation import ElevationResult, ElevationStrategy, build_elevation_field
from .climate import Climate, ClimateOptions, ClimateResult, ClimateZone, build_climate_field
from .contours import ContourSet, build_contour_loops
from .borders import BorderAssignor, BorderOptions, BorderResult, Country
from .world import WorldOptions, WorldPipeline, WorldResult, generate_world

__all__ = ['Mulberry32', 'hash_string', 'GridSize', 'create_grid_size',
           'ElevationResult', 'ElevationStrategy', 'build_elevation_field',
           'Climate', 'ClimateOptions', 'ClimateResult', 'ClimateZone', 'build_climate_field',
           'ContourSet', 'build_contour_loops',
           'BorderAssignor', 'BorderOptions', 'BorderResult', 'Country',
           'WorldOptions', 'WorldPipeline', 'WorldResult', 'generate_world']
