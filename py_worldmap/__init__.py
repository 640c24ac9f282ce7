"""
Seeded fantasy world generation on a wrapping grid.
"""

from .core.world import WorldOptions, WorldPipeline, WorldResult, generate_world

__version__ = "0.1.0"

__all__ = ['WorldOptions', 'WorldPipeline', 'WorldResult', 'generate_world']
