"""
Terrain placement and coordinate-warping rule engine.
"""

__version__ = "0.1.0"
