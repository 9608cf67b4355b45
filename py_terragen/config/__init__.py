"""
Configuration for terrain generation and tree placement.
"""

from .config import Settings, settings

__all__ = ['Settings', 'settings']
