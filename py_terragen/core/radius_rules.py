"""
Radius rules.

A radius rule returns the size of the zone of influence of a feature placed
at a position. The placement driver uses it as the minimum spacing between
features of one layer.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from .terrain_data import Point, WorldData


class RadiusRule(ABC):
    """Base class of all radius rules."""

    @abstractmethod
    def get_radius(self, pos: Point, world: WorldData) -> float:
        """Return the influence radius at ``pos``."""

    @property
    @abstractmethod
    def description(self) -> str:
        """Human readable summary of the rule parameters."""


@dataclass(frozen=True)
class ConstantRadiusRule(RadiusRule):
    """Same radius everywhere."""

    radius: float

    @property
    def description(self) -> str:
        return f"Constant radius {self.radius}"

    def get_radius(self, pos: Point, world: WorldData) -> float:
        return self.radius


@dataclass(frozen=True)
class HeightBasedRadiusRule(RadiusRule):
    """
    Radius growing linearly with height.

    radius = base_radius + height * (max_radius - min_radius), clamped to
    [min_radius, max_radius]. min_radius only acts as the lower clamp bound.
    """

    base_radius: float
    min_radius: float
    max_radius: float

    @property
    def description(self) -> str:
        return f"Height-based radius {self.min_radius}-{self.max_radius}"

    def get_radius(self, pos: Point, world: WorldData) -> float:
        h = world.height_at(pos)
        radius = self.base_radius + h * (self.max_radius - self.min_radius)
        return min(max(radius, self.min_radius), self.max_radius)
