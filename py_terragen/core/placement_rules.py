"""
Placement rules.

A placement rule decides whether a feature may be placed at a position of a
world. Rules are immutable and never modify the world they read. Composite
rules combine children with logical AND; an empty composite never allows a
placement.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Sequence, Tuple

import numpy as np
import structlog

from .terrain_data import Point, WorldData, to_cell

logger = structlog.get_logger()


class PlacementRule(ABC):
    """Base class of all placement rules."""

    @abstractmethod
    def can_place_in(self, pos: Point, world: WorldData) -> bool:
        """Return True if a feature may be placed at ``pos``."""

    @property
    @abstractmethod
    def description(self) -> str:
        """Human readable summary of the rule parameters."""


@dataclass(frozen=True)
class HeightRangeRule(PlacementRule):
    """Height within [min_height, max_height]."""

    min_height: float
    max_height: float

    @property
    def description(self) -> str:
        return f"Height between {self.min_height} and {self.max_height}"

    def can_place_in(self, pos: Point, world: WorldData) -> bool:
        h = world.height_at(pos)
        return self.min_height <= h <= self.max_height


@dataclass(frozen=True)
class MaxSlopeRule(PlacementRule):
    """Slope not above max_slope."""

    max_slope: float

    @property
    def description(self) -> str:
        return f"Slope less than {self.max_slope}"

    def can_place_in(self, pos: Point, world: WorldData) -> bool:
        return world.slope_at(pos) <= self.max_slope


@dataclass(frozen=True)
class SlopeRangeRule(PlacementRule):
    """Slope within [min_slope, max_slope]."""

    min_slope: float
    max_slope: float

    @property
    def description(self) -> str:
        return f"Slope in range [{self.min_slope}; {self.max_slope}]"

    def can_place_in(self, pos: Point, world: WorldData) -> bool:
        return self.min_slope <= world.slope_at(pos) <= self.max_slope


@dataclass(frozen=True)
class AboveSeaLevelRule(PlacementRule):
    """Height above sea level by an amount within [min_above_water, max_above_water]."""

    min_above_water: float
    max_above_water: float

    @property
    def description(self) -> str:
        return f"Above water level by {self.min_above_water} to {self.max_above_water}"

    def can_place_in(self, pos: Point, world: WorldData) -> bool:
        h = world.height_at(pos)
        if h < world.sea_level:
            return False

        above_water = h - world.sea_level
        return self.min_above_water <= above_water <= self.max_above_water


@dataclass(frozen=True)
class MoistureRule(PlacementRule):
    """Moisture within [min_moisture, max_moisture]."""

    min_moisture: float
    max_moisture: float

    @property
    def description(self) -> str:
        return f"Moisture in range [{self.min_moisture}, {self.max_moisture}]"

    def can_place_in(self, pos: Point, world: WorldData) -> bool:
        return self.min_moisture <= world.moisture_at(pos) <= self.max_moisture


@dataclass(frozen=True, eq=False)
class NoiseMapRule(PlacementRule):
    """
    Noise value at the position at least noise_threshold.

    Lets an external mask, e.g. a biome map, gate placement. A noise map
    with another resolution than the terrain is addressed by the relative
    position of the cell inside the terrain.
    """

    noise_map: np.ndarray
    noise_threshold: float

    @property
    def description(self) -> str:
        return (
            "Determines placement based on a noise map threshold. "
            f"Threshold: {self.noise_threshold}"
        )

    def _noise_cell(self, pos: Point, world: WorldData) -> Tuple[int, int]:
        row, col = to_cell(pos)
        noise_h, noise_w = self.noise_map.shape
        terrain_h = world.terrain.terrain_map_height
        terrain_w = world.terrain.terrain_map_width
        if (noise_h, noise_w) == (terrain_h, terrain_w):
            return row, col

        row_progress = row / (terrain_h - 1) if terrain_h > 1 else 0.0
        col_progress = col / (terrain_w - 1) if terrain_w > 1 else 0.0
        return int(row_progress * (noise_h - 1)), int(col_progress * (noise_w - 1))

    def can_place_in(self, pos: Point, world: WorldData) -> bool:
        return bool(self.noise_map[self._noise_cell(pos, world)] >= self.noise_threshold)


@dataclass(frozen=True)
class WaterInRadiusRule(PlacementRule):
    """Some water cell within radius of the position."""

    radius: float

    @property
    def description(self) -> str:
        return f"Water in radius {self.radius}"

    def can_place_in(self, pos: Point, world: WorldData) -> bool:
        heights = world.terrain.height_map
        x, y = float(pos[0]), float(pos[1])
        window = _circle_window(heights.shape, x, y, self.radius)
        if window is None:
            return False

        rows, cols, mask = window
        under_water = heights[rows, cols] < world.sea_level
        return bool(np.any(under_water & mask))


@dataclass(frozen=True)
class NoTreeLayersInRadiusRule(PlacementRule):
    """
    No tree of the named layers within radius of the position.

    Layers are looked up by layer name, ignoring case; unknown names are
    ignored. The radius is given in terrain cells and scaled to the tree
    layer grid when the layers were generated at another density.
    """

    radius: float
    tree_layer_names: Sequence[str] = field(default_factory=tuple)

    def __post_init__(self):
        object.__setattr__(self, "tree_layer_names", tuple(self.tree_layer_names))

    @property
    def description(self) -> str:
        names = ", ".join(self.tree_layer_names)
        return f"No trees from layers [{names}] in radius {self.radius}"

    def can_place_in(self, pos: Point, world: WorldData) -> bool:
        trees = world.trees
        if not trees.has_layers():
            return True

        layer_maps = [
            layer_map
            for layer_map in (trees.get_layer_map_by_name(name) for name in self.tree_layer_names)
            if layer_map is not None
        ]
        if not layer_maps:
            return True

        scale_x = trees.layers_width / world.terrain.terrain_map_width
        scale_y = trees.layers_height / world.terrain.terrain_map_height
        scale = (scale_x + scale_y) / 2.0

        window = _circle_window(
            (trees.layers_height, trees.layers_width),
            float(pos[0]) * scale,
            float(pos[1]) * scale,
            self.radius * scale,
        )
        if window is None:
            return True

        rows, cols, mask = window
        occupied = np.zeros(mask.shape, dtype=bool)
        for layer_map in layer_maps:
            occupied |= layer_map[rows, cols]
        return not bool(np.any(occupied & mask))


def _circle_window(shape, x: float, y: float, radius: float):
    """
    Cells of a grid within radius of (x, y).

    Returns the row and column slices of the bounding square clipped to the
    grid and a boolean mask selecting the cells inside the circle, or None
    when the square misses the grid.
    """
    height, width = shape
    search = int(np.ceil(radius))
    cx, cy = int(np.floor(x)), int(np.floor(y))
    row_start, row_stop = max(0, cy - search), min(height - 1, cy + search) + 1
    col_start, col_stop = max(0, cx - search), min(width - 1, cx + search) + 1
    if row_start >= row_stop or col_start >= col_stop:
        return None

    ys = np.arange(row_start, row_stop, dtype=np.float64)[:, None]
    xs = np.arange(col_start, col_stop, dtype=np.float64)[None, :]
    mask = (xs - x) ** 2 + (ys - y) ** 2 <= search * search
    return slice(row_start, row_stop), slice(col_start, col_stop), mask


@dataclass(frozen=True)
class CompositePlacementRule(PlacementRule):
    """
    Logical AND of child rules.

    Children are evaluated in order and evaluation stops at the first
    refusal. Without children nothing may be placed.
    """

    rules: Sequence[PlacementRule] = field(default_factory=tuple)
    name: str = "Composite Rule"

    def __post_init__(self):
        object.__setattr__(self, "rules", tuple(self.rules))
        if not self.rules:
            logger.warning("Composite placement rule has no child rules", name=self.name)
        else:
            logger.debug(
                "Composite placement rule created",
                name=self.name,
                rules=[rule.description for rule in self.rules],
            )

    @property
    def description(self) -> str:
        return self.name

    def can_place_in(self, pos: Point, world: WorldData) -> bool:
        if not self.rules:
            return False

        return all(rule.can_place_in(pos, world) for rule in self.rules)
