"""
Terrain snapshot consumed by the rule engine.

TerrainData owns the height, slope and moisture fields of a world. WorldData
aggregates the terrain, the tree layers and the sea level; rules read from it
through cell lookups and never modify it.

Positions are (x, y) pairs in terrain cells. A lookup truncates them to the
cell (row=int(y), col=int(x)). Positions outside the grid are a caller error
and surface as IndexError.
"""

from dataclasses import dataclass, field
from typing import Optional, Sequence, Tuple

import numpy as np

from .errors import ConfigurationError
from .trees_data import TreesData

MIN_HEIGHT = 0.0
MAX_HEIGHT = 1.0
MIN_MOISTURE = 0.0
MAX_MOISTURE = 1.0
DEFAULT_MAP_SIZE = 10
DEFAULT_SEA_LEVEL = 0.3

Point = Sequence[float]


def to_cell(pos: Point) -> Tuple[int, int]:
    """Truncate an (x, y) position to a (row, col) cell index."""
    return int(pos[1]), int(pos[0])


def get_slopes(height_map: np.ndarray) -> np.ndarray:
    """
    Calculate slope magnitudes of a height map.

    Uses central differences, ``0.5 * (h[x + 1] - h[x - 1])`` per axis,
    treating cells outside the grid as height 0.

    Args:
        height_map: Height field of shape (height, width)

    Returns:
        float32 array of gradient magnitudes with the same shape
    """
    heights = np.asarray(height_map, dtype=np.float32)
    padded = np.pad(heights, 1, mode="constant", constant_values=0.0)
    vec_x = 0.5 * (padded[1:-1, 2:] - padded[1:-1, :-2])
    vec_y = 0.5 * (padded[2:, 1:-1] - padded[:-2, 1:-1])
    return np.sqrt(vec_x * vec_x + vec_y * vec_y).astype(np.float32)


def _as_field(values: np.ndarray, name: str) -> np.ndarray:
    array = np.asarray(values, dtype=np.float32)
    if array.ndim != 2:
        raise ConfigurationError(f"{name} must be two-dimensional, got shape {array.shape}")
    return array


class TerrainData:
    """Height, slope and moisture fields of a terrain."""

    def __init__(self, height_map: Optional[np.ndarray] = None):
        self.clear()
        if height_map is not None:
            self.set_terrain(height_map)

    @property
    def height_map(self) -> np.ndarray:
        return self._height_map

    @property
    def slopes_map(self) -> np.ndarray:
        return self._slopes_map

    @property
    def moisture_map(self) -> np.ndarray:
        return self._moisture_map

    @property
    def terrain_map_height(self) -> int:
        return self._height_map.shape[0]

    @property
    def terrain_map_width(self) -> int:
        return self._height_map.shape[1]

    def get_map_size(self) -> Tuple[int, int]:
        """Return (width, height) of the terrain."""
        return self.terrain_map_width, self.terrain_map_height

    def get_height_map_copy(self) -> np.ndarray:
        return self._height_map.copy()

    def get_slopes_map_copy(self) -> np.ndarray:
        return self._slopes_map.copy()

    def clear(self) -> None:
        """Reset all fields to zero-filled default-size grids."""
        shape = (DEFAULT_MAP_SIZE, DEFAULT_MAP_SIZE)
        self._height_map = np.zeros(shape, dtype=np.float32)
        self._slopes_map = np.zeros(shape, dtype=np.float32)
        self._moisture_map = np.zeros(shape, dtype=np.float32)
        self.slopes_generated = True

    def set_terrain(self, height_map: np.ndarray, calculate_slopes: bool = True) -> None:
        """
        Replace the height map.

        The map is copied and clamped to [0, 1]. Slopes are derived from the
        new heights unless ``calculate_slopes`` is False, in which case they
        stay zero until regenerate_slopes_map() is called. A moisture map of
        a different shape is reset to zeros.

        Args:
            height_map: New height field
            calculate_slopes: Whether to compute slopes now
        """
        heights = _as_field(height_map, "Height map")
        self._height_map = np.clip(heights, MIN_HEIGHT, MAX_HEIGHT)
        if calculate_slopes:
            self._slopes_map = get_slopes(self._height_map)
        else:
            self._slopes_map = np.zeros_like(self._height_map)
        self.slopes_generated = calculate_slopes
        if self._moisture_map.shape != self._height_map.shape:
            self._moisture_map = np.zeros_like(self._height_map)

    def set_moisture_map(self, moisture_map: np.ndarray) -> None:
        """
        Replace the moisture map.

        Raises:
            ConfigurationError: If the shape differs from the height map
        """
        moisture = _as_field(moisture_map, "Moisture map")
        if moisture.shape != self._height_map.shape:
            raise ConfigurationError(
                f"Moisture map must match terrain size. "
                f"Expected: {self._height_map.shape}, Actual: {moisture.shape}"
            )
        self._moisture_map = np.clip(moisture, MIN_MOISTURE, MAX_MOISTURE)

    def regenerate_slopes_map(self) -> None:
        if not self.slopes_generated:
            self._slopes_map = get_slopes(self._height_map)
            self.slopes_generated = True

    def height_at(self, pos: Point) -> float:
        return float(self._height_map[to_cell(pos)])

    def slope_at(self, pos: Point) -> float:
        return float(self._slopes_map[to_cell(pos)])

    def moisture_at(self, pos: Point) -> float:
        return float(self._moisture_map[to_cell(pos)])


@dataclass
class WorldData:
    """Terrain, tree layers and sea level of one world."""

    terrain: TerrainData = field(default_factory=TerrainData)
    trees: TreesData = field(default_factory=TreesData)
    sea_level: float = DEFAULT_SEA_LEVEL

    def set_sea_level(self, value: float) -> None:
        self.sea_level = float(np.clip(value, 0.0, 1.0))

    def height_at(self, pos: Point) -> float:
        return self.terrain.height_at(pos)

    def slope_at(self, pos: Point) -> float:
        return self.terrain.slope_at(pos)

    def moisture_at(self, pos: Point) -> float:
        return self.terrain.moisture_at(pos)

    def depth_at(self, pos: Point) -> float:
        """Water depth at a position, 0 on land."""
        return max(0.0, self.sea_level - self.height_at(pos))
