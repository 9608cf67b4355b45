"""
Layered boolean rasters of placed trees.

Each layer is a named boolean grid marking the cells occupied by one tree
species. All layers of a store share the same height and width, so the
whole store can be treated as one (layer, height, width) volume. Every
mutation that would break this is rejected with ConfigurationError and
leaves the store as it was.
"""

from dataclasses import dataclass
from typing import Dict, Iterator, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np
import structlog

from .errors import ConfigurationError, LayerNotFoundError

logger = structlog.get_logger()


@dataclass(frozen=True)
class TreesLayer:
    """One tree layer. ``layer_name`` defaults to ``tree_id``."""

    tree_id: str
    trees_map: np.ndarray
    layer_name: Optional[str] = None

    def __post_init__(self):
        if not self.layer_name:
            object.__setattr__(self, "layer_name", self.tree_id)


class LayerPoints:
    """
    Occupied cells of a layer as (x, y) tuples in row-major order.

    The scan is lazy and starts over on every iteration.
    """

    def __init__(self, trees_map: np.ndarray):
        self._trees_map = trees_map

    def __iter__(self) -> Iterator[Tuple[int, int]]:
        for y, row in enumerate(self._trees_map):
            for x in np.flatnonzero(row):
                yield int(x), y

    def __repr__(self) -> str:
        return f"LayerPoints(shape={self._trees_map.shape})"


def _as_layer_map(grid) -> np.ndarray:
    trees_map = np.asarray(grid, dtype=bool)
    if trees_map.ndim != 2:
        raise ConfigurationError(
            f"Tree layer must be two-dimensional, got shape {trees_map.shape}"
        )
    return trees_map


class TreesData:
    """Store of same-sized tree layers keyed by tree id."""

    def __init__(
        self,
        layers: Optional[Union[Mapping[str, np.ndarray], Sequence[TreesLayer]]] = None,
    ):
        self._layers: Dict[str, TreesLayer] = {}
        self.placement_frequency = 1.0
        if layers is not None:
            self.set_layers(layers)

    @property
    def layers_height(self) -> int:
        if not self._layers:
            return 0
        return next(iter(self._layers.values())).trees_map.shape[0]

    @property
    def layers_width(self) -> int:
        if not self._layers:
            return 0
        return next(iter(self._layers.values())).trees_map.shape[1]

    def get_layers_size(self) -> Tuple[int, int]:
        """Return (width, height) shared by all layers."""
        return self.layers_width, self.layers_height

    def set_placement_frequency(self, frequency: float) -> None:
        """Record the grid density the layers were generated at."""
        if frequency <= 0:
            raise ConfigurationError(f"Placement frequency must be positive, got {frequency}")
        self.placement_frequency = float(frequency)

    def set_layers(
        self, layers: Union[Mapping[str, np.ndarray], Sequence[TreesLayer]]
    ) -> None:
        """
        Replace all layers.

        Args:
            layers: Mapping of tree id to grid, or a list of TreesLayer

        Raises:
            ConfigurationError: If the layers do not all share one size or
                two layers share an id
        """
        if isinstance(layers, Mapping):
            candidates = [
                TreesLayer(tree_id, _as_layer_map(grid)) for tree_id, grid in layers.items()
            ]
        else:
            candidates = [
                TreesLayer(layer.tree_id, _as_layer_map(layer.trees_map), layer.layer_name)
                for layer in layers
            ]

        if not candidates:
            self._layers.clear()
            return

        shape = candidates[0].trees_map.shape
        new_layers: Dict[str, TreesLayer] = {}
        for layer in candidates:
            if layer.trees_map.shape != shape:
                raise ConfigurationError(
                    f"All layers must have the same size. "
                    f"Expected: {shape[0]}x{shape[1]}, "
                    f"Actual: {layer.trees_map.shape[0]}x{layer.trees_map.shape[1]}"
                )
            if layer.tree_id in new_layers:
                raise ConfigurationError(f"Layer with id {layer.tree_id} already exists")
            new_layers[layer.tree_id] = layer

        self._layers = new_layers
        logger.debug("Tree layers replaced", count=len(new_layers), height=shape[0], width=shape[1])

    def add_layer(self, layer_id: str, layer, layer_name: Optional[str] = None) -> None:
        """
        Add a new layer.

        The first layer of an empty store fixes the size for all later ones.

        Raises:
            ConfigurationError: If the id is taken or the size differs
        """
        if layer_id in self._layers:
            raise ConfigurationError(f"Layer with id {layer_id} already exists")

        trees_map = _as_layer_map(layer)
        if self._layers and trees_map.shape != (self.layers_height, self.layers_width):
            raise ConfigurationError(
                f"All layers must have the same size. "
                f"Expected: {self.layers_height}x{self.layers_width}, "
                f"Actual: {trees_map.shape[0]}x{trees_map.shape[1]}"
            )

        self._layers[layer_id] = TreesLayer(layer_id, trees_map, layer_name)

    def clear_layers(self) -> None:
        self._layers.clear()

    def has_layers(self) -> bool:
        return bool(self._layers)

    def has_layer_with_id(self, layer_id: str) -> bool:
        return layer_id in self._layers

    def has_layer_with_name(self, layer_name: str) -> bool:
        """Check for a layer with this name, ignoring case."""
        return self.get_layer_map_by_name(layer_name) is not None

    def get_layer_map(self, layer_id: str) -> np.ndarray:
        """
        Get the grid of a layer.

        Raises:
            LayerNotFoundError: If no layer has this id
        """
        try:
            return self._layers[layer_id].trees_map
        except KeyError:
            raise LayerNotFoundError(layer_id) from None

    def get_layer_map_by_name(self, layer_name: str) -> Optional[np.ndarray]:
        """Get the grid of the first layer whose name matches, ignoring case."""
        wanted = layer_name.lower()
        for layer in self._layers.values():
            if layer.layer_name.lower() == wanted:
                return layer.trees_map
        return None

    def get_points(self, layer_id: str) -> LayerPoints:
        """
        Get the occupied cells of a layer.

        Raises:
            LayerNotFoundError: If no layer has this id
        """
        return LayerPoints(self.get_layer_map(layer_id))

    def get_layers(self) -> List[TreesLayer]:
        return list(self._layers.values())

    def get_layers_ids(self) -> List[str]:
        return list(self._layers.keys())
