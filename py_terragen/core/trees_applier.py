"""
Tree placement pass.

Walks the tree placement rules in order and fills the tree layers of a
world:

1. Candidate positions for a species come from variable-radius Poisson-disk
   sampling, the radius rule giving the minimum spacing at each point
2. Candidates refused by the placement rule are dropped
3. Cells already taken by an earlier layer are either kept by that layer or,
   for rules with ``overwrite_layers``, handed over to the new layer
4. The finished layer is committed to the world's TreesData

The tree grid may be denser or coarser than the terrain: it has
``round(terrain size * frequency)`` cells per axis and a tree cell (x, y)
maps to the terrain position (x / frequency, y / frequency).
"""

import math
from typing import Dict, Iterable, List, Optional, Tuple

import numpy as np
import structlog

from ..utils.random import Seed, get_rng, make_rng
from .errors import ConfigurationError
from .radius_rules import RadiusRule
from .terrain_data import WorldData
from .tree_rules import TreePlacementRule

logger = structlog.get_logger()

DEFAULT_MAX_ATTEMPTS = 30


class TreesApplier:
    """Places tree layers into a world."""

    def __init__(self, seed: Optional[Seed] = None, max_attempts: int = DEFAULT_MAX_ATTEMPTS):
        """
        Initialize the applier.

        Args:
            seed: Seed of the placement generator, the shared generator is
                used when omitted
            max_attempts: Candidates tried around an active point before it
                is retired
        """
        if max_attempts < 1:
            raise ConfigurationError(f"max_attempts must be at least 1, got {max_attempts}")
        self.rng = make_rng(seed) if seed is not None else get_rng()
        self.max_attempts = max_attempts

    @staticmethod
    def _grid_shape(world: WorldData, frequency: float) -> Tuple[int, int]:
        if frequency <= 0:
            raise ConfigurationError(f"Placement frequency must be positive, got {frequency}")
        h = int(round(world.terrain.terrain_map_height * frequency))
        w = int(round(world.terrain.terrain_map_width * frequency))
        return h, w

    def apply_trees_layers(
        self,
        world: WorldData,
        rules: Iterable[TreePlacementRule],
        frequency: float = 1.0,
    ) -> None:
        """
        Replace the tree layers of a world by a new placement pass.

        Args:
            world: World to place trees into, its TreesData is cleared first
            rules: Tree placement rules, earlier rules are placed first
            frequency: Density of the tree grid relative to the terrain

        Raises:
            ConfigurationError: If two rules share a tree id
        """
        h, w = self._grid_shape(world, frequency)
        placed_trees = np.zeros((h, w), dtype=bool)

        world.trees.clear_layers()
        world.trees.set_placement_frequency(frequency)
        logger.info("Starting tree placement", height=h, width=w, frequency=frequency)

        for rule in rules:
            if rule.radius_rule is None or rule.placement_rule is None:
                logger.warning("Skipping incomplete tree rule", tree_id=rule.tree_id)
                continue

            if world.trees.has_layer_with_id(rule.tree_id):
                raise ConfigurationError(f"Layer with id {rule.tree_id} already exists")

            trees = self.generate_trees_layer(world, rule.radius_rule, frequency)
            candidates = int(trees.sum())

            for y, x in np.argwhere(trees):
                pos = (x / frequency, y / frequency)

                if not rule.can_place(pos, world):
                    trees[y, x] = False
                elif placed_trees[y, x]:
                    if rule.overwrite_layers:
                        for layer in world.trees.get_layers():
                            if layer.trees_map[y, x]:
                                layer.trees_map[y, x] = False
                                break
                    else:
                        trees[y, x] = False
                else:
                    placed_trees[y, x] = True

            world.trees.add_layer(rule.tree_id, trees, rule.layer_name)
            logger.info(
                "Tree layer placed",
                tree_id=rule.tree_id,
                candidates=candidates,
                placed=int(trees.sum()),
            )

        logger.info("Tree placement complete", layers=len(world.trees.get_layers_ids()))

    def generate_trees_layer(
        self,
        world: WorldData,
        radius_rule: RadiusRule,
        frequency: float = 1.0,
        max_attempts: Optional[int] = None,
    ) -> np.ndarray:
        """
        Sample candidate tree cells with variable-radius Poisson-disk sampling.

        Starting from a random cell, a random active point repeatedly spawns
        candidates at a distance in [r, 2r). A candidate is accepted when its
        cell is free and it keeps at least ``max(r_new, r_other)`` from every
        accepted point. Active points without a valid candidate after
        ``max_attempts`` tries are retired.

        Args:
            world: World whose terrain feeds the radius rule
            radius_rule: Minimum spacing at each point, in tree grid cells
            frequency: Density of the tree grid relative to the terrain
            max_attempts: Overrides the applier's attempt count

        Returns:
            Boolean grid of accepted cells
        """
        attempts = max_attempts or self.max_attempts
        h, w = self._grid_shape(world, frequency)
        trees = np.zeros((h, w), dtype=bool)
        if h == 0 or w == 0:
            return trees

        def radius_at(x: float, y: float) -> float:
            return radius_rule.get_radius((x / frequency, y / frequency), world)

        accepted: Dict[Tuple[int, int], Tuple[float, float, float]] = {}
        start_x = int(self.rng.integers(w))
        start_y = int(self.rng.integers(h))
        start_radius = radius_at(start_x, start_y)
        trees[start_y, start_x] = True
        accepted[(start_y, start_x)] = (float(start_x), float(start_y), start_radius)
        active: List[Tuple[float, float]] = [(float(start_x), float(start_y))]
        max_radius = start_radius

        while active:
            index = int(self.rng.integers(len(active)))
            current_x, current_y = active[index]
            current_radius = radius_at(math.floor(current_x), math.floor(current_y))
            found = False

            for _ in range(attempts):
                angle = self.rng.random() * math.pi * 2
                distance = current_radius + self.rng.random() * current_radius
                new_x = current_x + distance * math.cos(angle)
                new_y = current_y + distance * math.sin(angle)

                if new_x < 0 or new_x >= w or new_y < 0 or new_y >= h:
                    continue

                col, row = int(math.floor(new_x)), int(math.floor(new_y))
                if trees[row, col]:
                    continue

                new_radius = radius_at(col, row)
                if self._has_close_neighbor(
                    trees, accepted, new_x, new_y, new_radius, max_radius
                ):
                    continue

                trees[row, col] = True
                accepted[(row, col)] = (new_x, new_y, new_radius)
                active.append((new_x, new_y))
                max_radius = max(max_radius, new_radius)
                found = True
                break

            if not found:
                active.pop(index)

        logger.debug("Generated candidate layer", height=h, width=w, points=len(accepted))
        return trees

    @staticmethod
    def _has_close_neighbor(
        trees: np.ndarray,
        accepted: Dict[Tuple[int, int], Tuple[float, float, float]],
        x: float,
        y: float,
        radius: float,
        max_radius: float,
    ) -> bool:
        """Check whether an accepted point is closer than the required spacing."""
        h, w = trees.shape
        search = int(math.ceil(max(radius, max_radius))) + 1
        col, row = int(math.floor(x)), int(math.floor(y))
        row_start, row_stop = max(0, row - search), min(h, row + search + 1)
        col_start, col_stop = max(0, col - search), min(w, col + search + 1)

        window = trees[row_start:row_stop, col_start:col_stop]
        for dr, dc in np.argwhere(window):
            other_x, other_y, other_radius = accepted[(row_start + int(dr), col_start + int(dc))]
            required = max(radius, other_radius)
            if math.hypot(x - other_x, y - other_y) < required:
                return True
        return False
