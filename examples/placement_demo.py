#!/usr/bin/env python3
"""
Demo script walking through warping and tree placement.
"""

import numpy as np

from py_terragen.config import settings
from py_terragen.core import (
    AboveSeaLevelRule,
    CompositePlacementRule,
    ConstantRadiusRule,
    DomainWarpingApplier,
    HeightBasedRadiusRule,
    MaxSlopeRule,
    NoTreeLayersInRadiusRule,
    TerrainData,
    TreePlacementRule,
    TreesApplier,
    ValueNoiseSampler,
    WorldData,
)
from py_terragen.utils.logging import configure_logging


def main():
    """Generate a small world and place two tree species on it."""
    configure_logging(settings.log_level, settings.log_format)

    print("Py-Terragen Placement Demo")
    print("=" * 40)

    width, height = settings.default_map_width, settings.default_map_height
    base = ValueNoiseSampler(frequency=0.04, octaves=4, seed="demo123")
    heights = base.generate_map(height, width)

    warping = DomainWarpingApplier(settings.warping_options())
    warped = warping.apply_warping(heights)
    print(f"\nWarped field: min={warped.min():.3f} max={warped.max():.3f}")

    world = WorldData(terrain=TerrainData(warped))
    world.set_sea_level(settings.default_sea_level)

    rules = [
        TreePlacementRule(
            tree_id="pine",
            placement_rule=CompositePlacementRule(
                [AboveSeaLevelRule(0.15, 1.0), MaxSlopeRule(0.05)], "Pine rules"
            ),
            radius_rule=HeightBasedRadiusRule(2.0, 2.0, 5.0),
        ),
        TreePlacementRule(
            tree_id="oak",
            placement_rule=CompositePlacementRule(
                [AboveSeaLevelRule(0.0, 0.2), NoTreeLayersInRadiusRule(2.0, ["pine"])],
                "Oak rules",
            ),
            radius_rule=ConstantRadiusRule(3.0),
        ),
    ]

    applier = TreesApplier(seed="demo123", max_attempts=settings.placement_max_attempts)
    applier.apply_trees_layers(world, rules, frequency=settings.placement_frequency)

    land = np.sum(world.terrain.height_map >= world.sea_level)
    print(f"Land cells: {land} of {width * height}")
    for layer in world.trees.get_layers():
        count = sum(1 for _ in world.trees.get_points(layer.tree_id))
        print(f"  {layer.layer_name}: {count} trees")


if __name__ == "__main__":
    main()
