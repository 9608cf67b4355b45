"""Tests for the tree placement pass."""

import itertools
import math

import pytest
import numpy as np
from py_terragen.core.errors import ConfigurationError
from py_terragen.core.placement_rules import (
    AboveSeaLevelRule,
    CompositePlacementRule,
    HeightRangeRule,
    NoTreeLayersInRadiusRule,
)
from py_terragen.core.radius_rules import ConstantRadiusRule, HeightBasedRadiusRule
from py_terragen.core.terrain_data import TerrainData, WorldData
from py_terragen.core.tree_rules import TreePlacementRule
from py_terragen.core.trees_applier import TreesApplier


class FixedCandidatesApplier(TreesApplier):
    """Applier returning predefined candidate grids instead of sampling."""

    def __init__(self, grids):
        super().__init__(seed=0)
        self.grids = list(grids)

    def generate_trees_layer(self, world, radius_rule, frequency=1.0, max_attempts=None):
        return self.grids.pop(0).copy()


def cells(grid):
    """Occupied cells of a grid as a set of (x, y)."""
    return {(int(x), int(y)) for y, x in np.argwhere(grid)}


@pytest.fixture
def flat_world():
    """Create a 24x24 flat world above sea level."""
    return WorldData(terrain=TerrainData(np.full((24, 24), 0.5)), sea_level=0.3)


@pytest.fixture
def coast_world():
    """Create a 20x20 world: sea on the left half, land on the right."""
    heights = np.full((20, 20), 0.8, dtype=np.float32)
    heights[:, :10] = 0.1
    return WorldData(terrain=TerrainData(heights), sea_level=0.3)


class TestGenerateTreesLayer:
    """Test Poisson-disk candidate sampling."""

    def test_shape_and_non_empty(self, flat_world):
        """Test that candidates cover the tree grid."""
        applier = TreesApplier(seed=1)
        trees = applier.generate_trees_layer(flat_world, ConstantRadiusRule(3.0))

        assert trees.shape == (24, 24)
        assert trees.dtype == bool
        assert trees.sum() > 10

    def test_minimum_spacing(self, flat_world):
        """Test that candidate cells keep the radius apart, up to cell rounding."""
        applier = TreesApplier(seed=2)
        trees = applier.generate_trees_layer(flat_world, ConstantRadiusRule(3.0))

        for (x1, y1), (x2, y2) in itertools.combinations(cells(trees), 2):
            assert math.hypot(x1 - x2, y1 - y2) > 3.0 - math.sqrt(2)

    def test_variable_radius_spacing(self):
        """Test spacing with a height-dependent radius."""
        heights = np.tile(np.linspace(0.0, 1.0, 30, dtype=np.float32), (30, 1))
        world = WorldData(terrain=TerrainData(heights))
        rule = HeightBasedRadiusRule(2.0, 2.0, 5.0)
        trees = TreesApplier(seed=3).generate_trees_layer(world, rule)

        for (x1, y1), (x2, y2) in itertools.combinations(cells(trees), 2):
            required = max(rule.get_radius((x1, y1), world), rule.get_radius((x2, y2), world))
            assert math.hypot(x1 - x2, y1 - y2) > required - math.sqrt(2)

    def test_deterministic_for_seed(self, flat_world):
        """Test that the same seed reproduces the candidates."""
        a = TreesApplier(seed="forest").generate_trees_layer(flat_world, ConstantRadiusRule(2.0))
        b = TreesApplier(seed="forest").generate_trees_layer(flat_world, ConstantRadiusRule(2.0))
        np.testing.assert_array_equal(a, b)

    def test_frequency_scales_grid(self, flat_world):
        """Test that the tree grid follows the frequency."""
        trees = TreesApplier(seed=4).generate_trees_layer(
            flat_world, ConstantRadiusRule(2.0), frequency=0.5
        )
        assert trees.shape == (12, 12)

    def test_invalid_settings(self, flat_world):
        """Test that bad frequency and attempt counts are rejected."""
        with pytest.raises(ConfigurationError):
            TreesApplier(max_attempts=0)
        with pytest.raises(ConfigurationError):
            TreesApplier(seed=0).generate_trees_layer(flat_world, ConstantRadiusRule(2.0), frequency=0)


class TestApplyTreesLayers:
    """Test the full placement pass."""

    def test_layers_committed(self, flat_world):
        """Test that each rule produces one layer of the tree grid size."""
        rules = [
            TreePlacementRule("pine", HeightRangeRule(0.0, 1.0), ConstantRadiusRule(3.0)),
            TreePlacementRule("oak", HeightRangeRule(0.0, 1.0), ConstantRadiusRule(2.0), layer_name="Oaks"),
        ]
        TreesApplier(seed=5).apply_trees_layers(flat_world, rules)

        assert flat_world.trees.get_layers_ids() == ["pine", "oak"]
        assert flat_world.trees.get_layers_size() == (24, 24)
        assert flat_world.trees.has_layer_with_name("Oaks")
        assert flat_world.trees.placement_frequency == 1.0

    def test_layers_never_overlap(self, flat_world):
        """Test that a cell belongs to at most one layer."""
        rules = [
            TreePlacementRule("pine", HeightRangeRule(0.0, 1.0), ConstantRadiusRule(1.0)),
            TreePlacementRule("oak", HeightRangeRule(0.0, 1.0), ConstantRadiusRule(1.0)),
            TreePlacementRule("birch", HeightRangeRule(0.0, 1.0), ConstantRadiusRule(1.0), overwrite_layers=True),
        ]
        TreesApplier(seed=6).apply_trees_layers(flat_world, rules)

        stack = np.stack([layer.trees_map for layer in flat_world.trees.get_layers()])
        assert stack.sum(axis=0).max() <= 1

    def test_placement_rule_filters(self, coast_world):
        """Test that refused candidates are dropped."""
        rules = [TreePlacementRule("pine", AboveSeaLevelRule(0.0, 1.0), ConstantRadiusRule(1.5))]
        TreesApplier(seed=7).apply_trees_layers(coast_world, rules)

        placed = cells(coast_world.trees.get_layer_map("pine"))
        assert placed
        assert all(x >= 10 for x, _ in placed)

    def test_refusing_rule_gives_empty_layer(self, flat_world):
        """Test that a rule refusing everything still commits an empty layer."""
        rules = [TreePlacementRule("pine", CompositePlacementRule([]), ConstantRadiusRule(2.0))]
        TreesApplier(seed=8).apply_trees_layers(flat_world, rules)

        assert not flat_world.trees.get_layer_map("pine").any()

    def test_without_overwrite_earlier_layer_wins(self):
        """Test that shared cells stay with the earlier layer."""
        world = WorldData(terrain=TerrainData(np.full((3, 3), 0.5)))
        pine = np.eye(3, dtype=bool)
        pine[2, 2] = False
        oak = np.zeros((3, 3), dtype=bool)
        oak[1, 1] = True
        oak[2, 2] = True

        rules = [
            TreePlacementRule("pine", HeightRangeRule(0.0, 1.0), ConstantRadiusRule(1.0)),
            TreePlacementRule("oak", HeightRangeRule(0.0, 1.0), ConstantRadiusRule(1.0)),
        ]
        FixedCandidatesApplier([pine, oak]).apply_trees_layers(world, rules)

        assert cells(world.trees.get_layer_map("pine")) == {(0, 0), (1, 1)}
        assert cells(world.trees.get_layer_map("oak")) == {(2, 2)}

    def test_overwrite_takes_cells(self):
        """Test that an overwriting layer takes shared cells from earlier layers."""
        world = WorldData(terrain=TerrainData(np.full((3, 3), 0.5)))
        pine = np.eye(3, dtype=bool)
        pine[2, 2] = False
        oak = np.zeros((3, 3), dtype=bool)
        oak[1, 1] = True
        oak[2, 2] = True

        rules = [
            TreePlacementRule("pine", HeightRangeRule(0.0, 1.0), ConstantRadiusRule(1.0)),
            TreePlacementRule("oak", HeightRangeRule(0.0, 1.0), ConstantRadiusRule(1.0), overwrite_layers=True),
        ]
        FixedCandidatesApplier([pine, oak]).apply_trees_layers(world, rules)

        assert cells(world.trees.get_layer_map("pine")) == {(0, 0)}
        assert cells(world.trees.get_layer_map("oak")) == {(1, 1), (2, 2)}

    def test_refused_candidates_do_not_block(self):
        """Test that a candidate refused by its rule leaves the cell free."""
        heights = np.full((3, 3), 0.5, dtype=np.float32)
        heights[0, 0] = 0.9
        world = WorldData(terrain=TerrainData(heights))
        first = np.zeros((3, 3), dtype=bool)
        first[0, 0] = True
        first[1, 1] = True
        second = np.zeros((3, 3), dtype=bool)
        second[1, 1] = True

        rules = [
            TreePlacementRule("pine", HeightRangeRule(0.8, 1.0), ConstantRadiusRule(1.0)),
            TreePlacementRule("oak", HeightRangeRule(0.0, 1.0), ConstantRadiusRule(1.0)),
        ]
        FixedCandidatesApplier([first, second]).apply_trees_layers(world, rules)

        assert cells(world.trees.get_layer_map("pine")) == {(0, 0)}
        assert cells(world.trees.get_layer_map("oak")) == {(1, 1)}

    def test_spacing_between_layers(self, flat_world):
        """Test a later layer keeping away from an earlier one."""
        rules = [
            TreePlacementRule("pine", HeightRangeRule(0.0, 1.0), ConstantRadiusRule(4.0)),
            TreePlacementRule(
                "oak",
                NoTreeLayersInRadiusRule(2.0, ["pine"]),
                ConstantRadiusRule(1.0),
            ),
        ]
        TreesApplier(seed=9).apply_trees_layers(flat_world, rules)

        pines = cells(flat_world.trees.get_layer_map("pine"))
        oaks = cells(flat_world.trees.get_layer_map("oak"))
        assert pines
        for ox, oy in oaks:
            for px, py in pines:
                assert (ox - px) ** 2 + (oy - py) ** 2 > 4

    def test_duplicate_tree_id(self, flat_world):
        """Test that two rules with the same id are rejected."""
        rules = [
            TreePlacementRule("pine", HeightRangeRule(0.0, 1.0), ConstantRadiusRule(3.0)),
            TreePlacementRule("pine", HeightRangeRule(0.0, 1.0), ConstantRadiusRule(3.0)),
        ]
        with pytest.raises(ConfigurationError):
            TreesApplier(seed=10).apply_trees_layers(flat_world, rules)

    def test_incomplete_rule_skipped(self, flat_world):
        """Test that rules without a placement or radius rule are skipped."""
        rules = [
            TreePlacementRule("ghost", None, ConstantRadiusRule(3.0)),
            TreePlacementRule("pine", HeightRangeRule(0.0, 1.0), ConstantRadiusRule(3.0)),
        ]
        TreesApplier(seed=11).apply_trees_layers(flat_world, rules)

        assert flat_world.trees.get_layers_ids() == ["pine"]

    def test_previous_layers_cleared(self, flat_world):
        """Test that a new pass replaces the old layers."""
        flat_world.trees.add_layer("old", np.zeros((5, 5), dtype=bool))
        rules = [TreePlacementRule("pine", HeightRangeRule(0.0, 1.0), ConstantRadiusRule(3.0))]
        TreesApplier(seed=12).apply_trees_layers(flat_world, rules, frequency=0.5)

        assert flat_world.trees.get_layers_ids() == ["pine"]
        assert flat_world.trees.get_layers_size() == (12, 12)
        assert flat_world.trees.placement_frequency == 0.5
