"""
Core terrain algorithms: domain warping, placement rules and tree layers.
"""

from .errors import ConfigurationError, LayerNotFoundError
from .distances import DistanceType, calculate_distance
from .sampler import FieldSampler, ValueNoiseSampler
from .warping import DomainWarpingApplier, WarpingOptions, warp_field
from .terrain_data import TerrainData, WorldData, get_slopes
from .trees_data import TreesData, TreesLayer
from .placement_rules import (
    PlacementRule, HeightRangeRule, MaxSlopeRule, SlopeRangeRule, AboveSeaLevelRule,
    MoistureRule, NoiseMapRule, WaterInRadiusRule, NoTreeLayersInRadiusRule,
    CompositePlacementRule,
)
from .radius_rules import RadiusRule, ConstantRadiusRule, HeightBasedRadiusRule
from .tree_rules import TreePlacementRule
from .trees_applier import TreesApplier

__all__ = ['ConfigurationError', 'LayerNotFoundError',
           'DistanceType', 'calculate_distance',
           'FieldSampler', 'ValueNoiseSampler',
           'DomainWarpingApplier', 'WarpingOptions', 'warp_field',
           'TerrainData', 'WorldData', 'get_slopes',
           'TreesData', 'TreesLayer',
           'PlacementRule', 'HeightRangeRule', 'MaxSlopeRule', 'SlopeRangeRule',
           'AboveSeaLevelRule', 'MoistureRule', 'NoiseMapRule', 'WaterInRadiusRule',
           'NoTreeLayersInRadiusRule', 'CompositePlacementRule',
           'RadiusRule', 'ConstantRadiusRule', 'HeightBasedRadiusRule',
           'TreePlacementRule', 'TreesApplier']
