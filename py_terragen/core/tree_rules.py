"""Tree placement rules binding a tree id to its placement and radius rules."""

from dataclasses import dataclass
from typing import Optional

from .placement_rules import PlacementRule
from .radius_rules import RadiusRule
from .terrain_data import Point, WorldData


@dataclass(frozen=True)
class TreePlacementRule:
    """
    Placement configuration of one tree species.

    ``layer_name`` defaults to ``tree_id``. With ``overwrite_layers`` set,
    trees of this species replace trees of earlier layers on shared cells.
    """

    tree_id: str
    placement_rule: Optional[PlacementRule]
    radius_rule: Optional[RadiusRule]
    overwrite_layers: bool = False
    layer_name: Optional[str] = None

    def __post_init__(self):
        if not self.layer_name:
            object.__setattr__(self, "layer_name", self.tree_id)

    def can_place(self, pos: Point, world: WorldData) -> bool:
        return self.placement_rule.can_place_in(pos, world)

    def get_radius(self, pos: Point, world: WorldData) -> float:
        return self.radius_rule.get_radius(pos, world)
