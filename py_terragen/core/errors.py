"""
Error types raised by the terrain core.

Invalid configuration of a store or snapshot is reported synchronously with
ConfigurationError; asking for a layer that does not exist raises
LayerNotFoundError.
"""


class ConfigurationError(ValueError):
    """Raised when a mutation would break a store or terrain invariant."""


class LayerNotFoundError(KeyError):
    """Raised when a layer id is not present in the store."""

    def __init__(self, layer_id: str):
        super().__init__(layer_id)
        self.layer_id = layer_id

    def __str__(self) -> str:
        return f"Layer with id {self.layer_id} does not exist"
