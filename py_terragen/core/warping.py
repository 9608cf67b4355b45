"""
Domain warping for scalar fields.

Axis-aligned noise shows visible grid artifacts. Warping resamples a field
at coordinates perturbed by two decorrelated offset fields (one per axis):

    x_sample = x + (x_offsets[y, x] * 2 - 1) * strength
    y_sample = y + (y_offsets[y, x] * 2 - 1) * strength

The four lattice cells around the sample point are wrapped toroidally and
blended with bilinear interpolation, x first and then y.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np
import structlog

from ..utils.random import Seed
from .sampler import FieldSampler, ValueNoiseSampler

logger = structlog.get_logger()


@dataclass
class WarpingOptions:
    """Domain warping options."""

    strength: float = 1.0  # Maximum displacement in cells
    frequency: float = 0.125  # Frequency of both offset fields
    octaves: int = 1
    x_offset: Tuple[float, float] = (120.0, 40.0)  # Sampling window of the x field
    y_offset: Tuple[float, float] = (3479.0, 9823.0)  # Sampling window of the y field
    seed: Seed = 0


def wrap_index(index: np.ndarray, size: int) -> np.ndarray:
    """Wrap indices into [0, size), also for negative indices."""
    return (index % size + size) % size


def warp_field(
    field: np.ndarray,
    x_offsets: np.ndarray,
    y_offsets: np.ndarray,
    strength: float,
) -> np.ndarray:
    """
    Resample a field at offset-perturbed coordinates.

    Args:
        field: Source field of shape (height, width)
        x_offsets: Offsets in [0, 1] for the x axis, same shape as field
        y_offsets: Offsets in [0, 1] for the y axis, same shape as field
        strength: Displacement scale in cells

    Returns:
        New float32 field of the same shape. The input is not modified.
    """
    field = np.asarray(field)
    if field.ndim != 2:
        raise ValueError(f"Field must be two-dimensional, got shape {field.shape}")

    height, width = field.shape
    x_offsets = np.asarray(x_offsets, dtype=np.float64)
    y_offsets = np.asarray(y_offsets, dtype=np.float64)
    if x_offsets.shape != field.shape or y_offsets.shape != field.shape:
        raise ValueError(
            f"Offset fields must match field shape {field.shape}, "
            f"got {x_offsets.shape} and {y_offsets.shape}"
        )

    if height == 0 or width == 0:
        return np.zeros((height, width), dtype=np.float32)

    values = field.astype(np.float64)
    ys, xs = np.mgrid[0:height, 0:width].astype(np.float64)

    x_sample = xs + (x_offsets * 2 - 1) * strength
    y_sample = ys + (y_offsets * 2 - 1) * strength

    x_floor = np.floor(x_sample)
    y_floor = np.floor(y_sample)
    fx = x_sample - x_floor
    fy = y_sample - y_floor

    x0 = x_floor.astype(np.int64)
    y0 = y_floor.astype(np.int64)
    x1 = wrap_index(x0 + 1, width)
    y1 = wrap_index(y0 + 1, height)
    x0 = wrap_index(x0, width)
    y0 = wrap_index(y0, height)

    v00 = values[y0, x0]
    v10 = values[y0, x1]
    v01 = values[y1, x0]
    v11 = values[y1, x1]

    top = v00 + fx * (v10 - v00)
    bottom = v01 + fx * (v11 - v01)
    return (top + fy * (bottom - top)).astype(np.float32)


class DomainWarpingApplier:
    """
    Applies domain warping to scalar fields.

    Two samplers provide the x and y offset fields. By default they are
    value-noise samplers reading far-apart windows of the plane, which keeps
    the two axes decorrelated.
    """

    def __init__(
        self,
        options: Optional[WarpingOptions] = None,
        x_noise: Optional[FieldSampler] = None,
        y_noise: Optional[FieldSampler] = None,
    ):
        """
        Initialize the warping applier.

        Args:
            options: Warping options, defaults are used when omitted
            x_noise: Sampler for x offsets, overrides the options
            y_noise: Sampler for y offsets, overrides the options
        """
        self.options = options or WarpingOptions()
        self._warping_strength = float(self.options.strength)
        self.x_noise = x_noise or ValueNoiseSampler(
            frequency=self.options.frequency,
            octaves=self.options.octaves,
            offset=self.options.x_offset,
            seed=self.options.seed,
        )
        self.y_noise = y_noise or ValueNoiseSampler(
            frequency=self.options.frequency,
            octaves=self.options.octaves,
            offset=self.options.y_offset,
            seed=self.options.seed,
        )

    @property
    def warping_strength(self) -> float:
        return self._warping_strength

    @warping_strength.setter
    def warping_strength(self, value: float) -> None:
        self._warping_strength = float(value)

    def apply_warping(self, field: np.ndarray) -> np.ndarray:
        """
        Warp a field.

        Args:
            field: Source field of shape (height, width)

        Returns:
            Warped float32 field of the same shape
        """
        field = np.asarray(field)
        if field.ndim != 2:
            raise ValueError(f"Field must be two-dimensional, got shape {field.shape}")

        height, width = field.shape
        logger.info(
            "Applying domain warping",
            height=height,
            width=width,
            strength=self._warping_strength,
        )

        x_offsets = self.x_noise.generate_map(height, width)
        y_offsets = self.y_noise.generate_map(height, width)
        return warp_field(field, x_offsets, y_offsets, self._warping_strength)
