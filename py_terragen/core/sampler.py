"""
Scalar field samplers.

A sampler produces a dense float32 grid of shape (height, width) with values
in [0, 1]. The domain warping module consumes two of them; any object with a
matching ``generate_map`` method can be plugged in.

ValueNoiseSampler is a small fractal value-noise implementation used as the
default source of warp offsets. Lattice values come from an integer hash of
the lattice coordinates, so the noise is defined on the whole plane and an
``offset`` moves the sampling window continuously.
"""

from dataclasses import dataclass
from typing import Protocol, Tuple

import numpy as np

from ..utils.random import Seed, seed_to_int

_MASK32 = np.uint64(0xFFFFFFFF)


class FieldSampler(Protocol):
    """Anything that can produce a scalar field in [0, 1]."""

    def generate_map(self, height: int, width: int) -> np.ndarray:
        ...


def _hash_lattice(ix: np.ndarray, iy: np.ndarray, seed: int) -> np.ndarray:
    """Map integer lattice coordinates to pseudo-random values in [0, 1]."""
    h = (
        ix.astype(np.uint64) * np.uint64(374761393)
        + iy.astype(np.uint64) * np.uint64(668265263)
        + np.uint64(seed & 0xFFFFFFFF) * np.uint64(2246822519)
    ) & _MASK32
    h = ((h ^ (h >> np.uint64(13))) * np.uint64(1274126177)) & _MASK32
    h = h ^ (h >> np.uint64(16))
    return (h & np.uint64(0xFFFFFF)).astype(np.float64) / float(0xFFFFFF)


def _smoothstep(t: np.ndarray) -> np.ndarray:
    return t * t * (3.0 - 2.0 * t)


def value_noise(
    xs: np.ndarray, ys: np.ndarray, seed: int
) -> np.ndarray:
    """
    Single octave of value noise.

    Args:
        xs: X coordinates in lattice units, broadcastable against ys
        ys: Y coordinates in lattice units
        seed: Integer seed of the lattice

    Returns:
        Noise values in [0, 1] with the broadcast shape of xs and ys
    """
    x0 = np.floor(xs)
    y0 = np.floor(ys)
    fx = _smoothstep(xs - x0)
    fy = _smoothstep(ys - y0)
    ix = x0.astype(np.int64)
    iy = y0.astype(np.int64)

    v00 = _hash_lattice(ix, iy, seed)
    v10 = _hash_lattice(ix + 1, iy, seed)
    v01 = _hash_lattice(ix, iy + 1, seed)
    v11 = _hash_lattice(ix + 1, iy + 1, seed)

    top = v00 + fx * (v10 - v00)
    bottom = v01 + fx * (v11 - v01)
    return top + fy * (bottom - top)


@dataclass
class ValueNoiseSampler:
    """Fractal value-noise sampler."""

    frequency: float = 0.01
    octaves: int = 2
    persistence: float = 0.5
    lacunarity: float = 2.0
    offset: Tuple[float, float] = (0.0, 0.0)
    seed: Seed = 0

    def __post_init__(self):
        if self.octaves < 1:
            raise ValueError(f"octaves must be at least 1, got {self.octaves}")

    def generate_map(self, height: int, width: int) -> np.ndarray:
        """
        Generate a (height, width) float32 field in [0, 1].

        Octave ``i`` is sampled at frequency ``frequency * lacunarity**i``
        with weight ``persistence**i``; the sum is normalised by the total
        weight.
        """
        if height <= 0 or width <= 0:
            return np.zeros((max(height, 0), max(width, 0)), dtype=np.float32)

        ox, oy = self.offset
        xs = (np.arange(width, dtype=np.float64) + ox)[None, :]
        ys = (np.arange(height, dtype=np.float64) + oy)[:, None]
        base_seed = seed_to_int(self.seed)

        total = np.zeros((height, width), dtype=np.float64)
        amplitude = 1.0
        frequency = self.frequency
        norm = 0.0
        for octave in range(self.octaves):
            total += amplitude * value_noise(
                xs * frequency, ys * frequency, base_seed + octave * 101
            )
            norm += amplitude
            amplitude *= self.persistence
            frequency *= self.lacunarity

        if norm > 0:
            total /= norm
        return np.clip(total, 0.0, 1.0).astype(np.float32)
