"""
Random number generation utilities.

All randomness in the placement pipeline goes through NumPy's Generator so
that a seed reproduces a placement pass exactly. Seeds may be integers or
strings; strings are hashed to a stable integer.
"""

import hashlib
from typing import Optional, Union

import numpy as np

Seed = Union[int, str]

# Global generator instance
_rng = None


def seed_to_int(seed: Seed) -> int:
    """
    Convert a seed to a non-negative integer.

    String seeds are hashed with SHA-256 so that the same string gives the
    same generator on every platform and interpreter run.
    """
    if isinstance(seed, str):
        digest = hashlib.sha256(seed.encode("utf-8")).digest()
        return int.from_bytes(digest[:8], "little")
    return int(seed) & 0xFFFFFFFFFFFFFFFF


def make_rng(seed: Optional[Seed] = None) -> np.random.Generator:
    """Create a new generator, seeded when a seed is given."""
    if seed is None:
        return np.random.default_rng()
    return np.random.default_rng(seed_to_int(seed))


def set_random_seed(seed: Seed) -> None:
    """
    Reseed the shared generator.

    Args:
        seed: Seed integer or string
    """
    global _rng
    _rng = make_rng(seed)


def get_rng() -> np.random.Generator:
    """
    Get the shared generator, creating an unseeded one on first use.

    Returns:
        numpy Generator instance
    """
    global _rng
    if _rng is None:
        _rng = make_rng()
    return _rng
