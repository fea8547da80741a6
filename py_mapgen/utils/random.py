"""
Random number generation utilities.

Every stage that needs randomness builds its own generator from the world
seed (plus a fixed per-stage offset), so stages never share RNG state and
results only depend on the seed.
"""

import numpy as np

_U64_MASK = 0xFFFFFFFFFFFFFFFF


def derive_seed(seed: int, offset: int = 0) -> int:
    """
    Derive a per-stage seed with wrapping 64-bit addition.

    Args:
        seed: World seed
        offset: Fixed stage offset

    Returns:
        Seed in [0, 2**64)
    """
    return (int(seed) + int(offset)) & _U64_MASK


def get_rng(seed: int, offset: int = 0) -> np.random.Generator:
    """
    Get an independent NumPy generator for a stage.

    Args:
        seed: World seed
        offset: Fixed stage offset

    Returns:
        numpy.random.Generator (PCG64)
    """
    return np.random.default_rng(derive_seed(seed, offset))
