"""Process-wide random source used to fill matrices."""

import numpy as np

_global_rng = np.random.default_rng()


def get_rng() -> np.random.Generator:
    """Get the global random generator."""
    return _global_rng


def seed(value=None) -> np.random.Generator:
    """Replace the global generator with a freshly seeded one and return it."""
    global _global_rng
    _global_rng = np.random.default_rng(value)
    return _global_rng
