"""
Seeded RNG helpers for reproducible quest runs.

- derive_seed(seed): stable, platform-independent int seed from a string or int.
- get_random(seed=None): new random.Random instance, seeded when a seed is given.

Each call returns an independent Random instance; the module-global PRNG
is never touched.
"""

from __future__ import annotations

import hashlib
import random
from typing import Union


SeedLike = Union[int, str]

_SEED_MASK = (1 << 63) - 1


def derive_seed(seed: SeedLike) -> int:
    """Derive a stable non-negative 63-bit seed.

    - int inputs are normalized to a non-negative 63-bit value.
    - str inputs that look like integers are treated as integers.
    - other str inputs are hashed with SHA-256.
    """
    if isinstance(seed, int):
        return abs(seed) & _SEED_MASK
    text = str(seed).strip()
    if text.lstrip("-").isdigit():
        return abs(int(text)) & _SEED_MASK
    digest = hashlib.sha256(text.encode("utf-8")).digest()
    return int.from_bytes(digest[:8], byteorder="big", signed=False) & _SEED_MASK


def get_random(seed: SeedLike | None = None) -> random.Random:
    """Return a new Random instance; seeded deterministically when seed is provided."""
    if seed is None:
        return random.Random()
    return random.Random(derive_seed(seed))
