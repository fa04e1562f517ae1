"""
Per-run random number generation.

Every generation run owns exactly one ``random.Random`` instance and passes
it explicitly to each step. Nothing here touches the module-level
``random`` state, so concurrent runs never disturb one another and a fixed
seed reproduces the same level byte for byte (entity ids included, since
they are drawn from the same stream).
"""

import random
import time
import uuid
from typing import Optional


def resolve_seed(seed: Optional[int]) -> int:
    """Return the explicit seed, or a time-derived one (not reproducible)."""
    if seed is not None:
        return int(seed)
    return int(time.time())


def make_rng(seed: int) -> random.Random:
    return random.Random(seed)


def random_uuid(rng: random.Random) -> str:
    """Version-4 style UUID string drawn from the run's generator."""
    return str(uuid.UUID(int=rng.getrandbits(128), version=4))
