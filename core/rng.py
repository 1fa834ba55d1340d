"""
core.rng
Injectable random sources for the turn engine.

Every draw (initiative shuffle, chance window, outcome rolls) goes through
one `random.Random` passed in by the caller, so a seeded session replays
exactly. Seeds are derived without Python's built-in hash().
"""

from __future__ import annotations

import hashlib
import json
import random
from typing import Any, Optional


def stable_int_seed(*parts: Any, salt: str = "unit-economics-survivor") -> int:
    """Return a stable 32-bit seed derived from arbitrary inputs.

    SHA-256 over a canonical JSON dump of `parts`; stable across processes.
    """
    payload = json.dumps(parts, sort_keys=True, ensure_ascii=False, separators=(",", ":"), default=str)
    h = hashlib.sha256((salt + "|" + payload).encode("utf-8")).digest()
    return int.from_bytes(h[:4], "big", signed=False)


def make_rng(base_seed: Optional[int], *parts: Any) -> random.Random:
    """Seeded Random for (base_seed + parts); unseeded when base_seed is None."""
    if base_seed is None:
        return random.Random()
    return random.Random(stable_int_seed(int(base_seed), *parts))
