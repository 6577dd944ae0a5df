from __future__ import annotations

import random

MAX_DELAY_MS = 30_000


def compute_delay_ms(attempt: int, base_ms: int, rng: random.Random | None = None) -> int:
    """Exponential backoff with jitter for the given 1-based attempt number.

    ``base * 2**(attempt - 1)`` plus a uniform jitter in ``[0, base)``,
    capped at ``MAX_DELAY_MS``. Pass a seeded ``random.Random`` for
    deterministic delays.
    """
    base = max(1, base_ms)
    exponential = base * (2 ** max(0, attempt - 1))
    jitter = (rng or random).randrange(base)
    return min(exponential + jitter, MAX_DELAY_MS)
