"""Fixed-window arithmetic shared by the rate limiters.

Windows are aligned to the UNIX epoch: window ``i`` covers
``[i * size, (i + 1) * size)`` seconds.
"""

from __future__ import annotations

import math


def window_index(now: float, window_seconds: int) -> int:
    """Index of the window containing ``now``."""
    return math.floor(now / window_seconds)


def window_start(index: int, window_seconds: int) -> int:
    return index * window_seconds


def window_reset_at(index: int, window_seconds: int) -> int:
    """Epoch second at which window ``index`` ends and the next one starts."""
    return (index + 1) * window_seconds


def previous_window_weight(now: float, index: int, window_seconds: int) -> float:
    """Share of the previous window's count still charged against ``now``.

    Equals the elapsed fraction of the current window: 0.0 exactly on a
    window boundary, 0.5 half-way through.
    """
    elapsed = now - window_start(index, window_seconds)
    return elapsed / window_seconds


def counter_key(identity: str, index: int) -> str:
    """Storage key of the counter for ``identity`` in window ``index``."""
    return f"{identity}:{index}"
