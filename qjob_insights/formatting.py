from __future__ import annotations

import math


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def format_duration(seconds: float) -> str:
    if seconds < 1:
        return f"{round_half_up(seconds * 1000)}ms"
    if seconds < 60:
        return f"{seconds:.1f}s"
    minutes = math.floor(seconds / 60)
    secs = round_half_up(seconds % 60)
    return f"{minutes}m {secs}s"
