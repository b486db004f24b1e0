"""Wall-clock access for the scheduler.

All scheduler components read time through a ``Clock`` so tests can freeze
and advance it without sleeping.
"""

from __future__ import annotations

import time
from typing import Protocol


class Clock(Protocol):
    def now_ms(self) -> int: ...


class SystemClock:
    """Milliseconds since the epoch from the system clock."""

    def now_ms(self) -> int:
        return int(time.time() * 1000)


system_clock = SystemClock()
