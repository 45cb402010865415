from __future__ import annotations

import heapq
import itertools
from pathlib import Path
from typing import Any, Callable


def project_root(start: Path | None = None) -> Path:
    """Return the repository root by walking up to find pyproject.toml."""
    here = (start or Path(__file__)).resolve()
    for anc in [here, *here.parents]:
        if (anc / "pyproject.toml").exists():
            return anc
    return here.parents[-1] if here.parents else here


def testdata(name: str) -> Path:
    return project_root(Path(__file__)) / "tests" / "testdata" / name


testdata.__test__ = False  # helper, not a test; keep pytest from collecting it


class ManualHandle:
    def __init__(self, when: float, callback: Callable[..., Any], args: tuple) -> None:
        self.when = when
        self.callback = callback
        self.args = args
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """``call_later`` driven by an explicit clock instead of an event loop."""

    def __init__(self) -> None:
        self.now = 0.0
        self._queue: list[tuple[float, int, ManualHandle]] = []
        self._seq = itertools.count()
        self.scheduled = 0

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> ManualHandle:
        handle = ManualHandle(self.now + delay, callback, args)
        heapq.heappush(self._queue, (handle.when, next(self._seq), handle))
        self.scheduled += 1
        return handle

    @property
    def pending(self) -> int:
        return sum(1 for _, _, h in self._queue if not h.cancelled)

    def advance(self, seconds: float) -> list[float]:
        """Move the clock forward, firing due callbacks; returns their fire times."""
        target = self.now + seconds
        fired: list[float] = []
        while self._queue and self._queue[0][0] <= target:
            when, _, handle = heapq.heappop(self._queue)
            if handle.cancelled:
                continue
            self.now = when
            handle.callback(*handle.args)
            fired.append(when)
        self.now = target
        return fired
