from __future__ import annotations

from typing import Callable

CancelProbe = Callable[[], bool]


class DiscoveryCancelled(Exception):
    """Raised when application discovery is cancelled by the caller."""


class CancellationCheck:
    """Polls a caller-owned cancel probe.

    ``check()`` polls immediately; ``tick()`` polls once every ``stride``
    calls so tight loops over large listings stay cheap.
    """

    def __init__(self, cancel_requested: CancelProbe | None = None, stride: int = 50) -> None:
        self._cancel_requested = cancel_requested
        self._stride = max(1, stride)
        self._ticks = 0

    @property
    def requested(self) -> bool:
        return self._cancel_requested is not None and self._cancel_requested()

    def check(self) -> None:
        if self.requested:
            raise DiscoveryCancelled("Discovery cancelled by user.")

    def tick(self) -> None:
        self._ticks += 1
        if self._ticks >= self._stride:
            self._ticks = 0
            self.check()
