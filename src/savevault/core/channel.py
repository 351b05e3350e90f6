"""Thread-safe event channel between a discovery worker and its consumer.

The worker publishes results, progress lines, errors and a final ``DONE``
event carrying the ``DiscoveryResult``. Consumers drain the queue on their
own thread (the UI does so from a Tk ``after`` loop).
"""
from __future__ import annotations

from queue import Empty, Queue
import threading
import time
from typing import Iterator, Sequence

from savevault.core.cancellation import DiscoveryCancelled
from savevault.core.discovery import ApplicationDiscovery
from savevault.core.models import (
    DiscoveredApplication,
    DiscoveryEvent,
    DiscoveryEventKind,
    DiscoveryOutcome,
    DiscoveryResult,
    KnownGameDescriptor,
)
from savevault.core.search_roots import SearchRootsProvider
from savevault.logging_config import get_logger

logger = get_logger("channel")

UNTHROTTLED_PREFIXES = ("[phase]", "[done]")


class DiscoveryChannel:
    """Queue of ``DiscoveryEvent`` values with rate-limited progress lines."""

    def __init__(self, progress_interval_sec: float = 0.15) -> None:
        self.events: Queue[DiscoveryEvent] = Queue()
        self._progress_interval_sec = progress_interval_sec
        self._progress_lock = threading.Lock()
        self._last_progress_emit = float("-inf")

    def publish_result(self, app: DiscoveredApplication) -> None:
        self.events.put(DiscoveryEvent(DiscoveryEventKind.RESULT, app))

    def publish_progress(self, message: str) -> None:
        now = time.monotonic()
        with self._progress_lock:
            if (
                not message.startswith(UNTHROTTLED_PREFIXES)
                and now - self._last_progress_emit < self._progress_interval_sec
            ):
                return
            self._last_progress_emit = now
        self.events.put(DiscoveryEvent(DiscoveryEventKind.PROGRESS, message))

    def publish_error(self, message: str) -> None:
        self.events.put(DiscoveryEvent(DiscoveryEventKind.ERROR, message))

    def publish_done(self, result: DiscoveryResult) -> None:
        self.events.put(DiscoveryEvent(DiscoveryEventKind.DONE, result))

    def drain(self, limit: int | None = None) -> Iterator[DiscoveryEvent]:
        """Yield queued events without blocking; stops after ``limit`` events when given."""
        taken = 0
        while limit is None or taken < limit:
            try:
                event = self.events.get_nowait()
            except Empty:
                return
            taken += 1
            yield event


def run_discovery(
    discovery: ApplicationDiscovery,
    channel: DiscoveryChannel,
    catalog: Sequence[KnownGameDescriptor],
    cancel_event: threading.Event,
    search_roots_provider: SearchRootsProvider | None = None,
) -> DiscoveryResult:
    """Run one scan, publishing every event to ``channel``; ``DONE`` is always the last event."""
    try:
        result = discovery.discover(
            catalog,
            search_roots_provider=search_roots_provider,
            progress_callback=channel.publish_progress,
            cancel_requested=cancel_event.is_set,
            result_callback=channel.publish_result,
            error_callback=channel.publish_error,
        )
    except DiscoveryCancelled:
        result = DiscoveryResult(outcome=DiscoveryOutcome.CANCELLED)
    except Exception as exc:  # noqa: BLE001
        logger.exception("Discovery worker failed")
        channel.publish_error(str(exc))
        result = DiscoveryResult(outcome=DiscoveryOutcome.FAILED, errors=[str(exc)])
    channel.publish_done(result)
    return result


def start_discovery_thread(
    discovery: ApplicationDiscovery,
    channel: DiscoveryChannel,
    catalog: Sequence[KnownGameDescriptor],
    cancel_event: threading.Event,
    search_roots_provider: SearchRootsProvider | None = None,
) -> threading.Thread:
    worker = threading.Thread(
        target=run_discovery,
        args=(discovery, channel, catalog, cancel_event, search_roots_provider),
        name="savevault-discovery",
        daemon=True,
    )
    worker.start()
    return worker
