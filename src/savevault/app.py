from __future__ import annotations

import argparse
from pathlib import Path
from queue import Empty
import sys
import threading
from typing import Sequence

from savevault.config.known_games import KNOWN_GAMES
from savevault.config.settings import DiscoveryConfig, load_discovery_config
from savevault.core.catalog import load_catalog
from savevault.core.channel import DiscoveryChannel, start_discovery_thread
from savevault.core.discovery import ApplicationDiscovery
from savevault.core.models import (
    DiscoveredApplication,
    DiscoveryEventKind,
    DiscoveryOutcome,
    DiscoveryResult,
    KnownGameDescriptor,
)
from savevault.logging_config import setup_logging


def _set_windows_dpi_aware() -> None:
    """Make the process DPI-aware on Windows so Tk reports the real scale."""
    if sys.platform != "win32":
        return
    import ctypes

    try:
        ctypes.windll.user32.SetProcessDpiAwarenessContext(-4)  # PER_MONITOR_AWARE_V2
    except (AttributeError, OSError):
        try:
            ctypes.windll.shcore.SetProcessDpiAwareness(2)
        except (AttributeError, OSError):
            ctypes.windll.user32.SetProcessDPIAware()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="savevault", description="Find installed games and their save folders.")
    parser.add_argument("--debug", action="store_true", help="Verbose logging, also echoed to the console.")
    parser.add_argument("--catalog", type=Path, help="JSON game catalog to use instead of the built-in list.")
    parser.add_argument("--config", type=Path, help="JSON file overriding discovery settings.")
    parser.add_argument("--headless", action="store_true", help="Scan without the UI and print each game found.")
    return parser


def resolve_catalog(path: Path | None) -> list[KnownGameDescriptor]:
    if path is None:
        return list(KNOWN_GAMES)
    return load_catalog(path)


def _print_application(app: DiscoveredApplication) -> None:
    print(f"{app.name}\t{app.source.value}\t{app.executable_path}\t{app.save_path}", flush=True)


def run_headless(catalog: Sequence[KnownGameDescriptor], config: DiscoveryConfig) -> int:
    """Scan on a worker thread and print events as they arrive; Ctrl+C requests cancellation."""
    cancel_event = threading.Event()
    channel = DiscoveryChannel(progress_interval_sec=0.5)
    start_discovery_thread(ApplicationDiscovery(config=config), channel, catalog, cancel_event)
    result: DiscoveryResult | None = None
    while result is None:
        try:
            event = channel.events.get(timeout=0.2)
        except Empty:
            continue
        except KeyboardInterrupt:
            if not cancel_event.is_set():
                print("Stopping...", file=sys.stderr, flush=True)
                cancel_event.set()
            continue
        if event.kind == DiscoveryEventKind.RESULT:
            _print_application(event.payload)  # type: ignore[arg-type]
        elif event.kind == DiscoveryEventKind.PROGRESS:
            print(event.payload, file=sys.stderr, flush=True)
        elif event.kind == DiscoveryEventKind.ERROR:
            print(f"[error] {event.payload}", file=sys.stderr, flush=True)
        elif event.kind == DiscoveryEventKind.DONE:
            result = event.payload  # type: ignore[assignment]
    if result.outcome == DiscoveryOutcome.CANCELLED:
        return 130
    return 0 if result.outcome == DiscoveryOutcome.COMPLETED else 1


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(debug=args.debug)
    config = load_discovery_config(args.config)
    catalog = resolve_catalog(args.catalog)

    if args.headless:
        return run_headless(catalog, config)

    import customtkinter as ctk

    from savevault.ui.main_window import DiscoveryWindow

    _set_windows_dpi_aware()
    ctk.set_appearance_mode("dark")
    ctk.set_default_color_theme("blue")
    window = DiscoveryWindow(catalog=catalog, config=config, catalog_path=args.catalog)
    window.mainloop()
    return 0


if __name__ == "__main__":
    sys.exit(main())
