from __future__ import annotations

from pathlib import Path
import threading
import tkinter.filedialog as filedialog
from typing import Sequence

import customtkinter as ctk

from savevault.config.settings import DEFAULT_CONFIG, DiscoveryConfig
from savevault.core import ApplicationDiscovery, DiscoveryChannel, DiscoveryResult, start_discovery_thread
from savevault.core.catalog import load_catalog
from savevault.core.models import DiscoveryEventKind, DiscoveryOutcome, KnownGameDescriptor
from savevault.logging_config import get_logger
from savevault.ui.app_list import SOURCE_LABELS, AppListPane
from savevault.ui.progress_log import ProgressLog

logger = get_logger("ui")

POLL_INTERVAL_MS = 100
MAX_EVENTS_PER_POLL = 500


class DiscoveryWindow(ctk.CTk):
    """Top-level window for scanning a machine for installed games.

    Discovery runs on a worker thread; its events are drained from the
    channel on the Tk thread every ``POLL_INTERVAL_MS``.
    """

    def __init__(
        self,
        catalog: Sequence[KnownGameDescriptor] = (),
        config: DiscoveryConfig = DEFAULT_CONFIG,
        catalog_path: Path | None = None,
    ) -> None:
        super().__init__()
        self.title("SaveVault - Game Discovery")
        self.geometry("1200x780")
        self.minsize(900, 600)

        self.config_values = config
        self.builtin_catalog = list(catalog)
        self.channel = DiscoveryChannel()
        self._cancel_event = threading.Event()
        self._worker: threading.Thread | None = None

        self._build_layout()
        if catalog_path is not None:
            self.catalog_entry.insert(0, str(catalog_path))
        self.after(POLL_INTERVAL_MS, self._poll_queue)

    def _build_layout(self) -> None:
        self.grid_columnconfigure(0, weight=1)
        self.grid_rowconfigure(1, weight=3)
        self.grid_rowconfigure(2, weight=1)

        controls = ctk.CTkFrame(self)
        controls.grid(row=0, column=0, padx=12, pady=(12, 6), sticky="ew")
        controls.grid_columnconfigure(1, weight=1)

        ctk.CTkLabel(controls, text="Game catalog (optional):").grid(row=0, column=0, padx=(10, 6), pady=10, sticky="w")
        self.catalog_entry = ctk.CTkEntry(controls, placeholder_text="Built-in catalog")
        self.catalog_entry.grid(row=0, column=1, padx=6, pady=10, sticky="ew")
        self.catalog_browse = ctk.CTkButton(controls, text="Browse", width=90, command=self._browse_catalog)
        self.catalog_browse.grid(row=0, column=2, padx=6, pady=10)
        self.scan_button = ctk.CTkButton(controls, text="Scan", width=100, command=self._start_scan)
        self.scan_button.grid(row=0, column=3, padx=6, pady=10)
        self.stop_button = ctk.CTkButton(
            controls,
            text="Stop",
            width=90,
            fg_color="#b91c1c",
            hover_color="#991b1b",
            state="disabled",
            command=self._request_stop,
        )
        self.stop_button.grid(row=0, column=4, padx=(6, 10), pady=10)

        self.status_label = ctk.CTkLabel(controls, text="Ready.", anchor="w")
        self.status_label.grid(row=1, column=0, columnspan=5, padx=10, pady=(0, 10), sticky="ew")

        self.app_list = AppListPane(self)
        self.app_list.grid(row=1, column=0, padx=12, pady=6, sticky="nsew")

        self.progress_log = ProgressLog(self)
        self.progress_log.grid(row=2, column=0, padx=12, pady=(6, 12), sticky="nsew")

    def _browse_catalog(self) -> None:
        selected = filedialog.askopenfilename(
            title="Select game catalog", filetypes=[("JSON files", "*.json"), ("All files", "*.*")]
        )
        if selected:
            self.catalog_entry.delete(0, "end")
            self.catalog_entry.insert(0, selected)

    def _catalog_from_ui(self) -> list[KnownGameDescriptor]:
        value = self.catalog_entry.get().strip()
        if not value:
            return list(self.builtin_catalog)
        path = Path(value)
        if not path.is_file():
            self.progress_log.log(f"[catalog] Catalog not found, using built-in list: {value}")
            return list(self.builtin_catalog)
        return load_catalog(path)

    def _start_scan(self) -> None:
        if self._worker is not None and self._worker.is_alive():
            return
        self.app_list.reset()
        self.progress_log.clear()
        self._cancel_event.clear()
        catalog = self._catalog_from_ui()
        self._set_scanning(True)
        self._set_status(f"Scanning ({len(catalog)} known games in catalog)...")
        logger.info("Starting scan from the UI with %d catalog entries", len(catalog))
        discovery = ApplicationDiscovery(config=self.config_values)
        self._worker = start_discovery_thread(discovery, self.channel, catalog, self._cancel_event)

    def _request_stop(self) -> None:
        if self._worker is None or not self._worker.is_alive():
            return
        self._cancel_event.set()
        self.stop_button.configure(state="disabled")
        self._set_status("Stopping after the current folder...")

    def _poll_queue(self) -> None:
        # The discovery worker publishes to the channel; the UI consumes here.
        try:
            for event in self.channel.drain(MAX_EVENTS_PER_POLL):
                if event.kind == DiscoveryEventKind.RESULT:
                    self.app_list.add_application(event.payload)  # type: ignore[arg-type]
                elif event.kind == DiscoveryEventKind.PROGRESS:
                    self.progress_log.log(str(event.payload))
                elif event.kind == DiscoveryEventKind.ERROR:
                    self.progress_log.log_error(str(event.payload))
                elif event.kind == DiscoveryEventKind.DONE:
                    self._on_scan_done(event.payload)  # type: ignore[arg-type]
        finally:
            self.after(POLL_INTERVAL_MS, self._poll_queue)

    def _on_scan_done(self, result: DiscoveryResult) -> None:
        self._worker = None
        self._set_scanning(False)
        counts = ", ".join(
            f"{SOURCE_LABELS[source]}: {count}" for source, count in result.count_by_source().items()
        )
        if result.outcome == DiscoveryOutcome.CANCELLED:
            self._set_status(f"Scan stopped. Kept {len(result.applications)} programs ({counts}).")
        elif result.outcome == DiscoveryOutcome.FAILED:
            self._set_status("Scan failed. See the log for details.")
        else:
            self._set_status(
                f"Scan finished in {result.elapsed_seconds:.1f}s. Found {len(result.applications)} programs ({counts})."
            )
    def _set_scanning(self, running: bool) -> None:
        self.scan_button.configure(state="disabled" if running else "normal")
        self.catalog_browse.configure(state="disabled" if running else "normal")
        self.catalog_entry.configure(state="disabled" if running else "normal")
        self.stop_button.configure(state="normal" if running else "disabled")

    def _set_status(self, message: str) -> None:
        self.status_label.configure(text=message)
