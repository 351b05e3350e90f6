"""Table of discovered applications.

``AppListViewModel`` holds rows and source indexes so it can be tested without
Tk. ``AppListPane`` renders the filtered view in a ttk.Treeview and appends
rows in batches as results stream in from the discovery worker.
"""
from __future__ import annotations

from dataclasses import dataclass
import tkinter as tk
from tkinter import ttk

import customtkinter as ctk

from savevault.core.models import DiscoveredApplication, DiscoverySource
from savevault.ui.table_perf import (
    BATCH_INSERT_SIZE,
    FILTER_DEBOUNCE_MS,
    MAX_COLUMN_TEXT_LEN,
    chunked,
    get_dpi_scale,
    normalize_row_text,
    scaled_table_metrics,
)

ALL_SOURCES = "All Sources"

SOURCE_LABELS: dict[DiscoverySource, str] = {
    DiscoverySource.KNOWN_CATALOG: "Known Game",
    DiscoverySource.REGISTRY: "Installed Program",
    DiscoverySource.FILESYSTEM_HEURISTIC: "Folder Scan",
}


@dataclass
class AppRowRecord:
    key: str
    name: str
    source: DiscoverySource
    source_label: str
    executable: str
    save_path: str
    has_save_path: bool


class AppListViewModel:
    """Discovered applications keyed by executable path; duplicate paths are ignored."""

    def __init__(self) -> None:
        self._apps_by_key: dict[str, DiscoveredApplication] = {}
        self._rows_by_key: dict[str, AppRowRecord] = {}
        self._source_to_keys: dict[DiscoverySource, list[str]] = {source: [] for source in DiscoverySource}

    def add(self, app: DiscoveredApplication) -> AppRowRecord | None:
        key = app.identity_key
        if key in self._apps_by_key:
            return None
        record = AppRowRecord(
            key=key,
            name=normalize_row_text(app.name, MAX_COLUMN_TEXT_LEN),
            source=app.source,
            source_label=SOURCE_LABELS.get(app.source, app.source.value),
            executable=normalize_row_text(app.executable_path, MAX_COLUMN_TEXT_LEN),
            save_path=normalize_row_text(app.save_path, MAX_COLUMN_TEXT_LEN),
            has_save_path=app.has_save_path,
        )
        self._apps_by_key[key] = app
        self._rows_by_key[key] = record
        self._source_to_keys[app.source].append(key)
        return record

    def clear(self) -> None:
        self._apps_by_key.clear()
        self._rows_by_key.clear()
        for keys in self._source_to_keys.values():
            keys.clear()

    def __len__(self) -> int:
        return len(self._apps_by_key)

    def applications(self) -> list[DiscoveredApplication]:
        return list(self._apps_by_key.values())

    def row(self, key: str) -> AppRowRecord:
        return self._rows_by_key[key]

    def count_by_source(self) -> dict[DiscoverySource, int]:
        return {source: len(keys) for source, keys in self._source_to_keys.items()}

    def count_with_save_path(self) -> int:
        return sum(1 for row in self._rows_by_key.values() if row.has_save_path)

    def filtered_keys(self, source_filter: str = ALL_SOURCES) -> list[str]:
        if source_filter == ALL_SOURCES:
            keys = list(self._rows_by_key)
        else:
            source = source_from_label(source_filter)
            keys = list(self._source_to_keys.get(source, [])) if source is not None else []
        keys.sort(key=lambda k: (self._rows_by_key[k].name.lower(), k))
        return keys

    def matches(self, key: str, source_filter: str) -> bool:
        return source_filter == ALL_SOURCES or self._rows_by_key[key].source_label == source_filter


def source_from_label(label: str) -> DiscoverySource | None:
    for source, source_label in SOURCE_LABELS.items():
        if source_label == label:
            return source
    return None


class AppListPane(ctk.CTkFrame):
    def __init__(self, master, **kwargs):
        super().__init__(master, **kwargs)
        self.configure(border_width=1, border_color=("#cfd4dc", "#2f3745"))
        self.grid_columnconfigure(0, weight=1)
        self.grid_rowconfigure(2, weight=1)

        self.view_model = AppListViewModel()
        self._pending_keys: list[str] = []
        self._insert_after_id: str | None = None
        self._debounce_after_id: str | None = None

        self.title_label = ctk.CTkLabel(
            self,
            text="Discovered Games",
            font=ctk.CTkFont(size=16, weight="bold"),
            text_color=("#0f172a", "#f8fafc"),
        )
        self.title_label.grid(row=0, column=0, padx=10, pady=(10, 4), sticky="w")

        self.controls_frame = ctk.CTkFrame(self, fg_color="transparent")
        self.controls_frame.grid(row=1, column=0, padx=10, pady=(0, 8), sticky="ew")
        self.controls_frame.grid_columnconfigure(1, weight=1)

        self.source_filter_var = ctk.StringVar(value=ALL_SOURCES)
        self.source_filter = ctk.CTkOptionMenu(
            self.controls_frame,
            variable=self.source_filter_var,
            values=[ALL_SOURCES, *SOURCE_LABELS.values()],
            command=lambda _: self._schedule_filter_refresh(),
            width=170,
        )
        self.source_filter.grid(row=0, column=0, padx=(0, 6), sticky="w")
        self.count_label = ctk.CTkLabel(self.controls_frame, text="Found: 0 (save folder known: 0)", anchor="e")
        self.count_label.grid(row=0, column=1, padx=(6, 0), sticky="e")

        table_container = ctk.CTkFrame(
            self,
            fg_color=("#f8fafc", "#0b1220"),
            border_width=1,
            border_color=("#d7dde7", "#344056"),
        )
        table_container.grid(row=2, column=0, padx=10, pady=(0, 10), sticky="nsew")
        table_container.grid_columnconfigure(0, weight=1)
        table_container.grid_rowconfigure(0, weight=1)

        self._tree = ttk.Treeview(
            table_container,
            columns=("name", "source", "executable", "save_path"),
            show="headings",
            selectmode="browse",
            style="AppList.Treeview",
        )
        scale = get_dpi_scale(table_container)
        self._apply_style(scale)
        self._tree.heading("name", text="Name")
        self._tree.heading("source", text="Found By")
        self._tree.heading("executable", text="Executable")
        self._tree.heading("save_path", text="Save Location")
        self._tree.column("name", width=220, minwidth=140, stretch=False)
        self._tree.column("source", width=130, minwidth=100, stretch=False)
        self._tree.column("executable", width=420, minwidth=200, stretch=True)
        self._tree.column("save_path", width=320, minwidth=160, stretch=True)

        scrollbar = tk.Scrollbar(
            table_container, orient=tk.VERTICAL, command=self._tree.yview, width=max(14, round(14 * scale))
        )
        self._tree.configure(yscrollcommand=scrollbar.set)
        self._tree.grid(row=0, column=0, sticky="nsew")
        scrollbar.grid(row=0, column=1, sticky="ns")

    def _apply_style(self, scale: float) -> None:
        font_size, row_height = scaled_table_metrics(scale)
        style = ttk.Style(self._tree)
        style.theme_use("clam")
        style.configure(
            "AppList.Treeview",
            background="#1e293b",
            foreground="#e2e8f0",
            fieldbackground="#1e293b",
            borderwidth=0,
            rowheight=row_height,
            font=("Segoe UI", font_size),
        )
        style.configure(
            "AppList.Treeview.Heading",
            background="#334155",
            foreground="#f1f5f9",
            font=("Segoe UI", font_size, "bold"),
        )
        style.map("AppList.Treeview", background=[("selected", "#475569")])

    def add_application(self, app: DiscoveredApplication) -> None:
        record = self.view_model.add(app)
        if record is None:
            return
        self._update_count_label()
        if self.view_model.matches(record.key, self.source_filter_var.get()):
            self._pending_keys.append(record.key)
            if self._insert_after_id is None:
                self._insert_after_id = self.after(50, self._insert_pending)

    def reset(self) -> None:
        self._cancel_pending()
        self.view_model.clear()
        self._tree.delete(*self._tree.get_children())
        self._update_count_label()

    def _insert_pending(self) -> None:
        self._insert_after_id = None
        batch = self._pending_keys[:BATCH_INSERT_SIZE]
        del self._pending_keys[:BATCH_INSERT_SIZE]
        for key in batch:
            self._insert_row(key)
        if self._pending_keys:
            self._insert_after_id = self.after(1, self._insert_pending)

    def _insert_row(self, key: str) -> None:
        if self._tree.exists(key):
            return
        row = self.view_model.row(key)
        self._tree.insert("", "end", iid=key, values=(row.name, row.source_label, row.executable, row.save_path))

    def _schedule_filter_refresh(self) -> None:
        if self._debounce_after_id is not None:
            self.after_cancel(self._debounce_after_id)
        self._debounce_after_id = self.after(FILTER_DEBOUNCE_MS, self._refresh_from_filter)

    def _refresh_from_filter(self) -> None:
        self._debounce_after_id = None
        self._cancel_pending()
        self._tree.delete(*self._tree.get_children())
        for batch in chunked(self.view_model.filtered_keys(self.source_filter_var.get()), BATCH_INSERT_SIZE):
            self._pending_keys.extend(batch)
        if self._pending_keys:
            self._insert_after_id = self.after(1, self._insert_pending)

    def _cancel_pending(self) -> None:
        if self._insert_after_id is not None:
            self.after_cancel(self._insert_after_id)
            self._insert_after_id = None
        self._pending_keys.clear()

    def _update_count_label(self) -> None:
        self.count_label.configure(
            text=f"Found: {len(self.view_model)} (save folder known: {self.view_model.count_with_save_path()})"
        )
