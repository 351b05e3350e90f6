"""Sizing constants and helpers for the discovered-application table.

Rows arrive one at a time while a scan runs, so the table inserts them in
small batches per UI tick and scales fonts for high-DPI displays.
"""
from __future__ import annotations

import sys

# Rows to insert per UI tick while results stream in.
BATCH_INSERT_SIZE = 250

# Debounce delay (ms) for source-filter changes.
FILTER_DEBOUNCE_MS = 120

# Paths can be very long; truncate display strings past this length.
MAX_COLUMN_TEXT_LEN = 260

TRUNCATE_SUFFIX = "..."

BASE_TABLE_FONT_SIZE = 13
BASE_TABLE_ROW_HEIGHT = 30
MIN_TABLE_ROW_HEIGHT = 24
MAX_TABLE_ROW_HEIGHT = 52
MIN_TABLE_FONT_SIZE = 12
MAX_TABLE_FONT_SIZE = 20


def normalize_row_text(value: str, max_len: int | None = None) -> str:
    """Strip, flatten newlines and optionally truncate text for a Treeview cell."""
    out = (value or "").strip().replace("\r", "").replace("\n", " ")
    if max_len is not None and len(out) > max_len:
        out = out[: max_len - len(TRUNCATE_SUFFIX)] + TRUNCATE_SUFFIX
    return out


def chunked(items: list, chunk_size: int):
    """Yield consecutive slices of ``items`` no longer than ``chunk_size``."""
    for start in range(0, len(items), chunk_size):
        yield items[start : start + chunk_size]


def scaled_table_metrics(scale: float) -> tuple[int, int]:
    """Font size and row height for a DPI scale factor, clamped to readable bounds."""
    font_size = max(MIN_TABLE_FONT_SIZE, min(MAX_TABLE_FONT_SIZE, round(BASE_TABLE_FONT_SIZE * scale)))
    row_height = max(MIN_TABLE_ROW_HEIGHT, min(MAX_TABLE_ROW_HEIGHT, round(BASE_TABLE_ROW_HEIGHT * scale)))
    return font_size, row_height


def get_dpi_scale(widget) -> float:
    """Scale factor relative to 96 DPI, never below 1.0."""
    try:
        pixels_per_inch = widget.winfo_toplevel().winfo_fpixels("1i")
    except Exception:  # noqa: BLE001
        return 1.0
    scale = max(1.0, pixels_per_inch / 96.0)
    # Some Windows Tk builds report 96 DPI even with OS scaling enabled.
    if sys.platform == "win32" and scale <= 1.01:
        try:
            import ctypes

            scale = max(scale, ctypes.windll.user32.GetDpiForSystem() / 96.0)
        except (AttributeError, OSError):
            pass
    return scale
