from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
import re

UNKNOWN_SAVE_PATH = "Unknown"

_SEPARATORS = re.compile(r"[\\/]+")


def split_path(path: str) -> list[str]:
    """Split a path written with either separator style into its parts."""
    return [part for part in _SEPARATORS.split(path) if part]


def leaf_name(path: str) -> str:
    parts = split_path(path)
    return parts[-1] if parts else ""


def parent_path(path: str) -> str:
    stripped = path.rstrip("\\/")
    cut = max(stripped.rfind("\\"), stripped.rfind("/"))
    if cut < 0:
        return ""
    return stripped[:cut]


def path_key(path: str) -> str:
    return path.replace("\\", "/").rstrip("/").lower()


class DiscoverySource(str, Enum):
    KNOWN_CATALOG = "known_catalog"
    REGISTRY = "registry"
    FILESYSTEM_HEURISTIC = "filesystem_heuristic"


class DiscoveryOutcome(str, Enum):
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


class PhaseOutcome(str, Enum):
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


class DiscoveryEventKind(str, Enum):
    RESULT = "result"
    PROGRESS = "progress"
    ERROR = "error"
    DONE = "done"


@dataclass(slots=True)
class DiscoveredApplication:
    name: str
    install_path: str
    executable_path: str
    save_path: str = UNKNOWN_SAVE_PATH
    source: DiscoverySource = DiscoverySource.FILESYSTEM_HEURISTIC

    @property
    def executable_name(self) -> str:
        return leaf_name(self.executable_path)

    @property
    def identity_key(self) -> str:
        return path_key(self.executable_path)

    @property
    def has_save_path(self) -> bool:
        return bool(self.save_path) and self.save_path != UNKNOWN_SAVE_PATH


@dataclass(slots=True, frozen=True)
class KnownGameDescriptor:
    name: str
    relative_install_path: str
    executable_file_name: str
    save_path_template: str | None = None

    @property
    def is_usable(self) -> bool:
        return bool(self.relative_install_path.strip()) and bool(self.executable_file_name.strip())


@dataclass(slots=True, frozen=True)
class ExecutableInfo:
    """Already-resolved metadata for one candidate executable."""

    path: str
    size: int

    @property
    def file_name(self) -> str:
        return leaf_name(self.path)

    @property
    def directory(self) -> str:
        return parent_path(self.path)


@dataclass(slots=True, frozen=True)
class Volume:
    root: str
    fstype: str = ""


@dataclass(slots=True)
class DiscoveryEvent:
    kind: DiscoveryEventKind
    payload: object = None


@dataclass(slots=True)
class DiscoveryResult:
    outcome: DiscoveryOutcome
    applications: list[DiscoveredApplication] = field(default_factory=list)
    phase_outcomes: dict[str, PhaseOutcome] = field(default_factory=dict)
    errors: list[str] = field(default_factory=list)
    elapsed_seconds: float = 0.0

    @property
    def cancelled(self) -> bool:
        return self.outcome == DiscoveryOutcome.CANCELLED

    def count_by_source(self) -> dict[DiscoverySource, int]:
        counts = {source: 0 for source in DiscoverySource}
        for app in self.applications:
            counts[app.source] += 1
        return counts
