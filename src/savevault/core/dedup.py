from __future__ import annotations

from savevault.core.models import DiscoveredApplication, path_key


class ProcessedPathSet:
    """Executable paths already classified during the current scan (case-insensitive)."""

    def __init__(self) -> None:
        self._keys: set[str] = set()

    def mark(self, path: str) -> bool:
        """Record ``path``; returns False when it had already been recorded."""
        key = path_key(path)
        if key in self._keys:
            return False
        self._keys.add(key)
        return True

    def __contains__(self, path: object) -> bool:
        return isinstance(path, str) and path_key(path) in self._keys

    def __len__(self) -> int:
        return len(self._keys)


class DeduplicationIndex:
    """Per-scan registry of claimed executable paths and executable file names.

    The first source to claim a file name keeps it; later records with the same
    name are dropped even if they live elsewhere on disk.
    """

    def __init__(self) -> None:
        self.processed = ProcessedPathSet()
        self._claimed_paths: dict[str, DiscoveredApplication] = {}
        self._claimed_names: dict[str, str] = {}

    def claim(self, app: DiscoveredApplication) -> bool:
        path_id = app.identity_key
        name_id = app.executable_name.lower()
        if path_id in self._claimed_paths:
            return False
        if name_id and name_id in self._claimed_names:
            return False
        self._claimed_paths[path_id] = app
        if name_id:
            self._claimed_names[name_id] = app.executable_path
        self.processed.mark(app.executable_path)
        return True

    def owner_of_name(self, executable_name: str) -> str | None:
        return self._claimed_names.get(executable_name.lower())

    def is_claimed(self, executable_path: str) -> bool:
        return path_key(executable_path) in self._claimed_paths

    @property
    def applications(self) -> list[DiscoveredApplication]:
        return list(self._claimed_paths.values())

    def __len__(self) -> int:
        return len(self._claimed_paths)
