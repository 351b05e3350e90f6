"""Bounded recursive crawl for executables.

The crawl is a single sequential walk. It prunes whole subtrees through the
directory policy, looks inside ``bin``/``binary`` folders before anything
else, and polls the cancel probe on every directory and every ``stride``
entries of large listings.
"""
from __future__ import annotations

import os
from pathlib import Path
import stat
from typing import Callable, Iterator

from savevault.config.settings import DEFAULT_CONFIG, DiscoveryConfig
from savevault.core.cancellation import CancellationCheck
from savevault.core.classifier import should_skip_executable
from savevault.core.dedup import ProcessedPathSet
from savevault.core.directory_policy import should_skip_directory
from savevault.core.models import ExecutableInfo
from savevault.logging_config import get_logger

logger = get_logger("crawler")

_HIDDEN_OR_SYSTEM = getattr(stat, "FILE_ATTRIBUTE_HIDDEN", 0x2) | getattr(stat, "FILE_ATTRIBUTE_SYSTEM", 0x4)


def canonical_path(path: str | os.PathLike[str]) -> str:
    return os.path.normpath(os.path.abspath(os.fspath(path)))


def is_binary_folder(name: str) -> bool:
    lowered = name.lower()
    return "bin" in lowered or "binary" in lowered


def is_hidden_or_system(entry: os.DirEntry[str]) -> bool:
    try:
        attributes = getattr(entry.stat(follow_symlinks=False), "st_file_attributes", None)
    except OSError:
        return True
    if attributes is not None:
        return bool(attributes & _HIDDEN_OR_SYSTEM)
    return entry.name.startswith(".")


class FilesystemCrawler:
    def __init__(
        self,
        processed: ProcessedPathSet,
        config: DiscoveryConfig = DEFAULT_CONFIG,
        cancel: CancellationCheck | None = None,
        progress_callback: Callable[[str], None] | None = None,
    ) -> None:
        self._processed = processed
        self._config = config
        self._cancel = cancel or CancellationCheck(stride=config.cancel_check_stride)
        self._progress_callback = progress_callback
        self._suffixes = tuple(suffix.lower() for suffix in config.executable_suffixes)
        self._root_label = ""
        self.directories_visited = 0

    def crawl(self, root: str | os.PathLike[str], max_depth: int | None = None) -> Iterator[ExecutableInfo]:
        """Yield executables under ``root`` that pass the classifier, never deeper than ``max_depth``."""
        depth_limit = self._config.max_depth if max_depth is None else max_depth
        self._root_label = os.fspath(root)
        yield from self._walk(Path(root), 0, depth_limit)

    def _walk(self, directory: Path, depth: int, max_depth: int) -> Iterator[ExecutableInfo]:
        if depth > max_depth:
            return
        self._cancel.check()
        if should_skip_directory(str(directory), self._config):
            logger.debug("Pruned directory %s", directory)
            return
        self._count_directory()

        try:
            subdirectories = self._list_subdirectories(directory)
        except OSError as exc:
            logger.debug("Cannot list %s: %s", directory, exc)
            return

        for entry in subdirectories:
            if self._is_early_binary_folder(entry, depth + 1, max_depth):
                yield from self._executables_in(Path(entry.path))
        yield from self._executables_in(directory)

        for entry in subdirectories:
            self._cancel.tick()
            if is_hidden_or_system(entry):
                continue
            yield from self._walk(Path(entry.path), depth + 1, max_depth)

    def _is_early_binary_folder(self, entry: os.DirEntry[str], depth: int, max_depth: int) -> bool:
        """Binary folders are read ahead of their siblings only if the walk itself would enter them."""
        if depth > max_depth or not is_binary_folder(entry.name):
            return False
        return not is_hidden_or_system(entry) and not should_skip_directory(entry.path, self._config)

    def _list_subdirectories(self, directory: Path) -> list[os.DirEntry[str]]:
        subdirectories: list[os.DirEntry[str]] = []
        with os.scandir(directory) as entries:
            for entry in entries:
                self._cancel.tick()
                try:
                    if entry.is_dir(follow_symlinks=False):
                        subdirectories.append(entry)
                except OSError:
                    continue
        subdirectories.sort(key=lambda item: item.name.lower())
        return subdirectories

    def _executables_in(self, directory: Path) -> Iterator[ExecutableInfo]:
        try:
            with os.scandir(directory) as entries:
                candidates = [entry for entry in entries if entry.name.lower().endswith(self._suffixes)]
        except OSError as exc:
            logger.debug("Cannot list files in %s: %s", directory, exc)
            return
        candidates.sort(key=lambda item: item.name.lower())

        for entry in candidates:
            self._cancel.tick()
            try:
                if not entry.is_file():
                    continue
                path = canonical_path(entry.path)
                if not self._processed.mark(path):
                    continue
                info = ExecutableInfo(path=path, size=entry.stat().st_size)
            except OSError as exc:
                logger.debug("Cannot inspect %s: %s", entry.path, exc)
                continue
            if should_skip_executable(info, self._config):
                continue
            yield info

    def _count_directory(self) -> None:
        self.directories_visited += 1
        every = self._config.progress_every_dirs
        if every and self._progress_callback is not None and self.directories_visited % every == 0:
            self._progress_callback(
                f"[filesystem] Scanned {self.directories_visited} folders (current root: {self._root_label})"
            )
