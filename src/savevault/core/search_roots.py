from __future__ import annotations

import os
from pathlib import Path
from typing import Callable, Mapping, Sequence

from savevault.config.discovery_rules import (
    COMMON_INSTALL_DIRECTORIES,
    LAUNCHER_DIRECTORIES,
    USER_GAME_FOLDERS,
    VOLUME_LIBRARY_DIRECTORIES,
)
from savevault.config.settings import DEFAULT_CONFIG, DiscoveryConfig
from savevault.core.cancellation import CancellationCheck
from savevault.core.models import Volume, path_key
from savevault.logging_config import get_logger

logger = get_logger("search_roots")

SearchRootsProvider = Callable[[Sequence[Volume]], list[str]]


def _volume_candidates(volume: Volume) -> list[Path]:
    root = Path(volume.root)
    candidates = [root / name for name in COMMON_INSTALL_DIRECTORIES]
    users_dir = root / "Users"
    if users_dir.is_dir():
        for user_dir in sorted(child for child in users_dir.iterdir() if child.is_dir()):
            candidates.extend(user_dir.joinpath(*relative) for relative in USER_GAME_FOLDERS)
    return candidates


def shell_folder_candidates(env: Mapping[str, str]) -> list[Path]:
    """The special shell folders a Windows install exposes through its environment."""
    profile = Path(env.get("USERPROFILE") or str(Path.home()))
    candidates: list[Path] = []
    for key in ("ProgramFiles", "ProgramFiles(x86)", "CommonProgramFiles", "CommonProgramFiles(x86)"):
        if env.get(key):
            candidates.append(Path(env[key]))
    candidates.extend(
        [
            profile,
            profile / "Desktop",
            profile / "Documents",
            profile / "Downloads",
            profile / "Games",
            profile / "Documents" / "My Games",
            profile / "Saved Games",
        ]
    )
    if env.get("PUBLIC"):
        candidates.append(Path(env["PUBLIC"]) / "Documents")
    if env.get("APPDATA"):
        candidates.append(Path(env["APPDATA"]) / "Games")
    if env.get("LOCALAPPDATA"):
        local = Path(env["LOCALAPPDATA"])
        candidates.extend([local / "Games", local / "Microsoft" / "WindowsApps"])
    return candidates


def launcher_candidates(env: Mapping[str, str], volumes: Sequence[Volume]) -> list[Path]:
    candidates: list[Path] = []
    for key in ("ProgramFiles", "ProgramFiles(x86)"):
        if env.get(key):
            candidates.extend(Path(env[key], name) for name in LAUNCHER_DIRECTORIES)
    for volume in volumes:
        candidates.extend(Path(volume.root, name) for name in VOLUME_LIBRARY_DIRECTORIES)
    return candidates


def build_search_roots(
    volumes: Sequence[Volume],
    config: DiscoveryConfig = DEFAULT_CONFIG,
    env: Mapping[str, str] | None = None,
    cancel: CancellationCheck | None = None,
    progress_callback: Callable[[str], None] | None = None,
) -> list[str]:
    """Existing candidate roots for the crawl, de-duplicated case-insensitively in discovery order."""
    environ = os.environ if env is None else env
    candidates: list[Path] = []
    for volume in volumes:
        if cancel is not None:
            cancel.check()
        if progress_callback is not None:
            progress_callback(f"[filesystem] Collecting search paths on {volume.root}")
        try:
            candidates.extend(_volume_candidates(volume))
        except OSError as exc:
            logger.warning("Cannot inspect volume %s: %s", volume.root, exc)
    candidates.extend(shell_folder_candidates(environ))
    candidates.extend(launcher_candidates(environ, volumes))
    candidates.extend(Path(extra) for extra in config.extra_search_roots)

    roots: list[str] = []
    seen: set[str] = set()
    for candidate in candidates:
        key = path_key(str(candidate))
        if key in seen:
            continue
        try:
            if not candidate.is_dir():
                continue
        except OSError:
            continue
        seen.add(key)
        roots.append(str(candidate))
    return roots
