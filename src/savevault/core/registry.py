"""Installed-program records from the OS.

The engine only consumes ``scan()`` -> list of executable path strings. The
Windows implementation reads the Uninstall keys and the Steam registry entry,
then expands launcher manifests (Steam, Epic) and well-known store folders
(GOG, EA, Ubisoft, Bethesda, Rockstar, Battle.net).
"""
from __future__ import annotations

from abc import ABC, abstractmethod
import json
import os
from pathlib import Path
import re
import sys
from typing import Iterable, Mapping

from savevault.config.discovery_rules import STEAM_KEY_PATHS, STORE_GAME_DIRECTORIES, UNINSTALL_KEY_PATHS
from savevault.core.cancellation import CancellationCheck, DiscoveryCancelled
from savevault.core.classifier import is_system_or_utility_executable
from savevault.logging_config import get_logger

try:
    import winreg
except ImportError:  # non-Windows host
    winreg = None  # type: ignore[assignment]

logger = get_logger("registry")

_VDF_PATH = re.compile(r'"path"\s+"([^"]+)"', re.IGNORECASE)
_VDF_INSTALLDIR = re.compile(r'"installdir"\s+"([^"]+)"', re.IGNORECASE)


class BaseRegistrySource(ABC):
    @abstractmethod
    def scan(self, cancel: CancellationCheck | None = None) -> list[str]:
        """Return absolute executable paths of installed programs."""


class StaticRegistrySource(BaseRegistrySource):
    """Fixed path list; used for non-Windows hosts, tests and replayed scans."""

    def __init__(self, paths: Iterable[str] = ()) -> None:
        self._paths = list(paths)

    def scan(self, cancel: CancellationCheck | None = None) -> list[str]:
        return list(self._paths)


def parse_steam_library_folders(vdf_text: str) -> list[str]:
    return [match.replace("\\\\", "\\") for match in _VDF_PATH.findall(vdf_text)]


def parse_appmanifest_installdir(acf_text: str) -> str | None:
    match = _VDF_INSTALLDIR.search(acf_text)
    return match.group(1) if match else None


def read_epic_install_location(manifest_path: Path) -> str | None:
    try:
        payload = json.loads(manifest_path.read_text(encoding="utf-8", errors="replace"))
    except (OSError, ValueError) as exc:
        logger.debug("Cannot read Epic manifest %s: %s", manifest_path, exc)
        return None
    location = payload.get("InstallLocation") if isinstance(payload, dict) else None
    return location if isinstance(location, str) and location.strip() else None


def icon_executable(display_icon: str) -> str | None:
    """Strip quotes and the ``,index`` suffix from a DisplayIcon value."""
    candidate = display_icon.replace('"', "").split(",")[0].strip()
    return candidate if candidate.lower().endswith(".exe") else None


def collect_install_executables(
    directory: str | os.PathLike[str],
    cancel: CancellationCheck | None = None,
) -> list[str]:
    """All non-utility ``.exe`` files below ``directory``."""
    found: list[str] = []
    for current, _dirs, files in os.walk(directory, onerror=lambda exc: logger.debug("Skipping %s", exc)):
        for file_name in files:
            if cancel is not None:
                cancel.tick()
            if not file_name.lower().endswith(".exe"):
                continue
            path = os.path.join(current, file_name)
            try:
                size = os.path.getsize(path)
            except OSError:
                continue
            if not is_system_or_utility_executable(path, size):
                found.append(path)
    return found


def program_files_roots(env: Mapping[str, str]) -> list[str]:
    roots: list[str] = []
    for key in ("ProgramFiles", "ProgramFiles(x86)", "ProgramW6432"):
        value = env.get(key)
        if value and value not in roots:
            roots.append(value)
    for fallback in (r"C:\Program Files", r"C:\Program Files (x86)"):
        if fallback not in roots:
            roots.append(fallback)
    return roots


class WindowsRegistrySource(BaseRegistrySource):
    def __init__(self, env: Mapping[str, str] | None = None) -> None:
        self._env = dict(os.environ if env is None else env)

    def scan(self, cancel: CancellationCheck | None = None) -> list[str]:
        if winreg is None or sys.platform != "win32":
            logger.info("Registry scan skipped: not running on Windows.")
            return []
        found: dict[str, str] = {}
        steps = (
            ("uninstall keys", self._scan_uninstall_keys),
            ("Steam", self._scan_steam),
            ("Epic Games", self._scan_epic),
            ("store folders", self._scan_store_folders),
        )
        for label, step in steps:
            try:
                for path in step(cancel):
                    found.setdefault(path.lower(), path)
            except DiscoveryCancelled:
                raise
            except Exception:  # noqa: BLE001
                logger.warning("Registry scan step failed: %s", label, exc_info=True)
        return list(found.values())

    def _scan_uninstall_keys(self, cancel: CancellationCheck | None) -> list[str]:
        paths: list[str] = []
        for hive in (winreg.HKEY_LOCAL_MACHINE, winreg.HKEY_CURRENT_USER):
            for key_path in UNINSTALL_KEY_PATHS:
                try:
                    key = winreg.OpenKey(hive, key_path)
                except OSError:
                    continue
                with key:
                    paths.extend(self._scan_uninstall_key(key, cancel))
        return paths

    def _scan_uninstall_key(self, key, cancel: CancellationCheck | None) -> list[str]:
        paths: list[str] = []
        index = 0
        while True:
            try:
                sub_name = winreg.EnumKey(key, index)
            except OSError:
                break
            index += 1
            if cancel is not None:
                cancel.check()
            try:
                with winreg.OpenKey(key, sub_name) as sub_key:
                    install_location = _query(sub_key, "InstallLocation")
                    uninstall_string = _query(sub_key, "UninstallString")
                    display_icon = _query(sub_key, "DisplayIcon")
            except OSError as exc:
                logger.debug("Cannot read uninstall entry %s: %s", sub_name, exc)
                continue

            if not install_location and uninstall_string:
                install_location = os.path.dirname(uninstall_string.replace('"', ""))
            if not install_location:
                continue
            if display_icon:
                icon_path = icon_executable(display_icon)
                if icon_path and os.path.isfile(icon_path):
                    paths.append(icon_path)
            install_location = install_location.strip().strip('"')
            if os.path.isdir(install_location):
                paths.extend(collect_install_executables(install_location, cancel))
        return paths

    def _steam_install_path(self) -> str | None:
        for key_path in STEAM_KEY_PATHS:
            try:
                with winreg.OpenKey(winreg.HKEY_LOCAL_MACHINE, key_path) as key:
                    value = _query(key, "InstallPath")
            except OSError:
                continue
            if value and os.path.isdir(value):
                return value
        return None

    def _scan_steam(self, cancel: CancellationCheck | None) -> list[str]:
        steam_root = self._steam_install_path()
        if steam_root is None:
            return []
        libraries = [Path(steam_root, "steamapps")]
        library_file = Path(steam_root, "steamapps", "libraryfolders.vdf")
        if library_file.is_file():
            text = library_file.read_text(encoding="utf-8", errors="replace")
            for library in parse_steam_library_folders(text):
                candidate = Path(library, "steamapps")
                if candidate not in libraries:
                    libraries.append(candidate)

        paths: list[str] = []
        for library in libraries:
            if not library.is_dir():
                continue
            for manifest in sorted(library.glob("appmanifest_*.acf")):
                if cancel is not None:
                    cancel.check()
                try:
                    install_dir = parse_appmanifest_installdir(manifest.read_text(encoding="utf-8", errors="replace"))
                except OSError as exc:
                    logger.debug("Cannot read Steam manifest %s: %s", manifest, exc)
                    continue
                game_dir = library / "common" / install_dir if install_dir else None
                if game_dir is not None and game_dir.is_dir():
                    paths.extend(collect_install_executables(game_dir, cancel))
        return paths

    def _scan_epic(self, cancel: CancellationCheck | None) -> list[str]:
        program_data = self._env.get("ProgramData") or r"C:\ProgramData"
        manifest_dir = Path(program_data, "Epic", "EpicGamesLauncher", "Data", "Manifests")
        if not manifest_dir.is_dir():
            return []
        paths: list[str] = []
        for manifest in sorted(manifest_dir.glob("*.item")):
            if cancel is not None:
                cancel.check()
            location = read_epic_install_location(manifest)
            if location and os.path.isdir(location):
                paths.extend(collect_install_executables(location, cancel))
        return paths

    def _scan_store_folders(self, cancel: CancellationCheck | None) -> list[str]:
        paths: list[str] = []
        for root in program_files_roots(self._env):
            for relative_paths in STORE_GAME_DIRECTORIES.values():
                for relative in relative_paths:
                    store_dir = Path(root, *relative)
                    if not store_dir.is_dir():
                        continue
                    try:
                        game_dirs = sorted(child for child in store_dir.iterdir() if child.is_dir())
                    except OSError as exc:
                        logger.debug("Cannot list store folder %s: %s", store_dir, exc)
                        continue
                    for game_dir in game_dirs:
                        if cancel is not None:
                            cancel.check()
                        paths.extend(collect_install_executables(game_dir, cancel))
        return paths


def _query(key, name: str) -> str | None:
    try:
        value, _kind = winreg.QueryValueEx(key, name)
    except OSError:
        return None
    return value if isinstance(value, str) and value.strip() else None


def default_registry_source() -> BaseRegistrySource:
    if sys.platform == "win32":
        return WindowsRegistrySource()
    return StaticRegistrySource()
