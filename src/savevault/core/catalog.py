"""Known-game catalog: loading descriptors and matching them against volumes."""
from __future__ import annotations

import glob
import json
import os
from pathlib import Path
import re
from typing import Callable, Iterator, Mapping, Sequence

from savevault.core.cancellation import CancellationCheck, DiscoveryCancelled
from savevault.core.models import (
    UNKNOWN_SAVE_PATH,
    DiscoveredApplication,
    DiscoverySource,
    KnownGameDescriptor,
    Volume,
    split_path,
)
from savevault.logging_config import get_logger

logger = get_logger("catalog")

_PERCENT_VAR = re.compile(r"%([^%/\\]+)%")


def load_catalog(path: Path) -> list[KnownGameDescriptor]:
    """Read descriptors from a JSON list; unusable entries are dropped."""
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        logger.warning("Cannot read game catalog %s: %s", path, exc)
        return []
    if isinstance(payload, dict):
        payload = payload.get("games", [])
    if not isinstance(payload, list):
        logger.warning("Game catalog %s is not a list of games", path)
        return []

    descriptors: list[KnownGameDescriptor] = []
    for item in payload:
        if not isinstance(item, dict):
            continue
        descriptor = _descriptor_from_mapping(item)
        if descriptor is not None and descriptor.is_usable:
            descriptors.append(descriptor)
    logger.info("Loaded %d known games from %s", len(descriptors), path)
    return descriptors


def _first_text(item: Mapping[str, object], *keys: str) -> str:
    for key in keys:
        value = item.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return ""


def _descriptor_from_mapping(item: Mapping[str, object]) -> KnownGameDescriptor | None:
    name = _first_text(item, "name", "Name")
    install_path = _first_text(item, "install_path", "relative_install_path", "GameLocation", "GameFolder")
    executable = _first_text(item, "executable", "Executable")
    save_value = item.get("save_path", item.get("SavePath"))
    if isinstance(save_value, dict):
        save_value = save_value.get("Path") or save_value.get("path")
    save_template = save_value.strip() if isinstance(save_value, str) and save_value.strip() else None
    if not name:
        name = Path(executable).stem if executable else ""
    if not name:
        return None
    return KnownGameDescriptor(
        name=name,
        relative_install_path=install_path,
        executable_file_name=executable,
        save_path_template=save_template,
    )


def expand_save_path(template: str, env: Mapping[str, str] | None = None) -> str:
    """Expand ``%VAR%``/``$VAR`` placeholders and wildcards into an absolute path.

    Unknown placeholders are left as-is. A ``*`` in the expanded path resolves
    to the first existing directory that matches it.
    """
    environ = dict(os.environ if env is None else env)
    if "USERPROFILE" not in environ:
        environ["USERPROFILE"] = str(Path.home())
    lookup = {key.upper(): value for key, value in environ.items()}

    def substitute(match: re.Match[str]) -> str:
        return lookup.get(match.group(1).upper(), match.group(0))

    expanded = _PERCENT_VAR.sub(substitute, template)
    expanded = re.sub(
        r"\$\{?([A-Za-z_][A-Za-z0-9_]*)\}?",
        lambda match: lookup.get(match.group(1).upper(), match.group(0)),
        expanded,
    )
    expanded = expanded.replace("\\", os.sep).replace("/", os.sep)
    if expanded.startswith("~"):
        expanded = os.path.expanduser(expanded)
    expanded = os.path.normpath(expanded)
    if "*" in expanded:
        matches = sorted(candidate for candidate in glob.glob(expanded) if os.path.isdir(candidate))
        if matches:
            return matches[0]
    return expanded


def resolve_save_path(descriptor: KnownGameDescriptor, env: Mapping[str, str] | None = None) -> str:
    if not descriptor.save_path_template:
        return UNKNOWN_SAVE_PATH
    expanded = expand_save_path(descriptor.save_path_template, env)
    return expanded if os.path.isdir(expanded) else UNKNOWN_SAVE_PATH


def candidate_executable(volume: Volume, descriptor: KnownGameDescriptor) -> Path:
    return Path(
        volume.root,
        *split_path(descriptor.relative_install_path),
        *split_path(descriptor.executable_file_name),
    )


class KnownCatalogMatcher:
    """Resolve which catalog games are installed by probing each volume at the descriptor's path."""

    def __init__(
        self,
        env: Mapping[str, str] | None = None,
        cancel: CancellationCheck | None = None,
        progress_callback: Callable[[str], None] | None = None,
    ) -> None:
        self._env = env
        self._cancel = cancel or CancellationCheck()
        self._progress_callback = progress_callback

    def match(self, catalog: Sequence[KnownGameDescriptor], volumes: Sequence[Volume]) -> Iterator[DiscoveredApplication]:
        usable = [descriptor for descriptor in catalog if descriptor.is_usable]
        if not usable:
            logger.info("No known games in catalog.")
            return
        self._emit(f"[catalog] Checking {len(usable)} known games on {len(volumes)} volumes")
        for descriptor in usable:
            self._cancel.check()
            try:
                app = self._locate(descriptor, volumes)
            except DiscoveryCancelled:
                raise
            except Exception:  # noqa: BLE001
                logger.warning("Failed to check known game %s", descriptor.name, exc_info=True)
                continue
            if app is not None:
                yield app

    def _locate(self, descriptor: KnownGameDescriptor, volumes: Sequence[Volume]) -> DiscoveredApplication | None:
        for volume in volumes:
            self._cancel.tick()
            candidate = candidate_executable(volume, descriptor)
            try:
                found = candidate.is_file()
            except OSError as exc:
                logger.debug("Cannot probe %s on %s: %s", descriptor.name, volume.root, exc)
                continue
            if not found:
                continue
            logger.debug("Found known game %s at %s", descriptor.name, candidate)
            return DiscoveredApplication(
                name=descriptor.name,
                install_path=str(candidate.parent),
                executable_path=os.path.normpath(os.path.abspath(candidate)),
                save_path=resolve_save_path(descriptor, self._env),
                source=DiscoverySource.KNOWN_CATALOG,
            )
        return None

    def _emit(self, message: str) -> None:
        if self._progress_callback is not None:
            self._progress_callback(message)
