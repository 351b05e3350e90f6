from __future__ import annotations

import os
from typing import Callable

import psutil

from savevault.config.discovery_rules import NETWORK_FILESYSTEMS
from savevault.core.models import Volume
from savevault.logging_config import get_logger

logger = get_logger("volumes")

VolumeProvider = Callable[[], list[Volume]]


def is_network_partition(partition) -> bool:
    opts = {item.strip().lower() for item in (partition.opts or "").split(",")}
    if "remote" in opts:
        return True
    return (partition.fstype or "").lower() in NETWORK_FILESYSTEMS


def is_ready(mountpoint: str) -> bool:
    """A volume is ready when its root is a listable directory (e.g. not an empty card reader)."""
    try:
        with os.scandir(mountpoint) as entries:
            next(entries, None)
    except OSError:
        return False
    return True


def list_local_volumes() -> list[Volume]:
    """Mounted, ready, non-network volumes, in the order the OS reports them."""
    volumes: list[Volume] = []
    seen: set[str] = set()
    try:
        partitions = psutil.disk_partitions(all=False)
    except (OSError, RuntimeError) as exc:
        logger.warning("Cannot enumerate volumes: %s", exc)
        return volumes
    for partition in partitions:
        root = partition.mountpoint
        key = root.lower()
        if key in seen:
            continue
        if is_network_partition(partition):
            logger.debug("Skipping network volume %s", root)
            continue
        if not is_ready(root):
            logger.debug("Skipping volume that is not ready: %s", root)
            continue
        seen.add(key)
        volumes.append(Volume(root=root, fstype=partition.fstype or ""))
    return volumes
