"""Application discovery orchestration.

One scan runs three phases in a fixed order on the calling thread:

1. catalog     - known games probed on every local volume
2. registry    - installed-program records from the OS
3. filesystem  - heuristic crawl of common install and user folders

Every record passes the per-scan ``DeduplicationIndex`` before it reaches
``result_callback``. Each phase boundary turns the phase into a
``PhaseOutcome``; a cancelled phase ends the whole scan, a failed phase is
logged and the next one still runs.
"""
from __future__ import annotations

import os
import time
from typing import Callable, Sequence

from savevault.config.settings import DEFAULT_CONFIG, DiscoveryConfig
from savevault.core.cancellation import CancellationCheck, CancelProbe, DiscoveryCancelled
from savevault.core.catalog import KnownCatalogMatcher
from savevault.core.classifier import should_skip_executable
from savevault.core.crawler import FilesystemCrawler, canonical_path
from savevault.core.dedup import DeduplicationIndex
from savevault.core.models import (
    DiscoveredApplication,
    DiscoveryOutcome,
    DiscoveryResult,
    DiscoverySource,
    ExecutableInfo,
    KnownGameDescriptor,
    PhaseOutcome,
    Volume,
    leaf_name,
)
from savevault.core.registry import BaseRegistrySource, default_registry_source
from savevault.core.search_roots import SearchRootsProvider, build_search_roots
from savevault.core.volumes import VolumeProvider, list_local_volumes
from savevault.logging_config import get_logger

logger = get_logger("discovery")

ProgressCallback = Callable[[str], None]
ResultCallback = Callable[[DiscoveredApplication], None]
ErrorCallback = Callable[[str], None]

PHASE_CATALOG = "catalog"
PHASE_REGISTRY = "registry"
PHASE_FILESYSTEM = "filesystem"


def _stem(path: str) -> str:
    name = leaf_name(path)
    head, dot, _ = name.rpartition(".")
    return head if dot else name


class _Scan:
    """State owned by one ``discover`` call; discarded when it returns."""

    def __init__(
        self,
        config: DiscoveryConfig,
        cancel: CancellationCheck,
        progress_callback: ProgressCallback | None,
        result_callback: ResultCallback | None,
        error_callback: ErrorCallback | None,
    ) -> None:
        self.config = config
        self.cancel = cancel
        self.index = DeduplicationIndex()
        self.applications: list[DiscoveredApplication] = []
        self.errors: list[str] = []
        self._progress_callback = progress_callback
        self._result_callback = result_callback
        self._error_callback = error_callback
        self.volumes: list[Volume] | None = None

    def progress(self, message: str) -> None:
        if self._progress_callback is not None:
            self._progress_callback(message)

    def error(self, message: str) -> None:
        self.errors.append(message)
        if self._error_callback is not None:
            self._error_callback(message)

    def publish(self, app: DiscoveredApplication) -> bool:
        if not self.index.claim(app):
            logger.debug("Skipping duplicate executable %s", app.executable_path)
            return False
        self.applications.append(app)
        if self._result_callback is not None:
            self._result_callback(app)
        return True


class ApplicationDiscovery:
    """Locate installed games by combining catalog, registry and filesystem evidence."""

    def __init__(
        self,
        config: DiscoveryConfig = DEFAULT_CONFIG,
        registry_source: BaseRegistrySource | None = None,
        volume_provider: VolumeProvider | None = None,
        env: dict[str, str] | None = None,
    ) -> None:
        self.config = config
        self.registry_source = registry_source or default_registry_source()
        self.volume_provider = volume_provider or list_local_volumes
        self.env = env

    def discover(
        self,
        catalog: Sequence[KnownGameDescriptor] = (),
        search_roots_provider: SearchRootsProvider | None = None,
        progress_callback: ProgressCallback | None = None,
        cancel_requested: CancelProbe | None = None,
        result_callback: ResultCallback | None = None,
        error_callback: ErrorCallback | None = None,
    ) -> DiscoveryResult:
        started = time.monotonic()
        scan = _Scan(
            config=self.config,
            cancel=CancellationCheck(cancel_requested, stride=self.config.cancel_check_stride),
            progress_callback=progress_callback,
            result_callback=result_callback,
            error_callback=error_callback,
        )
        roots_provider = search_roots_provider or self._default_search_roots(scan)
        phases: list[tuple[str, Callable[[], None]]] = [
            (PHASE_CATALOG, lambda: self._catalog_phase(scan, catalog)),
        ]
        if self.config.include_registry:
            phases.append((PHASE_REGISTRY, lambda: self._registry_phase(scan)))
        if self.config.include_filesystem:
            phases.append((PHASE_FILESYSTEM, lambda: self._filesystem_phase(scan, roots_provider)))

        logger.info("Starting application discovery scan...")
        phase_outcomes: dict[str, PhaseOutcome] = {}
        outcome = DiscoveryOutcome.COMPLETED
        for name, run in phases:
            phase_outcome = self._run_phase(scan, name, run)
            phase_outcomes[name] = phase_outcome
            if phase_outcome == PhaseOutcome.CANCELLED:
                outcome = DiscoveryOutcome.CANCELLED
                break

        elapsed = time.monotonic() - started
        if outcome == DiscoveryOutcome.CANCELLED:
            logger.info("Discovery cancelled after %.1fs with %d programs found", elapsed, len(scan.applications))
            scan.progress(f"[done] Cancelled. Kept {len(scan.applications)} programs found so far.")
        else:
            logger.info(
                "Discovery completed in %.1fs. Found %d programs (%d executables classified).",
                elapsed,
                len(scan.applications),
                len(scan.index.processed),
            )
            scan.progress(f"[done] Found {len(scan.applications)} programs.")
        return DiscoveryResult(
            outcome=outcome,
            applications=list(scan.applications),
            phase_outcomes=phase_outcomes,
            errors=list(scan.errors),
            elapsed_seconds=elapsed,
        )

    def _run_phase(self, scan: _Scan, name: str, run: Callable[[], None]) -> PhaseOutcome:
        scan.progress(f"[phase] {name}:start")
        try:
            scan.cancel.check()
            run()
        except DiscoveryCancelled:
            scan.progress(f"[phase] {name}:cancelled")
            return PhaseOutcome.CANCELLED
        except Exception as exc:  # noqa: BLE001
            logger.exception("Discovery phase %s failed", name)
            scan.error(f"{name} phase failed: {exc}")
            scan.progress(f"[phase] {name}:failed")
            return PhaseOutcome.FAILED
        scan.progress(f"[phase] {name}:done")
        return PhaseOutcome.COMPLETED

    def _volumes(self, scan: _Scan) -> list[Volume]:
        if scan.volumes is None:
            scan.volumes = list(self.volume_provider())
            logger.debug("Local volumes: %s", ", ".join(volume.root for volume in scan.volumes) or "none")
        return scan.volumes

    def _catalog_phase(self, scan: _Scan, catalog: Sequence[KnownGameDescriptor]) -> None:
        logger.info("Searching for known games from catalog...")
        matcher = KnownCatalogMatcher(env=self.env, cancel=scan.cancel, progress_callback=scan.progress)
        found = 0
        for app in matcher.match(catalog, self._volumes(scan)):
            scan.index.processed.mark(app.executable_path)
            if scan.publish(app):
                found += 1
        logger.info("Found %d known games from catalog.", found)

    def _registry_phase(self, scan: _Scan) -> None:
        logger.info("Scanning installed-program records...")
        paths = self.registry_source.scan(scan.cancel)
        scan.progress(f"[registry] {len(paths)} candidate executables from installed programs")
        found = 0
        for raw_path in paths:
            scan.cancel.tick()
            try:
                app = self._registry_candidate(scan, raw_path)
            except DiscoveryCancelled:
                raise
            except Exception:  # noqa: BLE001
                logger.warning("Error processing registry executable %s", raw_path, exc_info=True)
                continue
            if app is not None and scan.publish(app):
                found += 1
        logger.info("Registry scan found %d of %d executables", found, len(paths))

    def _registry_candidate(self, scan: _Scan, raw_path: str) -> DiscoveredApplication | None:
        path = canonical_path(raw_path)
        if path in scan.index.processed or not os.path.isfile(path):
            return None
        info = ExecutableInfo(path=path, size=os.path.getsize(path))
        if should_skip_executable(info, scan.config):
            return None
        scan.index.processed.mark(path)
        return _application_from(info, DiscoverySource.REGISTRY)

    def _filesystem_phase(self, scan: _Scan, roots_provider: SearchRootsProvider) -> None:
        roots = roots_provider(self._volumes(scan))
        logger.info("Searching %d paths for applications...", len(roots))
        crawler = FilesystemCrawler(
            scan.index.processed,
            config=scan.config,
            cancel=scan.cancel,
            progress_callback=scan.progress,
        )
        for position, root in enumerate(roots, start=1):
            scan.cancel.check()
            scan.progress(f"[filesystem] Searching path {position}/{len(roots)}: {root}")
            try:
                for info in crawler.crawl(root):
                    scan.publish(_application_from(info, DiscoverySource.FILESYSTEM_HEURISTIC))
            except DiscoveryCancelled:
                raise
            except Exception:  # noqa: BLE001
                logger.warning("Error searching path %s", root, exc_info=True)
        logger.info("Filesystem scan visited %d folders.", crawler.directories_visited)

    def _default_search_roots(self, scan: _Scan) -> SearchRootsProvider:
        def provider(volumes: Sequence[Volume]) -> list[str]:
            return build_search_roots(
                volumes,
                config=scan.config,
                env=self.env,
                cancel=scan.cancel,
                progress_callback=scan.progress,
            )

        return provider


def _application_from(info: ExecutableInfo, source: DiscoverySource) -> DiscoveredApplication:
    return DiscoveredApplication(
        name=_stem(info.path),
        install_path=info.directory,
        executable_path=info.path,
        source=source,
    )
