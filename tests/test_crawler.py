from __future__ import annotations

import os
from pathlib import Path
import sys
import tempfile
import unittest

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))

from savevault.config.settings import DEFAULT_CONFIG, KIB
from savevault.core.cancellation import CancellationCheck, DiscoveryCancelled
from savevault.core.crawler import FilesystemCrawler, is_binary_folder
from savevault.core.dedup import ProcessedPathSet


def _write_exe(path: Path, size: int = 64 * KIB) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"\0" * size)
    return path


def _names(infos) -> list[str]:
    return [Path(info.path).name for info in infos]


class FilesystemCrawlerTests(unittest.TestCase):
    def test_depth_is_bounded(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            root = Path(temp_dir) / "scan"
            current = root
            _write_exe(current / "tool0.exe")
            for level in range(1, 8):
                current = current / f"level{level}"
                _write_exe(current / f"tool{level}.exe")

            found = _names(FilesystemCrawler(ProcessedPathSet()).crawl(root))

            self.assertEqual(sorted(found), [f"tool{level}.exe" for level in range(7)])
            self.assertNotIn("tool7.exe", found)

    def test_explicit_max_depth(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            root = Path(temp_dir) / "scan"
            _write_exe(root / "top.exe")
            _write_exe(root / "acme" / "nested.exe")

            found = _names(FilesystemCrawler(ProcessedPathSet()).crawl(root, max_depth=0))
            self.assertEqual(found, ["top.exe"])

    def test_binary_folders_are_visited_first_without_duplicates(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            root = Path(temp_dir) / "scan"
            _write_exe(root / "Acme" / "acme.exe")
            _write_exe(root / "Acme" / "bin" / "acmecore.exe")

            found = _names(FilesystemCrawler(ProcessedPathSet()).crawl(root))
            self.assertEqual(found, ["acmecore.exe", "acme.exe"])

    def test_binary_folder_past_max_depth_is_not_read(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            root = Path(temp_dir) / "scan"
            deepest = root.joinpath(*(f"l{level}" for level in range(1, 7)))
            _write_exe(deepest / "tool6.exe")
            _write_exe(deepest / "bin" / "deep.exe")

            found = _names(FilesystemCrawler(ProcessedPathSet()).crawl(root))
            self.assertEqual(found, ["tool6.exe"])

    def test_pruned_binary_folders_are_not_read_early(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            root = Path(temp_dir) / "scan"
            _write_exe(root / "$Recycle.Bin" / "deleted.exe")
            _write_exe(root / "Windows Binaries" / "sys.exe")

            found = _names(FilesystemCrawler(ProcessedPathSet()).crawl(root))
            self.assertEqual(found, [])

    @unittest.skipIf(sys.platform == "win32", "dot-prefixed folders are not hidden on Windows")
    def test_hidden_binary_folder_is_not_read_early(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            root = Path(temp_dir) / "scan"
            _write_exe(root / "Acme" / ".bin" / "cached.exe")
            _write_exe(root / "Acme" / "acme.exe")

            found = _names(FilesystemCrawler(ProcessedPathSet()).crawl(root))
            self.assertEqual(found, ["acme.exe"])

    def test_noise_directories_are_pruned(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            root = Path(temp_dir) / "scan"
            _write_exe(root / "Acme" / "acme.exe")
            _write_exe(root / "Acme" / "Redist" / "vc_runtime.exe")
            _write_exe(root / "Acme" / "Logs" / "dump.exe")
            _write_exe(root / "SaveVault" / "vault.exe")

            found = _names(FilesystemCrawler(ProcessedPathSet()).crawl(root))
            self.assertEqual(found, ["acme.exe"])

    def test_small_and_non_executable_files_are_ignored(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            root = Path(temp_dir) / "scan"
            _write_exe(root / "Acme" / "acme.exe")
            _write_exe(root / "Acme" / "tiny.exe", size=KIB)
            _write_exe(root / "Acme" / "readme.txt")

            found = _names(FilesystemCrawler(ProcessedPathSet()).crawl(root))
            self.assertEqual(found, ["acme.exe"])

    def test_suffixes_come_from_config(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            root = Path(temp_dir) / "scan"
            _write_exe(root / "Acme" / "acme.exe")
            _write_exe(root / "Acme" / "acme.x86_64")

            config = DEFAULT_CONFIG.with_overrides(executable_suffixes=(".exe", ".x86_64"))
            found = _names(FilesystemCrawler(ProcessedPathSet(), config=config).crawl(root))
            self.assertEqual(sorted(found), ["acme.exe", "acme.x86_64"])

    @unittest.skipIf(sys.platform == "win32", "dot-prefixed folders are not hidden on Windows")
    def test_hidden_folders_are_not_entered(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            root = Path(temp_dir) / "scan"
            _write_exe(root / ".stash" / "stash.exe")
            _write_exe(root / "Acme" / "acme.exe")

            found = _names(FilesystemCrawler(ProcessedPathSet()).crawl(root))
            self.assertEqual(found, ["acme.exe"])

    def test_symlinked_folders_are_not_followed(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            root = Path(temp_dir) / "scan"
            _write_exe(root / "Acme" / "acme.exe")
            try:
                os.symlink(root / "Acme", root / "Mirror", target_is_directory=True)
            except (OSError, NotImplementedError):
                self.skipTest("symlinks are not available")

            found = list(FilesystemCrawler(ProcessedPathSet()).crawl(root))
            self.assertEqual(len(found), 1)
            self.assertIn("Acme", found[0].path)

    def test_processed_paths_are_skipped(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            root = Path(temp_dir) / "scan"
            acme = _write_exe(root / "Acme" / "acme.exe")
            _write_exe(root / "Acme" / "tool.exe")
            processed = ProcessedPathSet()
            processed.mark(os.path.normpath(os.path.abspath(acme)))

            found = _names(FilesystemCrawler(processed).crawl(root))
            self.assertEqual(found, ["tool.exe"])
            self.assertEqual(len(processed), 2)

    def test_rejected_executables_are_still_marked_processed(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            root = Path(temp_dir) / "scan"
            tiny = _write_exe(root / "Acme" / "tiny.exe", size=KIB)
            processed = ProcessedPathSet()

            self.assertEqual(list(FilesystemCrawler(processed).crawl(root)), [])
            self.assertIn(os.path.normpath(os.path.abspath(tiny)), processed)

    def test_missing_root_yields_nothing(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            crawler = FilesystemCrawler(ProcessedPathSet())
            self.assertEqual(list(crawler.crawl(Path(temp_dir) / "absent")), [])

    def test_progress_is_reported_per_folder_interval(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            root = Path(temp_dir) / "scan"
            for index in range(3):
                (root / f"folder{index}").mkdir(parents=True)
            messages: list[str] = []
            config = DEFAULT_CONFIG.with_overrides(progress_every_dirs=2)

            crawler = FilesystemCrawler(ProcessedPathSet(), config=config, progress_callback=messages.append)
            list(crawler.crawl(root))

            self.assertEqual(crawler.directories_visited, 4)
            self.assertEqual(len(messages), 2)
            self.assertTrue(messages[0].startswith("[filesystem] Scanned 2 folders"))

    def test_cancellation_stops_the_walk(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            root = Path(temp_dir) / "scan"
            _write_exe(root / "Alpha" / "alpha.exe")
            _write_exe(root / "Beta" / "beta.exe")
            state = {"stop": False}
            crawler = FilesystemCrawler(
                ProcessedPathSet(), cancel=CancellationCheck(lambda: state["stop"], stride=1)
            )

            found: list[str] = []
            with self.assertRaises(DiscoveryCancelled):
                for info in crawler.crawl(root):
                    found.append(Path(info.path).name)
                    state["stop"] = True
            self.assertEqual(found, ["alpha.exe"])


class BinaryFolderTests(unittest.TestCase):
    def test_binary_folder_names(self) -> None:
        self.assertTrue(is_binary_folder("bin"))
        self.assertTrue(is_binary_folder("Binaries"))
        self.assertTrue(is_binary_folder("x64bin"))
        self.assertFalse(is_binary_folder("Content"))


if __name__ == "__main__":
    unittest.main()
