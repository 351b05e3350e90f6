from __future__ import annotations

from pathlib import Path
import sys
import unittest

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))

from savevault.config.settings import DEFAULT_CONFIG, KIB, MIB
from savevault.core.classifier import (
    is_game_like_path,
    is_likely_game,
    is_system_or_utility_executable,
    should_skip_executable,
    skip_reason,
)
from savevault.core.models import ExecutableInfo


def _info(path: str, size: int = 2 * MIB) -> ExecutableInfo:
    return ExecutableInfo(path=path, size=size)


class LikelyGameTests(unittest.TestCase):
    def test_engine_and_play_verbs(self) -> None:
        self.assertTrue(is_likely_game("UnrealEditor.exe", r"C:\Tools"))
        self.assertTrue(is_likely_game("StartMenu.exe", r"C:\Tools"))
        self.assertTrue(is_likely_game("Launch.exe", r"C:\Tools"))

    def test_game_suffix_and_entry_names(self) -> None:
        self.assertTrue(is_likely_game("MyGame.exe", r"C:\Tools"))
        self.assertTrue(is_likely_game("client.exe", r"C:\Tools"))
        self.assertTrue(is_likely_game("play.exe", r"C:\Tools"))
        self.assertFalse(is_likely_game("player.exe", r"C:\Tools"))
        self.assertFalse(is_likely_game("runner.exe", r"C:\Tools"))

    def test_bin_only_counts_in_directory_name(self) -> None:
        self.assertTrue(is_likely_game("foo.exe", r"C:\Apps\Foo\bin"))
        self.assertTrue(is_likely_game("foo.exe", r"C:\Apps\Foo\Binaries"))
        self.assertFalse(is_likely_game("foo.exe", r"C:\Cabinet\Foo"))

    def test_game_anywhere_in_directory_path(self) -> None:
        self.assertTrue(is_likely_game("FireChrome.exe", r"C:\Games\FireChrome"))
        self.assertTrue(is_likely_game("FireChrome.exe", "/mnt/games/firechrome"))
        self.assertFalse(is_likely_game("chrome.exe", r"C:\Program Files\Google\Chrome\Application"))

    def test_launcher_needs_game_directory(self) -> None:
        self.assertFalse(is_likely_game("launcher.exe", r"C:\Tools\Acme"))
        self.assertTrue(is_likely_game("launcher.exe", r"D:\MyGame\Acme"))

    def test_game_like_path(self) -> None:
        self.assertTrue(is_game_like_path(r"C:\Program Files (x86)\Steam\steamapps"))
        self.assertTrue(is_game_like_path(r"C:\Apps\Foo\bin"))
        self.assertTrue(is_game_like_path("/opt/foo/binaries/"))
        self.assertFalse(is_game_like_path(r"C:\Temp"))
        self.assertFalse(is_game_like_path(""))


class SkipExecutableTests(unittest.TestCase):
    def test_tiny_binary_outside_game_path_is_skipped(self) -> None:
        info = _info(r"C:\Temp\helper.exe", 10 * KIB)
        self.assertTrue(should_skip_executable(info))
        self.assertEqual(skip_reason(info), "tiny-binary")

    def test_tiny_binary_under_game_path_is_kept(self) -> None:
        self.assertFalse(should_skip_executable(_info(r"C:\Games\Foo\foo.exe", 10 * KIB)))

    def test_minimum_size_is_inclusive(self) -> None:
        self.assertFalse(should_skip_executable(_info(r"C:\Tools\Acme\acme.exe", 50 * KIB)))
        self.assertTrue(should_skip_executable(_info(r"C:\Tools\Acme\acme.exe", 50 * KIB - 1)))

    def test_browser_is_skipped_unless_game_signal(self) -> None:
        info = _info(r"C:\Program Files\Mozilla Firefox\firefox.exe")
        self.assertEqual(skip_reason(info), "browser")
        self.assertFalse(should_skip_executable(_info(r"C:\Games\FireChrome\FireChrome.exe")))

    def test_component_suffixes(self) -> None:
        self.assertEqual(skip_reason(_info(r"C:\Tools\Acme\AcmeUpdater.exe")), "component")
        self.assertEqual(skip_reason(_info(r"C:\Tools\Acme\CrashReport.exe")), "component")
        self.assertEqual(skip_reason(_info(r"C:\Tools\Acme\sync-service.exe")), "component")

    def test_uninstaller_is_skipped(self) -> None:
        self.assertEqual(skip_reason(_info(r"C:\Games\Foo\unins000.exe")), "uninstaller")

    def test_setup_size_threshold(self) -> None:
        self.assertEqual(skip_reason(_info(r"C:\Tools\Acme\setup.exe", 4 * MIB)), "small-setup")
        self.assertIsNone(skip_reason(_info(r"C:\Tools\Acme\setup.exe", 5 * MIB)))

    def test_ordinary_program_is_kept(self) -> None:
        self.assertIsNone(skip_reason(_info("/data/apps/Acme/acme.exe")))

    def test_thresholds_come_from_config(self) -> None:
        strict = DEFAULT_CONFIG.with_overrides(min_executable_bytes=4 * MIB)
        self.assertTrue(should_skip_executable(_info(r"C:\Tools\Acme\acme.exe", 3 * MIB), strict))
        self.assertFalse(should_skip_executable(_info(r"C:\Tools\Acme\acme.exe", 3 * MIB)))


class UtilityExecutableTests(unittest.TestCase):
    def test_utilities_are_flagged(self) -> None:
        self.assertTrue(is_system_or_utility_executable(r"C:\Foo\vcredist_x64.exe", 20 * MIB))
        self.assertTrue(is_system_or_utility_executable(r"C:\Foo\CrashHelper.exe", 20 * MIB))
        self.assertTrue(is_system_or_utility_executable(r"C:\Foo\Launcher.exe", 200 * KIB))

    def test_large_launcher_and_game_are_not_flagged(self) -> None:
        self.assertFalse(is_system_or_utility_executable(r"C:\Foo\Launcher.exe", 2 * MIB))
        self.assertFalse(is_system_or_utility_executable(r"C:\Foo\Foo.exe", 200 * KIB))


if __name__ == "__main__":
    unittest.main()
