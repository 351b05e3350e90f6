from __future__ import annotations

import json
import os
from pathlib import Path
import sys
import tempfile
import unittest

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))

from savevault.config.known_games import KNOWN_GAMES
from savevault.core.cancellation import CancellationCheck, DiscoveryCancelled
from savevault.core.catalog import (
    KnownCatalogMatcher,
    expand_save_path,
    load_catalog,
    resolve_save_path,
)
from savevault.core.models import UNKNOWN_SAVE_PATH, DiscoverySource, KnownGameDescriptor, Volume


def _descriptor(save: str | None = r"%USERPROFILE%\Saves\Foo") -> KnownGameDescriptor:
    return KnownGameDescriptor(
        name="Foo",
        relative_install_path=r"Games\Foo",
        executable_file_name="Foo.exe",
        save_path_template=save,
    )


class SavePathTests(unittest.TestCase):
    def test_existing_save_folder_is_expanded(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            profile = Path(temp_dir)
            (profile / "Saves" / "Foo").mkdir(parents=True)
            resolved = resolve_save_path(_descriptor(), env={"USERPROFILE": str(profile)})
            self.assertEqual(resolved, os.path.normpath(str(profile / "Saves" / "Foo")))

    def test_missing_save_folder_is_unknown(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            resolved = resolve_save_path(_descriptor(), env={"USERPROFILE": temp_dir})
            self.assertEqual(resolved, UNKNOWN_SAVE_PATH)

    def test_no_template_is_unknown(self) -> None:
        self.assertEqual(resolve_save_path(_descriptor(save=None), env={}), UNKNOWN_SAVE_PATH)

    def test_placeholders_are_case_insensitive(self) -> None:
        expanded = expand_save_path("%appdata%/Foo", env={"APPDATA": "/data/roaming"})
        self.assertEqual(expanded, os.path.normpath("/data/roaming/Foo"))
        expanded = expand_save_path("$HOME/.foo", env={"HOME": "/home/bob"})
        self.assertEqual(expanded, os.path.normpath("/home/bob/.foo"))

    def test_unknown_placeholder_is_left_alone(self) -> None:
        expanded = expand_save_path("%NOPE%/Foo", env={})
        self.assertIn("%NOPE%", expanded)

    def test_wildcard_picks_first_existing_directory(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            profile = Path(temp_dir)
            (profile / "Saves" / "76561198000000002").mkdir(parents=True)
            (profile / "Saves" / "76561198000000001").mkdir(parents=True)
            expanded = expand_save_path("%USERPROFILE%/Saves/*", env={"USERPROFILE": temp_dir})
            self.assertEqual(Path(expanded).name, "76561198000000001")


class LoadCatalogTests(unittest.TestCase):
    def test_loads_list_and_drops_unusable_entries(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            path = Path(temp_dir) / "catalog.json"
            path.write_text(
                json.dumps(
                    [
                        {"name": "Foo", "install_path": "Games/Foo", "executable": "Foo.exe", "save_path": "%USERPROFILE%/Foo"},
                        {"Name": "Bar", "GameLocation": r"Games\Bar", "Executable": "Bar.exe", "SavePath": {"Path": "~/Bar"}},
                        {"name": "NoExe", "install_path": "Games/NoExe"},
                        "not a game",
                    ]
                ),
                encoding="utf-8",
            )
            catalog = load_catalog(path)
            self.assertEqual([item.name for item in catalog], ["Foo", "Bar"])
            self.assertEqual(catalog[0].save_path_template, "%USERPROFILE%/Foo")
            self.assertEqual(catalog[1].relative_install_path, r"Games\Bar")
            self.assertEqual(catalog[1].save_path_template, "~/Bar")

    def test_accepts_games_wrapper_and_missing_name(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            path = Path(temp_dir) / "catalog.json"
            path.write_text(
                json.dumps({"games": [{"install_path": "Games/Baz", "executable": "Baz.exe"}]}), encoding="utf-8"
            )
            catalog = load_catalog(path)
            self.assertEqual(len(catalog), 1)
            self.assertEqual(catalog[0].name, "Baz")
            self.assertIsNone(catalog[0].save_path_template)

    def test_malformed_or_missing_file_yields_empty_catalog(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            path = Path(temp_dir) / "catalog.json"
            path.write_text("{not json", encoding="utf-8")
            self.assertEqual(load_catalog(path), [])
            self.assertEqual(load_catalog(Path(temp_dir) / "absent.json"), [])

    def test_builtin_catalog_is_usable(self) -> None:
        self.assertTrue(KNOWN_GAMES)
        self.assertTrue(all(descriptor.is_usable for descriptor in KNOWN_GAMES))


class KnownCatalogMatcherTests(unittest.TestCase):
    def test_first_volume_with_the_executable_wins(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            first = Path(temp_dir) / "c"
            second = Path(temp_dir) / "d"
            for volume in (first, second):
                (volume / "Games" / "Foo").mkdir(parents=True)
                (volume / "Games" / "Foo" / "Foo.exe").write_bytes(b"MZ")
            volumes = [Volume(root=str(first)), Volume(root=str(second))]

            found = list(KnownCatalogMatcher(env={"USERPROFILE": temp_dir}).match([_descriptor()], volumes))

            self.assertEqual(len(found), 1)
            app = found[0]
            self.assertEqual(app.name, "Foo")
            self.assertEqual(app.source, DiscoverySource.KNOWN_CATALOG)
            self.assertTrue(app.executable_path.startswith(str(first)))
            self.assertEqual(app.install_path, str(first / "Games" / "Foo"))
            self.assertEqual(app.save_path, UNKNOWN_SAVE_PATH)

    def test_executable_name_with_subfolder(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            (Path(temp_dir) / "Games" / "Foo" / "bin").mkdir(parents=True)
            (Path(temp_dir) / "Games" / "Foo" / "bin" / "game.exe").write_bytes(b"MZ")
            descriptor = KnownGameDescriptor(
                name="Foo", relative_install_path="Games/Foo", executable_file_name="bin\\game.exe"
            )

            found = list(KnownCatalogMatcher().match([descriptor], [Volume(root=temp_dir)]))

            self.assertEqual(len(found), 1)
            self.assertEqual(Path(found[0].executable_path).parent.name, "bin")
            self.assertEqual(found[0].executable_name, "game.exe")

    def test_absent_game_is_not_reported(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            found = list(KnownCatalogMatcher().match([_descriptor()], [Volume(root=temp_dir)]))
            self.assertEqual(found, [])

    def test_unusable_descriptors_are_ignored(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            (Path(temp_dir) / "Foo.exe").write_bytes(b"MZ")
            descriptor = KnownGameDescriptor(name="Foo", relative_install_path="", executable_file_name="Foo.exe")
            found = list(KnownCatalogMatcher().match([descriptor], [Volume(root=temp_dir)]))
            self.assertEqual(found, [])

    def test_cancellation_is_raised(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            matcher = KnownCatalogMatcher(cancel=CancellationCheck(lambda: True))
            with self.assertRaises(DiscoveryCancelled):
                list(matcher.match([_descriptor()], [Volume(root=temp_dir)]))


if __name__ == "__main__":
    unittest.main()
