"""
Tests for DirectoryScanner and executable discovery.
"""
import pytest

from gamedex.discovery.scanner import (
    DirectoryScanner,
    find_executable_candidates,
    find_first_executable,
)
from gamedex.registry.path_mappings import PathMappings
from gamedex.stores.base import LauncherKind


@pytest.fixture
def scanner():
    return DirectoryScanner(PathMappings())


def test_missing_root_gives_no_entries(scanner, tmp_path):
    assert scanner.scan(tmp_path / "missing", LauncherKind.CUSTOM) == []


def test_one_entry_per_game_folder(scanner, library_root, exe):
    exe(library_root / "Alpha" / "alpha.exe")
    exe(library_root / "Beta" / "bin" / "beta.exe")
    (library_root / "Empty").mkdir()
    (library_root / "NoExe").mkdir()
    (library_root / "NoExe" / "readme.txt").write_text("hi")

    entries = scanner.scan(library_root, LauncherKind.CUSTOM)

    assert [e.name for e in entries] == ["Alpha", "Beta"]
    alpha, beta = entries
    assert alpha.dir_path == str(library_root / "Alpha")
    assert alpha.exe_path == str(library_root / "Alpha" / "alpha.exe")
    assert beta.exe_path == str(library_root / "Beta" / "bin" / "beta.exe")
    assert all(e.launcher == LauncherKind.CUSTOM for e in entries)


def test_top_level_executable_wins_over_deeper(library_root, exe):
    game = library_root / "Game"
    exe(game / "sub" / "deep.exe")
    exe(game / "top.exe")
    assert find_first_executable(game) == game / "top.exe"


def test_suffix_is_case_insensitive(scanner, library_root, exe):
    exe(library_root / "Loud" / "LOUD.EXE")
    entries = scanner.scan(library_root, LauncherKind.CUSTOM)
    assert entries[0].exe_path.endswith("LOUD.EXE")


def test_only_one_level_deeper_is_searched(scanner, library_root, exe):
    exe(library_root / "Deep" / "a" / "b" / "game.exe")
    assert scanner.scan(library_root, LauncherKind.CUSTOM) == []


def test_first_found_is_alphabetical(library_root, exe):
    game = library_root / "Game"
    exe(game / "zeta.exe")
    exe(game / "Alpha.exe")
    assert find_first_executable(game) == game / "Alpha.exe"


def test_directory_named_like_exe_is_ignored(library_root, exe):
    game = library_root / "Game"
    (game / "fake.exe").mkdir(parents=True)
    assert find_first_executable(game) is None


def test_protocol_mapping_replaces_exe(scanner, library_root, exe):
    exe(library_root / "Call of Duty Modern Warfare III" / "cod.exe")
    exe(library_root / "Other" / "other.exe")

    entries = scanner.scan(library_root, LauncherKind.BATTLENET)
    by_name = {e.name: e for e in entries}
    assert by_name["Call of Duty Modern Warfare III"].exe_path == "battlenet://game/pinta"
    assert by_name["Call of Duty Modern Warfare III"].is_protocol
    assert by_name["Other"].exe_path.endswith("other.exe")


def test_protocol_mapping_is_launcher_specific(scanner, library_root, exe):
    exe(library_root / "Call of Duty Modern Warfare III" / "cod.exe")
    entries = scanner.scan(library_root, LauncherKind.STEAM)
    assert entries[0].exe_path.endswith("cod.exe")


def test_user_path_mappings_are_used(data_dir, library_root, exe):
    mappings_file = data_dir / "PathMappings" / "game_path_mappings.json"
    mappings_file.parent.mkdir(parents=True)
    mappings_file.write_text('[{"name": "Overwatch", "path": "battlenet://Pro"}]', encoding="utf-8")
    exe(library_root / "Overwatch" / "Overwatch Launcher.exe")

    entries = DirectoryScanner(PathMappings(data_dir)).scan(library_root, LauncherKind.BATTLENET)
    assert entries[0].exe_path == "battlenet://Pro"


def test_unreadable_subdirectory_is_skipped(scanner, library_root, exe, monkeypatch):
    exe(library_root / "Good" / "good.exe")
    exe(library_root / "Bad" / "bad.exe")

    import gamedex.discovery.scanner as scanner_module
    real_children = scanner_module._sorted_children

    def flaky(directory):
        if directory.name == "Bad":
            raise PermissionError("denied")
        return real_children(directory)

    monkeypatch.setattr(scanner_module, "_sorted_children", flaky)
    entries = scanner.scan(library_root, LauncherKind.CUSTOM)
    assert [e.name for e in entries] == ["Good"]


def test_candidates_include_root_and_one_level_deep(library_root, exe):
    game = library_root / "Game"
    exe(game / "game.exe")
    exe(game / "bin" / "launcher.exe")
    exe(game / "bin" / "deeper" / "ignored.exe")
    (game / "readme.txt").write_text("x")

    candidates = find_executable_candidates(str(game))
    assert candidates == [str(game / "game.exe"), str(game / "bin" / "launcher.exe")]


def test_candidates_for_missing_directory(tmp_path):
    assert find_executable_candidates(str(tmp_path / "does-not-exist")) == []
