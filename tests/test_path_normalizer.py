"""
Tests for launcher layouts: base directory -> scan root.
"""
import pytest

from gamedex.stores.base import LauncherKind
from gamedex.stores.manager import LauncherManager


@pytest.fixture
def manager():
    return LauncherManager()


def test_steam_descends_into_steamapps_common(manager, library_root):
    common = library_root / "steamapps" / "common"
    common.mkdir(parents=True)
    assert manager.normalize(LauncherKind.STEAM, library_root) == common


def test_steam_without_common_is_not_scanned(manager, library_root):
    (library_root / "Foo").mkdir()
    assert manager.normalize(LauncherKind.STEAM, library_root) is None


def test_ea_prefers_ea_games_over_origin_games(manager, library_root):
    (library_root / "EA Games").mkdir()
    (library_root / "Origin Games").mkdir()
    assert manager.normalize(LauncherKind.EA, library_root) == library_root / "EA Games"


def test_ea_falls_back_to_origin_games(manager, library_root):
    (library_root / "Origin Games").mkdir()
    assert manager.normalize(LauncherKind.EA, library_root) == library_root / "Origin Games"


def test_ea_uses_base_when_no_subfolder(manager, library_root):
    assert manager.normalize(LauncherKind.EA, library_root) == library_root


def test_battlenet_nested_folder(manager, library_root):
    (library_root / "Battle.net").mkdir()
    assert manager.normalize(LauncherKind.BATTLENET, library_root) == library_root / "Battle.net"


def test_ubisoft_priority_order(manager, library_root):
    (library_root / "games").mkdir()
    assert manager.normalize(LauncherKind.UBISOFT, library_root) == library_root / "games"

    uplay = library_root / "Ubisoft Game Launcher" / "games"
    uplay.mkdir(parents=True)
    assert manager.normalize(LauncherKind.UBISOFT, library_root) == uplay


def test_custom_is_scanned_as_given(manager, library_root):
    (library_root / "games").mkdir()
    assert manager.normalize(LauncherKind.CUSTOM, library_root) == library_root


def test_scan_roots_deduplicates(manager, library_root):
    (library_root / "Battle.net").mkdir()
    roots = manager.scan_roots(LauncherKind.BATTLENET, [str(library_root), str(library_root / "Battle.net")])
    assert roots == [library_root / "Battle.net"]


def test_steam_library_folders_add_roots(manager, tmp_path):
    main = tmp_path / "Steam"
    (main / "steamapps" / "common").mkdir(parents=True)
    second = tmp_path / "SteamLibrary"
    (second / "steamapps" / "common").mkdir(parents=True)
    vdf_text = (
        '"libraryfolders"\n{\n'
        f'\t"0"\n\t{{\n\t\t"path"\t\t"{main.as_posix()}"\n\t}}\n'
        f'\t"1"\n\t{{\n\t\t"path"\t\t"{second.as_posix()}"\n\t}}\n'
        '}\n'
    )
    (main / "steamapps" / "libraryfolders.vdf").write_text(vdf_text, encoding="utf-8")

    roots = manager.scan_roots(LauncherKind.STEAM, [str(main)])
    assert roots == [main / "steamapps" / "common", second / "steamapps" / "common"]


def test_steam_library_folders_can_be_disabled(tmp_path):
    main = tmp_path / "Steam"
    (main / "steamapps" / "common").mkdir(parents=True)
    (main / "steamapps" / "libraryfolders.vdf").write_text(
        '"libraryfolders"\n{\n\t"1"\n\t{\n\t\t"path"\t\t"/nowhere"\n\t}\n}\n', encoding="utf-8"
    )
    manager = LauncherManager(follow_steam_library_folders=False)
    assert manager.scan_roots(LauncherKind.STEAM, [str(main)]) == [main / "steamapps" / "common"]


def test_broken_library_folders_file_is_ignored(manager, tmp_path):
    main = tmp_path / "Steam"
    (main / "steamapps" / "common").mkdir(parents=True)
    (main / "steamapps" / "libraryfolders.vdf").write_text('"libraryfolders"\n{\n\t"0"\n', encoding="utf-8")
    assert manager.scan_roots(LauncherKind.STEAM, [str(main)]) == [main / "steamapps" / "common"]
