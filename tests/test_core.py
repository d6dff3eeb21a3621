"""
End-to-end tests for GameDexCore against a fake Steam library.
"""
import json

import pytest

from gamedex.cache.artwork_files import image_path
from gamedex.cache.metadata_cache import get_metadata_cache_path
from gamedex.core import GameDexCore
from gamedex.stores.base import LauncherKind
from gamedex.utils.config import AppConfig
from gamedex.utils.outcome import NOT_CONFIGURED
from gamedex.utils.paths import CONFIG_FILE, PATH_MAPPINGS_FILE

COVER = b"\xff\xd8fake"


@pytest.fixture
def steam_common(library_root):
    common = library_root / "Steam" / "steamapps" / "common"
    common.mkdir(parents=True)
    return common


@pytest.fixture
def core(data_dir, library_root, steam_common, mock_igdb):
    config = AppConfig(steam_libraries=[str(library_root / "Steam")], follow_steam_library_folders=False)
    (data_dir / CONFIG_FILE).write_text(json.dumps(config.to_dict()), encoding="utf-8")
    return GameDexCore(data_dir, client=mock_igdb).init()


def test_init_creates_data_files(tmp_path, mock_igdb):
    data_dir = tmp_path / "fresh"
    core = GameDexCore(data_dir, client=mock_igdb).init()

    assert (data_dir / CONFIG_FILE).exists()
    assert (data_dir / PATH_MAPPINGS_FILE).exists()
    assert core.needs_setup() is True


@pytest.mark.asyncio
async def test_refresh_without_paths_reports_setup(tmp_path, mock_igdb):
    core = GameDexCore(tmp_path / "fresh", client=mock_igdb).init()

    result = await core.refresh_library()

    assert result['success'] is False
    assert result['error'] == NOT_CONFIGURED
    assert result['needs_setup'] is True
    mock_igdb.fetch_game_info.assert_not_awaited()


@pytest.mark.asyncio
async def test_refresh_library_indexes_and_backfills(core, steam_common, mock_igdb, exe, data_dir):
    portal = exe(steam_common / "Portal" / "portal.exe")
    mock_igdb.fetch_game_info.return_value = {"description": "Think with portals", "genres": ["Puzzle"]}
    mock_igdb.find_cover_url.return_value = "https://images.igdb.com/cover.jpg"
    mock_igdb.download_image.return_value = COVER

    result = await core.refresh_library()

    assert result['success'] is True
    assert result['changed'] is True
    assert result['game_count'] == 1
    assert result['metadata_fetched'] == 1
    assert result['covers_available'] == 1
    assert result['ambiguous'] == []

    entry = core.index.entries[0]
    assert (entry.launcher, entry.name, entry.exe_path) == (LauncherKind.STEAM, "Portal", str(portal))
    assert core.get_metadata(entry).genres == ("Puzzle",)
    assert get_metadata_cache_path(data_dir, LauncherKind.STEAM).exists()
    assert image_path(data_dir, "Portal").read_bytes() == COVER
    assert core.get_loading_state()['status'] == 'complete'


@pytest.mark.asyncio
async def test_unchanged_library_skips_metadata(core, steam_common, mock_igdb, exe):
    exe(steam_common / "Portal" / "portal.exe")
    mock_igdb.fetch_game_info.return_value = {"description": "d", "genres": []}
    await core.refresh_library(fetch_images=False)

    second = await core.refresh_library(fetch_images=False)

    assert second['changed'] is False
    assert second['metadata_fetched'] == 0
    assert mock_igdb.fetch_game_info.await_count == 1


@pytest.mark.asyncio
async def test_ambiguous_game_and_choice(core, steam_common, exe):
    exe(steam_common / "Mystery" / "alpha.exe")
    beta = exe(steam_common / "Mystery" / "beta.exe")

    result = await core.refresh_library(fetch_images=False)

    assert [a['name'] for a in result['ambiguous']] == ["Mystery"]
    dir_path = result['ambiguous'][0]['dir_path']

    assert core.choose(dir_path, str(beta)).ok
    assert core.find_entry(dir_path).exe_path == str(beta)

    again = await core.refresh_library(fetch_images=False)
    assert again['ambiguous'] == []
    assert core.find_entry(dir_path).exe_path == str(beta)


@pytest.mark.asyncio
async def test_uninstalled_games_lose_their_caches(core, steam_common, mock_igdb, exe, data_dir):
    exe(steam_common / "Portal" / "portal.exe")
    doomed = exe(steam_common / "Doom" / "doom.exe")
    mock_igdb.fetch_game_info.return_value = {"description": "d", "genres": ["Action"]}
    mock_igdb.find_cover_url.return_value = "https://images.igdb.com/cover.jpg"
    mock_igdb.download_image.return_value = COVER
    await core.refresh_library()
    assert image_path(data_dir, "Doom").exists()

    doomed.unlink()
    doomed.parent.rmdir()
    result = await core.refresh_library()

    assert result['game_count'] == 1
    assert core.metadata.has_record(LauncherKind.STEAM, "Doom") is False
    assert not image_path(data_dir, "Doom").exists()
    saved = json.loads(get_metadata_cache_path(data_dir, LauncherKind.STEAM).read_text(encoding="utf-8"))
    assert [e['name'] for e in saved['entries']] == ["Portal"]


def test_remove_game_caches_without_records(core):
    assert core.remove_game_caches(LauncherKind.STEAM, "Never Seen") is False


def test_toggle_favorite(core):
    assert core.toggle_favorite("/games/Portal") is True
    assert core.favorites.is_favorite("/games/Portal")


@pytest.mark.asyncio
async def test_game_still_installed_elsewhere_keeps_its_caches(tmp_path, library_root, mock_igdb, exe):
    first_lib = library_root / "SteamA"
    second_lib = library_root / "SteamB"
    doomed = exe(first_lib / "steamapps" / "common" / "Foo" / "Foo.exe")
    exe(second_lib / "steamapps" / "common" / "Foo" / "Foo.exe")
    data_dir = tmp_path / "two-libs"
    data_dir.mkdir()
    config = AppConfig(steam_libraries=[str(first_lib), str(second_lib)], follow_steam_library_folders=False)
    (data_dir / CONFIG_FILE).write_text(json.dumps(config.to_dict()), encoding="utf-8")
    core = GameDexCore(data_dir, client=mock_igdb).init()
    mock_igdb.fetch_game_info.return_value = {"description": "d", "genres": ["Action"]}
    mock_igdb.find_cover_url.return_value = "https://images.igdb.com/cover.jpg"
    mock_igdb.download_image.return_value = COVER

    first = await core.refresh_library()
    assert first['game_count'] == 2

    doomed.unlink()
    doomed.parent.rmdir()
    second = await core.refresh_library()

    assert second['game_count'] == 1
    assert core.metadata.has_record(LauncherKind.STEAM, "Foo")
    assert image_path(data_dir, "Foo").read_bytes() == COVER
    assert mock_igdb.fetch_game_info.await_count == 1
