"""
Tests for the small per-game stores and the launch path mappings file.
"""
import json
from datetime import datetime

from gamedex.registry.exe_selections import ExeSelectionStore
from gamedex.registry.path_mappings import PathMappings
from gamedex.registry.user_data import FavoritesStore, LaunchOptionsStore, PlayStatsStore
from gamedex.stores.base import LauncherKind
from gamedex.utils.outcome import IO_ERROR, Outcome
from gamedex.utils.paths import FAVORITES_FILE, PATH_MAPPINGS_FILE, PLAY_STATS_FILE


def test_favorites_toggle_persists(data_dir):
    store = FavoritesStore(data_dir)

    assert store.toggle("/games/Portal") is True
    assert store.is_favorite("/games/Portal")
    assert json.loads((data_dir / FAVORITES_FILE).read_text(encoding="utf-8")) == ["/games/Portal"]

    assert FavoritesStore(data_dir).toggle("/games/Portal") is False
    assert FavoritesStore(data_dir).get_all() == set()


def test_favorites_ignore_blank_keys(data_dir):
    store = FavoritesStore(data_dir)
    assert store.toggle("") is False
    assert store.is_favorite("") is False


def test_launch_options_blank_value_removes_entry(data_dir):
    store = LaunchOptionsStore(data_dir)
    store.set("/games/Doom", "  -fullscreen  ")
    assert LaunchOptionsStore(data_dir).get("/games/Doom") == "-fullscreen"

    store.set("/games/Doom", "   ")
    assert LaunchOptionsStore(data_dir).get("/games/Doom") == ""


def test_record_play_counts_and_timestamps(data_dir):
    store = PlayStatsStore(data_dir)

    store.record_play("Portal", datetime(2025, 9, 17, 21, 0, 0, 123456))
    stat = store.record_play("Portal", datetime(2025, 9, 18, 8, 30, 5))

    assert stat.plays == 2
    assert stat.lastplayed == "2025-09-18T08:30:05"
    saved = json.loads((data_dir / PLAY_STATS_FILE).read_text(encoding="utf-8"))
    assert saved == {"Portal": {"plays": 2, "lastplayed": "2025-09-18T08:30:05"}}


def test_play_stats_skip_malformed_rows(data_dir):
    path = data_dir / PLAY_STATS_FILE
    path.parent.mkdir(parents=True)
    path.write_text(json.dumps({"Ok": {"plays": 4, "lastplayed": "x"}, "Bad": 3}), encoding="utf-8")

    stats = PlayStatsStore(data_dir).get_all()

    assert list(stats) == ["Ok"]
    assert stats["Ok"].plays == 4


def test_exe_selection_round_trip(data_dir):
    store = ExeSelectionStore(data_dir)
    assert store.put("/games/Doom", "/games/Doom/doom.exe").ok

    fresh = ExeSelectionStore(data_dir)
    assert fresh.get("/games/Doom") == "/games/Doom/doom.exe"
    assert fresh.remove("/games/Doom") is True
    assert ExeSelectionStore(data_dir).get("/games/Doom") is None


def test_path_mappings_file_is_seeded(data_dir):
    PathMappings(data_dir).ensure_file()

    saved = json.loads((data_dir / PATH_MAPPINGS_FILE).read_text(encoding="utf-8"))
    assert saved == [{
        "launcher": "BattleNet",
        "name": "Call of Duty Modern Warfare III",
        "path": "battlenet://game/pinta",
    }]


def test_path_mappings_user_entries(data_dir):
    path = data_dir / PATH_MAPPINGS_FILE
    path.parent.mkdir(parents=True)
    path.write_text(json.dumps([
        {"name": "Any Launcher Game", "path": "custom://any"},
        {"launcher": "EA", "name": "Only EA", "path": "origin2://game/launch"},
        {"launcher": "Nope", "name": "Broken", "path": "x://y"},
    ]), encoding="utf-8")

    mappings = PathMappings(data_dir)

    assert mappings.get_path_for(LauncherKind.STEAM, "Any Launcher Game") == "custom://any"
    assert mappings.get_path_for(LauncherKind.EA, "Only EA") == "origin2://game/launch"
    assert mappings.get_path_for(LauncherKind.STEAM, "Only EA") is None
    assert mappings.get_path_for(LauncherKind.STEAM, "Broken") is None
    # The built-in table still applies
    assert mappings.has_mapping(LauncherKind.BATTLENET, "Call of Duty Modern Warfare III")


def test_path_mappings_without_data_dir_use_builtins_only(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    mappings = PathMappings()
    mappings.ensure_file()

    assert mappings.get_path_for(LauncherKind.BATTLENET, "Call of Duty Modern Warfare III") == "battlenet://game/pinta"
    assert not (tmp_path / PATH_MAPPINGS_FILE).exists()


def test_exe_selection_remove_reports_write_failure(data_dir, monkeypatch):
    store = ExeSelectionStore(data_dir)
    store.put("/games/Doom", "/games/Doom/doom.exe")

    import gamedex.registry.json_store as json_store
    monkeypatch.setattr(json_store, "write_json", lambda path, data: Outcome.failure(False, IO_ERROR))

    assert store.remove("/games/Doom") is False
    assert store.get("/games/Doom") is None


def test_prune_missing_keeps_files_and_protocols(data_dir, library_root, exe):
    kept = exe(library_root / "Doom" / "doom.exe")
    store = ExeSelectionStore(data_dir)
    store.put("/games/Doom", str(kept))
    store.put("/games/Gone", str(library_root / "Gone" / "gone.exe"))
    store.put("/games/Cod", "battlenet://game/pinta")

    assert store.prune_missing() == {"/games/Doom": str(kept), "/games/Cod": "battlenet://game/pinta"}
    assert ExeSelectionStore(data_dir).get("/games/Gone") is None
