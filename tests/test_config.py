"""
Tests for AppConfig / ConfigManager.
"""
import json

from gamedex.stores.base import LauncherKind
from gamedex.utils.config import MAX_LIBRARIES_PER_LAUNCHER, AppConfig, ConfigManager, clean_library_list
from gamedex.utils.paths import CONFIG_FILE


def test_defaults_are_written_on_first_run(data_dir):
    config = ConfigManager(data_dir).load_or_create_default()

    assert config == AppConfig()
    saved = json.loads((data_dir / CONFIG_FILE).read_text(encoding="utf-8"))
    assert saved["theme"] == "Default"
    assert saved["steam_libraries"] == []
    assert saved["follow_steam_library_folders"] is True


def test_corrupt_config_falls_back_to_defaults(data_dir):
    path = data_dir / CONFIG_FILE
    path.write_text("{not json", encoding="utf-8")

    config = ConfigManager(data_dir).load_or_create_default()

    assert config == AppConfig()
    # The broken file is left for the user to fix
    assert path.read_text(encoding="utf-8") == "{not json"


def test_save_and_reload(data_dir):
    manager = ConfigManager(data_dir)
    config = AppConfig(ea_libraries=["D:/EA"], igdb_client_id="id", igdb_client_secret="secret")

    assert manager.save(config) is True
    assert ConfigManager(data_dir).load_or_create_default() == config


def test_unknown_keys_and_wrong_types_are_ignored():
    config = AppConfig.from_dict({
        "theme": 3,
        "show_uncategorized_titles": "no",
        "window_width": True,
        "window_height": 720,
        "steam_libraries": "C:/Steam",
        "something_else": 1,
    })

    assert config.theme == "Default"
    assert config.show_uncategorized_titles is True
    assert config.window_width == 0
    assert config.window_height == 720
    assert config.steam_libraries == []


def test_legacy_single_path_is_a_fallback():
    config = AppConfig.from_dict({"steam_path": " C:/Steam ", "ea_path": "D:/EA", "ea_libraries": ["E:/EA"]})

    assert config.libraries_for(LauncherKind.STEAM) == ["C:/Steam"]
    assert config.libraries_for(LauncherKind.EA) == ["E:/EA"]
    assert config.libraries_for(LauncherKind.CUSTOM) == []


def test_library_lists_are_cleaned_and_capped():
    paths = [" /a ", "", "/a", 7] + [f"/lib{i}" for i in range(10)]

    cleaned = clean_library_list(paths)

    assert cleaned[:2] == ["/a", "/lib0"]
    assert len(cleaned) == MAX_LIBRARIES_PER_LAUNCHER


def test_needs_setup():
    assert AppConfig().needs_setup() is True
    assert AppConfig(custom_libraries=["/games"]).needs_setup() is False
    assert AppConfig(battlenet_path="C:/Battle.net").needs_setup() is False
    assert AppConfig(ubisoft_libraries=["   "]).needs_setup() is True
