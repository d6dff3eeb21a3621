from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock, Mock
import sys

import pytest

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))


def make_exe(path: Path) -> Path:
    """Create a fake executable (MZ header) and its parent folders."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"MZ")
    return path


@pytest.fixture
def data_dir(tmp_path):
    """Empty GameDex data directory."""
    d = tmp_path / "data"
    d.mkdir()
    return d


@pytest.fixture
def library_root(tmp_path):
    """Directory that tests fill with fake launcher layouts."""
    d = tmp_path / "libraries"
    d.mkdir()
    return d


@pytest.fixture
def mock_igdb():
    """IGDB client stand-in: no matches, no covers."""
    return Mock(
        has_credentials=True,
        fetch_game_info=AsyncMock(return_value=None),
        find_cover_url=AsyncMock(return_value=None),
        download_image=AsyncMock(return_value=None),
        close=AsyncMock(),
    )


@pytest.fixture
def exe():
    """Factory fixture: exe(path) creates a fake executable."""
    return make_exe
