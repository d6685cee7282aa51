"""Shared fixtures for paystub-tracker tests.

Tests use synthetic stub text from tests/fixtures/ - no external dependencies.
"""

from pathlib import Path

import pytest

from processors.engine import get_catalog


FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def catalog():
    """Bundled default rule catalogue."""
    return get_catalog()


@pytest.fixture
def fixture_text():
    """Read a text fixture by file name."""
    def _read(name: str) -> str:
        return (FIXTURES_DIR / name).read_text()
    return _read


@pytest.fixture
def isolated_config(tmp_path, monkeypatch):
    """Point the config directory at a temp dir."""
    config_dir = tmp_path / "config"
    monkeypatch.setenv("PAYSTUB_TRACKER_CONFIG_PATH", str(config_dir))
    return config_dir
