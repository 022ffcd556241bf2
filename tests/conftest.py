from pathlib import Path

import pytest

import config
from db import database


def _write_test_config(config_path: Path) -> None:
    config_path.write_text(
        "\n".join(
            [
                "[review]",
                "default_chunk_size = 3",
                "chunk_size_choices = [3, 5]",
                "",
                "[logging]",
                "level = \"DEBUG\"",
            ]
        ),
        encoding="utf-8",
    )


@pytest.fixture
def app_env(tmp_path, monkeypatch):
    """Point config and database at a throwaway directory and initialize the DB."""
    config_dir = tmp_path / ".linecoach"
    config_dir.mkdir()
    config_path = config_dir / "config.toml"
    _write_test_config(config_path)

    monkeypatch.setattr(config, "CONFIG_DIR", config_dir)
    monkeypatch.setattr(config, "CONFIG_PATH", config_path)
    monkeypatch.setattr(database, "CONFIG_DIR", config_dir)
    monkeypatch.setattr(database, "DB_PATH", config_dir / "linecoach.db")
    for name in ("LINECOACH_CHUNK_SIZE", "LINECOACH_HOST", "LINECOACH_PORT", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)

    database.init_db()
    return config_dir
