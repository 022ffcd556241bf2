import tomllib
import shutil
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional
from dotenv import load_dotenv
import os

CONFIG_DIR = Path.home() / ".linecoach"
CONFIG_PATH = CONFIG_DIR / "config.toml"
PROJECT_CONFIG_EXAMPLE = Path(__file__).parent / "config.toml"

DEFAULT_CHUNK_SIZE = 5
DEFAULT_CHUNK_SIZE_CHOICES = [3, 5, 7, 10]

logger = logging.getLogger(__name__)


def _positive_int(value: Any, fallback: int, name: str) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        logger.warning("Ignoring non-integer %s=%r, using %d", name, value, fallback)
        return fallback
    if number <= 0:
        logger.warning("Ignoring non-positive %s=%r, using %d", name, value, fallback)
        return fallback
    return number


def load_config() -> Dict[str, Any]:
    """Load config from ~/.linecoach/config.toml, copy example if missing, load .env overrides."""
    load_dotenv()
    if not CONFIG_PATH.exists():
        CONFIG_DIR.mkdir(parents=True, exist_ok=True)
        shutil.copy(PROJECT_CONFIG_EXAMPLE, CONFIG_PATH)
    with open(CONFIG_PATH, "rb") as f:
        config = tomllib.load(f)

    review_cfg = config.get("review", {})
    choices: List[int] = []
    for choice in review_cfg.get("chunk_size_choices", DEFAULT_CHUNK_SIZE_CHOICES):
        size = _positive_int(choice, 0, "chunk_size_choices")
        if size and size not in choices:
            choices.append(size)
    config["review"] = {
        "default_chunk_size": _positive_int(
            os.getenv("LINECOACH_CHUNK_SIZE", review_cfg.get("default_chunk_size", DEFAULT_CHUNK_SIZE)),
            DEFAULT_CHUNK_SIZE,
            "default_chunk_size",
        ),
        "chunk_size_choices": choices or list(DEFAULT_CHUNK_SIZE_CHOICES),
    }
    server_cfg = config.get("server", {})
    config["server"] = {
        "host": os.getenv("LINECOACH_HOST", server_cfg.get("host", "127.0.0.1")),
        "port": _positive_int(os.getenv("LINECOACH_PORT", server_cfg.get("port", 8000)), 8000, "port"),
    }
    logging_cfg = config.get("logging", {})
    config["logging"] = {
        "level": os.getenv("LOG_LEVEL", logging_cfg.get("level", "INFO")).upper(),
        "file": logging_cfg.get("file", "linecoach.log"),
    }
    return config


def get_config_value(section: str, key: str, default: Optional[Any] = None) -> Any:
    """Get nested config value, e.g., get_config_value('review', 'default_chunk_size')."""
    config = load_config()
    value = config.get(section, {}).get(key, default)
    return value
