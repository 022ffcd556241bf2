import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional

import config as app_config

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"


def get_log_dir() -> Path:
    return app_config.CONFIG_DIR / "logs"


def setup_logging(level: Optional[str] = None) -> None:
    """
    Configure the root logger with a rotating log file under ~/.linecoach/logs
    and a stdout handler. Existing root handlers are replaced so repeated calls
    do not duplicate output.
    """
    logging_cfg = app_config.load_config()["logging"]
    log_dir = get_log_dir()
    log_dir.mkdir(parents=True, exist_ok=True)

    formatter = logging.Formatter(LOG_FORMAT)

    for handler in logging.root.handlers[:]:
        logging.root.removeHandler(handler)
        handler.close()

    logging.root.setLevel((level or logging_cfg["level"]).upper())

    file_handler = logging.handlers.RotatingFileHandler(
        log_dir / logging_cfg["file"],
        maxBytes=10 * 1024 * 1024,
        backupCount=5,
        encoding="utf-8",
    )
    file_handler.setFormatter(formatter)
    logging.root.addHandler(file_handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    logging.root.addHandler(console_handler)

    logging.captureWarnings(True)
