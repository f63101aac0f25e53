"""
Logging setup for the command line entry point.
Library modules only use logging.getLogger(__name__); call setup_logging() once at startup.
"""
from __future__ import annotations
import logging
import logging.handlers
from datetime import datetime
from pathlib import Path
from typing import Optional, Union


class HumanFormatter(logging.Formatter):
    """Readable console format with color."""
    COLORS = {
        "DEBUG": "\033[36m", "INFO": "\033[32m",
        "WARNING": "\033[33m", "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record):
        color = self.COLORS.get(record.levelname, "")
        ts = datetime.now().strftime("%H:%M:%S")
        return f"{color}{ts} [{record.levelname[0]}] {record.name}: {record.getMessage()}{self.RESET}"


def setup_logging(level: Optional[str] = None, log_dir: Optional[Union[str, Path]] = None) -> None:
    from proforma.settings import get_settings

    settings = get_settings()
    level = (level or settings.log_level).upper()
    log_dir = Path(log_dir) if log_dir else settings.data_dir / "logs"

    root = logging.getLogger()
    root.setLevel(getattr(logging, level, logging.INFO))
    root.handlers.clear()

    console = logging.StreamHandler()
    console.setFormatter(HumanFormatter())
    root.addHandler(console)

    # file handler rotates at 1MB, keeps 3 backups
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        fh = logging.handlers.RotatingFileHandler(
            log_dir / "proforma.log", maxBytes=1_000_000, backupCount=3, encoding="utf-8",
        )
        fh.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
        root.addHandler(fh)
    except OSError:
        pass  # read-only data dir: console only

    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("proforma").debug("Logging initialized at %s", level)
