from __future__ import annotations

import logging
import logging.handlers
import os
import re
import shutil
import sys
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from linux_mib.app_config import AppConfig

LOG_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)s %(name)s [%(threadName)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


@dataclass(frozen=True)
class LoggingConfig:
    level: str
    log_dir: Path
    log_file: str = "linux-mib.log"
    console: bool = True
    max_bytes: int = 10 * 1024 * 1024
    backup_count: int = 5
    rotate_on_startup: bool = True


class ColoredFormatter(logging.Formatter):
    """Formatter that colours the level name for console output."""

    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        original_levelname = record.levelname
        if record.levelname in self.COLORS:
            record.levelname = f"{self.COLORS[record.levelname]}{record.levelname}{self.RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = original_levelname


class FlushingStreamHandler(logging.StreamHandler):  # type: ignore[type-arg]
    """Stream handler that flushes after every emit."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            super().emit(record)
            self.flush()
        except Exception:
            self.handleError(record)


class FlushingRotatingFileHandler(logging.handlers.RotatingFileHandler):
    """Rotating file handler that flushes after every emit."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            super().emit(record)
            self.flush()
        except Exception:
            self.handleError(record)


def _first_timestamp(log_path: Path) -> str | None:
    try:
        with open(log_path, "r", encoding="utf-8") as f:
            match = re.match(r"^(\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2})\.\d{3}", f.readline())
    except (OSError, UnicodeDecodeError):
        return None
    return match.group(1) if match else None


def archive_log_file(log_path: Path) -> Path | None:
    """
    Move an existing log file into <log_dir>/archive/, stamped with its start time.

    The stamp comes from the first record in the file, or the file's
    modification time when that cannot be read.

    Args:
        log_path: Path to the log file to archive

    Returns:
        Where the file was moved to, or None if there was nothing to move
    """
    if not log_path.exists():
        return None

    stamp = _first_timestamp(log_path)
    if stamp is None:
        stamp = datetime.fromtimestamp(log_path.stat().st_mtime).strftime(DATE_FORMAT)
    stamp = stamp.replace(" ", "_").replace(":", "-")

    archive_dir = log_path.parent / "archive"
    archive_dir.mkdir(parents=True, exist_ok=True)

    archived_path = archive_dir / f"{log_path.stem}_{stamp}{log_path.suffix}"
    counter = 1
    while archived_path.exists():
        archived_path = archive_dir / f"{log_path.stem}_{stamp}_{counter}{log_path.suffix}"
        counter += 1

    try:
        shutil.move(str(log_path), str(archived_path))
    except OSError:
        # Keep appending to the current file
        return None
    return archived_path


class AppLogger:
    _configured: bool = False

    @staticmethod
    def configure(app_config: "AppConfig") -> None:
        """Configure logging from the logger section of an AppConfig."""
        logger_cfg: dict[str, Any] = app_config.section("logger")
        config = LoggingConfig(
            level=logger_cfg.get("level", "INFO"),
            log_dir=Path(os.path.abspath(logger_cfg.get("log_dir", "logs"))),
            log_file=logger_cfg.get("log_file", "linux-mib.log"),
            console=logger_cfg.get("console", True),
            max_bytes=logger_cfg.get("max_bytes", 10 * 1024 * 1024),
            backup_count=logger_cfg.get("backup_count", 5),
            rotate_on_startup=logger_cfg.get("rotate_on_startup", True),
        )
        AppLogger(config)

    def __init__(self, config: LoggingConfig) -> None:
        if AppLogger._configured:
            return
        self._configure(config)
        AppLogger._configured = True

    @staticmethod
    def get(name: str | None = None) -> logging.Logger:
        return logging.getLogger(name)

    @staticmethod
    def _configure(config: LoggingConfig) -> None:
        level = logging.getLevelName(config.level.upper())
        if not isinstance(level, int):
            level = logging.INFO

        config.log_dir.mkdir(parents=True, exist_ok=True)
        log_path = config.log_dir / config.log_file
        if config.rotate_on_startup:
            archive_log_file(log_path)

        root = logging.getLogger()
        root.setLevel(level)
        for handler in list(root.handlers):
            root.removeHandler(handler)

        file_handler = FlushingRotatingFileHandler(
            filename=log_path,
            maxBytes=config.max_bytes,
            backupCount=config.backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
        root.addHandler(file_handler)

        if config.console:
            console_handler = FlushingStreamHandler(sys.stdout)
            console_handler.setLevel(level)
            console_handler.setFormatter(ColoredFormatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
            root.addHandler(console_handler)

        AppLogger._quiet_third_party_loggers(level)

    @staticmethod
    def _quiet_third_party_loggers(level: int) -> None:
        logging.getLogger("asyncio").setLevel(logging.WARNING)
        logging.getLogger("pysnmp").setLevel(logging.DEBUG if level <= logging.DEBUG else logging.WARNING)
