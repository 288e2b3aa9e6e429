import logging
import logging.config
import os
from pathlib import Path
from typing import Iterable, List, Optional


LOG_FILES = ("app.log", "error.log")


def _prune_backups(log_dir: Path, backup_count: int, names: Iterable[str] = LOG_FILES) -> int:
    """Delete rotated backups beyond `backup_count` per log file; return how many went."""
    if backup_count < 1:
        return 0
    removed = 0
    for name in names:
        backups: List[Path] = sorted(
            log_dir.glob(f"{name}.*"), key=lambda path: path.stat().st_mtime, reverse=True
        )
        for stale in backups[backup_count:]:
            try:
                stale.unlink()
            except OSError:
                continue
            removed += 1
    return removed


def setup_logging(log_dir: Optional[Path] = None) -> Path:
    """
    Configures logging for the engine.
    Logs are written to '<log_dir>/app.log' and '<log_dir>/error.log'; the
    directory defaults to $PLAYFIELD_LOG_DIR or 'logs'.
    """
    log_dir = Path(log_dir or os.getenv("PLAYFIELD_LOG_DIR", "logs"))
    log_dir.mkdir(parents=True, exist_ok=True)
    max_bytes = int(os.getenv("LOG_MAX_BYTES", str(5 * 1024 * 1024)))
    backup_count = int(os.getenv("LOG_BACKUP_COUNT", "3"))
    pruned = _prune_backups(log_dir, backup_count)

    logging_config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "level": "INFO",
            },
            "file_app": {
                "class": "logging.handlers.RotatingFileHandler",
                "formatter": "default",
                "filename": str(log_dir / "app.log"),
                "maxBytes": max_bytes,
                "backupCount": backup_count,
                "level": "INFO",
                "encoding": "utf8",
            },
            "file_error": {
                "class": "logging.handlers.RotatingFileHandler",
                "formatter": "default",
                "filename": str(log_dir / "error.log"),
                "maxBytes": max_bytes,
                "backupCount": backup_count,
                "level": "ERROR",
                "encoding": "utf8",
            },
        },
        "loggers": {
            "": {  # Root logger
                "handlers": ["console", "file_app", "file_error"],
                "level": "INFO",
                "propagate": True,
            },
            "playfield": {  # Engine logger
                "handlers": ["console", "file_app", "file_error"],
                "level": "DEBUG",
                "propagate": False,
            },
        },
    }

    logging.config.dictConfig(logging_config)
    engine_logger = logging.getLogger("playfield")
    engine_logger.info("Logging configured successfully.")
    if pruned:
        engine_logger.debug("Pruned %s stale log backups in %s", pruned, log_dir)
    return log_dir
