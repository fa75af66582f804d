import logging
import logging.config
from pathlib import Path
from typing import Any, Dict

from app.core.config import settings

ROTATE_BYTES = 10 * 1024 * 1024
ROTATE_BACKUPS = 5


def _rotating_file(path: Path, level: str) -> Dict[str, Any]:
    return {
        "class": "logging.handlers.RotatingFileHandler",
        "level": level,
        "formatter": "detailed",
        "filename": str(path),
        "maxBytes": ROTATE_BYTES,
        "backupCount": ROTATE_BACKUPS,
        "encoding": "utf-8",
    }


def build_logging_config(log_dir: Path, level: str) -> Dict[str, Any]:
    """Console plus app.log and error.log under ``log_dir``.

    Workflow loggers (grading, certificates, notifications) go through the
    ``app`` logger; best-effort stage failures land in error.log with their
    traceback.
    """
    all_handlers = ["console", "app_file", "error_file"]
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
            },
            "detailed": {
                "format": "%(asctime)s %(levelname)s %(name)s [%(filename)s:%(lineno)d] %(message)s"
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": "default",
                "stream": "ext://sys.stdout",
            },
            "app_file": _rotating_file(log_dir / "app.log", "INFO"),
            "error_file": _rotating_file(log_dir / "error.log", "ERROR"),
        },
        "root": {"level": level, "handlers": all_handlers},
        "loggers": {
            "app": {"level": level, "handlers": all_handlers, "propagate": False},
            "sqlalchemy.engine": {"level": "WARNING", "propagate": True},
            "uvicorn.access": {"level": "WARNING", "handlers": ["console"], "propagate": False},
        },
    }


def configure_logging():
    log_dir = Path(settings.LOG_DIR)
    log_dir.mkdir(parents=True, exist_ok=True)
    logging.config.dictConfig(build_logging_config(log_dir, settings.LOG_LEVEL))
