import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Tuple

LOG_FILE = "datastore.log"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def _resolve_log_dir(preferred: str) -> Tuple[Path, bool]:
    """Return a writeable log directory and whether it is the temp fallback."""

    try:
        Path(preferred).mkdir(parents=True, exist_ok=True)
        return Path(preferred), False
    except OSError:
        fallback = Path(os.getenv("TMPDIR", "/tmp")) / "datastore-logs"
        fallback.mkdir(parents=True, exist_ok=True)
        return fallback, True


def setup_logging(log_dir: Optional[str] = None, level: str = "WARNING") -> Optional[str]:
    """Log to stderr, and to a rotating file under ``log_dir`` when one is given.

    Returns the directory actually used for the log file, if any.
    """
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S%z")

    root = logging.getLogger()
    numeric = logging.getLevelName(level.upper())
    root.setLevel(numeric if isinstance(numeric, int) else logging.WARNING)

    # Calling setup twice must not double every line.
    root.handlers = [h for h in root.handlers if not isinstance(h, (logging.StreamHandler, RotatingFileHandler))]

    console = logging.StreamHandler()
    console.setFormatter(formatter)
    root.addHandler(console)

    if not log_dir:
        return None

    resolved, used_fallback = _resolve_log_dir(log_dir)
    file_handler = RotatingFileHandler(resolved / LOG_FILE, maxBytes=5 * 1024 * 1024, backupCount=3)
    file_handler.setFormatter(formatter)
    root.addHandler(file_handler)

    if used_fallback:
        root.warning("Falling back to writable log directory: %s", resolved)
    return str(resolved)
