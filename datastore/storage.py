import logging
import os

from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

logger = logging.getLogger(__name__)

FILE_MODE = 0o600


class LocalFileSystem:
    """Blocking file operations the store needs, nothing more."""

    def __init__(self, write_retries: int = 3) -> None:
        self.write_retries = max(write_retries, 1)

    def read_text(self, path: str) -> str:
        with open(path, "r", encoding="utf-8") as f:
            return f.read()

    def makedirs(self, path: str) -> None:
        if path:
            # exist_ok covers another writer creating it between check and mkdir
            os.makedirs(path, exist_ok=True)

    def write_text(self, path: str, content: str) -> None:
        self.makedirs(os.path.dirname(path))
        tmp = f"{path}.tmp"
        fd = os.open(tmp, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, FILE_MODE)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)
            os.chmod(tmp, FILE_MODE)
            self._replace(tmp, path)
        except BaseException:
            if os.path.exists(tmp):
                os.remove(tmp)
            raise
        logger.info("Wrote %s (%d bytes)", path, len(content))

    def _replace(self, src: str, dest: str) -> None:
        # Windows refuses the rename while another process has dest open.
        replace = retry(
            reraise=True,
            stop=stop_after_attempt(self.write_retries),
            wait=wait_exponential(multiplier=0.05, min=0.05, max=1),
            retry=retry_if_exception_type(PermissionError),
        )(os.replace)
        replace(src, dest)

    def remove(self, path: str) -> bool:
        try:
            os.remove(path)
        except FileNotFoundError:
            return False
        logger.info("Removed %s", path)
        return True
