import logging
from pathlib import Path
from typing import Callable, List

import pytest

from datastore.config import Settings
from datastore.storage import LocalFileSystem


class ManualHandle:
    def __init__(self, delay: float, callback: Callable[[], None]) -> None:
        self.delay = delay
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualTimers:
    """Timer factory that only fires when told to."""

    def __init__(self) -> None:
        self.scheduled: List[ManualHandle] = []

    def __call__(self, delay: float, callback: Callable[[], None]) -> ManualHandle:
        handle = ManualHandle(delay, callback)
        self.scheduled.append(handle)
        return handle

    @property
    def active(self) -> List[ManualHandle]:
        return [h for h in self.scheduled if not h.cancelled and not h.fired]

    def fire(self) -> None:
        for handle in self.active:
            handle.fired = True
            handle.callback()


class CountingFileSystem(LocalFileSystem):
    def __init__(self) -> None:
        super().__init__(write_retries=1)
        self.writes: List[str] = []

    def write_text(self, path: str, content: str) -> None:
        self.writes.append(content)
        super().write_text(path, content)


@pytest.fixture
def timers() -> ManualTimers:
    return ManualTimers()


@pytest.fixture
def counting_fs() -> CountingFileSystem:
    return CountingFileSystem()


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        home=tmp_path.as_posix(),
        base="stores",
        debounce_ms=0,
        indent=2,
        write_retries=1,
        log_dir="",
        log_level="WARNING",
    )


@pytest.fixture
def store_path(tmp_path: Path) -> Path:
    return tmp_path / "fixtures" / "tests.json"


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers = handlers
    root.setLevel(level)
