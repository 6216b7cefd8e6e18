"""Debounced persistence.

Mutations call :meth:`WriteScheduler.save`. With a debounce interval the
write is deferred until no further ``save`` call has arrived for that long,
so a burst of changes costs one write. Without one, ``save`` writes
immediately.
"""
from __future__ import annotations

import enum
import logging
import threading
from typing import Callable, Optional, Protocol

logger = logging.getLogger(__name__)


class TimerHandle(Protocol):
    def cancel(self) -> None:
        ...


TimerFactory = Callable[[float, Callable[[], None]], TimerHandle]


def threading_timer(delay: float, callback: Callable[[], None]) -> TimerHandle:
    # Non-daemon so a pending write still lands before the interpreter exits.
    timer = threading.Timer(delay, callback)
    timer.daemon = False
    timer.start()
    return timer


class State(enum.Enum):
    IDLE = "idle"
    PENDING = "pending"


class Policy(str, enum.Enum):
    RESET = "reset"  # every save restarts the window
    FIRST = "first"  # the first save's timer fires, later ones ride along


class WriteScheduler:
    """Decides when ``write`` runs.

    ``render`` turns the current document into file content. It is called
    on the caller's thread, under the lock, at every ``save``; the timer
    thread only ever hands that rendered text to ``write``, so it never
    reads the live document.
    """

    def __init__(
        self,
        render: Callable[[], str],
        write: Callable[[str], None],
        debounce_ms: int = 0,
        timer: Optional[TimerFactory] = None,
        on_error: Optional[Callable[[Exception], None]] = None,
        policy: Policy = Policy.RESET,
    ) -> None:
        self._render = render
        self._write = write
        self.debounce_ms = debounce_ms
        self._timer_factory = timer or threading_timer
        self.on_error = on_error
        self.policy = Policy(policy)
        self._lock = threading.RLock()
        self._handle: Optional[TimerHandle] = None
        self._content: Optional[str] = None
        self._generation = 0
        self.writes = 0

    @property
    def state(self) -> State:
        return State.PENDING if self._handle is not None else State.IDLE

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def save(self) -> None:
        with self._lock:
            if not self.debounce_ms or self.debounce_ms <= 0:
                self.write_file()
                return
            # the pending write always carries the state as of the latest save
            self._content = self._render()
            if self._handle is not None:
                if self.policy is Policy.FIRST:
                    return
                self._drop_timer_locked()
            self._generation += 1
            generation = self._generation
            self._handle = self._timer_factory(
                self.debounce_ms / 1000.0, lambda: self._fire(generation)
            )

    def write_file(self) -> None:
        with self._lock:
            content = self._render()
            self._cancel_locked()
            self._write(content)
            self.writes += 1

    def flush(self) -> bool:
        """Write now if a deferred write is pending. Returns whether it wrote."""
        with self._lock:
            if self._handle is None:
                return False
            self.write_file()
            return True

    def cancel(self) -> None:
        with self._lock:
            self._cancel_locked()

    def _drop_timer_locked(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        # invalidates a callback that is already running
        self._generation += 1

    def _cancel_locked(self) -> None:
        self._drop_timer_locked()
        self._content = None

    def _fire(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation or self._handle is None:
                return
            content, self._content = self._content, None
            self._handle = None
            if content is None:
                return
            try:
                self._write(content)
                self.writes += 1
            except Exception as e:  # noqa: BLE001 - no caller to raise to
                logger.exception("Deferred write failed")
                if self.on_error is not None:
                    self.on_error(e)
