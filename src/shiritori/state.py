from __future__ import annotations

import fcntl
import os
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Iterator

from .logging_utils import debug_log

__all__ = [
    "ChainSession",
    "ChainState",
    "ChainStore",
    "LockTimeoutError",
    "StorageError",
    "check_event_id",
    "format_state",
    "parse_state",
]

_LOCK_POLL_INTERVAL = 0.01

_mutexes: dict[str, threading.Lock] = {}
_mutexes_guard = threading.Lock()


class StorageError(RuntimeError):
    """Raised when the chain state file cannot be opened, locked, read or written."""


class LockTimeoutError(StorageError):
    """Raised when the chain lock is not acquired within the caller's timeout."""


@dataclass(frozen=True, slots=True)
class ChainState:
    last_kana: str
    last_event_id: str = ""


def parse_state(data: str) -> ChainState | None:
    """
    Parse the ``<kana>\\n<event id>`` slot format.

    An empty slot means no post has been accepted yet. A slot without the
    second line predates event ids and keeps an empty id.
    """
    if not data:
        return None
    first_line, _, rest = data.partition("\n")
    if not first_line:
        raise StorageError("Chain state is malformed: missing last kana.")
    event_id = rest.split("\n", 1)[0]
    return ChainState(last_kana=first_line[0], last_event_id=event_id)


def check_event_id(event_id: str) -> str:
    """Return ``event_id`` unchanged; the slot cannot hold one with a line break."""
    if "\n" in event_id or "\r" in event_id:
        raise ValueError(f"Event id must not contain line breaks: {event_id!r}")
    return event_id


def format_state(state: ChainState) -> str:
    return f"{state.last_kana}\n{check_event_id(state.last_event_id)}"


def _mutex_for(path: Path) -> threading.Lock:
    key = os.path.abspath(path)
    with _mutexes_guard:
        mutex = _mutexes.get(key)
        if mutex is None:
            mutex = threading.Lock()
            _mutexes[key] = mutex
        return mutex


class ChainSession:
    """Read/write access to the chain slot, valid only while the lock is held."""

    def __init__(self, handle: IO[bytes], path: Path) -> None:
        self._handle = handle
        self._path = path

    def read(self) -> ChainState | None:
        try:
            self._handle.seek(0)
            raw = self._handle.read()
        except OSError as exc:
            raise StorageError(f"Failed to read chain state '{self._path}': {exc}") from exc
        try:
            text = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise StorageError(f"Chain state '{self._path}' is not valid UTF-8.") from exc
        return parse_state(text)

    def write(self, state: ChainState) -> None:
        payload = format_state(state).encode("utf-8")
        try:
            self._handle.seek(0)
            self._handle.truncate(0)
            self._handle.write(payload)
            self._handle.flush()
            os.fsync(self._handle.fileno())
        except OSError as exc:
            raise StorageError(f"Failed to write chain state '{self._path}': {exc}") from exc


class ChainStore:
    """
    Durable single-slot chain state guarded by an in-process mutex and ``flock``.

    The mutex orders threads of this process (shared by every store on the
    same path); the advisory file lock orders separate processes.
    """

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self._path = Path(path)
        self._mutex = _mutex_for(self._path)

    @property
    def path(self) -> Path:
        return self._path

    def _open(self) -> IO[bytes]:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd = os.open(self._path, os.O_RDWR | os.O_CREAT, 0o666)
        except OSError as exc:
            raise StorageError(f"Failed to open chain state '{self._path}': {exc}") from exc
        return os.fdopen(fd, "r+b")

    def _flock(self, handle: IO[bytes], deadline: float | None) -> None:
        try:
            if deadline is None:
                fcntl.flock(handle.fileno(), fcntl.LOCK_EX)
                return
            while True:
                try:
                    fcntl.flock(handle.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
                    return
                except BlockingIOError:
                    if time.monotonic() >= deadline:
                        raise LockTimeoutError(
                            f"Timed out waiting for the lock on '{self._path}'."
                        ) from None
                    time.sleep(_LOCK_POLL_INTERVAL)
        except LockTimeoutError:
            raise
        except OSError as exc:
            raise StorageError(f"Failed to lock chain state '{self._path}': {exc}") from exc

    @contextmanager
    def session(self, timeout: float | None = None) -> Iterator[ChainSession]:
        """
        Hold the chain lock for the duration of the ``with`` block.

        ``timeout`` bounds the total wait for both lock layers; ``None``
        waits indefinitely.
        """
        deadline = None if timeout is None else time.monotonic() + max(timeout, 0.0)
        debug_log(f"acquiring lock of {self._path}")
        if deadline is None:
            acquired = self._mutex.acquire()
        else:
            acquired = self._mutex.acquire(timeout=max(deadline - time.monotonic(), 0.0))
        if not acquired:
            raise LockTimeoutError(f"Timed out waiting for the lock on '{self._path}'.")
        try:
            handle = self._open()
            try:
                self._flock(handle, deadline)
                debug_log(f"acquired lock of {self._path}")
                try:
                    yield ChainSession(handle, self._path)
                finally:
                    try:
                        fcntl.flock(handle.fileno(), fcntl.LOCK_UN)
                    except OSError as exc:
                        # Closing the descriptor below drops the lock anyway.
                        debug_log(f"failed to unlock {self._path}: {exc}")
                    debug_log(f"released lock of {self._path}")
            finally:
                handle.close()
        finally:
            self._mutex.release()

    def peek(self, timeout: float | None = None) -> ChainState | None:
        """Read the current state without changing it."""
        with self.session(timeout) as session:
            return session.read()
