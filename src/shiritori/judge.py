from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from .connection import is_connected
from .logging_utils import debug_log
from .reading import EffectiveReading, ReadingExtractor, build_reading_extractor
from .state import ChainState, ChainStore, check_event_id

if TYPE_CHECKING:
    from .config import ShiritoriConfig
    from .tokens import Tokenizer

__all__ = [
    "Judge",
    "Judgement",
    "Verdict",
    "build_judge",
]


class Verdict(str, Enum):
    ACCEPTED = "accepted"
    NOT_CONNECTED = "not_connected"
    DUPLICATE = "duplicate"
    UNREADABLE = "unreadable"


@dataclass(frozen=True, slots=True)
class Judgement:
    verdict: Verdict
    head: str | None = None
    last: str | None = None
    previous_last: str | None = None

    @property
    def accepted(self) -> bool:
        return self.verdict is Verdict.ACCEPTED


def _one_line(text: str) -> str:
    return text.replace("\n", " ")


class Judge:
    """
    Decide whether a post continues the chain and advance it when it does.

    Reading extraction runs before the lock is taken; only the state read,
    the connection check and the state write happen while it is held.
    """

    def __init__(self, extractor: ReadingExtractor, store: ChainStore) -> None:
        self._extractor = extractor
        self._store = store

    @property
    def store(self) -> ChainStore:
        return self._store

    def get_effective_reading(self, text: str) -> EffectiveReading | None:
        return self._extractor.effective_head_and_last(text)

    def judge(self, text: str, event_id: str, *, timeout: float | None = None) -> Judgement:
        """
        Judge ``text`` posted as ``event_id``.

        Raises ``StorageError`` (or ``LockTimeoutError``) when the chain slot
        cannot be used; no verdict is produced in that case. An ``event_id``
        containing a line break raises ``ValueError`` before anything is read.
        """
        check_event_id(event_id)
        reading = self.get_effective_reading(text)
        if reading is None:
            debug_log(f"unreadable content: {_one_line(text)}")
            return Judgement(verdict=Verdict.UNREADABLE)

        with self._store.session(timeout) as session:
            previous = session.read()
            if previous is not None:
                if previous.last_event_id and previous.last_event_id == event_id:
                    debug_log(f"rejected duplicate event {event_id}")
                    return Judgement(
                        verdict=Verdict.DUPLICATE,
                        head=reading.head,
                        last=reading.last,
                        previous_last=previous.last_kana,
                    )
                if not is_connected(previous.last_kana, reading.head):
                    debug_log(
                        f"rejected: {_one_line(text)} (head: {reading.head}, last: {reading.last}, "
                        f"previous: {previous.last_kana})"
                    )
                    return Judgement(
                        verdict=Verdict.NOT_CONNECTED,
                        head=reading.head,
                        last=reading.last,
                        previous_last=previous.last_kana,
                    )
            session.write(ChainState(last_kana=reading.last, last_event_id=event_id))

        debug_log(f"accepted: {_one_line(text)} (head: {reading.head}, last: {reading.last})")
        return Judgement(
            verdict=Verdict.ACCEPTED,
            head=reading.head,
            last=reading.last,
            previous_last=previous.last_kana if previous else None,
        )

    def next_kana(self, *, timeout: float | None = None) -> str | None:
        """The kana the next post has to start with, or ``None`` before the first post."""
        state = self._store.peek(timeout)
        return state.last_kana if state else None


def build_judge(config: ShiritoriConfig, tokenizer: Tokenizer | None = None) -> Judge:
    extractor = build_reading_extractor(config, tokenizer)
    return Judge(extractor, ChainStore(config.state_path))
