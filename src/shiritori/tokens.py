from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Protocol, Sequence

__all__ = [
    "Token",
    "Tokenizer",
    "serialize_tokens",
]


@dataclass(frozen=True, slots=True)
class Token:
    """
    One morpheme produced by a tokenizer.

    ``reading`` is the katakana (or hiragana) reading the backend supplied
    for the surface, or ``None`` when the backend had no idea.
    """

    surface: str
    reading: str | None = None


class Tokenizer(Protocol):
    def tokenize(self, text: str) -> Sequence[Token]:
        ...


def serialize_tokens(tokens: Iterable[Token]) -> list[dict[str, object]]:
    payload: list[dict[str, object]] = []
    for token in tokens:
        payload.append({"surface": token.surface, "reading": token.reading})
    return payload
