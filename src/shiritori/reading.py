from __future__ import annotations

import re
import unicodedata
from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING, Callable, Iterable, Mapping, Sequence

from .dictionaries import ReplaceRule, load_reading_dictionary, load_replace_dictionary
from .kana import first_kana, last_kana
from .normalize import TextNormalizer
from .tokens import Token, Tokenizer

if TYPE_CHECKING:
    from .config import ShiritoriConfig

__all__ = [
    "ALPHABET_READINGS",
    "EffectiveReading",
    "HEAD",
    "LAST",
    "LatinWordResolver",
    "ReadingExtractor",
    "build_reading_extractor",
    "naturalize_english_reading",
    "resolve_embedded_kana",
    "resolve_halfwidth_surface",
    "resolve_katakana_surface",
    "resolve_token_reading",
]

ALPHABET_READINGS: Mapping[str, str] = MappingProxyType(
    {
        "A": "エー",
        "B": "ビー",
        "C": "シー",
        "D": "ディー",
        "E": "イー",
        "F": "エフ",
        "G": "ジー",
        "H": "エイチ",
        "I": "アイ",
        "J": "ジェー",
        "K": "ケー",
        "L": "エル",
        "M": "エム",
        "N": "エヌ",
        "O": "オー",
        "P": "ピー",
        "Q": "キュー",
        "R": "アール",
        "S": "エス",
        "T": "ティー",
        "U": "ユー",
        "V": "ブイ",
        "W": "ダブリュー",
        "X": "エックス",
        "Y": "ワイ",
        "Z": "ゼット",
    }
)

# Dictionary readings spell English the way it is written, not the way
# shiritori players say it. Each rule targets a different final kana.
_NATURALIZATION_RULES: tuple[tuple[re.Pattern[str], str], ...] = (
    # トゥ/ドゥ at the end is heard as ト/ド ("two", "do")
    (re.compile("(?<=[トド])ゥ$"), ""),
    # ティ/ディ at the end is a long vowel ("city", "body")
    (re.compile("(?<=[テデ])ィ$"), "ィー"),
    # e-glide ("play", "today")
    (re.compile("(?<=[エケセテネヘメレゲゼデベペ])イ$"), "ー"),
    # o-glide ("show", "snow")
    (re.compile("(?<=[オコソトノホモロヨゴゾドボポョ])ウ$"), "ー"),
)

_ALL_KATAKANA_PATTERN = re.compile("^[ァ-ヶ]+$")
# Half-width katakana including the prolonged sound mark and (han)dakuten.
_ALL_HALFWIDTH_PATTERN = re.compile("^[ｦ-ﾟ]+$")
_ALL_LATIN_PATTERN = re.compile("^[A-Za-z]+$")


@dataclass(frozen=True, slots=True)
class EffectiveReading:
    head: str
    last: str

    def to_payload(self) -> dict[str, object]:
        return {"readable": True, "head": self.head, "last": self.last}


@dataclass(frozen=True, slots=True)
class _Edge:
    """Which end of a token a resolver looks at."""

    name: str
    kana_in: Callable[[str], str | None]
    index: int

    def char_of(self, text: str) -> str:
        return text[self.index]


HEAD = _Edge(name="head", kana_in=first_kana, index=0)
LAST = _Edge(name="last", kana_in=last_kana, index=-1)

Resolver = Callable[[Token, _Edge], "str | None"]


def naturalize_english_reading(reading: str) -> str:
    for pattern, replacement in _NATURALIZATION_RULES:
        reading = pattern.sub(replacement, reading)
    return reading


def resolve_katakana_surface(token: Token, edge: _Edge) -> str | None:
    if _ALL_KATAKANA_PATTERN.match(token.surface):
        return edge.char_of(token.surface)
    return None


def resolve_halfwidth_surface(token: Token, edge: _Edge) -> str | None:
    if _ALL_HALFWIDTH_PATTERN.match(token.surface):
        return edge.kana_in(token.surface)
    return None


def resolve_token_reading(token: Token, edge: _Edge) -> str | None:
    if token.reading:
        return edge.kana_in(token.reading)
    return None


def resolve_embedded_kana(token: Token, edge: _Edge) -> str | None:
    return edge.kana_in(token.surface)


class LatinWordResolver:
    """Read an all-Latin surface via the English dictionary, or spell out a letter."""

    def __init__(self, reading_dict: Mapping[str, str]) -> None:
        self._reading_dict = reading_dict

    def __call__(self, token: Token, edge: _Edge) -> str | None:
        word = unicodedata.normalize("NFKC", token.surface)
        if not _ALL_LATIN_PATTERN.match(word):
            return None
        upper = word.upper()
        reading = self._reading_dict.get(upper)
        if reading:
            kana = edge.kana_in(naturalize_english_reading(reading))
            if kana:
                return kana
        letter_reading = ALPHABET_READINGS.get(edge.char_of(upper))
        if letter_reading:
            return edge.kana_in(letter_reading)
        return None


class ReadingExtractor:
    """
    Derive the head and last kana of a post.

    The text is normalized and tokenized, then every token is offered to the
    resolvers in order until one yields a kana. The head is searched from the
    left and the last kana from the right, never past the head token.
    """

    def __init__(
        self,
        tokenizer: Tokenizer,
        *,
        reading_dict: Mapping[str, str] | None = None,
        replace_rules: Iterable[ReplaceRule] = (),
    ) -> None:
        self._tokenizer = tokenizer
        self._normalizer = TextNormalizer(replace_rules)
        self._reading_dict = MappingProxyType(dict(reading_dict or {}))
        self.resolvers: tuple[Resolver, ...] = (
            resolve_katakana_surface,
            resolve_halfwidth_surface,
            resolve_token_reading,
            LatinWordResolver(self._reading_dict),
            resolve_embedded_kana,
        )

    @property
    def tokenizer(self) -> Tokenizer:
        return self._tokenizer

    def normalize(self, text: str) -> str:
        return self._normalizer(text)

    def tokenize(self, text: str) -> list[Token]:
        return list(self._tokenizer.tokenize(self.normalize(text)))

    def resolve(self, token: Token, edge: _Edge) -> str | None:
        for resolver in self.resolvers:
            kana = resolver(token, edge)
            if kana:
                return kana
        return None

    def head_and_last_of_tokens(self, tokens: Sequence[Token]) -> EffectiveReading | None:
        head: str | None = None
        head_index = len(tokens)
        for idx, token in enumerate(tokens):
            head = self.resolve(token, HEAD)
            if head:
                head_index = idx
                break
        if not head:
            return None
        for idx in range(len(tokens) - 1, head_index - 1, -1):
            last = self.resolve(tokens[idx], LAST)
            if last:
                return EffectiveReading(head=head, last=last)
        return None

    def effective_head_and_last(self, text: str) -> EffectiveReading | None:
        """Return the head/last kana of ``text`` or ``None`` when it is unreadable."""
        return self.head_and_last_of_tokens(self.tokenize(text))


def build_reading_extractor(
    config: ShiritoriConfig | None = None,
    tokenizer: Tokenizer | None = None,
) -> ReadingExtractor:
    """
    Load the dictionaries named by ``config`` and wire up a tokenizer.

    Dictionary problems raise ``DictionaryLoadError`` here, before anything
    is served.
    """
    reading_sources = config.reading_dict_paths if config and config.reading_dict_paths else None
    replace_source = config.replace_dict_path if config else None
    reading_dict = load_reading_dictionary(reading_sources)
    replace_rules = load_replace_dictionary(replace_source)
    if tokenizer is None:
        from .nlp import FugashiTokenizer

        tokenizer = FugashiTokenizer()
    return ReadingExtractor(tokenizer, reading_dict=reading_dict, replace_rules=replace_rules)
