from __future__ import annotations

import re
import shlex
import unicodedata
import warnings
from typing import Any, Callable

from .kana import hiragana_to_katakana
from .tokens import Token
from .tools import get_unidic_dicdir

__all__ = [
    "FugashiTokenizer",
    "NLPBackendUnavailableError",
]

# UniDic feature names that carry a reading, most specific first.
_READING_FEATURES = ("kana", "reading", "reading_form", "pron", "pronunciation")
_UNKNOWN_FEATURE = "*"

_CJK_RANGES = (
    (0x3400, 0x4DBF),
    (0x4E00, 0x9FFF),
    (0xF900, 0xFAFF),
    (0x20000, 0x2A6DF),
)
_CJK_PATTERN = re.compile(
    "[" + "".join(f"{chr(first)}-{chr(last)}" for first, last in _CJK_RANGES) + "々〆ヵヶ]"
)


class NLPBackendUnavailableError(RuntimeError):
    """Raised when the MeCab/UniDic tokenizer backend cannot be initialized."""


def _katakana_reading(value: str) -> str:
    return hiragana_to_katakana(unicodedata.normalize("NFKC", value))


def _feature_value(feature: Any, name: str) -> str | None:
    value = getattr(feature, name, None)
    if value is None and isinstance(feature, dict):
        value = feature.get(name)
    if not value or value == _UNKNOWN_FEATURE:
        return None
    return str(value)


def _node_reading(node: Any) -> str | None:
    feature = getattr(node, "feature", None)
    if feature is None:
        return None
    for name in _READING_FEATURES:
        value = _feature_value(feature, name)
        if value:
            return _katakana_reading(value)
    return None


def _load_tagger():
    try:
        import fugashi  # type: ignore
    except ImportError as exc:
        raise NLPBackendUnavailableError(
            "Reading extraction requires 'fugashi' (MeCab) to be installed."
        ) from exc

    dicdir = get_unidic_dicdir()
    if dicdir is None:
        warnings.warn(
            "UniDic not found; run 'shiritori tools install-unidic'. Using MeCab's default dictionary.",
            RuntimeWarning,
            stacklevel=3,
        )
        try:
            return fugashi.Tagger()
        except RuntimeError as exc:
            raise NLPBackendUnavailableError(f"MeCab could not start: {exc}") from exc

    wrapper = getattr(getattr(fugashi, "fugashi", fugashi), "UnidicFeatures29", None)
    tagger_args = [f"-d {shlex.quote(str(dicdir))}"]
    if wrapper is not None:
        tagger_args.append(wrapper)
    try:
        return fugashi.GenericTagger(*tagger_args)
    except RuntimeError as exc:
        raise NLPBackendUnavailableError(f"UniDic at '{dicdir}' could not be loaded: {exc}") from exc


def _load_kakasi() -> Callable[[str], str]:
    try:
        import pykakasi  # type: ignore
    except ImportError as exc:
        raise NLPBackendUnavailableError(
            "Reading extraction requires 'pykakasi' for kanji MeCab cannot read."
        ) from exc

    converter = pykakasi.kakasi()

    def _to_katakana(text: str) -> str:
        kana = "".join(item.get("kana", "") for item in converter.convert(text))
        # kakasi echoes kanji it does not know
        if _CJK_PATTERN.search(kana):
            return ""
        return _katakana_reading(kana)

    return _to_katakana


class FugashiTokenizer:
    """
    Tokenizer backed by fugashi (MeCab) with UniDic.

    Kanji that UniDic leaves without a reading are read with pykakasi.
    """

    def __init__(self) -> None:
        self._tagger = _load_tagger()
        self._kakasi_converter: Callable[[str], str] | None = _load_kakasi()

    def tokenize(self, text: str) -> list[Token]:
        if not text:
            return []
        tokens: list[Token] = []
        for node in self._tagger(text):
            if not node.surface:
                continue
            reading = _node_reading(node)
            if not reading and self._kakasi_converter is not None and _CJK_PATTERN.search(node.surface):
                reading = self._kakasi_converter(node.surface)
            tokens.append(Token(surface=node.surface, reading=reading or None))
        return tokens
