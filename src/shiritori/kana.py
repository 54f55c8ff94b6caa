from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

__all__ = [
    "canonicalize",
    "canonicalize_at",
    "first_kana",
    "hiragana_to_katakana",
    "is_fullwidth_katakana",
    "is_halfwidth_katakana",
    "is_hiragana",
    "is_kana",
    "last_kana",
]

_HIRAGANA_TO_KATAKANA_OFFSET = 0x60

HALFWIDTH_TO_FULLWIDTH: Mapping[str, str] = MappingProxyType(
    {
        "ｦ": "ヲ",
        "ｧ": "ァ",
        "ｨ": "ィ",
        "ｩ": "ゥ",
        "ｪ": "ェ",
        "ｫ": "ォ",
        "ｬ": "ャ",
        "ｭ": "ュ",
        "ｮ": "ョ",
        "ｯ": "ッ",
        "ｱ": "ア",
        "ｲ": "イ",
        "ｳ": "ウ",
        "ｴ": "エ",
        "ｵ": "オ",
        "ｶ": "カ",
        "ｷ": "キ",
        "ｸ": "ク",
        "ｹ": "ケ",
        "ｺ": "コ",
        "ｻ": "サ",
        "ｼ": "シ",
        "ｽ": "ス",
        "ｾ": "セ",
        "ｿ": "ソ",
        "ﾀ": "タ",
        "ﾁ": "チ",
        "ﾂ": "ツ",
        "ﾃ": "テ",
        "ﾄ": "ト",
        "ﾅ": "ナ",
        "ﾆ": "ニ",
        "ﾇ": "ヌ",
        "ﾈ": "ネ",
        "ﾉ": "ノ",
        "ﾊ": "ハ",
        "ﾋ": "ヒ",
        "ﾌ": "フ",
        "ﾍ": "ヘ",
        "ﾎ": "ホ",
        "ﾏ": "マ",
        "ﾐ": "ミ",
        "ﾑ": "ム",
        "ﾒ": "メ",
        "ﾓ": "モ",
        "ﾔ": "ヤ",
        "ﾕ": "ユ",
        "ﾖ": "ヨ",
        "ﾗ": "ラ",
        "ﾘ": "リ",
        "ﾙ": "ル",
        "ﾚ": "レ",
        "ﾛ": "ロ",
        "ﾜ": "ワ",
        "ﾝ": "ン",
    }
)

# Voiced (dakuon) forms reachable from a half-width kana followed by a dakuten.
HALFWIDTH_VOICED: Mapping[str, str] = MappingProxyType(
    {
        "ｶ": "ガ",
        "ｷ": "ギ",
        "ｸ": "グ",
        "ｹ": "ゲ",
        "ｺ": "ゴ",
        "ｻ": "ザ",
        "ｼ": "ジ",
        "ｽ": "ズ",
        "ｾ": "ゼ",
        "ｿ": "ゾ",
        "ﾀ": "ダ",
        "ﾁ": "ヂ",
        "ﾂ": "ヅ",
        "ﾃ": "デ",
        "ﾄ": "ド",
        "ﾊ": "バ",
        "ﾋ": "ビ",
        "ﾌ": "ブ",
        "ﾍ": "ベ",
        "ﾎ": "ボ",
        "ｳ": "ヴ",
    }
)

HALFWIDTH_SEMI_VOICED: Mapping[str, str] = MappingProxyType(
    {
        "ﾊ": "パ",
        "ﾋ": "ピ",
        "ﾌ": "プ",
        "ﾍ": "ペ",
        "ﾎ": "ポ",
    }
)

_DAKUTEN_MARKS = frozenset({"ﾞ", "゛"})
_HANDAKUTEN_MARKS = frozenset({"ﾟ", "゜"})


# [ぁ-ゖ]
def is_hiragana(ch: str) -> bool:
    return len(ch) == 1 and 0x3041 <= ord(ch) <= 0x3096


# [ァ-ヶ]
def is_fullwidth_katakana(ch: str) -> bool:
    return len(ch) == 1 and 0x30A1 <= ord(ch) <= 0x30F6


# [ｦ-ｯｱ-ﾝ], i.e. half-width katakana without the prolonged sound mark
def is_halfwidth_katakana(ch: str) -> bool:
    if len(ch) != 1:
        return False
    code = ord(ch)
    return 0xFF66 <= code <= 0xFF6F or 0xFF71 <= code <= 0xFF9D


def is_kana(ch: str) -> bool:
    return is_hiragana(ch) or is_fullwidth_katakana(ch) or is_halfwidth_katakana(ch)


def canonicalize(ch: str, next_ch: str | None = None) -> str | None:
    """
    Return the full-width katakana form of ``ch`` or ``None`` when ``ch`` is not kana.

    A half-width kana followed by a (han)dakuten mark is folded into its
    voiced/semi-voiced form when one exists; otherwise the mark is ignored.
    """
    if is_fullwidth_katakana(ch):
        return ch
    if is_hiragana(ch):
        return chr(ord(ch) + _HIRAGANA_TO_KATAKANA_OFFSET)
    if is_halfwidth_katakana(ch):
        if next_ch in _DAKUTEN_MARKS:
            voiced = HALFWIDTH_VOICED.get(ch)
            if voiced:
                return voiced
        elif next_ch in _HANDAKUTEN_MARKS:
            semi_voiced = HALFWIDTH_SEMI_VOICED.get(ch)
            if semi_voiced:
                return semi_voiced
        return HALFWIDTH_TO_FULLWIDTH.get(ch)
    return None


def canonicalize_at(text: str, index: int) -> str | None:
    if index < 0 or index >= len(text):
        return None
    next_ch = text[index + 1] if index + 1 < len(text) else None
    return canonicalize(text[index], next_ch)


def first_kana(text: str) -> str | None:
    for idx, ch in enumerate(text):
        if is_kana(ch):
            return canonicalize_at(text, idx)
    return None


def last_kana(text: str) -> str | None:
    for idx in range(len(text) - 1, -1, -1):
        if is_kana(text[idx]):
            return canonicalize_at(text, idx)
    return None


def hiragana_to_katakana(text: str) -> str:
    result = []
    for ch in text:
        if is_hiragana(ch):
            result.append(chr(ord(ch) + _HIRAGANA_TO_KATAKANA_OFFSET))
        elif ch == "ゝ":
            result.append("ヽ")
        elif ch == "ゞ":
            result.append("ヾ")
        else:
            result.append(ch)
    return "".join(result)
