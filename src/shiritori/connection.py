from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

__all__ = ["ALLOWED_CONNECTIONS", "is_connected"]

# prev last kana -> head kana it also accepts besides itself.
# Voiced and small kana may be followed by their plain/full-size form,
# never the other way round.
ALLOWED_CONNECTIONS: Mapping[str, frozenset[str]] = MappingProxyType(
    {
        "ァ": frozenset("ア"),
        "ィ": frozenset("イ"),
        "ゥ": frozenset("ウ"),
        "ェ": frozenset("エ"),
        "ォ": frozenset("オ"),
        "ガ": frozenset("カ"),
        "ギ": frozenset("キ"),
        "グ": frozenset("ク"),
        "ゲ": frozenset("ケ"),
        "ゴ": frozenset("コ"),
        "ザ": frozenset("サ"),
        "ジ": frozenset("シ"),
        "ズ": frozenset("ス"),
        "ゼ": frozenset("セ"),
        "ゾ": frozenset("ソ"),
        "ダ": frozenset("タ"),
        "ヂ": frozenset("チ"),
        "ッ": frozenset("ツ"),
        "ヅ": frozenset("ツ"),
        "デ": frozenset("テ"),
        "ド": frozenset("ト"),
        "バ": frozenset("ハ"),
        "パ": frozenset("ハ"),
        "ビ": frozenset("ヒ"),
        "ピ": frozenset("ヒ"),
        "ブ": frozenset("フ"),
        "プ": frozenset("フ"),
        "ベ": frozenset("ヘ"),
        "ペ": frozenset("ヘ"),
        "ボ": frozenset("ホ"),
        "ポ": frozenset("ホ"),
        "ャ": frozenset("ヤ"),
        "ュ": frozenset("ユ"),
        "ョ": frozenset("ヨ"),
        "ヮ": frozenset("ワ"),
        "ヰ": frozenset("イ"),
        "ヱ": frozenset("エ"),
        "ヲ": frozenset("オ"),
        "ヴ": frozenset("ウブ"),
        "ヵ": frozenset("カ"),
        "ヶ": frozenset("ケ"),
    }
)


def is_connected(prev_last: str, curr_head: str) -> bool:
    """Both arguments must already be canonical (full-width katakana)."""
    if prev_last == curr_head:
        return True
    return curr_head in ALLOWED_CONNECTIONS.get(prev_last, frozenset())
