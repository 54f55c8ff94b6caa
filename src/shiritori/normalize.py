from __future__ import annotations

import re
from typing import Iterable

from .dictionaries import ReplaceRule
from .numerals import get_number_reading

__all__ = [
    "TextNormalizer",
    "apply_replace_rules",
    "collapse_spaces",
    "normalize_text",
    "remove_emoji",
    "remove_identifiers",
    "remove_shortcodes",
    "remove_urls",
    "replace_numerals",
    "trim_trailing_period",
]

# Unicode space separators (Zs) plus the line/page/control breaks posts carry.
_SPACE_RANGES = (
    (0x09, 0x0D),
    (0x20, 0x20),
    (0x85, 0x85),
    (0xA0, 0xA0),
    (0x1680, 0x1680),
    (0x2000, 0x200A),
    (0x2028, 0x2029),
    (0x202F, 0x202F),
    (0x205F, 0x205F),
    (0x3000, 0x3000),
    (0xFEFF, 0xFEFF),
)

_EMOJI_RANGES = (
    (0x1F000, 0x1FAFF),  # mahjong tiles through pictographs extended-A
    (0x2600, 0x27BF),  # miscellaneous symbols, dingbats
    (0x2B05, 0x2B07),
    (0x2B1B, 0x2B1C),
    (0x2B50, 0x2B50),
    (0x2B55, 0x2B55),
    (0x231A, 0x231B),
    (0x2328, 0x2328),
    (0x23CF, 0x23CF),
    (0x23E9, 0x23F3),
    (0x23F8, 0x23FA),
    (0x2934, 0x2935),
    (0x25AA, 0x25AB),
    (0x25B6, 0x25B6),
    (0x25C0, 0x25C0),
    (0x25FB, 0x25FE),
    (0x00A9, 0x00A9),
    (0x00AE, 0x00AE),
    (0x203C, 0x203C),
    (0x2049, 0x2049),
    (0x2122, 0x2122),
    (0x2139, 0x2139),
    (0x2194, 0x2199),
    (0x21A9, 0x21AA),
    (0x3297, 0x3297),
    (0x3299, 0x3299),
    (0xE0020, 0xE007F),  # tag sequences (subdivision flags)
    (0x200D, 0x200D),  # zero width joiner
    (0xFE0E, 0xFE0F),  # variation selectors
)

_VARIATION_SELECTOR = chr(0xFE0F)
_COMBINING_KEYCAP = chr(0x20E3)


def _char_class(ranges: Iterable[tuple[int, int]]) -> str:
    parts = []
    for first, last in ranges:
        if first == last:
            parts.append(re.escape(chr(first)))
        else:
            parts.append(f"{re.escape(chr(first))}-{re.escape(chr(last))}")
    return "[" + "".join(parts) + "]"


_SPACES_PATTERN = re.compile(_char_class(_SPACE_RANGES) + "+")
_KEYCAP_PATTERN = re.compile(f"[0-9#*]{_VARIATION_SELECTOR}?{_COMBINING_KEYCAP}")
_EMOJI_PATTERN = re.compile(_char_class(_EMOJI_RANGES) + "+")

_URL_PATTERN = re.compile(r"(?:https?|wss?)://[!-~]+", re.IGNORECASE)

# NIP-19 entities (npub1..., note1..., nevent1...), optionally behind a "nostr:" scheme.
_IDENTIFIER_PATTERN = re.compile(
    r"(?:nostr:)?(?:npub|nsec|note|nprofile|nevent|naddr|nrelay)1[02-9ac-hj-np-z]+",
    re.IGNORECASE,
)

# Needs a letter or underscore, so clock times ("12:30:45") are left alone.
_SHORTCODE_PATTERN = re.compile(r":[0-9]*[A-Za-z_][A-Za-z0-9_]*:")

# A sign only counts when it does not hang off a word ("A-1" keeps its hyphen).
# A dot belongs to the numeral only when a digit follows it.
_NUMERAL_PATTERN = re.compile(
    r"(?:(?<![0-9A-Za-z０-９])-)?[0-9０-９][0-9０-９,]*(?:\.[0-9０-９]+)*"
)


def collapse_spaces(text: str) -> str:
    return _SPACES_PATTERN.sub(" ", text)


def remove_emoji(text: str) -> str:
    return _EMOJI_PATTERN.sub("", _KEYCAP_PATTERN.sub("", text))


def remove_urls(text: str) -> str:
    return _URL_PATTERN.sub("", text)


def remove_identifiers(text: str) -> str:
    return _IDENTIFIER_PATTERN.sub("", text)


def remove_shortcodes(text: str) -> str:
    return _SHORTCODE_PATTERN.sub("", text)


def replace_numerals(text: str) -> str:
    return _NUMERAL_PATTERN.sub(lambda match: get_number_reading(match.group(0)), text)


def trim_trailing_period(text: str) -> str:
    # MeCab glues a sentence-final period onto the previous token ("punk." -> "pun", "k.").
    text = text.rstrip(" ")
    if text.endswith("."):
        return text[:-1]
    return text


def apply_replace_rules(text: str, rules: Iterable[ReplaceRule]) -> str:
    for rule in rules:
        text = rule.apply(text)
    return text


def normalize_text(text: str, rules: Iterable[ReplaceRule] = ()) -> str:
    """
    Strip noise from a post before tokenization.

    The order matters: URLs, identifiers and shortcodes go first so their
    digits are not read as numbers, and numerals are spelled out before the
    replace dictionary runs so its patterns can see the readings.
    """
    text = collapse_spaces(text)
    text = remove_emoji(text)
    text = remove_urls(text)
    text = remove_identifiers(text)
    text = remove_shortcodes(text)
    text = replace_numerals(text)
    text = trim_trailing_period(text)
    return apply_replace_rules(text, rules)


class TextNormalizer:
    """Text normalizer bound to a loaded replace dictionary."""

    def __init__(self, rules: Iterable[ReplaceRule] = ()) -> None:
        self._rules = tuple(rules)

    @property
    def rules(self) -> tuple[ReplaceRule, ...]:
        return self._rules

    def __call__(self, text: str) -> str:
        return normalize_text(text, self._rules)
