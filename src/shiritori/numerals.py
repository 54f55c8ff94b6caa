from __future__ import annotations

import unicodedata
from types import MappingProxyType
from typing import Mapping

__all__ = [
    "ALT_ZERO_READING",
    "MINUS_READING",
    "POINT_READING",
    "ZERO_READING",
    "get_number_reading",
    "literal_reading",
]

ZERO_READING = "ゼロ"
ALT_ZERO_READING = "レイ"
POINT_READING = "テン"
MINUS_READING = "マイナス"

_MAX_INTEGER_DIGITS = 16
_CHUNK_SIZE = 4

BASIC_DIGIT_READINGS: Mapping[str, str] = MappingProxyType(
    {
        "0": ZERO_READING,
        "1": "イチ",
        "2": "ニ",
        "3": "サン",
        "4": "ヨン",
        "5": "ゴ",
        "6": "ロク",
        "7": "ナナ",
        "8": "ハチ",
        "9": "キュウ",
        ".": POINT_READING,
    }
)

# Place inside a four-digit chunk, counted from the most significant digit.
_THOUSANDS = 0
_HUNDREDS = 1
_TENS = 2

_PLACE_SUFFIXES: Mapping[int, str] = MappingProxyType(
    {
        _THOUSANDS: "セン",
        _HUNDREDS: "ヒャク",
        _TENS: "ジュウ",
    }
)

# Lexicalized forms that replace "digit + place suffix".
IRREGULAR_PLACE_READINGS: Mapping[tuple[str, int], str] = MappingProxyType(
    {
        ("1", _THOUSANDS): "セン",
        ("1", _HUNDREDS): "ヒャク",
        ("1", _TENS): "ジュウ",
        ("3", _THOUSANDS): "サンゼン",
        ("3", _HUNDREDS): "サンビャク",
        ("6", _HUNDREDS): "ロッピャク",
        ("8", _THOUSANDS): "ハッセン",
        ("8", _HUNDREDS): "ハッピャク",
    }
)

# Scale suffix per chunk, keyed by chunk position (1 = lowest chunk).
_CHUNK_SCALES: Mapping[int, str] = MappingProxyType(
    {
        4: "チョウ",
        3: "オク",
        2: "マン",
    }
)

_NASAL_CONTRACTIONS = (
    ("イチ", "イッ"),
    ("ハチ", "ハッ"),
    ("ジュウ", "ジッ"),
)


def literal_reading(numeral: str) -> str:
    """Read every digit (and decimal point) on its own."""
    return "".join(BASIC_DIGIT_READINGS.get(ch, "") for ch in numeral)


def _chunk_reading(chunk: str) -> str:
    pieces: list[str] = []
    bias = _CHUNK_SIZE - len(chunk)
    for idx, digit in enumerate(chunk):
        if digit == "0":
            continue
        place = idx + bias
        irregular = IRREGULAR_PLACE_READINGS.get((digit, place))
        if irregular:
            pieces.append(irregular)
            continue
        pieces.append(BASIC_DIGIT_READINGS[digit])
        suffix = _PLACE_SUFFIXES.get(place)
        if suffix:
            pieces.append(suffix)
    return "".join(pieces)


def _apply_nasal_contraction(reading: str) -> str:
    for ending, contracted in _NASAL_CONTRACTIONS:
        if reading.endswith(ending):
            return reading[: -len(ending)] + contracted
    return reading


def _integer_reading(integer: str) -> str:
    if not integer:
        return ""
    if integer == "0":
        return ZERO_READING
    reading = ""
    length = len(integer)
    for position in range(4, 0, -1):
        if length <= _CHUNK_SIZE * (position - 1):
            continue
        start = max(length - _CHUNK_SIZE * position, 0)
        end = length - _CHUNK_SIZE * (position - 1)
        chunk_reading = _chunk_reading(integer[start:end])
        if not chunk_reading:
            continue
        reading += chunk_reading
        if position == 4:
            reading = _apply_nasal_contraction(reading)
        reading += _CHUNK_SCALES.get(position, "")
    return reading


def _unsigned_reading(numeral: str) -> str:
    parts = numeral.split(".")
    if len(parts) >= 3:
        return literal_reading(numeral)
    integer = parts[0]
    if (len(integer) >= 2 and integer[0] == "0") or len(integer) > _MAX_INTEGER_DIGITS:
        return literal_reading(numeral)

    reading = _integer_reading(integer)
    # "1." reads as "1": an empty fractional part drops the point.
    if len(parts) == 2 and parts[1]:
        if reading == ZERO_READING:
            reading = ALT_ZERO_READING
        reading = _apply_nasal_contraction(reading)
        reading += POINT_READING + literal_reading(parts[1])
    return reading


def get_number_reading(numeral: str) -> str:
    """
    Convert a decimal numeral such as ``"-1,234.56"`` to its katakana reading.

    Full-width digits are folded with NFKC and grouping commas are dropped
    before reading. A leading ``-`` is read as マイナス.
    """
    text = unicodedata.normalize("NFKC", numeral).replace(",", "")
    negative = text.startswith("-")
    if negative:
        text = text[1:]
    reading = _unsigned_reading(text)
    if negative and reading:
        return MINUS_READING + reading
    return reading
