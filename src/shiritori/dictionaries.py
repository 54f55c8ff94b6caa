from __future__ import annotations

import re
from dataclasses import dataclass
from importlib import resources
from pathlib import Path
from types import MappingProxyType
from typing import TYPE_CHECKING, Iterable, Mapping, Sequence

__all__ = [
    "DictionaryLoadError",
    "ReplaceRule",
    "default_reading_dictionary_sources",
    "default_replace_dictionary_source",
    "load_reading_dictionary",
    "load_replace_dictionary",
]

DEFAULT_READING_DICTS = ("reading.dic", "custom.dic")
DEFAULT_REPLACE_DICT = "replace.dic"

if TYPE_CHECKING:
    from importlib.abc import Traversable

    DictionarySource = Path | Traversable


class DictionaryLoadError(RuntimeError):
    """Raised when a reading or replace dictionary cannot be loaded."""


@dataclass(frozen=True, slots=True)
class ReplaceRule:
    pattern: re.Pattern[str]
    replacement: str

    def apply(self, text: str) -> str:
        return self.pattern.sub(lambda _match: self.replacement, text)


def _data_file(name: str):
    return resources.files("shiritori").joinpath("data").joinpath(name)


def default_reading_dictionary_sources() -> list[DictionarySource]:
    return [_data_file(name) for name in DEFAULT_READING_DICTS]


def default_replace_dictionary_source() -> DictionarySource:
    return _data_file(DEFAULT_REPLACE_DICT)


def _read_entries(source: DictionarySource) -> Iterable[tuple[int, str, str]]:
    try:
        text = source.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise DictionaryLoadError(f"Failed to read dictionary file '{source}': {exc}") from exc
    for lineno, line in enumerate(text.splitlines(), start=1):
        if not line or line.startswith("#"):
            continue
        fields = line.split(" ")
        if len(fields) < 2 or not fields[0] or not fields[1]:
            continue
        yield lineno, fields[0], fields[1]


def load_reading_dictionary(sources: Sequence[DictionarySource] | None = None) -> Mapping[str, str]:
    """
    Load ``WORD READING`` dictionaries into a read-only uppercase-keyed map.

    Later sources override earlier ones so a custom dictionary can patch the
    general English one.
    """
    if sources is None:
        sources = default_reading_dictionary_sources()
    entries: dict[str, str] = {}
    for source in sources:
        for _lineno, word, reading in _read_entries(source):
            entries[word.upper()] = reading
    return MappingProxyType(entries)


def load_replace_dictionary(source: DictionarySource | None = None) -> tuple[ReplaceRule, ...]:
    """Load ordered ``PATTERN REPLACEMENT`` rules, matched case-insensitively on word boundaries."""
    if source is None:
        source = default_replace_dictionary_source()
    rules: list[ReplaceRule] = []
    for lineno, pattern, replacement in _read_entries(source):
        try:
            compiled = re.compile(rf"\b(?:{pattern})\b", re.IGNORECASE)
        except re.error as exc:
            raise DictionaryLoadError(
                f"Invalid pattern '{pattern}' at {source}:{lineno}: {exc}"
            ) from exc
        rules.append(ReplaceRule(pattern=compiled, replacement=replacement))
    return tuple(rules)
