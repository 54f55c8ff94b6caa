from __future__ import annotations

import warnings
from dataclasses import dataclass

import pytest

from shiritori.nlp import FugashiTokenizer, NLPBackendUnavailableError
from shiritori.tokens import Token, serialize_tokens


@dataclass
class _Feature:
    kana: str | None = None
    reading: str | None = None
    reading_form: str | None = None
    pron: str | None = None
    pronunciation: str | None = None


@dataclass
class _Node:
    surface: str
    feature: _Feature


def _tokenizer_with(nodes: list[_Node], kakasi=None) -> FugashiTokenizer:
    tokenizer = FugashiTokenizer.__new__(FugashiTokenizer)
    tokenizer._tagger = lambda text: nodes
    tokenizer._kakasi_converter = kakasi
    return tokenizer


def test_reading_comes_from_first_usable_feature() -> None:
    tokenizer = _tokenizer_with(
        [
            _Node("東京", _Feature(kana="とうきょう")),
            _Node("へ", _Feature(kana="*", pron="エ")),
            _Node("", _Feature(kana="ム")),
        ]
    )
    assert tokenizer.tokenize("東京へ") == [
        Token(surface="東京", reading="トウキョウ"),
        Token(surface="へ", reading="エ"),
    ]


def test_kakasi_fills_missing_kanji_readings() -> None:
    tokenizer = _tokenizer_with(
        [_Node("魑魅", _Feature()), _Node("!", _Feature())],
        kakasi=lambda text: "チミ",
    )
    assert tokenizer.tokenize("魑魅!") == [
        Token(surface="魑魅", reading="チミ"),
        Token(surface="!", reading=None),
    ]


def test_empty_text_has_no_tokens() -> None:
    assert _tokenizer_with([_Node("x", _Feature())]).tokenize("") == []


def test_serialize_tokens() -> None:
    payload = serialize_tokens([Token("猫", "ネコ"), Token("!")])
    assert payload == [
        {"surface": "猫", "reading": "ネコ"},
        {"surface": "!", "reading": None},
    ]


def test_fugashi_backend_reads_japanese() -> None:
    pytest.importorskip("fugashi")
    pytest.importorskip("pykakasi")
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", RuntimeWarning)
        try:
            tokenizer = FugashiTokenizer()
        except NLPBackendUnavailableError as exc:
            pytest.skip(str(exc))
    tokens = tokenizer.tokenize("猫が好き")
    assert tokens
    assert tokens[0].surface == "猫"
    assert tokens[0].reading == "ネコ"
