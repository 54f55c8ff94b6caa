from __future__ import annotations

import pytest

from shiritori.kana import (
    canonicalize,
    canonicalize_at,
    first_kana,
    hiragana_to_katakana,
    is_halfwidth_katakana,
    is_kana,
    last_kana,
)


@pytest.mark.parametrize("variant", ["あ", "ア", "ｱ"])
def test_variants_share_canonical_form(variant: str) -> None:
    assert canonicalize(variant) == "ア"


def test_canonicalize_is_idempotent() -> None:
    for ch in "アガパヴッャヲン":
        canonical = canonicalize(ch)
        assert canonical == ch
        assert canonicalize(canonical) == canonical


def test_halfwidth_voiced_marks_fold_into_previous_kana() -> None:
    assert canonicalize("ｶ", "ﾞ") == "ガ"
    assert canonicalize("ﾊ", "ﾟ") == "パ"
    assert canonicalize("ｳ", "ﾞ") == "ヴ"
    # full-width marks after half-width kana are honored too
    assert canonicalize("ﾀ", "゛") == "ダ"


def test_mark_without_voiced_form_is_ignored() -> None:
    assert canonicalize("ｱ", "ﾞ") == "ア"
    assert canonicalize("ｶ", "ﾟ") == "カ"


def test_non_kana_is_not_canonicalized() -> None:
    for ch in ["A", "漢", "ー", "ﾞ", "ｰ", "!", ""]:
        assert canonicalize(ch) is None


def test_halfwidth_range_excludes_prolonged_sound_mark() -> None:
    assert is_halfwidth_katakana("ｦ")
    assert is_halfwidth_katakana("ﾝ")
    assert not is_halfwidth_katakana("ｰ")
    assert not is_halfwidth_katakana("ﾞ")


def test_is_kana_covers_all_scripts() -> None:
    assert is_kana("ぁ")
    assert is_kana("ヶ")
    assert is_kana("ｯ")
    assert not is_kana("ー")


def test_canonicalize_at_looks_ahead_one_character() -> None:
    assert canonicalize_at("ﾊﾟﾝ", 0) == "パ"
    assert canonicalize_at("ﾊﾟﾝ", 2) == "ン"
    assert canonicalize_at("ﾊﾟﾝ", 5) is None


def test_first_and_last_kana_skip_other_characters() -> None:
    assert first_kana("2024年、さくら!") == "サ"
    assert last_kana("ﾗｰﾒﾝ!!") == "ン"
    assert last_kana("ｼﾞｭｰｽﾞ") == "ズ"
    assert first_kana("漢字") is None
    assert last_kana("") is None


def test_hiragana_to_katakana_keeps_other_text() -> None:
    assert hiragana_to_katakana("ひらがなとABC") == "ヒラガナトABC"
    assert hiragana_to_katakana("ゝゞ") == "ヽヾ"
