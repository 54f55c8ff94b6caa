from __future__ import annotations

import pytest

from shiritori.connection import ALLOWED_CONNECTIONS, is_connected


def test_every_kana_connects_to_itself() -> None:
    for code in range(0x30A1, 0x30F7):
        kana = chr(code)
        assert is_connected(kana, kana)


def test_connection_is_not_symmetric() -> None:
    assert is_connected("ガ", "カ")
    assert not is_connected("カ", "ガ")


@pytest.mark.parametrize(
    ("prev_last", "curr_head"),
    [
        ("ャ", "ヤ"),
        ("ョ", "ヨ"),
        ("ッ", "ツ"),
        ("ヴ", "ウ"),
        ("ヴ", "ブ"),
        ("パ", "ハ"),
        ("ヲ", "オ"),
    ],
)
def test_allowed_successors(prev_last: str, curr_head: str) -> None:
    assert is_connected(prev_last, curr_head)


def test_unrelated_kana_do_not_connect() -> None:
    assert not is_connected("ク", "サ")
    assert not is_connected("ツ", "ッ")
    assert not is_connected("ヤ", "ャ")


def test_table_is_read_only() -> None:
    with pytest.raises(TypeError):
        ALLOWED_CONNECTIONS["カ"] = frozenset("ガ")  # type: ignore[index]
