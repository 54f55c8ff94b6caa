from __future__ import annotations

import threading

import pytest

from shiritori.judge import Judge, Judgement, Verdict
from shiritori.reading import ReadingExtractor
from shiritori.state import ChainState, ChainStore, StorageError
from shiritori.tokens import Token


class _StubTokenizer:
    def tokenize(self, text: str) -> list[Token]:
        return [Token(surface=part) for part in text.split()]


class _UntouchableStore(ChainStore):
    def session(self, timeout=None):  # type: ignore[override]
        raise AssertionError("chain state must not be touched")


def _judge_for(path) -> Judge:
    return Judge(ReadingExtractor(_StubTokenizer()), ChainStore(path))


def test_sequential_chain(tmp_path) -> None:
    path = tmp_path / "last_kana.txt"
    judge = _judge_for(path)

    first = judge.judge("あいうえお", "ev1")
    assert first == Judgement(verdict=Verdict.ACCEPTED, head="ア", last="オ")
    assert path.read_text(encoding="utf-8") == "オ\nev1"

    second = judge.judge("おんがく", "ev2")
    assert second.accepted
    assert (second.head, second.last, second.previous_last) == ("オ", "ク", "オ")
    assert path.read_text(encoding="utf-8") == "ク\nev2"

    third = judge.judge("さかな", "ev3")
    assert third.verdict is Verdict.NOT_CONNECTED
    assert third.previous_last == "ク"
    assert path.read_text(encoding="utf-8") == "ク\nev2"


def test_redelivered_event_is_a_duplicate(tmp_path) -> None:
    path = tmp_path / "last_kana.txt"
    judge = _judge_for(path)
    judge.judge("あいうえお", "ev1")
    judge.judge("おんがく", "ev2")

    again = judge.judge("くるま", "ev2")

    assert again.verdict is Verdict.DUPLICATE
    assert path.read_text(encoding="utf-8") == "ク\nev2"


def test_same_wording_under_new_event_is_judged_normally(tmp_path) -> None:
    judge = _judge_for(tmp_path / "last_kana.txt")
    assert judge.judge("くく", "ev1").accepted
    assert judge.judge("くく", "ev2").accepted


@pytest.mark.parametrize("event_id", ["ev\n1", "ev\r1", "ev1\n"])
def test_event_id_with_line_break_is_refused(tmp_path, event_id) -> None:
    path = tmp_path / "last_kana.txt"
    judge = _judge_for(path)
    assert judge.judge("ああ", "ev0").accepted

    with pytest.raises(ValueError):
        judge.judge("ああ", event_id)

    assert path.read_text(encoding="utf-8") == "ア\nev0"


def test_event_id_with_line_break_is_refused_before_locking(tmp_path) -> None:
    judge = Judge(ReadingExtractor(_StubTokenizer()), _UntouchableStore(tmp_path / "x.txt"))
    with pytest.raises(ValueError):
        judge.judge("ああ", "ev\n1")


def test_empty_event_id_is_never_a_duplicate(tmp_path) -> None:
    path = tmp_path / "last_kana.txt"
    judge = _judge_for(path)
    assert judge.judge("ああ", "").accepted
    assert path.read_text(encoding="utf-8") == "ア\n"

    again = judge.judge("ああ", "")

    assert again.verdict is Verdict.ACCEPTED
    assert again.previous_last == "ア"


def test_small_and_voiced_endings_accept_plain_heads(tmp_path) -> None:
    judge = _judge_for(tmp_path / "last_kana.txt")
    assert judge.judge("きしゃ", "ev1").accepted
    assert judge.judge("やまびこ", "ev2").accepted
    assert judge.judge("こうば", "ev3").accepted
    assert judge.judge("はし", "ev4").accepted
    assert judge.judge("じかん", "ev5").verdict is Verdict.NOT_CONNECTED


def test_unreadable_post_never_touches_state(tmp_path) -> None:
    judge = Judge(ReadingExtractor(_StubTokenizer()), _UntouchableStore(tmp_path / "x.txt"))
    assert judge.judge("！？", "ev1") == Judgement(verdict=Verdict.UNREADABLE)


def test_legacy_state_without_event_id(tmp_path) -> None:
    path = tmp_path / "last_kana.txt"
    path.write_text("オ", encoding="utf-8")
    judge = _judge_for(path)
    assert judge.judge("おかし", "ev1").accepted
    assert path.read_text(encoding="utf-8") == "シ\nev1"


def test_storage_fault_propagates(tmp_path) -> None:
    blocker = tmp_path / "file"
    blocker.write_text("", encoding="utf-8")
    judge = _judge_for(blocker / "last_kana.txt")
    with pytest.raises(StorageError):
        judge.judge("あいうえお", "ev1")


def test_get_effective_reading_is_read_only(tmp_path) -> None:
    judge = Judge(ReadingExtractor(_StubTokenizer()), _UntouchableStore(tmp_path / "x.txt"))
    reading = judge.get_effective_reading("しりとり")
    assert reading is not None
    assert (reading.head, reading.last) == ("シ", "リ")
    assert judge.get_effective_reading("！？") is None


def test_next_kana(tmp_path) -> None:
    judge = _judge_for(tmp_path / "last_kana.txt")
    assert judge.next_kana() is None
    judge.judge("りんご", "ev1")
    assert judge.next_kana() == "ゴ"


def test_concurrent_judgements_leave_one_complete_write(tmp_path) -> None:
    path = tmp_path / "last_kana.txt"
    judge = _judge_for(path)
    results: list[Judgement] = []
    lock = threading.Lock()

    def _worker(index: int) -> None:
        judgement = judge.judge("ああ", f"ev{index}")
        with lock:
            results.append(judgement)

    threads = [threading.Thread(target=_worker, args=(idx,)) for idx in range(16)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert all(result.accepted for result in results)
    state = ChainStore(path).peek()
    assert state is not None
    assert state.last_kana == "ア"
    assert state.last_event_id in {f"ev{idx}" for idx in range(16)}
    assert path.read_text(encoding="utf-8") == f"ア\n{state.last_event_id}"


def test_verdict_values() -> None:
    assert Verdict("accepted") is Verdict.ACCEPTED
    assert ChainState("ア").last_event_id == ""
