from __future__ import annotations

from fastapi.testclient import TestClient

from shiritori.config import ShiritoriConfig
from shiritori.reading import ReadingExtractor
from shiritori.state import ChainState, ChainStore
from shiritori.tokens import Token
from shiritori.web import create_app


class _StubTokenizer:
    def tokenize(self, text: str) -> list[Token]:
        return [Token(surface=part) for part in text.split()]


def _client(tmp_path, store: ChainStore | None = None) -> TestClient:
    config = ShiritoriConfig(resource_dir=tmp_path)
    app = create_app(config, extractor=ReadingExtractor(_StubTokenizer()), store=store)
    return TestClient(app)


def test_readable_query_returns_head_and_last(tmp_path) -> None:
    client = _client(tmp_path)
    response = client.get("/", params={"c": "あいうえお"})
    assert response.status_code == 200
    assert response.json() == {"readable": True, "head": "ア", "last": "オ"}


def test_unreadable_query_omits_kana(tmp_path) -> None:
    client = _client(tmp_path)
    assert client.get("/", params={"c": "！？"}).json() == {"readable": False}
    assert client.get("/").json() == {"readable": False}


def test_query_never_writes_chain_state(tmp_path) -> None:
    client = _client(tmp_path)
    client.get("/", params={"c": "しりとり"})
    assert not (tmp_path / "last_kana.txt").exists()


def test_health(tmp_path) -> None:
    response = _client(tmp_path).get("/health")
    assert response.status_code == 200
    assert response.text == "ok"


def test_next_reports_stored_kana(tmp_path) -> None:
    client = _client(tmp_path)
    assert client.get("/next").json() == {"next": None}

    with ChainStore(tmp_path / "last_kana.txt").session() as session:
        session.write(ChainState("ク", "ev2"))

    assert client.get("/next").json() == {"next": "ク"}


def test_next_storage_fault_is_503(tmp_path) -> None:
    blocker = tmp_path / "file"
    blocker.write_text("", encoding="utf-8")
    client = _client(tmp_path, store=ChainStore(blocker / "last_kana.txt"))
    response = client.get("/next")
    assert response.status_code == 503
    assert response.json()["detail"] == "Chain state is unavailable."
