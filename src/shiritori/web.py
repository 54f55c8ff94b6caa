from __future__ import annotations

from fastapi import FastAPI, HTTPException, Query
from fastapi.responses import JSONResponse, PlainTextResponse

from .config import ShiritoriConfig
from .logging_utils import debug_log
from .reading import ReadingExtractor, build_reading_extractor
from .state import ChainStore, LockTimeoutError, StorageError

__all__ = ["create_app"]


def create_app(
    config: ShiritoriConfig,
    *,
    extractor: ReadingExtractor | None = None,
    store: ChainStore | None = None,
) -> FastAPI:
    """
    Build the read-only query service.

    Dictionaries are loaded here so a broken dictionary stops startup
    instead of surfacing on the first request.
    """
    if extractor is None:
        extractor = build_reading_extractor(config)
    if store is None:
        store = ChainStore(config.state_path)

    app = FastAPI(title="shiritori sifter")
    app.state.config = config
    app.state.extractor = extractor
    app.state.store = store

    @app.get("/")
    def reading(c: str = Query("", description="Candidate post text.")) -> JSONResponse:
        result = extractor.effective_head_and_last(c)
        if result is None:
            return JSONResponse({"readable": False})
        return JSONResponse(result.to_payload())

    @app.get("/health", response_class=PlainTextResponse)
    def health() -> str:
        return "ok"

    @app.get("/next")
    def next_kana() -> JSONResponse:
        try:
            state = store.peek(config.lock_timeout)
        except LockTimeoutError as exc:
            raise HTTPException(status_code=503, detail=str(exc)) from exc
        except StorageError as exc:
            debug_log(f"next kana lookup failed: {exc}")
            raise HTTPException(status_code=503, detail="Chain state is unavailable.") from exc
        return JSONResponse({"next": state.last_kana if state else None})

    return app
