from __future__ import annotations

import logging
import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from notelab_api.config import Settings, load_settings
from notelab_api.domain.ports import SnapshotStore
from notelab_api.interface.api.routes import router
from notelab_api.persistence import FileSnapshotStore, MemorySnapshotStore
from notelab_api.workspace import NoteLab


def build_store(settings: Settings) -> SnapshotStore:
    if settings.storage == "memory":
        return MemorySnapshotStore()
    return FileSnapshotStore(settings.data_file)


def create_app(settings: Settings | None = None, store: SnapshotStore | None = None) -> FastAPI:
    settings = settings or load_settings()
    logging.basicConfig(level=settings.log_level)
    logger = logging.getLogger("notelab.api")

    lab = NoteLab(
        store or build_store(settings),
        save_delay=settings.save_delay_ms / 1000.0,
        default_language=settings.default_language,
    )

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        yield
        lab.close()

    app = FastAPI(title="NoteLab API", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.lab = lab

    @app.middleware("http")
    async def request_id_and_logging(request: Request, call_next):
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        request.state.request_id = request_id
        start = time.perf_counter()

        if settings.api_auth_mode == "bearer":
            if request.url.path != "/health":
                token = settings.api_auth_token or ""
                auth = request.headers.get("authorization") or ""
                if not token or auth != f"Bearer {token}":
                    return JSONResponse(
                        status_code=401,
                        content={"detail": "unauthorized"},
                        headers={"X-Request-ID": request_id},
                    )

        try:
            response = await call_next(request)
        except Exception:
            dt_ms = (time.perf_counter() - start) * 1000.0
            logger.exception("request_error", extra={"rid": request_id, "path": request.url.path, "ms": dt_ms})
            return JSONResponse(
                status_code=500,
                content={"detail": "internal_error", "request_id": request_id},
                headers={"X-Request-ID": request_id},
            )

        dt_ms = (time.perf_counter() - start) * 1000.0
        fields = {
            "rid": request_id,
            "method": request.method,
            "path": request.url.path,
            "status": response.status_code,
            "ms": dt_ms,
        }
        if settings.api_debug_log:
            fields["query"] = request.url.query
        logger.info("request", extra=fields)
        response.headers["X-Request-ID"] = request_id
        return response

    app.include_router(router)
    return app
