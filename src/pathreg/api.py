from __future__ import annotations

from typing import Any

from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware

from .core.entries import validate_name
from .core.errors import (
    INVALID_REQUEST,
    SUCCESS,
    DuplicateName,
    InvalidEntry,
    RegistryError,
)
from .core.service import RegistryService

PREFIX = "/rtspManager"


def envelope(code: int, msg: str, data: Any = "") -> dict[str, Any]:
    return {"code": int(code), "msg": msg, "data": data}


def _request_host(request: Request) -> str:
    return request.headers.get("host") or request.url.hostname or "127.0.0.1"


async def _json_body(request: Request) -> dict[str, Any]:
    try:
        body = await request.json()
    except ValueError:
        raise InvalidEntry("Request body must be a JSON object")
    if not isinstance(body, dict):
        raise InvalidEntry("Request body must be a JSON object")
    return body


def create_api_app(service: RegistryService) -> FastAPI:
    """Build the HTTP surface for `service`.

    Every route answers HTTP 200 with a `{code, msg, data}` envelope; the
    `code` tells success apart from each failure kind (see `core.errors`).
    """

    app = FastAPI(title="pathreg", version="0.1.0")
    app.state.service = service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    @app.get("/healthz")
    def healthz() -> dict[str, bool]:
        return {"ok": True}

    @app.post(f"{PREFIX}/addRTSPUrl")
    async def add_rtsp_url(request: Request) -> dict:
        host = _request_host(request)
        try:
            body = await _json_body(request)
            name = body.get("name")
            source = body.get("url")
            # Computed up front so a duplicate still reports where the path lives.
            locator_data = {name: service.locator(host, validate_name(name))}
            # File I/O and the registry lock stay off the event loop.
            entry = await run_in_threadpool(service.add, name, source, host)
        except DuplicateName as e:
            return envelope(e.code, "rtsp url already exist", locator_data)
        except InvalidEntry as e:
            return envelope(e.code, str(e))
        except RegistryError as e:
            return envelope(e.code, f"add failed: {e}")
        return envelope(SUCCESS, "add succeeded", {entry.name: entry.locator})

    @app.get(f"{PREFIX}/getRTSPUrls")
    def get_rtsp_urls(request: Request) -> dict:
        entries = service.list(_request_host(request))
        return envelope(SUCCESS, "list succeeded", [e.to_dict() for e in entries])

    @app.post(f"{PREFIX}/deleteRTSPUrl")
    async def delete_rtsp_url(request: Request) -> dict:
        try:
            body = await _json_body(request)
            name = body.get("name")
            if not isinstance(name, str) or not name:
                return envelope(INVALID_REQUEST, "Missing path name")
            await run_in_threadpool(service.delete, name)
        except InvalidEntry as e:
            return envelope(e.code, str(e))
        except RegistryError as e:
            return envelope(e.code, f"delete failed: {e}")
        return envelope(SUCCESS, "delete succeeded")

    return app
