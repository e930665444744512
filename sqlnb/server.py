"""FastAPI server exposing .sqlnb files to the browser editor."""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any, Literal

from fastapi import APIRouter, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel, Field

from sqlnb.config import SqlnbConfig, load_config
from sqlnb.core import Result
from sqlnb.document.codec import export_as_json, export_as_yaml, export_filename
from sqlnb.files.autosave import AutoSaver
from sqlnb.files.handler import SQLNBFileHandler
from sqlnb.notebook.cell import CellResult
from sqlnb.notebook.notebook import Notebook
from sqlnb.storage import StorageAdapter, build_storage

logger = logging.getLogger("sqlnb.server")

router = APIRouter(prefix="/api")


class SaveRequest(BaseModel):
    notebook: Notebook
    results: dict[str, CellResult] = Field(default_factory=dict)


class ValidateRequest(BaseModel):
    text: str


def _handler(request: Request) -> SQLNBFileHandler:
    return request.app.state.handler


def _autosaver(request: Request) -> AutoSaver:
    return request.app.state.autosaver


def _failure(result: Result[Any]) -> JSONResponse:
    """Map a failed Result to an HTTP error carrying the full error list."""
    codes = {d.code for d in result.diagnostics}
    if "NOT_FOUND" in codes:
        status = 404
    elif codes & {"STORAGE_ERROR", "STORAGE_TIMEOUT"}:
        status = 503
    else:
        status = 422
    return JSONResponse(status_code=status, content=result.summary())


@router.get("/health")
async def health(request: Request) -> dict[str, Any]:
    config: SqlnbConfig = request.app.state.config
    return {"ok": True, "storage": config.storage.backend, "autosave_delay": _autosaver(request).delay}


@router.get("/files")
async def list_files(request: Request) -> Any:
    result = await _handler(request).list()
    if not result.ok:
        return _failure(result)
    return {"files": result.data or []}


@router.post("/files/{name:path}/autosave", status_code=202)
async def schedule_autosave(name: str, body: SaveRequest, request: Request) -> dict[str, Any]:
    autosaver = _autosaver(request)
    autosaver.schedule_save(name, body.notebook, body.results)
    return {"scheduled": True, "state": autosaver.state(name)}


@router.get("/files/{name:path}/export")
async def export_file(name: str, request: Request, format: Literal["json", "yaml"] = "json") -> Any:
    result = await _handler(request).load(name)
    if result.data is None:
        return _failure(result)
    notebook = result.data
    if format == "json":
        text, media_type = export_as_json(notebook), "application/json"
    else:
        text, media_type = export_as_yaml(notebook), "application/x-yaml"
    filename = export_filename(notebook, format)
    return PlainTextResponse(
        text,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/files/{name:path}")
async def load_file(name: str, request: Request) -> Any:
    logger.info("GET /api/files/%s", name)
    result = await _handler(request).load(name)
    if result.data is None:
        return _failure(result)
    return {
        "notebook": result.data.model_dump(mode="json", by_alias=True),
        "warnings": result.warnings,
    }


@router.put("/files/{name:path}")
async def save_file(name: str, body: SaveRequest, request: Request) -> Any:
    logger.info("PUT /api/files/%s (%d cells)", name, len(body.notebook.cells))
    result = await _autosaver(request).force_save(name, body.notebook, body.results)
    if not result.ok or result.data is None:
        return _failure(result)
    return {**result.summary(), "checksum": result.data.checksum, "size": result.data.size}


@router.delete("/files/{name:path}")
async def delete_file(name: str, request: Request) -> Any:
    _autosaver(request).cancel_save(name)
    result = await _handler(request).delete(name)
    if not result.ok:
        return _failure(result)
    return {"success": True}


@router.post("/validate")
async def validate_text(body: ValidateRequest, request: Request) -> dict[str, Any]:
    result = _handler(request).validate(body.text)
    return {"valid": result.valid, "errors": result.errors, "warnings": result.warnings}


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncGenerator[None]:
    yield
    # Write out anything still waiting on its debounce timer.
    await app.state.autosaver.aclose()


def create_app(config: SqlnbConfig | None = None, storage: StorageAdapter | None = None) -> FastAPI:
    """Build the app around an explicit storage adapter (the configured one by default)."""
    config = config or load_config()
    storage = storage or build_storage(config)
    handler = SQLNBFileHandler(
        storage,
        timeout_seconds=config.autosave.save_timeout_seconds,
        document=config.document,
    )

    app = FastAPI(title="sqlnb", version="0.1.0", lifespan=_lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.server.allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.config = config
    app.state.handler = handler
    app.state.autosaver = AutoSaver(handler, delay=config.autosave.delay_seconds)
    app.include_router(router)
    return app
