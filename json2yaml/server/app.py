"""FastAPI application for the json2yaml web GUI.

Routes:
    GET  /            UI entry page
    GET  /static/...  UI assets
    POST /convert     form field ``json_content`` -> ``{"yaml": ...}``
    POST /heartbeat   browser liveness ping
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import mimetypes
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse, JSONResponse, PlainTextResponse
from fastapi.staticfiles import StaticFiles
from starlette.datastructures import UploadFile

from ..converter import convert_json_to_yaml
from ..types import ConversionError, Json2YamlConfig
from .browser import open_browser, server_url
from .lifecycle import SessionLifecycle

logger = logging.getLogger(__name__)

WEB_DIR = Path(__file__).resolve().parent.parent / "web"

# UI asset types, independent of the platform mimetypes table
mimetypes.add_type("application/javascript", ".js")
mimetypes.add_type("text/css", ".css")


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


async def _launch_browser(url: str, delay: float) -> None:
    await asyncio.sleep(delay)
    await asyncio.to_thread(open_browser, url)


def create_app(
    session: SessionLifecycle,
    config: Json2YamlConfig | None = None,
    *,
    web_dir: Path = WEB_DIR,
) -> FastAPI:
    """Build the app around a ``SessionLifecycle``.

    The lifespan starts the heartbeat monitor before the listener accepts
    connections and stops it (plus any pending zero-connection timer) on
    shutdown.
    """
    config = config or Json2YamlConfig()
    web_root = web_dir.resolve()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        session.start()
        browser_task: asyncio.Task | None = None
        if config.server.open_browser:
            browser_task = asyncio.create_task(
                _launch_browser(server_url(config.server), config.server.browser_delay)
            )
        yield
        if browser_task is not None and not browser_task.done():
            browser_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await browser_task
        await session.stop()

    app = FastAPI(title="json2yaml", lifespan=lifespan, docs_url=None, redoc_url=None)
    app.state.session = session

    @app.get("/")
    async def index():
        try:
            html = (web_root / "index.html").read_text(encoding="utf-8")
        except OSError:
            logger.exception("UI entry page missing from %s", web_root)
            return PlainTextResponse("Internal Server Error", status_code=500)
        return HTMLResponse(html)

    app.mount("/static", StaticFiles(directory=web_root), name="static")

    @app.post("/convert")
    async def convert(request: Request):
        try:
            form = await request.form()
        except Exception as e:
            logger.debug("Unparseable form body: %s", e)
            return _error("Failed to parse form data", 400)

        value = form.get("json_content")
        if isinstance(value, UploadFile):
            value = (await value.read()).decode("utf-8", errors="replace")
        if not value:
            return _error("JSON content is required", 400)

        try:
            yaml_text = convert_json_to_yaml(value, config.output)
        except ConversionError as e:
            return _error(f"Conversion failed: {e}", 400)
        return JSONResponse({"yaml": yaml_text})

    @app.post("/heartbeat")
    async def heartbeat():
        session.record_heartbeat()
        return PlainTextResponse("ok", headers={"Cache-Control": "no-store"})

    return app
