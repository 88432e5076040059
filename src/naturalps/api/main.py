"""NaturalPS — FastAPI Application.

This module is the single entry point for the web application.  It defines
the FastAPI ``app`` instance, the REST routes, and the ``main()`` CLI
function that launches the uvicorn server.

Architecture
------------
- **Configuration** comes from :data:`naturalps.core.config.config`
  (environment variables and ``.env``).
- **Generation** is delegated to a :class:`GenerationOrchestrator`, built at
  startup and stored on ``app.state``.  It stages uploads, runs the
  strategy chain (SDK first, then text-only fallbacks) and cleans up.
- **Promoted images** are served from the public images directory by
  FastAPI's ``StaticFiles`` middleware at ``/temp-images``.
- **The HTML page** is served as a raw ``HTMLResponse``; the form logic
  lives in ``static/js/app.js``.

Endpoints
---------
========  ====================  ==========================================
Method    Path                  Purpose
========  ====================  ==========================================
GET       ``/``                 Serve the main HTML page
POST      ``/api/generate``     Generate text and/or an image
GET       ``/api/env``          Diagnostic view of configuration variables
========  ====================  ==========================================

Usage
-----
CLI (installed entry point)::

    naturalps

Direct invocation::

    python -m naturalps.api.main
"""

from __future__ import annotations

import logging
import platform
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import Depends, FastAPI, File, Form, HTTPException, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.staticfiles import StaticFiles

from naturalps import __version__
from naturalps.api.models import EnvResponse, EnvVarStatus, ErrorResponse
from naturalps.core.config import config
from naturalps.core.errors import NaturalPSError
from naturalps.core.generation import GenerationClient
from naturalps.core.orchestrator import IMAGE_FIELDS, GenerationOrchestrator, ImageUpload
from naturalps.core.storage import TempStorage
from naturalps.core.transport import TransportAdapter

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Application lifecycle: collaborators are built once per process.
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build the storage, transport and generation chain on startup.

    The SDK client inside the chain is created lazily, so startup succeeds
    even when no API key is configured.
    """
    storage = TempStorage(config)
    transport = TransportAdapter(timeout=config.request_timeout, verify=config.verify_tls)
    client = GenerationClient.from_config(config, transport=transport, storage=storage)

    app.state.storage = storage
    app.state.orchestrator = GenerationOrchestrator(storage, client)
    logger.info(f"Generation chain ready: {[s.name for s in client.strategies]}")

    yield


app = FastAPI(
    title="NaturalPS",
    description="Describe an image, attach up to three references, and let Gemini generate.",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.mount("/static", StaticFiles(directory=str(config.static_dir)), name="static")
app.mount(
    config.public_url_prefix,
    StaticFiles(directory=str(config.public_images_dir)),
    name="public-images",
)


@app.exception_handler(NaturalPSError)
async def naturalps_error_handler(request: Request, exc: NaturalPSError) -> JSONResponse:
    """Render pipeline errors as ``{error, details}`` JSON bodies."""
    if exc.status_code >= 500:
        logger.error(f"Error processing request: {exc}")
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(**exc.to_payload()).to_json_dict(),
    )


def get_orchestrator(request: Request) -> GenerationOrchestrator:
    return request.app.state.orchestrator


def _read_upload(field_name: str, upload: UploadFile | None) -> ImageUpload | None:
    if upload is None:
        return None
    return ImageUpload(
        field_name=field_name,
        filename=upload.filename or "",
        content_type=upload.content_type,
        data=upload.file.read(),
    )


# ---------------------------------------------------------------------------
# Routes.
# ---------------------------------------------------------------------------


@app.get("/", response_class=HTMLResponse)
async def index() -> HTMLResponse:
    """Serve the main application HTML page.

    Raises:
        HTTPException: 404 if ``index.html`` is not found.
    """
    index_path = config.templates_dir / "index.html"
    if index_path.exists():
        return HTMLResponse(content=index_path.read_text(encoding="utf-8"))
    raise HTTPException(status_code=404, detail="index.html not found")


@app.post("/api/generate")
def generate(
    description: str | None = Form(default=None),
    image0: UploadFile | None = File(default=None),
    image1: UploadFile | None = File(default=None),
    image2: UploadFile | None = File(default=None),
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
) -> JSONResponse:
    """Generate text and/or an image from a description and up to 3 images.

    The handler is synchronous: FastAPI runs it in the threadpool, so the
    blocking SDK call and file I/O do not stall the event loop.

    Returns:
        200 with ``success``, ``originalImages`` and whichever of
        ``generatedText`` / ``generatedImage`` were produced.

    Raises:
        NaturalPSError: Rendered by :func:`naturalps_error_handler` as 400
            (missing description) or 500 (generation, storage, or empty
            result).
    """
    uploads = [
        _read_upload(name, upload)
        for name, upload in zip(IMAGE_FIELDS, (image0, image1, image2))
    ]

    try:
        response = orchestrator.run(description, uploads)
    except NaturalPSError:
        raise
    except Exception as e:
        logger.error(f"Unexpected error processing request: {e}", exc_info=True)
        raise NaturalPSError(str(e)) from e

    return JSONResponse(content=response.to_json_dict())


@app.get("/api/env")
async def env_status() -> dict:
    """Report which configuration variables are set, with masked previews.

    Diagnostic only; never returns full values.
    """
    return EnvResponse(
        env_status={
            name: EnvVarStatus.from_value(value) for name, value in config.diagnostic_env().items()
        },
        python_version=platform.python_version(),
        timestamp=datetime.now(timezone.utc).isoformat(),
    ).to_json_dict()


# ---------------------------------------------------------------------------
# CLI entry point.
# ---------------------------------------------------------------------------


def main() -> None:
    """Launch the uvicorn ASGI server.

    Reads host, port and log level from :data:`~naturalps.core.config.config`
    (``NATURALPS_SERVER_HOST``, ``NATURALPS_SERVER_PORT``,
    ``NATURALPS_LOG_LEVEL``).  Defaults to ``0.0.0.0:3000``.
    """
    import uvicorn

    logging.basicConfig(
        level=config.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(
        "naturalps.api.main:app",
        host=config.server_host,
        port=config.server_port,
        log_level=config.log_level.lower(),
        reload=False,
    )


if __name__ == "__main__":
    main()
