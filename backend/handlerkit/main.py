"""handlerkit application.

A FastAPI app exposing the toolkit over HTTP. Toolkit errors are turned into
JSONPayload error bodies carrying each error's status code.
"""
import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request

from handlerkit.config import get_config
from handlerkit.exceptions import HandlerKitError
from handlerkit.files.router import router as files_router
from handlerkit.files.service import ensure_dir
from handlerkit.jsonio.service import error_json
from handlerkit.text.router import router as text_router

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

# multipart logs every parsed part at DEBUG
for _noisy in ("multipart", "python_multipart", "httpx", "httpcore"):
    logging.getLogger(_noisy).setLevel(logging.WARNING)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup/shutdown events."""
    config = get_config()

    configured_level = getattr(logging, config.logging.level.upper(), None)
    if configured_level is not None:
        logging.getLogger().setLevel(configured_level)
        logger.info("Root logger level set to %s", config.logging.level.upper())

    ensure_dir(config.uploads.upload_dir)
    logger.info("Uploads stored in %s", config.uploads.upload_dir)
    logger.info(
        "JSON bodies capped at %d bytes (unknown fields %s)",
        config.json_io.max_bytes,
        "allowed" if config.json_io.allow_unknown_fields else "rejected",
    )

    yield

    logger.info("Shutting down")


app = FastAPI(
    title="handlerkit",
    description="Upload, JSON and slug helpers for web handlers",
    version="0.1.0",
    lifespan=lifespan,
)


@app.exception_handler(HandlerKitError)
async def handlerkit_error_handler(request: Request, exc: HandlerKitError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    else:
        logger.info("%s %s rejected: %s", request.method, request.url.path, exc)
    return error_json(exc)


app.include_router(files_router)
app.include_router(text_router)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "ok"}


def main() -> None:
    """Serve the app with uvicorn on the configured host and port."""
    config = get_config()
    logger.info("Starting handlerkit on http://%s:%d", config.server.host, config.server.port)
    uvicorn.run(app, host=config.server.host, port=config.server.port)


if __name__ == "__main__":
    main()
