# relay/main.py

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from relay.api import messages, nodes
from relay.core.errors import RelayError, StorageUnavailable
from relay.infra.postgres import init_db, check_connection, dispose_engine
from relay.utils.clock import utcnow, format_server_instant
from relay.utils.logger import setup_logger

setup_logger()
logger = logging.getLogger(__name__)

PORT = int(os.getenv("PORT", "3001"))

ALLOWED_ORIGINS = [
    "https://relay.visrodeck.com",
    "http://localhost:3000",
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup fails (and the process exits non-zero) if the schema can't be created
    try:
        init_db()
    except Exception:
        logger.exception("❌ Database initialization failed")
        raise
    logger.info("✓ Relay online, FIFO cleanup active")

    yield

    logger.info("Shutting down gracefully...")
    dispose_engine()


app = FastAPI(
    title="Relay Backend",
    version="1.0.0",
    description="Store-and-forward relay for anonymous token-addressed messages",
    lifespan=lifespan
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type"],
)


@app.exception_handler(RelayError)
async def relay_error_handler(request: Request, exc: RelayError):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content={"error": "Missing required fields"})


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


# Register routers
app.include_router(messages.router, tags=["Messages"])
app.include_router(nodes.router, tags=["Nodes"])


@app.get("/api/health")
def health_check():
    if not check_connection():
        raise StorageUnavailable("Database unavailable")
    return {"status": "online", "timestamp": format_server_instant(utcnow())}


def run():
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=PORT)


if __name__ == "__main__":
    run()
