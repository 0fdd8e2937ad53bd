"""Entry point for the media vault service."""

import time
import uuid
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from common.logging_config import setup_logging
from vault.config import CONTENT_DIR, SECRET_KEY, VAULT_HOST, VAULT_PORT
from vault.database import init_database
from vault.exceptions import (
    VaultException,
    NotFoundError,
    DecryptionError,
    PersistenceError,
    InvalidStateError,
    MalformedInputError
)
from vault.routes.media_routes import router as media_router
from vault.schemas.common import ErrorResponse
from vault.service_locator import build_media_service, set_media_service

logger = setup_logging('vault')


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Initialize database and wire the media service on application startup.
    """
    logger.info("Media vault starting up...")

    init_database()
    logger.info("Database initialized")

    set_media_service(build_media_service(CONTENT_DIR, SECRET_KEY))
    logger.info(f"Media service ready [content_dir={CONTENT_DIR}]")

    yield

    set_media_service(None)
    logger.info("Media vault shut down")


app = FastAPI(
    title="Media Vault",
    description="Single-user encrypted media store with bulk ZIP export",
    version="1.0.0",
    lifespan=lifespan
)


def _error_response(status_code: int, exc: Exception, code: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(detail=str(exc), code=code).model_dump()
    )


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """
    Middleware to log all HTTP requests and responses.
    """
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id

    start_time = time.time()

    logger.info(
        f"Request started: {request.method} {request.url.path} [request_id={request_id}]"
    )

    response = await call_next(request)

    duration = time.time() - start_time

    logger.info(
        f"Request completed: {request.method} {request.url.path} "
        f"status={response.status_code} duration={duration:.3f}s [request_id={request_id}]"
    )

    response.headers["X-Request-ID"] = request_id

    return response


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.warning(
        f"Not found: {exc} [request_id={request_id}] path={request.url.path}"
    )
    return _error_response(status.HTTP_404_NOT_FOUND, exc, "NOT_FOUND")


@app.exception_handler(MalformedInputError)
async def malformed_input_handler(request: Request, exc: MalformedInputError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.warning(
        f"Malformed input: {exc} [request_id={request_id}] path={request.url.path}"
    )
    return _error_response(status.HTTP_400_BAD_REQUEST, exc, "MALFORMED_INPUT")


@app.exception_handler(DecryptionError)
async def decryption_error_handler(request: Request, exc: DecryptionError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.error(
        f"Decryption error: {exc} [request_id={request_id}] path={request.url.path}",
        exc_info=True
    )
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, exc, "DECRYPTION_FAILED")


@app.exception_handler(PersistenceError)
async def persistence_error_handler(request: Request, exc: PersistenceError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.error(
        f"Persistence error: {exc} [request_id={request_id}] path={request.url.path}",
        exc_info=True
    )
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, exc, "PERSISTENCE_ERROR")


@app.exception_handler(InvalidStateError)
async def invalid_state_handler(request: Request, exc: InvalidStateError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.error(
        f"Invalid state: {exc} [request_id={request_id}] path={request.url.path}",
        exc_info=True
    )
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, exc, "INVALID_STATE")


@app.exception_handler(VaultException)
async def vault_exception_handler(request: Request, exc: VaultException):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.error(
        f"Vault exception: {exc} [request_id={request_id}] path={request.url.path}",
        exc_info=True
    )
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, exc, "INTERNAL_ERROR")


app.include_router(media_router)


@app.get("/")
async def root():
    """
    Root endpoint for health check.
    """
    return {"message": "Media Vault API", "status": "running"}


@app.get("/health")
async def health_check():
    """
    Health check endpoint for Docker healthcheck.
    Returns 200 if service is alive.
    """
    return {"status": "healthy", "service": "vault"}


def main() -> None:
    """
    Start the FastAPI server with uvicorn.
    """
    uvicorn.run(
        "vault.main:app",
        host=VAULT_HOST,
        port=VAULT_PORT,
    )


if __name__ == "__main__":
    main()
