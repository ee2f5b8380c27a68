"""Entry point for the WebDAV server."""

import time
import uuid

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from common.logging_config import attach_library_loggers, setup_logging
from davfs.adapter import FileSystemAdapter
from davfs.exceptions import (
    ConnectFailureError,
    DAVFSException,
    DecodeError,
    IncompleteIOError,
    IsDirectoryError,
    NotDirectoryError,
    NotFoundError,
    ObjectNotFoundError,
    UseAfterCloseError,
)
from objectstore.connection import connect_object_store
from server import config, service_locator
from server.routes import dav_router
from server.schemas import HealthResponse, ReadyResponse

logger = setup_logging('server')
attach_library_loggers(logger, 'davfs', 'objectstore')

app = FastAPI(
    title="Object Pool WebDAV Server",
    description="Serves a flat object storage pool as a one-level WebDAV file system",
    version="1.0.0"
)


def connect_backend() -> None:
    """
    Open the configured pool and publish the adapter.

    A connection failure is logged and recorded; the server keeps answering
    health checks but every DAV request gets 503.
    """
    try:
        store = connect_object_store(
            backend=config.STORAGE_BACKEND,
            storage_path=config.STORAGE_PATH,
            pool=config.POOL_NAME,
            create_pool=config.CREATE_POOL
        )
    except ConnectFailureError as e:
        logger.error(f"Failed to connect to pool {config.POOL_NAME!r}: {e}")
        service_locator.set_connect_error(str(e))
        return
    service_locator.set_filesystem(FileSystemAdapter(store))
    logger.info(f"Serving pool {config.POOL_NAME!r} at {config.MOUNT_PREFIX or '/'}")


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


@app.on_event("startup")
async def startup_event():
    """
    Connect to the storage pool on application startup.
    """
    logger.info("WebDAV server starting up...")
    connect_backend()


@app.on_event("shutdown")
async def shutdown_event():
    """
    Release the storage pool on application shutdown.
    """
    logger.info("WebDAV server shutting down...")
    try:
        filesystem = service_locator.get_filesystem()
    except ConnectFailureError:
        return
    filesystem.store.close()
    service_locator.set_filesystem(None)


def _error_response(request: Request, status_code: int, code: str, exc: Exception) -> JSONResponse:
    request_id = getattr(request.state, 'request_id', 'unknown')
    message = f"{type(exc).__name__}: {exc} [request_id={request_id}] path={request.url.path}"
    if status_code >= 500:
        logger.error(message, exc_info=exc)
    else:
        logger.warning(message)
    return JSONResponse(
        status_code=status_code,
        content={"detail": str(exc), "code": code}
    )


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return _error_response(request, status.HTTP_404_NOT_FOUND, "NOT_FOUND", exc)


@app.exception_handler(ObjectNotFoundError)
async def object_not_found_handler(request: Request, exc: ObjectNotFoundError):
    return _error_response(request, status.HTTP_404_NOT_FOUND, "NOT_FOUND", exc)


@app.exception_handler(NotDirectoryError)
async def not_directory_handler(request: Request, exc: NotDirectoryError):
    return _error_response(request, status.HTTP_409_CONFLICT, "NOT_A_DIRECTORY", exc)


@app.exception_handler(IsDirectoryError)
async def is_directory_handler(request: Request, exc: IsDirectoryError):
    return _error_response(request, status.HTTP_405_METHOD_NOT_ALLOWED, "IS_A_DIRECTORY", exc)


@app.exception_handler(IncompleteIOError)
async def incomplete_io_handler(request: Request, exc: IncompleteIOError):
    return _error_response(request, status.HTTP_500_INTERNAL_SERVER_ERROR, "INCOMPLETE_IO", exc)


@app.exception_handler(DecodeError)
async def decode_error_handler(request: Request, exc: DecodeError):
    return _error_response(request, status.HTTP_500_INTERNAL_SERVER_ERROR, "DECODE_ERROR", exc)


@app.exception_handler(UseAfterCloseError)
async def use_after_close_handler(request: Request, exc: UseAfterCloseError):
    return _error_response(request, status.HTTP_500_INTERNAL_SERVER_ERROR, "USE_AFTER_CLOSE", exc)


@app.exception_handler(ConnectFailureError)
async def connect_failure_handler(request: Request, exc: ConnectFailureError):
    return _error_response(request, status.HTTP_503_SERVICE_UNAVAILABLE, "BACKEND_UNAVAILABLE", exc)


@app.exception_handler(DAVFSException)
async def davfs_exception_handler(request: Request, exc: DAVFSException):
    return _error_response(request, status.HTTP_500_INTERNAL_SERVER_ERROR, "INTERNAL_ERROR", exc)


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Health check endpoint for Docker healthcheck.
    Returns 200 if service is alive.
    """
    return HealthResponse(status="healthy", service="davfs")


@app.get("/ready", response_model=ReadyResponse)
async def ready_check():
    """
    Readiness check endpoint.
    Returns 503 when the storage pool could not be opened.
    """
    try:
        service_locator.get_filesystem()
        ready = True
        error = None
    except ConnectFailureError as e:
        ready = False
        error = str(e)

    body = ReadyResponse(
        ready=ready,
        backend=config.STORAGE_BACKEND,
        pool=config.POOL_NAME,
        error=error
    )
    return JSONResponse(
        status_code=status.HTTP_200_OK if ready else status.HTTP_503_SERVICE_UNAVAILABLE,
        content=body.model_dump()
    )


app.include_router(dav_router)


def main() -> None:
    """
    Start the FastAPI server with uvicorn.
    """
    uvicorn.run(
        "server.main:app",
        host=config.SERVER_HOST,
        port=config.SERVER_PORT
    )


if __name__ == "__main__":
    main()
