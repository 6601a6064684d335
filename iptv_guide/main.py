from contextlib import asynccontextmanager
from datetime import datetime, timezone
import logging

from fastapi import FastAPI, Request

from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from iptv_guide.config import setup_logging
from iptv_guide.database import init_db, close_db
from iptv_guide.exceptions import FormatError, NetworkError
from iptv_guide.schemas import ErrorDetail, StandardErrorResponse
from iptv_guide.utils.logging_helpers import sanitize_url_for_logging

from iptv_guide.routers import main_router, favorites_router, hidden_router


setup_logging()
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events"""
    logger.info("Starting IPTV Guide Service...")

    try:
        await init_db()
    except Exception as e:
        logger.error(f"Failed to start IPTV Guide Service: {e}", exc_info=True)
        raise

    logger.info("IPTV Guide Service started successfully")

    yield

    logger.info("Shutting down IPTV Guide Service...")

    try:
        await close_db()
    except Exception as e:
        logger.error(f"Error during database shutdown: {e}", exc_info=True)

    logger.info("IPTV Guide Service stopped")


app = FastAPI(
    title="IPTV Guide Service",
    version="0.1.0",
    lifespan=lifespan
)

app.include_router(main_router)
app.include_router(favorites_router)
app.include_router(hidden_router)


def _error_response(status_code: int, code: str, message: str, context: dict | None = None) -> JSONResponse:
    body = StandardErrorResponse(
        timestamp=datetime.now(timezone.utc).isoformat(),
        error=ErrorDetail(code=code, message=message, context=context),
    )
    return JSONResponse(status_code=status_code, content=body.model_dump())


@app.exception_handler(FormatError)
async def format_exception_handler(request: Request, exc: FormatError):
    """Unparseable playlist or guide"""
    logger.warning(f"Format error for {request.method} {request.url.path}: {exc}")
    return _error_response(422, "FORMAT_ERROR", str(exc))


@app.exception_handler(NetworkError)
async def network_exception_handler(request: Request, exc: NetworkError):
    """Source download failed"""
    logger.error(f"Fetch error for {request.method} {request.url.path}: {exc}")
    context = {
        "url": sanitize_url_for_logging(exc.url) if exc.url else None,
        "status_code": exc.status_code,
        "reason": exc.reason,
    }
    return _error_response(502, "FETCH_FAILED", str(exc), context)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Log validation errors with details"""
    logger.error(f"Validation error for {request.method} {request.url.path}")
    logger.error(f"Validation details: {exc.errors()}")

    # Create a properly serializable error response
    errors = []
    for error in exc.errors():
        error_dict = {
            "type": error.get("type"),
            "loc": error.get("loc"),
            "msg": error.get("msg"),
            "input": str(error.get("input", ""))[:100]
        }
        errors.append(error_dict)

    return JSONResponse(
        status_code=422,
        content={
            "detail": errors
        }
    )
