from contextlib import asynccontextmanager
from datetime import datetime, timezone
import logging

import uvicorn
from fastapi import FastAPI, Request

from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from masjid_engine.config import settings, setup_logging
from masjid_engine.dependencies import create_display_session
from masjid_engine.exceptions import ConfigurationError, DateFormatError
from masjid_engine.schemas import ErrorDetail, StandardErrorResponse

from masjid_engine.routers import main_router


setup_logging()
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events"""
    logger.info("="*60)
    logger.info("Starting Masjid Engine...")
    logger.info("="*60)

    try:
        logger.info("Starting display session...")
        session = create_display_session(settings)
        app.state.display_session = session
        await session.start()

        logger.info("="*60)
        logger.info("Masjid Engine started successfully")
        logger.info("="*60)
    except Exception as e:
        logger.error("="*60)
        logger.error(f"Failed to start Masjid Engine: {e}", exc_info=True)
        logger.error("="*60)
        raise

    yield

    logger.info("="*60)
    logger.info("Shutting down Masjid Engine...")
    logger.info("="*60)

    try:
        await session.close()
        logger.info("Display session stopped")
    except Exception as e:
        logger.error(f"Error during display session shutdown: {e}", exc_info=True)
    finally:
        app.state.display_session = None

    logger.info("="*60)
    logger.info("Masjid Engine stopped")
    logger.info("="*60)


app = FastAPI(
    title="Masjid Engine",
    version="0.1.0",
    lifespan=lifespan
)

app.include_router(main_router)

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Log validation errors with details"""
    logger.error(f"Validation error for {request.method} {request.url.path}")
    logger.error(f"Validation details: {exc.errors()}")

    try:
        body = await request.body()
        logger.error(f"Request body: {body.decode('utf-8')}")

    except (ValueError, UnicodeDecodeError, RuntimeError):
        logger.error("Could not read request body")

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


@app.exception_handler(ConfigurationError)
async def configuration_exception_handler(request: Request, exc: ConfigurationError):
    """Report invalid dates, coordinates or conventions as a standard error body"""
    logger.warning(f"Configuration error for {request.method} {request.url.path}: {exc}")

    response = StandardErrorResponse(
        timestamp=datetime.now(timezone.utc).isoformat(),
        error=ErrorDetail(
            code="DATE_FORMAT_ERROR" if isinstance(exc, DateFormatError) else "CONFIGURATION_ERROR",
            message=str(exc),
            context={"path": request.url.path},
        ),
    )
    return JSONResponse(status_code=400, content=response.model_dump())


def run() -> None:
    """Serve the app with uvicorn using the configured host and port"""
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
