# main.py
import logging
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from utils.exceptions import APIError
from schemas.common import UnifiedAPIResponse
from utils.errors import ErrorCode
# Core and services
from core.config import get_config_manager, load_blocker_settings
from core.logging import setup_logging
from core.ranges.blocker import RangeBlocker
from core.ranges.middleware import ResponseSink
# API Routers
from api.internal.ranges import router as internal_ranges_router


# --- Global State / App Context  ---
logger = logging.getLogger(f"rangeblock.{__name__}")


def confirm_block(sink: ResponseSink, request: Request) -> bool:
    # place for allow-listing; matched requests are logged and blocked
    logger.info(f"Provider range match: {request.method} {request.url.path}")
    return True


# --- FastAPI Application Instance ---
config_manager = get_config_manager()
range_blocker = RangeBlocker(load_blocker_settings(config_manager), confirmer=confirm_block)

app = FastAPI(
    title="rangeblock",
    description="Blocks requests originating from a cloud provider's published IP ranges.",
    version="1.0.0"
)


# --- Application Startup Event ---
@app.on_event("startup")
async def startup_event():
    # 1. Logging
    setup_logging(config_manager)
    logger.info("Logging initialized.")

    # 2. Range refresh loop
    range_blocker.start()
    app.state.range_blocker = range_blocker
    logger.info("Range blocker started.")


# --- Application Shutdown Event ---
@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Application shutdown...")
    blocker = getattr(app.state, "range_blocker", None)
    if blocker:
        blocker.stop(timeout=blocker.settings.request_timeout_seconds + 1)
        logger.info("Range blocker stopped.")
    logger.info("Application shutdown complete.")


# --- Middleware ---
range_blocker.install(app)


# --- Global Exception Handlers ---

@app.exception_handler(APIError)
async def api_error_handler(request, exc: APIError):
    return JSONResponse(
        status_code=exc.status_code,
        content=UnifiedAPIResponse(
            success=False,
            error_code=exc.error_code,
            message=exc.detail,
            error_details=exc.details or None,
            data=None
        ).model_dump(exclude_none=True)
    )

@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content=UnifiedAPIResponse(
            success=False,
            error_code=f"HTTP_{exc.status_code}",
            message=exc.detail,
            data=None,
            error_details=None
        ).model_dump(exclude_none=True)
    )

@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception for request {request.url}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content=UnifiedAPIResponse(
            success=False,
            error_code=ErrorCode.COMMON_INTERNAL_ERROR.code,
            message=ErrorCode.COMMON_INTERNAL_ERROR.message,
            data=None,
            error_details=None
        ).model_dump(exclude_none=True)
    )

# --- API Routers ---
app.include_router(internal_ranges_router, prefix="/api/v1/internal/ranges", tags=["Internal - Ranges"])


# --- Root Endpoint ---
@app.get("/", tags=["Root"])
async def read_root():
    return {"message": "index page"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        app,
        host=config_manager.get_config("server.host", "0.0.0.0"),
        port=config_manager.get_config("server.port", 8080),
    )
