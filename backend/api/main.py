"""
FastAPI main application.
"""
import logging
import time

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from core.config import API_PREFIX, CORS_ORIGINS, LOG_LEVEL, STORAGE_BACKEND
from core.config_validator import config_validator
from core.exceptions import RateLimitError, VidChatError
from api.routes import admin, feedback, plans, profiles, videos, web_search

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="VidChat API",
    description="Chat with and summarize YouTube videos",
    version="1.0.0",
)


@app.on_event("startup")
async def validate_configuration():
    """Validate configuration on application startup."""
    logger.info("Validating configuration...")

    validation_result = config_validator.validate_all()

    for warning in validation_result["warnings"]:
        logger.warning(warning)

    if not validation_result["valid"]:
        for error in validation_result["errors"]:
            logger.error(f"Configuration error: {error}")
        logger.critical("Application startup aborted due to configuration errors")
        raise SystemExit(1)

    logger.info(f"Configuration validated successfully (storage: {STORAGE_BACKEND})")


# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    if request.url.path.startswith(API_PREFIX):
        duration_ms = (time.perf_counter() - start) * 1000
        logger.info(
            f"{request.method} {request.url.path} {response.status_code} in {duration_ms:.0f}ms"
        )
    return response


@app.exception_handler(VidChatError)
async def vidchat_error_handler(request: Request, exc: VidChatError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    content = {"message": exc.message}
    if isinstance(exc, RateLimitError) and exc.retry_after:
        content["retryAfter"] = exc.retry_after
    return JSONResponse(status_code=exc.status_code, content=content)


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return JSONResponse(status_code=exc.status_code, content={"message": str(exc.detail)})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid request")
    return JSONResponse(
        status_code=400,
        content={"message": f"{field}: {message}" if field else message},
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content={"message": "Internal server error"})


# Include routers
app.include_router(videos.router, prefix=f"{API_PREFIX}/videos", tags=["videos"])
app.include_router(plans.router, prefix=f"{API_PREFIX}/videos", tags=["plans"])
app.include_router(profiles.router, prefix=f"{API_PREFIX}/profiles", tags=["profiles"])
app.include_router(feedback.router, prefix=f"{API_PREFIX}/feedback", tags=["feedback"])
app.include_router(admin.router, prefix=f"{API_PREFIX}/admin", tags=["admin"])
app.include_router(web_search.router, prefix=f"{API_PREFIX}/web-search", tags=["web-search"])


@app.get("/")
def root():
    """Root endpoint."""
    return {"message": "VidChat API", "version": "1.0.0"}


@app.get("/health")
@app.get(f"{API_PREFIX}/health")
def health():
    """Health check endpoint."""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
