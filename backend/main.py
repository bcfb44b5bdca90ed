from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import traceback
import uvicorn

from core.config import settings
from core.logger import logger, setup_logging
from core.exceptions import (
    ContextLoadError,
    GenerationError,
    ScriptEngineException,
    ValidationError,
    get_user_friendly_message,
)
from api.routes import router as api_router


# Create FastAPI app
app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Short-form video script generation using the Speed Write formula",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

# CORS middleware for frontend communication
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request, call_next):
    logger.info(f">>> REQUEST: {request.method} {request.url.path}")
    response = await call_next(request)
    logger.info(f"<<< RESPONSE: {response.status_code}")
    return response

# Include API routes
app.include_router(api_router, prefix=settings.API_V1_STR)


def status_code_for(exc: ScriptEngineException) -> int:
    if isinstance(exc, ValidationError):
        return 422
    if isinstance(exc, ContextLoadError):
        return 404 if exc.not_found else 503
    if isinstance(exc, GenerationError):
        return 502
    return 500


# Global exception handlers
@app.exception_handler(ScriptEngineException)
async def script_engine_exception_handler(request, exc: ScriptEngineException):
    status_code = status_code_for(exc)
    if status_code >= 500:
        logger.error(f"Application error ({exc.error_code}): {exc.message}")
    else:
        logger.warning(f"Request rejected ({exc.error_code}): {exc.message}")

    content = {
        "error": exc.error_code,
        "message": exc.message if isinstance(exc, ValidationError) else get_user_friendly_message(exc.error_code),
    }
    if isinstance(exc, ValidationError):
        content["errors"] = exc.errors
        content["warnings"] = exc.warnings
    return JSONResponse(status_code=status_code, content=content)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request, exc: RequestValidationError):
    return JSONResponse(
        status_code=422,
        content={
            "error": "INVALID_REQUEST",
            "message": get_user_friendly_message("INVALID_REQUEST"),
            "errors": [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()],
        },
    )


@app.exception_handler(Exception)
async def general_exception_handler(request, exc: Exception):
    logger.error(f"Unexpected error: {type(exc).__name__}: {str(exc)}")
    logger.error(f"Full traceback: {traceback.format_exc()}")

    return JSONResponse(
        status_code=500,
        content={
            "error": "INTERNAL_ERROR",
            "message": "An unexpected error occurred. Please try again.",
        }
    )

# Health check endpoint
@app.get("/health")
async def health_check():
    completion_ready, completion_status = settings.validate_openai_config()
    return {
        "status": "healthy",
        "service": settings.PROJECT_NAME,
        "version": "1.0.0",
        "completion_configured": completion_ready,
        "completion_status": completion_status,
    }

# Root endpoint
@app.get("/")
async def root():
    return {
        "message": f"{settings.PROJECT_NAME} API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health"
    }


if __name__ == "__main__":
    setup_logging()
    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower()
    )
