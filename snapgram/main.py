# snapgram/main.py
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse
from fastapi.middleware.cors import CORSMiddleware
from fastapi.routing import APIRoute
from starlette.exceptions import HTTPException as StarletteHTTPException
from snapgram.core.config import settings
from snapgram.core.errors import SnapgramError
from snapgram.core.responses import ErrorResponse
from snapgram.db.mongodb import create_mongodb_indexes
from snapgram.router import api_router
from typing import List, Optional, Set
import logging

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else settings.LOG_LEVEL,
    format=settings.LOG_FORMAT
)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events"""
    logger.info("Starting up application services...")
    await create_mongodb_indexes()
    logger.info("All services started successfully")
    yield
    logger.info("Application shutdown completed")

def _error_body(status_code: int, message: str, errors: Optional[List[str]] = None) -> JSONResponse:
    body = ErrorResponse(message=message, errors=errors)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))

async def snapgram_error_handler(request: Request, exc: SnapgramError):
    """Translate the error taxonomy into the structured error body"""
    if exc.status_code >= 500:
        logger.error(f"{type(exc).__name__} on {request.url.path}: {exc.message}")
    else:
        logger.debug(f"{type(exc).__name__} on {request.url.path}: {exc.message}")
    return _error_body(exc.status_code, exc.message, exc.errors)

async def request_validation_handler(request: Request, exc: RequestValidationError):
    messages = []
    for error in exc.errors():
        message = str(error.get("msg", "Invalid value"))
        messages.append(message.removeprefix("Value error, "))
    return _error_body(400, "Validation failed", messages)

async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return _error_body(exc.status_code, str(exc.detail))

async def internal_error_handler(request: Request, exc: Exception):
    """Global exception handler for internal server errors"""
    logger.error(f"Internal Server Error: {exc}\nRequest path: {request.url.path}", exc_info=True)
    return _error_body(500, "Server error")

app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Image sharing social API with FastAPI and MongoDB",
    version="1.0.0",
    lifespan=lifespan,
    debug=settings.DEBUG
)

# Add error handlers
app.add_exception_handler(SnapgramError, snapgram_error_handler)
app.add_exception_handler(RequestValidationError, request_validation_handler)
app.add_exception_handler(StarletteHTTPException, http_error_handler)
app.add_exception_handler(Exception, internal_error_handler)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    max_age=3600,  # Cache preflight requests for 1 hour
)

# Mount all routes under the API prefix
app.include_router(api_router, prefix=settings.API_PREFIX)

@app.get("/", response_class=PlainTextResponse, include_in_schema=False)
async def root():
    return "Snapgram API is running!"

# Log all registered routes during startup
def log_routes():
    """Log all registered routes"""
    logger.debug("Registered routes:")
    for route in app.routes:
        if isinstance(route, APIRoute):
            methods: Set[str] = route.methods
            logger.debug(f"{sorted(methods)} {route.path} ({route.name})")

log_routes()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "snapgram.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level="debug" if settings.DEBUG else "info"
    )
