from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from marketplace import __version__
from marketplace.api.routers import admin, businesses, deletion_requests, files, ndas
from marketplace.api.schemas.common import ErrorResponse
from marketplace.common.logger import setup_logger
from marketplace.core.config import get_settings
from marketplace.core.errors import (
    ConflictError,
    ForbiddenError,
    IdentityProviderError,
    InvalidStateError,
    MarketplaceError,
    NotFoundError,
    StorageFailureError,
)

settings = get_settings()
logger = setup_logger(
    log_dir=settings.log_dir,
    level=settings.log_level,
    file_logging=settings.log_to_file,
)

ERROR_STATUS = {
    NotFoundError: status.HTTP_404_NOT_FOUND,
    ForbiddenError: status.HTTP_403_FORBIDDEN,
    ConflictError: status.HTTP_409_CONFLICT,
    InvalidStateError: status.HTTP_409_CONFLICT,
    StorageFailureError: status.HTTP_503_SERVICE_UNAVAILABLE,
    IdentityProviderError: status.HTTP_502_BAD_GATEWAY,
}

app = FastAPI(
    title=settings.app_name,
    description="Business marketplace access control and approval workflows",
    version=__version__,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.debug else [],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def error_status(exc: MarketplaceError, request: Request) -> int:
    """HTTP status for a core error; forbidden becomes 401 for anonymous callers."""
    for error_type in type(exc).__mro__:
        if error_type in ERROR_STATUS:
            code = ERROR_STATUS[error_type]
            break
    else:
        code = status.HTTP_500_INTERNAL_SERVER_ERROR

    actor = getattr(request.state, "actor", None)
    if code == status.HTTP_403_FORBIDDEN and (actor is None or actor.is_anonymous):
        code = status.HTTP_401_UNAUTHORIZED
    return code


@app.exception_handler(MarketplaceError)
async def marketplace_error_handler(request: Request, exc: MarketplaceError):
    code = error_status(exc, request)
    if code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    body = ErrorResponse(error=exc.message, code=exc.code, detail=exc.details or None)
    return JSONResponse(status_code=code, content=body.model_dump())


# Include routers
app.include_router(businesses.router, prefix="/api")
app.include_router(files.router, prefix="/api")
app.include_router(ndas.router, prefix="/api")
app.include_router(deletion_requests.router, prefix="/api")
app.include_router(admin.router, prefix="/api")


@app.get("/health")
async def health_check():
    return {"status": "healthy", "version": __version__}


@app.get("/")
async def root():
    return {
        "name": settings.app_name,
        "version": __version__,
        "docs": "/docs" if settings.debug else None,
    }
