import asyncio
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.config import settings
from api.constants import MSG_GENERAL_ERROR, MSG_VALIDATION_ERROR
from api.db import init_database
from api.errors import DomainError
from api.limiter import limiter
from api.middleware import CorrelationMiddleware, SecurityHeadersMiddleware
from api.routes import auth_router, org_router
from api.utils.logging import setup_logging, log_error
from api.utils.responses import error_response

setup_logging(level=settings.log_level, json_format=settings.log_json)

logger = logging.getLogger("hr-admin")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup - initialize database (wait for it to complete)
    try:
        await asyncio.wait_for(init_database(), timeout=120)
    except asyncio.TimeoutError:
        logger.error("Database initialization timed out")

    yield


app = FastAPI(
    title="HR Admin API",
    description="Multi-tenant HR administration API: recruitment, employees, organizational positions",
    version="1.0.0",
    lifespan=lifespan,
)

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError):
    logger.info(
        f"{type(exc).__name__}: {exc.message}",
        extra={"path": request.url.path, "status_code": exc.status_code}
    )
    return JSONResponse(status_code=exc.status_code, content=error_response(exc.message, exc.errors))


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content=error_response(str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = [
        {
            "field": ".".join(str(part) for part in error["loc"][1:]) or str(error["loc"][0]),
            "message": error["msg"],
        }
        for error in exc.errors()
    ]
    return JSONResponse(status_code=400, content=error_response(MSG_VALIDATION_ERROR, errors))


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    log_error(exc, {"method": request.method, "path": request.url.path})
    return JSONResponse(status_code=500, content=error_response(MSG_GENERAL_ERROR))


# CORS - use allowed origins from settings (not wildcard)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_allowed_origins_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Security headers and request correlation ids
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(CorrelationMiddleware)

# Routes
app.include_router(auth_router, prefix="/api/auth", tags=["auth"])
app.include_router(org_router, prefix="/api/{org_slug}")


@app.get("/health")
async def health_check():
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
