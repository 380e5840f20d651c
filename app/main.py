import logging
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.config import settings
from app.core.errors import GovernanceError
from app.core.results import OperationError, failure
from app.modules.auth import routes as auth_routes
from app.modules.profiles import routes as profiles_routes
from app.modules.proposals import routes as proposals_routes
from app.modules.monthly_selections import routes as monthly_selections_routes
from app.modules.final_votes import routes as final_votes_routes
from app.modules.applications import routes as applications_routes
from app.modules.polls import routes as polls_routes
from app.modules.dashboard import routes as dashboard_routes

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)

limiter = Limiter(key_func=get_remote_address, default_limits=[settings.rate_limit])
app = FastAPI(
    title=settings.app_name,
    debug=settings.debug,
    redirect_slashes=False,
)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(GovernanceError)
async def governance_exception_handler(request: Request, exc: GovernanceError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path}: {exc.message}", exc_info=exc.cause)
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.to_dict(include_cause=not settings.is_production)},
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content=failure(str(exc.detail), "HTTP_ERROR"),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    cause = None if settings.is_production else str(jsonable_encoder(exc.errors()))
    return JSONResponse(
        status_code=422,
        content=failure("Invalid request", "VALIDATION_ERROR", cause),
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception: %s", exc)
    if settings.is_production:
        return JSONResponse(status_code=500, content=failure("Internal server error", "INTERNAL_ERROR"))
    return JSONResponse(status_code=500, content=failure("Internal server error", "INTERNAL_ERROR", str(exc)))


class SecurityHeadersMiddleware:
    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def send_with_headers(message):
            if message["type"] == "http.response.start":
                message.setdefault("headers", [])
                message["headers"].extend([
                    (b"X-Content-Type-Options", b"nosniff"),
                    (b"X-Frame-Options", b"DENY"),
                    (b"X-XSS-Protection", b"1; mode=block"),
                ])
            await send(message)

        await self.app(scope, receive, send_with_headers)


app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include module routes
error_responses = {status: {"model": OperationError} for status in (400, 401, 403, 404, 409, 422, 500)}
app.include_router(auth_routes.router, prefix="/api/v1", responses=error_responses)
app.include_router(profiles_routes.router, prefix="/api/v1", responses=error_responses)
app.include_router(proposals_routes.router, prefix="/api/v1", responses=error_responses)
app.include_router(monthly_selections_routes.router, prefix="/api/v1", responses=error_responses)
app.include_router(final_votes_routes.router, prefix="/api/v1", responses=error_responses)
app.include_router(applications_routes.router, prefix="/api/v1", responses=error_responses)
app.include_router(polls_routes.router, prefix="/api/v1", responses=error_responses)
app.include_router(dashboard_routes.router, prefix="/api/v1", responses=error_responses)


@app.on_event("startup")
async def startup_event():
    logger.info(f"Application startup ({settings.environment})")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Application shutdown")


@app.get("/")
async def root():
    return {"message": f"Welcome to {settings.app_name}", "status": "healthy"}


@app.get("/health")
@limiter.exempt
async def health():
    return {"status": "healthy"}


@app.get("/ready")
@limiter.exempt
async def ready():
    """Readiness probe: extend here with store checks if needed."""
    return {"status": "ready"}
