"""
FastAPI application entry point.

`create_app` wires middleware, routers, the storage backend and the
recommendation gateway. Storage and gateway can be passed in (tests do);
otherwise they are built from settings.
"""
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from typing import Optional
import logging
import time

from fityog import __version__
from fityog.core.config import Settings, settings as default_settings
from fityog.core.exceptions import register_exception_handlers
from fityog.core.logging import setup_logging
from fityog.core.security_headers import SecurityHeadersMiddleware
from fityog.routers import auth, bookings, chat, exercises, experts
from fityog.services.expert_seed import seed_experts
from fityog.services.recommendation_gateway import RecommendationGateway
from fityog.services.storage import Storage, create_storage

logger = logging.getLogger(__name__)

DEV_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:5173",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:5173",
]


def create_app(
    settings: Optional[Settings] = None,
    storage: Optional[Storage] = None,
    gateway: Optional[RecommendationGateway] = None,
) -> FastAPI:
    settings = settings or default_settings
    setup_logging(settings)

    app = FastAPI(
        title="FitYog API",
        description="Exercise log, expert bookings and AI yoga/fitness recommendations",
        version=__version__,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
    )
    app.state.settings = settings
    app.state.storage = storage or create_storage(settings)
    app.state.gateway = gateway or RecommendationGateway.from_settings(settings)

    # CORS middleware
    # Cookies are sent cross-origin, so origins must be explicit
    if settings.CORS_ORIGINS:
        allowed_origins = [origin.strip() for origin in settings.CORS_ORIGINS.split(",")]
    else:
        allowed_origins = DEV_ORIGINS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(SecurityHeadersMiddleware, hsts=settings.ENVIRONMENT == "production")

    # Request logging middleware
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log all requests with timing information."""
        start_time = time.time()
        response = await call_next(request)
        process_time = time.time() - start_time

        logger.info(
            f"Response: {request.method} {request.url.path} - {response.status_code}",
            extra={
                "extra_fields": {
                    "method": request.method,
                    "path": request.url.path,
                    "status_code": response.status_code,
                    "process_time_ms": round(process_time * 1000, 2),
                }
            }
        )
        response.headers["X-Process-Time"] = str(process_time)
        return response

    register_exception_handlers(app)

    @app.on_event("startup")
    def seed_sample_experts():
        if settings.SEED_EXPERTS:
            seed_experts(app.state.storage)

    @app.on_event("shutdown")
    def close_storage():
        app.state.storage.close()

    @app.get("/health")
    def health():
        """
        Simple health check for load balancers and uptime monitors.

        Returns:
            - 200: storage reachable
            - 503: storage unavailable
        """
        if not app.state.storage.ping():
            return JSONResponse(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                content={"status": "unhealthy", "storage": "unavailable"},
            )
        return {"status": "healthy", "timestamp": time.time()}

    @app.get("/ping")
    def ping():
        """No dependencies checked - just confirms the API is responding."""
        return {"pong": True}

    app.include_router(auth.router)
    app.include_router(exercises.router)
    app.include_router(experts.router)
    app.include_router(bookings.router)
    app.include_router(chat.router)

    return app


app = create_app()


def run():
    """Console entry point: serve `app` with uvicorn."""
    import uvicorn

    uvicorn.run(
        "fityog.main:app",
        host=default_settings.API_HOST,
        port=default_settings.API_PORT,
        reload=default_settings.API_RELOAD,
    )
