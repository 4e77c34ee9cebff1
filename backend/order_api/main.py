import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from order_api import __version__
from order_api.api import health, orders
from order_api.api.errors import register_error_handlers
from order_api.api.middleware import HTTPSRedirectMiddleware
from order_api.config import Settings, load_settings
from order_api.db.session import build_engine, build_session_factory, init_schema
from order_api.logging_config import setup_logging

logger = logging.getLogger("order_api")

SWAGGER_PATH = "/swagger"
OPENAPI_PATH = "/swagger/v1/swagger.json"

ENDPOINTS = [
    "GET  /api/orders",
    "POST /api/orders",
    "GET  /api/orders/{id}",
    "PUT  /api/orders/{id}",
    "DELETE /api/orders/{id}",
    "GET  /health",
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_schema(app.state.engine)
    logger.info("API is ready to accept requests")
    yield
    app.state.engine.dispose()


def _log_startup(settings: Settings) -> None:
    logger.info("=== Starting Order Management API ===")
    logger.info("Environment: %s", settings.environment.value)
    logger.info("Database connection: %s", settings.masked_database_url())

    if settings.redirects_to_https:
        logger.info("HTTPS redirection to port %s", settings.https_port)

    if settings.cors.allow_any_origin:
        logger.info("CORS: any origin allowed")
    else:
        logger.info("CORS: %s (credentials allowed)", ", ".join(settings.cors.allowed_origins))

    endpoints = list(ENDPOINTS)
    if settings.enable_swagger:
        logger.info("Swagger UI enabled at %s", SWAGGER_PATH)
        endpoints.append(f"GET  {SWAGGER_PATH}")

    logger.info("Available endpoints:")
    for endpoint in endpoints:
        logger.info("  - %s", endpoint)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    # Fails fast with ConfigurationError before anything is served
    if settings is None:
        settings = load_settings()

    setup_logging(settings.log_level)
    _log_startup(settings)

    app = FastAPI(
        title="Order Management API",
        version=__version__,
        description=(
            "Order Management System API - "
            f"{settings.environment.value} Environment"
        ),
        docs_url=SWAGGER_PATH if settings.enable_swagger else None,
        openapi_url=OPENAPI_PATH if settings.enable_swagger else None,
        redoc_url=None,
        lifespan=lifespan,
    )

    engine = build_engine(settings)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)

    # Middleware FIRST
    if settings.cors.allow_any_origin:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=False,
            allow_methods=["*"],
            allow_headers=["*"],
        )
    else:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(settings.cors.allowed_origins),
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    if settings.redirects_to_https:
        app.add_middleware(HTTPSRedirectMiddleware, https_port=settings.https_port)

    register_error_handlers(app)

    # Routes AFTER middleware
    app.include_router(orders.router)
    app.include_router(health.router)

    return app
