"""FastAPI application entry point.

Wiring only: lifespan, exception handlers, middleware, routers. Settings
are loaded inside create_app() so tests can set env first.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from statusflow.api.v1 import api_router
from statusflow.core.config import get_settings
from statusflow.core.exception_handlers import register_exception_handlers
from statusflow.core.lifespan import create_lifespan
from statusflow.middleware import CorrelationIDMiddleware


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        lifespan=create_lifespan,
    )

    register_exception_handlers(app)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[o.strip() for o in settings.allowed_origins.split(",") if o.strip()],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(CorrelationIDMiddleware, header_name=settings.correlation_id_header)

    app.include_router(api_router, prefix="/api/v1")
    return app


app = create_app()
