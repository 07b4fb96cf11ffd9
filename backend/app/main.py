from contextlib import asynccontextmanager
from collections.abc import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import settings
from app.api.v1 import simulations
from app.core.logging import RequestLoggingMiddleware, setup_logging
from app.services.session_store import store


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    yield
    store.clear()


def create_app() -> FastAPI:
    setup_logging(json_format=settings.log_json)

    application = FastAPI(
        title=settings.app_name,
        version="0.1.0",
        lifespan=lifespan,
    )

    application.add_middleware(RequestLoggingMiddleware)
    application.add_middleware(
        CORSMiddleware,
        allow_origins=[o.strip() for o in settings.cors_origins.split(",") if o.strip()],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    application.include_router(
        simulations.router, prefix="/api/v1", tags=["simulations"]
    )

    @application.get("/health")
    async def health_check() -> dict:
        return {
            "status": "ok",
            "environment": settings.environment,
            "sessions": len(store),
        }

    return application


app = create_app()
