from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app import __version__
from app.core.config import get_settings
from app.core.container import get_container
from app.core.logging import configure_logging
from app.infrastructure.database import dispose_engine, init_db
from app.interfaces.http import create_api_router
from app.interfaces.ws import router as websocket_router
from app.interfaces.ws.manager import manager

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings)
    await init_db()
    container = get_container()
    container.notifier.subscribe(manager.push_billing_event)
    yield
    await container.shutdown()
    container.notifier.unsubscribe(manager.push_billing_event)
    await dispose_engine()


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.project_name,
        description="Per-minute metered billing for two-party consultations",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(create_api_router(settings.api_prefix))
    app.include_router(websocket_router.router)

    @app.get("/health", tags=["health"])
    async def health() -> dict:
        return {"status": "ok", "version": __version__}

    return app


app = create_app()
