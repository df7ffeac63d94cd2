import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.wiring import AppServices, build_services
from routes.realtime_ws import router as realtime_router
from routes.videos import router as videos_router
from services.settings import Settings

logger = logging.getLogger(__name__)


def create_app(services: AppServices | None = None, settings: Settings | None = None) -> FastAPI:
    """
    Build the API app. Collaborators are created in the lifespan handler
    unless `services` is passed in (tests do this to inject fakes).
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if app.state.services is None:
            app.state.services = build_services(settings or Settings.from_env())
        svc: AppServices = app.state.services
        if svc.index.enabled:
            await asyncio.to_thread(svc.index.ensure_collection)
        if svc.poller is not None and svc.settings.poller_enabled:
            svc.poller.start()
        try:
            yield
        finally:
            if svc.poller is not None:
                await svc.poller.stop()
            svc.registry.close_all()
            logger.info("[app] Shutdown complete.")

    app = FastAPI(title="Video Moderation API", version="0.1.0", lifespan=lifespan)
    app.state.services = services
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    app.include_router(videos_router, prefix="/api")
    app.include_router(realtime_router, prefix="/api")
    return app


app = create_app()
