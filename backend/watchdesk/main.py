from contextlib import asynccontextmanager

from fastapi import FastAPI

from watchdesk.api.routes import router
from watchdesk.config.settings import Settings, settings
from watchdesk.logging_config import setup_logging
from watchdesk.services.context import build_market_context


def create_app(app_settings: Settings = settings) -> FastAPI:
    setup_logging(app_settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.market_context = build_market_context(app_settings)
        try:
            yield
        finally:
            await app.state.market_context.aclose()

    app = FastAPI(title="watchdesk", lifespan=lifespan)
    app.include_router(router)
    return app


app = create_app()
