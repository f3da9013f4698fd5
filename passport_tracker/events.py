import logging

from fastapi import FastAPI

from passport_tracker.db.init_db import init_db
from passport_tracker.db.session import create_engine, create_session_factory

logger = logging.getLogger(__name__)


def register_event_handlers(app: FastAPI) -> None:
    @app.on_event("startup")
    async def on_startup() -> None:
        logger.info("Application startup")
        if getattr(app.state, "engine", None) is None:
            app.state.engine = create_engine()
            app.state.session_factory = create_session_factory(app.state.engine)
        await init_db(app.state.session_factory)

    @app.on_event("shutdown")
    async def on_shutdown() -> None:
        logger.info("Application shutdown")
        engine = getattr(app.state, "engine", None)
        if engine is not None:
            await engine.dispose()
            app.state.engine = None
