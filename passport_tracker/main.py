from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi.middleware import SlowAPIMiddleware

from passport_tracker.api.v1 import api_router
from passport_tracker.core.errors import register_exception_handlers
from passport_tracker.core.limiter import limiter
from passport_tracker.core.logging import configure_logging
from passport_tracker.core.settings import settings
from passport_tracker.events import register_event_handlers
from passport_tracker.middlewares.request_context import RequestContextMiddleware
from passport_tracker.middlewares.request_trace import RequestTraceMiddleware


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(title="Passport Application Tracker", version="0.1.0")
    app.state.engine = None
    app.state.session_factory = None
    register_exception_handlers(app)
    app.state.limiter = limiter
    app.add_middleware(SlowAPIMiddleware)
    app.add_middleware(RequestTraceMiddleware)
    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(api_router, prefix="/api/v1")
    register_event_handlers(app)
    return app


app = create_app()
