# streetmart/main.py

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import Settings, settings as default_settings
from .database import Database
from .errors import STORE_FAILURES, MarketplaceError, transient_store_error
from .seed_data import seed_demo_data
from .utils.helpers import utcnow

from .api import materials as materials_api
from .api import orders as orders_api
from .api import reviews as reviews_api
from .api import users as users_api
from .api import events as events_api

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or default_settings
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(title="StreetMart Order Core")
    app.state.settings = settings
    app.state.db = Database(settings.database_url, timeout=settings.db_timeout_seconds)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include API routers
    app.include_router(materials_api.router)
    app.include_router(orders_api.router)
    app.include_router(reviews_api.router)
    app.include_router(users_api.router)
    app.include_router(events_api.router)

    @app.exception_handler(MarketplaceError)
    async def marketplace_error_handler(request: Request, exc: MarketplaceError):
        if exc.status_code >= 500:
            logger.warning("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.message, "error": type(exc).__name__},
        )

    async def store_failure_handler(request: Request, exc: Exception):
        # Lock waits and dropped connections outside a service boundary
        # (token lookup, catalog writes) still answer 503.
        return await marketplace_error_handler(request, transient_store_error(exc))

    for exc_class in STORE_FAILURES:
        app.add_exception_handler(exc_class, store_failure_handler)

    @app.on_event("startup")
    def startup_event():
        app.state.db.open()
        if settings.seed_demo_data:
            with app.state.db.session() as session:
                seed_demo_data(session)

    @app.on_event("shutdown")
    def shutdown_event():
        app.state.db.close()

    @app.get("/api/health")
    def health():
        return {"status": "OK", "timestamp": utcnow().isoformat()}

    return app


app = create_app()
