"""FastAPI application factory."""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from stock_count.api.admin_routes import router as admin_router
from stock_count.api.errors import register_error_handlers
from stock_count.api.inventory_routes import router as inventory_router
from stock_count.api.movement_routes import router as movement_router
from stock_count.api.reconciliation_routes import router as reconciliation_router
from stock_count.api.report_routes import router as report_router
from stock_count.db import init_db
from stock_count.utils.logger import get_logger

logger = get_logger("stock_count.api.server")


@asynccontextmanager
async def _lifespan(app: FastAPI):
    init_db()
    logger.info("api.lifespan.started")
    yield
    logger.info("api.lifespan.stopped")


def create_app() -> FastAPI:
    app = FastAPI(title="Stock Count", version="0.1.0", lifespan=_lifespan)
    register_error_handlers(app)

    app.include_router(inventory_router)
    app.include_router(movement_router)
    app.include_router(reconciliation_router)
    app.include_router(report_router)
    app.include_router(admin_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    return app
