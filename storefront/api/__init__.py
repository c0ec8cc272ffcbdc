# storefront/api/__init__.py
from contextlib import asynccontextmanager

from fastapi import FastAPI

from storefront.api.deps import get_change_feed
from storefront.api.routers import admin, carts, health, kiosk, orders, users
from storefront.data.database import SessionLocal, init_db
from storefront.domain.schemas import Identity
from storefront.services.tracker import OrderStatusTracker
from storefront.utils.settings import SYSTEM_ROLE
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()

    # staff board: one cached order list per process, refreshed by the change feed
    tracker = OrderStatusTracker(
        SessionLocal,
        Identity(user_id=None, role=SYSTEM_ROLE),
        feed=get_change_feed(),
    )
    if tracker.feed is not None:
        tracker.subscribe()
    app.state.tracker = tracker
    logger.info("Storefront service started")
    try:
        yield
    finally:
        tracker.close()
        logger.info("Storefront service stopped")


def create_app() -> FastAPI:
    app = FastAPI(
        title="Storefront Ordering Service",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.include_router(health.router)
    app.include_router(users.router)
    app.include_router(carts.router)
    app.include_router(orders.router)
    app.include_router(kiosk.router)
    app.include_router(admin.router)

    return app
