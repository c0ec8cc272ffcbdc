# storefront/api/deps.py
from functools import lru_cache

from fastapi import Depends, Header, HTTPException, Request
from sqlalchemy.orm import Session

from storefront.data.database import SessionLocal, get_db
from storefront.data.local_storage import LocalStorage
from storefront.api.errors import to_http
from storefront.domain.errors import TransientStoreError, UnauthenticatedError
from storefront.domain.schemas import Identity
from storefront.repos.cart_repo import CartRepo
from storefront.services.cart_service import CartReconciler
from storefront.services.catalog_client import CatalogClient
from storefront.services.change_feed import ChangeFeed
from storefront.services.lock_service import CartSyncLock
from storefront.services.order_service import OrderPlacementService
from storefront.services.tracker import OrderStatusTracker
from storefront.services.user_service import UserService
from storefront.utils.settings import REALTIME_ENABLED
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


@lru_cache
def get_change_feed() -> ChangeFeed | None:
    return ChangeFeed() if REALTIME_ENABLED else None


@lru_cache
def get_sync_lock() -> CartSyncLock | None:
    return CartSyncLock() if REALTIME_ENABLED else None


@lru_cache
def get_catalog() -> CatalogClient:
    return CatalogClient()


def get_session_factory():
    return SessionLocal


def get_storage(x_device_id: str = Header(...)) -> LocalStorage:
    try:
        return LocalStorage(x_device_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


def get_identity(
    x_user_id: int | None = Header(None),
    db: Session = Depends(get_db),
) -> Identity | None:
    try:
        return UserService(db).resolve_identity(x_user_id)
    except TransientStoreError as e:
        raise to_http(e)


def get_cart_identity(
    x_user_id: int | None = Header(None),
    db: Session = Depends(get_db),
) -> Identity | None:
    """Like get_identity, but a store outage leaves the caller on the device cart."""
    try:
        return UserService(db).resolve_identity(x_user_id)
    except TransientStoreError as e:
        logger.warning(f"Could not resolve user {x_user_id}, using the device cart: {e}")
        return None


def require_identity(identity: Identity | None = Depends(get_identity)) -> Identity:
    if identity is None:
        raise HTTPException(status_code=401, detail=str(UnauthenticatedError("continue")))
    return identity


def require_staff(identity: Identity = Depends(require_identity)) -> Identity:
    if not identity.is_staff:
        raise HTTPException(status_code=403, detail="Staff access required")
    return identity


def get_cart(
    storage: LocalStorage = Depends(get_storage),
    identity: Identity | None = Depends(get_cart_identity),
    db: Session = Depends(get_db),
    sync_lock: CartSyncLock | None = Depends(get_sync_lock),
) -> CartReconciler:
    cart = CartReconciler(storage=storage, repo=CartRepo(db), sync_lock=sync_lock)
    cart.load_for_identity(identity)
    return cart


def get_placement(
    cart: CartReconciler = Depends(get_cart),
    storage: LocalStorage = Depends(get_storage),
    db: Session = Depends(get_db),
    feed: ChangeFeed | None = Depends(get_change_feed),
) -> OrderPlacementService:
    return OrderPlacementService(db=db, cart=cart, storage=storage, feed=feed)


def get_board(request: Request) -> OrderStatusTracker:
    """The process-wide staff board tracker started with the app."""
    return request.app.state.tracker


def get_customer_tracker(
    identity: Identity = Depends(require_identity),
    session_factory=Depends(get_session_factory),
    feed: ChangeFeed | None = Depends(get_change_feed),
) -> OrderStatusTracker:
    return OrderStatusTracker(session_factory, identity, feed=feed)
