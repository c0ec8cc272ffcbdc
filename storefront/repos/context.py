# storefront/repos/context.py
from dataclasses import dataclass
from functools import wraps

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from storefront.domain.errors import AuthorizationError, TransientStoreError
from storefront.domain.schemas import STAFF_ROLES
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

_CONTEXT_KEY = "user_context"


@dataclass(frozen=True)
class UserContext:
    """Row-level authorization context evaluated by the store's policies."""

    user_id: int | None
    role: str

    @property
    def sees_all_orders(self) -> bool:
        return self.role in STAFF_ROLES

    @property
    def may_place_for_anyone(self) -> bool:
        return self.role in STAFF_ROLES or self.role == "kiosk"


def set_user_context(db: Session, user_id: int | None, role: str) -> UserContext:
    ctx = UserContext(user_id=user_id, role=role)
    db.info[_CONTEXT_KEY] = ctx
    return ctx


def get_user_context(db: Session, operation: str) -> UserContext:
    ctx = db.info.get(_CONTEXT_KEY)
    if ctx is None:
        raise AuthorizationError(operation, "user context not set")
    return ctx


def store_call(operation: str):
    """Turn SQLAlchemy failures into TransientStoreError and roll the session back."""

    def decorator(fn):
        @wraps(fn)
        def wrapper(self, *args, **kwargs):
            try:
                return fn(self, *args, **kwargs)
            except SQLAlchemyError as e:
                logger.error(f"Store call {operation} failed: {e}")
                self.rollback()
                raise TransientStoreError(operation, str(e.__class__.__name__)) from e

        return wrapper

    return decorator
