# storefront/repos/cart_repo.py
from typing import Iterable

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from storefront.data.models.cart_item import CartItemModel
from storefront.domain.errors import AuthorizationError
from storefront.repos.context import get_user_context, set_user_context, store_call, UserContext


class CartRepo:
    """Account-scoped cart rows; every call is checked against the caller's context."""

    def __init__(self, db: Session):
        self.db = db

    def set_user_context(self, user_id: int | None, role: str) -> UserContext:
        return set_user_context(self.db, user_id, role)

    def _authorize(self, operation: str, user_id: int) -> None:
        ctx = get_user_context(self.db, operation)
        if ctx.user_id is None or ctx.user_id != user_id:
            raise AuthorizationError(operation)

    @store_call("select cart_items")
    def get_cart_items(self, user_id: int) -> list[CartItemModel]:
        self._authorize("select cart_items", user_id)
        return list(
            self.db.execute(
                select(CartItemModel)
                .where(CartItemModel.user_id == user_id)
                .order_by(CartItemModel.id)
            ).scalars()
        )

    @store_call("delete cart_items")
    def delete_cart_items(self, user_id: int) -> int:
        self._authorize("delete cart_items", user_id)
        return self.db.execute(delete(CartItemModel).where(CartItemModel.user_id == user_id)).rowcount

    @store_call("insert cart_items")
    def insert_cart_items(self, user_id: int, rows: Iterable[CartItemModel]) -> None:
        self._authorize("insert cart_items", user_id)
        for row in rows:
            row.user_id = user_id
            self.db.add(row)
        self.db.flush()

    @store_call("replace cart_items")
    def replace_cart_items(self, user_id: int, rows: list[CartItemModel]) -> None:
        """Clear-then-insert the whole cart in one commit."""
        self.delete_cart_items(user_id)
        if rows:
            self.insert_cart_items(user_id, rows)
        self.db.commit()

    @store_call("commit")
    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
