# storefront/repos/order_repo.py
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from storefront.data.models.order import OrderModel, OrderItemModel, OrderStatusHistoryModel
from storefront.domain.errors import AuthorizationError
from storefront.domain.schemas import OrderStatus
from storefront.repos.context import get_user_context, set_user_context, store_call, UserContext
from storefront.services.change_feed import Change, ChangeFeed


class OrderRepo:
    """
    Orders, their lines and status history.

    Inserts and updates stay in the session until ``commit``; committed
    changes are then announced on the change feed.
    """

    def __init__(self, db: Session, feed: ChangeFeed | None = None):
        self.db = db
        self.feed = feed
        self._pending: list[Change] = []

    def set_user_context(self, user_id: int | None, role: str) -> UserContext:
        return set_user_context(self.db, user_id, role)

    def _eager(self):
        return select(OrderModel).options(
            selectinload(OrderModel.order_items),
            selectinload(OrderModel.order_status_history),
        )

    # =====================================================
    # WRITES
    # =====================================================
    @store_call("insert orders")
    def insert_order(self, order: OrderModel) -> OrderModel:
        ctx = get_user_context(self.db, "insert orders")
        if not ctx.may_place_for_anyone and order.user_id != ctx.user_id:
            raise AuthorizationError("insert orders")

        self.db.add(order)
        self.db.flush()
        self._pending.append(Change("orders", "INSERT", order.id))
        return order

    @store_call("insert order_items")
    def insert_order_items(self, order_id: int, items: list[OrderItemModel]) -> list[OrderItemModel]:
        get_user_context(self.db, "insert order_items")
        for item in items:
            item.order_id = order_id
            self.db.add(item)
        self.db.flush()
        return items

    @store_call("insert order_status_history")
    def insert_status_event(
        self,
        order_id: int,
        status: OrderStatus,
        changed_by: int | None,
        notes: str | None,
        created_at: datetime,
    ) -> OrderStatusHistoryModel:
        get_user_context(self.db, "insert order_status_history")
        event = OrderStatusHistoryModel(
            order_id=order_id,
            status=OrderStatus(status).value,
            changed_by=changed_by,
            notes=notes,
            created_at=created_at,
        )
        self.db.add(event)
        self.db.flush()
        self._pending.append(Change("order_status_history", "INSERT", event.id))
        return event

    @store_call("update orders")
    def update_order_status(self, order: OrderModel, status: OrderStatus, updated_at: datetime) -> OrderModel:
        ctx = get_user_context(self.db, "update orders")
        owner_cancel = status == OrderStatus.CANCELLED and ctx.user_id is not None and ctx.user_id == order.user_id
        if not ctx.sees_all_orders and not owner_cancel:
            raise AuthorizationError("update orders")

        order.status = OrderStatus(status).value
        order.updated_at = updated_at
        self.db.flush()
        self._pending.append(Change("orders", "UPDATE", order.id))
        return order

    # =====================================================
    # READS
    # =====================================================
    @store_call("select orders")
    def get_order(self, order_id: int) -> OrderModel | None:
        ctx = get_user_context(self.db, "select orders")
        stmt = self._eager().where(OrderModel.id == order_id)
        if not ctx.sees_all_orders:
            # rows the caller doesn't own are filtered, not rejected
            stmt = stmt.where(OrderModel.user_id == ctx.user_id)
        return self.db.execute(stmt).scalar_one_or_none()

    @store_call("select orders")
    def list_orders(self, user_id: int | None = None) -> list[OrderModel]:
        ctx = get_user_context(self.db, "select orders")
        stmt = self._eager().order_by(OrderModel.created_at.desc(), OrderModel.id.desc())
        if user_id is not None:
            stmt = stmt.where(OrderModel.user_id == user_id)
        if not ctx.sees_all_orders:
            stmt = stmt.where(OrderModel.user_id == ctx.user_id)
        return list(self.db.execute(stmt).scalars().unique())

    # =====================================================
    # TRANSACTION
    # =====================================================
    @store_call("commit")
    def commit(self):
        self.db.commit()
        changes, self._pending = self._pending, []
        if self.feed is not None:
            self.feed.publish_all(changes)

    def rollback(self):
        self._pending = []
        self.db.rollback()
