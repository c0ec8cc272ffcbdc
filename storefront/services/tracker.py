# storefront/services/tracker.py
import threading
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Callable

from sqlalchemy.orm import Session

from storefront.data.models.order import as_utc, utc_now
from storefront.domain.errors import OrderNotFoundError, TransientStoreError
from storefront.domain.schemas import Identity, OrderStatus, OrderWithItems, StatusEventOut, TodayStats
from storefront.domain.status import validate_transition
from storefront.repos.order_repo import OrderRepo
from storefront.services.change_feed import ALL_EVENTS, Change, ChangeFeed, Subscription
from storefront.services.notification_service import NotificationService
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

WATCHED_TABLES = [("orders", ALL_EVENTS), ("order_status_history", ALL_EVENTS)]


class OrderStatusTracker:
    """
    Cached, newest-first view of orders kept in sync with the store.

    The cache is replaced wholesale on every refresh; change notifications
    trigger a full refetch rather than an in-place patch.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        identity: Identity,
        feed: ChangeFeed | None = None,
        notification_service: NotificationService | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.session_factory = session_factory
        self.identity = identity
        self.feed = feed
        self.notification_service = notification_service or NotificationService()
        self.clock = clock
        self.orders: list[OrderWithItems] = []
        self._subscription: Subscription | None = None
        self._sub_lock = threading.Lock()
        self._refresh_lock = threading.Lock()

    # =====================================================
    # SUBSCRIPTION
    # =====================================================
    @property
    def live(self) -> bool:
        return self._subscription is not None and self._subscription.active

    def subscribe(self) -> Subscription | None:
        if self.feed is None:
            logger.warning("No change feed configured, order list refreshes on demand only")
            return None

        with self._sub_lock:
            if self.live:
                return self._subscription
            self._subscription = self.feed.subscribe("orders", WATCHED_TABLES, self._on_change)

        self.fetch_all()
        return self._subscription

    def _on_change(self, change: Change) -> None:
        logger.info(f"Change on {change.table} ({change.event} {change.record_id}), refreshing orders")
        self.fetch_all()

    def close(self) -> None:
        with self._sub_lock:
            sub, self._subscription = self._subscription, None
        if sub is not None:
            sub.unsubscribe()

    # =====================================================
    # READS
    # =====================================================
    def _load(self, user_id: int | None = None) -> list[OrderWithItems]:
        db = self.session_factory()
        try:
            repo = OrderRepo(db)
            repo.set_user_context(self.identity.user_id, self.identity.role)
            return [OrderWithItems.model_validate(o) for o in repo.list_orders(user_id)]
        finally:
            db.close()

    def fetch_all(self) -> list[OrderWithItems]:
        with self._refresh_lock:
            try:
                self.orders = self._load()
            except TransientStoreError as e:
                logger.error(f"Error fetching orders, keeping {len(self.orders)} cached: {e}")
        return self.orders

    def fetch_for_user(self, user_id: int) -> list[OrderWithItems]:
        try:
            return self._load(user_id)
        except TransientStoreError as e:
            logger.error(f"Error fetching orders for user {user_id}: {e}")
            return []

    def get_order_by_id(self, order_id: int) -> OrderWithItems | None:
        db = self.session_factory()
        try:
            repo = OrderRepo(db)
            repo.set_user_context(self.identity.user_id, self.identity.role)
            order = repo.get_order(order_id)
            return OrderWithItems.model_validate(order) if order else None
        except TransientStoreError as e:
            logger.error(f"Error fetching order {order_id}: {e}")
            return None
        finally:
            db.close()

    def orders_by_status(self, status: OrderStatus) -> list[OrderWithItems]:
        return [o for o in self.orders if o.status == OrderStatus(status)]

    def status_history(self, order_id: int) -> list[StatusEventOut]:
        for order in self.orders:
            if order.id == order_id:
                return order.order_status_history
        return []

    @staticmethod
    def all_statuses() -> list[OrderStatus]:
        return list(OrderStatus)

    # =====================================================
    # COMMANDS
    # =====================================================
    def update_status(
        self,
        order_id: int,
        new_status: OrderStatus,
        note: str | None = None,
        actor: Identity | None = None,
    ) -> OrderWithItems:
        actor = actor or self.identity
        new_status = OrderStatus(new_status)

        db = self.session_factory()
        try:
            repo = OrderRepo(db, self.feed)
            repo.set_user_context(actor.user_id, actor.role)

            order = repo.get_order(order_id)
            if order is None:
                raise OrderNotFoundError(order_id)

            validate_transition(order.status, new_status, order.order_type)

            # events for one order never go back in time
            now = self.clock()
            history = order.order_status_history
            if history:
                last = max(as_utc(event.created_at) for event in history)
                now = max(as_utc(now), last)

            try:
                repo.update_order_status(order, new_status, now)
                repo.insert_status_event(
                    order.id,
                    new_status,
                    actor.user_id,
                    note or f"Status changed to {new_status.value}",
                    now,
                )
                repo.commit()
            except TransientStoreError:
                repo.rollback()
                raise

            logger.info(f"Order {order_id} moved to {new_status.value} by user {actor.user_id}")
            db.refresh(order)
            updated = OrderWithItems.model_validate(order)
            owner_id = order.user_id
        finally:
            db.close()

        self.notification_service.send_status_notification(owner_id, order_id, new_status.value)
        self.fetch_all()
        return updated

    # =====================================================
    # STATS
    # =====================================================
    def stats_for_today(self, now: datetime | None = None) -> TodayStats:
        """Today's figures in UTC; cancelled orders count but bring no revenue."""
        start = as_utc(now or self.clock()).replace(hour=0, minute=0, second=0, microsecond=0)
        end = start + timedelta(days=1)
        today = [o for o in self.orders if start <= as_utc(o.created_at) < end]

        def count(status: OrderStatus) -> int:
            return sum(1 for o in today if o.status == status)

        return TodayStats(
            total_orders=len(today),
            total_sales=sum(
                (o.total_amount for o in today if o.status != OrderStatus.CANCELLED),
                Decimal("0.00"),
            ),
            pending_orders=count(OrderStatus.PENDING),
            preparing_orders=count(OrderStatus.PREPARING),
            ready_orders=count(OrderStatus.READY),
            out_for_delivery_orders=count(OrderStatus.OUT_FOR_DELIVERY),
            completed_orders=count(OrderStatus.COMPLETED),
            cancelled_orders=count(OrderStatus.CANCELLED),
        )
