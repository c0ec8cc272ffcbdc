"""Tests for OrderPlacementService."""

from decimal import Decimal
from unittest.mock import MagicMock

import pytest
from sqlalchemy import func, select

from conftest import PLACED_AT, make_line
from storefront.data.local_storage import CART_KEY, LAST_ORDER_KEY
from storefront.data.models.order import OrderItemModel, OrderModel, OrderStatusHistoryModel
from storefront.domain.errors import EmptyCartError, TransientStoreError, UnauthenticatedError
from storefront.domain.schemas import (
    CustomerInfo,
    DeliveryInfo,
    FoodItem,
    LastOrderSnapshot,
    OrderStatus,
    OrderType,
    OrderWithItems,
    PaymentMethod,
)
from storefront.repos.order_repo import OrderRepo
from storefront.services.cart_service import line_from_menu
from storefront.services.order_service import OrderPlacementService, estimated_time

CUSTOMER = CustomerInfo(full_name="Ana Cruz", phone="0917 555 0101", email="ana@example.com")
DELIVERY = DeliveryInfo(order_type=OrderType.DELIVERY, address="12 Mabini St")
PICKUP = DeliveryInfo(order_type=OrderType.PICKUP)


def count(db, model):
    return db.execute(select(func.count()).select_from(model)).scalar_one()


def fill(cart, identity):
    cart.load_for_identity(identity)
    cart.add_line(make_line(1, price="120.00", name="Rice Bowl"), quantity=2)
    cart.add_line(make_line(2, price="50.00", name="Iced Tea"), quantity=1)


class TestPreconditions:
    def test_empty_cart_makes_no_store_calls(self, placement, cart, customer):
        cart.load_for_identity(customer)
        placement.repo = MagicMock(spec=OrderRepo)

        with pytest.raises(EmptyCartError):
            placement.place_order(CUSTOMER, DELIVERY, PaymentMethod.CASH, customer)

        assert placement.repo.method_calls == []

    def test_signed_out_checkout_is_rejected(self, placement, cart, db):
        fill(cart, None)

        with pytest.raises(UnauthenticatedError):
            placement.place_order(CUSTOMER, PICKUP, PaymentMethod.CASH, None)

        assert count(db, OrderModel) == 0
        assert len(cart.lines) == 2

    def test_guest_checkout_when_enabled(self, db, cart, storage, notifier):
        fill(cart, None)
        svc = OrderPlacementService(db=db, cart=cart, storage=storage, notification_service=notifier, allow_guest=True)

        order = svc.place_order(CUSTOMER, PICKUP, PaymentMethod.CASH, None)

        assert order.user_id is None
        assert cart.lines == []


class TestPlaceOrder:
    def test_order_lines_and_total(self, placement, cart, db, customer):
        fill(cart, customer)

        order = placement.place_order(CUSTOMER, DELIVERY, PaymentMethod.CARD, customer)

        assert order.status == OrderStatus.PENDING
        assert order.total_amount == Decimal("290.00")
        assert order.order_number.startswith("BK261019")

        items = db.execute(select(OrderItemModel).where(OrderItemModel.order_id == order.id)).scalars().all()
        assert sorted((i.food_name, i.quantity, i.total_price) for i in items) == [
            ("Iced Tea", 1, Decimal("50.00")),
            ("Rice Bowl", 2, Decimal("240.00")),
        ]
        assert order.total_amount == sum(i.total_price for i in items)

    def test_total_survives_menu_price_change(self, placement, cart, db, customer):
        cart.load_for_identity(customer)
        item = FoodItem(id=1, name="Rice Bowl", price=Decimal("120.00"))
        cart.add_line(line_from_menu(item), quantity=2)
        order = placement.place_order(CUSTOMER, PICKUP, PaymentMethod.CASH, customer)

        item.price = Decimal("999.00")

        repo = OrderRepo(db)
        repo.set_user_context(customer.user_id, customer.role)
        stored = OrderWithItems.model_validate(repo.get_order(order.id))
        assert stored.total_amount == Decimal("240.00")
        assert stored.total_amount == sum(i.total_price for i in stored.order_items)

    def test_opening_status_event_is_written(self, placement, cart, db, customer):
        fill(cart, customer)

        order = placement.place_order(CUSTOMER, PICKUP, PaymentMethod.CASH, customer)

        events = db.execute(
            select(OrderStatusHistoryModel).where(OrderStatusHistoryModel.order_id == order.id)
        ).scalars().all()
        assert [e.status for e in events] == ["pending"]
        assert events[0].changed_by == customer.user_id

    def test_cart_is_cleared(self, placement, cart, db, customer):
        fill(cart, customer)

        placement.place_order(CUSTOMER, PICKUP, PaymentMethod.CASH, customer)

        assert cart.lines == []
        assert cart.load_for_identity(customer) == []

    def test_last_order_snapshot_is_cached(self, placement, cart, storage, customer):
        fill(cart, customer)

        order = placement.place_order(CUSTOMER, DELIVERY, PaymentMethod.CASH, customer)

        snapshot = LastOrderSnapshot.model_validate(storage.get_item(LAST_ORDER_KEY))
        assert snapshot.id == order.id
        assert snapshot.total == Decimal("290.00")
        assert len(snapshot.items) == 2
        assert snapshot.estimated_time == "30-45 minutes"
        assert snapshot.created_at == PLACED_AT

    def test_notification_is_queued(self, placement, cart, notifier, customer):
        fill(cart, customer)

        order = placement.place_order(CUSTOMER, PICKUP, PaymentMethod.CASH, customer)

        notifier.send_order_notification.assert_called_once_with(customer.user_id, order.id, order.order_number)

    def test_customer_cannot_insert_order_for_someone_else(self, db, customer):
        repo = OrderRepo(db)
        repo.set_user_context(customer.user_id, customer.role)
        order = OrderModel(
            order_number="BK261019001",
            user_id=11,
            customer_name="Ben Reyes",
            customer_phone="0917",
            order_type="pickup",
            payment_method="cash",
            status="pending",
            total_amount=Decimal("10.00"),
            created_at=PLACED_AT,
            updated_at=PLACED_AT,
        )

        with pytest.raises(PermissionError):
            repo.insert_order(order)

        assert count(db, OrderModel) == 0


class TestFailedPlacement:
    def test_line_insert_failure_leaves_no_orphan_order(self, placement, cart, db, storage, customer):
        fill(cart, None)
        placement.repo.insert_order_items = MagicMock(side_effect=TransientStoreError("insert order_items"))

        with pytest.raises(TransientStoreError):
            placement.place_order(CUSTOMER, PICKUP, PaymentMethod.CASH, customer)

        assert count(db, OrderModel) == 0
        assert count(db, OrderStatusHistoryModel) == 0

    def test_cart_is_kept_for_retry(self, placement, cart, storage, customer):
        fill(cart, None)
        placement.repo.insert_order = MagicMock(side_effect=TransientStoreError("insert orders"))

        with pytest.raises(TransientStoreError):
            placement.place_order(CUSTOMER, PICKUP, PaymentMethod.CASH, customer)

        assert len(cart.lines) == 2
        assert len(storage.get_item(CART_KEY)) == 2
        assert storage.get_item(LAST_ORDER_KEY) is None


class TestKiosk:
    def test_kiosk_order_prints_receipt(self, placement, cart, print_sink, kiosk):
        fill(cart, kiosk)

        order, text = placement.place_kiosk_order(kiosk, OrderType.DINE_IN)

        assert order.customer_name == "Kiosk Customer"
        assert order.payment_method == PaymentMethod.CASH
        print_sink.assert_called_once_with(order.order_number, text)
        assert "Type: DINE-IN" in text
        assert "TOTAL: ₱290.00" in text

    def test_kiosk_order_needs_kiosk_identity(self, placement, cart, customer):
        fill(cart, customer)

        with pytest.raises(UnauthenticatedError):
            placement.place_kiosk_order(customer)


class TestConfirmation:
    def test_snapshot_served_for_matching_order(self, placement, cart, customer):
        fill(cart, customer)
        order = placement.place_order(CUSTOMER, PICKUP, PaymentMethod.CASH, customer)
        placement.repo = MagicMock(spec=OrderRepo)

        found = placement.get_confirmation(order.id, customer)

        assert isinstance(found, LastOrderSnapshot)
        placement.repo.get_order.assert_not_called()

    def test_read_back_for_other_orders(self, placement, cart, storage, customer):
        fill(cart, customer)
        order = placement.place_order(CUSTOMER, PICKUP, PaymentMethod.CASH, customer)
        storage.remove_item(LAST_ORDER_KEY)

        found = placement.get_confirmation(order.id, customer)

        assert isinstance(found, OrderWithItems)
        assert found.id == order.id
        assert len(found.order_items) == 2

    def test_other_customers_order_is_not_visible(self, placement, cart, storage, customer, other_customer):
        fill(cart, customer)
        order = placement.place_order(CUSTOMER, PICKUP, PaymentMethod.CASH, customer)
        storage.remove_item(LAST_ORDER_KEY)

        assert placement.get_confirmation(order.id, other_customer) is None

    def test_store_error_yields_none(self, placement, customer):
        placement.repo = MagicMock(spec=OrderRepo)
        placement.repo.get_order.side_effect = TransientStoreError("select orders")

        assert placement.get_confirmation(123, customer) is None


def test_estimated_time():
    assert estimated_time(OrderType.DELIVERY) == "30-45 minutes"
    assert estimated_time(OrderType.PICKUP) == "15-20 minutes"
    assert estimated_time(OrderType.DINE_IN) == "15-20 minutes"
