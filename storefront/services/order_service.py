# storefront/services/order_service.py
import random
from datetime import datetime
from typing import Callable

from pydantic import ValidationError
from sqlalchemy.orm import Session

from storefront.data.local_storage import LAST_ORDER_KEY, LocalStorage
from storefront.data.models.order import OrderModel, OrderItemModel, utc_now
from storefront.domain.errors import EmptyCartError, TransientStoreError, UnauthenticatedError
from storefront.domain.receipt import generate_qr_code_data, generate_order_number
from storefront.domain.schemas import (
    CartLine,
    CustomerInfo,
    DeliveryInfo,
    Identity,
    LastOrderSnapshot,
    OrderOut,
    OrderStatus,
    OrderType,
    OrderWithItems,
    PaymentMethod,
    ReceiptData,
    ReceiptItem,
)
from storefront.repos.order_repo import OrderRepo
from storefront.services.cart_service import CartReconciler
from storefront.services.change_feed import ChangeFeed
from storefront.services.notification_service import NotificationService
from storefront.services.receipt_service import ReceiptService
from storefront.utils.settings import ALLOW_GUEST_CHECKOUT
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

KIOSK_CUSTOMER_NAME = "Kiosk Customer"
KIOSK_CUSTOMER_PHONE = "N/A"


def estimated_time(order_type: OrderType) -> str:
    return "30-45 minutes" if OrderType(order_type) is OrderType.DELIVERY else "15-20 minutes"


class OrderPlacementService:
    """
    Turns the current cart into a persisted order.

    Header, lines and the opening status event go to the store in one
    transaction; the cart is cleared only once that transaction commits.
    """

    def __init__(
        self,
        db: Session,
        cart: CartReconciler,
        storage: LocalStorage,
        feed: ChangeFeed | None = None,
        notification_service: NotificationService | None = None,
        receipt_service: ReceiptService | None = None,
        allow_guest: bool = ALLOW_GUEST_CHECKOUT,
        clock: Callable[[], datetime] = utc_now,
        rand: random.Random | None = None,
    ):
        self.repo = OrderRepo(db, feed)
        self.cart = cart
        self.storage = storage
        self.notification_service = notification_service or NotificationService()
        self.receipt_service = receipt_service or ReceiptService()
        self.allow_guest = allow_guest
        self.clock = clock
        self.rand = rand

    #commands
    def place_order(
        self,
        customer_info: CustomerInfo,
        delivery_info: DeliveryInfo,
        payment_method: PaymentMethod,
        identity: Identity | None,
    ) -> OrderOut:
        order, _ = self._place(customer_info, delivery_info, payment_method, identity)
        return OrderOut.model_validate(order)

    def place_kiosk_order(self, identity: Identity | None, order_type: OrderType = OrderType.DINE_IN) -> tuple[OrderOut, str]:
        """
        In-store order: no customer details, paid in cash at the cashier,
        receipt printed for the customer to take to the counter.
        """
        if identity is None or not identity.is_kiosk:
            raise UnauthenticatedError("place a kiosk order")

        order, lines = self._place(
            CustomerInfo(full_name=KIOSK_CUSTOMER_NAME, phone=KIOSK_CUSTOMER_PHONE),
            DeliveryInfo(order_type=order_type),
            PaymentMethod.CASH,
            identity,
        )
        receipt = ReceiptData(
            order_id=order.id,
            order_number=order.order_number,
            customer_name=order.customer_name,
            customer_phone=order.customer_phone,
            order_type=order_type,
            items=[
                ReceiptItem(
                    name=line.name,
                    quantity=line.quantity,
                    price=line.price,
                    size_option_id=line.size_option_id,
                    size_name=line.size_name,
                )
                for line in lines
            ],
            total_amount=order.total_amount,
            timestamp=order.created_at,
            qr_code_data=generate_qr_code_data(order.id, order.order_number, order.created_at),
        )
        text = self.receipt_service.print(receipt)
        return OrderOut.model_validate(order), text

    def _place(
        self,
        customer_info: CustomerInfo,
        delivery_info: DeliveryInfo,
        payment_method: PaymentMethod,
        identity: Identity | None,
    ) -> tuple[OrderModel, list[CartLine]]:
        lines = list(self.cart.lines)
        if not lines:
            raise EmptyCartError()

        if identity is None and not self.allow_guest:
            raise UnauthenticatedError("place an order")

        user_id = identity.user_id if identity else None
        role = identity.role if identity else "anon"
        totals = self.cart.totals()
        now = self.clock()

        logger.info(f"Placing order: {len(lines)} lines, total {totals.total_price}, user {user_id}")

        try:
            self.repo.set_user_context(user_id, role)

            order = self.repo.insert_order(
                OrderModel(
                    order_number=generate_order_number(now, self.rand),
                    user_id=user_id,
                    customer_name=customer_info.full_name,
                    customer_email=customer_info.email,
                    customer_phone=customer_info.phone,
                    customer_address=delivery_info.address,
                    order_type=OrderType(delivery_info.order_type).value,
                    payment_method=PaymentMethod(payment_method).value,
                    status=OrderStatus.PENDING.value,
                    total_amount=totals.total_price,
                    notes=delivery_info.notes,
                    created_at=now,
                    updated_at=now,
                )
            )

            #frozen snapshot of each line, independent of later menu edits
            self.repo.insert_order_items(
                order.id,
                [
                    OrderItemModel(
                        food_item_id=line.id,
                        food_name=line.name,
                        quantity=line.quantity,
                        unit_price=line.price,
                        total_price=line.line_total,
                        size_option_id=line.size_option_id,
                        size_name=line.size_name,
                        size_multiplier=line.size_multiplier,
                        created_at=now,
                    )
                    for line in lines
                ],
            )
            self.repo.insert_status_event(order.id, OrderStatus.PENDING, user_id, "Order placed", now)
            self.repo.commit()
        except TransientStoreError as e:
            # nothing was committed, the cart stays as it is so the user can retry
            self.repo.rollback()
            logger.error(f"Order placement failed, cart kept: {e}")
            raise

        logger.info(f"Order {order.id} ({order.order_number}) created")

        self.cart.clear()
        self._remember(order, lines, customer_info, delivery_info, payment_method)
        self.notification_service.send_order_notification(user_id, order.id, order.order_number)
        return order, lines

    def _remember(
        self,
        order: OrderModel,
        lines: list[CartLine],
        customer_info: CustomerInfo,
        delivery_info: DeliveryInfo,
        payment_method: PaymentMethod,
    ) -> None:
        snapshot = LastOrderSnapshot(
            id=order.id,
            order_number=order.order_number,
            items=lines,
            total=order.total_amount,
            status=OrderStatus.PENDING,
            customer=customer_info,
            delivery=delivery_info,
            payment_method=payment_method,
            created_at=order.created_at,
            estimated_time=estimated_time(delivery_info.order_type),
        )
        try:
            self.storage.set_item(LAST_ORDER_KEY, snapshot.model_dump(mode="json"))
        except OSError as e:
            logger.warning(f"Order {order.id} placed but confirmation snapshot not cached: {e}")

    #query
    def last_order(self) -> LastOrderSnapshot | None:
        raw = self.storage.get_item(LAST_ORDER_KEY)
        if raw is None:
            return None
        try:
            return LastOrderSnapshot.model_validate(raw)
        except ValidationError as e:
            logger.error(f"Ignoring unreadable last order snapshot: {e}")
            return None

    def get_confirmation(self, order_id: int, identity: Identity | None) -> LastOrderSnapshot | OrderWithItems | None:
        """The device snapshot when it is the order asked for, otherwise a read-back from the store."""
        snapshot = self.last_order()
        if snapshot is not None and snapshot.id == order_id:
            return snapshot

        if identity is None:
            logger.info(f"Order {order_id} not cached on this device and no identity to read it back")
            return None

        try:
            self.repo.set_user_context(identity.user_id, identity.role)
            order = self.repo.get_order(order_id)
        except TransientStoreError as e:
            logger.error(f"Error fetching order {order_id}: {e}")
            return None
        return OrderWithItems.model_validate(order) if order else None
