# storefront/domain/schemas.py
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import List, Literal

from pydantic import BaseModel, ConfigDict, Field

CENT = Decimal("0.01")


def to_money(value: Decimal) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


class OrderStatus(str, Enum):
    PENDING = "pending"
    PREPARING = "preparing"
    READY = "ready"
    OUT_FOR_DELIVERY = "out_for_delivery"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class OrderType(str, Enum):
    DELIVERY = "delivery"
    PICKUP = "pickup"
    DINE_IN = "dine_in"


class PaymentMethod(str, Enum):
    CASH = "cash"
    CARD = "card"
    ONLINE = "online"


STAFF_ROLES = frozenset({"admin", "staff"})


class Identity(BaseModel):
    """A signed-in account; anonymous devices are represented by ``None``."""

    user_id: int | None
    role: str = "customer"
    email: str | None = None
    full_name: str | None = None

    model_config = ConfigDict(frozen=True)

    @property
    def is_staff(self) -> bool:
        return self.role in STAFF_ROLES

    @property
    def is_kiosk(self) -> bool:
        return self.role == "kiosk"


# =====================================================
# CATALOG
# =====================================================
class FoodItem(BaseModel):
    id: int
    name: str
    description: str = ""
    price: Decimal
    image_url: str | None = None
    category_id: int | None = None
    is_featured: bool = False
    is_available: bool = True
    preparation_time: int | None = None


class SizeOption(BaseModel):
    id: int
    name: str
    multiplier: Decimal = Decimal("1")


# =====================================================
# CART
# =====================================================
class CartLine(BaseModel):
    """One product selection; ``price`` is the size-adjusted unit price at the time it was added."""

    id: int
    name: str
    description: str = ""
    price: Decimal
    image: str = ""
    category: int | None = None
    featured: bool = False
    available: bool = True
    quantity: int = Field(..., gt=0)
    size_option_id: int | None = None
    size_name: str | None = None
    size_multiplier: Decimal | None = None

    @property
    def key(self) -> tuple[int, int | None]:
        return (self.id, self.size_option_id)

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity


class CartTotals(BaseModel):
    total_price: Decimal
    total_items: int


class CartOut(BaseModel):
    backend: str
    items: List[CartLine]
    total_price: Decimal
    total_items: int


class ItemIn(BaseModel):
    """Schema for adding a menu item to the cart."""

    product_id: int = Field(..., gt=0)
    size_option_id: int | None = Field(None, gt=0)
    quantity: int = Field(1, gt=0)


class QuantityIn(BaseModel):
    quantity: int
    size_option_id: int | None = None


# =====================================================
# ORDERS
# =====================================================
class CustomerInfo(BaseModel):
    full_name: str = Field(..., min_length=1, max_length=200)
    phone: str = Field(..., min_length=1, max_length=50)
    email: str | None = None


class DeliveryInfo(BaseModel):
    order_type: OrderType
    address: str | None = None
    notes: str | None = None


class PlaceOrderIn(BaseModel):
    customer: CustomerInfo
    delivery: DeliveryInfo
    payment_method: PaymentMethod = PaymentMethod.CASH


class KioskOrderIn(BaseModel):
    order_type: OrderType = OrderType.DINE_IN


class StatusUpdateIn(BaseModel):
    status: OrderStatus
    note: str | None = None


class OrderOut(BaseModel):
    id: int
    order_number: str
    user_id: int | None
    customer_name: str
    customer_email: str | None = None
    customer_phone: str
    customer_address: str | None = None
    order_type: OrderType
    payment_method: PaymentMethod
    status: OrderStatus
    total_amount: Decimal
    notes: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class OrderItemOut(BaseModel):
    id: int
    order_id: int
    food_item_id: int | None
    food_name: str
    quantity: int
    unit_price: Decimal
    total_price: Decimal
    size_option_id: int | None = None
    size_name: str | None = None
    size_multiplier: Decimal | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class StatusEventOut(BaseModel):
    id: int
    order_id: int
    status: OrderStatus
    changed_by: int | None = None
    notes: str | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class OrderWithItems(OrderOut):
    order_items: List[OrderItemOut] = []
    order_status_history: List[StatusEventOut] = []


class TodayStats(BaseModel):
    total_orders: int = 0
    total_sales: Decimal = Decimal("0.00")
    pending_orders: int = 0
    preparing_orders: int = 0
    ready_orders: int = 0
    out_for_delivery_orders: int = 0
    completed_orders: int = 0
    cancelled_orders: int = 0


class LastOrderSnapshot(BaseModel):
    """Denormalized copy of a just-placed order kept on the device for the confirmation view."""

    id: int
    order_number: str
    items: List[CartLine]
    total: Decimal
    status: OrderStatus
    customer: CustomerInfo
    delivery: DeliveryInfo
    payment_method: PaymentMethod
    created_at: datetime
    estimated_time: str


class ReceiptItem(BaseModel):
    name: str
    quantity: int
    price: Decimal
    size_option_id: int | None = None
    size_name: str | None = None


class ReceiptData(BaseModel):
    order_id: int
    order_number: str
    customer_name: str
    customer_phone: str
    order_type: OrderType
    items: List[ReceiptItem]
    total_amount: Decimal
    timestamp: datetime
    qr_code_data: str | None = None


class KioskOrderOut(BaseModel):
    order: OrderOut
    receipt: str


# =====================================================
# USERS
# =====================================================
class UserCreate(BaseModel):
    id: int = Field(..., gt=0)
    full_name: str = Field(..., min_length=1, max_length=100)
    email: str | None = None
    # staff accounts come from seeding, the kiosk role from the kiosk email
    role: Literal["customer"] = "customer"


class UserRead(BaseModel):
    id: int
    full_name: str
    email: str | None = None
    role: str

    model_config = ConfigDict(from_attributes=True)
