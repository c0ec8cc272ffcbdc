"""Plain-text receipts for placed orders.

Everything here is pure: the clock and the random suffix of order numbers are
passed in, so the same inputs always render the same text.
"""

import json
import random
from datetime import datetime
from decimal import Decimal

from storefront.domain.schemas import OrderType, ReceiptData, to_money
from storefront.utils.settings import CURRENCY_SYMBOL, ORDER_NUMBER_PREFIX, RESTAURANT_NAME

WIDTH = 40
RULE = "=" * WIDTH
THIN_RULE = "-" * WIDTH

ORDER_TYPE_LABELS = {
    OrderType.DINE_IN: "DINE-IN",
    OrderType.PICKUP: "TAKE-OUT",
    OrderType.DELIVERY: "DELIVERY",
}


def format_currency(amount: Decimal, symbol: str = CURRENCY_SYMBOL) -> str:
    return f"{symbol}{to_money(amount):,.2f}"


def generate_order_number(now: datetime, rand: random.Random | None = None, prefix: str = ORDER_NUMBER_PREFIX) -> str:
    suffix = (rand or random).randrange(1000)
    return f"{prefix}{now:%y%m%d}{suffix:03d}"


def generate_qr_code_data(order_id: int, order_number: str, now: datetime, restaurant: str = RESTAURANT_NAME) -> str:
    return json.dumps(
        {
            "orderId": order_id,
            "orderNumber": order_number,
            "restaurant": restaurant,
            "timestamp": now.isoformat(),
        }
    )


def receipt_filename(data: ReceiptData) -> str:
    return f"receipt-{data.order_number}.txt"


def _date(ts: datetime) -> str:
    return f"{ts.month}/{ts.day}/{ts.year}"


def _time(ts: datetime) -> str:
    return ts.strftime("%I:%M:%S %p").lstrip("0")


def format_receipt(data: ReceiptData, restaurant: str = RESTAURANT_NAME, symbol: str = CURRENCY_SYMBOL) -> str:
    blocks = []
    total = Decimal("0.00")
    for item in data.items:
        line_total = item.price * item.quantity
        total += line_total
        name = f"{item.name} ({item.size_name})" if item.size_name else item.name
        blocks.append(
            f"{name}\n"
            f"  {item.quantity}x {format_currency(item.price, symbol)} = {format_currency(line_total, symbol)}"
        )

    lines = [
        RULE,
        f"{restaurant.upper()} RESTAURANT".center(WIDTH).rstrip(),
        "Order Receipt (Kiosk)".center(WIDTH).rstrip(),
        RULE,
        "",
        f"Order #: {data.order_number}",
        f"Date: {_date(data.timestamp)}",
        f"Time: {_time(data.timestamp)}",
        f"Type: {ORDER_TYPE_LABELS[OrderType(data.order_type)]}",
        "",
        THIN_RULE,
        "ITEMS".center(WIDTH).rstrip(),
        THIN_RULE,
        "\n\n".join(blocks),
        "",
        THIN_RULE,
        f"TOTAL: {format_currency(total, symbol)}",
        THIN_RULE,
        "",
        "Please take this receipt to the cashier",
        "to complete your payment.",
        "",
        f"Order ID: {data.order_id}",
        "",
        f"Thank you for choosing {restaurant}!",
        RULE,
    ]
    return "\n".join(lines)
