"""Tests for receipt formatting and the receipt service."""

import json
import random
import re
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from storefront.domain.receipt import (
    format_currency,
    format_receipt,
    generate_order_number,
    generate_qr_code_data,
    receipt_filename,
)
from storefront.domain.schemas import OrderType, OrderWithItems, ReceiptData, ReceiptItem
from storefront.services.receipt_service import ReceiptService, print_receipt_task, receipt_from_order

STAMP = datetime(2026, 10, 19, 14, 5, 9, tzinfo=timezone.utc)


@pytest.fixture
def receipt():
    return ReceiptData(
        order_id=42,
        order_number="BK261019007",
        customer_name="Kiosk Customer",
        customer_phone="N/A",
        order_type=OrderType.DINE_IN,
        items=[
            ReceiptItem(name="Rice Bowl", quantity=2, price=Decimal("120.00")),
            ReceiptItem(name="Iced Tea", quantity=1, price=Decimal("50.00"), size_option_id=2, size_name="Large"),
        ],
        total_amount=Decimal("290.00"),
        timestamp=STAMP,
    )


class TestFormatReceipt:
    def test_lines_and_total(self, receipt):
        text = format_receipt(receipt)

        assert "Rice Bowl" in text
        assert "  2x ₱120.00 = ₱240.00" in text
        assert "Iced Tea (Large)" in text
        assert "  1x ₱50.00 = ₱50.00" in text
        assert "TOTAL: ₱290.00" in text

    def test_header(self, receipt):
        text = format_receipt(receipt)

        assert "BOKI RESTAURANT" in text
        assert "Order #: BK261019007" in text
        assert "Date: 10/19/2026" in text
        assert "Time: 2:05:09 PM" in text
        assert "Type: DINE-IN" in text
        assert "Order ID: 42" in text
        assert "Thank you for choosing BOKI!" in text

    @pytest.mark.parametrize(
        "order_type,label",
        [(OrderType.DINE_IN, "DINE-IN"), (OrderType.PICKUP, "TAKE-OUT"), (OrderType.DELIVERY, "DELIVERY")],
    )
    def test_order_type_label(self, receipt, order_type, label):
        text = format_receipt(receipt.model_copy(update={"order_type": order_type}))

        assert f"Type: {label}" in text

    def test_same_input_same_text(self, receipt):
        assert format_receipt(receipt) == format_receipt(receipt.model_copy(deep=True))

    def test_custom_restaurant_and_symbol(self, receipt):
        text = format_receipt(receipt, restaurant="Cafe", symbol="$")

        assert "CAFE RESTAURANT" in text
        assert "TOTAL: $290.00" in text


class TestHelpers:
    def test_format_currency(self):
        assert format_currency(Decimal("1234.5")) == "₱1,234.50"
        assert format_currency(Decimal("0")) == "₱0.00"

    def test_order_number_format(self):
        number = generate_order_number(STAMP, random.Random(7))

        assert re.fullmatch(r"BK261019\d{3}", number)
        assert number == generate_order_number(STAMP, random.Random(7))

    def test_qr_code_data(self):
        data = json.loads(generate_qr_code_data(42, "BK261019007", STAMP))

        assert data == {
            "orderId": 42,
            "orderNumber": "BK261019007",
            "restaurant": "BOKI",
            "timestamp": STAMP.isoformat(),
        }

    def test_receipt_filename(self, receipt):
        assert receipt_filename(receipt) == "receipt-BK261019007.txt"


class TestReceiptService:
    def test_print_sends_formatted_text(self, receipt, receipts, print_sink):
        text = receipts.print(receipt)

        assert text == format_receipt(receipt)
        print_sink.assert_called_once_with("BK261019007", text)

    def test_export_writes_file(self, receipt, receipts, tmp_path):
        path = receipts.export(receipt)

        assert path == tmp_path / "receipts" / "receipt-BK261019007.txt"
        assert path.read_text(encoding="utf-8") == format_receipt(receipt)

    def test_export_to_other_directory(self, receipt, receipts, tmp_path):
        path = receipts.export(receipt, tmp_path / "elsewhere")

        assert path.parent == tmp_path / "elsewhere"

    def test_default_sink_queues_print_job(self, receipt):
        text = ReceiptService().print(receipt)

        result = print_receipt_task.delay(receipt.order_number, text)

        assert result.get() == {"order_number": "BK261019007", "status": "queued"}

    def test_receipt_from_stored_order(self):
        order = OrderWithItems.model_validate(
            {
                "id": 42,
                "order_number": "BK261019007",
                "user_id": 2,
                "customer_name": "Kiosk Customer",
                "customer_phone": "N/A",
                "order_type": "pickup",
                "payment_method": "cash",
                "status": "pending",
                "total_amount": "170.00",
                "created_at": STAMP,
                "updated_at": STAMP,
                "order_items": [
                    {
                        "id": 1,
                        "order_id": 42,
                        "food_item_id": 3,
                        "food_name": "Pancit Canton",
                        "quantity": 1,
                        "unit_price": "170.00",
                        "total_price": "170.00",
                        "size_name": "Large",
                        "created_at": STAMP,
                    }
                ],
            }
        )

        data = receipt_from_order(order)

        assert data.order_type == OrderType.PICKUP
        assert data.items[0].name == "Pancit Canton"
        assert "Pancit Canton (Large)" in format_receipt(data)
