# storefront/services/receipt_service.py
from pathlib import Path
from typing import Callable

from storefront.celery_worker import celery_app
from storefront.data.models.order import OrderModel
from storefront.domain.receipt import format_receipt, generate_qr_code_data, receipt_filename
from storefront.domain.schemas import OrderType, OrderWithItems, ReceiptData, ReceiptItem
from storefront.utils.settings import RECEIPT_EXPORT_DIR
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

PrintSink = Callable[[str, str], None]


def receipt_from_order(order: OrderModel | OrderWithItems) -> ReceiptData:
    return ReceiptData(
        order_id=order.id,
        order_number=order.order_number,
        customer_name=order.customer_name,
        customer_phone=order.customer_phone,
        order_type=OrderType(order.order_type),
        items=[
            ReceiptItem(
                name=item.food_name,
                quantity=item.quantity,
                price=item.unit_price,
                size_option_id=item.size_option_id,
                size_name=item.size_name,
            )
            for item in order.order_items
        ],
        total_amount=order.total_amount,
        timestamp=order.created_at,
        qr_code_data=generate_qr_code_data(order.id, order.order_number, order.created_at),
    )


def _queue_print(order_number: str, text: str) -> None:
    print_receipt_task.delay(order_number, text)


class ReceiptService:
    """Sends formatted receipts to the printer queue or to text files."""

    def __init__(self, print_sink: PrintSink | None = None, export_dir: Path | str | None = None):
        self.print_sink = print_sink or _queue_print
        self.export_dir = Path(export_dir or RECEIPT_EXPORT_DIR)

    def print(self, data: ReceiptData) -> str:
        text = format_receipt(data)
        logger.info(f"Printing receipt for order {data.order_number}")
        self.print_sink(data.order_number, text)
        return text

    def export(self, data: ReceiptData, directory: Path | str | None = None) -> Path:
        target = Path(directory or self.export_dir)
        target.mkdir(parents=True, exist_ok=True)
        path = target / receipt_filename(data)
        path.write_text(format_receipt(data), encoding="utf-8")
        logger.info(f"Exported receipt for order {data.order_number} to {path}")
        return path


@celery_app.task(name="storefront.services.receipt_service.print_receipt_task")
def print_receipt_task(order_number: str, text: str):
    """The kiosk printer bridge consumes these; the worker records the job."""
    logger.info(f"[PRINT] receipt {order_number}, {len(text.splitlines())} lines")
    return {"order_number": order_number, "status": "queued"}
