# storefront/api/routers/admin.py
from typing import List

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from storefront.api.deps import get_board, require_staff
from storefront.api.errors import to_http
from storefront.domain.errors import StorefrontError
from storefront.domain.schemas import Identity, OrderStatus, OrderWithItems, StatusUpdateIn, TodayStats
from storefront.domain.status import next_status, next_status_label
from storefront.services.tracker import OrderStatusTracker

router = APIRouter(prefix="/admin/orders", tags=["admin"])


class BoardOrder(BaseModel):
    order: OrderWithItems
    next_status: OrderStatus | None
    next_action: str | None


def _current(board: OrderStatusTracker) -> list[OrderWithItems]:
    # without a live subscription the cache is only as fresh as the last fetch
    return board.orders if board.live else board.fetch_all()


@router.get("", response_model=List[BoardOrder])
def list_orders(
    status: OrderStatus | None = Query(None),
    staff: Identity = Depends(require_staff),
    board: OrderStatusTracker = Depends(get_board),
):
    orders = _current(board)
    if status is not None:
        orders = [o for o in orders if o.status == status]
    return [
        BoardOrder(
            order=o,
            next_status=next_status(o.status, o.order_type),
            next_action=next_status_label(o.status, o.order_type),
        )
        for o in orders
    ]


@router.get("/stats", response_model=TodayStats)
def today_stats(
    staff: Identity = Depends(require_staff),
    board: OrderStatusTracker = Depends(get_board),
):
    _current(board)
    return board.stats_for_today()


@router.patch("/{order_id}/status", response_model=OrderWithItems)
def update_status(
    order_id: int,
    payload: StatusUpdateIn,
    staff: Identity = Depends(require_staff),
    board: OrderStatusTracker = Depends(get_board),
):
    try:
        return board.update_status(order_id, payload.status, payload.note, actor=staff)
    except StorefrontError as e:
        raise to_http(e)
