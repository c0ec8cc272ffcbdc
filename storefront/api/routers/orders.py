# storefront/api/routers/orders.py
from typing import List, Union

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import PlainTextResponse

from storefront.api.deps import get_customer_tracker, get_identity, get_placement, require_identity
from storefront.api.errors import to_http
from storefront.domain.errors import StorefrontError
from storefront.domain.receipt import format_receipt
from storefront.domain.schemas import (
    Identity,
    LastOrderSnapshot,
    OrderOut,
    OrderStatus,
    OrderWithItems,
    PlaceOrderIn,
)
from storefront.services.order_service import OrderPlacementService
from storefront.services.receipt_service import receipt_from_order
from storefront.services.tracker import OrderStatusTracker

router = APIRouter(prefix="/orders", tags=["orders"])


@router.post("", response_model=OrderOut, status_code=201)
def place_order(
    payload: PlaceOrderIn,
    identity: Identity | None = Depends(get_identity),
    svc: OrderPlacementService = Depends(get_placement),
):
    """
    Places an order from the caller's cart and empties the cart.
    On failure the cart is left untouched so the customer can retry.
    """
    try:
        return svc.place_order(payload.customer, payload.delivery, payload.payment_method, identity)
    except StorefrontError as e:
        raise to_http(e)


@router.get("/mine", response_model=List[OrderWithItems])
def my_orders(
    identity: Identity = Depends(require_identity),
    tracker: OrderStatusTracker = Depends(get_customer_tracker),
):
    return tracker.fetch_for_user(identity.user_id)


@router.get("/{order_id}", response_model=Union[LastOrderSnapshot, OrderWithItems])
def get_order(
    order_id: int,
    identity: Identity | None = Depends(get_identity),
    svc: OrderPlacementService = Depends(get_placement),
):
    """
    Order confirmation: served from this device's last-order snapshot when it
    matches, otherwise read back from the store.
    """
    order = svc.get_confirmation(order_id, identity)
    if order is None:
        raise HTTPException(status_code=404, detail=f"Order not found: {order_id}")
    return order


@router.post("/{order_id}/cancel", response_model=OrderWithItems)
def cancel_order(
    order_id: int,
    identity: Identity = Depends(require_identity),
    tracker: OrderStatusTracker = Depends(get_customer_tracker),
):
    try:
        return tracker.update_status(order_id, OrderStatus.CANCELLED, "Cancelled by customer", actor=identity)
    except StorefrontError as e:
        raise to_http(e)


@router.get("/{order_id}/receipt", response_class=PlainTextResponse)
def order_receipt(
    order_id: int,
    tracker: OrderStatusTracker = Depends(get_customer_tracker),
):
    order = tracker.get_order_by_id(order_id)
    if order is None:
        raise HTTPException(status_code=404, detail=f"Order not found: {order_id}")
    return format_receipt(receipt_from_order(order))
