# storefront/api/routers/kiosk.py
from fastapi import APIRouter, Depends

from storefront.api.deps import get_identity, get_placement
from storefront.api.errors import to_http
from storefront.domain.errors import StorefrontError
from storefront.domain.schemas import Identity, KioskOrderIn, KioskOrderOut
from storefront.services.order_service import OrderPlacementService

router = APIRouter(prefix="/kiosk", tags=["kiosk"])


@router.post("/orders", response_model=KioskOrderOut, status_code=201)
def place_kiosk_order(
    payload: KioskOrderIn,
    identity: Identity | None = Depends(get_identity),
    svc: OrderPlacementService = Depends(get_placement),
):
    """Self-service order paid at the cashier; the printed receipt text is returned too."""
    try:
        order, receipt = svc.place_kiosk_order(identity, payload.order_type)
    except StorefrontError as e:
        raise to_http(e)
    return KioskOrderOut(order=order, receipt=receipt)
