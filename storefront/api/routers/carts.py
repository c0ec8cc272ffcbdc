#storefront/api/routers/carts.py
import requests
from fastapi import APIRouter, Depends, HTTPException, Query

from storefront.api.deps import get_cart, get_catalog
from storefront.api.errors import to_http
from storefront.domain.errors import StorefrontError
from storefront.domain.schemas import CartOut, ItemIn, QuantityIn
from storefront.services.cart_service import CartReconciler, line_from_menu
from storefront.services.catalog_client import CatalogClient

router = APIRouter(prefix="/cart", tags=["cart"])


def _out(cart: CartReconciler) -> CartOut:
    totals = cart.totals()
    return CartOut(
        backend=cart.backend.kind,
        items=cart.lines,
        total_price=totals.total_price,
        total_items=totals.total_items,
    )


@router.get("", response_model=CartOut)
def get_cart_contents(cart: CartReconciler = Depends(get_cart)):
    return _out(cart)


@router.post("/items", response_model=CartOut)
def add_item(
    payload: ItemIn,
    cart: CartReconciler = Depends(get_cart),
    catalog: CatalogClient = Depends(get_catalog),
):
    try:
        item = catalog.fetch_food_item(payload.product_id)
        size = catalog.fetch_size_option(payload.size_option_id) if payload.size_option_id else None
    except StorefrontError as e:
        raise to_http(e)
    except requests.RequestException as e:
        raise HTTPException(status_code=502, detail=f"Catalog unavailable: {e}")

    if not item.is_available:
        raise HTTPException(status_code=400, detail=f"{item.name} is not available")

    cart.add_line(line_from_menu(item, size), payload.quantity)
    return _out(cart)


@router.put("/items/{product_id}", response_model=CartOut)
def set_quantity(
    product_id: int,
    payload: QuantityIn,
    cart: CartReconciler = Depends(get_cart),
):
    cart.set_quantity(product_id, payload.quantity, payload.size_option_id)
    return _out(cart)


@router.delete("/items/{product_id}", response_model=CartOut)
def remove_item(
    product_id: int,
    size_option_id: int | None = Query(None),
    cart: CartReconciler = Depends(get_cart),
):
    cart.remove_line(product_id, size_option_id)
    return _out(cart)


@router.delete("", response_model=CartOut)
def clear_cart(cart: CartReconciler = Depends(get_cart)):
    cart.clear()
    return _out(cart)
