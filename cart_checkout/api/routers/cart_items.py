# cart_checkout/api/routers/cart_items.py
from fastapi import APIRouter, Depends, HTTPException, Response, status

from cart_checkout.api.dependencies import get_cart_service, get_checkout_service
from cart_checkout.domain.errors import (
    CartError,
    CheckoutInProgress,
    DurableWriteFailure,
    NotFound,
)
from cart_checkout.domain.schemas import CartItemOut, CartOut, CheckoutOut, ItemIn
from cart_checkout.services.cart_service import CartService
from cart_checkout.services.checkout_service import CheckoutService

router = APIRouter(prefix="/orders/{order_id}", tags=["cart"])


def http_error(e: CartError) -> HTTPException:
    if isinstance(e, NotFound):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(e, CheckoutInProgress):
        code = status.HTTP_409_CONFLICT
    elif isinstance(e, DurableWriteFailure):
        code = status.HTTP_502_BAD_GATEWAY
    else:
        code = status.HTTP_400_BAD_REQUEST
    return HTTPException(status_code=code, detail=e.to_detail())


@router.post("/items", response_model=CartItemOut, status_code=status.HTTP_201_CREATED)
def add_item(
    order_id: str,
    payload: ItemIn,
    svc: CartService = Depends(get_cart_service),
):
    try:
        return svc.add_to_cart(
            order_id=order_id,
            product_id=payload.product_id,
            quantity=payload.quantity,
            actor_id=payload.actor_id,
        )
    except CartError as e:
        raise http_error(e)


@router.get("/items", response_model=CartOut)
def get_cart(order_id: str, svc: CartService = Depends(get_cart_service)):
    try:
        items, total = svc.get_cart(order_id)
    except CartError as e:
        raise http_error(e)

    return {
        "order_id": order_id,
        "items": items,
        "total": total,
        "item_count": len(items),
    }


@router.get("/items/{item_id}", response_model=CartItemOut)
def get_cart_item(order_id: str, item_id: str, svc: CartService = Depends(get_cart_service)):
    try:
        item = svc.get_cart_item(order_id, item_id)
    except CartError as e:
        raise http_error(e)
    if item is None:
        raise HTTPException(status_code=404, detail="Item not found in cart")
    return item


@router.delete("/items/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_item(order_id: str, item_id: str, svc: CartService = Depends(get_cart_service)):
    try:
        svc.remove_from_cart(order_id, item_id)
    except CartError as e:
        raise http_error(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/items", status_code=status.HTTP_204_NO_CONTENT)
def clear_cart(order_id: str, svc: CartService = Depends(get_cart_service)):
    svc.clear_cart(order_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/checkout", response_model=CheckoutOut)
def checkout(order_id: str, svc: CheckoutService = Depends(get_checkout_service)):
    try:
        result = svc.checkout(order_id)
    except CartError as e:
        raise http_error(e)

    return {
        "order_id": order_id,
        "items_created": result.items_created,
        "total": result.total,
        "status": "CHECKOUT_COMPLETED",
    }
