# cart_checkout/api/routers/orders.py
from fastapi import APIRouter, Depends, HTTPException

from cart_checkout.api.dependencies import get_draft_order_service
from cart_checkout.domain.schemas import DraftOrderIn, DraftOrderOut, OrderOut
from cart_checkout.services.draft_order_service import DraftOrderService

router = APIRouter(prefix="/orders", tags=["orders"])


@router.post("/draft", response_model=DraftOrderOut)
def get_or_create_draft(
    payload: DraftOrderIn,
    svc: DraftOrderService = Depends(get_draft_order_service),
):
    """
    Returns the buyer's open draft order, creating it on the first visit.
    """
    order_id = svc.get_or_create_draft(
        buyer_id=payload.buyer_id,
        organization_id=payload.organization_id,
        buyer_kind=payload.buyer_kind,
    )
    return {"order_id": order_id}


@router.get("/{order_id}", response_model=OrderOut)
def get_order(
    order_id: str,
    svc: DraftOrderService = Depends(get_draft_order_service),
):
    order = svc.get_order(order_id)
    if order is None:
        raise HTTPException(status_code=404, detail="Order not found")
    return order
