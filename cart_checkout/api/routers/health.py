# cart_checkout/api/routers/health.py
from fastapi import APIRouter, Depends, HTTPException

from cart_checkout.api.dependencies import get_session_store
from cart_checkout.data.session_store import SessionStore

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
def health():
    return {"status": "ok"}


@router.get("/ready")
def ready(store: SessionStore = Depends(get_session_store)):
    if not store.ping():
        raise HTTPException(status_code=503, detail="Session store unavailable")
    return {"status": "ok", "session_store": "up"}
