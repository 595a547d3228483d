"""
Core Hub — Billing routes.

Routes:
- /subscription — Latest subscription record (webhook-maintained)
- /upgrade — Checkout link for users without pro access

Checkout and webhooks are handled by the billing provider; this service
only reads what the webhook has written.
"""
from typing import Optional
from fastapi import APIRouter, Header

from config import settings
from core.access import load_access_state
from core.auth import get_current_user
from core.models.billing import SubscriptionRecord

router = APIRouter()


@router.get("/subscription")
async def get_subscription(authorization: str = Header(...)) -> Optional[SubscriptionRecord]:
    """Most recent subscription record, or null if the user never subscribed."""
    user = get_current_user(authorization)
    _, subscription, _ = load_access_state(user.id)
    return subscription


@router.get("/upgrade")
async def get_upgrade_link(authorization: str = Header(...)) -> dict:
    """Checkout URL, only offered to users without pro access."""
    user = get_current_user(authorization)
    _, _, decision = load_access_state(user.id)

    if decision.is_pro:
        return {"is_pro": True, "checkout_url": None}
    return {"is_pro": False, "checkout_url": settings.premium_checkout_url}
