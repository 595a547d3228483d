"""
Access lookups — load the entitlement signals for a user and gate routes.

Provides:
- load_profile(): Profile row (or None)
- load_latest_subscription(): most recent subscription record (or None)
- get_access(): AccessDecision from both signals (cached)
- require_feature(): HTTP 402 with the upgrade payload when a premium feature is denied
"""
from typing import Optional, Tuple
from fastapi import HTTPException

from config import settings
from core.cache import cache_get, cache_set
from core.entitlements import resolve_access, check_feature
from core.models.billing import AccessDecision, PremiumFeature, SubscriptionRecord, FeatureGate
from core.models.user import Profile
from core.store import fetch_rows, parse_row


def load_profile(user_id: str) -> Optional[Profile]:
    """Profile rows are keyed by the auth user id."""
    rows = fetch_rows("profiles", user_id, owner_column="id", limit=1)
    if not rows:
        return None
    return parse_row(Profile, rows[0])


def load_latest_subscription(user_id: str) -> Optional[SubscriptionRecord]:
    rows = fetch_rows(
        "stripe_user_subscriptions", user_id,
        order_by="created_at", desc=True, limit=1
    )
    if not rows:
        return None
    return parse_row(SubscriptionRecord, rows[0])


def load_access_state(user_id: str) -> Tuple[Optional[Profile], Optional[SubscriptionRecord], AccessDecision]:
    """Both entitlement signals and the decision derived from them."""
    cache_key = f"access:{user_id}"
    cached = cache_get("access", cache_key)
    if cached is not None:
        return cached

    profile = load_profile(user_id)
    subscription = load_latest_subscription(user_id)
    decision = resolve_access(
        profile.plan if profile else None,
        subscription.status if subscription else None
    )

    state = (profile, subscription, decision)
    cache_set("access", cache_key, state)
    return state


def get_access(user_id: str) -> AccessDecision:
    return load_access_state(user_id)[2]


def gate_feature(user_id: str, feature: PremiumFeature) -> FeatureGate:
    return check_feature(get_access(user_id), feature, settings.premium_checkout_url)


def require_feature(user_id: str, feature: PremiumFeature) -> None:
    """Raise HTTP 402 with the gate payload unless the user may use `feature`."""
    gate = gate_feature(user_id, feature)
    if not gate.allowed:
        print(f"[Access] {feature.value} denied for {user_id}")
        raise HTTPException(
            status_code=402,
            detail={"message": "Pro plan required", **gate.model_dump(mode="json")}
        )
