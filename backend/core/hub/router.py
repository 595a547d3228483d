"""
Core Hub — account-level routes.

Routes:
- /me — Authenticated user, profile and access decision
- /me/access — Access decision with per-feature gates
- /settings — Business details printed on invoices
"""
from fastapi import APIRouter, Header, HTTPException

from config import settings
from core.access import load_access_state, require_feature
from core.auth import get_current_user
from core.cache import cache_delete
from core.database import get_supabase_admin
from core.entitlements import feature_map
from core.models import AccessOverview, PremiumFeature, UserSettings, UserSettingsUpdate
from core.store import execute_write, fetch_rows, parse_row

router = APIRouter()


# ─────────────────────────────────────────────────────────────────────────────
# USER ENDPOINTS
# ─────────────────────────────────────────────────────────────────────────────

@router.get("/me")
async def get_me(authorization: str = Header(...)) -> dict:
    """Get the current user, their profile and resolved access."""
    user = get_current_user(authorization)
    profile, _, decision = load_access_state(user.id)

    if profile is None:
        print(f"[/me] No profile row for {user.id} - treating as free")

    return {
        "user": user,
        "profile": profile,
        "access": decision,
    }


@router.get("/me/access")
async def get_my_access(authorization: str = Header(...)) -> AccessOverview:
    """Access decision plus which premium features are unlocked."""
    user = get_current_user(authorization)
    _, subscription, decision = load_access_state(user.id)

    return AccessOverview(
        tier=decision.tier,
        is_pro=decision.is_pro,
        subscription_status=subscription.status if subscription else None,
        features=feature_map(decision),
        upgrade_url=None if decision.is_pro else settings.premium_checkout_url
    )


# ─────────────────────────────────────────────────────────────────────────────
# SETTINGS ENDPOINTS
# ─────────────────────────────────────────────────────────────────────────────

@router.get("/settings")
async def get_user_settings(authorization: str = Header(...)) -> UserSettings:
    """User settings, or defaults when none are saved yet."""
    user = get_current_user(authorization)
    rows = fetch_rows("user_settings", user.id, limit=1)
    if not rows:
        return UserSettings(user_id=user.id)
    return parse_row(UserSettings, rows[0])


@router.put("/settings")
async def update_user_settings(
    data: UserSettingsUpdate,
    authorization: str = Header(...)
) -> UserSettings:
    """Create or update the user's settings. Company name and address are custom branding (Pro)."""
    user = get_current_user(authorization)
    if data.company_name is not None or data.address is not None:
        require_feature(user.id, PremiumFeature.CUSTOM_BRANDING)

    update_data = {"user_id": user.id}
    if data.display_name is not None:
        update_data["display_name"] = data.display_name or None
    if data.company_name is not None:
        update_data["company_name"] = data.company_name or None
    if data.address is not None:
        update_data["address"] = data.address or None
    if data.currency is not None:
        update_data["currency"] = data.currency.upper()

    if len(update_data) == 1:
        raise HTTPException(400, "No fields to update")

    db = get_supabase_admin()
    rows = execute_write(
        "user_settings", db.table("user_settings").upsert(update_data, on_conflict="user_id")
    )

    cache_delete("settings", f"settings:{user.id}")
    return parse_row(UserSettings, rows[0])
