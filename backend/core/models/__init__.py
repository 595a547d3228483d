"""
Core Pydantic models shared across all apps.
"""
from .billing import (
    PlanTier,
    SubscriptionStatus,
    PremiumFeature,
    SubscriptionRecord,
    AccessDecision,
    FeatureGate,
    AccessOverview
)
from .user import AuthUser, Profile, UserSettings, UserSettingsUpdate

__all__ = [
    # Billing
    "PlanTier", "SubscriptionStatus", "PremiumFeature", "SubscriptionRecord",
    "AccessDecision", "FeatureGate", "AccessOverview",
    # User
    "AuthUser", "Profile", "UserSettings", "UserSettingsUpdate",
]
