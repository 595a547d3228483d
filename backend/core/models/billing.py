"""
Billing models - plan tiers, subscription records, access decisions.
"""
from datetime import datetime
from enum import Enum
from typing import Optional, Dict
from pydantic import BaseModel


class PlanTier(str, Enum):
    """Profile-level plan tier."""
    FREE = "free"
    PRO = "pro"
    ENTERPRISE = "enterprise"


class SubscriptionStatus(str, Enum):
    """Billing-provider subscription status, written by the billing webhook."""
    NOT_STARTED = "not_started"
    INCOMPLETE = "incomplete"
    INCOMPLETE_EXPIRED = "incomplete_expired"
    TRIALING = "trialing"
    ACTIVE = "active"
    PAST_DUE = "past_due"
    CANCELED = "canceled"
    UNPAID = "unpaid"
    PAUSED = "paused"


class PremiumFeature(str, Enum):
    """Operations that require pro access."""
    PDF_EXPORT = "pdf_export"
    EMAIL_SENDING = "email_sending"
    ANALYTICS = "analytics"
    CUSTOM_BRANDING = "custom_branding"


class SubscriptionRecord(BaseModel):
    """Most recent subscription row for a user."""
    id: str
    user_id: str
    stripe_customer_id: Optional[str] = None
    stripe_subscription_id: Optional[str] = None
    price_id: Optional[str] = None
    status: SubscriptionStatus = SubscriptionStatus.NOT_STARTED
    current_period_start: Optional[datetime] = None
    current_period_end: Optional[datetime] = None
    cancel_at_period_end: Optional[bool] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AccessDecision(BaseModel):
    """Resolved access: display tier and pro gate, resolved independently."""
    tier: PlanTier
    is_pro: bool


class FeatureGate(BaseModel):
    """Outcome of a premium feature check. upgrade_url is set only on denial."""
    feature: PremiumFeature
    allowed: bool
    upgrade_url: Optional[str] = None


class AccessOverview(BaseModel):
    """Access decision plus per-feature gates for the UI."""
    tier: PlanTier
    is_pro: bool
    subscription_status: Optional[SubscriptionStatus] = None
    features: Dict[PremiumFeature, bool]
    upgrade_url: Optional[str] = None
