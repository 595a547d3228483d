"""
Entitlement resolver - decides whether a user gets premium access.

Two independent signals feed the decision:
- the profile-level plan tier (synced by the billing webhook, may lag)
- the most recent subscription status (can upgrade access before the profile syncs)

The pro gate and the displayed tier are resolved separately: subscription status
can grant pro access, but the displayed tier is always the profile's.
"""
from typing import Dict, Optional

from core.models.billing import (
    PlanTier, SubscriptionStatus, PremiumFeature,
    AccessDecision, FeatureGate
)

PRO_TIERS = frozenset({PlanTier.PRO, PlanTier.ENTERPRISE})
PRO_STATUSES = frozenset({SubscriptionStatus.TRIALING, SubscriptionStatus.ACTIVE})


def resolve_access(
    profile_tier: Optional[PlanTier],
    subscription_status: Optional[SubscriptionStatus] = None
) -> AccessDecision:
    """Resolve display tier and pro gate. A missing profile counts as free."""
    tier = PlanTier(profile_tier) if profile_tier is not None else PlanTier.FREE
    status = SubscriptionStatus(subscription_status) if subscription_status is not None else None

    is_pro = tier in PRO_TIERS or status in PRO_STATUSES
    return AccessDecision(tier=tier, is_pro=is_pro)


def check_feature(
    decision: AccessDecision,
    feature: PremiumFeature,
    upgrade_url: Optional[str] = None
) -> FeatureGate:
    """
    Gate a premium operation on an access decision.

    Denial is an expected outcome, not an error: callers branch on `allowed`
    and show `upgrade_url` to prompt an upgrade.
    """
    if decision.is_pro:
        return FeatureGate(feature=feature, allowed=True)
    return FeatureGate(feature=feature, allowed=False, upgrade_url=upgrade_url)


def feature_map(decision: AccessDecision) -> Dict[PremiumFeature, bool]:
    """Per-feature access for rendering decisions."""
    return {feature: check_feature(decision, feature).allowed for feature in PremiumFeature}
