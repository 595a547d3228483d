import pytest

from core.entitlements import resolve_access, check_feature, feature_map
from core.models.billing import PlanTier, SubscriptionStatus, PremiumFeature

UPGRADE = "https://checkout.example/pro"


def test_active_subscription_grants_pro_before_profile_sync():
    decision = resolve_access(PlanTier.FREE, SubscriptionStatus.ACTIVE)
    assert decision.is_pro is True
    assert decision.tier == PlanTier.FREE


def test_pro_profile_is_sufficient_even_when_canceled():
    decision = resolve_access(PlanTier.PRO, SubscriptionStatus.CANCELED)
    assert decision.is_pro is True
    assert decision.tier == PlanTier.PRO


def test_past_due_does_not_grant_pro():
    assert resolve_access(PlanTier.FREE, SubscriptionStatus.PAST_DUE).is_pro is False


@pytest.mark.parametrize("status", [
    SubscriptionStatus.NOT_STARTED,
    SubscriptionStatus.INCOMPLETE,
    SubscriptionStatus.INCOMPLETE_EXPIRED,
    SubscriptionStatus.PAST_DUE,
    SubscriptionStatus.CANCELED,
    SubscriptionStatus.UNPAID,
    SubscriptionStatus.PAUSED,
])
def test_non_paying_statuses_leave_free_users_free(status):
    assert resolve_access(PlanTier.FREE, status).is_pro is False


def test_trialing_grants_pro():
    assert resolve_access(PlanTier.FREE, SubscriptionStatus.TRIALING).is_pro is True


def test_enterprise_profile_is_pro_without_subscription():
    decision = resolve_access(PlanTier.ENTERPRISE, None)
    assert decision.is_pro is True
    assert decision.tier == PlanTier.ENTERPRISE


def test_missing_profile_counts_as_free():
    decision = resolve_access(None, None)
    assert decision.tier == PlanTier.FREE
    assert decision.is_pro is False


def test_raw_string_signals_are_accepted():
    decision = resolve_access("free", "active")
    assert decision.tier == PlanTier.FREE
    assert decision.is_pro is True


def test_unknown_status_string_is_rejected():
    with pytest.raises(ValueError):
        resolve_access(PlanTier.FREE, "lifetime")


def test_check_feature_denial_carries_upgrade_url():
    gate = check_feature(resolve_access(PlanTier.FREE), PremiumFeature.ANALYTICS, UPGRADE)
    assert gate.allowed is False
    assert gate.upgrade_url == UPGRADE
    assert gate.feature == PremiumFeature.ANALYTICS


def test_check_feature_allowed_has_no_upgrade_url():
    gate = check_feature(resolve_access(PlanTier.PRO), PremiumFeature.PDF_EXPORT, UPGRADE)
    assert gate.allowed is True
    assert gate.upgrade_url is None


def test_feature_map_covers_every_premium_feature():
    free = feature_map(resolve_access(PlanTier.FREE))
    pro = feature_map(resolve_access(PlanTier.PRO))
    assert set(free) == set(PremiumFeature)
    assert not any(free.values())
    assert all(pro.values())
