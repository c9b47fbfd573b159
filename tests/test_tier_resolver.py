"""
Tests for tier resolution.
"""
import pytest

from rewardcircle.services.program_settings import TierDefinition, default_settings
from rewardcircle.services.tier_resolver import (
    FALLBACK_TIER_ID,
    lowest_tier_id,
    next_tier,
    resolve_tier,
    tier_label,
)

TIERS = (
    TierDefinition('starter', 'Starter', 0),
    TierDefinition('intermediate', 'Intermediate', 1000),
    TierDefinition('expert', 'Expert', 2500),
    TierDefinition('vip', 'VIP', 5000),
)


class TestResolveTier:
    """Tests for resolve_tier."""

    @pytest.mark.parametrize('lifetime,expected', [
        (0, 'starter'),
        (999, 'starter'),
        (1000, 'intermediate'),
        (2499, 'intermediate'),
        (2500, 'expert'),
        (5000, 'vip'),
        (1_000_000, 'vip'),
    ])
    def test_thresholds_are_inclusive(self, lifetime, expected):
        """Reaching a threshold exactly enters that tier."""
        assert resolve_tier(lifetime, TIERS) == expected

    def test_unsorted_tiers(self):
        """Tier order in the configuration doesn't matter."""
        shuffled = (TIERS[3], TIERS[0], TIERS[2], TIERS[1])
        assert resolve_tier(3000, shuffled) == 'expert'

    def test_below_every_threshold_lands_in_lowest_tier(self):
        """The entry tier is returned even when its threshold isn't met."""
        tiers = (TierDefinition('bronze', 'Bronze', 100), TierDefinition('gold', 'Gold', 500))
        assert resolve_tier(10, tiers) == 'bronze'

    def test_empty_tiers_fall_back(self):
        assert resolve_tier(500, ()) == FALLBACK_TIER_ID

    def test_equal_thresholds_keep_configured_order(self):
        """With a tie the later configured tier wins once the threshold is met."""
        tiers = (TierDefinition('a', 'A', 0), TierDefinition('b', 'B', 0))
        assert resolve_tier(0, tiers) == 'b'

    def test_monotonic_in_lifetime_points(self):
        """More lifetime points never resolve to a lower tier."""
        order = [tier.id for tier in TIERS]
        previous = 0
        for lifetime in range(0, 6000, 250):
            index = order.index(resolve_tier(lifetime, TIERS))
            assert index >= previous
            previous = index

    def test_default_settings_tiers(self):
        settings = default_settings()
        assert settings.resolve_tier(0) == 'starter'
        assert settings.resolve_tier(5000) == 'vip'


class TestLowestAndNextTier:
    """Tests for lowest_tier_id and next_tier."""

    def test_lowest_tier(self):
        assert lowest_tier_id((TIERS[2], TIERS[0])) == 'starter'
        assert lowest_tier_id(()) == FALLBACK_TIER_ID

    def test_next_tier_reports_points_needed(self):
        result = next_tier(1200, TIERS)
        assert result == {
            'id': 'expert',
            'name': 'Expert',
            'required_lifetime_points': 2500,
            'points_needed': 1300,
        }

    def test_next_tier_none_at_top(self):
        assert next_tier(5000, TIERS) is None


class TestTierLabel:
    """Tests for tier_label."""

    def test_configured_name(self):
        assert tier_label('vip', TIERS) == 'VIP'

    def test_legacy_numbered_id(self):
        assert tier_label('tier3', ()) == 'Tier 3'

    def test_unknown_id_is_capitalized(self):
        assert tier_label('platinum', TIERS) == 'Platinum'

    def test_blank_name_falls_back_to_id(self):
        tiers = (TierDefinition('gold', '  ', 100),)
        assert tier_label('gold', tiers) == 'Gold'

    def test_empty_id(self):
        assert tier_label('', TIERS) == 'Tier 1'
