"""
Tier resolution from lifetime points.

Tiers are any objects exposing ``id``, ``name`` and
``required_lifetime_points`` (see ``program_settings.TierDefinition``).
"""
import re
from typing import Optional, Sequence

# Returned when a program has no tiers at all (misconfiguration upstream)
FALLBACK_TIER_ID = 'tier1'

_LEGACY_TIER_ID = re.compile(r'^tier(\d+)$', re.IGNORECASE)


def _ascending(tiers: Sequence) -> list:
    # sorted() is stable, so equal thresholds keep their configured order
    return sorted(tiers, key=lambda tier: tier.required_lifetime_points)


def resolve_tier(lifetime_points, tiers: Sequence) -> str:
    """
    Return the id of the highest tier whose threshold is met.

    The answer starts at the lowest tier, so a customer below every
    threshold still lands in the entry tier.

    Args:
        lifetime_points: Cumulative points ever earned
        tiers: Tier definitions, any order

    Returns:
        Tier id, or FALLBACK_TIER_ID when no tiers are configured
    """
    ordered = _ascending(tiers)
    if not ordered:
        return FALLBACK_TIER_ID

    current_id = ordered[0].id
    for tier in ordered:
        if lifetime_points >= tier.required_lifetime_points:
            current_id = tier.id
        else:
            break
    return current_id


def lowest_tier_id(tiers: Sequence) -> str:
    """Tier a brand-new customer starts in."""
    ordered = _ascending(tiers)
    return ordered[0].id if ordered else FALLBACK_TIER_ID


def next_tier(lifetime_points, tiers: Sequence) -> Optional[dict]:
    """
    Describe the next tier above the customer's current one.

    Returns:
        Dict with id, name, required_lifetime_points and points_needed,
        or None when the customer is already in the top tier.
    """
    for tier in _ascending(tiers):
        if tier.required_lifetime_points > lifetime_points:
            return {
                'id': tier.id,
                'name': tier.name,
                'required_lifetime_points': tier.required_lifetime_points,
                'points_needed': tier.required_lifetime_points - lifetime_points,
            }
    return None


def tier_label(tier_id: str, tiers: Sequence) -> str:
    """
    Display name for a tier id.

    Uses the configured name when there is one, "Tier N" for legacy
    ``tierN`` ids, and the capitalized id otherwise.
    """
    for tier in tiers:
        if tier.id == tier_id and tier.name and tier.name.strip():
            return tier.name

    if not tier_id:
        return 'Tier 1'

    match = _LEGACY_TIER_ID.match(tier_id)
    if match:
        return f'Tier {match.group(1)}'

    return tier_id[0].upper() + tier_id[1:]
