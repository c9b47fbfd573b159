"""
Program Settings Provider.

Resolves the loyalty program configuration for a tenant (earn rate, tier
ladder, streak bonus rules) and persists owner edits.

Storage:
    The program lives in the tenant's settings JSON under
    ``settings['loyalty_program']``::

        {
            "point_rules": {"points_per_dollar": 2, ...},
            "tiers": [{"id": "starter", "name": "Starter", "required_points": 0, ...}],
            "streak_config": {"enabled": true, "window_days": 2,
                              "bonus_points": 50, "min_visits_for_bonus": 3},
            "updated_at": "2026-01-01T00:00:00"
        }

    Only the fields above are owner-editable. Anything else stored in the
    document (extra point rules, per-tier extras such as multipliers, other
    top-level keys) is preserved when settings are saved.

Reads never fail and never write: a tenant with no stored program, or with
malformed fields, gets ``default_settings()`` values for whatever is missing.
"""
import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models.tenant import Tenant
from ..utils.exceptions import PersistenceError, TenantNotFoundError, ValidationError
from .tier_resolver import lowest_tier_id, resolve_tier

logger = logging.getLogger(__name__)

PROGRAM_SETTINGS_KEY = 'loyalty_program'


@dataclass(frozen=True)
class TierDefinition:
    id: str
    name: str
    required_lifetime_points: float

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'required_lifetime_points': self.required_lifetime_points,
        }


@dataclass(frozen=True)
class StreakConfig:
    enabled: bool
    window_days: int
    min_visits_for_bonus: int
    bonus_points: int

    def to_dict(self):
        return {
            'enabled': self.enabled,
            'window_days': self.window_days,
            'min_visits_for_bonus': self.min_visits_for_bonus,
            'bonus_points': self.bonus_points,
        }


@dataclass(frozen=True)
class ProgramSettings:
    points_per_dollar: float
    tiers: Tuple[TierDefinition, ...] = field(default_factory=tuple)
    streak: StreakConfig = None

    def resolve_tier(self, lifetime_points) -> str:
        return resolve_tier(lifetime_points, self.tiers)

    @property
    def lowest_tier_id(self) -> str:
        return lowest_tier_id(self.tiers)

    def to_dict(self):
        return {
            'points_per_dollar': self.points_per_dollar,
            'tiers': [tier.to_dict() for tier in self.tiers],
            'streak': self.streak.to_dict(),
        }


def default_settings() -> ProgramSettings:
    """
    Settings used when a tenant has not configured its program.

    Returns a fresh value on every call.
    """
    return ProgramSettings(
        points_per_dollar=2,
        tiers=(
            TierDefinition('starter', 'Starter', 0),
            TierDefinition('intermediate', 'Intermediate', 1000),
            TierDefinition('expert', 'Expert', 2500),
            TierDefinition('vip', 'VIP', 5000),
        ),
        streak=StreakConfig(
            enabled=True,
            window_days=2,
            min_visits_for_bonus=3,
            bonus_points=50,
        ),
    )


# ==================== Number helpers ====================

def _finite_number(value):
    """Return value as int/float when it is a finite real number, else None."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float, Decimal)):
        number = value
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None

    if isinstance(number, Decimal):
        number = float(number)
    if isinstance(number, float):
        if not math.isfinite(number):
            return None
        if number.is_integer():
            return int(number)
    return number


def _whole_number(value):
    number = _finite_number(value)
    if number is None or number != int(number):
        return None
    return int(number)


# ==================== Store boundary (lenient) ====================

def settings_from_document(document) -> ProgramSettings:
    """
    Build ProgramSettings from a stored program document.

    Every missing or malformed field falls back to the matching default,
    so this never raises on bad data.
    """
    base = default_settings()
    if not isinstance(document, Mapping):
        return base

    point_rules = document.get('point_rules')
    if not isinstance(point_rules, Mapping):
        point_rules = {}
    points_per_dollar = _finite_number(point_rules.get('points_per_dollar'))
    if points_per_dollar is None or points_per_dollar <= 0:
        points_per_dollar = base.points_per_dollar

    tiers = []
    seen_ids = set()
    raw_tiers = document.get('tiers')
    for raw in raw_tiers if isinstance(raw_tiers, list) else []:
        if not isinstance(raw, Mapping):
            continue
        tier_id = str(raw.get('id') or '').strip()
        if not tier_id or tier_id in seen_ids:
            continue
        threshold = _finite_number(raw.get('required_points', raw.get('required_lifetime_points')))
        if threshold is None or threshold < 0:
            threshold = 0
        name = str(raw.get('name') or '').strip() or tier_id
        tiers.append(TierDefinition(tier_id, name, threshold))
        seen_ids.add(tier_id)

    if not tiers:
        tiers = list(base.tiers)
    tiers.sort(key=lambda tier: tier.required_lifetime_points)

    raw_streak = document.get('streak_config')
    if not isinstance(raw_streak, Mapping):
        raw_streak = {}
    enabled = raw_streak.get('enabled')
    window_days = _whole_number(raw_streak.get('window_days'))
    min_visits = _whole_number(raw_streak.get('min_visits_for_bonus'))
    bonus_points = _whole_number(raw_streak.get('bonus_points'))

    streak = StreakConfig(
        enabled=enabled if isinstance(enabled, bool) else base.streak.enabled,
        window_days=window_days if window_days and window_days > 0 else base.streak.window_days,
        min_visits_for_bonus=min_visits if min_visits and min_visits > 0 else base.streak.min_visits_for_bonus,
        bonus_points=bonus_points if bonus_points is not None and bonus_points >= 0 else base.streak.bonus_points,
    )

    return ProgramSettings(
        points_per_dollar=points_per_dollar,
        tiers=tuple(tiers),
        streak=streak,
    )


def merge_into_document(existing, settings: ProgramSettings) -> dict:
    """
    Write settings into a stored program document without dropping
    fields this module doesn't manage.
    """
    current = dict(existing) if isinstance(existing, Mapping) else {}

    point_rules = current.get('point_rules')
    point_rules = dict(point_rules) if isinstance(point_rules, Mapping) else {}
    point_rules['points_per_dollar'] = settings.points_per_dollar

    existing_by_id = {}
    for raw in current.get('tiers') or []:
        if isinstance(raw, Mapping):
            tier_id = str(raw.get('id') or '').strip()
            if tier_id:
                existing_by_id[tier_id] = raw

    tiers = []
    for tier in settings.tiers:
        entry = dict(existing_by_id.get(tier.id, {}))
        entry.update({
            'id': tier.id,
            'name': tier.name,
            'required_points': tier.required_lifetime_points,
        })
        tiers.append(entry)

    streak_config = current.get('streak_config')
    streak_config = dict(streak_config) if isinstance(streak_config, Mapping) else {}
    streak_config.update(settings.streak.to_dict())

    current.update({
        'point_rules': point_rules,
        'tiers': tiers,
        'streak_config': streak_config,
        'updated_at': datetime.utcnow().isoformat(),
    })
    return current


# ==================== Owner input (strict) ====================

def _require_number(value, field_name: str, minimum=None, exclusive=False):
    number = _finite_number(value)
    if number is None:
        raise ValidationError(f'{field_name} must be a finite number', field_name)
    if minimum is not None:
        if exclusive and number <= minimum:
            raise ValidationError(f'{field_name} must be greater than {minimum}', field_name)
        if not exclusive and number < minimum:
            raise ValidationError(f'{field_name} must be at least {minimum}', field_name)
    return number


def _require_whole_number(value, field_name: str, minimum: int):
    number = _whole_number(value)
    if number is None:
        raise ValidationError(f'{field_name} must be a whole number', field_name)
    if number < minimum:
        raise ValidationError(f'{field_name} must be at least {minimum}', field_name)
    return number


def validate_settings(settings: ProgramSettings) -> ProgramSettings:
    """
    Check an owner-supplied ProgramSettings and return it with tiers sorted
    ascending by threshold.

    Raises:
        ValidationError: On the first violated rule
    """
    points_per_dollar = _require_number(settings.points_per_dollar, 'points_per_dollar', 0, exclusive=True)

    if not settings.tiers:
        raise ValidationError('At least one tier is required', 'tiers')

    seen_ids = set()
    tiers = []
    for tier in settings.tiers:
        tier_id = str(tier.id or '').strip()
        if not tier_id:
            raise ValidationError('Every tier needs an id', 'tiers')
        if tier_id in seen_ids:
            raise ValidationError(f'Duplicate tier id: {tier_id}', 'tiers')
        seen_ids.add(tier_id)
        threshold = _require_number(tier.required_lifetime_points, 'required_lifetime_points', 0)
        name = str(tier.name or '').strip() or tier_id
        tiers.append(TierDefinition(tier_id, name, threshold))
    tiers.sort(key=lambda tier: tier.required_lifetime_points)

    streak = settings.streak
    if streak is None:
        raise ValidationError('Streak configuration is required', 'streak')
    if not isinstance(streak.enabled, bool):
        raise ValidationError('streak.enabled must be true or false', 'streak')

    return ProgramSettings(
        points_per_dollar=points_per_dollar,
        tiers=tuple(tiers),
        streak=StreakConfig(
            enabled=streak.enabled,
            window_days=_require_whole_number(streak.window_days, 'window_days', 1),
            min_visits_for_bonus=_require_whole_number(streak.min_visits_for_bonus, 'min_visits_for_bonus', 1),
            bonus_points=_require_whole_number(streak.bonus_points, 'bonus_points', 0),
        ),
    )


def parse_settings_payload(payload, base: Optional[ProgramSettings] = None) -> ProgramSettings:
    """
    Turn a JSON payload into validated ProgramSettings.

    Payload shape::

        {
            "points_per_dollar": 2,
            "tiers": [{"id": "starter", "name": "Starter", "required_lifetime_points": 0}],
            "streak": {"enabled": true, "window_days": 2,
                       "min_visits_for_bonus": 3, "bonus_points": 50}
        }

    Top-level sections that are absent keep their value from ``base``
    (the tenant's current settings); streak keys are merged the same way.

    Raises:
        ValidationError: Malformed payload or any rule in validate_settings
    """
    if not isinstance(payload, Mapping):
        raise ValidationError('Settings payload must be a JSON object')

    base = base or default_settings()

    points_per_dollar = payload.get('points_per_dollar', base.points_per_dollar)

    if 'tiers' in payload:
        raw_tiers = payload.get('tiers')
        if not isinstance(raw_tiers, list):
            raise ValidationError('tiers must be a list', 'tiers')
        tiers = []
        for raw in raw_tiers:
            if not isinstance(raw, Mapping):
                raise ValidationError('Each tier must be an object', 'tiers')
            threshold = raw.get('required_lifetime_points', raw.get('required_points'))
            if threshold is None:
                raise ValidationError('Each tier needs required_lifetime_points', 'tiers')
            tiers.append(TierDefinition(
                id=str(raw.get('id') or '').strip(),
                name=str(raw.get('name') or '').strip(),
                required_lifetime_points=threshold,
            ))
        tiers = tuple(tiers)
    else:
        tiers = base.tiers

    raw_streak = payload.get('streak', {})
    if raw_streak is None:
        raw_streak = {}
    if not isinstance(raw_streak, Mapping):
        raise ValidationError('streak must be an object', 'streak')
    streak = StreakConfig(
        enabled=raw_streak.get('enabled', base.streak.enabled),
        window_days=raw_streak.get('window_days', base.streak.window_days),
        min_visits_for_bonus=raw_streak.get('min_visits_for_bonus', base.streak.min_visits_for_bonus),
        bonus_points=raw_streak.get('bonus_points', base.streak.bonus_points),
    )

    return validate_settings(ProgramSettings(
        points_per_dollar=points_per_dollar,
        tiers=tiers,
        streak=streak,
    ))


# ==================== Service ====================

class ProgramSettingsService:
    """
    Read and write one tenant's loyalty program.

    Usage:
        service = ProgramSettingsService(tenant_id)
        settings = service.get_settings()
        service.save_settings({'points_per_dollar': 3})
    """

    def __init__(self, tenant_id: int):
        self.tenant_id = tenant_id

    def _stored_document(self, tenant: Optional[Tenant]):
        if tenant is None:
            return None
        return (tenant.settings or {}).get(PROGRAM_SETTINGS_KEY)

    def get_settings(self) -> ProgramSettings:
        """Current settings, defaults filled in. Never raises for missing config."""
        tenant = db.session.get(Tenant, self.tenant_id)
        document = self._stored_document(tenant)
        if document is None:
            return default_settings()
        return settings_from_document(document)

    def save_settings(self, settings) -> ProgramSettings:
        """
        Validate and persist owner-edited settings.

        Args:
            settings: ProgramSettings, or a payload dict (see parse_settings_payload)

        Returns:
            The validated, stored ProgramSettings

        Raises:
            ValidationError: Invalid settings; nothing is written
            TenantNotFoundError: Unknown tenant
            PersistenceError: The write did not commit
        """
        if isinstance(settings, Mapping):
            validated = parse_settings_payload(settings, base=self.get_settings())
        else:
            validated = validate_settings(settings)

        tenant = db.session.get(Tenant, self.tenant_id)
        if tenant is None:
            raise TenantNotFoundError(self.tenant_id)

        document = merge_into_document(self._stored_document(tenant), validated)
        # Assign a new dict so the JSON column is flagged dirty
        tenant.settings = {**(tenant.settings or {}), PROGRAM_SETTINGS_KEY: document}

        try:
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error('Saving program settings failed for tenant %s: %s', self.tenant_id, e)
            raise PersistenceError('Program settings could not be saved. Please try again.') from e

        logger.info(
            'Program settings saved for tenant %s: %s pts/$, %d tiers, streak %s',
            self.tenant_id, validated.points_per_dollar, len(validated.tiers),
            'on' if validated.streak.enabled else 'off'
        )
        return validated
