"""
Ledger Service for RewardCircle.

Every change to a customer's points goes through this service:
- earn: purchase recorded by staff (base points + streak bonus)
- redeem: reward exchanged for points
- adjust: manual owner correction

ARCHITECTURE:
- LoyaltyTransaction rows are the append-only ledger
- Customer.points_balance / lifetime_points / current_tier / streak_count
  are a projection of that ledger, updated in the SAME database
  transaction as the ledger row that explains the change
- The customer row is read FOR UPDATE and versioned (version_id_col);
  a concurrent writer makes the flush fail with StaleDataError and the
  whole read-modify-write is re-run from scratch

Lifetime points never decrease: redemptions and negative adjustments only
touch the spendable balance.
"""
import logging
import math
from dataclasses import asdict, dataclass
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Callable, List

from flask import current_app
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db
from ..models.customer import Customer
from ..models.transaction import STREAK_BONUS_NOTE, LoyaltyTransaction, TransactionType
from ..utils.contact import normalize_email, normalize_phone
from ..utils.exceptions import (
    InsufficientPointsError,
    InvalidRewardError,
    PersistenceError,
    ValidationError,
)
from .customer_directory import CustomerDirectory
from .program_settings import ProgramSettingsService
from .reward_catalog import RewardCatalog
from .streak_calculator import update_streak

logger = logging.getLogger(__name__)

DEFAULT_CONFLICT_RETRIES = 3
MAX_NOTE_LENGTH = 500

# loyalty_transactions.purchase_amount is NUMERIC(12, 2)
MAX_PURCHASE_AMOUNT = Decimal('1000000.00')
CENT = Decimal('0.01')
# Point columns are 32-bit SQL INTEGERs
MAX_POINTS = 2_147_483_647


@dataclass(frozen=True)
class EarnResult:
    customer_id: int
    new_balance: int
    new_lifetime_points: int
    new_tier: str
    new_streak: int
    streak_bonus: int
    base_points_earned: int

    def to_dict(self):
        return asdict(self)


@dataclass(frozen=True)
class RedeemResult:
    customer_id: int
    reward_id: int
    new_balance: int
    cost_points: int
    reward_name: str

    def to_dict(self):
        return asdict(self)


@dataclass(frozen=True)
class AdjustResult:
    customer_id: int
    points: int
    new_balance: int
    new_lifetime_points: int
    new_tier: str

    def to_dict(self):
        return asdict(self)


def _positive_id(value, field_name: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(f'{field_name} must be a positive integer', field_name)
    if isinstance(value, str) and value.strip().isdigit():
        value = int(value.strip())
    if not isinstance(value, int) or value <= 0:
        raise ValidationError(f'{field_name} must be a positive integer', field_name)
    return value


def _purchase_amount(value) -> Decimal:
    """
    Parse a purchase amount: finite, positive, whole cents, never a boolean.

    The result is what gets stored on the ledger row, so points are always
    computed from exactly the stored value.
    """
    if isinstance(value, bool) or value is None:
        raise ValidationError('purchase_amount must be a positive number', 'purchase_amount')
    if isinstance(value, float) and not math.isfinite(value):
        raise ValidationError('purchase_amount must be a finite number', 'purchase_amount')
    if not isinstance(value, (int, float, Decimal, str)):
        raise ValidationError('purchase_amount must be a positive number', 'purchase_amount')

    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        raise ValidationError('purchase_amount must be a positive number', 'purchase_amount')

    if not amount.is_finite():
        raise ValidationError('purchase_amount must be a finite number', 'purchase_amount')
    if amount <= 0:
        raise ValidationError('purchase_amount must be greater than 0', 'purchase_amount')
    if amount > MAX_PURCHASE_AMOUNT:
        raise ValidationError(
            f'purchase_amount must not exceed {MAX_PURCHASE_AMOUNT}', 'purchase_amount'
        )
    if amount.as_tuple().exponent < -2:
        raise ValidationError('purchase_amount must have at most 2 decimal places', 'purchase_amount')
    return amount.quantize(CENT)


def _check_point_ceiling(total: int, field_name: str) -> None:
    if total > MAX_POINTS:
        raise ValidationError(f'{field_name} would push points past {MAX_POINTS}', field_name)


def calculate_base_points(purchase_amount: Decimal, points_per_dollar) -> int:
    """purchase_amount * points_per_dollar, rounded half up to a whole point."""
    raw = purchase_amount * Decimal(str(points_per_dollar))
    return int(raw.quantize(Decimal('1'), rounding=ROUND_HALF_UP))


class LedgerService:
    """
    Points ledger for one tenant.

    Usage:
        service = LedgerService(tenant_id)

        # Record a purchase
        result = service.earn('555-666-7777', 42.50, actor_id='staff-uid')

        # Redeem a reward
        result = service.redeem(customer_id, reward_id, actor_id='staff-uid')
    """

    def __init__(
        self,
        tenant_id: int,
        settings_service: ProgramSettingsService = None,
        max_conflict_retries: int = None,
    ):
        """
        Args:
            tenant_id: Tenant ID for multi-tenancy
            settings_service: Optional settings provider (defaults to the tenant's)
            max_conflict_retries: Optional override of LEDGER_CONFLICT_RETRIES
        """
        self.tenant_id = tenant_id
        self.settings_service = settings_service or ProgramSettingsService(tenant_id)
        self.customers = CustomerDirectory(tenant_id)
        self.rewards = RewardCatalog(tenant_id)
        self._max_conflict_retries = max_conflict_retries

    @property
    def max_conflict_retries(self) -> int:
        if self._max_conflict_retries is not None:
            return self._max_conflict_retries
        return current_app.config.get('LEDGER_CONFLICT_RETRIES', DEFAULT_CONFLICT_RETRIES)

    # ==================== Atomic unit ====================

    def _run_atomic(self, operation: str, work: Callable):
        """
        Run ``work`` and commit it as one database transaction.

        Optimistic conflicts (stale customer version, or a racing insert of
        the same customer) roll back and re-run ``work`` from the start.
        Business errors roll back and propagate unchanged.

        Raises:
            PersistenceError: Retries exhausted or the database failed
        """
        attempts = self.max_conflict_retries + 1
        for attempt in range(1, attempts + 1):
            try:
                result = work()
                db.session.commit()
                return result
            except (StaleDataError, IntegrityError) as e:
                db.session.rollback()
                if attempt >= attempts:
                    logger.error(
                        '%s gave up after %d conflicting attempts (tenant %s): %s',
                        operation, attempt, self.tenant_id, e
                    )
                    raise PersistenceError(
                        'The customer was updated by another request. Please try again.'
                    ) from e
                logger.warning(
                    '%s hit a concurrent update (tenant %s), retry %d of %d',
                    operation, self.tenant_id, attempt, attempts - 1
                )
            except SQLAlchemyError as e:
                db.session.rollback()
                logger.error('%s failed for tenant %s: %s', operation, self.tenant_id, e)
                raise PersistenceError() from e
            except Exception:
                db.session.rollback()
                raise

    # ==================== Earn ====================

    def earn(
        self,
        contact_phone: str,
        purchase_amount,
        actor_id: str,
        display_name: str = None,
        contact_email: str = None,
        today: date = None,
    ) -> EarnResult:
        """
        Record a purchase and award points.

        Finds the customer by phone (creating them on first purchase),
        advances their visit streak, adds base points plus any streak bonus
        to both balance and lifetime points, and re-resolves their tier.

        Args:
            contact_phone: Customer phone, any common format
            purchase_amount: Purchase total in dollars, > 0
            actor_id: Staff identity recording the purchase
            display_name: Optional name; updates an existing customer's name
            contact_email: Optional email, stored when the customer has none
            today: Visit date (defaults to the current UTC date)

        Returns:
            EarnResult

        Raises:
            ValidationError: Bad amount or phone
            PersistenceError: The write did not commit
        """
        amount = _purchase_amount(purchase_amount)
        phone = normalize_phone(contact_phone)
        if not phone:
            raise ValidationError('contact_phone must be a valid phone number', 'contact_phone')

        name = (display_name or '').strip() or None
        email = normalize_email(contact_email)
        today = today or datetime.utcnow().date()

        settings = self.settings_service.get_settings()
        base_points = calculate_base_points(amount, settings.points_per_dollar)
        _check_point_ceiling(base_points, 'purchase_amount')

        def work():
            customer = self.customers.find_or_create_by_phone(
                phone,
                initial_tier=settings.lowest_tier_id,
                name=name,
                email=email,
                for_update=True,
            )

            if name:
                customer.name = name
            if email and not customer.email and not self.customers.find_by_email(email):
                customer.email = email

            streak = update_streak(
                customer.streak_count or 0,
                customer.last_visit_date,
                today,
                settings.streak,
            )
            total_points = base_points + streak.bonus_points
            _check_point_ceiling((customer.lifetime_points or 0) + total_points, 'purchase_amount')

            customer.points_balance = (customer.points_balance or 0) + total_points
            customer.lifetime_points = (customer.lifetime_points or 0) + total_points
            customer.current_tier = settings.resolve_tier(customer.lifetime_points)
            customer.streak_count = streak.new_streak
            customer.last_visit_date = today
            customer.last_activity_at = datetime.utcnow()

            db.session.add(LoyaltyTransaction(
                tenant_id=self.tenant_id,
                customer_id=customer.id,
                transaction_type=TransactionType.EARN.value,
                points=total_points,
                purchase_amount=amount,
                staff_actor_id=actor_id,
                note=STREAK_BONUS_NOTE if streak.bonus_points > 0 else None,
            ))

            return EarnResult(
                customer_id=customer.id,
                new_balance=customer.points_balance,
                new_lifetime_points=customer.lifetime_points,
                new_tier=customer.current_tier,
                new_streak=customer.streak_count,
                streak_bonus=streak.bonus_points,
                base_points_earned=base_points,
            )

        result = self._run_atomic('earn', work)
        logger.info(
            'Earn: customer %s +%d pts (%d base, %d bonus) by %s, balance %d, tier %s',
            result.customer_id, result.base_points_earned + result.streak_bonus,
            result.base_points_earned, result.streak_bonus, actor_id,
            result.new_balance, result.new_tier
        )
        return result

    # ==================== Redeem ====================

    def redeem(self, customer_id, reward_id, actor_id: str) -> RedeemResult:
        """
        Spend points on a reward.

        Lifetime points and tier are not affected.

        Raises:
            ValidationError: Non-positive ids
            CustomerNotFoundError / RewardNotFoundError: Unknown ids
            InvalidRewardError: Archived reward or non-positive cost
            InsufficientPointsError: Balance below the reward cost
            PersistenceError: The write did not commit
        """
        customer_id = _positive_id(customer_id, 'customer_id')
        reward_id = _positive_id(reward_id, 'reward_id')

        def work():
            customer = self.customers.get_for_update(customer_id)
            reward = self.rewards.get(reward_id)

            if not reward.active:
                raise InvalidRewardError(f'Reward "{reward.name}" is no longer available')
            if (reward.points_cost or 0) <= 0:
                raise InvalidRewardError(f'Reward "{reward.name}" has no valid points cost')

            balance = customer.points_balance or 0
            if balance < reward.points_cost:
                raise InsufficientPointsError(balance, reward.points_cost)

            now = datetime.utcnow()
            customer.points_balance = balance - reward.points_cost
            customer.last_redeemed_at = now
            customer.last_reward_id = reward.id
            customer.last_activity_at = now

            db.session.add(LoyaltyTransaction(
                tenant_id=self.tenant_id,
                customer_id=customer.id,
                transaction_type=TransactionType.REDEEM.value,
                points=-reward.points_cost,
                reward_id=reward.id,
                staff_actor_id=actor_id,
                note=f'Redeemed: {reward.name}',
            ))

            return RedeemResult(
                customer_id=customer.id,
                reward_id=reward.id,
                new_balance=customer.points_balance,
                cost_points=reward.points_cost,
                reward_name=reward.name,
            )

        result = self._run_atomic('redeem', work)
        logger.info(
            'Redeem: customer %s -%d pts for reward %s by %s, balance %d',
            result.customer_id, result.cost_points, result.reward_id, actor_id, result.new_balance
        )
        return result

    # ==================== Adjust ====================

    def adjust(self, customer_id, points, actor_id: str, note: str = None) -> AdjustResult:
        """
        Manually add or remove points.

        Positive adjustments count toward lifetime points and tier. Negative
        adjustments only reduce the spendable balance, never below zero.

        Raises:
            ValidationError: Zero, fractional or non-numeric points
            CustomerNotFoundError: Unknown customer
            InsufficientPointsError: Deduction larger than the balance
            PersistenceError: The write did not commit
        """
        customer_id = _positive_id(customer_id, 'customer_id')
        if isinstance(points, bool) or not isinstance(points, int) or points == 0:
            raise ValidationError('points must be a non-zero whole number', 'points')

        note = (note or '').strip()[:MAX_NOTE_LENGTH] or 'Manual adjustment'
        settings = self.settings_service.get_settings()

        def work():
            customer = self.customers.get_for_update(customer_id)
            balance = customer.points_balance or 0

            if points > 0:
                _check_point_ceiling((customer.lifetime_points or 0) + points, 'points')
                customer.points_balance = balance + points
                customer.lifetime_points = (customer.lifetime_points or 0) + points
                customer.current_tier = settings.resolve_tier(customer.lifetime_points)
            else:
                if balance + points < 0:
                    raise InsufficientPointsError(balance, -points)
                customer.points_balance = balance + points
            customer.last_activity_at = datetime.utcnow()

            db.session.add(LoyaltyTransaction(
                tenant_id=self.tenant_id,
                customer_id=customer.id,
                transaction_type=TransactionType.ADJUST.value,
                points=points,
                staff_actor_id=actor_id,
                note=note,
            ))

            return AdjustResult(
                customer_id=customer.id,
                points=points,
                new_balance=customer.points_balance,
                new_lifetime_points=customer.lifetime_points,
                new_tier=customer.current_tier,
            )

        result = self._run_atomic('adjust', work)
        logger.info(
            'Adjust: customer %s %+d pts by %s, balance %d',
            result.customer_id, points, actor_id, result.new_balance
        )
        return result

    # ==================== History & reconciliation ====================

    def get_customer_history(self, customer_id: int, limit: int = 50) -> List[LoyaltyTransaction]:
        """Newest-first ledger entries for one customer."""
        customer = self.customers.get(customer_id)
        return (
            LoyaltyTransaction.query
            .filter_by(tenant_id=self.tenant_id, customer_id=customer.id)
            .order_by(LoyaltyTransaction.created_at.desc(), LoyaltyTransaction.id.desc())
            .limit(limit)
            .all()
        )

    def recent_transactions(self, limit: int = 25) -> List[LoyaltyTransaction]:
        """Newest-first ledger entries across the whole tenant."""
        return (
            LoyaltyTransaction.query
            .filter_by(tenant_id=self.tenant_id)
            .order_by(LoyaltyTransaction.created_at.desc(), LoyaltyTransaction.id.desc())
            .limit(limit)
            .all()
        )

    def ledger_balance(self, customer_id: int) -> int:
        """Balance recomputed from the ledger alone."""
        total = (
            db.session.query(func.coalesce(func.sum(LoyaltyTransaction.points), 0))
            .filter(
                LoyaltyTransaction.tenant_id == self.tenant_id,
                LoyaltyTransaction.customer_id == customer_id,
            )
            .scalar()
        )
        return int(total or 0)

    def find_balance_drift(self) -> List[dict]:
        """
        Compare every customer's stored balance with its ledger sum.

        Returns:
            One dict per customer whose balances disagree
        """
        ledger_sums = dict(
            db.session.query(
                LoyaltyTransaction.customer_id,
                func.coalesce(func.sum(LoyaltyTransaction.points), 0),
            )
            .filter(LoyaltyTransaction.tenant_id == self.tenant_id)
            .group_by(LoyaltyTransaction.customer_id)
            .all()
        )

        drift = []
        for customer in Customer.query.filter_by(tenant_id=self.tenant_id).order_by(Customer.id):
            ledger_total = int(ledger_sums.get(customer.id, 0) or 0)
            if ledger_total != customer.points_balance:
                drift.append({
                    'customer_id': customer.id,
                    'stored_balance': customer.points_balance,
                    'ledger_balance': ledger_total,
                    'difference': customer.points_balance - ledger_total,
                })
        return drift
