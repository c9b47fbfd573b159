"""
Reward catalog lookups.
"""
from typing import List

from ..extensions import db
from ..models.reward import Reward
from ..utils.exceptions import RewardNotFoundError, ValidationError


class RewardCatalog:
    """Read access to one tenant's rewards, plus seeding for setup tooling."""

    def __init__(self, tenant_id: int):
        self.tenant_id = tenant_id

    def get(self, reward_id: int) -> Reward:
        """
        Fetch a reward, archived or not.

        Raises:
            RewardNotFoundError: No such reward in this tenant
        """
        reward = Reward.query.filter_by(id=reward_id, tenant_id=self.tenant_id).first()
        if not reward:
            raise RewardNotFoundError(reward_id)
        return reward

    def list_active(self) -> List[Reward]:
        """Active rewards in display order."""
        return (
            Reward.query.filter_by(tenant_id=self.tenant_id, active=True)
            .order_by(Reward.sort_order.asc(), Reward.id.asc())
            .all()
        )

    def list_all(self) -> List[Reward]:
        return (
            Reward.query.filter_by(tenant_id=self.tenant_id)
            .order_by(Reward.sort_order.asc(), Reward.id.asc())
            .all()
        )

    def add_reward(
        self,
        name: str,
        points_cost: int,
        description: str = '',
        sort_order: int = None,
        active: bool = True,
    ) -> Reward:
        """
        Add a reward to the catalog. Flushes; the caller commits.

        Raises:
            ValidationError: Blank name or non-positive cost
        """
        name = (name or '').strip()
        if not name:
            raise ValidationError('Reward name is required', 'name')
        if isinstance(points_cost, bool) or not isinstance(points_cost, int) or points_cost <= 0:
            raise ValidationError('points_cost must be a positive whole number', 'points_cost')

        if sort_order is None:
            sort_order = Reward.query.filter_by(tenant_id=self.tenant_id).count()

        reward = Reward(
            tenant_id=self.tenant_id,
            name=name,
            description=description or '',
            points_cost=points_cost,
            active=active,
            sort_order=sort_order,
        )
        db.session.add(reward)
        db.session.flush()
        return reward
