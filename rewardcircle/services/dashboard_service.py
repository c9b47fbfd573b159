"""
Dashboard statistics for the owner overview.
"""
from sqlalchemy import case, func

from ..extensions import db
from ..models.customer import Customer
from ..models.transaction import LoyaltyTransaction


class DashboardService:
    """Aggregate program numbers for one tenant."""

    def __init__(self, tenant_id: int):
        self.tenant_id = tenant_id

    def get_stats(self) -> dict:
        """
        Returns:
            Dict with total_customers, customers_with_balance,
            points_outstanding, total_transactions, points_earned and
            points_redeemed (absolute value of all negative entries)
        """
        total_customers, customers_with_balance, points_outstanding = (
            db.session.query(
                func.count(Customer.id),
                func.coalesce(func.sum(case((Customer.points_balance > 0, 1), else_=0)), 0),
                func.coalesce(func.sum(Customer.points_balance), 0),
            )
            .filter(Customer.tenant_id == self.tenant_id)
            .one()
        )

        total_transactions, points_earned, points_spent = (
            db.session.query(
                func.count(LoyaltyTransaction.id),
                func.coalesce(func.sum(case((LoyaltyTransaction.points > 0, LoyaltyTransaction.points), else_=0)), 0),
                func.coalesce(func.sum(case((LoyaltyTransaction.points < 0, LoyaltyTransaction.points), else_=0)), 0),
            )
            .filter(LoyaltyTransaction.tenant_id == self.tenant_id)
            .one()
        )

        return {
            'total_customers': int(total_customers or 0),
            'customers_with_balance': int(customers_with_balance or 0),
            'points_outstanding': int(points_outstanding or 0),
            'total_transactions': int(total_transactions or 0),
            'points_earned': int(points_earned or 0),
            'points_redeemed': abs(int(points_spent or 0)),
        }
