"""
Loyalty customer model.
"""
from datetime import datetime
from ..extensions import db


class Customer(db.Model):
    """
    Loyalty wallet for one person within a tenant.

    points_balance, lifetime_points, current_tier and streak_count are a
    materialized projection of the customer's LoyaltyTransaction rows.
    They are only ever written by the ledger service, together with the
    matching transaction, in one database transaction.

    version_id is bumped on every UPDATE; a write against a stale version
    raises StaleDataError so concurrent ledger operations can't overwrite
    each other.
    """
    __tablename__ = 'loyalty_customers'

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = db.Column(db.Integer, db.ForeignKey('tenants.id'), nullable=False)

    # Contact identity (at least one is set)
    name = db.Column(db.String(255), nullable=False)
    phone = db.Column(db.String(20))   # E.164, e.g. +15556667777
    email = db.Column(db.String(255))  # lower-cased

    # Points projection
    points_balance = db.Column(db.Integer, nullable=False, default=0)
    lifetime_points = db.Column(db.Integer, nullable=False, default=0)
    current_tier = db.Column(db.String(50), nullable=False)

    # Visit streak
    streak_count = db.Column(db.Integer, nullable=False, default=0)
    last_visit_date = db.Column(db.Date)

    # Last redemption
    last_redeemed_at = db.Column(db.DateTime)
    last_reward_id = db.Column(db.Integer, db.ForeignKey('loyalty_rewards.id'))

    # Timestamps
    joined_at = db.Column(db.DateTime, default=datetime.utcnow)
    last_activity_at = db.Column(db.DateTime, default=datetime.utcnow)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    version_id = db.Column(db.Integer, nullable=False)

    __mapper_args__ = {
        'version_id_col': version_id,
    }

    __table_args__ = (
        db.UniqueConstraint('tenant_id', 'phone', name='uq_loyalty_customer_phone'),
        db.UniqueConstraint('tenant_id', 'email', name='uq_loyalty_customer_email'),
        db.CheckConstraint('points_balance >= 0', name='ck_loyalty_customer_balance_non_negative'),
        db.CheckConstraint('lifetime_points >= 0', name='ck_loyalty_customer_lifetime_non_negative'),
        db.CheckConstraint('streak_count >= 0', name='ck_loyalty_customer_streak_non_negative'),
    )

    # Relationships
    transactions = db.relationship(
        'LoyaltyTransaction',
        backref='customer',
        lazy='dynamic',
        order_by='LoyaltyTransaction.created_at.desc()'
    )
    last_reward = db.relationship('Reward', foreign_keys=[last_reward_id])

    def __repr__(self):
        return f'<Customer {self.id}: {self.points_balance} pts>'

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'phone': self.phone,
            'email': self.email,
            'points_balance': self.points_balance,
            'lifetime_points': self.lifetime_points,
            'current_tier': self.current_tier,
            'streak_count': self.streak_count,
            'last_visit_date': self.last_visit_date.isoformat() if self.last_visit_date else None,
            'last_redeemed_at': self.last_redeemed_at.isoformat() if self.last_redeemed_at else None,
            'last_reward_id': self.last_reward_id,
            'joined_at': self.joined_at.isoformat() if self.joined_at else None,
            'last_activity_at': self.last_activity_at.isoformat() if self.last_activity_at else None
        }

    def to_summary_dict(self):
        """Compact row for customer lists."""
        return {
            'id': self.id,
            'name': self.name,
            'phone': self.phone,
            'points_balance': self.points_balance,
            'lifetime_points': self.lifetime_points,
            'current_tier': self.current_tier
        }
