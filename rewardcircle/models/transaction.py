"""
Loyalty ledger model.
"""
from datetime import datetime
from enum import Enum
from ..extensions import db


class TransactionType(str, Enum):
    """Types of ledger entries."""
    EARN = 'earn'       # Points earned on a purchase (positive)
    REDEEM = 'redeem'   # Points spent on a reward (negative)
    ADJUST = 'adjust'   # Manual owner adjustment (+/-)


STREAK_BONUS_NOTE = 'Includes streak bonus'


class LoyaltyTransaction(db.Model):
    """
    Append-only ledger entry.

    Rows are inserted by the ledger service in the same database
    transaction as the customer update they explain, and are never
    updated or deleted afterwards.
    """
    __tablename__ = 'loyalty_transactions'

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = db.Column(db.Integer, db.ForeignKey('tenants.id'), nullable=False)
    customer_id = db.Column(db.Integer, db.ForeignKey('loyalty_customers.id'), nullable=False)

    transaction_type = db.Column(db.String(20), nullable=False)  # TransactionType
    points = db.Column(db.Integer, nullable=False)  # Positive for earn, negative for redeem

    purchase_amount = db.Column(db.Numeric(12, 2))  # earn only
    reward_id = db.Column(db.Integer, db.ForeignKey('loyalty_rewards.id'))  # redeem only

    staff_actor_id = db.Column(db.String(128))
    note = db.Column(db.String(500))

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        db.Index('ix_loyalty_tx_customer_created', 'tenant_id', 'customer_id', 'created_at'),
        db.Index('ix_loyalty_tx_tenant_created', 'tenant_id', 'created_at'),
    )

    reward = db.relationship('Reward')

    def __repr__(self):
        return f'<LoyaltyTransaction {self.id}: {self.transaction_type} {self.points} pts>'

    def to_dict(self):
        return {
            'id': self.id,
            'customer_id': self.customer_id,
            'type': self.transaction_type,
            'points': self.points,
            'purchase_amount': float(self.purchase_amount) if self.purchase_amount is not None else None,
            'reward_id': self.reward_id,
            'staff_actor_id': self.staff_actor_id,
            'note': self.note,
            'created_at': self.created_at.isoformat() if self.created_at else None
        }
