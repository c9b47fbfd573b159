"""
Reward catalog model.
"""
from datetime import datetime
from ..extensions import db


class Reward(db.Model):
    """
    Redeemable reward.

    Archiving sets active=False; rows are never deleted because ledger
    entries reference them.
    """
    __tablename__ = 'loyalty_rewards'

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = db.Column(db.Integer, db.ForeignKey('tenants.id'), nullable=False)

    name = db.Column(db.String(100), nullable=False)
    description = db.Column(db.String(1000), default='')
    points_cost = db.Column(db.Integer, nullable=False)

    active = db.Column(db.Boolean, default=True, nullable=False)
    sort_order = db.Column(db.Integer, default=0, nullable=False)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        db.Index('ix_loyalty_rewards_tenant_sort', 'tenant_id', 'sort_order'),
    )

    def __repr__(self):
        return f'<Reward {self.name} ({self.points_cost} pts)>'

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description or '',
            'points_cost': self.points_cost,
            'active': self.active,
            'sort_order': self.sort_order
        }
