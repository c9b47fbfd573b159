"""
Tenant and role models for multi-tenant loyalty programs.
"""
from datetime import datetime
from enum import Enum
from ..extensions import db


class Role(str, Enum):
    """Roles an identity can hold inside one tenant."""
    OWNER = 'owner'
    STAFF = 'staff'
    CUSTOMER = 'customer'


class Tenant(db.Model):
    """
    Business running a loyalty program.
    Global table - shared across all tenants.
    """
    __tablename__ = 'tenants'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    slug = db.Column(db.String(100), unique=True, nullable=False)

    # Settings document (JSON). The loyalty program lives under
    # settings['loyalty_program']; other keys belong to other features.
    settings = db.Column(db.JSON, default=dict)

    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    roles = db.relationship('TenantRole', backref='tenant', lazy='dynamic')
    customers = db.relationship('Customer', backref='tenant', lazy='dynamic')
    rewards = db.relationship('Reward', backref='tenant', lazy='dynamic')

    def __repr__(self):
        return f'<Tenant {self.slug}>'

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'slug': self.slug,
            'is_active': self.is_active
        }


class TenantRole(db.Model):
    """
    Role granted to an external identity (token subject) within a tenant.
    """
    __tablename__ = 'tenant_roles'

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = db.Column(db.Integer, db.ForeignKey('tenants.id'), nullable=False)
    user_id = db.Column(db.String(128), nullable=False)
    role = db.Column(db.String(20), nullable=False)  # owner, staff, customer

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        db.UniqueConstraint('tenant_id', 'user_id', name='uq_tenant_role_user'),
    )

    def __repr__(self):
        return f'<TenantRole {self.user_id}:{self.role}>'

    def to_dict(self):
        return {
            'id': self.id,
            'tenant_id': self.tenant_id,
            'user_id': self.user_id,
            'role': self.role,
            'created_at': self.created_at.isoformat() if self.created_at else None
        }
