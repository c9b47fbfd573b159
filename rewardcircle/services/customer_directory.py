"""
Customer directory.

Tenant-scoped lookups for loyalty customers by id, phone or email, plus
the find-or-create used when a first purchase is recorded. Contact values
are normalized here so every caller matches the stored form.
"""
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import or_

from ..extensions import db
from ..models.customer import Customer
from ..utils.contact import normalize_email, normalize_phone
from ..utils.exceptions import CustomerNotFoundError, ValidationError

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100


class CustomerDirectory:
    """
    Customer lookups for one tenant.

    Usage:
        directory = CustomerDirectory(tenant_id)
        customer = directory.find_by_contact(phone='555-666-7777')
    """

    def __init__(self, tenant_id: int):
        self.tenant_id = tenant_id

    def _query(self):
        return Customer.query.filter_by(tenant_id=self.tenant_id)

    def get(self, customer_id: int) -> Customer:
        """
        Raises:
            CustomerNotFoundError: No such customer in this tenant
        """
        customer = self._query().filter_by(id=customer_id).first()
        if not customer:
            raise CustomerNotFoundError(customer_id)
        return customer

    def get_for_update(self, customer_id: int) -> Customer:
        """
        Load a customer row locked for the rest of the current transaction.

        populate_existing() refreshes an instance already in the identity
        map, so the version counter always reflects the row just read.
        """
        customer = (
            self._query()
            .filter_by(id=customer_id)
            .with_for_update()
            .populate_existing()
            .first()
        )
        if not customer:
            raise CustomerNotFoundError(customer_id)
        return customer

    def find_by_phone(self, phone: str, for_update: bool = False) -> Optional[Customer]:
        normalized = normalize_phone(phone)
        if not normalized:
            return None
        query = self._query().filter_by(phone=normalized)
        if for_update:
            query = query.with_for_update().populate_existing()
        return query.first()

    def find_by_email(self, email: str) -> Optional[Customer]:
        normalized = normalize_email(email)
        if not normalized:
            return None
        return self._query().filter_by(email=normalized).first()

    def find_by_contact(self, phone: str = None, email: str = None) -> Optional[Customer]:
        """
        Find a customer by phone, falling back to email.

        Raises:
            ValidationError: Neither value is a usable phone or email
        """
        normalized_phone = normalize_phone(phone)
        normalized_email = normalize_email(email)
        if not normalized_phone and not normalized_email:
            raise ValidationError('Provide a valid phone number or email address', 'contact')

        customer = None
        if normalized_phone:
            customer = self._query().filter_by(phone=normalized_phone).first()
        if customer is None and normalized_email:
            customer = self._query().filter_by(email=normalized_email).first()
        return customer

    def find_or_create_by_phone(
        self,
        phone: str,
        initial_tier: str,
        name: str = None,
        email: str = None,
        for_update: bool = False,
    ) -> Customer:
        """
        Return the customer with this phone, creating one if needed.

        A new customer is added to the session but not committed; the
        caller owns the transaction. The email is only stored when no
        other customer in the tenant already uses it.

        Args:
            phone: Raw phone number (normalized here)
            initial_tier: Tier id for a new customer
            name: Display name, defaults to the normalized phone
            email: Optional email
            for_update: Lock an existing row

        Raises:
            ValidationError: Phone doesn't normalize
        """
        normalized_phone = normalize_phone(phone)
        if not normalized_phone:
            raise ValidationError('A valid phone number is required', 'phone')

        customer = self.find_by_phone(normalized_phone, for_update=for_update)
        if customer:
            return customer

        normalized_email = normalize_email(email)
        if normalized_email and self.find_by_email(normalized_email):
            logger.info(
                'Email already used in tenant %s; creating customer %s without it',
                self.tenant_id, normalized_phone
            )
            normalized_email = None

        now = datetime.utcnow()
        customer = Customer(
            tenant_id=self.tenant_id,
            name=(name or '').strip() or normalized_phone,
            phone=normalized_phone,
            email=normalized_email,
            points_balance=0,
            lifetime_points=0,
            current_tier=initial_tier,
            streak_count=0,
            last_visit_date=None,
            joined_at=now,
            last_activity_at=now,
        )
        db.session.add(customer)
        db.session.flush()
        logger.info('Created loyalty customer %s in tenant %s', customer.id, self.tenant_id)
        return customer

    def list_customers(self, search: str = None, page: int = 1, per_page: int = 25) -> dict:
        """
        Page through customers ordered by name.

        ``search`` matches name, email or phone (digits only match phone).
        """
        page = max(int(page or 1), 1)
        per_page = min(max(int(per_page or 25), 1), MAX_PAGE_SIZE)

        query = self._query()
        term = (search or '').strip()
        if term:
            like = f'%{term}%'
            filters = [Customer.name.ilike(like), Customer.email.ilike(like)]
            digits = ''.join(ch for ch in term if ch.isdigit())
            if digits:
                filters.append(Customer.phone.like(f'%{digits}%'))
            query = query.filter(or_(*filters))

        total = query.count()
        customers = (
            query.order_by(Customer.name.asc(), Customer.id.asc())
            .offset((page - 1) * per_page)
            .limit(per_page)
            .all()
        )

        return {
            'customers': [customer.to_summary_dict() for customer in customers],
            'total': total,
            'page': page,
            'per_page': per_page,
            'pages': (total + per_page - 1) // per_page,
        }
