"""
Tests for the Customer Directory and contact normalization.
"""
import pytest

from rewardcircle.extensions import db
from rewardcircle.models import Customer
from rewardcircle.services.customer_directory import CustomerDirectory
from rewardcircle.utils.contact import normalize_email, normalize_phone
from rewardcircle.utils.exceptions import CustomerNotFoundError, ValidationError


class TestNormalization:
    """Tests for phone and email normalization."""

    @pytest.mark.parametrize('raw', [
        '5556667777',
        '(555) 666-7777',
        '+1 (555) 666-7777',
        '1-555-666-7777',
        '555.666.7777',
    ])
    def test_phone_formats(self, raw):
        assert normalize_phone(raw) == '+15556667777'

    @pytest.mark.parametrize('raw', [None, '', '555-1234', 'call me', '+44 12', '+1234567890123456'])
    def test_unusable_phone(self, raw):
        assert normalize_phone(raw) is None

    @pytest.mark.parametrize('raw,expected', [
        ('+44 7700 900123', '+447700900123'),
        ('447700900123', '+447700900123'),
        ('+1 770 090 0123', '+17700900123'),
        ('+49 30 1234567', '+49301234567'),
    ])
    def test_international_numbers_keep_every_digit(self, raw, expected):
        assert normalize_phone(raw) == expected

    def test_distinct_numbers_stay_distinct(self):
        assert normalize_phone('+44 7700 900123') != normalize_phone('+1 770 090 0123')

    def test_normalized_value_is_stable(self):
        for raw in ('5556667777', '+44 7700 900123'):
            normalized = normalize_phone(raw)
            assert normalize_phone(normalized) == normalized

    def test_email_lowercased(self):
        assert normalize_email('  Ada@Example.COM ') == 'ada@example.com'

    @pytest.mark.parametrize('raw', [None, '', 'not-an-email', 'a@b'])
    def test_unusable_email(self, raw):
        assert normalize_email(raw) is None


class TestCustomerDirectory:
    """Tests for CustomerDirectory lookups."""

    def test_find_or_create_creates_once(self, sample_tenant):
        directory = CustomerDirectory(sample_tenant.id)

        first = directory.find_or_create_by_phone('(555) 666-7777', initial_tier='starter', name='Ada')
        db.session.commit()
        second = directory.find_or_create_by_phone('+15556667777', initial_tier='starter')

        assert first.id == second.id
        assert first.phone == '+15556667777'
        assert first.name == 'Ada'
        assert first.current_tier == 'starter'
        assert first.points_balance == 0
        assert Customer.query.filter_by(tenant_id=sample_tenant.id).count() == 1

    def test_unnamed_customer_named_after_phone(self, sample_tenant):
        customer = CustomerDirectory(sample_tenant.id).find_or_create_by_phone(
            '555-666-7777', initial_tier='starter', name='  '
        )
        assert customer.name == '+15556667777'

    def test_find_or_create_does_not_commit(self, sample_tenant):
        directory = CustomerDirectory(sample_tenant.id)
        directory.find_or_create_by_phone('5556667777', initial_tier='starter')
        db.session.rollback()

        assert directory.find_by_phone('5556667777') is None

    def test_find_or_create_rejects_bad_phone(self, sample_tenant):
        with pytest.raises(ValidationError):
            CustomerDirectory(sample_tenant.id).find_or_create_by_phone('123', initial_tier='starter')

    def test_duplicate_email_not_stored(self, sample_tenant):
        directory = CustomerDirectory(sample_tenant.id)
        directory.find_or_create_by_phone('5550000001', initial_tier='starter', email='ada@example.com')
        second = directory.find_or_create_by_phone('5550000002', initial_tier='starter', email='ADA@example.com')
        db.session.commit()

        assert second.email is None

    def test_find_by_contact_prefers_phone(self, sample_tenant):
        directory = CustomerDirectory(sample_tenant.id)
        by_phone = directory.find_or_create_by_phone('5550000001', initial_tier='starter')
        by_email = directory.find_or_create_by_phone('5550000002', initial_tier='starter', email='b@example.com')
        db.session.commit()

        assert directory.find_by_contact(phone='555-000-0001', email='b@example.com').id == by_phone.id
        assert directory.find_by_contact(phone='5559999999', email='B@Example.com').id == by_email.id
        assert directory.find_by_contact(phone='5559999999') is None

    def test_find_by_contact_requires_something_usable(self, sample_tenant):
        with pytest.raises(ValidationError):
            CustomerDirectory(sample_tenant.id).find_by_contact(phone='12', email='nope')

    def test_lookups_are_tenant_scoped(self, sample_tenant, other_tenant):
        customer = CustomerDirectory(sample_tenant.id).find_or_create_by_phone('5556667777', initial_tier='starter')
        db.session.commit()

        other = CustomerDirectory(other_tenant.id)
        assert other.find_by_phone('5556667777') is None
        with pytest.raises(CustomerNotFoundError):
            other.get(customer.id)

    def test_get_for_update_unknown(self, sample_tenant):
        with pytest.raises(CustomerNotFoundError):
            CustomerDirectory(sample_tenant.id).get_for_update(12345)

    def test_list_customers_search_and_paging(self, sample_tenant):
        directory = CustomerDirectory(sample_tenant.id)
        for index, name in enumerate(['Carla', 'Ada', 'Ben']):
            directory.find_or_create_by_phone(f'555000000{index}', initial_tier='starter', name=name)
        db.session.commit()

        page = directory.list_customers(page=1, per_page=2)
        assert page['total'] == 3
        assert page['pages'] == 2
        assert [row['name'] for row in page['customers']] == ['Ada', 'Ben']

        assert [row['name'] for row in directory.list_customers(search='car')['customers']] == ['Carla']
        assert directory.list_customers(search='5550000001')['customers'][0]['name'] == 'Ada'
