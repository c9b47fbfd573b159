"""
Public customer wallet lookup.

GET/POST /customer/lookup with contact_phone or contact_email. No
credentials: the caller proves nothing beyond knowing the contact value,
so only the wallet view is returned.
"""
from flask import Blueprint, g, jsonify, request

from ..middleware.auth import require_tenant
from ..services.customer_directory import CustomerDirectory
from ..services.program_settings import ProgramSettingsService
from ..services.reward_catalog import RewardCatalog
from ..services.tier_resolver import next_tier, tier_label

customer_bp = Blueprint('loyalty_customer', __name__)


def _wallet(customer):
    return {
        'id': customer.id,
        'name': customer.name,
        'points_balance': customer.points_balance,
        'lifetime_points': customer.lifetime_points,
        'current_tier': customer.current_tier,
        'streak_count': customer.streak_count,
        'last_visit_date': customer.last_visit_date.isoformat() if customer.last_visit_date else None,
    }


@customer_bp.route('/customer/lookup', methods=['GET', 'POST'])
@require_tenant
def lookup():
    """
    Look up a customer's wallet.

    Query params (GET) or JSON body (POST):
        contact_phone: Customer phone
        contact_email: Customer email (used when no phone matches)

    Returns:
        found, customer, program, tier_label, next_tier, active_rewards
    """
    if request.method == 'POST':
        data = request.get_json(silent=True) or {}
    else:
        data = request.args

    customer = CustomerDirectory(g.tenant_id).find_by_contact(
        phone=data.get('contact_phone'),
        email=data.get('contact_email'),
    )
    settings = ProgramSettingsService(g.tenant_id).get_settings()
    rewards = RewardCatalog(g.tenant_id).list_active()

    response = {
        'found': customer is not None,
        'customer': None,
        'program': settings.to_dict(),
        'tier_label': None,
        'next_tier': None,
        'active_rewards': [reward.to_dict() for reward in rewards],
    }
    if customer is not None:
        response.update({
            'customer': _wallet(customer),
            'tier_label': tier_label(customer.current_tier, settings.tiers),
            'next_tier': next_tier(customer.lifetime_points, settings.tiers),
        })

    resp = jsonify(response)
    resp.headers['Cache-Control'] = 'no-store'
    return resp
