"""
Loyalty ledger API endpoints (staff console).

POST /earn    Record a purchase and award points
POST /redeem  Exchange points for a reward
"""
from flask import Blueprint, g, jsonify, request

from ..middleware.auth import require_role
from ..models.tenant import Role
from ..services.ledger_service import LedgerService

loyalty_bp = Blueprint('loyalty', __name__)


def _no_store(response):
    response.headers['Cache-Control'] = 'no-store'
    return response


@loyalty_bp.route('/earn', methods=['POST'])
@require_role(Role.OWNER, Role.STAFF)
def earn():
    """
    Record a purchase.

    JSON body:
        contact_phone: Customer phone (required)
        purchase_amount: Purchase total in dollars, > 0 (required)
        display_name: Optional customer name
        contact_email: Optional customer email

    Returns:
        customer_id, new_balance, new_lifetime_points, new_tier,
        new_streak, streak_bonus, base_points_earned
    """
    data = request.get_json(silent=True) or {}

    result = LedgerService(g.tenant_id).earn(
        contact_phone=data.get('contact_phone'),
        purchase_amount=data.get('purchase_amount'),
        actor_id=g.actor.user_id,
        display_name=data.get('display_name'),
        contact_email=data.get('contact_email'),
    )
    return _no_store(jsonify(result.to_dict()))


@loyalty_bp.route('/redeem', methods=['POST'])
@require_role(Role.OWNER, Role.STAFF)
def redeem():
    """
    Redeem a reward for a customer.

    JSON body:
        customer_id: Customer ID (required)
        reward_id: Reward ID (required)

    Returns:
        customer_id, reward_id, new_balance, cost_points, reward_name
    """
    data = request.get_json(silent=True) or {}

    result = LedgerService(g.tenant_id).redeem(
        customer_id=data.get('customer_id'),
        reward_id=data.get('reward_id'),
        actor_id=g.actor.user_id,
    )
    return _no_store(jsonify(result.to_dict()))
