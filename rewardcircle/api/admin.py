"""
Loyalty admin API endpoints (owner only).

Customer management, manual adjustments, the dashboard overview and the
reward list.
"""
from flask import Blueprint, g, jsonify, request

from ..middleware.auth import require_role
from ..models.tenant import Role
from ..services.customer_directory import CustomerDirectory
from ..services.dashboard_service import DashboardService
from ..services.ledger_service import LedgerService
from ..services.reward_catalog import RewardCatalog
from ..utils.exceptions import ValidationError

admin_bp = Blueprint('loyalty_admin', __name__)


@admin_bp.route('/admin/customers', methods=['GET'])
@require_role(Role.OWNER)
def list_customers():
    """
    List customers.

    Query params:
        search: Name, email or phone fragment
        page: Page number (default 1)
        per_page: Page size (default 25, max 100)
    """
    result = CustomerDirectory(g.tenant_id).list_customers(
        search=request.args.get('search'),
        page=request.args.get('page', 1, type=int),
        per_page=request.args.get('per_page', 25, type=int),
    )
    return jsonify(result)


@admin_bp.route('/admin/customers/<int:customer_id>', methods=['GET'])
@require_role(Role.OWNER)
def get_customer(customer_id):
    """Customer detail with their 50 most recent transactions."""
    ledger = LedgerService(g.tenant_id)
    customer = ledger.customers.get(customer_id)
    transactions = ledger.get_customer_history(customer_id, limit=50)

    return jsonify({
        'customer': customer.to_dict(),
        'transactions': [tx.to_dict() for tx in transactions],
    })


@admin_bp.route('/admin/customers/<int:customer_id>/adjust', methods=['POST'])
@require_role(Role.OWNER)
def adjust_customer(customer_id):
    """
    Manually adjust a customer's points.

    JSON body:
        points: Non-zero whole number, negative to deduct (required)
        note: Optional reason
    """
    data = request.get_json(silent=True) or {}

    points = data.get('points')
    if isinstance(points, str):
        try:
            points = int(points.strip())
        except ValueError:
            raise ValidationError('points must be a non-zero whole number', 'points')

    result = LedgerService(g.tenant_id).adjust(
        customer_id=customer_id,
        points=points,
        actor_id=g.actor.user_id,
        note=data.get('note'),
    )
    return jsonify(result.to_dict())


@admin_bp.route('/admin/overview', methods=['GET'])
@require_role(Role.OWNER)
def overview():
    """Program statistics and the latest activity."""
    stats = DashboardService(g.tenant_id).get_stats()
    recent = LedgerService(g.tenant_id).recent_transactions(
        limit=min(max(request.args.get('limit', 25, type=int), 1), 100)
    )
    return jsonify({
        'stats': stats,
        'recent_transactions': [tx.to_dict() for tx in recent],
    })


@admin_bp.route('/admin/rewards', methods=['GET'])
@require_role(Role.OWNER)
def list_rewards():
    """All rewards, archived ones included."""
    rewards = RewardCatalog(g.tenant_id).list_all()
    return jsonify({'rewards': [reward.to_dict() for reward in rewards]})
