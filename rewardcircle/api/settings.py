"""
Loyalty program settings API endpoints (owner only).

GET  /admin/settings  Current program (defaults filled in)
POST /admin/settings  Save program; absent sections keep their current value
"""
from flask import Blueprint, g, jsonify, request

from ..middleware.auth import require_role
from ..models.tenant import Role
from ..services.program_settings import ProgramSettingsService
from ..utils.exceptions import ValidationError

settings_bp = Blueprint('loyalty_settings', __name__)


@settings_bp.route('/admin/settings', methods=['GET'])
@require_role(Role.OWNER)
def get_settings():
    """Get the tenant's loyalty program."""
    settings = ProgramSettingsService(g.tenant_id).get_settings()
    return jsonify({'settings': settings.to_dict()})


@settings_bp.route('/admin/settings', methods=['POST'])
@require_role(Role.OWNER)
def save_settings():
    """
    Save the tenant's loyalty program.

    JSON body (every section optional):
        points_per_dollar: Earn rate, > 0
        tiers: [{id, name, required_lifetime_points}]
        streak: {enabled, window_days, min_visits_for_bonus, bonus_points}
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object')

    # Accept the payload wrapped the way GET returns it
    if isinstance(data.get('settings'), dict):
        data = data['settings']

    settings = ProgramSettingsService(g.tenant_id).save_settings(data)
    return jsonify({'success': True, 'settings': settings.to_dict()})
