"""
CLI Commands for RewardCircle.

Usage:
    flask loyalty create-tenant --slug corner-cafe --name "Corner Cafe"
    flask loyalty grant-role --tenant corner-cafe --user uid-123 --role staff
    flask loyalty issue-token --user uid-123
    flask loyalty seed-rewards --tenant corner-cafe
    flask loyalty reconcile --tenant corner-cafe
"""
from .loyalty import init_app as init_loyalty_commands


def init_app(app):
    """Register all CLI commands with the Flask app."""
    init_loyalty_commands(app)
