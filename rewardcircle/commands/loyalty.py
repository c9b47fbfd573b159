"""
CLI Commands for loyalty program administration.

Usage:
    flask loyalty create-tenant --slug corner-cafe --name "Corner Cafe"
    flask loyalty grant-role --tenant corner-cafe --user uid-123 --role owner
    flask loyalty issue-token --user uid-123
    flask loyalty seed-rewards --tenant corner-cafe
    flask loyalty reconcile --tenant corner-cafe
"""
import click
from flask.cli import with_appcontext
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..middleware.auth import issue_access_token
from ..models.tenant import Role, Tenant
from ..services.ledger_service import LedgerService
from ..services.reward_catalog import RewardCatalog
from ..services.role_service import RoleService
from ..utils.exceptions import RewardCircleError

# Starter catalog for a new program: (name, description, points_cost)
STARTER_REWARDS = [
    ('Free Coffee', 'Any regular hot or iced coffee', 500),
    ('Free Pastry', 'Any pastry from the counter', 750),
    ('$10 Off', '$10 off your next purchase', 1500),
]


def _get_tenant(slug: str) -> Tenant:
    tenant = Tenant.query.filter_by(slug=slug.strip().lower()).first()
    if not tenant:
        raise click.ClickException(f'Tenant {slug} not found')
    return tenant


@click.group('loyalty')
def loyalty_cli():
    """Loyalty program administration commands."""
    pass


@loyalty_cli.command('create-tenant')
@click.option('--slug', required=True, help='URL slug, e.g. corner-cafe')
@click.option('--name', default=None, help='Display name (defaults to the slug)')
@with_appcontext
def create_tenant(slug, name):
    """Create a tenant with the default loyalty program."""
    slug = slug.strip().lower()
    if Tenant.query.filter_by(slug=slug).first():
        raise click.ClickException(f'Tenant {slug} already exists')

    tenant = Tenant(
        name=(name or slug.replace('-', ' ').title()).strip(),
        slug=slug,
        settings={},
        is_active=True,
    )
    db.session.add(tenant)
    try:
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        raise click.ClickException(f'Could not create tenant: {e}')

    click.echo(f'Created tenant {tenant.slug} (id {tenant.id})')


@loyalty_cli.command('grant-role')
@click.option('--tenant', 'tenant_slug', required=True, help='Tenant slug')
@click.option('--user', 'user_id', required=True, help='User id (token subject)')
@click.option('--role', type=click.Choice([role.value for role in Role]), required=True)
@with_appcontext
def grant_role(tenant_slug, user_id, role):
    """Grant a user a role in a tenant."""
    tenant = _get_tenant(tenant_slug)
    try:
        RoleService(tenant.id).grant_role(user_id, role)
    except RewardCircleError as e:
        raise click.ClickException(e.message)

    click.echo(f'{user_id} is now {role} of {tenant.slug}')


@loyalty_cli.command('issue-token')
@click.option('--user', 'user_id', required=True, help='User id (token subject)')
@click.option('--expires-in', type=int, default=None, help='Lifetime in seconds')
@with_appcontext
def issue_token(user_id, expires_in):
    """Print a signed access token for a user."""
    try:
        token = issue_access_token(user_id, expires_in=expires_in)
    except RuntimeError as e:
        raise click.ClickException(str(e))
    click.echo(token)


@loyalty_cli.command('seed-rewards')
@click.option('--tenant', 'tenant_slug', required=True, help='Tenant slug')
@with_appcontext
def seed_rewards(tenant_slug):
    """Add the starter rewards to an empty catalog."""
    tenant = _get_tenant(tenant_slug)
    catalog = RewardCatalog(tenant.id)

    if catalog.list_all():
        click.echo(f'{tenant.slug} already has rewards, nothing to do')
        return

    try:
        for name, description, points_cost in STARTER_REWARDS:
            catalog.add_reward(name, points_cost, description=description)
        db.session.commit()
    except (RewardCircleError, SQLAlchemyError) as e:
        db.session.rollback()
        raise click.ClickException(f'Could not seed rewards: {e}')

    click.echo(f'Added {len(STARTER_REWARDS)} rewards to {tenant.slug}')


@loyalty_cli.command('reconcile')
@click.option('--tenant', 'tenant_slug', required=True, help='Tenant slug')
@with_appcontext
def reconcile(tenant_slug):
    """
    Compare stored balances with the ledger.

    Exits with status 1 when any customer's balance has drifted.
    """
    tenant = _get_tenant(tenant_slug)
    drift = LedgerService(tenant.id).find_balance_drift()

    if not drift:
        click.echo(f'{tenant.slug}: all balances match the ledger')
        return

    for row in drift:
        click.echo(
            f"  Customer {row['customer_id']}: stored {row['stored_balance']}, "
            f"ledger {row['ledger_balance']} ({row['difference']:+d})"
        )
    click.echo(f'{tenant.slug}: {len(drift)} customer(s) out of balance')
    raise click.exceptions.Exit(1)


def init_app(app):
    """Register loyalty commands with the Flask app."""
    app.cli.add_command(loyalty_cli)
