# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/stockroom/cli.py
# Commands Legend (run from the backend directory):
# - flask --app stockroom store init
#   Create tables if missing and seed the inventory document + secure settings.
# - flask --app stockroom store show [--secure]
#   Dump the inventory tree as JSON.
# - flask --app stockroom store audit
#   Report invariant violations (exit code 1 when any are found).
# - flask --app stockroom users create-root --person-id ... --name ... --email ... --phone ...
#   Create a role-A user without the approval step.
# - flask --app stockroom users list
# - flask --app stockroom perms list [ROLE] [--category REQUESTS]
# - flask --app stockroom perms check B ASSIGN_ROLES
# - flask --app stockroom notifications list [--status pending]

import json

import click
from flask.cli import with_appcontext

from .extensions import db
from .permissions import (
    DEFAULT_ROLE_PERMISSIONS,
    ROLES,
    get_permission_definition,
    get_permissions_by_category,
    role_can,
    validate_permission_code,
)
from .services import audit_service, notification_service, store_service, user_service


@click.group('store')
def store_group():
    """Inventory document commands."""


@store_group.command('init')
@with_appcontext
def init_store():
    """Idempotent bootstrap of tables and the inventory document."""
    db.create_all()
    tree = store_service.load()
    click.echo(
        f"PASS Inventory ready (version {store_service.current_version()}, "
        f"{len(tree['items'])} items, {len(tree['users'])} users)"
    )


@store_group.command('show')
@click.option('--secure', is_flag=True, help='Include passkeys and contact email')
@with_appcontext
def show_store(secure):
    tree = store_service.load()
    payload = tree if secure else store_service.public_view(tree)
    click.echo(json.dumps(payload, indent=2, sort_keys=True))


@store_group.command('audit')
@with_appcontext
def audit_store():
    """Check counts, status/field pairing and id uniqueness."""
    problems = audit_service.audit_tree()
    if not problems:
        click.echo("PASS No invariant violations")
        return
    for problem in problems:
        click.echo(f"FAIL {problem}")
    raise SystemExit(1)


@click.group('users')
def users_group():
    """User directory commands."""


@users_group.command('create-root')
@click.option('--person-id', prompt=True)
@click.option('--name', prompt=True)
@click.option('--email', prompt=True)
@click.option('--phone', prompt=True)
@click.option('--department', default=None)
@click.option('--section', default=None)
@with_appcontext
def create_root(person_id, name, email, phone, department, section):
    result = user_service.create_root_user({
        "personId": person_id,
        "name": name,
        "email": email,
        "phone": phone,
        "department": department,
        "section": section,
    })
    click.echo(f"{'PASS' if result.success else 'FAIL'} {result.message}")
    if not result.success:
        raise SystemExit(1)


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users with their roles."""
    users = user_service.list_users()
    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "=" * 100)
    click.echo(f"{'Person ID':<20} {'Name':<25} {'Email':<35} {'Role'}")
    click.echo("=" * 100)
    for user in users:
        click.echo(
            f"{str(user.get('personId')):<20} {str(user.get('name')):<25} "
            f"{str(user.get('email')):<35} {user.get('role')}"
        )
    click.echo("=" * 100 + "\n")


@click.group('perms')
def perms_group():
    """Role capability inspection."""


@perms_group.command('list')
@click.argument('role', required=False)
@click.option('--category', default=None, help='Only show this category (e.g. REQUESTS)')
def list_permissions(role, category):
    """List capabilities, optionally for one role."""
    roles = [role] if role else list(ROLES)
    wanted = {p[0] for p in get_permissions_by_category(category.upper())} if category else None
    for r in roles:
        if r not in DEFAULT_ROLE_PERMISSIONS:
            click.echo(f"FAIL Unknown role '{r}'")
            continue
        click.echo(f"\nRole {r}:")
        for code in sorted(DEFAULT_ROLE_PERMISSIONS[r]):
            if wanted is not None and code not in wanted:
                continue
            definition = get_permission_definition(code)
            click.echo(f"  {code:<22} {definition['name']}")


@perms_group.command('check')
@click.argument('role')
@click.argument('permission_code')
def check_permission_cli(role, permission_code):
    """Check if a role grants a capability."""
    if not validate_permission_code(permission_code):
        click.echo(f"FAIL Unknown permission '{permission_code}'")
        return
    if role_can(role, permission_code):
        click.echo(f"PASS Role '{role}' HAS permission '{permission_code}'")
    else:
        click.echo(f"FAIL Role '{role}' DOES NOT HAVE permission '{permission_code}'")


@click.group('notifications')
def notifications_group():
    """Approval queue inspection."""


@notifications_group.command('list')
@click.option('--status', type=click.Choice(sorted(notification_service.VALID_STATUSES)), default=None)
@with_appcontext
def list_notifications(status):
    notifications = notification_service.list_notifications(status)
    if not notifications:
        click.echo("No notifications found.")
        return
    for n in notifications:
        target = n.get("subItemId") or (n.get("requestedData") or {}).get("newUser", {}).get("personId")
        click.echo(f"{n.get('id'):<28} {n.get('type'):<9} {n.get('status'):<9} {target}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(store_group)
    app.cli.add_command(users_group)
    app.cli.add_command(perms_group)
    app.cli.add_command(notifications_group)
