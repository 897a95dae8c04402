# Overview: Flask CLI command groups for syncing, production tracking and order housekeeping.

# backend/tracker/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System:
# - python -m flask system init-db
#   Create any missing tables (idempotent).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Sync:
# - python -m flask sync run [--file orders.json]
#   Run one sync cycle from a JSON export (defaults to ORDER_SOURCE_PATH).
# - python -m flask sync history --limit 10
#   Show recent sync attempts.
# - python -m flask sync settings [--enable | --disable] [--interval 5]
#   Show or change the auto-sync schedule.
#
# Tasks:
# - python -m flask tasks list
# - python -m flask tasks produced <variant_id> <qty>
# - python -m flask tasks complete <variant_id>
# - python -m flask tasks reset <variant_id>
#
# Orders:
# - python -m flask orders list [--archived | --all]
# - python -m flask orders archive <order_id> | unarchive <order_id>
# - python -m flask orders archive-fulfilled | unarchive-all
# - python -m flask orders purge-archived --yes
#   Permanently delete archived orders and their line items.
#
# Inventory:
# - python -m flask inventory load --file inventory.json
# - python -m flask inventory list [--out-of-stock] [--search TEXT]
# - python -m flask inventory stats
# - python -m flask inventory clear --yes

import json

import click
from flask import current_app
from flask.cli import with_appcontext

from .extensions import db
from .services import (
    inventory_service,
    order_service,
    production_service,
    settings_service,
    sync_service,
    task_service,
)
from .services.errors import TrackerError
from .services.order_source import FileOrderSource


def _fail(exc: TrackerError):
    raise click.ClickException(f"{exc} ({exc.code})")


def _echo_newly_fulfilled(orders):
    store_url = current_app.config.get("SHOPIFY_STORE_URL")
    for order in orders:
        data = order.to_dict(store_url=store_url)
        link = data.get("shopify_admin_url") or ""
        click.echo(f"  FULFILLED {order.order_name} {link}".rstrip())


@click.group('system')
def system_group():
    """Database bootstrap commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create any missing tables."""
    db.create_all()
    click.echo("PASS Tables created.")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA, including production progress!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete. Run 'python -m flask sync run' to load orders.")


@click.group('sync')
def sync_group():
    """Order sync commands."""


@sync_group.command('run')
@click.option('--file', 'path', type=click.Path(exists=True, dir_okay=False), help='JSON export of unfulfilled orders')
@with_appcontext
def run_sync_cli(path):
    """Fetch unfulfilled orders and reconcile them with local progress."""
    path = path or current_app.config.get("ORDER_SOURCE_PATH")
    if not path:
        raise click.UsageError("Pass --file or set ORDER_SOURCE_PATH")

    try:
        result = sync_service.run_sync(db.session, FileOrderSource(path))
    except TrackerError as exc:
        _fail(exc)

    r = result.reconcile
    click.echo(f"PASS {result.message}")
    click.echo(f"  stored={r.orders_stored} preserved={r.orders_skipped} cleared={r.orders_cleared}")


@sync_group.command('history')
@click.option('--limit', type=int, default=10, show_default=True)
@with_appcontext
def sync_history_cli(limit):
    """Show recent sync attempts."""
    entries = sync_service.get_sync_history(db.session, limit=limit)
    if not entries:
        click.echo("No syncs recorded.")
        return

    click.echo(f"{'WHEN':<22} {'STATUS':<8} {'ORDERS':>6} {'VARIANTS':>8}  ERROR")
    for e in entries:
        d = e.to_dict()
        click.echo(
            f"{d['synced_at'] or '':<22} {e.status:<8} {e.orders_fetched:>6} {e.variants_updated:>8}  {e.error_message or ''}"
        )


@sync_group.command('settings')
@click.option('--enable/--disable', 'enabled', default=None, help='Turn auto-sync on or off')
@click.option('--interval', type=int, default=None, help='Minutes between automatic syncs (>= 1)')
@with_appcontext
def sync_settings_cli(enabled, interval):
    """Show, or change, the auto-sync schedule."""
    current = settings_service.get_auto_sync_settings(db.session)
    if enabled is None and interval is None:
        click.echo(current.message)
        return

    try:
        saved = settings_service.save_auto_sync_settings(
            db.session,
            enabled=current.enabled if enabled is None else enabled,
            interval_minutes=current.interval_minutes if interval is None else interval,
        )
    except TrackerError as exc:
        _fail(exc)
    click.echo(f"PASS {saved.message}")


@click.group('tasks')
def tasks_group():
    """Production task commands."""


@tasks_group.command('list')
@with_appcontext
def list_tasks_cli():
    tasks = task_service.list_tasks(db.session)
    if not tasks:
        click.echo("No tasks.")
        return

    click.echo(f"{'STATUS':<12} {'MADE':>9}  {'SKU':<16} PRODUCT")
    for t in tasks:
        title = f"{t.product_title} / {t.variant_title}" if t.variant_title else t.product_title
        click.echo(f"{t.status:<12} {t.made_quantity:>4}/{t.total_quantity:<4}  {t.sku:<16} {title}  [{t.variant_id}]")


@tasks_group.command('produced')
@click.argument('variant_id')
@click.argument('quantity', type=int)
@with_appcontext
def mark_produced_cli(variant_id, quantity):
    """Record QUANTITY produced units for VARIANT_ID."""
    try:
        result = production_service.mark_produced(db.session, variant_id, quantity)
    except TrackerError as exc:
        _fail(exc)

    t = result.task
    click.echo(f"PASS {t.variant_id}: {t.made_quantity}/{t.total_quantity} ({t.status})")
    _echo_newly_fulfilled(result.newly_fulfilled_orders)


@tasks_group.command('complete')
@click.argument('variant_id')
@with_appcontext
def mark_complete_cli(variant_id):
    try:
        result = production_service.mark_complete(db.session, variant_id)
    except TrackerError as exc:
        _fail(exc)

    t = result.task
    click.echo(f"PASS {t.variant_id}: {t.made_quantity}/{t.total_quantity} ({t.status})")
    _echo_newly_fulfilled(result.newly_fulfilled_orders)


@tasks_group.command('reset')
@click.argument('variant_id')
@with_appcontext
def reset_task_cli(variant_id):
    try:
        result = production_service.reset_task(db.session, variant_id)
    except TrackerError as exc:
        _fail(exc)

    click.echo(f"PASS {result.task.variant_id} reset to 0/{result.task.total_quantity}")


@click.group('orders')
def orders_group():
    """Order and archive commands."""


@orders_group.command('list')
@click.option('--archived', 'archived_only', is_flag=True, help='Only archived orders')
@click.option('--all', 'include_archived', is_flag=True, help='Include archived orders')
@with_appcontext
def list_orders_cli(archived_only, include_archived):
    if archived_only:
        orders = order_service.list_archived_orders(db.session)
    else:
        orders = order_service.list_orders(db.session, include_archived=include_archived)
    if not orders:
        click.echo("No orders.")
        return

    for o in orders:
        click.echo(f"{o.order_name:<10} {o.status:<12} {o.fulfilled_items:>4}/{o.total_items:<4} {o.order_date:%Y-%m-%d}  [{o.order_id}]")


@orders_group.command('archive')
@click.argument('order_id')
@with_appcontext
def archive_order_cli(order_id):
    try:
        result = order_service.archive(db.session, order_id)
    except TrackerError as exc:
        _fail(exc)
    click.echo("SKIP Already archived." if result.already_archived else "PASS Order archived.")


@orders_group.command('unarchive')
@click.argument('order_id')
@with_appcontext
def unarchive_order_cli(order_id):
    try:
        result = order_service.unarchive(db.session, order_id)
    except TrackerError as exc:
        _fail(exc)
    click.echo("SKIP Order is not archived." if result.not_archived else f"PASS Order restored ({result.status}).")


@orders_group.command('archive-fulfilled')
@with_appcontext
def archive_fulfilled_cli():
    count = order_service.archive_all_fulfilled(db.session)
    click.echo(f"PASS Archived {count} fulfilled order(s).")


@orders_group.command('unarchive-all')
@with_appcontext
def unarchive_all_cli():
    count = order_service.unarchive_all(db.session)
    click.echo(f"PASS Restored {count} order(s).")


@orders_group.command('purge-archived')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def purge_archived_cli(yes):
    """Permanently delete archived orders. Cannot be undone."""
    if not yes:
        click.confirm("WARN This permanently deletes archived orders. Continue?", abort=True)
    count = order_service.delete_archived(db.session)
    click.echo(f"DELETE  Removed {count} archived order(s).")


@click.group('inventory')
def inventory_group():
    """Shop inventory commands."""


@inventory_group.command('load')
@click.option('--file', 'path', type=click.Path(exists=True, dir_okay=False), required=True,
              help='JSON export: {"inventory": [...]}')
@with_appcontext
def load_inventory_cli(path):
    """Bulk upsert inventory levels from a JSON export."""
    with open(path, "r", encoding="utf-8") as fh:
        payload = json.load(fh)
    try:
        count = inventory_service.bulk_upsert_inventory(db.session, inventory_service.parse_inventory(payload))
    except TrackerError as exc:
        _fail(exc)
    click.echo(f"PASS Upserted {count} inventory record(s).")


@inventory_group.command('list')
@click.option('--out-of-stock', is_flag=True, help='Only variants with quantity <= 0')
@click.option('--search', default='', help='Match product title, variant title or SKU')
@with_appcontext
def list_inventory_cli(out_of_stock, search):
    items = inventory_service.list_inventory(db.session, out_of_stock_only=out_of_stock, search=search)
    if not items:
        click.echo("No inventory.")
        return

    for i in items:
        title = f"{i.product_title} / {i.variant_title}" if i.variant_title else i.product_title
        flag = "OUT" if i.is_out_of_stock else "   "
        click.echo(f"{flag} {i.inventory_quantity:>6}  {i.sku:<16} {title}  [{i.variant_id}]")


@inventory_group.command('stats')
@with_appcontext
def inventory_stats_cli():
    s = inventory_service.inventory_stats(db.session)
    click.echo(
        f"variants={s.total_variants} in_stock={s.in_stock_count} "
        f"out_of_stock={s.out_of_stock_count} units={s.total_inventory}"
    )


@inventory_group.command('clear')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def clear_inventory_cli(yes):
    if not yes:
        click.confirm("WARN This deletes all inventory records. Continue?", abort=True)
    count = inventory_service.clear_inventory(db.session)
    click.echo(f"DELETE  Removed {count} inventory record(s).")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(sync_group)
    app.cli.add_command(tasks_group)
    app.cli.add_command(orders_group)
    app.cli.add_command(inventory_group)
