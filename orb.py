#!/usr/bin/env python3
"""Orbit CLI — keep a handful of things in view, let the rest drift.

Commands:
    add       Put a new item into orbit
    list      Show the visible set (or everything with --all)
    open      Record that you engaged with an item
    seen      Record that you noticed an item
    dismiss   Record that you waved an item away
    quiet     Suppress an item for a few hours
    pin       Keep an item close (optionally for a limited time)
    unpin     Release a pin
    remove    Delete an item for good
    explain   Show the signals behind an item's score
    place     Set where you are (home, work, ...)
    config    Show or change a setting
    cycle     Close a ranking cycle, letting ignored items fade
    status    Show collection and settings health
"""

import json
from datetime import datetime
from pathlib import Path

import click

from orbit.config import ConfigError, get_orbit_home, get_settings_path, load_config, update_config
from orbit.context import get_current_context, normalize_place
from orbit.lifecycle import derive_state
from orbit.models import sanitize_title
from orbit.scoring import compute_relevance
from orbit.storage import ItemDB
from orbit import store


@click.group()
@click.option("--home", type=click.Path(file_okay=False), default=None,
              help="Orbit data directory (default: $ORBIT_HOME or ~/.orbit)")
@click.option("--db", default=None, help="Path to orbit.db")
@click.pass_context
def cli(ctx, home, db):
    """Orbit — contextual attention ranking."""
    ctx.ensure_object(dict)
    home = Path(home).expanduser() if home else get_orbit_home()
    settings_path = get_settings_path(home)
    try:
        config = load_config(settings_path)
    except ConfigError as e:
        raise click.ClickException(f"Bad settings in {settings_path}: {e}")
    ctx.obj["home"] = home
    ctx.obj["settings_path"] = settings_path
    ctx.obj["config"] = config
    ctx.obj["db_path"] = db or str(config.resolve_db_path(home))


def _session(ctx):
    """Open the DB and rank the collection at the current context."""
    config = ctx.obj["config"]
    context = get_current_context(config)
    db = ItemDB(ctx.obj["db_path"])
    state = store.initialize(db, context, config, cycle_started_at=config.last_cycle_at)
    return db, state, context, config


def _echo_item(item, context, rank=None):
    state = derive_state(item, context)
    prefix = f"{rank:>2}. " if rank is not None else "    "
    click.echo(f"{prefix}[{item.computed.score:.2f}] {item.id[:8]}  {item.title}  ({state.value})")
    if item.computed.reasons:
        click.echo("        " + ", ".join(r.describe() for r in item.computed.reasons))


def _run(ctx, operation, *args, **kwargs):
    """Apply a store operation to one item and show the new visible set."""
    db, state, context, config = _session(ctx)
    try:
        state = operation(state, db, *args, context=context, config=config, **kwargs)
    except (store.ItemNotFoundError, ValueError) as e:
        raise click.ClickException(str(e))
    finally:
        db.close()
    return state


def _show_visible(state):
    click.echo("\nIn orbit:")
    if not state.visible:
        click.echo("  (nothing yet, try 'orb add')")
    for i, item in enumerate(state.visible, 1):
        _echo_item(item, state.context, i)


@cli.command()
@click.argument("title")
@click.option("--detail", default="", help="Free-text notes")
@click.option("--url", default="", help="Link to open with the item")
@click.pass_context
def add(ctx, title, detail, url):
    """Put a new item into orbit."""
    state = _run(ctx, store.add_item, title, detail=detail, url=url)
    click.echo(f"Added: {sanitize_title(title)}")
    _show_visible(state)


@cli.command(name="list")
@click.option("--all", "show_all", is_flag=True, help="Show every item, not just the visible set")
@click.pass_context
def list_items(ctx, show_all):
    """Show the visible set."""
    db, state, context, config = _session(ctx)
    db.close()
    if not show_all:
        _show_visible(state)
        return
    click.echo(f"=== {len(state.items)} item(s), {len(state.visible)} visible ===")
    for i, item in enumerate(state.items, 1):
        _echo_item(item, context, i)


@cli.command(name="open")
@click.argument("item_id")
@click.pass_context
def open_item(ctx, item_id):
    """Record that you engaged with ITEM_ID."""
    _show_visible(_run(ctx, store.mark_opened, item_id))


@cli.command()
@click.argument("item_id")
@click.pass_context
def seen(ctx, item_id):
    """Record that you noticed ITEM_ID."""
    _show_visible(_run(ctx, store.mark_seen, item_id))


@cli.command()
@click.argument("item_id")
@click.pass_context
def dismiss(ctx, item_id):
    """Record that you waved ITEM_ID away."""
    _show_visible(_run(ctx, store.dismiss, item_id))


@cli.command()
@click.argument("item_id")
@click.option("--hours", type=float, default=None, help="Quiet period (default from settings)")
@click.pass_context
def quiet(ctx, item_id, hours):
    """Suppress ITEM_ID for a while."""
    state = _run(ctx, store.quiet, item_id, hours=hours)
    click.echo(f"Quieted {item_id}.")
    _show_visible(state)


@cli.command()
@click.argument("item_id")
@click.option("--hours", type=float, default=None, help="Pin only for this many hours")
@click.pass_context
def pin(ctx, item_id, hours):
    """Keep ITEM_ID close."""
    state = _run(ctx, store.pin, item_id, hours=hours)
    click.echo(f"Pinned {item_id}" + (f" for {hours:g}h." if hours else "."))
    _show_visible(state)


@cli.command()
@click.argument("item_id")
@click.pass_context
def unpin(ctx, item_id):
    """Release the pin on ITEM_ID."""
    _show_visible(_run(ctx, store.unpin, item_id))


@cli.command()
@click.argument("item_id")
@click.pass_context
def remove(ctx, item_id):
    """Delete ITEM_ID for good."""
    state = _run(ctx, store.remove, item_id)
    gone = state.archived[-1]
    click.echo(f"Removed {gone.title} ({store.item_states(state)[gone.id].value}).")
    _show_visible(state)


@cli.command()
@click.argument("item_id")
@click.pass_context
def explain(ctx, item_id):
    """Show the signals behind ITEM_ID's score."""
    db, state, context, config = _session(ctx)
    db.close()
    try:
        item = store.find_item(state, item_id)
    except store.ItemNotFoundError as e:
        raise click.ClickException(str(e))

    relevance = compute_relevance(item, context, weights=config.weights, decay_days=config.decay_days)
    s = item.signals
    click.echo(f"=== {item.title} ===")
    click.echo(f"  Id:        {item.id}")
    click.echo(f"  State:     {derive_state(item, context).value}")
    click.echo(f"  Score:     {relevance.score:.3f}")
    click.echo(f"  Seen/opened/dismissed: {s.seen_count}/{s.opened_count}/{s.dismissed_count}")
    click.echo(f"  Ignored streak: {s.ignored_streak}")
    click.echo("\n  Signals:")
    for name, value in relevance.components.items():
        click.echo(f"    {name:10s} {value:.3f}")
    if relevance.reasons:
        click.echo("\n  Reasons:")
        for reason in relevance.reasons:
            click.echo(f"    - {reason.describe()}")


@cli.command()
@click.argument("name")
@click.pass_context
def place(ctx, name):
    """Set where you are now (e.g. home, work, unknown)."""
    try:
        update_config(ctx.obj["settings_path"], place=normalize_place(name))
    except ConfigError as e:
        raise click.ClickException(str(e))
    click.echo(f"Place set to: {normalize_place(name)}")


_SETTABLE = {
    "max_visible": int,
    "decay_days": float,
    "quiet_hours_default": float,
    "place": normalize_place,
    "device": str,
    "db_path": str,
}


@cli.command(name="config")
@click.argument("key", required=False)
@click.argument("value", required=False)
@click.pass_context
def config_cmd(ctx, key, value):
    """Show settings, one KEY, or set KEY to VALUE."""
    settings = ctx.obj["config"].to_dict()
    if key is None:
        for name, current in settings.items():
            click.echo(f"  {name:20s} {json.dumps(current)}")
        return
    if key not in settings:
        raise click.ClickException(f"Unknown setting: {key}")
    if value is None:
        click.echo(json.dumps(settings[key]))
        return
    if key not in _SETTABLE:
        raise click.ClickException(f"{key} can't be set from the command line")
    try:
        config = update_config(ctx.obj["settings_path"], **{key: _SETTABLE[key](value)})
    except (ConfigError, ValueError) as e:
        raise click.ClickException(f"Invalid value for {key}: {e}")
    click.echo(f"{key} = {json.dumps(getattr(config, key))}")


@cli.command()
@click.pass_context
def cycle(ctx):
    """Close the current ranking cycle.

    Visible items you haven't touched since the last cycle drift a little
    further out. Run this on a timer (e.g. hourly from cron).
    """
    config = ctx.obj["config"]
    if config.last_cycle_at is None:
        now = get_current_context(config).now
        update_config(ctx.obj["settings_path"], last_cycle_at=now)
        click.echo("First cycle started.")
        return

    db, state, context, config = _session(ctx)
    before = {item.id: item.signals.ignored_streak for item in state.items}
    state = store.close_cycle(state, db, context, config)
    db.close()
    update_config(ctx.obj["settings_path"], last_cycle_at=context.now)

    faded = [i for i in state.items if i.signals.ignored_streak > before.get(i.id, 0)]
    click.echo(f"Cycle closed. {len(faded)} item(s) left untouched.")
    _show_visible(state)


@cli.command()
@click.pass_context
def status(ctx):
    """Show collection and settings health."""
    db, state, context, config = _session(ctx)
    stats = db.get_stats()
    db.close()

    click.echo("=== Orbit Status ===")
    click.echo(f"  Items:         {stats['item_count']}")
    click.echo(f"  Visible:       {len(state.visible)} / {config.max_visible}")
    click.echo(f"  DB size:       {stats['db_size_mb']:.1f} MB")
    click.echo(f"  Place:         {context.place}")
    click.echo(f"  Device:        {context.device}")
    if config.last_cycle_at:
        last = datetime.fromtimestamp(config.last_cycle_at).strftime("%Y-%m-%d %H:%M")
        click.echo(f"  Last cycle:    {last}")

    counts = {}
    for label in store.item_states(state).values():
        counts[label.value] = counts.get(label.value, 0) + 1
    if counts:
        click.echo("\n  States:")
        for label, n in sorted(counts.items()):
            click.echo(f"    {label:10s} {n}")
    click.echo()


if __name__ == "__main__":
    cli()
