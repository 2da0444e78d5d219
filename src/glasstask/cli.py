"""glasstask CLI - task list manager."""

import asyncio
import json
import logging
import sys
from datetime import datetime
from pathlib import Path

import click

from .adapters.firebase_auth import AuthenticationError, FirebaseSession
from .adapters.firestore import TransportError
from .config import load_config
from .core.display import format_counts, format_task_line
from .core.mutations import MutationResult
from .core.query import DUE_FILTERS, PRIORITY_FILTERS, SORT_FIELDS, STATUS_FILTERS, TaskFilter, TaskSort, find_task
from .core.tasks import PRIORITIES, Task, parse_tags
from .core.transfer import ImportFormatError, to_export
from .workflows import LiveSync, TaskList, TaskView, build_task_list


@click.group()
@click.version_option()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def main(verbose: bool):
    """glasstask - task list manager."""
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=logging.DEBUG if verbose else logging.WARNING,
    )


# ============== Helpers ==============


def _load() -> TaskList:
    task_list = build_task_list(load_config())
    task_list.load()
    return task_list


def _resolve(task_list: TaskList, ref: str) -> Task:
    task = find_task(task_list.tasks, ref)
    if task is None:
        click.echo(f"No task matching '{ref}'.", err=True)
        sys.exit(1)
    return task


def _commit(task_list: TaskList, result: MutationResult) -> None:
    """Persist a mutation result, then push when signed in."""
    if result.error:
        click.echo(f"Error: {result.error}", err=True)
        sys.exit(1)
    if not result.changed:
        return

    task_list.save()
    if not load_config().auto_sync:
        return
    try:
        task_list.push()
    except TransportError as e:
        click.echo(f"Warning: saved locally, sync failed: {e}", err=True)


def _view_options(func):
    """Shared filter/sort/search options."""
    func = click.option("--status", type=click.Choice(STATUS_FILTERS), default="all")(func)
    func = click.option("--priority", type=click.Choice(PRIORITY_FILTERS), default="all")(func)
    func = click.option("--due", type=click.Choice(DUE_FILTERS), default="all")(func)
    func = click.option("--search", "-s", default="", help="Search title, description and tags")(func)
    func = click.option("--sort", "sort_field", type=click.Choice(SORT_FIELDS), default=None)(func)
    func = click.option("--desc", is_flag=True, help="Sort descending")(func)
    return func


def _build_view(status, priority, due, sort_field, desc) -> tuple[TaskFilter, TaskSort]:
    config = load_config()
    direction = "desc" if desc else config.default_direction
    try:
        return (
            TaskFilter(status=status, priority=priority, due=due),
            TaskSort(field=sort_field or config.default_sort, direction=direction),
        )
    except ValueError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(1)


def _show_view(view: TaskView) -> None:
    if not view.tasks:
        click.echo("No tasks.")
    for task in view.tasks:
        click.echo(format_task_line(task))
    click.echo()
    click.echo(format_counts(view.counts))


# ============== Listing ==============


@main.command("list")
@_view_options
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def list_tasks(status, priority, due, search, sort_field, desc, as_json: bool):
    """List visible tasks."""
    filters, sort = _build_view(status, priority, due, sort_field, desc)
    view = _load().view(filters, sort, search)

    if as_json:
        click.echo(
            json.dumps(
                {
                    "tasks": [t.to_dict() for t in view.tasks],
                    "counts": {
                        "total": view.counts.total,
                        "open": view.counts.open,
                        "done": view.counts.done,
                    },
                },
                indent=2,
            )
        )
        return

    _show_view(view)


@main.command()
@click.argument("ref")
def show(ref: str):
    """Show one task in full."""
    task = _resolve(_load(), ref)
    click.echo(json.dumps(task.to_dict(), indent=2))


# ============== Editing ==============


@main.command()
@click.argument("title")
@click.option("--description", "-d", default="", help="Free-text description")
@click.option("--due", type=click.DateTime(formats=["%Y-%m-%d"]), default=None, help="Due date (YYYY-MM-DD)")
@click.option("--priority", "-p", type=click.Choice(PRIORITIES), default="medium")
@click.option("--tags", "-t", default="", help="Comma-separated tags (max 8)")
def add(title: str, description: str, due: datetime | None, priority: str, tags: str):
    """Add a task."""
    task_list = _load()
    result = task_list.add(
        {
            "title": title,
            "description": description,
            "due_date": due.date().isoformat() if due else None,
            "priority": priority,
            "tags": parse_tags(tags),
        }
    )
    _commit(task_list, result)
    click.echo(f"Added {result.task.id[:8]}  {result.task.title}")


@main.command()
@click.argument("ref")
@click.option("--title", default=None)
@click.option("--description", "-d", default=None)
@click.option("--due", type=click.DateTime(formats=["%Y-%m-%d"]), default=None, help="Due date (YYYY-MM-DD)")
@click.option("--no-due", is_flag=True, help="Remove the due date")
@click.option("--priority", "-p", type=click.Choice(PRIORITIES), default=None)
@click.option("--tags", "-t", default=None, help="Comma-separated tags, replacing current tags")
def edit(ref, title, description, due, no_due, priority, tags):
    """Edit a task."""
    task_list = _load()
    task = _resolve(task_list, ref)

    changes = {}
    if title is not None:
        changes["title"] = title
    if description is not None:
        changes["description"] = description
    if no_due:
        changes["due_date"] = None
    elif due is not None:
        changes["due_date"] = due.date().isoformat()
    if priority is not None:
        changes["priority"] = priority
    if tags is not None:
        changes["tags"] = parse_tags(tags)

    if not changes:
        click.echo("Nothing to change.")
        return

    _commit(task_list, task_list.edit(task.id, changes))
    click.echo(f"Updated {task.id[:8]}")


@main.command()
@click.argument("ref")
def done(ref: str):
    """Mark a task done."""
    task_list = _load()
    task = _resolve(task_list, ref)
    _commit(task_list, task_list.toggle(task.id, True))
    click.echo(f"Done: {task.title}")


@main.command()
@click.argument("ref")
def reopen(ref: str):
    """Mark a task open again."""
    task_list = _load()
    task = _resolve(task_list, ref)
    _commit(task_list, task_list.toggle(task.id, False))
    click.echo(f"Reopened: {task.title}")


@main.command()
@click.argument("ref")
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
def delete(ref: str, yes: bool):
    """Delete a task."""
    task_list = _load()
    task = _resolve(task_list, ref)
    if not yes and not click.confirm(f'Delete task: "{task.title}"?'):
        return
    _commit(task_list, task_list.delete(task.id))
    click.echo(f"Deleted: {task.title}")


@main.command("clear-completed")
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
def clear_completed(yes: bool):
    """Delete all completed tasks."""
    task_list = _load()
    if not any(t.is_done for t in task_list.tasks):
        click.echo("No completed tasks.")
        return
    if not yes and not click.confirm("Clear all completed tasks?"):
        return
    before = len(task_list.tasks)
    _commit(task_list, task_list.clear_completed())
    click.echo(f"Cleared {before - len(task_list.tasks)} completed tasks.")


# ============== Import / Export ==============


@main.command("export")
@click.argument("path", type=click.Path(dir_okay=False, path_type=Path), required=False)
def export_tasks(path: Path | None):
    """Export all tasks to a JSON file."""
    task_list = _load()
    if path is None:
        path = Path(f"tasks-{datetime.now().strftime('%Y-%m-%d-%H-%M-%S')}.json")
    path.write_text(json.dumps(to_export(task_list.tasks), indent=2))
    click.echo(f"Exported {len(task_list.tasks)} tasks to {path}")


@main.command("import")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
def import_file(path: Path, yes: bool):
    """Import tasks from an exported JSON file, ahead of the current list."""
    task_list = _load()
    before = list(task_list.tasks)
    try:
        result = task_list.import_text(path.read_text())
    except ImportFormatError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    count = len(result.tasks) - len(before) if result.changed else 0
    if count == 0:
        click.echo("No tasks to import.")
        return
    if not yes and not click.confirm(
        f"Import {count} tasks? This will append to your current list."
    ):
        task_list.tasks = before
        return
    _commit(task_list, result)
    click.echo(f"Imported {count} tasks.")


# ============== Sync ==============


@main.command()
def sync():
    """Merge remote changes, then push the merged list."""
    task_list = _load()
    if task_list.user_key is None:
        click.echo("Not signed in. Run 'glasstask login' first.", err=True)
        sys.exit(1)
    try:
        changed = task_list.sync()
    except TransportError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    click.echo("Synced." if not changed else f"Synced, merged remote changes ({len(task_list.tasks)} tasks).")


@main.command()
@_view_options
def watch(status, priority, due, search, sort_field, desc):
    """Follow the task list live, merging remote changes as they arrive."""
    config = load_config()
    filters, sort = _build_view(status, priority, due, sort_field, desc)
    task_list = _load()

    def render(view: TaskView) -> None:
        click.clear()
        _show_view(view)

    async def run() -> None:
        live = LiveSync(
            task_list,
            render,
            filters,
            sort,
            save_delay=config.save_debounce_ms / 1000,
            search_delay=config.search_debounce_ms / 1000,
        )
        live.search = search
        live.start()
        if task_list.user_key is None:
            click.echo("Not signed in; showing local tasks only.")
        try:
            await asyncio.Event().wait()
        finally:
            await live.stop()

    click.echo("Press Ctrl+C to stop")
    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        click.echo("\nStopped.")


# ============== Account ==============


def _session() -> FirebaseSession:
    config = load_config()
    if not config.sync_enabled:
        click.echo(
            "Error: Firebase not configured. Add FIREBASE_API_KEY and FIREBASE_PROJECT_ID to glasstask.conf",
            err=True,
        )
        sys.exit(1)
    return FirebaseSession(config)


@main.command()
@click.option("--email", prompt=True)
@click.option("--password", prompt=True, hide_input=True)
def login(email: str, password: str):
    """Sign in with email and password."""
    try:
        credentials = _session().sign_in(email.strip(), password)
    except AuthenticationError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    click.echo(f"Signed in as {credentials.email}")


@main.command()
@click.option("--email", prompt=True)
@click.option("--password", prompt=True, hide_input=True, confirmation_prompt=True)
def signup(email: str, password: str):
    """Create an account."""
    try:
        credentials = _session().sign_up(email.strip(), password)
    except AuthenticationError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    click.echo(f"Account created. Signed in as {credentials.email}")


@main.command("reset-password")
@click.option("--email", prompt=True)
def reset_password(email: str):
    """Send a password reset email."""
    try:
        _session().send_password_reset(email.strip())
    except AuthenticationError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    click.echo("Password reset email sent")


@main.command()
def logout():
    """Sign out."""
    _session().sign_out()
    click.echo("Signed out.")


@main.command()
def whoami():
    """Show the signed-in account."""
    session = _session()
    if session.current_user_key() is None:
        click.echo("Not signed in.")
        return
    click.echo(session.user_label())


if __name__ == "__main__":
    main()
