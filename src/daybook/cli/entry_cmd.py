"""daybook show / todo / expense / note / delete: read and edit a day's entry."""

from __future__ import annotations

import html
import uuid

import click

from daybook.cli.common import resolve_date, run_with_session
from daybook.core.utils.text import strip_markup
from daybook.journal.models import Entry, Expense, Todo


def _new_id() -> str:
    return uuid.uuid4().hex[:12]


def format_entry(entry: Entry) -> str:
    """Human-readable rendering of an entry for the terminal."""
    header = entry.date
    if entry.last_saved_at:
        header += f"  (saved {entry.last_saved_at})"
    lines = [header]
    if entry.is_empty:
        lines.append("  nothing recorded")
        return "\n".join(lines)

    if entry.my_day_summary:
        lines.append(f"Summary: {entry.my_day_summary}")
    if entry.todos:
        lines.append(f"Todos ({entry.completed_count}/{len(entry.todos)} done):")
        lines.extend(f"  [{'x' if t.completed else ' '}] {t.text}  #{t.id}" for t in entry.todos)
    if entry.expenses:
        lines.append("Expenses:")
        lines.extend(f"  {e.item:<24} {e.amount:>10.2f}  #{e.id}" for e in entry.expenses)
        lines.append(f"  {'total':<24} {entry.expense_total:>10.2f}")
    notes = strip_markup(entry.insight)
    if notes:
        lines.append("Notes:")
        lines.extend(f"  {line}" for line in notes.splitlines())
    if entry.media:
        lines.append("Media:")
        lines.extend(f"  {m.kind.value:<6} {m.name or '-'}  {m.url}" for m in entry.media)
    return "\n".join(lines)


@click.command()
@click.argument("date_key", required=False)
@click.pass_obj
def show(config, date_key: str | None) -> None:
    """Show the entry for DATE_KEY (default: today)."""
    key = resolve_date(date_key)

    async def action(session):
        session.navigate_to_date(key)
        return session.current_entry

    click.echo(format_entry(run_with_session(config, action)))


@click.group()
def todo() -> None:
    """Manage a day's todo list."""


@todo.command("add")
@click.argument("text")
@click.option("--date", "date_key", default=None, help="Day to edit (default: today).")
@click.pass_obj
def todo_add(config, text: str, date_key: str | None) -> None:
    """Add a todo item."""
    key = resolve_date(date_key)

    async def action(session):
        entry = session.store.get(key)
        item = Todo(id=_new_id(), text=text)
        session.update_entry(key, {"todos": [*entry.todos, item]})
        return item

    item = run_with_session(config, action)
    click.echo(f"Added #{item.id} to {key}")


@todo.command("done")
@click.argument("todo_id")
@click.option("--date", "date_key", default=None, help="Day to edit (default: today).")
@click.option("--undo", is_flag=True, help="Mark the item as not done.")
@click.pass_obj
def todo_done(config, todo_id: str, date_key: str | None, undo: bool) -> None:
    """Mark todo TODO_ID as done."""
    key = resolve_date(date_key)

    async def action(session):
        entry = session.store.get(key)
        if not any(t.id == todo_id for t in entry.todos):
            return False
        todos = [Todo(t.id, t.text, not undo) if t.id == todo_id else t for t in entry.todos]
        session.update_entry(key, {"todos": todos})
        return True

    if not run_with_session(config, action):
        raise click.ClickException(f"No todo #{todo_id} on {key}")
    click.echo(f"Updated #{todo_id}")


@todo.command("rm")
@click.argument("todo_id")
@click.option("--date", "date_key", default=None, help="Day to edit (default: today).")
@click.pass_obj
def todo_rm(config, todo_id: str, date_key: str | None) -> None:
    """Remove todo TODO_ID."""
    key = resolve_date(date_key)

    async def action(session):
        entry = session.store.get(key)
        todos = [t for t in entry.todos if t.id != todo_id]
        if len(todos) == len(entry.todos):
            return False
        session.update_entry(key, {"todos": todos})
        return True

    if not run_with_session(config, action):
        raise click.ClickException(f"No todo #{todo_id} on {key}")
    click.echo(f"Removed #{todo_id}")


@click.group()
def expense() -> None:
    """Manage a day's expenses."""


@expense.command("add")
@click.argument("item")
@click.argument("amount")
@click.option("--date", "date_key", default=None, help="Day to edit (default: today).")
@click.pass_obj
def expense_add(config, item: str, amount: str, date_key: str | None) -> None:
    """Record an expense of AMOUNT for ITEM."""
    key = resolve_date(date_key)

    async def action(session):
        entry = session.store.get(key)
        record = Expense(id=_new_id(), item=item, amount=amount)
        return record, session.update_entry(key, {"expenses": [*entry.expenses, record]})

    record, entry = run_with_session(config, action)
    click.echo(f"Added #{record.id} to {key}")
    click.echo(f"Total for {key}: {entry.expense_total:.2f}")


@expense.command("rm")
@click.argument("expense_id")
@click.option("--date", "date_key", default=None, help="Day to edit (default: today).")
@click.pass_obj
def expense_rm(config, expense_id: str, date_key: str | None) -> None:
    """Remove expense EXPENSE_ID."""
    key = resolve_date(date_key)

    async def action(session):
        entry = session.store.get(key)
        expenses = [e for e in entry.expenses if e.id != expense_id]
        if len(expenses) == len(entry.expenses):
            return None
        return session.update_entry(key, {"expenses": expenses})

    entry = run_with_session(config, action)
    if entry is None:
        raise click.ClickException(f"No expense #{expense_id} on {key}")
    click.echo(f"Removed #{expense_id}, total for {key}: {entry.expense_total:.2f}")


@click.command()
@click.argument("text")
@click.option("--date", "date_key", default=None, help="Day to edit (default: today).")
@click.option("--append/--replace", default=True, help="Append a paragraph or replace the notes.")
@click.pass_obj
def note(config, text: str, date_key: str | None, append: bool) -> None:
    """Write TEXT into the day's notes."""
    key = resolve_date(date_key)

    async def action(session):
        current = session.store.get(key).insight if append else ""
        return session.update_entry(key, {"insight": f"{current}<p>{html.escape(text)}</p>"})

    run_with_session(config, action)
    click.echo(f"Saved notes for {key}")


@click.command()
@click.argument("date_key")
@click.confirmation_option(prompt="Delete this entry?")
@click.pass_obj
def delete(config, date_key: str) -> None:
    """Delete the entry for DATE_KEY."""
    key = resolve_date(date_key)

    async def action(session):
        return await session.delete_entry(key)

    if run_with_session(config, action):
        click.echo(f"Deleted {key}")
    else:
        click.echo(f"No entry for {key}")
