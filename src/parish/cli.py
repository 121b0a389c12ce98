"""Parish CLI - daily readings, session and journal."""

import asyncio
import json
import logging
import sys
from dataclasses import asdict

import click
from apscheduler.schedulers.blocking import BlockingScheduler

from .adapters.reminder_scheduler import ReminderScheduler
from .app import AppContext, create_app
from .config import Tokens
from .core.journal import JournalEntry
from .core.session import ContentBundle, ErrorKind, SessionState, SessionStatus, StreakSummary
from .errors import ParishError
from .session import completed_on
from .settings import NotificationBridge

ERROR_HINTS = {
    ErrorKind.NETWORK: "Could not reach the server. Try again with 'parish today'.",
    ErrorKind.SERVER: "The server had a problem. Try again with 'parish today'.",
    ErrorKind.AUTH_EXPIRED: "Your sign-in expired. Run 'parish auth <token>'.",
    ErrorKind.NOT_AVAILABLE: "Today's readings are not available yet. Check back later.",
}


def _get_app(ctx: click.Context) -> AppContext:
    """Build the app context once per invocation; flush stores on exit."""
    root = ctx.find_root()
    root.ensure_object(dict)
    if "app" not in root.obj:
        app = create_app()
        root.obj["app"] = app
        root.call_on_close(app.flush)
    return root.obj["app"]


def _fail(message: str) -> None:
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)


def _content_dict(content: ContentBundle) -> dict:
    return {
        "date": content.day.isoformat(),
        "first_reading": {"reference": content.first_reading.reference, "text": content.first_reading.text},
        "gospel": {"reference": content.gospel.reference, "text": content.gospel.text},
        "commentary": content.commentary,
        "audio_url": content.audio_url,
    }


def _show_content(content: ContentBundle) -> None:
    click.echo(click.style(content.day.strftime("%A, %B %d"), bold=True))
    click.echo("")
    click.echo(click.style(content.first_reading.display_reference, bold=True))
    click.echo(content.first_reading.text)
    click.echo("")
    click.echo(click.style(content.gospel.display_reference, bold=True))
    click.echo(content.gospel.text)
    if content.commentary:
        click.echo("")
        click.echo(content.commentary)
    if content.audio_url:
        click.echo("")
        click.echo(f"Audio: {content.audio_url}")


def _show_state(state: SessionState, as_json: bool) -> None:
    if as_json:
        click.echo(
            json.dumps(
                {
                    "date": state.day.isoformat() if state.day else None,
                    "status": state.status.value,
                    "session_id": state.session_id,
                    "error": state.error.value if state.error else None,
                    "unconfirmed": state.unconfirmed,
                    "content": _content_dict(state.content) if state.content else None,
                },
                indent=2,
            )
        )
        return

    if state.status is SessionStatus.ERROR:
        hint = ERROR_HINTS.get(state.error, "Something went wrong.")
        click.echo(f"Error: {hint}", err=True)
        if state.error_detail:
            click.echo(f"  ({state.error_detail})", err=True)
        return

    if state.content:
        _show_content(state.content)
        click.echo("")
    if state.status is SessionStatus.COMPLETED:
        marker = " (not yet confirmed)" if state.unconfirmed else ""
        click.echo(f"✓ Completed today{marker}")
    else:
        click.echo(f"Status: {state.status.value}")


def _format_streak(streak: StreakSummary) -> str:
    return f"Streak: {streak.current_streak} (longest {streak.longest_streak}, total {streak.total_sessions})"


def _format_entry(entry: JournalEntry) -> str:
    mark = "✓" if entry.is_answered else "•"
    created = entry.created_at.strftime("%Y-%m-%d")
    return f"{mark} {entry.text}  [{entry.id[:8]}, {created}]"


def _resolve_entry_id(app: AppContext, prefix: str) -> str:
    """Accept a full id or a unique prefix."""
    matches = [e.id for e in app.journal.entries if e.id.startswith(prefix)]
    if len(matches) != 1:
        _fail(f"No unique journal entry matches {prefix!r}")
    return matches[0]


def _announce_milestone(app: AppContext) -> None:
    milestone = app.journal.unseen_milestone()
    if milestone is None:
        return
    click.echo(click.style(f"🎉 Milestone reached: {milestone.label}", bold=True))
    app.journal.mark_milestone_seen(milestone.kind)


@click.group()
@click.version_option(package_name="parish")
@click.option("-v", "--verbose", is_flag=True, help="Debug logging")
def main(verbose: bool):
    """Parish - daily readings and prayer journal."""
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=logging.DEBUG if verbose else logging.WARNING,
    )


@main.command()
@click.argument("token")
def auth(token: str):
    """Save the API access token."""
    Tokens(access_token=token.strip()).save()
    click.echo("Token saved.")


@main.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def today(ctx, as_json: bool):
    """Show today's readings and session status."""
    app = _get_app(ctx)
    state = asyncio.run(app.session.load())
    if not as_json and state.status is not SessionStatus.ERROR and app.notifications.should_show_orientation():
        click.echo("Today's prayer takes about 5 minutes. Listen, or read along below.\n")
    _show_state(state, as_json)
    if state.status is SessionStatus.ERROR:
        sys.exit(1)


@main.command()
@click.pass_context
def complete(ctx):
    """Mark today's readings as read."""
    app = _get_app(ctx)

    async def run() -> SessionState:
        state = await app.session.load()
        if state.status in (SessionStatus.READY, SessionStatus.PLAYING):
            state = await app.session.complete()
        return state

    state = asyncio.run(run())
    if state.status is SessionStatus.ERROR:
        _show_state(state, as_json=False)
        sys.exit(1)

    if state.streak:
        click.echo(f"✓ Completed. {_format_streak(state.streak)}")
    elif state.unconfirmed:
        click.echo("✓ Completed (will confirm with the server later).")
    else:
        click.echo("✓ Already completed today.")

    if app.notifications.should_show_reminder_prompt():
        click.echo("Tip: get a daily reminder with 'parish reminders on'.")
        app.notifications.dismiss_reminder_prompt()


@main.command()
@click.pass_context
def foreground(ctx):
    """Check for day rollover and confirm pending completions."""
    app = _get_app(ctx)
    state = asyncio.run(app.session.on_foreground())
    _show_state(state, as_json=False)


@main.command("day")
@click.argument("target", type=click.DateTime(formats=["%Y-%m-%d"]))
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def day_cmd(ctx, target, as_json: bool):
    """Show readings for a past day (read-only)."""
    app = _get_app(ctx)
    try:
        content = asyncio.run(app.session.view_day(target.date()))
    except ParishError as e:
        _fail(str(e))

    if as_json:
        click.echo(json.dumps(_content_dict(content), indent=2))
    else:
        _show_content(content)


@main.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def history(ctx, as_json: bool):
    """List completed sessions."""
    app = _get_app(ctx)
    try:
        items = asyncio.run(app.session.history())
    except ParishError as e:
        _fail(str(e))

    if as_json:
        click.echo(
            json.dumps(
                [
                    {
                        "session_id": i.session_id,
                        "date": i.day.isoformat(),
                        "first_reading": i.first_reading_reference,
                        "gospel": i.gospel_reference,
                        "completed_at": i.completed_at.isoformat() if i.completed_at else None,
                    }
                    for i in items
                ],
                indent=2,
            )
        )
        return

    if not items:
        click.echo("No completed sessions yet.")
        return
    for item in items:
        click.echo(f"{item.day.isoformat()}  {item.first_reading_reference} · {item.gospel_reference}")


# ============== Account ==============


@main.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def profile(ctx, as_json: bool):
    """Show the signed-in account and streak."""
    app = _get_app(ctx)
    try:
        user = asyncio.run(app.account.refresh())
    except ParishError as e:
        _fail(str(e))

    if as_json:
        click.echo(
            json.dumps(
                {
                    "id": user.id,
                    "email": user.email,
                    "created_at": user.created_at.isoformat() if user.created_at else None,
                    "streak": asdict(user.streak) if user.streak else None,
                },
                indent=2,
            )
        )
        return

    click.echo(click.style(user.email or user.id, bold=True))
    if user.created_at:
        click.echo(f"Member since {user.created_at.strftime('%B %Y')}")
    if user.streak:
        click.echo(_format_streak(user.streak))


@main.command()
@click.pass_context
def signout(ctx):
    """Forget the saved token and the signed-in user."""
    app = _get_app(ctx)
    Tokens.clear()
    app.account.clear_user()
    click.echo("Signed out.")


@main.command("delete-account")
@click.confirmation_option(prompt="Permanently delete your account and all its data?")
@click.pass_context
def delete_account(ctx):
    """Delete the account on the server and sign out."""
    app = _get_app(ctx)
    try:
        deleted = asyncio.run(app.account.delete_account())
    except ParishError as e:
        _fail(str(e))
    if not deleted:
        _fail("The server did not confirm the deletion. Nothing was removed locally.")
    Tokens.clear()
    click.echo("Account deleted.")


# ============== Candles ==============


@main.group()
def candle():
    """Light a candle for someone."""
    pass


@candle.command("light")
@click.pass_context
def candle_light(ctx):
    """Light a candle."""
    count = _get_app(ctx).candles.light()
    noun = "candle" if count == 1 else "candles"
    click.echo(f"🕯 Lit. {count} {noun} today.")


@candle.command("count")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def candle_count(ctx, as_json: bool):
    """Show how many candles were lit today."""
    candles = _get_app(ctx).candles
    if as_json:
        click.echo(json.dumps({"today": candles.count(), "lit_today": candles.has_lit_today()}))
        return
    if not candles.has_lit_today():
        click.echo("No candles lit today.")
        return
    click.echo(f"{candles.count()} lit today.")


# ============== Journal ==============


@main.group()
def journal():
    """Prayer journal."""
    pass


@journal.command("add")
@click.argument("text", nargs=-1, required=True)
@click.option("--link", "linked_content_id", help="Link to a day's readings (YYYY-MM-DD)")
@click.pass_context
def journal_add(ctx, text: tuple[str, ...], linked_content_id: str | None):
    """Add a journal entry."""
    content = " ".join(text).strip()
    if not content:
        _fail("Journal entry cannot be empty")
    app = _get_app(ctx)
    entry = app.journal.add_entry(content, linked_content_id)
    click.echo(f"Added [{entry.id[:8]}]")
    _announce_milestone(app)


@journal.command("list")
@click.option(
    "--filter",
    "which",
    type=click.Choice(["all", "active", "answered", "today"]),
    default="all",
    show_default=True,
)
@click.option("--day", "on_day", type=click.DateTime(formats=["%Y-%m-%d"]), help="Entries created on a day")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def journal_list(ctx, which: str, on_day, as_json: bool):
    """List journal entries, newest first."""
    app = _get_app(ctx)
    store = app.journal
    if on_day is not None:
        entries = store.entries_for_day(on_day.date())
    else:
        entries = {
            "all": store.entries,
            "active": store.active_entries(),
            "answered": store.answered_entries(),
            "today": store.entries_for_today(),
        }[which]

    if as_json:
        click.echo(json.dumps([e.to_dict() for e in entries], indent=2))
        return

    if not entries:
        click.echo("No journal entries.")
        return
    for entry in entries:
        click.echo(_format_entry(entry))


@journal.command("answer")
@click.argument("entry_id")
@click.option("--undo", is_flag=True, help="Mark as not answered")
@click.pass_context
def journal_answer(ctx, entry_id: str, undo: bool):
    """Mark an entry answered."""
    app = _get_app(ctx)
    full_id = _resolve_entry_id(app, entry_id)
    app.journal.set_answered(full_id, not undo)
    click.echo("Marked as not answered." if undo else "Marked as answered.")


@journal.command("delete")
@click.argument("entry_id")
@click.pass_context
def journal_delete(ctx, entry_id: str):
    """Delete an entry."""
    app = _get_app(ctx)
    full_id = _resolve_entry_id(app, entry_id)
    app.journal.delete_entry(full_id)
    click.echo("Deleted.")


@journal.command("milestone")
@click.pass_context
def journal_milestone(ctx):
    """Show (and mark seen) the next milestone reached."""
    app = _get_app(ctx)
    if app.journal.unseen_milestone() is None:
        days = app.journal.days_since_first_entry()
        click.echo(f"No new milestones. {days} day(s) since your first prayer.")
        return
    _announce_milestone(app)


# ============== Reminders ==============


@main.group()
def reminders():
    """Daily reminder settings."""
    pass


@reminders.command("on")
@click.pass_context
def reminders_on(ctx):
    """Enable the daily reminder."""
    app = _get_app(ctx)
    if not app.notifications.enable_reminders():
        _fail("Reminders need TELEGRAM_BOT_TOKEN and TELEGRAM_ALLOWED_USERS in parish.conf")
    s = app.settings.settings
    click.echo(f"Daily reminder on at {s.reminder_hour:02d}:{s.reminder_minute:02d}.")


@reminders.command("off")
@click.pass_context
def reminders_off(ctx):
    """Disable the daily reminder."""
    app = _get_app(ctx)
    app.notifications.disable_reminders()
    click.echo("Daily reminder off.")


@reminders.command("time")
@click.argument("time_str", metavar="HH:MM")
@click.pass_context
def reminders_time(ctx, time_str: str):
    """Set the reminder time."""
    app = _get_app(ctx)
    try:
        hour, minute = map(int, time_str.split(":"))
        app.notifications.update_reminder_time(hour, minute)
    except ValueError:
        _fail(f"Invalid time {time_str!r}, expected HH:MM")
    click.echo(f"Reminder time set to {hour:02d}:{minute:02d}.")


@reminders.command("status")
@click.pass_context
def reminders_status(ctx):
    """Show reminder settings."""
    s = _get_app(ctx).settings.settings
    state = "on" if s.daily_reminder_enabled else "off"
    click.echo(f"Daily reminder: {state} ({s.reminder_hour:02d}:{s.reminder_minute:02d})")


@reminders.command("serve")
@click.pass_context
def reminders_serve(ctx):
    """Run the reminder scheduler in the foreground."""
    app = _get_app(ctx)
    config = app.config
    kwargs = {"timezone": config.timezone} if config.timezone else {}
    storage = app.storage
    scheduler = ReminderScheduler(
        config,
        scheduler=BlockingScheduler(**kwargs),
        should_remind=lambda: not completed_on(storage, app.clock.today()),
    )
    if NotificationBridge(app.settings, scheduler).sync() is None:
        _fail("Reminders are off. Enable them with 'parish reminders on'.")

    click.echo("Reminder scheduler running. Ctrl+C to stop.")
    try:
        scheduler.start()
    except (KeyboardInterrupt, SystemExit):
        click.echo("Stopped.")


if __name__ == "__main__":
    main()
