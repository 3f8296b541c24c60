"""notemod CLI -- operator tooling for the moderation back-office."""

import click
import yaml
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from notemod import __version__
from notemod.config import configure_logging, load_settings
from notemod.errors import NotemodError, ValidationError

console = Console()

_STATUS_STYLE = {
    "pending": "yellow",
    "approved": "green",
    "rejected": "red",
}


def _backoffice(ctx: click.Context):
    """Build the BackOffice once per invocation."""
    from notemod.service import build_backoffice

    if "backoffice" not in ctx.obj:
        ctx.obj["backoffice"] = build_backoffice(ctx.obj["settings"])
    return ctx.obj["backoffice"]


def _fail(exc: NotemodError) -> None:
    console.print(f"[red]Error:[/] {escape(exc.message)}")
    raise SystemExit(1)


def _login(ctx: click.Context, username: str):
    """Prompt for a password and open a session for *username*."""
    from notemod.auth.models import RequestContext

    password = click.prompt("Password", hide_input=True)
    try:
        session = _backoffice(ctx).login(username, password, user_agent=f"notemod-cli/{__version__}")
    except NotemodError as exc:
        _fail(exc)
    return RequestContext(token=session.token, user_agent=f"notemod-cli/{__version__}")


@click.group()
@click.version_option(version=__version__)
@click.option("--config", "config_path", default=None, help="Path to a YAML config file")
@click.pass_context
def main(ctx: click.Context, config_path: str | None):
    """notemod: moderation back-office for travel notes.

    Provision staff identities, load fixtures, and review submissions
    from the command line.
    """
    try:
        settings = load_settings(config_path=config_path)
    except NotemodError as exc:
        _fail(exc)
    configure_logging(settings)
    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings


# ── Identities ───────────────────────────────────────────────────────


@main.command(name="add-identity")
@click.argument("username")
@click.option("--role", "-r", default="moderator", type=click.Choice(["moderator", "admin"]))
@click.option("--display-name", "-n", default="", help="Name shown in the back-office")
@click.password_option()
@click.pass_context
def add_identity(ctx: click.Context, username: str, role: str, display_name: str, password: str):
    """Provision a staff identity."""
    try:
        identity = _backoffice(ctx).identities.create_identity(
            username, password, role=role, display_name=display_name
        )
    except NotemodError as exc:
        _fail(exc)
    console.print(f"[green]Created[/] {identity.username} ({identity.role.value}) id={identity.id}")


@main.command(name="identities")
@click.pass_context
def list_identities(ctx: click.Context):
    """List provisioned identities."""
    identities = _backoffice(ctx).identities.list_identities()
    if not identities:
        console.print("[yellow]No identities provisioned.[/]")
        return

    table = Table(title=f"Identities ({len(identities)})")
    table.add_column("Username", style="cyan")
    table.add_column("Display name")
    table.add_column("Role")
    table.add_column("ID", style="dim")
    for i in identities:
        table.add_row(i.username, i.display_name, i.role.value, i.id)
    console.print(table)


# ── Fixtures ─────────────────────────────────────────────────────────


def _fixture_list(data: dict, key: str) -> list[dict]:
    items = data.get(key) or []
    if not isinstance(items, list) or not all(isinstance(i, dict) for i in items):
        raise ValidationError(f"'{key}' must be a list of mappings")
    return items


def _read_fixtures(path: str, bo) -> tuple[list[dict], list]:
    """Parse and check a fixtures file without writing anything."""
    from notemod.auth.models import Role
    from notemod.submissions.models import Submission

    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as exc:
        raise ValidationError(f"Invalid fixtures file: {exc}")
    if not isinstance(data, dict):
        raise ValidationError("Fixtures file must contain a mapping")

    identities = _fixture_list(data, "identities")
    taken = {i.username.lower() for i in bo.identities.list_identities()}
    for n, item in enumerate(identities, 1):
        username = str(item.get("username") or "").strip()
        if not username or not item.get("password"):
            raise ValidationError(f"identity #{n}: username and password are required")
        if username.lower() in taken:
            raise ValidationError(f"identity #{n}: username '{username}' is already taken")
        if item.get("role", "moderator") not in [r.value for r in Role]:
            raise ValidationError(f"identity #{n}: invalid role '{item['role']}'")
        taken.add(username.lower())

    submissions = []
    for n, item in enumerate(_fixture_list(data, "submissions"), 1):
        if not item.get("title"):
            raise ValidationError(f"submission #{n}: title is required")
        try:
            submissions.append(
                Submission(
                    id=bo.repository.new_id(),
                    title=str(item["title"]),
                    content=str(item.get("content") or ""),
                    author=str(item.get("author") or ""),
                    created_at=item.get("created_at") or "",
                )
            )
        except ValidationError as exc:
            raise ValidationError(f"submission #{n}: {exc.message}")
    return identities, submissions


@main.command(name="load-fixtures")
@click.argument("fixtures_path", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def load_fixtures(ctx: click.Context, fixtures_path: str):
    """Load identities and pending submissions from a YAML file.

    The file holds two optional lists, ``identities`` (username, password,
    role, display_name) and ``submissions`` (title, content, author,
    created_at). Imported submissions always start out pending. The whole
    file is checked before anything is written.
    """
    bo = _backoffice(ctx)
    try:
        identities, submissions = _read_fixtures(fixtures_path, bo)
        for item in identities:
            bo.identities.create_identity(
                str(item["username"]),
                str(item["password"]),
                role=item.get("role", "moderator"),
                display_name=str(item.get("display_name") or ""),
            )
        for submission in submissions:
            bo.repository.add(submission)
    except NotemodError as exc:
        _fail(exc)
    console.print(
        f"[green]Loaded[/] {len(identities)} identities, {len(submissions)} submissions"
    )


# ── Review ───────────────────────────────────────────────────────────


@main.command()
@click.option("--username", "-u", required=True, help="Staff username to log in as")
@click.option("--status", "-s", default=None, type=click.Choice(["pending", "approved", "rejected"]))
@click.option("--search", "-q", default=None, help="Case-insensitive title/content search")
@click.option("--page", "-p", default=1, type=int)
@click.option("--page-size", default=None, type=int)
@click.pass_context
def submissions(ctx: click.Context, username: str, status: str | None, search: str | None,
                page: int, page_size: int | None):
    """List submissions, newest first."""
    from notemod.listing.service import ListQuery

    bo = _backoffice(ctx)
    req = _login(ctx, username)
    try:
        result = bo.list_submissions(
            req, ListQuery(status=status, search_text=search, page=page, page_size=page_size)
        )
    except NotemodError as exc:
        _fail(exc)
    finally:
        bo.logout(req.token)

    p = result.pagination
    if not result.items:
        note = " (page out of range)" if p.out_of_range else ""
        console.print(f"[yellow]No submissions{note}.[/] {p.total_items} total")
        return

    table = Table(title=f"Submissions, page {p.current_page}/{p.total_pages} ({p.total_items} total)")
    table.add_column("ID", style="dim")
    table.add_column("Title", style="cyan")
    table.add_column("Author")
    table.add_column("Status")
    table.add_column("Created")
    for s in result.items:
        style = _STATUS_STYLE[s.status.value]
        table.add_row(s.id, s.title[:50], s.author, f"[{style}]{s.status.value}[/]", s.created_at[:19])
    console.print(table)


@main.command()
@click.argument("submission_id")
@click.argument("action", type=click.Choice(["approve", "reject", "delete"]))
@click.option("--username", "-u", required=True, help="Staff username to log in as")
@click.option("--reason", default=None, help="Rejection reason (required for reject)")
@click.pass_context
def review(ctx: click.Context, submission_id: str, action: str, username: str, reason: str | None):
    """Approve, reject, or delete a submission."""
    bo = _backoffice(ctx)
    req = _login(ctx, username)
    try:
        result = bo.review_action(submission_id, action, req, reason=reason)
    except NotemodError as exc:
        _fail(exc)
    finally:
        bo.logout(req.token)

    if result.submission is None:
        console.print(f"[green]Deleted[/] {submission_id}")
    else:
        style = _STATUS_STYLE[result.submission.status.value]
        console.print(f"  {submission_id} -> [{style}]{result.submission.status.value}[/]")


# ── Maintenance ──────────────────────────────────────────────────────


@main.command(name="purge-sessions")
@click.pass_context
def purge_sessions(ctx: click.Context):
    """Remove expired sessions from the session store."""
    removed = _backoffice(ctx).sessions.purge_expired()
    console.print(f"Removed {removed} expired session(s)")


@main.command()
@click.option("--action", "-a", default=None, help="Filter by action")
@click.option("--actor", default=None, help="Filter by actor identity id")
@click.option("--limit", "-n", default=50, type=int)
@click.option("--format", "fmt", default="table", type=click.Choice(["table", "json", "csv"]))
@click.pass_context
def audit(ctx: click.Context, action: str | None, actor: str | None, limit: int, fmt: str):
    """Show recent audit events."""
    log = _backoffice(ctx).audit
    if fmt != "table":
        click.echo(log.export_events(fmt, action=action, actor=actor, limit=limit))
        return

    events = log.get_events(action=action, actor=actor, limit=limit)
    if not events:
        console.print("[yellow]No audit events.[/]")
        return

    table = Table(title=f"Audit events ({len(events)})")
    table.add_column("Time", style="dim")
    table.add_column("Actor")
    table.add_column("Action", style="cyan")
    table.add_column("Resource")
    table.add_column("OK", justify="center")
    for e in events:
        ok = "[green]Y[/]" if e.success else "[red]N[/]"
        table.add_row(e.timestamp[:19], e.actor, e.action, e.resource_id, ok)
    console.print(table)


if __name__ == "__main__":
    main()
