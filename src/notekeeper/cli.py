"""notekeeper: personal notes from the command line.

Commands
--------
  login     Log in and remember the session
  register  Create an account and log into it
  logout    Forget the stored session
  whoami    Show the logged-in user
  list      List your notes
  add       Create a note
  show      Display one of your notes
  edit      Change a note's title or content
  delete    Delete a note
  share     Make a note public and print its link
  unshare   Make a note private again
  link      Print the share link for a note
  public    Browse everybody's public notes
  shared    Read a shared note by id (no login needed)
  info      Show configuration and session status
"""

from __future__ import annotations

import asyncio
from typing import Annotated, Awaitable, Callable, Optional, TypeVar

import pyperclip
import typer
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, Prompt
from rich.table import Table
from rich.text import Text
from rich.theme import Theme

from . import __version__
from .client import Client
from .config import Settings
from .errors import NotekeeperError, NotFoundError, UnauthorizedError
from .log import configure_logging
from .models import Note, PublicNote, share_link

T = TypeVar("T")

# ---------------------------------------------------------------------------
# App & consoles
# ---------------------------------------------------------------------------

_THEME = Theme(
    {
        "success": "bold green",
        "warning": "bold yellow",
        "danger": "bold red",
        "muted": "dim",
        "label": "cyan",
        "highlight": "bold white",
    }
)

console = Console(theme=_THEME)
err = Console(stderr=True, theme=_THEME)

app = typer.Typer(
    name="notekeeper",
    help="[bold cyan]notekeeper[/bold cyan]: your notes, privately kept and publicly shared.",
    no_args_is_help=True,
    pretty_exceptions_show_locals=False,
    rich_markup_mode="rich",
    add_completion=True,
)


@app.callback()
def _main(
    verbose: Annotated[bool, typer.Option("--verbose", "-V", help="Log requests and session changes.")] = False,
) -> None:
    configure_logging("DEBUG" if verbose else _settings().log_level, console=err)


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------


def _settings() -> Settings:
    return Settings()


def _client() -> Client:
    return Client(_settings())


def _run(action: Callable[[Client], Awaitable[T]], *, restore: bool = True, require_login: bool = True) -> T:
    """Run *action* against a fresh client, turning client errors into exit codes."""

    async def _go() -> T:
        async with _client() as client:
            if restore:
                await client.session.initialize()
                if require_login and not client.session.authenticated:
                    err.print("[danger]Not logged in.[/danger] Run [bold]notekeeper login[/bold] first.")
                    raise typer.Exit(1)
            return await action(client)

    try:
        return asyncio.run(_go())
    except UnauthorizedError as exc:
        err.print("[danger]Session expired, please log in again.[/danger]")
        raise typer.Exit(1) from exc
    except NotekeeperError as exc:
        err.print(f"[danger]{exc.message}[/danger]")
        raise typer.Exit(1) from exc


def _find_note(notes: list[Note], note_id: int) -> Note:
    for note in notes:
        if note.id == note_id:
            return note
    raise NotFoundError(f"No note with id {note_id} in your notes.")


def _copy(text: str) -> None:
    try:
        pyperclip.copy(text)
        console.print("[success]Link copied to clipboard.[/success]")
    except pyperclip.PyperclipException:
        console.print("[warning]Could not access clipboard. Is a copy mechanism installed?[/warning]")


def _fmt(ts) -> str:
    return ts.strftime("%Y-%m-%d %H:%M UTC")


def _render_note(note: Note, *, link: Optional[str] = None) -> None:
    body = Text()

    def row(label: str, value: str, style: str = "highlight") -> None:
        body.append(f"  {label:<10}", style="label")
        body.append(value + "\n", style=style)

    if isinstance(note, PublicNote) and note.owner_username:
        row("Author", note.owner_username)
    row("Visibility", "public" if note.is_public else "private", style="green" if note.is_public else "muted")
    row("Created", _fmt(note.created_at), style="muted")
    if note.edited:
        row("Updated", _fmt(note.updated_at), style="muted")
    if link:
        row("Link", link, style="blue underline")
    body.append("\n")
    body.append(note.content)

    console.print(
        Panel(body, title=f"[bold cyan]{note.title}[/bold cyan]", subtitle=f"#{note.id}", expand=False, border_style="cyan")
    )


def _truncate(content: str, length: int = 60) -> str:
    flat = " ".join(content.split())
    return flat if len(flat) <= length else flat[:length] + "…"


def _render_table(notes: list[Note], title: str) -> None:
    table = Table(
        title=title,
        box=box.ROUNDED,
        header_style="bold cyan",
        show_lines=False,
        highlight=True,
        title_style="bold",
    )
    table.add_column("ID", style="muted", justify="right", no_wrap=True)
    table.add_column("Title", style="bold white", min_width=16)
    table.add_column("Preview", style="dim", max_width=40)
    if notes and isinstance(notes[0], PublicNote):
        table.add_column("Author", style="yellow")
    else:
        table.add_column("Visibility", style="yellow")
    table.add_column("Created", style="muted", no_wrap=True)
    table.add_column("Updated", style="muted", no_wrap=True)

    for n in notes:
        fourth = n.owner_username if isinstance(n, PublicNote) else ("🔗 public" if n.is_public else "🔒 private")
        table.add_row(
            str(n.id),
            n.title,
            _truncate(n.content),
            fourth,
            n.created_at.strftime("%Y-%m-%d"),
            n.updated_at.strftime("%Y-%m-%d") if n.edited else "",
        )
    console.print(table)


# ---------------------------------------------------------------------------
# Session commands
# ---------------------------------------------------------------------------


@app.command()
def login(
    username: Annotated[Optional[str], typer.Argument(help="Account username.")] = None,
    password: Annotated[str, typer.Option("--password", "-p", prompt=True, hide_input=True, help="Account password.")] = "",
) -> None:
    """Log in and remember the session."""
    if username is None:
        username = Prompt.ask("  Username", console=console)

    user = _run(lambda c: c.session.login(username, password), restore=False)
    console.print(f"[success]Logged in as [bold]{user.username}[/bold].[/success]")


@app.command()
def register(
    username: Annotated[str, typer.Argument(help="Username for the new account.")],
    email: Annotated[Optional[str], typer.Option("--email", "-e", help="Email address.")] = None,
    password: Annotated[
        str,
        typer.Option("--password", "-p", prompt=True, hide_input=True, confirmation_prompt=True, help="Account password."),
    ] = "",
) -> None:
    """Create an account and log into it."""
    if email is None:
        email = Prompt.ask("  Email", console=console)
    if not password:
        err.print("[danger]Password cannot be empty.[/danger]")
        raise typer.Exit(1)

    user = _run(lambda c: c.session.register(username, email, password), restore=False)
    console.print(f"[success]Account created. Logged in as [bold]{user.username}[/bold].[/success]")


@app.command()
def logout() -> None:
    """Forget the stored session."""

    async def action(client: Client) -> None:
        client.session.logout()

    _run(action, restore=False)
    console.print("[muted]Logged out.[/muted]")


@app.command()
def whoami() -> None:
    """Show the logged-in user."""

    async def action(client: Client):
        return client.session.user

    user = _run(action)
    console.print(f"[highlight]{user.username}[/highlight] [muted]<{user.email}> · id {user.id}[/muted]")


# ---------------------------------------------------------------------------
# Note commands
# ---------------------------------------------------------------------------


@app.command("list")
def list_notes() -> None:
    """List your notes."""
    notes = _run(lambda c: c.notes.list())
    if not notes:
        console.print("[muted]No notes yet. Create one with [bold]notekeeper add[/bold].[/muted]")
        return
    label = "note" if len(notes) == 1 else "notes"
    _render_table(notes, title=f"Your Notes ({len(notes)} {label})")


@app.command()
def add(
    title: Annotated[str, typer.Argument(help="Note title.")],
    content: Annotated[Optional[str], typer.Option("--content", "-c", help="Note body.")] = None,
) -> None:
    """Create a note (private until shared)."""
    if content is None:
        content = Prompt.ask("  Content", console=console)
    note = _run(lambda c: c.notes.create(title, content))
    console.print(f"[success]Note [bold]#{note.id}[/bold] '{note.title}' created.[/success]")


@app.command()
def show(
    note_id: Annotated[int, typer.Argument(help="Note id.")],
) -> None:
    """Display one of your notes."""

    async def action(client: Client):
        note = _find_note(await client.notes.list(), note_id)
        link = client.notes.share_link(note.id) if note.is_public else None
        return note, link

    note, link = _run(action)
    _render_note(note, link=link)


@app.command()
def edit(
    note_id: Annotated[int, typer.Argument(help="Note id.")],
    title: Annotated[Optional[str], typer.Option("--title", "-t", help="New title.")] = None,
    content: Annotated[Optional[str], typer.Option("--content", "-c", help="New content.")] = None,
) -> None:
    """Change a note's title or content."""
    if title is None and content is None:
        console.print("[muted]No changes made.[/muted]")
        return

    async def action(client: Client) -> Note:
        current = _find_note(await client.notes.list(), note_id)
        return await client.notes.update(
            note_id,
            title if title is not None else current.title,
            content if content is not None else current.content,
        )

    note = _run(action)
    console.print(f"[success]Note [bold]#{note.id}[/bold] updated.[/success]")


@app.command()
def delete(
    note_id: Annotated[int, typer.Argument(help="Note id.")],
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation prompt.")] = False,
) -> None:
    """Permanently delete a note."""
    if not yes:
        confirmed = Confirm.ask(
            f"  Delete note [bold]#{note_id}[/bold]? [muted]This cannot be undone.[/muted]",
            default=False,
            console=console,
        )
        if not confirmed:
            raise typer.Exit(0)

    _run(lambda c: c.notes.delete(note_id))
    console.print(f"[danger]Note [bold]#{note_id}[/bold] deleted.[/danger]")


@app.command()
def share(
    note_id: Annotated[int, typer.Argument(help="Note id.")],
    copy: Annotated[bool, typer.Option("--copy", "-c", help="Copy the link to the clipboard.")] = False,
) -> None:
    """Make a note public and print its link."""
    result = _run(lambda c: c.notes.set_visibility(note_id, True))
    console.print(f"[success]Note shared![/success] [blue underline]{result.link}[/blue underline]")
    if copy and result.link:
        _copy(result.link)


@app.command()
def unshare(
    note_id: Annotated[int, typer.Argument(help="Note id.")],
) -> None:
    """Make a note private again; its link stops working."""
    _run(lambda c: c.notes.set_visibility(note_id, False))
    console.print("[muted]Note sharing disabled.[/muted]")


@app.command()
def link(
    note_id: Annotated[int, typer.Argument(help="Note id.")],
    copy: Annotated[bool, typer.Option("--copy", "-c", help="Copy the link to the clipboard.")] = False,
) -> None:
    """Print the share link for a note (works only while it is public)."""
    url = share_link(_settings().share_origin, note_id)
    typer.echo(url)
    if copy:
        _copy(url)


# ---------------------------------------------------------------------------
# Public commands
# ---------------------------------------------------------------------------


@app.command()
def public() -> None:
    """Browse everybody's public notes."""
    notes = _run(lambda c: c.public.list_public(), restore=False)
    if not notes:
        console.print("[muted]No public notes yet. Share one with [bold]notekeeper share[/bold].[/muted]")
        return
    _render_table(notes, title=f"Public Notes ({len(notes)})")


@app.command()
def shared(
    note_id: Annotated[int, typer.Argument(help="Note id from a share link.")],
) -> None:
    """Read a shared note. No login needed."""

    async def action(client: Client):
        return await client.public.fetch_shared(note_id), client.notes.share_link(note_id)

    note, url = _run(action, restore=False)
    _render_note(note, link=url)


@app.command()
def info() -> None:
    """Show configuration and session status."""
    settings = _settings()
    path = settings.credential_path()

    table = Table(box=box.SIMPLE, show_header=False, padding=(0, 2))
    table.add_column("Key", style="cyan")
    table.add_column("Value", style="white")
    table.add_row("Version", __version__)
    table.add_row("API", settings.api_base_url)
    table.add_row("Share origin", settings.share_origin)
    table.add_row("Credential", str(path))
    table.add_row("Stored", "[green]yes[/green]" if path.exists() else "[red]no[/red]")

    if path.exists():
        async def action(client: Client):
            return client.session.session

        session = _run(action, require_login=False)
        if session.user:
            table.add_row("Session", f"[green]{session.user.username}[/green]")
        else:
            table.add_row("Session", "[red]expired[/red]")

    console.print(Panel(table, title="[bold cyan]notekeeper info[/bold cyan]", border_style="cyan", expand=False))


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def main() -> None:
    app()


if __name__ == "__main__":
    main()
