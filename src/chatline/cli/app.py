"""Main CLI application using Typer."""
import asyncio

import typer
from rich.console import Console
from rich.table import Table

from ..auth import AuthError, ClientError, ValidationError
from ..auth.validation import (
    validate_avatar,
    validate_login,
    validate_name,
    validate_password_change,
    validate_signup,
)
from ..chat import Sender
from ..session import TransitionReason
from .providers import get_context

# Create Typer app
app = typer.Typer(
    name="chatline",
    help="Command-line client for the chat backend",
    no_args_is_help=True,
    add_completion=False,
)

# Console for rich output
console = Console()

EXIT_COMMANDS = {"exit", "quit", ":q"}


def _fail(message: str) -> None:
    console.print(f"[red]Error: {message}[/red]")
    raise typer.Exit(code=1)


def _run(coro) -> None:
    """Run a command coroutine, mapping expected errors to exit code 1."""
    try:
        asyncio.run(coro)
    except ValidationError as e:
        _fail(e.message)
    except AuthError:
        _fail("Session expired. Please log in again.")
    except ClientError as e:
        _fail(e.message)


@app.command()
def login(
    email: str = typer.Argument(..., help="Account email"),
    password: str = typer.Option(
        ...,
        "--password",
        "-p",
        prompt=True,
        hide_input=True,
        help="Account password"
    ),
    remember: bool = typer.Option(
        True,
        "--remember/--no-remember",
        help="Keep the session after this command exits"
    )
):
    """Log in and store the session token."""
    async def _login():
        email_value, password_value = validate_login(email, password)
        async with get_context() as ctx:
            response = await ctx.auth.login(email_value, password_value, remember=remember)
            if not response.token:
                _fail(response.message or "Login failed. No token received.")
            name = (response.user or {}).get("name") or "User"
            console.print(f"[green]Welcome back, {name}![/green]")
            if not remember:
                console.print("[dim]Session not remembered: it ends with this command.[/dim]")

    _run(_login())


@app.command()
def signup(
    name: str = typer.Argument(..., help="Display name"),
    email: str = typer.Argument(..., help="Account email"),
    password: str = typer.Option(
        ...,
        "--password",
        "-p",
        prompt=True,
        hide_input=True,
        confirmation_prompt=True,
        help="Account password"
    ),
    avatar: str = typer.Option("", "--avatar", "-a", help="Avatar URL (http/https)"),
    remember: bool = typer.Option(True, "--remember/--no-remember")
):
    """Create an account and log in."""
    async def _signup():
        fields = validate_signup(name, email, password, avatar)
        async with get_context() as ctx:
            response = await ctx.auth.signup(*fields, remember=remember)
            if not response.token:
                _fail(response.message or "Signup failed. No token received.")
            console.print(f"[green]Account created. Welcome, {fields[0]}![/green]")

    _run(_signup())


@app.command()
def logout():
    """Clear stored credentials."""
    async def _logout():
        async with get_context() as ctx:
            await ctx.session.logout()
            console.print("[green]Logged out[/green]")

    _run(_logout())


@app.command()
def whoami():
    """Show the current user's profile."""
    async def _whoami():
        async with get_context() as ctx:
            if not ctx.session.logged_in:
                _fail("Not logged in")
            user = await ctx.auth.get_current_user()

            table = Table(show_header=False, box=None)
            table.add_column("Field", style="bold cyan", width=10)
            table.add_column("Value")
            table.add_row("ID", str(user.id))
            table.add_row("Name", user.name)
            table.add_row("Email", user.email)
            table.add_row("Avatar", user.avatar_url)
            console.print(table)

    _run(_whoami())


@app.command()
def validate():
    """Check that the stored token is still accepted."""
    async def _validate():
        async with get_context() as ctx:
            state = await ctx.session.revalidate()
            if ctx.session.logged_in:
                console.print("[green]+[/green] Session valid")
            else:
                console.print(f"[yellow]![/yellow] Session {state.value}; please log in again")
                raise typer.Exit(code=1)

    _run(_validate())


@app.command()
def profile(
    name: str | None = typer.Option(None, "--name", "-n", help="New display name"),
    avatar: str | None = typer.Option(None, "--avatar", "-a", help="New avatar URL")
):
    """Update name and/or avatar."""
    async def _profile():
        if name is None and avatar is None:
            _fail("Nothing to update: pass --name and/or --avatar")
        partial = {}
        if name is not None:
            partial["name"] = validate_name(name)
        if avatar is not None:
            partial["avatar"] = validate_avatar(avatar)

        async with get_context() as ctx:
            if not ctx.session.logged_in:
                _fail("Not authenticated")
            await ctx.auth.update_profile(partial)
            console.print("[green]Profile updated![/green]")

    _run(_profile())


@app.command()
def password(
    old_password: str = typer.Option(..., "--old", prompt="Current password", hide_input=True),
    new_password: str = typer.Option(..., "--new", prompt="New password", hide_input=True),
    confirm_password: str = typer.Option(..., "--confirm", prompt="Confirm new password", hide_input=True)
):
    """Change the account password."""
    async def _password():
        validate_password_change(old_password, new_password, confirm_password)
        async with get_context() as ctx:
            if not ctx.session.logged_in:
                _fail("Not authenticated")
            message = await ctx.auth.change_password(old_password, new_password)
            console.print(f"[green]{message}[/green]")

    _run(_password())


@app.command()
def chat(
    message: str | None = typer.Argument(None, help="Send one message and exit")
):
    """Chat with the assistant (interactive when no message is given)."""
    async def _chat():
        async with get_context() as ctx:
            if message is not None:
                reply = await ctx.chat.send(message)
                if reply is None:
                    _fail("Message is empty")
                console.print(f"[bold magenta]AI:[/bold magenta] {reply.text}")
                return

            for entry in ctx.chat.messages:
                _print_message(entry.sender, entry.text)

            while True:
                try:
                    text = await asyncio.to_thread(console.input, "[bold blue]You:[/bold blue] ")
                except (EOFError, KeyboardInterrupt):
                    break
                if text.strip().lower() in EXIT_COMMANDS:
                    break
                was_logged_in = ctx.session.logged_in
                await ctx.session.refresh(TransitionReason.EXTERNAL)
                if was_logged_in and not ctx.session.logged_in:
                    console.print("[yellow]Logged out in another session[/yellow]")
                with console.status("[dim]Thinking...[/dim]"):
                    reply = await ctx.chat.send(text)
                if reply is not None:
                    _print_message(reply.sender, reply.text)

    _run(_chat())


@app.command()
def history(
    clear: bool = typer.Option(False, "--clear", help="Delete the stored chat history"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation prompt")
):
    """Show or clear the stored chat history."""
    async def _history():
        async with get_context() as ctx:
            if clear:
                if not yes and not typer.confirm("Delete the stored chat history?"):
                    console.print("[dim]Aborted.[/dim]")
                    return
                await ctx.chat.clear_history()
                console.print("[green]Chat history cleared[/green]")
                return

            table = Table(show_header=True, header_style="bold cyan")
            table.add_column("Time", style="dim", width=8)
            table.add_column("From", width=9)
            table.add_column("Message")
            for entry in ctx.chat.messages:
                table.add_row(
                    entry.created_at.astimezone().strftime("%H:%M"),
                    entry.sender.value,
                    entry.text,
                )
            console.print(table)

    _run(_history())


def _print_message(sender: Sender, text: str) -> None:
    if sender is Sender.USER:
        console.print(f"[bold blue]You:[/bold blue] {text}")
    else:
        console.print(f"[bold magenta]AI:[/bold magenta] {text}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
