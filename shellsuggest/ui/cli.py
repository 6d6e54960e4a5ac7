"""Main CLI entry point - clean subcommand architecture."""

from pathlib import Path
from typing import Optional

import typer

from shellsuggest.core.configs import DaemonSettings, get_daemon_settings
from shellsuggest.daemon.client import CompletionClient
from shellsuggest.daemon.endpoint import EndpointStatus
from shellsuggest.errors import (
    BindError,
    DaemonNotRunningError,
    DaemonResponseError,
    ProtocolDecodeError,
    ProviderLoadError,
)
from shellsuggest.ui.install import install_script, load_script, rc_file_hint
from shellsuggest.ui.output import UIManager
from shellsuggest.ui.selector import pick

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    help="shellsuggest - completion daemon and picker for your shell.",
)

SOCKET_HELP = "Unix socket path (default: from config or $SHELLSUGGEST_SOCKET)"


# ============================================================================
# Shared Setup - called on every invocation
# ============================================================================

def _load_settings(socket: Optional[Path]) -> DaemonSettings:
    """Load settings, applying --socket. Exits on a malformed config."""
    try:
        return get_daemon_settings(socket_path=socket)
    except ValueError as e:
        typer.echo(f"Error loading configuration: {e}", err=True)
        typer.echo("Run 'shellsuggest settings show' to inspect configuration", err=True)
        raise typer.Exit(1)


# ============================================================================
# Commands - Each command is linear: setup → execute → handle result
# ============================================================================

@app.command()
def daemon(
    socket: Optional[Path] = typer.Option(None, "--socket", "-s", help=SOCKET_HELP),
    daemonize: bool = typer.Option(False, "--daemonize", help="Fork to background"),
    idle_timeout: Optional[float] = typer.Option(
        None, "--idle-timeout", min=0, help="Shutdown after this many seconds idle (0 = never)"
    ),
) -> None:
    """
    Start the completion daemon (runs until SIGTERM/SIGINT or `stop`).

    Example: shellsuggest daemon --socket /tmp/shellsuggest.sock
    """
    settings = _load_settings(socket)
    if idle_timeout is not None:
        settings.idle_timeout = idle_timeout

    # Lazy import: asyncio server code is only needed here
    from shellsuggest.daemon.server import run_daemon

    try:
        run_daemon(settings=settings, daemonize=daemonize)
    except (BindError, ProviderLoadError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)


@app.command()
def stop(
    socket: Optional[Path] = typer.Option(None, "--socket", "-s", help=SOCKET_HELP),
) -> None:
    """
    Stop the daemon by removing its socket.

    The daemon notices the socket is gone and exits on its own.
    """
    settings = _load_settings(socket)
    ui = UIManager()

    status = CompletionClient(settings.socket_path).stop()

    if status is EndpointStatus.NOT_RUNNING:
        ui.info("Daemon not running")
    elif status is EndpointStatus.STALE:
        ui.warning(f"Daemon stale: removed unresponsive socket {settings.socket_path}")
    else:
        ui.success(f"Daemon stopped (removed {settings.socket_path})")


@app.command()
def status(
    socket: Optional[Path] = typer.Option(None, "--socket", "-s", help=SOCKET_HELP),
) -> None:
    """
    Report whether the daemon is running. Exit status 1 when it is not.
    """
    settings = _load_settings(socket)
    ui = UIManager()

    status = CompletionClient(settings.socket_path).status()

    if status is EndpointStatus.RUNNING:
        ui.success(f"Daemon running on {settings.socket_path}")
        return

    if status is EndpointStatus.STALE:
        ui.warning(f"Daemon stale/unresponsive: {settings.socket_path} refuses connections")
    else:
        ui.info("Daemon not running")
    raise typer.Exit(1)


@app.command()
def complete(
    buffer: str = typer.Argument(..., help="Command buffer to complete"),
    cursor: int = typer.Option(..., "--cursor", "-c", min=0, help="Cursor position in the buffer"),
    socket: Optional[Path] = typer.Option(None, "--socket", "-s", help=SOCKET_HELP),
) -> None:
    """
    Ask the daemon for completions, let the user pick one, print it.

    Prints nothing when there are no suggestions or the picker is cancelled.

    Example: shellsuggest complete "git comm" --cursor 8
    """
    settings = _load_settings(socket)
    client = CompletionClient(settings.socket_path, timeout=settings.client_timeout)

    try:
        suggestions = client.request(buffer, cursor)
    except DaemonNotRunningError as e:
        typer.echo(f"Error: {e}", err=True)
        typer.echo("Start it with 'shellsuggest daemon'", err=True)
        raise typer.Exit(1)
    except ProtocolDecodeError as e:
        typer.echo(f"Error: invalid response from daemon: {e}", err=True)
        raise typer.Exit(1)
    except DaemonResponseError as e:
        typer.echo(f"Error from daemon: {e}", err=True)
        raise typer.Exit(1)
    except OSError as e:
        typer.echo(f"Error talking to daemon: {e}", err=True)
        raise typer.Exit(1)

    if not suggestions:
        return

    try:
        choice = pick(suggestions)
    except OSError as e:
        typer.echo(f"Error: cannot open terminal for the picker: {e}", err=True)
        raise typer.Exit(1)

    if choice is not None:
        typer.echo(choice.text)


@app.command()
def install(
    shell: str = typer.Argument(..., help="Shell to install for (zsh, bash, fish)"),
    print_only: bool = typer.Option(
        False, "--print", help="Write the script to stdout instead of the config directory"
    ),
) -> None:
    """
    Install shell integration (key binding + daemon autostart).

    Example: shellsuggest install zsh
    """
    try:
        if print_only:
            typer.echo(load_script(shell), nl=False)
            return
        path, line = install_script(shell)
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    UIManager().success(f"Wrote {path}")
    typer.echo(f"Add this line to {rc_file_hint(shell)}:")
    typer.echo(f"  {line}")


@app.command()
def settings(
    action: str = typer.Argument(..., help="Action: init, show, or edit"),
) -> None:
    """
    Manage shellsuggest configuration.

    Actions:
        init - Interactive configuration wizard
        show - Display effective configuration
        edit - Open config file in $EDITOR
    """
    from shellsuggest.ui.config_commands import handle_config
    handle_config(action)


def run() -> None:
    """Entry point for console script mapping."""
    app()


if __name__ == "__main__":
    run()
