"""
Configuration Management Commands

Interactive configuration wizard for shellsuggest.
This module is lazy-loaded only when settings commands are used.
Heavy dependencies (Rich) are isolated here to keep `complete` fast.
"""

import configparser
import os
import subprocess
from dataclasses import asdict
from pathlib import Path
from typing import Dict

from rich.console import Console
from rich.panel import Panel
from rich.prompt import FloatPrompt, IntPrompt, Prompt
from rich.table import Table

from shellsuggest.core.configs import (
    CONFIG_PATH,
    ENV_PATH,
    get_daemon_settings,
    load_raw_config,
)

console = Console()


def handle_config(action: str, path: Path = CONFIG_PATH) -> None:
    """
    Route to appropriate config action.

    Args:
        action: One of 'init', 'show', or 'edit'
        path: Config file to operate on
    """
    actions = {
        "init": init_config,
        "show": show_config,
        "edit": edit_config,
    }

    if action not in actions:
        console.print(f"[red]Unknown action: {action}[/red]")
        console.print("Available actions: init, show, edit")
        raise SystemExit(1)

    actions[action](path)


def init_config(path: Path = CONFIG_PATH) -> None:
    """
    Interactive configuration wizard.
    Works on both new and existing configurations.
    """
    console.print(Panel.fit("[bold blue]shellsuggest configuration[/bold blue]", title="Setup"))

    existing = load_raw_config(path) if path.exists() else {}
    try:
        current = get_daemon_settings(existing)
    except ValueError as e:
        console.print(f"[red]Invalid configuration: {e}[/red]")
        console.print(f"Fix or remove {path} and run init again")
        raise SystemExit(1)

    config_data = {
        "socket": Prompt.ask("Socket path", default=str(current.socket_path), console=console),
        "provider": Prompt.ask(
            "Suggestion provider (module:attribute, empty for none)",
            default=current.provider,
            console=console,
        ),
        "session_timeout": str(
            FloatPrompt.ask("Per-session timeout (s)", default=current.session_timeout, console=console)
        ),
        "max_sessions": str(
            IntPrompt.ask("Max concurrent sessions", default=current.max_sessions, console=console)
        ),
        "log_level": Prompt.ask(
            "Log level",
            choices=["DEBUG", "INFO", "WARNING", "ERROR"],
            default=current.log_level,
            console=console,
        ),
    }

    save_config_file(config_data, path)

    console.print(
        Panel.fit(
            f"[green]Configuration saved![/green]\nLocation: {path}",
            title="Success",
        )
    )


def show_config(path: Path = CONFIG_PATH) -> None:
    """Display effective configuration in a formatted table."""
    raw = load_raw_config(path)
    try:
        settings = get_daemon_settings(raw)
    except ValueError as e:
        console.print(f"[red]Invalid configuration: {e}[/red]")
        raise SystemExit(1)

    table = Table(title="shellsuggest configuration", show_header=True)
    table.add_column("Setting", style="cyan", width=25)
    table.add_column("Value", style="green")
    table.add_column("Source", style="dim")

    for key, value in asdict(settings).items():
        raw_key = "socket" if key == "socket_path" else key
        source = "file/env" if raw_key in raw else "default"
        display = "[dim]not set[/dim]" if value in (None, "") else str(value)
        table.add_row(key, display, source)

    console.print(table)
    if path.exists():
        console.print(f"\n[dim]Config file: {path}[/dim]")
    elif ENV_PATH.exists():
        console.print(f"\n[dim]Env file: {ENV_PATH}[/dim]")
    else:
        console.print("\n[yellow]No configuration file. Run 'shellsuggest settings init'[/yellow]")


def edit_config(path: Path = CONFIG_PATH) -> None:
    """Open config file in user's default editor."""
    if not path.exists():
        console.print("[yellow]No configuration found. Creating template...[/yellow]")
        save_config_file({"socket": str(get_daemon_settings({}).socket_path)}, path)

    editor = os.environ.get("EDITOR", "vi")

    try:
        console.print(f"[dim]Opening {path} with {editor}...[/dim]")
        subprocess.run([editor, str(path)], check=True)
        console.print("[green]Config file updated[/green]")
    except subprocess.CalledProcessError:
        console.print(f"[red]Failed to open editor: {editor}[/red]")
        console.print(f"Edit manually: {path}")
    except FileNotFoundError:
        console.print(f"[red]Editor not found: {editor}[/red]")
        console.print(f"Set EDITOR environment variable or edit manually: {path}")


def save_config_file(config: Dict[str, str], path: Path = CONFIG_PATH) -> None:
    """
    Save configuration to the [DAEMON] section of the config file.
    Keys already in the file and not in config are kept.

    Args:
        config: Configuration dictionary to save
        path: Destination file
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    cfg = configparser.ConfigParser()
    cfg.read(path)
    if not cfg.has_section("DAEMON"):
        cfg.add_section("DAEMON")
    for key, value in config.items():
        if value is not None:
            cfg["DAEMON"][key] = value

    with open(path, "w") as f:
        cfg.write(f)
