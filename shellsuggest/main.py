#!/usr/bin/env python3
"""
Main entry point for the Typer-based shellsuggest CLI.

This delegates to the UI layer in shellsuggest.ui.cli to keep the
console script mapping stable.
"""

from shellsuggest.ui.cli import run as shellsuggest


if __name__ == "__main__":
    shellsuggest()
