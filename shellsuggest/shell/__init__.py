"""Shell integration scripts shipped as package data."""
