"""Terminal-facing layer: CLI, selection UI, output helpers."""
