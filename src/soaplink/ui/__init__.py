"""User-facing entry points: command-line interface and its helpers."""
