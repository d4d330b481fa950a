"""
Common CLI helper functions for soaplink.
"""

from __future__ import annotations

import mimetypes
import re
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from ..soap.attachments import SoapAttachment

if TYPE_CHECKING:
    from ..soap.messages import SoapResponse

__all__ = [
    "attachment_from_file",
    "format_size_kb",
    "prompt_password",
    "safe_read_file",
    "save_attachments",
]

_BYTES_PER_KB = 1024

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def format_size_kb(size_bytes: int) -> str:
    """Format a byte count as a human-readable KB string (e.g. '123.4 KB')."""
    return f"{size_bytes / _BYTES_PER_KB:.1f} KB"


def safe_read_file(path: Path, kind: str = "file") -> bytes | None:
    """
    Read a file with uniform error handling.

    Args:
        path: Path to the file to read.
        kind: Descriptive name for error messages (e.g., "envelope").

    Returns:
        File contents as bytes, or None if the file doesn't exist or can't be read.
    """
    if not path.exists():
        print(f"Error: {kind} not found: {path}", file=sys.stderr)
        return None

    try:
        return path.read_bytes()
    except OSError as e:
        print(f"Error reading {kind}: {e}", file=sys.stderr)
        return None


def attachment_from_file(path: Path) -> SoapAttachment | None:
    """Build an attachment from a file, guessing its MIME type from the name."""
    content = safe_read_file(path, "attachment")
    if content is None:
        return None
    content_type, _ = mimetypes.guess_type(path.name)
    return SoapAttachment(
        content=content,
        content_type=content_type or "application/octet-stream",
        filename=path.name,
    )


def save_attachments(response: SoapResponse, directory: Path) -> list[Path]:
    """Write every response attachment into ``directory``.

    File names come from the part's filename, else its Content-ID, with
    anything outside [A-Za-z0-9._-] replaced.
    """
    directory.mkdir(parents=True, exist_ok=True)
    written: list[Path] = []
    for attachment in response.attachments.values():
        name = _UNSAFE_FILENAME_CHARS.sub("_", attachment.filename or attachment.content_id)
        target = directory / (name.lstrip(".") or "attachment")
        target.write_bytes(attachment.content)
        written.append(target)
    return written


def prompt_password(prompt: str) -> str:
    """
    Prompt for a password without echo.

    Raises:
        SystemExit: If the user cancels (Ctrl-C, Ctrl-D) or enters nothing.
    """
    import getpass

    try:
        password = getpass.getpass(prompt)
    except (EOFError, KeyboardInterrupt):
        print()
        sys.exit(1)

    if not password:
        print("Error: password is required.", file=sys.stderr)
        sys.exit(1)
    return password
