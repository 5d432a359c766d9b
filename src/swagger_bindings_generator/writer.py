"""Formatting and output writing for the generated bindings module."""

from __future__ import annotations

import logging
import os
from pathlib import Path
import stat
import subprocess
import sys
import tempfile
from typing import Optional, TextIO

logger = logging.getLogger(__name__)

# Generated modules only need their import blocks fixed.
_RUFF_FIX_ARGS: tuple[str, ...] = ("check", "--isolated", "--select", "I", "--fix")


class WriteError(RuntimeError):
    """Raised when the generated module cannot be formatted or written."""


def format_source(source: str, *, filename: str = "bindings.py") -> str:
    """Run Ruff auto-fixes and the formatter over generated source.

    Args:
        source (str): Unformatted Python source.
        filename (str): Name Ruff uses to pick up project settings.

    Returns:
        str: Formatted Python source.
    """
    formatted = _run_ruff(source, filename=filename, args=("format",))
    fixed = _run_ruff(formatted, filename=filename, args=_RUFF_FIX_ARGS)
    return _run_ruff(fixed, filename=filename, args=("format",))


def _run_ruff(source: str, *, filename: str, args: tuple[str, ...]) -> str:
    command = [sys.executable, "-m", "ruff", *args, "--stdin-filename", filename, "-"]
    step = f"{args[0]} --fix" if "--fix" in args else args[0]
    try:
        completed = subprocess.run(
            command,
            input=source,
            check=True,
            capture_output=True,
            text=True,
        )
    except OSError as exc:
        raise WriteError(f"Failed to execute ruff {step} for {filename}: {exc}") from exc
    except subprocess.CalledProcessError as exc:
        error_text = exc.stderr.strip() or exc.stdout.strip() or str(exc)
        raise WriteError(f"ruff {step} failed for {filename}: {error_text}") from exc
    return completed.stdout


def write_output(source: str, output_path: Optional[Path], *, stream: Optional[TextIO] = None) -> None:
    """Write the generated module to a file, or to standard output.

    Files are written to a temporary sibling and renamed into place, so the
    destination is either fully replaced or left untouched.

    Args:
        source (str): Generated Python source.
        output_path (Optional[Path]): Destination file; ``None`` writes to ``stream``.
        stream (Optional[TextIO]): Stream used when no path is given; defaults to stdout.
    """
    if output_path is None:
        target = stream if stream is not None else sys.stdout
        target.write(source)
        target.flush()
        return

    directory = output_path.parent
    try:
        handle, temp_name = tempfile.mkstemp(
            prefix=f".{output_path.name}.", suffix=".tmp", dir=directory
        )
    except OSError as exc:
        raise WriteError(f"Failed to create temporary file in {directory}: {exc}") from exc

    temp_path = Path(temp_name)
    try:
        with os.fdopen(handle, "w", encoding="utf-8") as temp_file:
            temp_file.write(source)
        os.chmod(temp_path, _output_mode(output_path))
        os.replace(temp_path, output_path)
    except OSError as exc:
        temp_path.unlink(missing_ok=True)
        raise WriteError(f"Failed to write file {output_path}: {exc}") from exc
    logger.info("Wrote bindings to %s", output_path)


def _output_mode(output_path: Path) -> int:
    # Existing files keep their mode, new ones get the umask default.
    try:
        return stat.S_IMODE(output_path.stat().st_mode)
    except FileNotFoundError:
        umask = os.umask(0)
        os.umask(umask)
        return 0o666 & ~umask
