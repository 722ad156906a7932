"""Shared utility functions for cza.

Provides async command execution, the process runner used by the
post-generation steps, git configuration queries, and small formatting
helpers.
"""

from __future__ import annotations

import asyncio
import logging
import os
import re
import subprocess
import threading
from pathlib import Path

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Async command execution
# ---------------------------------------------------------------------------


async def run_command(
    cmd: list[str],
    cwd: str | Path | None = None,
    timeout: float | None = None,
    capture: bool = True,
    env: dict[str, str] | None = None,
) -> tuple[int, str, str]:
    """Run a command asynchronously and wait for it to finish.

    Args:
        cmd: Program and arguments.
        cwd: Working directory for the child process.
        timeout: Maximum wall-clock seconds before the process is killed.
            ``None`` waits indefinitely.
        capture: Whether to capture stdout/stderr (if ``False`` they inherit
            the parent's streams).
        env: Optional extra environment variables merged on top of ``os.environ``.

    Returns:
        A ``(returncode, stdout, stderr)`` tuple.  If *capture* is ``False``
        the stdout/stderr strings will be empty.

    Raises:
        OSError: If the program cannot be started (e.g. not installed).
    """
    merged_env: dict[str, str] | None = None
    if env:
        merged_env = {**os.environ, **env}

    stdout_pipe = asyncio.subprocess.PIPE if capture else None
    stderr_pipe = asyncio.subprocess.PIPE if capture else None

    logger.debug("Running %s (cwd=%s)", " ".join(cmd), cwd)
    process = await asyncio.create_subprocess_exec(
        *cmd,
        stdout=stdout_pipe,
        stderr=stderr_pipe,
        cwd=str(cwd) if cwd else None,
        env=merged_env,
    )

    try:
        stdout_bytes, stderr_bytes = await asyncio.wait_for(
            process.communicate(), timeout=timeout
        )
    except asyncio.TimeoutError:
        process.kill()
        await process.wait()
        return (-1, "", f"Command timed out after {timeout}s: {' '.join(cmd)}")

    stdout_str = (stdout_bytes or b"").decode("utf-8", errors="replace").strip()
    stderr_str = (stderr_bytes or b"").decode("utf-8", errors="replace").strip()
    logger.debug("%s exited with status %s", cmd[0], process.returncode)
    return (process.returncode or 0, stdout_str, stderr_str)


class CommandRunner:
    """Process runner for external commands run against a project directory.

    ``run`` blocks (awaits) until the command exits; ``spawn`` starts a
    detached process and returns immediately without ever waiting on it.
    """

    async def run(self, cmd: list[str], cwd: str | Path) -> int:
        """Run *cmd* in *cwd* with inherited output and return its exit status.

        Raises:
            OSError: If the program cannot be started.
        """
        returncode, _, _ = await run_command(cmd, cwd=cwd, capture=False)
        return returncode

    def spawn(self, cmd: list[str], cwd: str | Path) -> subprocess.Popen:
        """Start *cmd* detached from this process and return its handle.

        The child runs in its own session and is never awaited.  A daemon
        thread waits on it so it is reaped if it exits while cza is still
        running; if cza exits first the child is re-parented and keeps
        running.

        Raises:
            OSError: If the program cannot be started.
        """
        logger.debug("Spawning detached %s (cwd=%s)", " ".join(cmd), cwd)
        process = subprocess.Popen(
            cmd,
            cwd=str(cwd),
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            start_new_session=True,
        )
        threading.Thread(
            target=process.wait, name=f"reap-{process.pid}", daemon=True
        ).start()
        return process


# ---------------------------------------------------------------------------
# Git helpers
# ---------------------------------------------------------------------------


def get_git_config(key: str) -> str | None:
    """Return a value from the local git configuration.

    Returns ``None`` when the key is unset, empty, or git cannot be run.
    """
    logger.debug("Getting git config: %s", key)
    try:
        result = subprocess.run(
            ["git", "config", key],
            capture_output=True,
            text=True,
            check=False,
        )
    except OSError as exc:
        logger.debug("Could not run git: %s", exc)
        return None
    if result.returncode != 0:
        return None
    value = result.stdout.strip()
    return value or None


def check_git_available() -> bool:
    """Return ``True`` if a working ``git`` executable is on the PATH."""
    try:
        result = subprocess.run(["git", "--version"], capture_output=True, check=False)
    except OSError:
        return False
    return result.returncode == 0


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------


def title_case(value: str) -> str:
    """Turn a kebab/snake/space separated name into ``Title Case``.

    Examples::

        title_case("my-project") -> "My Project"
        title_case("noir_app")   -> "Noir App"
    """
    words = re.split(r"[-_\s]+", value)
    return " ".join(word[:1].upper() + word[1:].lower() for word in words if word)


def format_duration(seconds: float) -> str:
    """Format a duration in seconds to a human-readable string.

    Examples::

        format_duration(3.7)    -> "3.7s"
        format_duration(65.2)   -> "1m 5s"
        format_duration(3661.0) -> "1h 1m 1s"
    """
    if seconds < 0:
        return "0.0s"

    hours = int(seconds // 3600)
    minutes = int((seconds % 3600) // 60)
    secs = seconds % 60

    parts: list[str] = []
    if hours > 0:
        parts.append(f"{hours}h")
    if minutes > 0:
        parts.append(f"{minutes}m")

    if hours > 0 or minutes > 0:
        parts.append(f"{int(secs)}s")
    else:
        parts.append(f"{secs:.1f}s")

    return " ".join(parts)
