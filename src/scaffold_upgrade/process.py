"""Async executor for external commands (git, package managers, generators).

Commands are spawned with ``asyncio.create_subprocess_exec``; stdout is
returned on exit code zero and every other outcome is raised as
:class:`~scaffold_upgrade.errors.ExternalCommandFailure`.

Stdout is decoded as UTF-8 with ``surrogateescape``, so bytes that are not
UTF-8 survive and ``encode_output`` restores the exact original bytes.
"""

from __future__ import annotations

import asyncio
import logging
import os
import shlex
import shutil
from collections.abc import Mapping, Sequence
from pathlib import Path

from scaffold_upgrade.errors import ExternalCommandFailure

logger = logging.getLogger(__name__)

__all__ = ["ProcessExecutor", "encode_output", "format_command"]

_NOT_FOUND_EXIT_CODE = 127


def format_command(command: Sequence[str]) -> str:
    return shlex.join(str(part) for part in command)


def encode_output(text: str) -> bytes:
    """Return the bytes a command originally wrote for *text*."""
    return text.encode("utf-8", errors="surrogateescape")


class ProcessExecutor:
    """Run one external command at a time and capture its output.

    Args:
        cwd: Default working directory for every command.
        env: Extra variables layered over ``os.environ`` for every command.
            A ``None`` value removes an inherited variable.
    """

    def __init__(self, cwd: Path | None = None, env: Mapping[str, str | None] | None = None) -> None:
        self.cwd = cwd
        self.env = dict(env or {})

    def _child_env(self, env: Mapping[str, str | None] | None) -> dict[str, str] | None:
        overrides = {**self.env, **(env or {})}
        if not overrides:
            return None
        merged = {**os.environ, **overrides}
        return {key: value for key, value in merged.items() if value is not None}

    async def run(
        self,
        command: Sequence[str],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str | None] | None = None,
    ) -> str:
        """Run *command* and return its stdout.

        ``env`` only affects the child process; ``os.environ`` is never modified.

        Raises:
            ExternalCommandFailure: On a non-zero exit or a missing executable.
        """
        display = format_command(command)
        if not command:
            raise ExternalCommandFailure(display, _NOT_FOUND_EXIT_CODE, "empty command")

        executable = shutil.which(command[0]) or command[0]
        workdir = cwd or self.cwd
        logger.debug("Running %s (cwd=%s)", display, workdir or Path.cwd())

        try:
            process = await asyncio.create_subprocess_exec(
                executable,
                *command[1:],
                cwd=str(workdir) if workdir else None,
                env=self._child_env(env),
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError:
            raise ExternalCommandFailure(
                display,
                _NOT_FOUND_EXIT_CODE,
                f"{command[0]}: executable not found on PATH",
            ) from None
        except PermissionError as exc:
            raise ExternalCommandFailure(display, 126, str(exc)) from exc

        stdout, stderr = await process.communicate()
        output = stdout.decode("utf-8", errors="surrogateescape")
        if process.returncode != 0:
            logger.debug("%s exited with code %s", display, process.returncode)
            raise ExternalCommandFailure(
                display,
                process.returncode,
                stderr.decode("utf-8", errors="replace"),
            )
        return output
