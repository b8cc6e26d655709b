"""Fakes and project builders shared by the scaffold-upgrade tests."""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from pathlib import Path

from scaffold_upgrade.errors import ExternalCommandFailure
from scaffold_upgrade.process import format_command


def write_project(
    root: Path,
    *,
    name: str = "DemoApp",
    installed: str | None = "0.25.0",
    declared: str | None = "^0.25.0",
    peer: str | None = "15.0.2",
    framework: str = "react-native",
) -> Path:
    """Write package.json and node_modules/<framework>/package.json under *root*."""
    dependencies: dict[str, str] = {}
    if declared is not None:
        dependencies[framework] = declared
    if peer is not None:
        dependencies["react"] = peer
    (root / "package.json").write_text(
        json.dumps({"name": name, "version": "0.0.1", "dependencies": dependencies}),
        encoding="utf-8",
    )
    if installed is not None:
        installed_dir = root / "node_modules" / framework
        installed_dir.mkdir(parents=True, exist_ok=True)
        (installed_dir / "package.json").write_text(
            json.dumps({"name": framework, "version": installed}),
            encoding="utf-8",
        )
    return root


class RecordingExecutor:
    """Fake ProcessExecutor that records commands and replays scripted results.

    ``outputs`` maps a command prefix (space-joined) to stdout.
    ``fail_on`` maps a command prefix to an exit code to raise with.
    """

    def __init__(
        self,
        outputs: Mapping[str, str] | None = None,
        fail_on: Mapping[str, int] | None = None,
    ) -> None:
        self.outputs = dict(outputs or {})
        self.fail_on = dict(fail_on or {})
        self.calls: list[tuple[list[str], dict[str, str | None]]] = []

    @property
    def commands(self) -> list[str]:
        return [" ".join(command) for command, _ in self.calls]

    async def run(
        self,
        command: Sequence[str],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str | None] | None = None,
    ) -> str:
        joined = " ".join(command)
        self.calls.append((list(command), dict(env or {})))
        for prefix, code in self.fail_on.items():
            if joined.startswith(prefix):
                raise ExternalCommandFailure(format_command(command), code, "scripted failure")
        for prefix, output in self.outputs.items():
            if joined.startswith(prefix):
                return output
        return ""


class RecordingGenerator:
    def __init__(self, executor: RecordingExecutor | None = None, fail: bool = False) -> None:
        self.executor = executor
        self.fail = fail
        self.calls: list[tuple[str, str, list[str]]] = []

    async def generate(self, version: str, app_name: str, extra_args: Sequence[str]) -> None:
        self.calls.append((version, app_name, list(extra_args)))
        if self.executor is not None:
            # Interleave with executor calls so ordering can be asserted.
            self.executor.calls.append((["<generate>", version], {}))
        if self.fail:
            raise ExternalCommandFailure(f"generate {version}", 1, "generator crashed")
