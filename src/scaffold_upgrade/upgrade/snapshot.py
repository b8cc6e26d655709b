"""Three-snapshot workflow that isolates template changes from user changes.

Steps, in order, all against the isolated git directory:

1. ``git init``
2. commit the untouched project ("Project snapshot")
3. regenerate templates for the installed (old) version, commit ("Old version")
4. install the new framework version
5. regenerate templates for the new version, commit ("New version")
6. ``git diff HEAD~1 HEAD``

Replaying the old generator first folds any drift between the user's tree and
the old templates into the "Old version" snapshot, so the final diff only
carries changes between the two template versions. The first failure aborts
the run; nothing is rolled back.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from scaffold_upgrade.process import ProcessExecutor
from scaffold_upgrade.upgrade.context import UpgradeContext
from scaffold_upgrade.upgrade.generator import TemplateGenerator
from scaffold_upgrade.upgrade.git_env import GitEnvironment
from scaffold_upgrade.upgrade.registry import PackageRegistry

logger = logging.getLogger(__name__)

__all__ = ["SNAPSHOT_MESSAGES", "PIPELINE_STEPS", "StepCallback", "SnapshotDiffEngine"]

SNAPSHOT_MESSAGES = ("Project snapshot", "Old version", "New version")

PIPELINE_STEPS: tuple[tuple[str, str], ...] = (
    ("init", "Initialize snapshot repository"),
    ("snapshot", "Commit project snapshot"),
    ("generate-old", "Generate templates for current version"),
    ("commit-old", "Commit old version"),
    ("install", "Install new version"),
    ("generate-new", "Generate templates for new version"),
    ("commit-new", "Commit new version"),
    ("diff", "Compute upgrade diff"),
)

# (step key, status, detail); status is "running", "done" or "error".
StepCallback = Callable[[str, str, str], None]

T = TypeVar("T")


class SnapshotDiffEngine:
    """Drive the generate/commit rounds and return the final diff."""

    def __init__(
        self,
        executor: ProcessExecutor,
        generator: TemplateGenerator,
        registry: PackageRegistry,
        git_env: GitEnvironment,
        *,
        git: str = "git",
        on_step: StepCallback | None = None,
    ) -> None:
        self.executor = executor
        self.generator = generator
        self.registry = registry
        self.git_env = git_env
        self.git = git
        self.on_step = on_step

    def _notify(self, key: str, status: str, detail: str = "") -> None:
        if self.on_step:
            self.on_step(key, status, detail)

    async def _step(self, key: str, action: Callable[[], Awaitable[T]], detail: str = "") -> T:
        self._notify(key, "running", detail)
        try:
            result = await action()
        except Exception as exc:
            self._notify(key, "error", str(exc).splitlines()[0] if str(exc) else type(exc).__name__)
            raise
        self._notify(key, "done", detail)
        return result

    async def _run_git(self, *args: str) -> str:
        return await self.executor.run(
            [self.git, *args],
            cwd=self.git_env.work_tree,
            env=self.git_env.env(),
        )

    async def _commit(self, message: str) -> None:
        await self._run_git("add", "--all", ".")
        await self._run_git("commit", "--quiet", "--no-verify", "--allow-empty", "-m", message)
        logger.info("Committed snapshot '%s'", message)

    async def run(self, context: UpgradeContext) -> str:
        """Run the snapshot workflow and return ``git diff HEAD~1 HEAD``."""
        if context.new_version is None:
            raise ValueError("new_version must be resolved before taking snapshots")
        new_version = context.new_version
        project_snapshot, old_message, new_message = SNAPSHOT_MESSAGES

        await self._step("init", lambda: self._run_git("init", "--quiet"))
        await self._step("snapshot", lambda: self._commit(project_snapshot))
        await self._step(
            "generate-old",
            lambda: self.generator.generate(context.current_version, context.app_name, context.cli_args),
            context.current_version,
        )
        await self._step("commit-old", lambda: self._commit(old_message))
        await self._step("install", lambda: self.registry.install(new_version), new_version)
        await self._step(
            "generate-new",
            lambda: self.generator.generate(new_version, context.app_name, context.cli_args),
            new_version,
        )
        await self._step("commit-new", lambda: self._commit(new_message))
        return await self._step(
            "diff",
            lambda: self._run_git("diff", "--no-color", "--no-ext-diff", "HEAD~1", "HEAD"),
        )
