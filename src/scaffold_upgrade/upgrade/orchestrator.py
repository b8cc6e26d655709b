"""End-to-end upgrade pipeline."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from scaffold_upgrade.config import UpgradeConfig
from scaffold_upgrade.errors import UpgradeError
from scaffold_upgrade.process import ProcessExecutor
from scaffold_upgrade.upgrade.context import UpgradeContext
from scaffold_upgrade.upgrade.generator import TemplateGenerator, load_generator
from scaffold_upgrade.upgrade.git_env import configure_git_env
from scaffold_upgrade.upgrade.registry import PackageRegistry
from scaffold_upgrade.upgrade.resolver import resolve_new_version, validate_context
from scaffold_upgrade.upgrade.snapshot import PIPELINE_STEPS, SnapshotDiffEngine, StepCallback

logger = logging.getLogger(__name__)

__all__ = ["UPGRADE_STEPS", "UpgradeOutcome", "run_upgrade"]

UPGRADE_STEPS: tuple[tuple[str, str], ...] = (
    ("checks", "Check installed and declared versions"),
    ("resolve", "Resolve target version"),
    *PIPELINE_STEPS,
)


@dataclass(frozen=True)
class UpgradeOutcome:
    """Result of a successful upgrade run."""

    from_version: str
    to_version: str
    diff: str
    repository_dir: Path

    def to_dict(self) -> dict[str, object]:
        return {
            "status": "success",
            "current_version": self.from_version,
            "target_version": self.to_version,
            "repository": str(self.repository_dir),
            "diff": self.diff,
        }


async def run_upgrade(
    context: UpgradeContext,
    config: UpgradeConfig,
    *,
    executor: ProcessExecutor | None = None,
    generator: TemplateGenerator | None = None,
    registry: PackageRegistry | None = None,
    on_step: StepCallback | None = None,
    repository_base: Path | None = None,
) -> UpgradeOutcome:
    """Validate, resolve the target version, and produce the upgrade diff.

    Steps run strictly in sequence; the first failure propagates as an
    :class:`~scaffold_upgrade.errors.UpgradeError` and nothing after it runs.
    """
    def notify(key: str, status: str, detail: str = "") -> None:
        if on_step:
            on_step(key, status, detail)

    notify("checks", "running")
    try:
        validate_context(context, config)
    except UpgradeError as exc:
        notify("checks", "error", type(exc).__name__)
        raise
    notify("checks", "done", context.current_version)

    executor = executor or ProcessExecutor(cwd=context.project_dir)
    registry = registry or PackageRegistry(executor, config.framework, config.package_manager)
    generator = generator or load_generator(config, executor)

    notify("resolve", "running", context.cli_version or "latest")
    try:
        raw = await registry.query_version(context.cli_version)
        context.new_version = resolve_new_version(raw, context.cli_version, config.framework)
    except UpgradeError as exc:
        notify("resolve", "error", type(exc).__name__)
        raise
    notify("resolve", "done", context.new_version)
    logger.info("Upgrading %s from %s to %s", config.framework, context.current_version, context.new_version)

    git_env = configure_git_env(context, base_dir=repository_base)
    engine = SnapshotDiffEngine(
        executor,
        generator,
        registry,
        git_env,
        git=config.git,
        on_step=on_step,
    )
    diff = await engine.run(context)
    return UpgradeOutcome(
        from_version=context.current_version,
        to_version=context.new_version,
        diff=diff,
        repository_dir=git_env.git_dir,
    )
