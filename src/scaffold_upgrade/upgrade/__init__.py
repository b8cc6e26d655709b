"""Template upgrade pipeline: version checks, isolated snapshots, upgrade diff."""

from __future__ import annotations

from .context import UpgradeContext, load_context
from .generator import CommandGenerator, TemplateGenerator, load_generator
from .git_env import GitEnvironment, configure_git_env
from .orchestrator import UpgradeOutcome, run_upgrade
from .registry import PackageRegistry
from .resolver import resolve_new_version, validate_context
from .snapshot import SnapshotDiffEngine

__all__ = [
    "UpgradeContext",
    "load_context",
    "CommandGenerator",
    "TemplateGenerator",
    "load_generator",
    "GitEnvironment",
    "configure_git_env",
    "UpgradeOutcome",
    "run_upgrade",
    "PackageRegistry",
    "resolve_new_version",
    "validate_context",
    "SnapshotDiffEngine",
]
