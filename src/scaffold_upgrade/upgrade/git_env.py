"""Isolated git environment for snapshot commits.

Snapshots are recorded in a private git directory under the system temp
location, with the project directory as work tree. The project's own
``.git`` (if any) is never read or written. The directory is left in place
after the run so the snapshots can be inspected.
"""

from __future__ import annotations

import logging
import tempfile
from dataclasses import dataclass
from pathlib import Path

from scaffold_upgrade.upgrade.context import UpgradeContext

logger = logging.getLogger(__name__)

__all__ = ["GitEnvironment", "INHERITED_REPOSITORY_VARIABLES", "SNAPSHOT_IDENTITY", "configure_git_env"]

SNAPSHOT_IDENTITY = ("scaffold-upgrade", "scaffold-upgrade@localhost")

# Set by git for hooks and `git rebase -x`; each still points at the user's repository.
INHERITED_REPOSITORY_VARIABLES = (
    "GIT_OBJECT_DIRECTORY",
    "GIT_ALTERNATE_OBJECT_DIRECTORIES",
    "GIT_COMMON_DIR",
    "GIT_NAMESPACE",
    "GIT_QUARANTINE_PATH",
    "GIT_SHALLOW_FILE",
    "GIT_GRAFT_FILE",
    "GIT_REPLACE_REF_BASE",
)


@dataclass(frozen=True)
class GitEnvironment:
    """Metadata directory and work tree passed to every snapshot git command."""

    git_dir: Path
    work_tree: Path

    def env(self) -> dict[str, str | None]:
        """Child environment overrides; ``None`` drops an inherited variable."""
        name, email = SNAPSHOT_IDENTITY
        env: dict[str, str | None] = dict.fromkeys(INHERITED_REPOSITORY_VARIABLES)
        env.update({
            "GIT_DIR": str(self.git_dir),
            "GIT_WORK_TREE": str(self.work_tree),
            "GIT_INDEX_FILE": str(self.git_dir / "index"),
            "GIT_AUTHOR_NAME": name,
            "GIT_AUTHOR_EMAIL": email,
            "GIT_COMMITTER_NAME": name,
            "GIT_COMMITTER_EMAIL": email,
            # Snapshot commits are never signed, whatever the user's global config says.
            "GIT_CONFIG_COUNT": "1",
            "GIT_CONFIG_KEY_0": "commit.gpgsign",
            "GIT_CONFIG_VALUE_0": "false",
        })
        return env


def configure_git_env(context: UpgradeContext, base_dir: Path | None = None) -> GitEnvironment:
    """Create the private git directory once and record it on *context*.

    Calling again for the same context returns the existing environment.
    """
    if context.temp_repository_dir is None:
        git_dir = tempfile.mkdtemp(prefix="scaffold-upgrade-", suffix=".git", dir=base_dir)
        context.temp_repository_dir = Path(git_dir)
        logger.info("Snapshot repository: %s", context.temp_repository_dir)
    return GitEnvironment(git_dir=context.temp_repository_dir, work_tree=context.project_dir)
