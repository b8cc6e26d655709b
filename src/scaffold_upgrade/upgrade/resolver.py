"""Version precondition checks and target version resolution."""

from __future__ import annotations

import logging
import re

from scaffold_upgrade import versions
from scaffold_upgrade.config import UpgradeConfig
from scaffold_upgrade.errors import (
    InvalidVersionRequested,
    MissingDependencyDeclaration,
    MissingPeerDependency,
    RegistryResponseError,
    VersionMismatch,
)
from scaffold_upgrade.upgrade.context import UpgradeContext

logger = logging.getLogger(__name__)

__all__ = [
    "PEER_DEPENDENCY_SINCE",
    "check_declared_version",
    "check_matching_versions",
    "check_peer_dependency",
    "validate_context",
    "resolve_new_version",
]

PEER_DEPENDENCY_SINCE = "0.21.0"

# `npm view pkg@range version` prints one "pkg@x.y.z 'x.y.z'" line per match.
_QUOTED_VERSION_RE = re.compile(r"'([^']+)'\s*$")


def check_declared_version(context: UpgradeContext, framework: str = "react-native") -> None:
    if not context.declared_version:
        raise MissingDependencyDeclaration(framework)


def check_matching_versions(context: UpgradeContext, framework: str = "react-native") -> None:
    if not versions.satisfies(context.current_version, context.declared_version or ""):
        raise VersionMismatch(framework, context.current_version, context.declared_version or "")


def check_peer_dependency(
    context: UpgradeContext,
    *,
    framework: str = "react-native",
    peer: str = "react",
    since: str = PEER_DEPENDENCY_SINCE,
) -> None:
    """Require an explicit peer dependency for projects still on a version before *since*."""
    if versions.lt(context.current_version, since) and not context.declared_peer_version:
        raise MissingPeerDependency(framework, peer, since)


def validate_context(context: UpgradeContext, config: UpgradeConfig) -> None:
    """Run the precondition checks in order; the first failure is raised."""
    check_declared_version(context, config.framework)
    check_matching_versions(context, config.framework)
    check_peer_dependency(
        context,
        framework=config.framework,
        peer=config.peer_dependency,
        since=config.peer_dependency_since,
    )
    logger.info(
        "Preconditions passed for %s %s (declared %s)",
        config.framework,
        context.current_version,
        context.declared_version,
    )


def _last_reported_version(output: str) -> str:
    lines = [line.strip() for line in output.splitlines() if line.strip()]
    if not lines:
        return ""
    last = lines[-1]
    match = _QUOTED_VERSION_RE.search(last)
    return match.group(1) if match else last


def resolve_new_version(
    registry_output: str,
    cli_version: str | None,
    package: str = "react-native",
) -> str:
    """Return the canonical target version from raw registry output.

    Raises:
        InvalidVersionRequested: If the user asked for a version that did not resolve.
        RegistryResponseError: If no version was requested and the registry
            answer for "latest" is unusable.
    """
    new_version = versions.clean(_last_reported_version(registry_output))
    if new_version is None:
        if cli_version:
            raise InvalidVersionRequested(cli_version)
        raise RegistryResponseError(package, registry_output)
    return new_version
