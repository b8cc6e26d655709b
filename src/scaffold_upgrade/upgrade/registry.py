"""Package-manager commands used by the upgrade pipeline."""

from __future__ import annotations

import logging

from scaffold_upgrade.process import ProcessExecutor

logger = logging.getLogger(__name__)

__all__ = ["PackageRegistry"]

# (query args, install args) per package manager; "{spec}" is "<package>@<version>".
_COMMANDS: dict[str, tuple[tuple[str, ...], tuple[str, ...]]] = {
    "npm": (("view", "{spec}", "version"), ("install", "{spec}")),
    "yarn": (("info", "{spec}", "version", "--silent"), ("add", "{spec}")),
    "pnpm": (("view", "{spec}", "version"), ("add", "{spec}")),
}


class PackageRegistry:
    """Query and install versions of one package through a package manager."""

    def __init__(self, executor: ProcessExecutor, package: str, manager: str = "npm") -> None:
        if manager not in _COMMANDS:
            raise ValueError(f"Unsupported package manager: {manager}")
        self.executor = executor
        self.package = package
        self.manager = manager

    def _command(self, template: tuple[str, ...], version: str) -> list[str]:
        spec = f"{self.package}@{version}"
        return [self.manager, *(part.format(spec=spec) for part in template)]

    def query_command(self, requested: str | None) -> list[str]:
        return self._command(_COMMANDS[self.manager][0], requested or "latest")

    def install_command(self, version: str) -> list[str]:
        return self._command(_COMMANDS[self.manager][1], version)

    async def query_version(self, requested: str | None) -> str:
        """Return the raw registry answer for *requested* (``latest`` when None)."""
        logger.info("Querying registry for %s@%s", self.package, requested or "latest")
        return await self.executor.run(self.query_command(requested))

    async def install(self, version: str) -> None:
        logger.info("Installing %s@%s with %s", self.package, version, self.manager)
        await self.executor.run(self.install_command(version))
