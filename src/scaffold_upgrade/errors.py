"""Error taxonomy for the scaffold-upgrade pipeline.

Every failure that aborts an upgrade run derives from :class:`UpgradeError`.
Each subclass carries a stable ``error_code`` used by ``--json`` output.
"""

from __future__ import annotations

__all__ = [
    "UpgradeError",
    "ConfigError",
    "ContextError",
    "ManifestError",
    "MissingInstalledPackage",
    "MissingDependencyDeclaration",
    "VersionMismatch",
    "MissingPeerDependency",
    "InvalidVersionRequested",
    "RegistryResponseError",
    "ExternalCommandFailure",
]


class UpgradeError(RuntimeError):
    """Base class for all upgrade failures."""

    error_code = "UPGRADE_FAILED"

    def to_dict(self) -> dict[str, object]:
        return {"error_code": self.error_code, "error": str(self)}


class ConfigError(UpgradeError):
    """Raised when .scaffold-upgrade.yaml or an override is invalid."""

    error_code = "INVALID_CONFIG"


class ContextError(UpgradeError):
    """Raised when a set-once context field is assigned twice or with a bad value."""

    error_code = "INVALID_CONTEXT"


class ManifestError(UpgradeError):
    """Raised when a package manifest cannot be read or parsed."""

    error_code = "INVALID_MANIFEST"


class MissingInstalledPackage(ManifestError):
    """The framework package is not installed in node_modules."""

    error_code = "FRAMEWORK_NOT_INSTALLED"

    def __init__(self, framework: str) -> None:
        self.framework = framework
        super().__init__(
            f"'{framework}' is not installed in 'node_modules'.\n"
            "Run 'npm install' before upgrading."
        )


class MissingDependencyDeclaration(UpgradeError):
    error_code = "MISSING_DEPENDENCY_DECLARATION"

    def __init__(self, framework: str) -> None:
        self.framework = framework
        super().__init__(
            f"Your 'package.json' file doesn't seem to have '{framework}' as a dependency."
        )


class VersionMismatch(UpgradeError):
    error_code = "VERSION_MISMATCH"

    def __init__(self, framework: str, installed: str, declared: str) -> None:
        self.framework = framework
        self.installed = installed
        self.declared = declared
        super().__init__(
            f"{framework} version in 'package.json' ({declared}) doesn't match "
            f"the installed version in 'node_modules' ({installed}).\n"
            "Try running 'npm install' to fix the issue."
        )


class MissingPeerDependency(UpgradeError):
    error_code = "MISSING_PEER_DEPENDENCY"

    def __init__(self, framework: str, peer: str, since: str) -> None:
        self.framework = framework
        self.peer = peer
        self.since = since
        super().__init__(
            f"Your 'package.json' file doesn't seem to have '{peer}' as a dependency.\n"
            f"'{peer}' was changed from a dependency to a peer dependency in {framework} v{since}.\n"
            f"Therefore, it's necessary to include '{peer}' in your project's dependencies.\n"
            f"Just run 'npm install --save {peer}', then re-run the upgrade."
        )


class InvalidVersionRequested(UpgradeError):
    error_code = "INVALID_VERSION_REQUESTED"

    def __init__(self, requested: str) -> None:
        self.requested = requested
        super().__init__(
            f"The specified version {requested} doesn't exist.\n"
            "Re-run the upgrade command with an existing version,\n"
            "or without argument to upgrade to the latest."
        )


class RegistryResponseError(UpgradeError):
    """The registry returned no usable version for the latest release."""

    error_code = "REGISTRY_RESPONSE_INVALID"

    def __init__(self, package: str, output: str) -> None:
        self.package = package
        self.output = output
        shown = output.strip() or "<empty>"
        super().__init__(
            f"Could not determine the latest version of '{package}' "
            f"from the registry (got: {shown})."
        )


class ExternalCommandFailure(UpgradeError):
    """An external process exited with a non-zero status."""

    error_code = "EXTERNAL_COMMAND_FAILED"

    def __init__(self, command: str, exit_code: int, stderr: str = "") -> None:
        self.command = command
        self.exit_code = exit_code
        self.stderr = stderr
        message = f"Command '{command}' exited with code {exit_code}"
        detail = stderr.strip()
        if detail:
            message = f"{message}\n{detail}"
        super().__init__(message)

    def to_dict(self) -> dict[str, object]:
        payload = super().to_dict()
        payload["command"] = self.command
        payload["exit_code"] = self.exit_code
        return payload
