"""UpgradeContext and manifest loading."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path

from scaffold_upgrade import versions
from scaffold_upgrade.config import UpgradeConfig
from scaffold_upgrade.errors import ContextError, ManifestError, MissingInstalledPackage

__all__ = ["UpgradeContext", "load_context", "read_manifest"]


@dataclass
class UpgradeContext:
    """State threaded through one upgrade run.

    ``new_version`` and ``temp_repository_dir`` can each be assigned once.
    """

    app_name: str
    current_version: str
    declared_version: str | None
    declared_peer_version: str | None = None
    cli_version: str | None = None
    cli_args: list[str] = field(default_factory=list)
    project_dir: Path = field(default_factory=Path.cwd)
    _new_version: str | None = field(default=None, init=False, repr=False)
    _temp_repository_dir: Path | None = field(default=None, init=False, repr=False)

    @property
    def new_version(self) -> str | None:
        return self._new_version

    @new_version.setter
    def new_version(self, value: str) -> None:
        if self._new_version is not None:
            raise ContextError(f"new_version is already set to {self._new_version}")
        if not value or not versions.is_valid(value):
            raise ContextError(f"new_version must be a valid semantic version, got {value!r}")
        self._new_version = value

    @property
    def temp_repository_dir(self) -> Path | None:
        return self._temp_repository_dir

    @temp_repository_dir.setter
    def temp_repository_dir(self, value: Path) -> None:
        if self._temp_repository_dir is not None:
            raise ContextError(
                f"temp_repository_dir is already set to {self._temp_repository_dir}"
            )
        self._temp_repository_dir = Path(value).resolve()


def read_manifest(path: Path) -> dict[str, object]:
    """Read a package.json file.

    Raises:
        ManifestError: If the file is missing, unreadable, or not a JSON object.
    """
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise ManifestError(f"Could not find '{path}'.") from exc
    except (OSError, json.JSONDecodeError) as exc:
        raise ManifestError(f"Could not parse '{path}': {exc}") from exc
    if not isinstance(data, dict):
        raise ManifestError(f"'{path}' must contain a JSON object.")
    return data


def _dependency(manifest: dict[str, object], name: str) -> str | None:
    dependencies = manifest.get("dependencies")
    if not isinstance(dependencies, dict):
        return None
    value = dependencies.get(name)
    return value if isinstance(value, str) and value.strip() else None


def load_context(
    project_dir: Path,
    config: UpgradeConfig,
    args: list[str] | None = None,
) -> UpgradeContext:
    """Build the context from ``package.json`` and the installed framework manifest."""
    project_dir = project_dir.resolve()
    installed_path = project_dir / "node_modules" / config.framework / "package.json"
    if not installed_path.exists():
        raise MissingInstalledPackage(config.framework)

    installed = read_manifest(installed_path)
    project = read_manifest(project_dir / "package.json")

    current_version = installed.get("version")
    if not isinstance(current_version, str) or not versions.is_valid(current_version):
        raise ManifestError(
            f"Installed {config.framework} reports an invalid version: {current_version!r}"
        )

    name = project.get("name")
    if not isinstance(name, str) or not name.strip():
        raise ManifestError("Your 'package.json' file doesn't have a 'name'.")

    cli_args = list(args or [])
    return UpgradeContext(
        app_name=name,
        current_version=versions.clean(current_version) or current_version,
        declared_version=_dependency(project, config.framework),
        declared_peer_version=_dependency(project, config.peer_dependency),
        cli_version=cli_args[0] if cli_args else None,
        cli_args=cli_args,
        project_dir=project_dir,
    )
