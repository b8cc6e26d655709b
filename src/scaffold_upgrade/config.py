"""Project-scoped upgrade configuration in .scaffold-upgrade.yaml."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from scaffold_upgrade import versions
from scaffold_upgrade.errors import ConfigError

CONFIG_FILENAME = ".scaffold-upgrade.yaml"

PACKAGE_MANAGERS = ("npm", "yarn", "pnpm")

DEFAULT_GENERATOR_COMMAND = (
    "npx",
    "--no-install",
    "{framework}",
    "generate",
    "{app_name}",
    "--upgrade",
)

ENV_OVERRIDES = {
    "SCAFFOLD_UPGRADE_FRAMEWORK": "framework",
    "SCAFFOLD_UPGRADE_PACKAGE_MANAGER": "package_manager",
    "SCAFFOLD_UPGRADE_GIT": "git",
}

__all__ = [
    "CONFIG_FILENAME",
    "DEFAULT_GENERATOR_COMMAND",
    "PACKAGE_MANAGERS",
    "UpgradeConfig",
    "load_config",
]


def _require_str(data: dict[str, object], key: str, default: str) -> str:
    value = data.get(key, default)
    if value is None:
        return default
    # Unquoted YAML scalars such as 0.21 arrive as floats.
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        value = str(value)
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(f"'{key}' must be a non-empty string in {CONFIG_FILENAME}")
    return value.strip()


@dataclass(slots=True)
class UpgradeConfig:
    """Settings for one upgrade run."""

    framework: str = "react-native"
    peer_dependency: str = "react"
    peer_dependency_since: str = "0.21.0"
    package_manager: str = "npm"
    git: str = "git"
    generator: str | list[str] = field(default_factory=lambda: list(DEFAULT_GENERATOR_COMMAND))

    def __post_init__(self) -> None:
        if self.package_manager not in PACKAGE_MANAGERS:
            raise ConfigError(
                f"Unknown package manager '{self.package_manager}'. "
                f"Expected one of: {', '.join(PACKAGE_MANAGERS)}"
            )
        if not versions.is_valid(self.peer_dependency_since):
            raise ConfigError(
                f"'peer_dependency_since' must be a semantic version, got '{self.peer_dependency_since}'"
            )
        if isinstance(self.generator, str):
            if ":" not in self.generator:
                raise ConfigError(
                    "'generator' must be a command list or a 'module:attribute' import path"
                )
        elif not self.generator or not all(isinstance(part, str) for part in self.generator):
            raise ConfigError("'generator' command must be a non-empty list of strings")

    def to_dict(self) -> dict[str, object]:
        return {
            "framework": self.framework,
            "peer_dependency": self.peer_dependency,
            "peer_dependency_since": self.peer_dependency_since,
            "package_manager": self.package_manager,
            "git": self.git,
            "generator": self.generator if isinstance(self.generator, str) else list(self.generator),
        }

    @classmethod
    def from_dict(cls, data: dict[str, object] | None) -> "UpgradeConfig":
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping")

        defaults = cls()
        generator = data.get("generator", defaults.generator)
        if not isinstance(generator, str):
            if not isinstance(generator, list):
                raise ConfigError("'generator' must be a command list or a 'module:attribute' import path")
            generator = [str(part) for part in generator]

        return cls(
            framework=_require_str(data, "framework", defaults.framework),
            peer_dependency=_require_str(data, "peer_dependency", defaults.peer_dependency),
            peer_dependency_since=_require_str(
                data, "peer_dependency_since", defaults.peer_dependency_since
            ),
            package_manager=_require_str(data, "package_manager", defaults.package_manager),
            git=_require_str(data, "git", defaults.git),
            generator=generator,
        )


def load_config(project_dir: Path, environ: dict[str, str] | None = None) -> UpgradeConfig:
    """Load configuration for *project_dir*, applying environment overrides.

    Raises:
        ConfigError: If the file cannot be parsed or contains invalid values.
    """
    config_path = project_dir / CONFIG_FILENAME
    data: dict[str, object] = {}
    if config_path.exists():
        yaml = YAML(typ="safe")
        try:
            loaded = yaml.load(config_path.read_text(encoding="utf-8"))
        except (OSError, YAMLError) as exc:
            raise ConfigError(f"Could not read {config_path}: {exc}") from exc
        if loaded is not None:
            if not isinstance(loaded, dict):
                raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping")
            data = dict(loaded)

    env = os.environ if environ is None else environ
    for variable, key in ENV_OVERRIDES.items():
        value = env.get(variable, "").strip()
        if value:
            data[key] = value

    return UpgradeConfig.from_dict(data)
