"""Template generator interface.

The pipeline only needs ``generate(version, app_name, extra_args)`` to finish
(or raise) before the next snapshot. Two sources are supported:

- a command list with ``{framework}``, ``{version}`` and ``{app_name}``
  placeholders, run through the process executor in the project directory
- a ``module:attribute`` import path naming a generator object, or a
  factory called with ``(config, executor)`` that returns one
"""

from __future__ import annotations

import importlib
import inspect
import logging
from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from scaffold_upgrade.config import UpgradeConfig
from scaffold_upgrade.errors import ConfigError
from scaffold_upgrade.process import ProcessExecutor

logger = logging.getLogger(__name__)

__all__ = ["TemplateGenerator", "CommandGenerator", "load_generator"]


@runtime_checkable
class TemplateGenerator(Protocol):
    async def generate(self, version: str, app_name: str, extra_args: Sequence[str]) -> None:
        """Write template files for *version* into the project directory."""
        ...


class CommandGenerator:
    """Run the generator as an external command."""

    def __init__(self, command: Sequence[str], executor: ProcessExecutor, framework: str) -> None:
        self.command = list(command)
        self.executor = executor
        self.framework = framework

    def build_command(self, version: str, app_name: str, extra_args: Sequence[str]) -> list[str]:
        values = {"framework": self.framework, "version": version, "app_name": app_name}
        try:
            rendered = [part.format(**values) for part in self.command]
        except (KeyError, IndexError, ValueError) as exc:
            raise ConfigError(f"Invalid placeholder in generator command: {exc}") from exc
        return [*rendered, *extra_args]

    async def generate(self, version: str, app_name: str, extra_args: Sequence[str]) -> None:
        logger.info("Generating %s templates for %s", version, app_name)
        await self.executor.run(self.build_command(version, app_name, extra_args))


def _import_generator(path: str, config: UpgradeConfig, executor: ProcessExecutor) -> TemplateGenerator:
    module_name, _, attribute = path.partition(":")
    try:
        module = importlib.import_module(module_name)
        target = getattr(module, attribute)
    except (ImportError, AttributeError) as exc:
        raise ConfigError(f"Could not import generator '{path}': {exc}") from exc

    if inspect.isclass(target) or not isinstance(target, TemplateGenerator):
        if not callable(target):
            raise ConfigError(f"Generator '{path}' is neither a generator nor a factory")
        target = target(config, executor)

    if not isinstance(target, TemplateGenerator):
        raise ConfigError(f"Generator '{path}' does not provide an async generate() method")
    return target


def load_generator(config: UpgradeConfig, executor: ProcessExecutor) -> TemplateGenerator:
    """Build the generator described by ``config.generator``."""
    if isinstance(config.generator, str):
        return _import_generator(config.generator, config, executor)
    return CommandGenerator(config.generator, executor, config.framework)
