from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from tests.helpers import RecordingExecutor, RecordingGenerator, write_project


@pytest.fixture()
def project_factory(tmp_path: Path) -> Callable[..., Path]:
    def _factory(**kwargs: object) -> Path:
        root = tmp_path / "project"
        root.mkdir(exist_ok=True)
        return write_project(root, **kwargs)  # type: ignore[arg-type]

    return _factory


@pytest.fixture()
def executor() -> RecordingExecutor:
    return RecordingExecutor(outputs={"npm view": "0.26.0\n", "git diff": "diff --git a/x b/x\n"})


@pytest.fixture()
def generator(executor: RecordingExecutor) -> RecordingGenerator:
    return RecordingGenerator(executor)
