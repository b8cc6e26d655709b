"""End-to-end upgrade against the real git binary.

The package manager and the template generator are replaced by in-process
fakes; every snapshot is recorded by git in an isolated directory.
"""

from __future__ import annotations

import json
import shutil
import subprocess
from collections.abc import Sequence
from pathlib import Path

import pytest

from scaffold_upgrade.config import UpgradeConfig
from scaffold_upgrade.errors import ExternalCommandFailure
from scaffold_upgrade.process import ProcessExecutor, encode_output
from scaffold_upgrade.upgrade.context import load_context
from scaffold_upgrade.upgrade.orchestrator import run_upgrade
from scaffold_upgrade.upgrade.registry import PackageRegistry
from tests.helpers import write_project

pytestmark = [
    pytest.mark.integration,
    pytest.mark.skipif(shutil.which("git") is None, reason="git is not installed"),
]

TEMPLATES: dict[str, dict[str, str | bytes]] = {
    "0.25.0": {
        ".gitignore": "node_modules/\n",
        "App.js": "export default function App() { return null; }\n",
        "ios/Info.plist": "<key>Version</key>\n<string>0.25.0</string>\n",
        "android/gradle.properties": "label=Caf\xe9 0.25.0\n".encode("latin-1"),
    },
    "0.26.0": {
        ".gitignore": "node_modules/\n",
        "App.js": "export default function App() { return null; }\n",
        "ios/Info.plist": "<key>Version</key>\n<string>0.26.0</string>\n",
        "android/gradle.properties": "label=Caf\xe9 0.26.0\n".encode("latin-1"),
        "android/build.gradle": "buildToolsVersion '23.0.1'\n",
    },
}


def _write_templates(root: Path, version: str) -> None:
    for relative, content in TEMPLATES[version].items():
        target = root / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            target.write_bytes(content)
        else:
            target.write_text(content, encoding="utf-8")


class TemplateWriter:
    """Writes the fixed template set for a version into the project."""

    def __init__(self, project_dir: Path) -> None:
        self.project_dir = project_dir

    async def generate(self, version: str, app_name: str, extra_args: Sequence[str]) -> None:
        _write_templates(self.project_dir, version)


class FakeRegistry(PackageRegistry):
    """Answers from a fixed version and "installs" by rewriting node_modules."""

    def __init__(self, executor: ProcessExecutor, project_dir: Path, latest: str, fail_install: bool = False):
        super().__init__(executor, "react-native")
        self.project_dir = project_dir
        self.latest = latest
        self.fail_install = fail_install

    async def query_version(self, requested: str | None) -> str:
        return f"{requested or self.latest}\n"

    async def install(self, version: str) -> None:
        if self.fail_install:
            raise ExternalCommandFailure(f"npm install react-native@{version}", 1, "E404")
        manifest = self.project_dir / "node_modules" / "react-native" / "package.json"
        manifest.write_text(json.dumps({"name": "react-native", "version": version}), encoding="utf-8")


def _git(args: list[str], cwd: Path) -> str:
    return subprocess.run(
        ["git", "-c", "user.name=Test", "-c", "user.email=test@example.com", *args],
        cwd=cwd,
        capture_output=True,
        text=True,
        check=True,
    ).stdout


@pytest.fixture()
def customised_project(tmp_path: Path) -> Path:
    project = tmp_path / "DemoApp"
    project.mkdir()
    write_project(project, installed="0.25.0", declared="^0.25.0", peer="15.0.2")
    _write_templates(project, "0.25.0")

    # User edits on top of the 0.25.0 templates.
    (project / "App.js").write_text("export default function App() { return 'custom'; }\n", encoding="utf-8")
    (project / "src").mkdir()
    (project / "src" / "screen.js").write_text("// user code\n", encoding="utf-8")

    _git(["init", "--quiet"], project)
    _git(["add", "."], project)
    _git(["commit", "--quiet", "-m", "user history"], project)
    return project


@pytest.mark.asyncio
async def test_diff_contains_only_template_changes(customised_project: Path, tmp_path: Path) -> None:
    executor = ProcessExecutor(cwd=customised_project)
    context = load_context(customised_project, UpgradeConfig())

    outcome = await run_upgrade(
        context,
        UpgradeConfig(),
        executor=executor,
        generator=TemplateWriter(customised_project),
        registry=FakeRegistry(executor, customised_project, latest="0.26.0"),
        repository_base=tmp_path,
    )

    assert outcome.to_version == "0.26.0"
    assert "ios/Info.plist" in outcome.diff
    assert "+<string>0.26.0</string>" in outcome.diff
    assert "-<string>0.25.0</string>" in outcome.diff
    assert "android/build.gradle" in outcome.diff
    assert "App.js" not in outcome.diff
    assert "screen.js" not in outcome.diff
    assert "node_modules" not in outcome.diff


@pytest.mark.asyncio
async def test_snapshots_live_outside_user_repository(customised_project: Path, tmp_path: Path) -> None:
    executor = ProcessExecutor(cwd=customised_project)
    context = load_context(customised_project, UpgradeConfig())

    outcome = await run_upgrade(
        context,
        UpgradeConfig(),
        executor=executor,
        generator=TemplateWriter(customised_project),
        registry=FakeRegistry(executor, customised_project, latest="0.26.0"),
        repository_base=tmp_path,
    )

    snapshot_log = _git(["--git-dir", str(outcome.repository_dir), "log", "--format=%s"], tmp_path)
    assert snapshot_log.splitlines() == ["New version", "Old version", "Project snapshot"]

    user_log = _git(["log", "--format=%s"], customised_project)
    assert user_log.splitlines() == ["user history"]


@pytest.mark.asyncio
async def test_install_failure_leaves_partial_snapshots(customised_project: Path, tmp_path: Path) -> None:
    executor = ProcessExecutor(cwd=customised_project)
    context = load_context(customised_project, UpgradeConfig())
    written: list[str] = []

    class RecordingWriter(TemplateWriter):
        async def generate(self, version, app_name, extra_args):
            written.append(version)
            await super().generate(version, app_name, extra_args)

    with pytest.raises(ExternalCommandFailure):
        await run_upgrade(
            context,
            UpgradeConfig(),
            executor=executor,
            generator=RecordingWriter(customised_project),
            registry=FakeRegistry(executor, customised_project, latest="0.26.0", fail_install=True),
            repository_base=tmp_path,
        )

    assert written == ["0.25.0"]
    assert context.temp_repository_dir is not None
    snapshot_log = _git(["--git-dir", str(context.temp_repository_dir), "log", "--format=%s"], tmp_path)
    assert snapshot_log.splitlines() == ["Old version", "Project snapshot"]


@pytest.mark.asyncio
async def test_non_utf8_template_bytes_survive_in_diff(customised_project: Path, tmp_path: Path) -> None:
    executor = ProcessExecutor(cwd=customised_project)
    context = load_context(customised_project, UpgradeConfig())

    outcome = await run_upgrade(
        context,
        UpgradeConfig(),
        executor=executor,
        generator=TemplateWriter(customised_project),
        registry=FakeRegistry(executor, customised_project, latest="0.26.0"),
        repository_base=tmp_path,
    )

    patch = encode_output(outcome.diff)
    assert b"-label=Caf\xe9 0.25.0\n" in patch
    assert b"+label=Caf\xe9 0.26.0\n" in patch


@pytest.mark.asyncio
async def test_inherited_git_variables_do_not_touch_user_repository(
    customised_project: Path, tmp_path: Path, monkeypatch
) -> None:
    user_git = customised_project / ".git"
    user_index = user_git / "index"
    index_before = user_index.read_bytes()
    objects_before = sorted(p.name for p in (user_git / "objects").rglob("*") if p.is_file())
    # What git exports to a hook or a `git rebase -x` command.
    monkeypatch.setenv("GIT_INDEX_FILE", str(user_index))
    monkeypatch.setenv("GIT_OBJECT_DIRECTORY", str(user_git / "objects"))

    executor = ProcessExecutor(cwd=customised_project)
    context = load_context(customised_project, UpgradeConfig())
    outcome = await run_upgrade(
        context,
        UpgradeConfig(),
        executor=executor,
        generator=TemplateWriter(customised_project),
        registry=FakeRegistry(executor, customised_project, latest="0.26.0"),
        repository_base=tmp_path,
    )

    assert "ios/Info.plist" in outcome.diff
    assert user_index.read_bytes() == index_before
    assert sorted(p.name for p in (user_git / "objects").rglob("*") if p.is_file()) == objects_before
    assert (outcome.repository_dir / "index").is_file()
