"""Test doubles and fixtures for pipeline tests.

No test touches a real docker daemon, registry or cluster: every command is
recorded by a FakeExecutor and answered from a table of scripted results.
"""

from collections.abc import Callable, Sequence
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from src.cli.deployment.config import PipelineConfig
from src.cli.deployment.constants import PipelineConstants, PipelinePaths
from src.cli.deployment.shell_commands import CommandResult, ShellCommands
from src.cli.deployment.target import DeploymentTarget, ResolvedTarget, resolve_target

ECR_REPO_URI = "123456789012.dkr.ecr.us-west-2.amazonaws.com/sample-app"

KIND_OVERLAY = """\
replicaCount: 1
image:
  repository: localhost:5001/sample-app
"""

EKS_OVERLAY = """\
replicaCount: 2
image:
  repository: ${ECR_REPO_URI}
  pullPolicy: Always
"""


class FakeExecutor:
    """Records every command and answers with scripted results.

    Results are matched on the longest registered argv prefix; unmatched
    commands succeed with empty output.
    """

    def __init__(self) -> None:
        self.calls: list[list[str]] = []
        self.inputs: list[str | None] = []
        self._responses: dict[tuple[str, ...], CommandResult] = {}
        self._streamed: dict[tuple[str, ...], list[str]] = {}
        self.side_effects: list[Callable[[list[str]], None]] = []

    def respond(
        self,
        prefix: Sequence[str],
        *,
        success: bool = True,
        stdout: str = "",
        stderr: str = "",
        returncode: int | None = None,
        lines: Sequence[str] = (),
    ) -> None:
        """Script the result for commands starting with prefix."""
        code = returncode if returncode is not None else (0 if success else 1)
        self._responses[tuple(prefix)] = CommandResult(
            success=success, stdout=stdout, stderr=stderr, returncode=code
        )
        self._streamed[tuple(prefix)] = list(lines)

    def fail(self, prefix: Sequence[str], output: str = "", returncode: int = 1) -> None:
        self.respond(prefix, success=False, stdout=output, returncode=returncode)

    def _match(self, cmd: list[str]) -> tuple[str, ...] | None:
        best = None
        for prefix in self._responses:
            if tuple(cmd[: len(prefix)]) == prefix and (
                best is None or len(prefix) > len(best)
            ):
                best = prefix
        return best

    def _execute(self, cmd: Sequence[str], input_data: str | None) -> tuple[str, ...] | None:
        argv = list(cmd)
        self.calls.append(argv)
        self.inputs.append(input_data)
        for effect in self.side_effects:
            effect(argv)
        return self._match(argv)

    def run(
        self,
        cmd: Sequence[str],
        *,
        cwd: Path | None = None,
        input_data: str | None = None,
    ) -> CommandResult:
        prefix = self._execute(cmd, input_data)
        if prefix is None:
            return CommandResult(success=True)
        return self._responses[prefix]

    def run_streaming(
        self,
        cmd: Sequence[str],
        *,
        cwd: Path | None = None,
        on_output: Callable[[str], None] | None = None,
    ) -> CommandResult:
        prefix = self._execute(cmd, None)
        if prefix is None:
            return CommandResult(success=True)
        result = self._responses[prefix]
        for line in self._streamed[prefix] or result.stdout.splitlines():
            if on_output:
                on_output(line)
        return result

    # Query helpers

    def commands_starting(self, *prefix: str) -> list[list[str]]:
        return [c for c in self.calls if tuple(c[: len(prefix)]) == prefix]

    def index_of(self, *prefix: str) -> int:
        for i, call in enumerate(self.calls):
            if tuple(call[: len(prefix)]) == prefix:
                return i
        raise AssertionError(f"{' '.join(prefix)} was never run")


@pytest.fixture
def fake_executor() -> FakeExecutor:
    return FakeExecutor()


@pytest.fixture
def project_root(tmp_path: Path) -> Path:
    """A minimal project tree: chart, Kind and EKS overlays."""
    chart = tmp_path / "helm" / "sample-app"
    (chart / "templates").mkdir(parents=True)
    (chart / "Chart.yaml").write_text(
        "apiVersion: v2\nname: sample-app\nversion: 0.1.0\n"
    )
    (chart / "values.yaml").write_text("replicaCount: 1\n")

    environments = tmp_path / "environments"
    environments.mkdir()
    for env in PipelineConstants().ENVIRONMENTS:
        (environments / f"{env}.yaml").write_text(KIND_OVERLAY)
        (environments / f"eks-{env}.yaml").write_text(EKS_OVERLAY)
    return tmp_path


@pytest.fixture
def commands(project_root: Path, fake_executor: FakeExecutor) -> ShellCommands:
    return ShellCommands(project_root, executor=fake_executor)


@pytest.fixture
def paths(project_root: Path) -> PipelinePaths:
    return PipelinePaths(project_root)


@pytest.fixture
def kind_config(project_root: Path) -> PipelineConfig:
    return PipelineConfig(project_root=project_root, image_tag="v1.2.3")


@pytest.fixture
def eks_config(project_root: Path) -> PipelineConfig:
    return PipelineConfig(
        project_root=project_root,
        image_tag="v1.2.3",
        deployment_target=DeploymentTarget.EKS,
        aws_region="us-west-2",
        aws_account_id="123456789012",
        ecr_repo_uri=ECR_REPO_URI,
    )


@pytest.fixture
def kind_target(kind_config: PipelineConfig) -> ResolvedTarget:
    return resolve_target(kind_config)


@pytest.fixture
def eks_target(eks_config: PipelineConfig) -> ResolvedTarget:
    return resolve_target(eks_config)


@pytest.fixture
def mock_console() -> MagicMock:
    return MagicMock()
