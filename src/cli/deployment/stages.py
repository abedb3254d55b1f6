"""Pipeline stages.

Each stage is one external-tool workflow (lint, test, chart-lint, build,
deploy, helm-test). StageRunner executes exactly one of them, streams the
tools' output, and maps the outcome to a StageResult. Nothing is retried.
"""

from __future__ import annotations

import tempfile
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path

from loguru import logger
from rich.markup import escape

from src.utils.console_like import ConsoleLike, coalesce_console

from .constants import PipelineConstants, PipelinePaths
from .errors import ConfigurationError, ExternalToolFailure, PipelineError, TimeoutFailure
from .shell_commands import CommandResult, ShellCommands
from .target import EnvironmentRecord, RegistryAuth, ResolvedTarget
from .values import prepared_values_file


class Stage(StrEnum):
    """Named pipeline steps, in pipeline order."""

    LINT = "lint"
    TEST = "test"
    CHART_LINT = "chart-lint"
    BUILD = "build"
    DEPLOY = "deploy"
    HELM_TEST = "helm-test"

    @property
    def needs_environment(self) -> bool:
        """Whether the stage acts on a single environment."""
        return self in (Stage.DEPLOY, Stage.HELM_TEST)


@dataclass(frozen=True)
class StageResult:
    """Outcome of one stage invocation.

    Attributes:
        stage_name: Stage that ran (e.g. "deploy")
        succeeded: Whether every command in the stage exited 0
        output: Captured tool output
        error: Failure message, None on success
        details: Extra failure context (recovery hints, tool output)
        environment: Environment the stage acted on, if any
        returncode: Exit status of the failing tool, 0 on success
    """

    stage_name: str
    succeeded: bool
    output: str = ""
    error: str | None = None
    details: str | None = None
    environment: str | None = None
    returncode: int = 0

    @property
    def label(self) -> str:
        """Stage name qualified with its environment, e.g. "deploy[staging]"."""
        if self.environment:
            return f"{self.stage_name}[{self.environment}]"
        return self.stage_name


class StageRunner:
    """Runs individual pipeline stages against a resolved target.

    The runner is target-agnostic: registry login, namespaces, release names
    and placeholder substitution all come from the ResolvedTarget.

    Attributes:
        commands: Shell command executor
        target: Resolved deployment target
        paths: Pipeline path resolver
        constants: Pipeline constants
        console: Output sink for progress and streamed tool output
    """

    def __init__(
        self,
        commands: ShellCommands,
        target: ResolvedTarget,
        paths: PipelinePaths,
        constants: PipelineConstants | None = None,
        console: ConsoleLike | None = None,
    ) -> None:
        self.commands = commands
        self.target = target
        self.paths = paths
        self.constants = constants or PipelineConstants()
        self.console = coalesce_console(console)
        self._output: list[str] = []

        self._handlers: dict[Stage, Callable[[], None]] = {
            Stage.LINT: self.lint,
            Stage.TEST: self.test,
            Stage.CHART_LINT: self.chart_lint,
            Stage.BUILD: self.build,
        }
        self._environment_handlers: dict[
            Stage, Callable[[EnvironmentRecord], None]
        ] = {
            Stage.DEPLOY: self.deploy,
            Stage.HELM_TEST: self.helm_test,
        }

    # =========================================================================
    # Public Interface
    # =========================================================================

    def run(self, stage: Stage, environment: str | None = None) -> StageResult:
        """Run one stage and report its outcome.

        Args:
            stage: Stage to run
            environment: Environment name, required for deploy and helm-test

        Returns:
            StageResult; failures are reported, never raised

        Raises:
            ValueError: If an environment stage is run without an environment
        """
        if stage.needs_environment and not environment:
            raise ValueError(f"Stage '{stage}' requires an environment")

        self._output = []
        env = environment if stage.needs_environment else None
        label = f"{stage.value}[{env}]" if env else stage.value
        logger.info(f"Stage {label} starting")

        try:
            if env is not None:
                self._environment_handlers[stage](self.target.environment(env))
            else:
                self._handlers[stage]()
        except PipelineError as e:
            logger.warning(f"Stage {label} failed: {e.message}")
            self.console.error(f"{label} failed: {e.message}")
            return StageResult(
                stage_name=stage.value,
                succeeded=False,
                output="\n".join(self._output),
                error=e.message,
                details=e.details,
                environment=env,
                returncode=e.returncode,
            )

        logger.info(f"Stage {label} succeeded")
        return StageResult(
            stage_name=stage.value,
            succeeded=True,
            output="\n".join(self._output),
            environment=env,
        )

    # =========================================================================
    # Stages
    # =========================================================================

    def lint(self) -> None:
        """Run the application linter in a throwaway Node container."""
        self.console.print("[bold cyan]🔍 Running linter...[/bold cyan]")
        self._run_node_script("npm run lint")
        self.console.ok("Lint passed!")

    def test(self) -> None:
        """Run the application test suite in a throwaway Node container."""
        self.console.print("[bold cyan]🧪 Running tests...[/bold cyan]")
        self._run_node_script("npm test")
        self.console.ok("Tests passed!")

    def chart_lint(self) -> None:
        """Lint the chart alone, then once per environment overlay."""
        chart = self._require_chart()
        self.console.print("[bold cyan]📋 Linting Helm chart...[/bold cyan]")
        self._check(
            self.commands.helm.lint(chart, on_output=self._echo), "helm lint"
        )

        for values_file in self.paths.values_files():
            self.console.print(
                f"[bold cyan]📋 Linting chart with {values_file.name}...[/bold cyan]"
            )
            self._check(
                self.commands.helm.lint(
                    chart, values_file=values_file, on_output=self._echo
                ),
                f"helm lint -f {values_file.name}",
            )

        self.console.ok("Helm chart lint passed!")

    def build(self) -> None:
        """Build and push the image, then package and push the chart."""
        chart = self._require_chart()
        image = self.target.image_ref

        if self.target.registry_auth is not None:
            self._authenticate(self.target.registry_auth)

        self.console.print(f"[bold cyan]🔨 Building image {image}...[/bold cyan]")
        self._check(
            self.commands.docker.build_image(
                image, self.paths.project_root, on_output=self._echo
            ),
            "docker build",
        )

        self.console.print("[bold cyan]📤 Pushing image to registry...[/bold cyan]")
        self._check(
            self.commands.docker.push_image(image, on_output=self._echo),
            "docker push",
        )

        with tempfile.TemporaryDirectory(prefix="chart-package-") as tmp:
            destination = Path(tmp)
            self.console.print("[bold cyan]📦 Packaging Helm chart...[/bold cyan]")
            self._check(
                self._record(self.commands.helm.package(chart, destination)),
                "helm package",
            )
            package = self._find_chart_package(destination)

            self.console.print(
                f"[bold cyan]📤 Pushing chart to {self.target.chart_repo}...[/bold cyan]"
            )
            self._check(
                self.commands.helm.push(
                    package, self.target.chart_repo, on_output=self._echo
                ),
                "helm push",
            )

        self.console.ok(f"Image published: {image}")
        self.console.ok(f"Chart published: {self.target.chart_ref}")

    def deploy(self, record: EnvironmentRecord) -> None:
        """Upgrade-or-install the release for one environment."""
        self.console.print(
            f"[bold cyan]🚀 Deploying {record.release_name} "
            f"(env: {record.name})...[/bold cyan]"
        )

        with prepared_values_file(record, self.target.substitutions) as values_file:
            if record.namespace:
                self._ensure_namespace(record.namespace)

            result = self.commands.helm.upgrade_install(
                record.release_name,
                self.target.chart_ref,
                record.namespace,
                value_files=[values_file],
                set_values={"image.tag": self.target.image_tag},
                timeout=self.constants.DEPLOY_TIMEOUT,
                on_output=self._echo,
            )
            self._check(result, "helm upgrade --install", timeout_aware=True)

        self.console.ok(f"Deployment to {record.name} complete!")

    def helm_test(self, record: EnvironmentRecord) -> None:
        """Run the release's in-cluster connectivity test."""
        self.console.print(
            f"[bold cyan]🧪 Running Helm tests for {record.release_name}...[/bold cyan]"
        )
        result = self.commands.helm.test(
            record.release_name,
            record.namespace,
            timeout=self.constants.HELM_TEST_TIMEOUT,
            on_output=self._echo,
        )
        self._check(result, "helm test", timeout_aware=True)
        self.console.ok(f"Helm tests passed for {record.name}!")

    # =========================================================================
    # Private Helpers
    # =========================================================================

    def _echo(self, line: str) -> None:
        """Capture a line of tool output and print it dimmed."""
        self._output.append(line)
        self.console.print(f"  [dim]{escape(line)}[/dim]")

    def _record(self, result: CommandResult) -> CommandResult:
        """Capture the output of a non-streamed command."""
        for line in result.output.splitlines():
            if line.strip():
                self._echo(line)
        return result

    def _check(
        self,
        result: CommandResult,
        action: str,
        *,
        timeout_aware: bool = False,
    ) -> CommandResult:
        """Raise if a command failed; pass the result through otherwise.

        Raises:
            TimeoutFailure: If timeout_aware and the output reports an
                            exceeded wait
            ExternalToolFailure: For any other nonzero exit
        """
        if result.success:
            return result

        output = result.output
        returncode = result.returncode or 1
        if timeout_aware and self.constants.TIMEOUT_PATTERN.search(output):
            raise TimeoutFailure(
                f"{action} timed out", details=output, returncode=returncode
            )
        raise ExternalToolFailure(
            f"{action} failed (exit code {result.returncode})",
            details=output,
            returncode=returncode,
        )

    def _require_chart(self) -> Path:
        chart = self.paths.helm_chart
        if not chart.is_dir():
            raise ConfigurationError(f"Helm chart not found: {chart}")
        return chart

    def _run_node_script(self, script: str) -> None:
        result = self.commands.docker.run_in_copy(
            self.constants.NODE_IMAGE,
            self.paths.project_root,
            f"npm ci && {script}",
            mount_point=self.constants.CONTAINER_SOURCE_DIR,
            workdir=self.constants.CONTAINER_WORKDIR,
            excludes=self.constants.CONTAINER_EXCLUDES,
            on_output=self._echo,
        )
        self._check(result, script)

    def _authenticate(self, auth: RegistryAuth) -> None:
        """Log docker and helm in to a private registry."""
        self.console.print(
            f"[bold cyan]🔐 Authenticating with {auth.registry}...[/bold cyan]"
        )
        password_result = self.commands.aws.ecr_login_password(auth.region)
        if not password_result.success:
            # stdout would hold the password; only stderr is surfaced
            raise ExternalToolFailure(
                f"aws ecr get-login-password failed (exit code {password_result.returncode})",
                details=password_result.stderr,
                returncode=password_result.returncode or 1,
            )
        password = password_result.stdout.strip()

        self._check(
            self._record(
                self.commands.docker.login(auth.registry, auth.username, password)
            ),
            "docker login",
        )
        self._check(
            self._record(
                self.commands.helm.registry_login(
                    auth.registry, auth.username, password
                )
            ),
            "helm registry login",
        )

    def _ensure_namespace(self, namespace: str) -> None:
        if self.commands.kubectl.namespace_exists(namespace):
            return
        self.console.print(f"[dim]Creating namespace {namespace}[/dim]")
        self._check(
            self._record(self.commands.kubectl.create_namespace(namespace)),
            f"kubectl create namespace {namespace}",
        )

    def _find_chart_package(self, destination: Path) -> Path:
        expected = self.paths.chart_package_name()
        if expected and (destination / expected).exists():
            return destination / expected

        archives = sorted(destination.glob("*.tgz"))
        if not archives:
            raise ExternalToolFailure(
                "helm package produced no chart archive",
                details=f"Nothing found in {destination}",
            )
        return archives[0]
