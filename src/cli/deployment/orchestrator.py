"""Pipeline orchestration.

Composes the stages in their fixed order:

    lint -> test -> chart-lint -> build -> deploy -> helm-test

or, in multi-environment mode, hands the last two to the EnvironmentSequencer.
The run is strictly sequential and stops at the first failed stage.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from loguru import logger

from src.utils.console_like import ConsoleLike, coalesce_console

from .config import PipelineConfig
from .constants import PipelineConstants
from .sequencer import EnvironmentSequencer
from .stages import Stage, StageResult, StageRunner

STAGE_TITLES: dict[Stage, str] = {
    Stage.LINT: "Lint",
    Stage.TEST: "Test",
    Stage.CHART_LINT: "Chart Lint",
    Stage.BUILD: "Build & Push",
    Stage.DEPLOY: "Deploy",
    Stage.HELM_TEST: "Helm Test",
}


@dataclass
class PipelineRun:
    """Ordered stage results for one invocation."""

    results: list[StageResult] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return all(result.succeeded for result in self.results)

    @property
    def failure(self) -> StageResult | None:
        """The failed result that ended the run, if any."""
        for result in self.results:
            if not result.succeeded:
                return result
        return None

    @property
    def returncode(self) -> int:
        """Process exit status for this run."""
        failure = self.failure
        if failure is None:
            return 0
        return failure.returncode or 1

    def record(self, result: StageResult) -> bool:
        """Append a result; return whether the run may continue."""
        self.results.append(result)
        return result.succeeded


class PipelineOrchestrator:
    """Runs single stages, the multi-environment rollout, or the full pipeline.

    Attributes:
        runner: Stage runner
        config: Run configuration (supplies the single-environment target)
        constants: Pipeline constants (supplies the promotion order)
        console: Output sink for progress messages
    """

    BUILD_STAGES: tuple[Stage, ...] = (
        Stage.LINT,
        Stage.TEST,
        Stage.CHART_LINT,
        Stage.BUILD,
    )

    def __init__(
        self,
        runner: StageRunner,
        config: PipelineConfig,
        constants: PipelineConstants | None = None,
        console: ConsoleLike | None = None,
    ) -> None:
        self.runner = runner
        self.config = config
        self.constants = constants or PipelineConstants()
        self.console = coalesce_console(console)

    def run_stage(self, stage: Stage) -> PipelineRun:
        """Run one stage on its own.

        deploy and helm-test act on the configured DEPLOY_ENV.
        """
        env = self.config.deploy_env if stage.needs_environment else None
        run = PipelineRun()
        run.record(self.runner.run(stage, env))
        return run

    def deploy_all(self) -> PipelineRun:
        """Deploy and test every environment in promotion order."""
        sequencer = EnvironmentSequencer(
            self.runner, self.constants.ENVIRONMENTS, console=self.console
        )
        return PipelineRun(results=sequencer.run())

    def run_pipeline(self, *, all_environments: bool = False) -> PipelineRun:
        """Run the full pipeline, stopping at the first failure.

        Args:
            all_environments: Promote through every environment instead of
                              deploying only DEPLOY_ENV

        Returns:
            PipelineRun with every result produced
        """
        self.console.print("[bold]🚀 Starting CI/CD Pipeline[/bold]\n")
        self.console.print("=" * 50)

        run = PipelineRun()
        number = 0
        for stage in self.BUILD_STAGES:
            number += 1
            self._announce(number, stage)
            if not run.record(self.runner.run(stage)):
                return self._finish(run)

        if all_environments:
            number += 1
            self.console.print(f"\n[bold]📦 Stage {number}: Promote[/bold]\n")
            run.results.extend(self.deploy_all().results)
            return self._finish(run)

        for stage in (Stage.DEPLOY, Stage.HELM_TEST):
            number += 1
            self._announce(number, stage)
            if not run.record(self.runner.run(stage, self.config.deploy_env)):
                break
        return self._finish(run)

    def _announce(self, number: int, stage: Stage) -> None:
        self.console.print(f"\n[bold]📦 Stage {number}: {STAGE_TITLES[stage]}[/bold]\n")

    def _finish(self, run: PipelineRun) -> PipelineRun:
        self.console.print("\n" + "=" * 50)
        if run.succeeded:
            self.console.print("[bold green]🎉 Pipeline completed successfully![/bold green]")
        elif run.failure is not None:
            logger.warning(f"Pipeline stopped at {run.failure.label}")
        return run
