"""Multi-environment promotion.

Deploys and tests each environment in promotion order, stopping at the first
failure. Environments that were already deployed stay deployed: there is no
automatic rollback, so a failure in prod leaves dev and staging running for
fix-forward or a targeted `helm rollback`. Where environments share one
release (Kind), a later environment's deploy replaces the earlier ones, and
the halt report says so.
"""

from __future__ import annotations

from collections.abc import Sequence

from loguru import logger

from src.utils.console_like import ConsoleLike, coalesce_console

from .stages import Stage, StageResult, StageRunner


class EnvironmentSequencer:
    """Runs deploy then helm-test for each environment in order."""

    def __init__(
        self,
        runner: StageRunner,
        environments: Sequence[str],
        console: ConsoleLike | None = None,
    ) -> None:
        """Initialize the sequencer.

        Args:
            runner: Stage runner used for every deploy/helm-test
            environments: Environment names in promotion order
            console: Output sink for progress messages
        """
        self.runner = runner
        self.environments = tuple(environments)
        self.console = coalesce_console(console)

    def run(self) -> list[StageResult]:
        """Promote through every environment until one fails.

        Returns:
            Results in execution order; the last one is the failure, if any
        """
        results: list[StageResult] = []

        for env in self.environments:
            self.console.print(f"\n[bold]🌍 Environment: {env}[/bold]\n")

            for stage in (Stage.DEPLOY, Stage.HELM_TEST):
                result = self.runner.run(stage, env)
                results.append(result)
                if not result.succeeded:
                    remaining = self.environments[self.environments.index(env) + 1 :]
                    logger.warning(
                        f"Promotion halted at {result.label}; "
                        f"not attempted: {', '.join(remaining) or 'none'}"
                    )
                    self._report_halt(env, remaining)
                    return results

        return results

    def _report_halt(self, failed_env: str, remaining: Sequence[str]) -> None:
        promoted = self.environments[: self.environments.index(failed_env)]
        failed = self.runner.target.environment(failed_env)
        failed_key = (failed.release_name, failed.namespace)

        # Environments sharing the failed release were overwritten by it
        left_running = []
        overwritten = []
        for env in promoted:
            record = self.runner.target.environment(env)
            if (record.release_name, record.namespace) == failed_key:
                overwritten.append(env)
            else:
                left_running.append(env)

        if left_running:
            self.console.warn(
                f"Left running (not rolled back): {', '.join(left_running)}"
            )
        if overwritten:
            self.console.warn(
                f"Release {failed.release_name} is shared with "
                f"{', '.join(overwritten)} and now carries the {failed_env} deployment"
            )
        if remaining:
            self.console.warn(f"Not attempted: {', '.join(remaining)}")
