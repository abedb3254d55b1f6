"""Main CLI application module.

This module provides the entry point for the sample-app pipeline CLI.
A single positional COMMAND selects what to run:

- lint, test, chart-lint, build, deploy, helm-test: one stage on its own
- deploy-all: deploy and test dev, staging and prod in order
- all (default): the full pipeline
- status: release state and endpoints per environment
- teardown: uninstall every environment's release

Behaviour is configured through IMAGE_TAG, DEPLOY_ENV, DEPLOYMENT_TARGET,
AWS_REGION, AWS_ACCOUNT_ID and ECR_REPO_URI.
"""

import sys
from enum import StrEnum
from typing import Annotated

import typer
from loguru import logger

from src.cli.context import PipelineContext, get_pipeline_context
from src.cli.deployment.orchestrator import PipelineOrchestrator, PipelineRun
from src.cli.deployment.releases import ReleaseManager
from src.cli.deployment.stages import Stage, StageRunner
from src.cli.shared.console import with_error_handling

LOG_FORMAT = "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | {message}"


class Command(StrEnum):
    """Commands accepted on the command line."""

    LINT = "lint"
    TEST = "test"
    CHART_LINT = "chart-lint"
    BUILD = "build"
    DEPLOY = "deploy"
    HELM_TEST = "helm-test"
    DEPLOY_ALL = "deploy-all"
    ALL = "all"
    STATUS = "status"
    TEARDOWN = "teardown"


# Create the main CLI application
app = typer.Typer(
    help="🚀 Sample App Pipeline - lint, test, build, publish and promote",
    rich_markup_mode="rich",
    add_completion=False,
)


def configure_logging(level: str) -> None:
    """Send diagnostic logs to stderr at the given level."""
    logger.remove()
    logger.add(sys.stderr, level=level, format=LOG_FORMAT)


def _report_failure(pipeline: PipelineContext, run: PipelineRun) -> None:
    failure = run.failure
    if failure is None:
        return
    pipeline.console.handle_error(
        f"Pipeline failed at {failure.label}: {failure.error}",
        failure.details,
        exit_code=run.returncode,
    )


def _teardown(pipeline: PipelineContext, releases: ReleaseManager, yes: bool) -> None:
    names = ", ".join(
        f"{r.release_name} ({r.namespace or 'current namespace'})"
        for r in releases.records()
    )
    if not pipeline.console.confirm_action(
        f"Remove all {pipeline.target.target.value} releases",
        details=f"Releases: {names}",
        force=yes,
    ):
        raise typer.Exit(1)

    if not releases.teardown():
        pipeline.console.handle_error("Teardown finished with errors")
    pipeline.console.ok("Teardown complete")


@app.command()
@with_error_handling
def run(
    ctx: typer.Context,
    command: Annotated[
        Command,
        typer.Argument(help="Stage or workflow to run", case_sensitive=False),
    ] = Command.ALL,
    all_environments: Annotated[
        bool,
        typer.Option(
            "--all-environments",
            help="With 'all': promote through dev, staging and prod",
        ),
    ] = False,
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip confirmation for 'teardown'"),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log every external command"),
    ] = False,
) -> None:
    """Run a pipeline stage, a workflow, or the full pipeline."""
    configure_logging("DEBUG" if verbose else "WARNING")

    pipeline = get_pipeline_context(ctx)
    if not verbose:
        configure_logging(pipeline.config.log_level)

    target = pipeline.target
    pipeline.console.print_header(
        f"Target: {target.target.value}  •  Image: {target.image_ref}"
    )

    if command is Command.STATUS or command is Command.TEARDOWN:
        releases = ReleaseManager(
            pipeline.commands, target, pipeline.constants, console=pipeline.console
        )
        if command is Command.STATUS:
            releases.show_status()
        else:
            _teardown(pipeline, releases, yes)
        return

    runner = StageRunner(
        pipeline.commands,
        target,
        pipeline.paths,
        pipeline.constants,
        console=pipeline.console,
    )
    orchestrator = PipelineOrchestrator(
        runner, pipeline.config, pipeline.constants, console=pipeline.console
    )

    if command is Command.ALL:
        result = orchestrator.run_pipeline(all_environments=all_environments)
    elif command is Command.DEPLOY_ALL:
        result = orchestrator.deploy_all()
    else:
        result = orchestrator.run_stage(Stage(command.value))

    _report_failure(pipeline, result)


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
