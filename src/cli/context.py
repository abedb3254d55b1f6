"""CLI context and dependency container."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import click
import typer

from src.cli.deployment.config import PipelineConfig, load_pipeline_config
from src.cli.deployment.constants import PipelineConstants, PipelinePaths
from src.cli.deployment.shell_commands import ShellCommands
from src.cli.deployment.target import ResolvedTarget, resolve_target
from src.cli.shared.console import CLIConsole, console


@dataclass(frozen=True)
class PipelineContext:
    """Runtime dependencies for a pipeline invocation.

    Built once at process start; exactly one resolved target governs the run.
    """

    console: CLIConsole
    project_root: Path
    config: PipelineConfig
    target: ResolvedTarget
    commands: ShellCommands
    constants: PipelineConstants
    paths: PipelinePaths


def build_pipeline_context(config: PipelineConfig | None = None) -> PipelineContext:
    """Build a fresh PipelineContext.

    Raises:
        ConfigurationError: If the environment does not describe a valid run
    """
    config = config or load_pipeline_config()
    constants = PipelineConstants()
    paths = PipelinePaths(config.project_root)

    return PipelineContext(
        console=console,
        project_root=config.project_root,
        config=config,
        target=resolve_target(config, paths, constants),
        commands=ShellCommands(config.project_root),
        constants=constants,
        paths=paths,
    )


def get_pipeline_context(ctx: typer.Context | None = None) -> PipelineContext:
    """Return the PipelineContext from Typer, falling back to a new instance."""
    context = ctx or click.get_current_context(silent=True)
    if context and isinstance(context.obj, PipelineContext):
        return context.obj
    return build_pipeline_context()
