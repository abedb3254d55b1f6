"""Shell command abstractions for the build and deployment pipeline.

This package provides a clean, well-documented interface for shell commands used
by the pipeline stages. It is organized into specialized modules for each tool:

- docker: Image build/push, registry login, ephemeral containers
- helm: Chart lint/package/push and release management
- kubectl: Namespace management and service/ingress inspection
- aws: ECR authentication

Design Principles:
- Single Responsibility: Each module focuses on one tool
- Narrow Seam: Every module depends only on the CommandExecutor protocol,
  so tests can record argument lists without touching real infrastructure
- Consistent Return Types: Functions return CommandResult or typed records
- Separation of Concerns: Commands are decoupled from workflow logic

Usage:
    from src.cli.deployment.shell_commands import ShellCommands

    commands = ShellCommands(project_root=Path("."))
    result = commands.helm.lint(Path("helm/sample-app"))
"""

from pathlib import Path

from .aws import AwsCommands
from .docker import DockerCommands
from .helm import HelmCommands
from .kubectl import KubectlCommands
from .runner import CommandExecutor, CommandRunner
from .types import CommandResult, HelmRelease, IngressInfo, ServiceInfo


class ShellCommands:
    """Unified interface for all shell command operations.

    This class provides a facade over the specialized command modules,
    offering a single point of access for pipeline operations while
    maintaining separation of concerns internally.

    Attributes:
        docker: Docker-related commands
        helm: Helm-related commands
        kubectl: Kubernetes kubectl commands
        aws: AWS CLI commands

    Example:
        >>> commands = ShellCommands(Path("."))
        >>> commands.helm.upgrade_install("sample-app", chart_ref, None)
    """

    def __init__(
        self,
        project_root: Path,
        executor: CommandExecutor | None = None,
    ) -> None:
        """Initialize the shell commands executor.

        Args:
            project_root: Path to the project root directory.
                         Commands will be executed from this directory by default.
            executor: Optional executor to use instead of a CommandRunner
        """
        self._project_root = Path(project_root)
        self._runner = executor or CommandRunner(self._project_root)

        # Initialize specialized command modules
        self.docker = DockerCommands(self._runner)
        self.helm = HelmCommands(self._runner)
        self.kubectl = KubectlCommands(self._runner)
        self.aws = AwsCommands(self._runner)

    @property
    def project_root(self) -> Path:
        """Get the project root path."""
        return self._project_root

    @property
    def executor(self) -> CommandExecutor:
        """Get the executor all command modules share."""
        return self._runner


__all__ = [
    "ShellCommands",
    "CommandResult",
    "HelmRelease",
    "ServiceInfo",
    "IngressInfo",
    # Specialized command classes for direct usage
    "DockerCommands",
    "HelmCommands",
    "KubectlCommands",
    "AwsCommands",
    "CommandExecutor",
    "CommandRunner",
]
