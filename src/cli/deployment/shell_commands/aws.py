"""AWS CLI command abstractions."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .types import CommandResult

if TYPE_CHECKING:
    from .runner import CommandExecutor


class AwsCommands:
    """AWS CLI shell commands used for ECR authentication."""

    def __init__(self, runner: CommandExecutor) -> None:
        """Initialize AWS commands.

        Args:
            runner: Command runner for executing shell commands
        """
        self._runner = runner

    def ecr_login_password(self, region: str) -> CommandResult:
        """Fetch a short-lived ECR login password.

        The password is returned on stdout; callers hand it to
        `docker login --password-stdin` and never log it.

        Args:
            region: AWS region of the registry

        Returns:
            CommandResult whose stdout holds the password
        """
        return self._runner.run(
            ["aws", "ecr", "get-login-password", "--region", region]
        )
