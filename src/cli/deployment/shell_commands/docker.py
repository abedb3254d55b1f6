"""Docker command abstractions.

This module provides commands for Docker image operations: building,
pushing, registry login and running throwaway containers.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from pathlib import Path
from typing import TYPE_CHECKING

from .types import CommandResult

if TYPE_CHECKING:
    from .runner import CommandExecutor


class DockerCommands:
    """Docker-related shell commands.

    Provides operations for:
    - Image management (build, push)
    - Registry authentication
    - Ephemeral containers for lint/test runs
    """

    def __init__(self, runner: CommandExecutor) -> None:
        """Initialize Docker commands.

        Args:
            runner: Command runner for executing shell commands
        """
        self._runner = runner

    # =========================================================================
    # Image Management
    # =========================================================================

    def build_image(
        self,
        image_tag: str,
        context_dir: Path,
        *,
        on_output: Callable[[str], None] | None = None,
    ) -> CommandResult:
        """Build an image from the Dockerfile in a context directory.

        Args:
            image_tag: Full image reference to tag the result with
                      (e.g., "localhost:5001/sample-app:latest")
            context_dir: Build context holding the Dockerfile
            on_output: Optional callback for real-time output streaming

        Returns:
            CommandResult with build status
        """
        cmd = ["docker", "build", "-t", image_tag, str(context_dir)]
        return self._runner.run_streaming(cmd, on_output=on_output)

    def push_image(
        self,
        image_tag: str,
        *,
        on_output: Callable[[str], None] | None = None,
    ) -> CommandResult:
        """Push a Docker image to a remote registry.

        Args:
            image_tag: Full image tag including registry
                      (e.g., "registry.example.com/app:v1")
            on_output: Optional callback for real-time output streaming

        Returns:
            CommandResult with push status
        """
        return self._runner.run_streaming(
            ["docker", "push", image_tag], on_output=on_output
        )

    # =========================================================================
    # Registry Authentication
    # =========================================================================

    def login(self, registry: str, username: str, password: str) -> CommandResult:
        """Log in to a registry, passing the password on stdin.

        Args:
            registry: Registry host
            username: Registry user name
            password: Registry password or token

        Returns:
            CommandResult with login status
        """
        return self._runner.run(
            ["docker", "login", "--username", username, "--password-stdin", registry],
            input_data=password,
        )

    # =========================================================================
    # Ephemeral Containers
    # =========================================================================

    def run_in_copy(
        self,
        image: str,
        source_dir: Path,
        script: str,
        *,
        mount_point: str = "/src",
        workdir: str = "/app",
        excludes: Sequence[str] = (),
        on_output: Callable[[str], None] | None = None,
    ) -> CommandResult:
        """Run a shell script against a private copy of a source tree.

        The source tree is mounted read-only and copied into the container's
        work directory first (minus the excluded paths), so nothing the
        script writes reaches the host. The container is removed afterwards.

        Args:
            image: Container image to run (e.g., "node:22-alpine")
            source_dir: Host directory to copy into the container
            script: Shell script executed in the work directory
            mount_point: Where the source tree is mounted read-only
            workdir: Container directory the copy is made into
            excludes: Top-level paths left out of the copy
            on_output: Optional callback for real-time output streaming

        Returns:
            CommandResult with the script's status
        """
        exclude_flags = " ".join(f"--exclude=./{path}" for path in excludes)
        copy = (
            f"mkdir -p {workdir} && "
            f"tar -C {mount_point} {exclude_flags} -cf - . | tar -C {workdir} -xf -"
        )
        cmd = [
            "docker",
            "run",
            "--rm",
            "-v",
            f"{source_dir}:{mount_point}:ro",
            "-w",
            workdir,
            image,
            "sh",
            "-c",
            f"{copy} && {script}",
        ]
        return self._runner.run_streaming(cmd, on_output=on_output)
