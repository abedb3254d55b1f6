"""Helm command abstractions.

This module provides commands for Helm chart validation, packaging and
publishing, and release management (upgrade-or-install, test, uninstall,
status queries).
"""

from __future__ import annotations

import json
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import TYPE_CHECKING

from .types import CommandResult, HelmRelease

if TYPE_CHECKING:
    from .runner import CommandExecutor


def _namespace_args(namespace: str | None) -> list[str]:
    return ["--namespace", namespace] if namespace else []


class HelmCommands:
    """Helm-related shell commands.

    Provides operations for:
    - Chart lifecycle (lint, package, push, registry login)
    - Release management (upgrade --install, test, uninstall)
    - Status queries (list releases)

    Every release operation takes an optional namespace; when it is None
    no namespace flag is passed and helm uses the current context's.
    """

    def __init__(self, runner: CommandExecutor) -> None:
        """Initialize Helm commands.

        Args:
            runner: Command runner for executing shell commands
        """
        self._runner = runner

    # =========================================================================
    # Chart Lifecycle
    # =========================================================================

    def lint(
        self,
        chart_path: Path,
        *,
        values_file: Path | None = None,
        on_output: Callable[[str], None] | None = None,
    ) -> CommandResult:
        """Validate a chart, optionally against a values overlay.

        Args:
            chart_path: Path to the chart directory
            values_file: Optional values overlay to lint with
            on_output: Optional callback for real-time output streaming

        Returns:
            CommandResult with lint status
        """
        cmd = ["helm", "lint", str(chart_path)]
        if values_file is not None:
            cmd.extend(["-f", str(values_file)])
        return self._runner.run_streaming(cmd, on_output=on_output)

    def package(self, chart_path: Path, destination: Path) -> CommandResult:
        """Package a chart directory into a versioned archive.

        Args:
            chart_path: Path to the chart directory
            destination: Directory the .tgz is written to

        Returns:
            CommandResult with package status
        """
        return self._runner.run(
            ["helm", "package", str(chart_path), "--destination", str(destination)]
        )

    def push(
        self,
        package_path: Path,
        repository: str,
        *,
        on_output: Callable[[str], None] | None = None,
    ) -> CommandResult:
        """Push a packaged chart to an OCI repository.

        Args:
            package_path: Path to the chart archive
            repository: OCI repository (e.g., "oci://localhost:5001/charts")
            on_output: Optional callback for real-time output streaming

        Returns:
            CommandResult with push status
        """
        return self._runner.run_streaming(
            ["helm", "push", str(package_path), repository], on_output=on_output
        )

    def registry_login(
        self, registry: str, username: str, password: str
    ) -> CommandResult:
        """Log in to an OCI registry, passing the password on stdin.

        Args:
            registry: Registry host
            username: Registry user name
            password: Registry password or token

        Returns:
            CommandResult with login status
        """
        return self._runner.run(
            [
                "helm",
                "registry",
                "login",
                registry,
                "--username",
                username,
                "--password-stdin",
            ],
            input_data=password,
        )

    # =========================================================================
    # Release Management
    # =========================================================================

    def upgrade_install(
        self,
        release_name: str,
        chart_ref: str,
        namespace: str | None = None,
        *,
        value_files: list[Path] | None = None,
        set_values: Mapping[str, str] | None = None,
        timeout: str = "120s",
        wait: bool = True,
        on_output: Callable[[str], None] | None = None,
    ) -> CommandResult:
        """Deploy or upgrade a Helm release.

        Uses `helm upgrade --install` to idempotently deploy a chart.
        If the release doesn't exist, it will be installed. If it exists,
        it will be upgraded.

        Args:
            release_name: Name for the Helm release (e.g., "sample-app")
            chart_ref: Chart directory or OCI reference
            namespace: Kubernetes namespace, or None for the context default
            value_files: Optional list of values overlay files
            set_values: Optional individual value overrides (--set key=value)
            timeout: Maximum time to wait for deployment
            wait: Whether to wait for resources to be ready
            on_output: Optional callback for real-time output streaming.

        Returns:
            CommandResult with deployment status

        Example:
            >>> helm.upgrade_install(
            ...     "sample-app-staging",
            ...     "oci://localhost:5001/charts/sample-app",
            ...     "staging",
            ...     value_files=[Path("environments/staging.yaml")],
            ...     set_values={"image.tag": "latest"},
            ... )
        """
        cmd = ["helm", "upgrade", "--install", release_name, chart_ref]
        cmd.extend(_namespace_args(namespace))

        for vf in value_files or []:
            cmd.extend(["-f", str(vf)])
        for key, value in (set_values or {}).items():
            cmd.extend(["--set", f"{key}={value}"])

        if wait:
            cmd.append("--wait")
        cmd.extend(["--timeout", timeout])

        return self._runner.run_streaming(cmd, on_output=on_output)

    def test(
        self,
        release_name: str,
        namespace: str | None = None,
        *,
        timeout: str = "60s",
        on_output: Callable[[str], None] | None = None,
    ) -> CommandResult:
        """Run a release's in-cluster test hooks.

        Args:
            release_name: Name of the release to test
            namespace: Kubernetes namespace, or None for the context default
            timeout: Maximum time to wait for the test pods
            on_output: Optional callback for real-time output streaming

        Returns:
            CommandResult with test status
        """
        cmd = ["helm", "test", release_name]
        cmd.extend(_namespace_args(namespace))
        cmd.extend(["--timeout", timeout])
        return self._runner.run_streaming(cmd, on_output=on_output)

    def uninstall(
        self,
        release_name: str,
        namespace: str | None = None,
        *,
        wait: bool = True,
    ) -> CommandResult:
        """Uninstall a Helm release.

        Args:
            release_name: Name of the release to uninstall
            namespace: Kubernetes namespace, or None for the context default
            wait: Whether to wait for resources to be deleted

        Returns:
            CommandResult with uninstall status
        """
        cmd = ["helm", "uninstall", release_name]
        cmd.extend(_namespace_args(namespace))
        if wait:
            cmd.append("--wait")
        return self._runner.run(cmd)

    # =========================================================================
    # Status Queries
    # =========================================================================

    def list_releases(self, namespace: str | None = None) -> list[HelmRelease]:
        """List Helm releases in a namespace, in any state.

        Args:
            namespace: Kubernetes namespace, or None for the context default

        Returns:
            List of HelmRelease objects
        """
        cmd = ["helm", "list", "--all", "-o", "json"]
        cmd.extend(_namespace_args(namespace))

        result = self._runner.run(cmd)
        if not result.success or not result.stdout:
            return []

        try:
            releases_data = json.loads(result.stdout)
            return [
                HelmRelease(
                    name=r.get("name", ""),
                    namespace=r.get("namespace", ""),
                    status=r.get("status", ""),
                    revision=str(r.get("revision", "")),
                    chart=r.get("chart", ""),
                )
                for r in releases_data
            ]
        except json.JSONDecodeError:
            return []
