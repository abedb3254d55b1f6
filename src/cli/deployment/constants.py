"""Pipeline constants and paths.

This module centralizes the magic strings, timeouts and relative paths
used throughout the pipeline.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigurationError


@dataclass(frozen=True)
class PipelineConstants:
    """Constants for the build and deployment pipeline.

    All attributes are class-level and immutable.
    """

    # Application and chart identifiers
    APP_NAME: str = "sample-app"
    CHART_NAME: str = "sample-app"

    # Ordered promotion path
    ENVIRONMENTS: tuple[str, ...] = ("dev", "staging", "prod")

    # Kind (local) registry
    LOCAL_REGISTRY: str = "localhost:5001"
    LOCAL_CHART_PATH: str = "charts"

    # EKS (ECR) registry
    ECR_USERNAME: str = "AWS"
    DEFAULT_AWS_REGION: str = "us-east-1"
    EKS_VALUES_PREFIX: str = "eks-"
    REPO_URI_PLACEHOLDER: str = "${ECR_REPO_URI}"

    # Timeouts passed to helm
    DEPLOY_TIMEOUT: str = "120s"
    HELM_TEST_TIMEOUT: str = "60s"

    # Containerized lint/test environment
    NODE_IMAGE: str = "node:22-alpine"
    CONTAINER_SOURCE_DIR: str = "/src"
    CONTAINER_WORKDIR: str = "/app"
    CONTAINER_EXCLUDES: tuple[str, ...] = ("node_modules", "dist", ".git")

    # Relative path fragments for project structure
    HELM_DIR: str = "helm"
    ENVIRONMENTS_DIR: str = "environments"
    EKS_ENV_FILE: str = ".env.eks"

    # Helm output that signals an exceeded --timeout
    TIMEOUT_PATTERN: re.Pattern[str] = re.compile(
        r"timed out waiting for the condition|context deadline exceeded",
        re.IGNORECASE,
    )


class PipelinePaths:
    """Path resolver for pipeline inputs, derived from the project root."""

    def __init__(self, project_root: Path) -> None:
        """Initialize pipeline paths.

        Args:
            project_root: Path to the project root directory
        """
        self.project_root = project_root
        self._constants = PipelineConstants()

        self.helm_chart = (
            project_root / self._constants.HELM_DIR / self._constants.CHART_NAME
        )
        self.environments = project_root / self._constants.ENVIRONMENTS_DIR

    @property
    def chart_yaml(self) -> Path:
        """Get path to the chart's Chart.yaml."""
        return self.helm_chart / "Chart.yaml"

    @property
    def eks_env_file(self) -> Path:
        """Get path to the .env.eks file written by the EKS setup script."""
        return self.project_root / self._constants.EKS_ENV_FILE

    def values_files(self) -> list[Path]:
        """List every environment overlay, sorted by file name."""
        if not self.environments.is_dir():
            return []
        return sorted(self.environments.glob("*.yaml"))

    def chart_metadata(self) -> dict[str, Any]:
        """Load Chart.yaml.

        Returns:
            Parsed chart metadata, or an empty dict if the file is missing

        Raises:
            ConfigurationError: If Chart.yaml cannot be read or parsed
        """
        if not self.chart_yaml.exists():
            return {}
        try:
            with open(self.chart_yaml, encoding="utf-8") as f:
                loaded = yaml.safe_load(f)
        except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
            raise ConfigurationError(
                f"Cannot parse chart metadata: {self.chart_yaml}", details=str(e)
            ) from e
        return loaded if isinstance(loaded, dict) else {}

    def chart_package_name(self) -> str | None:
        """Get the archive name `helm package` produces for the chart.

        Returns:
            "<name>-<version>.tgz", or None if Chart.yaml lacks either field
        """
        metadata = self.chart_metadata()
        name = metadata.get("name")
        version = metadata.get("version")
        if not name or not version:
            return None
        return f"{name}-{version}.tgz"
