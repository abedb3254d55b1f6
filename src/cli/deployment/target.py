"""Deployment target resolution.

All target-specific policy (registry host, image and chart references,
release naming, namespaces, values overlays, registry authentication,
placeholder substitution) is decided here, once. Stages consume the
resulting ResolvedTarget and never branch on the target themselves.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path
from typing import TYPE_CHECKING

from .constants import PipelineConstants, PipelinePaths
from .errors import ConfigurationError

if TYPE_CHECKING:
    from .config import PipelineConfig


class DeploymentTarget(StrEnum):
    """Execution substrate for a pipeline run."""

    KIND = "kind"
    EKS = "eks"


@dataclass(frozen=True)
class RegistryAuth:
    """Credentials exchange needed before pushing to a private registry.

    Attributes:
        registry: Registry host to log in to
        region: AWS region used to obtain the login password
        username: Registry user name
    """

    registry: str
    region: str
    username: str


@dataclass(frozen=True)
class EnvironmentRecord:
    """Deployment parameters for one environment.

    Attributes:
        name: Environment name (dev, staging, prod)
        values_file: Values overlay applied on top of the chart
        namespace: Target namespace, or None to use the context default
        release_name: Helm release name
    """

    name: str
    values_file: Path
    namespace: str | None
    release_name: str


@dataclass(frozen=True)
class ResolvedTarget:
    """Everything the stages need to know about where artifacts go.

    Attributes:
        target: Target this value was resolved for
        registry: Registry host (e.g. "localhost:5001")
        image_ref: Fully qualified image reference including tag
        chart_repo: OCI repository the chart is pushed to
        chart_ref: OCI reference the chart is installed from
        image_tag: Tag applied to the image
        environments_dir: Directory holding the values overlays
        registry_auth: Login required before pushes, or None
        substitutions: Placeholder tokens replaced in values overlays
    """

    target: DeploymentTarget
    registry: str
    image_ref: str
    chart_repo: str
    chart_ref: str
    image_tag: str
    environments_dir: Path
    registry_auth: RegistryAuth | None = None
    substitutions: dict[str, str] = field(default_factory=dict)
    constants: PipelineConstants = field(default_factory=PipelineConstants)

    def values_file(self, env: str) -> Path:
        """Map an environment name to its values overlay path."""
        if self.target is DeploymentTarget.EKS:
            filename = f"{self.constants.EKS_VALUES_PREFIX}{env}.yaml"
        else:
            filename = f"{env}.yaml"
        return self.environments_dir / filename

    def environment(self, env: str) -> EnvironmentRecord:
        """Build the EnvironmentRecord for an environment name."""
        if self.target is DeploymentTarget.EKS:
            return EnvironmentRecord(
                name=env,
                values_file=self.values_file(env),
                namespace=env,
                release_name=f"{self.constants.APP_NAME}-{env}",
            )
        return EnvironmentRecord(
            name=env,
            values_file=self.values_file(env),
            namespace=None,
            release_name=self.constants.APP_NAME,
        )


def _registry_from_repo_uri(repo_uri: str) -> str:
    return repo_uri.split("/", 1)[0]


def resolve_target(
    config: PipelineConfig,
    paths: PipelinePaths | None = None,
    constants: PipelineConstants | None = None,
) -> ResolvedTarget:
    """Derive registry, image, chart and environment policy for a run.

    This is a pure function of the configuration; nothing is contacted.

    Args:
        config: Run configuration
        paths: Optional path resolver (derived from config.project_root)
        constants: Optional pipeline constants

    Returns:
        ResolvedTarget for the configured deployment target

    Raises:
        ConfigurationError: If the target is EKS and ECR_REPO_URI is missing
    """
    constants = constants or PipelineConstants()
    paths = paths or PipelinePaths(config.project_root)

    if config.deployment_target is DeploymentTarget.KIND:
        registry = constants.LOCAL_REGISTRY
        chart_repo = f"oci://{registry}/{constants.LOCAL_CHART_PATH}"
        return ResolvedTarget(
            target=DeploymentTarget.KIND,
            registry=registry,
            image_ref=f"{registry}/{constants.APP_NAME}:{config.image_tag}",
            chart_repo=chart_repo,
            chart_ref=f"{chart_repo}/{constants.CHART_NAME}",
            image_tag=config.image_tag,
            environments_dir=paths.environments,
            constants=constants,
        )

    if not config.ecr_repo_uri:
        raise ConfigurationError(
            "ECR_REPO_URI is required when DEPLOYMENT_TARGET=eks",
            details="Write the EKS stack outputs to .env.eks in the project root,\n"
            "or export ECR_REPO_URI=<account>.dkr.ecr.<region>.amazonaws.com/sample-app",
        )

    region = config.aws_region or constants.DEFAULT_AWS_REGION
    if config.aws_account_id:
        registry = f"{config.aws_account_id}.dkr.ecr.{region}.amazonaws.com"
    else:
        registry = _registry_from_repo_uri(config.ecr_repo_uri)

    # Charts share the application's ECR repository
    chart_repo = f"oci://{registry}"
    return ResolvedTarget(
        target=DeploymentTarget.EKS,
        registry=registry,
        image_ref=f"{config.ecr_repo_uri}:{config.image_tag}",
        chart_repo=chart_repo,
        chart_ref=f"{chart_repo}/{constants.CHART_NAME}",
        image_tag=config.image_tag,
        environments_dir=paths.environments,
        registry_auth=RegistryAuth(
            registry=registry,
            region=region,
            username=constants.ECR_USERNAME,
        ),
        substitutions={constants.REPO_URI_PLACEHOLDER: config.ecr_repo_uri},
        constants=constants,
    )
