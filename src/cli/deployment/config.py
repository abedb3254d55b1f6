"""Pipeline configuration loading.

The pipeline is driven by a handful of environment variables. They are read
exactly once, at process start, into an immutable PipelineConfig that is then
passed by reference to every component.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path

from dotenv import dotenv_values
from loguru import logger
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from src.utils.paths import get_project_root

from .constants import PipelineConstants, PipelinePaths
from .errors import ConfigurationError
from .target import DeploymentTarget

# Field name -> environment variable
ENV_VARS: dict[str, str] = {
    "image_tag": "IMAGE_TAG",
    "deploy_env": "DEPLOY_ENV",
    "deployment_target": "DEPLOYMENT_TARGET",
    "aws_region": "AWS_REGION",
    "aws_account_id": "AWS_ACCOUNT_ID",
    "ecr_repo_uri": "ECR_REPO_URI",
    "log_level": "PIPELINE_LOG_LEVEL",
}

PROJECT_ROOT_VAR = "PIPELINE_PROJECT_ROOT"

LOG_LEVELS = ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL")


class PipelineConfig(BaseModel):
    """Immutable run configuration.

    Attributes:
        project_root: Repository root holding the Dockerfile, chart and overlays
        image_tag: Tag applied to the built image and passed to the chart
        deploy_env: Environment used by single-environment deploy/helm-test
        deployment_target: Local Kind cluster or managed EKS cluster
        aws_region: AWS region (EKS only)
        aws_account_id: AWS account id (EKS only)
        ecr_repo_uri: ECR repository URI (required for EKS)
        log_level: Minimum level for diagnostic logging
    """

    model_config = ConfigDict(frozen=True)

    project_root: Path
    image_tag: str = "latest"
    deploy_env: str = "dev"
    deployment_target: DeploymentTarget = DeploymentTarget.KIND
    aws_region: str | None = None
    aws_account_id: str | None = None
    ecr_repo_uri: str | None = None
    log_level: str = "WARNING"

    @field_validator("image_tag")
    @classmethod
    def _validate_image_tag(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("image tag must not be empty")
        return value

    @field_validator("deploy_env")
    @classmethod
    def _validate_deploy_env(cls, value: str) -> str:
        value = value.strip()
        valid = PipelineConstants().ENVIRONMENTS
        if value not in valid:
            raise ValueError(
                f"unknown environment '{value}', expected one of: {', '.join(valid)}"
            )
        return value

    @field_validator("deployment_target", mode="before")
    @classmethod
    def _normalize_target(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("aws_region", "aws_account_id", "ecr_repo_uri", mode="before")
    @classmethod
    def _blank_to_none(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value.strip() if isinstance(value, str) else value

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, value: str) -> str:
        value = value.strip().upper()
        if value not in LOG_LEVELS:
            raise ValueError(f"unknown log level '{value}'")
        return value


def load_pipeline_config(
    environ: Mapping[str, str] | None = None,
    project_root: Path | None = None,
) -> PipelineConfig:
    """Build the run configuration from environment variables.

    If the project root holds a ``.env.eks`` file (written by the EKS setup
    script), its entries are used for variables not already set.

    Args:
        environ: Variables to read (default: os.environ)
        project_root: Project root (default: PIPELINE_PROJECT_ROOT, then the
                      nearest directory holding pyproject.toml)

    Returns:
        Validated PipelineConfig

    Raises:
        ConfigurationError: If any variable has an invalid value
    """
    variables = dict(os.environ if environ is None else environ)

    if variables.get(PROJECT_ROOT_VAR):
        root = Path(variables[PROJECT_ROOT_VAR])
    else:
        root = project_root or get_project_root()

    env_file = PipelinePaths(root).eks_env_file
    if env_file.exists():
        loaded = 0
        for key, value in dotenv_values(env_file).items():
            if value is not None and key not in variables:
                variables[key] = value
                loaded += 1
        logger.debug(f"Loaded {loaded} variables from {env_file}")

    fields: dict[str, object] = {"project_root": root}
    for field_name, var_name in ENV_VARS.items():
        value = variables.get(var_name)
        if value is not None and value.strip():
            fields[field_name] = value

    try:
        config = PipelineConfig(**fields)  # type: ignore[arg-type]
    except ValidationError as e:
        problems = "\n".join(
            f"  • {ENV_VARS.get(str(err['loc'][0]), err['loc'][0])}: {err['msg']}"
            for err in e.errors()
        )
        raise ConfigurationError(
            "Invalid pipeline configuration", details=problems
        ) from e

    logger.debug(
        f"Pipeline config: target={config.deployment_target.value} "
        f"env={config.deploy_env} tag={config.image_tag}"
    )
    return config
