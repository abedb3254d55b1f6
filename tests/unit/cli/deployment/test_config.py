"""Tests for pipeline configuration loading."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from src.cli.deployment.config import PipelineConfig, load_pipeline_config
from src.cli.deployment.errors import ConfigurationError
from src.cli.deployment.target import DeploymentTarget


class TestLoadPipelineConfig:
    """Tests for load_pipeline_config."""

    def test_defaults(self, tmp_path: Path) -> None:
        config = load_pipeline_config({}, project_root=tmp_path)

        assert config.project_root == tmp_path
        assert config.image_tag == "latest"
        assert config.deploy_env == "dev"
        assert config.deployment_target is DeploymentTarget.KIND
        assert config.ecr_repo_uri is None
        assert config.log_level == "WARNING"

    def test_reads_environment_variables(self, tmp_path: Path) -> None:
        config = load_pipeline_config(
            {
                "IMAGE_TAG": "abc123",
                "DEPLOY_ENV": "staging",
                "DEPLOYMENT_TARGET": "EKS",
                "AWS_REGION": "eu-west-1",
                "ECR_REPO_URI": "1.dkr.ecr.eu-west-1.amazonaws.com/sample-app",
                "PIPELINE_LOG_LEVEL": "debug",
            },
            project_root=tmp_path,
        )

        assert config.image_tag == "abc123"
        assert config.deploy_env == "staging"
        assert config.deployment_target is DeploymentTarget.EKS
        assert config.aws_region == "eu-west-1"
        assert config.log_level == "DEBUG"

    def test_project_root_variable_wins(self, tmp_path: Path) -> None:
        other = tmp_path / "elsewhere"
        other.mkdir()

        config = load_pipeline_config(
            {"PIPELINE_PROJECT_ROOT": str(other)}, project_root=tmp_path
        )

        assert config.project_root == other

    def test_empty_variables_are_ignored(self, tmp_path: Path) -> None:
        config = load_pipeline_config(
            {"IMAGE_TAG": "", "AWS_REGION": "  "}, project_root=tmp_path
        )

        assert config.image_tag == "latest"
        assert config.aws_region is None

    @pytest.mark.parametrize(
        ("var", "value"),
        [
            ("DEPLOY_ENV", "qa"),
            ("DEPLOYMENT_TARGET", "gke"),
            ("PIPELINE_LOG_LEVEL", "loud"),
        ],
    )
    def test_invalid_value_is_configuration_error(
        self, tmp_path: Path, var: str, value: str
    ) -> None:
        with pytest.raises(ConfigurationError) as excinfo:
            load_pipeline_config({var: value}, project_root=tmp_path)

        assert excinfo.value.message == "Invalid pipeline configuration"
        assert var in (excinfo.value.details or "")


class TestEksEnvFile:
    """Tests for .env.eks loading."""

    def test_fills_missing_variables(self, tmp_path: Path) -> None:
        (tmp_path / ".env.eks").write_text(
            "ECR_REPO_URI=1.dkr.ecr.us-east-1.amazonaws.com/sample-app\n"
            "AWS_ACCOUNT_ID=1\n"
        )

        config = load_pipeline_config({}, project_root=tmp_path)

        assert config.ecr_repo_uri == "1.dkr.ecr.us-east-1.amazonaws.com/sample-app"
        assert config.aws_account_id == "1"

    def test_does_not_override_exported_variables(self, tmp_path: Path) -> None:
        (tmp_path / ".env.eks").write_text("AWS_REGION=us-east-1\n")

        config = load_pipeline_config({"AWS_REGION": "ap-south-1"}, project_root=tmp_path)

        assert config.aws_region == "ap-south-1"


class TestPipelineConfig:
    """Tests for the PipelineConfig model."""

    def test_is_immutable(self, tmp_path: Path) -> None:
        config = PipelineConfig(project_root=tmp_path)

        with pytest.raises(ValidationError):
            config.image_tag = "other"  # type: ignore[misc]

    def test_rejects_blank_image_tag(self, tmp_path: Path) -> None:
        with pytest.raises(ValidationError):
            PipelineConfig(project_root=tmp_path, image_tag="   ")
