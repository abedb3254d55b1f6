"""Tests for the docker, helm, kubectl and aws command builders."""

import json
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from src.cli.deployment.shell_commands import (
    AwsCommands,
    DockerCommands,
    HelmCommands,
    KubectlCommands,
    ShellCommands,
)
from src.cli.deployment.shell_commands.types import CommandResult


@pytest.fixture
def mock_runner() -> MagicMock:
    """Create a mock command runner."""
    runner = MagicMock()
    runner.run.return_value = CommandResult(success=True)
    runner.run_streaming.return_value = CommandResult(success=True)
    return runner


class TestHelmCommands:
    """Tests for Helm command construction."""

    @pytest.fixture
    def helm(self, mock_runner: MagicMock) -> HelmCommands:
        return HelmCommands(mock_runner)

    def test_lint_without_overlay(self, helm: HelmCommands, mock_runner: MagicMock) -> None:
        helm.lint(Path("helm/sample-app"))

        cmd = mock_runner.run_streaming.call_args[0][0]
        assert cmd == ["helm", "lint", "helm/sample-app"]

    def test_lint_with_overlay(self, helm: HelmCommands, mock_runner: MagicMock) -> None:
        helm.lint(Path("helm/sample-app"), values_file=Path("environments/dev.yaml"))

        cmd = mock_runner.run_streaming.call_args[0][0]
        assert cmd[-2:] == ["-f", "environments/dev.yaml"]

    def test_upgrade_install_without_namespace(
        self, helm: HelmCommands, mock_runner: MagicMock
    ) -> None:
        helm.upgrade_install(
            "sample-app",
            "oci://localhost:5001/charts/sample-app",
            value_files=[Path("environments/staging.yaml")],
            set_values={"image.tag": "v1"},
        )

        cmd = mock_runner.run_streaming.call_args[0][0]
        assert cmd[:5] == [
            "helm",
            "upgrade",
            "--install",
            "sample-app",
            "oci://localhost:5001/charts/sample-app",
        ]
        assert "--namespace" not in cmd
        assert ["-f", "environments/staging.yaml"] == cmd[5:7]
        assert "image.tag=v1" in cmd
        assert "--wait" in cmd
        assert cmd[-2:] == ["--timeout", "120s"]

    def test_upgrade_install_with_namespace(
        self, helm: HelmCommands, mock_runner: MagicMock
    ) -> None:
        helm.upgrade_install("sample-app-prod", "oci://r/sample-app", "prod", wait=False)

        cmd = mock_runner.run_streaming.call_args[0][0]
        assert cmd[5:7] == ["--namespace", "prod"]
        assert "--wait" not in cmd

    def test_test_passes_timeout(self, helm: HelmCommands, mock_runner: MagicMock) -> None:
        helm.test("sample-app-dev", "dev", timeout="30s")

        cmd = mock_runner.run_streaming.call_args[0][0]
        assert cmd == [
            "helm",
            "test",
            "sample-app-dev",
            "--namespace",
            "dev",
            "--timeout",
            "30s",
        ]

    def test_registry_login_uses_stdin(
        self, helm: HelmCommands, mock_runner: MagicMock
    ) -> None:
        helm.registry_login("registry.example.com", "AWS", "s3cret")

        args, kwargs = mock_runner.run.call_args
        assert "s3cret" not in args[0]
        assert "--password-stdin" in args[0]
        assert kwargs["input_data"] == "s3cret"

    def test_list_releases_parses_json(
        self, helm: HelmCommands, mock_runner: MagicMock
    ) -> None:
        mock_runner.run.return_value = CommandResult(
            success=True,
            stdout=json.dumps(
                [
                    {
                        "name": "sample-app-dev",
                        "namespace": "dev",
                        "status": "deployed",
                        "revision": 4,
                        "chart": "sample-app-0.1.0",
                    }
                ]
            ),
        )

        releases = helm.list_releases("dev")

        assert len(releases) == 1
        assert releases[0].name == "sample-app-dev"
        assert releases[0].revision == "4"
        assert releases[0].chart == "sample-app-0.1.0"

    def test_list_releases_tolerates_bad_output(
        self, helm: HelmCommands, mock_runner: MagicMock
    ) -> None:
        mock_runner.run.return_value = CommandResult(success=True, stdout="not json")

        assert helm.list_releases() == []


class TestDockerCommands:
    """Tests for Docker command construction."""

    @pytest.fixture
    def docker(self, mock_runner: MagicMock) -> DockerCommands:
        return DockerCommands(mock_runner)

    def test_build_image(self, docker: DockerCommands, mock_runner: MagicMock) -> None:
        docker.build_image("localhost:5001/sample-app:v1", Path("/work"))

        cmd = mock_runner.run_streaming.call_args[0][0]
        assert cmd == ["docker", "build", "-t", "localhost:5001/sample-app:v1", "/work"]

    def test_login_uses_stdin(self, docker: DockerCommands, mock_runner: MagicMock) -> None:
        docker.login("registry.example.com", "AWS", "s3cret")

        args, kwargs = mock_runner.run.call_args
        assert args[0][-1] == "registry.example.com"
        assert "s3cret" not in args[0]
        assert kwargs["input_data"] == "s3cret"

    def test_run_in_copy_mounts_source_read_only(
        self, docker: DockerCommands, mock_runner: MagicMock
    ) -> None:
        docker.run_in_copy(
            "node:22-alpine",
            Path("/work"),
            "npm ci && npm test",
            excludes=("node_modules", ".git"),
        )

        cmd = mock_runner.run_streaming.call_args[0][0]
        assert cmd[:3] == ["docker", "run", "--rm"]
        assert "/work:/src:ro" in cmd
        assert "node:22-alpine" in cmd
        script = cmd[-1]
        assert "--exclude=./node_modules" in script
        assert "--exclude=./.git" in script
        assert script.endswith("&& npm ci && npm test")


class TestKubectlCommands:
    """Tests for kubectl command construction and parsing."""

    @pytest.fixture
    def kubectl(self, mock_runner: MagicMock) -> KubectlCommands:
        return KubectlCommands(mock_runner)

    def test_namespace_exists(self, kubectl: KubectlCommands, mock_runner: MagicMock) -> None:
        mock_runner.run.return_value = CommandResult(success=False, returncode=1)

        assert kubectl.namespace_exists("staging") is False
        assert mock_runner.run.call_args[0][0] == [
            "kubectl",
            "get",
            "namespace",
            "staging",
        ]

    def test_get_services_reads_load_balancer_hostname(
        self, kubectl: KubectlCommands, mock_runner: MagicMock
    ) -> None:
        mock_runner.run.return_value = CommandResult(
            success=True,
            stdout=json.dumps(
                {
                    "items": [
                        {
                            "metadata": {"name": "sample-app"},
                            "spec": {
                                "type": "LoadBalancer",
                                "clusterIP": "10.0.0.1",
                                "ports": [
                                    {"port": 80, "targetPort": 3000, "protocol": "TCP"}
                                ],
                            },
                            "status": {
                                "loadBalancer": {"ingress": [{"hostname": "lb.aws"}]}
                            },
                        }
                    ]
                }
            ),
        )

        services = kubectl.get_services("prod")

        assert services[0].external_ip == "lb.aws"
        assert services[0].ports == "80:3000/TCP"
        assert mock_runner.run.call_args[0][0][-2:] == ["-n", "prod"]

    def test_get_ingresses_without_namespace(
        self, kubectl: KubectlCommands, mock_runner: MagicMock
    ) -> None:
        mock_runner.run.return_value = CommandResult(
            success=True,
            stdout=json.dumps(
                {
                    "items": [
                        {
                            "metadata": {"name": "sample-app"},
                            "spec": {"rules": [{"host": "app.example.com"}]},
                            "status": {},
                        }
                    ]
                }
            ),
        )

        ingresses = kubectl.get_ingresses()

        assert ingresses[0].hosts == "app.example.com"
        assert ingresses[0].address == ""
        assert "-n" not in mock_runner.run.call_args[0][0]


def test_aws_ecr_login_password(mock_runner: MagicMock) -> None:
    AwsCommands(mock_runner).ecr_login_password("eu-west-1")

    assert mock_runner.run.call_args[0][0] == [
        "aws",
        "ecr",
        "get-login-password",
        "--region",
        "eu-west-1",
    ]


def test_shell_commands_share_one_executor(mock_runner: MagicMock) -> None:
    commands = ShellCommands(Path("/work"), executor=mock_runner)

    commands.helm.uninstall("sample-app")
    commands.kubectl.create_namespace("dev")

    assert commands.executor is mock_runner
    assert mock_runner.run.call_count == 2
