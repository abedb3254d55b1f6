"""Kubectl command abstractions.

This module provides the handful of cluster API operations the pipeline
needs: namespace management and service/ingress inspection and cleanup.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from .types import CommandResult, IngressInfo, ServiceInfo

if TYPE_CHECKING:
    from .runner import CommandExecutor


class KubectlCommands:
    """Kubectl-related shell commands.

    Provides operations for:
    - Namespace management (exists, create)
    - Service and ingress inspection
    - Resource deletion by kind
    """

    def __init__(self, runner: CommandExecutor) -> None:
        """Initialize kubectl commands.

        Args:
            runner: Command runner for executing shell commands
        """
        self._runner = runner

    # =========================================================================
    # Namespace Management
    # =========================================================================

    def namespace_exists(self, namespace: str) -> bool:
        """Check if a namespace exists."""
        result = self._runner.run(["kubectl", "get", "namespace", namespace])
        return result.success

    def create_namespace(self, namespace: str) -> CommandResult:
        """Create a namespace."""
        return self._runner.run(["kubectl", "create", "namespace", namespace])

    # =========================================================================
    # Resource Deletion
    # =========================================================================

    def delete_all(self, resource_type: str, namespace: str) -> CommandResult:
        """Delete every resource of a kind in a namespace.

        Missing resources are not an error.
        """
        return self._runner.run(
            [
                "kubectl",
                "delete",
                resource_type,
                "--all",
                "-n",
                namespace,
                "--ignore-not-found",
            ]
        )

    # =========================================================================
    # Service Operations
    # =========================================================================

    def get_services(self, namespace: str | None = None) -> list[ServiceInfo]:
        """Get all services in a namespace."""
        cmd = ["kubectl", "get", "services", "-o", "json"]
        if namespace:
            cmd.extend(["-n", namespace])
        result = self._runner.run(cmd)
        if not result.success or not result.stdout:
            return []

        try:
            data = json.loads(result.stdout)
        except json.JSONDecodeError:
            return []

        services = []
        for svc in data.get("items", []):
            metadata = svc.get("metadata", {})
            spec = svc.get("spec", {})
            status = svc.get("status", {})

            # Get external IP from LoadBalancer status
            external_ip = ""
            lb_ingress = status.get("loadBalancer", {}).get("ingress", [])
            if lb_ingress:
                external_ip = lb_ingress[0].get("ip", lb_ingress[0].get("hostname", ""))

            # Format ports
            ports = []
            for port in spec.get("ports", []):
                port_str = f"{port.get('port')}"
                if target := port.get("targetPort"):
                    port_str += f":{target}"
                if proto := port.get("protocol"):
                    port_str += f"/{proto}"
                ports.append(port_str)

            services.append(
                ServiceInfo(
                    name=metadata.get("name", ""),
                    type=spec.get("type", ""),
                    cluster_ip=spec.get("clusterIP", ""),
                    external_ip=external_ip,
                    ports=",".join(ports),
                )
            )
        return services

    def get_ingresses(self, namespace: str | None = None) -> list[IngressInfo]:
        """Get all ingresses in a namespace with their load balancer address."""
        cmd = ["kubectl", "get", "ingress", "-o", "json"]
        if namespace:
            cmd.extend(["-n", namespace])
        result = self._runner.run(cmd)
        if not result.success or not result.stdout:
            return []

        try:
            data = json.loads(result.stdout)
        except json.JSONDecodeError:
            return []

        ingresses = []
        for ing in data.get("items", []):
            rules = ing.get("spec", {}).get("rules", [])
            hosts = [rule["host"] for rule in rules if rule.get("host")]
            lb_ingress = ing.get("status", {}).get("loadBalancer", {}).get("ingress", [])
            address = ""
            if lb_ingress:
                address = lb_ingress[0].get("hostname", lb_ingress[0].get("ip", ""))
            ingresses.append(
                IngressInfo(
                    name=ing.get("metadata", {}).get("name", ""),
                    hosts=",".join(hosts),
                    address=address,
                )
            )
        return ingresses
