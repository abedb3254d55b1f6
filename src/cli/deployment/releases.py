"""Release inspection and teardown.

Shows what the pipeline has deployed in each environment and removes it
again. On targets that use per-environment namespaces, ingresses and
services are deleted before the release is uninstalled so that cloud load
balancers created for them are released.
"""

from __future__ import annotations

from collections.abc import Sequence

from loguru import logger
from rich.table import Table

from src.utils.console_like import ConsoleLike, coalesce_console

from .constants import PipelineConstants
from .shell_commands import ShellCommands
from .target import EnvironmentRecord, ResolvedTarget


class ReleaseManager:
    """Inspects and removes the releases the pipeline deploys."""

    def __init__(
        self,
        commands: ShellCommands,
        target: ResolvedTarget,
        constants: PipelineConstants | None = None,
        console: ConsoleLike | None = None,
    ) -> None:
        self.commands = commands
        self.target = target
        self.constants = constants or PipelineConstants()
        self.console = coalesce_console(console)

    def records(self, environments: Sequence[str] | None = None) -> list[EnvironmentRecord]:
        """Environment records with distinct release/namespace pairs.

        On a target without per-environment namespaces every environment
        shares one release, so it is listed once under the first name.
        """
        seen: set[tuple[str, str | None]] = set()
        records = []
        for env in environments or self.constants.ENVIRONMENTS:
            record = self.target.environment(env)
            key = (record.release_name, record.namespace)
            if key in seen:
                continue
            seen.add(key)
            records.append(record)
        return records

    # =========================================================================
    # Status
    # =========================================================================

    def build_status_table(self) -> Table:
        """Build a table of release state and endpoints per environment."""
        table = Table(show_header=True, header_style="bold")
        table.add_column("Environment")
        table.add_column("Release")
        table.add_column("Namespace", style="dim")
        table.add_column("Status")
        table.add_column("Revision", justify="right")
        table.add_column("Chart")
        table.add_column("Endpoints")

        for record in self.records():
            release = next(
                (
                    r
                    for r in self.commands.helm.list_releases(record.namespace)
                    if r.name == record.release_name
                ),
                None,
            )
            if release is None:
                status = "[dim]not deployed[/dim]"
                revision = chart = ""
            else:
                color = "green" if release.status == "deployed" else "yellow"
                status = f"[{color}]{release.status}[/{color}]"
                revision = release.revision
                chart = release.chart

            table.add_row(
                record.name,
                record.release_name,
                record.namespace or "(current)",
                status,
                revision,
                chart,
                "\n".join(self._endpoints(record)) or "-",
            )
        return table

    def show_status(self) -> None:
        """Print the status table."""
        self.console.print(self.build_status_table())

    def _endpoints(self, record: EnvironmentRecord) -> list[str]:
        endpoints = [
            f"{ing.name}: {ing.address or ing.hosts or 'pending'}"
            for ing in self.commands.kubectl.get_ingresses(record.namespace)
        ]
        endpoints.extend(
            f"{svc.name}: {svc.external_ip}"
            for svc in self.commands.kubectl.get_services(record.namespace)
            if svc.external_ip
        )
        return endpoints

    # =========================================================================
    # Teardown
    # =========================================================================

    def teardown(self) -> bool:
        """Remove every environment's release, last environment first.

        Each environment is attempted even if an earlier one fails.

        Returns:
            True if every environment was removed (or was already absent)
        """
        ok = True
        for record in reversed(self.records()):
            if not self._teardown_environment(record):
                ok = False
        return ok

    def _teardown_environment(self, record: EnvironmentRecord) -> bool:
        self.console.print(f"[bold red]Removing {record.release_name} ({record.name})...[/bold red]")

        if record.namespace:
            for resource_type in ("ingress", "svc"):
                result = self.commands.kubectl.delete_all(resource_type, record.namespace)
                if not result.success:
                    self.console.warn(
                        f"Could not delete {resource_type} in {record.namespace}: "
                        f"{result.stderr.strip()}"
                    )

        result = self.commands.helm.uninstall(record.release_name, record.namespace)
        if result.success:
            self.console.ok(f"Removed {record.release_name}")
            return True
        if "not found" in result.output.lower():
            self.console.info(f"{record.release_name} is not installed")
            return True

        logger.warning(f"helm uninstall {record.release_name} exited {result.returncode}")
        self.console.error(
            f"Failed to uninstall {record.release_name}: {result.output.strip()}"
        )
        return False
