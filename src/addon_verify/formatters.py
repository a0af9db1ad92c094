"""CLI output formatting helpers."""

from __future__ import annotations

from typing import Any

import click
import yaml
from rich.console import Console
from rich.table import Table

from .config import VerifierConfig
from .verify import CheckItem, ItemResult, VerificationReport

console = Console()


def item_to_dict(item: CheckItem) -> dict[str, Any]:
    return {
        "slot": item.slot.value,
        "cluster": item.target.value,
        "package_install": item.resource_name,
        "short_name": item.short_name,
        "package": item.full_name,
        "version": item.version,
    }


def result_to_dict(result: ItemResult) -> dict[str, Any]:
    return {
        **item_to_dict(result.item),
        "outcome": result.outcome.value,
        "attempts": result.attempts,
        "elapsed_seconds": round(result.elapsed_seconds, 3),
        "last_reason": result.last_reason,
    }


def report_to_dict(report: VerificationReport) -> dict[str, Any]:
    """Convert a verification report to a JSON-serializable dict."""
    return {
        "management_cluster": report.management_cluster,
        "workload_cluster": report.workload_cluster,
        "infrastructure": report.infrastructure,
        "ok": report.ok,
        "checks": [result_to_dict(r) for r in report.results],
        "not_checked": [item_to_dict(i) for i in report.plan[len(report.results) :]],
    }


def print_plan(items: list[CheckItem]) -> None:
    """Print planned add-on checks as a table.

    Args:
        items: Check items in plan order
    """
    if not items:
        click.echo("No add-ons to check")
        return

    table = Table(title="Add-on checks")
    table.add_column("Slot")
    table.add_column("Cluster")
    table.add_column("PackageInstall")
    table.add_column("Package")
    table.add_column("Version")
    for item in items:
        table.add_row(item.slot.value, item.target.value, item.resource_name, item.full_name, item.version)
    console.print(table)


def print_report(report: VerificationReport) -> None:
    """Print verification results.

    Args:
        report: Report of a verification run
    """
    click.echo(
        f"Workload cluster: {report.workload_cluster} "
        f"(management cluster {report.management_cluster}, {report.infrastructure})\n"
    )
    for result in report.results:
        mark = "✓" if result.converged else "✗"
        click.echo(
            f"  {mark} {result.item.resource_name}: {result.item.full_name} "
            f"{result.item.version} [{result.outcome.value}, {result.attempts} attempt(s)]"
        )
    for item in report.plan[len(report.results) :]:
        click.echo(f"  - {item.resource_name}: not checked")

    if report.ok:
        click.echo(f"\n✓ All {len(report.plan)} add-ons converged")


def print_config(config: VerifierConfig) -> None:
    """Print effective configuration with value sources.

    Args:
        config: Loaded configuration
    """
    click.echo("addon-verify configuration\n")
    for key, value in config.to_dict().items():
        rendered = yaml.safe_dump(value, default_flow_style=True).strip()
        if rendered.endswith("..."):
            rendered = rendered[:-3].strip()
        click.echo(f"  {key}: {rendered}  ({config.get_source(key)})")
