"""CLI main entry point."""

from __future__ import annotations

import asyncio
import json
import signal
import sys
from typing import Any

import click
import yaml

from . import __version__
from .cluster import ClusterBootstrap, KubectlClient
from .config import VerifierConfig, load_config
from .errors import (
    AddonNotConvergedError,
    AddonVerifyError,
    ConfigError,
    PlanningError,
    VerificationCancelledError,
)
from .shared.logging import configure_logging, level_for_verbosity

EXIT_FAILED = 1
EXIT_USAGE = 2
EXIT_INTERRUPTED = 130


def _load(ctx: click.Context, **overrides: Any) -> VerifierConfig:
    """Load config with CLI overrides, exiting on configuration errors."""
    try:
        return load_config(ctx.obj["config_path"]).with_overrides(**overrides)
    except ConfigError as e:
        click.echo(f"Error: {e.message}", err=True)
        sys.exit(EXIT_USAGE)


@click.group()
@click.option("-c", "--config", type=click.Path(), help="Config file path")
@click.option("-v", "--verbose", count=True, help="Increase verbosity")
@click.option("--json", "json_output", is_flag=True, help="Output as JSON")
@click.option("--log-file", type=click.Path(dir_okay=False), help="Write logs to a file")
@click.option("--log-json", is_flag=True, help="Emit logs as JSON")
@click.version_option(__version__, prog_name="addon-verify")
@click.pass_context
def cli(
    ctx: click.Context,
    config: str | None,
    verbose: int,
    json_output: bool,
    log_file: str | None,
    log_json: bool,
) -> None:
    """Verify ClusterBootstrap add-ons on management and workload clusters."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config
    ctx.obj["json_output"] = json_output
    configure_logging(level_for_verbosity(verbose), log_file=log_file, json_output=log_json)


@cli.command()
@click.option("--management-cluster", required=True, help="Management cluster name")
@click.option("--workload-cluster", required=True, help="Workload cluster name")
@click.option("--infrastructure", "-i", required=True, help="Infrastructure provider (e.g. vsphere, aws, azure)")
@click.option("--management-kubeconfig", type=click.Path(exists=True, dir_okay=False), help="Management cluster kubeconfig")
@click.option("--workload-kubeconfig", type=click.Path(exists=True, dir_okay=False), help="Workload cluster kubeconfig")
@click.option("--management-context", help="Kubeconfig context for the management cluster")
@click.option("--workload-context", help="Kubeconfig context for the workload cluster")
@click.option("--ready-timeout", type=float, help="Seconds to wait for each add-on")
@click.option("--poll-interval", type=float, help="Seconds between status checks")
@click.option("--concurrency", type=int, help="Add-ons checked in parallel")
@click.option("--no-exclusions", is_flag=True, help="Check packages excluded for known issues")
@click.pass_context
def verify(
    ctx: click.Context,
    management_cluster: str,
    workload_cluster: str,
    infrastructure: str,
    management_kubeconfig: str | None,
    workload_kubeconfig: str | None,
    management_context: str | None,
    workload_context: str | None,
    ready_timeout: float | None,
    poll_interval: float | None,
    concurrency: int | None,
    no_exclusions: bool,
) -> None:
    """Wait for ClusterBootstrap add-ons to converge.

    Exits 0 when every add-on converged, 1 when one did not, 2 on
    configuration or declaration errors and 130 when interrupted.
    """
    from .formatters import print_report, report_to_dict
    from .verify import BootstrapVerifier

    config = _load(
        ctx,
        ready_timeout=ready_timeout,
        poll_interval=poll_interval,
        concurrency=concurrency,
        excluded_packages=[] if no_exclusions else None,
    )
    verifier = BootstrapVerifier(
        management_client=KubectlClient(kubeconfig=management_kubeconfig, context=management_context),
        workload_client=KubectlClient(kubeconfig=workload_kubeconfig, context=workload_context),
        config=config,
    )

    async def _verify():
        cancel_event = asyncio.Event()
        loop = asyncio.get_running_loop()
        try:
            loop.add_signal_handler(signal.SIGTERM, cancel_event.set)
        except (NotImplementedError, RuntimeError):
            pass  # Not supported on this platform or thread
        try:
            return await verifier.verify(
                management_cluster, workload_cluster, infrastructure, cancel_event=cancel_event
            )
        finally:
            try:
                loop.remove_signal_handler(signal.SIGTERM)
            except (NotImplementedError, RuntimeError):
                pass

    try:
        report = asyncio.run(_verify())
    except KeyboardInterrupt:
        click.echo("Interrupted", err=True)
        sys.exit(EXIT_INTERRUPTED)
    except VerificationCancelledError as e:
        click.echo(f"Error: {e.message}", err=True)
        sys.exit(EXIT_INTERRUPTED)
    except AddonNotConvergedError as e:
        if ctx.obj["json_output"] and e.report is not None:
            click.echo(json.dumps(report_to_dict(e.report), indent=2))
        elif e.report is not None:
            print_report(e.report)
        click.echo(f"Error: {e.message}", err=True)
        sys.exit(EXIT_FAILED)
    except PlanningError as e:
        click.echo(f"Error: {e.message}", err=True)
        sys.exit(EXIT_USAGE)
    except AddonVerifyError as e:
        click.echo(f"Error: {e.message}", err=True)
        sys.exit(EXIT_FAILED)

    if ctx.obj["json_output"]:
        click.echo(json.dumps(report_to_dict(report), indent=2))
    else:
        print_report(report)


@cli.command()
@click.option(
    "--bootstrap-file",
    "-f",
    required=True,
    type=click.Path(exists=True, dir_okay=False),
    help="ClusterBootstrap YAML or JSON document",
)
@click.option("--management-cluster", required=True, help="Management cluster name")
@click.option("--workload-cluster", required=True, help="Workload cluster name")
@click.option("--infrastructure", "-i", required=True, help="Infrastructure provider")
@click.option("--no-exclusions", is_flag=True, help="Include packages excluded for known issues")
@click.pass_context
def plan(
    ctx: click.Context,
    bootstrap_file: str,
    management_cluster: str,
    workload_cluster: str,
    infrastructure: str,
    no_exclusions: bool,
) -> None:
    """Show the add-on checks for a ClusterBootstrap without contacting a cluster."""
    from .formatters import item_to_dict, print_plan
    from .verify import AddonPlanner

    config = _load(ctx, excluded_packages=[] if no_exclusions else None)

    try:
        with open(bootstrap_file) as f:
            document = yaml.safe_load(f)
    except yaml.YAMLError as e:
        click.echo(f"Error: Cannot parse {bootstrap_file}: {e}", err=True)
        sys.exit(EXIT_USAGE)
    if not isinstance(document, dict):
        click.echo(f"Error: {bootstrap_file} is not a ClusterBootstrap document", err=True)
        sys.exit(EXIT_USAGE)

    planner = AddonPlanner(exclusions=config.excluded_packages, strict=config.strict_references)
    try:
        items = planner.plan(
            ClusterBootstrap.from_object(document),
            infrastructure,
            management_cluster,
            workload_cluster,
        )
    except PlanningError as e:
        click.echo(f"Error: {e.message}", err=True)
        sys.exit(EXIT_USAGE)

    if ctx.obj["json_output"]:
        click.echo(json.dumps([item_to_dict(i) for i in items], indent=2))
    else:
        print_plan(items)


@cli.group()
def config() -> None:
    """Configuration commands."""


@config.command("show")
@click.pass_context
def config_show(ctx: click.Context) -> None:
    """Show effective configuration and where each value came from."""
    from .formatters import print_config

    loaded = _load(ctx)
    if ctx.obj["json_output"]:
        data = {
            "values": loaded.to_dict(),
            "sources": {key: loaded.get_source(key) for key in loaded.to_dict()},
        }
        click.echo(json.dumps(data, indent=2))
    else:
        print_config(loaded)


def main() -> None:
    """Main entry point."""
    cli(obj={})


if __name__ == "__main__":
    main()
