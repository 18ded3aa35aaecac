"""
flatdeploy — CLI entrypoint.

Usage:
    python -m flatdeploy.main --help
    python -m flatdeploy.main check
    python -m flatdeploy.main plan web worker
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from flatdeploy import __version__
from flatdeploy.core.observability.logging_config import resolve_level, setup_logging_from_env


@click.group()
@click.version_option(version=__version__, prog_name="flatdeploy")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--file",
    "-f",
    "compose_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to the compose file (default: auto-detect).",
)
@click.option(
    "--project-name",
    "-p",
    default=None,
    envvar="FLATDEPLOY_PROJECT_NAME",
    help="Project name (default: 'name:' key or directory name).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    compose_path: str | None,
    project_name: str | None,
) -> None:
    """flatdeploy — run Compose projects on a flat-network cluster."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["compose_path"] = Path(compose_path) if compose_path else None
    ctx.obj["project_name"] = project_name

    # ── Logging setup (once, at process start) ──────────────────
    setup_logging_from_env(resolve_level(debug=debug, verbose=verbose, quiet=quiet))


def _print_warnings(warnings: list) -> None:
    for w in warnings:
        click.secho(f"   ⚠️  {w}", fg="yellow")


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def check(ctx: click.Context, as_json: bool) -> None:
    """List compose keys the cluster will ignore."""
    from flatdeploy.core.use_cases.check import check_compose

    result = check_compose(
        compose_path=ctx.obj.get("compose_path"),
        project_name=ctx.obj.get("project_name"),
    )

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(1 if result.error else 0)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    assert result.project is not None  # guaranteed after error check above

    if not result.warnings:
        click.secho(f"✅ {result.project.name}: all compose keys are supported", fg="green")
        return

    click.secho(
        f"\n📋 {result.project.name}: {len(result.warnings)} unsupported key(s)",
        fg="cyan",
        bold=True,
    )
    _print_warnings(result.warnings)
    click.echo()


@cli.command()
@click.argument("services", nargs=-1)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def plan(ctx: click.Context, services: tuple[str, ...], as_json: bool) -> None:
    """Build the deploy plan: warnings, images, replicas and secrets.

    Examples:

        flatdeploy plan

        flatdeploy -f compose.prod.yaml plan web worker
    """
    from flatdeploy.core.use_cases.plan import plan_deploy

    result = plan_deploy(
        compose_path=ctx.obj.get("compose_path"),
        project_name=ctx.obj.get("project_name"),
        services=list(services) if services else None,
    )

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if result.ok else 1)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    deploy_plan = result.plan
    assert deploy_plan is not None

    click.secho(f"\n🚀 Plan: {deploy_plan.project}", fg="cyan", bold=True)

    if deploy_plan.warnings and not ctx.obj.get("quiet"):
        click.echo()
        click.secho(f"   Warnings ({len(deploy_plan.warnings)}):", fg="yellow", bold=True)
        _print_warnings(deploy_plan.warnings)

    click.echo()
    for svc in deploy_plan.services:
        click.secho(f"   • {svc.name}", fg="green", bold=True, nl=False)
        click.echo(f"  {svc.image}  ×{svc.replicas}")
        for spec, mount in zip(svc.secrets, svc.secret_mounts):
            click.echo(f"       🔑 {spec.name} ({len(spec.content)} bytes) → {mount.container_path}")

    click.echo()


# ── Register sub-command groups from flatdeploy/ui/cli/ ─────────

from flatdeploy.ui.cli.image import image  # noqa: E402
from flatdeploy.ui.cli.secrets import secrets  # noqa: E402

cli.add_command(image)
cli.add_command(secrets)


if __name__ == "__main__":
    cli()
