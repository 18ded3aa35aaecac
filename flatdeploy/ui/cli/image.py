"""
CLI commands for images on the cluster.

Thin wrappers over ``flatdeploy.core.services.cluster_ops``. The cluster
transport is supplied by whatever embeds the CLI, through
``ctx.obj["transport"]``; ``--mock`` swaps in the in-memory transport.
"""

from __future__ import annotations

import json
import sys

import click

from flatdeploy.adapters.base import ClusterTransport

_MACHINE_HELP = (
    "Filter machines to {verb} on. Can be specified multiple times or as a "
    "comma-separated list. (default is all machines)"
)


def _transport(ctx: click.Context) -> ClusterTransport:
    """Resolve the cluster transport, or exit when none is configured."""
    transport: ClusterTransport | None = ctx.obj.get("transport")
    if transport is None and ctx.obj.get("mock_transport"):
        from flatdeploy.adapters.mock import MockClusterTransport

        transport = MockClusterTransport()
        ctx.obj["transport"] = transport
    if transport is None:
        click.secho("❌ No cluster transport configured (use --mock to try commands)", fg="red")
        sys.exit(1)
    return transport


def _machines(values: tuple[str, ...]) -> list[str]:
    from flatdeploy.core.services.cluster_ops import expand_comma_separated_values

    return expand_comma_separated_values(values)


def _emit(reports: list, as_json: bool) -> None:
    if as_json:
        click.echo(json.dumps([r.to_dict() for r in reports], indent=2))
        return
    for report in reports:
        prefix = f"[{report.machine}] " if report.machine else ""
        color = None if report.ok else "red"
        for line in report.lines:
            click.secho(f"{prefix}{line}", fg=color)


@click.group()
@click.option("--mock", is_flag=True, help="Use the in-memory mock transport.")
@click.pass_context
def image(ctx: click.Context, mock: bool) -> None:
    """Images on the cluster — pull, prune, tag, rm, inspect."""
    ctx.ensure_object(dict)
    ctx.obj["mock_transport"] = mock


@image.command()
@click.argument("name")
@click.option("--machine", "-m", "machines", multiple=True, help=_MACHINE_HELP.format(verb="pull image"))
@click.option("--all-tags", "-a", is_flag=True, help="Download all tagged images in the repository.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def pull(ctx: click.Context, name: str, machines: tuple[str, ...], all_tags: bool, as_json: bool) -> None:
    """Pull an image from a remote registry to the cluster."""
    from flatdeploy.core.errors import ClusterOpError
    from flatdeploy.core.services.cluster_ops import pull_image

    transport = _transport(ctx)
    try:
        reports = pull_image(transport, name, _machines(machines), all_tags=all_tags)
    except ClusterOpError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)
    _emit(reports, as_json)
    if not all(r.ok for r in reports):
        sys.exit(1)


@image.command()
@click.option("--machine", "-m", "machines", multiple=True, help=_MACHINE_HELP.format(verb="prune images"))
@click.option("--force", "-f", is_flag=True, help="Do not prompt for confirmation.")
@click.option("--all", "-a", "all_images", is_flag=True, help="Remove all unused images, not just dangling ones.")
@click.option("--filter", "filters", multiple=True, help="Provide filter values (e.g. 'until=<timestamp>').")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def prune(
    ctx: click.Context,
    machines: tuple[str, ...],
    force: bool,
    all_images: bool,
    filters: tuple[str, ...],
    as_json: bool,
) -> None:
    """Remove unused images from the cluster."""
    from flatdeploy.core.errors import ClusterOpError
    from flatdeploy.core.services.cluster_ops import prune_images

    if not force and not click.confirm("Are you sure you want to remove all dangling images?"):
        return

    transport = _transport(ctx)
    try:
        reports = prune_images(transport, _machines(machines), filters, all_images=all_images)
    except ClusterOpError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)
    _emit(reports, as_json)


@image.command()
@click.argument("source")
@click.argument("target")
@click.option("--machine", "-m", "machines", multiple=True, help=_MACHINE_HELP.format(verb="tag image"))
@click.pass_context
def tag(ctx: click.Context, source: str, target: str, machines: tuple[str, ...]) -> None:
    """Create a tag TARGET that refers to SOURCE."""
    from flatdeploy.core.errors import ClusterOpError
    from flatdeploy.core.services.cluster_ops import tag_image

    transport = _transport(ctx)
    try:
        tag_image(transport, source, target, _machines(machines))
    except ClusterOpError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)
    click.echo(f"Tagged {source} as {target}")


@image.command("rm")
@click.argument("images", nargs=-1, required=True)
@click.option("--machine", "-m", "machines", multiple=True, help=_MACHINE_HELP.format(verb="remove images from"))
@click.option("--force", "-f", is_flag=True, help="Force removal of the image.")
@click.option("--no-prune", is_flag=True, help="Do not delete untagged parents.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def remove(
    ctx: click.Context,
    images: tuple[str, ...],
    machines: tuple[str, ...],
    force: bool,
    no_prune: bool,
    as_json: bool,
) -> None:
    """Remove one or more images from the cluster."""
    from flatdeploy.core.errors import ClusterOpError
    from flatdeploy.core.services.cluster_ops import remove_images

    transport = _transport(ctx)
    try:
        reports = remove_images(
            transport, list(images), _machines(machines),
            force=force, prune_children=not no_prune,
        )
    except ClusterOpError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)
    _emit(reports, as_json)


@image.command()
@click.argument("images", nargs=-1, required=True)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def inspect(ctx: click.Context, images: tuple[str, ...], as_json: bool) -> None:
    """Show image details from every machine."""
    from flatdeploy.core.errors import ClusterOpError
    from flatdeploy.core.services.cluster_ops import inspect_images

    transport = _transport(ctx)
    try:
        reports = inspect_images(transport, list(images))
    except ClusterOpError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)
    _emit(reports, as_json)
