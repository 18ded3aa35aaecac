"""
CLI commands for compose secrets.

Thin wrappers over the planner's secret step
(``flatdeploy.core.services.deploy_plan.resolve_service_secrets``).
Secret payloads are never printed, only their sizes.
"""

from __future__ import annotations

import json
import sys

import click


@click.group()
def secrets() -> None:
    """Compose secrets — resolve and validate what each service mounts."""


@secrets.command("list")
@click.argument("services", nargs=-1)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def list_secrets(ctx: click.Context, services: tuple[str, ...], as_json: bool) -> None:
    """Resolve the secrets of each service and show where they are mounted."""
    from flatdeploy.core.config.loader import load_project
    from flatdeploy.core.errors import FlatdeployError
    from flatdeploy.core.services.deploy_plan import resolve_service_secrets

    out: dict[str, list[dict]] = {}
    try:
        project = load_project(
            ctx.obj.get("compose_path"), project_name=ctx.obj.get("project_name"),
        )
        for name in project.service_names():
            if services and name not in services:
                continue
            svc = project.services[name]
            if not svc.secrets:
                continue
            specs, mounts = resolve_service_secrets(project, svc)
            out[name] = [
                {
                    "name": spec.name,
                    "size": len(spec.content),
                    "container_path": mount.container_path,
                    "uid": mount.uid,
                    "gid": mount.gid,
                    "mode": f"{mount.mode:04o}" if mount.mode is not None else None,
                }
                for spec, mount in zip(specs, mounts)
            ]
    except FlatdeployError as e:
        if as_json:
            click.echo(json.dumps({"error": str(e)}, indent=2))
        else:
            click.secho(f"❌ {e}", fg="red")
        sys.exit(1)

    if as_json:
        click.echo(json.dumps({"services": out}, indent=2))
        return

    if not out:
        click.echo("No service mounts secrets.")
        return

    for name, entries in out.items():
        click.secho(f"🔑 {name}", fg="cyan", bold=True)
        for entry in entries:
            owner = ""
            if entry["uid"] or entry["gid"]:
                owner = f"  owner {entry['uid'] or '-'}:{entry['gid'] or '-'}"
            mode = f"  mode {entry['mode']}" if entry["mode"] else ""
            click.echo(
                f"   {entry['name']} ({entry['size']} bytes) → {entry['container_path']}{owner}{mode}"
            )
