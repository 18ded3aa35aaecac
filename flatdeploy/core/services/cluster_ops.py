"""
Image operations on the cluster — thin wrappers over a ClusterTransport.

Each operation fans out to the targeted machines and turns the
per-machine envelopes into ImageOpReports the CLI can print. A failure
on one machine is reported, not raised; a transport-level failure is
raised as ClusterOpError with the operation as context.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any, TypeVar

from flatdeploy.adapters.base import ClusterTransport
from flatdeploy.core.errors import ClusterOpError
from flatdeploy.core.models.machine import MachineInfo, MachineResult

logger = logging.getLogger(__name__)

T = TypeVar("T")

_SIZE_UNITS = ("B", "kB", "MB", "GB", "TB", "PB", "EB", "ZB", "YB")


@dataclass
class ImageOpReport:
    """Printable outcome of an image operation on one machine."""

    machine: str
    ok: bool = True
    image: str = ""
    lines: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"machine": self.machine, "ok": self.ok, "image": self.image, "lines": self.lines}


# ── Helpers ─────────────────────────────────────────────────────


def expand_comma_separated_values(values: Iterable[str]) -> list[str]:
    """Flatten ``["a,b", "c"]`` to ``["a", "b", "c"]``, dropping blanks."""
    result: list[str] = []
    for value in values:
        result.extend(part.strip() for part in value.split(",") if part.strip())
    return result


def parse_prune_filters(filters: Iterable[str], all_images: bool = False) -> dict[str, list[str]]:
    """Parse ``name=value`` prune filters.

    Raises:
        ClusterOpError: on a filter without ``=``.
    """
    parsed: dict[str, list[str]] = {}
    if all_images:
        parsed["dangling"] = ["false"]
    for f in filters:
        name, sep, value = f.partition("=")
        if not sep:
            raise ClusterOpError(f"invalid filter '{f}'")
        parsed.setdefault(name, []).append(value)
    return parsed


def machine_display_name(machine: str, machines: Sequence[MachineInfo]) -> str:
    """Machine name for an id or name; unknown values are returned as-is."""
    for m in machines:
        if machine in (m.id, m.name):
            return m.name
    return machine


def human_size(size: float) -> str:
    """Human-readable decimal size: 1500000 → '1.5MB'."""
    i = 0
    while size >= 1000 and i < len(_SIZE_UNITS) - 1:
        size /= 1000
        i += 1
    return f"{size:.4g}{_SIZE_UNITS[i]}"


def _call(operation: str, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    try:
        return fn(*args, **kwargs)
    except (ClusterOpError, OSError) as e:
        raise ClusterOpError(f"{operation}: {e}") from e


def _report(result: MachineResult, machines: Sequence[MachineInfo], image: str = "") -> ImageOpReport:
    report = ImageOpReport(machine=machine_display_name(result.machine, machines), image=image)
    if not result.ok:
        report.ok = False
        report.lines.append(f"Error: {result.error}")
    return report


# ── Operations ──────────────────────────────────────────────────


def pull_image(
    transport: ClusterTransport,
    image: str,
    machines: Sequence[str] = (),
    all_tags: bool = False,
) -> list[ImageOpReport]:
    """Pull an image on the targeted machines (default: all)."""
    all_machines = _call("list machines", transport.list_machines)
    results = _call("pull image", transport.pull_image, image, list(machines), all_tags)

    reports = []
    for result in results:
        report = _report(result, all_machines, image)
        if report.ok:
            report.lines.extend(str(line) for line in result.payload or [])
            report.lines.append(f"Pulled {image}")
        reports.append(report)

    logger.info("Pulled %s on %d machine(s)", image, sum(r.ok for r in reports))
    return reports


def prune_images(
    transport: ClusterTransport,
    machines: Sequence[str] = (),
    filters: Iterable[str] = (),
    all_images: bool = False,
) -> list[ImageOpReport]:
    """Remove unused images; only dangling ones unless ``all_images``."""
    parsed = parse_prune_filters(filters, all_images)
    all_machines = _call("list machines", transport.list_machines)
    results = _call("prune images", transport.prune_images, parsed, list(machines))

    reports = []
    for result in results:
        report = _report(result, all_machines)
        if report.ok:
            payload = result.payload or {}
            deleted = payload.get("deleted", [])
            untagged = payload.get("untagged", [])
            if deleted or untagged:
                report.lines.append("Deleted Images:")
                report.lines.extend(f"untagged: {u}" for u in untagged)
                report.lines.extend(f"deleted: {d}" for d in deleted)
            report.lines.append(
                f"Total reclaimed space: {human_size(payload.get('space_reclaimed', 0))}"
            )
        reports.append(report)
    return reports


def tag_image(
    transport: ClusterTransport,
    source: str,
    target: str,
    machines: Sequence[str] = (),
) -> None:
    """Tag an image on the targeted machines.

    Raises:
        ClusterOpError: if any machine failed, listing each failure.
    """
    all_machines = _call("list machines", transport.list_machines)
    results = _call("tag image", transport.tag_image, source, target, list(machines))

    failures = [
        f"[{machine_display_name(r.machine, all_machines)}] {r.error}"
        for r in results if not r.ok
    ]
    if failures:
        raise ClusterOpError(f"tag image: {'; '.join(failures)}")


def remove_images(
    transport: ClusterTransport,
    images: Sequence[str],
    machines: Sequence[str] = (),
    force: bool = False,
    prune_children: bool = True,
) -> list[ImageOpReport]:
    """Remove images; a transport failure for one image does not stop the rest."""
    all_machines = _call("list machines", transport.list_machines)

    reports = []
    for image in images:
        try:
            results = _call(
                "remove image", transport.remove_image,
                image, list(machines), force=force, prune_children=prune_children,
            )
        except ClusterOpError as e:
            logger.warning("Error removing image '%s': %s", image, e)
            reports.append(ImageOpReport(
                machine="", ok=False, image=image,
                lines=[f"Error removing image '{image}': {e}"],
            ))
            continue

        for result in results:
            report = _report(result, all_machines, image)
            if report.ok:
                items = result.payload or []
                if not items:
                    report.lines.append(f"Image '{image}' not found or not removed.")
                for item in items:
                    if item.get("untagged"):
                        report.lines.append(f"Untagged: {item['untagged']}")
                    if item.get("deleted"):
                        report.lines.append(f"Deleted: {item['deleted']}")
            reports.append(report)
    return reports


def inspect_images(transport: ClusterTransport, images: Sequence[str]) -> list[ImageOpReport]:
    """Inspect images on every machine; metadata is rendered as indented JSON."""
    all_machines = _call("list machines", transport.list_machines)

    reports = []
    for image in images:
        try:
            results = _call("inspect image", transport.inspect_image, image)
        except ClusterOpError as e:
            reports.append(ImageOpReport(
                machine="", ok=False, image=image,
                lines=[f"Error inspecting image '{image}': {e}"],
            ))
            continue

        for result in results:
            report = _report(result, all_machines, image)
            if report.ok:
                report.lines.extend(json.dumps(result.payload, indent=4).splitlines())
            reports.append(report)
    return reports
