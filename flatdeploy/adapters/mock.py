"""
Mock cluster transport — in-memory test double for image operations.

Used by tests and by the CLI's ``--mock`` flag to exercise image
commands without a cluster. Keeps a per-machine image store and can be
told to fail a given machine, optionally for one operation only.
"""

from __future__ import annotations

import hashlib
from collections.abc import Mapping, Sequence
from typing import Any

from flatdeploy.adapters.base import ClusterTransport
from flatdeploy.core.errors import ClusterOpError
from flatdeploy.core.models.machine import MachineInfo, MachineResult


def _image_id(image: str) -> str:
    return "sha256:" + hashlib.sha256(image.encode("utf-8")).hexdigest()


class MockClusterTransport(ClusterTransport):
    """In-memory cluster.

    By default, every operation succeeds on every machine. Images given
    at construction are present on all machines.
    """

    def __init__(
        self,
        machines: list[MachineInfo] | None = None,
        images: Sequence[str] = (),
    ):
        self._machines = machines if machines is not None else [
            MachineInfo(id="m-1", name="machine-1", address="10.210.0.1"),
            MachineInfo(id="m-2", name="machine-2", address="10.210.1.1"),
        ]
        self._images: dict[str, dict[str, dict[str, Any]]] = {
            m.id: {img: self._metadata(img) for img in images} for m in self._machines
        }
        self._failures: dict[tuple[str, str | None], str] = {}
        self._call_log: list[tuple[str, tuple]] = []
        self.closed = False

    @property
    def call_log(self) -> list[tuple[str, tuple]]:
        """(operation, args) for every call received."""
        return self._call_log

    def images_on(self, machine_id: str) -> list[str]:
        return sorted(self._images[machine_id])

    def set_failure(self, machine: str, error: str = "Mock failure", operation: str | None = None) -> None:
        """Make ``machine`` (id or name) fail ``operation``, or every operation."""
        self._failures[(self._find(machine).id, operation)] = error

    # ── ClusterTransport ────────────────────────────────────────

    def list_machines(self) -> list[MachineInfo]:
        self._call_log.append(("list_machines", ()))
        return list(self._machines)

    def pull_image(self, image: str, machines: Sequence[str], all_tags: bool = False) -> list[MachineResult]:
        self._call_log.append(("pull_image", (image, tuple(machines), all_tags)))
        results = []
        for m in self._targets(machines):
            error = self._failure(m.id, "pull_image")
            if error:
                results.append(MachineResult.failure(m.id, error))
                continue
            self._images[m.id][image] = self._metadata(image)
            results.append(MachineResult.success(m.id, [f"Pulling {image}", "Pull complete"]))
        return results

    def prune_images(self, filters: Mapping[str, list[str]], machines: Sequence[str]) -> list[MachineResult]:
        self._call_log.append(("prune_images", (dict(filters), tuple(machines))))
        remove_all = "false" in filters.get("dangling", [])
        results = []
        for m in self._targets(machines):
            error = self._failure(m.id, "prune_images")
            if error:
                results.append(MachineResult.failure(m.id, error))
                continue
            store = self._images[m.id]
            doomed = [img for img, meta in store.items() if remove_all or not meta["RepoTags"]]
            report = {
                "deleted": [store[img]["Id"] for img in doomed],
                "untagged": [img for img in doomed if store[img]["RepoTags"]],
                "space_reclaimed": sum(store[img]["Size"] for img in doomed),
            }
            for img in doomed:
                del store[img]
            results.append(MachineResult.success(m.id, report))
        return results

    def tag_image(self, source: str, target: str, machines: Sequence[str]) -> list[MachineResult]:
        self._call_log.append(("tag_image", (source, target, tuple(machines))))
        results = []
        for m in self._targets(machines):
            error = self._failure(m.id, "tag_image")
            if not error and source not in self._images[m.id]:
                error = f"No such image: {source}"
            if error:
                results.append(MachineResult.failure(m.id, error))
                continue
            meta = dict(self._images[m.id][source])
            meta["RepoTags"] = [target]
            self._images[m.id][target] = meta
            results.append(MachineResult.success(m.id))
        return results

    def remove_image(
        self,
        image: str,
        machines: Sequence[str],
        force: bool = False,
        prune_children: bool = True,
    ) -> list[MachineResult]:
        self._call_log.append(("remove_image", (image, tuple(machines), force, prune_children)))
        results = []
        for m in self._targets(machines):
            error = self._failure(m.id, "remove_image")
            if error:
                results.append(MachineResult.failure(m.id, error))
                continue
            meta = self._images[m.id].pop(image, None)
            if meta is None:
                results.append(MachineResult.success(m.id, []))
                continue
            results.append(MachineResult.success(m.id, [{"untagged": image, "deleted": meta["Id"]}]))
        return results

    def inspect_image(self, image: str) -> list[MachineResult]:
        self._call_log.append(("inspect_image", (image,)))
        results = []
        for m in self._machines:
            error = self._failure(m.id, "inspect_image")
            if not error and image not in self._images[m.id]:
                error = f"No such image: {image}"
            if error:
                results.append(MachineResult.failure(m.id, error))
            else:
                results.append(MachineResult.success(m.id, dict(self._images[m.id][image])))
        return results

    def close(self) -> None:
        self.closed = True

    # ── Internals ───────────────────────────────────────────────

    @staticmethod
    def _metadata(image: str) -> dict[str, Any]:
        return {"Id": _image_id(image), "RepoTags": [image], "Size": 1_000_000}

    def _find(self, name_or_id: str) -> MachineInfo:
        for m in self._machines:
            if name_or_id in (m.id, m.name):
                return m
        raise ClusterOpError(f"machine '{name_or_id}' not found")

    def _targets(self, machines: Sequence[str]) -> list[MachineInfo]:
        if not machines:
            return list(self._machines)
        return [self._find(name) for name in machines]

    def _failure(self, machine_id: str, operation: str) -> str:
        return self._failures.get((machine_id, operation)) or self._failures.get((machine_id, None), "")
