"""
Cluster transport base — the contract between the CLI and the cluster.

The transport executes commands on remote machines. flatdeploy does not
ship one; whatever embeds the CLI provides it. Every fan-out operation
returns one MachineResult per targeted machine: a failure on one
machine is reported in its envelope, never raised.

An empty ``machines`` filter means every machine in the cluster.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence

from flatdeploy.core.models.machine import MachineInfo, MachineResult


class ClusterTransport(ABC):
    """Abstract base class for cluster transports.

    Methods may raise for transport-level failures (cannot connect,
    request rejected). Per-machine failures go in the envelopes.
    """

    @abstractmethod
    def list_machines(self) -> list[MachineInfo]:
        """All machines of the cluster."""

    @abstractmethod
    def pull_image(
        self, image: str, machines: Sequence[str], all_tags: bool = False,
    ) -> list[MachineResult]:
        """Pull an image; payload is a list of status strings."""

    @abstractmethod
    def prune_images(
        self, filters: Mapping[str, list[str]], machines: Sequence[str],
    ) -> list[MachineResult]:
        """Remove unused images.

        Payload: ``{"deleted": [...], "untagged": [...], "space_reclaimed": int}``.
        """

    @abstractmethod
    def tag_image(self, source: str, target: str, machines: Sequence[str]) -> list[MachineResult]:
        """Create tag ``target`` for ``source``."""

    @abstractmethod
    def remove_image(
        self,
        image: str,
        machines: Sequence[str],
        force: bool = False,
        prune_children: bool = True,
    ) -> list[MachineResult]:
        """Remove an image. Payload: list of ``{"untagged": str, "deleted": str}``."""

    @abstractmethod
    def inspect_image(self, image: str) -> list[MachineResult]:
        """Inspect an image on every machine. Payload: image metadata dict."""

    def close(self) -> None:
        """Release the connection. Default: nothing to release."""

    def __enter__(self) -> ClusterTransport:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}>"
