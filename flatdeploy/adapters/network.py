"""
Network hook — platform firewall/network chain configuration.

A machine joining the mesh needs its firewall chains configured, and
cleaned up again when it leaves. Implementations are platform specific
and registered per ``sys.platform`` value. Platforms without one get an
UnsupportedNetworkHook whose operations fail immediately; that failure
is part of the contract and must not be retried.
"""

from __future__ import annotations

import logging
import sys
from abc import ABC, abstractmethod
from collections.abc import Callable
from ipaddress import IPv4Address, IPv6Address

from flatdeploy.core.errors import UnsupportedPlatformError

logger = logging.getLogger(__name__)

_PLATFORM_NAMES = {
    "win32": "Windows",
    "cygwin": "Windows",
    "darwin": "macOS",
    "linux": "Linux",
}


class NetworkHook(ABC):
    """Configure and clean up the firewall chains of a machine.

    Both operations either succeed or raise; there is no partial state
    to recover from.
    """

    @abstractmethod
    def configure(self, machine_ip: IPv4Address | IPv6Address) -> None:
        """Set up the chains for the machine's mesh address."""

    @abstractmethod
    def cleanup(self) -> None:
        """Remove the chains created by ``configure``."""


class UnsupportedNetworkHook(NetworkHook):
    """Hook for platforms that have no firewall implementation."""

    def __init__(self, platform: str):
        self.platform = platform

    @property
    def platform_name(self) -> str:
        return _PLATFORM_NAMES.get(self.platform, self.platform)

    def configure(self, machine_ip: IPv4Address | IPv6Address) -> None:
        raise UnsupportedPlatformError(f"not supported on {self.platform_name}")

    def cleanup(self) -> None:
        raise UnsupportedPlatformError(f"not supported on {self.platform_name}")


_registry: dict[str, Callable[[], NetworkHook]] = {}


def register_network_hook(platform: str, factory: Callable[[], NetworkHook]) -> None:
    """Register the hook factory for a ``sys.platform`` value."""
    _registry[platform] = factory


def unregister_network_hook(platform: str) -> None:
    _registry.pop(platform, None)


def network_hook_for_platform(platform: str | None = None) -> NetworkHook:
    """The hook for ``platform`` (default: the running platform)."""
    platform = platform or sys.platform
    factory = _registry.get(platform)
    if factory is None:
        logger.debug("No network hook registered for %s", platform)
        return UnsupportedNetworkHook(platform)
    return factory()
