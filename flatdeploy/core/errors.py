"""
Errors raised by the flatdeploy core.

The core only defines and raises exceptions; the use-case and CLI layers
decide how to present them.
"""

from __future__ import annotations


class FlatdeployError(Exception):
    """Base class for every error raised by flatdeploy."""


class ConfigError(FlatdeployError):
    """Raised when a compose file is missing, unreadable or invalid."""


class SecretResolutionError(FlatdeployError):
    """Raised when a service secret reference cannot be resolved."""


class SecretNotFoundError(SecretResolutionError):
    """The referenced secret has no project-level definition."""


class ExternalSecretError(SecretResolutionError):
    """The referenced secret is declared external."""


class SecretFileError(SecretResolutionError):
    """The file backing a secret could not be read."""


class SecretValidationError(FlatdeployError):
    """Raised when resolved secrets and mounts are inconsistent."""


class PlanError(FlatdeployError):
    """Raised when a deploy plan cannot be built for a service."""


class ClusterOpError(FlatdeployError):
    """Raised when an image operation on the cluster cannot proceed."""


class UnsupportedPlatformError(FlatdeployError):
    """Raised by network hooks on platforms without an implementation."""
