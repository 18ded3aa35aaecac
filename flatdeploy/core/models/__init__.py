"""
Domain models — Pydantic types for the deploy core.

All models are re-exported here for convenient access:

    from flatdeploy.core.models import Project, ServiceConfig, SecretSpec, SecretMount
"""

from flatdeploy.core.models.compose import (
    BuildConfig,
    DependsOnConfig,
    DeployConfig,
    FileSecretSource,
    InlineSecretSource,
    PlacementConfig,
    Project,
    SecretConfig,
    ServiceConfig,
    ServiceNetworkConfig,
    ServiceSecretConfig,
    UpdateConfig,
)
from flatdeploy.core.models.machine import MachineInfo, MachineResult
from flatdeploy.core.models.secret import (
    SecretMount,
    SecretSpec,
    validate_secrets_and_mounts,
)

__all__ = [
    # compose.py
    "BuildConfig",
    "DependsOnConfig",
    "DeployConfig",
    "FileSecretSource",
    "InlineSecretSource",
    "PlacementConfig",
    "Project",
    "SecretConfig",
    "ServiceConfig",
    "ServiceNetworkConfig",
    "ServiceSecretConfig",
    "UpdateConfig",
    # machine.py
    "MachineInfo",
    "MachineResult",
    # secret.py
    "SecretMount",
    "SecretSpec",
    "validate_secrets_and_mounts",
]
