"""
Secret specs and mounts — the deployable form of compose secrets.

A SecretSpec is the secret itself (name + payload). A SecretMount tells
the runtime where and how a secret shows up inside one container.
``validate_secrets_and_mounts`` cross-checks the two lists before a
deploy is allowed to proceed.
"""

from __future__ import annotations

import posixpath
from collections.abc import Iterable

from pydantic import BaseModel

from flatdeploy.core.errors import SecretValidationError

# Ids must fit a signed 64-bit integer
_ID_MAX = 2**63 - 1


class SecretSpec(BaseModel):
    """A secret object that can be mounted into containers."""

    name: str
    content: bytes = b""

    def validate_spec(self) -> None:
        if not self.name:
            raise SecretValidationError("secret name is required")

    def equals(self, other: SecretSpec) -> bool:
        return self.name == other.name and self.content == other.content


class SecretMount(BaseModel):
    """How a secret is mounted into a container."""

    secret_name: str
    container_path: str = ""   # absolute path inside the container
    uid: str = ""
    gid: str = ""
    mode: int | None = None    # permission bits; None = runtime default

    def numeric_uid(self) -> int | None:
        return _parse_id("Uid", self.uid)

    def numeric_gid(self) -> int | None:
        return _parse_id("Gid", self.gid)

    def validate_mount(self) -> None:
        if not self.secret_name:
            raise SecretValidationError("secret mount source is required")
        self.numeric_uid()
        self.numeric_gid()
        if self.container_path and not posixpath.isabs(self.container_path):
            raise SecretValidationError("container path must be absolute")


def _parse_id(label: str, value: str) -> int | None:
    """Parse a decimal uid/gid string into a non-negative signed 64-bit integer."""
    if value == "":
        return None
    if not value.isascii() or not value.isdigit():
        raise SecretValidationError(f"invalid {label} '{value}': not a decimal number")
    number = int(value)
    if number > _ID_MAX:
        raise SecretValidationError(f"invalid {label} '{value}': value too high")
    return number


def validate_secrets_and_mounts(
    secrets: Iterable[SecretSpec],
    mounts: Iterable[SecretMount],
) -> None:
    """Check that specs are well-formed and every mount refers to one.

    Raises:
        SecretValidationError: naming the first offending spec or mount.
    """
    names: set[str] = set()
    for secret in secrets:
        try:
            secret.validate_spec()
        except SecretValidationError as e:
            raise SecretValidationError(f"invalid secret: {e}") from e
        if secret.name in names:
            raise SecretValidationError(f"duplicate secret name: '{secret.name}'")
        names.add(secret.name)

    for mount in mounts:
        try:
            mount.validate_mount()
        except SecretValidationError as e:
            raise SecretValidationError(f"invalid secret mount: {e}") from e
        if mount.secret_name not in names:
            raise SecretValidationError(
                f"secret mount source '{mount.secret_name}' does not refer to any defined secret"
            )
