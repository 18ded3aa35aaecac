"""
Secret resolution — compose secret references → SecretSpecs + SecretMounts.

For each secret a service references, look up the project-level
definition, load its payload (inline content, or the bytes of its file)
and describe where the secret is mounted in the container.

Resolution is all-or-nothing: the first failing reference raises and no
partial result is returned. The same secret referenced twice yields two
identical specs; de-duplication is left to the caller, and
``validate_secrets_and_mounts`` rejects duplicates downstream.
"""

from __future__ import annotations

import logging
import posixpath
from collections.abc import Iterable, Mapping
from pathlib import Path

from flatdeploy.core.errors import ExternalSecretError, SecretFileError, SecretNotFoundError
from flatdeploy.core.models.compose import FileSecretSource, SecretConfig, ServiceSecretConfig
from flatdeploy.core.models.secret import SecretMount, SecretSpec

logger = logging.getLogger(__name__)

# Mount directory used when a reference has no explicit target
DEFAULT_SECRETS_DIR = "/run/secrets"


def default_secret_target(name: str) -> str:
    return posixpath.join(DEFAULT_SECRETS_DIR, name)


def secret_specs_from_compose(
    secrets: Mapping[str, SecretConfig],
    service_secrets: Iterable[ServiceSecretConfig],
    working_dir: Path | str,
) -> tuple[list[SecretSpec], list[SecretMount]]:
    """Resolve a service's secret references.

    Args:
        secrets: Project-level secret definitions by name.
        service_secrets: The service's references, in declared order.
        working_dir: Directory relative secret files are resolved against.

    Returns:
        (specs, mounts) — one of each per reference, in reference order.

    Raises:
        SecretNotFoundError: a reference names an undefined secret.
        ExternalSecretError: a referenced secret is external.
        SecretFileError: a secret file cannot be read.
    """
    specs: list[SecretSpec] = []
    mounts: list[SecretMount] = []

    for ref in service_secrets:
        definition = secrets.get(ref.source)
        if definition is None:
            raise SecretNotFoundError(f"secret '{ref.source}' not found in project secrets")
        if definition.external:
            raise ExternalSecretError(f"external secrets are not supported: {ref.source}")

        spec = SecretSpec(
            name=ref.source,
            content=_load_content(ref.source, definition, Path(working_dir)),
        )
        specs.append(spec)

        mounts.append(SecretMount(
            secret_name=spec.name,
            container_path=ref.target or default_secret_target(ref.source),
            uid=ref.uid,
            gid=ref.gid,
            mode=ref.mode,
        ))

    return specs, mounts


def _load_content(name: str, definition: SecretConfig, working_dir: Path) -> bytes:
    """Payload of a secret definition: its file's bytes, else inline content."""
    source = definition.source
    if not isinstance(source, FileSecretSource):
        return definition.content

    if source.content:
        logger.warning(
            "secret '%s' declares both 'content' and 'file'; using the file",
            name,
        )

    path = Path(source.path)
    if not path.is_absolute():
        path = working_dir / path

    logger.debug("Reading secret '%s' from %s", name, path)
    try:
        return path.read_bytes()
    except OSError as e:
        raise SecretFileError(f"read secret from file '{source.path}': {e}") from e
