"""
Compose loader — reads a compose file into the Project model.

This is the primary entry point for loading a project. It reads YAML,
interpolates ``${VAR}`` references, folds the short and long compose
syntaxes into one shape, and validates the result against the Pydantic
models in ``flatdeploy.core.models.compose``.

The normalisation mirrors what a compose parser hands over to the
deploy core: services without networks join ``default``, ``links``
entries show up in ``depends_on``, short-syntax secrets become
``{source: name}`` references, and durations and sizes become numbers.
"""

from __future__ import annotations

import logging
import os
import re
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from flatdeploy.core.config.units import parse_bytes, parse_duration
from flatdeploy.core.errors import ConfigError
from flatdeploy.core.models.compose import Project, SecretConfig, ServiceConfig

logger = logging.getLogger(__name__)

__all__ = [
    "COMPOSE_FILENAMES",
    "ConfigError",
    "find_compose_file",
    "load_project",
    "load_project_from_content",
]

# Searched in this order in every directory
COMPOSE_FILENAMES = (
    "compose.yaml",
    "compose.yml",
    "docker-compose.yaml",
    "docker-compose.yml",
)

_PROJECT_NAME_INVALID = re.compile(r"[^a-z0-9_-]")

_INTERPOLATION = re.compile(
    r"\$(?:(?P<escaped>\$)|\{(?P<braced>[A-Za-z_][A-Za-z0-9_]*)(?:(?P<op>:?[-?])(?P<arg>[^}]*))?\}"
    r"|(?P<named>[A-Za-z_][A-Za-z0-9_]*))"
)

# Service keys holding string lists that compose also accepts as a scalar
_SCALAR_OR_LIST_KEYS = ("dns", "dns_search", "dns_opt", "tmpfs")

# Service keys holding "KEY=VALUE" lists that compose also accepts as a mapping
_MAPPING_KEYS = ("labels", "annotations", "sysctls", "storage_opt")


def find_compose_file(start_dir: Path | None = None) -> Path | None:
    """Search for a compose file starting from the given directory, walking up.

    Args:
        start_dir: Directory to start searching from (default: cwd).

    Returns:
        Path to the compose file, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        for name in COMPOSE_FILENAMES:
            candidate = current / name
            if candidate.is_file():
                return candidate
        parent = current.parent
        if parent == current:
            break  # filesystem root
        current = parent

    return None


def load_project(
    path: Path | None = None,
    project_name: str | None = None,
    environ: Mapping[str, str] | None = None,
) -> Project:
    """Load and validate a compose project.

    Args:
        path: Explicit path to the compose file. If None, searches upward.
        project_name: Overrides the ``name:`` key and the directory name.
        environ: Variables for interpolation (default: ``os.environ``).

    Returns:
        Validated, immutable Project.

    Raises:
        ConfigError: If the file is missing or invalid.
    """
    if path is None:
        path = find_compose_file()

    if path is None:
        raise ConfigError(
            "No compose file found. "
            f"Looked for {', '.join(COMPOSE_FILENAMES)}; specify one with --file."
        )

    if not path.is_file():
        raise ConfigError(f"Compose file not found: {path}")

    logger.debug("Loading compose file %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    return load_project_from_content(
        raw,
        working_dir=path.parent.resolve(),
        project_name=project_name,
        environ=environ,
        source=str(path),
    )


def load_project_from_content(
    content: str,
    working_dir: Path | str = ".",
    project_name: str | None = None,
    environ: Mapping[str, str] | None = None,
    source: str = "<string>",
) -> Project:
    """Load a compose project from an in-memory YAML document."""
    env = os.environ if environ is None else environ

    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {source}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {source}, got {type(data).__name__}")

    data = _interpolate(data, env, source)

    services_raw = data.get("services")
    if not isinstance(services_raw, dict) or not services_raw:
        raise ConfigError(f"No services defined in {source}")

    workdir = Path(working_dir).resolve()
    name = _normalise_project_name(project_name or data.get("name") or workdir.name)
    if not name:
        raise ConfigError(f"Cannot derive a project name for {source}; set 'name:' or pass one")

    services: dict[str, ServiceConfig] = {}
    for svc_name, svc_raw in services_raw.items():
        svc_name = str(svc_name)
        if svc_raw is None:
            svc_raw = {}
        if not isinstance(svc_raw, dict):
            raise ConfigError(f"Service '{svc_name}' must be a mapping in {source}")
        try:
            services[svc_name] = ServiceConfig.model_validate(_normalise_service(svc_name, svc_raw))
        except ValueError as e:
            raise ConfigError(f"Invalid service '{svc_name}' in {source}: {e}") from e

    secrets: dict[str, SecretConfig] = {}
    secrets_raw = data.get("secrets") or {}
    if not isinstance(secrets_raw, dict):
        raise ConfigError(f"'secrets' must be a mapping in {source}")
    for secret_name, secret_raw in secrets_raw.items():
        secret_name = str(secret_name)
        try:
            secrets[secret_name] = SecretConfig.model_validate(
                _normalise_secret(secret_name, secret_raw or {}, env)
            )
        except ValueError as e:
            raise ConfigError(f"Invalid secret '{secret_name}' in {source}: {e}") from e

    networks_raw = data.get("networks") or {}
    if not isinstance(networks_raw, dict):
        raise ConfigError(f"'networks' must be a mapping in {source}")

    project = Project(
        name=name,
        working_dir=str(workdir),
        services=services,
        secrets=secrets,
        networks={str(k): v or {} for k, v in networks_raw.items()},
    )
    logger.info(
        "Loaded project '%s' with %d services and %d secrets",
        project.name, len(project.services), len(project.secrets),
    )
    return project


# ── Interpolation ───────────────────────────────────────────────


def _interpolate(value: Any, env: Mapping[str, str], source: str) -> Any:
    """Substitute ``$VAR`` / ``${VAR}`` references in every string of the tree."""
    if isinstance(value, str):
        return _interpolate_str(value, env, source)
    if isinstance(value, list):
        return [_interpolate(v, env, source) for v in value]
    if isinstance(value, dict):
        return {k: _interpolate(v, env, source) for k, v in value.items()}
    return value


def _interpolate_str(text: str, env: Mapping[str, str], source: str) -> str:
    def replace(match: re.Match[str]) -> str:
        if match.group("escaped"):
            return "$"
        name = match.group("named") or match.group("braced")
        op = match.group("op")
        arg = match.group("arg") or ""
        value = env.get(name)

        if op in (":-", "-"):
            if value is None or (op == ":-" and value == ""):
                return arg
        elif op in (":?", "?"):
            if value is None or (op == ":?" and value == ""):
                raise ConfigError(
                    f"Required variable '{name}' is missing in {source}: {arg or 'not set'}"
                )
        return value or ""

    return _INTERPOLATION.sub(replace, text)


# ── Normalisation ───────────────────────────────────────────────


def _normalise_project_name(name: str) -> str:
    return _PROJECT_NAME_INVALID.sub("", str(name).lower())


def _normalise_service(name: str, svc: dict) -> dict:
    """Fold the compose short/long syntaxes of one service into model shape."""
    # Keys written without a value (``hostname:``) are the same as unset
    detail: dict[str, Any] = {k: v for k, v in svc.items() if v is not None}
    detail["name"] = name

    build = detail.get("build")
    if isinstance(build, str):
        detail["build"] = {"context": build}
    elif isinstance(build, dict) and isinstance(build.get("args"), list):
        detail["build"] = {**build, "args": _list_to_mapping(build["args"], none_if_bare=True)}

    extends = detail.get("extends")
    if isinstance(extends, str):
        detail["extends"] = {"service": extends}

    for key in _SCALAR_OR_LIST_KEYS:
        if isinstance(detail.get(key), str):
            detail[key] = [detail[key]]

    for key in _MAPPING_KEYS:
        if isinstance(detail.get(key), list):
            detail[key] = _list_to_mapping(detail[key])
        elif isinstance(detail.get(key), dict):
            detail[key] = {str(k): _scalar_str(v) for k, v in detail[key].items()}

    env = detail.get("environment")
    if isinstance(env, list):
        detail["environment"] = _list_to_mapping(env, none_if_bare=True)
    elif isinstance(env, dict):
        detail["environment"] = {
            str(k): None if v is None else _scalar_str(v) for k, v in env.items()
        }

    extra_hosts = detail.get("extra_hosts")
    if isinstance(extra_hosts, dict):
        detail["extra_hosts"] = [f"{host}:{ip}" for host, ip in extra_hosts.items()]

    for key in ("expose", "group_add"):
        if isinstance(detail.get(key), list):
            detail[key] = [str(v) for v in detail[key]]

    if "user" in detail:
        detail["user"] = str(detail["user"])

    # Networks: a service with neither networks nor network_mode joins "default"
    networks = detail.get("networks")
    if isinstance(networks, list):
        detail["networks"] = {str(n): None for n in networks}
    elif isinstance(networks, dict):
        detail["networks"] = {str(k): v for k, v in networks.items()}
    elif not detail.get("network_mode"):
        detail["networks"] = {"default": None}

    # depends_on, including the entries implied by links
    depends = detail.get("depends_on")
    if isinstance(depends, list):
        depends = {str(d): {} for d in depends}
    elif isinstance(depends, dict):
        depends = {str(k): v or {} for k, v in depends.items()}
    else:
        depends = {}
    links = [str(link) for link in detail.get("links") or []]
    for link in links:
        depends.setdefault(link.split(":", 1)[0], {})
    detail["links"] = links
    detail["depends_on"] = depends

    if isinstance(detail.get("secrets"), list):
        detail["secrets"] = [_normalise_service_secret(s) for s in detail["secrets"]]

    models = detail.get("models")
    if isinstance(models, list):
        detail["models"] = {str(m): {} for m in models}

    if "stop_grace_period" in detail:
        detail["stop_grace_period"] = parse_duration(detail["stop_grace_period"])
    for key in ("shm_size", "memswap_limit"):
        if key in detail:
            detail[key] = parse_bytes(detail[key])
    for key in ("cpu_rt_period", "cpu_rt_runtime"):
        if isinstance(detail.get(key), str):
            detail[key] = int(parse_duration(detail[key]) * 1_000_000)

    if isinstance(detail.get("deploy"), dict):
        detail["deploy"] = _normalise_deploy(detail["deploy"])

    return detail


def _normalise_service_secret(ref: Any) -> dict:
    if isinstance(ref, str):
        return {"source": ref}
    if not isinstance(ref, dict):
        raise ValueError(f"invalid secret reference: {ref!r}")

    out: dict[str, Any] = {"source": str(ref.get("source", ""))}
    if ref.get("target"):
        out["target"] = str(ref["target"])
    for key in ("uid", "gid"):
        if ref.get(key) is not None:
            out[key] = str(ref[key])
    mode = ref.get("mode")
    if isinstance(mode, str):
        out["mode"] = int(mode, 8)
    elif mode is not None:
        out["mode"] = int(mode)
    return out


def _normalise_deploy(deploy: dict) -> dict:
    detail = {k: v for k, v in deploy.items() if v is not None}

    if isinstance(detail.get("labels"), list):
        detail["labels"] = _list_to_mapping(detail["labels"])
    elif isinstance(detail.get("labels"), dict):
        detail["labels"] = {str(k): _scalar_str(v) for k, v in detail["labels"].items()}

    update = detail.get("update_config")
    if isinstance(update, dict):
        update = {k: v for k, v in update.items() if v is not None}
        for key in ("delay", "monitor"):
            if key in update:
                update[key] = parse_duration(update[key])
        detail["update_config"] = update

    placement = detail.get("placement")
    if isinstance(placement, dict):
        detail["placement"] = {k: v for k, v in placement.items() if v is not None}

    return detail


def _normalise_secret(name: str, raw: dict, env: Mapping[str, str]) -> dict:
    """Turn a compose secret definition into the tagged-source shape."""
    if not isinstance(raw, dict):
        raise ValueError("secret definition must be a mapping")

    external = raw.get("external", False)
    if isinstance(external, dict):  # legacy ``external: {name: ...}``
        external = True

    content = raw.get("content")
    if "environment" in raw:
        var = str(raw["environment"])
        if var not in env:
            raise ValueError(f"environment variable '{var}' is not set")
        content = env[var]
    content_bytes = b"" if content is None else str(content).encode("utf-8")

    labels = raw.get("labels") or {}
    if isinstance(labels, list):
        labels = _list_to_mapping(labels)

    detail: dict[str, Any] = {
        "name": name,
        "external": bool(external),
        "labels": {str(k): _scalar_str(v) for k, v in labels.items()},
    }

    if raw.get("file"):
        detail["source"] = {"kind": "file", "path": str(raw["file"]), "content": content_bytes}
    elif content is not None or not detail["external"]:
        detail["source"] = {"kind": "inline", "content": content_bytes}

    return detail


def _list_to_mapping(items: list, none_if_bare: bool = False) -> dict[str, str | None]:
    """Convert ``["KEY=VAL", ...]`` to a dict.

    A bare ``KEY`` maps to None when ``none_if_bare`` (environment
    pass-through), otherwise to an empty string.
    """
    result: dict[str, str | None] = {}
    for item in items:
        text = str(item)
        if "=" in text:
            k, v = text.split("=", 1)
            result[k] = v
        else:
            result[text] = None if none_if_bare else ""
    return result


def _scalar_str(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return "" if value is None else str(value)
