"""
Compose project model — the immutable input of the core.

Produced by ``flatdeploy.core.config.loader`` from a compose file. Every
field the compatibility scanner inspects is present with an "unset"
default (None, "", [], {}, 0, False), so scanner rules never need to
guess whether a key was written.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


# ── Services ────────────────────────────────────────────────────


class BuildConfig(_Frozen):
    context: str = "."
    dockerfile: str | None = None
    args: dict[str, str | None] = Field(default_factory=dict)


class DependsOnConfig(_Frozen):
    condition: str = "service_started"
    required: bool = True
    restart: bool = False


class ServiceNetworkConfig(_Frozen):
    aliases: list[str] = Field(default_factory=list)
    ipv4_address: str = ""
    ipv6_address: str = ""


class ServiceSecretConfig(_Frozen):
    """A service's reference to a project-level secret."""

    source: str
    target: str = ""
    uid: str = ""          # decimal string, parsed at validation
    gid: str = ""
    mode: int | None = None


class PlacementConfig(_Frozen):
    constraints: list[str] | None = None
    preferences: list[dict[str, Any]] = Field(default_factory=list)
    max_replicas_per_node: int = 0


class UpdateConfig(_Frozen):
    parallelism: int | None = None
    delay: float = 0           # seconds
    failure_action: str = ""
    monitor: float = 0         # seconds
    max_failure_ratio: float = 0
    order: str = ""


class DeployConfig(_Frozen):
    mode: str = ""
    replicas: int | None = None
    labels: dict[str, str] = Field(default_factory=dict)
    rollback_config: dict[str, Any] | None = None
    restart_policy: dict[str, Any] | None = None
    endpoint_mode: str = ""
    placement: PlacementConfig = Field(default_factory=PlacementConfig)
    update_config: UpdateConfig | None = None
    resources: dict[str, Any] = Field(default_factory=dict)


class ServiceConfig(_Frozen):
    """One service of a compose project.

    Field names follow the compose keys they are loaded from.
    """

    name: str

    # Supported by the target orchestrator
    image: str | None = None
    command: list[str] | str | None = None
    entrypoint: list[str] | str | None = None
    environment: dict[str, str | None] = Field(default_factory=dict)
    ports: list[Any] = Field(default_factory=list)
    expose: list[str] = Field(default_factory=list)
    volumes: list[Any] = Field(default_factory=list)
    cap_add: list[str] = Field(default_factory=list)
    cap_drop: list[str] = Field(default_factory=list)
    sysctls: dict[str, str] = Field(default_factory=dict)
    ulimits: dict[str, Any] = Field(default_factory=dict)
    user: str = ""
    privileged: bool = False
    init: bool | None = None
    deploy: DeployConfig | None = None
    secrets: list[ServiceSecretConfig] = Field(default_factory=list)

    # Build / lifecycle
    build: BuildConfig | None = None
    container_name: str = ""
    restart: str = ""
    depends_on: dict[str, DependsOnConfig] = Field(default_factory=dict)
    links: list[str] = Field(default_factory=list)
    external_links: list[str] = Field(default_factory=list)
    volumes_from: list[str] = Field(default_factory=list)
    develop: dict[str, Any] | None = None
    profiles: list[str] = Field(default_factory=list)
    extends: dict[str, Any] | None = None
    post_start: list[dict[str, Any]] = Field(default_factory=list)
    pre_stop: list[dict[str, Any]] = Field(default_factory=list)
    provider: dict[str, Any] | None = None
    models: dict[str, Any] = Field(default_factory=dict)
    attach: bool | None = None
    stop_signal: str = ""
    stop_grace_period: float | None = None  # seconds

    # Networking
    networks: dict[str, ServiceNetworkConfig | None] = Field(default_factory=dict)
    network_mode: str = ""
    net: str = ""
    hostname: str = ""
    domainname: str = ""
    dns: list[str] = Field(default_factory=list)
    dns_opt: list[str] = Field(default_factory=list)
    dns_search: list[str] = Field(default_factory=list)
    extra_hosts: list[str] = Field(default_factory=list)
    mac_address: str = ""

    # Runtime / isolation
    platform: str = ""
    working_dir: str = ""
    tmpfs: list[str] = Field(default_factory=list)
    read_only: bool = False
    security_opt: list[str] = Field(default_factory=list)
    pid: str = ""
    ipc: str = ""
    uts: str = ""
    userns_mode: str = ""
    cgroup: str = ""
    cgroup_parent: str = ""
    isolation: str = ""
    runtime: str = ""
    tty: bool = False
    stdin_open: bool = False
    storage_opt: dict[str, str] = Field(default_factory=dict)
    device_cgroup_rules: list[str] = Field(default_factory=list)
    credential_spec: dict[str, Any] | None = None
    group_add: list[str] = Field(default_factory=list)
    labels: dict[str, str] = Field(default_factory=dict)
    annotations: dict[str, str] = Field(default_factory=dict)
    volume_driver: str = ""
    use_api_socket: bool = False

    # Resources
    shm_size: int = 0          # bytes
    memswap_limit: int = 0     # bytes
    mem_swappiness: int = 0
    oom_kill_disable: bool = False
    oom_score_adj: int = 0
    pids_limit: int = 0
    cpuset: str = ""
    cpu_count: int = 0
    cpu_percent: float = 0
    cpu_period: int = 0
    cpu_quota: int = 0
    cpu_rt_period: int = 0     # microseconds
    cpu_rt_runtime: int = 0    # microseconds
    cpu_shares: int = 0
    blkio_config: dict[str, Any] | None = None


# ── Secrets ─────────────────────────────────────────────────────


class InlineSecretSource(_Frozen):
    """Secret payload written directly in the compose file."""

    kind: Literal["inline"] = "inline"
    content: bytes = b""


class FileSecretSource(_Frozen):
    """Secret payload read from a file at resolution time.

    ``content`` holds inline content declared next to ``file``; it is
    never used as the payload.
    """

    kind: Literal["file"] = "file"
    path: str
    content: bytes = b""


SecretSource = Annotated[
    InlineSecretSource | FileSecretSource,
    Field(discriminator="kind"),
]


class SecretConfig(_Frozen):
    """A project-level secret definition."""

    name: str
    source: SecretSource | None = None
    external: bool = False
    labels: dict[str, str] = Field(default_factory=dict)

    @property
    def content(self) -> bytes:
        """Inline content (empty when none was declared)."""
        return self.source.content if self.source is not None else b""

    @property
    def file(self) -> str:
        """Source file path, or "" for inline and external secrets."""
        if isinstance(self.source, FileSecretSource):
            return self.source.path
        return ""


# ── Project ─────────────────────────────────────────────────────


class Project(_Frozen):
    """A loaded compose project.

    ``services`` keeps the order services were declared in; every
    per-service pass over the project follows that order.
    """

    name: str
    working_dir: str = "."
    services: dict[str, ServiceConfig] = Field(default_factory=dict)
    secrets: dict[str, SecretConfig] = Field(default_factory=dict)
    networks: dict[str, Any] = Field(default_factory=dict)

    def service_names(self) -> list[str]:
        """Service names in declared order."""
        return list(self.services)

    def get_service(self, name: str) -> ServiceConfig | None:
        return self.services.get(name)
