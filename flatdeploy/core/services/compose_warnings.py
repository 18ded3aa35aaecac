"""
Compose compatibility scanner — warnings for keys the orchestrator ignores.

The target orchestrator runs containers on a flat mesh network with
built-in service discovery, so a large part of the compose spec has no
effect there. This module walks a loaded Project and reports every such
key, one ComposeWarning per (service, key).

The catalogue is a table of rules: each rule is a key, a message and a
predicate over the service. Keys are user-facing identifiers that
downstream tooling matches on; do not rename them.

Ordering contract:
    - services are visited in project order
    - within a service, warnings are sorted by key

This is pure data inspection — no I/O, never raises, never rejects.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from flatdeploy.core.models.compose import DeployConfig, Project, ServiceConfig

logger = logging.getLogger(__name__)

# Network name compose attaches services to when none are listed
DEFAULT_NETWORK = "default"


@dataclass(frozen=True)
class ComposeWarning:
    """A compose key that will be ignored on deploy."""

    service: str   # "" = project level
    key: str
    message: str

    def __str__(self) -> str:
        if not self.service:
            return self.message
        return f"service '{self.service}': {self.message}"

    def to_dict(self) -> dict:
        return {"service": self.service, "key": self.key, "message": self.message}


@dataclass(frozen=True)
class _Rule:
    key: str
    message: str
    applies: Callable[[Project, ServiceConfig], bool]


@dataclass(frozen=True)
class _DeployRule:
    key: str
    message: str
    applies: Callable[[DeployConfig], bool]


def _not_supported(key: str, hint: str = "") -> str:
    message = f"'{key}' is not supported."
    return f"{message} {hint}" if hint else message


def has_user_defined_networks(project: Project, service: ServiceConfig) -> bool:
    """Whether the service joins a network other than the implicit default.

    The implicit network is named ``default`` in the compose file and
    carries the project name once loaded; neither counts as user-defined.
    """
    return any(
        network not in (project.name, DEFAULT_NETWORK)
        for network in service.networks
    )


# ── Service rules ───────────────────────────────────────────────

_SERVICE_RULES: tuple[_Rule, ...] = (
    _Rule("build", _not_supported("build", "Pre-build images and specify 'image' instead."),
          lambda p, s: s.build is not None),
    _Rule("container_name",
          _not_supported("container_name", "Container names are generated automatically."),
          lambda p, s: s.container_name != ""),
    # links auto-populates depends_on; only the links warning is reported then
    _Rule("depends_on", _not_supported("depends_on", "Services start independently."),
          lambda p, s: bool(s.depends_on) and not s.links),
    _Rule("networks",
          _not_supported("networks",
                         "Services share a flat mesh network with built-in service discovery."),
          has_user_defined_networks),
    _Rule("network_mode", _not_supported("network_mode", "Services share a flat mesh network."),
          lambda p, s: s.network_mode not in ("", DEFAULT_NETWORK)),
    _Rule("restart",
          _not_supported("restart", "Container lifecycle is managed automatically."),
          lambda p, s: s.restart != ""),
    _Rule("secrets",
          _not_supported("secrets", "Use environment variables or configs instead."),
          lambda p, s: bool(s.secrets)),
    _Rule("profiles", _not_supported("profiles", "Specify services explicitly during deploy."),
          lambda p, s: bool(s.profiles)),
    _Rule("links", "'links' is deprecated and not supported. Use service names for discovery.",
          lambda p, s: bool(s.links)),
    _Rule("external_links", "'external_links' is deprecated and not supported.",
          lambda p, s: bool(s.external_links)),
    _Rule("volumes_from", _not_supported("volumes_from", "Define volumes explicitly."),
          lambda p, s: bool(s.volumes_from)),
    _Rule("develop", _not_supported("develop", "This is a development-only feature."),
          lambda p, s: s.develop is not None),
    _Rule("hostname", _not_supported("hostname", "Use service name for DNS resolution."),
          lambda p, s: s.hostname != ""),
    _Rule("dns", _not_supported("dns", "Built-in DNS is provided."),
          lambda p, s: bool(s.dns)),
    _Rule("dns_opt", _not_supported("dns_opt"), lambda p, s: bool(s.dns_opt)),
    _Rule("dns_search", _not_supported("dns_search"), lambda p, s: bool(s.dns_search)),
    _Rule("extra_hosts", _not_supported("extra_hosts"), lambda p, s: bool(s.extra_hosts)),
    _Rule("security_opt", _not_supported("security_opt"), lambda p, s: bool(s.security_opt)),
    _Rule("platform", _not_supported("platform"), lambda p, s: s.platform != ""),
    _Rule("working_dir", _not_supported("working_dir"), lambda p, s: s.working_dir != ""),
    _Rule("tmpfs",
          "'tmpfs' at service level is not supported. Use volumes with tmpfs type instead.",
          lambda p, s: bool(s.tmpfs)),
    _Rule("read_only", _not_supported("read_only"), lambda p, s: s.read_only),
    _Rule("shm_size", _not_supported("shm_size"), lambda p, s: s.shm_size > 0),
    _Rule("cpuset", _not_supported("cpuset"), lambda p, s: s.cpuset != ""),
    _Rule("memswap_limit", _not_supported("memswap_limit"), lambda p, s: s.memswap_limit > 0),
    _Rule("pid", _not_supported("pid"), lambda p, s: s.pid != ""),
    _Rule("ipc", _not_supported("ipc"), lambda p, s: s.ipc != ""),
    _Rule("uts", _not_supported("uts"), lambda p, s: s.uts != ""),
    _Rule("userns_mode", _not_supported("userns_mode"), lambda p, s: s.userns_mode != ""),
    _Rule("cgroup_parent", _not_supported("cgroup_parent"), lambda p, s: s.cgroup_parent != ""),
    _Rule("cgroup", _not_supported("cgroup"), lambda p, s: s.cgroup != ""),
    _Rule("isolation", _not_supported("isolation"), lambda p, s: s.isolation != ""),
    _Rule("runtime", _not_supported("runtime"), lambda p, s: s.runtime != ""),
    _Rule("stop_signal", _not_supported("stop_signal"), lambda p, s: s.stop_signal != ""),
    _Rule("stop_grace_period", _not_supported("stop_grace_period"),
          lambda p, s: s.stop_grace_period is not None),
    _Rule("mac_address", _not_supported("mac_address"), lambda p, s: s.mac_address != ""),
    _Rule("tty", _not_supported("tty"), lambda p, s: s.tty),
    _Rule("stdin_open", _not_supported("stdin_open"), lambda p, s: s.stdin_open),
    _Rule("oom_kill_disable", _not_supported("oom_kill_disable"),
          lambda p, s: s.oom_kill_disable),
    _Rule("oom_score_adj", _not_supported("oom_score_adj"), lambda p, s: s.oom_score_adj != 0),
    _Rule("pids_limit", _not_supported("pids_limit"), lambda p, s: s.pids_limit != 0),
    _Rule("storage_opt", _not_supported("storage_opt"), lambda p, s: bool(s.storage_opt)),
    _Rule("device_cgroup_rules", _not_supported("device_cgroup_rules"),
          lambda p, s: bool(s.device_cgroup_rules)),
    _Rule("credential_spec", _not_supported("credential_spec"),
          lambda p, s: s.credential_spec is not None),
    _Rule("group_add", _not_supported("group_add"), lambda p, s: bool(s.group_add)),
    _Rule("blkio_config", _not_supported("blkio_config"),
          lambda p, s: s.blkio_config is not None),
    _Rule("cpu_count", _not_supported("cpu_count"), lambda p, s: s.cpu_count > 0),
    _Rule("cpu_percent", _not_supported("cpu_percent"), lambda p, s: s.cpu_percent > 0),
    _Rule("cpu_period", _not_supported("cpu_period"), lambda p, s: s.cpu_period > 0),
    _Rule("cpu_quota", _not_supported("cpu_quota"), lambda p, s: s.cpu_quota > 0),
    _Rule("cpu_rt_period", _not_supported("cpu_rt_period"), lambda p, s: s.cpu_rt_period > 0),
    _Rule("cpu_rt_runtime", _not_supported("cpu_rt_runtime"),
          lambda p, s: s.cpu_rt_runtime > 0),
    _Rule("cpu_shares", _not_supported("cpu_shares"), lambda p, s: s.cpu_shares != 0),
    _Rule("mem_swappiness", _not_supported("mem_swappiness"),
          lambda p, s: s.mem_swappiness > 0),
    _Rule("domainname", _not_supported("domainname"), lambda p, s: s.domainname != ""),
    _Rule("attach", _not_supported("attach"), lambda p, s: s.attach is False),
    _Rule("labels", "'labels' at service level is not supported.", lambda p, s: bool(s.labels)),
    _Rule("annotations", _not_supported("annotations"), lambda p, s: bool(s.annotations)),
    _Rule("extends", _not_supported("extends"), lambda p, s: s.extends is not None),
    _Rule("post_start", _not_supported("post_start"), lambda p, s: bool(s.post_start)),
    _Rule("pre_stop", _not_supported("pre_stop"), lambda p, s: bool(s.pre_stop)),
    _Rule("provider", _not_supported("provider"), lambda p, s: s.provider is not None),
    _Rule("models", _not_supported("models"), lambda p, s: bool(s.models)),
    _Rule("volume_driver", _not_supported("volume_driver"), lambda p, s: s.volume_driver != ""),
    _Rule("use_api_socket", _not_supported("use_api_socket"), lambda p, s: s.use_api_socket),
    _Rule("net", "'net' is deprecated and not supported. Use 'network_mode' instead.",
          lambda p, s: s.net != ""),
)


# ── Deploy rules ────────────────────────────────────────────────
# replicas and update_config.order are supported and never reported.

_DEPLOY_RULES: tuple[_DeployRule, ...] = (
    _DeployRule("deploy.labels", _not_supported("deploy.labels"), lambda d: bool(d.labels)),
    _DeployRule("deploy.rollback_config", _not_supported("deploy.rollback_config"),
                lambda d: d.rollback_config is not None),
    _DeployRule("deploy.restart_policy",
                _not_supported("deploy.restart_policy",
                               "Container lifecycle is managed automatically."),
                lambda d: d.restart_policy is not None),
    _DeployRule("deploy.endpoint_mode", _not_supported("deploy.endpoint_mode"),
                lambda d: d.endpoint_mode != ""),
    _DeployRule("deploy.placement",
                _not_supported("deploy.placement",
                               "Use the 'x-machines' extension for machine placement."),
                lambda d: d.placement.constraints is not None or bool(d.placement.preferences)),
    _DeployRule("deploy.update_config.parallelism",
                _not_supported("deploy.update_config.parallelism"),
                lambda d: d.update_config is not None and d.update_config.parallelism is not None),
    _DeployRule("deploy.update_config.delay", _not_supported("deploy.update_config.delay"),
                lambda d: d.update_config is not None and d.update_config.delay > 0),
    _DeployRule("deploy.update_config.failure_action",
                _not_supported("deploy.update_config.failure_action"),
                lambda d: d.update_config is not None and d.update_config.failure_action != ""),
    _DeployRule("deploy.update_config.monitor", _not_supported("deploy.update_config.monitor"),
                lambda d: d.update_config is not None and d.update_config.monitor > 0),
    _DeployRule("deploy.update_config.max_failure_ratio",
                _not_supported("deploy.update_config.max_failure_ratio"),
                lambda d: d.update_config is not None and d.update_config.max_failure_ratio > 0),
)


def catalogue_keys() -> list[str]:
    """Every key the scanner can report, in catalogue order."""
    return [r.key for r in _SERVICE_RULES] + [r.key for r in _DEPLOY_RULES]


def check_service_warnings(project: Project, service: ServiceConfig) -> list[ComposeWarning]:
    """Warnings for one service, sorted by key."""
    warnings = [
        ComposeWarning(service=service.name, key=rule.key, message=rule.message)
        for rule in _SERVICE_RULES
        if rule.applies(project, service)
    ]
    if service.deploy is not None:
        warnings.extend(check_deploy_warnings(service.name, service.deploy))

    warnings.sort(key=lambda w: w.key)
    return warnings


def check_deploy_warnings(service_name: str, deploy: DeployConfig) -> list[ComposeWarning]:
    """Warnings for a service's ``deploy`` block, in catalogue order."""
    return [
        ComposeWarning(service=service_name, key=rule.key, message=rule.message)
        for rule in _DEPLOY_RULES
        if rule.applies(deploy)
    ]


def check_project_warnings(
    project: Project,
    services: list[str] | None = None,
) -> list[ComposeWarning]:
    """Scan every service of the project for unsupported compose keys.

    Args:
        project: The loaded project.
        services: Restrict the scan to these service names (project order
            is kept regardless of the order given here).

    Returns:
        Warnings in project service order, key-sorted within a service.
    """
    selected = set(services) if services is not None else None
    warnings: list[ComposeWarning] = []

    for name in project.service_names():
        if selected is not None and name not in selected:
            continue
        service_warnings = check_service_warnings(project, project.services[name])
        for w in service_warnings:
            logger.debug("compose warning: %s", w)
        warnings.extend(service_warnings)

    return warnings
