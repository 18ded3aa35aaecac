"""
Deploy planner — one pass from a loaded Project to a deployable plan.

Composes the three pure steps the deploy pipeline needs:

    1. compatibility scan   → advisory warnings (never blocking)
    2. secret resolution    → SecretSpecs + SecretMounts per service
    3. cross-validation     → blocking; a bad service aborts the plan

Nothing here contacts a machine. A plan that builds without raising is
safe to hand to the transport.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from flatdeploy.core.errors import PlanError, SecretResolutionError, SecretValidationError
from flatdeploy.core.models.compose import Project, ServiceConfig
from flatdeploy.core.models.secret import SecretMount, SecretSpec, validate_secrets_and_mounts
from flatdeploy.core.services.compose_secrets import secret_specs_from_compose
from flatdeploy.core.services.compose_warnings import ComposeWarning, check_project_warnings

logger = logging.getLogger(__name__)


@dataclass
class ServicePlan:
    """What gets deployed for one service."""

    name: str
    image: str
    replicas: int = 1
    secrets: list[SecretSpec] = field(default_factory=list)
    secret_mounts: list[SecretMount] = field(default_factory=list)

    def to_dict(self) -> dict:
        # Secret payloads never leave the process through a dict/JSON view
        return {
            "name": self.name,
            "image": self.image,
            "replicas": self.replicas,
            "secrets": [{"name": s.name, "size": len(s.content)} for s in self.secrets],
            "secret_mounts": [m.model_dump() for m in self.secret_mounts],
        }


@dataclass
class DeployPlan:
    """The full plan for a project."""

    project: str
    warnings: list[ComposeWarning] = field(default_factory=list)
    services: list[ServicePlan] = field(default_factory=list)

    def get_service(self, name: str) -> ServicePlan | None:
        for svc in self.services:
            if svc.name == name:
                return svc
        return None

    def to_dict(self) -> dict:
        return {
            "project": self.project,
            "warnings": [w.to_dict() for w in self.warnings],
            "services": [s.to_dict() for s in self.services],
        }


def resolve_service_secrets(
    project: Project, service: ServiceConfig,
) -> tuple[list[SecretSpec], list[SecretMount]]:
    """Resolve one service's secrets and cross-validate them.

    Raises:
        PlanError: naming the service, chained to the underlying cause.
    """
    try:
        specs, mounts = secret_specs_from_compose(
            project.secrets, service.secrets, project.working_dir,
        )
        validate_secrets_and_mounts(specs, mounts)
    except (SecretResolutionError, SecretValidationError) as e:
        raise PlanError(f"service '{service.name}': {e}") from e
    return specs, mounts


def plan_service(project: Project, service: ServiceConfig) -> ServicePlan:
    """Resolve and validate one service.

    Raises:
        PlanError: naming the service, chained to the underlying cause.
    """
    if not service.image:
        raise PlanError(f"service '{service.name}': 'image' is required")

    specs, mounts = resolve_service_secrets(project, service)

    replicas = 1
    if service.deploy is not None and service.deploy.replicas is not None:
        replicas = service.deploy.replicas

    return ServicePlan(
        name=service.name,
        image=service.image,
        replicas=replicas,
        secrets=specs,
        secret_mounts=mounts,
    )


def build_deploy_plan(project: Project, services: list[str] | None = None) -> DeployPlan:
    """Build the deploy plan for a project.

    Args:
        project: The loaded project.
        services: Restrict planning to these service names.

    Returns:
        DeployPlan with warnings and per-service plans in project order.

    Raises:
        PlanError: on an unknown service name or the first service that
            fails secret resolution or validation.
    """
    if services:
        unknown = [s for s in services if s not in project.services]
        if unknown:
            raise PlanError(f"unknown service(s): {', '.join(unknown)}")

    plan = DeployPlan(
        project=project.name,
        warnings=check_project_warnings(project, services or None),
    )

    for name in project.service_names():
        if services and name not in services:
            continue
        plan.services.append(plan_service(project, project.services[name]))

    logger.info(
        "Planned %d service(s) for '%s' with %d warning(s)",
        len(plan.services), project.name, len(plan.warnings),
    )
    return plan
