"""
Plan use case — load a compose file and build the deploy plan.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from flatdeploy.core.config.loader import ConfigError, load_project
from flatdeploy.core.errors import PlanError
from flatdeploy.core.models.compose import Project
from flatdeploy.core.services.deploy_plan import DeployPlan, build_deploy_plan

logger = logging.getLogger(__name__)


@dataclass
class PlanResult:
    """Result of deploy planning."""

    project: Project | None = None
    plan: DeployPlan | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.plan is not None

    def to_dict(self) -> dict:
        return {
            "ok": self.ok,
            "project": self.project.name if self.project else None,
            "plan": self.plan.to_dict() if self.plan else None,
            "error": self.error,
        }


def plan_deploy(
    compose_path: Path | None = None,
    project_name: str | None = None,
    services: list[str] | None = None,
) -> PlanResult:
    """Load the project and plan its deployment.

    Args:
        compose_path: Explicit compose file (default: auto-detect).
        project_name: Project name override.
        services: Restrict the plan to these services.

    Returns:
        PlanResult; ``error`` is set when loading or planning failed.
    """
    result = PlanResult()

    try:
        result.project = load_project(compose_path, project_name=project_name)
    except ConfigError as e:
        result.error = str(e)
        return result

    try:
        result.plan = build_deploy_plan(result.project, services)
    except PlanError as e:
        logger.debug("Planning failed", exc_info=True)
        result.error = str(e)

    return result
