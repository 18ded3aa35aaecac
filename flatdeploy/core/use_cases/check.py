"""
Compatibility check use case — load a compose file and list ignored keys.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from flatdeploy.core.config.loader import ConfigError, load_project
from flatdeploy.core.models.compose import Project
from flatdeploy.core.services.compose_warnings import ComposeWarning, check_project_warnings


@dataclass
class CheckResult:
    """Result of a compatibility check."""

    project: Project | None = None
    warnings: list[ComposeWarning] = field(default_factory=list)
    error: str | None = None

    def to_dict(self) -> dict:
        return {
            "project": self.project.name if self.project else None,
            "services": self.project.service_names() if self.project else [],
            "warnings": [w.to_dict() for w in self.warnings],
            "error": self.error,
        }


def check_compose(
    compose_path: Path | None = None,
    project_name: str | None = None,
) -> CheckResult:
    """Load the project and scan it for unsupported compose keys.

    Warnings never fail the check; only a load error sets ``error``.
    """
    result = CheckResult()

    try:
        result.project = load_project(compose_path, project_name=project_name)
    except ConfigError as e:
        result.error = str(e)
        return result

    result.warnings = check_project_warnings(result.project)
    return result
