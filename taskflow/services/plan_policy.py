"""
Plan Policy

Pure mapping from a subscription plan to its quotas, feature list and
default tenant settings. Plans are ordered free < basic < professional <
enterprise and each one unlocks a superset of the previous plan's features.

Unknown plan values resolve to the free plan.
"""

from dataclasses import dataclass
from typing import Any

from taskflow.models.tenant import TenantPlan

UNLIMITED = -1


@dataclass(frozen=True)
class PlanLimits:
    """Quotas granted by a plan. ``UNLIMITED`` (-1) lifts a limit."""

    max_users: int
    max_projects: int
    max_storage_gb: int
    features: tuple[str, ...]

    def as_update(self) -> dict[str, Any]:
        """Column values to write on the tenant row."""
        return {
            "max_users": self.max_users,
            "max_projects": self.max_projects,
            "max_storage_gb": self.max_storage_gb,
            "features": list(self.features),
        }


_CORE_FEATURES = ("task_management", "project_management")
_BASIC_FEATURES = _CORE_FEATURES + ("time_tracking", "reporting")
_PROFESSIONAL_FEATURES = _BASIC_FEATURES + ("integrations", "slack", "github")
_ENTERPRISE_FEATURES = _BASIC_FEATURES + ("integrations", "api_access", "slack", "github", "jira", "trello")

PLAN_LIMITS: dict[TenantPlan, PlanLimits] = {
    TenantPlan.free: PlanLimits(5, 3, 1, _CORE_FEATURES),
    TenantPlan.basic: PlanLimits(25, 10, 10, _BASIC_FEATURES),
    TenantPlan.professional: PlanLimits(100, 50, 100, _PROFESSIONAL_FEATURES),
    TenantPlan.enterprise: PlanLimits(UNLIMITED, UNLIMITED, 1000, _ENTERPRISE_FEATURES),
}

_PLAN_ORDER = [TenantPlan.free, TenantPlan.basic, TenantPlan.professional, TenantPlan.enterprise]


def resolve_plan(plan: str | TenantPlan | None) -> TenantPlan:
    """Return the matching TenantPlan, or ``free`` for anything unrecognised."""
    if isinstance(plan, TenantPlan):
        return plan
    try:
        return TenantPlan(plan)
    except ValueError:
        return TenantPlan.free


def _at_least(plan: TenantPlan, minimum: TenantPlan) -> bool:
    return _PLAN_ORDER.index(plan) >= _PLAN_ORDER.index(minimum)


def get_plan_limits(plan: str | TenantPlan | None) -> PlanLimits:
    return PLAN_LIMITS[resolve_plan(plan)]


def get_default_settings(plan: str | TenantPlan | None) -> dict[str, Any]:
    """Build a fresh default settings document for ``plan``."""
    plan = resolve_plan(plan)
    return {
        "theme": {
            "primary_color": "#3B82F6",
            "secondary_color": "#1F2937",
            "logo_url": None,
            "favicon_url": None,
        },
        "features": {
            "task_management": True,
            "project_management": True,
            "time_tracking": _at_least(plan, TenantPlan.basic),
            "reporting": _at_least(plan, TenantPlan.basic),
            "integrations": _at_least(plan, TenantPlan.professional),
            "api_access": plan is TenantPlan.enterprise,
        },
        "notifications": {
            "email_enabled": True,
            "push_enabled": True,
            "sms_enabled": _at_least(plan, TenantPlan.basic),
        },
        "security": {
            "two_factor_required": plan is TenantPlan.enterprise,
            "session_timeout_minutes": 480,
            "password_policy": {
                "min_length": 8,
                "require_uppercase": True,
                "require_lowercase": True,
                "require_numbers": True,
                "require_special_chars": False,
            },
        },
        "integrations": {
            "slack_enabled": _at_least(plan, TenantPlan.basic),
            "github_enabled": _at_least(plan, TenantPlan.professional),
            "jira_enabled": plan is TenantPlan.enterprise,
            "trello_enabled": plan is TenantPlan.enterprise,
        },
    }
