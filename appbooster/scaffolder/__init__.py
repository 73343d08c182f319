"""App Booster scaffolder -- base project, template plan and bundle application.

Quick usage::

    from appbooster.scaffolder import BundleLookup, TemplateCopier, build_plan

    lookup = BundleLookup(config.bundles_dir)
    plan = build_plan(features, lookup)
    await TemplateCopier(lookup, features).apply(plan, target_dir)
"""

from appbooster.scaffolder.base import ScaffoldError, create_base_project
from appbooster.scaffolder.copier import TemplateCopier, TemplateError
from appbooster.scaffolder.plan import (
    PLAN_TABLE,
    BundleLookup,
    BundleRef,
    Presence,
    TemplatePlan,
    build_plan,
)
from appbooster.scaffolder.service_worker import ServiceWorkerGenerator
from appbooster.scaffolder.templates import TemplateRenderer

__all__ = [
    "PLAN_TABLE",
    "BundleLookup",
    "BundleRef",
    "Presence",
    "ScaffoldError",
    "ServiceWorkerGenerator",
    "TemplateCopier",
    "TemplateError",
    "TemplatePlan",
    "TemplateRenderer",
    "build_plan",
    "create_base_project",
]
