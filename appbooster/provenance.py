"""Provenance file recording how a project was generated."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from appbooster.config import BoosterConfig, FeatureSet
from appbooster.utils import save_json


def provenance_record(
    features: FeatureSet,
    config: BoosterConfig,
    created_at: datetime | None = None,
) -> dict[str, Any]:
    """Build the provenance payload for *features*."""
    timestamp = (created_at or datetime.now(timezone.utc)).isoformat()
    return {
        "generator": config.generator_name,
        "version": config.generator_version,
        "createdAt": timestamp,
        "settings": {
            "projectType": features.project_type,
            "packageManager": features.package_manager,
            "language": features.language_label,
            "deployment": features.deployment,
            "features": {
                "serviceWorker": features.service_worker,
                "linting": features.linting,
                "testing": features.testing,
                "githubActions": features.ci,
                "snyk": features.security,
                "git": features.git_init,
                "husky": features.git_hooks,
            },
        },
    }


async def write_provenance(
    features: FeatureSet, config: BoosterConfig, target_dir: Path
) -> Path:
    """Write the provenance file into *target_dir* and return its path."""
    path = target_dir / config.provenance_file
    await save_json(provenance_record(features, config), path)
    return path
