"""Unit tests for template plan construction (appbooster.scaffolder.plan).

Tests cover:
- BundleLookup presence checks
- build_plan ordering across every feature row
- Variant gating by existence on disk
- Determinism for identical inputs
- JavaScript testing on Next.js (no plain-JS variant)
- Deployment bundles
"""

from __future__ import annotations

from pathlib import Path

import pytest

from appbooster.config import FeatureSet
from appbooster.scaffolder.plan import (
    BundleLookup,
    BundleRef,
    Presence,
    TemplatePlan,
    build_plan,
)


class TestBundleLookup:
    @pytest.mark.unit
    def test_presence(self, bundle_root: Path):
        lookup = BundleLookup(bundle_root)
        assert lookup.lookup("common/linting") is Presence.PRESENT
        assert lookup.lookup("nextjs/jest") is Presence.ABSENT

    @pytest.mark.unit
    def test_file_is_not_a_bundle(self, bundle_root: Path):
        lookup = BundleLookup(bundle_root)
        assert lookup.lookup("common/snyk/.snyk") is Presence.ABSENT


class TestTemplatePlan:
    @pytest.mark.unit
    def test_helpers(self):
        plan = TemplatePlan(
            (BundleRef("common/jest", "testing"), BundleRef("vite/jest-ts", "testing", optional=True))
        )
        assert len(plan) == 2
        assert plan.names() == ["common/jest", "vite/jest-ts"]
        assert [b.name for b in plan.for_feature("testing")] == plan.names()
        assert plan.for_feature("linting") == []


class TestBuildPlan:
    @pytest.mark.unit
    def test_empty_selection(self, bundle_root: Path):
        assert len(build_plan(FeatureSet(), BundleLookup(bundle_root))) == 0

    @pytest.mark.unit
    def test_full_vite_ts_order(self, bundle_root: Path):
        features = FeatureSet(
            project_type="vite",
            language="ts",
            ci=True,
            security=True,
            linting=True,
            git_hooks=True,
            testing=True,
            deployment="vercel",
        )
        plan = build_plan(features, BundleLookup(bundle_root))
        assert plan.names() == [
            "common/github",
            "common/snyk",
            "common/linting",
            "vite/linting",
            "common/husky",
            "common/jest",
            "vite/jest-ts",
            "common/deployment/vercel",
            "vite/deployment/vercel",
        ]

    @pytest.mark.unit
    def test_variants_are_optional(self, bundle_root: Path):
        features = FeatureSet(project_type="vite", linting=True)
        plan = build_plan(features, BundleLookup(bundle_root))
        assert [b.optional for b in plan] == [False, True]

    @pytest.mark.unit
    def test_javascript_vite_uses_plain_jest_variant(self, bundle_root: Path):
        features = FeatureSet(project_type="vite", language="js", testing=True)
        plan = build_plan(features, BundleLookup(bundle_root))
        assert plan.names() == ["common/jest", "vite/jest"]

    @pytest.mark.unit
    def test_javascript_testing_on_nextjs_has_common_bundle_only(self, bundle_root: Path):
        features = FeatureSet(project_type="nextjs", language="js", testing=True)
        plan = build_plan(features, BundleLookup(bundle_root))
        assert plan.names() == ["common/jest"]

    @pytest.mark.unit
    def test_typescript_testing_on_nextjs(self, bundle_root: Path):
        features = FeatureSet(project_type="nextjs", language="ts", testing=True)
        plan = build_plan(features, BundleLookup(bundle_root))
        assert plan.names() == ["common/jest", "nextjs/jest-ts"]

    @pytest.mark.unit
    def test_missing_linting_variant_is_skipped(self, bundle_root: Path):
        features = FeatureSet(project_type="nextjs", linting=True)
        plan = build_plan(features, BundleLookup(bundle_root))
        assert plan.names() == ["common/linting"]

    @pytest.mark.unit
    def test_deployment_without_variant(self, bundle_root: Path):
        features = FeatureSet(project_type="nextjs", deployment="vercel")
        plan = build_plan(features, BundleLookup(bundle_root))
        assert plan.names() == ["common/deployment/vercel"]

    @pytest.mark.unit
    def test_deterministic(self, bundle_root: Path, vite_ts_features: FeatureSet):
        lookup = BundleLookup(bundle_root)
        assert build_plan(vite_ts_features, lookup) == build_plan(vite_ts_features, lookup)

    @pytest.mark.unit
    def test_shipped_bundles_cover_common_entries(self, shipped_bundles: Path):
        features = FeatureSet(
            project_type="vite",
            ci=True,
            security=True,
            linting=True,
            git_hooks=True,
            testing=True,
            deployment="render",
        )
        lookup = BundleLookup(shipped_bundles)
        plan = build_plan(features, lookup)
        assert all(lookup.lookup(bundle.name) is Presence.PRESENT for bundle in plan)
        assert "nextjs/jest" not in [
            b.name for b in build_plan(FeatureSet(project_type="nextjs", language="js", testing=True), lookup)
        ]
