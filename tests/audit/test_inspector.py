"""Tests for the module inspector (dedup + findings)."""

from __future__ import annotations

from pkgsentinel.engines.dependency_audit.inspector import inspect_module, manifest_version
from pkgsentinel.engines.dependency_audit.models import NO_VERSION, Report

FULL_MANIFEST = {
    "name": "tidy",
    "version": "1.0.0",
    "description": "a tidy module",
    "scripts": {"test": "mocha"},
    "repository": {"url": "git+https://github.com/org/tidy.git"},
    "bugs": {"url": "https://github.com/org/tidy/issues"},
    "homepage": "https://github.com/org/tidy",
    "license": "MIT",
    "dependencies": {"a": "^1.0.0"},
}


class TestInspectModule:
    def test_clean_manifest_is_testable_without_findings(self):
        report = Report()
        assert inspect_module(FULL_MANIFEST, report) is True
        mreport = report.get("tidy", "1.0.0")
        assert mreport.errors == []
        assert mreport.warnings == []
        assert mreport.ref_count == 1
        assert mreport.license == "MIT"
        assert report.modules["tidy"].description == "a tidy module"
        assert report.modules["tidy"].ref_count == 1

    def test_missing_name_is_skipped_silently(self):
        report = Report()
        assert inspect_module({"version": "1.0.0"}, report) is False
        assert inspect_module(None, report) is False
        assert report.modules == {}
        assert report.errors == []

    def test_missing_test_script_is_not_testable(self):
        report = Report()
        assert inspect_module({"name": "x", "version": "1.0.0"}, report) is False
        assert "manifest missing: scripts.test" in report.get("x", "1.0.0").errors

    def test_empty_test_script_is_not_testable(self):
        report = Report()
        manifest = {"name": "x", "version": "1.0.0", "scripts": {"test": ""}}
        assert inspect_module(manifest, report) is False

    def test_duplicate_only_bumps_counts(self):
        report = Report()
        assert inspect_module(FULL_MANIFEST, report) is True
        assert inspect_module(dict(FULL_MANIFEST), report) is False
        assert inspect_module(dict(FULL_MANIFEST), report) is False

        assert len(report.modules["tidy"].versions) == 1
        assert report.get("tidy", "1.0.0").ref_count == 3
        assert report.modules["tidy"].ref_count == 3

    def test_other_version_gets_own_entry(self):
        report = Report()
        inspect_module(FULL_MANIFEST, report)
        inspect_module({**FULL_MANIFEST, "version": "2.0.0"}, report)
        assert set(report.modules["tidy"].versions) == {"1.0.0", "2.0.0"}
        assert report.modules["tidy"].ref_count == 2

    def test_description_recorded_once(self):
        report = Report()
        inspect_module(FULL_MANIFEST, report)
        inspect_module({**FULL_MANIFEST, "version": "2.0.0", "description": "changed"}, report)
        assert report.modules["tidy"].description == "a tidy module"

    def test_absent_version_tracked_under_sentinel(self):
        report = Report()
        inspect_module({"name": "nov", "scripts": {"test": "x"}}, report)
        mreport = report.get("nov", NO_VERSION)
        assert mreport is not None
        assert mreport.attributes["version"] == NO_VERSION
        assert "manifest: version is not semver-compliant" not in mreport.errors

    def test_empty_version_tracked_under_sentinel(self):
        report = Report()
        inspect_module({"name": "nov", "version": ""}, report)
        assert report.get("nov", NO_VERSION) is not None
        assert "manifest: version is not semver-compliant" not in report.get("nov", NO_VERSION).errors

    def test_absent_version_deduplicates(self):
        report = Report()
        inspect_module({"name": "nov"}, report)
        inspect_module({"name": "nov"}, report)
        assert report.get("nov", NO_VERSION).ref_count == 2

    def test_non_semver_version_is_error(self):
        report = Report()
        inspect_module({**FULL_MANIFEST, "version": "1.0"}, report)
        assert "manifest: version is not semver-compliant" in report.get("tidy", "1.0").errors

    def test_engine_mismatch_is_error(self):
        report = Report()
        manifest = {"name": "x", "version": "1.0.0", "engine": {"node": ">=99.0.0"}}
        inspect_module(manifest, report, runtime_version="18.17.0")
        errors = report.get("x", "1.0.0").errors
        assert any(">=99.0.0" in e and "18.17.0" in e for e in errors)

    def test_dependency_sections_checked(self):
        report = Report()
        manifest = {
            **FULL_MANIFEST,
            "dependencies": {"a": "*"},
            "devDependencies": {"b": "~1.0.0"},
        }
        inspect_module(manifest, report)
        mreport = report.get("tidy", "1.0.0")
        assert mreport.errors == ["dependencies for a's version is a wildcard"]
        assert mreport.warnings == ["devDependencies for b's version is ~1.0.0"]

    def test_optional_fields_warn(self):
        report = Report()
        inspect_module({"name": "bare", "version": "1.0.0", "scripts": {"test": "x"}}, report)
        warnings = report.get("bare", "1.0.0").warnings
        assert warnings == [
            "manifest missing: repository.url",
            "manifest missing: bugs.url",
            "manifest missing: homepage",
            "manifest missing: license",
        ]


def test_manifest_version():
    assert manifest_version({"version": "1.2.3"}) == "1.2.3"
    assert manifest_version({"version": ""}) == NO_VERSION
    assert manifest_version({}) == NO_VERSION
