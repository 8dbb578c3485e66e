"""Unit tests for the generation data model (microfed.models).

Tests cover:
- BuildTool parsing of CLI values and persisted labels
- ApplicationSpec host/remote construction, naming and ports
- federation_entries ordering
- GenerationRequest validation (names, count bounds, clashes)
- SetupRecord camelCase (de)serialisation
- GenerationReport accessors
"""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from microfed.models import (
    ApplicationOutcome,
    ApplicationRole,
    ApplicationSpec,
    ApplicationStatus,
    BuildTool,
    FederationEntry,
    GenerationReport,
    GenerationRequest,
    SetupRecord,
    TemplateKind,
    federation_entries,
    remote_name,
    remote_port,
)


# ---------------------------------------------------------------------------
# BuildTool
# ---------------------------------------------------------------------------


class TestBuildTool:
    @pytest.mark.unit
    @pytest.mark.parametrize("raw", ["webpack", "Webpack", " WEBPACK "])
    def test_case_insensitive(self, raw):
        assert BuildTool(raw) is BuildTool.WEBPACK

    @pytest.mark.unit
    def test_label(self):
        assert BuildTool.VITE.label == "Vite"
        assert BuildTool.WEBPACK.label == "Webpack"

    @pytest.mark.unit
    def test_unknown_rejected(self):
        with pytest.raises(ValueError):
            BuildTool("rollup")


# ---------------------------------------------------------------------------
# ApplicationSpec
# ---------------------------------------------------------------------------


class TestApplicationSpec:
    @pytest.mark.unit
    def test_host(self):
        spec = ApplicationSpec.host("shell")
        assert spec.role is ApplicationRole.HOST
        assert spec.template_kind is TemplateKind.HOST_APP
        assert spec.port == 3000
        assert spec.is_host

    @pytest.mark.unit
    @pytest.mark.parametrize("index", [1, 2, 10])
    def test_remote_suffix_and_port(self, index):
        spec = ApplicationSpec.remote("widget", index)
        assert spec.name == f"widget_{index}"
        assert spec.port == 3000 + index
        assert spec.template_kind is TemplateKind.REMOTE_APP
        assert not spec.is_host

    @pytest.mark.unit
    def test_custom_base_port(self):
        assert ApplicationSpec.remote("widget", 2, base_port=4000).port == 4002

    @pytest.mark.unit
    def test_frozen(self):
        spec = ApplicationSpec.host("shell")
        with pytest.raises(ValidationError):
            spec.name = "other"

    @pytest.mark.unit
    @pytest.mark.parametrize("bad", ["", "   ", "../escape", "a/b", "-flag", ".hidden"])
    def test_unsafe_names_rejected(self, bad):
        with pytest.raises(ValidationError):
            ApplicationSpec.host(bad)

    @pytest.mark.unit
    def test_helpers(self):
        assert remote_name("widget", 4) == "widget_4"
        assert remote_port(4) == 3004


class TestFederationEntries:
    @pytest.mark.unit
    def test_in_index_order(self):
        entries = federation_entries("widget", range(1, 4))
        assert entries == [
            FederationEntry(name="widget_1", port=3001),
            FederationEntry(name="widget_2", port=3002),
            FederationEntry(name="widget_3", port=3003),
        ]

    @pytest.mark.unit
    def test_partial_range(self):
        entries = federation_entries("widget", range(3, 5))
        assert [e.name for e in entries] == ["widget_3", "widget_4"]


# ---------------------------------------------------------------------------
# GenerationRequest
# ---------------------------------------------------------------------------


class TestGenerationRequest:
    @pytest.mark.unit
    def test_defaults_to_webpack(self):
        request = GenerationRequest(
            host_application_name="shell",
            remote_application_name="widget",
            remote_application_count=2,
        )
        assert request.build_tool is BuildTool.WEBPACK

    @pytest.mark.unit
    def test_names_are_stripped(self):
        request = GenerationRequest(
            host_application_name="  shell ",
            remote_application_name="widget",
            remote_application_count=1,
        )
        assert request.host_application_name == "shell"

    @pytest.mark.unit
    @pytest.mark.parametrize("count", [0, 11, -1])
    def test_count_out_of_range(self, count):
        with pytest.raises(ValidationError):
            GenerationRequest(
                host_application_name="shell",
                remote_application_name="widget",
                remote_application_count=count,
            )

    @pytest.mark.unit
    @pytest.mark.parametrize("count", [1, 10])
    def test_count_bounds_accepted(self, count):
        request = GenerationRequest(
            host_application_name="shell",
            remote_application_name="widget",
            remote_application_count=count,
        )
        assert request.remote_application_count == count

    @pytest.mark.unit
    def test_empty_remote_name(self):
        with pytest.raises(ValidationError, match="required"):
            GenerationRequest(
                host_application_name="shell",
                remote_application_name="",
                remote_application_count=1,
            )

    @pytest.mark.unit
    def test_host_name_clashing_with_remote_directory(self):
        with pytest.raises(ValidationError, match="collides"):
            GenerationRequest(
                host_application_name="widget_2",
                remote_application_name="widget",
                remote_application_count=3,
            )

    @pytest.mark.unit
    def test_tool_from_label(self):
        request = GenerationRequest(
            host_application_name="shell",
            remote_application_name="widget",
            remote_application_count=1,
            build_tool="Vite",
        )
        assert request.build_tool is BuildTool.VITE


# ---------------------------------------------------------------------------
# SetupRecord
# ---------------------------------------------------------------------------


class TestSetupRecord:
    @pytest.mark.unit
    def test_json_uses_camel_case(self):
        record = SetupRecord(
            host_application_name="shell",
            remote_application_name="widget",
            remote_application_count=3,
            build_tool=BuildTool.VITE,
        )
        assert record.to_json_dict() == {
            "hostApplicationName": "shell",
            "remoteApplicationName": "widget",
            "remoteApplicationCount": 3,
            "microfrontendTool": "Vite",
        }

    @pytest.mark.unit
    def test_parse_persisted_entry(self):
        record = SetupRecord.model_validate({
            "hostApplicationName": "shell",
            "remoteApplicationName": "widget",
            "remoteApplicationCount": "4",
            "microfrontendTool": "Webpack",
        })
        assert record.remote_application_count == 4
        assert record.build_tool is BuildTool.WEBPACK

    @pytest.mark.unit
    def test_missing_tool_defaults_to_webpack(self):
        record = SetupRecord.model_validate({
            "hostApplicationName": "shell",
            "remoteApplicationName": "widget",
            "remoteApplicationCount": 2,
        })
        assert record.build_tool is BuildTool.WEBPACK

    @pytest.mark.unit
    def test_cumulative_count_not_capped(self):
        record = SetupRecord(
            host_application_name="shell",
            remote_application_name="widget",
            remote_application_count=15,
        )
        assert record.remote_application_count == 15

    @pytest.mark.unit
    def test_from_request(self):
        request = GenerationRequest(
            host_application_name="shell",
            remote_application_name="widget",
            remote_application_count=2,
            build_tool="vite",
        )
        record = SetupRecord.from_request(request)
        assert record.host_application_name == "shell"
        assert record.remote_application_count == 2
        assert record.build_tool is BuildTool.VITE


# ---------------------------------------------------------------------------
# GenerationReport
# ---------------------------------------------------------------------------


def _outcome(name: str, status: ApplicationStatus) -> ApplicationOutcome:
    return ApplicationOutcome(
        name=name,
        role=ApplicationRole.REMOTE,
        port=3001,
        target_dir=Path("/tmp") / name,
        status=status,
    )


class TestGenerationReport:
    @pytest.mark.unit
    def test_accessors(self):
        report = GenerationReport()
        report.add(_outcome("a", ApplicationStatus.CREATED))
        report.add(_outcome("b", ApplicationStatus.SKIPPED))
        report.add(_outcome("c", ApplicationStatus.FAILED))

        assert [o.name for o in report.created] == ["a"]
        assert [o.name for o in report.skipped] == ["b"]
        assert [o.name for o in report.failed] == ["c"]
        assert not report.ok
        assert report.outcome_for("b").status is ApplicationStatus.SKIPPED
        assert report.outcome_for("missing") is None

    @pytest.mark.unit
    def test_empty_report_is_ok(self):
        assert GenerationReport().ok
