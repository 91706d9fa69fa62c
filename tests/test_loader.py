"""Tests for release record loading and structural validation."""

import json
import os
import tempfile

import pytest

from canarykit.loader import ReleaseValidationError, load_release, release_from_dict
from canarykit.models import AlertSeverity, HookType


FIXTURES_DIR = os.path.join(os.path.dirname(__file__), "..", "fixtures")


def _minimal(**spec_overrides):
    spec = {
        "targetRef": {"kind": "Deployment", "name": "backend"},
        "service": {"port": 9898},
    }
    spec.update(spec_overrides)
    return {"metadata": {"name": "backend", "namespace": "test"}, "spec": spec}


def _write_json(data):
    f = tempfile.NamedTemporaryFile(suffix=".json", mode="w", delete=False)
    json.dump(data, f)
    f.close()
    return f.name


class TestLoadReleaseYAML:
    def test_load_valid_yaml(self):
        release = load_release(os.path.join(FIXTURES_DIR, "podinfo-canary.yaml"))
        assert release.name == "podinfo"
        assert release.namespace == "test"
        assert release.kind == "Canary"
        spec = release.spec
        assert spec.provider == "istio"
        assert spec.target_ref.name == "podinfo"
        assert spec.target_ref.kind == "Deployment"
        assert spec.autoscaler_ref.kind == "HorizontalPodAutoscaler"
        assert spec.ingress_ref is None
        assert spec.progress_deadline_seconds == 60
        assert spec.service.port == 9898
        assert spec.service.target_port == "http"
        assert spec.service.retries == {"attempts": 3, "perTryTimeout": "1s"}
        assert spec.analysis.interval == "30s"
        assert spec.analysis.threshold == 5
        assert spec.canary_analysis is None

    def test_nested_analysis_entries(self):
        release = load_release(os.path.join(FIXTURES_DIR, "podinfo-canary.yaml"))
        analysis = release.spec.analysis
        assert [a.severity for a in analysis.alerts] == [AlertSeverity.ERROR, None]
        assert analysis.metrics[0].threshold_range.min == 99.0
        assert analysis.metrics[0].threshold_range.max is None
        assert analysis.metrics[1].template_ref.namespace == "istio-system"
        assert analysis.webhooks[0].type == HookType.PRE_ROLLOUT
        assert analysis.webhooks[0].metadata["type"] == "bash"
        assert analysis.webhooks[1].type is None

    def test_load_legacy_json(self):
        release = load_release(os.path.join(FIXTURES_DIR, "legacy-canary.json"))
        assert release.spec.analysis is None
        legacy = release.spec.canary_analysis
        assert legacy.interval == "5s"
        assert legacy.threshold == 0
        assert legacy.mirror is True
        assert legacy.metrics[0].threshold == 1.5
        assert legacy.metrics[0].query.startswith("sum(")
        assert legacy.match == [{"headers": {"x-canary": {"exact": "insider"}}}]

    def test_absent_optionals_stay_none(self):
        release = load_release(os.path.join(FIXTURES_DIR, "no-analysis.yaml"))
        assert release.namespace is None
        assert release.spec.service.name is None
        assert release.spec.service.port_discovery is None
        assert release.spec.progress_deadline_seconds is None
        assert release.spec.skip_analysis is False


class TestReleaseValidation:
    def test_missing_file(self):
        with pytest.raises(ReleaseValidationError, match="not found"):
            load_release("/nonexistent/canary.yaml")

    def test_unsupported_extension(self):
        with tempfile.NamedTemporaryFile(suffix=".txt", delete=False) as f:
            f.write(b"kind: Canary")
        try:
            with pytest.raises(ReleaseValidationError, match="unsupported"):
                load_release(f.name)
        finally:
            os.unlink(f.name)

    def test_invalid_json_content(self):
        with tempfile.NamedTemporaryFile(suffix=".json", mode="w", delete=False) as f:
            f.write("{bad json")
        try:
            with pytest.raises(ReleaseValidationError, match="parse"):
                load_release(f.name)
        finally:
            os.unlink(f.name)

    def test_non_utf8_content(self):
        with tempfile.NamedTemporaryFile(suffix=".yaml", delete=False) as f:
            f.write(b"kind: Canary\nmetadata:\n  name: \xff\xfe\x80\n")
        try:
            with pytest.raises(ReleaseValidationError, match="parse"):
                load_release(f.name)
        finally:
            os.unlink(f.name)

    def test_non_mapping_top_level(self):
        path = _write_json([1, 2, 3])
        try:
            with pytest.raises(ReleaseValidationError, match="mapping"):
                load_release(path)
        finally:
            os.unlink(path)

    def test_missing_target_name(self):
        data = _minimal(targetRef={"kind": "Deployment"})
        with pytest.raises(ReleaseValidationError, match="targetRef.name"):
            release_from_dict(data)

    @pytest.mark.parametrize("port", [None, 0, -1, "80", True])
    def test_port_must_be_positive_integer(self, port):
        data = _minimal(service={"port": port})
        with pytest.raises(ReleaseValidationError, match="port"):
            release_from_dict(data)

    def test_missing_metadata_name(self):
        data = _minimal()
        data["metadata"] = {"namespace": "test"}
        with pytest.raises(ReleaseValidationError, match="metadata.name"):
            release_from_dict(data)

    def test_wrong_kind(self):
        data = _minimal()
        data["kind"] = "Deployment"
        with pytest.raises(ReleaseValidationError, match="kind"):
            release_from_dict(data)

    def test_unknown_hook_type(self):
        data = _minimal(analysis={
            "webhooks": [{"name": "w", "url": "http://x/", "type": "pre-promotion"}],
        })
        with pytest.raises(ReleaseValidationError, match="pre-promotion"):
            release_from_dict(data)

    def test_unknown_severity(self):
        data = _minimal(analysis={
            "alerts": [{"name": "a", "severity": "critical", "providerRef": {"name": "p"}}],
        })
        with pytest.raises(ReleaseValidationError, match="severity"):
            release_from_dict(data)

    def test_errors_are_collected(self):
        data = _minimal(analysis={
            "webhooks": [{"type": "rollout"}],
            "metrics": [{"interval": "1m"}],
        })
        with pytest.raises(ReleaseValidationError) as excinfo:
            release_from_dict(data)
        message = str(excinfo.value)
        assert "webhooks[0].name" in message
        assert "webhooks[0].url" in message
        assert "metrics[0].name" in message

    def test_lenient_values_are_not_errors(self):
        data = _minimal(analysis={"interval": "soon", "threshold": -3})
        release = release_from_dict(data)
        assert release.spec.analysis.interval == "soon"
        assert release.spec.analysis.threshold == -3

    def test_empty_hook_type_is_absent(self):
        data = _minimal(analysis={"webhooks": [{"name": "w", "url": "http://x/", "type": ""}]})
        release = release_from_dict(data)
        assert release.spec.analysis.webhooks[0].type is None
