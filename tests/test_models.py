"""Tests for the release data model."""

import dataclasses

import pytest

from canarykit.models import ServiceConfig, ThresholdRange


class TestThresholdRange:
    def test_inclusive_bounds(self):
        bounds = ThresholdRange(min=1.0, max=5.0)
        assert bounds.contains(1.0)
        assert bounds.contains(5.0)
        assert not bounds.contains(0.99)
        assert not bounds.contains(5.01)

    def test_open_ended(self):
        assert ThresholdRange(min=99.0).contains(1e6)
        assert ThresholdRange(max=500.0).contains(-1.0)
        assert ThresholdRange().contains(0.0)


class TestImmutability:
    def test_records_are_frozen(self):
        service = ServiceConfig(port=80)
        with pytest.raises(dataclasses.FrozenInstanceError):
            service.port = 81
