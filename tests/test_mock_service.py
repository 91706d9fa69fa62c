"""Tests for the mock webhook receiver."""

import os

import pytest
from fastapi.testclient import TestClient

from canarykit import hooks
from canarykit.hooks import Verdict
from canarykit.loader import load_release
from canarykit.models import HookType, Phase, Webhook
from mock_service.app import app


FIXTURES_DIR = os.path.join(os.path.dirname(__file__), "..", "fixtures")


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        test_client.delete("/payloads")
        yield test_client


def _body(phase=Phase.WAITING_PROMOTION):
    release = load_release(os.path.join(FIXTURES_DIR, "podinfo-canary.yaml"))
    webhook = Webhook(name="promote", url="http://mock/gate/check", type=HookType.CONFIRM_PROMOTION)
    return hooks.payload_to_dict(hooks.build_payload(release, webhook, phase))


class TestMockReceiver:
    def test_approve_and_reject(self, client):
        assert client.post("/approve", json=_body()).status_code == 200
        assert client.post("/reject", json=_body()).status_code == 403

    def test_confirmation_gate_holds_until_opened(self, client):
        response = client.post("/gate/check", json=_body())
        assert hooks.interpret(HookType.CONFIRM_PROMOTION, response.status_code) == Verdict.HOLD

        client.post("/gate/open", json=_body())
        response = client.post("/gate/check", json=_body())
        assert hooks.interpret(HookType.CONFIRM_PROMOTION, response.status_code) == Verdict.PROCEED

        client.post("/gate/close", json=_body())
        assert client.post("/gate/check", json=_body()).status_code == 403

    def test_rollback_gate(self, client):
        body = _body(Phase.PROGRESSING)
        response = client.post("/rollback/check", json=body)
        assert hooks.interpret(HookType.ROLLBACK, response.status_code) == Verdict.PROCEED

        client.post("/rollback/open", json=body)
        response = client.post("/rollback/check", json=body)
        assert hooks.interpret(HookType.ROLLBACK, response.status_code) == Verdict.FORCE_ROLLBACK

    def test_records_payloads(self, client):
        client.post("/approve", json=_body())
        received = client.get("/payloads").json()
        assert received == [{
            "path": "/approve",
            "name": "podinfo",
            "namespace": "test",
            "phase": "WaitingPromotion",
            "metadata": None,
        }]

    def test_rejects_unknown_phase(self, client):
        body = _body()
        body["phase"] = "Paused"
        assert client.post("/approve", json=body).status_code == 422
