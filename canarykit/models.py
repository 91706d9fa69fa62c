"""Data models for canary releases, analysis policies, and webhook payloads."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Union

CANARY_KIND = "Canary"


class AlertSeverity(str, Enum):
    INFO = "info"
    WARN = "warn"
    ERROR = "error"


class HookType(str, Enum):
    PRE_ROLLOUT = "pre-rollout"
    ROLLOUT = "rollout"
    CONFIRM_ROLLOUT = "confirm-rollout"
    CONFIRM_PROMOTION = "confirm-promotion"
    POST_ROLLOUT = "post-rollout"
    ROLLBACK = "rollback"
    EVENT = "event"


class Phase(str, Enum):
    INITIALIZING = "Initializing"
    INITIALIZED = "Initialized"
    WAITING = "Waiting"
    PROGRESSING = "Progressing"
    WAITING_PROMOTION = "WaitingPromotion"
    PROMOTING = "Promoting"
    FINALISING = "Finalising"
    SUCCEEDED = "Succeeded"
    FAILED = "Failed"
    TERMINATING = "Terminating"
    TERMINATED = "Terminated"


@dataclass(frozen=True)
class TargetReference:
    name: str
    api_version: Optional[str] = None
    kind: Optional[str] = None
    namespace: Optional[str] = None


@dataclass(frozen=True)
class ThresholdRange:
    min: Optional[float] = None
    max: Optional[float] = None

    def contains(self, value: float) -> bool:
        """Inclusive range check; a missing bound is unbounded."""
        if self.min is not None and value < self.min:
            return False
        if self.max is not None and value > self.max:
            return False
        return True


@dataclass(frozen=True)
class Metric:
    name: str
    interval: Optional[str] = None
    threshold: Optional[float] = None  # deprecated, use threshold_range
    threshold_range: Optional[ThresholdRange] = None
    query: Optional[str] = None  # deprecated, use template_ref
    template_ref: Optional[TargetReference] = None


@dataclass(frozen=True)
class Alert:
    name: str
    provider_ref: TargetReference
    severity: Optional[AlertSeverity] = None


@dataclass(frozen=True)
class Webhook:
    name: str
    url: str
    type: Optional[HookType] = None  # absent means rollout
    timeout: Optional[str] = None
    metadata: Optional[Dict[str, str]] = None


@dataclass(frozen=True)
class AnalysisPolicy:
    interval: Optional[str] = None
    iterations: Optional[int] = None
    mirror: Optional[bool] = None
    max_weight: Optional[int] = None
    step_weight: Optional[int] = None
    threshold: Optional[int] = None
    alerts: Optional[List[Alert]] = None
    metrics: Optional[List[Metric]] = None
    webhooks: Optional[List[Webhook]] = None
    match: Optional[List[dict]] = None  # A/B testing HTTP match conditions


@dataclass(frozen=True)
class ServiceConfig:
    port: int
    name: Optional[str] = None
    port_name: Optional[str] = None
    target_port: Optional[Union[int, str]] = None
    port_discovery: Optional[bool] = None
    timeout: Optional[str] = None
    # Routing fields below are passed through untouched to mesh/ingress adapters.
    gateways: Optional[List[str]] = None
    hosts: Optional[List[str]] = None
    traffic_policy: Optional[dict] = None
    match: Optional[List[dict]] = None
    rewrite: Optional[dict] = None
    retries: Optional[dict] = None
    headers: Optional[dict] = None
    cors_policy: Optional[dict] = None
    mesh_name: Optional[str] = None
    backends: Optional[List[str]] = None


@dataclass(frozen=True)
class ReleaseSpec:
    target_ref: TargetReference
    service: ServiceConfig
    provider: Optional[str] = None
    metrics_server: Optional[str] = None
    autoscaler_ref: Optional[TargetReference] = None
    ingress_ref: Optional[TargetReference] = None
    analysis: Optional[AnalysisPolicy] = None
    canary_analysis: Optional[AnalysisPolicy] = None  # deprecated, use analysis
    progress_deadline_seconds: Optional[int] = None
    skip_analysis: Optional[bool] = None


@dataclass(frozen=True)
class Release:
    name: str
    spec: ReleaseSpec
    namespace: Optional[str] = None
    api_version: Optional[str] = None
    kind: Optional[str] = None
    status: Optional[Dict[str, Any]] = None


@dataclass(frozen=True)
class WebhookPayload:
    name: str
    namespace: str
    phase: Phase
    metadata: Optional[Dict[str, str]] = None
