"""Compute effective values for optional, deprecated, or dual-form fields.

Every function here is total: malformed or missing optional fields resolve
to a documented default instead of raising. Functions that can fall back
return a ``Resolved`` pair whose ``diagnostic`` says what was substituted.
"""

import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Generic, Optional, Tuple, TypeVar, Union

from canarykit.durations import DurationError, parse_duration
from canarykit.models import (
    Alert,
    AlertSeverity,
    AnalysisPolicy,
    Metric,
    ReleaseSpec,
    ServiceConfig,
    TargetReference,
    ThresholdRange,
)

logger = logging.getLogger(__name__)

PROGRESS_DEADLINE_SECONDS = 600
ANALYSIS_INTERVAL = timedelta(seconds=60)
MIN_ANALYSIS_INTERVAL = timedelta(seconds=10)
METRIC_INTERVAL = "1m"
DEFAULT_PORT_NAME = "http"

T = TypeVar("T")


@dataclass(frozen=True)
class Resolved(Generic[T]):
    value: T
    diagnostic: Optional[str] = None


def _fallback(value: Any, diagnostic: str) -> Resolved:
    logger.debug(diagnostic)
    return Resolved(value, diagnostic)


def service_names(spec: ReleaseSpec) -> Tuple[str, str, str]:
    """Return the apex, primary and canary service names."""
    apex = spec.service.name or spec.target_ref.name
    return apex, f"{apex}-primary", f"{apex}-canary"


def progress_deadline_seconds(spec: ReleaseSpec) -> int:
    """Return the progress deadline override, or 600 seconds when unset.

    An explicit 0 counts as set.
    """
    if spec.progress_deadline_seconds is not None:
        return spec.progress_deadline_seconds
    return PROGRESS_DEADLINE_SECONDS


def analysis_policy(spec: ReleaseSpec) -> Optional[AnalysisPolicy]:
    """Return ``analysis``, else the deprecated ``canaryAnalysis``, else None."""
    if spec.analysis is not None:
        return spec.analysis
    return spec.canary_analysis


def analysis_interval(policy: Optional[AnalysisPolicy]) -> Resolved[timedelta]:
    """Return the analysis schedule interval.

    Empty or unparseable intervals fall back to 60s; parsed values below
    10s are raised to 10s.
    """
    if policy is None or not policy.interval:
        return _fallback(ANALYSIS_INTERVAL, "analysis interval not set, using 1m0s")

    try:
        interval = parse_duration(policy.interval)
    except DurationError:
        return _fallback(
            ANALYSIS_INTERVAL,
            f"analysis interval {policy.interval!r} is not a valid duration, using 1m0s",
        )

    if interval < MIN_ANALYSIS_INTERVAL:
        return _fallback(
            MIN_ANALYSIS_INTERVAL,
            f"analysis interval {policy.interval!r} is below the 10s minimum, using 10s",
        )
    return Resolved(interval)


def analysis_threshold(policy: Optional[AnalysisPolicy]) -> Resolved[int]:
    """Return the max number of failed checks, defaulting to 1."""
    if policy is not None and policy.threshold is not None and policy.threshold > 0:
        return Resolved(policy.threshold)
    threshold = None if policy is None else policy.threshold
    return _fallback(1, f"analysis threshold {threshold!r} is not positive, using 1")


def metric_interval(metric: Optional[Metric] = None) -> str:
    # Per-metric intervals are not honoured yet; every metric uses the default.
    return METRIC_INTERVAL


def skip_analysis(spec: ReleaseSpec) -> bool:
    """Return True when no analysis policy exists or skipAnalysis is set."""
    if spec.analysis is None and spec.canary_analysis is None:
        return True
    return bool(spec.skip_analysis)


def effective_threshold_range(metric: Metric) -> Resolved[ThresholdRange]:
    """Return the accepted value range for a metric.

    ``thresholdRange`` wins; the deprecated scalar ``threshold`` becomes an
    upper bound. With neither set the range is unbounded and the
    diagnostic flags the record.
    """
    if metric.threshold_range is not None:
        bounds = metric.threshold_range
        if bounds.min is None and bounds.max is None:
            return _fallback(
                bounds, f"metric {metric.name!r} has an empty thresholdRange, every value passes"
            )
        return Resolved(bounds)
    if metric.threshold is not None:
        return Resolved(ThresholdRange(max=metric.threshold))
    return _fallback(
        ThresholdRange(),
        f"metric {metric.name!r} has neither thresholdRange nor threshold, every value passes",
    )


def metric_source(metric: Metric) -> Resolved[Optional[Union[TargetReference, str]]]:
    """Return the metric template reference, else the deprecated inline query."""
    if metric.template_ref is not None:
        return Resolved(metric.template_ref)
    if metric.query:
        return Resolved(metric.query)
    return _fallback(None, f"metric {metric.name!r} has neither templateRef nor query")


def alert_severity(alert: Alert) -> AlertSeverity:
    return alert.severity or AlertSeverity.INFO


def port_name(service: ServiceConfig) -> str:
    return service.port_name or DEFAULT_PORT_NAME


def target_port(service: ServiceConfig) -> Union[int, str]:
    if service.target_port is None or service.target_port == "":
        return service.port
    return service.target_port
