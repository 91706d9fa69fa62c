"""Render releases back into records, and summarize their effective values."""

import json
from typing import Any, Dict, Optional

import yaml

from canarykit import resolve
from canarykit.durations import format_duration
from canarykit.models import (
    Alert,
    AnalysisPolicy,
    Metric,
    Release,
    ServiceConfig,
    TargetReference,
    Webhook,
)


def _put(data: Dict[str, Any], key: str, value: Any) -> None:
    # absent fields stay absent; only None is treated as absent
    if value is not None:
        data[key] = value


def release_to_dict(release: Release) -> Dict[str, Any]:
    """Convert a Release to a record dict containing only present fields."""
    data: Dict[str, Any] = {}
    _put(data, "apiVersion", release.api_version)
    _put(data, "kind", release.kind)

    metadata = {"name": release.name}
    _put(metadata, "namespace", release.namespace)
    data["metadata"] = metadata

    spec = release.spec
    spec_data: Dict[str, Any] = {}
    _put(spec_data, "provider", spec.provider)
    _put(spec_data, "metricsServer", spec.metrics_server)
    spec_data["targetRef"] = _ref_to_dict(spec.target_ref)
    _put(spec_data, "autoscalerRef", _ref_to_dict(spec.autoscaler_ref))
    _put(spec_data, "ingressRef", _ref_to_dict(spec.ingress_ref))
    spec_data["service"] = _service_to_dict(spec.service)
    _put(spec_data, "analysis", _analysis_to_dict(spec.analysis))
    _put(spec_data, "canaryAnalysis", _analysis_to_dict(spec.canary_analysis))
    _put(spec_data, "progressDeadlineSeconds", spec.progress_deadline_seconds)
    _put(spec_data, "skipAnalysis", spec.skip_analysis)
    data["spec"] = spec_data

    _put(data, "status", release.status)
    return data


def release_to_json(release: Release) -> str:
    return json.dumps(release_to_dict(release), indent=2)


def release_to_yaml(release: Release) -> str:
    return yaml.safe_dump(release_to_dict(release), sort_keys=False)


def effective_to_dict(release: Release) -> Dict[str, Any]:
    """Summarize the values a controller would act on for this release.

    Diagnostics from lenient fallbacks are collected under ``diagnostics``.
    """
    spec = release.spec
    apex, primary, canary = resolve.service_names(spec)
    policy = resolve.analysis_policy(spec)
    interval = resolve.analysis_interval(policy)
    threshold = resolve.analysis_threshold(policy)

    diagnostics = []
    data: Dict[str, Any] = {
        "name": release.name,
        "namespace": release.namespace,
        "services": {"apex": apex, "primary": primary, "canary": canary},
        "port": spec.service.port,
        "portName": resolve.port_name(spec.service),
        "targetPort": resolve.target_port(spec.service),
        "progressDeadlineSeconds": resolve.progress_deadline_seconds(spec),
        "skipAnalysis": resolve.skip_analysis(spec),
        "analysisSource": _analysis_source(release),
        "metricInterval": resolve.metric_interval(),
    }

    if policy is not None:
        data["interval"] = format_duration(interval.value)
        data["threshold"] = threshold.value
        diagnostics.extend(d for d in (interval.diagnostic, threshold.diagnostic) if d)

        metrics = []
        for metric in policy.metrics or []:
            bounds = resolve.effective_threshold_range(metric)
            source = resolve.metric_source(metric)
            entry: Dict[str, Any] = {"name": metric.name}
            range_data: Dict[str, Any] = {}
            _put(range_data, "min", bounds.value.min)
            _put(range_data, "max", bounds.value.max)
            entry["thresholdRange"] = range_data
            if isinstance(source.value, TargetReference):
                entry["templateRef"] = _ref_to_dict(source.value)
            elif source.value is not None:
                entry["query"] = source.value
            diagnostics.extend(d for d in (bounds.diagnostic, source.diagnostic) if d)
            metrics.append(entry)
        data["metrics"] = metrics

        data["alerts"] = [
            {"name": alert.name, "severity": resolve.alert_severity(alert).value}
            for alert in policy.alerts or []
        ]

    data["diagnostics"] = diagnostics
    return data


def _analysis_source(release: Release) -> Optional[str]:
    if release.spec.analysis is not None:
        return "analysis"
    if release.spec.canary_analysis is not None:
        return "canaryAnalysis"
    return None


def _ref_to_dict(ref: Optional[TargetReference]) -> Optional[Dict[str, Any]]:
    if ref is None:
        return None
    data: Dict[str, Any] = {}
    _put(data, "apiVersion", ref.api_version)
    _put(data, "kind", ref.kind)
    data["name"] = ref.name
    _put(data, "namespace", ref.namespace)
    return data


def _service_to_dict(service: ServiceConfig) -> Dict[str, Any]:
    data: Dict[str, Any] = {}
    _put(data, "name", service.name)
    data["port"] = service.port
    _put(data, "portName", service.port_name)
    _put(data, "targetPort", service.target_port)
    _put(data, "portDiscovery", service.port_discovery)
    _put(data, "timeout", service.timeout)
    _put(data, "gateways", service.gateways)
    _put(data, "hosts", service.hosts)
    _put(data, "trafficPolicy", service.traffic_policy)
    _put(data, "match", service.match)
    _put(data, "rewrite", service.rewrite)
    _put(data, "retries", service.retries)
    _put(data, "headers", service.headers)
    _put(data, "corsPolicy", service.cors_policy)
    _put(data, "meshName", service.mesh_name)
    _put(data, "backends", service.backends)
    return data


def _analysis_to_dict(policy: Optional[AnalysisPolicy]) -> Optional[Dict[str, Any]]:
    if policy is None:
        return None
    data: Dict[str, Any] = {}
    _put(data, "interval", policy.interval)
    _put(data, "iterations", policy.iterations)
    _put(data, "mirror", policy.mirror)
    _put(data, "maxWeight", policy.max_weight)
    _put(data, "stepWeight", policy.step_weight)
    _put(data, "threshold", policy.threshold)
    if policy.alerts is not None:
        data["alerts"] = [_alert_to_dict(a) for a in policy.alerts]
    if policy.metrics is not None:
        data["metrics"] = [_metric_to_dict(m) for m in policy.metrics]
    if policy.webhooks is not None:
        data["webhooks"] = [_webhook_to_dict(w) for w in policy.webhooks]
    _put(data, "match", policy.match)
    return data


def _alert_to_dict(alert: Alert) -> Dict[str, Any]:
    data: Dict[str, Any] = {"name": alert.name}
    if alert.severity is not None:
        data["severity"] = alert.severity.value
    data["providerRef"] = _ref_to_dict(alert.provider_ref)
    return data


def _metric_to_dict(metric: Metric) -> Dict[str, Any]:
    data: Dict[str, Any] = {"name": metric.name}
    _put(data, "interval", metric.interval)
    _put(data, "threshold", metric.threshold)
    if metric.threshold_range is not None:
        bounds: Dict[str, Any] = {}
        _put(bounds, "min", metric.threshold_range.min)
        _put(bounds, "max", metric.threshold_range.max)
        data["thresholdRange"] = bounds
    _put(data, "query", metric.query)
    _put(data, "templateRef", _ref_to_dict(metric.template_ref))
    return data


def _webhook_to_dict(webhook: Webhook) -> Dict[str, Any]:
    data: Dict[str, Any] = {}
    if webhook.type is not None:
        data["type"] = webhook.type.value
    data["name"] = webhook.name
    data["url"] = webhook.url
    _put(data, "timeout", webhook.timeout)
    _put(data, "metadata", webhook.metadata)
    return data
