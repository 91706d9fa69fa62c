"""Load canary release records (YAML or JSON) and check their structure."""

import json
import logging
import os
from typing import Any, Callable, Dict, List, Optional

import yaml

from canarykit.models import (
    CANARY_KIND,
    Alert,
    AlertSeverity,
    AnalysisPolicy,
    HookType,
    Metric,
    Release,
    ReleaseSpec,
    ServiceConfig,
    TargetReference,
    ThresholdRange,
    Webhook,
)

logger = logging.getLogger(__name__)


class ReleaseValidationError(Exception):
    """Raised when a release record is missing, unreadable, or malformed."""


def load_release(path: str) -> Release:
    """Load a canary release from a YAML or JSON file.

    Args:
        path: Path to the release record.

    Returns:
        A Release instance. Optional fields absent from the file stay None.

    Raises:
        ReleaseValidationError: If the file is missing, unreadable, or invalid.
    """
    if not os.path.isfile(path):
        raise ReleaseValidationError(f"release file not found: {path}")

    ext = os.path.splitext(path)[1].lower()
    try:
        with open(path, "r", encoding="utf-8") as f:
            if ext in (".yaml", ".yml"):
                raw = yaml.safe_load(f)
            elif ext == ".json":
                raw = json.load(f)
            else:
                raise ReleaseValidationError(
                    f"unsupported file extension: {ext} (expected .yaml, .yml, or .json)"
                )
    except (yaml.YAMLError, json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ReleaseValidationError(f"failed to parse {path}: {exc}") from exc

    logger.debug("loaded release record from %s", path)
    return release_from_dict(raw)


def release_from_dict(raw: Any) -> Release:
    """Construct a Release from a decoded record, collecting every problem."""
    if not isinstance(raw, dict):
        raise ReleaseValidationError("release must be a mapping/object at the top level")

    errors: List[str] = []

    kind = _optional(raw, "kind", str, "kind", errors)
    if kind is not None and kind != CANARY_KIND:
        errors.append(f"'kind' must be {CANARY_KIND!r}, got {kind!r}")

    metadata = raw.get("metadata")
    name = namespace = None
    if not isinstance(metadata, dict):
        errors.append("'metadata' is required and must be a mapping")
    else:
        name = metadata.get("name")
        if not name or not isinstance(name, str):
            errors.append("'metadata.name' is required and must be a non-empty string")
        namespace = _optional(metadata, "namespace", str, "metadata.namespace", errors)

    api_version = _optional(raw, "apiVersion", str, "apiVersion", errors)
    status = _optional(raw, "status", dict, "status", errors)

    spec_raw = raw.get("spec")
    spec = None
    if not isinstance(spec_raw, dict):
        errors.append("'spec' is required and must be a mapping")
    else:
        spec = _parse_spec(spec_raw, errors)

    if errors:
        raise ReleaseValidationError(
            "release validation failed:\n  - " + "\n  - ".join(errors)
        )

    return Release(
        name=name,
        namespace=namespace,
        api_version=api_version,
        kind=kind,
        spec=spec,
        status=status,
    )


def _optional(raw: dict, key: str, types, where: str, errors: List[str]):
    """Return raw[key] if present and of the right type, else None."""
    value = raw.get(key)
    if value is None:
        return None
    # bool is an int subclass; never accept it where a number is expected
    if isinstance(value, bool) and bool not in _as_tuple(types):
        errors.append(f"'{where}' has the wrong type")
        return None
    if not isinstance(value, types):
        errors.append(f"'{where}' has the wrong type")
        return None
    return value


def _as_tuple(types) -> tuple:
    return types if isinstance(types, tuple) else (types,)


def _optional_list(
    raw: dict,
    key: str,
    where: str,
    errors: List[str],
    parse_item: Optional[Callable[[Any, str, List[str]], Any]] = None,
) -> Optional[list]:
    items = _optional(raw, key, list, where, errors)
    if items is None:
        return None
    if parse_item is None:
        return list(items)
    parsed = []
    for i, item in enumerate(items):
        value = parse_item(item, f"{where}[{i}]", errors)
        if value is not None:
            parsed.append(value)
    return parsed


def _parse_spec(raw: dict, errors: List[str]) -> Optional[ReleaseSpec]:
    target_ref = _parse_ref(raw.get("targetRef"), "spec.targetRef", errors, required=True)

    service_raw = raw.get("service")
    service = None
    if not isinstance(service_raw, dict):
        errors.append("'spec.service' is required and must be a mapping")
    else:
        service = _parse_service(service_raw, errors)

    if target_ref is None or service is None:
        return None

    return ReleaseSpec(
        target_ref=target_ref,
        service=service,
        provider=_optional(raw, "provider", str, "spec.provider", errors),
        metrics_server=_optional(raw, "metricsServer", str, "spec.metricsServer", errors),
        autoscaler_ref=_parse_ref(raw.get("autoscalerRef"), "spec.autoscalerRef", errors),
        ingress_ref=_parse_ref(raw.get("ingressRef"), "spec.ingressRef", errors),
        analysis=_parse_analysis(raw.get("analysis"), "spec.analysis", errors),
        canary_analysis=_parse_analysis(
            raw.get("canaryAnalysis"), "spec.canaryAnalysis", errors
        ),
        progress_deadline_seconds=_optional(
            raw, "progressDeadlineSeconds", int, "spec.progressDeadlineSeconds", errors
        ),
        skip_analysis=_optional(raw, "skipAnalysis", bool, "spec.skipAnalysis", errors),
    )


def _parse_ref(
    raw: Any, where: str, errors: List[str], required: bool = False
) -> Optional[TargetReference]:
    if raw is None:
        if required:
            errors.append(f"'{where}' is required and must be a mapping")
        return None
    if not isinstance(raw, dict):
        errors.append(f"'{where}' must be a mapping")
        return None
    name = raw.get("name")
    if not name or not isinstance(name, str):
        errors.append(f"'{where}.name' is required and must be a non-empty string")
        return None
    return TargetReference(
        name=name,
        api_version=_optional(raw, "apiVersion", str, f"{where}.apiVersion", errors),
        kind=_optional(raw, "kind", str, f"{where}.kind", errors),
        namespace=_optional(raw, "namespace", str, f"{where}.namespace", errors),
    )


def _parse_service(raw: dict, errors: List[str]) -> Optional[ServiceConfig]:
    port = raw.get("port")
    if isinstance(port, bool) or not isinstance(port, int) or port <= 0:
        errors.append("'spec.service.port' is required and must be a positive integer")
        return None

    where = "spec.service"
    return ServiceConfig(
        port=port,
        name=_optional(raw, "name", str, f"{where}.name", errors),
        port_name=_optional(raw, "portName", str, f"{where}.portName", errors),
        target_port=_optional(raw, "targetPort", (int, str), f"{where}.targetPort", errors),
        port_discovery=_optional(raw, "portDiscovery", bool, f"{where}.portDiscovery", errors),
        timeout=_optional(raw, "timeout", str, f"{where}.timeout", errors),
        gateways=_optional_list(raw, "gateways", f"{where}.gateways", errors),
        hosts=_optional_list(raw, "hosts", f"{where}.hosts", errors),
        traffic_policy=_optional(raw, "trafficPolicy", dict, f"{where}.trafficPolicy", errors),
        match=_optional_list(raw, "match", f"{where}.match", errors),
        rewrite=_optional(raw, "rewrite", dict, f"{where}.rewrite", errors),
        retries=_optional(raw, "retries", dict, f"{where}.retries", errors),
        headers=_optional(raw, "headers", dict, f"{where}.headers", errors),
        cors_policy=_optional(raw, "corsPolicy", dict, f"{where}.corsPolicy", errors),
        mesh_name=_optional(raw, "meshName", str, f"{where}.meshName", errors),
        backends=_optional_list(raw, "backends", f"{where}.backends", errors),
    )


def _parse_analysis(raw: Any, where: str, errors: List[str]) -> Optional[AnalysisPolicy]:
    if raw is None:
        return None
    if not isinstance(raw, dict):
        errors.append(f"'{where}' must be a mapping")
        return None

    # interval is kept verbatim; unparseable values are resolved leniently later
    return AnalysisPolicy(
        interval=_optional(raw, "interval", str, f"{where}.interval", errors),
        iterations=_optional(raw, "iterations", int, f"{where}.iterations", errors),
        mirror=_optional(raw, "mirror", bool, f"{where}.mirror", errors),
        max_weight=_optional(raw, "maxWeight", int, f"{where}.maxWeight", errors),
        step_weight=_optional(raw, "stepWeight", int, f"{where}.stepWeight", errors),
        threshold=_optional(raw, "threshold", int, f"{where}.threshold", errors),
        alerts=_optional_list(raw, "alerts", f"{where}.alerts", errors, _parse_alert),
        metrics=_optional_list(raw, "metrics", f"{where}.metrics", errors, _parse_metric),
        webhooks=_optional_list(raw, "webhooks", f"{where}.webhooks", errors, _parse_webhook),
        match=_optional_list(raw, "match", f"{where}.match", errors),
    )


def _parse_alert(raw: Any, where: str, errors: List[str]) -> Optional[Alert]:
    if not isinstance(raw, dict):
        errors.append(f"{where} must be a mapping")
        return None
    name = raw.get("name")
    if not name or not isinstance(name, str):
        errors.append(f"{where}.name is required")
        return None
    provider_ref = _parse_ref(raw.get("providerRef"), f"{where}.providerRef", errors, required=True)
    if provider_ref is None:
        return None

    severity = None
    severity_raw = raw.get("severity")
    if severity_raw is not None:
        try:
            severity = AlertSeverity(severity_raw)
        except ValueError:
            errors.append(
                f"{where}.severity must be one of "
                f"{', '.join(s.value for s in AlertSeverity)}, got {severity_raw!r}"
            )
            return None
    return Alert(name=name, provider_ref=provider_ref, severity=severity)


def _parse_metric(raw: Any, where: str, errors: List[str]) -> Optional[Metric]:
    if not isinstance(raw, dict):
        errors.append(f"{where} must be a mapping")
        return None
    name = raw.get("name")
    if not name or not isinstance(name, str):
        errors.append(f"{where}.name is required")
        return None

    threshold_range = None
    range_raw = raw.get("thresholdRange")
    if range_raw is not None:
        if not isinstance(range_raw, dict):
            errors.append(f"{where}.thresholdRange must be a mapping")
        else:
            low = _optional(range_raw, "min", (int, float), f"{where}.thresholdRange.min", errors)
            high = _optional(range_raw, "max", (int, float), f"{where}.thresholdRange.max", errors)
            threshold_range = ThresholdRange(
                min=None if low is None else float(low),
                max=None if high is None else float(high),
            )

    threshold = _optional(raw, "threshold", (int, float), f"{where}.threshold", errors)
    return Metric(
        name=name,
        interval=_optional(raw, "interval", str, f"{where}.interval", errors),
        threshold=None if threshold is None else float(threshold),
        threshold_range=threshold_range,
        query=_optional(raw, "query", str, f"{where}.query", errors),
        template_ref=_parse_ref(raw.get("templateRef"), f"{where}.templateRef", errors),
    )


def _parse_webhook(raw: Any, where: str, errors: List[str]) -> Optional[Webhook]:
    if not isinstance(raw, dict):
        errors.append(f"{where} must be a mapping")
        return None

    name = raw.get("name")
    url = raw.get("url")
    if not name or not isinstance(name, str):
        errors.append(f"{where}.name is required")
    if not url or not isinstance(url, str):
        errors.append(f"{where}.url is required")

    hook_type = None
    type_raw = raw.get("type")
    if type_raw is not None and type_raw != "":
        try:
            hook_type = HookType(type_raw)
        except ValueError:
            errors.append(
                f"{where}.type must be one of "
                f"{', '.join(t.value for t in HookType)}, got {type_raw!r}"
            )

    metadata = _optional(raw, "metadata", dict, f"{where}.metadata", errors)
    if metadata is not None:
        metadata = _string_map(metadata, f"{where}.metadata", errors)

    if not name or not url:
        return None
    return Webhook(
        name=name,
        url=url,
        type=hook_type,
        timeout=_optional(raw, "timeout", str, f"{where}.timeout", errors),
        metadata=metadata,
    )


def _string_map(raw: dict, where: str, errors: List[str]) -> Dict[str, str]:
    result = {}
    for key, value in raw.items():
        if not isinstance(value, str):
            errors.append(f"{where}.{key} must be a string")
            continue
        result[str(key)] = value
    return result
