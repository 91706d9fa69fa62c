"""Phase eligibility and result interpretation for lifecycle webhooks.

The webhook dispatcher drives the release through its phases. Before calling
a webhook it asks which hooks are eligible for the current phase, and after
the call it asks what the HTTP status means for the release.
"""

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import FrozenSet, List, Mapping, Optional

from canarykit.models import (
    AnalysisPolicy,
    HookType,
    Phase,
    Release,
    Webhook,
    WebhookPayload,
)


class Cadence(str, Enum):
    ONCE = "once"
    PER_ITERATION = "per-iteration"
    PER_STEP = "per-step"
    PER_TRANSITION = "per-transition"


class Verdict(str, Enum):
    PROCEED = "proceed"
    BLOCK = "block"  # rollout does not start
    HOLD = "hold"  # paused, retried on the next tick
    COUNT_FAILURE = "count-failure"  # counts toward the analysis threshold
    FORCE_ROLLBACK = "force-rollback"
    LOG = "log"  # reported, release state unchanged
    IGNORE = "ignore"


class HookPhaseError(ValueError):
    """Raised when a webhook is dispatched in a phase its type may not fire in."""


@dataclass(frozen=True)
class HookRule:
    hook_type: HookType
    phases: FrozenSet[Phase]
    cadence: Cadence
    on_success: Verdict
    on_failure: Verdict
    description: str = ""


_ALL_PHASES = frozenset(Phase)

HOOK_RULES: Mapping[HookType, HookRule] = MappingProxyType({
    HookType.PRE_ROLLOUT: HookRule(
        HookType.PRE_ROLLOUT,
        frozenset({Phase.PROGRESSING}),
        Cadence.ONCE,
        on_success=Verdict.PROCEED,
        on_failure=Verdict.BLOCK,
        description="before any traffic is routed to the canary",
    ),
    HookType.ROLLOUT: HookRule(
        HookType.ROLLOUT,
        frozenset({Phase.PROGRESSING}),
        Cadence.PER_ITERATION,
        on_success=Verdict.PROCEED,
        on_failure=Verdict.COUNT_FAILURE,
        description="on every analysis iteration",
    ),
    HookType.CONFIRM_ROLLOUT: HookRule(
        HookType.CONFIRM_ROLLOUT,
        frozenset({Phase.WAITING, Phase.PROGRESSING}),
        Cadence.PER_STEP,
        on_success=Verdict.PROCEED,
        on_failure=Verdict.HOLD,
        description="before each traffic weight increase",
    ),
    HookType.CONFIRM_PROMOTION: HookRule(
        HookType.CONFIRM_PROMOTION,
        frozenset({Phase.WAITING_PROMOTION, Phase.PROGRESSING}),
        Cadence.PER_ITERATION,
        on_success=Verdict.PROCEED,
        on_failure=Verdict.HOLD,
        description="before the primary is promoted, retried until it succeeds",
    ),
    HookType.POST_ROLLOUT: HookRule(
        HookType.POST_ROLLOUT,
        frozenset({Phase.SUCCEEDED, Phase.FAILED}),
        Cadence.ONCE,
        on_success=Verdict.PROCEED,
        on_failure=Verdict.LOG,
        description="after promotion or rollback has finished",
    ),
    HookType.ROLLBACK: HookRule(
        HookType.ROLLBACK,
        frozenset({Phase.PROGRESSING, Phase.WAITING, Phase.WAITING_PROMOTION}),
        Cadence.PER_ITERATION,
        on_success=Verdict.FORCE_ROLLBACK,
        on_failure=Verdict.PROCEED,
        description="during analysis, a 2xx response aborts the release",
    ),
    HookType.EVENT: HookRule(
        HookType.EVENT,
        _ALL_PHASES,
        Cadence.PER_TRANSITION,
        on_success=Verdict.IGNORE,
        on_failure=Verdict.IGNORE,
        description="notification on every phase transition",
    ),
})


def hook_type_of(webhook: Webhook) -> HookType:
    """Return the webhook's hook type; an unset type means rollout."""
    return webhook.type or HookType.ROLLOUT


def rule_for(hook_type: HookType) -> HookRule:
    return HOOK_RULES[HookType(hook_type)]


def is_eligible(hook_type: HookType, phase: Phase) -> bool:
    return Phase(phase) in rule_for(hook_type).phases


def eligible_hooks(phase: Phase) -> List[HookType]:
    """Return the hook types that may fire in a phase, in declaration order."""
    return [t for t, rule in HOOK_RULES.items() if Phase(phase) in rule.phases]


def webhooks_for(
    policy: Optional[AnalysisPolicy],
    phase: Phase,
    hook_type: Optional[HookType] = None,
) -> List[Webhook]:
    """Return the policy's webhooks that may fire in a phase.

    Args:
        policy: The effective analysis policy; None yields no webhooks.
        phase: The release phase the dispatcher is in.
        hook_type: Optionally narrow the result to a single hook type.

    Returns:
        Matching webhooks in the order they are declared.
    """
    if policy is None or not policy.webhooks:
        return []
    selected = []
    for webhook in policy.webhooks:
        kind = hook_type_of(webhook)
        if hook_type is not None and kind != hook_type:
            continue
        if is_eligible(kind, phase):
            selected.append(webhook)
    return selected


def is_success(status_code: int) -> bool:
    return 200 <= status_code < 300


def interpret(hook_type: HookType, status_code: int) -> Verdict:
    """Map a webhook's HTTP status to its effect on the release."""
    rule = rule_for(hook_type)
    return rule.on_success if is_success(status_code) else rule.on_failure


def build_payload(release: Release, webhook: Webhook, phase: Phase) -> WebhookPayload:
    """Build the body sent to a webhook for one dispatch.

    Raises:
        HookPhaseError: If the webhook's type may not fire in ``phase``.
    """
    kind = hook_type_of(webhook)
    phase = Phase(phase)
    if not is_eligible(kind, phase):
        allowed = ", ".join(sorted(p.value for p in rule_for(kind).phases))
        raise HookPhaseError(
            f"webhook {webhook.name!r} of type {kind.value} cannot fire in phase "
            f"{phase.value} (allowed: {allowed})"
        )
    return WebhookPayload(
        name=release.name,
        namespace=release.namespace or "",
        phase=phase,
        metadata=dict(webhook.metadata) if webhook.metadata is not None else None,
    )


def payload_to_dict(payload: WebhookPayload) -> dict:
    data = {
        "name": payload.name,
        "namespace": payload.namespace,
        "phase": payload.phase.value,
    }
    if payload.metadata:
        data["metadata"] = dict(payload.metadata)
    return data
