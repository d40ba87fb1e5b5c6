"""
Clinical Reasoning Engine – Urgency Resolver
==============================================
Combines rule-based red flag alerts with the top-ranked condition to
produce the overall urgency of an assessment.

Precedence (first match wins):
  critical alert          -> emergency
  danger alert            -> urgent-care
  top condition emergency -> emergency
  top condition urgent    -> urgent-care
  top condition soon      -> schedule-visit
  otherwise               -> self-care
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from models.reasoning.schema_definition import (
    URGENCY_ORDER,
    AlertSeverity,
    ClinicalCondition,
    ConditionUrgency,
    OverallUrgency,
    RedFlagAlert,
)

logger = logging.getLogger(__name__)

_CONDITION_TO_OVERALL = {
    ConditionUrgency.EMERGENCY: (
        OverallUrgency.EMERGENCY, "Top condition requires immediate attention"),
    ConditionUrgency.URGENT: (
        OverallUrgency.URGENT_CARE, "Medical evaluation recommended today"),
    ConditionUrgency.SOON: (
        OverallUrgency.SCHEDULE_VISIT, "Schedule a doctor visit within a few days"),
}


@dataclass(frozen=True)
class UrgencyDecision:
    urgency: OverallUrgency
    reason: str
    overrides: tuple = ()


class UrgencyResolver:
    """Applies the fixed urgency precedence. Red flags only ever escalate."""

    def resolve(
        self,
        alerts: Sequence[RedFlagAlert],
        conditions: Sequence[ClinicalCondition],
    ) -> UrgencyDecision:
        top: Optional[ClinicalCondition] = conditions[0] if conditions else None
        overrides: List[str] = []

        if any(a.severity == AlertSeverity.CRITICAL for a in alerts):
            urgency, reason = OverallUrgency.EMERGENCY, "Critical warning signs detected"
        elif any(a.severity == AlertSeverity.DANGER for a in alerts):
            urgency, reason = OverallUrgency.URGENT_CARE, "Urgent medical evaluation recommended"
        elif top is not None and top.urgency in _CONDITION_TO_OVERALL:
            urgency, reason = _CONDITION_TO_OVERALL[top.urgency]
        else:
            urgency, reason = OverallUrgency.SELF_CARE, "Symptoms appear manageable at home"

        # ── Record when red flags outrank the differential ──────────────
        if top is not None and alerts:
            condition_level = _CONDITION_TO_OVERALL.get(top.urgency, (OverallUrgency.SELF_CARE, ""))[0]
            if rank(urgency) > rank(condition_level):
                overrides.append(
                    f"Urgency upgraded {condition_level.value} → {urgency.value} by red flag rules"
                )

        if overrides:
            logger.info("Urgency overrides: %s", overrides)

        return UrgencyDecision(urgency=urgency, reason=reason, overrides=tuple(overrides))


def rank(urgency: OverallUrgency) -> int:
    """Position of an urgency tier, 0 = self-care … 3 = emergency."""
    return URGENCY_ORDER.index(OverallUrgency(urgency))
