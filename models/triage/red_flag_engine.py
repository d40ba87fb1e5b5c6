"""
Clinical Reasoning Engine – Red Flag Detection Engine
=======================================================
Rule-based red flag detection that runs independently of (and in addition to)
condition scoring. A critical pattern can never be suppressed by a benign
condition ranking higher.
"""

from __future__ import annotations

import logging
from typing import List, Sequence

from models.knowledge.knowledge_base import KnowledgeBase
from models.knowledge.symptom_normalizer import (
    SymptomMatcher,
    containment_match,
    matched_keys,
    normalize,
)
from models.reasoning.schema_definition import AlertSeverity, RedFlagAlert, Symptom

logger = logging.getLogger(__name__)

SEVERE_SYMPTOMS_ALERT_ID = "severe_symptoms"


class RedFlagEngine:
    """Deterministic red flag scanner over the knowledge-base pattern table."""

    def __init__(
        self,
        knowledge_base: KnowledgeBase,
        matcher: SymptomMatcher = containment_match,
        extreme_severity: int = 5,
    ):
        self.kb = knowledge_base
        self.matcher = matcher
        self.extreme_severity = extreme_severity

    def scan(self, symptoms: Sequence[Symptom]) -> List[RedFlagAlert]:
        """
        Scan reported symptoms for red flags.

        Returns alerts in pattern-table order, followed by the blanket
        severe-symptom alert when any symptom is at extreme severity.
        Alerts are not ranked.
        """
        alerts: List[RedFlagAlert] = []
        keys = [normalize(s.name) for s in symptoms]

        for pattern in self.kb.red_flag_patterns:
            matches = matched_keys(pattern.symptoms, keys, self.matcher)
            if len(matches) >= pattern.min_matches:
                alerts.append(RedFlagAlert(
                    id=pattern.id,
                    title=f"{pattern.condition} Warning",
                    description=pattern.reason,
                    severity=pattern.severity,
                    trigger_symptoms=tuple(matches),
                    action=pattern.action,
                    call_emergency=pattern.call_emergency,
                ))

        severe = [s for s in symptoms if s.severity >= self.extreme_severity]
        if severe:
            alerts.append(RedFlagAlert(
                id=SEVERE_SYMPTOMS_ALERT_ID,
                title="Severe Symptoms Detected",
                description=f"{len(severe)} symptom(s) marked as severe",
                severity=AlertSeverity.DANGER,
                trigger_symptoms=tuple(s.name for s in severe),
                action="Seek medical attention promptly",
                call_emergency=False,
            ))

        if alerts:
            logger.warning("Red flags detected: %s", [a.id for a in alerts])

        return alerts

    @staticmethod
    def has_severity(alerts: Sequence[RedFlagAlert], severity: AlertSeverity) -> bool:
        return any(a.severity == severity for a in alerts)
