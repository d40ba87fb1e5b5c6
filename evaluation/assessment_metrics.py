"""
Clinical Reasoning Engine – Assessment Metrics
================================================
Scores a ClinicalAssessment against expected urgency, red flags and
conditions for a labelled case.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from models.reasoning.schema_definition import ClinicalAssessment, OverallUrgency
from models.triage.urgency_resolver import rank


def urgency_accuracy(predicted: OverallUrgency, expected: OverallUrgency) -> bool:
    """Exact match on urgency tier."""
    return OverallUrgency(predicted) == OverallUrgency(expected)


def urgency_within_one(predicted: OverallUrgency, expected: OverallUrgency) -> bool:
    """Is the predicted tier at most one step from the expected tier?"""
    return abs(rank(predicted) - rank(expected)) <= 1


def safety_score(predicted: OverallUrgency, expected: OverallUrgency) -> float:
    """
    Safety-weighted score that penalizes under-triage more than over-triage.

    - Under-triage (predicted below expected): 0.3 per tier
    - Over-triage (predicted above expected): 0.1 per tier
    - Exact match: 1.0
    """
    diff = rank(predicted) - rank(expected)

    if diff == 0:
        return 1.0
    elif diff > 0:
        return max(0.0, 1.0 - diff * 0.1)
    else:
        return max(0.0, 1.0 + diff * 0.3)


def red_flag_recall(assessment: ClinicalAssessment, expected_alert_ids: List[str]) -> float:
    """What fraction of expected alert ids were raised?"""
    if not expected_alert_ids:
        return 1.0
    raised = {a.id for a in assessment.red_flag_alerts}
    hits = sum(1 for alert_id in expected_alert_ids if alert_id in raised)
    return hits / len(expected_alert_ids)


def top_condition_hit(assessment: ClinicalAssessment, expected_condition: str) -> bool:
    conditions = assessment.possible_conditions
    return bool(conditions) and conditions[0].id == expected_condition


def condition_recall_at_k(
    assessment: ClinicalAssessment,
    expected_conditions: List[str],
    k: int = 5,
) -> float:
    """Fraction of expected condition ids among the first k ranked conditions."""
    if not expected_conditions:
        return 1.0
    ranked = {c.id for c in assessment.possible_conditions[:k]}
    return sum(1 for cid in expected_conditions if cid in ranked) / len(expected_conditions)


def assessment_report(
    assessment: ClinicalAssessment,
    expected_urgency: Optional[str] = None,
    expected_red_flags: Optional[List[str]] = None,
    expected_conditions: Optional[List[str]] = None,
) -> Dict[str, Any]:
    """Generate a full assessment quality report."""
    top = assessment.possible_conditions[0] if assessment.possible_conditions else None
    report = {
        "predicted_urgency": assessment.overall_urgency.value,
        "top_condition": top.id if top else None,
        "top_confidence": top.confidence if top else None,
        "num_conditions": len(assessment.possible_conditions),
        "num_red_flags": len(assessment.red_flag_alerts),
        "num_follow_ups": len(assessment.follow_up_questions),
        "num_input_notes": len(assessment.input_notes),
    }

    if expected_urgency is not None:
        expected = OverallUrgency(expected_urgency)
        report["urgency_exact_match"] = urgency_accuracy(assessment.overall_urgency, expected)
        report["urgency_within_one"] = urgency_within_one(assessment.overall_urgency, expected)
        report["safety_score"] = safety_score(assessment.overall_urgency, expected)

    if expected_red_flags is not None:
        report["red_flag_recall"] = red_flag_recall(assessment, expected_red_flags)

    if expected_conditions:
        report["top_condition_hit"] = top_condition_hit(assessment, expected_conditions[0])
        report["condition_recall_at_5"] = condition_recall_at_k(assessment, expected_conditions, k=5)

    return report
