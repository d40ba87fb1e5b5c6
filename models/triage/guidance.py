"""
Clinical Reasoning Engine – Guidance Templates
================================================
Static, urgency- and category-keyed advice plus the templated
explanation sentences attached to every assessment.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

from models.reasoning.schema_definition import ClinicalCondition, OverallUrgency

NEXT_STEPS = {
    OverallUrgency.EMERGENCY: [
        "Call emergency services (108) immediately",
        "Go to the nearest emergency room",
        "Do not drive yourself",
    ],
    OverallUrgency.URGENT_CARE: [
        "Visit a doctor today",
        "Go to an urgent care clinic",
        "Monitor symptoms closely",
    ],
    OverallUrgency.SCHEDULE_VISIT: [
        "Schedule an appointment within 2-3 days",
        "Rest and stay hydrated",
        "Track your symptoms",
    ],
    OverallUrgency.SELF_CARE: [
        "Rest and monitor symptoms",
        "Stay hydrated",
        "Seek care if symptoms worsen",
    ],
}

_GENERAL_WARNING_SIGNS = [
    "Symptoms suddenly worsen",
    "New severe symptoms appear",
    "Difficulty breathing develops",
    "Confusion or altered consciousness",
    "Symptoms persist beyond expected duration",
]

WHEN_TO_SEEK_HELP = {
    OverallUrgency.EMERGENCY: [
        "Now: these symptoms need emergency care",
        "Call for help if you feel faint, confused or breathless while waiting",
    ],
    OverallUrgency.URGENT_CARE: [
        "Go to the emergency room instead if symptoms rapidly worsen",
    ] + _GENERAL_WARNING_SIGNS,
    OverallUrgency.SCHEDULE_VISIT: list(_GENERAL_WARNING_SIGNS),
    OverallUrgency.SELF_CARE: list(_GENERAL_WARNING_SIGNS),
}

GENERAL_SELF_CARE = ["Rest adequately", "Stay hydrated", "Avoid strenuous activity"]

CATEGORY_SELF_CARE = {
    "respiratory": ["Use steam inhalation", "Gargle with warm salt water"],
    "digestive": ["Eat light bland foods", "Avoid spicy or oily foods"],
}

INSUFFICIENT_INFORMATION = (
    "Insufficient information to suggest likely conditions from the symptoms provided. "
    "Adding more detail or answering the follow-up questions may help."
)


def next_steps(urgency: OverallUrgency) -> List[str]:
    return list(NEXT_STEPS[OverallUrgency(urgency)])


def when_to_seek_help(urgency: OverallUrgency) -> List[str]:
    return list(WHEN_TO_SEEK_HELP[OverallUrgency(urgency)])


def self_care_advice(top_category: Optional[str]) -> List[str]:
    """General advice, extended for the top condition's category if known."""
    return GENERAL_SELF_CARE + CATEGORY_SELF_CARE.get(top_category or "", [])


def confidence_explanation(conditions: Sequence[ClinicalCondition], symptom_count: int) -> str:
    if not conditions:
        return INSUFFICIENT_INFORMATION
    top = conditions[0]
    return (
        f"Based on {symptom_count} symptom(s), {top.name} ranks highest "
        f"({top.confidence}% confidence). This is a differential, not a diagnosis: "
        f"other conditions are also possible."
    )


def differential_explanation(conditions: Sequence[ClinicalCondition]) -> str:
    if not conditions:
        return "Insufficient information for a differential. More symptoms are needed."
    if len(conditions) == 1:
        return (
            f"Only {conditions[0].name} cleared the evidence threshold. "
            f"More symptoms are needed to compare alternatives."
        )
    first, second = conditions[0], conditions[1]
    return (
        f"{first.name} ({first.confidence}%) is distinguished from {second.name} "
        f"({second.confidence}%) by typical onset pattern and symptom combination."
    )
