"""Shared fixtures for the clinical reasoning engine tests."""
import copy

import pytest

from core.engine import ClinicalReasoningEngine
from models.knowledge.knowledge_base import load_knowledge_base
from models.reasoning.schema_definition import Symptom


MINIMAL_TABLES = {
    "version": "test",
    "conditions": {
        "alpha": {
            "name": "Alpha",
            "category": "respiratory",
            "symptoms": {"required": ["cough"], "supportive": ["fatigue"], "excludes": ["rash"]},
            "temporal_pattern": {"onset": "gradual", "duration": "days"},
            "prevalence": 0.1,
            "urgency": "self-care",
        },
        "beta": {
            "name": "Beta",
            "category": "respiratory",
            "symptoms": {"required": ["cough"], "supportive": ["fatigue"], "excludes": []},
            "temporal_pattern": {"onset": "gradual", "duration": "days"},
            "prevalence": 0.1,
            "urgency": "urgent",
        },
    },
    "symptom_weights": {"cough": {"alpha": 0.5}},
    "red_flag_patterns": [
        {
            "id": "single",
            "symptoms": ["bluish_lips"],
            "severity": "critical",
            "condition": "Hypoxia",
            "reason": "Low oxygen",
            "action": "Call emergency services",
            "call_emergency": True,
        },
    ],
    "follow_up_questions": [
        {
            "id": "cough_type",
            "trigger": "cough",
            "question": "Is the cough dry?",
            "type": "yes_no",
            "purpose": "Separates dry from productive cough",
            "priority": 5,
        },
    ],
}


@pytest.fixture(scope="session")
def kb():
    """The bundled knowledge base."""
    return load_knowledge_base()


@pytest.fixture(scope="session")
def engine(kb):
    return ClinicalReasoningEngine(knowledge_base=kb)


@pytest.fixture
def tables():
    """A fresh, mutable copy of a small valid knowledge-base document."""
    return copy.deepcopy(MINIMAL_TABLES)


@pytest.fixture
def make_symptom():
    counter = {"i": 0}

    def _make(name, severity=3, **kwargs):
        counter["i"] += 1
        return Symptom(id=f"symptom_{counter['i']}", name=name, severity=severity, **kwargs)

    return _make
