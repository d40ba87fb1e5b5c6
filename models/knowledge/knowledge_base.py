"""
Clinical Reasoning Engine – Knowledge Base
============================================
Static clinical tables (conditions, symptom weights, red-flag patterns,
follow-up question templates) loaded once from knowledge_base.yaml.

Tables are validated on load. Integrity defects are programmer errors and
raise KnowledgeBaseError immediately rather than surfacing during scoring.
"""

from __future__ import annotations

import logging
from pathlib import Path
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from models.knowledge.symptom_normalizer import normalize
from models.reasoning.schema_definition import (
    AlertSeverity,
    ConditionUrgency,
    QuestionOption,
    QuestionType,
    SymptomOnset,
)

logger = logging.getLogger(__name__)

DEFAULT_KNOWLEDGE_BASE_PATH = Path(__file__).resolve().parents[2] / "configs" / "knowledge_base.yaml"

MAX_PREVALENCE = 0.2


class KnowledgeBaseError(ValueError):
    """Raised when the static clinical tables are missing or inconsistent."""


# ── Table entry schemas ─────────────────────────────────────────────────────


class SymptomProfile(BaseModel):
    model_config = ConfigDict(frozen=True)

    required: Tuple[str, ...] = ()
    supportive: Tuple[str, ...] = ()
    excludes: Tuple[str, ...] = ()


class TemporalPattern(BaseModel):
    model_config = ConfigDict(frozen=True)

    onset: SymptomOnset
    duration: str = ""                       # display only


class ConditionDefinition(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    category: str
    symptoms: SymptomProfile
    temporal_pattern: TemporalPattern
    prevalence: float = Field(ge=0.0, lt=MAX_PREVALENCE)
    urgency: ConditionUrgency
    red_flags: Tuple[str, ...] = ()
    description: str = ""


class RedFlagPattern(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    symptoms: Tuple[str, ...] = Field(min_length=1)
    severity: AlertSeverity
    condition: str
    reason: str
    action: str
    call_emergency: bool = False

    @property
    def min_matches(self) -> int:
        return min(2, len(self.symptoms))


class FollowUpTemplate(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    trigger: str
    question: str
    type: QuestionType
    options: Optional[Tuple[QuestionOption, ...]] = None
    purpose: str
    reduces_uncertainty_for: Tuple[str, ...] = ()
    priority: int


# ── Knowledge base ──────────────────────────────────────────────────────────


class KnowledgeBase:
    """
    Read-only view over validated clinical tables.

    Conditions keep their table order, which is the tie-break order
    for ranking. Build a new instance to change any table.
    """

    __slots__ = ("_version", "_conditions", "_weights", "_red_flags", "_follow_ups")

    def __init__(
        self,
        conditions: List[ConditionDefinition],
        symptom_weights: Dict[str, Dict[str, float]],
        red_flag_patterns: List[RedFlagPattern],
        follow_up_templates: List[FollowUpTemplate],
        version: str = "unversioned",
    ):
        self._version = version
        self._conditions = MappingProxyType({c.id: c for c in conditions})
        self._weights = MappingProxyType({
            key: MappingProxyType(dict(row)) for key, row in symptom_weights.items()
        })
        self._red_flags = tuple(red_flag_patterns)
        self._follow_ups = tuple(follow_up_templates)
        validate_integrity(self)

    def __setattr__(self, name, value):
        if hasattr(self, name):
            raise AttributeError("KnowledgeBase is read-only")
        object.__setattr__(self, name, value)

    @property
    def version(self) -> str:
        return self._version

    @property
    def conditions(self) -> Mapping[str, ConditionDefinition]:
        return self._conditions

    @property
    def symptom_weights(self) -> Mapping[str, Mapping[str, float]]:
        return self._weights

    @property
    def red_flag_patterns(self) -> Tuple[RedFlagPattern, ...]:
        return self._red_flags

    @property
    def follow_up_templates(self) -> Tuple[FollowUpTemplate, ...]:
        return self._follow_ups

    def weight_for(self, symptom_key: str, condition_id: str) -> float:
        return self._weights.get(symptom_key, {}).get(condition_id, 0.0)

    def summary(self) -> dict:
        return {
            "version": self._version,
            "conditions": len(self._conditions),
            "weighted_symptoms": len(self._weights),
            "red_flag_patterns": len(self._red_flags),
            "follow_up_templates": len(self._follow_ups),
        }


# ── Integrity validation ────────────────────────────────────────────────────


def _check_key(key: str, where: str, problems: List[str]) -> None:
    if not key:
        problems.append(f"{where}: empty symptom key")
    elif normalize(key) != key:
        problems.append(f"{where}: key '{key}' is not normalized (expected '{normalize(key)}')")


def validate_integrity(kb: KnowledgeBase) -> None:
    """One-time consistency pass over all tables. Raises on the first load."""
    problems: List[str] = []

    if not kb.conditions:
        problems.append("no conditions defined")

    for cid, cond in kb.conditions.items():
        profile = cond.symptoms
        for group in ("required", "supportive", "excludes"):
            for key in getattr(profile, group):
                _check_key(key, f"condition '{cid}'.{group}", problems)
        for key in cond.red_flags:
            _check_key(key, f"condition '{cid}'.red_flags", problems)

    for key, row in kb.symptom_weights.items():
        _check_key(key, "symptom_weights", problems)
        for cid, weight in row.items():
            if cid not in kb.conditions:
                problems.append(f"symptom_weights['{key}'] references unknown condition '{cid}'")
            if not 0.0 < weight <= 1.0:
                problems.append(f"symptom_weights['{key}']['{cid}'] = {weight} outside (0, 1]")

    seen_patterns = set()
    for pattern in kb.red_flag_patterns:
        if pattern.id in seen_patterns:
            problems.append(f"duplicate red flag pattern id '{pattern.id}'")
        seen_patterns.add(pattern.id)
        for key in pattern.symptoms:
            _check_key(key, f"red flag '{pattern.id}'", problems)

    seen_questions = set()
    for tpl in kb.follow_up_templates:
        if tpl.id in seen_questions:
            problems.append(f"duplicate follow-up question id '{tpl.id}'")
        seen_questions.add(tpl.id)
        _check_key(tpl.trigger, f"follow-up '{tpl.id}'.trigger", problems)
        if tpl.type == QuestionType.SELECT and not tpl.options:
            problems.append(f"follow-up '{tpl.id}' is a select question without options")

    if problems:
        for p in problems:
            logger.error("Knowledge base integrity: %s", p)
        raise KnowledgeBaseError(
            f"Knowledge base failed integrity check ({len(problems)} problems): " + "; ".join(problems)
        )


# ── Loading ─────────────────────────────────────────────────────────────────


def _parse_entry(model, section: str, entry_id: str, data):
    if not isinstance(data, dict):
        raise KnowledgeBaseError(f"{section}.{entry_id} must be a mapping")
    try:
        return model(**data)
    except ValidationError as e:
        details = []
        for err in e.errors():
            field = ".".join(str(loc) for loc in err["loc"])
            details.append(f"Validation error at '{section}.{entry_id}.{field}': {err['msg']}")
        raise KnowledgeBaseError("; ".join(details)) from e


def build_knowledge_base(raw: dict) -> KnowledgeBase:
    """Validate a raw table mapping (as parsed from YAML) into a KnowledgeBase."""
    if not isinstance(raw, dict):
        raise KnowledgeBaseError("Knowledge base document must be a mapping")

    conditions = [
        _parse_entry(ConditionDefinition, "conditions", cid, {"id": cid, **(entry or {})})
        for cid, entry in (raw.get("conditions") or {}).items()
    ]

    weights: Dict[str, Dict[str, float]] = {}
    for key, row in (raw.get("symptom_weights") or {}).items():
        if not isinstance(row, dict):
            raise KnowledgeBaseError(f"symptom_weights['{key}'] must be a mapping")
        try:
            weights[key] = {cid: float(w) for cid, w in row.items()}
        except (TypeError, ValueError) as e:
            raise KnowledgeBaseError(f"symptom_weights['{key}'] has a non-numeric weight") from e

    patterns = [
        _parse_entry(RedFlagPattern, "red_flag_patterns", str(i), entry)
        for i, entry in enumerate(raw.get("red_flag_patterns") or [])
    ]
    templates = [
        _parse_entry(FollowUpTemplate, "follow_up_questions", str(i), entry)
        for i, entry in enumerate(raw.get("follow_up_questions") or [])
    ]

    return KnowledgeBase(
        conditions=conditions,
        symptom_weights=weights,
        red_flag_patterns=patterns,
        follow_up_templates=templates,
        version=str(raw.get("version", "unversioned")),
    )


def load_knowledge_base(path: Optional[str] = None) -> KnowledgeBase:
    """Load and validate the clinical tables from YAML. Fails fast."""
    kb_path = Path(path) if path else DEFAULT_KNOWLEDGE_BASE_PATH

    if not kb_path.exists():
        raise KnowledgeBaseError(f"Knowledge base not found at {kb_path}")

    with open(kb_path) as f:
        try:
            raw = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise KnowledgeBaseError(f"Knowledge base at {kb_path} is not valid YAML: {e}") from e

    kb = build_knowledge_base(raw)
    logger.info("Knowledge base loaded from %s: %s", kb_path, kb.summary())
    return kb
