"""
Clinical Reasoning Engine – Condition Scorer
==============================================
Additive heuristic likelihood score per knowledge-base condition:

    prevalence prior
  + required / supportive matches
  - excluding matches
  + severity-scaled symptom weights
  + temporal bonuses
  clamped to [0, max_score]

The constants are tuned together with the urgency thresholds downstream.
This is not a Bayesian posterior and scores are not probabilities.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, Field

from models.knowledge.knowledge_base import ConditionDefinition, KnowledgeBase
from models.knowledge.symptom_normalizer import (
    SymptomMatcher,
    containment_match,
    matched_keys,
    normalize,
)
from models.reasoning.schema_definition import (
    ConditionUrgency,
    Symptom,
    SymptomOnset,
    SymptomProgression,
)

logger = logging.getLogger(__name__)


class ScoringWeights(BaseModel):
    """Scoring constants. Overridable from engine_config.yaml `scoring:`."""
    model_config = ConfigDict(frozen=True)

    prevalence_scale: float = 100.0
    required_match: float = 20.0
    supportive_match: float = 10.0
    exclude_penalty: float = 15.0
    weight_multiplier: float = 15.0
    severity_baseline: float = 3.0
    sudden_onset_bonus: float = 10.0
    worsening_emergency_bonus: float = 15.0
    # Confidence on the assessment is capped at 95.
    max_score: float = Field(default=95.0, gt=0, le=95)


@dataclass(frozen=True)
class ScoreBreakdown:
    """How a single condition's score was reached."""
    condition_id: str
    score: float
    required_matches: Tuple[str, ...] = ()
    supportive_matches: Tuple[str, ...] = ()
    exclude_matches: Tuple[str, ...] = ()
    weighted_symptoms: Tuple[str, ...] = ()
    bonuses: Tuple[str, ...] = ()

    @property
    def has_evidence(self) -> bool:
        """False when only the prevalence prior (and bonuses) contributed."""
        return bool(self.required_matches or self.supportive_matches or self.weighted_symptoms)


class ConditionScorer:
    """Scores conditions from a knowledge base against reported symptoms."""

    def __init__(
        self,
        knowledge_base: KnowledgeBase,
        weights: Optional[ScoringWeights] = None,
        matcher: SymptomMatcher = containment_match,
        high_severity: int = 4,
    ):
        self.kb = knowledge_base
        self.weights = weights or ScoringWeights()
        self.matcher = matcher
        self.high_severity = high_severity

    def score(self, condition_id: str, symptoms: Sequence[Symptom]) -> float:
        """Bounded score in [0, max_score]. Unknown condition ids score 0."""
        return self.evaluate(condition_id, symptoms).score

    def evaluate(self, condition_id: str, symptoms: Sequence[Symptom]) -> ScoreBreakdown:
        condition = self.kb.conditions.get(condition_id)
        if condition is None:
            return ScoreBreakdown(condition_id=condition_id, score=0.0)

        w = self.weights
        keys = [normalize(s.name) for s in symptoms]

        required = matched_keys(condition.symptoms.required, keys, self.matcher)
        supportive = matched_keys(condition.symptoms.supportive, keys, self.matcher)
        excluded = matched_keys(condition.symptoms.excludes, keys, self.matcher)

        score = condition.prevalence * w.prevalence_scale
        score += len(required) * w.required_match
        score += len(supportive) * w.supportive_match
        score -= len(excluded) * w.exclude_penalty

        # Weight lookup is exact on the normalized key.
        weighted: List[str] = []
        for symptom, key in zip(symptoms, keys):
            weight = self.kb.weight_for(key, condition_id)
            if weight:
                score += weight * w.weight_multiplier * (symptom.severity / w.severity_baseline)
                weighted.append(key)

        bonuses: List[str] = []
        if condition.temporal_pattern.onset == SymptomOnset.SUDDEN and any(
            s.onset == SymptomOnset.SUDDEN for s in symptoms
        ):
            score += w.sudden_onset_bonus
            bonuses.append("sudden_onset")
        if condition.urgency == ConditionUrgency.EMERGENCY and any(
            s.progression == SymptomProgression.WORSENING for s in symptoms
        ):
            score += w.worsening_emergency_bonus
            bonuses.append("worsening_emergency")

        score = min(max(score, 0.0), w.max_score)

        return ScoreBreakdown(
            condition_id=condition_id,
            score=score,
            required_matches=tuple(required),
            supportive_matches=tuple(supportive),
            exclude_matches=tuple(excluded),
            weighted_symptoms=tuple(weighted),
            bonuses=tuple(bonuses),
        )

    def score_all(self, symptoms: Sequence[Symptom]) -> List[ScoreBreakdown]:
        """Breakdowns for every condition, in knowledge-base order."""
        return [self.evaluate(cid, symptoms) for cid in self.kb.conditions]

    def missing_required(self, condition: ConditionDefinition, breakdown: ScoreBreakdown) -> List[str]:
        return [k for k in condition.symptoms.required if k not in breakdown.required_matches]

    def reasoning(self, breakdown: ScoreBreakdown, symptoms: Sequence[Symptom]) -> List[str]:
        """Short human-readable justification for a ranked condition."""
        lines: List[str] = []
        if breakdown.required_matches:
            lines.append(f"Key symptoms present: {', '.join(breakdown.required_matches)}")
        if breakdown.supportive_matches:
            lines.append(f"Supporting symptoms: {', '.join(breakdown.supportive_matches)}")
        if any(s.severity >= self.high_severity for s in symptoms):
            lines.append("High severity symptoms require attention")
        if any(s.progression == SymptomProgression.WORSENING for s in symptoms):
            lines.append("Worsening pattern suggests active process")
        return lines
