"""
Clinical Reasoning Engine – Assessment Pipeline
=================================================
Pipeline: sanitised symptoms → red flags + condition ranking + follow-ups
→ one immutable ClinicalAssessment.

Pure and synchronous: every call allocates its own working state and only
reads from the injected knowledge base.
"""

from __future__ import annotations

import logging
import math
import uuid
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from models.knowledge.knowledge_base import KnowledgeBase
from models.knowledge.symptom_normalizer import SymptomMatcher, containment_match
from models.reasoning.condition_scorer import ConditionScorer, ScoreBreakdown, ScoringWeights
from models.reasoning.follow_up_generator import FollowUpGenerator
from models.reasoning.schema_definition import (
    ClinicalAssessment,
    ClinicalCondition,
    FollowUpAnswer,
    PatientContext,
    Symptom,
)
from models.triage import guidance
from models.triage.red_flag_engine import RedFlagEngine
from models.triage.urgency_resolver import UrgencyResolver

logger = logging.getLogger(__name__)


class AssessmentPipeline:
    """Assembles a ClinicalAssessment from a symptom list."""

    def __init__(
        self,
        knowledge_base: KnowledgeBase,
        scorer: Optional[ConditionScorer] = None,
        red_flag_engine: Optional[RedFlagEngine] = None,
        follow_up_generator: Optional[FollowUpGenerator] = None,
        urgency_resolver: Optional[UrgencyResolver] = None,
        matcher: SymptomMatcher = containment_match,
        scoring_weights: Optional[ScoringWeights] = None,
        inclusion_threshold: float = 5.0,
        max_conditions: int = 5,
    ):
        self.kb = knowledge_base
        self.scorer = scorer or ConditionScorer(knowledge_base, weights=scoring_weights, matcher=matcher)
        self.red_flag_engine = red_flag_engine or RedFlagEngine(knowledge_base, matcher=matcher)
        self.follow_up_generator = follow_up_generator or FollowUpGenerator(knowledge_base, matcher=matcher)
        self.urgency_resolver = urgency_resolver or UrgencyResolver()
        self.inclusion_threshold = inclusion_threshold
        self.max_conditions = max_conditions

    def run(
        self,
        symptoms: Sequence[Symptom],
        patient_context: Optional[PatientContext] = None,
        answers: Sequence[FollowUpAnswer] = (),
        input_notes: Sequence[str] = (),
        assessment_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> ClinicalAssessment:
        """
        Build the assessment.

        `patient_context` and `answers` are echoed on the result; they do
        not influence scoring.
        """
        symptoms = list(symptoms)

        # Rule-based red flag scan (always runs, independent of scoring)
        alerts = self.red_flag_engine.scan(symptoms)

        conditions = self.rank_conditions(symptoms)

        decision = self.urgency_resolver.resolve(alerts, conditions)

        follow_ups = self.follow_up_generator.generate(symptoms)

        top_category = conditions[0].category if conditions else None
        timestamp = (now or datetime.now(timezone.utc)).isoformat()

        assessment = ClinicalAssessment(
            id=assessment_id or f"assessment_{uuid.uuid4().hex[:8]}",
            timestamp=timestamp,
            input_symptoms=tuple(symptoms),
            patient_context=patient_context,
            possible_conditions=tuple(conditions),
            follow_up_questions=tuple(follow_ups),
            follow_up_answers=tuple(answers),
            red_flag_alerts=tuple(alerts),
            overall_urgency=decision.urgency,
            urgency_reason=decision.reason,
            confidence_explanation=guidance.confidence_explanation(conditions, len(symptoms)),
            differential_explanation=guidance.differential_explanation(conditions),
            next_steps=tuple(guidance.next_steps(decision.urgency)),
            self_care_advice=tuple(guidance.self_care_advice(top_category)),
            when_to_seek_help=tuple(guidance.when_to_seek_help(decision.urgency)),
            input_notes=tuple(input_notes),
            safety_overrides_applied=decision.overrides,
        )

        logger.info(
            "Assessment %s: %d symptom(s), %d condition(s), %d alert(s), urgency=%s",
            assessment.id, len(symptoms), len(conditions), len(alerts), decision.urgency.value,
        )
        return assessment

    def rank_conditions(self, symptoms: Sequence[Symptom]) -> List[ClinicalCondition]:
        """Conditions with evidence scoring above the threshold, best first, capped."""
        candidates = [
            b for b in self.scorer.score_all(symptoms)
            if b.has_evidence and b.score > self.inclusion_threshold
        ]
        # sorted() is stable, so ties keep knowledge-base order
        ranked = sorted(candidates, key=lambda b: b.score, reverse=True)
        return [self._build_condition(b, symptoms) for b in ranked[: self.max_conditions]]

    def _build_condition(self, breakdown: ScoreBreakdown, symptoms: Sequence[Symptom]) -> ClinicalCondition:
        cond = self.kb.conditions[breakdown.condition_id]
        return ClinicalCondition(
            id=cond.id,
            name=cond.name,
            category=cond.category,
            confidence=_round_half_up(breakdown.score),
            reasoning=tuple(self.scorer.reasoning(breakdown, symptoms)),
            matching_symptoms=breakdown.required_matches + breakdown.supportive_matches,
            missing_symptoms=tuple(self.scorer.missing_required(cond, breakdown)),
            differential_factors=(
                f"Typical onset: {cond.temporal_pattern.onset.value}",
                f"Duration: {cond.temporal_pattern.duration}",
            ),
            red_flags=cond.red_flags,
            urgency=cond.urgency,
            description=cond.description,
        )


def _round_half_up(score: float) -> int:
    return int(math.floor(score + 0.5))
