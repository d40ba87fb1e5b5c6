"""
Clinical Reasoning Engine – Engine Entrypoint
===============================================
One-call entrypoint: loads the engine config and knowledge base once,
sanitises caller input, and dispatches to the assessment pipeline.
"""

from __future__ import annotations

import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Any, Iterable, List, Optional

import yaml

from core.logging_utils import log_pipeline_event
from core.validation import (
    InputDefaults,
    deduplicate_symptoms,
    sanitize_symptoms,
    validate_follow_up_answers,
    validate_patient_context,
)
from models.knowledge.knowledge_base import KnowledgeBase, load_knowledge_base
from models.reasoning.condition_scorer import ConditionScorer, ScoringWeights
from models.reasoning.follow_up_generator import FollowUpGenerator
from models.reasoning.schema_definition import ClinicalAssessment, FollowUpQuestion, RedFlagAlert
from models.triage.red_flag_engine import RedFlagEngine
from pipelines.assessment_pipeline import AssessmentPipeline

logger = logging.getLogger(__name__)

_DEFAULT_CONFIG_PATH = Path(__file__).resolve().parents[1] / "configs" / "engine_config.yaml"


class ClinicalReasoningEngine:
    """Stateless decision-support engine over a read-only knowledge base."""

    def __init__(
        self,
        config_path: Optional[str] = None,
        knowledge_base: Optional[KnowledgeBase] = None,
        knowledge_base_path: Optional[str] = None,
    ):
        cfg_path = Path(config_path or os.environ.get("CLINICAL_ENGINE_CONFIG") or _DEFAULT_CONFIG_PATH)

        self.config: dict = {}
        if cfg_path.exists():
            with open(cfg_path) as f:
                self.config = yaml.safe_load(f) or {}
        else:
            logger.warning("Engine config not found at %s – using built-in defaults", cfg_path)

        self.scoring_weights = self._build_scoring_config()
        self.limits = self._build_limits_config()
        self.input_defaults = self._build_input_defaults()

        if knowledge_base is None:
            knowledge_base = load_knowledge_base(
                knowledge_base_path
                or os.environ.get("CLINICAL_KNOWLEDGE_BASE")
                or self.config.get("knowledge_base_path")
            )
        self._pipeline = self._build_pipeline(knowledge_base)

    def _build_scoring_config(self) -> ScoringWeights:
        return ScoringWeights(**(self.config.get("scoring") or {}))

    def _build_limits_config(self) -> dict:
        limits = self.config.get("limits") or {}
        return {
            "inclusion_threshold": float(limits.get("inclusion_threshold", 5)),
            "max_conditions": int(limits.get("max_conditions", 5)),
            "max_follow_ups": int(limits.get("max_follow_ups", 3)),
            "high_severity": int(limits.get("high_severity", 4)),
            "extreme_severity": int(limits.get("extreme_severity", 5)),
        }

    def _build_input_defaults(self) -> InputDefaults:
        return InputDefaults(**(self.config.get("defaults") or {}))

    def _build_pipeline(self, kb: KnowledgeBase) -> AssessmentPipeline:
        return AssessmentPipeline(
            knowledge_base=kb,
            scorer=ConditionScorer(
                kb, weights=self.scoring_weights, high_severity=self.limits["high_severity"],
            ),
            red_flag_engine=RedFlagEngine(kb, extreme_severity=self.limits["extreme_severity"]),
            follow_up_generator=FollowUpGenerator(kb, max_questions=self.limits["max_follow_ups"]),
            inclusion_threshold=self.limits["inclusion_threshold"],
            max_conditions=self.limits["max_conditions"],
        )

    # ── Knowledge base ──────────────────────────────────────────────────

    @property
    def knowledge_base(self) -> KnowledgeBase:
        return self._pipeline.kb

    def reload_knowledge_base(self, path: Optional[str] = None) -> KnowledgeBase:
        """
        Load a fresh knowledge base and swap it in as a whole.

        In-flight analyses keep the pipeline they started with. If the new
        tables fail validation the current ones stay active.
        """
        kb = load_knowledge_base(path)
        self._pipeline = self._build_pipeline(kb)
        logger.info("Knowledge base swapped to version %s", kb.version)
        return kb

    # ── Public API ──────────────────────────────────────────────────────

    def analyze(
        self,
        symptoms: Optional[Iterable[Any]],
        patient_context: Any = None,
        answers: Optional[Iterable[Any]] = None,
        deduplicate: bool = False,
        assessment_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> ClinicalAssessment:
        """
        Run a full clinical assessment.

        Parameters
        ----------
        symptoms : iterable
            Symptom mappings, Symptom models or bare names. Defects are
            defaulted and reported in ``input_notes``.
        patient_context : dict or PatientContext, optional
            Echoed on the result; not used for scoring.
        answers : iterable, optional
            Follow-up answers tagged by question type. Echoed only.
        deduplicate : bool
            Merge symptoms sharing a normalized name before scoring.
        assessment_id, now : optional
            Pin the generated id and timestamp (reproducible output).

        Returns
        -------
        ClinicalAssessment – never raises for input defects.
        """
        pipeline = self._pipeline

        clean, notes = sanitize_symptoms(symptoms, self.input_defaults)
        if deduplicate:
            merged = deduplicate_symptoms(clean)
            if len(merged) < len(clean):
                notes.append(f"merged {len(clean) - len(merged)} duplicate symptom(s)")
            clean = merged
        context, context_errors = validate_patient_context(patient_context)
        valid_answers, answer_errors = validate_follow_up_answers(answers, pipeline.kb.follow_up_templates)
        notes = notes + context_errors + answer_errors

        assessment = pipeline.run(
            clean,
            patient_context=context,
            answers=valid_answers,
            input_notes=notes,
            assessment_id=assessment_id,
            now=now,
        )

        # Counts and ids only: symptom text stays out of the logs.
        log_pipeline_event(logger, "assessment", "completed", {
            "symptoms": len(clean),
            "urgency": assessment.overall_urgency.value,
            "alerts": [a.id for a in assessment.red_flag_alerts],
            "conditions": len(assessment.possible_conditions),
            "input_notes": len(notes),
        })
        return assessment

    def score(self, condition_id: str, symptoms: Optional[Iterable[Any]]) -> float:
        """Score of one condition in [0, max_score]."""
        clean, _ = sanitize_symptoms(symptoms, self.input_defaults)
        return self._pipeline.scorer.score(condition_id, clean)

    def detect_red_flags(self, symptoms: Optional[Iterable[Any]]) -> List[RedFlagAlert]:
        clean, _ = sanitize_symptoms(symptoms, self.input_defaults)
        return self._pipeline.red_flag_engine.scan(clean)

    def generate_follow_ups(self, symptoms: Optional[Iterable[Any]]) -> List[FollowUpQuestion]:
        clean, _ = sanitize_symptoms(symptoms, self.input_defaults)
        return self._pipeline.follow_up_generator.generate(clean)
