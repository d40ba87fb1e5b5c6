"""
Clinical Reasoning Engine – Follow-Up Question Generator
==========================================================
Selects the clarifying questions whose answers would most narrow the
differential for the reported symptoms. Stateless.
"""

from __future__ import annotations

from typing import List, Sequence

from models.knowledge.knowledge_base import KnowledgeBase
from models.knowledge.symptom_normalizer import SymptomMatcher, containment_match, normalize
from models.reasoning.schema_definition import FollowUpQuestion, Symptom


class FollowUpGenerator:
    def __init__(
        self,
        knowledge_base: KnowledgeBase,
        matcher: SymptomMatcher = containment_match,
        max_questions: int = 3,
    ):
        self.kb = knowledge_base
        self.matcher = matcher
        self.max_questions = max_questions

    def generate(self, symptoms: Sequence[Symptom]) -> List[FollowUpQuestion]:
        """Triggered templates, highest priority first, capped at max_questions."""
        keys = [normalize(s.name) for s in symptoms]

        questions = [
            FollowUpQuestion(
                id=tpl.id,
                question=tpl.question,
                type=tpl.type,
                options=tpl.options,
                purpose=tpl.purpose,
                reduces_uncertainty=tpl.reduces_uncertainty_for,
                priority=tpl.priority,
            )
            for tpl in self.kb.follow_up_templates
            if any(self.matcher(k, tpl.trigger) for k in keys)
        ]

        # stable: equal priorities keep table order
        questions.sort(key=lambda q: q.priority, reverse=True)
        return questions[: self.max_questions]
