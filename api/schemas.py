"""
Clinical Reasoning Engine – API Schemas
=========================================
Pydantic models for the REST API request/response contracts.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from models.reasoning.schema_definition import ClinicalAssessment, ConditionUrgency


# ── Request Models ──────────────────────────────────────────────────────────


class AnalyzeRequest(BaseModel):
    """Request body for a clinical analysis.

    Symptom entries are passed through the engine's own sanitiser, so
    partial entries are accepted and defaulted rather than rejected.
    """
    symptoms: List[Any] = Field(default_factory=list, description="Symptom mappings or bare names")
    patient_context: Optional[Dict[str, Any]] = None
    answers: Optional[List[Dict[str, Any]]] = None


# ── Response Models ─────────────────────────────────────────────────────────


class AnalyzeResponse(BaseModel):
    success: bool = True
    assessment: ClinicalAssessment
    disclaimer: str
    privacy_note: str = "Your symptom data was processed locally and is not stored."


class ErrorResponse(BaseModel):
    success: bool = False
    error: str


class ConditionSummary(BaseModel):
    id: str
    name: str
    category: str
    urgency: ConditionUrgency


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str = "0.1.0"
    knowledge_base: Dict[str, Any] = Field(default_factory=dict)
