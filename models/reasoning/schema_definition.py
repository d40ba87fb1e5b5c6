"""
Clinical Reasoning Engine – Schema Definitions
================================================
Pydantic models for the engine contract:
  Input:  reported symptoms, optional patient context, follow-up answers
  Output: one immutable ClinicalAssessment per analysis call
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field


# ── Enums ───────────────────────────────────────────────────────────────────


class DurationUnit(str, Enum):
    HOURS = "hours"
    DAYS = "days"
    WEEKS = "weeks"


class SymptomProgression(str, Enum):
    IMPROVING = "improving"
    STABLE = "stable"
    WORSENING = "worsening"


class SymptomOnset(str, Enum):
    SUDDEN = "sudden"
    GRADUAL = "gradual"


class SymptomFrequency(str, Enum):
    CONSTANT = "constant"
    INTERMITTENT = "intermittent"
    OCCASIONAL = "occasional"


class ConditionUrgency(str, Enum):
    """Intrinsic ceiling severity of a knowledge-base condition."""
    SELF_CARE = "self-care"
    SOON = "soon"
    URGENT = "urgent"
    EMERGENCY = "emergency"


class OverallUrgency(str, Enum):
    """Urgency tier of a whole assessment, ordered by required speed of care."""
    SELF_CARE = "self-care"
    SCHEDULE_VISIT = "schedule-visit"
    URGENT_CARE = "urgent-care"
    EMERGENCY = "emergency"


URGENCY_ORDER = (
    OverallUrgency.SELF_CARE,
    OverallUrgency.SCHEDULE_VISIT,
    OverallUrgency.URGENT_CARE,
    OverallUrgency.EMERGENCY,
)


class AlertSeverity(str, Enum):
    WARNING = "warning"
    DANGER = "danger"
    CRITICAL = "critical"


class QuestionType(str, Enum):
    YES_NO = "yes_no"
    SELECT = "select"
    SCALE = "scale"


# ── Input ───────────────────────────────────────────────────────────────────


class SymptomDuration(BaseModel):
    model_config = ConfigDict(frozen=True)

    value: int = Field(default=1, ge=1)
    unit: DurationUnit = DurationUnit.DAYS


class Symptom(BaseModel):
    """A single reported complaint with temporal attributes."""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    severity: int = Field(default=3, ge=1, le=5)
    duration: SymptomDuration = Field(default_factory=SymptomDuration)
    progression: SymptomProgression = SymptomProgression.STABLE
    onset: SymptomOnset = SymptomOnset.GRADUAL
    frequency: Optional[SymptomFrequency] = SymptomFrequency.CONSTANT
    location: Optional[str] = None


class PatientContext(BaseModel):
    """Optional patient background. Carried through; not used by scoring."""
    model_config = ConfigDict(frozen=True)

    age: Optional[int] = Field(default=None, ge=0, le=130)
    gender: Optional[Literal["male", "female", "other"]] = None
    medical_history: Tuple[str, ...] = ()
    medications: Tuple[str, ...] = ()


# ── Follow-up answers (tagged by question type) ─────────────────────────────


class YesNoAnswer(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["yes_no"] = "yes_no"
    question_id: str
    value: bool


class SelectAnswer(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["select"] = "select"
    question_id: str
    value: str


class ScaleAnswer(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["scale"] = "scale"
    question_id: str
    value: int = Field(ge=1, le=10)


FollowUpAnswer = Annotated[
    Union[YesNoAnswer, SelectAnswer, ScaleAnswer],
    Field(discriminator="type"),
]


# ── Output ──────────────────────────────────────────────────────────────────


class QuestionOption(BaseModel):
    model_config = ConfigDict(frozen=True)

    value: str
    label: str


class FollowUpQuestion(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    question: str
    type: QuestionType
    options: Optional[Tuple[QuestionOption, ...]] = None
    purpose: str
    reduces_uncertainty: Tuple[str, ...] = ()
    priority: int


class RedFlagAlert(BaseModel):
    """A fired red-flag pattern or the blanket severe-symptom alert."""
    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    description: str
    severity: AlertSeverity
    trigger_symptoms: Tuple[str, ...] = ()
    action: str
    call_emergency: bool = False


class ClinicalCondition(BaseModel):
    """A ranked possibility. Never a confirmed diagnosis."""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    category: str
    confidence: int = Field(ge=0, le=95)
    reasoning: Tuple[str, ...] = ()
    matching_symptoms: Tuple[str, ...] = ()
    missing_symptoms: Tuple[str, ...] = ()
    differential_factors: Tuple[str, ...] = ()
    red_flags: Tuple[str, ...] = ()
    urgency: ConditionUrgency
    description: str


class ClinicalAssessment(BaseModel):
    """Complete, immutable result of one analysis call."""
    model_config = ConfigDict(frozen=True)

    id: str
    timestamp: str
    input_symptoms: Tuple[Symptom, ...] = ()
    patient_context: Optional[PatientContext] = None
    possible_conditions: Tuple[ClinicalCondition, ...] = ()
    follow_up_questions: Tuple[FollowUpQuestion, ...] = ()
    follow_up_answers: Tuple[FollowUpAnswer, ...] = ()
    red_flag_alerts: Tuple[RedFlagAlert, ...] = ()
    overall_urgency: OverallUrgency
    urgency_reason: str
    confidence_explanation: str
    differential_explanation: str
    next_steps: Tuple[str, ...] = ()
    self_care_advice: Tuple[str, ...] = ()
    when_to_seek_help: Tuple[str, ...] = ()
    input_notes: Tuple[str, ...] = ()
    safety_overrides_applied: Tuple[str, ...] = ()
    disclaimer: str = (
        "This is a decision-support tool, not a diagnosis. "
        "Always consult a qualified healthcare professional."
    )
