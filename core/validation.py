"""
Clinical Reasoning Engine – Validation Utilities
==================================================
Sanitises caller input at the engine boundary. Input defects are defaulted
and reported as notes, never raised: under-triaging is costlier than
tolerating partial input.

Defaults: severity 3 (modal value), duration 1 day, progression stable,
onset gradual, frequency constant.
"""

from __future__ import annotations

import logging
import math
import re
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, TypeAdapter, ValidationError

from models.knowledge.knowledge_base import FollowUpTemplate
from models.knowledge.symptom_normalizer import normalize
from models.reasoning.schema_definition import (
    DurationUnit,
    FollowUpAnswer,
    PatientContext,
    QuestionType,
    ScaleAnswer,
    SelectAnswer,
    Symptom,
    SymptomDuration,
    SymptomFrequency,
    SymptomOnset,
    SymptomProgression,
    YesNoAnswer,
)

logger = logging.getLogger(__name__)

_DURATION_TEXT = re.compile(r"^\s*(\d+)\s*(hour|day|week|month)s?\s*$", re.IGNORECASE)
_PROGRESSION_RANK = {
    SymptomProgression.IMPROVING: 0,
    SymptomProgression.STABLE: 1,
    SymptomProgression.WORSENING: 2,
}
_ANSWER_ADAPTER = TypeAdapter(FollowUpAnswer)


class InputDefaults(BaseModel):
    """Values substituted for missing or invalid symptom fields."""
    model_config = ConfigDict(frozen=True)

    name: str = "Unknown symptom"
    severity: int = 3
    duration_value: int = 1
    duration_unit: DurationUnit = DurationUnit.DAYS
    progression: SymptomProgression = SymptomProgression.STABLE
    onset: SymptomOnset = SymptomOnset.GRADUAL
    frequency: SymptomFrequency = SymptomFrequency.CONSTANT


def _format_errors(err: ValidationError, prefix: str = "") -> List[str]:
    errors = []
    for e in err.errors():
        field = ".".join(str(loc) for loc in e["loc"])
        errors.append(f"Validation error at '{prefix}{field}': {e['msg']}")
    return errors


# ── Scalar coercion ─────────────────────────────────────────────────────────


def coerce_severity(value: Any, default: int = 3) -> Tuple[int, Optional[str]]:
    """
    Coerce severity to an int in [1, 5].

    Numbers and numeric strings are rounded half-up and clamped. Missing or
    unparseable values become ``default``. Returns (severity, note).
    """
    if value is None or isinstance(value, bool):
        return default, f"severity missing – defaulted to {default}"
    try:
        v = float(value)
        rounded = int(math.floor(v + 0.5))
    except (TypeError, ValueError, OverflowError):
        logger.warning("Could not parse severity '%s' – defaulting to %d", value, default)
        return default, f"severity '{value}' unparseable – defaulted to {default}"

    clamped = max(1, min(5, rounded))
    if clamped != v:
        return clamped, f"severity {value} adjusted to {clamped}"
    return clamped, None


def coerce_duration(value: Any, defaults: InputDefaults = InputDefaults()) -> Tuple[SymptomDuration, Optional[str]]:
    """Coerce `{value, unit}` mappings or text like "3 days". Months become weeks."""
    fallback = SymptomDuration(value=defaults.duration_value, unit=defaults.duration_unit)
    if value is None:
        return fallback, None

    if isinstance(value, SymptomDuration):
        return value, None

    amount: Any = None
    unit: Any = None
    if isinstance(value, dict):
        amount = value.get("value")
        unit = value.get("unit") or defaults.duration_unit.value
    elif isinstance(value, str):
        m = _DURATION_TEXT.match(value)
        if m:
            amount, unit = m.group(1), m.group(2)

    if isinstance(unit, DurationUnit):
        unit = unit.value
    try:
        amount = int(amount)
        unit = str(unit).strip().lower()
    except (TypeError, ValueError):
        return fallback, f"duration '{value}' unparseable – defaulted to {fallback.value} {fallback.unit.value}"

    if not unit.endswith("s"):
        unit += "s"
    if unit == "months":
        amount, unit = amount * 4, DurationUnit.WEEKS.value

    if amount < 1 or unit not in {u.value for u in DurationUnit}:
        return fallback, f"duration '{value}' invalid – defaulted to {fallback.value} {fallback.unit.value}"
    return SymptomDuration(value=amount, unit=DurationUnit(unit)), None


def _coerce_choice(value: Any, enum_cls, default, field: str) -> Tuple[Any, Optional[str]]:
    if value is None:
        return default, None
    if isinstance(value, enum_cls):
        return value, None
    try:
        return enum_cls(str(value).strip().lower()), None
    except ValueError:
        return default, f"{field} '{value}' not recognised – defaulted to {default.value}"


# ── Symptoms ────────────────────────────────────────────────────────────────


def sanitize_symptom(raw: Any, index: int, defaults: InputDefaults = InputDefaults()) -> Tuple[Optional[Symptom], List[str]]:
    """
    Turn one caller-supplied symptom (mapping, Symptom or bare name) into a
    valid Symptom. Returns (symptom, notes); symptom is None only when the
    entry is of an unusable type.
    """
    notes: List[str] = []

    if isinstance(raw, Symptom):
        raw = raw.model_dump(mode="json")
    elif isinstance(raw, str):
        raw = {"name": raw}
    elif not isinstance(raw, dict):
        return None, [f"symptom #{index + 1} ignored: unsupported entry type {type(raw).__name__}"]

    def note(msg: str) -> None:
        notes.append(f"symptom #{index + 1}: {msg}")

    name = raw.get("name")
    name = name.strip() if isinstance(name, str) else ""
    if not name:
        name = defaults.name
        note(f"name missing – recorded as '{defaults.name}'")
    elif not normalize(name):
        note(f"name '{name}' does not match any known symptom")

    severity, msg = coerce_severity(raw.get("severity"), defaults.severity)
    if msg:
        note(msg)
    duration, msg = coerce_duration(raw.get("duration"), defaults)
    if msg:
        note(msg)
    progression, msg = _coerce_choice(raw.get("progression"), SymptomProgression, defaults.progression, "progression")
    if msg:
        note(msg)
    onset, msg = _coerce_choice(raw.get("onset"), SymptomOnset, defaults.onset, "onset")
    if msg:
        note(msg)
    frequency, msg = _coerce_choice(raw.get("frequency"), SymptomFrequency, defaults.frequency, "frequency")
    if msg:
        note(msg)

    location = raw.get("location")
    symptom = Symptom(
        id=str(raw.get("id") or f"symptom_{index}"),
        name=name,
        severity=severity,
        duration=duration,
        progression=progression,
        onset=onset,
        frequency=frequency,
        location=str(location) if location else None,
    )
    return symptom, notes


def sanitize_symptoms(raw_symptoms: Optional[Iterable[Any]], defaults: InputDefaults = InputDefaults()) -> Tuple[List[Symptom], List[str]]:
    """Sanitise a whole symptom list, preserving order. Never raises."""
    symptoms: List[Symptom] = []
    notes: List[str] = []
    if raw_symptoms is None:
        return symptoms, notes
    if isinstance(raw_symptoms, (str, dict)):
        raw_symptoms = [raw_symptoms]

    for i, raw in enumerate(raw_symptoms):
        symptom, symptom_notes = sanitize_symptom(raw, i, defaults)
        notes.extend(symptom_notes)
        if symptom is not None:
            symptoms.append(symptom)

    if notes:
        logger.info("Symptom input sanitised: %d note(s)", len(notes))
    return symptoms, notes


def deduplicate_symptoms(symptoms: Sequence[Symptom]) -> List[Symptom]:
    """
    Merge symptoms that share a normalized name (case-insensitive).

    The first occurrence is kept, taking the highest severity, the most
    worsening progression and sudden onset if any duplicate reports it.
    Names that normalise to an empty key are never merged.
    """
    merged: List[Symptom] = []
    position = {}

    for s in symptoms:
        key = normalize(s.name)
        if not key or key not in position:
            if key:
                position[key] = len(merged)
            merged.append(s)
            continue

        idx = position[key]
        kept = merged[idx]
        merged[idx] = kept.model_copy(update={
            "severity": max(kept.severity, s.severity),
            "progression": max(kept.progression, s.progression, key=_PROGRESSION_RANK.__getitem__),
            "onset": SymptomOnset.SUDDEN if SymptomOnset.SUDDEN in (kept.onset, s.onset) else kept.onset,
        })

    return merged


# ── Patient context & follow-up answers ─────────────────────────────────────


def validate_patient_context(raw: Any) -> Tuple[Optional[PatientContext], List[str]]:
    """Returns (context, errors). Invalid context is dropped, not raised."""
    if raw is None:
        return None, []
    if isinstance(raw, PatientContext):
        return raw, []
    if not isinstance(raw, dict):
        return None, ["patient context ignored: expected a mapping"]
    try:
        return PatientContext(**raw), []
    except ValidationError as e:
        errors = _format_errors(e, "patient_context.")
        logger.warning("Patient context validation failed: %d errors", len(errors))
        return None, errors


def validate_follow_up_answers(
    raw_answers: Optional[Iterable[Any]],
    templates: Sequence[FollowUpTemplate],
) -> Tuple[List[FollowUpAnswer], List[str]]:
    """
    Validate answers against their question templates.

    Each answer must name a known question, carry the question's type and,
    for select questions, one of its option values. Invalid answers are
    dropped with a note.
    """
    answers: List[FollowUpAnswer] = []
    errors: List[str] = []
    if not raw_answers:
        return answers, errors

    by_id = {t.id: t for t in templates}
    for i, raw in enumerate(raw_answers):
        try:
            answer = raw if isinstance(raw, (YesNoAnswer, SelectAnswer, ScaleAnswer)) else _ANSWER_ADAPTER.validate_python(raw)
        except ValidationError as e:
            errors.extend(_format_errors(e, f"answers[{i}]."))
            continue

        tpl = by_id.get(answer.question_id)
        if tpl is None:
            errors.append(f"answers[{i}]: unknown question '{answer.question_id}'")
            continue
        if QuestionType(answer.type) != tpl.type:
            errors.append(
                f"answers[{i}]: question '{tpl.id}' expects a {tpl.type.value} answer, got {answer.type}"
            )
            continue
        if isinstance(answer, SelectAnswer):
            allowed = [o.value for o in tpl.options or ()]
            if answer.value not in allowed:
                errors.append(f"answers[{i}]: '{answer.value}' is not an option of '{tpl.id}'")
                continue
        answers.append(answer)

    if errors:
        logger.warning("Follow-up answer validation dropped %d answer(s)", len(errors))
    return answers, errors
