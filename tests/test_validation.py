"""Unit tests for input sanitisation at the engine boundary."""
import pytest

from core.validation import (
    InputDefaults,
    coerce_duration,
    coerce_severity,
    deduplicate_symptoms,
    sanitize_symptom,
    sanitize_symptoms,
    validate_follow_up_answers,
    validate_patient_context,
)
from models.reasoning.schema_definition import (
    DurationUnit,
    ScaleAnswer,
    SymptomDuration,
    SymptomOnset,
    SymptomProgression,
    YesNoAnswer,
)


class TestCoerceSeverity:

    @pytest.mark.parametrize("raw, expected", [
        (1, 1),
        (5, 5),
        (3.5, 4),
        (2.4, 2),
        ("4", 4),
        (0, 1),
        (-3, 1),
        (9, 5),
    ])
    def test_rounds_and_clamps(self, raw, expected):
        severity, _ = coerce_severity(raw)
        assert severity == expected

    def test_valid_value_has_no_note(self):
        assert coerce_severity(4) == (4, None)

    def test_adjusted_value_is_noted(self):
        severity, note = coerce_severity(7)
        assert severity == 5
        assert "adjusted" in note

    @pytest.mark.parametrize("raw", [None, "severe", True, float("nan")])
    def test_missing_or_unparseable_defaults(self, raw):
        severity, note = coerce_severity(raw)
        assert severity == 3
        assert note


class TestCoerceDuration:

    def test_missing_defaults_to_one_day(self):
        duration, note = coerce_duration(None)
        assert duration == SymptomDuration(value=1, unit=DurationUnit.DAYS)
        assert note is None

    def test_mapping(self):
        duration, _ = coerce_duration({"value": 6, "unit": "hours"})
        assert duration == SymptomDuration(value=6, unit=DurationUnit.HOURS)

    def test_mapping_without_unit_keeps_amount(self):
        duration, note = coerce_duration({"value": 3})
        assert duration == SymptomDuration(value=3, unit=DurationUnit.DAYS)
        assert note is None

    def test_text(self):
        duration, _ = coerce_duration("3 Days")
        assert duration == SymptomDuration(value=3, unit=DurationUnit.DAYS)

    def test_singular_unit(self):
        duration, _ = coerce_duration({"value": 1, "unit": "week"})
        assert duration.unit == DurationUnit.WEEKS

    def test_months_become_weeks(self):
        duration, _ = coerce_duration({"value": 2, "unit": "months"})
        assert duration == SymptomDuration(value=8, unit=DurationUnit.WEEKS)

    @pytest.mark.parametrize("raw", [{"value": 0, "unit": "days"}, {"value": 2, "unit": "years"}, "a while", 12])
    def test_invalid_falls_back(self, raw):
        duration, note = coerce_duration(raw)
        assert duration == SymptomDuration()
        assert note


class TestSanitizeSymptoms:

    def test_fills_defaults(self):
        symptom, notes = sanitize_symptom({"name": "Fever"}, 0)
        assert symptom.id == "symptom_0"
        assert symptom.severity == 3
        assert symptom.progression == SymptomProgression.STABLE
        assert symptom.onset == SymptomOnset.GRADUAL
        assert any("severity missing" in n for n in notes)

    def test_keeps_supplied_fields(self):
        raw = {"id": "s1", "name": "Chest Pain", "severity": 5, "onset": "Sudden",
               "progression": "worsening", "location": "left side"}
        symptom, notes = sanitize_symptom(raw, 0)
        assert symptom.id == "s1"
        assert symptom.onset == SymptomOnset.SUDDEN
        assert symptom.progression == SymptomProgression.WORSENING
        assert symptom.location == "left side"
        assert notes == []

    def test_bare_name(self):
        symptom, _ = sanitize_symptom("Cough", 2)
        assert symptom.name == "Cough"
        assert symptom.id == "symptom_2"

    def test_blank_name(self):
        symptom, notes = sanitize_symptom({"name": "   ", "severity": 2}, 0)
        assert symptom.name == "Unknown symptom"
        assert notes == ["symptom #1: name missing – recorded as 'Unknown symptom'"]

    def test_unknown_enum_values_default(self):
        symptom, notes = sanitize_symptom({"name": "Cough", "severity": 2, "progression": "sideways"}, 0)
        assert symptom.progression == SymptomProgression.STABLE
        assert len(notes) == 1

    def test_unsupported_entries_are_dropped(self):
        symptoms, notes = sanitize_symptoms([{"name": "Fever", "severity": 3}, 42, None])
        assert [s.name for s in symptoms] == ["Fever"]
        assert len(notes) == 2

    def test_none_and_single_entry(self):
        assert sanitize_symptoms(None) == ([], [])
        symptoms, _ = sanitize_symptoms("Fever")
        assert len(symptoms) == 1

    def test_custom_defaults(self):
        symptom, _ = sanitize_symptom({"name": "Fever"}, 0, InputDefaults(severity=2))
        assert symptom.severity == 2


class TestDeduplicate:

    def test_merges_by_normalized_name(self, make_symptom):
        symptoms = [
            make_symptom("Fever", 2),
            make_symptom("Cough", 3),
            make_symptom("FEVER", 4, onset=SymptomOnset.SUDDEN, progression=SymptomProgression.WORSENING),
        ]
        merged = deduplicate_symptoms(symptoms)
        assert [s.name for s in merged] == ["Fever", "Cough"]
        fever = merged[0]
        assert fever.severity == 4
        assert fever.onset == SymptomOnset.SUDDEN
        assert fever.progression == SymptomProgression.WORSENING

    def test_empty_keys_are_not_merged(self, make_symptom):
        assert len(deduplicate_symptoms([make_symptom("???"), make_symptom("!!!")])) == 2


class TestPatientContext:

    def test_valid(self):
        context, errors = validate_patient_context({"age": 40, "gender": "female", "medications": ["aspirin"]})
        assert context.age == 40
        assert context.medications == ("aspirin",)
        assert errors == []

    def test_invalid_is_dropped(self):
        context, errors = validate_patient_context({"age": 200})
        assert context is None
        assert errors and "patient_context.age" in errors[0]

    def test_missing(self):
        assert validate_patient_context(None) == (None, [])


class TestFollowUpAnswers:

    def test_valid_answers(self, kb):
        raw = [
            {"type": "yes_no", "question_id": "chest_exertion", "value": True},
            {"type": "select", "question_id": "fever_duration", "value": "1_3_days"},
        ]
        answers, errors = validate_follow_up_answers(raw, kb.follow_up_templates)
        assert errors == []
        assert isinstance(answers[0], YesNoAnswer)
        assert answers[1].value == "1_3_days"

    def test_unknown_question(self, kb):
        answers, errors = validate_follow_up_answers(
            [{"type": "yes_no", "question_id": "nope", "value": False}], kb.follow_up_templates)
        assert answers == []
        assert "unknown question" in errors[0]

    def test_type_mismatch(self, kb):
        answers, errors = validate_follow_up_answers(
            [{"type": "yes_no", "question_id": "fever_duration", "value": True}], kb.follow_up_templates)
        assert answers == []
        assert "expects a select answer" in errors[0]

    def test_select_value_must_be_an_option(self, kb):
        answers, errors = validate_follow_up_answers(
            [{"type": "select", "question_id": "headache_type", "value": "dull"}], kb.follow_up_templates)
        assert answers == []
        assert "not an option" in errors[0]

    def test_scale_out_of_range(self, kb):
        answers, errors = validate_follow_up_answers(
            [{"type": "scale", "question_id": "chest_exertion", "value": 11}], kb.follow_up_templates)
        assert answers == []
        assert errors

    def test_unknown_tag(self, kb):
        answers, errors = validate_follow_up_answers(
            [{"type": "essay", "question_id": "chest_exertion", "value": "x"}], kb.follow_up_templates)
        assert answers == []
        assert errors

    def test_model_instances_accepted(self, kb):
        answers, errors = validate_follow_up_answers(
            [YesNoAnswer(question_id="chest_exertion", value=False)], kb.follow_up_templates)
        assert len(answers) == 1
        assert errors == []

    def test_scale_answer_against_yes_no_question(self, kb):
        answers, errors = validate_follow_up_answers(
            [ScaleAnswer(question_id="chest_exertion", value=4)], kb.follow_up_templates)
        assert answers == []
        assert "expects a yes_no answer" in errors[0]
