"""Unit tests for follow-up question selection."""
from models.reasoning.follow_up_generator import FollowUpGenerator
from models.reasoning.schema_definition import QuestionType


def test_triggered_by_reported_symptom(kb, make_symptom):
    questions = FollowUpGenerator(kb).generate([make_symptom("Chest Pain")])
    assert [q.id for q in questions] == ["chest_exertion"]
    assert questions[0].type == QuestionType.YES_NO
    assert questions[0].options is None
    assert "heart_attack" in questions[0].reduces_uncertainty


def test_containment_trigger(kb, make_symptom):
    questions = FollowUpGenerator(kb).generate([make_symptom("Severe Headache")])
    assert [q.id for q in questions] == ["headache_type"]
    assert [o.value for o in questions[0].options] == ["throbbing", "pressure", "sharp"]


def test_priority_order_and_cap(kb, make_symptom):
    symptoms = [
        make_symptom("Headache"),
        make_symptom("Abdominal Pain"),
        make_symptom("Fever"),
        make_symptom("Chest Pain"),
    ]
    questions = FollowUpGenerator(kb).generate(symptoms)
    # equal priority 9 keeps table order: fever_duration before abd_location
    assert [q.id for q in questions] == ["chest_exertion", "fever_duration", "abd_location"]


def test_custom_cap(kb, make_symptom):
    symptoms = [make_symptom("Headache"), make_symptom("Fever")]
    assert len(FollowUpGenerator(kb, max_questions=1).generate(symptoms)) == 1


def test_nothing_triggered(kb, make_symptom):
    assert FollowUpGenerator(kb).generate([make_symptom("Sneezing")]) == []
    assert FollowUpGenerator(kb).generate([]) == []
