"""Tests for the FastAPI adapter."""
import pytest
from fastapi.testclient import TestClient

import api.main as api_main
from api.main import app


@pytest.fixture(scope="module")
def client():
    return TestClient(app)


class TestAnalyze:

    def test_cardiac_case(self, client):
        response = client.post("/clinical/analyze", json={
            "symptoms": [
                {"name": "Chest Pain", "severity": 5, "onset": "sudden"},
                {"name": "Shortness of Breath", "severity": 4},
            ],
            "patient_context": {"age": 58, "gender": "male"},
        })
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["assessment"]["overall_urgency"] == "emergency"
        assert body["assessment"]["red_flag_alerts"][0]["id"] == "cardiac"
        assert body["disclaimer"]
        assert body["privacy_note"] == "Your symptom data was processed locally and is not stored."

    def test_empty_symptoms_rejected(self, client):
        response = client.post("/clinical/analyze", json={"symptoms": []})
        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "At least one symptom is required"}

    def test_missing_symptoms_rejected(self, client):
        response = client.post("/clinical/analyze", json={})
        assert response.status_code == 400

    def test_duplicates_merged(self, client):
        response = client.post("/clinical/analyze", json={
            "symptoms": [{"name": "Fever", "severity": 2}, {"name": "FEVER", "severity": 4}],
        })
        assessment = response.json()["assessment"]
        assert len(assessment["input_symptoms"]) == 1
        assert assessment["input_symptoms"][0]["severity"] == 4

    def test_partial_entries_defaulted(self, client):
        response = client.post("/clinical/analyze", json={"symptoms": ["Cough", {"severity": "high"}]})
        assert response.status_code == 200
        assessment = response.json()["assessment"]
        assert [s["severity"] for s in assessment["input_symptoms"]] == [3, 3]
        assert assessment["input_notes"]

    def test_answers_echoed(self, client):
        response = client.post("/clinical/analyze", json={
            "symptoms": [{"name": "Fever", "severity": 3}],
            "answers": [{"type": "select", "question_id": "fever_duration", "value": "4_7_days"}],
        })
        answers = response.json()["assessment"]["follow_up_answers"]
        assert answers == [{"type": "select", "question_id": "fever_duration", "value": "4_7_days"}]

    def test_engine_failure_is_logged_with_traceback(self, client, monkeypatch, caplog):
        class _Broken:
            def analyze(self, *args, **kwargs):
                raise RuntimeError("table lookup failed")

        monkeypatch.setattr(api_main, "engine", _Broken())
        with caplog.at_level("ERROR", logger="api.main"):
            response = client.post("/clinical/analyze", json={"symptoms": ["Fever"]})
        assert response.status_code == 500
        assert response.json() == {"success": False, "error": "Analysis failed. Please try again."}
        record = next(r for r in caplog.records if r.message == "Clinical analysis failed")
        assert record.exc_info[0] is RuntimeError


class TestKnowledgeEndpoints:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ok"
        assert body["knowledge_base"]["conditions"] == 15

    def test_conditions(self, client):
        response = client.get("/knowledge/conditions")
        conditions = response.json()
        assert conditions[0] == {
            "id": "common_cold", "name": "Common Cold", "category": "respiratory", "urgency": "self-care",
        }
        assert len(conditions) == 15
