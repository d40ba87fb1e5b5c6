"""
Clinical Reasoning Engine – Benchmark Runner
==============================================
Runs labelled cases through the engine and produces aggregate metrics.
"""

from __future__ import annotations

import json
import logging
from typing import List

from evaluation.assessment_metrics import assessment_report

logger = logging.getLogger(__name__)


def load_test_cases(path: str) -> List[dict]:
    """Load test cases from a JSON file."""
    with open(path) as f:
        data = json.load(f)
    if isinstance(data, list):
        return data
    if "cases" in data:
        return data["cases"]
    raise ValueError(f"Expected a list or {{cases: [...]}} in {path}")


def run_benchmark(
    engine,
    test_cases: List[dict],
    verbose: bool = True,
) -> dict:
    """
    Run the engine on a list of test cases and collect metrics.

    Parameters
    ----------
    engine : ClinicalReasoningEngine
        Anything with an ``analyze(symptoms, patient_context=..., answers=...)``.
    test_cases : list[dict]
        Each case should have:
          - "symptoms": list of symptom mappings
          - "patient_context": dict (optional)
          - "expected_urgency": str (optional)
          - "expected_red_flags": list[str] of alert ids (optional)
          - "expected_conditions": list[str], best first (optional)
    verbose : bool
        Log per-case results.

    Returns
    -------
    dict with aggregate metrics.
    """
    results = []
    errors = []

    for i, case in enumerate(test_cases):
        case_id = case.get("id", f"case_{i}")

        try:
            assessment = engine.analyze(
                case.get("symptoms", []),
                patient_context=case.get("patient_context"),
                answers=case.get("answers"),
            )
            report = assessment_report(
                assessment,
                expected_urgency=case.get("expected_urgency"),
                expected_red_flags=case.get("expected_red_flags"),
                expected_conditions=case.get("expected_conditions"),
            )
            case_result = {
                "case_id": case_id,
                "status": "success",
                "metrics": report,
                "safety_overrides": list(assessment.safety_overrides_applied),
            }

            if verbose:
                logger.info(
                    "Case %s: urgency=%s top=%s",
                    case_id, report["predicted_urgency"], report["top_condition"],
                )

        except Exception as e:
            case_result = {
                "case_id": case_id,
                "status": "error",
                "error": str(e),
            }
            errors.append(case_id)
            logger.error("Case %s failed: %s", case_id, e)

        results.append(case_result)

    successful = [r for r in results if r["status"] == "success"]
    aggregate = _compute_aggregate(successful)
    aggregate["total_cases"] = len(test_cases)
    aggregate["successful_cases"] = len(successful)
    aggregate["failed_cases"] = len(errors)
    aggregate["per_case_results"] = results

    return aggregate


def _compute_aggregate(successful_results: List[dict]) -> dict:
    """Mean of every metric present in at least one successful case."""
    if not successful_results:
        return {}

    keys = {
        "urgency_exact_match": "urgency_exact_accuracy",
        "urgency_within_one": "urgency_within_one_accuracy",
        "safety_score": "mean_safety_score",
        "red_flag_recall": "mean_red_flag_recall",
        "top_condition_hit": "top_condition_accuracy",
        "condition_recall_at_5": "mean_condition_recall_at_5",
        "top_confidence": "mean_top_confidence",
    }

    def _mean(lst):
        return round(sum(lst) / len(lst), 4) if lst else None

    aggregate = {}
    for metric, name in keys.items():
        values = [
            float(r["metrics"][metric]) for r in successful_results
            if r["metrics"].get(metric) is not None
        ]
        aggregate[name] = _mean(values)
    return aggregate
