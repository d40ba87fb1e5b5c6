#!/usr/bin/env python3
"""
Clinical Reasoning Engine – Main Entrypoint
=============================================
Usage:
    python main.py --symptom "Chest Pain:5:sudden:worsening" --symptom "Shortness of Breath:4"
    python main.py --file data/samples/benchmark_cases.json
    python main.py --benchmark data/samples/benchmark_cases.json
    python main.py --interactive

A symptom is written ``Name[:severity[:attribute...]]`` where each attribute
is an onset (sudden/gradual), a progression (improving/stable/worsening),
a frequency or a duration such as "3 days".

Importable convenience function:
    from main import run_assessment
    assessment = run_assessment([{"name": "Fever", "severity": 4}])
"""

from __future__ import annotations

import argparse
import json
import sys
from typing import List, Optional

from dotenv import load_dotenv
load_dotenv(override=True)

from core.engine import ClinicalReasoningEngine
from core.logging_utils import setup_logging, setup_logging_from_env
from models.reasoning.schema_definition import (
    ClinicalAssessment,
    OverallUrgency,
    SymptomFrequency,
    SymptomOnset,
    SymptomProgression,
)

# Module-level singleton engine (created on first call)
_engine: ClinicalReasoningEngine | None = None


def _get_engine(config_path: str | None = None) -> ClinicalReasoningEngine:
    global _engine
    if _engine is None:
        _engine = ClinicalReasoningEngine(config_path=config_path)
    return _engine


def run_assessment(
    symptoms,
    patient_context: Optional[dict] = None,
    answers: Optional[list] = None,
    config_path: str | None = None,
) -> ClinicalAssessment:
    """
    Run the clinical reasoning engine and return the assessment.

    Parameters
    ----------
    symptoms : list
        Symptom mappings (``name``, ``severity``, ``duration``, ``onset``,
        ``progression``, ``frequency``, ``location``) or bare names.
        Duplicates by name are merged before scoring.
    patient_context : dict, optional
        ``age``, ``gender``, ``medical_history``, ``medications``.
    answers : list, optional
        Follow-up answers tagged by question type.
    config_path : str, optional
        Path to a custom ``engine_config.yaml``.
    """
    engine = _get_engine(config_path)
    return engine.analyze(symptoms, patient_context=patient_context, answers=answers, deduplicate=True)


def parse_symptom_arg(text: str) -> dict:
    """Parse ``Name[:severity[:attribute...]]`` into a symptom mapping."""
    parts = [p.strip() for p in text.split(":")]
    symptom: dict = {"name": parts[0]}
    if len(parts) > 1 and parts[1]:
        symptom["severity"] = parts[1]

    onsets = {o.value for o in SymptomOnset}
    progressions = {p.value for p in SymptomProgression}
    frequencies = {f.value for f in SymptomFrequency}
    for attr in parts[2:]:
        value = attr.lower()
        if value in onsets:
            symptom["onset"] = value
        elif value in progressions:
            symptom["progression"] = value
        elif value in frequencies:
            symptom["frequency"] = value
        elif value:
            symptom["duration"] = value
    return symptom


# ── Presentation helpers ────────────────────────────────────────────────────

def print_result(assessment: ClinicalAssessment, verbose: bool = False):
    """Pretty-print an assessment to stdout."""
    COLORS = {
        OverallUrgency.EMERGENCY: "\033[91m",
        OverallUrgency.URGENT_CARE: "\033[93m",
        OverallUrgency.SCHEDULE_VISIT: "\033[94m",
        OverallUrgency.SELF_CARE: "\033[92m",
    }
    RESET = "\033[0m"

    urgency = assessment.overall_urgency
    color = COLORS.get(urgency, "")

    print(f"\n{'='*60}")
    print(f"  CLINICAL ASSESSMENT  |  ID: {assessment.id}")
    print(f"{'='*60}")
    print(f"  Urgency:    {color}{urgency.value.upper()}{RESET} – {assessment.urgency_reason}")
    print(f"  Summary:    {assessment.confidence_explanation}")
    print(f"{'─'*60}")

    if assessment.red_flag_alerts:
        print(f"  🚩 RED FLAGS ({len(assessment.red_flag_alerts)}):")
        for alert in assessment.red_flag_alerts:
            print(f"     • [{alert.severity.value}] {alert.title}: {alert.description}")
            print(f"       → {alert.action}")

    if assessment.possible_conditions:
        print(f"\n  🩺 POSSIBLE CONDITIONS:")
        for cond in assessment.possible_conditions:
            print(f"     • {cond.name} ({cond.confidence}%) [{cond.urgency.value}]")
            if verbose:
                for line in cond.reasoning:
                    print(f"       – {line}")

    print(f"\n  📋 NEXT STEPS:")
    for step in assessment.next_steps:
        print(f"     • {step}")

    if assessment.follow_up_questions:
        print(f"\n  ❓ FOLLOW-UP QUESTIONS:")
        for q in assessment.follow_up_questions:
            print(f"     • {q.question}")

    if assessment.safety_overrides_applied:
        print(f"\n  🔒 SAFETY OVERRIDES:")
        for o in assessment.safety_overrides_applied:
            print(f"     • {o}")

    if assessment.input_notes:
        print(f"\n  ℹ️  INPUT NOTES:")
        for note in assessment.input_notes:
            print(f"     • {note}")

    if verbose:
        print(f"\n  📊 Full assessment JSON:")
        print(assessment.model_dump_json(indent=2))

    print(f"\n{'─'*60}")
    print(f"  ⚕️  {assessment.disclaimer}")
    print(f"{'='*60}\n")


def _emit(assessment: ClinicalAssessment, as_json: bool, verbose: bool):
    if as_json:
        print(assessment.model_dump_json(indent=2))
    else:
        print_result(assessment, verbose=verbose)


def run_interactive(engine: ClinicalReasoningEngine):
    """Interactive mode – one symptom per line, blank line to analyze."""
    print("\n🏥 Clinical Reasoning Engine – Interactive Mode")
    print("Enter one symptom per line as Name[:severity[:onset...]].")
    print("Blank line runs the assessment. Type 'quit' to exit.\n")

    pending: List[dict] = []
    while True:
        try:
            text = input("Symptom > ").strip()
            if text.lower() in ("quit", "exit", "q"):
                break
            if text:
                pending.append(parse_symptom_arg(text))
                continue
            if not pending:
                continue

            print_result(engine.analyze(pending, deduplicate=True))
            pending = []

        except (KeyboardInterrupt, EOFError):
            break

    print("\nGoodbye.")


def main(argv: Optional[List[str]] = None):
    parser = argparse.ArgumentParser(description="Clinical Reasoning Engine")
    parser.add_argument("--symptom", "-s", action="append", default=[],
                        help='Symptom as "Name[:severity[:attribute...]]" (repeatable)')
    parser.add_argument("--age", type=int, help="Patient age")
    parser.add_argument("--gender", choices=["male", "female", "other"], help="Patient gender")
    parser.add_argument("--file", "-f", help="Path to JSON case file")
    parser.add_argument("--benchmark", "-b", help="Run the JSON case file as a benchmark")
    parser.add_argument("--interactive", "-i", action="store_true", help="Interactive mode")
    parser.add_argument("--json", action="store_true", help="Print the assessment as JSON")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")
    parser.add_argument("--config", "-c", help="Path to engine config YAML")
    parser.add_argument("--knowledge-base", "-k", help="Path to knowledge base YAML")

    args = parser.parse_args(argv)

    if args.verbose:
        setup_logging(level="DEBUG")
    else:
        setup_logging_from_env()

    engine = ClinicalReasoningEngine(config_path=args.config, knowledge_base_path=args.knowledge_base)

    if args.interactive:
        run_interactive(engine)
    elif args.benchmark:
        from evaluation.benchmark_runner import load_test_cases, run_benchmark

        summary = run_benchmark(engine, load_test_cases(args.benchmark), verbose=args.verbose)
        if not args.verbose:
            summary.pop("per_case_results", None)
        print(json.dumps(summary, indent=2, default=str))
    elif args.file:
        with open(args.file) as f:
            data = json.load(f)
        cases = data if isinstance(data, list) else data.get("cases", [data])
        for case in cases:
            assessment = engine.analyze(
                case.get("symptoms", []),
                patient_context=case.get("patient_context"),
                answers=case.get("answers"),
                deduplicate=True,
            )
            _emit(assessment, args.json, args.verbose)
    elif args.symptom:
        context = {k: v for k, v in (("age", args.age), ("gender", args.gender)) if v is not None}
        assessment = engine.analyze(
            [parse_symptom_arg(s) for s in args.symptom],
            patient_context=context or None,
            deduplicate=True,
        )
        _emit(assessment, args.json, args.verbose)
    else:
        parser.print_help()
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
