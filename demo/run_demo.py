#!/usr/bin/env python3
"""
Clinical Reasoning Engine – Demo Script
=========================================
Runs the engine on canned symptom sets and prints a short summary of each.

Usage:
    python demo/run_demo.py
"""

import sys
from pathlib import Path

# Add project root
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from dotenv import load_dotenv
load_dotenv()

from core.engine import ClinicalReasoningEngine


DEMO_CASES = [
    {
        "label": "Cardiac Emergency",
        "symptoms": [
            {"name": "Chest Pain", "severity": 5, "onset": "sudden", "progression": "worsening"},
            {"name": "Shortness of Breath", "severity": 4, "onset": "sudden"},
        ],
        "patient_context": {"age": 58, "gender": "male"},
    },
    {
        "label": "Common Cold",
        "symptoms": [
            {"name": "Runny Nose", "severity": 2},
            {"name": "Sore Throat", "severity": 2},
            {"name": "Sneezing", "severity": 2},
        ],
    },
    {
        "label": "Meningitis Triad",
        "symptoms": [
            {"name": "Severe Headache", "severity": 4, "onset": "sudden"},
            {"name": "Stiff Neck", "severity": 4},
            {"name": "Fever", "severity": 4},
        ],
    },
]


def main():
    print("\n" + "=" * 60)
    print("  🏥 Clinical Reasoning Engine – Demo")
    print("=" * 60)

    engine = ClinicalReasoningEngine()

    for case in DEMO_CASES:
        names = ", ".join(s["name"] for s in case["symptoms"])
        print(f"\n{'─' * 60}")
        print(f"  📋 Case: {case['label']}")
        print(f"  Symptoms: {names}")
        print(f"{'─' * 60}")

        assessment = engine.analyze(case["symptoms"], patient_context=case.get("patient_context"))

        print(f"  Urgency:    {assessment.overall_urgency.value} – {assessment.urgency_reason}")

        if assessment.red_flag_alerts:
            print(f"  Red Flags:")
            for alert in assessment.red_flag_alerts:
                print(f"    • [{alert.severity.value}] {alert.title}")

        if assessment.possible_conditions:
            print(f"  Conditions:")
            for cond in assessment.possible_conditions[:3]:
                print(f"    • {cond.name} ({cond.confidence}%)")

        print(f"  Next Steps:")
        for step in assessment.next_steps[:3]:
            print(f"    • {step}")

        if assessment.safety_overrides_applied:
            print(f"  Safety Overrides: {list(assessment.safety_overrides_applied)}")

    print(f"\n{'=' * 60}")
    print("  ⚕️  Decision support only. Not a diagnosis.")
    print(f"{'=' * 60}\n")


if __name__ == "__main__":
    main()
