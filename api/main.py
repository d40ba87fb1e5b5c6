"""
Clinical Reasoning Engine – FastAPI Application
=================================================
REST API over the clinical reasoning engine.

Endpoints:
  POST /clinical/analyze      – Symptoms (+ optional context/answers) → assessment
  GET  /knowledge/conditions  – Conditions known to the loaded knowledge base
  GET  /health                – Health check
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import List

# Add project root to path
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from dotenv import load_dotenv
load_dotenv(override=True)

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.schemas import (
    AnalyzeRequest,
    AnalyzeResponse,
    ConditionSummary,
    ErrorResponse,
    HealthResponse,
)
from core.engine import ClinicalReasoningEngine
from core.logging_utils import setup_logging_from_env

# ── Setup ───────────────────────────────────────────────────────────────────

setup_logging_from_env()
logger = logging.getLogger(__name__)

API_VERSION = "0.1.0"

app = FastAPI(
    title="Clinical Reasoning Engine",
    description=(
        "Rule-based clinical decision support: ranks possible conditions, "
        "flags red-flag symptom patterns and recommends an urgency tier."
    ),
    version=API_VERSION,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Knowledge base is loaded once here and shared read-only by every request
engine = ClinicalReasoningEngine()


# ── Endpoints ───────────────────────────────────────────────────────────────


@app.get("/health", response_model=HealthResponse)
async def health():
    """Health check."""
    return HealthResponse(
        status="ok",
        version=API_VERSION,
        knowledge_base=engine.knowledge_base.summary(),
    )


@app.get("/knowledge/conditions", response_model=List[ConditionSummary])
async def list_conditions():
    """Conditions in knowledge-base order."""
    return [
        ConditionSummary(id=c.id, name=c.name, category=c.category, urgency=c.urgency)
        for c in engine.knowledge_base.conditions.values()
    ]


@app.post(
    "/clinical/analyze",
    response_model=AnalyzeResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
def clinical_analyze(request: AnalyzeRequest):
    """Run a clinical assessment on the reported symptoms."""
    if not request.symptoms:
        return _error(400, "At least one symptom is required")

    try:
        assessment = engine.analyze(
            request.symptoms,
            patient_context=request.patient_context,
            answers=request.answers,
            deduplicate=True,
        )
    except Exception:
        logger.exception("Clinical analysis failed")
        return _error(500, "Analysis failed. Please try again.")

    return AnalyzeResponse(assessment=assessment, disclaimer=assessment.disclaimer)


# ── Helpers ─────────────────────────────────────────────────────────────────


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=message).model_dump(),
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
