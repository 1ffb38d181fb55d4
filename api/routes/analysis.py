"""Language-model assisted sermon classification."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from agents import SermonClassifierAgent
from api.dependencies import get_classifier
from api.models.schemas import SermonAnalysisRequest, SermonClassification
from llm import LLMUnavailableError

router = APIRouter(prefix="/api", tags=["analysis"])


@router.post("/analyze-sermon", response_model=SermonClassification)
def analyze_sermon(
    request: SermonAnalysisRequest,
    classifier: SermonClassifierAgent = Depends(get_classifier),
) -> SermonClassification:
    """Recommend series, theme, audience, season and lesson type for a sermon."""

    try:
        return classifier.run(request)
    except LLMUnavailableError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
