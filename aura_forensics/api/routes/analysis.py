"""
Analysis API Routes - Non-decisional technical analysis stages

POST /analysis/metadata          metadata flagging against the declaration
POST /analysis/metadata-extract  batch technical metadata extraction
POST /analysis/ai-signals        auxiliary signal aggregation
POST /analysis/consistency       declaration vs evidence consistency
POST /analysis/pipeline          every stage in order
"""

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional
from datetime import datetime
import logging

from aura_forensics.api.errors import (
    CASE_NOT_FOUND,
    INCOMPLETE_DATA,
    METADATA_NOT_AVAILABLE,
    TECHNICAL_ANALYSIS_FAILED,
    api_error,
)
from aura_forensics.models.consistency import ConsistencyResult
from aura_forensics.models.enums import ConfidenceBand
from aura_forensics.models.metadata import MetadataAnalysisResult
from aura_forensics.models.signals import SignalBundle
from aura_forensics.services.errors import CaseNotFoundError, MetadataUnavailableError
from aura_forensics.services.pipeline import ForensicPipeline

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/analysis", tags=["analysis"])

# Lazy initialization of the pipeline to avoid store connections at import time
_pipeline: Optional[ForensicPipeline] = None


def get_pipeline() -> ForensicPipeline:
    """Get or create the forensic pipeline instance."""
    global _pipeline
    if _pipeline is None:
        _pipeline = ForensicPipeline()
    return _pipeline


def _require(value: Any, fields: List[str]) -> None:
    if not value:
        raise api_error(
            status.HTTP_400_BAD_REQUEST,
            INCOMPLETE_DATA,
            f"Missing required parameters: {', '.join(fields)}",
            required=fields,
        )


def _case_not_found(case_id: str) -> HTTPException:
    logger.info(f"Case not found: {case_id}")
    return api_error(status.HTTP_404_NOT_FOUND, CASE_NOT_FOUND, "Case not found")


def _analysis_failed(stage: str, error: Exception) -> HTTPException:
    logger.error(f"{stage} error: {error}", exc_info=True)
    return api_error(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        TECHNICAL_ANALYSIS_FAILED,
        f"{stage} failed. The service is non-decisional; no verdict was produced.",
    )


class MetadataAnalysisRequest(BaseModel):
    case_id: Optional[str] = Field(None, description="Case identifier")
    file_url: Optional[str] = Field(None, description="URL of the submitted file; omitted means no file")


class EvidenceEntry(BaseModel):
    evidence_id: Optional[str] = None
    file_url: Optional[str] = None


class MetadataExtractRequest(BaseModel):
    case_id: Optional[str] = Field(None, description="Case identifier")
    evidences: Optional[List[EvidenceEntry]] = Field(None, description="Evidence files to extract")


class MetadataExtractResponse(BaseModel):
    case_id: str
    evidences_processed: int
    metadata_extracted: bool


class SignalsRequest(BaseModel):
    case_id: Optional[str] = Field(None, description="Case identifier")


class SignalsResponse(BaseModel):
    case_id: str
    ai_signals: SignalBundle
    aggregated_score: float
    confidence: ConfidenceBand
    analysis_version: str


class ConsistencyRequest(BaseModel):
    case_id: Optional[str] = Field(None, description="Case identifier")
    evidence_list: Optional[Dict[str, Any]] = Field(None, description="Evidence manifest for the case")


class PipelineRequest(BaseModel):
    case_id: Optional[str] = Field(None, description="Case identifier")
    file_urls: Optional[List[str]] = Field(default_factory=list, description="Files to analyze, first one is flagged")
    evidence_list: Optional[Dict[str, Any]] = Field(None, description="Evidence manifest for the case")


class PipelineResponse(BaseModel):
    case_id: str
    pipeline_version: str
    steps: Dict[str, Any]
    generated_at: datetime


@router.post("/metadata", response_model=MetadataAnalysisResult, status_code=status.HTTP_200_OK)
async def analyze_metadata(request: MetadataAnalysisRequest) -> MetadataAnalysisResult:
    """
    Flag objectively checkable mismatches between a file and its declaration.

    Returns exactly case_id, metadata_flags, analysis_version and generated_at.
    """
    try:
        _require(request.case_id, ["case_id"])
        return await get_pipeline().analyze_metadata(request.case_id, request.file_url)

    except HTTPException:
        raise
    except CaseNotFoundError:
        raise _case_not_found(request.case_id)
    except Exception as e:
        raise _analysis_failed("Metadata analysis", e)


@router.post("/metadata-extract", response_model=MetadataExtractResponse, status_code=status.HTTP_200_OK)
async def extract_metadata(request: MetadataExtractRequest) -> MetadataExtractResponse:
    """Extract and store technical metadata for each evidence file."""
    try:
        _require(request.case_id and request.evidences is not None, ["case_id", "evidences"])
        summary = await get_pipeline().extract_metadata(
            request.case_id,
            [entry.model_dump() for entry in request.evidences],
        )
        return MetadataExtractResponse(**summary)

    except HTTPException:
        raise
    except CaseNotFoundError:
        raise _case_not_found(request.case_id)
    except Exception as e:
        raise _analysis_failed("Metadata extraction", e)


@router.post("/ai-signals", response_model=SignalsResponse, status_code=status.HTTP_200_OK)
async def detect_ai_signals(request: SignalsRequest) -> SignalsResponse:
    """
    Aggregate auxiliary signals over the latest extracted metadata.

    Signals are advisory input for a reviewer; they never determine AI usage.
    """
    try:
        _require(request.case_id, ["case_id"])
        result = get_pipeline().run_signals(request.case_id)
        return SignalsResponse(
            case_id=request.case_id,
            ai_signals=result.ai_signals,
            aggregated_score=result.aggregated_score,
            confidence=result.confidence,
            analysis_version=result.analysis_version,
        )

    except HTTPException:
        raise
    except CaseNotFoundError:
        raise _case_not_found(request.case_id)
    except MetadataUnavailableError as e:
        logger.info(f"Signals requested before extraction: {e}")
        raise api_error(
            status.HTTP_400_BAD_REQUEST,
            METADATA_NOT_AVAILABLE,
            "Run metadata extraction before signal detection",
        )
    except Exception as e:
        raise _analysis_failed("Signal detection", e)


@router.post("/consistency", response_model=ConsistencyResult, status_code=status.HTTP_200_OK)
async def evaluate_consistency(request: ConsistencyRequest) -> ConsistencyResult:
    """Compare the frozen declaration with the latest technical evidence."""
    try:
        _require(request.case_id, ["case_id"])
        evaluation = get_pipeline().evaluate_consistency(request.case_id, request.evidence_list)
        return evaluation.result

    except HTTPException:
        raise
    except CaseNotFoundError:
        raise _case_not_found(request.case_id)
    except Exception as e:
        raise _analysis_failed("Consistency evaluation", e)


@router.post("/pipeline", response_model=PipelineResponse, status_code=status.HTTP_200_OK)
async def run_pipeline(request: PipelineRequest) -> PipelineResponse:
    """Run metadata analysis, extraction, signals and consistency in order."""
    try:
        _require(request.case_id, ["case_id"])
        result = await get_pipeline().run_pipeline(
            request.case_id,
            request.file_urls or [],
            request.evidence_list,
        )
        return PipelineResponse(**result)

    except HTTPException:
        raise
    except CaseNotFoundError:
        raise _case_not_found(request.case_id)
    except Exception as e:
        raise _analysis_failed("Pipeline", e)
