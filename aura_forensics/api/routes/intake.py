"""
Intake API Routes - Forensic intake freezing
POST /intake-freeze
"""

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel, Field
from typing import Any, Dict, Optional
import logging

from aura_forensics.api.errors import (
    DUPLICATE_DECLARATION,
    INCOMPLETE_DATA,
    INTERNAL_SYSTEM_ERROR,
    INVALID_PROTOCOL,
    api_error,
)
from aura_forensics.services.errors import DuplicateDeclarationError, ProtocolValidationError
from aura_forensics.services.intake import IntakeService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["intake"])

# Lazy initialization so importing the routes never opens a store connection
_intake_service: Optional[IntakeService] = None


def get_intake_service() -> IntakeService:
    """Get or create the intake service instance."""
    global _intake_service
    if _intake_service is None:
        _intake_service = IntakeService()
    return _intake_service


class IntakeFreezeRequest(BaseModel):
    """Request model for intake freezing."""
    intake_data: Optional[Dict[str, Any]] = Field(None, description="Complete intake document, frozen as received")
    client_hash: Optional[str] = Field(None, description="SHA-256 computed by the client over the canonical document")


class IntakeFreezeResponse(BaseModel):
    success: bool
    case_id: str


@router.post("/intake-freeze", response_model=IntakeFreezeResponse, status_code=status.HTTP_201_CREATED)
async def freeze_intake(request: IntakeFreezeRequest) -> IntakeFreezeResponse:
    """
    Freeze an intake document and open a draft audit case.

    Only the aura_protocol header is validated; the body is stored as received
    and addressed by its canonical SHA-256.

    Raises:
        400: Missing fields or invalid protocol header
        409: Identical document already frozen
        500: Internal error
    """
    try:
        if not request.intake_data or not request.client_hash:
            raise api_error(
                status.HTTP_400_BAD_REQUEST,
                INCOMPLETE_DATA,
                "intake_data and client_hash are required",
                required=["intake_data", "client_hash"],
            )

        receipt = get_intake_service().freeze(request.intake_data, request.client_hash)
        return IntakeFreezeResponse(success=receipt.success, case_id=receipt.case_id)

    except HTTPException:
        raise
    except ProtocolValidationError as e:
        logger.warning(f"Rejected intake: {e}")
        raise api_error(status.HTTP_400_BAD_REQUEST, INVALID_PROTOCOL, "AURA protocol header is missing or unsupported")
    except DuplicateDeclarationError as e:
        logger.info(f"Duplicate intake: {e}")
        raise api_error(status.HTTP_409_CONFLICT, DUPLICATE_DECLARATION, "An identical declaration was already frozen")
    except Exception as e:
        logger.error(f"Intake freeze error: {e}", exc_info=True)
        raise api_error(status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_SYSTEM_ERROR, "Internal error freezing intake")
