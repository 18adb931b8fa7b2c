"""Error codes and generic error bodies shared by the API routes."""

from typing import Dict, List, Optional

from fastapi import HTTPException

INCOMPLETE_DATA = "INCOMPLETE_DATA"
INVALID_PROTOCOL = "INVALID_PROTOCOL"
DUPLICATE_DECLARATION = "DUPLICATE_DECLARATION"
INTERNAL_SYSTEM_ERROR = "INTERNAL_SYSTEM_ERROR"
CASE_NOT_FOUND = "CASE_NOT_FOUND"
METADATA_NOT_AVAILABLE = "METADATA_NOT_AVAILABLE"
TECHNICAL_ANALYSIS_FAILED = "TECHNICAL_ANALYSIS_FAILED"


def api_error(
    status_code: int,
    code: str,
    message: str,
    required: Optional[List[str]] = None,
) -> HTTPException:
    detail: Dict[str, object] = {"error": code, "message": message}
    if required:
        detail["required"] = required
    return HTTPException(status_code=status_code, detail=detail)
