"""Identity verification endpoints for EchoAid API v1.

Callers who cannot produce Aadhaar are verified by self-declaration,
community referral, recorded voice consent or an alternative document.
Validation problems come back as ``success: false`` with the missing
fields or the methods to try instead, never as a 422.
"""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, ConfigDict, Field

from echoaid.models.verification import VerificationResult, VerificationStatus
from echoaid.services.verification import VerificationService

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

router = APIRouter(prefix="/verification", tags=["verification"])


class InitiateVerificationRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    session_id: str = Field(..., alias="sessionId")
    method: str
    data: dict[str, Any] = Field(default_factory=dict)


def _get_verification(request: Request) -> VerificationService:
    """Retrieve the verification service from app state, or raise 503."""
    service = getattr(request.app.state, "verification", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Verification service not initialised.")
    return service


@router.post("/initiate", response_model=VerificationResult)
async def initiate_verification(body: InitiateVerificationRequest, request: Request) -> VerificationResult:
    service = _get_verification(request)
    return await service.initiate(body.session_id, body.method, body.data)


@router.get("/{session_id}", response_model=VerificationStatus)
async def verification_status(session_id: str, request: Request) -> VerificationStatus:
    """Current verification method and trust tier for a session."""
    service = _get_verification(request)
    return await service.get_status(session_id)
