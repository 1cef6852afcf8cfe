"""
Claims API Endpoints.

837P generation for stored claims with optional TMHP SFTP submission.
"""

from uuid import UUID

from fastapi import APIRouter, Depends

from buckeye_edi.api.deps import get_claims_service
from buckeye_edi.schemas.edi import (
    ClaimSubmitRequest,
    ClaimSubmitResponse,
    ControlNumbersResponse,
    SftpResultResponse,
)
from buckeye_edi.services.edi.claims_service import ClaimOutcomeKind, ClaimsService
from buckeye_edi.utils.errors import BadRequestError, ConflictError, NotFoundError, ValidationError
from buckeye_edi.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(
    prefix="/api/v1/claims",
    tags=["claims"],
)


@router.post("/{claim_id}/edi", response_model=ClaimSubmitResponse)
async def generate_claim_edi(
    claim_id: UUID,
    request: ClaimSubmitRequest,
    service: ClaimsService = Depends(get_claims_service),
) -> ClaimSubmitResponse:
    """
    Generate the 837P file for a claim.

    With ``submit_via_sftp`` the file is also uploaded to TMHP; an upload
    failure is reported in ``sftp_result`` and does not fail the request.
    """
    outcome = await service.generate_claim(claim_id, submit_via_sftp=request.submit_via_sftp)

    if outcome.kind == ClaimOutcomeKind.NOT_FOUND:
        raise NotFoundError(outcome.message)
    if outcome.kind == ClaimOutcomeKind.MISSING_BILLING_CONFIG:
        raise BadRequestError({"message": outcome.message, "missing_fields": outcome.missing_fields})
    if outcome.kind == ClaimOutcomeKind.VALIDATION_FAILED:
        raise ValidationError({"message": outcome.message, "errors": outcome.generation.error_messages})
    if outcome.kind == ClaimOutcomeKind.CONFLICT:
        raise ConflictError(outcome.message)

    generation = outcome.generation
    if outcome.delivery is not None and not outcome.delivery.success:
        logger.warning(f"Claim {claim_id} generated but not delivered: {outcome.delivery.error}")

    return ClaimSubmitResponse(
        success=True,
        claim_id=claim_id,
        claim_status=outcome.claim_status.value if outcome.claim_status else None,
        edi_content=generation.edi_content,
        edi_content_formatted=generation.edi_content_formatted,
        control_numbers=ControlNumbersResponse.model_validate(generation.control_numbers),
        segment_count=generation.segment_count,
        sftp_result=(
            SftpResultResponse.model_validate(outcome.delivery) if outcome.delivery is not None else None
        ),
        message=outcome.message,
    )
