"""
Eligibility API Endpoints.

File-mode 270 inquiries: the generated file is returned for upload to the
payer portal and recorded as a pending eligibility check.
"""

from fastapi import APIRouter, Depends, status

from buckeye_edi.api.deps import get_eligibility_service
from buckeye_edi.schemas.edi import (
    ControlNumbersResponse,
    EligibilityCheckRequest,
    EligibilityCheckResponse,
)
from buckeye_edi.services.edi.eligibility_service import EligibilityOutcomeKind, EligibilityService
from buckeye_edi.utils.errors import BadRequestError, NotFoundError, ValidationError

router = APIRouter(
    prefix="/api/v1/eligibility",
    tags=["eligibility"],
)


@router.post("/check", response_model=EligibilityCheckResponse, status_code=status.HTTP_201_CREATED)
async def check_eligibility(
    request: EligibilityCheckRequest,
    service: EligibilityService = Depends(get_eligibility_service),
) -> EligibilityCheckResponse:
    """Create a 270 inquiry for a patient."""
    outcome = await service.create_inquiry(
        patient_id=request.patient_id,
        clinic_id=request.clinic_id,
        service_type=request.service_type,
        date_of_service=request.date_of_service,
    )

    if outcome.kind == EligibilityOutcomeKind.NOT_FOUND:
        raise NotFoundError(outcome.message)
    if outcome.kind == EligibilityOutcomeKind.MISSING_MEDICAID_ID:
        raise BadRequestError(outcome.message)
    if outcome.kind == EligibilityOutcomeKind.VALIDATION_FAILED:
        raise ValidationError({"message": outcome.message, "errors": outcome.errors})

    return EligibilityCheckResponse(
        success=True,
        mode=outcome.mode,
        check_id=outcome.check_id,
        edi_content=outcome.generation.edi_content,
        control_numbers=ControlNumbersResponse.model_validate(outcome.generation.control_numbers),
        message="Upload the 270 file to the payer portal; attach the 271 response when it arrives",
    )
