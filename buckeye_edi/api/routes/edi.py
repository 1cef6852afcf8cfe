"""
EDI Utility API Endpoints.

Provides:
- X12 835 remittance validation and parsing
- TMHP EDI Gateway connection test
"""

import asyncio
from typing import Optional

from fastapi import APIRouter, Depends

from buckeye_edi.api.deps import get_remittance_parser, get_sftp_delivery
from buckeye_edi.schemas.edi import (
    EDI835Request,
    EDI835ValidationResult,
    PaymentSummaryResponse,
    RemittancePaymentResponse,
    RemittanceResponse,
    SftpConnectionTestResponse,
)
from buckeye_edi.services.edi.payment_summary import summarize_payment
from buckeye_edi.services.edi.sftp_delivery import TMHPSftpDelivery
from buckeye_edi.services.edi.x12_835_parser import X12835Parser, validate_835
from buckeye_edi.services.edi.x12_base import X12ParseError
from buckeye_edi.utils.errors import BadRequestError
from buckeye_edi.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(
    prefix="/api/v1/edi",
    tags=["edi"],
)


# =============================================================================
# 835 Endpoints
# =============================================================================


@router.post("/835/validate", response_model=EDI835ValidationResult)
async def validate_remittance(request: EDI835Request) -> EDI835ValidationResult:
    """Check 835 structure and envelope counts without parsing claims."""
    return EDI835ValidationResult.model_validate(validate_835(request.content))


@router.post("/835/parse", response_model=RemittanceResponse)
async def parse_remittance(
    request: EDI835Request,
    parser: X12835Parser = Depends(get_remittance_parser),
) -> RemittanceResponse:
    """Parse an 835 into per-payment claim, adjustment and summary details."""
    try:
        remittance = parser.parse(request.content)
    except X12ParseError as e:
        logger.warning(f"835 parse failed: {e}")
        raise BadRequestError(str(e)) from e
    payments = []
    for payment in remittance.payments:
        item = RemittancePaymentResponse.model_validate(payment)
        item.summary = PaymentSummaryResponse.model_validate(summarize_payment(payment))
        payments.append(item)
    return RemittanceResponse(
        interchange_control_number=remittance.interchange_control_number,
        payments=payments,
    )


# =============================================================================
# SFTP Endpoints
# =============================================================================


@router.post("/sftp/test", response_model=SftpConnectionTestResponse)
async def test_sftp_connection(
    delivery: Optional[TMHPSftpDelivery] = Depends(get_sftp_delivery),
) -> SftpConnectionTestResponse:
    """Verify TMHP gateway credentials."""
    if delivery is None:
        return SftpConnectionTestResponse(
            success=False,
            configured=False,
            error="TMHP SFTP credentials not configured",
        )
    result = await asyncio.to_thread(delivery.test_connection)
    return SftpConnectionTestResponse(success=result.success, configured=True, error=result.error)
