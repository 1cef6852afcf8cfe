"""
Pydantic Schemas for EDI Billing.

Request/response models for:
- 837P claim generation and TMHP submission
- 270 eligibility inquiries
- 835 remittance validation and parsing
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from buckeye_edi.services.edi.payment_summary import FlagSeverity, FlagType


# =============================================================================
# Shared
# =============================================================================


class ControlNumbersResponse(BaseModel):
    """Envelope control numbers of a generated interchange."""

    model_config = ConfigDict(from_attributes=True)

    isa: str = Field(..., description="ISA13 interchange control number (9 digits)")
    gs: str = Field(..., description="GS06 group control number (6 digits)")
    st: str = Field(..., description="ST02 transaction set control number (4 digits)")


# =============================================================================
# 837P Claim Schemas
# =============================================================================


class ClaimSubmitRequest(BaseModel):
    """Request schema for 837P generation."""

    submit_via_sftp: bool = Field(
        default=False,
        description="Upload the generated file to the TMHP EDI Gateway",
    )


class SftpResultResponse(BaseModel):
    """Outcome of a TMHP upload."""

    model_config = ConfigDict(from_attributes=True)

    success: bool
    remote_file_path: Optional[str] = None
    file_size: Optional[int] = None
    uploaded_at: Optional[datetime] = None
    error: Optional[str] = None


class ClaimSubmitResponse(BaseModel):
    """Generated 837P and optional delivery result."""

    success: bool = Field(..., description="Whether the 837P was generated")
    claim_id: UUID
    claim_status: Optional[str] = None
    edi_content: Optional[str] = Field(None, description="File content as transmitted")
    edi_content_formatted: Optional[str] = Field(None, description="One segment per line, for display")
    control_numbers: Optional[ControlNumbersResponse] = None
    segment_count: int = Field(default=0, description="Segments from ST through SE inclusive")
    sftp_result: Optional[SftpResultResponse] = None
    message: Optional[str] = Field(None, description="Set when the delivery result could not be saved on the claim")


# =============================================================================
# 270 Eligibility Schemas
# =============================================================================


class EligibilityCheckRequest(BaseModel):
    """Request schema for a file-mode eligibility inquiry."""

    patient_id: UUID
    clinic_id: UUID
    service_type: Optional[str] = Field(
        default=None,
        max_length=2,
        description="X12 service type code; defaults to 30 (health benefit plan coverage)",
    )
    date_of_service: Optional[date] = None


class EligibilityCheckResponse(BaseModel):
    """Generated 270 inquiry."""

    success: bool
    mode: str = Field(default="file", description="Only file mode is supported")
    check_id: Optional[UUID] = None
    edi_content: Optional[str] = None
    control_numbers: Optional[ControlNumbersResponse] = None
    message: Optional[str] = None


# =============================================================================
# 835 Remittance Schemas
# =============================================================================


class EDI835Request(BaseModel):
    """Raw 835 content."""

    content: str = Field(..., min_length=1, description="Raw X12 835 EDI content")


class EDI835ValidationResult(BaseModel):
    """Result of 835 validation."""

    model_config = ConfigDict(from_attributes=True)

    is_valid: bool
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class AdjustmentReasonResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    reason_code: str
    description: str = Field(..., description="CARC description")
    amount: Decimal
    quantity: Optional[Decimal] = None


class AdjustmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    group_code: str
    group_description: str
    reasons: list[AdjustmentReasonResponse] = Field(default_factory=list)


class RemarkCodeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    code: str
    qualifier: str
    description: str = Field(..., description="RARC description")


class RemittanceServiceLineResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    procedure_code: str
    modifiers: list[str] = Field(default_factory=list)
    charged_amount: Decimal
    paid_amount: Decimal
    units_paid: Optional[Decimal] = None
    units_billed: Optional[Decimal] = None
    service_date: Optional[date] = None
    adjustments: list[AdjustmentResponse] = Field(default_factory=list)
    remark_codes: list[RemarkCodeResponse] = Field(default_factory=list)


class RemittanceClaimResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    patient_account_number: str
    patient_name: Optional[str] = None
    claim_status: str
    status_description: str
    is_denied: bool
    total_charged: Decimal
    total_paid: Decimal
    patient_responsibility: Decimal
    payer_claim_control_number: Optional[str] = None
    service_lines: list[RemittanceServiceLineResponse] = Field(default_factory=list)
    adjustments: list[AdjustmentResponse] = Field(default_factory=list)
    remark_codes: list[RemarkCodeResponse] = Field(default_factory=list)


class ProviderAdjustmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    provider_identifier: str
    fiscal_period_date: Optional[date] = None
    reason_code: str
    description: str
    reference_id: Optional[str] = None
    amount: Decimal = Field(..., description="Positive reduces the payment")


class SummaryFlagResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    flag_type: FlagType
    severity: FlagSeverity
    message: str
    claim_id: Optional[str] = None


class PaymentSummaryResponse(BaseModel):
    """Totals and follow-up flags for one payment."""

    model_config = ConfigDict(from_attributes=True)

    total_charged: Decimal
    total_paid: Decimal
    total_patient_responsibility: Decimal
    total_contractual_adjustment: Decimal
    total_other_adjustment: Decimal
    provider_adjustment_total: Decimal
    claim_count: int
    paid_claim_count: int
    denied_claim_count: int
    reversal_count: int
    flags: list[SummaryFlagResponse] = Field(default_factory=list)


class RemittancePaymentResponse(BaseModel):
    """One check/EFT (ST..SE transaction set)."""

    model_config = ConfigDict(from_attributes=True)

    transaction_control_number: str
    payment_method: str
    payment_method_description: str
    total_payment: Decimal
    check_number: Optional[str] = None
    payment_date: Optional[date] = None
    payer_name: Optional[str] = None
    payer_id: Optional[str] = None
    payee_name: Optional[str] = None
    payee_npi: Optional[str] = None
    claims: list[RemittanceClaimResponse] = Field(default_factory=list)
    provider_adjustments: list[ProviderAdjustmentResponse] = Field(default_factory=list)
    summary: Optional[PaymentSummaryResponse] = None


class RemittanceResponse(BaseModel):
    """Parsed 835 remittance advice."""

    interchange_control_number: Optional[str] = None
    payments: list[RemittancePaymentResponse] = Field(default_factory=list)


# =============================================================================
# SFTP Schemas
# =============================================================================


class SftpConnectionTestResponse(BaseModel):
    success: bool
    configured: bool
    error: Optional[str] = None
