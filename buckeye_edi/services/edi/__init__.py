"""
X12 EDI Services for Outpatient Therapy Billing.

Provides X12 EDI integration:
- 837P professional claim generation (outbound)
- 270 eligibility inquiry generation (outbound)
- 835 remittance parsing and payment summaries (inbound)
- TMHP gateway SFTP delivery
"""

from buckeye_edi.services.edi.x12_base import (
    X12Delimiters,
    X12Segment,
    X12SegmentBuilder,
    X12Tokenizer,
    X12ValidationError,
    X12ParseError,
    GenerationResult,
    ControlNumbers,
    ValidationIssue,
)
from buckeye_edi.services.edi.x12_837_generator import (
    X12837PGenerator,
    ClaimInput,
    ClaimHeader,
    ServiceLine,
    Submitter,
    Receiver,
    BillingProvider,
    RenderingProvider,
    Subscriber,
    Payer,
)
from buckeye_edi.services.edi.x12_270_generator import (
    X12270Generator,
    EligibilityInquiry,
    InquirySubscriber,
    InquiryProvider,
    InquiryPayer,
    ServiceTypeCode,
)
from buckeye_edi.services.edi.x12_835_parser import (
    X12835Parser,
    Remittance,
    RemittancePayment,
    RemittanceClaim,
    validate_835,
)
from buckeye_edi.services.edi.payment_summary import (
    PaymentSummary,
    summarize_payment,
)
from buckeye_edi.services.edi.claim_assembly import (
    ClaimAssembler,
    AssemblyDefaults,
    check_billing_configuration,
)
from buckeye_edi.services.edi.sftp_delivery import (
    TMHPSftpDelivery,
    SftpConfig,
    SftpUploadResult,
)
from buckeye_edi.services.edi.claims_service import (
    ClaimsService,
    ClaimGenerationOutcome,
    ClaimOutcomeKind,
)
from buckeye_edi.services.edi.eligibility_service import (
    EligibilityService,
    EligibilityOutcome,
    EligibilityOutcomeKind,
)

__all__ = [
    # Base
    "X12Delimiters",
    "X12Segment",
    "X12SegmentBuilder",
    "X12Tokenizer",
    "X12ValidationError",
    "X12ParseError",
    "GenerationResult",
    "ControlNumbers",
    "ValidationIssue",
    # 837P
    "X12837PGenerator",
    "ClaimInput",
    "ClaimHeader",
    "ServiceLine",
    "Submitter",
    "Receiver",
    "BillingProvider",
    "RenderingProvider",
    "Subscriber",
    "Payer",
    # 270
    "X12270Generator",
    "EligibilityInquiry",
    "InquirySubscriber",
    "InquiryProvider",
    "InquiryPayer",
    "ServiceTypeCode",
    # 835
    "X12835Parser",
    "Remittance",
    "RemittancePayment",
    "RemittanceClaim",
    "validate_835",
    "PaymentSummary",
    "summarize_payment",
    # Assembly
    "ClaimAssembler",
    "AssemblyDefaults",
    "check_billing_configuration",
    # Delivery
    "TMHPSftpDelivery",
    "SftpConfig",
    "SftpUploadResult",
    # Services
    "ClaimsService",
    "ClaimGenerationOutcome",
    "ClaimOutcomeKind",
    "EligibilityService",
    "EligibilityOutcome",
    "EligibilityOutcomeKind",
]
