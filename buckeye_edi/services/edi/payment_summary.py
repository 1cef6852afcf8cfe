"""
Remittance Payment Summary.

Rolls one parsed 835 payment up into the totals and follow-up flags the
billing team works from: denials, reversals, reduced units, PT-specific
denial reasons and provider-level recoupments.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Iterable, List, Optional

from buckeye_edi.services.edi.reason_codes import (
    RECOUPMENT_PLB_CODES,
    DenialCategory,
    denial_category,
)
from buckeye_edi.services.edi.x12_835_parser import (
    Adjustment,
    RemittanceClaim,
    RemittancePayment,
)

ZERO = Decimal("0")


class FlagType(str, Enum):
    DENIAL = "denial"
    PARTIAL_DENIAL = "partial_denial"
    REVERSAL = "reversal"
    UNITS_REDUCED = "units_reduced"
    VISIT_LIMIT_EXCEEDED = "visit_limit_exceeded"
    NO_PRIOR_AUTH = "no_prior_auth"
    BUNDLED_SERVICE = "bundled_service"
    MEDICAL_NECESSITY = "medical_necessity"
    RECOUPMENT = "recoupment"
    ZERO_PAYMENT = "zero_payment"


class FlagSeverity(str, Enum):
    WARNING = "warning"
    CRITICAL = "critical"


_CATEGORY_FLAGS = {
    DenialCategory.VISIT_LIMIT: FlagType.VISIT_LIMIT_EXCEEDED,
    DenialCategory.NO_PRIOR_AUTH: FlagType.NO_PRIOR_AUTH,
    DenialCategory.BUNDLED: FlagType.BUNDLED_SERVICE,
    DenialCategory.MEDICAL_NECESSITY: FlagType.MEDICAL_NECESSITY,
    DenialCategory.NOT_COVERED: FlagType.DENIAL,
    DenialCategory.OTHER: FlagType.DENIAL,
}


@dataclass
class SummaryFlag:
    flag_type: FlagType
    severity: FlagSeverity
    message: str
    claim_id: Optional[str] = None


@dataclass
class PaymentSummary:
    """Totals and follow-up flags for one check/EFT."""
    check_number: Optional[str]
    total_payment: Decimal
    total_charged: Decimal = ZERO
    total_paid: Decimal = ZERO
    total_patient_responsibility: Decimal = ZERO
    total_contractual_adjustment: Decimal = ZERO
    total_other_adjustment: Decimal = ZERO
    provider_adjustment_total: Decimal = ZERO
    claim_count: int = 0
    paid_claim_count: int = 0
    denied_claim_count: int = 0
    reversal_count: int = 0
    flags: List[SummaryFlag] = field(default_factory=list)


def _sum_group(adjustments: Iterable[Adjustment], *groups: str) -> Decimal:
    return sum((a.total for a in adjustments if a.group_code in groups), ZERO)


def _all_adjustments(claim: RemittanceClaim) -> List[Adjustment]:
    return claim.adjustments + [a for line in claim.service_lines for a in line.adjustments]


def claim_flags(claim: RemittanceClaim) -> List[SummaryFlag]:
    """Follow-up flags for one claim, at most one per flag type."""
    claim_id = claim.patient_account_number
    flags: List[SummaryFlag] = []

    def add(flag_type: FlagType, severity: FlagSeverity, message: str) -> None:
        if all(flag.flag_type != flag_type for flag in flags):
            flags.append(SummaryFlag(flag_type, severity, message, claim_id))

    if claim.claim_status == "4":
        add(FlagType.DENIAL, FlagSeverity.CRITICAL, f"Claim {claim_id} was fully denied")
    if claim.is_reversal:
        add(FlagType.REVERSAL, FlagSeverity.WARNING, f"Claim {claim_id} is a reversal of a previous payment")

    denied_lines = [line for line in claim.service_lines if line.is_denied]
    if denied_lines and len(denied_lines) < len(claim.service_lines):
        add(
            FlagType.PARTIAL_DENIAL,
            FlagSeverity.WARNING,
            f"Claim {claim_id}: {len(denied_lines)} of {len(claim.service_lines)} service lines denied",
        )

    for line in claim.service_lines:
        if line.units_billed and line.units_paid and line.units_paid < line.units_billed:
            add(
                FlagType.UNITS_REDUCED,
                FlagSeverity.WARNING,
                f"Claim {claim_id}, CPT {line.procedure_code}: "
                f"{line.units_billed} units billed, {line.units_paid} units paid",
            )

    for adjustment in _all_adjustments(claim):
        for reason in adjustment.reasons:
            category = denial_category(reason.reason_code)
            if category is None:
                continue
            flag_type = _CATEGORY_FLAGS[category]
            severity = FlagSeverity.CRITICAL if flag_type == FlagType.DENIAL else FlagSeverity.WARNING
            add(flag_type, severity, f"Claim {claim_id}: {reason.description} (CARC {reason.reason_code})")

    return flags


def summarize_payment(payment: RemittancePayment) -> PaymentSummary:
    claims = payment.claims
    summary = PaymentSummary(
        check_number=payment.check_number,
        total_payment=payment.total_payment,
        total_charged=sum((c.total_charged for c in claims), ZERO),
        total_paid=sum((c.total_paid for c in claims), ZERO),
        total_patient_responsibility=sum((c.patient_responsibility for c in claims), ZERO),
        total_contractual_adjustment=sum((_sum_group(_all_adjustments(c), "CO") for c in claims), ZERO),
        total_other_adjustment=sum((_sum_group(_all_adjustments(c), "OA", "PI") for c in claims), ZERO),
        provider_adjustment_total=sum((a.amount for a in payment.provider_adjustments), ZERO),
        claim_count=len(claims),
        paid_claim_count=sum(1 for c in claims if not c.is_denied and not c.is_reversal),
        denied_claim_count=sum(1 for c in claims if c.is_denied),
        reversal_count=sum(1 for c in claims if c.is_reversal),
    )

    for claim in claims:
        summary.flags.extend(claim_flags(claim))

    for adjustment in payment.provider_adjustments:
        if adjustment.reason_code in RECOUPMENT_PLB_CODES:
            summary.flags.append(SummaryFlag(
                FlagType.RECOUPMENT,
                FlagSeverity.WARNING,
                f"Provider-level recoupment: {adjustment.description} (${abs(adjustment.amount):.2f})",
            ))

    if payment.total_payment == 0 and summary.total_charged > 0:
        summary.flags.append(SummaryFlag(
            FlagType.ZERO_PAYMENT,
            FlagSeverity.CRITICAL,
            "Total payment amount is $0.00; all claims may be denied or adjusted",
        ))

    return summary
