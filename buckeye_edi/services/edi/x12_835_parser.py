"""
X12 835 Remittance Advice Parser.

Source: ASC X12N 005010X221A1 Health Care Claim Payment/Advice
Verified: 2026-10-16

Reads 835 files downloaded from the TMHP outbound directory so payments
and denials can be reconciled against submitted claims. Every ST..SE
transaction set is one payment (check or EFT) with its own claims and
provider-level adjustments.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import List, Optional
import logging

from buckeye_edi.services.edi.reason_codes import lookup_carc, lookup_plb_reason, lookup_rarc
from buckeye_edi.services.edi.x12_base import (
    X12ParseError,
    X12Segment,
    X12Tokenizer,
    parse_x12_date,
    validate_envelope,
)

logger = logging.getLogger(__name__)

CLAIM_STATUS_DESCRIPTIONS = {
    "1": "Processed as Primary",
    "2": "Processed as Secondary",
    "3": "Processed as Tertiary",
    "4": "Denied",
    "19": "Processed as Primary, Forwarded",
    "20": "Processed as Secondary, Forwarded",
    "21": "Processed as Tertiary, Forwarded",
    "22": "Reversal of Previous Payment",
    "23": "Not Our Claim, Forwarded",
    "25": "Rejected",
}

ADJUSTMENT_GROUP_DESCRIPTIONS = {
    "CO": "Contractual Obligation",
    "PR": "Patient Responsibility",
    "OA": "Other Adjustment",
    "PI": "Payer Initiated Reduction",
    "CR": "Corrections and Reversals",
}

PAYMENT_METHOD_DESCRIPTIONS = {
    "ACH": "EFT/ACH",
    "CHK": "Check",
    "BOP": "Financial Institution Option",
    "FWT": "Federal Reserve Wire Transfer",
    "NON": "Non-Payment Data",
}


# =============================================================================
# Data Models
# =============================================================================


@dataclass
class AdjustmentReason:
    """One CAS reason/amount/quantity triplet."""
    reason_code: str
    amount: Decimal
    quantity: Optional[Decimal] = None

    @property
    def description(self) -> str:
        return lookup_carc(self.reason_code)


@dataclass
class Adjustment:
    """CAS segment: a group code and up to six reasons."""
    group_code: str
    reasons: List[AdjustmentReason] = field(default_factory=list)

    @property
    def group_description(self) -> str:
        return ADJUSTMENT_GROUP_DESCRIPTIONS.get(self.group_code, f"Unknown Group ({self.group_code})")

    @property
    def total(self) -> Decimal:
        return sum((reason.amount for reason in self.reasons), Decimal("0"))


@dataclass
class RemarkCode:
    """MOA or LQ remittance remark code."""
    code: str
    qualifier: str = "HE"

    @property
    def description(self) -> str:
        return lookup_rarc(self.code)


@dataclass
class RemittanceServiceLine:
    """SVC service line payment."""
    procedure_code: str
    charged_amount: Decimal
    paid_amount: Decimal
    modifiers: List[str] = field(default_factory=list)
    units_paid: Optional[Decimal] = None
    units_billed: Optional[Decimal] = None
    service_date: Optional[date] = None
    adjustments: List[Adjustment] = field(default_factory=list)
    remark_codes: List[RemarkCode] = field(default_factory=list)

    @property
    def is_denied(self) -> bool:
        return self.paid_amount == 0 and self.charged_amount > 0


@dataclass
class RemittanceClaim:
    """CLP claim payment block."""
    patient_account_number: str
    claim_status: str
    total_charged: Decimal
    total_paid: Decimal
    patient_responsibility: Decimal
    payer_claim_control_number: Optional[str] = None
    patient_last_name: Optional[str] = None
    patient_first_name: Optional[str] = None
    patient_member_id: Optional[str] = None
    service_lines: List[RemittanceServiceLine] = field(default_factory=list)
    adjustments: List[Adjustment] = field(default_factory=list)
    remark_codes: List[RemarkCode] = field(default_factory=list)

    @property
    def status_description(self) -> str:
        return CLAIM_STATUS_DESCRIPTIONS.get(self.claim_status, f"Unknown Status ({self.claim_status})")

    @property
    def is_denied(self) -> bool:
        return self.claim_status in ("4", "25")

    @property
    def is_reversal(self) -> bool:
        return self.claim_status == "22"

    @property
    def patient_name(self) -> Optional[str]:
        if not self.patient_last_name:
            return None
        if self.patient_first_name:
            return f"{self.patient_last_name}, {self.patient_first_name}"
        return self.patient_last_name


@dataclass
class ProviderAdjustment:
    """
    One PLB reason/amount pair.

    A positive amount reduces the payment (recoupment, withholding); a
    negative amount increases it (interest, bonus).
    """
    provider_identifier: str
    fiscal_period_date: Optional[date]
    reason_code: str
    amount: Decimal
    reference_id: Optional[str] = None

    @property
    def description(self) -> str:
        return lookup_plb_reason(self.reason_code)


@dataclass
class RemittancePayment:
    """One 835 transaction set: a single check or EFT."""
    transaction_control_number: str
    payment_method: str
    total_payment: Decimal
    credit_debit_flag: Optional[str] = None
    check_number: Optional[str] = None
    payment_date: Optional[date] = None
    payer_name: Optional[str] = None
    payer_id: Optional[str] = None
    payee_name: Optional[str] = None
    payee_npi: Optional[str] = None
    claims: List[RemittanceClaim] = field(default_factory=list)
    provider_adjustments: List[ProviderAdjustment] = field(default_factory=list)

    @property
    def payment_method_description(self) -> str:
        return PAYMENT_METHOD_DESCRIPTIONS.get(self.payment_method, self.payment_method)


@dataclass
class Remittance:
    """Parsed 835 file."""
    interchange_control_number: Optional[str] = None
    payments: List[RemittancePayment] = field(default_factory=list)

    @property
    def claims(self) -> List[RemittanceClaim]:
        return [claim for payment in self.payments for claim in payment.claims]


@dataclass
class Remittance835Validation:
    """Structural validation outcome for an 835 file."""
    is_valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


# =============================================================================
# Validation
# =============================================================================


REQUIRED_835_SEGMENTS = ("ISA", "GS", "ST", "BPR", "TRN", "SE", "GE", "IEA")


def validate_835(content: str) -> Remittance835Validation:
    """
    Check an 835 file for the segments and control bookkeeping a
    reconciliation run relies on.
    """
    if not content or not content.strip():
        return Remittance835Validation(False, errors=["Empty EDI content"])

    try:
        segments = X12Tokenizer().tokenize(content)
    except X12ParseError as e:
        return Remittance835Validation(False, errors=[e.message])

    errors: List[str] = []
    warnings: List[str] = []
    present = {segment.segment_id for segment in segments}

    for required in REQUIRED_835_SEGMENTS:
        if required not in present:
            errors.append(f"Missing required segment: {required}")

    for st in (s for s in segments if s.segment_id == "ST"):
        if st.get_element(0) != "835":
            errors.append(f"Expected transaction set 835, got {st.get_element(0)}")

    gs = next((s for s in segments if s.segment_id == "GS"), None)
    if gs and gs.get_element(0) != "HP":
        warnings.append(f"GS01 should be HP for remittance advice, got {gs.get_element(0)}")

    for bpr in (s for s in segments if s.segment_id == "BPR"):
        try:
            Decimal(bpr.get_element(1))
        except InvalidOperation:
            errors.append(f"BPR02 payment amount is not numeric: {bpr.get_element(1)!r}")

    if "CLP" not in present:
        warnings.append("No CLP claim payment segments found")

    if not errors:
        errors.extend(validate_envelope(segments))

    return Remittance835Validation(is_valid=not errors, errors=errors, warnings=warnings)


# =============================================================================
# Parser
# =============================================================================


class X12835Parser:
    """
    X12 835 Remittance Parser.

    Usage:
        remittance = X12835Parser().parse(content)
        for payment in remittance.payments:
            for claim in payment.claims:
                print(payment.check_number, claim.patient_account_number, claim.total_paid)
    """

    def __init__(self):
        self.tokenizer = X12Tokenizer()

    def parse(self, content: str) -> Remittance:
        """
        Parse 835 content.

        Raises:
            X12ParseError: content is empty, not X12, not an 835, or a
                transaction set is unterminated or has no BPR
        """
        if not content or not content.strip():
            raise X12ParseError("Empty EDI content")
        if not content.lstrip().startswith("ISA"):
            raise X12ParseError("EDI content must start with ISA segment")

        segments = self.tokenizer.tokenize(content)
        isa = segments[0]
        remittance = Remittance(interchange_control_number=isa.get_element(12) or None)

        for transaction in self._split_transactions(segments):
            remittance.payments.append(self._parse_payment(transaction))

        if not remittance.payments:
            raise X12ParseError("Missing required segment: ST")

        logger.info(
            f"Parsed 835 interchange {remittance.interchange_control_number}: "
            f"{len(remittance.payments)} payment(s), {len(remittance.claims)} claim(s)"
        )
        return remittance

    def _split_transactions(self, segments: List[X12Segment]) -> List[List[X12Segment]]:
        transactions: List[List[X12Segment]] = []
        current: Optional[List[X12Segment]] = None

        for position, segment in enumerate(segments):
            if segment.segment_id == "ST":
                if current is not None:
                    raise X12ParseError("ST segment without a matching SE", segment_position=position)
                if segment.get_element(0) != "835":
                    raise X12ParseError(f"Expected transaction set 835, got {segment.get_element(0)}")
                current = [segment]
            elif current is not None:
                current.append(segment)
                if segment.segment_id == "SE":
                    transactions.append(current)
                    current = None

        if current is not None:
            raise X12ParseError("ST segment without a matching SE")
        return transactions

    def _parse_payment(self, segments: List[X12Segment]) -> RemittancePayment:
        control_number = segments[0].get_element(1)
        bpr = next((s for s in segments if s.segment_id == "BPR"), None)
        if bpr is None:
            raise X12ParseError(f"Missing BPR segment in transaction {control_number}")

        payment = RemittancePayment(
            transaction_control_number=control_number,
            payment_method=bpr.get_element(3) or bpr.get_element(0),
            total_payment=bpr.get_element_decimal(1),
            credit_debit_flag=bpr.get_element(2) or None,
        )

        # Header loops end at the first CLP
        for segment in segments:
            sid = segment.segment_id
            if sid == "CLP":
                break
            if sid == "TRN" and payment.check_number is None:
                payment.check_number = segment.get_element(1) or None
            elif sid == "DTM" and segment.get_element(0) == "405":
                payment.payment_date = parse_x12_date(segment.get_element(1))
            elif sid == "N1" and segment.get_element(0) == "PR":
                payment.payer_name = segment.get_element(1)
                payment.payer_id = segment.get_element(3) or None
            elif sid == "N1" and segment.get_element(0) == "PE":
                payment.payee_name = segment.get_element(1)
                if segment.get_element(2) == "XX":
                    payment.payee_npi = segment.get_element(3) or None

        payment.claims = self._parse_claims(segments)
        payment.provider_adjustments = [
            adjustment
            for segment in segments
            if segment.segment_id == "PLB"
            for adjustment in self._parse_provider_adjustments(segment)
        ]
        return payment

    def _parse_claims(self, segments: List[X12Segment]) -> List[RemittanceClaim]:
        claims: List[RemittanceClaim] = []
        current: Optional[RemittanceClaim] = None
        line: Optional[RemittanceServiceLine] = None

        for segment in segments:
            sid = segment.segment_id
            if sid == "CLP":
                current = RemittanceClaim(
                    patient_account_number=segment.get_element(0),
                    claim_status=segment.get_element(1),
                    total_charged=segment.get_element_decimal(2),
                    total_paid=segment.get_element_decimal(3),
                    patient_responsibility=segment.get_element_decimal(4),
                    payer_claim_control_number=segment.get_element(6) or None,
                )
                claims.append(current)
                line = None
            elif sid in ("PLB", "SE"):
                current, line = None, None
            elif current is None:
                continue
            elif sid == "SVC":
                line = self._parse_service_line(segment)
                current.service_lines.append(line)
            elif sid == "CAS":
                adjustment = self._parse_adjustment(segment)
                if line is not None:
                    line.adjustments.append(adjustment)
                else:
                    current.adjustments.append(adjustment)
            elif sid == "NM1" and segment.get_element(0) == "QC" and line is None:
                current.patient_last_name = segment.get_element(2) or None
                current.patient_first_name = segment.get_element(3) or None
                current.patient_member_id = segment.get_element(8) or None
            elif sid == "MOA" and line is None:
                # MOA03..MOA07 carry remark codes
                current.remark_codes.extend(
                    RemarkCode(code=segment.get_element(i))
                    for i in range(2, 7)
                    if segment.get_element(i)
                )
            elif sid == "LQ" and line is not None:
                line.remark_codes.append(
                    RemarkCode(code=segment.get_element(1), qualifier=segment.get_element(0))
                )
            elif sid == "DTM" and segment.get_element(0) == "472" and line is not None:
                line.service_date = parse_x12_date(segment.get_element(1))

        return claims

    def _parse_service_line(self, segment: X12Segment) -> RemittanceServiceLine:
        # SVC01 composite: HC:97110:GP
        parts = segment.get_composite(0, self.tokenizer.component_separator)
        procedure_code = parts[1] if len(parts) > 1 else (parts[0] if parts else "")
        return RemittanceServiceLine(
            procedure_code=procedure_code,
            modifiers=[p for p in parts[2:] if p],
            charged_amount=segment.get_element_decimal(1),
            paid_amount=segment.get_element_decimal(2),
            units_paid=segment.get_element_decimal(4, None),
            units_billed=segment.get_element_decimal(6, None),
        )

    def _parse_adjustment(self, segment: X12Segment) -> Adjustment:
        adjustment = Adjustment(group_code=segment.get_element(0))
        # Up to six reason/amount/quantity triplets
        for index in range(1, 17, 3):
            reason_code = segment.get_element(index)
            if not reason_code:
                break
            adjustment.reasons.append(
                AdjustmentReason(
                    reason_code=reason_code,
                    amount=segment.get_element_decimal(index + 1),
                    quantity=segment.get_element_decimal(index + 2, None),
                )
            )
        return adjustment

    def _parse_provider_adjustments(self, segment: X12Segment) -> List[ProviderAdjustment]:
        provider_identifier = segment.get_element(0)
        fiscal_period_date = parse_x12_date(segment.get_element(1))
        adjustments: List[ProviderAdjustment] = []
        # PLB03/04 through PLB13/14: reason composite (code:reference) and amount
        for index in range(2, 14, 2):
            composite = segment.get_composite(index, self.tokenizer.component_separator)
            amount = segment.get_element(index + 1)
            if not composite and not amount:
                break
            adjustments.append(
                ProviderAdjustment(
                    provider_identifier=provider_identifier,
                    fiscal_period_date=fiscal_period_date,
                    reason_code=composite[0] if composite else "",
                    reference_id=composite[1] if len(composite) > 1 and composite[1] else None,
                    amount=segment.get_element_decimal(index + 1),
                )
            )
        return adjustments
