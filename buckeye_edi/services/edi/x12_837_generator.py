"""
X12 837P Professional Claim Generator.

Source: ASC X12N 005010X222A1 Health Care Claim: Professional
Verified: 2026-10-16

Generates 837P claim files for Texas Medicaid submission through the
TMHP EDI Gateway. Input is validated up front; any problem yields a
failed GenerationResult carrying every issue found and no EDI content.

Loop layout produced:
- 1000A Submitter (NM1*41, PER)
- 1000B Receiver (NM1*40)
- 2000A/2010AA Billing provider (HL*20, PRV, NM1*85, N3, N4, REF*EI)
- 2000B/2010BA/2010BB Subscriber and payer (HL*22, SBR, NM1*IL, N3, N4, DMG, NM1*PR)
- 2300 Claim (CLM, REF*G1, HI)
- 2310B Rendering provider (NM1*82, PRV*PE), only when an NPI is supplied
- 2400 Service lines (LX, SV1, DTP*472)
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import List, Optional, Union
import logging
import re

from buckeye_edi.services.edi.x12_base import (
    Composite,
    GenerationResult,
    ValidationIssue,
    digits_only,
    edi_clean,
    edi_date,
    edi_decimal,
    edi_quantity,
    edi_time,
    format_npi,
    format_tax_id,
    require,
    to_decimal,
    validate_npi,
)
from buckeye_edi.services.edi.x12_envelope import X12EnvelopeWriter

logger = logging.getLogger(__name__)

TMHP_RECEIVER_NAME = "TMHP"
TMHP_RECEIVER_ID = "330897513"
TEXAS_MEDICAID_PAYER_NAME = "Texas Medicaid"
TEXAS_MEDICAID_PAYER_ID = "330897513"

MAX_DIAGNOSIS_CODES = 12
MAX_POINTERS_PER_LINE = 4
MAX_MODIFIERS_PER_LINE = 4

_CPT_PATTERN = re.compile(r"^[0-9A-Z]{5}$")
_MODIFIER_PATTERN = re.compile(r"^[A-Z0-9]{2}$")
_ICD10_PATTERN = re.compile(r"^[A-Z][0-9][0-9A-Z][0-9A-Z]{0,4}$")
_STATE_PATTERN = re.compile(r"^[A-Z]{2}$")

DateValue = Union[date, str]


# =============================================================================
# Data Models
# =============================================================================


@dataclass
class Submitter:
    """Loop 1000A submitter (the clinic or its billing service)."""
    name: str
    submitter_id: str
    contact_name: str
    contact_phone: str
    contact_email: Optional[str] = None


@dataclass
class Receiver:
    """Loop 1000B receiver (the clearinghouse)."""
    name: str = TMHP_RECEIVER_NAME
    receiver_id: str = TMHP_RECEIVER_ID


@dataclass
class BillingProvider:
    """Loop 2010AA billing provider (organization)."""
    name: str
    npi: str
    tax_id: str
    taxonomy_code: str
    address1: str
    city: str
    state: str
    zip_code: str
    address2: Optional[str] = None


@dataclass
class RenderingProvider:
    """Loop 2310B rendering provider (individual therapist)."""
    npi: str
    last_name: str
    first_name: str = ""
    taxonomy_code: Optional[str] = None


@dataclass
class Subscriber:
    """Loop 2010BA subscriber; the patient is always the subscriber (SBR02=18)."""
    first_name: str
    last_name: str
    date_of_birth: Optional[DateValue]
    gender: str  # M, F, U
    member_id: str
    address1: str
    city: str
    state: str
    zip_code: str
    address2: Optional[str] = None


@dataclass
class Payer:
    """Loop 2010BB payer."""
    name: str = TEXAS_MEDICAID_PAYER_NAME
    payer_id: str = TEXAS_MEDICAID_PAYER_ID


@dataclass
class ServiceLine:
    """Loop 2400 service line."""
    cpt_code: str
    charge_amount: Decimal
    units: Decimal
    date_of_service: Optional[DateValue]
    diagnosis_pointers: List[int] = field(default_factory=lambda: [1])
    modifiers: List[str] = field(default_factory=list)
    line_number: Optional[int] = None


@dataclass
class ClaimHeader:
    """Loop 2300 claim information."""
    claim_id: str
    total_charge: Decimal
    place_of_service: str
    diagnosis_codes: List[str]
    frequency_code: str = "1"  # 1=Original, 7=Replacement, 8=Void
    prior_authorization: Optional[str] = None


@dataclass
class ClaimInput:
    """Complete 837P generator input."""
    submitter: Submitter
    billing_provider: BillingProvider
    subscriber: Subscriber
    claim: ClaimHeader
    service_lines: List[ServiceLine]
    payer: Payer = field(default_factory=Payer)
    receiver: Receiver = field(default_factory=Receiver)
    rendering_provider: Optional[RenderingProvider] = None


# =============================================================================
# Helpers
# =============================================================================


def normalize_diagnosis_code(code: str) -> str:
    """ICD-10 codes travel without the period (M54.5 -> M545)."""
    return edi_clean(code).replace(".", "").replace(" ", "").upper()


def _amount(value) -> Optional[Decimal]:
    try:
        return to_decimal(value)
    except (ValueError, InvalidOperation):
        return None


def _as_service_date(value: Optional[DateValue]) -> Optional[str]:
    if value is None or value == "":
        return None
    try:
        return edi_date(value)
    except ValueError:
        return None


# =============================================================================
# Generator
# =============================================================================


class X12837PGenerator(X12EnvelopeWriter):
    """
    X12 837P Professional Claim Generator.

    Usage:
        generator = X12837PGenerator(usage_indicator="T")
        result = generator.generate(claim_input)
        if result.success:
            upload(result.edi_content)
    """

    TRANSACTION_SET_ID = "837"
    FUNCTIONAL_ID = "HC"
    VERSION = "005010X222A1"

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    def validate(self, data: ClaimInput) -> List[ValidationIssue]:
        """Collect every structural problem with the input."""
        errors: List[ValidationIssue] = []
        self._validate_submitter(data.submitter, errors)
        self._validate_billing_provider(data.billing_provider, errors)
        self._validate_subscriber(data.subscriber, errors)
        require(errors, data.payer.name, "payer.name", "Payer name", self.delimiters)
        require(errors, data.payer.payer_id, "payer.payer_id", "Payer ID", self.delimiters)
        require(errors, data.receiver.receiver_id, "receiver.receiver_id", "Receiver ID", self.delimiters)
        if data.rendering_provider is not None:
            self._validate_rendering_provider(data.rendering_provider, errors)
        self._validate_claim(data.claim, data.service_lines, errors)
        return errors

    def _validate_submitter(self, submitter: Submitter, errors: List[ValidationIssue]) -> None:
        require(errors, submitter.name, "submitter.name", "Submitter name", self.delimiters)
        require(errors, submitter.submitter_id, "submitter.submitter_id", "Submitter ID", self.delimiters)
        require(errors, submitter.contact_name, "submitter.contact_name", "Submitter contact name", self.delimiters)
        if len(digits_only(submitter.contact_phone)) < 10:
            errors.append(ValidationIssue(
                "submitter.contact_phone",
                "Submitter contact phone must have at least 10 digits",
            ))

    def _validate_billing_provider(self, provider: BillingProvider, errors: List[ValidationIssue]) -> None:
        npi = format_npi(provider.npi)
        if not npi:
            errors.append(ValidationIssue("billing_provider.npi", "Billing provider NPI is required"))
        elif not validate_npi(npi):
            errors.append(ValidationIssue(
                "billing_provider.npi",
                f"Billing provider NPI '{npi}' must be a valid 10-digit NPI",
            ))
        tax_id = format_tax_id(provider.tax_id)
        if not tax_id:
            errors.append(ValidationIssue("billing_provider.tax_id", "Billing provider Tax ID is required"))
        elif len(tax_id) != 9:
            errors.append(ValidationIssue("billing_provider.tax_id", "Billing provider Tax ID must be 9 digits"))
        require(errors, provider.taxonomy_code, "billing_provider.taxonomy_code",
                "Billing provider taxonomy code", self.delimiters)
        require(errors, provider.name, "billing_provider.name", "Billing provider name", self.delimiters)
        self._validate_address("billing_provider", "Billing provider", provider.address1,
                               provider.city, provider.state, provider.zip_code, errors)

    def _validate_subscriber(self, subscriber: Subscriber, errors: List[ValidationIssue]) -> None:
        require(errors, subscriber.first_name, "subscriber.first_name", "Patient first name", self.delimiters)
        require(errors, subscriber.last_name, "subscriber.last_name", "Patient last name", self.delimiters)
        if _as_service_date(subscriber.date_of_birth) is None:
            errors.append(ValidationIssue("subscriber.date_of_birth", "Patient date of birth is required"))
        if subscriber.gender not in ("M", "F", "U"):
            errors.append(ValidationIssue("subscriber.gender", "Patient gender must be M, F, or U"))
        require(errors, subscriber.member_id, "subscriber.member_id", "Patient Medicaid ID", self.delimiters)
        self._validate_address("subscriber", "Patient", subscriber.address1,
                               subscriber.city, subscriber.state, subscriber.zip_code, errors)

    def _validate_rendering_provider(self, provider: RenderingProvider, errors: List[ValidationIssue]) -> None:
        npi = format_npi(provider.npi)
        if npi and not validate_npi(npi):
            errors.append(ValidationIssue(
                "rendering_provider.npi",
                f"Rendering provider NPI '{npi}' must be a valid 10-digit NPI",
            ))
        if npi:
            require(errors, provider.last_name, "rendering_provider.last_name",
                    "Rendering provider last name", self.delimiters)

    def _validate_address(self, prefix, label, address1, city, state, zip_code, errors) -> None:
        require(errors, address1, f"{prefix}.address1", f"{label} address", self.delimiters)
        require(errors, city, f"{prefix}.city", f"{label} city", self.delimiters)
        if not _STATE_PATTERN.match(edi_clean(state).upper()):
            errors.append(ValidationIssue(f"{prefix}.state", f"{label} state must be a 2-letter code"))
        if len(digits_only(zip_code)) not in (5, 9):
            errors.append(ValidationIssue(f"{prefix}.zip_code", f"{label} ZIP must be 5 or 9 digits"))

    def _validate_claim(
        self,
        claim: ClaimHeader,
        lines: List[ServiceLine],
        errors: List[ValidationIssue],
    ) -> None:
        require(errors, claim.claim_id, "claim.claim_id", "Claim ID", self.delimiters)
        total = _amount(claim.total_charge)
        if total is None or total <= 0:
            errors.append(ValidationIssue("claim.total_charge", "Claim total charge must be greater than 0"))
        require(errors, claim.place_of_service, "claim.place_of_service", "Place of service", self.delimiters)

        codes = [normalize_diagnosis_code(code) for code in claim.diagnosis_codes]
        if not codes:
            errors.append(ValidationIssue("claim.diagnosis_codes", "At least one diagnosis code is required"))
        elif len(codes) > MAX_DIAGNOSIS_CODES:
            errors.append(ValidationIssue(
                "claim.diagnosis_codes",
                f"At most {MAX_DIAGNOSIS_CODES} diagnosis codes are allowed",
            ))
        for position, code in enumerate(codes, start=1):
            if not _ICD10_PATTERN.match(code):
                errors.append(ValidationIssue(
                    f"claim.diagnosis_codes[{position}]",
                    f"Diagnosis code {position} '{code}' is not a valid ICD-10 code",
                ))

        if not lines:
            errors.append(ValidationIssue("service_lines", "At least one service line is required"))
            return

        line_total = Decimal("0")
        for index, line in enumerate(lines, start=1):
            label = f"Service line {index}"
            prefix = f"service_lines[{index}]"
            cpt = edi_clean(line.cpt_code).upper()
            if not _CPT_PATTERN.match(cpt):
                errors.append(ValidationIssue(f"{prefix}.cpt_code", f"{label}: CPT code '{cpt}' must be 5 characters"))
            charge = _amount(line.charge_amount)
            if charge is None or charge <= 0:
                errors.append(ValidationIssue(f"{prefix}.charge_amount", f"{label}: charge must be greater than 0"))
            else:
                line_total += charge
            units = _amount(line.units)
            if units is None or units <= 0:
                errors.append(ValidationIssue(f"{prefix}.units", f"{label}: units must be greater than 0"))
            if _as_service_date(line.date_of_service) is None:
                errors.append(ValidationIssue(f"{prefix}.date_of_service", f"{label}: date of service is required"))

            pointers = line.diagnosis_pointers or []
            if not 1 <= len(pointers) <= MAX_POINTERS_PER_LINE:
                errors.append(ValidationIssue(
                    f"{prefix}.diagnosis_pointers",
                    f"{label}: between 1 and {MAX_POINTERS_PER_LINE} diagnosis pointers are required",
                ))
            for pointer in pointers:
                if isinstance(pointer, bool) or not isinstance(pointer, int) or not 1 <= pointer <= len(codes):
                    errors.append(ValidationIssue(
                        f"{prefix}.diagnosis_pointers",
                        f"{label}: diagnosis pointer {pointer} is outside 1..{len(codes)}",
                    ))

            modifiers = [m for m in (line.modifiers or []) if m]
            if len(modifiers) > MAX_MODIFIERS_PER_LINE:
                errors.append(ValidationIssue(
                    f"{prefix}.modifiers",
                    f"{label}: at most {MAX_MODIFIERS_PER_LINE} modifiers are allowed",
                ))
            for modifier in modifiers:
                if not _MODIFIER_PATTERN.match(edi_clean(modifier).upper()):
                    errors.append(ValidationIssue(
                        f"{prefix}.modifiers",
                        f"{label}: modifier '{modifier}' must be 2 characters",
                    ))

        if total is not None and total > 0 and not any(e.field.startswith("service_lines") for e in errors):
            if edi_decimal(line_total) != edi_decimal(total):
                errors.append(ValidationIssue(
                    "claim.total_charge",
                    f"Claim total {edi_decimal(total)} does not equal the sum of "
                    f"service line charges {edi_decimal(line_total)}",
                ))

    # -------------------------------------------------------------------------
    # Generation
    # -------------------------------------------------------------------------

    def generate(self, data: ClaimInput) -> GenerationResult:
        """
        Generate an 837P interchange.

        Returns:
            GenerationResult; check ``success`` before using ``edi_content``.
        """
        errors = self.validate(data)
        if errors:
            logger.warning(f"837P validation failed with {len(errors)} error(s)")
            return GenerationResult.failure(errors)

        now = self._clock()
        controls = self._new_control_numbers()
        txn = self._begin_transaction(controls)

        claim = data.claim
        txn.add("BHT", "0019", "00", edi_clean(claim.claim_id)[:30], edi_date(now), edi_time(now), "CH")

        self._build_submitter_loop(txn, data.submitter)
        txn.add("NM1", "40", "2", data.receiver.name, None, None, None, None, "46", data.receiver.receiver_id)
        self._build_billing_provider_loop(txn, data.billing_provider)
        self._build_subscriber_loop(txn, data.subscriber, data.payer)
        self._build_claim_loop(txn, claim)
        if data.rendering_provider is not None and format_npi(data.rendering_provider.npi):
            self._build_rendering_provider_loop(txn, data.rendering_provider)
        for number, line in enumerate(data.service_lines, start=1):
            self._build_service_line(txn, number, line)

        return self._build_interchange(
            txn,
            controls,
            sender_id=data.submitter.submitter_id,
            receiver_id=data.receiver.receiver_id,
            now=now,
        )

    def _build_submitter_loop(self, txn, submitter: Submitter) -> None:
        txn.add("NM1", "41", "2", submitter.name, None, None, None, None, "46", submitter.submitter_id)
        per = ["IC", submitter.contact_name, "TE", digits_only(submitter.contact_phone)]
        if submitter.contact_email:
            per += ["EM", submitter.contact_email]
        txn.add("PER", *per)

    def _build_billing_provider_loop(self, txn, provider: BillingProvider) -> None:
        txn.add("HL", "1", None, "20", "1")
        txn.add("PRV", "BI", "PXC", provider.taxonomy_code)
        txn.add("NM1", "85", "2", provider.name, None, None, None, None, "XX", format_npi(provider.npi))
        self._build_address(txn, provider.address1, provider.address2,
                            provider.city, provider.state, provider.zip_code)
        txn.add("REF", "EI", format_tax_id(provider.tax_id))

    def _build_subscriber_loop(self, txn, subscriber: Subscriber, payer: Payer) -> None:
        txn.add("HL", "2", "1", "22", "0")
        txn.add("SBR", "P", "18", None, None, None, None, None, None, "MC")
        txn.add("NM1", "IL", "1", subscriber.last_name, subscriber.first_name,
                None, None, None, "MI", subscriber.member_id)
        self._build_address(txn, subscriber.address1, subscriber.address2,
                            subscriber.city, subscriber.state, subscriber.zip_code)
        txn.add("DMG", "D8", edi_date(subscriber.date_of_birth), subscriber.gender)
        txn.add("NM1", "PR", "2", payer.name, None, None, None, None, "PI", payer.payer_id)

    def _build_address(self, txn, address1, address2, city, state, zip_code) -> None:
        if address2 and edi_clean(address2):
            txn.add("N3", address1, address2)
        else:
            txn.add("N3", address1)
        txn.add("N4", city, edi_clean(state).upper(), digits_only(zip_code))

    def _build_claim_loop(self, txn, claim: ClaimHeader) -> None:
        txn.add(
            "CLM",
            edi_clean(claim.claim_id)[:20],
            edi_decimal(claim.total_charge),
            None,
            None,
            Composite(claim.place_of_service, "B", claim.frequency_code or "1"),
            "Y",  # provider signature on file
            "A",  # assignment accepted
            "Y",  # benefits assigned
            "I",  # release of information: informed consent
        )
        if claim.prior_authorization and edi_clean(claim.prior_authorization):
            txn.add("REF", "G1", claim.prior_authorization)

        # First code is principal (ABK); order must match the SV107 pointers
        diagnoses = []
        for position, code in enumerate(claim.diagnosis_codes):
            qualifier = "ABK" if position == 0 else "ABF"
            diagnoses.append(Composite(qualifier, normalize_diagnosis_code(code)))
        txn.add("HI", *diagnoses)

    def _build_rendering_provider_loop(self, txn, provider: RenderingProvider) -> None:
        txn.add("NM1", "82", "1", provider.last_name, provider.first_name,
                None, None, None, "XX", format_npi(provider.npi))
        if provider.taxonomy_code and edi_clean(provider.taxonomy_code):
            txn.add("PRV", "PE", "PXC", provider.taxonomy_code)

    def _build_service_line(self, txn, number: int, line: ServiceLine) -> None:
        modifiers = [edi_clean(m).upper() for m in (line.modifiers or []) if m]
        txn.add("LX", str(number))
        txn.add(
            "SV1",
            Composite("HC", edi_clean(line.cpt_code).upper(), *modifiers),
            edi_decimal(line.charge_amount),
            "UN",
            edi_quantity(line.units),
            None,
            None,
            Composite(*[str(p) for p in line.diagnosis_pointers]),
        )
        txn.add("DTP", "472", "D8", edi_date(line.date_of_service))
