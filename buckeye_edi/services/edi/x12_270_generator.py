"""
X12 270 Eligibility Inquiry Generator.

Source: ASC X12N 005010X279A1 Health Care Eligibility Benefit Inquiry
Verified: 2026-10-16

Generates 270 files for manual upload to the clearinghouse when no
real-time eligibility check is available. One subscriber per file.
"""

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import List, Optional, Union
import logging

from buckeye_edi.services.edi.x12_base import (
    GenerationResult,
    ValidationIssue,
    edi_date,
    edi_time,
    format_npi,
    require,
)
from buckeye_edi.services.edi.x12_envelope import X12EnvelopeWriter

logger = logging.getLogger(__name__)


# =============================================================================
# Enums
# =============================================================================


class ServiceTypeCode(str, Enum):
    """X12 service type codes relevant to outpatient therapy."""
    MEDICAL_CARE = "1"
    HEALTH_BENEFIT_PLAN_COVERAGE = "30"
    HOSPITAL_OUTPATIENT = "50"
    OCCUPATIONAL_THERAPY = "AD"
    PHYSICAL_THERAPY = "PT"
    SPEECH_THERAPY = "AF"
    REHABILITATION = "A9"


# =============================================================================
# Data Models
# =============================================================================


@dataclass
class InquiryPayer:
    """Information source (Loop 2100A)."""
    payer_id: str
    name: str


@dataclass
class InquiryProvider:
    """Information receiver (Loop 2100B)."""
    npi: str
    name: str


@dataclass
class InquirySubscriber:
    """Subscriber (Loop 2100C)."""
    member_id: str
    first_name: str
    last_name: str
    date_of_birth: Optional[Union[date, str]] = None
    gender: str = "U"  # M, F, U


@dataclass
class EligibilityInquiry:
    """Complete eligibility inquiry request."""
    submitter_id: str
    payer: InquiryPayer
    provider: InquiryProvider
    subscriber: InquirySubscriber
    date_of_service: Union[date, str]
    service_type_code: str = ServiceTypeCode.HEALTH_BENEFIT_PLAN_COVERAGE.value


def _is_date(value) -> bool:
    try:
        edi_date(value)
    except (TypeError, ValueError):
        return False
    return True


# =============================================================================
# Generator
# =============================================================================


class X12270Generator(X12EnvelopeWriter):
    """
    X12 270 Eligibility Inquiry Generator.

    The generator only checks structural completeness; business rules
    (such as requiring a Medicaid ID before building an inquiry) belong to
    the caller.

    Usage:
        generator = X12270Generator()
        inquiry = EligibilityInquiry(
            submitter_id="BUCKEYE01",
            payer=InquiryPayer(payer_id="330897513", name="Texas Medicaid"),
            provider=InquiryProvider(npi="1234567893", name="Buckeye PT"),
            subscriber=InquirySubscriber(member_id="123456789", first_name="Jane", last_name="Doe"),
            date_of_service=date.today(),
        )
        result = generator.generate(inquiry)
    """

    TRANSACTION_SET_ID = "270"
    FUNCTIONAL_ID = "HS"
    VERSION = "005010X279A1"

    def validate(self, inquiry: EligibilityInquiry) -> List[ValidationIssue]:
        errors: List[ValidationIssue] = []
        require(errors, inquiry.submitter_id, "submitter_id", "Submitter ID", self.delimiters)
        require(errors, inquiry.payer.name, "payer.name", "Payer name", self.delimiters)
        require(errors, inquiry.payer.payer_id, "payer.payer_id", "Payer ID", self.delimiters)
        require(errors, inquiry.provider.name, "provider.name", "Provider name", self.delimiters)
        if len(format_npi(inquiry.provider.npi)) != 10:
            errors.append(ValidationIssue("provider.npi", "Provider NPI must be 10 digits"))
        require(errors, inquiry.subscriber.member_id, "subscriber.member_id", "Subscriber member ID", self.delimiters)
        require(errors, inquiry.subscriber.first_name, "subscriber.first_name", "Subscriber first name", self.delimiters)
        require(errors, inquiry.subscriber.last_name, "subscriber.last_name", "Subscriber last name", self.delimiters)
        if inquiry.subscriber.gender not in ("M", "F", "U"):
            errors.append(ValidationIssue("subscriber.gender", "Subscriber gender must be M, F, or U"))
        require(errors, inquiry.service_type_code, "service_type_code", "Service type code", self.delimiters)
        if not _is_date(inquiry.date_of_service):
            errors.append(ValidationIssue("date_of_service", "Date of service is not a valid date"))
        dob = inquiry.subscriber.date_of_birth
        if dob not in (None, "") and not _is_date(dob):
            errors.append(ValidationIssue("subscriber.date_of_birth", "Subscriber date of birth is not a valid date"))
        return errors

    def generate(self, inquiry: EligibilityInquiry) -> GenerationResult:
        """
        Generate a 270 interchange.

        Control numbers are fresh on every call; everything else is a pure
        function of the inquiry and the clock.
        """
        errors = self.validate(inquiry)
        if errors:
            logger.warning(f"270 validation failed with {len(errors)} error(s)")
            return GenerationResult.failure(errors)

        now = self._clock()
        controls = self._new_control_numbers()
        npi = format_npi(inquiry.provider.npi)
        txn = self._begin_transaction(controls)

        txn.add("BHT", "0022", "13", self._new_reference(), edi_date(now), edi_time(now))

        # Loop 2000A/2100A - Information source (payer)
        txn.add("HL", "1", None, "20", "1")
        txn.add("NM1", "PR", "2", inquiry.payer.name, None, None, None, None, "PI", inquiry.payer.payer_id)

        # Loop 2000B/2100B - Information receiver (provider)
        txn.add("HL", "2", "1", "21", "1")
        txn.add("NM1", "1P", "2", inquiry.provider.name, None, None, None, None, "XX", npi)

        # Loop 2000C/2100C - Subscriber
        subscriber = inquiry.subscriber
        txn.add("HL", "3", "2", "22", "0")
        # TRN02 trace; TRN03 originator is "1" + provider NPI
        txn.add("TRN", "1", self._new_reference(), "1" + npi)
        txn.add("NM1", "IL", "1", subscriber.last_name, subscriber.first_name,
                None, None, None, "MI", subscriber.member_id)
        if subscriber.date_of_birth:
            txn.add("DMG", "D8", edi_date(subscriber.date_of_birth), subscriber.gender)
        txn.add("DTP", "291", "D8", edi_date(inquiry.date_of_service))
        txn.add("EQ", inquiry.service_type_code)

        return self._build_interchange(
            txn,
            controls,
            sender_id=inquiry.submitter_id,
            receiver_id=inquiry.payer.payer_id,
            now=now,
        )
