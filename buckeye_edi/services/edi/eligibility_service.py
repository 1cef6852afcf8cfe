"""
Eligibility Service.

File-mode eligibility: builds a 270 inquiry for a patient and records it
as a pending eligibility check. The file is uploaded to the payer portal
by the clinic; the 271 answer is attached to the record later.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Callable, List, Optional
from uuid import UUID
import logging

from buckeye_edi.core.enums import EligibilityCheckStatus
from buckeye_edi.services.edi.claim_assembly import AssemblyDefaults, normalize_gender
from buckeye_edi.services.edi.repository import BillingRepository
from buckeye_edi.services.edi.x12_270_generator import (
    EligibilityInquiry,
    InquiryPayer,
    InquiryProvider,
    InquirySubscriber,
    ServiceTypeCode,
    X12270Generator,
)
from buckeye_edi.services.edi.x12_base import GenerationResult, format_npi

logger = logging.getLogger(__name__)

MISSING_MEDICAID_ID = "Patient Medicaid ID is required for eligibility check"


class EligibilityOutcomeKind(str, Enum):
    CREATED = "created"
    NOT_FOUND = "not_found"
    MISSING_MEDICAID_ID = "missing_medicaid_id"
    VALIDATION_FAILED = "validation_failed"


@dataclass
class EligibilityOutcome:
    """Result of an eligibility inquiry request."""
    kind: EligibilityOutcomeKind
    message: Optional[str] = None
    mode: str = "file"
    check_id: Optional[UUID] = None
    generation: Optional[GenerationResult] = None
    errors: List[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.kind == EligibilityOutcomeKind.CREATED


class EligibilityService:
    """
    Creates 270 inquiries and their eligibility_checks records.

    Usage:
        service = EligibilityService(repository, X12270Generator())
        outcome = await service.create_inquiry(patient_id, clinic_id)
    """

    def __init__(
        self,
        repository: BillingRepository,
        generator: X12270Generator,
        defaults: Optional[AssemblyDefaults] = None,
        default_service_type: str = ServiceTypeCode.HEALTH_BENEFIT_PLAN_COVERAGE.value,
        today: Callable[[], date] = lambda: datetime.now(timezone.utc).date(),
    ):
        self.repository = repository
        self.generator = generator
        self.defaults = defaults or AssemblyDefaults()
        self.default_service_type = default_service_type
        self._today = today

    async def create_inquiry(
        self,
        patient_id: UUID,
        clinic_id: UUID,
        service_type: Optional[str] = None,
        date_of_service: Optional[date] = None,
        checked_by: Optional[str] = None,
    ) -> EligibilityOutcome:
        patient = await self.repository.get_patient(patient_id)
        if patient is None:
            return EligibilityOutcome(EligibilityOutcomeKind.NOT_FOUND, message="Patient not found")
        clinic = await self.repository.get_clinic(clinic_id)
        if clinic is None:
            return EligibilityOutcome(EligibilityOutcomeKind.NOT_FOUND, message="Clinic not found")

        medicaid_id = (patient.medicaid_id or "").strip()
        if not medicaid_id:
            return EligibilityOutcome(EligibilityOutcomeKind.MISSING_MEDICAID_ID, message=MISSING_MEDICAID_ID)

        service_date = date_of_service or self._today()
        service_type = service_type or self.default_service_type
        npi = format_npi(clinic.billing_npi)
        inquiry = EligibilityInquiry(
            submitter_id=(clinic.submitter_id or "").strip() or self.defaults.submitter_id or npi,
            payer=InquiryPayer(
                payer_id=(patient.payer_id or "").strip() or self.defaults.payer_id,
                name=(patient.payer_name or "").strip() or self.defaults.payer_name,
            ),
            provider=InquiryProvider(npi=npi, name=clinic.name or ""),
            subscriber=InquirySubscriber(
                member_id=medicaid_id,
                first_name=patient.first_name or "",
                last_name=patient.last_name or "",
                date_of_birth=patient.date_of_birth,
                gender=normalize_gender(patient.gender),
            ),
            date_of_service=service_date,
            service_type_code=service_type,
        )

        generation = self.generator.generate(inquiry)
        if not generation.success:
            return EligibilityOutcome(
                EligibilityOutcomeKind.VALIDATION_FAILED,
                message="Validation failed",
                generation=generation,
                errors=generation.error_messages,
            )

        check = await self.repository.add_eligibility_check({
            "clinic_id": clinic_id,
            "patient_id": patient_id,
            "medicaid_id": medicaid_id,
            "patient_first_name": patient.first_name,
            "patient_last_name": patient.last_name,
            "patient_dob": patient.date_of_birth,
            "check_date": service_date,
            "service_type": service_type,
            "status": EligibilityCheckStatus.PENDING,
            "edi_270_content": generation.edi_content,
            "checked_by": checked_by,
        })
        await self.repository.commit()
        logger.info(f"Created eligibility check {check.id}: ISA13={generation.control_numbers.isa}")

        return EligibilityOutcome(
            EligibilityOutcomeKind.CREATED,
            check_id=check.id,
            generation=generation,
        )
