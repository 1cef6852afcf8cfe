"""
Claims EDI Service.

Orchestrates 837P generation for a stored claim: load rows, check the
clinic's billing setup, assemble and generate, persist the file, and
optionally deliver it to TMHP. Expected conditions come back as a
ClaimGenerationOutcome; only infrastructure faults raise.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, List, Optional
from uuid import UUID
import asyncio
import logging

from buckeye_edi.core.enums import ClaimStatus
from buckeye_edi.services.edi.claim_assembly import ClaimAssembler, check_billing_configuration
from buckeye_edi.services.edi.repository import BillingRepository
from buckeye_edi.services.edi.sftp_delivery import SftpUploadResult, TMHPSftpDelivery
from buckeye_edi.services.edi.x12_837_generator import X12837PGenerator
from buckeye_edi.services.edi.x12_base import GenerationResult

logger = logging.getLogger(__name__)

SFTP_NOT_CONFIGURED = (
    "TMHP SFTP credentials not configured. Set TMHP_SFTP_HOST, TMHP_SFTP_USERNAME, "
    "and TMHP_SFTP_PASSWORD or TMHP_SFTP_KEY_PATH."
)


class ClaimOutcomeKind(str, Enum):
    """Result category of a generation request."""
    GENERATED = "generated"
    NOT_FOUND = "not_found"
    MISSING_BILLING_CONFIG = "missing_billing_config"
    VALIDATION_FAILED = "validation_failed"
    CONFLICT = "conflict"


@dataclass
class ClaimGenerationOutcome:
    """
    Structured result for the claim submission endpoint.

    A GENERATED outcome always carries the generation result; ``delivery``
    is set only when SFTP submission was requested, and a failed delivery
    does not change ``kind``.
    """
    kind: ClaimOutcomeKind
    message: Optional[str] = None
    generation: Optional[GenerationResult] = None
    claim_status: Optional[ClaimStatus] = None
    missing_fields: List[str] = field(default_factory=list)
    delivery: Optional[SftpUploadResult] = None

    @property
    def success(self) -> bool:
        return self.kind == ClaimOutcomeKind.GENERATED


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ClaimsService:
    """
    837P generation and submission for stored claims.

    Usage:
        service = ClaimsService(repository, generator, assembler, delivery)
        outcome = await service.generate_claim(claim_id, submit_via_sftp=True)
    """

    def __init__(
        self,
        repository: BillingRepository,
        generator: X12837PGenerator,
        assembler: ClaimAssembler,
        delivery: Optional[TMHPSftpDelivery] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.repository = repository
        self.generator = generator
        self.assembler = assembler
        self.delivery = delivery
        self._clock = clock

    async def generate_claim(self, claim_id: UUID, submit_via_sftp: bool = False) -> ClaimGenerationOutcome:
        claim = await self.repository.get_claim(claim_id)
        if claim is None:
            return ClaimGenerationOutcome(ClaimOutcomeKind.NOT_FOUND, message="Claim not found")

        clinic = await self.repository.get_clinic(claim.clinic_id)
        if clinic is None:
            return ClaimGenerationOutcome(ClaimOutcomeKind.NOT_FOUND, message="Clinic not found")

        patient = await self.repository.get_patient(claim.patient_id)
        if patient is None:
            return ClaimGenerationOutcome(ClaimOutcomeKind.NOT_FOUND, message="Patient not found")

        missing = check_billing_configuration(clinic)
        if missing:
            return ClaimGenerationOutcome(
                ClaimOutcomeKind.MISSING_BILLING_CONFIG,
                message=f"Missing billing settings: {', '.join(missing)}. Configure in Settings > Billing.",
                missing_fields=missing,
            )

        claim_input = self.assembler.assemble(claim, claim.lines or [], clinic, patient)
        generation = self.generator.generate(claim_input)
        if not generation.success:
            return ClaimGenerationOutcome(
                ClaimOutcomeKind.VALIDATION_FAILED,
                message="Validation failed",
                generation=generation,
            )

        current_status = ClaimStatus(claim.status)
        new_status = ClaimStatus.GENERATED if current_status == ClaimStatus.DRAFT else current_status
        generated_at = self._clock()
        saved = await self.repository.update_claim(
            claim_id,
            expected_updated_at=claim.updated_at,
            values={
                "edi_file_content": generation.edi_content,
                "edi_generated_at": generated_at,
                "edi_control_number": generation.control_numbers.isa,
                "status": new_status,
            },
            updated_at=generated_at,
        )
        if not saved:
            return ClaimGenerationOutcome(
                ClaimOutcomeKind.CONFLICT,
                message="Claim was modified by another request; reload and retry",
                generation=generation,
                claim_status=current_status,
            )
        await self.repository.commit()
        logger.info(
            f"Stored 837P for claim {claim_id}: ISA13={generation.control_numbers.isa}, "
            f"{generation.segment_count} segments, status={new_status.value}"
        )

        outcome = ClaimGenerationOutcome(
            ClaimOutcomeKind.GENERATED,
            generation=generation,
            claim_status=new_status,
        )
        if submit_via_sftp:
            await self._deliver(claim_id, claim_input.submitter.submitter_id, generated_at, outcome)
        return outcome

    async def _deliver(
        self,
        claim_id: UUID,
        submitter_id: str,
        expected_updated_at: datetime,
        outcome: ClaimGenerationOutcome,
    ) -> None:
        """Upload the stored file; failures are recorded, never raised."""
        if self.delivery is None:
            outcome.delivery = SftpUploadResult(success=False, error=SFTP_NOT_CONFIGURED)
            return

        generation = outcome.generation
        result = await asyncio.to_thread(
            self.delivery.upload,
            generation.edi_content,
            submitter_id,
            generation.control_numbers.isa,
        )
        outcome.delivery = result

        now = self._clock()
        if result.success:
            values = {
                "status": ClaimStatus.SUBMITTED,
                "submitted_at": now,
                "notes": f"Submitted to TMHP via SFTP. File: {result.remote_file_path}",
            }
        else:
            values = {"notes": f"SFTP upload failed: {result.error}"}

        saved = await self.repository.update_claim(claim_id, expected_updated_at, values, updated_at=now)
        if not saved:
            # The upload already happened, so record it against the row as it is now
            logger.warning(f"Claim {claim_id} changed during delivery; re-reading before recording the result")
            current = await self.repository.get_claim(claim_id)
            if current is not None:
                saved = await self.repository.update_claim(claim_id, current.updated_at, values, updated_at=now)
        if not saved:
            logger.error(f"Delivery result for claim {claim_id} could not be recorded: {values['notes']}")
            outcome.message = f"Delivery result not recorded on the claim. {values['notes']}"
            return
        await self.repository.commit()
        if result.success:
            outcome.claim_status = ClaimStatus.SUBMITTED
