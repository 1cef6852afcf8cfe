"""
Unit Tests for ClaimsService.

Tests the generate/persist/deliver flow against the in-memory repository.
"""

import pytest
from datetime import datetime, timezone
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

from buckeye_edi.core.enums import ClaimStatus
from buckeye_edi.services.edi.claim_assembly import ClaimAssembler
from buckeye_edi.services.edi.claims_service import (
    SFTP_NOT_CONFIGURED,
    ClaimOutcomeKind,
    ClaimsService,
)
from buckeye_edi.services.edi.sftp_delivery import SftpUploadResult, TMHPSftpDelivery
from buckeye_edi.services.edi.x12_837_generator import X12837PGenerator

GENERATED_AT = datetime(2026, 3, 14, 9, 30, tzinfo=timezone.utc)


@pytest.fixture
def generator(fixed_clock, fixed_control_numbers):
    return X12837PGenerator(clock=fixed_clock, control_number_factory=fixed_control_numbers)


@pytest.fixture
def make_service(fake_repository, generator):
    def factory(delivery=None):
        return ClaimsService(
            fake_repository,
            generator,
            ClaimAssembler(),
            delivery=delivery,
            clock=lambda: GENERATED_AT,
        )
    return factory


@pytest.fixture
def sftp_delivery():
    return MagicMock(spec=TMHPSftpDelivery)


@pytest.mark.unit
class TestGenerateClaim:
    """Tests for ClaimsService.generate_claim without delivery."""

    @pytest.mark.asyncio
    async def test_generates_and_persists(self, make_service, fake_repository, claim_row):
        outcome = await make_service().generate_claim(claim_row.id)

        assert outcome.success
        assert outcome.kind == ClaimOutcomeKind.GENERATED
        assert outcome.claim_status == ClaimStatus.GENERATED
        assert outcome.delivery is None
        assert outcome.generation.control_numbers.isa == "000000123"

        assert claim_row.status == ClaimStatus.GENERATED
        assert claim_row.edi_file_content == outcome.generation.edi_content
        assert claim_row.edi_generated_at == GENERATED_AT
        assert claim_row.edi_control_number == "000000123"
        assert claim_row.updated_at == GENERATED_AT
        assert fake_repository.updates[0].expected_updated_at == datetime(2026, 3, 1, tzinfo=timezone.utc)
        assert fake_repository.commits == 1

    @pytest.mark.asyncio
    async def test_regeneration_keeps_later_status(self, make_service, claim_row):
        claim_row.status = "submitted"
        outcome = await make_service().generate_claim(claim_row.id)
        assert outcome.success
        assert outcome.claim_status == ClaimStatus.SUBMITTED
        assert claim_row.status == ClaimStatus.SUBMITTED

    @pytest.mark.asyncio
    async def test_claim_not_found(self, make_service, fake_repository):
        outcome = await make_service().generate_claim(uuid4())
        assert outcome.kind == ClaimOutcomeKind.NOT_FOUND
        assert outcome.message == "Claim not found"
        assert fake_repository.commits == 0

    @pytest.mark.asyncio
    async def test_clinic_not_found(self, make_service, fake_repository, claim_row):
        fake_repository.clinics.clear()
        outcome = await make_service().generate_claim(claim_row.id)
        assert outcome.kind == ClaimOutcomeKind.NOT_FOUND
        assert outcome.message == "Clinic not found"

    @pytest.mark.asyncio
    async def test_patient_not_found(self, make_service, fake_repository, claim_row):
        fake_repository.patients.clear()
        outcome = await make_service().generate_claim(claim_row.id)
        assert outcome.message == "Patient not found"

    @pytest.mark.asyncio
    async def test_missing_billing_configuration(self, make_service, fake_repository, claim_row, clinic_row):
        clinic_row.tax_id = None
        outcome = await make_service().generate_claim(claim_row.id)
        assert outcome.kind == ClaimOutcomeKind.MISSING_BILLING_CONFIG
        assert outcome.missing_fields == ["Tax ID"]
        assert outcome.message == "Missing billing settings: Tax ID. Configure in Settings > Billing."
        assert fake_repository.updates == []

    @pytest.mark.asyncio
    async def test_validation_failure_is_not_persisted(self, make_service, fake_repository, claim_row):
        claim_row.total_charges = Decimal("100.00")
        outcome = await make_service().generate_claim(claim_row.id)
        assert outcome.kind == ClaimOutcomeKind.VALIDATION_FAILED
        assert outcome.message == "Validation failed"
        assert outcome.generation.error_messages == [
            "Claim total 100.00 does not equal the sum of service line charges 170.00"
        ]
        assert claim_row.status == "draft"
        assert fake_repository.updates == []
        assert fake_repository.commits == 0

    @pytest.mark.asyncio
    async def test_concurrent_modification_is_conflict(self, make_service, fake_repository, claim_row):
        fake_repository.update_claim = AsyncMock(return_value=False)
        outcome = await make_service().generate_claim(claim_row.id)
        assert outcome.kind == ClaimOutcomeKind.CONFLICT
        assert outcome.claim_status == ClaimStatus.DRAFT
        assert fake_repository.commits == 0

    @pytest.mark.asyncio
    async def test_stale_timestamp_is_conflict(self, make_service, fake_repository, claim_row):
        original_get = fake_repository.get_claim

        async def get_then_touch(claim_id):
            row = await original_get(claim_id)
            # Another writer saves between our read and our write
            fake_repository.claims[claim_id] = SimpleNamespace(**{**vars(row), "updated_at": GENERATED_AT})
            return row

        fake_repository.get_claim = get_then_touch
        outcome = await make_service().generate_claim(claim_row.id)
        assert outcome.kind == ClaimOutcomeKind.CONFLICT


@pytest.mark.unit
class TestSftpSubmission:
    """Tests for delivery after generation."""

    @pytest.mark.asyncio
    async def test_successful_upload_marks_submitted(self, make_service, fake_repository, claim_row, sftp_delivery):
        sftp_delivery.upload.return_value = SftpUploadResult(
            success=True, remote_file_path="/inbound/837P_BUCKEYE01.edi", file_size=900
        )
        outcome = await make_service(sftp_delivery).generate_claim(claim_row.id, submit_via_sftp=True)

        assert outcome.success
        assert outcome.delivery.success
        assert outcome.claim_status == ClaimStatus.SUBMITTED
        sftp_delivery.upload.assert_called_once_with(
            outcome.generation.edi_content, "BUCKEYE01", "000000123"
        )
        assert claim_row.status == ClaimStatus.SUBMITTED
        assert claim_row.submitted_at == GENERATED_AT
        assert claim_row.notes == "Submitted to TMHP via SFTP. File: /inbound/837P_BUCKEYE01.edi"
        assert fake_repository.commits == 2

    @pytest.mark.asyncio
    async def test_failed_upload_keeps_generated_file(self, make_service, fake_repository, claim_row, sftp_delivery):
        sftp_delivery.upload.return_value = SftpUploadResult(success=False, error="Permission denied")
        outcome = await make_service(sftp_delivery).generate_claim(claim_row.id, submit_via_sftp=True)

        assert outcome.success
        assert not outcome.delivery.success
        assert outcome.claim_status == ClaimStatus.GENERATED
        assert claim_row.status == ClaimStatus.GENERATED
        assert claim_row.edi_file_content == outcome.generation.edi_content
        assert claim_row.notes == "SFTP upload failed: Permission denied"
        assert claim_row.submitted_at is None

    @pytest.mark.asyncio
    async def test_not_configured(self, make_service, fake_repository, claim_row):
        outcome = await make_service(None).generate_claim(claim_row.id, submit_via_sftp=True)
        assert outcome.success
        assert outcome.delivery.success is False
        assert outcome.delivery.error == SFTP_NOT_CONFIGURED
        assert claim_row.notes is None
        assert fake_repository.commits == 1

    @pytest.mark.asyncio
    async def test_no_upload_unless_requested(self, make_service, claim_row, sftp_delivery):
        outcome = await make_service(sftp_delivery).generate_claim(claim_row.id)
        assert outcome.delivery is None
        sftp_delivery.upload.assert_not_called()

    @pytest.mark.asyncio
    async def test_upload_recorded_after_concurrent_edit(self, make_service, fake_repository, claim_row,
                                                         sftp_delivery):
        edited_at = datetime(2026, 3, 14, 9, 31, tzinfo=timezone.utc)

        def upload_while_claim_is_edited(*args):
            claim_row.updated_at = edited_at
            return SftpUploadResult(success=True, remote_file_path="/inbound/837P_BUCKEYE01.edi", file_size=900)

        sftp_delivery.upload.side_effect = upload_while_claim_is_edited
        outcome = await make_service(sftp_delivery).generate_claim(claim_row.id, submit_via_sftp=True)

        assert outcome.claim_status == ClaimStatus.SUBMITTED
        assert outcome.message is None
        assert claim_row.status == ClaimStatus.SUBMITTED
        assert claim_row.submitted_at == GENERATED_AT
        assert claim_row.notes == "Submitted to TMHP via SFTP. File: /inbound/837P_BUCKEYE01.edi"
        assert fake_repository.updates[-1].expected_updated_at == edited_at
        assert fake_repository.commits == 2

    @pytest.mark.asyncio
    async def test_unrecorded_upload_is_reported(self, make_service, fake_repository, claim_row, sftp_delivery):
        sftp_delivery.upload.return_value = SftpUploadResult(
            success=True, remote_file_path="/inbound/837P_BUCKEYE01.edi", file_size=900
        )
        fake_repository.update_claim = AsyncMock(side_effect=[True, False, False])
        outcome = await make_service(sftp_delivery).generate_claim(claim_row.id, submit_via_sftp=True)

        assert outcome.delivery.success
        assert outcome.claim_status == ClaimStatus.GENERATED
        assert outcome.message == (
            "Delivery result not recorded on the claim. "
            "Submitted to TMHP via SFTP. File: /inbound/837P_BUCKEYE01.edi"
        )
        assert fake_repository.update_claim.await_count == 3
        assert fake_repository.commits == 1
