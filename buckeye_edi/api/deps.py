"""
FastAPI Dependencies
Builds the EDI services from settings and the request's database session.
Source: https://fastapi.tiangolo.com/tutorial/dependencies/
Verified: 2026-10-16
"""

from typing import Optional

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from buckeye_edi.core.config import EDISettings, TMHPSftpSettings, get_edi_settings, get_sftp_settings
from buckeye_edi.db.connection import get_session
from buckeye_edi.services.edi.claim_assembly import AssemblyDefaults, ClaimAssembler
from buckeye_edi.services.edi.claims_service import ClaimsService
from buckeye_edi.services.edi.eligibility_service import EligibilityService
from buckeye_edi.services.edi.repository import BillingRepository, SqlAlchemyBillingRepository
from buckeye_edi.services.edi.sftp_delivery import TMHPSftpDelivery
from buckeye_edi.services.edi.x12_270_generator import X12270Generator
from buckeye_edi.services.edi.x12_837_generator import X12837PGenerator
from buckeye_edi.services.edi.x12_835_parser import X12835Parser


def get_repository(session: AsyncSession = Depends(get_session)) -> BillingRepository:
    return SqlAlchemyBillingRepository(session)


def get_assembly_defaults(edi: EDISettings = Depends(get_edi_settings)) -> AssemblyDefaults:
    return AssemblyDefaults(
        taxonomy_code=edi.DEFAULT_TAXONOMY_CODE,
        place_of_service=edi.DEFAULT_PLACE_OF_SERVICE,
        payer_name=edi.DEFAULT_PAYER_NAME,
        payer_id=edi.DEFAULT_PAYER_ID,
        receiver_name=edi.RECEIVER_NAME,
        receiver_id=edi.RECEIVER_ID,
        submitter_id=edi.DEFAULT_SUBMITTER_ID,
    )


def get_claim_generator(edi: EDISettings = Depends(get_edi_settings)) -> X12837PGenerator:
    return X12837PGenerator(
        delimiters=edi.delimiters,
        usage_indicator=edi.USAGE_INDICATOR.value,
        sender_qualifier=edi.SENDER_QUALIFIER,
        receiver_qualifier=edi.RECEIVER_QUALIFIER,
    )


def get_eligibility_generator(edi: EDISettings = Depends(get_edi_settings)) -> X12270Generator:
    return X12270Generator(
        delimiters=edi.delimiters,
        usage_indicator=edi.USAGE_INDICATOR.value,
        sender_qualifier=edi.SENDER_QUALIFIER,
        receiver_qualifier=edi.RECEIVER_QUALIFIER,
    )


def get_remittance_parser() -> X12835Parser:
    return X12835Parser()


def get_sftp_delivery(sftp: TMHPSftpSettings = Depends(get_sftp_settings)) -> Optional[TMHPSftpDelivery]:
    """TMHP delivery adapter, or None when credentials are not configured."""
    if not sftp.is_configured:
        return None
    return TMHPSftpDelivery(sftp.to_config())


def get_claims_service(
    repository: BillingRepository = Depends(get_repository),
    generator: X12837PGenerator = Depends(get_claim_generator),
    defaults: AssemblyDefaults = Depends(get_assembly_defaults),
    delivery: Optional[TMHPSftpDelivery] = Depends(get_sftp_delivery),
) -> ClaimsService:
    return ClaimsService(repository, generator, ClaimAssembler(defaults), delivery)


def get_eligibility_service(
    repository: BillingRepository = Depends(get_repository),
    generator: X12270Generator = Depends(get_eligibility_generator),
    defaults: AssemblyDefaults = Depends(get_assembly_defaults),
    edi: EDISettings = Depends(get_edi_settings),
) -> EligibilityService:
    return EligibilityService(
        repository,
        generator,
        defaults=defaults,
        default_service_type=edi.DEFAULT_SERVICE_TYPE_CODE,
    )
