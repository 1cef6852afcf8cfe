"""
Billing Repository.

Data access for claim generation and eligibility checks. The Protocol is
what the services depend on; SqlAlchemyBillingRepository is the
production implementation over an AsyncSession.
"""

from datetime import datetime
from typing import Any, Dict, Optional, Protocol
from uuid import UUID
import logging

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from buckeye_edi.models.claim import Claim
from buckeye_edi.models.clinic import Clinic
from buckeye_edi.models.eligibility_check import EligibilityCheck
from buckeye_edi.models.patient import Patient

logger = logging.getLogger(__name__)


class BillingRepository(Protocol):
    """Storage operations used by the EDI services."""

    async def get_claim(self, claim_id: UUID) -> Optional[Any]:
        """Claim row with its ``lines`` loaded."""
        ...

    async def get_clinic(self, clinic_id: UUID) -> Optional[Any]:
        ...

    async def get_patient(self, patient_id: UUID) -> Optional[Any]:
        ...

    async def update_claim(
        self,
        claim_id: UUID,
        expected_updated_at: datetime,
        values: Dict[str, Any],
        updated_at: datetime,
    ) -> bool:
        """
        Compare-and-set update: applies ``values`` only if the row's
        updated_at still equals ``expected_updated_at``.
        """
        ...

    async def add_eligibility_check(self, values: Dict[str, Any]) -> Any:
        ...

    async def commit(self) -> None:
        ...


class SqlAlchemyBillingRepository:
    """BillingRepository over an async SQLAlchemy session."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_claim(self, claim_id: UUID) -> Optional[Claim]:
        result = await self.session.execute(
            select(Claim).options(selectinload(Claim.lines)).where(Claim.id == claim_id)
        )
        return result.scalar_one_or_none()

    async def get_clinic(self, clinic_id: UUID) -> Optional[Clinic]:
        return await self.session.get(Clinic, clinic_id)

    async def get_patient(self, patient_id: UUID) -> Optional[Patient]:
        return await self.session.get(Patient, patient_id)

    async def update_claim(
        self,
        claim_id: UUID,
        expected_updated_at: datetime,
        values: Dict[str, Any],
        updated_at: datetime,
    ) -> bool:
        result = await self.session.execute(
            update(Claim)
            .where(Claim.id == claim_id, Claim.updated_at == expected_updated_at)
            .values(**values, updated_at=updated_at)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            logger.warning(f"Claim {claim_id} changed concurrently; update skipped")
            return False
        return True

    async def add_eligibility_check(self, values: Dict[str, Any]) -> EligibilityCheck:
        check = EligibilityCheck(**values)
        self.session.add(check)
        await self.session.flush()
        return check

    async def commit(self) -> None:
        await self.session.commit()
