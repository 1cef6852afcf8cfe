"""
Eligibility Check Model.
Audit trail of 270 inquiries and their 271 responses.
"""

from datetime import date, datetime
from typing import Any, Optional
from uuid import UUID

from sqlalchemy import Date, DateTime, ForeignKey, String, Text, func
from sqlalchemy.dialects.postgresql import JSONB, UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column

from buckeye_edi.core.enums import EligibilityCheckStatus
from buckeye_edi.models.base import Base, UUIDModel, value_enum


class EligibilityCheck(Base, UUIDModel):
    """One eligibility inquiry for a patient."""

    __tablename__ = "eligibility_checks"

    clinic_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("clinics.id", ondelete="CASCADE"),
        nullable=False,
    )
    patient_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("patients.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Snapshot of what was asked
    medicaid_id: Mapped[str] = mapped_column(String(30), nullable=False)
    patient_first_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    patient_last_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    patient_dob: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    check_date: Mapped[date] = mapped_column(Date, nullable=False)
    service_type: Mapped[str] = mapped_column(String(3), default="30", nullable=False)

    status: Mapped[EligibilityCheckStatus] = mapped_column(
        value_enum(EligibilityCheckStatus, "eligibility_check_status"),
        default=EligibilityCheckStatus.PENDING,
        nullable=False,
    )
    edi_270_content: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    edi_271_content: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    response_data: Mapped[Optional[dict[str, Any]]] = mapped_column(JSONB, nullable=True)
    error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    checked_by: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<EligibilityCheck(id={self.id}, status={self.status})>"
