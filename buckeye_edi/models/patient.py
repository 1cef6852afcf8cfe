"""
Patient Model.
"""

from datetime import date
from typing import Optional
from uuid import UUID

from sqlalchemy import Date, ForeignKey, String
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column

from buckeye_edi.models.base import Base, TimeStampedModel, UUIDModel


class Patient(Base, UUIDModel, TimeStampedModel):
    """Patient demographics and coverage identifiers."""

    __tablename__ = "patients"

    clinic_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("clinics.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    date_of_birth: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    gender: Mapped[Optional[str]] = mapped_column(
        String(20),
        nullable=True,
        comment="Free-form gender as entered at intake",
    )

    # Address: structured columns, or a single line "street, city, ST zip"
    address: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    address2: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    city: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    state: Mapped[Optional[str]] = mapped_column(String(2), nullable=True)
    zip_code: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)

    # Coverage
    medicaid_id: Mapped[Optional[str]] = mapped_column(String(30), nullable=True, index=True)
    subscriber_id: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    insurance_id: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    payer_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    payer_id: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)

    def __repr__(self) -> str:
        return f"<Patient(id={self.id})>"
