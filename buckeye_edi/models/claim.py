"""
Claim Models for Medicaid Billing.
Claims, their service lines, and the generated 837P artifact.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from sqlalchemy import Date, DateTime, ForeignKey, Index, Integer, Numeric, String, Text
from sqlalchemy.dialects.postgresql import ARRAY, UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from buckeye_edi.core.enums import ClaimStatus
from buckeye_edi.models.base import Base, TimeStampedModel, UUIDModel, value_enum


class Claim(Base, UUIDModel, TimeStampedModel):
    """
    Professional claim for one patient episode.

    Generated EDI content is stored on the row; regenerating replaces it
    with a new file carrying new control numbers.
    """

    __tablename__ = "claims"

    clinic_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("clinics.id", ondelete="CASCADE"),
        nullable=False,
    )
    patient_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("patients.id", ondelete="CASCADE"),
        nullable=False,
    )
    episode_id: Mapped[Optional[UUID]] = mapped_column(PG_UUID(as_uuid=True), nullable=True)

    claim_number: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    payer_name: Mapped[str] = mapped_column(String(100), default="Texas Medicaid", nullable=False)
    payer_id: Mapped[str] = mapped_column(String(30), default="330897513", nullable=False)
    subscriber_id: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)

    total_charges: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"), nullable=False)
    diagnosis_codes: Mapped[list] = mapped_column(
        ARRAY(String),
        default=list,
        nullable=False,
        comment="ICD-10 codes; position 1 is principal",
    )
    rendering_provider_npi: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    rendering_provider_name: Mapped[Optional[str]] = mapped_column(
        String(200),
        nullable=True,
        comment="Stored as 'Last, First'",
    )
    place_of_service: Mapped[Optional[str]] = mapped_column(String(2), default="11", nullable=True)
    prior_auth_number: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    status: Mapped[ClaimStatus] = mapped_column(
        value_enum(ClaimStatus, "claim_status"),
        default=ClaimStatus.DRAFT,
        nullable=False,
        index=True,
    )

    # Generated artifact
    edi_file_content: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    edi_generated_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    edi_control_number: Mapped[Optional[str]] = mapped_column(
        String(9),
        nullable=True,
        comment="ISA13 of the stored file",
    )

    # Submission / adjudication
    submitted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    paid_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    paid_amount: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)
    denial_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    lines: Mapped[list["ClaimLine"]] = relationship(
        back_populates="claim",
        cascade="all, delete-orphan",
        order_by="ClaimLine.line_number",
        lazy="selectin",
    )

    __table_args__ = (
        Index("ix_claims_clinic_status", "clinic_id", "status"),
        Index("ix_claims_patient", "patient_id"),
    )

    def __repr__(self) -> str:
        return f"<Claim(id={self.id}, status={self.status})>"


class ClaimLine(Base, UUIDModel, TimeStampedModel):
    """One billed CPT service line."""

    __tablename__ = "claim_lines"

    claim_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("claims.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    visit_charge_id: Mapped[Optional[UUID]] = mapped_column(PG_UUID(as_uuid=True), nullable=True)

    line_number: Mapped[int] = mapped_column(Integer, nullable=False)
    cpt_code: Mapped[str] = mapped_column(String(5), nullable=False)
    modifier_1: Mapped[Optional[str]] = mapped_column(String(2), nullable=True)
    modifier_2: Mapped[Optional[str]] = mapped_column(String(2), nullable=True)
    units: Mapped[Decimal] = mapped_column(Numeric(5, 2), default=Decimal("1"), nullable=False)
    charge_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    diagnosis_pointers: Mapped[Optional[list]] = mapped_column(
        ARRAY(Integer),
        nullable=True,
        comment="1-based positions into the claim diagnosis codes",
    )
    date_of_service: Mapped[date] = mapped_column(Date, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    claim: Mapped["Claim"] = relationship(back_populates="lines")

    def __repr__(self) -> str:
        return f"<ClaimLine(claim_id={self.claim_id}, line={self.line_number}, cpt={self.cpt_code})>"
