"""
Clinic Model.
A physical therapy practice and its billing configuration.
"""

from typing import Optional

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from buckeye_edi.models.base import Base, TimeStampedModel, UUIDModel


class Clinic(Base, UUIDModel, TimeStampedModel):
    """
    Clinic with the billing fields the 837P billing provider loop needs.
    """

    __tablename__ = "clinics"

    name: Mapped[str] = mapped_column(String(255), nullable=False, comment="Practice name")
    phone: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # Billing Configuration
    billing_npi: Mapped[Optional[str]] = mapped_column(
        String(10),
        nullable=True,
        comment="Type 2 (organization) NPI",
    )
    tax_id: Mapped[Optional[str]] = mapped_column(
        String(20),
        nullable=True,
        comment="Federal EIN",
    )
    taxonomy_code: Mapped[Optional[str]] = mapped_column(
        String(10),
        nullable=True,
        comment="Provider taxonomy (225100000X = Physical Therapist)",
    )
    medicaid_provider_id: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    submitter_id: Mapped[Optional[str]] = mapped_column(
        String(30),
        nullable=True,
        comment="TMHP-assigned EDI submitter ID",
    )
    billing_contact_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    # Billing Address
    billing_address: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    billing_address2: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    billing_city: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    billing_state: Mapped[Optional[str]] = mapped_column(String(2), nullable=True)
    billing_zip: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)

    def __repr__(self) -> str:
        return f"<Clinic(id={self.id}, name={self.name})>"
