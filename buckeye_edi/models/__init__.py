"""
SQLAlchemy Models for EDI Billing.

This module exports all database models for the application.
"""

from buckeye_edi.models.base import Base, TimeStampedModel, UUIDModel
from buckeye_edi.models.clinic import Clinic
from buckeye_edi.models.patient import Patient
from buckeye_edi.models.claim import Claim, ClaimLine
from buckeye_edi.models.eligibility_check import EligibilityCheck

__all__ = [
    "Base",
    "TimeStampedModel",
    "UUIDModel",
    "Clinic",
    "Patient",
    "Claim",
    "ClaimLine",
    "EligibilityCheck",
]
