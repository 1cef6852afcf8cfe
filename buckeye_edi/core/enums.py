"""
Core Enumerations for EDI Billing.
"""

from enum import Enum


# =============================================================================
# Claim Lifecycle
# =============================================================================


class ClaimStatus(str, Enum):
    """Claim record status (draft -> generated -> submitted -> adjudicated)."""

    DRAFT = "draft"
    GENERATED = "generated"
    SUBMITTED = "submitted"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    PAID = "paid"
    DENIED = "denied"


class EligibilityCheckStatus(str, Enum):
    """Eligibility check record status."""

    PENDING = "pending"
    ELIGIBLE = "eligible"
    INELIGIBLE = "ineligible"
    ERROR = "error"


# =============================================================================
# Interchange Settings
# =============================================================================


class UsageIndicator(str, Enum):
    """ISA15 usage indicator."""

    PRODUCTION = "P"
    TEST = "T"


class SegmentTerminator(str, Enum):
    """Segment terminator written after every segment."""

    TILDE = "~"
    NEWLINE = "\n"
