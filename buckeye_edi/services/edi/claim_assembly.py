"""
Claim Assembly.

Maps persisted clinic/patient/claim/claim-line rows into the strict
837P generator input. Rows are read by attribute, so ORM instances and
plain objects work alike.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Iterable, List, Optional, Tuple
import logging
import re

from buckeye_edi.services.edi.x12_837_generator import (
    BillingProvider,
    ClaimHeader,
    ClaimInput,
    Payer,
    Receiver,
    RenderingProvider,
    ServiceLine,
    Submitter,
    Subscriber,
    TEXAS_MEDICAID_PAYER_ID,
    TEXAS_MEDICAID_PAYER_NAME,
    TMHP_RECEIVER_ID,
    TMHP_RECEIVER_NAME,
)
from buckeye_edi.services.edi.x12_base import digits_only, format_npi

logger = logging.getLogger(__name__)

DEFAULT_TAXONOMY_CODE = "225100000X"  # Physical Therapist
DEFAULT_PLACE_OF_SERVICE = "11"  # Office

# "123 Main St, Austin, TX 78701" / "123 Main St, Suite 4, Austin TX 78701-1234"
_ADDRESS_TAIL = re.compile(
    r"^(?P<street>.+?),\s*(?P<city>[^,]+?),?\s+(?P<state>[A-Za-z]{2})\s+(?P<zip>\d{5}(?:-?\d{4})?)\s*$"
)

BILLING_REQUIREMENTS: Tuple[Tuple[str, str], ...] = (
    ("billing_npi", "Billing NPI"),
    ("tax_id", "Tax ID"),
    ("name", "Clinic Name"),
    ("billing_address", "Billing Address"),
    ("billing_city", "Billing City"),
    ("billing_state", "Billing State"),
    ("billing_zip", "Billing ZIP"),
)


@dataclass
class AssemblyDefaults:
    """Fallbacks applied when a row leaves a field empty."""
    taxonomy_code: str = DEFAULT_TAXONOMY_CODE
    place_of_service: str = DEFAULT_PLACE_OF_SERVICE
    payer_name: str = TEXAS_MEDICAID_PAYER_NAME
    payer_id: str = TEXAS_MEDICAID_PAYER_ID
    receiver_name: str = TMHP_RECEIVER_NAME
    receiver_id: str = TMHP_RECEIVER_ID
    submitter_id: Optional[str] = None


# =============================================================================
# Field Mapping Helpers
# =============================================================================


def _text(value: Any) -> str:
    return str(value).strip() if value is not None else ""


def check_billing_configuration(clinic: Any) -> List[str]:
    """
    Labels of the clinic billing settings that are missing, in display order.

    An empty list means the clinic can bill.
    """
    return [label for attr, label in BILLING_REQUIREMENTS if not _text(getattr(clinic, attr, None))]


def split_provider_name(name: Optional[str]) -> Tuple[str, str]:
    """
    Split a stored provider name into (last, first).

    "Smith, Jane" -> ("Smith", "Jane"); "Jane Smith" -> ("Smith", "Jane").
    """
    name = _text(name)
    if not name:
        return "", ""
    if "," in name:
        last, _, first = name.partition(",")
        return last.strip(), first.strip()
    parts = name.split()
    if len(parts) == 1:
        return parts[0], ""
    return parts[-1], " ".join(parts[:-1])


def normalize_gender(value: Optional[str]) -> str:
    """Map free-form gender to the X12 M/F/U code; anything unknown is U."""
    lowered = _text(value).lower()
    if lowered in ("male", "m"):
        return "M"
    if lowered in ("female", "f"):
        return "F"
    return "U"


def parse_address_line(address: Optional[str]) -> Tuple[str, str, str, str]:
    """
    Split a single-line address into (street, city, state, zip).

    Unparseable input comes back as the street with empty components so
    validation reports exactly what is missing.
    """
    address = _text(address)
    match = _ADDRESS_TAIL.match(address)
    if not match:
        return address, "", "", ""
    return (
        match.group("street").strip(),
        match.group("city").strip(),
        match.group("state").upper(),
        match.group("zip"),
    )


def diagnosis_pointers(value: Optional[Iterable[Any]]) -> List[int]:
    """Pointers as ints; an empty list points at the principal diagnosis."""
    pointers = [int(p) for p in (value or []) if p is not None and str(p).strip() != ""]
    return pointers or [1]


def resolve_subscriber_id(claim: Any, patient: Any) -> str:
    for candidate in (
        getattr(claim, "subscriber_id", None),
        getattr(patient, "subscriber_id", None),
        getattr(patient, "medicaid_id", None),
        getattr(patient, "insurance_id", None),
    ):
        if _text(candidate):
            return _text(candidate)
    return ""


def resolve_claim_id(claim: Any) -> str:
    """Claim number if assigned, else the first 20 characters of the row id."""
    number = _text(getattr(claim, "claim_number", None))
    if number:
        return number
    return _text(getattr(claim, "id", ""))[:20]


# =============================================================================
# Assembler
# =============================================================================


class ClaimAssembler:
    """
    Builds ClaimInput from database rows.

    Usage:
        assembler = ClaimAssembler(AssemblyDefaults(submitter_id="BUCKEYE01"))
        missing = check_billing_configuration(clinic)
        if not missing:
            claim_input = assembler.assemble(claim, lines, clinic, patient)
    """

    def __init__(self, defaults: Optional[AssemblyDefaults] = None):
        self.defaults = defaults or AssemblyDefaults()

    def assemble(self, claim: Any, lines: Iterable[Any], clinic: Any, patient: Any) -> ClaimInput:
        ordered = sorted(lines, key=lambda line: getattr(line, "line_number", 0) or 0)
        taxonomy = _text(clinic.taxonomy_code) or self.defaults.taxonomy_code

        claim_input = ClaimInput(
            submitter=self._submitter(clinic),
            billing_provider=BillingProvider(
                name=_text(clinic.name),
                npi=format_npi(clinic.billing_npi),
                tax_id=digits_only(clinic.tax_id),
                taxonomy_code=taxonomy,
                address1=_text(clinic.billing_address),
                address2=_text(getattr(clinic, "billing_address2", None)) or None,
                city=_text(clinic.billing_city),
                state=_text(clinic.billing_state).upper(),
                zip_code=_text(clinic.billing_zip),
            ),
            subscriber=self._subscriber(claim, patient),
            payer=Payer(
                name=_text(getattr(claim, "payer_name", None))
                or _text(getattr(patient, "payer_name", None))
                or self.defaults.payer_name,
                payer_id=_text(getattr(claim, "payer_id", None))
                or _text(getattr(patient, "payer_id", None))
                or self.defaults.payer_id,
            ),
            receiver=Receiver(name=self.defaults.receiver_name, receiver_id=self.defaults.receiver_id),
            claim=ClaimHeader(
                claim_id=resolve_claim_id(claim),
                total_charge=Decimal(str(claim.total_charges or 0)),
                place_of_service=_text(claim.place_of_service) or self.defaults.place_of_service,
                diagnosis_codes=[code for code in (claim.diagnosis_codes or []) if _text(code)],
                prior_authorization=_text(getattr(claim, "prior_auth_number", None)) or None,
            ),
            service_lines=[self._service_line(line) for line in ordered],
            rendering_provider=self._rendering_provider(claim, taxonomy),
        )
        logger.debug(f"Assembled claim {claim_input.claim.claim_id} with {len(ordered)} line(s)")
        return claim_input

    def _submitter(self, clinic: Any) -> Submitter:
        submitter_id = (
            _text(getattr(clinic, "submitter_id", None))
            or _text(self.defaults.submitter_id)
            or format_npi(clinic.billing_npi)
        )
        return Submitter(
            name=_text(clinic.name),
            submitter_id=submitter_id,
            contact_name=_text(getattr(clinic, "billing_contact_name", None)) or _text(clinic.name),
            contact_phone=digits_only(getattr(clinic, "phone", None)),
            contact_email=_text(getattr(clinic, "email", None)) or None,
        )

    def _subscriber(self, claim: Any, patient: Any) -> Subscriber:
        if _text(getattr(patient, "city", None)):
            street = _text(patient.address)
            city = _text(patient.city)
            state = _text(getattr(patient, "state", None)).upper()
            zip_code = _text(getattr(patient, "zip_code", None))
        else:
            street, city, state, zip_code = parse_address_line(getattr(patient, "address", None))
        return Subscriber(
            first_name=_text(patient.first_name),
            last_name=_text(patient.last_name),
            date_of_birth=patient.date_of_birth,
            gender=normalize_gender(getattr(patient, "gender", None)),
            member_id=resolve_subscriber_id(claim, patient),
            address1=street,
            address2=_text(getattr(patient, "address2", None)) or None,
            city=city,
            state=state,
            zip_code=zip_code,
        )

    def _rendering_provider(self, claim: Any, taxonomy: str) -> Optional[RenderingProvider]:
        npi = format_npi(getattr(claim, "rendering_provider_npi", None))
        if not npi:
            return None
        last, first = split_provider_name(getattr(claim, "rendering_provider_name", None))
        return RenderingProvider(npi=npi, last_name=last, first_name=first, taxonomy_code=taxonomy)

    def _service_line(self, line: Any) -> ServiceLine:
        service_date = line.date_of_service
        return ServiceLine(
            line_number=getattr(line, "line_number", None),
            cpt_code=_text(line.cpt_code).upper(),
            modifiers=[
                _text(m).upper()
                for m in (getattr(line, "modifier_1", None), getattr(line, "modifier_2", None))
                if _text(m)
            ],
            charge_amount=Decimal(str(line.charge_amount or 0)),
            units=Decimal(str(line.units or 1)),
            date_of_service=service_date if isinstance(service_date, (date, str)) else None,
            diagnosis_pointers=diagnosis_pointers(getattr(line, "diagnosis_pointers", None)),
        )
