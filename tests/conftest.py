"""
Pytest Configuration and Fixtures.
Shared test fixtures for all test modules.
"""

from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal
from types import SimpleNamespace
from typing import Any, Dict, List
from uuid import UUID, uuid4

import pytest

from buckeye_edi.services.edi.x12_837_generator import (
    BillingProvider,
    ClaimHeader,
    ClaimInput,
    RenderingProvider,
    ServiceLine,
    Submitter,
    Subscriber,
)

VALID_NPI = "1234567893"
VALID_RENDERING_NPI = "9876543213"
FIXED_NOW = datetime(2026, 3, 14, 9, 30)
FIXED_CONTROL_NUMBERS = {9: "000000123", 6: "000045", 4: "0007"}


# =============================================================================
# Generator Fixtures
# =============================================================================


@pytest.fixture
def fixed_clock():
    """Clock returning 2026-03-14 09:30."""
    return lambda: FIXED_NOW


@pytest.fixture
def fixed_control_numbers():
    """Control number factory returning the same number per width."""
    return lambda width: FIXED_CONTROL_NUMBERS[width]


@pytest.fixture
def claim_input() -> ClaimInput:
    """Complete, valid 837P input: two diagnoses, one 97110 line."""
    return ClaimInput(
        submitter=Submitter(
            name="Buckeye Physical Therapy",
            submitter_id="BUCKEYE01",
            contact_name="Dana Billing",
            contact_phone="(512) 555-0100",
        ),
        billing_provider=BillingProvider(
            name="Buckeye Physical Therapy",
            npi=VALID_NPI,
            tax_id="12-3456789",
            taxonomy_code="225100000X",
            address1="100 Congress Ave",
            city="Austin",
            state="TX",
            zip_code="78701",
        ),
        subscriber=Subscriber(
            first_name="Jane",
            last_name="Doe",
            date_of_birth=date(1980, 1, 15),
            gender="F",
            member_id="123456789",
            address1="456 Oak Ave",
            city="Round Rock",
            state="TX",
            zip_code="78664",
        ),
        claim=ClaimHeader(
            claim_id="CLM-1001",
            total_charge=Decimal("85.00"),
            place_of_service="11",
            diagnosis_codes=["M54.5", "M25.561"],
        ),
        service_lines=[
            ServiceLine(
                cpt_code="97110",
                charge_amount=Decimal("85.00"),
                units=Decimal("1"),
                date_of_service=date(2026, 3, 10),
                diagnosis_pointers=[1],
                line_number=1,
            )
        ],
    )


@pytest.fixture
def rendering_provider() -> RenderingProvider:
    return RenderingProvider(
        npi=VALID_RENDERING_NPI,
        last_name="Smith",
        first_name="Alex",
        taxonomy_code="225100000X",
    )


ISA_835 = (
    "ISA*00*" + " " * 10 + "*00*" + " " * 10
    + "*ZZ*" + "330897513".ljust(15)
    + "*ZZ*" + "BUCKEYE01".ljust(15)
    + "*260320*1200*^*00501*000000777*0*P*:~"
)


def wrap_835(*transactions: List[str]) -> str:
    """Wrap ST..SE segment lists in the ISA/GS/GE/IEA envelope."""
    body = ["GS*HP*330897513*BUCKEYE01*20260320*1200*777*X*005010X221A1"]
    for transaction in transactions:
        body.extend(transaction)
    body += [f"GE*{len(transactions)}*777", "IEA*1*000000777"]
    return ISA_835 + "\n" + "~\n".join(body) + "~\n"


def build_835() -> str:
    """Two-claim remittance: one paid with line adjustments, one denied."""
    return wrap_835([
        "ST*835*0001",
        "BPR*I*145.00*C*ACH*CCP*01*111000025*DA*123456*1234567890**01*999988880*DA*98765*20260320",
        "TRN*1*EFT12345*1330897513",
        "DTM*405*20260320",
        "N1*PR*TEXAS MEDICAID*XV*330897513",
        "N1*PE*BUCKEYE PHYSICAL THERAPY*XX*1234567893",
        "CLP*CLM-1001*1*170.00*145.00*0*MC*PAYERCN001",
        "SVC*HC:97110:GP*85.00*75.00**1",
        "DTM*472*20260310",
        "CAS*CO*45*10.00",
        "SVC*HC:97140*85.00*70.00**1",
        "DTM*472*20260310",
        "CAS*CO*45*15.00",
        "CLP*CLM-1002*4*85.00*0*0*MC*PAYERCN002",
        "CAS*CO*29*85.00",
        "SE*16*0001",
    ])


def build_two_payment_835() -> str:
    """A check and an EFT in one file; the EFT carries PLB adjustments."""
    return wrap_835(
        [
            "ST*835*0001",
            "BPR*I*100.00*C*CHK************20260320",
            "TRN*1*CHECK1*1330897513",
            "DTM*405*20260320",
            "N1*PR*TEXAS MEDICAID*XV*330897513",
            "N1*PE*BUCKEYE PHYSICAL THERAPY*XX*1234567893",
            "CLP*C1*1*120.00*100.00*0*MC*PAYERCN101",
            "NM1*QC*1*DOE*JANE****MI*123456789",
            "MOA***MA01*N1",
            "SVC*HC:97110:GP*120.00*100.00**1**2",
            "DTM*472*20260310",
            "CAS*CO*45*20.00",
            "LQ*HE*N362",
            "SE*14*0001",
        ],
        [
            "ST*835*0002",
            "BPR*I*52.50*C*ACH",
            "TRN*1*CHECK2*1330897513",
            "DTM*405*20260321",
            "N1*PR*TEXAS MEDICAID*XV*330897513",
            "CLP*C2*1*85.00*75.00*0*MC*PAYERCN102",
            "SVC*HC:97140*85.00*75.00**1",
            "CAS*CO*45*10.00",
            "PLB*1234567893*20261231*WO:C0999*25.00*L6*-2.50",
            "SE*10*0002",
        ],
    )


@pytest.fixture
def sample_835() -> str:
    return build_835()


@pytest.fixture
def two_payment_835() -> str:
    return build_two_payment_835()


# =============================================================================
# Database Row Fixtures
# =============================================================================


@pytest.fixture
def clinic_row() -> SimpleNamespace:
    """Clinic with complete billing configuration."""
    return SimpleNamespace(
        id=uuid4(),
        name="Buckeye Physical Therapy",
        phone="512-555-0100",
        email="billing@buckeyept.com",
        billing_npi=VALID_NPI,
        tax_id="12-3456789",
        taxonomy_code=None,
        medicaid_provider_id=None,
        submitter_id="BUCKEYE01",
        billing_contact_name="Dana Billing",
        billing_address="100 Congress Ave",
        billing_address2=None,
        billing_city="Austin",
        billing_state="tx",
        billing_zip="78701",
    )


@pytest.fixture
def patient_row(clinic_row) -> SimpleNamespace:
    return SimpleNamespace(
        id=uuid4(),
        clinic_id=clinic_row.id,
        first_name="Jane",
        last_name="Doe",
        date_of_birth=date(1980, 1, 15),
        gender="female",
        address="456 Oak Ave, Round Rock, TX 78664",
        address2=None,
        city=None,
        state=None,
        zip_code=None,
        medicaid_id="123456789",
        subscriber_id=None,
        insurance_id=None,
        payer_name=None,
        payer_id=None,
    )


@pytest.fixture
def claim_row(clinic_row, patient_row) -> SimpleNamespace:
    claim_id = uuid4()
    return SimpleNamespace(
        id=claim_id,
        clinic_id=clinic_row.id,
        patient_id=patient_row.id,
        claim_number="CLM-1001",
        payer_name="Texas Medicaid",
        payer_id="330897513",
        subscriber_id=None,
        total_charges=Decimal("170.00"),
        diagnosis_codes=["M54.5", "M25.561"],
        rendering_provider_npi=VALID_RENDERING_NPI,
        rendering_provider_name="Smith, Alex",
        place_of_service=None,
        prior_auth_number=None,
        status="draft",
        edi_file_content=None,
        edi_generated_at=None,
        edi_control_number=None,
        submitted_at=None,
        notes=None,
        updated_at=datetime(2026, 3, 1, tzinfo=timezone.utc),
        lines=[
            SimpleNamespace(
                line_number=2,
                cpt_code="97140",
                modifier_1="gp",
                modifier_2=None,
                units=Decimal("1"),
                charge_amount=Decimal("85.00"),
                diagnosis_pointers=[2],
                date_of_service=date(2026, 3, 10),
            ),
            SimpleNamespace(
                line_number=1,
                cpt_code="97110",
                modifier_1="GP",
                modifier_2=None,
                units=Decimal("1"),
                charge_amount=Decimal("85.00"),
                diagnosis_pointers=[],
                date_of_service=date(2026, 3, 10),
            ),
        ],
    )


# =============================================================================
# Fake Repository
# =============================================================================


@dataclass
class ClaimUpdate:
    claim_id: UUID
    expected_updated_at: datetime
    values: Dict[str, Any]


class FakeBillingRepository:
    """In-memory BillingRepository with compare-and-set semantics."""

    def __init__(self, claims=(), clinics=(), patients=()):
        self.claims = {row.id: row for row in claims}
        self.clinics = {row.id: row for row in clinics}
        self.patients = {row.id: row for row in patients}
        self.updates: List[ClaimUpdate] = []
        self.eligibility_checks: List[SimpleNamespace] = []
        self.commits = 0

    async def get_claim(self, claim_id):
        return self.claims.get(claim_id)

    async def get_clinic(self, clinic_id):
        return self.clinics.get(clinic_id)

    async def get_patient(self, patient_id):
        return self.patients.get(patient_id)

    async def update_claim(self, claim_id, expected_updated_at, values, updated_at) -> bool:
        claim = self.claims.get(claim_id)
        if claim is None or claim.updated_at != expected_updated_at:
            return False
        for key, value in values.items():
            setattr(claim, key, value)
        claim.updated_at = updated_at
        self.updates.append(ClaimUpdate(claim_id, expected_updated_at, dict(values)))
        return True

    async def add_eligibility_check(self, values):
        check = SimpleNamespace(id=uuid4(), **values)
        self.eligibility_checks.append(check)
        return check

    async def commit(self) -> None:
        self.commits += 1


@pytest.fixture
def fake_repository(claim_row, clinic_row, patient_row) -> FakeBillingRepository:
    return FakeBillingRepository(claims=[claim_row], clinics=[clinic_row], patients=[patient_row])


# Configure pytest markers
def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "api: mark test as an API test"
    )
