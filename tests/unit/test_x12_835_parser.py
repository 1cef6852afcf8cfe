"""
Unit Tests for the X12 835 Remittance Parser.
"""

import pytest
from datetime import date
from decimal import Decimal

from buckeye_edi.services.edi.x12_base import X12ParseError
from buckeye_edi.services.edi.x12_835_parser import X12835Parser, validate_835
from buckeye_edi.services.edi.x12_837_generator import X12837PGenerator


@pytest.fixture
def parser():
    return X12835Parser()


@pytest.mark.unit
class TestParseHeader:

    def test_payment_header(self, parser, sample_835):
        remittance = parser.parse(sample_835)
        assert remittance.interchange_control_number == "000000777"
        assert len(remittance.payments) == 1
        payment = remittance.payments[0]
        assert payment.transaction_control_number == "0001"
        assert payment.check_number == "EFT12345"
        assert payment.total_payment == Decimal("145.00")
        assert payment.payment_method == "ACH"
        assert payment.payment_method_description == "EFT/ACH"
        assert payment.credit_debit_flag == "C"
        assert payment.payment_date == date(2026, 3, 20)
        assert payment.payer_name == "TEXAS MEDICAID"
        assert payment.payer_id == "330897513"
        assert payment.payee_name == "BUCKEYE PHYSICAL THERAPY"
        assert payment.payee_npi == "1234567893"
        assert payment.provider_adjustments == []


@pytest.mark.unit
class TestParseClaims:
    """Tests for CLP/SVC/CAS grouping."""

    def test_claim_count(self, parser, sample_835):
        claims = parser.parse(sample_835).claims
        assert [claim.patient_account_number for claim in claims] == ["CLM-1001", "CLM-1002"]

    def test_paid_claim(self, parser, sample_835):
        claim = parser.parse(sample_835).claims[0]
        assert claim.claim_status == "1"
        assert claim.status_description == "Processed as Primary"
        assert claim.is_denied is False
        assert claim.total_charged == Decimal("170.00")
        assert claim.total_paid == Decimal("145.00")
        assert claim.patient_responsibility == Decimal("0")
        assert claim.payer_claim_control_number == "PAYERCN001"
        assert claim.adjustments == []

    def test_service_lines_and_line_adjustments(self, parser, sample_835):
        lines = parser.parse(sample_835).claims[0].service_lines
        assert [line.procedure_code for line in lines] == ["97110", "97140"]
        first = lines[0]
        assert first.modifiers == ["GP"]
        assert first.charged_amount == Decimal("85.00")
        assert first.paid_amount == Decimal("75.00")
        assert first.units_paid == Decimal("1")
        assert first.service_date == date(2026, 3, 10)
        assert len(first.adjustments) == 1
        adjustment = first.adjustments[0]
        assert adjustment.group_code == "CO"
        assert adjustment.group_description == "Contractual Obligation"
        assert adjustment.reasons[0].reason_code == "45"
        assert adjustment.reasons[0].amount == Decimal("10.00")
        assert adjustment.reasons[0].quantity is None
        assert lines[1].modifiers == []
        assert lines[1].adjustments[0].reasons[0].amount == Decimal("15.00")

    def test_denied_claim_has_claim_level_adjustment(self, parser, sample_835):
        claim = parser.parse(sample_835).claims[1]
        assert claim.is_denied is True
        assert claim.status_description == "Denied"
        assert claim.service_lines == []
        assert claim.adjustments[0].group_code == "CO"
        assert claim.adjustments[0].reasons[0].reason_code == "29"
        assert claim.payer_claim_control_number == "PAYERCN002"

    def test_multiple_reasons_in_one_cas(self, parser, sample_835):
        content = sample_835.replace("CAS*CO*29*85.00", "CAS*CO*29*80.00**45*5.00*1")
        reasons = parser.parse(content).claims[1].adjustments[0].reasons
        assert [(r.reason_code, r.amount, r.quantity) for r in reasons] == [
            ("29", Decimal("80.00"), None),
            ("45", Decimal("5.00"), Decimal("1")),
        ]


@pytest.mark.unit
class TestMultiplePayments:
    """Each ST..SE transaction set is its own check or EFT."""

    def test_claims_stay_with_their_payment(self, parser, two_payment_835):
        remittance = parser.parse(two_payment_835)
        summary = [
            (p.check_number, p.total_payment, [c.patient_account_number for c in p.claims])
            for p in remittance.payments
        ]
        assert summary == [
            ("CHECK1", Decimal("100.00"), ["C1"]),
            ("CHECK2", Decimal("52.50"), ["C2"]),
        ]
        assert [c.patient_account_number for c in remittance.claims] == ["C1", "C2"]

    def test_headers_are_per_payment(self, parser, two_payment_835):
        first, second = parser.parse(two_payment_835).payments
        assert first.payment_method == "CHK"
        assert first.payment_method_description == "Check"
        assert first.payment_date == date(2026, 3, 20)
        assert first.payee_name == "BUCKEYE PHYSICAL THERAPY"
        assert second.transaction_control_number == "0002"
        assert second.payment_date == date(2026, 3, 21)
        assert second.payee_name is None

    def test_provider_adjustments(self, parser, two_payment_835):
        first, second = parser.parse(two_payment_835).payments
        assert first.provider_adjustments == []
        recoupment, interest = second.provider_adjustments
        assert recoupment.provider_identifier == "1234567893"
        assert recoupment.fiscal_period_date == date(2026, 12, 31)
        assert recoupment.reason_code == "WO"
        assert recoupment.reference_id == "C0999"
        assert recoupment.amount == Decimal("25.00")
        assert recoupment.description == "Overpayment Recovery"
        assert interest.reason_code == "L6"
        assert interest.reference_id is None
        assert interest.amount == Decimal("-2.50")
        assert interest.description == "Interest Owed"

    def test_plb_ends_the_last_claim(self, parser, two_payment_835):
        claim = parser.parse(two_payment_835).payments[1].claims[0]
        assert len(claim.service_lines) == 1
        assert [a.total for a in claim.service_lines[0].adjustments] == [Decimal("10.00")]


@pytest.mark.unit
class TestClaimDetails:
    """Patient name, remark codes and reason descriptions."""

    def test_patient_from_nm1_qc(self, parser, two_payment_835):
        claim = parser.parse(two_payment_835).claims[0]
        assert claim.patient_last_name == "DOE"
        assert claim.patient_first_name == "JANE"
        assert claim.patient_member_id == "123456789"
        assert claim.patient_name == "DOE, JANE"

    def test_patient_name_absent(self, parser, sample_835):
        assert parser.parse(sample_835).claims[0].patient_name is None

    def test_moa_remark_codes(self, parser, two_payment_835):
        claim = parser.parse(two_payment_835).claims[0]
        assert [r.code for r in claim.remark_codes] == ["MA01", "N1"]
        assert claim.remark_codes[1].description == "Alert: You may appeal this decision"

    def test_lq_remark_codes_on_line(self, parser, two_payment_835):
        line = parser.parse(two_payment_835).claims[0].service_lines[0]
        assert [(r.qualifier, r.code) for r in line.remark_codes] == [("HE", "N362")]
        assert line.units_paid == Decimal("1")
        assert line.units_billed == Decimal("2")

    def test_reason_descriptions(self, parser, sample_835):
        claims = parser.parse(sample_835).claims
        reason = claims[0].service_lines[0].adjustments[0].reasons[0]
        assert reason.description.startswith("Charge exceeds fee schedule")
        assert claims[1].adjustments[0].reasons[0].description == "The time limit for filing has expired"

    def test_unknown_reason_code(self, parser, sample_835):
        content = sample_835.replace("CAS*CO*29*85.00", "CAS*CO*Z9*85.00")
        reason = parser.parse(content).claims[1].adjustments[0].reasons[0]
        assert reason.description == "Unknown adjustment reason code: Z9"


@pytest.mark.unit
class TestParseErrors:

    def test_empty_content(self, parser):
        with pytest.raises(X12ParseError):
            parser.parse("   ")

    def test_not_x12(self, parser):
        with pytest.raises(X12ParseError):
            parser.parse("hello world")

    def test_rejects_837(self, parser, claim_input, fixed_clock, fixed_control_numbers):
        content = X12837PGenerator(
            clock=fixed_clock, control_number_factory=fixed_control_numbers
        ).generate(claim_input).edi_content
        with pytest.raises(X12ParseError) as exc_info:
            parser.parse(content)
        assert exc_info.value.message == "Expected transaction set 835, got 837"

    def test_unterminated_transaction(self, parser, sample_835):
        with pytest.raises(X12ParseError) as exc_info:
            parser.parse(sample_835.replace("SE*16*0001~\n", ""))
        assert exc_info.value.message == "ST segment without a matching SE"

    def test_transaction_without_bpr(self, parser, two_payment_835):
        with pytest.raises(X12ParseError) as exc_info:
            parser.parse(two_payment_835.replace("BPR*I*52.50*C*ACH~\n", ""))
        assert exc_info.value.message == "Missing BPR segment in transaction 0002"


@pytest.mark.unit
class TestValidate835:
    """Tests for validate_835."""

    def test_valid_file(self, sample_835):
        result = validate_835(sample_835)
        assert result.is_valid
        assert result.errors == []
        assert result.warnings == []

    def test_valid_multi_payment_file(self, two_payment_835):
        result = validate_835(two_payment_835)
        assert result.is_valid
        assert result.errors == []

    def test_empty_content(self):
        result = validate_835("")
        assert not result.is_valid
        assert result.errors == ["Empty EDI content"]

    def test_segment_count_mismatch(self, sample_835):
        result = validate_835(sample_835.replace("SE*16*0001", "SE*17*0001"))
        assert not result.is_valid
        assert result.errors == ["SE01 '17' != 16 segments"]

    def test_wrong_transaction_set(self, sample_835):
        result = validate_835(sample_835.replace("ST*835*0001", "ST*837*0001"))
        assert "Expected transaction set 835, got 837" in result.errors

    def test_missing_bpr(self, sample_835):
        content = sample_835.replace(
            "BPR*I*145.00*C*ACH*CCP*01*111000025*DA*123456*1234567890**01*999988880*DA*98765*20260320~\n",
            "",
        )
        result = validate_835(content)
        assert "Missing required segment: BPR" in result.errors

    def test_warns_on_wrong_functional_group(self, sample_835):
        result = validate_835(sample_835.replace("GS*HP*", "GS*HC*"))
        assert result.is_valid
        assert result.warnings == ["GS01 should be HP for remittance advice, got HC"]
