"""
Unit Tests for the X12 Segment Encoder.

Tests:
- Element encoding (dates, amounts, fixed width, identifiers)
- Free-text sanitization
- Segment builder rendering
- Tokenizer delimiter detection and envelope checks
"""

import pytest
from datetime import date, datetime
from decimal import Decimal

from buckeye_edi.services.edi.x12_base import (
    Composite,
    Fixed,
    Literal,
    X12Delimiters,
    X12ParseError,
    X12SegmentBuilder,
    X12Tokenizer,
    count_transaction_segments,
    digits_only,
    edi_clean,
    edi_date,
    edi_decimal,
    edi_quantity,
    edi_time,
    fixed_width,
    format_npi,
    format_tax_id,
    generate_control_number,
    isa_date,
    parse_x12_date,
    validate_envelope,
    validate_npi,
    zero_pad,
)
from buckeye_edi.services.edi.x12_837_generator import X12837PGenerator


# =============================================================================
# Encoding Functions
# =============================================================================


@pytest.mark.unit
class TestEncoding:
    """Tests for element encoding helpers."""

    def test_edi_date_formats_ccyymmdd(self):
        assert edi_date(date(2026, 3, 4)) == "20260304"

    def test_edi_date_accepts_iso_strings(self):
        assert edi_date("2026-03-04T10:15:00") == "20260304"

    def test_isa_date_is_six_digits(self):
        assert isa_date(datetime(2026, 3, 4, 10, 15)) == "260304"

    def test_edi_time_is_zero_padded_24_hour(self):
        assert edi_time(datetime(2026, 3, 4, 9, 5)) == "0905"
        assert edi_time(datetime(2026, 3, 4, 17, 45)) == "1745"

    def test_fixed_width_pads_and_truncates(self):
        assert fixed_width("ABC", 5) == "ABC  "
        assert fixed_width("ABCDEFG", 3) == "ABC"
        assert fixed_width(None, 2) == "  "

    def test_zero_pad(self):
        assert zero_pad(45, 6) == "000045"
        assert zero_pad("7", 4) == "0007"

    def test_edi_decimal_two_places(self):
        assert edi_decimal(85) == "85.00"
        assert edi_decimal(Decimal("1234.5")) == "1234.50"
        assert edi_decimal("2.675") == "2.68"

    def test_edi_decimal_avoids_float_artifacts(self):
        assert edi_decimal(0.1 + 0.2) == "0.30"

    def test_edi_decimal_rejects_grouped_input(self):
        with pytest.raises(ValueError):
            edi_decimal("1,234.50")

    def test_edi_quantity_drops_whole_fraction(self):
        assert edi_quantity(Decimal("1.00")) == "1"
        assert edi_quantity(Decimal("1.5")) == "1.5"

    def test_identifier_formatting(self):
        assert format_npi("123-456-7893") == "1234567893"
        assert format_tax_id("12-3456789") == "123456789"
        assert digits_only("(512) 555-0100") == "5125550100"
        assert digits_only(None) == ""

    def test_generate_control_number_width(self):
        for width in (4, 6, 9):
            number = generate_control_number(width)
            assert len(number) == width
            assert number.isdigit()
            assert int(number) > 0

    def test_validate_npi(self):
        assert validate_npi("1234567893") is True
        assert validate_npi("9876543213") is True
        assert validate_npi("1234567890") is False
        assert validate_npi("12345") is False
        assert validate_npi("12345abcde") is False

    def test_parse_x12_date(self):
        assert parse_x12_date("20260310") == date(2026, 3, 10)
        assert parse_x12_date("260310") == date(2026, 3, 10)
        assert parse_x12_date("bad") is None
        assert parse_x12_date("") is None


@pytest.mark.unit
class TestEdiClean:
    """Tests for free-text sanitization."""

    def test_replaces_default_delimiters(self):
        assert edi_clean("Smith*Jones:Co~") == "Smith Jones Co"

    def test_replaces_configured_delimiters(self):
        delimiters = X12Delimiters(element="|", segment="\n", component="^", repetition="!")
        assert edi_clean("A|B^C\nD!E", delimiters) == "A B C D E"

    def test_folds_accents_to_ascii(self):
        assert edi_clean("José Núñez") == "Jose Nunez"

    def test_strips_characters_outside_x12_set(self):
        assert edi_clean("Café ☕ Rehab®") == "Cafe Rehab"

    def test_collapses_whitespace(self):
        assert edi_clean("  100   Main\tSt  ") == "100 Main St"

    def test_control_whitespace_separates_words(self):
        assert edi_clean("Suite\x0b4\x0cAustin") == "Suite 4 Austin"
        assert edi_clean("Doe \t` Jane") == "Doe Jane"

    def test_none_is_empty(self):
        assert edi_clean(None) == ""


@pytest.mark.unit
class TestDelimiters:

    def test_rejects_duplicate_delimiters(self):
        with pytest.raises(ValueError):
            X12Delimiters(element="*", component="*")

    def test_rejects_alphanumeric_delimiters(self):
        with pytest.raises(ValueError):
            X12Delimiters(segment="A")

    def test_newline_terminated(self):
        assert X12Delimiters(segment="\n").newline_terminated is True
        assert X12Delimiters().newline_terminated is False


# =============================================================================
# Segment Builder
# =============================================================================


@pytest.mark.unit
class TestSegmentBuilder:
    """Tests for X12SegmentBuilder."""

    def test_interior_empty_elements_keep_position(self):
        builder = X12SegmentBuilder()
        builder.add("NM1", "85", "2", "Buckeye PT", None, None, None, None, "XX", "1234567893")
        assert builder.lines() == ["NM1*85*2*Buckeye PT*****XX*1234567893"]

    def test_trailing_empty_elements_trimmed(self):
        builder = X12SegmentBuilder()
        builder.add("REF", "G1", None, "")
        assert builder.lines() == ["REF*G1"]

    def test_composite_uses_component_separator(self):
        builder = X12SegmentBuilder()
        builder.add("SV1", Composite("HC", "97110", "GP", None), "85.00")
        assert builder.lines() == ["SV1*HC:97110:GP*85.00"]

    def test_every_element_is_sanitized(self):
        builder = X12SegmentBuilder()
        builder.add("N3", "12 Main St*Apt:4~B")
        assert builder.lines() == ["N3*12 Main St Apt 4 B"]

    def test_literal_bypasses_sanitization(self):
        builder = X12SegmentBuilder()
        builder.add("ISA", "00", Literal("^"), Literal(":"))
        builder.add("XXX", "00", "^")
        assert builder.lines() == ["ISA*00*^*:", "XXX*00"]

    def test_fixed_width_element(self):
        builder = X12SegmentBuilder()
        builder.add("ISA", Fixed("BUCKEYE01", 15), "00")
        assert builder.lines() == ["ISA*BUCKEYE01      *00"]

    def test_render_appends_terminator(self):
        builder = X12SegmentBuilder()
        builder.add("ST", "837", "0001")
        builder.add("SE", "2", "0001")
        assert builder.render() == "ST*837*0001~SE*2*0001~"
        assert builder.render_formatted() == "ST*837*0001~\nSE*2*0001~"

    def test_newline_terminator_formatted_equals_content(self):
        builder = X12SegmentBuilder(X12Delimiters(segment="\n"))
        builder.add("ST", "837", "0001")
        builder.add("SE", "2", "0001")
        assert builder.render() == "ST*837*0001\nSE*2*0001\n"
        assert builder.render_formatted() == builder.render()

    def test_count_transaction_segments(self):
        builder = X12SegmentBuilder()
        builder.add("GS", "HC")
        builder.add("ST", "837", "0001")
        builder.add("BHT", "0019")
        builder.add("SE", "3", "0001")
        builder.add("GE", "1")
        assert count_transaction_segments(builder.segments) == 3
        assert len(builder) == 5


# =============================================================================
# Tokenizer and Envelope
# =============================================================================


@pytest.mark.unit
class TestTokenizer:
    """Tests for X12Tokenizer against generated output."""

    @pytest.fixture
    def generated(self, claim_input, fixed_clock, fixed_control_numbers):
        generator = X12837PGenerator(clock=fixed_clock, control_number_factory=fixed_control_numbers)
        return generator.generate(claim_input).edi_content

    def test_detects_delimiters_from_isa(self, generated):
        delimiters = X12Tokenizer.detect_delimiters(generated)
        assert delimiters == X12Delimiters(element="*", segment="~", component=":", repetition="^")

    def test_detects_custom_delimiters(self, claim_input, fixed_clock, fixed_control_numbers):
        custom = X12Delimiters(element="|", segment="\n", component=">", repetition="^")
        content = X12837PGenerator(
            delimiters=custom, clock=fixed_clock, control_number_factory=fixed_control_numbers
        ).generate(claim_input).edi_content
        assert X12Tokenizer.detect_delimiters(content) == custom
        segments = X12Tokenizer().tokenize(content)
        assert segments[0].segment_id == "ISA"
        assert validate_envelope(segments) == []

    def test_rejects_non_isa_content(self):
        with pytest.raises(X12ParseError):
            X12Tokenizer.detect_delimiters("GS*HC*SENDER~")

    def test_rejects_short_isa(self):
        with pytest.raises(X12ParseError):
            X12Tokenizer.detect_delimiters("ISA*00*~")

    def test_tokenize_splits_elements(self, generated):
        segments = X12Tokenizer().tokenize(generated)
        ids = [segment.segment_id for segment in segments]
        assert ids[:3] == ["ISA", "GS", "ST"]
        assert ids[-3:] == ["SE", "GE", "IEA"]
        gs = segments[1]
        assert gs.get_element(0) == "HC"
        assert gs.get_element(7) == "005010X222A1"

    def test_generated_envelope_is_consistent(self, generated):
        assert validate_envelope(X12Tokenizer().tokenize(generated)) == []

    def test_envelope_mismatch_detected(self, generated):
        tampered = generated.replace("IEA*1*000000123", "IEA*1*000000999")
        problems = validate_envelope(X12Tokenizer().tokenize(tampered))
        assert any("IEA02" in problem for problem in problems)

    def test_segment_count_mismatch_detected(self, generated):
        tampered = generated.replace("SE*24*0007", "SE*25*0007")
        problems = validate_envelope(X12Tokenizer().tokenize(tampered))
        assert problems == ["SE01 '25' != 24 segments"]
