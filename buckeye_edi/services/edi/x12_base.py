"""
X12 EDI Segment Encoder and Tokenizer.

Source: ASC X12N 005010X222A1 / 005010X279A1 Implementation Guides
Verified: 2026-10-16

Provides the low-level X12 primitives shared by the generators and parsers:
- Delimiter configuration and the typed segment builder
- Date/time, fixed-width, decimal and identifier encoding
- Free-text sanitization against reserved delimiters
- Control number generation
- Tokenizer for reading generated or received files
- Envelope consistency checks
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, List, Optional, Union
import logging
import re
import secrets
import unicodedata

logger = logging.getLogger(__name__)


# =============================================================================
# Exceptions
# =============================================================================


class X12ValidationError(Exception):
    """X12 validation error with detailed context."""

    def __init__(
        self,
        message: str,
        segment_id: Optional[str] = None,
        segment_position: Optional[int] = None,
        element_position: Optional[int] = None,
        raw_segment: Optional[str] = None,
    ):
        self.message = message
        self.segment_id = segment_id
        self.segment_position = segment_position
        self.element_position = element_position
        self.raw_segment = raw_segment
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        parts = [self.message]
        if self.segment_id:
            parts.append(f"Segment: {self.segment_id}")
        if self.segment_position is not None:
            parts.append(f"Position: {self.segment_position}")
        if self.element_position is not None:
            parts.append(f"Element: {self.element_position}")
        return " | ".join(parts)


class X12ParseError(X12ValidationError):
    """Error during X12 parsing."""

    pass


# =============================================================================
# Delimiters
# =============================================================================


@dataclass(frozen=True)
class X12Delimiters:
    """
    Delimiter set for one interchange.

    The ISA header declares the repetition separator in ISA11 and the
    component separator in ISA16; the element separator is the character
    after "ISA" and the segment terminator is the character after ISA16.
    """

    element: str = "*"
    segment: str = "~"
    component: str = ":"
    repetition: str = "^"

    def __post_init__(self) -> None:
        values = (self.element, self.segment, self.component, self.repetition)
        for value in values:
            if len(value) != 1 or value.isalnum() or value == " ":
                raise ValueError(f"Invalid X12 delimiter: {value!r}")
        if len(set(values)) != len(values):
            raise ValueError("X12 delimiters must be distinct")

    @property
    def reserved(self) -> frozenset:
        """Characters that may never appear inside a data element."""
        return frozenset(
            (self.element, self.segment, self.component, self.repetition, "\r", "\n")
        )

    @property
    def newline_terminated(self) -> bool:
        return self.segment in ("\n", "\r")


DEFAULT_DELIMITERS = X12Delimiters()


# =============================================================================
# Element Wrappers
# =============================================================================


class Composite:
    """
    Composite element: sub-elements joined by the component separator.

    Example: Composite("HC", "97110", "GP") -> HC:97110:GP
    """

    __slots__ = ("parts",)

    def __init__(self, *parts: Any):
        self.parts = parts


@dataclass(frozen=True)
class Fixed:
    """Fixed-width element (ISA header fields)."""

    value: Any
    width: int


@dataclass(frozen=True)
class Literal:
    """Element emitted verbatim, bypassing sanitization (ISA11/ISA16 only)."""

    value: str


Element = Union[str, int, Decimal, None, Composite, Fixed, Literal]


# =============================================================================
# Data Models
# =============================================================================


@dataclass
class X12Segment:
    """
    Represents a single X12 segment.

    Example: NM1*IL*1*DOE*JOHN****MI*12345~
    - segment_id: NM1
    - elements: ['IL', '1', 'DOE', 'JOHN', '', '', '', 'MI', '12345']
    """

    segment_id: str
    elements: List[str]
    position: int = 0

    def get_element(self, index: int, default: str = "") -> str:
        """Get element at index (0-based after segment ID)."""
        if 0 <= index < len(self.elements):
            return self.elements[index]
        return default

    def get_element_int(self, index: int, default: int = 0) -> int:
        """Get element as integer."""
        value = self.get_element(index)
        if value:
            try:
                return int(value)
            except ValueError:
                return default
        return default

    def get_element_decimal(self, index: int, default: Optional[Decimal] = Decimal("0")) -> Optional[Decimal]:
        """Get element as Decimal; ``default`` when empty or not numeric."""
        value = self.get_element(index)
        if value:
            try:
                return Decimal(value)
            except InvalidOperation:
                return default
        return default

    def get_composite(self, index: int, separator: str = ":") -> List[str]:
        """Get composite element as list of sub-elements."""
        value = self.get_element(index)
        if value:
            return value.split(separator)
        return []

    def render(self, delimiters: X12Delimiters = DEFAULT_DELIMITERS) -> str:
        """Serialize without the segment terminator."""
        return delimiters.element.join([self.segment_id, *self.elements])

    def __str__(self) -> str:
        return self.render()


@dataclass
class ValidationIssue:
    """A single human-readable validation failure."""

    field: str
    message: str

    def __str__(self) -> str:
        return self.message


@dataclass
class ControlNumbers:
    """Interchange (ISA13), group (GS06) and transaction set (ST02) numbers."""

    isa: str
    gs: str
    st: str


@dataclass
class GenerationResult:
    """
    Outcome of one generator call.

    Binary: on failure ``edi_content`` is None and ``errors`` is non-empty.
    """

    success: bool
    edi_content: Optional[str] = None
    edi_content_formatted: Optional[str] = None
    errors: List[ValidationIssue] = field(default_factory=list)
    control_numbers: Optional[ControlNumbers] = None
    segment_count: int = 0

    @classmethod
    def failure(cls, errors: List[ValidationIssue]) -> "GenerationResult":
        return cls(success=False, errors=list(errors))

    @property
    def error_messages(self) -> List[str]:
        return [issue.message for issue in self.errors]


# =============================================================================
# Encoding Functions
# =============================================================================

# X12 basic + extended character set, excluding the default delimiters.
_ALLOWED_CHARS = re.compile(r"[^A-Za-z0-9 !\"&'()+,\-./;?=%@\[\]_{}\\|<>#$]")
_WHITESPACE = re.compile(r"\s+")
_NON_DIGITS = re.compile(r"\D")

DateLike = Union[date, datetime, str]


def edi_clean(text: Any, delimiters: X12Delimiters = DEFAULT_DELIMITERS) -> str:
    """
    Sanitize free text for use inside a data element.

    Accented characters are folded to ASCII, reserved delimiters and
    characters outside the X12 character set are removed, and runs of
    whitespace collapse to a single space.
    """
    if text is None:
        return ""
    value = unicodedata.normalize("NFKD", str(text))
    value = value.encode("ascii", "ignore").decode("ascii")
    value = "".join(" " if ch in delimiters.reserved else ch for ch in value)
    # Tabs and form feeds separate words; fold them before filtering
    value = _ALLOWED_CHARS.sub("", _WHITESPACE.sub(" ", value))
    return _WHITESPACE.sub(" ", value).strip()


def digits_only(value: Any) -> str:
    """Strip every non-digit character."""
    if value is None:
        return ""
    return _NON_DIGITS.sub("", str(value))


def format_npi(npi: Any) -> str:
    """Strip formatting (dashes, spaces) from an NPI."""
    return digits_only(npi)


def format_tax_id(tax_id: Any) -> str:
    """Strip formatting from an EIN (12-3456789 -> 123456789)."""
    return digits_only(tax_id)


def _as_date(value: DateLike) -> date:
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value).strip()[:10])


def edi_date(value: DateLike) -> str:
    """Format as CCYYMMDD."""
    return _as_date(value).strftime("%Y%m%d")


def isa_date(value: DateLike) -> str:
    """Format as YYMMDD for ISA09."""
    return edi_date(value)[2:]


def edi_time(value: datetime) -> str:
    """Format as HHMM (24-hour)."""
    return value.strftime("%H%M")


def fixed_width(value: Any, width: int) -> str:
    """Right-pad with spaces or truncate to exactly ``width`` characters."""
    text = "" if value is None else str(value)
    return text[:width].ljust(width)


def zero_pad(number: Union[int, str], width: int) -> str:
    """Left-pad a control number with zeros."""
    return str(number).zfill(width)[-width:]


def to_decimal(amount: Any) -> Decimal:
    """Coerce a money/quantity value to Decimal without float artifacts."""
    if isinstance(amount, Decimal):
        return amount
    if isinstance(amount, float):
        return Decimal(repr(amount))
    try:
        return Decimal(str(amount).strip())
    except InvalidOperation:
        raise ValueError(f"Not a numeric amount: {amount!r}")


def edi_decimal(amount: Any) -> str:
    """Format a monetary amount with exactly two decimals, no grouping."""
    quantized = to_decimal(amount).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    return format(quantized, "f")


def edi_quantity(quantity: Any) -> str:
    """Format a unit count; whole numbers drop the fraction (1.00 -> 1)."""
    value = to_decimal(quantity)
    if value == value.to_integral_value():
        return str(int(value))
    return format(value.normalize(), "f")


def generate_control_number(width: int = 9) -> str:
    """
    Generate a random, non-zero numeric control number.

    Uniqueness only needs to hold within one submitter's interchange stream.
    """
    return zero_pad(secrets.randbelow(10 ** width - 1) + 1, width)


def validate_npi(npi: str) -> bool:
    """
    Validate NPI using Luhn algorithm.

    NPI is a 10-digit identifier for healthcare providers.
    """
    if not npi or len(npi) != 10:
        return False

    if not npi.isdigit():
        return False

    # Luhn over the ISO card issuer prefix 80840 + NPI
    full_number = "80840" + npi

    total = 0
    for i, digit in enumerate(reversed(full_number)):
        d = int(digit)
        if i % 2 == 0:
            total += d
        else:
            doubled = d * 2
            total += doubled if doubled < 10 else doubled - 9

    return total % 10 == 0


def require(
    errors: List[ValidationIssue],
    value: Any,
    field_name: str,
    label: str,
    delimiters: X12Delimiters = DEFAULT_DELIMITERS,
) -> str:
    """Clean a mandatory value, recording an issue if nothing survives."""
    cleaned = edi_clean(value, delimiters)
    if not cleaned:
        errors.append(ValidationIssue(field_name, f"{label} is required"))
    return cleaned


# =============================================================================
# Segment Builder
# =============================================================================


class X12SegmentBuilder:
    """
    Ordered segment list with a single point of sanitization.

    Every element passes through ``edi_clean`` unless wrapped in ``Literal``.
    Trailing empty elements are dropped; interior ones keep their position.

    Usage:
        builder = X12SegmentBuilder(X12Delimiters(segment="~"))
        builder.add("NM1", "85", "2", clinic_name, None, None, None, None, "XX", npi)
        content = builder.render()
    """

    def __init__(self, delimiters: Optional[X12Delimiters] = None):
        self.delimiters = delimiters or DEFAULT_DELIMITERS
        self.segments: List[X12Segment] = []

    def __len__(self) -> int:
        return len(self.segments)

    def add(self, segment_id: str, *elements: Element) -> X12Segment:
        rendered = [self._render_element(element) for element in elements]
        while rendered and rendered[-1] == "":
            rendered.pop()
        segment = X12Segment(segment_id, rendered, position=len(self.segments))
        self.segments.append(segment)
        return segment

    def extend(self, other: "X12SegmentBuilder") -> None:
        for segment in other.segments:
            segment.position = len(self.segments)
            self.segments.append(segment)

    def _render_element(self, element: Element) -> str:
        if isinstance(element, Literal):
            return element.value
        if isinstance(element, Fixed):
            return fixed_width(edi_clean(element.value, self.delimiters), element.width)
        if isinstance(element, Composite):
            parts = [edi_clean(part, self.delimiters) for part in element.parts]
            while parts and parts[-1] == "":
                parts.pop()
            return self.delimiters.component.join(parts)
        return edi_clean(element, self.delimiters)

    def lines(self) -> List[str]:
        return [segment.render(self.delimiters) for segment in self.segments]

    def render(self) -> str:
        """Wire format: each segment followed by the terminator."""
        terminator = self.delimiters.segment
        return "".join(line + terminator for line in self.lines())

    def render_formatted(self) -> str:
        """One segment per line, for display."""
        if self.delimiters.newline_terminated:
            return self.render()
        terminator = self.delimiters.segment
        return "\n".join(line + terminator for line in self.lines())


def count_transaction_segments(segments: List[X12Segment]) -> int:
    """Number of segments from ST through SE inclusive (SE01)."""
    start = next((i for i, s in enumerate(segments) if s.segment_id == "ST"), None)
    if start is None:
        return 0
    for end in range(start, len(segments)):
        if segments[end].segment_id == "SE":
            return end - start + 1
    # No SE yet: count as if SE were appended next
    return len(segments) - start + 1


# =============================================================================
# Tokenizer
# =============================================================================


class X12Tokenizer:
    """
    X12 EDI tokenizer.

    Handles parsing of raw X12 content into segments and elements.
    Automatically detects delimiters from ISA segment.
    """

    def __init__(self, delimiters: Optional[X12Delimiters] = None):
        self.delimiters = delimiters or DEFAULT_DELIMITERS

    @property
    def element_separator(self) -> str:
        return self.delimiters.element

    @property
    def segment_terminator(self) -> str:
        return self.delimiters.segment

    @property
    def component_separator(self) -> str:
        return self.delimiters.component

    @staticmethod
    def detect_delimiters(content: str) -> X12Delimiters:
        """
        Detect delimiters from ISA segment.

        ISA is always 106 characters with fixed positions:
        - Element separator: position 3
        - Repetition separator: ISA11 (position 82)
        - Component separator: position 104
        - Segment terminator: position 105
        """
        if not content.startswith("ISA"):
            raise X12ParseError("Content must start with ISA segment")

        if len(content) < 106:
            raise X12ParseError("ISA segment must be at least 106 characters")

        try:
            return X12Delimiters(
                element=content[3],
                segment=content[105],
                component=content[104],
                repetition=content[82] if not content[82].isalnum() else "^",
            )
        except ValueError as e:
            raise X12ParseError(f"Invalid ISA delimiters: {e}", segment_id="ISA")

    def tokenize(self, content: str, auto_detect: bool = True) -> List[X12Segment]:
        """
        Tokenize X12 content into segments.

        Args:
            content: Raw X12 EDI content
            auto_detect: Automatically detect delimiters from ISA

        Returns:
            List of X12Segment objects
        """
        if content is None:
            raise X12ParseError("No content provided to tokenize")

        content = content.lstrip()

        if auto_detect and content.startswith("ISA"):
            self.delimiters = self.detect_delimiters(content)

        segments = []
        for raw in content.split(self.delimiters.segment):
            raw = raw.replace("\r", "").replace("\n", "").strip()
            if not raw:
                continue

            elements = raw.split(self.delimiters.element)
            segments.append(
                X12Segment(
                    segment_id=elements[0],
                    elements=elements[1:],
                    position=len(segments),
                )
            )

        return segments


# =============================================================================
# Envelope Validation
# =============================================================================


def validate_envelope(segments: List[X12Segment]) -> List[str]:
    """
    Check interchange/group/transaction-set control bookkeeping.

    Verifies ISA13 = IEA02, GS06 = GE02, ST02 = SE02, the SE01 segment count
    and the GE01/IEA01 inner counts. Returns a list of problems (empty when
    the envelope is consistent).
    """
    problems: List[str] = []

    def first(segment_id: str) -> Optional[X12Segment]:
        return next((s for s in segments if s.segment_id == segment_id), None)

    isa, iea = first("ISA"), first("IEA")
    gs, ge = first("GS"), first("GE")

    for segment_id, segment in (("ISA", isa), ("IEA", iea), ("GS", gs), ("GE", ge)):
        if segment is None:
            problems.append(f"Missing {segment_id} segment")

    if isa and iea:
        if isa.get_element(12) != iea.get_element(1):
            problems.append(
                f"ISA13 {isa.get_element(12)!r} does not match IEA02 {iea.get_element(1)!r}"
            )
        group_count = sum(1 for s in segments if s.segment_id == "GS")
        if iea.get_element_int(0, -1) != group_count:
            problems.append(f"IEA01 {iea.get_element(0)!r} != {group_count} functional groups")

    if gs and ge:
        if gs.get_element(5) != ge.get_element(1):
            problems.append(
                f"GS06 {gs.get_element(5)!r} does not match GE02 {ge.get_element(1)!r}"
            )
        set_count = sum(1 for s in segments if s.segment_id == "ST")
        if ge.get_element_int(0, -1) != set_count:
            problems.append(f"GE01 {ge.get_element(0)!r} != {set_count} transaction sets")

    start: Optional[int] = None
    st: Optional[X12Segment] = None
    for index, segment in enumerate(segments):
        if segment.segment_id == "ST":
            start, st = index, segment
        elif segment.segment_id == "SE":
            if st is None or start is None:
                problems.append("SE segment without a preceding ST")
                continue
            actual = index - start + 1
            if segment.get_element_int(0, -1) != actual:
                problems.append(f"SE01 {segment.get_element(0)!r} != {actual} segments")
            if segment.get_element(1) != st.get_element(1):
                problems.append(
                    f"ST02 {st.get_element(1)!r} does not match SE02 {segment.get_element(1)!r}"
                )
            start, st = None, None

    if st is not None:
        problems.append("ST segment without a matching SE")

    return problems


def parse_x12_date(date_str: str) -> Optional[date]:
    """
    Parse X12 date format (CCYYMMDD or YYMMDD).

    Args:
        date_str: Date string in X12 format

    Returns:
        Python date object or None
    """
    if not date_str:
        return None

    try:
        if len(date_str) == 8:
            return datetime.strptime(date_str, "%Y%m%d").date()
        elif len(date_str) == 6:
            # Assume 20xx for 2-digit year
            year = int(date_str[:2])
            if year < 50:
                year += 2000
            else:
                year += 1900
            return date(year, int(date_str[2:4]), int(date_str[4:6]))
    except ValueError:
        pass

    return None

