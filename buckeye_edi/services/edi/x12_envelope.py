"""
X12 Interchange Envelope Writer.

Source: ASC X12.5 Interchange Control Structures (005010)
Verified: 2026-10-16

Shared ISA/GS/SE/GE/IEA handling for the outbound generators. Each
generator builds its own ST..(pre-SE) body; the writer closes the
transaction set with a recomputed SE01 count and wraps it in one
functional group inside one interchange.
"""

from datetime import datetime
from typing import Callable, Optional
import logging

from buckeye_edi.services.edi.x12_base import (
    ControlNumbers,
    Fixed,
    GenerationResult,
    Literal,
    X12Delimiters,
    X12SegmentBuilder,
    count_transaction_segments,
    edi_date,
    edi_time,
    generate_control_number,
    isa_date,
)

logger = logging.getLogger(__name__)

ControlNumberFactory = Callable[[int], str]
Clock = Callable[[], datetime]

# ISA13 is fixed at 9 digits; GS06/ST02 allow 1-9 and 4-9.
ISA_CONTROL_WIDTH = 9
GS_CONTROL_WIDTH = 6
ST_CONTROL_WIDTH = 4


class X12EnvelopeWriter:
    """
    Base class for single-transaction X12 generators.

    Subclasses set TRANSACTION_SET_ID, FUNCTIONAL_ID and VERSION.
    """

    TRANSACTION_SET_ID = ""
    FUNCTIONAL_ID = ""
    VERSION = ""

    def __init__(
        self,
        delimiters: Optional[X12Delimiters] = None,
        usage_indicator: str = "P",
        sender_qualifier: str = "ZZ",
        receiver_qualifier: str = "ZZ",
        clock: Optional[Clock] = None,
        control_number_factory: Optional[ControlNumberFactory] = None,
    ):
        if usage_indicator not in ("P", "T"):
            raise ValueError("usage_indicator must be 'P' (production) or 'T' (test)")
        self.delimiters = delimiters or X12Delimiters()
        self.usage_indicator = usage_indicator
        self.sender_qualifier = sender_qualifier
        self.receiver_qualifier = receiver_qualifier
        self._clock = clock or datetime.now
        self._control_number = control_number_factory or generate_control_number

    def _new_builder(self) -> X12SegmentBuilder:
        return X12SegmentBuilder(self.delimiters)

    def _new_control_numbers(self) -> ControlNumbers:
        return ControlNumbers(
            isa=self._control_number(ISA_CONTROL_WIDTH),
            gs=self._control_number(GS_CONTROL_WIDTH),
            st=self._control_number(ST_CONTROL_WIDTH),
        )

    def _new_reference(self) -> str:
        """Fresh 9-digit reference number, independent of the envelope numbers."""
        return self._control_number(ISA_CONTROL_WIDTH)

    def _begin_transaction(self, controls: ControlNumbers) -> X12SegmentBuilder:
        """Start the transaction body with its ST header."""
        transaction = self._new_builder()
        transaction.add("ST", self.TRANSACTION_SET_ID, controls.st, self.VERSION)
        return transaction

    def _build_interchange(
        self,
        transaction: X12SegmentBuilder,
        controls: ControlNumbers,
        sender_id: str,
        receiver_id: str,
        now: datetime,
    ) -> GenerationResult:
        """Close the transaction set and wrap it in GS/GE and ISA/IEA."""
        # SE01 counts ST through SE inclusive, so +1 for SE itself
        segment_count = len(transaction) + 1
        transaction.add("SE", str(segment_count), controls.st)

        interchange = self._new_builder()
        interchange.add(
            "ISA",
            "00",
            Fixed("", 10),
            "00",
            Fixed("", 10),
            self.sender_qualifier,
            Fixed(sender_id, 15),
            self.receiver_qualifier,
            Fixed(receiver_id, 15),
            isa_date(now),
            edi_time(now),
            Literal(self.delimiters.repetition),
            "00501",
            controls.isa,
            "0",
            self.usage_indicator,
            Literal(self.delimiters.component),
        )
        interchange.add(
            "GS",
            self.FUNCTIONAL_ID,
            sender_id,
            receiver_id,
            edi_date(now),
            edi_time(now),
            controls.gs,
            "X",
            self.VERSION,
        )
        interchange.extend(transaction)
        interchange.add("GE", "1", controls.gs)
        interchange.add("IEA", "1", controls.isa)

        counted = count_transaction_segments(interchange.segments)
        if counted != segment_count:
            raise RuntimeError(f"SE01 mismatch: wrote {segment_count}, counted {counted}")

        logger.info(
            f"Generated {self.TRANSACTION_SET_ID} interchange {controls.isa} "
            f"({segment_count} transaction segments)"
        )

        return GenerationResult(
            success=True,
            edi_content=interchange.render(),
            edi_content_formatted=interchange.render_formatted(),
            control_numbers=controls,
            segment_count=segment_count,
        )
