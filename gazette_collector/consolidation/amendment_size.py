"""
Amendment size calculation for a legislative record.

Chooses which earlier text each amendment is compared with, then measures
the difference with TextDiffSizeCalculator.

- First debate: the bill text.
- Third debate of an EXCEPTIONAL procedure (first and third debate joined):
  the bill text.
- Fourth debate of an EXCEPTIONAL procedure: the amendment two stages back.
- Any other stage: the amendment of the previous stage.
"""
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from gazette_collector.consolidation.text_diff import TextDiffSizeCalculator
from gazette_collector.core.exceptions import InvalidInputError

logger = logging.getLogger(__name__)

FIRST_DEBATE = "First debate"
THIRD_DEBATE = "Third debate"
FOURTH_DEBATE = "Fourth debate"

# Known URL, text not collected yet
AMENDMENT_TEXT_PLACEHOLDER = "AMENDMENT text"


class ProcedureType(str, Enum):
    REGULAR = "regular"
    EXCEPTIONAL = "exceptional"


@dataclass
class Amendment:
    """Text of a bill as approved at one legislative stage."""
    stage_number: int
    stage_name: str
    amendment_text: Optional[str] = None
    amendment_id: Optional[str] = None


@dataclass
class LegislativeRecord:
    """The parts of a legislative record the size calculation needs."""
    record_id: str
    bill_text: Optional[str] = None
    procedure_type: ProcedureType = ProcedureType.REGULAR
    amendments: List[Amendment] = field(default_factory=list)


def usable_text(text: Optional[str]) -> Optional[str]:
    """The text, or None for missing texts and placeholders."""
    if text is None or text.startswith(AMENDMENT_TEXT_PLACEHOLDER):
        return None
    return text


class AmendmentSizeCalculator:
    """Amendment sizes of one legislative record."""

    def __init__(self, record: LegislativeRecord, diff_calculator: Optional[TextDiffSizeCalculator] = None):
        self.record = record
        self.diff_calculator = diff_calculator or TextDiffSizeCalculator()

    def previous_text(self, amendment: Amendment) -> Optional[str]:
        """The text the amendment is compared with."""
        exceptional = self.record.procedure_type == ProcedureType.EXCEPTIONAL

        if amendment.stage_name == FIRST_DEBATE or (exceptional and amendment.stage_name == THIRD_DEBATE):
            return self.record.bill_text
        if exceptional and amendment.stage_name == FOURTH_DEBATE:
            return self._amendment_text(amendment.stage_number - 2)
        return self._amendment_text(amendment.stage_number - 1)

    def size_of(self, amendment: Amendment) -> int:
        """
        Number of characters the amendment changed.

        Raises:
            InvalidInputError: The amendment is not part of the record, or a
                               text needed for the comparison is missing
        """
        if not any(own is amendment for own in self.record.amendments):
            raise InvalidInputError(
                "Amendment does not belong to the record",
                details={'amendment_id': amendment.amendment_id, 'record_id': self.record.record_id},
            )

        amended_text = usable_text(amendment.amendment_text)
        previous_text = self.previous_text(amendment)
        if amended_text is None or previous_text is None:
            raise InvalidInputError(f"Text is blank for amendment calculation for {amendment.stage_name}")

        return self.diff_calculator.compute(previous_text, amended_text)

    def amendment_sizes(self) -> Dict[str, int]:
        """Sizes by stage name. Stages that cannot be measured are logged and left out."""
        sizes = {}
        for amendment in self.record.amendments:
            try:
                sizes[amendment.stage_name] = self.size_of(amendment)
            except InvalidInputError as e:
                logger.error(f"Record {self.record.record_id}: {e}")
        return sizes

    def _amendment_text(self, stage_number: int) -> Optional[str]:
        for amendment in self.record.amendments:
            if amendment.stage_number == stage_number:
                return usable_text(amendment.amendment_text)
        return None
