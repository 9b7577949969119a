# edit_applier.py
# Description: Commits a batch of prefix corrections as one atomic host transaction
#
# Imports
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional
#
# Third-Party Imports
from loguru import logger
#
# Local Imports
from .change_classifier import CorrectionKind, PendingCorrection
from .prefix_codec import (
    DATE_LENGTH, PREFIX_LENGTH, SEQUENCE_LENGTH, ZERO_DATE, MAX_SEQUENCE,
    format_date, format_sequence, has_prefix,
)
from ..Buffer.host_buffer import HostBuffer
from ..Buffer.text_types import Position, Range, TextEdit
#
########################################################################################################################
#
# Classes:

@dataclass
class ApplyResult:
    """Outcome of one commit."""
    success: bool
    applied: List[int] = field(default_factory=list)
    skipped: List[int] = field(default_factory=list)
    edits: List[TextEdit] = field(default_factory=list)

    @property
    def applied_count(self) -> int:
        return len(self.applied)


class EditApplier:
    """
    Turns corrections into text edits against the current buffer state.

    Every target line is re-checked right before the edit is built, since the
    text may have moved on since classification: a date refresh needs the line
    to still carry a prefix, an insertion needs it to still lack one. Lines
    that no longer qualify are skipped individually; the rest go to the host
    as a single transaction.
    """

    def __init__(self, new_prefix_date: str = "today"):
        self.new_prefix_date = new_prefix_date

    def build_edits(self, buffer: HostBuffer, corrections: Dict[int, PendingCorrection],
                    today: date) -> ApplyResult:
        """Plan the edits without touching the buffer. `success` is left False."""
        result = ApplyResult(success=False)
        date_field = format_date(today)
        insert_date = ZERO_DATE if self.new_prefix_date == "zero" else date_field
        line_count = buffer.line_count

        for index in sorted(corrections, reverse=True):
            correction = corrections[index]
            if index < 0 or index >= line_count:
                result.skipped.append(index)
                continue
            text = buffer.line_text(index)

            if correction.kind is CorrectionKind.REFRESH_DATE:
                if not has_prefix(text):
                    result.skipped.append(index)
                    continue
                if text[SEQUENCE_LENGTH:PREFIX_LENGTH] == date_field:
                    # Already current; nothing to write.
                    result.skipped.append(index)
                    continue
                result.edits.append(TextEdit.replace(
                    Range(Position(index, SEQUENCE_LENGTH), Position(index, SEQUENCE_LENGTH + DATE_LENGTH)),
                    date_field,
                ))
            else:
                if has_prefix(text):
                    result.skipped.append(index)
                    continue
                if correction.sequence_override is not None:
                    sequence = f"{min(max(correction.sequence_override, 1), MAX_SEQUENCE):0{SEQUENCE_LENGTH}d}"
                else:
                    sequence = format_sequence(index)
                result.edits.append(TextEdit.insert(Position(index, 0), sequence + insert_date))
            result.applied.append(index)
        return result

    async def apply(self, buffer: HostBuffer, corrections: Dict[int, PendingCorrection],
                    today: Optional[date] = None) -> ApplyResult:
        today = today or date.today()
        result = self.build_edits(buffer, corrections, today)
        if not result.edits:
            result.success = True
            return result

        try:
            ok = await buffer.apply_edits(result.edits)
        except Exception as e:
            logger.error(f"Prefix transaction raised on {buffer.identity}: {e}")
            ok = False

        if not ok:
            logger.warning(
                f"Prefix transaction failed on {buffer.identity}; dropping {len(result.edits)} edit(s)"
            )
            result.skipped.extend(result.applied)
            result.applied = []
            result.success = False
            return result

        result.success = True
        logger.debug(
            f"Committed {len(result.applied)} prefix correction(s) on {buffer.identity} "
            f"({len(result.skipped)} skipped)"
        )
        return result

#
# End of edit_applier.py
########################################################################################################################
