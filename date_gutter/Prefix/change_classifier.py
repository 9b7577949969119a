# change_classifier.py
# Description: Turns raw change notifications into per-line prefix corrections
#
# Imports
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Sequence
#
# Third-Party Imports
from loguru import logger
#
# Local Imports
from .eligibility import EligibilityFilter
from .prefix_codec import has_prefix, is_blank, line_record
from ..Buffer.host_buffer import HostBuffer
from ..Buffer.text_types import LINE_BREAK_PATTERN, ChangeRecord
#
########################################################################################################################
#
# Classes:

class CorrectionKind(Enum):
    """What has to happen to a line at commit time."""
    REFRESH_DATE = "refresh_date"
    INSERT_PREFIX = "insert_prefix"


@dataclass(frozen=True)
class PendingCorrection:
    line_index: int
    kind: CorrectionKind
    sequence_override: Optional[int] = None

    def moved_to(self, line_index: int) -> "PendingCorrection":
        return PendingCorrection(line_index, self.kind, self.sequence_override)


class _LineState(Enum):
    TOUCHED = "touched"
    CREATED = "created"

#
########################################################################################################################
#
# Functions:

def remap_line(index: int, change: ChangeRecord) -> Optional[int]:
    """
    Where line `index` ends up after `change`, or None when the change merged
    it into the change's first line.
    """
    if index == change.start_line and change.is_insert_at_line_start:
        # Line breaks typed at column 0 push the whole line down.
        return index + change.line_break_count
    if index <= change.start_line:
        return index
    if index <= change.end_line:
        return None
    return index + change.line_delta


def is_prefixed_paste(inserted_text: str) -> bool:
    """
    Heuristic for "this multi-line insert already carries its own prefixes".

    True when the first line of the inserted text begins with a well-formed
    12-digit prefix. Pastes of prefixed content that start mid-line (so their
    first line is a fragment) are not detected; the per-line prefix check still
    keeps those lines from being prefixed twice. Content that happens to start
    with 12 digits (a numeric literal, a timestamp) is treated as prefixed.
    """
    first_line = LINE_BREAK_PATTERN.split(inserted_text, maxsplit=1)[0]
    return has_prefix(first_line)


def _is_pure_line_break_insert(change: ChangeRecord) -> bool:
    return (
        change.start_line == change.end_line
        and change.start_character == change.end_character
        and change.line_break_count > 0
        and LINE_BREAK_PATTERN.sub("", change.text) == ""
    )


def _splits_at_line_end(change: ChangeRecord, later: Sequence[ChangeRecord], document: HostBuffer) -> bool:
    """
    Whether a pure line-break insert landed at the end of its line.

    Uses the line length the host recorded before the change when there is
    one. Otherwise the new tail line is followed through the rest of the batch
    and checked for being empty in the final document.
    """
    if change.start_line_length is not None:
        return change.start_character == change.start_line_length
    tail = change.start_line + change.line_break_count
    for other in later:
        tail = remap_line(tail, other)
        if tail is None:
            return False
    return tail < document.line_count and document.line_text(tail) == ""


def _candidates_for(change: ChangeRecord, later: Sequence[ChangeRecord],
                    document: HostBuffer) -> Dict[int, _LineState]:
    """Candidate lines for one change, in the coordinates right after that change."""
    candidates: Dict[int, _LineState] = {}
    start = change.start_line
    breaks = change.line_break_count

    if _is_pure_line_break_insert(change):
        if change.start_character == 0:
            # Split at column 0: the empty lines sit above the original line.
            for index in range(start, start + breaks):
                candidates[index] = _LineState.CREATED
            return candidates
        if _splits_at_line_end(change, later, document):
            # Enter at end of line: only the new line(s) need work.
            for index in range(start + 1, start + breaks + 1):
                candidates[index] = _LineState.CREATED
            return candidates

    last_touched = min(change.end_line, start + breaks)
    for index in range(start, last_touched + 1):
        candidates[index] = _LineState.TOUCHED

    if breaks and not is_prefixed_paste(change.text):
        for index in range(start + 1, start + breaks + 1):
            candidates.setdefault(index, _LineState.CREATED)
    return candidates


def _resolve(index: int, state: _LineState, text: str) -> Optional[PendingCorrection]:
    if has_prefix(text):
        if state is _LineState.TOUCHED:
            return PendingCorrection(index, CorrectionKind.REFRESH_DATE)
        return None
    if state is _LineState.CREATED or not is_blank(text):
        return PendingCorrection(index, CorrectionKind.INSERT_PREFIX)
    return None


def plan_resync(document: HostBuffer) -> Dict[int, PendingCorrection]:
    """
    Full-document pass: prefix every non-blank line that lacks one and repair
    date fields that are not real dates. Already-correct lines produce nothing,
    so a second pass right after a committed first one is empty.
    """
    corrections: Dict[int, PendingCorrection] = {}
    for index in range(document.line_count):
        record = line_record(index, document.line_text(index))
        if record.is_blank:
            continue
        if record.prefix is None:
            corrections[index] = PendingCorrection(index, CorrectionKind.INSERT_PREFIX)
        elif record.prefix.date is None:
            corrections[index] = PendingCorrection(index, CorrectionKind.REFRESH_DATE)
    return corrections

#
########################################################################################################################
#
# Classes:

class ChangeClassifier:
    """Classifies one notification batch for one document."""

    def __init__(self, eligibility: EligibilityFilter):
        self._eligibility = eligibility

    def classify(self, document: HostBuffer, changes: Sequence[ChangeRecord]) -> Dict[int, PendingCorrection]:
        if not changes or not self._eligibility.is_eligible(document.identity):
            return {}

        candidates: Dict[int, _LineState] = {}
        for position, change in enumerate(changes):
            remapped: Dict[int, _LineState] = {}
            for index, state in candidates.items():
                moved = remap_line(index, change)
                if moved is not None:
                    remapped[moved] = state
            for index, state in _candidates_for(change, changes[position + 1:], document).items():
                if remapped.get(index) is not _LineState.TOUCHED:
                    remapped[index] = state
            candidates = remapped

        corrections: Dict[int, PendingCorrection] = {}
        line_count = document.line_count
        for index in sorted(candidates):
            if index < 0 or index >= line_count:
                continue
            correction = _resolve(index, candidates[index], document.line_text(index))
            if correction is not None:
                corrections[index] = correction

        if corrections:
            logger.debug(
                f"Classified {len(changes)} change(s) on {document.identity}: "
                f"{sum(1 for c in corrections.values() if c.kind is CorrectionKind.INSERT_PREFIX)} insert, "
                f"{sum(1 for c in corrections.values() if c.kind is CorrectionKind.REFRESH_DATE)} refresh"
            )
        return corrections

#
# End of change_classifier.py
########################################################################################################################
