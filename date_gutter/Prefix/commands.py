# commands.py
# Description: User-invoked prefix commands (copy, delete, force-insert, zero-date) and selection helpers
#
# Imports
from dataclasses import dataclass, field
from typing import List, Optional, Sequence
#
# Local Imports
from .prefix_codec import (
    DATE_LENGTH, PREFIX_LENGTH, SEQUENCE_LENGTH, ZERO_DATE,
    format_sequence, has_prefix, strip_prefix,
)
from ..Buffer.host_buffer import HostBuffer
from ..Buffer.text_types import Position, Range, Selection, TextEdit
#
########################################################################################################################
#
# Constants:

COPY_WITHOUT_PREFIX = "date-gutter.copyWithoutPrefix"
DELETE_SELECTED_LINES = "date-gutter.removePrefixFromSelection"
FORCE_INSERT_PREFIX = "date-gutter.forceInsertPrefix"
SET_DATE_TO_ZERO = "date-gutter.setDateToZero"
RESYNC_DOCUMENT = "date-gutter.resync"

#
########################################################################################################################
#
# Classes:

@dataclass
class CommandPlan:
    """Edits a command wants applied, plus the message to show once they are."""
    edits: List[TextEdit] = field(default_factory=list)
    message: str = ""
    affected_lines: List[int] = field(default_factory=list)

#
########################################################################################################################
#
# Functions:

def selected_line_indexes(buffer: HostBuffer, selections: Sequence[Selection]) -> List[int]:
    """Every line touched by any selection, ascending and de-duplicated."""
    lines = set()
    last = buffer.line_count - 1
    for selection in selections:
        start = max(selection.start.line, 0)
        end = min(selection.end.line, last)
        lines.update(range(start, end + 1))
    return sorted(lines)


def copy_without_prefix_text(buffer: HostBuffer, selections: Sequence[Selection]) -> str:
    """
    Selected text with the 12-character prefix left out of every line that
    actually carries one. With nothing selected, the cursor line is copied.
    Multiple selections are joined with line breaks.
    """
    non_empty = [s for s in selections if not s.is_empty]
    if not non_empty:
        if not selections or buffer.line_count == 0:
            return ""
        return strip_prefix(buffer.line_text(selections[0].active.line))

    pieces = []
    for selection in non_empty:
        start, end = selection.start, selection.end
        lines = []
        for index in range(start.line, end.line + 1):
            text = buffer.line_text(index)
            start_char = start.character if index == start.line else 0
            end_char = end.character if index == end.line else len(text)
            if start_char < PREFIX_LENGTH and has_prefix(text):
                start_char = PREFIX_LENGTH
            lines.append(text[start_char:end_char])
        pieces.append("\n".join(lines))
    return "\n".join(pieces)


def plan_delete_selected_lines(buffer: HostBuffer, selections: Sequence[Selection]) -> CommandPlan:
    """
    Delete every line touched by a selection, prefixed or not. Adjacent lines
    are deleted as one block, and blocks are emitted bottom-up so no edit
    shifts another's line numbers.
    """
    lines = selected_line_indexes(buffer, selections)
    plan = CommandPlan(affected_lines=lines)
    if not lines:
        return plan

    blocks = []
    block_start = previous = lines[0]
    for index in lines[1:]:
        if index != previous + 1:
            blocks.append((block_start, previous))
            block_start = index
        previous = index
    blocks.append((block_start, previous))

    last_line = buffer.line_count - 1
    for first, last in reversed(blocks):
        if last < last_line:
            range_ = Range.from_coords(first, 0, last + 1, 0)
        elif first > 0:
            # Trailing block: take the line break before it instead of after.
            range_ = Range.from_coords(first - 1, len(buffer.line_text(first - 1)),
                                       last, len(buffer.line_text(last)))
        else:
            range_ = Range.from_coords(0, 0, last, len(buffer.line_text(last)))
        plan.edits.append(TextEdit.delete(range_))

    prefixed = sum(1 for index in lines if has_prefix(buffer.line_text(index)))
    total = len(lines)
    plan.message = f"Deleted {total} line{'s' if total > 1 else ''}"
    if prefixed > 0:
        plan.message += f" ({prefixed} with number prefix)"
    return plan


def plan_force_insert_prefix(buffer: HostBuffer, selections: Sequence[Selection]) -> CommandPlan:
    """Give every selected line that lacks a prefix one with an all-zero date."""
    plan = CommandPlan()
    for index in reversed(selected_line_indexes(buffer, selections)):
        if has_prefix(buffer.line_text(index)):
            continue
        plan.edits.append(TextEdit.insert(Position(index, 0), format_sequence(index) + ZERO_DATE))
        plan.affected_lines.insert(0, index)
    count = len(plan.affected_lines)
    if count:
        plan.message = f"Inserted prefix on {count} line{'s' if count > 1 else ''}"
    else:
        plan.message = "All selected lines already have a prefix"
    return plan


def plan_set_date_to_zero(buffer: HostBuffer, selections: Sequence[Selection]) -> CommandPlan:
    """Rewrite the date field of every selected prefixed line to 000000, keeping the sequence."""
    plan = CommandPlan()
    for index in reversed(selected_line_indexes(buffer, selections)):
        text = buffer.line_text(index)
        if not has_prefix(text):
            continue
        plan.affected_lines.insert(0, index)
        if text[SEQUENCE_LENGTH:PREFIX_LENGTH] == ZERO_DATE:
            continue
        plan.edits.append(TextEdit.replace(
            Range.from_coords(index, SEQUENCE_LENGTH, index, SEQUENCE_LENGTH + DATE_LENGTH),
            ZERO_DATE,
        ))
    count = len(plan.affected_lines)
    if count:
        plan.message = f"Set date to {ZERO_DATE} on {count} line{'s' if count > 1 else ''}"
    else:
        plan.message = "No selected lines have a prefix"
    return plan


def available_code_actions(buffer: HostBuffer, range_: Range) -> List[str]:
    """Copy and delete are offered only for a non-empty range that touches a prefixed line."""
    if range_.is_empty:
        return []
    last = min(range_.end.line, buffer.line_count - 1)
    for index in range(max(range_.start.line, 0), last + 1):
        if has_prefix(buffer.line_text(index)):
            return [COPY_WITHOUT_PREFIX, DELETE_SELECTED_LINES]
    return []


def adjust_selections(buffer: HostBuffer, selections: Sequence[Selection]) -> Optional[List[Selection]]:
    """
    Move the start of multi-line selections out of the hidden prefix.

    A multi-line selection starting before column 12 of a prefixed line is
    moved to start at column 12; its direction is kept. Returns None when no
    selection needed adjusting.
    """
    adjusted = []
    modified = False
    for selection in selections:
        start = selection.start
        if (selection.is_single_line or start.character >= PREFIX_LENGTH
                or start.line >= buffer.line_count
                or not has_prefix(buffer.line_text(start.line))):
            adjusted.append(selection)
            continue
        new_start = Position(start.line, PREFIX_LENGTH)
        if selection.is_reversed:
            adjusted.append(Selection(anchor=selection.end, active=new_start))
        else:
            adjusted.append(Selection(anchor=new_start, active=selection.end))
        modified = True
    return adjusted if modified else None

#
# End of commands.py
########################################################################################################################
