# memory_buffer.py
# Description: In-memory host buffer with atomic multi-edit transactions
#
# Imports
from typing import List, Optional, Sequence
#
# Third-Party Imports
from loguru import logger
#
# Local Imports
from .host_buffer import HostBuffer, validate_edits
from .text_types import ChangeRecord, DocumentIdentity, Position, Range, Selection, TextEdit, split_lines
from ..Prefix.exceptions import InvalidEditError
#
########################################################################################################################
#
# Classes:

class InMemoryBuffer(HostBuffer):
    """
    A plain list-of-lines document that implements the full host contract.

    Used for headless reconciliation (e.g. fixing up files on disk) and as the
    test double for editor hosts. `fail_transactions` makes every transaction
    report failure without touching the text, the way a host rejects a stale
    workspace edit.
    """

    def __init__(self, identity: DocumentIdentity, text: str = "",
                 selections: Optional[List[Selection]] = None):
        super().__init__(identity)
        self.line_separator = "\r\n" if "\r\n" in text else "\n"
        self._lines: List[str] = split_lines(text)
        self._selections: List[Selection] = list(selections) if selections else [Selection.cursor(0, 0)]
        self._visible_ranges: List[Range] = []
        self.version = 0
        self.transaction_count = 0
        self.fail_transactions = False

    # --- Read access ---

    @property
    def line_count(self) -> int:
        return len(self._lines)

    def line_text(self, index: int) -> str:
        if index < 0 or index >= len(self._lines):
            raise IndexError(f"Line {index} is outside {self.identity} ({len(self._lines)} lines)")
        return self._lines[index]

    @property
    def text(self) -> str:
        return self.line_separator.join(self._lines)

    @property
    def selections(self) -> List[Selection]:
        return list(self._selections)

    @selections.setter
    def selections(self, value: Sequence[Selection]) -> None:
        self._selections = list(value)

    @property
    def visible_ranges(self) -> List[Range]:
        return list(self._visible_ranges)

    @visible_ranges.setter
    def visible_ranges(self, value: Sequence[Range]) -> None:
        self._visible_ranges = list(value)

    # --- Write access ---

    async def apply_edits(self, edits: Sequence[TextEdit]) -> bool:
        self.transaction_count += 1
        if self.fail_transactions:
            logger.warning(f"Transaction rejected for {self.identity}")
            return False
        if not edits:
            return True
        try:
            validate_edits(self, edits)
        except InvalidEditError as e:
            logger.warning(f"Transaction rejected for {self.identity}: {e}")
            return False

        working = list(self._lines)
        changes = []
        for edit in sorted(edits, key=lambda e: (e.range.start, e.range.end), reverse=True):
            changes.append(self._splice(working, edit))
        self._lines = working
        self.version += 1
        self._emit_changes(changes)
        return True

    def user_edit(self, range_: Range, text: str) -> ChangeRecord:
        """Apply a single edit the way typing would, outside any transaction."""
        validate_edits(self, [TextEdit.replace(range_, text)])
        change = self._splice(self._lines, TextEdit.replace(range_, text))
        self.version += 1
        self._emit_changes([change])
        return change

    def type_text(self, line: int, character: int, text: str) -> ChangeRecord:
        position = Position(line, character)
        return self.user_edit(Range(position, position), text)

    def press_enter(self, line: int, character: Optional[int] = None) -> ChangeRecord:
        """Insert a line break; defaults to the end of `line`."""
        if character is None:
            character = len(self.line_text(line))
        return self.type_text(line, character, "\n")

    # --- Internals ---

    def _splice(self, lines: List[str], edit: TextEdit) -> ChangeRecord:
        start, end = edit.range.start, edit.range.end
        head = lines[start.line][:start.character]
        tail = lines[end.line][end.character:]
        start_line_length = len(lines[start.line])
        if start.line == end.line:
            replaced_length = end.character - start.character
        else:
            replaced_length = len(lines[start.line]) - start.character
            replaced_length += sum(len(lines[i]) for i in range(start.line + 1, end.line))
            replaced_length += end.character
            replaced_length += (end.line - start.line) * len(self.line_separator)
        lines[start.line:end.line + 1] = split_lines(head + edit.new_text + tail)
        return ChangeRecord(
            start_line=start.line,
            start_character=start.character,
            end_line=end.line,
            end_character=end.character,
            text=edit.new_text,
            range_length=replaced_length,
            start_line_length=start_line_length,
        )

#
# End of memory_buffer.py
########################################################################################################################
