# prefixed_text_area.py
# Description: Textual TextArea that reports its edits, and the host buffer adapter around it
#
# Imports
from typing import Callable, List, Optional, Sequence
#
# 3rd-party Libraries
from loguru import logger
from textual.widgets import TextArea
from textual.widgets.text_area import Selection as TextAreaSelection
#
# Local Imports
from ..Buffer.host_buffer import HostBuffer, validate_edits
from ..Buffer.text_types import ChangeRecord, DocumentIdentity, Range, Selection, TextEdit
from ..Prefix.exceptions import InvalidEditError
#
########################################################################################################################
#
# Classes:

class PrefixedTextArea(TextArea):
    """
    A code-editor TextArea for prefixed source members.

    Every mutation TextArea performs (typing, paste, delete, programmatic
    replace) goes through `edit()`, so overriding it is enough to turn each
    one into a ChangeRecord for `edit_observer`. Undo and redo replay history
    directly and are not reported.
    """

    DEFAULT_CSS = """
    PrefixedTextArea {
        width: 1fr;
        height: 1fr;
        border: none;
    }
    """

    def __init__(self, text: str = "", *, identity: DocumentIdentity, **kwargs) -> None:
        kwargs.setdefault("soft_wrap", False)
        kwargs.setdefault("tab_behavior", "indent")
        kwargs.setdefault("show_line_numbers", False)
        self.identity = identity
        self.edit_observer: Optional[Callable[[ChangeRecord], None]] = None
        super().__init__(text, **kwargs)

    def edit(self, edit):
        top, bottom = sorted((edit.from_location, edit.to_location))
        start_line_length = len(self.document.get_line(top[0])) if top[0] < self.document.line_count else None
        result = super().edit(edit)
        if self.edit_observer is not None:
            self.edit_observer(ChangeRecord(
                start_line=top[0],
                start_character=top[1],
                end_line=bottom[0],
                end_character=bottom[1],
                text=edit.text,
                range_length=len(result.replaced_text),
                start_line_length=start_line_length,
            ))
        return result


class TextAreaBuffer(HostBuffer):
    """Host buffer over a PrefixedTextArea; one transaction becomes one undo batch and one change batch."""

    def __init__(self, text_area: PrefixedTextArea):
        super().__init__(text_area.identity)
        self.text_area = text_area
        self._transaction: Optional[List[ChangeRecord]] = None
        text_area.edit_observer = self._on_edit

    # --- Read access ---

    @property
    def line_count(self) -> int:
        return self.text_area.document.line_count

    def line_text(self, index: int) -> str:
        if index < 0 or index >= self.line_count:
            raise IndexError(f"Line {index} is outside {self.identity} ({self.line_count} lines)")
        return self.text_area.document.get_line(index)

    @property
    def text(self) -> str:
        return self.text_area.text

    @property
    def selections(self) -> List[Selection]:
        selection = self.text_area.selection
        return [Selection.from_coords(selection.start[0], selection.start[1],
                                      selection.end[0], selection.end[1])]

    @selections.setter
    def selections(self, value: Sequence[Selection]) -> None:
        if not value:
            return
        primary = value[0]
        self.text_area.selection = TextAreaSelection(
            start=(primary.anchor.line, primary.anchor.character),
            end=(primary.active.line, primary.active.character),
        )

    @property
    def visible_ranges(self) -> List[Range]:
        height = self.text_area.scrollable_content_region.height
        if height <= 0 or self.line_count == 0:
            return []
        first = min(int(self.text_area.scroll_offset.y), self.line_count - 1)
        last = min(first + height - 1, self.line_count - 1)
        return [Range.from_coords(first, 0, last, 0)]

    # --- Write access ---

    async def apply_edits(self, edits: Sequence[TextEdit]) -> bool:
        if not edits:
            return True
        if self.text_area.read_only:
            logger.warning(f"Transaction rejected for read-only {self.identity}")
            return False
        try:
            validate_edits(self, edits)
        except InvalidEditError as e:
            logger.warning(f"Transaction rejected for {self.identity}: {e}")
            return False

        saved_text = self.text_area.text
        saved_selection = self.text_area.selection
        self._transaction = []
        self.text_area.history.checkpoint()
        try:
            for edit in sorted(edits, key=lambda e: (e.range.start, e.range.end), reverse=True):
                self.text_area.replace(
                    edit.new_text,
                    (edit.range.start.line, edit.range.start.character),
                    (edit.range.end.line, edit.range.end.character),
                    maintain_selection_offset=True,
                )
        except Exception as e:
            landed = len(self._transaction)
            self._transaction = None
            logger.error(
                f"Transaction failed on {self.identity} after {landed} edit(s): {e}; restoring previous text"
            )
            # load_text bypasses edit(), so nothing is reported. Undo history is lost.
            self.text_area.load_text(saved_text)
            self.text_area.selection = saved_selection
            return False
        changes, self._transaction = self._transaction, None
        self.text_area.history.checkpoint()
        self._emit_changes(changes)
        return True

    def _on_edit(self, change: ChangeRecord) -> None:
        if self._transaction is not None:
            self._transaction.append(change)
        else:
            self._emit_changes([change])

#
# End of prefixed_text_area.py
########################################################################################################################
