# host_buffer.py
# Description: The narrow buffer contract the prefix engine consumes from its host editor
#
# Imports
from abc import ABC, abstractmethod
from typing import Callable, List, Sequence
#
# Third-Party Imports
from loguru import logger
#
# Local Imports
from .text_types import ChangeRecord, DocumentIdentity, Range, Selection, TextEdit
from ..Prefix.exceptions import InvalidEditError
#
########################################################################################################################
#
# Classes:

ChangeListener = Callable[["HostBuffer", Sequence[ChangeRecord]], None]


class HostBuffer(ABC):
    """
    Base class for anything that can host a prefixed document.

    Subclasses provide line access and an atomic multi-edit transaction. The
    base class owns the change-listener list so every host delivers change
    batches the same way: synchronously, once per mutation, with the changes
    ordered so each one is expressed against the text left by the previous.
    """

    def __init__(self, identity: DocumentIdentity):
        self.identity = identity
        self._change_listeners: List[ChangeListener] = []

    # --- Read access ---

    @property
    @abstractmethod
    def line_count(self) -> int:
        ...

    @abstractmethod
    def line_text(self, index: int) -> str:
        ...

    def line_range(self, index: int) -> Range:
        return Range.from_coords(index, 0, index, len(self.line_text(index)))

    @property
    def text(self) -> str:
        return "\n".join(self.line_text(i) for i in range(self.line_count))

    @property
    def selections(self) -> List[Selection]:
        return [Selection.cursor(0, 0)]

    @property
    def visible_ranges(self) -> List[Range]:
        """Ranges currently on screen. An empty list means "treat the whole document as visible"."""
        return []

    # --- Write access ---

    @abstractmethod
    async def apply_edits(self, edits: Sequence[TextEdit]) -> bool:
        """Apply every edit or none of them. Returns False when the transaction was rejected."""
        ...

    # --- Change notifications ---

    def add_change_listener(self, listener: ChangeListener) -> Callable[[], None]:
        self._change_listeners.append(listener)

        def _unsubscribe():
            if listener in self._change_listeners:
                self._change_listeners.remove(listener)

        return _unsubscribe

    def _emit_changes(self, changes: Sequence[ChangeRecord]) -> None:
        if not changes:
            return
        for listener in list(self._change_listeners):
            try:
                listener(self, changes)
            except Exception as e:
                logger.exception(f"Change listener failed for {self.identity}: {e}")


def validate_edits(buffer: HostBuffer, edits: Sequence[TextEdit]) -> None:
    """Raise InvalidEditError unless every edit lies inside `buffer` and no two overlap."""
    line_count = buffer.line_count
    for edit in edits:
        for position in (edit.range.start, edit.range.end):
            if position.line < 0 or position.line >= line_count:
                raise InvalidEditError(f"Line {position.line} is out of range")
            if position.character < 0 or position.character > len(buffer.line_text(position.line)):
                raise InvalidEditError(
                    f"Character {position.character} is out of range on line {position.line}"
                )
    ordered = sorted(edits, key=lambda e: (e.range.start, e.range.end))
    for previous, current in zip(ordered, ordered[1:]):
        if previous.range.end > current.range.start:
            raise InvalidEditError(f"Overlapping edits at {current.range.start}")

#
# End of host_buffer.py
########################################################################################################################
