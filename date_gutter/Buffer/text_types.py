# text_types.py
# Description: Value types shared between the prefix engine and its host buffers
#
# Imports
import re
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Optional
#
########################################################################################################################
#
# Classes:

LINE_BREAK_PATTERN = re.compile(r"\r\n|\r|\n")


@dataclass(frozen=True, order=True)
class Position:
    """A zero-based (line, character) location in a document."""
    line: int
    character: int


@dataclass(frozen=True)
class Range:
    """A half-open span between two positions. `start` is always <= `end`."""
    start: Position
    end: Position

    def __post_init__(self):
        if self.end < self.start:
            start, end = self.end, self.start
            object.__setattr__(self, "start", start)
            object.__setattr__(self, "end", end)

    @classmethod
    def from_coords(cls, start_line: int, start_character: int, end_line: int, end_character: int) -> "Range":
        return cls(Position(start_line, start_character), Position(end_line, end_character))

    @property
    def is_empty(self) -> bool:
        return self.start == self.end

    @property
    def is_single_line(self) -> bool:
        return self.start.line == self.end.line


@dataclass(frozen=True)
class Selection:
    """
    A user selection. `anchor` is where the selection started and `active`
    is where the cursor is, so a reversed selection has `active < anchor`.
    """
    anchor: Position
    active: Position

    @classmethod
    def from_coords(cls, anchor_line: int, anchor_character: int, active_line: int, active_character: int) -> "Selection":
        return cls(Position(anchor_line, anchor_character), Position(active_line, active_character))

    @classmethod
    def cursor(cls, line: int, character: int = 0) -> "Selection":
        position = Position(line, character)
        return cls(position, position)

    @property
    def start(self) -> Position:
        return min(self.anchor, self.active)

    @property
    def end(self) -> Position:
        return max(self.anchor, self.active)

    @property
    def is_empty(self) -> bool:
        return self.anchor == self.active

    @property
    def is_single_line(self) -> bool:
        return self.anchor.line == self.active.line

    @property
    def is_reversed(self) -> bool:
        return self.active < self.anchor

    def as_range(self) -> Range:
        return Range(self.start, self.end)


@dataclass(frozen=True)
class TextEdit:
    """One replace/insert/delete operation inside an atomic transaction."""
    range: Range
    new_text: str

    @classmethod
    def replace(cls, range_: Range, new_text: str) -> "TextEdit":
        return cls(range_, new_text)

    @classmethod
    def insert(cls, position: Position, new_text: str) -> "TextEdit":
        return cls(Range(position, position), new_text)

    @classmethod
    def delete(cls, range_: Range) -> "TextEdit":
        return cls(range_, "")


@dataclass(frozen=True)
class ChangeRecord:
    """
    A single raw change notification: the replaced range (expressed against the
    document as it was just before this change) and the text put in its place.
    """
    start_line: int
    start_character: int
    end_line: int
    end_character: int
    text: str
    range_length: int = 0
    # Length of the start line just before the change, when the host knows it.
    start_line_length: Optional[int] = None

    @property
    def line_break_count(self) -> int:
        return len(LINE_BREAK_PATTERN.findall(self.text))

    @property
    def is_insert_at_line_start(self) -> bool:
        return (self.start_character == 0 and self.start_line == self.end_line
                and self.end_character == 0)

    @property
    def removed_line_count(self) -> int:
        return self.end_line - self.start_line

    @property
    def line_delta(self) -> int:
        """Net number of lines added (positive) or removed (negative) by this change."""
        return self.line_break_count - self.removed_line_count


@dataclass(frozen=True)
class DocumentIdentity:
    """Identifies a document by URI scheme and path, the way the host reports it."""
    scheme: str
    path: str

    @classmethod
    def for_file(cls, path) -> "DocumentIdentity":
        return cls("file", PurePosixPath(str(path).replace("\\", "/")).as_posix())

    @classmethod
    def untitled(cls, name: str) -> "DocumentIdentity":
        return cls("untitled", name)

    @property
    def file_name(self) -> str:
        return PurePosixPath(self.path).name

    @property
    def extension(self) -> Optional[str]:
        """Lower-cased extension including the dot, or None when the name has none."""
        name = self.file_name
        if "." not in name:
            return None
        suffix = name.rsplit(".", 1)[1]
        if not suffix:
            return None
        return "." + suffix.lower()

    def __str__(self) -> str:
        return f"{self.scheme}:{self.path}"


def split_lines(text: str) -> list:
    """Split text on any line break, keeping a trailing empty line like an editor does."""
    return LINE_BREAK_PATTERN.split(text)

#
# End of text_types.py
########################################################################################################################
