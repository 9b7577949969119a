# annotations.py
# Description: Gutter labels and hidden prefix ranges for the visible part of a document
#
# Imports
from dataclasses import dataclass, field
from typing import List, Optional, Protocol, Sequence
#
# Third-Party Imports
from loguru import logger
#
# Local Imports
from .prefix_codec import PREFIX_LENGTH, SEQUENCE_LENGTH, has_prefix
from ..Buffer.host_buffer import HostBuffer
from ..Buffer.text_types import DocumentIdentity, Range
#
########################################################################################################################
#
# Classes:

@dataclass(frozen=True)
class GutterLabel:
    """Text shown beside a line. `range` spans the whole line."""
    range: Range
    text: str


@dataclass
class AnnotationSet:
    labels: List[GutterLabel] = field(default_factory=list)
    hidden: List[Range] = field(default_factory=list)


class AnnotationSink(Protocol):
    """Whatever renders annotations. Each call replaces the whole set for the document."""

    def set_annotations(self, identity: DocumentIdentity, labels: Sequence[GutterLabel],
                        hidden: Sequence[Range]) -> None:
        ...

    def clear(self, identity: DocumentIdentity) -> None:
        ...


class RecordingAnnotationSink:
    """Keeps the last annotation set per document. Handy for headless use."""

    def __init__(self):
        self.current = {}
        self.refresh_count = 0

    def set_annotations(self, identity, labels, hidden) -> None:
        self.current[identity] = AnnotationSet(list(labels), list(hidden))
        self.refresh_count += 1

    def clear(self, identity) -> None:
        self.current[identity] = AnnotationSet()

#
########################################################################################################################
#
# Functions:

def build_annotations(buffer: HostBuffer, visible_ranges: Optional[Sequence[Range]] = None) -> AnnotationSet:
    """
    Label every prefixed line in the visible ranges with its date field and
    mark its first 12 characters as hidden. No visible ranges means the whole
    document.
    """
    annotations = AnnotationSet()
    line_count = buffer.line_count
    if line_count == 0:
        return annotations

    ranges = list(visible_ranges) if visible_ranges else [Range.from_coords(0, 0, line_count - 1, 0)]
    seen = set()
    for visible in ranges:
        last = min(visible.end.line, line_count - 1)
        for index in range(max(visible.start.line, 0), last + 1):
            if index in seen:
                continue
            seen.add(index)
            text = buffer.line_text(index)
            if not has_prefix(text):
                continue
            annotations.labels.append(GutterLabel(
                Range.from_coords(index, 0, index, len(text)),
                text[SEQUENCE_LENGTH:PREFIX_LENGTH],
            ))
            annotations.hidden.append(Range.from_coords(index, 0, index, PREFIX_LENGTH))
    return annotations


def refresh_annotations(buffer: HostBuffer, sink: AnnotationSink,
                        visible_ranges: Optional[Sequence[Range]] = None) -> bool:
    """Push a fresh annotation set to `sink`. On any error the document's annotations are cleared."""
    try:
        annotations = build_annotations(buffer, visible_ranges)
        sink.set_annotations(buffer.identity, annotations.labels, annotations.hidden)
        return True
    except Exception as e:
        logger.error(f"Error updating annotations for {buffer.identity}: {e}")
        try:
            sink.clear(buffer.identity)
        except Exception as clear_error:
            logger.error(f"Could not clear annotations for {buffer.identity}: {clear_error}")
        return False

#
# End of annotations.py
########################################################################################################################
