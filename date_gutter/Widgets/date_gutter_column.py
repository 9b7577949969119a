# date_gutter_column.py
# Description: Narrow column beside the editor that shows each prefixed line's date field
#
# Imports
from typing import Dict, Optional, Sequence
#
# 3rd-party Libraries
from rich.console import RenderableType
from rich.text import Text
from textual.widget import Widget
#
# Local Imports
from ..Buffer.text_types import DocumentIdentity, Range
from ..Prefix.annotations import GutterLabel
from ..Prefix.prefix_codec import DATE_LENGTH, ZERO_DATE
#
########################################################################################################################
#
# Classes:

class DateGutterColumn(Widget):
    """
    Annotation sink for one document.

    Rows are drawn from `first_line` downwards so the column stays aligned
    with the editor as it scrolls. Lines without a label render blank.
    """

    DEFAULT_CSS = """
    DateGutterColumn {
        width: 8;
        height: 1fr;
        background: $panel;
        color: $text-muted;
        padding: 0 1 0 0;
    }
    """

    def __init__(self, identity: Optional[DocumentIdentity] = None, **kwargs) -> None:
        super().__init__(**kwargs)
        self.identity = identity
        self.first_line = 0
        self.labels: Dict[int, str] = {}
        self.hidden_count = 0

    # --- AnnotationSink ---

    def set_annotations(self, identity: DocumentIdentity, labels: Sequence[GutterLabel],
                        hidden: Sequence[Range]) -> None:
        if self.identity is not None and identity != self.identity:
            return
        self.labels = {label.range.start.line: label.text for label in labels}
        self.hidden_count = len(hidden)
        self.refresh()

    def clear(self, identity: DocumentIdentity) -> None:
        if self.identity is not None and identity != self.identity:
            return
        self.labels = {}
        self.hidden_count = 0
        self.refresh()

    # --- Scrolling ---

    def scroll_to_line(self, first_line: int) -> None:
        if first_line != self.first_line:
            self.first_line = max(first_line, 0)
            self.refresh()

    def render(self) -> RenderableType:
        text = Text(no_wrap=True, overflow="crop")
        for row in range(max(self.size.height, 0)):
            if row:
                text.append("\n")
            label = self.labels.get(self.first_line + row)
            if label is None:
                text.append(" " * DATE_LENGTH)
            elif label == ZERO_DATE:
                text.append(label, style="dim")
            else:
                text.append(label, style="bold")
        return text

#
# End of date_gutter_column.py
########################################################################################################################
