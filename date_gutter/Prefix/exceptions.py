# exceptions.py
# Description: Exception types raised by the prefix engine and its host buffers
#
########################################################################################################################


class DateGutterError(Exception):
    """Base exception for the date gutter package."""
    pass


class InvalidEditError(DateGutterError):
    """Raised when a transaction holds overlapping edits or ranges outside the document."""
    pass


class SessionClosedError(DateGutterError):
    """Raised when a command targets a document session that has already been closed."""

    def __init__(self, identity):
        self.identity = identity
        super().__init__(f"Document session for {identity} is closed")

#
# End of exceptions.py
########################################################################################################################
