"""
date_gutter - sequence/date line prefixes kept in sync while you edit

Maintains the 12-character sequence number + YYMMDD date prefix carried by
fixed-format source lines (RPGLE, CLLE, DDS, ...), refreshing dates on edited
lines and numbering new ones, and shows the date as a gutter label in a
Textual editor.
"""

__version__ = "0.1.0"
__license__ = "AGPLv3+"

__all__ = [
    "__version__",
    "__license__",
]
