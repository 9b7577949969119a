# prefix_codec.py
# Description: Pure functions for the 12-character sequence + date line prefix
#
# Imports
import calendar
import re
from dataclasses import dataclass
from datetime import date
from typing import Optional
#
########################################################################################################################
#
# Constants:

PREFIX_LENGTH = 12
SEQUENCE_LENGTH = 6
DATE_LENGTH = 6
# Lines past the 999,999th all share this sequence value.
MAX_SEQUENCE = 999999
ZERO_DATE = "000000"

_PREFIX_PATTERN = re.compile(r"[0-9]{12}")
_SIX_DIGITS = re.compile(r"[0-9]{6}")

#
########################################################################################################################
#
# Classes:

@dataclass(frozen=True)
class LinePrefix:
    """Parsed prefix. `date` is None when the date field is not a real calendar date."""
    sequence: int
    date: Optional[date]
    raw_date: str


@dataclass(frozen=True)
class LineRecord:
    """A line as seen during one evaluation pass. Never kept past the pass."""
    index: int
    raw_text: str
    prefix: Optional[LinePrefix]

    @property
    def is_blank(self) -> bool:
        return is_blank(self.raw_text)

#
########################################################################################################################
#
# Functions:

def has_prefix(text: str) -> bool:
    """True iff the first 12 characters of `text` are all ASCII digits."""
    return text is not None and len(text) >= PREFIX_LENGTH and _PREFIX_PATTERN.fullmatch(text[:PREFIX_LENGTH]) is not None


def is_blank(text: str) -> bool:
    return not text or text.isspace()


def parse_date(six_digits: str) -> Optional[date]:
    """
    Interpret `YYMMDD` as a date in 2000-2099.

    Returns None for anything that is not six digits or not a real date
    (month outside 1-12, day past the end of that month, Feb 29 off a leap year).
    """
    if not six_digits or len(six_digits) != DATE_LENGTH or not _SIX_DIGITS.fullmatch(six_digits):
        return None
    year = 2000 + int(six_digits[0:2])
    month = int(six_digits[2:4])
    day = int(six_digits[4:6])
    if month < 1 or month > 12:
        return None
    if day < 1 or day > calendar.monthrange(year, month)[1]:
        return None
    return date(year, month, day)


def format_date(value: date) -> str:
    return f"{value.year % 100:02d}{value.month:02d}{value.day:02d}"


def format_sequence(line_index: int) -> str:
    """1-based, zero-padded sequence for a 0-based line index, clamped at 999999."""
    return f"{min(max(line_index, 0) + 1, MAX_SEQUENCE):0{SEQUENCE_LENGTH}d}"


def parse_sequence(six_digits: str) -> int:
    return int(six_digits)


def build_prefix(line_index: int, value: Optional[date]) -> str:
    """Sequence for `line_index` followed by `value` as YYMMDD; None gives the all-zero date."""
    date_field = format_date(value) if value is not None else ZERO_DATE
    return format_sequence(line_index) + date_field


def parse_prefix(text: str) -> Optional[LinePrefix]:
    if not has_prefix(text):
        return None
    raw_date = text[SEQUENCE_LENGTH:PREFIX_LENGTH]
    return LinePrefix(
        sequence=parse_sequence(text[:SEQUENCE_LENGTH]),
        date=parse_date(raw_date),
        raw_date=raw_date,
    )


def strip_prefix(text: str) -> str:
    """Text with the prefix removed; lines without a valid prefix come back unchanged."""
    return text[PREFIX_LENGTH:] if has_prefix(text) else text


def line_record(index: int, text: str) -> LineRecord:
    return LineRecord(index=index, raw_text=text, prefix=parse_prefix(text))

#
# End of prefix_codec.py
########################################################################################################################
