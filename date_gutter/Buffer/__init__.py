"""
Host buffer contract and value types consumed by the prefix engine.
"""

from .text_types import (
    ChangeRecord,
    DocumentIdentity,
    Position,
    Range,
    Selection,
    TextEdit,
)
from .host_buffer import HostBuffer
from .memory_buffer import InMemoryBuffer

__all__ = [
    'ChangeRecord',
    'DocumentIdentity',
    'Position',
    'Range',
    'Selection',
    'TextEdit',
    'HostBuffer',
    'InMemoryBuffer',
]
