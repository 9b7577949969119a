"""
Reading and atomically saving prefixed source files.

Saves go through a temporary file in the target's directory followed by an
atomic rename, so an interrupted save never leaves a half-written member
behind. Line endings are written exactly as the buffer holds them.
"""

import os
import tempfile
from pathlib import Path
from typing import Tuple, Union
from loguru import logger


FALLBACK_ENCODING = 'latin-1'


def read_source_text(file_path: Union[str, Path], encoding: str = 'utf-8') -> Tuple[str, str]:
    """
    Read a source file without translating line endings.

    Returns the text together with the encoding that decoded it. Members that
    are not valid `encoding` (cp1252 and latin-1 transfers are common) are read
    as latin-1, which maps every byte, so writing the text back with the
    returned encoding reproduces the bytes that were not edited.
    """
    file_path = Path(file_path)
    raw = file_path.read_bytes()
    try:
        content = raw.decode(encoding)
    except UnicodeDecodeError as e:
        logger.warning(f"{file_path} is not valid {encoding} ({e.reason} at byte {e.start}); "
                       f"reading it as {FALLBACK_ENCODING}")
        content = raw.decode(FALLBACK_ENCODING)
        encoding = FALLBACK_ENCODING
    logger.debug(f"Read {len(content)} chars from {file_path} as {encoding}")
    return content, encoding


def atomic_write_text(
    file_path: Union[str, Path],
    content: str,
    encoding: str = 'utf-8',
    mode: int = 0o644
) -> None:
    """
    Write text content to a file atomically.

    Args:
        file_path: Path to the target file
        content: Text content to write, line endings included
        encoding: Text encoding (default: utf-8)
        mode: File permissions (default: 0o644)

    Raises:
        OSError: If the write or rename operation fails
    """
    file_path = Path(file_path)
    parent_dir = file_path.parent
    parent_dir.mkdir(parents=True, exist_ok=True)

    temp_path = None
    try:
        fd, temp_path = tempfile.mkstemp(
            dir=parent_dir,
            prefix=f".{file_path.name}.",
            suffix=".tmp",
            text=True
        )
        with os.fdopen(fd, 'w', encoding=encoding, newline='') as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())

        os.chmod(temp_path, mode)
        # os.replace is atomic on POSIX and does best-effort on Windows
        os.replace(temp_path, str(file_path))
        logger.debug(f"Atomically wrote {len(content)} chars to {file_path}")

    except Exception as e:
        if temp_path and os.path.exists(temp_path):
            try:
                os.unlink(temp_path)
            except OSError as cleanup_error:
                logger.warning(f"Could not remove temp file {temp_path}: {cleanup_error}")
        logger.error(f"Failed to atomically write to {file_path}: {e}")
        raise
