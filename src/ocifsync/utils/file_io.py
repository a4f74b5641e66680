# ocifsync/utils/file_io.py
"""
File input utilities for the ocifsync package.

Template files are read through get_data so that the template cache never
touches the filesystem directly and tests can swap the reader out.
"""

import asyncio
import base64
import logging
from pathlib import Path

logger: logging.Logger = logging.getLogger(__name__)


def _read_file(file_name: Path, encoding: str) -> str:
    if encoding == 'base64':
        return base64.b64encode(file_name.read_bytes()).decode('ascii')
    return file_name.read_text(encoding=encoding)


async def get_data(file_name: str | Path, encoding: str = 'utf8') -> str:
    """
    Read a file and return its contents as a string.

    The blocking read runs in a worker thread, so awaiting this coroutine only
    suspends the calling task.

    Args:
        file_name: Path of the file to read.
        encoding: Text encoding used to decode the file. Defaults to 'utf8'.
                  'base64' returns the raw bytes base64-encoded instead.

    Returns:
        The file contents.

    Raises:
        FileNotFoundError: If the file does not exist.
        OSError: For any other read failure.
        LookupError: If the encoding is unknown.
    """
    path: Path = Path(file_name)
    logger.debug('Reading %r (encoding=%s)', path, encoding)
    return await asyncio.to_thread(_read_file, path, encoding)
