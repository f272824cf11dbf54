"""Line reader for subprocess output streams."""

import asyncio
import logging
from collections.abc import AsyncIterator

logger = logging.getLogger(__name__)

_DRAIN_CHUNK = 64 * 1024


def decode_line(raw: bytes) -> str:
    """Decode one raw line, dropping its terminator (``\\n`` or ``\\r\\n``)."""
    if raw.endswith(b"\n"):
        raw = raw[:-1]
        if raw.endswith(b"\r"):
            raw = raw[:-1]
    return raw.decode("utf-8", errors="replace")


async def read_lines(stream: asyncio.StreamReader, *, name: str = "stream") -> AsyncIterator[str]:
    """Yield text lines from ``stream`` until it reaches end-of-data.

    A trailing line without a newline is still yielded. A read error, which
    includes a line longer than the reader's limit, ends the sequence just
    like EOF does. The rest of the stream is then drained and discarded so
    the writing process never stalls on a full pipe.
    """
    while True:
        try:
            raw = await stream.readline()
        except (ValueError, OSError) as e:
            logger.warning("Stopped reading %s: %s", name, e)
            await _drain(stream, name)
            return
        if not raw:
            return
        yield decode_line(raw)


async def _drain(stream: asyncio.StreamReader, name: str) -> None:
    try:
        while await stream.read(_DRAIN_CHUNK):
            pass
    except OSError as e:
        logger.debug("Gave up draining %s: %s", name, e)
