import codecs
import json
import logging
from collections.abc import AsyncIterable, AsyncIterator

logger = logging.getLogger(__name__)

DATA_PREFIX = "data:"
DONE_SENTINEL = "[DONE]"


class StreamError(Exception):
    """The server reported a failure in the middle of a generation stream."""


class StreamDecoder:
    """Turns a server-sent-event byte stream into text deltas.

    Records are newline-delimited ``data: <json>`` lines. A record split across
    two chunks is held back until its terminating newline arrives. ``text``
    accumulates every delta seen so far.
    """

    def __init__(self) -> None:
        self._utf8 = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""
        self.text = ""
        self.code: str | None = None
        self.done = False
        self.skipped = 0
        self.bytes_received = 0

    def feed(self, chunk: bytes) -> list[str]:
        self.bytes_received += len(chunk)
        self._buffer += self._utf8.decode(chunk)
        *lines, self._buffer = self._buffer.split("\n")
        deltas = []
        for line in lines:
            delta = self._decode_line(line)
            if delta:
                deltas.append(delta)
        return deltas

    def flush(self) -> list[str]:
        """Decode whatever is left once the byte stream has ended."""
        self._buffer += self._utf8.decode(b"", final=True)
        line, self._buffer = self._buffer, ""
        delta = self._decode_line(line)
        return [delta] if delta else []

    async def decode(self, chunks: AsyncIterable[bytes]) -> AsyncIterator[str]:
        async for chunk in chunks:
            for delta in self.feed(chunk):
                yield delta
        for delta in self.flush():
            yield delta

    def _decode_line(self, line: str) -> str | None:
        line = line.strip()
        if not line.startswith(DATA_PREFIX):
            return None
        data = line[len(DATA_PREFIX):].strip()
        if data == DONE_SENTINEL:
            self.done = True
            return None

        try:
            payload = json.loads(data)
        except json.JSONDecodeError:
            self.skipped += 1
            logger.warning("Skipping malformed stream record (%d chars): %.80s", len(data), data)
            return None
        if not isinstance(payload, dict):
            self.skipped += 1
            logger.warning("Skipping non-object stream record: %.80s", data)
            return None

        if payload.get("error"):
            raise StreamError(str(payload["error"]))
        if payload.get("code"):
            self.code = payload["code"]

        content = payload.get("content")
        if not content:
            return None
        self.text += content
        return content
