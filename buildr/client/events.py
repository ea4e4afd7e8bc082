import asyncio
import logging
from collections.abc import Awaitable, Callable

import httpx

from buildr.client.session import SessionContext

logger = logging.getLogger(__name__)

_LEVELS = {
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}


class EventLogger:
    """Mirror build events to ``logging`` and, fire-and-forget, to ``/api/log``."""

    def __init__(self, session: SessionContext, post: Callable[[dict], Awaitable[None]] | None = None):
        self.session = session
        self._post = post
        self._tasks: set[asyncio.Task] = set()

    def log(self, type: str, message: str, severity: str = "info", **fields) -> None:
        logger.log(_LEVELS.get(severity, logging.INFO), "[%s] %s", type, message)
        if self._post is None:
            return
        record = {
            "type": type,
            "severity": severity,
            "message": message,
            "sessionId": self.session.session_id,
            "projectId": self.session.project_id,
            **{k: v for k, v in fields.items() if v is not None},
        }
        try:
            task = asyncio.get_running_loop().create_task(self._send(record))
        except RuntimeError:
            return  # no loop, nothing to send on
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def drain(self) -> None:
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    async def _send(self, record: dict) -> None:
        try:
            await self._post(record)
        except httpx.HTTPError as e:
            logger.debug("Event %s not delivered: %s", record["type"], e)

    def build_start(self, prompt: str) -> None:
        self.log("build_start", "Build started", prompt=prompt)

    def build_success(self, prompt: str, code_length: int, duration_ms: int) -> None:
        self.log("build_success", "Build completed successfully", prompt=prompt,
                 codeLength=code_length, requestDurationMs=duration_ms)

    def build_error(self, prompt: str, error: str, bytes_received: int, last_chunk: str, duration_ms: int) -> None:
        self.log("build_error", error, severity="error", prompt=prompt, bytesReceived=bytes_received,
                 lastValidChunk=last_chunk[-1000:], requestDurationMs=duration_ms)

    def stream_error(self, message: str, bytes_received: int, last_chunk: str) -> None:
        self.log("stream_error", message, severity="error", bytesReceived=bytes_received,
                 lastValidChunk=last_chunk[-1000:])

    def code_extraction_failed(self, response_length: int, preview: str) -> None:
        self.log("code_extraction_failed", f"Failed to extract code from response ({response_length} chars)",
                 severity="warning", bytesReceived=response_length, lastValidChunk=preview[-1000:])

    def recovery_attempted(self, source: str) -> None:
        self.log("recovery_attempted", f"Recovery attempted from {source}", metadata={"source": source})

    def recovery_success(self, source: str, code_length: int) -> None:
        self.log("recovery_success", f"Recovery successful from {source}", codeLength=code_length,
                 metadata={"source": source})

    def user_action(self, action: str, **metadata) -> None:
        self.log("user_action", action, metadata=metadata or None)
