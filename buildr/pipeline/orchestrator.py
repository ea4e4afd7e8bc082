"""Build/edit orchestration for one editing session.

The orchestrator owns the current document, the conversation, the undo
history and the build context. A request moves through an explicit state
machine::

    IDLE -> SUBMITTING -> STREAMING -> COMPLETED -> IDLE
                     \\            \\-> FAILED -> (retry) SUBMITTING
                      \\-> FAILED

Instant edits go straight from IDLE to COMPLETED without a network call.
Everything that can go wrong during a request is caught here and turned
into either a FAILED state with a retry, or a degraded success when enough
of the page had already streamed in.
"""

import asyncio
import logging
import time
import uuid
from collections import deque
from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass, field
from enum import Enum

from buildr.client.api import BuildrClient
from buildr.client.events import EventLogger
from buildr.client.session import DebouncedSaver, SessionContext
from buildr.config import settings
from buildr.pipeline.context import detect_sections, format_context, new_context, update_context
from buildr.pipeline.extractor import extract_complete, extract_partial
from buildr.pipeline.history import HistoryManager
from buildr.pipeline.instant_edit import match_color, try_apply
from buildr.pipeline.stream_decoder import StreamDecoder
from buildr.pipeline.validator import validate
from buildr.schemas.generate import GenerateRequest
from buildr.schemas.pipeline import BuildContext, CodeIssue, Message

logger = logging.getLogger(__name__)

GenerationTransport = Callable[[dict], AsyncIterator[bytes]]

PARTIAL_NOTE = "\n\n_The response was cut off; the partial page received so far has been kept._"
GENERATION_FAILED = "Generation failed: the response was empty or too short. Please try again."
GENERATION_CANCELLED = "Generation cancelled"


class BuildState(str, Enum):
    IDLE = "idle"
    SUBMITTING = "submitting"
    STREAMING = "streaming"
    COMPLETED = "completed"
    FAILED = "failed"


_TRANSITIONS = {
    BuildState.IDLE: {BuildState.SUBMITTING, BuildState.COMPLETED},
    BuildState.SUBMITTING: {BuildState.STREAMING, BuildState.FAILED},
    BuildState.STREAMING: {BuildState.COMPLETED, BuildState.FAILED},
    BuildState.COMPLETED: {BuildState.IDLE},
    BuildState.FAILED: {BuildState.SUBMITTING, BuildState.IDLE},
}


class InvalidTransition(Exception):
    pass


class BuildInProgressError(Exception):
    pass


@dataclass
class StreamState:
    full_text: str = ""
    last_valid_code: str | None = None
    last_streamed_text: str = ""
    renders: bool = True


@dataclass
class BuildOutcome:
    state: BuildState
    document: str | None
    message: Message
    partial: bool = False
    instant: bool = False
    error: str | None = None
    issues: list[CodeIssue] = field(default_factory=list)
    retry: Callable | None = None


def status_for(text: str) -> str:
    lowered = text.lower()
    if "</html>" in lowered:
        return "Finishing up…"
    if "<script" in lowered:
        return "Adding JavaScript…"
    if "@media" in lowered:
        return "Making it responsive…"
    if "<style" in lowered:
        return "Writing styles…"
    return "Starting…"


class BuildOrchestrator:
    def __init__(
        self,
        transport: GenerationTransport,
        session: SessionContext,
        events: EventLogger | None = None,
        saver: DebouncedSaver | None = None,
        project_type: str = "website",
        features: list[str] | None = None,
        template_category: str | None = None,
        premium_mode: bool = False,
        on_preview: Callable[[str], None] | None = None,
        on_status: Callable[[str], None] | None = None,
        on_state: Callable[[BuildState], None] | None = None,
    ):
        self.transport = transport
        self.session = session
        self.events = events or EventLogger(session)
        self.saver = saver
        self.template_category = template_category
        self.premium_mode = premium_mode
        self.on_preview = on_preview
        self.on_status = on_status
        self.on_state = on_state

        self.min_partial_chars = settings.min_partial_chars
        self.min_output_chars = settings.min_output_chars

        self.state = BuildState.IDLE
        self.document = ""
        self.preview = ""
        self.status = ""
        self.error: str | None = None
        self.messages: list[Message] = []
        self.issues: list[CodeIssue] = []
        self.history = HistoryManager()
        self.context: BuildContext = new_context(project_type, features)
        self.preview_errors: deque[dict] = deque(maxlen=settings.preview_error_limit)
        self._last_request: tuple[dict, str] | None = None
        self._background: set[asyncio.Task] = set()

    @classmethod
    def connect(cls, client: BuildrClient, session: SessionContext, **kwargs) -> "BuildOrchestrator":
        """Wire an orchestrator to a Buildr server: generation, event logs and autosave."""

        async def save(document: str) -> None:
            if session.project_id:
                await client.update_code(session.project_id, document)

        return cls(
            client.stream_generation,
            session,
            events=EventLogger(session, post=client.post_log),
            saver=DebouncedSaver(save),
            **kwargs,
        )

    @classmethod
    async def open_project(
        cls,
        client: BuildrClient,
        owner: str,
        name: str,
        session: SessionContext | None = None,
        **kwargs,
    ) -> "BuildOrchestrator":
        """Create a server-side project and connect a fresh session to it."""
        project = await client.create_project(owner, name)
        session = session or SessionContext.start()
        session.project_id = project["id"]
        return cls.connect(client, session, **kwargs)

    @property
    def is_edit_mode(self) -> bool:
        return bool(self.document)

    @property
    def busy(self) -> bool:
        return self.state in (BuildState.SUBMITTING, BuildState.STREAMING)

    # -- requests -----------------------------------------------------------

    async def submit(self, user_text: str, plan_mode: bool = False) -> BuildOutcome:
        if self.busy:
            raise BuildInProgressError("A build is already in flight")
        if self.state in (BuildState.COMPLETED, BuildState.FAILED):
            self._transition(BuildState.IDLE)

        user_text = user_text.strip()
        self._append_message("user", user_text)

        if self.is_edit_mode and not plan_mode:
            updated = try_apply(user_text, self.document)
            if updated is not None:
                self._transition(BuildState.COMPLETED)
                message = self._commit(updated, user_text, f"Switched the accent colors to {match_color(user_text)}.")
                self.events.user_action("instant_edit", request=user_text[:200])
                self._transition(BuildState.IDLE)
                return BuildOutcome(BuildState.COMPLETED, updated, message, instant=True, issues=self.issues)

        payload = self._build_payload(user_text, plan_mode)
        return await self._run(payload, user_text)

    async def retry(self) -> BuildOutcome:
        if self.state is not BuildState.FAILED or self._last_request is None:
            raise InvalidTransition(f"Nothing to retry from {self.state.value}")
        payload, prompt = self._last_request
        self.events.user_action("retry", request=prompt[:200])
        return await self._run(payload, prompt)

    def _build_payload(self, user_text: str, plan_mode: bool) -> dict:
        turns = [{"role": m.role, "content": m.content} for m in self.messages if not m.error]
        build_context = None
        if self.is_edit_mode and self.context.recent_user_requests:
            build_context = format_context(self.context)
        request = GenerateRequest(
            messages=turns,
            template_category=self.template_category,
            premium_mode=self.premium_mode,
            is_follow_up=self.is_edit_mode,
            is_plan_mode=plan_mode,
            current_code=self.document or None,
            project_id=self.session.project_id,
            build_context=build_context,
        )
        return request.to_payload()

    async def _run(self, payload: dict, prompt: str) -> BuildOutcome:
        self._last_request = (payload, prompt)
        self._transition(BuildState.SUBMITTING)
        self.error = None
        self._set_status("Starting…")
        self.events.build_start(prompt)
        started = time.monotonic()

        # Plan answers describe a page, they never render one
        stream = StreamState(renders=not payload.get("isPlanMode"))
        decoder = StreamDecoder()
        failure: Exception | None = None
        try:
            async for chunk in self.transport(payload):
                if self.state is BuildState.SUBMITTING:
                    self._transition(BuildState.STREAMING)
                for delta in decoder.feed(chunk):
                    self._on_delta(stream, decoder, delta)
            for delta in decoder.flush():
                self._on_delta(stream, decoder, delta)
        except asyncio.CancelledError:
            logger.info("Generation cancelled after %d bytes", decoder.bytes_received)
            stream.full_text = decoder.text
            self.events.stream_error(GENERATION_CANCELLED, decoder.bytes_received, stream.full_text)
            self._fail(GENERATION_CANCELLED, prompt, decoder, stream, int((time.monotonic() - started) * 1000))
            raise
        except Exception as e:
            failure = e
            logger.warning("Generation stream failed after %d bytes: %s", decoder.bytes_received, e)
            self.events.stream_error(str(e), decoder.bytes_received, stream.full_text)

        duration_ms = int((time.monotonic() - started) * 1000)
        stream.full_text = decoder.text
        usable_partial = stream.last_valid_code if self._is_usable_partial(stream.last_valid_code) else None

        if failure is not None:
            if usable_partial:
                return self._recover_partial(stream, usable_partial, prompt, duration_ms)
            return self._fail(str(failure) or type(failure).__name__, prompt, decoder, stream, duration_ms)

        if self.state is BuildState.SUBMITTING:
            self._transition(BuildState.STREAMING)

        final = (decoder.code or extract_complete(stream.full_text)) if stream.renders else None
        if final:
            return self._succeed(final, stream.full_text, prompt, duration_ms)
        if usable_partial:
            return self._recover_partial(stream, usable_partial, prompt, duration_ms)
        if len(stream.full_text.strip()) < self.min_output_chars:
            return self._fail(GENERATION_FAILED, prompt, decoder, stream, duration_ms)

        # A plain text answer: chat or plan, nothing to render
        if not payload.get("isPlanMode") and "```" in stream.full_text:
            self.events.code_extraction_failed(len(stream.full_text), stream.full_text)
        self.preview = self.document
        self._transition(BuildState.COMPLETED)
        message = self._append_message("assistant", stream.full_text)
        self._transition(BuildState.IDLE)
        return BuildOutcome(BuildState.COMPLETED, None, message, issues=self.issues)

    def _on_delta(self, stream: StreamState, decoder: StreamDecoder, delta: str) -> None:
        stream.full_text = decoder.text
        stream.last_streamed_text = delta
        partial = extract_partial(stream.full_text) if stream.renders else None
        if partial:
            stream.last_valid_code = partial
            self.preview = partial
            if self.on_preview:
                self.on_preview(partial)
        self._set_status(status_for(stream.full_text))

    def _is_usable_partial(self, code: str | None) -> bool:
        return bool(code) and len(code) > self.min_partial_chars

    # -- outcomes -----------------------------------------------------------

    def _succeed(self, document: str, full_text: str, prompt: str, duration_ms: int) -> BuildOutcome:
        self._transition(BuildState.COMPLETED)
        message = self._commit(document, prompt, full_text)
        self.events.build_success(prompt, len(document), duration_ms)
        self._transition(BuildState.IDLE)
        return BuildOutcome(BuildState.COMPLETED, document, message, issues=self.issues)

    def _recover_partial(self, stream: StreamState, document: str, prompt: str, duration_ms: int) -> BuildOutcome:
        self.events.recovery_attempted("stream_partial")
        self._transition(BuildState.COMPLETED)
        message = self._commit(document, prompt, stream.full_text + PARTIAL_NOTE, partial=True)
        self.events.recovery_success("stream_partial", len(document))
        self.events.build_success(prompt, len(document), duration_ms)
        self._transition(BuildState.IDLE)
        return BuildOutcome(BuildState.COMPLETED, document, message, partial=True, issues=self.issues)

    def _fail(
        self,
        error: str,
        prompt: str,
        decoder: StreamDecoder,
        stream: StreamState,
        duration_ms: int,
    ) -> BuildOutcome:
        self.error = error
        self.preview = self.document
        self._transition(BuildState.FAILED)
        message = self._append_message("assistant", f"Sorry, something went wrong: {error}", error=True)
        self.events.build_error(prompt, error, decoder.bytes_received, stream.full_text, duration_ms)
        return BuildOutcome(BuildState.FAILED, None, message, error=error, retry=self.retry)

    def _commit(self, document: str, prompt: str, content: str, partial: bool = False) -> Message:
        self._apply_document(document)
        self.context = update_context(self.context, document, prompt)
        self.history.push(document)
        self._backup(document, prompt)
        return self._append_message("assistant", content, code=document, partial=partial)

    def _apply_document(self, document: str) -> None:
        self.document = document
        self.preview = document
        self.issues = validate(document)
        if self.on_preview:
            self.on_preview(document)
        if self.saver:
            self.saver.schedule(document)

    def _append_message(self, role: str, content: str, code: str | None = None,
                        partial: bool = False, error: bool = False) -> Message:
        message = Message(id=uuid.uuid4().hex, role=role, content=content, code=code, partial=partial, error=error)
        if role == "assistant" and self.messages and self.messages[-1].error:
            self.messages[-1] = message
        else:
            self.messages.append(message)
        return message

    # -- history ------------------------------------------------------------

    def undo(self) -> str | None:
        self._ensure_idle()
        document = self.history.undo()
        if document is not None:
            self._restore(document)
        return document

    def redo(self) -> str | None:
        self._ensure_idle()
        document = self.history.redo()
        if document is not None:
            self._restore(document)
        return document

    def _ensure_idle(self) -> None:
        if self.busy:
            raise BuildInProgressError("Cannot change the document while a build is in flight")

    def _restore(self, document: str) -> None:
        self._apply_document(document)
        self.context = self.context.model_copy(update={"sections_present": detect_sections(document)})
        self._backup(document)

    # -- preview sandbox ----------------------------------------------------

    def record_preview_message(self, kind: str, message: str = "") -> None:
        self.preview_errors.append({"kind": kind, "message": message, "timestamp": time.time()})
        if kind == "error":
            logger.info("Preview reported an error: %s", message)

    # -- snapshots ----------------------------------------------------------

    def recover(self) -> str | None:
        """Restore the local recovery snapshot when there is no document."""
        if self.document:
            return None
        self.events.recovery_attempted("local_backup")
        data = self.session.snapshots.load_recovery()
        if not data:
            return None
        document = data["code"]
        self._apply_document(document)
        self.history.push(document)
        self.context = self.context.model_copy(update={"sections_present": detect_sections(document)})
        self.events.recovery_success("local_backup", len(document))
        return document

    def snapshot_session(self) -> dict:
        state = {
            "messages": [m.model_dump() for m in self.messages],
            "document": self.document,
            "history": self.history.to_dict(),
            "context": self.context.model_dump(mode="json"),
        }
        self._in_background(self.session.snapshots.save_session, state)
        return state

    def restore_session(self) -> bool:
        data = self.session.snapshots.load_session()
        if not data or self.busy:
            return False
        self.messages = [Message(**m) for m in data.get("messages", [])]
        self.document = data.get("document", "")
        self.preview = self.document
        self.issues = validate(self.document) if self.document else []
        self.history = HistoryManager.from_dict(data.get("history", {}))
        if data.get("context"):
            self.context = BuildContext.model_validate(data["context"])
        return True

    def reset(self) -> None:
        if self.busy:
            raise BuildInProgressError("Cannot reset while a build is in flight")
        if self.saver:
            self.saver.cancel()
        self.session.reset()
        self.document = ""
        self.preview = ""
        self.error = None
        self.messages = []
        self.issues = []
        self.history.clear()
        self.context = new_context(self.context.project_type, self.context.feature_list)
        self.preview_errors.clear()
        self._last_request = None
        if self.state is not BuildState.IDLE:
            self._transition(BuildState.IDLE)

    async def drain(self) -> None:
        """Wait for background snapshot writes and event posts."""
        if self._background:
            await asyncio.gather(*self._background, return_exceptions=True)
        await self.events.drain()

    def _backup(self, document: str, prompt: str = "") -> None:
        self._in_background(self.session.snapshots.save_recovery, document, prompt)

    def _in_background(self, fn: Callable, *args) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            fn(*args)
            return
        task = loop.create_task(asyncio.to_thread(fn, *args))
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    # -- state --------------------------------------------------------------

    def _transition(self, new_state: BuildState) -> None:
        if new_state not in _TRANSITIONS[self.state]:
            raise InvalidTransition(f"{self.state.value} -> {new_state.value}")
        logger.debug("Build state %s -> %s", self.state.value, new_state.value)
        self.state = new_state
        if self.on_state:
            self.on_state(new_state)

    def _set_status(self, status: str) -> None:
        if status != self.status:
            self.status = status
            if self.on_status:
                self.on_status(status)
