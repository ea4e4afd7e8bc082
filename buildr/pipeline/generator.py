import logging
import time
from collections.abc import AsyncGenerator, AsyncIterable
from dataclasses import dataclass, field
from typing import Any

from openai import AsyncOpenAI

from buildr.config import settings
from buildr.pipeline.extractor import extract_complete
from buildr.pipeline.instant_edit import is_question, try_structural_edit
from buildr.pipeline.prompts.builder import (
    BUILD_SYSTEM,
    CHAT_SYSTEM,
    EDIT_SYSTEM,
    PLAN_SYSTEM,
    build_edit_message,
    build_system_prompt,
)
from buildr.schemas.generate import GenerateRequest
from buildr.utils.sse import sse_code, sse_content, sse_done, sse_error

logger = logging.getLogger(__name__)

# Shorter "current code" is treated as no code at all
MIN_EXISTING_CODE_CHARS = 100

_BUILD_WORDS = ("build", "create", "make me", "landing page", "website", "dashboard")


@dataclass
class GenerationPlan:
    request_type: str
    model: str
    system: str
    max_tokens: int
    messages: list[dict] = field(default_factory=list)


def has_existing_code(request: GenerateRequest) -> bool:
    return bool(request.current_code) and len(request.current_code) > MIN_EXISTING_CODE_CHARS


def detect_request_type(message: str, has_code: bool) -> str:
    msg = message.strip().lower()
    if not has_code and any(word in msg for word in _BUILD_WORDS):
        return "build"
    if is_question(msg):
        return "chat"
    if has_code:
        return "edit"
    return "build"


def plan_generation(request: GenerateRequest) -> GenerationPlan:
    user_message = request.messages[-1].content
    has_code = has_existing_code(request)
    request_type = "plan" if request.is_plan_mode else detect_request_type(user_message, has_code)

    build_tokens = settings.premium_max_tokens if request.premium_mode else settings.build_max_tokens
    if request_type == "chat":
        model, system, max_tokens = settings.openai_fast_model, CHAT_SYSTEM, settings.chat_max_tokens
    elif request_type == "plan":
        model, system, max_tokens = settings.openai_model, PLAN_SYSTEM, settings.chat_max_tokens
    elif request_type == "edit":
        model, system, max_tokens = settings.openai_model, EDIT_SYSTEM, build_tokens
    else:
        model, system, max_tokens = settings.openai_model, BUILD_SYSTEM, build_tokens

    messages = [{"role": m.role, "content": m.content} for m in request.messages]
    if request_type == "edit":
        messages[-1] = {"role": "user", "content": build_edit_message(user_message, request.current_code)}

    return GenerationPlan(
        request_type=request_type,
        model=model,
        system=build_system_prompt(system, request.template_category, request.build_context),
        max_tokens=max_tokens,
        messages=messages,
    )


def try_instant_response(request: GenerateRequest) -> tuple[str, str] | None:
    if not has_existing_code(request) or request.is_plan_mode:
        return None
    return try_structural_edit(request.current_code, request.messages[-1].content)


async def instant_events(code: str, summary: str) -> AsyncGenerator[str, None]:
    yield sse_content(summary)
    yield sse_code(code)
    yield sse_done()


async def open_stream(client: AsyncOpenAI, plan: GenerationPlan) -> AsyncIterable[Any]:
    logger.info("Calling %s for %s request (%d messages)", plan.model, plan.request_type, len(plan.messages))
    return await client.chat.completions.create(
        model=plan.model,
        messages=[{"role": "system", "content": plan.system}, *plan.messages],
        stream=True,
        **settings.max_tokens_param(plan.max_tokens, plan.model),
    )


async def relay_stream(stream: AsyncIterable[Any], emit_code: bool = True) -> AsyncGenerator[str, None]:
    """Re-emit model deltas as ``content`` records, then the extracted code.

    Chat and plan answers pass ``emit_code=False``: whatever markup they
    quote is never handed to the preview.
    """
    started = time.monotonic()
    full_text = ""
    try:
        async for chunk in stream:
            if not chunk.choices:
                continue
            text = chunk.choices[0].delta.content
            if text:
                full_text += text
                yield sse_content(text)
    except Exception as e:
        logger.exception("Model stream failed after %d chars", len(full_text))
        yield sse_error(f"Generation interrupted: {e}")
        yield sse_done()
        return

    code = extract_complete(full_text) if emit_code else None
    if code:
        yield sse_code(code)
    logger.info("Generation finished in %dms (%d chars)", (time.monotonic() - started) * 1000, len(full_text))
    yield sse_done()
