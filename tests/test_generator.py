"""Tests for server-side request planning and stream relaying."""

import json
from types import SimpleNamespace

from buildr.config import settings
from buildr.pipeline.generator import (
    detect_request_type,
    has_existing_code,
    instant_events,
    open_stream,
    plan_generation,
    relay_stream,
    try_instant_response,
)
from buildr.schemas.generate import GenerateRequest
from buildr.utils.sse import DONE

PAGE = "<!DOCTYPE html>\n<html>\n<body>\n" + "\n".join(
    f'<section id="{name}">\n  <h2 class="text-3xl">{name}</h2>\n</section>' for name in ("hero", "pricing", "contact")
) + "\n</body>\n</html>"


def request(message: str, **kwargs) -> GenerateRequest:
    return GenerateRequest(messages=[{"role": "user", "content": message}], **kwargs)


def events(lines: list[str]) -> list:
    return [line if line == DONE else json.loads(line[len("data: "):]) for line in lines]


async def model_chunks(*texts: str):
    for text in texts:
        yield SimpleNamespace(choices=[SimpleNamespace(delta=SimpleNamespace(content=text))])


def test_request_type():
    """Test build/chat/edit detection."""
    assert detect_request_type("Build a landing page for my gym", has_code=False) == "build"
    assert detect_request_type("What fonts work for a bakery?", has_code=False) == "chat"
    assert detect_request_type("How do I add analytics", has_code=True) == "chat"
    assert detect_request_type("add a testimonials section", has_code=True) == "edit"
    assert detect_request_type("a portfolio for a photographer", has_code=False) == "build"


def test_short_code_is_not_existing_code():
    """Test that a stub document does not switch to edit mode."""
    assert not has_existing_code(request("hi", current_code="<html></html>"))
    assert has_existing_code(request("hi", current_code=PAGE))


def test_camel_case_body():
    """Test parsing the wire format."""
    body = GenerateRequest.model_validate({
        "messages": [{"role": "user", "content": "hi"}],
        "templateCategory": "restaurant",
        "premiumMode": True,
        "isPlanMode": False,
        "currentCode": "x",
    })
    assert body.template_category == "restaurant"
    assert body.premium_mode
    assert body.to_payload()["currentCode"] == "x"


def test_plan_build():
    """Test the plan for a first build."""
    plan = plan_generation(request("Build a bakery website", template_category="restaurant"))

    assert plan.request_type == "build"
    assert plan.model == settings.openai_model
    assert plan.max_tokens == settings.build_max_tokens
    assert "restaurant" in plan.system
    assert plan.messages == [{"role": "user", "content": "Build a bakery website"}]


def test_plan_premium_build():
    """Test the larger token budget in premium mode."""
    plan = plan_generation(request("Build a bakery website", premium_mode=True))
    assert plan.max_tokens == settings.premium_max_tokens


def test_plan_chat():
    """Test that questions go to the fast model."""
    plan = plan_generation(request("what colors suit a spa?"))

    assert plan.request_type == "chat"
    assert plan.model == settings.openai_fast_model
    assert plan.max_tokens == settings.chat_max_tokens


def test_plan_mode():
    """Test that plan mode never asks for code."""
    plan = plan_generation(request("Build a bakery website", is_plan_mode=True))

    assert plan.request_type == "plan"
    assert "Do NOT write any HTML" in plan.system


def test_plan_edit_appends_document_and_context():
    """Test the edit prompt."""
    plan = plan_generation(request("add a faq", current_code=PAGE, build_context="## Current Build Context\nx"))

    assert plan.request_type == "edit"
    assert plan.messages[-1]["content"].startswith("add a faq\n\nCurrent code:\n```html\n")
    assert PAGE in plan.messages[-1]["content"]
    assert plan.system.endswith("## Current Build Context\nx")


def test_instant_structural_edit():
    """Test that removals are answered without the model."""
    result = try_instant_response(request("remove the pricing section", current_code=PAGE))

    assert result is not None
    code, summary = result
    assert 'id="pricing"' not in code
    assert summary.startswith("Removed pricing section")


def test_no_instant_edit_in_plan_mode_or_first_build():
    """Test the cases that always go to the model."""
    assert try_instant_response(request("remove the pricing section", current_code=PAGE, is_plan_mode=True)) is None
    assert try_instant_response(request("remove the pricing section")) is None


async def test_instant_events():
    """Test the event sequence for an instant edit."""
    lines = [line async for line in instant_events("<html></html>", "Removed hero section (3 lines)")]

    assert events(lines) == [{"content": "Removed hero section (3 lines)"}, {"code": "<html></html>"}, DONE]


async def test_open_stream_passes_plan(fake_openai):
    """Test the completion call."""
    plan = plan_generation(request("Build a bakery website"))

    await open_stream(fake_openai, plan)

    call = fake_openai.calls[0]
    assert call["model"] == settings.openai_model
    assert call["stream"] is True
    assert call["messages"][0] == {"role": "system", "content": plan.system}
    assert call["messages"][1:] == plan.messages


async def test_relay_stream_emits_code():
    """Test content deltas followed by the extracted document."""
    stream = model_chunks("Here you go!\n```html\n", PAGE, "\n```")

    lines = [line async for line in relay_stream(stream)]

    decoded = events(lines)
    assert decoded[:3] == [{"content": "Here you go!\n```html\n"}, {"content": PAGE}, {"content": "\n```"}]
    assert decoded[3] == {"code": PAGE}
    assert decoded[4] == DONE


async def test_relay_stream_without_code():
    """Test a chat answer: no code record."""
    decoded = events([line async for line in relay_stream(model_chunks("Use warm ", "earth tones."))])

    assert decoded == [{"content": "Use warm "}, {"content": "earth tones."}, DONE]


async def test_relay_stream_reports_interruption():
    """Test that a failing model stream ends with an error record."""

    async def broken():
        async for chunk in model_chunks("<!DOCTYPE html>"):
            yield chunk
        raise ConnectionError("upstream closed")

    decoded = events([line async for line in relay_stream(broken())])

    assert decoded[0] == {"content": "<!DOCTYPE html>"}
    assert decoded[1] == {"error": "Generation interrupted: upstream closed"}
    assert decoded[2] == DONE


def test_token_kwarg_follows_called_model():
    """Test that the fast model gets its own max-tokens kwarg."""
    assert settings.max_tokens_param(10, "gpt-4o") == {"max_tokens": 10}
    assert settings.max_tokens_param(10, "gpt-5-mini") == {"max_completion_tokens": 10}


async def test_relay_stream_without_code_record_for_answers():
    """Test that a quoted page in a chat answer is relayed as text only."""
    stream = model_chunks("A page looks like:\n```html\n", PAGE, "\n```")

    decoded = events([line async for line in relay_stream(stream, emit_code=False)])

    assert {"code": PAGE} not in decoded
    assert decoded[-1] == DONE
    assert len(decoded) == 4
