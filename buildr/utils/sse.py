import json
from typing import Any

DONE = "data: [DONE]\n\n"


def sse_data(data: Any) -> str:
    payload = json.dumps(data) if not isinstance(data, str) else data
    return f"data: {payload}\n\n"


def sse_content(text: str) -> str:
    return sse_data({"content": text})


def sse_code(code: str) -> str:
    return sse_data({"code": code})


def sse_error(message: str) -> str:
    return sse_data({"error": message})


def sse_done() -> str:
    return DONE
