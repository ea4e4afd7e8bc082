from typing import Any, Literal

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class LogEventCreate(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    type: str
    severity: Literal["info", "warning", "error", "critical"] = "error"
    message: str | None = None
    stack: str | None = None
    session_id: str | None = None
    project_id: str | None = None
    endpoint: str | None = None
    request_duration_ms: int | None = None
    response_status: int | None = None
    prompt: str | None = None
    bytes_received: int | None = None
    last_valid_chunk: str | None = None
    code_length: int | None = None
    metadata: dict[str, Any] | None = None
