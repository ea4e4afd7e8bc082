from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ChatTurn(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class GenerateRequest(BaseModel):
    """Body of ``POST /api/generate``; camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    messages: list[ChatTurn] = Field(min_length=1)
    template_category: str | None = None
    premium_mode: bool = False
    is_follow_up: bool = False
    is_plan_mode: bool = False
    current_code: str | None = None
    project_id: str | None = None
    build_context: str | None = None

    def to_payload(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)
