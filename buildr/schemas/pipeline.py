from datetime import datetime
from typing import Literal

from pydantic import BaseModel


class CodeIssue(BaseModel):
    severity: Literal["error", "warning", "info"]
    message: str
    fix: str | None = None


class BuildContext(BaseModel):
    project_type: str = "website"
    feature_list: list[str] = []
    last_build_timestamp: datetime | None = None
    sections_present: set[str] = set()
    recent_user_requests: list[str] = []


class Message(BaseModel):
    id: str
    role: Literal["user", "assistant"]
    content: str
    code: str | None = None
    partial: bool = False
    error: bool = False
