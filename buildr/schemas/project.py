import uuid
from datetime import datetime

from pydantic import BaseModel


class ProjectCreate(BaseModel):
    owner: str
    name: str
    code: str | None = None
    prompt_text: str | None = None


class ProjectUpdate(BaseModel):
    name: str | None = None
    code: str | None = None
    save_as_version: bool = False
    version_description: str | None = None


class ProjectResponse(BaseModel):
    id: uuid.UUID
    owner: str
    name: str
    code: str | None
    prompt_text: str | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ProjectVersionResponse(BaseModel):
    id: int
    project_id: uuid.UUID
    version_number: int
    code: str
    change_description: str
    created_at: datetime

    model_config = {"from_attributes": True}
