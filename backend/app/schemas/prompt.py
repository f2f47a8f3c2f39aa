from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field


class PromptCreate(BaseModel):
    prompt_text: str = Field(..., min_length=1)
    type: str = Field(..., min_length=1)
    tags: list[str] = Field(default_factory=list)


class PromptUpdate(BaseModel):
    is_favorite: Optional[bool] = None
    tags: Optional[list[str]] = None


class PromptResponse(BaseModel):
    id: str
    user_id: str
    prompt_text: str
    type: str
    tags: list[str]
    is_favorite: bool
    created_at: datetime

    class Config:
        from_attributes = True


class GalleryPromptResponse(BaseModel):
    id: str
    prompt_text: str
    type: str

    class Config:
        from_attributes = True


class EnhancePromptRequest(BaseModel):
    prompt: str = Field(..., min_length=1)
    mode: Literal["ai", "local"] = "ai"


class TemplateCustomizeRequest(BaseModel):
    templateId: Optional[str] = None
    variables: dict[str, str] = Field(default_factory=dict)
