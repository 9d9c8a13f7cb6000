"""
Pydantic request models for API endpoints.

Bodies use camelCase on the wire; snake_case field names are accepted too.
"""
from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel
from typing import Literal, Optional


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AnalyzeVideoRequest(CamelModel):
    """Request model for video analysis."""
    url: Optional[str] = Field(default=None, description="YouTube video URL")


class ReanalyzeVideoRequest(CamelModel):
    youtube_id: Optional[str] = Field(default=None, description="YouTube video ID")


class ChatRequest(CamelModel):
    """Request model for a chat turn."""
    message: Optional[str] = Field(default=None, description="User question or quick-action message")


class CreatePlanRequest(CamelModel):
    profile_id: str = Field(..., description="Profile to personalize the plan for")


class ProfileCreateRequest(CamelModel):
    description: str = Field(..., min_length=1, description="Free-text self-description")
    name: Optional[str] = Field(default=None, max_length=100, description="Display name, derived when omitted")


class ProfileUpdateRequest(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, min_length=1)


class FeedbackRequest(CamelModel):
    message: str = Field(..., min_length=1)
    name: Optional[str] = None
    email: Optional[str] = None


PromptConfigType = Literal["chat", "summary", "quick_action"]


class PromptConfigCreateRequest(CamelModel):
    """Request model for a new prompt configuration."""
    name: str = Field(..., min_length=1)
    system_prompt: str = ""
    user_prompt_template: str = Field(..., min_length=1)
    type: PromptConfigType = "chat"
    quick_action_type: Optional[str] = Field(default=None, description="Quick-action label, e.g. 'Key Quotes'")
    description: Optional[str] = None
    is_active: bool = False

    @model_validator(mode="after")
    def check_quick_action_type(self):
        if self.type == "quick_action" and not self.quick_action_type:
            raise ValueError("quickActionType is required for quick_action configs")
        if self.type != "quick_action":
            self.quick_action_type = None
        return self


class PromptConfigUpdateRequest(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1)
    system_prompt: Optional[str] = None
    user_prompt_template: Optional[str] = Field(default=None, min_length=1)
    type: Optional[PromptConfigType] = None
    quick_action_type: Optional[str] = None
    description: Optional[str] = None
    is_active: Optional[bool] = None


class WebSearchRequest(CamelModel):
    query: str = Field(..., min_length=1)
    include_content: bool = False
    max_results: int = Field(default=5, ge=1, le=10)
