"""
Pydantic response models for API endpoints.

Built straight from the storage dataclasses (``from_attributes``) and
serialized with camelCase keys.
"""
from datetime import datetime
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from typing import List, Optional, Dict, Any


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class TranscriptSegmentResponse(CamelModel):
    text: str
    start_ms: int
    end_ms: int
    start_time_text: str


class VideoResponse(CamelModel):
    """Analyzed video with its summary."""
    id: str
    youtube_id: str
    user_id: Optional[str] = None
    title: str
    channel: str
    duration: str
    views: str
    thumbnail: str
    transcript: Optional[str] = None
    transcript_data: Optional[List[TranscriptSegmentResponse]] = None
    summary: Optional[Dict[str, Any]] = None
    created_at: datetime


class ChatMessageResponse(CamelModel):
    id: str
    video_id: str
    message: str
    response: str
    timestamps: List[str] = []
    created_at: datetime


class QuickQuestionsResponse(BaseModel):
    questions: List[str]


class PromptConfigResponse(CamelModel):
    id: str
    name: str
    type: str
    quick_action_type: Optional[str] = None
    system_prompt: str
    user_prompt_template: str
    description: Optional[str] = None
    version: int
    is_active: bool
    created_at: datetime
    updated_at: datetime


class ProfileResponse(CamelModel):
    id: str
    user_id: str
    name: str
    description: str
    created_at: datetime


class PlanResponse(CamelModel):
    """Personalized plan for a (video, profile) pair."""
    id: str
    video_id: str
    profile_id: str
    plan: Dict[str, Any]
    created_at: datetime


class SuccessResponse(BaseModel):
    success: bool = True
    message: str


class SearchResultResponse(CamelModel):
    title: str
    url: str
    snippet: str = ""
    published_date: Optional[str] = None
    content: Optional[str] = None


class WebSearchResponse(CamelModel):
    query: str
    results: List[SearchResultResponse] = []
    search_timestamp: int
