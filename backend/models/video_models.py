"""
Data models for videos, chat turns, prompt configurations, profiles and plans.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Dict, Optional, Any
import uuid


def new_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class TranscriptSegment:
    """Timed transcript segment as delivered by the transcript provider"""
    text: str
    start_ms: int = 0
    end_ms: int = 0
    start_time_text: str = ""  # "02:15" format

    def to_dict(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "startMs": self.start_ms,
            "endMs": self.end_ms,
            "startTimeText": self.start_time_text,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TranscriptSegment":
        return cls(
            text=data.get("text", ""),
            start_ms=int(data.get("startMs") or 0),
            end_ms=int(data.get("endMs") or 0),
            start_time_text=data.get("startTimeText", ""),
        )


@dataclass
class VideoInfo:
    """Metadata fetched from the video platform (not yet persisted)"""
    youtube_id: str
    title: str
    channel: str
    duration: str  # "H:MM:SS" or "M:SS"
    views: str  # "12K views"
    thumbnail: str
    transcript: str = ""
    transcript_data: List[TranscriptSegment] = field(default_factory=list)


@dataclass
class Video:
    """Analyzed video"""
    youtube_id: str
    title: str
    channel: str
    duration: str
    views: str
    thumbnail: str
    user_id: Optional[str] = None  # None for unauthenticated analyses
    transcript: Optional[str] = None
    transcript_data: Optional[List[TranscriptSegment]] = None
    # shortSummary, outline, keyTakeaways, actionableSteps, readingTime, insights
    summary: Optional[Dict[str, Any]] = None
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utcnow)


@dataclass
class ChatMessage:
    """One question/answer turn about a video"""
    video_id: str
    message: str
    response: str
    timestamps: List[str] = field(default_factory=list)
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utcnow)


@dataclass
class PromptConfig:
    """Admin-editable prompt template pair"""
    name: str
    system_prompt: str
    user_prompt_template: str
    type: str = "chat"  # 'chat' | 'summary' | 'quick_action'
    quick_action_type: Optional[str] = None  # label, only for quick_action configs
    description: Optional[str] = None
    version: int = 1
    is_active: bool = False
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)


@dataclass
class Profile:
    """User self-description used to personalize plans"""
    user_id: str
    name: str
    description: str
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utcnow)


@dataclass
class PersonalizedPlan:
    """Cached plan for one (video, profile) pair"""
    video_id: str
    profile_id: str
    plan: Dict[str, Any] = field(default_factory=dict)  # {items: [...], quickWins: [...]}
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utcnow)


@dataclass
class Feedback:
    """Free-standing user feedback"""
    message: str
    name: Optional[str] = None
    email: Optional[str] = None
    user_id: Optional[str] = None
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utcnow)
