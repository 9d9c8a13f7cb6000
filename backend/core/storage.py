"""
Persistence layer.

One ``Storage`` interface with two implementations: ``MemoryStorage`` for tests
and local runs, ``SQLiteStorage`` for production. The backend is chosen once at
startup from ``STORAGE_BACKEND`` and never mixed at runtime.
"""
import json
import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import replace
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from core.config import STORAGE_BACKEND
from core.database import Database
from core.transaction import TransactionManager
from models.video_models import (
    ChatMessage,
    Feedback,
    PersonalizedPlan,
    Profile,
    PromptConfig,
    TranscriptSegment,
    Video,
    utcnow,
)

logger = logging.getLogger(__name__)

PROMPT_CONFIG_FIELDS = (
    "name",
    "system_prompt",
    "user_prompt_template",
    "type",
    "quick_action_type",
    "description",
    "is_active",
)
TEMPLATE_FIELDS = ("system_prompt", "user_prompt_template")
PROFILE_FIELDS = ("name", "description")


def activation_scope(config: PromptConfig) -> Tuple[str, Optional[str]]:
    """Configs sharing a scope compete for the single active slot."""
    if config.type == "quick_action":
        return config.type, config.quick_action_type
    return config.type, None


def apply_prompt_config_updates(config: PromptConfig, updates: Dict[str, Any]) -> PromptConfig:
    changes = {key: value for key, value in updates.items() if key in PROMPT_CONFIG_FIELDS}
    version = config.version
    if any(key in changes and changes[key] != getattr(config, key) for key in TEMPLATE_FIELDS):
        version += 1
    return replace(config, **changes, version=version, updated_at=utcnow())


class Storage(ABC):
    """Storage interface used by the API layer and the analysis pipeline."""

    # Videos
    @abstractmethod
    def get_video(self, video_id: str) -> Optional[Video]: ...

    @abstractmethod
    def get_video_by_youtube_id(self, youtube_id: str) -> Optional[Video]: ...

    @abstractmethod
    def get_user_video(self, user_id: Optional[str], youtube_id: str) -> Optional[Video]: ...

    @abstractmethod
    def list_user_videos(self, user_id: str) -> List[Video]: ...

    @abstractmethod
    def create_video(self, video: Video) -> Video: ...

    @abstractmethod
    def update_video_summary(self, video_id: str, summary: Dict[str, Any]) -> Optional[Video]: ...

    @abstractmethod
    def delete_video(self, video_id: str) -> bool:
        """Delete a video together with its chat messages and plans."""

    # Chat
    @abstractmethod
    def list_chat_messages(self, video_id: str) -> List[ChatMessage]: ...

    @abstractmethod
    def create_chat_message(self, message: ChatMessage) -> ChatMessage: ...

    # Feedback
    @abstractmethod
    def create_feedback(self, feedback: Feedback) -> Feedback: ...

    # Prompt configs
    @abstractmethod
    def list_prompt_configs(self, config_type: Optional[str] = None) -> List[PromptConfig]: ...

    @abstractmethod
    def get_prompt_config(self, config_id: str) -> Optional[PromptConfig]: ...

    @abstractmethod
    def get_active_prompt_config(
        self, config_type: str = "chat", quick_action_type: Optional[str] = None
    ) -> Optional[PromptConfig]: ...

    @abstractmethod
    def create_prompt_config(self, config: PromptConfig) -> PromptConfig: ...

    @abstractmethod
    def update_prompt_config(self, config_id: str, updates: Dict[str, Any]) -> Optional[PromptConfig]: ...

    @abstractmethod
    def delete_prompt_config(self, config_id: str) -> bool: ...

    @abstractmethod
    def activate_prompt_config(self, config_id: str) -> bool:
        """Deactivate every config in the target's scope and activate the target, atomically."""

    # Profiles
    @abstractmethod
    def list_user_profiles(self, user_id: str) -> List[Profile]: ...

    @abstractmethod
    def get_profile(self, profile_id: str) -> Optional[Profile]: ...

    @abstractmethod
    def create_profile(self, profile: Profile) -> Profile: ...

    @abstractmethod
    def update_profile(self, profile_id: str, updates: Dict[str, Any]) -> Optional[Profile]: ...

    @abstractmethod
    def delete_profile(self, profile_id: str) -> bool: ...

    # Personalized plans
    @abstractmethod
    def get_personalized_plan(self, video_id: str, profile_id: str) -> Optional[PersonalizedPlan]: ...

    @abstractmethod
    def create_personalized_plan(self, plan: PersonalizedPlan) -> PersonalizedPlan: ...


class MemoryStorage(Storage):
    """Dict-backed storage. A single lock stands in for database transactions."""

    def __init__(self):
        self._lock = threading.RLock()
        self.videos: Dict[str, Video] = {}
        self.chat_messages: Dict[str, ChatMessage] = {}
        self.feedbacks: Dict[str, Feedback] = {}
        self.prompt_configs: Dict[str, PromptConfig] = {}
        self.profiles: Dict[str, Profile] = {}
        self.plans: Dict[str, PersonalizedPlan] = {}

    def get_video(self, video_id):
        return self.videos.get(video_id)

    def get_video_by_youtube_id(self, youtube_id):
        return next((v for v in self.videos.values() if v.youtube_id == youtube_id), None)

    def get_user_video(self, user_id, youtube_id):
        return next(
            (v for v in self.videos.values() if v.youtube_id == youtube_id and v.user_id == user_id),
            None,
        )

    def list_user_videos(self, user_id):
        videos = [v for v in self.videos.values() if v.user_id == user_id]
        return sorted(videos, key=lambda v: v.created_at, reverse=True)

    def create_video(self, video):
        with self._lock:
            self.videos[video.id] = video
        return video

    def update_video_summary(self, video_id, summary):
        with self._lock:
            video = self.videos.get(video_id)
            if not video:
                return None
            updated = replace(video, summary=summary)
            self.videos[video_id] = updated
            return updated

    def delete_video(self, video_id):
        with self._lock:
            if video_id not in self.videos:
                return False
            self.plans = {k: p for k, p in self.plans.items() if p.video_id != video_id}
            self.chat_messages = {
                k: m for k, m in self.chat_messages.items() if m.video_id != video_id
            }
            del self.videos[video_id]
            return True

    def list_chat_messages(self, video_id):
        messages = [m for m in self.chat_messages.values() if m.video_id == video_id]
        return sorted(messages, key=lambda m: m.created_at)

    def create_chat_message(self, message):
        with self._lock:
            self.chat_messages[message.id] = message
        return message

    def create_feedback(self, feedback):
        with self._lock:
            self.feedbacks[feedback.id] = feedback
        return feedback

    def list_prompt_configs(self, config_type=None):
        configs = [
            c for c in self.prompt_configs.values() if config_type is None or c.type == config_type
        ]
        return sorted(configs, key=lambda c: c.created_at, reverse=True)

    def get_prompt_config(self, config_id):
        return self.prompt_configs.get(config_id)

    def get_active_prompt_config(self, config_type="chat", quick_action_type=None):
        scope = (config_type, quick_action_type if config_type == "quick_action" else None)
        return next(
            (c for c in self.prompt_configs.values() if c.is_active and activation_scope(c) == scope),
            None,
        )

    def _deactivate_scope(self, config: PromptConfig):
        scope = activation_scope(config)
        for key, other in list(self.prompt_configs.items()):
            if other.id != config.id and other.is_active and activation_scope(other) == scope:
                self.prompt_configs[key] = replace(other, is_active=False, updated_at=utcnow())

    def create_prompt_config(self, config):
        with self._lock:
            if config.is_active:
                self._deactivate_scope(config)
            self.prompt_configs[config.id] = config
        return config

    def update_prompt_config(self, config_id, updates):
        with self._lock:
            existing = self.prompt_configs.get(config_id)
            if not existing:
                return None
            updated = apply_prompt_config_updates(existing, updates)
            if updated.is_active:
                self._deactivate_scope(updated)
            self.prompt_configs[config_id] = updated
            return updated

    def delete_prompt_config(self, config_id):
        with self._lock:
            return self.prompt_configs.pop(config_id, None) is not None

    def activate_prompt_config(self, config_id):
        with self._lock:
            config = self.prompt_configs.get(config_id)
            if not config:
                return False
            self._deactivate_scope(config)
            self.prompt_configs[config_id] = replace(config, is_active=True, updated_at=utcnow())
            return True

    def list_user_profiles(self, user_id):
        profiles = [p for p in self.profiles.values() if p.user_id == user_id]
        return sorted(profiles, key=lambda p: p.created_at, reverse=True)

    def get_profile(self, profile_id):
        return self.profiles.get(profile_id)

    def create_profile(self, profile):
        with self._lock:
            self.profiles[profile.id] = profile
        return profile

    def update_profile(self, profile_id, updates):
        with self._lock:
            profile = self.profiles.get(profile_id)
            if not profile:
                return None
            changes = {k: v for k, v in updates.items() if k in PROFILE_FIELDS}
            updated = replace(profile, **changes)
            self.profiles[profile_id] = updated
            return updated

    def delete_profile(self, profile_id):
        with self._lock:
            if profile_id not in self.profiles:
                return False
            self.plans = {k: p for k, p in self.plans.items() if p.profile_id != profile_id}
            del self.profiles[profile_id]
            return True

    def get_personalized_plan(self, video_id, profile_id):
        plans = [
            p for p in self.plans.values() if p.video_id == video_id and p.profile_id == profile_id
        ]
        return min(plans, key=lambda p: p.created_at) if plans else None

    def create_personalized_plan(self, plan):
        with self._lock:
            self.plans[plan.id] = plan
        return plan


def _dumps(value: Any) -> Optional[str]:
    return json.dumps(value) if value is not None else None


def _loads(value: Optional[str]) -> Any:
    return json.loads(value) if value else None


class SQLiteStorage(Storage):
    """Storage backed by the SQLite ``Database`` helper."""

    def __init__(self, database: Optional[Database] = None):
        self.db = database or Database()
        self.transactions = TransactionManager(self.db)

    # Row mappers

    @staticmethod
    def _row_to_video(row) -> Video:
        transcript_data = _loads(row["transcript_data"])
        return Video(
            id=row["id"],
            youtube_id=row["youtube_id"],
            user_id=row["user_id"],
            title=row["title"],
            channel=row["channel"],
            duration=row["duration"],
            views=row["views"],
            thumbnail=row["thumbnail"],
            transcript=row["transcript"],
            transcript_data=(
                [TranscriptSegment.from_dict(seg) for seg in transcript_data]
                if transcript_data is not None else None
            ),
            summary=_loads(row["summary"]),
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    @staticmethod
    def _row_to_chat_message(row) -> ChatMessage:
        return ChatMessage(
            id=row["id"],
            video_id=row["video_id"],
            message=row["message"],
            response=row["response"],
            timestamps=_loads(row["timestamps"]) or [],
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    @staticmethod
    def _row_to_prompt_config(row) -> PromptConfig:
        return PromptConfig(
            id=row["id"],
            name=row["name"],
            type=row["type"],
            quick_action_type=row["quick_action_type"],
            system_prompt=row["system_prompt"],
            user_prompt_template=row["user_prompt_template"],
            description=row["description"],
            version=row["version"],
            is_active=bool(row["is_active"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    @staticmethod
    def _row_to_profile(row) -> Profile:
        return Profile(
            id=row["id"],
            user_id=row["user_id"],
            name=row["name"],
            description=row["description"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    @staticmethod
    def _row_to_plan(row) -> PersonalizedPlan:
        return PersonalizedPlan(
            id=row["id"],
            video_id=row["video_id"],
            profile_id=row["profile_id"],
            plan=_loads(row["plan"]) or {},
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    # Videos

    def get_video(self, video_id):
        row = self.db.execute_one("SELECT * FROM videos WHERE id = ?", (video_id,))
        return self._row_to_video(row) if row else None

    def get_video_by_youtube_id(self, youtube_id):
        row = self.db.execute_one(
            "SELECT * FROM videos WHERE youtube_id = ? ORDER BY created_at LIMIT 1",
            (youtube_id,)
        )
        return self._row_to_video(row) if row else None

    def get_user_video(self, user_id, youtube_id):
        row = self.db.execute_one(
            "SELECT * FROM videos WHERE user_id IS ? AND youtube_id = ?",
            (user_id, youtube_id)
        )
        return self._row_to_video(row) if row else None

    def list_user_videos(self, user_id):
        rows = self.db.execute(
            "SELECT * FROM videos WHERE user_id = ? ORDER BY created_at DESC",
            (user_id,)
        )
        return [self._row_to_video(row) for row in rows]

    def create_video(self, video):
        transcript_data = (
            [seg.to_dict() for seg in video.transcript_data]
            if video.transcript_data is not None else None
        )
        self.db.execute_write(
            """
            INSERT INTO videos
            (id, youtube_id, user_id, title, channel, duration, views, thumbnail,
             transcript, transcript_data, summary, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                video.id, video.youtube_id, video.user_id, video.title, video.channel,
                video.duration, video.views, video.thumbnail, video.transcript,
                _dumps(transcript_data), _dumps(video.summary), video.created_at.isoformat(),
            )
        )
        return video

    def update_video_summary(self, video_id, summary):
        updated = self.db.execute_write(
            "UPDATE videos SET summary = ? WHERE id = ?",
            (_dumps(summary), video_id)
        )
        return self.get_video(video_id) if updated else None

    def delete_video(self, video_id):
        with self.transactions.transaction() as conn:
            conn.execute("DELETE FROM personalized_plans WHERE video_id = ?", (video_id,))
            conn.execute("DELETE FROM chat_messages WHERE video_id = ?", (video_id,))
            cursor = conn.execute("DELETE FROM videos WHERE id = ?", (video_id,))
            return cursor.rowcount > 0

    # Chat

    def list_chat_messages(self, video_id):
        rows = self.db.execute(
            "SELECT * FROM chat_messages WHERE video_id = ? ORDER BY created_at, rowid",
            (video_id,)
        )
        return [self._row_to_chat_message(row) for row in rows]

    def create_chat_message(self, message):
        self.db.execute_write(
            """
            INSERT INTO chat_messages (id, video_id, message, response, timestamps, created_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                message.id, message.video_id, message.message, message.response,
                json.dumps(message.timestamps), message.created_at.isoformat(),
            )
        )
        return message

    # Feedback

    def create_feedback(self, feedback):
        self.db.execute_write(
            """
            INSERT INTO feedbacks (id, user_id, name, email, message, created_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                feedback.id, feedback.user_id, feedback.name, feedback.email,
                feedback.message, feedback.created_at.isoformat(),
            )
        )
        return feedback

    # Prompt configs

    def list_prompt_configs(self, config_type=None):
        if config_type:
            rows = self.db.execute(
                "SELECT * FROM prompt_configs WHERE type = ? ORDER BY created_at DESC",
                (config_type,)
            )
        else:
            rows = self.db.execute("SELECT * FROM prompt_configs ORDER BY created_at DESC")
        return [self._row_to_prompt_config(row) for row in rows]

    def get_prompt_config(self, config_id):
        row = self.db.execute_one("SELECT * FROM prompt_configs WHERE id = ?", (config_id,))
        return self._row_to_prompt_config(row) if row else None

    def get_active_prompt_config(self, config_type="chat", quick_action_type=None):
        if config_type == "quick_action":
            row = self.db.execute_one(
                """
                SELECT * FROM prompt_configs
                WHERE is_active = 1 AND type = ? AND quick_action_type IS ?
                ORDER BY updated_at DESC LIMIT 1
                """,
                (config_type, quick_action_type)
            )
        else:
            row = self.db.execute_one(
                """
                SELECT * FROM prompt_configs
                WHERE is_active = 1 AND type = ?
                ORDER BY updated_at DESC LIMIT 1
                """,
                (config_type,)
            )
        return self._row_to_prompt_config(row) if row else None

    @staticmethod
    def _deactivate_scope(conn, config: PromptConfig):
        config_type, quick_action_type = activation_scope(config)
        now = utcnow().isoformat()
        if config_type == "quick_action":
            conn.execute(
                """
                UPDATE prompt_configs SET is_active = 0, updated_at = ?
                WHERE is_active = 1 AND type = ? AND quick_action_type IS ? AND id != ?
                """,
                (now, config_type, quick_action_type, config.id)
            )
        else:
            conn.execute(
                """
                UPDATE prompt_configs SET is_active = 0, updated_at = ?
                WHERE is_active = 1 AND type = ? AND id != ?
                """,
                (now, config_type, config.id)
            )

    @staticmethod
    def _prompt_config_params(config: PromptConfig) -> tuple:
        return (
            config.name, config.type, config.quick_action_type, config.system_prompt,
            config.user_prompt_template, config.description, config.version,
            int(config.is_active), config.created_at.isoformat(), config.updated_at.isoformat(),
            config.id,
        )

    def create_prompt_config(self, config):
        with self.transactions.transaction("IMMEDIATE") as conn:
            if config.is_active:
                self._deactivate_scope(conn, config)
            conn.execute(
                """
                INSERT INTO prompt_configs
                (name, type, quick_action_type, system_prompt, user_prompt_template,
                 description, version, is_active, created_at, updated_at, id)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                self._prompt_config_params(config)
            )
        return config

    def update_prompt_config(self, config_id, updates):
        with self.transactions.transaction("IMMEDIATE") as conn:
            row = conn.execute("SELECT * FROM prompt_configs WHERE id = ?", (config_id,)).fetchone()
            if not row:
                return None
            updated = apply_prompt_config_updates(self._row_to_prompt_config(row), updates)
            if updated.is_active:
                self._deactivate_scope(conn, updated)
            conn.execute(
                """
                UPDATE prompt_configs SET
                name = ?, type = ?, quick_action_type = ?, system_prompt = ?,
                user_prompt_template = ?, description = ?, version = ?, is_active = ?,
                created_at = ?, updated_at = ?
                WHERE id = ?
                """,
                self._prompt_config_params(updated)
            )
        return updated

    def delete_prompt_config(self, config_id):
        return self.db.execute_write("DELETE FROM prompt_configs WHERE id = ?", (config_id,)) > 0

    def activate_prompt_config(self, config_id):
        with self.transactions.transaction("IMMEDIATE") as conn:
            row = conn.execute("SELECT * FROM prompt_configs WHERE id = ?", (config_id,)).fetchone()
            if not row:
                return False
            self._deactivate_scope(conn, self._row_to_prompt_config(row))
            conn.execute(
                "UPDATE prompt_configs SET is_active = 1, updated_at = ? WHERE id = ?",
                (utcnow().isoformat(), config_id)
            )
        return True

    # Profiles

    def list_user_profiles(self, user_id):
        rows = self.db.execute(
            "SELECT * FROM profiles WHERE user_id = ? ORDER BY created_at DESC",
            (user_id,)
        )
        return [self._row_to_profile(row) for row in rows]

    def get_profile(self, profile_id):
        row = self.db.execute_one("SELECT * FROM profiles WHERE id = ?", (profile_id,))
        return self._row_to_profile(row) if row else None

    def create_profile(self, profile):
        self.db.execute_write(
            "INSERT INTO profiles (id, user_id, name, description, created_at) VALUES (?, ?, ?, ?, ?)",
            (profile.id, profile.user_id, profile.name, profile.description, profile.created_at.isoformat())
        )
        return profile

    def update_profile(self, profile_id, updates):
        profile = self.get_profile(profile_id)
        if not profile:
            return None
        changes = {k: v for k, v in updates.items() if k in PROFILE_FIELDS}
        updated = replace(profile, **changes)
        self.db.execute_write(
            "UPDATE profiles SET name = ?, description = ? WHERE id = ?",
            (updated.name, updated.description, profile_id)
        )
        return updated

    def delete_profile(self, profile_id):
        with self.transactions.transaction() as conn:
            conn.execute("DELETE FROM personalized_plans WHERE profile_id = ?", (profile_id,))
            cursor = conn.execute("DELETE FROM profiles WHERE id = ?", (profile_id,))
            return cursor.rowcount > 0

    # Personalized plans

    def get_personalized_plan(self, video_id, profile_id):
        row = self.db.execute_one(
            """
            SELECT * FROM personalized_plans
            WHERE video_id = ? AND profile_id = ?
            ORDER BY created_at LIMIT 1
            """,
            (video_id, profile_id)
        )
        return self._row_to_plan(row) if row else None

    def create_personalized_plan(self, plan):
        self.db.execute_write(
            """
            INSERT INTO personalized_plans (id, video_id, profile_id, plan, created_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            (plan.id, plan.video_id, plan.profile_id, json.dumps(plan.plan), plan.created_at.isoformat())
        )
        return plan


def create_storage(backend: str = STORAGE_BACKEND) -> Storage:
    """Build the storage backend named by configuration."""
    if backend == "memory":
        logger.info("Using in-memory storage")
        return MemoryStorage()
    if backend == "sqlite":
        return SQLiteStorage()
    raise ValueError(f"Unknown storage backend: {backend}")


# Global storage instance
storage = create_storage()
