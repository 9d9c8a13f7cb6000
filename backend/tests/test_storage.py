"""
Tests for both storage backends.
"""
from datetime import timedelta

import pytest

from core.database import Database
from core.storage import MemoryStorage, SQLiteStorage
from models.video_models import (
    ChatMessage,
    Feedback,
    PersonalizedPlan,
    Profile,
    PromptConfig,
    Video,
    utcnow,
)


@pytest.fixture(params=["memory", "sqlite"])
def storage(request, tmp_path):
    if request.param == "memory":
        return MemoryStorage()
    return SQLiteStorage(Database(tmp_path / "test.db"))


def chat_config(name, **kwargs):
    return PromptConfig(name=name, system_prompt=f"{name} system", user_prompt_template="${question}", **kwargs)


class TestVideos:

    def test_create_and_lookup(self, storage, sample_video):
        storage.create_video(sample_video)

        assert storage.get_video(sample_video.id).title == sample_video.title
        assert storage.get_video_by_youtube_id("dQw4w9WgXcQ").id == sample_video.id
        assert storage.get_user_video("user-1", "dQw4w9WgXcQ").id == sample_video.id
        assert storage.get_user_video("user-2", "dQw4w9WgXcQ") is None

    def test_transcript_segments_preserved(self, storage, sample_video):
        storage.create_video(sample_video)

        segments = storage.get_video(sample_video.id).transcript_data
        assert [s.start_time_text for s in segments] == ["00:00", "00:04"]
        assert segments[1].end_ms == 8000

    def test_anonymous_video_lookup(self, storage, sample_video):
        sample_video.user_id = None
        storage.create_video(sample_video)

        assert storage.get_user_video(None, "dQw4w9WgXcQ").id == sample_video.id

    def test_update_summary(self, storage, sample_video):
        storage.create_video(sample_video)

        updated = storage.update_video_summary(sample_video.id, {"shortSummary": "New"})

        assert updated.summary == {"shortSummary": "New"}
        assert storage.update_video_summary("missing", {}) is None

    def test_list_newest_first(self, storage, sample_video):
        older = sample_video
        older.created_at = utcnow() - timedelta(days=1)
        storage.create_video(older)
        newer = storage.create_video(Video(
            youtube_id="abcdefghijk", user_id="user-1", title="Newer", channel="c",
            duration="1:00", views="1 views", thumbnail="",
        ))

        assert [v.id for v in storage.list_user_videos("user-1")] == [newer.id, older.id]

    def test_delete_cascades(self, storage, sample_video):
        """Deleting a video removes its chat messages and plans."""
        storage.create_video(sample_video)
        profile = storage.create_profile(Profile(user_id="user-1", name="Me", description="Founder"))
        storage.create_chat_message(ChatMessage(video_id=sample_video.id, message="q", response="a"))
        storage.create_personalized_plan(PersonalizedPlan(video_id=sample_video.id, profile_id=profile.id))

        assert storage.delete_video(sample_video.id) is True

        assert storage.get_video(sample_video.id) is None
        assert storage.list_chat_messages(sample_video.id) == []
        assert storage.get_personalized_plan(sample_video.id, profile.id) is None
        assert storage.delete_video(sample_video.id) is False


class TestChatMessages:

    def test_oldest_first(self, storage, sample_video):
        storage.create_video(sample_video)
        now = utcnow()
        second = storage.create_chat_message(
            ChatMessage(video_id=sample_video.id, message="2", response="b", created_at=now)
        )
        first = storage.create_chat_message(ChatMessage(
            video_id=sample_video.id, message="1", response="a", timestamps=["00:04"],
            created_at=now - timedelta(seconds=5),
        ))

        messages = storage.list_chat_messages(sample_video.id)

        assert [m.id for m in messages] == [first.id, second.id]
        assert messages[0].timestamps == ["00:04"]


class TestPromptConfigActivation:
    """At most one active config per scope."""

    def test_activation_deactivates_previous(self, storage):
        a = storage.create_prompt_config(chat_config("A", is_active=True))
        b = storage.create_prompt_config(chat_config("B"))

        assert storage.activate_prompt_config(b.id) is True

        assert storage.get_prompt_config(a.id).is_active is False
        assert storage.get_prompt_config(b.id).is_active is True
        assert storage.get_active_prompt_config("chat").id == b.id
        assert [c.id for c in storage.list_prompt_configs() if c.is_active] == [b.id]

    def test_activate_missing(self, storage):
        assert storage.activate_prompt_config("missing") is False

    def test_create_active_deactivates_others(self, storage):
        a = storage.create_prompt_config(chat_config("A", is_active=True))
        b = storage.create_prompt_config(chat_config("B", is_active=True))

        assert storage.get_prompt_config(a.id).is_active is False
        assert storage.get_active_prompt_config("chat").id == b.id

    def test_update_to_active_deactivates_others(self, storage):
        a = storage.create_prompt_config(chat_config("A", is_active=True))
        b = storage.create_prompt_config(chat_config("B"))

        storage.update_prompt_config(b.id, {"is_active": True})

        assert storage.get_prompt_config(a.id).is_active is False
        assert storage.get_active_prompt_config("chat").id == b.id

    def test_scopes_are_independent(self, storage):
        chat = storage.create_prompt_config(chat_config("Chat", is_active=True))
        summary = storage.create_prompt_config(chat_config("Summary", type="summary", is_active=True))
        quotes = storage.create_prompt_config(
            chat_config("Quotes", type="quick_action", quick_action_type="Key Quotes", is_active=True)
        )
        items = storage.create_prompt_config(
            chat_config("Items", type="quick_action", quick_action_type="Action Items", is_active=True)
        )

        assert storage.get_active_prompt_config("chat").id == chat.id
        assert storage.get_active_prompt_config("summary").id == summary.id
        assert storage.get_active_prompt_config("quick_action", "Key Quotes").id == quotes.id
        assert storage.get_active_prompt_config("quick_action", "Action Items").id == items.id
        assert storage.get_active_prompt_config("quick_action", "Shorter Summary") is None

    def test_list_by_type(self, storage):
        storage.create_prompt_config(chat_config("Chat"))
        summary = storage.create_prompt_config(chat_config("Summary", type="summary"))

        assert [c.id for c in storage.list_prompt_configs("summary")] == [summary.id]
        assert len(storage.list_prompt_configs()) == 2


class TestPromptConfigUpdates:

    def test_template_change_bumps_version(self, storage):
        config = storage.create_prompt_config(chat_config("A"))

        updated = storage.update_prompt_config(config.id, {"user_prompt_template": "${title}"})

        assert updated.version == 2
        assert storage.get_prompt_config(config.id).user_prompt_template == "${title}"

    def test_name_change_keeps_version(self, storage):
        config = storage.create_prompt_config(chat_config("A"))

        updated = storage.update_prompt_config(config.id, {"name": "Renamed"})

        assert updated.version == 1
        assert updated.name == "Renamed"

    def test_update_and_delete_missing(self, storage):
        assert storage.update_prompt_config("missing", {"name": "x"}) is None
        assert storage.delete_prompt_config("missing") is False

    def test_delete(self, storage):
        config = storage.create_prompt_config(chat_config("A"))
        assert storage.delete_prompt_config(config.id) is True
        assert storage.get_prompt_config(config.id) is None


class TestProfilesAndPlans:

    def test_profile_crud(self, storage):
        profile = storage.create_profile(Profile(user_id="user-1", name="Me", description="Founder"))
        storage.create_profile(Profile(user_id="user-2", name="Other", description="Designer"))

        assert [p.id for p in storage.list_user_profiles("user-1")] == [profile.id]
        assert storage.update_profile(profile.id, {"name": "Still me"}).name == "Still me"
        assert storage.get_profile(profile.id).description == "Founder"
        assert storage.update_profile("missing", {"name": "x"}) is None

    def test_delete_profile_cascades_plans(self, storage, sample_video):
        storage.create_video(sample_video)
        profile = storage.create_profile(Profile(user_id="user-1", name="Me", description="Founder"))
        storage.create_personalized_plan(PersonalizedPlan(video_id=sample_video.id, profile_id=profile.id))

        assert storage.delete_profile(profile.id) is True

        assert storage.get_profile(profile.id) is None
        assert storage.get_personalized_plan(sample_video.id, profile.id) is None

    def test_first_plan_wins(self, storage, sample_video):
        storage.create_video(sample_video)
        profile = storage.create_profile(Profile(user_id="user-1", name="Me", description="Founder"))
        now = utcnow()
        first = storage.create_personalized_plan(PersonalizedPlan(
            video_id=sample_video.id, profile_id=profile.id,
            plan={"items": [], "quickWins": ["first"]}, created_at=now - timedelta(seconds=1),
        ))
        storage.create_personalized_plan(PersonalizedPlan(
            video_id=sample_video.id, profile_id=profile.id,
            plan={"items": [], "quickWins": ["second"]}, created_at=now,
        ))

        plan = storage.get_personalized_plan(sample_video.id, profile.id)

        assert plan.id == first.id
        assert plan.plan["quickWins"] == ["first"]


class TestFeedback:

    def test_create_feedback(self, storage):
        feedback = storage.create_feedback(Feedback(message="Love it", name="Sam", email="sam@example.com"))
        assert feedback.id
