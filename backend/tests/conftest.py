"""
Shared fixtures. Storage is forced to memory before any app module is imported.
"""
import os
import tempfile

os.environ["STORAGE_BACKEND"] = "memory"
os.environ.setdefault("DATA_DIR", tempfile.mkdtemp(prefix="vidchat-test-"))

import pytest
from unittest.mock import Mock
from fastapi.testclient import TestClient

from api.dependencies import analysis_rate_limit, get_storage
from api.main import app
from core.storage import MemoryStorage
from models.video_models import TranscriptSegment, Video


@pytest.fixture
def memory_storage():
    return MemoryStorage()


@pytest.fixture
def client(memory_storage):
    analysis_rate_limit.reset()
    app.dependency_overrides[get_storage] = lambda: memory_storage
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()


@pytest.fixture
def user_headers():
    return {"X-User-Id": "user-1"}


@pytest.fixture
def other_user_headers():
    return {"X-User-Id": "user-2"}


@pytest.fixture
def fake_llm():
    """Stand-in for OpenRouterClient; set ``chat_completion.return_value`` per test."""
    llm = Mock()
    llm.chat_completion.return_value = '{"answer": "ok", "timestamps": []}'
    return llm


@pytest.fixture
def sample_video():
    return Video(
        youtube_id="dQw4w9WgXcQ",
        user_id="user-1",
        title="Validating Startup Ideas",
        channel="Founders Channel",
        duration="15:00",
        views="12K views",
        thumbnail="https://i.ytimg.com/vi/dQw4w9WgXcQ/maxresdefault.jpg",
        transcript="Talk to customers before building.",
        transcript_data=[
            TranscriptSegment(text="Talk to customers", start_ms=0, end_ms=4000, start_time_text="00:00"),
            TranscriptSegment(text="before building.", start_ms=4000, end_ms=8000, start_time_text="00:04"),
        ],
        summary={"shortSummary": "Talk to customers.", "keyTakeaways": []},
    )
