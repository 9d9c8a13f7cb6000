"""
API tests for profiles, personalized plans, feedback and web search.
"""
import json

import pytest
from unittest.mock import patch

from api.routes.profiles import derive_profile_name
from core.llm_client import llm
from models.video_models import Profile
from services.search.web_search import SearchResult, WebSearchResponse

PLAN_JSON = json.dumps({
    "items": [{
        "title": "Run five customer calls",
        "description": "Validate the CRM idea with agencies",
        "priority": 1,
        "effort": "medium",
        "impact": "high",
        "target": "5 calls by Friday",
        "timestamp": "00:04",
    }],
    "quickWins": ["Email one agency owner today"],
})


class TestDeriveProfileName:

    def test_first_clause(self):
        assert derive_profile_name("Solo founder, building a CRM. Busy.") == "Solo founder"

    def test_truncated_to_fifty(self):
        assert len(derive_profile_name("x" * 80)) == 50

    def test_newline_ends_clause(self):
        assert derive_profile_name("Designer\nlikes tools") == "Designer"


class TestProfiles:

    def test_create_with_derived_name(self, client, user_headers):
        response = client.post(
            "/api/profiles", json={"description": "Solo founder, building a CRM"}, headers=user_headers
        )

        assert response.status_code == 200
        assert response.json()["name"] == "Solo founder"
        assert response.json()["userId"] == "user-1"

    def test_create_with_name(self, client, user_headers):
        response = client.post(
            "/api/profiles", json={"name": " Work ", "description": "Agency owner"}, headers=user_headers
        )
        assert response.json()["name"] == "Work"

    def test_description_required(self, client, user_headers):
        assert client.post("/api/profiles", json={"name": "Work"}, headers=user_headers).status_code == 400
        assert client.post("/api/profiles", json={"description": "   "}, headers=user_headers).status_code == 400

    def test_list_own_profiles(self, client, user_headers, other_user_headers):
        client.post("/api/profiles", json={"description": "Mine"}, headers=user_headers)
        client.post("/api/profiles", json={"description": "Theirs"}, headers=other_user_headers)

        profiles = client.get("/api/profiles", headers=user_headers).json()

        assert [p["description"] for p in profiles] == ["Mine"]

    def test_update(self, client, user_headers):
        profile = client.post("/api/profiles", json={"description": "Founder"}, headers=user_headers).json()

        response = client.patch(f"/api/profiles/{profile['id']}", json={"name": "Day job"}, headers=user_headers)

        assert response.json()["name"] == "Day job"
        assert response.json()["description"] == "Founder"

    def test_update_needs_a_field(self, client, user_headers):
        profile = client.post("/api/profiles", json={"description": "Founder"}, headers=user_headers).json()

        assert client.patch(f"/api/profiles/{profile['id']}", json={}, headers=user_headers).status_code == 400
        assert client.patch(
            f"/api/profiles/{profile['id']}", json={"name": "  "}, headers=user_headers
        ).status_code == 400

    def test_other_users_profile_is_missing(self, client, user_headers, other_user_headers):
        profile = client.post("/api/profiles", json={"description": "Founder"}, headers=user_headers).json()

        response = client.patch(f"/api/profiles/{profile['id']}", json={"name": "x"}, headers=other_user_headers)
        assert response.status_code == 404
        assert client.delete(f"/api/profiles/{profile['id']}", headers=other_user_headers).status_code == 404

    def test_delete(self, client, user_headers, memory_storage):
        profile = client.post("/api/profiles", json={"description": "Founder"}, headers=user_headers).json()

        response = client.delete(f"/api/profiles/{profile['id']}", headers=user_headers)

        assert response.json()["success"] is True
        assert memory_storage.profiles == {}


class TestPlans:

    @pytest.fixture
    def owned(self, memory_storage, sample_video):
        memory_storage.create_video(sample_video)
        profile = memory_storage.create_profile(
            Profile(user_id="user-1", name="Founder", description="Solo founder building a CRM")
        )
        return sample_video, profile

    def test_generated_once_then_cached(self, client, user_headers, owned):
        video, profile = owned

        with patch.object(llm, "chat_completion", return_value=PLAN_JSON) as mock_llm:
            first = client.post(f"/api/videos/{video.id}/plans", json={"profileId": profile.id}, headers=user_headers)
            second = client.post(f"/api/videos/{video.id}/plans", json={"profileId": profile.id}, headers=user_headers)

        assert first.status_code == 200
        assert first.json()["plan"]["items"][0]["target"] == "5 calls by Friday"
        assert first.json()["plan"]["quickWins"] == ["Email one agency owner today"]
        assert second.json()["id"] == first.json()["id"]
        mock_llm.assert_called_once()

    def test_get_plan(self, client, user_headers, owned):
        video, profile = owned
        path = f"/api/videos/{video.id}/plans/{profile.id}"

        assert client.get(path, headers=user_headers).status_code == 404

        with patch.object(llm, "chat_completion", return_value=PLAN_JSON):
            created = client.post(f"/api/videos/{video.id}/plans", json={"profileId": profile.id}, headers=user_headers)

        assert client.get(path, headers=user_headers).json()["id"] == created.json()["id"]

    def test_profile_required(self, client, user_headers, owned):
        video, _ = owned
        assert client.post(f"/api/videos/{video.id}/plans", json={}, headers=user_headers).status_code == 400

    def test_other_users_profile_forbidden(self, client, user_headers, owned, memory_storage):
        video, _ = owned
        foreign = memory_storage.create_profile(Profile(user_id="user-2", name="Other", description="Designer"))

        response = client.post(f"/api/videos/{video.id}/plans", json={"profileId": foreign.id}, headers=user_headers)

        assert response.status_code == 403
        assert response.json()["message"] == "Access denied: You don't own this profile"

    def test_other_users_video_forbidden(self, client, other_user_headers, owned):
        video, profile = owned

        response = client.get(f"/api/videos/{video.id}/plans/{profile.id}", headers=other_user_headers)

        assert response.status_code == 403


class TestFeedback:

    def test_anonymous_feedback(self, client, memory_storage):
        response = client.post("/api/feedback", json={"message": "Love it", "email": "sam@example.com"})

        assert response.json() == {"success": True, "message": "Feedback submitted successfully"}
        feedback = list(memory_storage.feedbacks.values())[0]
        assert feedback.user_id is None
        assert feedback.email == "sam@example.com"

    def test_signed_in_feedback(self, client, user_headers, memory_storage):
        client.post("/api/feedback", json={"message": "Love it"}, headers=user_headers)

        assert list(memory_storage.feedbacks.values())[0].user_id == "user-1"

    def test_message_required(self, client):
        assert client.post("/api/feedback", json={"name": "Sam"}).status_code == 400


class TestWebSearchRoute:

    @patch("api.routes.web_search.search_web")
    def test_search(self, mock_search, client):
        mock_search.return_value = WebSearchResponse(
            query="notion alternatives",
            results=[SearchResult(title="Obsidian", url="https://obsidian.md", snippet="Notes app")],
            search_timestamp=1700000000000,
        )

        response = client.post("/api/web-search/search", json={"query": "notion alternatives"})

        assert response.status_code == 200
        data = response.json()
        assert data["searchTimestamp"] == 1700000000000
        assert data["results"][0]["url"] == "https://obsidian.md"
        mock_search.assert_called_once_with("notion alternatives", 5)


class TestHealth:

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "healthy"}
        assert client.get("/api/health").json() == {"status": "healthy"}
