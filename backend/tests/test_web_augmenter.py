"""
Unit tests for web augmentation and its rejection policy.
"""
from unittest.mock import Mock, patch

from core.exceptions import GenerationError, GenerationTimeoutError, WebSearchError
from services.chat.web_augmenter import WebAugmenter, is_useful_content
from services.search.web_search import SearchResult, WebSearchResponse

USEFUL = (
    "Popular alternatives include Obsidian and Roam Research, both of which "
    "offer linked notes and local-first storage."
)


class TestRejectionPolicy:

    def test_useful_content_accepted(self):
        assert is_useful_content(USEFUL) is True

    def test_short_content_rejected(self):
        assert is_useful_content("Obsidian.") is False
        assert is_useful_content("") is False
        assert is_useful_content(None) is False

    def test_length_must_exceed_minimum(self):
        assert is_useful_content("a" * 50, min_length=50) is False
        assert is_useful_content("a" * 51, min_length=50) is True

    def test_refusal_phrases_rejected(self):
        """Long refusals are still refusals."""
        refusal = "I'm sorry, but I don't have access to the internet so " + "x" * 60
        assert is_useful_content(refusal) is False
        assert is_useful_content("I don't have specific current information about this topic at all.") is False


class TestLLMProvider:
    """Default provider: background knowledge from the model."""

    def test_returns_web_info(self):
        client = Mock()
        client.chat_completion.return_value = f"  {USEFUL}  "

        info = WebAugmenter(client=client, provider="llm").augment("Any alternatives?", "Notion Tour")

        assert info.has_web_info is True
        assert info.web_content == USEFUL
        assert info.search_query == "Any alternatives?"
        prompt = client.chat_completion.call_args[0][0][0]["content"]
        assert "Notion Tour" in prompt
        assert "NOT performing a live web search" in prompt

    def test_short_answer_means_no_info(self):
        client = Mock()
        client.chat_completion.return_value = "No idea."

        info = WebAugmenter(client=client, provider="llm").augment("Any alternatives?", "Notion Tour")

        assert info.has_web_info is False
        assert info.web_content == ""

    def test_provider_error_never_propagates(self):
        client = Mock()
        client.chat_completion.side_effect = GenerationError("LLM provider error: HTTP 500")

        info = WebAugmenter(client=client, provider="llm").augment("Any alternatives?", "Notion Tour")

        assert info.has_web_info is False

    def test_timeout_never_propagates(self):
        client = Mock()
        client.chat_completion.side_effect = GenerationTimeoutError("busy")

        info = WebAugmenter(client=client, provider="llm").augment("Any alternatives?", "Notion Tour")

        assert info.has_web_info is False


class TestDuckDuckGoProvider:
    """Literal search provider."""

    @patch("services.chat.web_augmenter.search_web")
    def test_formats_search_snippets(self, mock_search):
        mock_search.return_value = WebSearchResponse(
            query="q",
            results=[
                SearchResult(
                    title="Obsidian vs Notion",
                    url="https://example.com/compare",
                    snippet="A detailed comparison of two popular note taking apps.",
                ),
            ],
        )

        info = WebAugmenter(client=Mock(), provider="duckduckgo").augment("Notion alternatives?", "Notion Tour")

        assert info.has_web_info is True
        assert "Obsidian vs Notion" in info.web_content
        assert "https://example.com/compare" in info.web_content
        mock_search.assert_called_once_with("Notion alternatives? Notion Tour", max_results=5)

    @patch("services.chat.web_augmenter.search_web")
    def test_search_failure_means_no_info(self, mock_search):
        mock_search.side_effect = WebSearchError("Failed to search the web")

        info = WebAugmenter(client=Mock(), provider="duckduckgo").augment("Notion alternatives?", "Notion Tour")

        assert info.has_web_info is False
