"""
Supplementary context for questions that reach beyond the video.

Never raises: any failure is reported as "no web info" so the chat turn that
asked for augmentation still completes.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from core.config import (
    WEB_AUGMENT_PROVIDER,
    WEB_AUGMENT_MODEL,
    WEB_AUGMENT_MIN_LENGTH,
    WEB_AUGMENT_MAX_TOKENS,
)
from core.llm_client import OpenRouterClient, llm
from core.prompt_manager import prompt_manager
from services.search.web_search import search_web

logger = logging.getLogger(__name__)

REFUSAL_PHRASES = [
    "i cannot search",
    "i can't search",
    "i don't have access",
    "i do not have access",
    "unable to search",
    "i don't have specific current information",
]


@dataclass
class WebSearchInfo:
    has_web_info: bool
    web_content: str
    search_query: str


def is_useful_content(content: Optional[str], min_length: int = WEB_AUGMENT_MIN_LENGTH) -> bool:
    """Reject answers no longer than ``min_length`` and refusals."""
    if not content or len(content.strip()) <= min_length:
        return False
    lowered = content.lower()
    return not any(phrase in lowered for phrase in REFUSAL_PHRASES)


class WebAugmenter:
    """Produces general-knowledge context for a question about a video."""

    def __init__(
        self,
        client: Optional[OpenRouterClient] = None,
        provider: str = WEB_AUGMENT_PROVIDER,
        model: str = WEB_AUGMENT_MODEL,
    ):
        self.client = client or llm
        self.provider = provider
        self.model = model

    def augment(self, question: str, video_title: str) -> WebSearchInfo:
        try:
            if self.provider == "duckduckgo":
                content = self._search_snippets(question, video_title)
            else:
                content = self._ask_model(question, video_title)
        except Exception as e:
            logger.warning(f"Web augmentation failed for '{question}': {e}")
            return WebSearchInfo(has_web_info=False, web_content="", search_query=question)

        has_web_info = is_useful_content(content)
        if not has_web_info:
            logger.info(f"Discarded web augmentation for '{question}'")

        return WebSearchInfo(
            has_web_info=has_web_info,
            web_content=content.strip() if has_web_info else "",
            search_query=question,
        )

    def _ask_model(self, question: str, video_title: str) -> str:
        logger.info(f"Gathering background knowledge with {self.model}: {question}")
        prompt = prompt_manager.web_augmentation_prompt(question, video_title)
        return self.client.chat_completion(
            [{"role": "user", "content": prompt}],
            model=self.model,
            max_tokens=WEB_AUGMENT_MAX_TOKENS,
        )

    def _search_snippets(self, question: str, video_title: str) -> str:
        response = search_web(f"{question} {video_title}".strip(), max_results=5)
        return "\n".join(
            f"- {result.title}: {result.snippet} ({result.url})"
            for result in response.results
        )


# Global web augmenter instance
web_augmenter = WebAugmenter()
