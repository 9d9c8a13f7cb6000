"""
Chat answer generation for a single question about a video.

Flow per turn: classify the question, optionally gather background context,
resolve prompts, call the model in JSON mode, parse (with salvage) and bound
the returned timestamps by the video's duration.
"""
import json
import logging
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from core.config import CHAT_MODEL, LLM_TIMEOUT_SECONDS, CHAT_CONTEXT_MESSAGES
from core.llm_client import OpenRouterClient, llm
from core.prompt_manager import prompt_manager
from core.storage import Storage
from models.video_models import PromptConfig, Video
from services.chat.timestamps import validate_timestamps
from services.chat.web_augmenter import WebAugmenter, web_augmenter
from services.chat.web_search_classifier import needs_web_search
from services.ingestion.youtube_fetcher import format_transcript

logger = logging.getLogger(__name__)

FALLBACK_ANSWER = "I couldn't generate a response for that question."

# Canned chat messages sent by the quick-action buttons
QUICK_ACTION_MESSAGES = {
    "give me a shorter summary of this video": "Shorter Summary",
    "break down the main ideas and key points": "Detailed Analysis",
    "what are the action items from this video?": "Action Items",
    "give me the key quotes from this video": "Key Quotes",
}

JSON_BLOCK_PATTERN = re.compile(r"\{.*\}", re.DOTALL)
ANSWER_PATTERN = re.compile(r'"answer"\s*:\s*"((?:[^"\\]|\\.)*)"', re.DOTALL)
TIMESTAMPS_PATTERN = re.compile(r'"timestamps"\s*:\s*\[((?:\s*"(?:[^"\\]|\\.)*"\s*,?)*)', re.DOTALL)
QUOTED_PATTERN = re.compile(r'"((?:[^"\\]|\\.)*)"')

ESCAPES = {'"': '"', "n": "\n", "t": "\t", "\\": "\\", "/": "/"}


@dataclass
class ChatResult:
    answer: str
    timestamps: List[str] = field(default_factory=list)
    used_web_search: bool = False


def _unescape(value: str) -> str:
    return re.sub(r"\\(.)", lambda m: ESCAPES.get(m.group(1), m.group(0)), value)


def _salvage(content: str) -> Tuple[Optional[str], List[str]]:
    answer_match = ANSWER_PATTERN.search(content)
    if not answer_match:
        return None, []

    timestamps = []
    timestamps_match = TIMESTAMPS_PATTERN.search(content)
    if timestamps_match:
        for item in QUOTED_PATTERN.findall(timestamps_match.group(1)):
            item = _unescape(item).strip()
            if item:
                timestamps.append(item)

    return _unescape(answer_match.group(1)), timestamps


def _from_object(data) -> Optional[Tuple[str, List[str]]]:
    if not isinstance(data, dict):
        return None
    answer = data.get("answer")
    timestamps = data.get("timestamps") or []
    if not isinstance(timestamps, list):
        timestamps = []
    return (answer if isinstance(answer, str) else "", [t for t in timestamps if isinstance(t, str)])


def parse_chat_response(content: Optional[str]) -> Tuple[str, List[str]]:
    """
    Extract ``(answer, timestamps)`` from model output. Never raises.

    Tries strict JSON, then the outermost ``{...}`` block, then regex salvage
    of the two fields, and finally treats the whole text as the answer.
    """
    content = (content or "").strip()
    if not content:
        return FALLBACK_ANSWER, []

    candidates = [content]
    block = JSON_BLOCK_PATTERN.search(content)
    if block and block.group(0) != content:
        candidates.append(block.group(0))

    for candidate in candidates:
        try:
            parsed = _from_object(json.loads(candidate))
        except ValueError:
            continue
        if parsed is not None:
            answer, timestamps = parsed
            return answer.strip() or FALLBACK_ANSWER, timestamps

    logger.info("Model returned malformed JSON, salvaging answer")
    answer, timestamps = _salvage(content)
    if answer is None:
        return content, []
    return answer.strip() or FALLBACK_ANSWER, timestamps


class ResponseGenerator:
    """Answers questions about a video with the chat model."""

    def __init__(
        self,
        client: Optional[OpenRouterClient] = None,
        augmenter: Optional[WebAugmenter] = None,
        model: str = CHAT_MODEL,
    ):
        self.client = client or llm
        self.augmenter = augmenter or web_augmenter
        self.model = model

    def chat_about_video(
        self,
        question: str,
        transcript: Optional[str],
        title: str,
        previous_messages: Optional[List[Dict[str, str]]] = None,
        video_duration: Optional[str] = None,
        config: Optional[PromptConfig] = None,
        system_prompt: Optional[str] = None,
    ) -> ChatResult:
        """
        Answer one question.

        Raises:
            GenerationTimeoutError: provider busy or timed out
            GenerationError: any other provider failure
        """
        web_content = None
        if needs_web_search(question, title):
            logger.info(f"Question needs background context: {question}")
            info = self.augmenter.augment(question, title)
            if info.has_web_info:
                web_content = info.web_content

        prompts = prompt_manager.resolve_chat_prompts(
            question=question,
            title=title,
            transcript=transcript,
            video_duration=video_duration,
            previous_messages=previous_messages,
            web_search_info=web_content,
            config=config,
            system_prompt=system_prompt,
        )

        content = self.client.chat_completion(
            [
                {"role": "system", "content": prompts.system},
                {"role": "user", "content": prompts.user},
            ],
            model=self.model,
            json_mode=True,
            timeout=LLM_TIMEOUT_SECONDS,
        )

        answer, timestamps = parse_chat_response(content)
        return ChatResult(
            answer=answer,
            timestamps=validate_timestamps(timestamps, video_duration),
            used_web_search=web_content is not None,
        )

    def generate_quick_action(
        self,
        action: str,
        transcript: Optional[str],
        title: str,
        previous_messages: Optional[List[Dict[str, str]]],
        video_duration: Optional[str],
        storage: Storage,
    ) -> ChatResult:
        """Run a labelled quick action as a chat turn, preferring the admin config for the label."""
        config = storage.get_active_prompt_config("quick_action", action)
        question = prompt_manager.resolve_quick_action_prompt(action, title, config)
        chat_config = storage.get_active_prompt_config("chat")
        system_prompt = config.system_prompt if config and config.system_prompt else None

        return self.chat_about_video(
            question=question,
            transcript=transcript,
            title=title,
            previous_messages=previous_messages,
            video_duration=video_duration,
            config=chat_config,
            system_prompt=system_prompt,
        )

    def respond(self, storage: Storage, video: Video, message: str) -> ChatResult:
        """Answer a chat message, routing the canned quick-action messages to their labels."""
        history = storage.list_chat_messages(video.id)[-CHAT_CONTEXT_MESSAGES:]
        previous = [{"question": m.message, "answer": m.response} for m in history]
        transcript = format_transcript(video.transcript, video.transcript_data)

        action = QUICK_ACTION_MESSAGES.get(message.strip().lower())
        if action:
            logger.info(f"Quick action '{action}' for video {video.id}")
            return self.generate_quick_action(
                action, transcript, video.title, previous, video.duration, storage
            )

        return self.chat_about_video(
            question=message,
            transcript=transcript,
            title=video.title,
            previous_messages=previous,
            video_duration=video.duration,
            config=storage.get_active_prompt_config("chat"),
        )


# Global response generator instance
response_generator = ResponseGenerator()
