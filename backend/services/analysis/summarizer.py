"""
Video summary and suggested-question generation.
"""
import json
import logging
import re
from typing import Any, Dict, List, Optional

from core.config import SUMMARY_MODEL
from core.exceptions import GenerationError
from core.llm_client import OpenRouterClient, llm
from core.prompt_manager import prompt_manager
from models.video_models import PromptConfig
from services.chat.timestamps import validate_timestamps

logger = logging.getLogger(__name__)

PRIORITIES = ("high", "medium", "low")

FALLBACK_QUESTIONS = [
    "What are the main points of this video?",
    "What can I apply from this video today?",
    "What tools or resources are mentioned?",
    "What is the most surprising insight?",
]


def parse_json_object(content: Optional[str]) -> Optional[Dict[str, Any]]:
    """Parse model output as a JSON object, falling back to the outermost {...} block."""
    if not content:
        return None
    candidates = [content]
    block = re.search(r"\{.*\}", content, re.DOTALL)
    if block:
        candidates.append(block.group(0))
    for candidate in candidates:
        try:
            data = json.loads(candidate)
        except ValueError:
            continue
        if isinstance(data, dict):
            return data
    return None


def _text(value) -> str:
    return value.strip() if isinstance(value, str) else ""


def normalize_summary(raw: Dict[str, Any], video_duration: Optional[str] = None) -> Dict[str, Any]:
    """Coerce model output into the summary shape clients render without further checks."""
    outline = []
    for section in raw.get("outline") or []:
        if isinstance(section, dict) and _text(section.get("title")):
            points = [_text(p) for p in section.get("points") or [] if _text(p)]
            outline.append({"title": _text(section["title"]), "points": points})
        elif _text(section):
            outline.append({"title": _text(section), "points": []})

    takeaways = []
    for item in raw.get("keyTakeaways") or raw.get("ahaMoments") or []:
        if isinstance(item, dict):
            content = _text(item.get("content"))
            timestamp = _text(item.get("timestamp"))
        else:
            content, timestamp = _text(item), ""
        if not content:
            continue
        if timestamp and not validate_timestamps([timestamp], video_duration):
            timestamp = ""
        takeaways.append({"content": content, "timestamp": timestamp})

    steps = []
    for item in raw.get("actionableSteps") or []:
        if isinstance(item, dict):
            step = _text(item.get("step"))
            priority = _text(item.get("priority")).lower()
        else:
            step, priority = _text(item), ""
        if step:
            steps.append({"step": step, "priority": priority if priority in PRIORITIES else "medium"})
    steps.sort(key=lambda s: PRIORITIES.index(s["priority"]))

    insights = raw.get("insights")
    if not isinstance(insights, int) or isinstance(insights, bool) or insights < 0:
        insights = len(takeaways)

    return {
        "shortSummary": _text(raw.get("shortSummary")),
        "outline": outline,
        "keyTakeaways": takeaways,
        "actionableSteps": steps,
        "readingTime": _text(raw.get("readingTime")) or "3 min",
        "insights": insights,
    }


class Summarizer:
    """Generates structured summaries and suggested questions for videos."""

    def __init__(self, client: Optional[OpenRouterClient] = None, model: str = SUMMARY_MODEL):
        self.client = client or llm
        self.model = model

    def summarize_video(
        self,
        transcript: Optional[str],
        title: str,
        video_duration: Optional[str] = None,
        config: Optional[PromptConfig] = None,
    ) -> Dict[str, Any]:
        """
        Summarize a video from its (timestamped) transcript.

        Args:
            config: Active summary config; built-in templates are used when None

        Raises:
            GenerationTimeoutError: provider busy or timed out
            GenerationError: provider failure or unusable output
        """
        prompts = prompt_manager.resolve_summary_prompts(title, transcript, video_duration, config)
        content = self.client.chat_completion(
            [
                {"role": "system", "content": prompts.system},
                {"role": "user", "content": prompts.user},
            ],
            model=self.model,
            json_mode=True,
        )

        raw = parse_json_object(content)
        if raw is None:
            logger.error(f"Summary for '{title}' was not valid JSON")
            raise GenerationError("Failed to generate a summary for this video")

        return normalize_summary(raw, video_duration)

    def generate_quick_questions(self, transcript: Optional[str], title: str) -> List[str]:
        """Exactly four suggested questions; the generic list on any failure."""
        try:
            content = self.client.chat_completion(
                [{"role": "user", "content": prompt_manager.resolve_quick_questions_prompt(title, transcript)}],
                model=self.model,
                json_mode=True,
            )
        except GenerationError as e:
            logger.warning(f"Quick questions failed for '{title}': {e}")
            return list(FALLBACK_QUESTIONS)

        raw = parse_json_object(content) or {}
        questions = [_text(q) for q in raw.get("questions") or [] if _text(q)]
        if len(questions) < 4:
            logger.info(f"Padding {len(questions)} generated questions for '{title}'")
            questions += [q for q in FALLBACK_QUESTIONS if q not in questions]
        return questions[:4]


# Global summarizer instance
summarizer = Summarizer()
