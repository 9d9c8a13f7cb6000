"""
Personalized action plans built from a video and a user profile.
"""
import json
import logging
from typing import Any, Dict, Optional

from core.config import SUMMARY_MODEL
from core.exceptions import GenerationError
from core.llm_client import OpenRouterClient, llm
from core.prompt_manager import prompt_manager
from services.analysis.summarizer import parse_json_object
from services.chat.timestamps import validate_timestamps

logger = logging.getLogger(__name__)

LEVELS = ("low", "medium", "high")


def _level(value) -> str:
    value = value.strip().lower() if isinstance(value, str) else ""
    return value if value in LEVELS else "medium"


def _summary_text(summary: Optional[Dict[str, Any]]) -> str:
    if not summary:
        return ""
    lines = [summary.get("shortSummary", "")]
    lines += [f"- {t.get('content', '')}" for t in summary.get("keyTakeaways", [])]
    return "\n".join(line for line in lines if line)


def normalize_plan(raw: Dict[str, Any], video_duration: Optional[str] = None) -> Dict[str, Any]:
    items = []
    for index, item in enumerate(raw.get("items") or [], start=1):
        if not isinstance(item, dict) or not item.get("title"):
            continue
        priority = item.get("priority")
        timestamp = str(item.get("timestamp") or "").strip()
        if timestamp and not validate_timestamps([timestamp], video_duration):
            timestamp = ""
        items.append({
            "title": str(item["title"]).strip(),
            "description": str(item.get("description") or "").strip(),
            "priority": priority if isinstance(priority, int) and not isinstance(priority, bool) else index,
            "effort": _level(item.get("effort")),
            "impact": _level(item.get("impact")),
            "target": str(item.get("target") or "").strip(),
            "timestamp": timestamp,
        })
    items.sort(key=lambda i: i["priority"])

    quick_wins = [str(w).strip() for w in raw.get("quickWins") or [] if str(w).strip()]
    return {"items": items, "quickWins": quick_wins}


class PlanGenerator:
    """Turns a video's lessons into a plan for one profile."""

    def __init__(self, client: Optional[OpenRouterClient] = None, model: str = SUMMARY_MODEL):
        self.client = client or llm
        self.model = model

    def generate_plan(
        self,
        transcript: Optional[str],
        summary: Optional[Dict[str, Any]],
        profile_description: str,
        title: str,
        video_duration: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Raises:
            GenerationTimeoutError: provider busy or timed out
            GenerationError: provider failure or unusable output
        """
        prompts = prompt_manager.resolve_plan_prompts(
            title=title,
            transcript=transcript,
            summary=_summary_text(summary),
            profile=profile_description,
            video_duration=video_duration,
        )
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
            logger.error(f"Plan for '{title}' was not valid JSON: {json.dumps(content)[:200]}")
            raise GenerationError("Failed to generate a personalized plan")

        return normalize_plan(raw, video_duration)


# Global plan generator instance
plan_generator = PlanGenerator()
