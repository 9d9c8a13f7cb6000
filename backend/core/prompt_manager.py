"""
Prompt resolution: admin-configured templates with built-in fallbacks.

Templates use ``${name}`` placeholders. Only a fixed set of names is ever
substituted and nothing in a template is evaluated, so admin-authored text
cannot reach code.
"""
import re
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

from models.video_models import PromptConfig

# Placeholder vocabulary shared with stored admin configs. Do not rename.
PLACEHOLDERS = ("context", "transcript", "videoDuration", "question", "title", "webSearchInfo")

PLACEHOLDER_PATTERN = re.compile(r"\$\{(\w+)\}")

QUICK_ACTION_LABELS = ("Shorter Summary", "Detailed Analysis", "Action Items", "Key Quotes")


@dataclass
class ResolvedPrompt:
    system: str
    user: str


def render_template(
    template: str,
    values: Dict[str, Optional[str]],
    allowed: Iterable[str] = PLACEHOLDERS,
) -> str:
    """Replace ``${name}`` holes in one pass. Unknown or missing names become ""."""
    allowed = set(allowed)

    def substitute(match: re.Match) -> str:
        name = match.group(1)
        if name not in allowed:
            return ""
        value = values.get(name)
        return "" if value is None else str(value)

    return PLACEHOLDER_PATTERN.sub(substitute, template or "")


def format_context(previous_messages: List[Dict[str, str]]) -> str:
    """Render prior turns as ``Q: ...\\nA: ...`` blocks separated by blank lines."""
    return "\n\n".join(
        f"Q: {msg.get('question', '')}\nA: {msg.get('answer', '')}"
        for msg in previous_messages or []
    )


def format_web_search_info(web_content: Optional[str]) -> str:
    if not web_content:
        return ""
    return (
        "\n\nADDITIONAL CONTEXT (general knowledge, not from the video):\n"
        f"{web_content}\n\n"
        "Use this context to supplement the video content. Make clear which parts "
        "come from the video and which come from general knowledge."
    )


def request_marker() -> str:
    """Per-request nonce so similar questions never resolve to a cached answer."""
    now = datetime.now(timezone.utc).isoformat(timespec="seconds")
    return (
        f"[Request {uuid.uuid4().hex[:12]} at {now}. "
        "Answer this question on its own; do not repeat an earlier answer.]"
    )


class PromptManager:
    """Resolves prompts from admin configs with consistent fallback behavior."""

    def __init__(self):
        # Fallback templates
        self.fallback_templates = {
            "chat_system": self._get_chat_system_fallback(),
            "chat_user": self._get_chat_user_fallback(),
            "summary_system": self._get_summary_system_fallback(),
            "summary_user": self._get_summary_user_fallback(),
            "quick_questions": self._get_quick_questions_fallback(),
            "plan_system": self._get_plan_system_fallback(),
            "plan_user": self._get_plan_user_fallback(),
            "web_augmentation": self._get_web_augmentation_fallback(),
        }
        self.quick_action_templates = self._get_quick_action_fallbacks()

    def get_prompt(self, prompt_name: str) -> str:
        """Built-in template by name."""
        if prompt_name not in self.fallback_templates:
            raise KeyError(f"No built-in prompt template named: {prompt_name}")
        return self.fallback_templates[prompt_name]

    def resolve_chat_prompts(
        self,
        question: str,
        title: str,
        transcript: Optional[str] = None,
        video_duration: Optional[str] = None,
        previous_messages: Optional[List[Dict[str, str]]] = None,
        web_search_info: Optional[str] = None,
        config: Optional[PromptConfig] = None,
        system_prompt: Optional[str] = None,
    ) -> ResolvedPrompt:
        """
        Build the system and user prompt for one chat turn.

        Args:
            config: Active chat config; built-in templates are used when None
            system_prompt: Replaces the system template (quick-action configs)

        Returns:
            ResolvedPrompt whose text contains no placeholders
        """
        values = {
            "context": format_context(previous_messages or []),
            "transcript": transcript or "",
            "videoDuration": video_duration or "",
            "question": question or "",
            "title": title or "",
            "webSearchInfo": format_web_search_info(web_search_info),
        }

        system_template = config.system_prompt if config else self.get_prompt("chat_system")
        user_template = config.user_prompt_template if config else self.get_prompt("chat_user")
        if system_prompt:
            system_template = system_prompt

        user = render_template(user_template, values)
        # Admin templates may leave out the addendum; it still has to reach the model
        if values["webSearchInfo"] and "${webSearchInfo}" not in user_template:
            user += values["webSearchInfo"]

        return ResolvedPrompt(
            system=render_template(system_template, values),
            user=f"{user}\n\n{request_marker()}",
        )

    def resolve_quick_action_prompt(
        self,
        action: str,
        title: str,
        config: Optional[PromptConfig] = None,
    ) -> str:
        """Question text for a quick action: admin config, built-in template, or generic."""
        if config:
            template = config.user_prompt_template
        else:
            template = self.quick_action_templates.get(
                action, f"Generate {action.lower()} for this video."
            )
        return render_template(template, {"title": title, "question": action})

    def resolve_summary_prompts(
        self,
        title: str,
        transcript: Optional[str],
        video_duration: Optional[str] = None,
        config: Optional[PromptConfig] = None,
    ) -> ResolvedPrompt:
        values = {
            "title": title,
            "transcript": transcript or "",
            "videoDuration": video_duration or "",
        }
        system_template = config.system_prompt if config else self.get_prompt("summary_system")
        user_template = config.user_prompt_template if config else self.get_prompt("summary_user")
        return ResolvedPrompt(
            system=render_template(system_template, values),
            user=render_template(user_template, values),
        )

    def resolve_quick_questions_prompt(self, title: str, transcript: Optional[str]) -> str:
        return render_template(
            self.get_prompt("quick_questions"),
            {"title": title, "transcript": transcript or ""},
        )

    def resolve_plan_prompts(
        self,
        title: str,
        transcript: Optional[str],
        summary: Optional[str],
        profile: str,
        video_duration: Optional[str] = None,
    ) -> ResolvedPrompt:
        values = {
            "title": title,
            "transcript": transcript or "",
            "summary": summary or "",
            "profile": profile,
            "videoDuration": video_duration or "",
        }
        allowed = PLACEHOLDERS + ("summary", "profile")
        return ResolvedPrompt(
            system=render_template(self.get_prompt("plan_system"), values, allowed),
            user=render_template(self.get_prompt("plan_user"), values, allowed),
        )

    def web_augmentation_prompt(self, question: str, title: str) -> str:
        return render_template(
            self.get_prompt("web_augmentation"),
            {"question": question, "title": title},
        )

    def _get_chat_system_fallback(self) -> str:
        """Fallback system template for chat turns."""
        return """You are an AI assistant helping users understand a video titled "${title}". The video is ${videoDuration} long.

RESPONSE STYLE - USE SIMPLE ENGLISH:
- Write like you're talking to a friend
- Use everyday words everyone knows
- Keep sentences short and clear
- Focus on what people can actually do

WHEN TO USE DIFFERENT FORMATS:
- Use bullet points ONLY when listing multiple items or steps
- Use paragraphs for explanations, advice, or single concepts
- Only include timestamps [MM:SS] when they're directly relevant to the question
- Never mention a timestamp later than ${videoDuration}
- For creative questions (like "generate ideas"), focus on new ideas inspired by the video content

FORMATTING RULES:
- Format tools/websites as clickable links [text](url)
- Use **bold** for emphasis, not HTML tags
- NEVER use double quotes (") inside the answer text - use single quotes (') if needed
- NEVER use curly braces {} inside the answer text

JSON RESPONSE FORMAT:
{
  "answer": "Your natural response here",
  "timestamps": ["MM:SS"]
}
Only list timestamps that you referenced in the answer."""

    def _get_chat_user_fallback(self) -> str:
        """Fallback user template for chat turns."""
        return """Previous conversation:
${context}

Transcript:
${transcript}

Question: ${question}${webSearchInfo}"""

    def _get_summary_system_fallback(self) -> str:
        """Fallback system template for video summaries."""
        return """You are an expert video analyst. Create a clear, well-structured summary of the video "${title}" (length ${videoDuration}) from its transcript. Transcript lines start with [MM:SS] timestamps; only use timestamps that appear in the transcript.

When mentioning tools, websites, or resources, format them as markdown links [text](url).

Respond with JSON in this format:
{
  "shortSummary": "2-3 sentence overview",
  "outline": [{"title": "Section title", "points": ["point", "..."]}],
  "keyTakeaways": [{"content": "insight", "timestamp": "MM:SS"}],
  "actionableSteps": [{"step": "what to do", "priority": "high|medium|low"}],
  "readingTime": "3 min",
  "insights": 5
}"""

    def _get_summary_user_fallback(self) -> str:
        """Fallback user template for video summaries."""
        return """Analyze this video transcript for "${title}":

${transcript}"""

    def _get_quick_questions_fallback(self) -> str:
        """Fallback template for suggested questions."""
        return """Suggest exactly 4 short, specific questions a viewer might ask about the video "${title}". Each question should be answerable from the transcript and under 12 words.

TRANSCRIPT:
${transcript}

Respond with JSON: {"questions": ["...", "...", "...", "..."]}"""

    def _get_plan_system_fallback(self) -> str:
        """Fallback system template for personalized plans."""
        return """You are a practical coach. Turn the lessons of the video "${title}" into a personalized action plan for the person described by the user. Prefer concrete, measurable targets over general advice.

Respond with JSON in this format:
{
  "items": [
    {
      "title": "short name",
      "description": "what to do and why it fits this person",
      "priority": 1,
      "effort": "low|medium|high",
      "impact": "low|medium|high",
      "target": "measurable target, e.g. 3 customer calls by Friday",
      "timestamp": "MM:SS where the video covers it, or empty"
    }
  ],
  "quickWins": ["something doable today", "..."]
}"""

    def _get_plan_user_fallback(self) -> str:
        """Fallback user template for personalized plans."""
        return """ABOUT ME:
${profile}

VIDEO SUMMARY:
${summary}

TRANSCRIPT:
${transcript}

Create my personalized plan. The video is ${videoDuration} long."""

    def _get_web_augmentation_fallback(self) -> str:
        """Fallback template for general-knowledge augmentation."""
        return """The user is asking about a video titled "${title}" and has this question: "${question}"

You are NOT performing a live web search. Answer from your general and background knowledge only. Focus on:
- Competitors or alternatives mentioned in the question
- Market information, pricing, or comparisons as of your knowledge
- Industry context that supplements the video content

Write factual information that can be combined with the video analysis. If you have no relevant knowledge, say "I don't have specific current information" and nothing else."""

    def _get_quick_action_fallbacks(self) -> Dict[str, str]:
        """Built-in quick-action templates keyed by label."""
        return {
            "Shorter Summary": """Give me 3 key takeaways from "${title}" in bullet points. Keep each point short and actionable. Include timestamps and links where relevant.""",

            "Detailed Analysis": """Break down "${title}" with these sections:

**Main Ideas:** Core concepts (1-2 sentences each)
**Key Insights:** Most important points with timestamps
**How to Apply:** Practical next steps
**Tools Mentioned:** Links to resources

Keep everything concise and scannable.""",

            "Action Items": """Extract clear action steps from "${title}":

**Do Now:** Immediate steps
**This Week:** Short-term actions
**Long-term:** Bigger goals
**Tools Needed:** Resources and links

Make each item specific and brief.""",

            "Key Quotes": """Best quotes from "${title}":

For each quote:
- 'Exact quote' [timestamp]
- Why it matters (1 sentence)

Focus on memorable, actionable, or inspiring statements.""",
        }


# Global prompt manager instance
prompt_manager = PromptManager()
