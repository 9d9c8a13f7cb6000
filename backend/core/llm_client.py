"""
OpenRouter (OpenAI-compatible) chat completion client.
"""
import logging
import httpx
from typing import Optional, List, Dict
from core.config import (
    OPENROUTER_API_KEY,
    OPENROUTER_BASE_URL,
    OPENROUTER_SITE_URL,
    OPENROUTER_APP_NAME,
    CHAT_MODEL,
    LLM_TEMPERATURE,
    LLM_MAX_TOKENS,
    LLM_TIMEOUT_SECONDS,
)
from core.exceptions import GenerationError, GenerationTimeoutError

logger = logging.getLogger(__name__)

# Statuses the provider uses when it is overloaded or too slow
BUSY_STATUS_CODES = {408, 429, 502, 503, 504}


class OpenRouterClient:
    """Client for OpenAI-compatible chat completion endpoints."""

    def __init__(
        self,
        api_key: Optional[str] = OPENROUTER_API_KEY,
        base_url: str = OPENROUTER_BASE_URL,
        timeout: float = LLM_TIMEOUT_SECONDS,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.client = httpx.Client(timeout=timeout)

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            # Attribution headers used by OpenRouter rankings
            "HTTP-Referer": OPENROUTER_SITE_URL,
            "X-Title": OPENROUTER_APP_NAME,
        }

    def chat_completion(
        self,
        messages: List[Dict[str, str]],
        model: str = CHAT_MODEL,
        temperature: float = LLM_TEMPERATURE,
        max_tokens: int = LLM_MAX_TOKENS,
        json_mode: bool = False,
        timeout: Optional[float] = None,
    ) -> str:
        """
        Send a chat completion request and return the first choice's text.

        Raises:
            GenerationTimeoutError: the request exceeded the timeout or the provider is busy
            GenerationError: any other provider or transport failure
        """
        if not self.api_key:
            raise GenerationError("OpenRouter API key is not configured")

        url = f"{self.base_url}/chat/completions"
        payload = {
            "model": model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if json_mode:
            payload["response_format"] = {"type": "json_object"}

        try:
            response = self.client.post(
                url,
                json=payload,
                headers=self._headers(),
                timeout=timeout or self.timeout,
            )
            response.raise_for_status()
            result = response.json()
        except httpx.TimeoutException as e:
            logger.warning(f"LLM request to {model} timed out: {e}")
            raise GenerationTimeoutError(
                "The AI is currently busy. Please try again in a few moments."
            ) from e
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.error(f"LLM provider returned {status} for {model}")
            if status in BUSY_STATUS_CODES:
                raise GenerationTimeoutError(
                    "The AI is currently busy. Please try again in a few moments."
                ) from e
            raise GenerationError(f"LLM provider error: HTTP {status}") from e
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"LLM request to {model} failed: {e}")
            raise GenerationError(f"LLM provider error: {e}") from e

        # OpenRouter can report upstream failures inside a 200 body
        error = result.get("error")
        if error:
            code = error.get("code") if isinstance(error, dict) else None
            if code in BUSY_STATUS_CODES:
                raise GenerationTimeoutError(
                    "The AI is currently busy. Please try again in a few moments."
                )
            raise GenerationError(f"LLM provider error: {error}")

        choices = result.get("choices") or []
        if not choices:
            return ""
        return (choices[0].get("message") or {}).get("content") or ""


# Global LLM client instance
llm = OpenRouterClient()
