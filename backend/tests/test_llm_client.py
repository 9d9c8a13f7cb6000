"""
Unit tests for the OpenRouter client error mapping.
"""
import json

import httpx
import pytest

from core.exceptions import GenerationError, GenerationTimeoutError
from core.llm_client import OpenRouterClient


def client_with(handler):
    client = OpenRouterClient(api_key="test-key", base_url="https://llm.test/api/v1")
    client.client = httpx.Client(transport=httpx.MockTransport(handler))
    return client


def completion(content):
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


class TestChatCompletion:

    def test_returns_first_choice(self):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, json=completion('{"answer": "hi"}'))

        content = client_with(handler).chat_completion(
            [{"role": "user", "content": "hello"}], model="test/model", json_mode=True
        )

        assert content == '{"answer": "hi"}'
        body = json.loads(requests[0].content)
        assert body["model"] == "test/model"
        assert body["response_format"] == {"type": "json_object"}
        assert requests[0].headers["Authorization"] == "Bearer test-key"
        assert str(requests[0].url) == "https://llm.test/api/v1/chat/completions"

    def test_timeout_is_busy(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(GenerationTimeoutError) as exc_info:
            client_with(handler).chat_completion([{"role": "user", "content": "hello"}])

        assert "try again" in exc_info.value.message
        assert exc_info.value.status_code == 503

    @pytest.mark.parametrize("status", [408, 429, 503])
    def test_busy_statuses(self, status):
        with pytest.raises(GenerationTimeoutError):
            client_with(lambda r: httpx.Response(status)).chat_completion([{"role": "user", "content": "x"}])

    def test_other_status_is_generation_error(self):
        with pytest.raises(GenerationError) as exc_info:
            client_with(lambda r: httpx.Response(401)).chat_completion([{"role": "user", "content": "x"}])

        assert not isinstance(exc_info.value, GenerationTimeoutError)

    def test_error_in_body(self):
        body = {"error": {"code": 502, "message": "upstream overloaded"}}
        with pytest.raises(GenerationTimeoutError):
            client_with(lambda r: httpx.Response(200, json=body)).chat_completion([{"role": "user", "content": "x"}])

    def test_missing_api_key(self):
        with pytest.raises(GenerationError):
            OpenRouterClient(api_key=None).chat_completion([{"role": "user", "content": "x"}])

    def test_no_choices(self):
        assert client_with(lambda r: httpx.Response(200, json={"choices": []})).chat_completion(
            [{"role": "user", "content": "x"}]
        ) == ""
