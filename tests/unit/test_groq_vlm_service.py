"""
Unit tests for GroqVLMService against a mocked HTTP transport.
"""
import base64
import json

import httpx
import pytest
from sentinel.infrastructure.external.groq_vlm_service import GroqVLMService, extract_json_content


CHAT_URL = "https://vlm.test/v1/chat/completions"


def _completion(content: str) -> dict:
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


def _make_service(handler, api_key: str = "test-key") -> GroqVLMService:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return GroqVLMService(client, api_key=api_key, model="test-vision-model", chat_url=CHAT_URL)


class TestExtractJsonContent:
    """Tests for extract_json_content"""

    def test_plain_json(self):
        assert extract_json_content('{"isDrowsy": false}') == {"isDrowsy": False}

    def test_fenced_json(self):
        content = 'Here you go:\n```json\n{"isDrowsy": true}\n```'
        assert extract_json_content(content) == {"isDrowsy": True}

    def test_bare_fence(self):
        assert extract_json_content('```\n[1, 2]\n```') == [1, 2]

    def test_invalid_returns_none(self):
        assert extract_json_content("the driver looks tired") is None


class TestGroqVLMService:
    """Tests for GroqVLMService.analyze_image"""

    @pytest.mark.asyncio
    async def test_sends_image_as_data_url_in_json_mode(self):
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["url"] = str(request.url)
            captured["auth"] = request.headers["Authorization"]
            captured["body"] = json.loads(request.content)
            return httpx.Response(200, json=_completion('{"ok": true}'))

        service = _make_service(handler)
        result = await service.analyze_image(b"jpeg-bytes", prompt="Is the driver drowsy?", system_prompt="Be precise.")

        assert "error" not in result
        assert result["parsed_json"] == {"ok": True}
        assert captured["url"] == CHAT_URL
        assert captured["auth"] == "Bearer test-key"
        body = captured["body"]
        assert body["model"] == "test-vision-model"
        assert body["response_format"] == {"type": "json_object"}
        assert body["messages"][0] == {"role": "system", "content": "Be precise."}
        user_content = body["messages"][1]["content"]
        assert user_content[0] == {"type": "text", "text": "Is the driver drowsy?"}
        expected_url = "data:image/jpeg;base64," + base64.b64encode(b"jpeg-bytes").decode("utf-8")
        assert user_content[1]["image_url"]["url"] == expected_url

    @pytest.mark.asyncio
    async def test_http_error_is_reported(self):
        service = _make_service(lambda request: httpx.Response(429, text="rate limited"))
        result = await service.analyze_image(b"jpeg", prompt="p")
        assert result["error"] == "API error: 429"
        assert result["parsed_json"] is None

    @pytest.mark.asyncio
    async def test_timeout_is_reported(self):
        def handler(request):
            raise httpx.ReadTimeout("too slow", request=request)

        service = _make_service(handler)
        result = await service.analyze_image(b"jpeg", prompt="p")
        assert result["error"] == "VLM API timeout"

    @pytest.mark.asyncio
    async def test_empty_content_is_reported(self):
        service = _make_service(lambda request: httpx.Response(200, json=_completion("")))
        result = await service.analyze_image(b"jpeg", prompt="p")
        assert result["error"] == "Empty response from VLM"

    @pytest.mark.asyncio
    async def test_non_object_body_is_reported(self):
        service = _make_service(lambda request: httpx.Response(200, json=["not", "an", "object"]))
        result = await service.analyze_image(b"jpeg", prompt="p")
        assert result["error"] == "Unexpected response from VLM"
        assert result["parsed_json"] is None

    @pytest.mark.asyncio
    async def test_malformed_choices_are_reported(self):
        service = _make_service(lambda request: httpx.Response(200, json={"choices": ["x"]}))
        result = await service.analyze_image(b"jpeg", prompt="p")
        assert result["error"] == "Empty response from VLM"

    @pytest.mark.asyncio
    async def test_missing_api_key_skips_request(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, json=_completion("{}"))

        service = _make_service(handler, api_key="")
        result = await service.analyze_image(b"jpeg", prompt="p")

        assert result["error"] == "VLM API key not configured"
        assert calls == []
