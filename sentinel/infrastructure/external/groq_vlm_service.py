"""Groq Vision Language Model (VLM) service for image analysis."""
import base64
import json
import logging
from typing import Dict, Any, Optional

import httpx

from ...core.config import get_settings
from ...domain.constants.monitoring_constants import IMAGE_MIME_TYPE

logger = logging.getLogger(__name__)


def extract_json_content(content: str) -> Optional[Any]:
    """
    Parse JSON from a VLM reply.

    Models sometimes wrap JSON in markdown code fences even in JSON mode,
    so strip ```json ... ``` or ``` ... ``` before parsing.

    Returns:
        Parsed JSON value, or None if the content is not valid JSON
    """
    json_content = content
    if "```json" in json_content:
        json_start = json_content.find("```json") + 7
        json_end = json_content.find("```", json_start)
        json_content = json_content[json_start:json_end].strip()
    elif "```" in json_content:
        json_start = json_content.find("```") + 3
        json_end = json_content.find("```", json_start)
        json_content = json_content[json_start:json_end].strip()

    try:
        return json.loads(json_content)
    except json.JSONDecodeError:
        return None


class GroqVLMService:
    """
    Async client for Groq's OpenAI-compatible chat completions API with vision support.

    This service handles:
    - Encoding compressed stills as base64 data URLs
    - Calling the chat completions endpoint (optionally in JSON mode)
    - Parsing JSON responses from the VLM

    Errors never raise: they are reported through the "error" key of the
    result so callers decide how to degrade.
    """

    DEFAULT_VLM_MODEL = "meta-llama/llama-4-scout-17b-16e-instruct"
    GROQ_CHAT_URL = "https://api.groq.com/openai/v1/chat/completions"

    # Timeout for API calls (seconds)
    API_TIMEOUT = 30.0

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        chat_url: Optional[str] = None,
    ):
        """
        Initialize Groq VLM Service.

        Args:
            http_client: Shared async HTTP client (connection pooling)
            api_key: Overrides GROQ_API_KEY from settings
            model: Overrides VLM_MODEL from settings
            chat_url: Overrides GROQ_CHAT_URL from settings
        """
        settings = get_settings()
        self.http_client = http_client
        self.api_key = api_key if api_key is not None else settings.groq_api_key
        self.model = model or getattr(settings, "vlm_model", self.DEFAULT_VLM_MODEL)
        self.chat_url = chat_url or getattr(settings, "groq_chat_url", self.GROQ_CHAT_URL)

        if not self.api_key:
            logger.warning("GROQ_API_KEY not found in environment variables")

    @staticmethod
    def _bytes_to_data_url(image: bytes, mime_type: str) -> str:
        """
        Convert compressed image bytes to a base64 data URL.

        Args:
            image: Encoded image bytes (e.g. JPEG)
            mime_type: MIME type of the encoded image

        Returns:
            Data URL string ("data:<mime>;base64,<payload>")
        """
        base64_str = base64.b64encode(image).decode("utf-8")
        return f"data:{mime_type};base64,{base64_str}"

    @staticmethod
    def _error_result(message: str, raw_response: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return {
            "content": "",
            "parsed_json": None,
            "raw_response": raw_response or {},
            "error": message,
        }

    async def analyze_image(
        self,
        image: bytes,
        prompt: str,
        system_prompt: Optional[str] = None,
        mime_type: str = IMAGE_MIME_TYPE,
        json_mode: bool = True,
        temperature: float = 0.1,
        max_tokens: int = 500,
    ) -> Dict[str, Any]:
        """
        Analyze one compressed still with a custom prompt.

        Args:
            image: Encoded image bytes
            prompt: User prompt sent alongside the image
            system_prompt: Optional system instruction
            mime_type: MIME type of the image
            json_mode: Ask the API for a JSON object response
            temperature: Sampling temperature, lower = more deterministic
            max_tokens: Maximum tokens in response

        Returns:
            Dictionary with:
            {
                "content": str,  # Raw text response from VLM
                "parsed_json": Any | None,  # Parsed JSON if response is valid JSON
                "raw_response": dict,  # Full API response
                "error": str  # Only present on failure
            }
        """
        if not self.api_key:
            logger.error("GROQ_API_KEY not configured")
            return self._error_result("VLM API key not configured")

        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({
            "role": "user",
            "content": [
                {"type": "text", "text": prompt},
                {"type": "image_url", "image_url": {"url": self._bytes_to_data_url(image, mime_type)}},
            ],
        })

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if json_mode:
            payload["response_format"] = {"type": "json_object"}

        logger.debug(f"Calling Groq VLM API with model: {self.model}")

        try:
            response = await self.http_client.post(
                self.chat_url,
                headers=headers,
                json=payload,
                timeout=self.API_TIMEOUT,
            )
            response.raise_for_status()
            result = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"HTTP error from Groq VLM API: {e.response.status_code} - {e.response.text}")
            return self._error_result(f"API error: {e.response.status_code}")
        except httpx.TimeoutException:
            logger.error("Timeout while calling Groq VLM API")
            return self._error_result("VLM API timeout")
        except Exception as e:
            logger.error(f"Unexpected error in Groq VLM: {e}", exc_info=True)
            return self._error_result(f"Error: {str(e)}")

        if not isinstance(result, dict):
            logger.error(f"Unexpected Groq VLM response type: {type(result).__name__}")
            return self._error_result("Unexpected response from VLM")

        choices = result.get("choices")
        first_choice = choices[0] if isinstance(choices, list) and choices else {}
        message = first_choice.get("message") if isinstance(first_choice, dict) else None
        content = message.get("content") if isinstance(message, dict) else None
        if not isinstance(content, str) or not content:
            logger.warning("Empty response from Groq VLM API")
            return self._error_result("Empty response from VLM", raw_response=result)

        return {
            "content": content,
            "parsed_json": extract_json_content(content),
            "raw_response": result,
        }
