"""Completion client for the hosted Gemini endpoint."""

import asyncio
import logging

import google.generativeai as genai
from google.generativeai.types import HarmBlockThreshold, HarmCategory

from app.core.config import settings
from app.exceptions.ai import (
    AIConfigurationError,
    AIContentFilterError,
    AIServiceError,
    AITimeoutError,
    classify_provider_error,
    map_ai_error,
)


logger = logging.getLogger(__name__)

SAFETY_SETTINGS = {
    HarmCategory.HARM_CATEGORY_HARASSMENT: HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE,
    HarmCategory.HARM_CATEGORY_HATE_SPEECH: HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE,
    HarmCategory.HARM_CATEGORY_SEXUALLY_EXPLICIT: HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE,
    HarmCategory.HARM_CATEGORY_DANGEROUS_CONTENT: HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE,
}


class CompletionClient:
    """Sends one system/user message pair and returns the reply text.

    No retries. A missing API key is only a warning here; each call then
    fails with :class:`AIConfigurationError`.
    """

    def __init__(
        self,
        api_key: str | None = None,
        model_name: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        timeout: float | None = None,
    ):
        self.api_key = api_key if api_key is not None else settings.gemini_api_key
        self.model_name = model_name or settings.gemini_model
        self.temperature = settings.gemini_temperature if temperature is None else temperature
        self.max_tokens = max_tokens or settings.gemini_max_tokens
        self.timeout = timeout or settings.ai_request_timeout

        if self.api_key:
            genai.configure(api_key=self.api_key)
        else:
            logger.warning("Gemini API key not configured; assistant replies will fail until it is set")

    async def complete(self, system_prompt: str, user_message: str) -> str:
        """Return the model's reply to ``user_message`` under ``system_prompt``."""
        if not self.api_key:
            raise AIConfigurationError("Gemini API key not configured")

        model = genai.GenerativeModel(
            model_name=self.model_name,
            system_instruction=system_prompt,
            safety_settings=SAFETY_SETTINGS,
            generation_config=genai.types.GenerationConfig(
                candidate_count=1,
                max_output_tokens=self.max_tokens,
                temperature=self.temperature,
            ),
        )

        try:
            response = await asyncio.wait_for(
                model.generate_content_async(user_message), timeout=self.timeout
            )
        except TimeoutError:
            logger.error(f"Gemini request timed out after {self.timeout}s")
            raise AITimeoutError("AI request timed out") from None
        except AIServiceError:
            raise
        except Exception as e:
            logger.error(f"Gemini API call failed: {str(e)}")
            error_type = classify_provider_error(e)
            if error_type is None:
                raise AIServiceError(f"AI generation failed: {str(e)}") from e
            raise map_ai_error(error_type, str(e)) from e

        return self._extract_text(response)

    @staticmethod
    def _extract_text(response) -> str:
        if not response or not getattr(response, "candidates", None):
            feedback = getattr(response, "prompt_feedback", None)
            logger.error(f"AI response has no candidates - content may be blocked: {feedback}")
            raise AIContentFilterError("Content was blocked by AI safety filters")

        try:
            text = response.text
        except ValueError as e:
            # The SDK raises when the candidate carries no text parts
            logger.error(f"AI response had no text: {str(e)}")
            raise AIContentFilterError("Content was blocked by AI safety filters") from e

        if not text or not text.strip():
            raise AIServiceError("Empty response from AI service")
        return text
