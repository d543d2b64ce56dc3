"""
Gemini Client

Text-in/text-out wrapper around the Gemini generative model.
"""

import logging
from typing import Optional

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions

from ..errors import ModelAPIError


logger = logging.getLogger(__name__)


class GeminiClient:
    """
    Sends one prompt per call and returns the raw response text.

    API errors are raised as ModelAPIError carrying the HTTP status so the
    retry policy can classify them.
    """

    def __init__(self, api_key: str, model_name: str = "gemini-2.5-flash", temperature: float = 0.2):
        """
        Initialize Gemini client.

        Args:
            api_key: Gemini API key
            model_name: Model to use
            temperature: Sampling temperature
        """
        if not api_key:
            raise ValueError("Gemini API key is required")
        genai.configure(api_key=api_key)
        self.model_name = model_name
        self.model = genai.GenerativeModel(model_name)
        self.generation_config = genai.types.GenerationConfig(
            temperature=temperature,
            response_mime_type="application/json",
        )
        logger.info(f"Using Gemini model: {model_name}")

    def generate(self, prompt: str) -> str:
        """Generate a response for one prompt."""
        try:
            response = self.model.generate_content(prompt, generation_config=self.generation_config)
        except google_exceptions.GoogleAPICallError as e:
            raise ModelAPIError(f"Gemini API error: {e.message}", status_code=e.code) from e

        return self._response_text(response) or ""

    @staticmethod
    def _response_text(response) -> Optional[str]:
        # .text raises when the candidate was blocked or is empty
        try:
            return response.text
        except ValueError as e:
            logger.warning(f"Gemini returned no text: {e}")
            return None
