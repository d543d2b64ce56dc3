"""
Unit tests for the Gemini client wrapper.
"""

from unittest.mock import Mock, PropertyMock, patch

import pytest
from google.api_core import exceptions as google_exceptions

from gemini_pr_reviewer.errors import ModelAPIError
from gemini_pr_reviewer.llm.client import GeminiClient
from gemini_pr_reviewer.review.retry import is_retryable_error


@pytest.fixture
def genai():
    with patch("gemini_pr_reviewer.llm.client.genai") as mock_genai:
        yield mock_genai


class TestGeminiClient:
    """Unit tests for GeminiClient."""

    def test_requires_api_key(self, genai):
        with pytest.raises(ValueError):
            GeminiClient("")

    def test_generate_returns_text(self, genai):
        genai.GenerativeModel.return_value.generate_content.return_value = Mock(text='{"reviews": []}')

        client = GeminiClient("key", model_name="gemini-2.5-pro")

        assert client.generate("prompt") == '{"reviews": []}'
        genai.configure.assert_called_once_with(api_key="key")
        genai.GenerativeModel.assert_called_once_with("gemini-2.5-pro")

    def test_blocked_response_is_empty(self, genai):
        response = Mock()
        type(response).text = PropertyMock(side_effect=ValueError("blocked"))
        genai.GenerativeModel.return_value.generate_content.return_value = response

        assert GeminiClient("key").generate("prompt") == ""

    def test_api_error_carries_status(self, genai):
        genai.GenerativeModel.return_value.generate_content.side_effect = (
            google_exceptions.ServiceUnavailable("overloaded")
        )

        with pytest.raises(ModelAPIError) as exc_info:
            GeminiClient("key").generate("prompt")

        assert exc_info.value.status_code == 503
        assert is_retryable_error(exc_info.value)

    def test_client_error_not_retryable(self, genai):
        genai.GenerativeModel.return_value.generate_content.side_effect = (
            google_exceptions.InvalidArgument("bad prompt")
        )

        with pytest.raises(ModelAPIError) as exc_info:
            GeminiClient("key").generate("prompt")

        assert exc_info.value.status_code == 400
        assert not is_retryable_error(exc_info.value)
