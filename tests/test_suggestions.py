"""Metadata suggestion client tests."""

import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from snapvault.services import suggestions
from snapvault.services.suggestions import PROMPT, SuggestionError, parse_suggestion, suggest_metadata

VALID = {
    "title": "Misty Mountain",
    "description": "Fog rolling over a ridge",
    "keywords": ["fog", "mountain"],
    "suggestedSlug": "Misty Mountain",
}


def fake_client(text=None, error=None):
    generate = AsyncMock(return_value=SimpleNamespace(text=text), side_effect=error)
    client = MagicMock()
    client.aio.models.generate_content = generate
    return client


class TestParseSuggestion:
    def test_valid_payload(self):
        suggestion = parse_suggestion(json.dumps(VALID))
        assert suggestion.title == "Misty Mountain"
        assert suggestion.suggested_slug == "Misty Mountain"

    @pytest.mark.parametrize("text", [None, "", "   ", "not json"])
    def test_empty_or_invalid_text(self, text):
        with pytest.raises(SuggestionError):
            parse_suggestion(text)

    def test_missing_field(self):
        payload = dict(VALID)
        del payload["suggestedSlug"]
        with pytest.raises(SuggestionError):
            parse_suggestion(json.dumps(payload))

    def test_wrong_type(self):
        with pytest.raises(SuggestionError):
            parse_suggestion(json.dumps(dict(VALID, keywords="fog, mountain")))


class TestSuggestMetadata:
    @pytest.mark.asyncio
    async def test_sends_prompt_and_image(self):
        client = fake_client(text=json.dumps(VALID))
        with patch.object(suggestions, "get_client", return_value=client):
            suggestion = await suggest_metadata(b"jpeg-bytes", "image/png")

        assert suggestion.keywords == ["fog", "mountain"]
        kwargs = client.aio.models.generate_content.await_args.kwargs
        assert kwargs["contents"][0] == PROMPT
        assert kwargs["config"].response_mime_type == "application/json"

    @pytest.mark.asyncio
    async def test_network_error_becomes_suggestion_error(self):
        client = fake_client(error=ConnectionError("offline"))
        with patch.object(suggestions, "get_client", return_value=client):
            with pytest.raises(SuggestionError):
                await suggest_metadata(b"jpeg-bytes")

    def test_missing_api_key(self):
        with patch.object(suggestions, "_client", None), \
                patch.object(suggestions.settings, "gemini_api_key", None):
            with pytest.raises(SuggestionError):
                suggestions.get_client()
