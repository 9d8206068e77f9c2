import logging
from google import genai
from google.genai import types
from pydantic import ValidationError
from snapvault.config import get_settings
from snapvault.models import MetadataSuggestion

logger = logging.getLogger(__name__)
settings = get_settings()

PROMPT = (
    "Analyze this image and provide a professional title, a descriptive caption, "
    "and 10 relevant SEO keywords. Return as JSON."
)

RESPONSE_SCHEMA = types.Schema(
    type=types.Type.OBJECT,
    properties={
        "title": types.Schema(type=types.Type.STRING),
        "description": types.Schema(type=types.Type.STRING),
        "keywords": types.Schema(
            type=types.Type.ARRAY,
            items=types.Schema(type=types.Type.STRING),
        ),
        "suggestedSlug": types.Schema(type=types.Type.STRING),
    },
    required=["title", "description", "keywords", "suggestedSlug"],
)

class SuggestionError(Exception):
    """The model call failed or its reply did not match the schema."""

_client = None

def get_client() -> genai.Client:
    global _client
    if _client is None:
        if not settings.gemini_api_key:
            raise SuggestionError("GEMINI_API_KEY is not configured")
        _client = genai.Client(api_key=settings.gemini_api_key)
    return _client

def parse_suggestion(text) -> MetadataSuggestion:
    if not isinstance(text, str) or not text.strip():
        raise SuggestionError("Gemini returned an invalid or empty response")
    try:
        return MetadataSuggestion.model_validate_json(text)
    except ValidationError as e:
        raise SuggestionError(f"Gemini response did not match the schema: {e}") from e

async def suggest_metadata(image_bytes: bytes, mime_type: str = "image/jpeg") -> MetadataSuggestion:
    """Ask Gemini for a title, caption, keywords and slug. Not retried."""
    client = get_client()
    try:
        response = await client.aio.models.generate_content(
            model=settings.gemini_model,
            contents=[
                PROMPT,
                types.Part.from_bytes(data=image_bytes, mime_type=mime_type),
            ],
            config=types.GenerateContentConfig(
                response_mime_type="application/json",
                response_schema=RESPONSE_SCHEMA,
            ),
        )
    except Exception as e:
        raise SuggestionError(f"Gemini request failed: {e}") from e

    suggestion = parse_suggestion(response.text)
    logger.info(f"Gemini suggested '{suggestion.title}' with {len(suggestion.keywords)} keywords")
    return suggestion
