"""Automatic clip tags.

Asks the configured model for up to three category tags and falls back to a
fixed keyword map when the model is unavailable or its answer can't be parsed.
Generated tags always satisfy the clip tag invariant.
"""

import json
import logging
import re

from clipbook.config import get_settings
from clipbook.exceptions import UpstreamModelError
from clipbook.services.model_providers import ModelProvider, get_model_provider
from clipbook.utils.tags import MAX_TAGS, normalize_tags
from clipbook.utils.text import truncate

logger = logging.getLogger(__name__)

DEFAULT_TAG = "uncategorized"

# keyword found in title/description -> tag
KEYWORD_TAGS: dict[str, str] = {
    "tutorial": "tutorial",
    "interview": "interview",
    "music": "music",
    "sports": "sports",
    "lecture": "lecture",
    "python": "python",
    "react": "web-dev",
    "gaming": "gaming",
    "nature": "nature",
}

TAG_PROMPT = """You are a concise tag generator. Given the video title and description, return a JSON object with a single field "tags" containing up to 3 short, single-word or short-phrase tags suitable as categories. Do not include explanation.

Title: {title}

Description: {description}

Return example:
{{"tags": ["python", "data-science", "pandas"]}}"""

_JSON_BLOCK = re.compile(r"\{.*\}", re.DOTALL)


class TagParseError(ValueError):
    pass


def fallback_tags(title: str | None, description: str | None) -> list[str]:
    text = f"{title or ''} {description or ''}".lower()
    tags = [tag for keyword, tag in KEYWORD_TAGS.items() if keyword in text]
    return normalize_tags(tags) or [DEFAULT_TAG]


def parse_model_tags(text: str) -> list[str]:
    """Tags from a model answer: first ``{...}`` block, ``tags`` as list or comma string."""
    match = _JSON_BLOCK.search(text or "")
    if not match:
        raise TagParseError("no JSON object in model reply")
    try:
        parsed = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise TagParseError(f"invalid JSON in model reply: {e}") from e

    raw = parsed.get("tags") if isinstance(parsed, dict) else None
    if isinstance(raw, str):
        raw = raw.split(",")
    if not isinstance(raw, list):
        raise TagParseError("model reply has no tags field")
    tags = normalize_tags([str(t) for t in raw])
    if not tags:
        raise TagParseError("model reply has an empty tags list")
    return tags


class TaggingService:
    def __init__(self, provider: ModelProvider | None = None, enabled: bool = True) -> None:
        self.provider = provider
        self.enabled = enabled

    async def generate_tags(self, title: str | None, description: str | None) -> list[str]:
        if self.enabled and self.provider is not None and self.provider.api_key:
            prompt = TAG_PROMPT.format(
                title=truncate(title, 800), description=truncate(description, 1800)
            )
            try:
                reply = await self.provider.generate(prompt)
                return parse_model_tags(reply.text)[:MAX_TAGS]
            except (UpstreamModelError, TagParseError) as e:
                logger.warning(f"AI tagging failed, using keyword fallback: {e}")
        return fallback_tags(title, description)


def get_tagging_service() -> TaggingService:
    settings = get_settings()
    return TaggingService(
        provider=get_model_provider(settings),
        enabled=settings.auto_tagging_enabled,
    )
