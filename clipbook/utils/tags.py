"""Tag normalization shared by models, services and the tagger."""

from collections.abc import Iterable

MAX_TAGS = 3


def normalize_tag(tag: object) -> str:
    """Trim and lowercase a single tag. None becomes an empty string."""
    if tag is None:
        return ""
    return str(tag).strip().lower()


def normalize_tags(tags: Iterable[object] | None, limit: int = MAX_TAGS) -> list[str]:
    """Normalize, drop empties, dedupe (first occurrence wins) and cap at ``limit``.

    Idempotent: normalizing an already normalized list returns it unchanged.
    """
    result: list[str] = []
    for raw in tags or []:
        tag = normalize_tag(raw)
        if tag and tag not in result:
            result.append(tag)
        if len(result) >= limit:
            break
    return result
