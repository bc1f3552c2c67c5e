import re
from collections import Counter
from datetime import UTC, datetime

ELLIPSIS = "…"

STOPWORDS = frozenset("the,is,in,and,to,of,for,with,on,by,an,be".split(","))


def truncate(text: str | None, limit: int) -> str:
    """Cut ``text`` to at most ``limit`` characters, ending with an ellipsis when cut."""
    if not text:
        return ""
    if len(text) <= limit:
        return text
    return text[: max(limit - 1, 0)].rstrip() + ELLIPSIS


def format_timestamp(ms: int | None) -> str:
    if not ms:
        return "unknown"
    try:
        return datetime.fromtimestamp(ms / 1000, tz=UTC).strftime("%Y-%m-%d %H:%M")
    except (OverflowError, OSError, ValueError):
        return "unknown"


def topic_words(titles: list[str], count: int = 3, min_length: int = 4) -> list[str]:
    """Most frequent words (length >= min_length) across titles, ties in first-seen order."""
    words = re.split(r"\W+", " ".join(titles).lower())
    freq = Counter(w for w in words if len(w) >= min_length)
    return [w for w, _ in freq.most_common(count)]


def title_keywords(title: str | None, limit: int = 6) -> list[str]:
    """Candidate keywords from a title: alphanumeric words over 3 chars, no stopwords."""
    if not title:
        return []
    cleaned = re.sub(r"[^a-z0-9\s]", " ", title.lower())
    words = [w for w in cleaned.split() if len(w) > 3 and w not in STOPWORDS]
    return words[:limit]
