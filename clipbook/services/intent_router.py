"""Rule-based chat intents.

Pure functions over already loaded clips: no I/O, no model calls. Intent
detection is an ordered keyword scan; the first matching intent wins.
"""

from enum import Enum

from clipbook.models.clip import Clip
from clipbook.utils.text import title_keywords, topic_words, truncate


class Intent(str, Enum):
    SUMMARIZE = "summarize"
    RECOMMEND = "recommend"
    QUIZ = "quiz"
    PLAN = "plan"
    SEARCH = "search"


# Checked in order
INTENT_KEYWORDS: list[tuple[Intent, tuple[str, ...]]] = [
    (Intent.SUMMARIZE, ("summar", "overview", "summary")),
    (Intent.RECOMMEND, ("recommend", "next", "what next", "suggest")),
    (Intent.QUIZ, ("quiz", "question", "test me")),
    (Intent.PLAN, ("plan", "study plan")),
]

SUMMARY_CLIPS = 5
SUMMARY_DESCRIPTION_CHARS = 120
RECOMMEND_DESCRIPTION_CHARS = 300
QUIZ_QUESTIONS = 5
QUIZ_TITLE_CHARS = 60
PLAN_DAYS = 3
PLAN_CLIPS_PER_DAY = 2
SEARCH_RESULTS = 5
SEARCH_DESCRIPTION_CHARS = 160

NO_CLIPS_SUMMARY = "No clips found in this playlist."
NO_CLIPS_RECOMMEND = "No clips found to recommend."
NO_CLIPS_QUIZ = "No clips available for quiz."
NO_CLIPS_PLAN = "No clips available for a study plan."
HELP_REPLY = (
    "I couldn't find direct matches. Try asking:\n"
    '- "summarize playlist"\n'
    '- "recommend next"\n'
    '- "quiz me"\n'
    '- "study plan"\n'
    "Or include keywords from the video title or description."
)
PLAN_TIP = "Tip: Take notes and try a short recap after each video."


def detect_intent(message: str) -> Intent:
    text = (message or "").lower()
    for intent, keywords in INTENT_KEYWORDS:
        if any(k in text for k in keywords):
            return intent
    return Intent.SEARCH


def summarize(clips: list[Clip]) -> str:
    if not clips:
        return NO_CLIPS_SUMMARY
    top = clips[:SUMMARY_CLIPS]
    bullets = [
        f"{i}. {clip.title} - {truncate(clip.description, SUMMARY_DESCRIPTION_CHARS)}"
        for i, clip in enumerate(top, start=1)
    ]
    topics = topic_words([c.custom_title or "" for c in top])
    return (
        f"This playlist covers: {', '.join(topics) if topics else 'various topics'}. "
        "Key videos:\n" + "\n".join(bullets)
    )


def pick_recommendation(clips: list[Clip]) -> Clip | None:
    """Choose the clip to watch next.

    Shortest unwatched clip when any duration is known, otherwise the first
    unwatched clip, otherwise the most recent one.
    """
    if not clips:
        return None
    candidate = next((c for c in clips if not c.watched), clips[0])
    timed = [c for c in clips if c.duration is not None and not c.watched]
    if timed:
        # min() keeps the first of equal durations
        candidate = min(timed, key=lambda c: c.duration)
    return candidate


def recommend(clips: list[Clip]) -> str:
    clip = pick_recommendation(clips)
    if clip is None:
        return NO_CLIPS_RECOMMEND
    description = truncate(clip.description, RECOMMEND_DESCRIPTION_CHARS) or "No description"
    return f"Recommended: {clip.title}\n\n{description}\n\nLink: {clip.link or 'N/A'}"


def quiz(clips: list[Clip]) -> str:
    if not clips:
        return NO_CLIPS_QUIZ
    questions = []
    for i, clip in enumerate(clips[:QUIZ_QUESTIONS], start=1):
        question = f'{i}. What is the main topic of "{truncate(clip.title, QUIZ_TITLE_CHARS)}"?'
        keywords = title_keywords(clip.custom_title)
        if keywords:
            question += f" (hint: {keywords[0]})"
        questions.append(question)
    return "Quiz:\n" + "\n".join(questions)


def study_plan(clips: list[Clip]) -> str:
    if not clips:
        return NO_CLIPS_PLAN
    items = clips[: PLAN_DAYS * PLAN_CLIPS_PER_DAY]
    lines = [f"Study plan for this playlist ({len(items)} clips):"]
    for day in range(PLAN_DAYS):
        chunk = items[day * PLAN_CLIPS_PER_DAY : (day + 1) * PLAN_CLIPS_PER_DAY]
        watch = ", ".join(f"{i}. {c.title}" for i, c in enumerate(chunk, start=1))
        lines.append(f"Day {day + 1}: Watch {watch or 'No clips'}")
    lines.append(PLAN_TIP)
    return "\n".join(lines)


def score_text(query: str, text: str) -> int:
    """Number of query words appearing as substrings of ``text`` (case-insensitive)."""
    if not query or not text:
        return 0
    haystack = text.lower()
    return sum(1 for word in query.lower().split() if word in haystack)


def search_clips(clips: list[Clip], query: str, limit: int = SEARCH_RESULTS) -> list[Clip]:
    scored = []
    for clip in clips:
        text = " ".join([clip.custom_title or "", clip.description or "", " ".join(clip.tags)])
        score = score_text(query, text)
        if score > 0:
            scored.append((score, clip))
    # sorted() is stable: equal scores keep recency order
    scored.sort(key=lambda item: item[0], reverse=True)
    return [clip for _, clip in scored[:limit]]


def search(clips: list[Clip], query: str) -> str:
    matches = search_clips(clips, query)
    if not matches:
        return HELP_REPLY
    lines = [
        f"{i}. {clip.title} - {truncate(clip.description, SEARCH_DESCRIPTION_CHARS)}\n"
        f"Link: {clip.link or 'N/A'}"
        for i, clip in enumerate(matches, start=1)
    ]
    return f"Found {len(matches)} relevant clips:\n\n" + "\n\n".join(lines)


def respond_with_rules(message: str, clips: list[Clip]) -> str:
    intent = detect_intent(message)
    if intent is Intent.SUMMARIZE:
        return summarize(clips)
    if intent is Intent.RECOMMEND:
        return recommend(clips)
    if intent is Intent.QUIZ:
        return quiz(clips)
    if intent is Intent.PLAN:
        return study_plan(clips)
    return search(clips, message)
