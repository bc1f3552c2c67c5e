"""Tests for text helpers, settings parsing and error bodies."""

import pytest

from clipbook.config import Settings
from clipbook.exceptions import ClipNotFoundError, TagLimitError, UpstreamModelError
from clipbook.utils.text import format_timestamp, title_keywords, topic_words, truncate


class TestText:
    @pytest.mark.parametrize(
        "text,limit,expected",
        [
            ("short", 10, "short"),
            ("exactly10!", 10, "exactly10!"),
            ("abcdefghijk", 5, "abcd…"),
            (None, 5, ""),
            ("", 5, ""),
        ],
    )
    def test_truncate(self, text, limit, expected):
        assert truncate(text, limit) == expected

    def test_format_timestamp(self):
        assert format_timestamp(0) == "unknown"
        assert format_timestamp(1_700_000_000_000) == "2023-11-14 22:13"

    def test_topic_words_ties_keep_first_seen_order(self):
        assert topic_words(["beta alpha", "gamma alpha", "delta"]) == ["alpha", "beta", "gamma"]

    def test_title_keywords_skip_short_and_stopwords(self):
        assert title_keywords("The Art of Python: Advanced Tips!") == ["python", "advanced", "tips"]


class TestSettings:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("http://a.test,http://b.test", ["http://a.test", "http://b.test"]),
            ("http://a.test|http://b.test", ["http://a.test", "http://b.test"]),
            ('["http://a.test"]', ["http://a.test"]),
        ],
    )
    def test_cors_origins(self, raw, expected):
        assert Settings(cors_origins_raw=raw).cors_origins == expected

    def test_defaults(self):
        settings = Settings()
        assert settings.rate_limit_max_requests == 20
        assert settings.rate_limit_window_ms == 60_000
        assert settings.context_max_chars == 18_000


class TestErrorInfo:
    def test_not_found(self):
        info = ClipNotFoundError("c1").to_error_info()
        assert info.error == "Clip not found: c1"
        assert info.code == "CLIP_NOT_FOUND"
        assert info.retryable is False

    def test_retryable_codes(self):
        assert UpstreamModelError().to_error_info().retryable is True

    def test_status_codes(self):
        assert TagLimitError().status_code == 400
        assert UpstreamModelError().status_code == 502
