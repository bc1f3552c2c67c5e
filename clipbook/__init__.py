"""ClipBook - personal video bookmarking API with a library-aware chat assistant."""

__version__ = "0.1.0"
