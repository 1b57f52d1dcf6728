#!/usr/bin/env python3
"""
icons.py - Centralized icon/emoji definitions for CourseGraph console output

Usage:
    from coursegraph.icons import icons
    print(f"{icons.SUCCESS} Build completed!")

Or import individual icons:
    from coursegraph.icons import SUCCESS, WARNING, ERROR

All unicode characters are defined here once. Never edit unicode
characters in other files - import from this module instead.
"""

import logging
from dataclasses import dataclass


@dataclass(frozen=True)
class Icons:
    """
    Centralized icon definitions.

    Categories:
    - Status: SUCCESS, ERROR, WARNING, INFO, DEBUG
    - Content: ARTICLE, EXERCISE, QUIZ, COURSE
    - Progress: WATCH, BUILD
    """

    # Status
    SUCCESS: str = "✅"
    ERROR: str = "❌"
    WARNING: str = "⚠️"
    INFO: str = "ℹ️"
    DEBUG: str = "🔍"

    # Content types
    ARTICLE: str = "📄"
    EXERCISE: str = "📝"
    QUIZ: str = "❓"
    COURSE: str = "📚"

    # Progress
    WATCH: str = "👀"
    BUILD: str = "🔄"


icons = Icons()

SUCCESS = icons.SUCCESS
ERROR = icons.ERROR
WARNING = icons.WARNING
INFO = icons.INFO

KIND_ICONS = {
    "article": icons.ARTICLE,
    "exercise": icons.EXERCISE,
    "quiz": icons.QUIZ,
    "course": icons.COURSE,
}

LEVEL_ICONS = {
    logging.DEBUG: icons.DEBUG,
    logging.INFO: icons.INFO,
    logging.WARNING: icons.WARNING,
    logging.ERROR: icons.ERROR,
    logging.CRITICAL: icons.ERROR,
}


def kind_icon(kind: str) -> str:
    """Icon for a content kind name, blank if unknown."""
    return KIND_ICONS.get(kind, "")
