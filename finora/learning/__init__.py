"""Learning hub content."""

from finora.learning.curriculum import LESSONS, get_lesson

__all__ = ["LESSONS", "get_lesson"]
