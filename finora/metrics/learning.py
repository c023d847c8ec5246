"""
Quiz Scoring

Scoring a submitted quiz and folding a pass into a user's progress.
"""

import math
from typing import Optional, Sequence

from finora.models.entities import LearningProgress
from finora.models.learning import QuizQuestion


def count_correct(
    responses: Sequence[Optional[int]],
    questions: Sequence[QuizQuestion],
) -> int:
    """
    Number of questions answered correctly.
    
    responses[i] is the chosen option index for questions[i]; None or a
    missing entry counts as unanswered.
    """
    return sum(
        1
        for index, question in enumerate(questions)
        if index < len(responses) and responses[index] == question.correct_answer
    )


def quiz_score(
    responses: Sequence[Optional[int]],
    questions: Sequence[QuizQuestion],
) -> int:
    """Percentage correct, rounded half up. Zero for an empty quiz."""
    if not questions:
        return 0
    return math.floor(count_correct(responses, questions) / len(questions) * 100 + 0.5)


def is_passing(score_percent: float, threshold_percent: float = 60) -> bool:
    return score_percent >= threshold_percent


def apply_lesson_completion(
    progress: LearningProgress,
    lesson_id: str,
    points: int = 50,
) -> tuple[LearningProgress, int]:
    """
    Record a passed lesson.
    
    The lesson id is added once; points are only awarded the first
    time a lesson is completed.
    
    Returns:
        (new_progress, points_awarded)
    """
    if progress.has_completed(lesson_id):
        return progress, 0
    
    updated = LearningProgress(
        user_id=progress.user_id,
        completed_lesson_ids=[*progress.completed_lesson_ids, lesson_id],
        quiz_score=progress.quiz_score + points,
    )
    return updated, points
