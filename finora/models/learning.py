"""
Course Content Models

Lessons and their quizzes are static content shipped with the app;
only a user's LearningProgress is ever stored.
"""

from pydantic import BaseModel, ConfigDict, Field, model_validator


class QuizQuestion(BaseModel):
    """A multiple-choice question with one correct option."""
    model_config = ConfigDict(frozen=True)
    
    id: str
    question: str
    options: list[str] = Field(..., min_length=2)
    correct_answer: int = Field(
        ...,
        ge=0,
        description="Index into options"
    )
    
    @model_validator(mode='after')
    def validate_answer_index(self) -> 'QuizQuestion':
        if self.correct_answer >= len(self.options):
            raise ValueError("Correct answer index is out of range")
        return self


class Lesson(BaseModel):
    """A single lesson in the learning hub."""
    model_config = ConfigDict(frozen=True)
    
    id: str
    title: str
    category: str
    duration_minutes: int = Field(..., ge=1)
    summary: str
    content: list[str] = Field(default_factory=list)
    key_takeaways: list[str] = Field(default_factory=list)
    questions: list[QuizQuestion] = Field(default_factory=list)
