"""Question-related Pydantic models."""

from enum import Enum

from pydantic import BaseModel, Field, field_validator, model_validator

from .base import CamelModel

OPTION_LABELS = ["A", "B", "C", "D", "E"]


class Difficulty(str, Enum):
    """How hard a question is rated in the catalog."""

    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class UserStatus(str, Enum):
    """Outcome of the user's recorded attempt at a question."""

    SOLVED = "solved"
    ATTEMPTED = "attempted"
    UNATTEMPTED = "unattempted"


class Question(BaseModel):
    """A complete question with all metadata."""

    id: str | None = Field(default=None, description="Store id; None for local-only records")
    slug: str = Field(min_length=1, max_length=200)
    title: str = ""
    exam: str = "KEAM"
    subject: str
    chapter: str
    class_level: int = Field(default=11, ge=11, le=12)
    topic: str | None = None
    difficulty: Difficulty = Difficulty.MEDIUM
    question_text: str
    options: list[str] = Field(min_length=2, max_length=len(OPTION_LABELS))
    correct_answer: str = Field(description="Option label, A-E")
    explanation: str = ""
    hints: list[str] = Field(default_factory=list)
    source: str | None = None
    year: int | None = None

    @field_validator("correct_answer")
    @classmethod
    def _normalise_label(cls, value: str) -> str:
        value = value.strip().upper()
        if value not in OPTION_LABELS:
            raise ValueError(f"correct_answer must be one of {OPTION_LABELS}")
        return value

    @model_validator(mode="after")
    def _label_within_options(self) -> "Question":
        if OPTION_LABELS.index(self.correct_answer) >= len(self.options):
            raise ValueError(
                f"correct_answer {self.correct_answer} has no matching option "
                f"({len(self.options)} options given)"
            )
        return self

    @property
    def question_id(self) -> str:
        """Identity used for attempts: the store id, else the slug."""
        return self.id or self.slug

    @property
    def option_labels(self) -> list[str]:
        return OPTION_LABELS[: len(self.options)]

    class Config:
        json_schema_extra = {
            "example": {
                "slug": "units-and-measurements-dimensional-formula-of-force",
                "title": "Dimensional formula of force",
                "exam": "KEAM",
                "subject": "Physics",
                "chapter": "Units and Measurements",
                "class_level": 11,
                "difficulty": "easy",
                "question_text": "The dimensional formula of force is",
                "options": ["[MLT^-2]", "[ML^2T^-2]", "[MLT^-1]", "[M^0LT^-2]"],
                "correct_answer": "A",
                "explanation": "F = ma, so [F] = [M][LT^-2].",
                "hints": ["Start from Newton's second law."],
            }
        }


class QuestionWithStatus(Question):
    """A question annotated with the current user's attempt status."""

    user_status: UserStatus = Field(default=UserStatus.UNATTEMPTED, serialization_alias="userStatus")


class QuestionFilters(BaseModel):
    """Catalog query parameters; None means "any"."""

    subject: str | None = None
    chapter: str | None = None
    class_level: int | None = None
    difficulty: Difficulty | None = None
    exam: str | None = None


class QuestionList(CamelModel):
    """Response for GET /questions."""

    questions: list[QuestionWithStatus]
    total: int


class SeedReport(CamelModel):
    """Outcome of seeding the catalog into the relational store."""

    success: bool
    message: str
    inserted: int = 0
    updated: int = 0
    errors: list[str] = Field(default_factory=list)


class SeedStatus(CamelModel):
    """Local catalog vs. store contents."""

    message: str = "Use POST to seed the database"
    local_questions: int
    database_questions: int
    chapters_by_subject: dict[str, list[str]]
    needs_seed: bool
