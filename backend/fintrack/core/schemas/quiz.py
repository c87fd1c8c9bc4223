# fintrack/core/schemas/quiz.py
from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel
from typing import List, Optional
from datetime import date, datetime
import enum

class Difficulty(str, enum.Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"

class BadgeCategory(str, enum.Enum):
    ACHIEVEMENT = "achievement"
    KNOWLEDGE = "knowledge"


class CamelModel(BaseModel):
    """Клиент (браузер) ждет camelCase, внутри работаем со snake_case"""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

# --- Документы внутри прогресса ---

class Badge(CamelModel):
    id: str
    name: str
    description: str
    icon: str
    category: BadgeCategory
    requirement: str
    unlocked: bool = False
    unlocked_at: Optional[datetime] = None

class QuizAttempt(CamelModel):
    quiz_id: str
    category: Optional[str] = None
    difficulty: Optional[Difficulty] = None
    score: int
    total: int
    date: datetime

class UserProgressSchema(CamelModel):
    level: int = 1
    points: int = 0
    quizzes_taken: int = 0
    correct_answers: int = 0
    streak_days: int = 0
    last_quiz_date: Optional[date] = None
    badges: List[Badge] = []
    quiz_history: List[QuizAttempt] = []

# --- Запросы / ответы ---

class QuizResultIn(CamelModel):
    category: Optional[str] = Field(None, description="Quiz category, e.g. saving", max_length=64)
    difficulty: Optional[Difficulty] = Field(None, description="easy / medium / hard")
    score: int = Field(..., description="Correct answers", ge=0)
    total: int = Field(..., description="Number of questions", gt=0)

    @model_validator(mode="after")
    def check_score_not_above_total(self):
        if self.score > self.total:
            raise ValueError("score cannot be greater than total")
        return self

    @property
    def percentage(self) -> float:
        return self.score / self.total * 100

class QuizSubmitResponse(CamelModel):
    user_progress: UserProgressSchema
    unlocked_badges: List[Badge] = []
    degraded: bool = False  # ответ посчитан по локальному снимку, БД недоступна
    pending_sync: int = 0   # сколько попыток ждут записи в БД

class ProgressResponse(CamelModel):
    user_progress: UserProgressSchema
    degraded: bool = False

# --- Банк вопросов ---

class QuizQuestion(CamelModel):
    id: str
    question: str
    options: List[str]
    correct_answer: int
    explanation: str
    category: str
    difficulty: Difficulty

class QuizQuestionOut(CamelModel):
    """Вопрос для клиента: без правильного ответа и пояснения"""
    id: str
    question: str
    options: List[str]
    category: str
    difficulty: Difficulty

class AnswerIn(CamelModel):
    question_id: str = Field(..., max_length=64)
    answer_index: int = Field(..., ge=0)

class AnswerCheckResponse(CamelModel):
    question_id: str
    correct: bool
    correct_answer: int
    explanation: str
