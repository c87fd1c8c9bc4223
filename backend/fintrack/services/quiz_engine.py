# fintrack/services/quiz_engine.py
"""
Движок прогресса квизов.

Чистые функции без обращения к БД: на вход состояние прогресса и результат
попытки, на выход новое состояние и список только что открытых значков.
Одна и та же функция apply_attempt используется и в HTTP-обработчике,
и при работе по локальному снимку, и при дозаписи отложенных попыток.
"""
from datetime import date, datetime
from typing import List, Optional, Tuple

from fintrack.core.schemas.quiz import (
    Badge,
    BadgeCategory,
    Difficulty,
    QuizAttempt,
    QuizResultIn,
    UserProgressSchema,
)

POINTS_PER_LEVEL = 100
STREAK_BADGE_DAYS = 3
EXPERT_PERCENTAGE = 80
EXPERT_QUIZZES = 3
QUIZ_MASTER_QUIZZES = 10
GURU_LEVEL = 10

DIFFICULTY_MULTIPLIERS = {
    Difficulty.MEDIUM: 2,
    Difficulty.HARD: 3,
}

BADGE_CATALOG: Tuple[dict, ...] = (
    {
        "id": "first-quiz",
        "name": "Quiz Beginner",
        "description": "Complete your first quiz",
        "icon": "🎓",
        "category": BadgeCategory.ACHIEVEMENT,
        "requirement": "Complete 1 quiz",
    },
    {
        "id": "streak-master",
        "name": "Streak Master",
        "description": "Maintain a 3-day quiz streak",
        "icon": "🔥",
        "category": BadgeCategory.ACHIEVEMENT,
        "requirement": "3-day streak",
    },
    {
        "id": "perfect-score",
        "name": "Perfect Score",
        "description": "Get a perfect score on any quiz",
        "icon": "🏆",
        "category": BadgeCategory.ACHIEVEMENT,
        "requirement": "100% score",
    },
    {
        "id": "saving-expert",
        "name": "Saving Expert",
        "description": "Master saving concepts by scoring 80%+ on 3 saving quizzes",
        "icon": "💰",
        "category": BadgeCategory.KNOWLEDGE,
        "requirement": "80%+ on 3 saving quizzes",
    },
    {
        "id": "budgeting-expert",
        "name": "Budgeting Expert",
        "description": "Master budgeting concepts by scoring 80%+ on 3 budgeting quizzes",
        "icon": "📊",
        "category": BadgeCategory.KNOWLEDGE,
        "requirement": "80%+ on 3 budgeting quizzes",
    },
    {
        "id": "investing-expert",
        "name": "Investing Expert",
        "description": "Master investing concepts by scoring 80%+ on 3 investing quizzes",
        "icon": "📈",
        "category": BadgeCategory.KNOWLEDGE,
        "requirement": "80%+ on 3 investing quizzes",
    },
    {
        "id": "debt-expert",
        "name": "Debt Management Expert",
        "description": "Master debt concepts by scoring 80%+ on 3 debt quizzes",
        "icon": "💳",
        "category": BadgeCategory.KNOWLEDGE,
        "requirement": "80%+ on 3 debt quizzes",
    },
    {
        "id": "quiz-master",
        "name": "Quiz Master",
        "description": "Complete 10 quizzes with an average score of 80% or higher",
        "icon": "👑",
        "category": BadgeCategory.ACHIEVEMENT,
        "requirement": "10 quizzes with 80%+ avg",
    },
    {
        "id": "financial-guru",
        "name": "Financial Guru",
        "description": "Reach level 10 in your financial knowledge journey",
        "icon": "🧠",
        "category": BadgeCategory.ACHIEVEMENT,
        "requirement": "Reach level 10",
    },
)

CATEGORY_BADGES = {
    "saving": "saving-expert",
    "budgeting": "budgeting-expert",
    "investing": "investing-expert",
    "debt": "debt-expert",
}


def default_badges() -> List[Badge]:
    """Полный каталог значков, все закрыты"""
    return [Badge(**definition) for definition in BADGE_CATALOG]


def new_progress() -> UserProgressSchema:
    """Прогресс нового пользователя: нулевые счетчики и закрытый каталог"""
    return UserProgressSchema(badges=default_badges(), quiz_history=[])


def compute_award(score: int, difficulty: Optional[Difficulty]) -> int:
    if difficulty is None:
        return score
    return score * DIFFICULTY_MULTIPLIERS.get(Difficulty(difficulty), 1)


def compute_level(points: int) -> int:
    return points // POINTS_PER_LEVEL + 1


def next_streak(streak_days: int, last_quiz_date: Optional[date], today: date) -> int:
    """
    Серия дней подряд с квизами.
    Вчера -> +1, тот же день -> без изменений, пропуск -> заново с 1.
    """
    if last_quiz_date is None:
        return 1

    day_difference = (today - last_quiz_date).days
    if day_difference == 1:
        return streak_days + 1
    if day_difference > 1:
        return 1
    return streak_days


def attempt_percentage(score: int, total: int) -> float:
    if total <= 0:
        return 0.0
    return score / total * 100


def make_quiz_id(now: datetime) -> str:
    return str(int(now.timestamp() * 1000))


def _unlock(badge: Optional[Badge], now: datetime, unlocked: List[Badge]) -> None:
    if badge is None or badge.unlocked:
        return
    badge.unlocked = True
    badge.unlocked_at = now
    unlocked.append(badge)


def evaluate_badges(progress: UserProgressSchema, attempt: QuizAttempt, now: datetime) -> List[Badge]:
    """
    Проверяет правила значков по уже обновленному прогрессу.

    Изменяет значки в progress на месте и возвращает только что открытые.
    Открытый значок больше не трогается: unlocked_at ставится один раз.
    """
    badges = {badge.id: badge for badge in progress.badges}
    unlocked: List[Badge] = []
    percentage = attempt_percentage(attempt.score, attempt.total)

    if progress.quizzes_taken >= 1:
        _unlock(badges.get("first-quiz"), now, unlocked)

    if progress.streak_days >= STREAK_BADGE_DAYS:
        _unlock(badges.get("streak-master"), now, unlocked)

    if percentage == 100:
        _unlock(badges.get("perfect-score"), now, unlocked)

    badge_id = CATEGORY_BADGES.get(attempt.category) if attempt.category else None
    if badge_id and percentage >= EXPERT_PERCENTAGE:
        high_scores = [
            quiz for quiz in progress.quiz_history
            if quiz.category == attempt.category
            and attempt_percentage(quiz.score, quiz.total) >= EXPERT_PERCENTAGE
        ]
        if len(high_scores) >= EXPERT_QUIZZES:
            _unlock(badges.get(badge_id), now, unlocked)

    if progress.quizzes_taken >= QUIZ_MASTER_QUIZZES:
        total_score = sum(quiz.score for quiz in progress.quiz_history)
        total_possible = sum(quiz.total for quiz in progress.quiz_history)
        if attempt_percentage(total_score, total_possible) >= EXPERT_PERCENTAGE:
            _unlock(badges.get("quiz-master"), now, unlocked)

    if progress.level >= GURU_LEVEL:
        _unlock(badges.get("financial-guru"), now, unlocked)

    return unlocked


def apply_attempt(
    progress: UserProgressSchema,
    result: QuizResultIn,
    now: datetime,
) -> Tuple[UserProgressSchema, List[Badge]]:
    """Применяет одну попытку к копии прогресса: (новый прогресс, открытые значки)"""
    updated = progress.model_copy(deep=True)
    if not updated.badges:
        updated.badges = default_badges()

    attempt = QuizAttempt(
        quiz_id=make_quiz_id(now),
        category=result.category,
        difficulty=result.difficulty,
        score=result.score,
        total=result.total,
        date=now,
    )
    updated.quiz_history.append(attempt)

    updated.quizzes_taken += 1
    updated.correct_answers += result.score
    updated.points += compute_award(result.score, result.difficulty)
    updated.level = compute_level(updated.points)

    today = now.date()
    updated.streak_days = next_streak(updated.streak_days, updated.last_quiz_date, today)
    updated.last_quiz_date = today

    unlocked = evaluate_badges(updated, attempt, now)
    return updated, [badge.model_copy() for badge in unlocked]
