# fintrack/api/v1/routes/quiz.py
from datetime import datetime, timezone
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from fintrack.core.database import db_helper
from fintrack.core.exceptions import AppException
from fintrack.core.schemas.quiz import (
    AnswerCheckResponse,
    AnswerIn,
    Difficulty,
    ProgressResponse,
    QuizQuestionOut,
    QuizResultIn,
    QuizSubmitResponse,
)
from fintrack.core.utils import get_current_user_id, get_optional_user_id, get_quiz_service
from fintrack.repositories.progress_repository import ProgressRepository
from fintrack.services import question_bank
from fintrack.services.quiz_service import QuizProgressService
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/quiz", tags=["quiz"])

@router.get("/questions", response_model=List[QuizQuestionOut])
async def get_questions(
    count: int = Query(5, ge=1, le=50),
    category: Optional[str] = Query(None, max_length=32),
    difficulty: Optional[Difficulty] = None,
):
    """Случайный набор вопросов; правильные ответы не отдаются"""
    return question_bank.get_random_questions(count, category=category, difficulty=difficulty)

@router.post("/answer", response_model=AnswerCheckResponse)
async def check_answer(answer: AnswerIn):
    try:
        return question_bank.check_answer(answer.question_id, answer.answer_index)
    except AppException as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)

@router.post("/submit", response_model=QuizSubmitResponse)
async def submit_quiz(
    result: QuizResultIn,
    current_user_id: int = Depends(get_current_user_id),
    quiz_service: QuizProgressService = Depends(get_quiz_service),
):
    """Результат квиза: обновляет уровень, очки, серию и значки"""
    try:
        return await quiz_service.submit_quiz_attempt(current_user_id, result)
    except AppException as e:
        logger.error(f"Quiz submission failed for user {current_user_id}: {e.detail}")
        raise HTTPException(status_code=e.status_code, detail=e.detail)
    except Exception as e:
        logger.exception(f"Unexpected error submitting quiz results: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to submit quiz results"
        )

@router.get("/progress", response_model=ProgressResponse)
async def get_progress(
    current_user_id: int = Depends(get_current_user_id),
    quiz_service: QuizProgressService = Depends(get_quiz_service),
):
    """Прогресс текущего пользователя, при первом запросе создается пустой"""
    try:
        return await quiz_service.get_or_create_progress(current_user_id)
    except AppException as e:
        logger.error(f"Fetching progress failed for user {current_user_id}: {e.detail}")
        raise HTTPException(status_code=e.status_code, detail=e.detail)
    except Exception as e:
        logger.exception(f"Unexpected error fetching user progress: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch user progress"
        )

@router.get("/check")
async def check_quiz_storage(
    current_user_id: Optional[int] = Depends(get_optional_user_id),
    session: AsyncSession = Depends(db_helper.session_getter),
):
    """Диагностика: доступна ли БД и есть ли прогресс у текущего пользователя"""
    auth_info = {
        "status": "Authenticated" if current_user_id else "Not authenticated",
        "userId": current_user_id,
    }
    timestamp = datetime.now(timezone.utc).isoformat()

    try:
        repository = ProgressRepository(session)
        total = await repository.count()
        exists = False
        if current_user_id:
            exists = await repository.get_by_user_id(current_user_id) is not None
    except SQLAlchemyError as e:
        logger.error(f"Database check failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "status": "error",
                "timestamp": timestamp,
                "message": "Database operation failed.",
                "database": {"connected": False},
                "auth": auth_info,
            },
        )

    return {
        "status": "ok",
        "timestamp": timestamp,
        "database": {
            "connected": True,
            "totalUserProgressDocuments": total,
            "currentUserProgressExists": exists,
        },
        "auth": auth_info,
    }
