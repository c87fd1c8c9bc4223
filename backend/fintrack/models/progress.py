# fintrack/models/progress.py
from sqlalchemy import Column, Integer, ForeignKey, Date, DateTime, JSON, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship
from .base import Base

# На PostgreSQL документы хранятся в JSONB, на SQLite в обычном JSON
DocumentType = JSON().with_variant(JSONB(), "postgresql")

class UserProgress(Base):
    """
    Прогресс пользователя в квизах: счетчики, значки и история попыток.
    Одна строка на пользователя, создается при первом обращении.
    """
    __tablename__ = "user_progress"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, index=True, nullable=False)

    level = Column(Integer, nullable=False, default=1)
    points = Column(Integer, nullable=False, default=0)
    quizzes_taken = Column(Integer, nullable=False, default=0)
    correct_answers = Column(Integer, nullable=False, default=0)
    streak_days = Column(Integer, nullable=False, default=0)
    last_quiz_date = Column(Date, nullable=True)

    badges = Column(DocumentType, nullable=False, default=list)  # [{id, name, ..., unlocked, unlocked_at}]
    quiz_history = Column(DocumentType, nullable=False, default=list)  # [{quiz_id, category, ..., date}]

    # Счетчик версий для оптимистичной блокировки (UPDATE ... WHERE version = ?)
    version = Column(Integer, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    user = relationship("User", back_populates="progress")

    __mapper_args__ = {"version_id_col": version}

    def __str__(self):
        return f"Progress(user={self.user_id}, level={self.level})"
