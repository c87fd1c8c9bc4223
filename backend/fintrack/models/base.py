# fintrack/models/base.py
from sqlalchemy import MetaData
from sqlalchemy.orm import declarative_base
from fintrack.core.config import settings

Base = declarative_base(metadata=MetaData(naming_convention=settings.db.naming_convention))
