# Application Study Package
from .service import AnswerResult, SessionStats, StudyCard, StudyService

__all__ = ["StudyService", "StudyCard", "AnswerResult", "SessionStats"]
