"""Study-streak bookkeeping over UTC calendar days."""

from datetime import date, datetime

from mnemora.application.utils.clock import utc_date
from mnemora.domain.progress.models import StudyStreak


def advance_streak(streak: StudyStreak, now: datetime) -> StudyStreak:
    """
    Return the streak after a review at ``now``.

    Same day keeps it, the next day extends it, a longer gap restarts it at 1.
    The first review ever starts it at 1.
    """
    today = utc_date(now)

    if streak.last_study_date is None:
        return StudyStreak(days=1, last_study_date=today.isoformat())

    last = date.fromisoformat(streak.last_study_date)
    gap = (today - last).days

    if gap <= 0:
        return streak
    if gap == 1:
        return StudyStreak(days=streak.days + 1, last_study_date=today.isoformat())
    return StudyStreak(days=1, last_study_date=today.isoformat())
