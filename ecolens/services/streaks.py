from datetime import date, timedelta
from sqlalchemy import case, exists
from sqlalchemy.orm import Session
from ecolens.db.models import User, Emission


def _scanned_on(user_id: str, day: str):
    return exists().where(Emission.user_id == user_id, Emission.date == day)


def update_streak(db: Session, user_id: str, emission_date: str, today: date) -> None:
    """
    Advance the user's scanning streak for a new emission. Must run before
    the emission is added to the session.

    Only the first scan dated today moves the streak: it continues a run when
    there was a scan yesterday and restarts at 1 otherwise. The "first scan"
    check lives in the UPDATE's WHERE clause, so a writer that lost the race
    to today's first scan matches no row. The caller commits.
    """
    if emission_date != today.isoformat():
        return

    yesterday = (today - timedelta(days=1)).isoformat()
    streak = case(
        (_scanned_on(user_id, yesterday), User.streak_days + 1),
        else_=1,
    )

    db.query(User).filter(
        User.id == user_id,
        ~_scanned_on(user_id, emission_date),
    ).update({User.streak_days: streak}, synchronize_session=False)
