# ecolens/db/crud.py
import logging
import math
from datetime import datetime, timezone
from typing import Optional, List

from sqlalchemy import Numeric, case, cast, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ecolens.db.models import User, Emission, Category, Units, Theme, utcnow
from ecolens.errors import Conflict, InvalidInput, NotFound
from ecolens.services.impact import format_carbon_footprint
from ecolens.services.streaks import update_streak

logger = logging.getLogger(__name__)

MAX_OBJECT_NAME = 200
MAX_NOTES = 500
STATS_PRECISION = 6   # decimal places kept on users.total_co2 (grams)


def _rounded_co2(expr):
    # float sums drift; keep the running total on a fixed decimal grid
    return func.round(cast(expr, Numeric), STATS_PRECISION)


def normalize_email(email: str) -> str:
    return email.strip().lower()


def to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value

# --------------------------------------------------
# Users
# --------------------------------------------------

def create_user(db: Session, email: str, name: str, password: str) -> User:
    email = normalize_email(email)
    if get_user_by_email(db, email):
        raise Conflict("Email already registered")

    user = User(
        email=email,
        name=name.strip(),
        password_hash=User.hash_password(password),
        total_scans=0,
        total_co2=0.0,
        streak_days=0,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # lost a race with a concurrent registration of the same email
        db.rollback()
        logger.info("Concurrent registration rejected for %s", email)
        raise Conflict("Email already registered")
    db.refresh(user)
    return user


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == normalize_email(email)).first()


def get_user_by_id(db: Session, user_id: str) -> Optional[User]:
    return db.query(User).filter(User.id == user_id).first()


def find_user_by_email(db: Session, email: str) -> User:
    user = get_user_by_email(db, email)
    if not user:
        raise NotFound("User not found")
    return user


def find_user_by_id(db: Session, user_id: str) -> User:
    user = get_user_by_id(db, user_id)
    if not user:
        raise NotFound("User not found")
    return user


def touch_login(db: Session, user: User) -> User:
    user.last_login_at = utcnow()
    db.commit()
    db.refresh(user)
    return user


def update_preferences(db: Session, user: User, daily_goal: float = None, units: Units = None,
                       notifications: bool = None, theme: Theme = None) -> User:
    if daily_goal is not None:
        if not daily_goal > 0:
            raise InvalidInput("Daily goal must be positive")
        user.daily_goal = daily_goal
    if units is not None:
        user.units = Units(units).value
    if notifications is not None:
        user.notifications = notifications
    if theme is not None:
        user.theme = Theme(theme).value
    db.commit()
    db.refresh(user)
    return user

# --------------------------------------------------
# Emissions
# --------------------------------------------------

def _validate_emission(object_name, carbon_value, quantity, category, notes):
    if not object_name or not object_name.strip():
        raise InvalidInput("Object name is required")
    if len(object_name.strip()) > MAX_OBJECT_NAME:
        raise InvalidInput(f"Object name cannot exceed {MAX_OBJECT_NAME} characters")
    if carbon_value is None or not math.isfinite(carbon_value) or carbon_value < 0:
        raise InvalidInput("Carbon value must be a non-negative number")
    if quantity is None or quantity < 1:
        raise InvalidInput("Quantity must be at least 1")
    if notes is not None and len(notes) > MAX_NOTES:
        raise InvalidInput(f"Notes cannot exceed {MAX_NOTES} characters")
    try:
        return Category(category or Category.other).value
    except ValueError:
        raise InvalidInput(f"Invalid category: {category}")


def create_emission(
    db: Session,
    user_id: str,
    object_name: str,
    carbon_value: float,
    category: str = Category.other.value,
    quantity: int = 1,
    scanned_at: datetime = None,
    lifecycle: List[str] = None,
    explanation: str = "",
    alternatives: List[dict] = None,
    image_url: str = None,
    notes: str = None,
    now: datetime = None,
) -> Emission:
    """
    Save an emission and fold it into the owner's running stats.

    ``date`` is derived from ``scanned_at`` here, before anything is written.
    The insert and the stats increment go out in one commit; the increment is
    a SQL expression so concurrent saves for the same user are all counted.
    """
    category = _validate_emission(object_name, carbon_value, quantity, category, notes)
    find_user_by_id(db, user_id)

    now = to_naive_utc(now) if now else utcnow()
    scanned_at = to_naive_utc(scanned_at) if scanned_at else now
    day = scanned_at.date().isoformat()

    update_streak(db, user_id, day, now.date())

    emission = Emission(
        user_id=user_id,
        image_url=image_url,
        object_name=object_name.strip(),
        category=category,
        carbon_value=float(carbon_value),
        carbon_footprint=format_carbon_footprint(carbon_value),
        lifecycle=list(lifecycle or []),
        explanation=explanation or "",
        alternatives=list(alternatives or []),
        quantity=quantity,
        notes=notes,
        scanned_at=scanned_at,
        date=day,
    )
    db.add(emission)

    db.query(User).filter(User.id == user_id).update(
        {
            User.total_scans: User.total_scans + 1,
            User.total_co2: _rounded_co2(User.total_co2 + emission.total_carbon()),
            User.updated_at: now,
        },
        synchronize_session=False,
    )

    db.commit()
    db.refresh(emission)
    return emission


def get_emission(db: Session, user_id: str, emission_id: str) -> Emission:
    emission = (
        db.query(Emission)
        .filter(Emission.id == emission_id, Emission.user_id == user_id)
        .first()
    )
    if not emission:
        raise NotFound("Emission not found")
    return emission


def delete_emission(db: Session, user_id: str, emission_id: str) -> float:
    """
    Delete an emission, taking back exactly what create_emission added to the
    stats. Returns the grams removed from the user's total.
    """
    emission = get_emission(db, user_id, emission_id)
    delta = emission.total_carbon()

    # SET expressions read the pre-update row, so total_scans <= 1 means this
    # was the last emission
    remaining = _rounded_co2(User.total_co2 - delta)
    total_co2 = case(
        (User.total_scans <= 1, 0.0),
        (remaining < 0, 0.0),
        else_=remaining,
    )

    db.delete(emission)
    db.query(User).filter(User.id == user_id).update(
        {
            User.total_scans: User.total_scans - 1,
            User.total_co2: total_co2,
            User.updated_at: utcnow(),
        },
        synchronize_session=False,
    )
    db.commit()
    return delta


def query_emissions(
    db: Session,
    user_id: str,
    date: str = None,
    start: datetime = None,
    end: datetime = None,
    limit: int = None,
    ascending: bool = False,
) -> List[Emission]:
    q = db.query(Emission).filter(Emission.user_id == user_id)

    if date is not None:
        q = q.filter(Emission.date == date)
    if start is not None:
        q = q.filter(Emission.scanned_at >= to_naive_utc(start))
    if end is not None:
        q = q.filter(Emission.scanned_at < to_naive_utc(end))

    order = Emission.scanned_at.asc() if ascending else Emission.scanned_at.desc()
    q = q.order_by(order)

    if limit is not None:
        q = q.limit(limit)
    return q.all()
