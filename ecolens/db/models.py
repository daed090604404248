# ecolens/db/models.py
import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Float, DateTime, JSON, Text, Boolean, ForeignKey, Index
from sqlalchemy.orm import declarative_base
from passlib.context import CryptContext

from ecolens.config import settings

Base = declarative_base()


pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=settings.BCRYPT_ROUNDS)


def utcnow() -> datetime:
    # naive UTC, the form every DateTime column stores
    return datetime.now(timezone.utc).replace(tzinfo=None)


def isoformat_utc(value: datetime) -> str:
    return value.isoformat() + "Z" if value else None


def new_id() -> str:
    return uuid.uuid4().hex


class Category(str, enum.Enum):
    food = "food"
    beverage = "beverage"
    clothing = "clothing"
    electronics = "electronics"
    transportation = "transportation"
    household = "household"
    packaging = "packaging"
    other = "other"


class Units(str, enum.Enum):
    metric = "metric"
    imperial = "imperial"


class Theme(str, enum.Enum):
    light = "light"
    dark = "dark"
    system = "system"


class User(Base):
    __tablename__ = "users"

    id = Column(String(32), primary_key=True, default=new_id)
    email = Column(String(254), unique=True, index=True, nullable=False)
    name = Column(String(100), nullable=True)
    password_hash = Column(String, nullable=False)
    avatar = Column(String, nullable=True)
    daily_goal = Column(Float, nullable=False, default=settings.DEFAULT_DAILY_GOAL)  # grams CO2e/day

    # preferences
    units = Column(String(16), nullable=False, default=Units.metric.value)
    notifications = Column(Boolean, nullable=False, default=True)
    theme = Column(String(16), nullable=False, default=Theme.system.value)

    # running stats, only ever changed through increment expressions
    total_scans = Column(Integer, nullable=False, default=0)
    total_co2 = Column(Float, nullable=False, default=0.0)   # grams
    streak_days = Column(Integer, nullable=False, default=0)

    last_login_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    @staticmethod
    def hash_password(password: str) -> str:
        return pwd_context.hash(password)

    def verify_password(self, password: str) -> bool:
        return pwd_context.verify(password, self.password_hash)


class Emission(Base):
    __tablename__ = "emissions"
    id = Column(String(32), primary_key=True, default=new_id)
    user_id = Column(String(32), ForeignKey("users.id"), index=True, nullable=False)
    image_url = Column(String, nullable=True)
    object_name = Column(String(200), nullable=False)
    category = Column(String(32), nullable=False, default=Category.other.value)
    carbon_value = Column(Float, nullable=False)          # grams CO2e, per item
    carbon_footprint = Column(String, nullable=False)    # display form of carbon_value
    lifecycle = Column(JSON, nullable=False, default=list)
    explanation = Column(Text, nullable=False, default="")
    alternatives = Column(JSON, nullable=False, default=list)
    quantity = Column(Integer, nullable=False, default=1)
    notes = Column(String(500), nullable=True)
    scanned_at = Column(DateTime, nullable=False, default=utcnow)
    date = Column(String(10), nullable=False)           # YYYY-MM-DD of scanned_at

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    def total_carbon(self) -> float:
        return self.carbon_value * self.quantity


# one index per read pattern: recent per user, daily per user, category per user, global recent
Index("ix_emissions_user_scanned", Emission.user_id, Emission.scanned_at.desc())
Index("ix_emissions_user_date", Emission.user_id, Emission.date)
Index("ix_emissions_user_category", Emission.user_id, Emission.category)
Index("ix_emissions_scanned", Emission.scanned_at.desc())
