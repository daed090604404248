from datetime import datetime
from typing import Optional, List, Dict, Any

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel

from ecolens.db.models import User, Emission, Category, Units, Theme, isoformat_utc

# --------------------------------------------------
# Request Schemas
# --------------------------------------------------

class CamelModel(BaseModel):
    # wire names are camelCase, as produced by the vision service
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RegisterIn(BaseModel):
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    password: Optional[str] = None


class LoginIn(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class PreferencesIn(CamelModel):
    daily_goal: Optional[float] = Field(None, gt=0, alias="dailyCO2Goal")
    units: Optional[Units] = None
    notifications: Optional[bool] = None
    theme: Optional[Theme] = None


class AlternativeIn(CamelModel):
    name: str
    benefit: str
    carbon_savings: str


class EmissionIn(CamelModel):
    object_name: str = Field(..., max_length=200)
    carbon_value: float = Field(..., ge=0, allow_inf_nan=False)
    category: Optional[Category] = None
    carbon_footprint: Optional[str] = None    # display string, recomputed from carbon_value
    lifecycle: List[str] = []
    explanation: str = ""
    alternatives: List[AlternativeIn] = []
    quantity: int = Field(1, ge=1)
    image_url: Optional[str] = None
    notes: Optional[str] = Field(None, max_length=500)
    scanned_at: Optional[datetime] = None

# --------------------------------------------------
# Response shaping
# --------------------------------------------------

def user_stats(user: User) -> Dict[str, Any]:
    return {
        "totalScans": user.total_scans,
        "totalCO2": user.total_co2,
        "streakDays": user.streak_days,
    }


def user_to_dict(user: User, with_preferences: bool = False) -> Dict[str, Any]:
    out = {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "dailyCO2Goal": user.daily_goal,
        "stats": user_stats(user),
    }
    if with_preferences:
        out["preferences"] = {
            "units": user.units,
            "notifications": user.notifications,
            "theme": user.theme,
        }
        out["lastLoginAt"] = isoformat_utc(user.last_login_at)
        out["createdAt"] = isoformat_utc(user.created_at)
    return out


def emission_to_dict(e: Emission) -> Dict[str, Any]:
    return {
        "id": e.id,
        "userId": e.user_id,
        "imageUrl": e.image_url,
        "objectName": e.object_name,
        "category": e.category,
        "carbonValue": e.carbon_value,
        "carbonFootprint": e.carbon_footprint,
        "lifecycle": e.lifecycle or [],
        "explanation": e.explanation or "",
        "alternatives": e.alternatives or [],
        "quantity": e.quantity,
        "notes": e.notes,
        "scannedAt": isoformat_utc(e.scanned_at),
        "date": e.date,
        "createdAt": isoformat_utc(e.created_at),
    }
