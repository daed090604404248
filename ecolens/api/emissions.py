import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ecolens.api.deps import get_db, current_user
from ecolens.api.schemas import EmissionIn, emission_to_dict
from ecolens.db import crud
from ecolens.db.models import Category, utcnow
from ecolens.services import aggregation
from ecolens.services.impact import impact_metrics, equivalents
from ecolens.services.security import AuthContext

logger = logging.getLogger(__name__)

# --------------------------------------------------
# Router
# --------------------------------------------------

router = APIRouter(prefix="/api/emissions", tags=["emissions"])

HISTORY_DAYS = 7
BREAKDOWN_DAYS = 30


def _day_or_today(value: Optional[str]) -> str:
    if value:
        try:
            return datetime.strptime(value.strip(), "%Y-%m-%d").date().isoformat()
        except ValueError:
            pass
    return utcnow().date().isoformat()

# --------------------------------------------------
# Create Emission
# --------------------------------------------------

@router.post("", status_code=201)
def save_emission(
    payload: EmissionIn,
    auth: AuthContext = Depends(current_user),
    db: Session = Depends(get_db),
):
    """
    Save a scanned object and update the owner's running stats.
    """
    emission = crud.create_emission(
        db,
        auth.user_id,
        object_name=payload.object_name,
        carbon_value=payload.carbon_value,
        category=payload.category or Category.other,
        quantity=payload.quantity,
        scanned_at=payload.scanned_at,
        lifecycle=payload.lifecycle,
        explanation=payload.explanation,
        alternatives=[a.model_dump(by_alias=True) for a in payload.alternatives],
        image_url=payload.image_url,
        notes=payload.notes,
    )
    logger.info("Emission saved: %s (%s)", emission.object_name, emission.id)
    return emission_to_dict(emission)

# --------------------------------------------------
# Reads
# --------------------------------------------------

@router.get("/today")
def today_emissions(auth: AuthContext = Depends(current_user), db: Session = Depends(get_db)):
    crud.find_user_by_id(db, auth.user_id)
    today = utcnow().date().isoformat()
    rows = crud.query_emissions(db, auth.user_id, date=today)
    return {
        "date": today,
        "emissions": [emission_to_dict(e) for e in rows],
        "totalCO2": sum(e.total_carbon() for e in rows),
        "count": len(rows),
    }


@router.get("/daily")
def daily_summary(
    date: Optional[str] = None,
    auth: AuthContext = Depends(current_user),
    db: Session = Depends(get_db),
):
    return aggregation.daily_summary(db, auth.user_id, _day_or_today(date))


@router.get("/history")
def emission_history(
    days: Optional[str] = None,
    auth: AuthContext = Depends(current_user),
    db: Session = Depends(get_db),
):
    return aggregation.history(db, auth.user_id, aggregation.parse_days(days, HISTORY_DAYS))


@router.get("/recent")
def recent_scans(
    limit: Optional[str] = None,
    auth: AuthContext = Depends(current_user),
    db: Session = Depends(get_db),
):
    return aggregation.recent(db, auth.user_id, aggregation.parse_limit(limit))


@router.get("/breakdown")
def category_breakdown(
    days: Optional[str] = None,
    auth: AuthContext = Depends(current_user),
    db: Session = Depends(get_db),
):
    return aggregation.category_breakdown(db, auth.user_id, aggregation.parse_days(days, BREAKDOWN_DAYS))


@router.get("/{emission_id}")
def get_emission(emission_id: str, auth: AuthContext = Depends(current_user), db: Session = Depends(get_db)):
    emission = crud.get_emission(db, auth.user_id, emission_id)
    out = emission_to_dict(emission)
    out["impact"] = impact_metrics(emission.total_carbon())
    out["equivalents"] = equivalents(emission.total_carbon())
    return out

# --------------------------------------------------
# Delete Emission
# --------------------------------------------------

@router.delete("/{emission_id}")
def delete_emission(emission_id: str, auth: AuthContext = Depends(current_user), db: Session = Depends(get_db)):
    removed = crud.delete_emission(db, auth.user_id, emission_id)
    logger.info("Emission deleted: %s", emission_id)
    return {"message": "Emission deleted", "id": emission_id, "carbonRemoved": removed}
