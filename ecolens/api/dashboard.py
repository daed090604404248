# ecolens/api/dashboard.py
from typing import Optional, Dict, Any

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ecolens.api.deps import get_db, current_user
from ecolens.services.aggregation import dashboard_stats
from ecolens.services.security import AuthContext

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


@router.get("/stats")
def stats(
    period: Optional[str] = "weekly",
    auth: AuthContext = Depends(current_user),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    # unknown periods fall back to weekly
    return dashboard_stats(db, auth.user_id, period)
