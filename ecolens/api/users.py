from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ecolens.api.deps import get_db, current_user
from ecolens.api.schemas import PreferencesIn, user_to_dict
from ecolens.db.crud import find_user_by_id, update_preferences
from ecolens.services.security import AuthContext

router = APIRouter(prefix="/api/users", tags=["users"])


@router.put("/me/preferences")
def set_preferences(
    payload: PreferencesIn,
    auth: AuthContext = Depends(current_user),
    db: Session = Depends(get_db),
):
    """
    Update the daily goal and display preferences. Omitted fields are left as they are.
    """
    user = find_user_by_id(db, auth.user_id)
    user = update_preferences(
        db,
        user,
        daily_goal=payload.daily_goal,
        units=payload.units,
        notifications=payload.notifications,
        theme=payload.theme,
    )
    return user_to_dict(user, with_preferences=True)
