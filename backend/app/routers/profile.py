from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.auth import get_current_user
from app.database import get_db
from app.schemas.profile import ProfileResponse
from app.services.profile_service import get_or_create_profile
from app.services.supabase_auth import AuthUser

router = APIRouter(prefix="/api", tags=["profile"])


@router.get("/profile")
def get_profile(
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Return the caller's profile, creating it on first use."""
    profile = get_or_create_profile(db, current_user)
    return {"profile": ProfileResponse.model_validate(profile)}
