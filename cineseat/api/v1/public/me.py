from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from cineseat.db.session import get_db
from cineseat.api.deps import get_current_user
from cineseat.models.user import User
from cineseat.schemas.user import User as UserSchema, UserUpdate

router = APIRouter(prefix="/me", tags=["Me"])


@router.get("/", response_model=UserSchema)
def get_me(current_user: User = Depends(get_current_user)):
    """Return the authenticated user's profile."""
    return current_user


@router.patch("/", response_model=UserSchema)
def update_me(
    data: UserUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Update the authenticated user's profile (full_name, phone, avatar_url)."""
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(current_user, field, value)
    db.commit()
    db.refresh(current_user)
    return current_user
