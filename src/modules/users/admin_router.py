"""Admin-facing routes for user account management."""

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.database import get_db
from src.core.deps import require_admin
from src.core.exceptions import NotFoundError, ValidationError
from src.modules.users.models import User
from src.modules.users.schemas import UserPublic, UserRoleUpdate

router = APIRouter(prefix="/api/v1/admin", tags=["admin-users"])


@router.get("/users", response_model=list[UserPublic])
async def list_users(
    _: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> list[User]:
    result = await db.execute(select(User).order_by(User.created_at.desc()))
    return list(result.scalars().all())


@router.put("/users/{user_id}/role", response_model=UserPublic)
async def update_user_role(
    user_id: str,
    payload: UserRoleUpdate,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> User:
    user = await db.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    if user.user_id == current_user.user_id and payload.role != user.role:
        raise ValidationError("Admins cannot change their own role")
    user.role = payload.role
    await db.commit()
    await db.refresh(user)
    return user
