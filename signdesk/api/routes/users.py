from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlmodel import Session

from signdesk.api.deps import get_current_active_user, get_db, require_admin
from signdesk.models.user import User
from signdesk.schemas.user import AccountDeleteRequest, UserProfileUpdate, UserRead
from signdesk.services.auth import AuthService

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=UserRead)
def get_me(current_user: User = Depends(get_current_active_user)) -> UserRead:
    return UserRead.model_validate(current_user, from_attributes=True)


@router.patch("/me", response_model=UserRead)
def update_me(
    payload: UserProfileUpdate,
    session: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> UserRead:
    user = AuthService(session).update_profile(current_user, payload.model_dump(exclude_unset=True))
    return UserRead.model_validate(user, from_attributes=True)


@router.post("/me/delete", status_code=status.HTTP_204_NO_CONTENT)
def delete_me(
    payload: AccountDeleteRequest,
    session: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> Response:
    try:
        AuthService(session).delete_account(current_user, payload.password)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{user_id}/promote", response_model=UserRead)
def promote_user(
    user_id: UUID,
    session: Session = Depends(get_db),
    _: User = Depends(require_admin),
) -> UserRead:
    try:
        user = AuthService(session).promote_to_admin(user_id)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    return UserRead.model_validate(user, from_attributes=True)
