from fastapi import APIRouter, Depends, HTTPException

from helpdesk.api.deps import StoreDep
from helpdesk.db.store import EntityStore
from helpdesk.domain.errors import FieldValidationError, NotFoundError
from helpdesk.domain.schemas import UserCreate, UserRead, UserUpdate
from helpdesk.services.user_service import create_user, get_user, list_users, update_user

router = APIRouter(prefix="/api/users", tags=["Users"])


@router.get("", response_model=list[UserRead])
def get_users(store: EntityStore = Depends(StoreDep)):
    return list_users(store)


@router.get("/{user_id}", response_model=UserRead)
def get_one_user(user_id: int, store: EntityStore = Depends(StoreDep)):
    u = get_user(store, user_id)
    if not u:
        raise HTTPException(status_code=404, detail="User not found")
    return u


@router.post("", response_model=UserRead, status_code=201)
def post_user(payload: UserCreate, store: EntityStore = Depends(StoreDep)):
    try:
        return create_user(store, payload)
    except FieldValidationError as e:
        raise HTTPException(status_code=400, detail=e.errors)


@router.patch("/{user_id}", response_model=UserRead)
def patch_user(user_id: int, payload: UserUpdate, store: EntityStore = Depends(StoreDep)):
    try:
        return update_user(store, user_id, payload)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="User not found")
    except FieldValidationError as e:
        raise HTTPException(status_code=400, detail=e.errors)
