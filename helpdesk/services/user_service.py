from helpdesk.db.store import EntityStore
from helpdesk.domain.errors import FieldValidationError, NotFoundError, reject_nulls
from helpdesk.domain.models import User
from helpdesk.domain.schemas import UserCreate, UserUpdate

REQUIRED_FIELDS = frozenset({"username", "full_name", "email", "role"})


def _check_username_free(store: EntityStore, username: str, user_id: int | None = None) -> None:
    existing = get_user_by_username(store, username)
    if existing is not None and existing.id != user_id:
        raise FieldValidationError.single("username", f"Username {username!r} is already taken")


def create_user(store: EntityStore, payload: UserCreate) -> User:
    with store.lock:
        _check_username_free(store, payload.username)
        return store.create(User, **payload.model_dump(mode="json"))


def update_user(store: EntityStore, user_id: int, payload: UserUpdate) -> User:
    fields = payload.model_dump(mode="json", exclude_unset=True)
    reject_nulls(fields, REQUIRED_FIELDS)
    with store.lock:
        if "username" in fields:
            _check_username_free(store, fields["username"], user_id)
        user = store.update(User, user_id, **fields)
    if user is None:
        raise NotFoundError("User", user_id)
    return user


def get_user(store: EntityStore, user_id: int) -> User | None:
    return store.get(User, user_id)


def get_user_by_username(store: EntityStore, username: str) -> User | None:
    return store.find_one(User, User.username == username)


def list_users(store: EntityStore) -> list[User]:
    return store.list(User)
