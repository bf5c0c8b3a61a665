from helpdesk.db.store import EntityStore
from helpdesk.domain.models import Comment, User


def _user(store, username):
    return store.create(User, username=username, full_name=username.title(), email=f"{username}@example.com")


def test_ids_increase_per_entity_type():
    store = EntityStore()
    a = _user(store, "ann")
    b = _user(store, "bob")
    assert (a.id, b.id) == (1, 2)

    # Separate counter per table
    c = store.create(Comment, ticket_id=1, user_id=a.id, content="hi")
    assert c.id == 1


def test_stores_are_isolated():
    one, two = EntityStore(), EntityStore()
    _user(one, "ann")
    assert two.list(User) == []


def test_update_merges_fields():
    store = EntityStore()
    u = _user(store, "ann")

    updated = store.update(User, u.id, department="Finance")

    assert updated.department == "Finance"
    assert updated.username == "ann"
    assert store.get(User, u.id).department == "Finance"


def test_update_missing_returns_none():
    store = EntityStore()
    assert store.update(User, 99, department="x") is None
    assert store.get(User, 99) is None


def test_list_filters_and_orders():
    store = EntityStore()
    for name in ("carl", "ann", "bob"):
        _user(store, name)

    assert [u.username for u in store.list(User)] == ["carl", "ann", "bob"]
    assert [u.username for u in store.list(User, order_by=User.username)] == ["ann", "bob", "carl"]
    assert [u.username for u in store.list(User, User.username != "ann")] == ["carl", "bob"]
    assert store.find_one(User, User.username == "bob").id == 3
    assert store.find_one(User, User.username == "zed") is None


def test_returned_objects_are_detached_copies():
    store = EntityStore()
    u = _user(store, "ann")
    u.department = "changed locally"
    assert store.get(User, u.id).department is None
