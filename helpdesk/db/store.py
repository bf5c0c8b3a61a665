import threading
import logging
from typing import Callable, Optional, TypeVar

from sqlmodel import Session, SQLModel, select

from helpdesk.db.engine import build_engine, init_db

logger = logging.getLogger("entity_store")

M = TypeVar("M", bound=SQLModel)


class EntityStore:
    """
    Owns every entity's lifetime.

    One store per app (or per test). All operations take `lock`, a re-entrant
    lock, so callers that need read-then-write consistency can hold it across
    several calls:

        with store.lock:
            before = store.get(Ticket, 1)
            store.update(Ticket, 1, status="closed")

    Returned objects are detached copies; changing them does nothing until
    passed back through `update`.
    """

    def __init__(self, engine=None):
        self.engine = engine if engine is not None else build_engine()
        self.lock = threading.RLock()
        init_db(self.engine)

    def _session(self) -> Session:
        return Session(self.engine, expire_on_commit=False)

    def create(self, model: type[M], on_insert: Optional[Callable[[M], None]] = None, **fields) -> M:
        with self.lock, self._session() as s:
            obj = model(**fields)
            s.add(obj)
            if on_insert is not None:
                # id is assigned by the flush, the hook can derive fields from it
                s.flush()
                on_insert(obj)
            s.commit()
            s.refresh(obj)
            logger.debug("created %s id=%s", model.__name__, obj.id)
            return obj

    def get(self, model: type[M], entity_id: int) -> M | None:
        with self.lock, self._session() as s:
            return s.get(model, entity_id)

    def update(self, model: type[M], entity_id: int, **fields) -> M | None:
        with self.lock, self._session() as s:
            obj = s.get(model, entity_id)
            if obj is None:
                return None
            for k, v in fields.items():
                if not hasattr(obj, k):
                    raise AttributeError(f"{model.__name__} has no field {k!r}")
                setattr(obj, k, v)
            s.add(obj)
            s.commit()
            s.refresh(obj)
            return obj

    def list(self, model: type[M], *where, order_by=None, limit: int | None = None) -> list[M]:
        with self.lock, self._session() as s:
            q = select(model)
            for clause in where:
                q = q.where(clause)
            if order_by is None:
                q = q.order_by(model.id)
            elif isinstance(order_by, (list, tuple)):
                q = q.order_by(*order_by)
            else:
                q = q.order_by(order_by)
            if limit is not None:
                q = q.limit(limit)
            return list(s.exec(q).all())

    def find_one(self, model: type[M], *where) -> M | None:
        rows = self.list(model, *where, limit=1)
        return rows[0] if rows else None
