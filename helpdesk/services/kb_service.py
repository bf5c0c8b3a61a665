from helpdesk.db.store import EntityStore
from helpdesk.domain.models import KbArticle, utcnow


def create_article(
    store: EntityStore,
    title: str,
    content: str,
    author_id: int,
    category_id: int | None = None,
    is_published: bool = False,
) -> KbArticle:
    now = utcnow()
    return store.create(
        KbArticle,
        title=title,
        content=content,
        author_id=author_id,
        category_id=category_id,
        is_published=is_published,
        created_at=now,
        updated_at=now,
    )


def get_article(store: EntityStore, article_id: int) -> KbArticle | None:
    return store.get(KbArticle, article_id)


def list_articles(store: EntityStore, published_only: bool = False) -> list[KbArticle]:
    if published_only:
        return store.list(KbArticle, KbArticle.is_published == True)  # noqa: E712
    return store.list(KbArticle)
