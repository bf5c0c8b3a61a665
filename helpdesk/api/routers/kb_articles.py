from fastapi import APIRouter, Depends, HTTPException

from helpdesk.api.deps import StoreDep
from helpdesk.db.store import EntityStore
from helpdesk.domain.schemas import KbArticleRead
from helpdesk.services.kb_service import get_article, list_articles

router = APIRouter(prefix="/api/kb-articles", tags=["Knowledge base"])


@router.get("", response_model=list[KbArticleRead])
def get_articles(published: bool | None = None, store: EntityStore = Depends(StoreDep)):
    # Only published=true narrows the list, anything else returns every article
    return list_articles(store, published_only=published is True)


@router.get("/{article_id}", response_model=KbArticleRead)
def get_one_article(article_id: int, store: EntityStore = Depends(StoreDep)):
    a = get_article(store, article_id)
    if not a:
        raise HTTPException(status_code=404, detail="KB article not found")
    return a
