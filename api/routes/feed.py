import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from api.deps import get_feed_service
from api.schemas.paper import FeedResponse
from scrollxiv.errors import InvalidRequestError
from scrollxiv.service.feed_service import FeedService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/feed", tags=["feed"])


def parse_categories(raw: Optional[str]) -> Optional[list]:
    """'cs.AI, cs.LG' -> ['cs.AI', 'cs.LG']; empty -> None (use defaults)."""
    if not raw:
        return None
    categories = [c.strip() for c in raw.split(",") if c.strip()]
    return categories or None


@router.get("", response_model=FeedResponse)
def get_feed(
    cursor: Optional[str] = Query(default=None),
    refresh: bool = Query(default=False),
    categories: Optional[str] = Query(default=None),
    feed: FeedService = Depends(get_feed_service),
):
    """Feed page; refreshes from arXiv on initial load or when asked."""
    try:
        page = feed.get_feed(
            cursor=cursor or None,
            refresh=refresh,
            categories=parse_categories(categories),
        )
    except InvalidRequestError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception:
        logger.exception("Feed error")
        raise HTTPException(status_code=500, detail="Failed to fetch feed")

    return FeedResponse(
        papers=page.papers,
        next_cursor=page.next_cursor,
        has_more=page.has_more,
    )
