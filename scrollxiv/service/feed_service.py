import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from ..config import FeedConfig
from ..crawler.arxiv_client import ArxivClient
from ..database.paper_repository import PaperRepository
from ..model.paper import Paper

logger = logging.getLogger(__name__)


@dataclass
class FeedPage:
    papers: List[Paper]
    next_cursor: Optional[str]

    @property
    def has_more(self) -> bool:
        return self.next_cursor is not None


class FeedService:
    """
    Feed assembly: optional arXiv refresh + store-side paging.

    A request without cursor (initial load) or with refresh=True pulls the
    newest papers for the categories and upserts them before paging. A pure
    pagination request is served from the store only.
    """

    def __init__(self, repo: PaperRepository, arxiv: ArxivClient, config: Optional[FeedConfig] = None):
        self.repo = repo
        self.arxiv = arxiv
        self.config = config or FeedConfig()

    def refresh(self, categories: Optional[Sequence[str]] = None) -> List[Paper]:
        categories = list(categories or self.config.categories)
        papers, total = self.arxiv.fetch_papers(
            categories,
            max_results=self.config.fetch_size,
            start=0,
            sort_by="submittedDate",
        )
        stored = self.repo.upsert_papers(papers)
        logger.info(f"📌 categories={categories} fetched={len(papers)} total={total}")
        return stored

    def get_feed(
        self,
        cursor: Optional[str] = None,
        refresh: bool = False,
        categories: Optional[Sequence[str]] = None,
        limit: Optional[int] = None,
    ) -> FeedPage:
        if refresh or not cursor:
            self.refresh(categories)

        papers, next_cursor = self.repo.list_feed(
            cursor=cursor,
            limit=limit or self.config.page_size,
        )
        return FeedPage(papers=papers, next_cursor=next_cursor)
