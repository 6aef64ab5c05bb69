import logging
from dataclasses import dataclass
from typing import List, Optional

from ..config import FeedConfig
from ..crawler.arxiv_client import ArxivClient
from ..database.paper_repository import PaperRepository
from ..errors import InvalidRequestError, ProviderError
from ..model.paper import Paper, SearchInterpretation
from .llm_service import LLMService

logger = logging.getLogger(__name__)


@dataclass
class SearchResult:
    papers: List[Paper]
    total: int
    interpretation: Optional[SearchInterpretation] = None


class SearchService:
    """
    Natural-language search.

    When a provider is configured the query is first rewritten into arXiv
    keywords/categories/sort mode; if that fails the raw query is used.
    """

    def __init__(
        self,
        repo: PaperRepository,
        arxiv: ArxivClient,
        llm: LLMService,
        config: Optional[FeedConfig] = None,
    ):
        self.repo = repo
        self.arxiv = arxiv
        self.llm = llm
        self.config = config or FeedConfig()

    def interpret(self, query: str) -> Optional[SearchInterpretation]:
        if not self.llm.is_configured():
            return None
        try:
            return self.llm.interpret_search(query)
        except ProviderError as e:
            logger.warning(f"⚠ AI interpretation failed, using direct search: {e}")
            return None

    def search(self, query: str) -> SearchResult:
        query = (query or "").strip()
        if not query:
            raise InvalidRequestError("Query is required")

        interpretation = self.interpret(query)

        search_query = query
        categories = None
        sort_by = "relevance"
        if interpretation:
            search_query = interpretation.search_query or query
            categories = interpretation.categories or None
            sort_by = interpretation.sort_by

        papers, total = self.arxiv.search_papers(
            search_query,
            categories,
            max_results=self.config.search_size,
            sort_by=sort_by,
        )
        stored = self.repo.upsert_papers(papers)
        logger.info(f"🔎 search={search_query!r} found={len(stored)} total={total}")

        if interpretation and not interpretation.explanation:
            interpretation = None

        return SearchResult(papers=stored, total=total, interpretation=interpretation)
