from fastapi import Depends, Request
from sqlalchemy.orm import sessionmaker

from scrollxiv.config import Settings
from scrollxiv.crawler.ar5iv_client import Ar5ivClient
from scrollxiv.crawler.arxiv_client import ArxivClient
from scrollxiv.database.paper_mark_repository import PaperMarkRepository
from scrollxiv.database.paper_repository import PaperRepository
from scrollxiv.service.enrichment_service import EnrichmentService
from scrollxiv.service.feed_service import FeedService
from scrollxiv.service.llm_service import LLMService
from scrollxiv.service.search_service import SearchService


def get_settings(request: Request) -> Settings:
    """The Settings object the app was created with."""
    return request.app.state.settings


def get_session_factory(request: Request) -> sessionmaker:
    return request.app.state.session_factory


def get_paper_repo(session_factory: sessionmaker = Depends(get_session_factory)) -> PaperRepository:
    """Return a PaperRepository instance (stateless, safe to create per-request)."""
    return PaperRepository(session_factory)


def get_mark_repo(session_factory: sessionmaker = Depends(get_session_factory)) -> PaperMarkRepository:
    return PaperMarkRepository(session_factory)


def get_llm_service(settings: Settings = Depends(get_settings)) -> LLMService:
    return LLMService(settings)


def get_arxiv_client(settings: Settings = Depends(get_settings)) -> ArxivClient:
    return ArxivClient(settings.arxiv)


def get_ar5iv_client(settings: Settings = Depends(get_settings)) -> Ar5ivClient:
    return Ar5ivClient(settings.arxiv)


def get_enrichment_service(
    repo: PaperRepository = Depends(get_paper_repo),
    llm: LLMService = Depends(get_llm_service),
    figure_client: Ar5ivClient = Depends(get_ar5iv_client),
) -> EnrichmentService:
    return EnrichmentService(repo, llm, figure_client)


def get_feed_service(
    repo: PaperRepository = Depends(get_paper_repo),
    arxiv: ArxivClient = Depends(get_arxiv_client),
    settings: Settings = Depends(get_settings),
) -> FeedService:
    return FeedService(repo, arxiv, settings.feed)


def get_search_service(
    repo: PaperRepository = Depends(get_paper_repo),
    arxiv: ArxivClient = Depends(get_arxiv_client),
    llm: LLMService = Depends(get_llm_service),
    settings: Settings = Depends(get_settings),
) -> SearchService:
    return SearchService(repo, arxiv, llm, settings.feed)
