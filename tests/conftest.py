"""
Shared fixtures: in-memory SQLite store, fake HTTP sessions and a fake LLM.
"""
import json
from datetime import datetime, timezone
from types import SimpleNamespace
from typing import List, Optional

import pytest

from scrollxiv.config import Settings
from scrollxiv.database.db.models import Base
from scrollxiv.database.db.session import create_db_engine, create_session_factory
from scrollxiv.database.paper_mark_repository import PaperMarkRepository
from scrollxiv.database.paper_repository import PaperRepository
from scrollxiv.model.paper import ArxivPaper


class FakeResponse:
    def __init__(self, status_code: int = 200, text: str = ""):
        self.status_code = status_code
        self.text = text

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 400


class FakeSession:
    """Stands in for requests.Session; records every GET."""

    def __init__(self, response: Optional[FakeResponse] = None, exc: Optional[Exception] = None):
        self.response = response or FakeResponse()
        self.exc = exc
        self.calls: List[dict] = []

    def get(self, url, params=None, headers=None, timeout=None):
        self.calls.append({"url": url, "params": params, "headers": headers, "timeout": timeout})
        if self.exc:
            raise self.exc
        return self.response


class FakeCompletion:
    """Stands in for litellm.completion; replies are consumed in order."""

    def __init__(self, *replies, exc: Optional[Exception] = None):
        self.replies = list(replies)
        self.exc = exc
        self.calls: List[dict] = []

    def __call__(self, **params):
        self.calls.append(params)
        if self.exc:
            raise self.exc
        content = self.replies.pop(0) if self.replies else ""
        if not isinstance(content, str):
            content = json.dumps(content)
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


class FakeArxivClient:
    def __init__(self, papers: Optional[List[ArxivPaper]] = None, total: Optional[int] = None):
        self.papers = papers or []
        self.total = total if total is not None else len(self.papers)
        self.fetch_calls: List[dict] = []
        self.search_calls: List[dict] = []

    def fetch_papers(self, categories=None, max_results=20, start=0, sort_by="submittedDate"):
        self.fetch_calls.append({
            "categories": categories,
            "max_results": max_results,
            "start": start,
            "sort_by": sort_by,
        })
        return list(self.papers), self.total

    def search_papers(self, query, categories=None, max_results=20, sort_by="relevance"):
        self.search_calls.append({
            "query": query,
            "categories": categories,
            "max_results": max_results,
            "sort_by": sort_by,
        })
        return list(self.papers), self.total


def make_arxiv_paper(arxiv_id: str, day: int = 1, title: Optional[str] = None) -> ArxivPaper:
    return ArxivPaper(
        arxiv_id=arxiv_id,
        title=title or f"Paper {arxiv_id}",
        authors=["Ada Lovelace", "Alan Turing"],
        abstract=f"Abstract of {arxiv_id}.",
        categories=["cs.AI", "cs.LG"],
        published_date=datetime(2024, 1, day, 12, 0, tzinfo=timezone.utc),
        pdf_url=f"https://arxiv.org/pdf/{arxiv_id}",
    )


def make_settings(**overrides) -> Settings:
    values = {
        "database_url": "sqlite://",
        "ai_provider": "claude",
        "anthropic_api_key": None,
        "openai_api_key": None,
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def session_factory():
    engine = create_db_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    yield create_session_factory(engine)
    engine.dispose()


@pytest.fixture
def repo(session_factory):
    return PaperRepository(session_factory)


@pytest.fixture
def marks(session_factory):
    return PaperMarkRepository(session_factory)
