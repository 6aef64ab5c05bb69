from __future__ import annotations

import logging
import re
import xml.etree.ElementTree as ET
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

import requests

from ..config import ArxivConfig, DEFAULT_CATEGORIES
from ..errors import MalformedResponseError, UpstreamError
from ..model.paper import ArxivPaper, SortBy

logger = logging.getLogger(__name__)

ATOM_NS = "{http://www.w3.org/2005/Atom}"
OPENSEARCH_NS = "{http://a9.com/-/spec/opensearch/1.1/}"


def clean_text(text: Optional[str]) -> str:
    return re.sub(r"\s+", " ", text or "").strip()


def extract_arxiv_id(entry_id: str) -> str:
    """http://arxiv.org/abs/2401.12345v2 -> 2401.12345v2"""
    match = re.search(r"abs/(.+)$", entry_id)
    return match.group(1) if match else entry_id


def _parse_datetime(value: str) -> datetime:
    # arXiv uses "2024-01-15T18:59:59Z"
    return datetime.fromisoformat(value.strip().replace("Z", "+00:00"))


class ArxivClient:
    """
    Thin client over the arXiv export API (Atom feed).

    One HTTP request per call, no retry.
    """

    def __init__(self, config: Optional[ArxivConfig] = None, session: Optional[requests.Session] = None):
        self.config = config or ArxivConfig()
        self.session = session or requests.Session()

    # --------- public API --------- #

    def fetch_papers(
        self,
        categories: Optional[Sequence[str]] = None,
        max_results: int = 20,
        start: int = 0,
        sort_by: SortBy = "submittedDate",
    ) -> Tuple[List[ArxivPaper], int]:
        """List the newest (or most relevant) papers in any of the categories."""
        categories = list(categories or DEFAULT_CATEGORIES)
        search_query = f"({self._category_query(categories)})"
        return self._query({
            "search_query": search_query,
            "start": str(start),
            "max_results": str(max_results),
            "sortBy": sort_by,
            "sortOrder": "descending",
        })

    def search_papers(
        self,
        query: str,
        categories: Optional[Sequence[str]] = None,
        max_results: int = 20,
        sort_by: SortBy = "relevance",
    ) -> Tuple[List[ArxivPaper], int]:
        """Free-text search, optionally restricted to categories."""
        search_query = f"all:{' '.join(query.split())}"
        if categories:
            search_query = f"({search_query}) AND ({self._category_query(categories)})"

        return self._query({
            "search_query": search_query,
            "start": "0",
            "max_results": str(max_results),
            "sortBy": sort_by,
            "sortOrder": "descending",
        })

    def fetch_paper_by_id(self, arxiv_id: str) -> Optional[ArxivPaper]:
        papers, _ = self._query({"id_list": arxiv_id})
        return papers[0] if papers else None

    # --------- helpers --------- #

    @staticmethod
    def _category_query(categories: Sequence[str]) -> str:
        return " OR ".join(f"cat:{cat}" for cat in categories)

    def _query(self, params: dict) -> Tuple[List[ArxivPaper], int]:
        logger.debug(f"arXiv query: {params}")
        response = self.session.get(
            self.config.api_base,
            params=params,
            timeout=self.config.timeout,
        )
        if not response.ok:
            raise UpstreamError("arXiv", response.status_code)

        papers, total = self.parse_feed(response.text)
        logger.info(f"📚 arXiv returned {len(papers)} papers (total={total})")
        return papers, total

    @classmethod
    def parse_feed(cls, xml_text: str) -> Tuple[List[ArxivPaper], int]:
        try:
            root = ET.fromstring(xml_text)
        except ET.ParseError as e:
            raise MalformedResponseError(f"Invalid arXiv XML: {e}") from e

        total_text = root.findtext(f"{OPENSEARCH_NS}totalResults")
        try:
            total = int(total_text) if total_text else 0
        except ValueError as e:
            raise MalformedResponseError(f"Invalid totalResults: {total_text!r}") from e

        papers = [cls._parse_entry(entry) for entry in root.findall(f"{ATOM_NS}entry")]
        return papers, total

    @staticmethod
    def _parse_entry(entry: ET.Element) -> ArxivPaper:
        entry_id = entry.findtext(f"{ATOM_NS}id")
        published = entry.findtext(f"{ATOM_NS}published")
        if not entry_id or not published:
            raise MalformedResponseError("arXiv entry without id or published date")

        arxiv_id = extract_arxiv_id(entry_id.strip())

        pdf_url = None
        for link in entry.findall(f"{ATOM_NS}link"):
            if link.get("title") == "pdf" and link.get("href"):
                pdf_url = link.get("href")
                break
        if pdf_url is None:
            pdf_url = f"https://arxiv.org/pdf/{arxiv_id}"

        try:
            published_date = _parse_datetime(published)
        except ValueError as e:
            raise MalformedResponseError(f"Invalid published date: {published!r}") from e

        return ArxivPaper(
            arxiv_id=arxiv_id,
            title=clean_text(entry.findtext(f"{ATOM_NS}title")),
            authors=[
                clean_text(author.findtext(f"{ATOM_NS}name"))
                for author in entry.findall(f"{ATOM_NS}author")
            ],
            abstract=clean_text(entry.findtext(f"{ATOM_NS}summary")),
            categories=[
                c.get("term") for c in entry.findall(f"{ATOM_NS}category") if c.get("term")
            ],
            published_date=published_date,
            pdf_url=pdf_url,
        )
